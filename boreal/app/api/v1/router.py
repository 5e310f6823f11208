"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from boreal.app.api.v1.endpoints import admin_billing, admin_ops, policies, webhooks

router = APIRouter()

# Admin - payouts, commission payables, ledger
router.include_router(admin_billing.router)

# Admin - background jobs
router.include_router(admin_ops.router)

# Policy lifecycle
router.include_router(policies.router)

# Partner callbacks
router.include_router(webhooks.router)
