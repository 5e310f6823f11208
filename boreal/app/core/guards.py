"""
Role guards for back-office routes.
"""

from typing import Iterable
from fastapi import Depends, HTTPException, status
from boreal.app.models.enums import UserRole
from boreal.app.core.dependencies import get_current_user


def require_role(allowed_roles: Iterable[UserRole]):
    """
    Build a dependency that admits only tokens carrying one of `allowed_roles`.

        @router.post("/payout-batches")
        async def create_batch(current_user: dict = Depends(require_role([UserRole.ADMIN]))):
            ...

    The dependency returns the token claims; a missing, unknown or
    disallowed role is a 403.
    """
    permitted = frozenset(allowed_roles)
    required = ", ".join(sorted(role.value for role in permitted))

    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        try:
            role = UserRole(current_user.get("role"))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Token carries no valid role"
            )

        if role not in permitted:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {required}"
            )

        return current_user

    return role_checker
