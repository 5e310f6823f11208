"""
Background job enumerations.
"""

import enum


class JobStatus(str, enum.Enum):
    """Job run status enumeration."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobType(str, enum.Enum):
    """Known background jobs. The value doubles as the job lock name."""
    PREMIUM_ACCRUAL = "premium_accrual"
