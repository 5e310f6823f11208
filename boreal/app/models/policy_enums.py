"""
Application and policy lifecycle enumerations.
"""

import enum


class ApplicationStatus(str, enum.Enum):
    """Application status enumeration."""
    QUOTE_STARTED = "quote_started"
    SUBMITTED = "submitted"
    REFERRED = "referred"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    ACTIVE = "active"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    CLAIM = "claim"


class PolicyStatus(str, enum.Enum):
    """Policy status enumeration."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    CLAIM = "claim"
