"""
User roles enumeration.

Defines the role types carried in access tokens.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Back-office staff (payouts, policy activation, job control)
        LENDER: Lender portal users
        REFERRER: Referrer portal users earning commission
    """
    ADMIN = "ADMIN"
    LENDER = "LENDER"
    REFERRER = "REFERRER"
