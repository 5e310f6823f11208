"""
Billing enumerations for premium accrual, commissions and payouts.
"""

import enum


class LedgerAccount(str, enum.Enum):
    """Chart of accounts used by the ledger."""
    PREMIUM_RECEIVABLE = "Premium Receivable"
    PREMIUM_REVENUE = "Premium Revenue"
    COMMISSION_EXPENSE = "Commission Expense"
    COMMISSION_PAYABLE = "Commission Payable"
    CASH = "Cash"


class PayableStatus(str, enum.Enum):
    """Commission payable status enumeration."""
    EARNED = "earned"  # Accrued, waiting for a payout batch
    BATCHED = "batched"  # Claimed by a payout batch
    PAID = "paid"  # Batch settled


class BatchStatus(str, enum.Enum):
    """Payout batch status enumeration."""
    OPEN = "open"  # Created, payables being claimed
    CLOSED = "closed"  # Total fixed, waiting for payment
    PAID = "paid"  # Payment processed
