"""
State enums for settlement models.

These are Django TextChoices for database storage and admin integration.

State Machines Overview:

PaymentMilestone Status:
    pending → paid → held_in_escrow → released
    held_in_escrow → refunded

Refund Status:
    pending → completed
    pending → rejected

WalletCreditFailure Status:
    pending → resolved
"""

from django.db import models


class BookingStatus(models.TextChoices):
    """
    Lifecycle of a booking.

    Driven by order fulfilment outside this app. The settlement engine
    reads it but never writes it.
    """

    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class MilestoneType(models.TextChoices):
    """
    The three payment milestones of every booking.

    ADVANCE and ARRIVAL are released upstream without commission.
    COMPLETION is the only milestone released by an admin.
    """

    ADVANCE = "advance", "Advance"
    ARRIVAL = "arrival", "Arrival"
    COMPLETION = "completion", "Completion"


class MilestoneStatus(models.TextChoices):
    """
    States for the PaymentMilestone model lifecycle.

    Terminal states: RELEASED, REFUNDED

    State Flow:
        PENDING → PAID → HELD_IN_ESCROW → RELEASED
        HELD_IN_ESCROW → REFUNDED
    """

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    HELD_IN_ESCROW = "held_in_escrow", "Held in Escrow"
    RELEASED = "released", "Released"
    REFUNDED = "refunded", "Refunded"


class EscrowTransactionType(models.TextChoices):
    """Kinds of escrow audit records."""

    COMMISSION_DEDUCT = "commission_deduct", "Commission Deduct"


class EscrowTransactionStatus(models.TextChoices):
    """Status of an escrow audit record."""

    COMPLETED = "completed", "Completed"


class CancelledBy(models.TextChoices):
    """Party that cancelled the booking."""

    CUSTOMER = "customer", "Customer"
    VENDOR = "vendor", "Vendor"


class RefundStatus(models.TextChoices):
    """
    States for the Refund model lifecycle.

    Terminal states: COMPLETED, REJECTED

    State Flow:
        PENDING → COMPLETED
        PENDING → REJECTED
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    REJECTED = "rejected", "Rejected"


class WalletTransactionType(models.TextChoices):
    """Direction of a wallet ledger entry."""

    CREDIT = "credit", "Credit"
    DEBIT = "debit", "Debit"


class WalletTransactionSource(models.TextChoices):
    """
    Origin of a wallet ledger entry.

    Values:
        MILESTONE_RELEASE: Vendor share of a released completion milestone
        REFUND_SPLIT: Vendor share of a non-refundable cancellation amount
        WITHDRAWAL: Money paid out to the vendor
        ADJUSTMENT: Manual correction
    """

    MILESTONE_RELEASE = "milestone_release", "Milestone Release"
    REFUND_SPLIT = "refund_split", "Refund Split"
    WITHDRAWAL = "withdrawal", "Withdrawal"
    ADJUSTMENT = "adjustment", "Adjustment"


class CreditFailureStatus(models.TextChoices):
    """
    Processing status for WalletCreditFailure.

    State Flow:
        PENDING → RESOLVED
    """

    PENDING = "pending", "Pending"
    RESOLVED = "resolved", "Resolved"


__all__ = [
    "BookingStatus",
    "MilestoneType",
    "MilestoneStatus",
    "EscrowTransactionType",
    "EscrowTransactionStatus",
    "CancelledBy",
    "RefundStatus",
    "WalletTransactionType",
    "WalletTransactionSource",
    "CreditFailureStatus",
]
