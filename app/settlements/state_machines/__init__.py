"""
State machine enums for settlement models.

This module defines the state enums used by settlement models with django-fsm.
"""

from settlements.state_machines.states import (
    BookingStatus,
    CancelledBy,
    CreditFailureStatus,
    EscrowTransactionStatus,
    EscrowTransactionType,
    MilestoneStatus,
    MilestoneType,
    RefundStatus,
    WalletTransactionSource,
    WalletTransactionType,
)

__all__ = [
    "BookingStatus",
    "CancelledBy",
    "CreditFailureStatus",
    "EscrowTransactionStatus",
    "EscrowTransactionType",
    "MilestoneStatus",
    "MilestoneType",
    "RefundStatus",
    "WalletTransactionSource",
    "WalletTransactionType",
]
