"""
Data types for wallet operations.

Types:
    WalletBalance: Snapshot of a wallet's amounts
    WalletCreditParams: Parameters for crediting a vendor wallet
    WalletDebitParams: Parameters for debiting a vendor wallet

Usage:
    from settlements.wallet.types import WalletCreditParams

    params = WalletCreditParams(
        vendor_id=booking.vendor_id,
        amount=Decimal("2000.00"),
        source=WalletTransactionSource.MILESTONE_RELEASE,
        idempotency_key=f"milestone_release:{milestone.id}",
        booking_id=booking.id,
    )
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal

from settlements.money import AmountLike, format_amount, is_positive, round_currency
from settlements.state_machines import WalletTransactionSource

CREDIT_SOURCES = frozenset(
    {
        WalletTransactionSource.MILESTONE_RELEASE,
        WalletTransactionSource.REFUND_SPLIT,
        WalletTransactionSource.ADJUSTMENT,
    }
)
DEBIT_SOURCES = frozenset(
    {
        WalletTransactionSource.WITHDRAWAL,
        WalletTransactionSource.ADJUSTMENT,
    }
)


@dataclass
class WalletBalance:
    """
    Snapshot of a vendor wallet.

    Attributes:
        vendor_id: Owning vendor
        balance: Withdrawable balance
        pending_withdrawal: Part of the balance locked by withdrawals
        total_earned: All-time credits
    """

    vendor_id: uuid.UUID
    balance: Decimal
    pending_withdrawal: Decimal
    total_earned: Decimal

    @property
    def available(self) -> Decimal:
        return self.balance - self.pending_withdrawal

    def __str__(self) -> str:
        return f"{format_amount(self.balance)} ({format_amount(self.available)} available)"


@dataclass
class _WalletEntryParams:
    vendor_id: uuid.UUID
    amount: AmountLike
    source: str
    idempotency_key: str

    booking_id: uuid.UUID | None = None
    milestone_id: uuid.UUID | None = None
    escrow_transaction_id: uuid.UUID | None = None
    notes: str = ""
    created_by: str | None = None

    allowed_sources = frozenset()

    def __post_init__(self) -> None:
        """Validate params and round the amount."""
        if not is_positive(self.amount):
            raise ValueError("amount must be positive")
        self.amount = round_currency(self.amount)
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if self.source not in self.allowed_sources:
            raise ValueError(
                f"source {self.source!r} is not allowed for {type(self).__name__}"
            )


@dataclass
class WalletCreditParams(_WalletEntryParams):
    """
    Parameters for crediting a vendor wallet.

    Required Attributes:
        vendor_id: Vendor to credit
        amount: Positive amount (rounded to two decimals)
        source: milestone_release, refund_split or adjustment
        idempotency_key: Unique key; a repeat returns the original entry

    Optional Attributes:
        booking_id / milestone_id / escrow_transaction_id: Originating records
        notes: Human-readable description
        created_by: Identifier of the service/admin crediting
    """

    allowed_sources = CREDIT_SOURCES


@dataclass
class WalletDebitParams(_WalletEntryParams):
    """
    Parameters for debiting a vendor wallet.

    Same attributes as WalletCreditParams; source must be withdrawal or
    adjustment.
    """

    allowed_sources = DEBIT_SOURCES
