"""
Wallet models for vendor earnings.

This module defines the two models of the vendor wallet ledger:
- VendorWallet: One per vendor, holds the withdrawable balance
- WalletTransaction: Append-only record of every credit and debit

The wallet balance is denormalized for fast reads. The transactions are
the source of truth: replaying a wallet's transactions in sequence order
must reproduce every recorded balance_after and the current balance.

Usage:
    from settlements.wallet.models import VendorWallet, WalletTransaction

    wallet = VendorWallet.objects.get(vendor_id=vendor_id)
    wallet.available_balance  # balance - pending_withdrawal
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import F, Q

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from settlements.state_machines import WalletTransactionSource, WalletTransactionType

from .exceptions import ImmutableRecordError


class VendorWallet(UUIDPrimaryKeyMixin, BaseModel):
    """
    A vendor's wallet.

    Created lazily on the first credit. All balance changes go through
    WalletLedger so every change has a matching WalletTransaction.

    Fields:
        vendor_id: Owning vendor (one wallet per vendor)
        balance: Withdrawable balance
        pending_withdrawal: Part of the balance locked by open withdrawals
        total_earned: Sum of all credits ever made

    Constraints:
        - Unique vendor_id
        - balance >= pending_withdrawal >= 0
        - total_earned >= 0
    """

    vendor_id = models.UUIDField(
        unique=True,
        help_text="UUID of the vendor owning this wallet",
    )
    balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Withdrawable balance",
    )
    pending_withdrawal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Balance locked by pending withdrawal requests",
    )
    total_earned = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="All-time sum of credits",
    )

    class Meta:
        db_table = "vendor_wallets"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(pending_withdrawal__gte=0),
                name="wallet_pending_withdrawal_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(balance__gte=F("pending_withdrawal")),
                name="wallet_balance_covers_pending_withdrawal",
            ),
            models.CheckConstraint(
                condition=Q(total_earned__gte=0),
                name="wallet_total_earned_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"VendorWallet({self.vendor_id}, ₹{self.balance})"

    @property
    def available_balance(self) -> Decimal:
        """Balance not locked by pending withdrawals."""
        return self.balance - self.pending_withdrawal


class WalletTransaction(UUIDPrimaryKeyMixin, models.Model):
    """
    An append-only wallet ledger entry.

    Entries are immutable once created - corrections are made via new
    adjustment entries.

    Fields:
        wallet: Wallet the entry belongs to
        vendor_id: Copy of the wallet's vendor for direct lookups
        sequence: Position in the wallet's history (1, 2, 3, ...)
        txn_type: credit or debit
        source: What caused the entry (milestone_release, refund_split, ...)
        amount: Amount moved (always positive)
        balance_after: Wallet balance right after this entry
        booking / milestone / escrow_transaction: Originating records
        idempotency_key: Unique key to prevent duplicate entries
        notes: Human-readable description
        created_by: Identifier of service/admin that created this
        created_at: Timestamp when the entry was recorded

    Constraints:
        - amount must be positive
        - idempotency_key must be unique
        - (wallet, sequence) must be unique
    """

    wallet = models.ForeignKey(
        VendorWallet,
        on_delete=models.PROTECT,
        related_name="transactions",
        help_text="Wallet this entry belongs to",
    )
    vendor_id = models.UUIDField(
        db_index=True,
        help_text="UUID of the vendor owning the wallet",
    )
    sequence = models.PositiveIntegerField(
        help_text="Position of this entry in the wallet history",
    )
    txn_type = models.CharField(
        max_length=10,
        choices=WalletTransactionType.choices,
        help_text="Credit or debit",
    )
    source = models.CharField(
        max_length=30,
        choices=WalletTransactionSource.choices,
        help_text="What caused this entry",
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount moved (always positive)",
    )
    balance_after = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Wallet balance right after this entry",
    )

    booking = models.ForeignKey(
        "settlements.Booking",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="wallet_transactions",
        help_text="Originating booking",
    )
    milestone = models.ForeignKey(
        "settlements.PaymentMilestone",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="wallet_transactions",
        help_text="Originating milestone",
    )
    escrow_transaction = models.ForeignKey(
        "settlements.EscrowTransaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="wallet_transactions",
        help_text="Originating escrow release",
    )

    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique key to prevent duplicate entries",
    )
    notes = models.TextField(
        blank=True,
        default="",
        help_text="Human-readable description of this entry",
    )
    created_by = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Identifier of service/admin that created this entry",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this entry was recorded",
    )

    class Meta:
        db_table = "wallet_transactions"
        ordering = ["wallet", "sequence"]
        indexes = [
            models.Index(fields=["source"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="wallet_transaction_amount_positive",
            ),
            models.UniqueConstraint(
                fields=["wallet", "sequence"],
                name="unique_wallet_transaction_sequence",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_txn_type_display()} {self.get_source_display()}: ₹{self.amount}"

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign of its effect on the balance."""
        if self.txn_type == WalletTransactionType.DEBIT:
            return -self.amount
        return self.amount

    def save(self, *args, **kwargs):
        """
        Insert only.

        Raises:
            ImmutableRecordError: When saving an existing entry
        """
        if not self._state.adding:
            raise ImmutableRecordError(
                "Wallet transactions are append-only",
                details={"wallet_transaction_id": str(self.id)},
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError(
            "Wallet transactions cannot be deleted",
            details={"wallet_transaction_id": str(self.id)},
        )
