"""
EscrowTransaction model - audit record of a completion milestone release.

Exactly one EscrowTransaction exists per released completion milestone.
It records the gross milestone amount and how it was split. Rows are
written once by the settlement orchestrator; afterwards only the wallet
credit flag (and the wallet transaction it points to) may change.
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from settlements.state_machines import (
    EscrowTransactionStatus,
    EscrowTransactionType,
)
from settlements.wallet.exceptions import ImmutableRecordError

# Fields that may still change after the row is inserted
MUTABLE_FIELDS = frozenset({"vendor_wallet_credited", "wallet_transaction", "updated_at"})


class EscrowTransaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    Immutable audit record of an escrow release.

    Fields:
        booking: Booking the released milestone belongs to
        milestone: The released completion milestone (one record per milestone)
        transaction_type: Always commission_deduct
        amount: Gross amount (the milestone's own amount)
        commission_amount: Company commission (fraction of booking total)
        vendor_amount: Vendor share (fraction of booking total)
        status: Always completed
        admin_verified_at: When the admin confirmed the release
        vendor_wallet_credited: Whether the vendor wallet has been credited
            (stays False when the vendor share is zero; notes say so)
        wallet_transaction: The wallet credit, once made
        notes: Human-readable summary of the split
    """

    booking = models.ForeignKey(
        "settlements.Booking",
        on_delete=models.PROTECT,
        related_name="escrow_transactions",
        help_text="Booking the released milestone belongs to",
    )
    milestone = models.OneToOneField(
        "settlements.PaymentMilestone",
        on_delete=models.PROTECT,
        related_name="escrow_transaction",
        help_text="Released milestone (at most one record per milestone)",
    )
    transaction_type = models.CharField(
        max_length=30,
        choices=EscrowTransactionType.choices,
        default=EscrowTransactionType.COMMISSION_DEDUCT,
        help_text="Kind of escrow movement",
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Gross amount released (the milestone amount)",
    )
    commission_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Company commission",
    )
    vendor_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount credited to the vendor wallet",
    )
    status = models.CharField(
        max_length=20,
        choices=EscrowTransactionStatus.choices,
        default=EscrowTransactionStatus.COMPLETED,
        help_text="Record status",
    )
    admin_verified_at = models.DateTimeField(
        help_text="When the admin verified the release",
    )
    vendor_wallet_credited = models.BooleanField(
        default=False,
        help_text="Whether the vendor share has reached the wallet",
    )
    wallet_transaction = models.ForeignKey(
        "settlements.WalletTransaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
        help_text="Wallet credit made for this release",
    )
    notes = models.TextField(
        blank=True,
        default="",
        help_text="Summary of the split",
    )

    class Meta:
        db_table = "escrow_transactions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["booking", "transaction_type"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(commission_amount__gte=0)
                & models.Q(vendor_amount__gte=0)
                & models.Q(amount__gte=0),
                name="escrow_amounts_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"EscrowTransaction({self.id}, {self.transaction_type}, ₹{self.amount})"

    def save(self, *args, **kwargs):
        """
        Insert once; afterwards only the wallet credit flag may be saved.

        Raises:
            ImmutableRecordError: On any other update
        """
        if not self._state.adding:
            update_fields = kwargs.get("update_fields")
            if update_fields is None or not set(update_fields) <= MUTABLE_FIELDS:
                raise ImmutableRecordError(
                    "Escrow transactions are immutable; only the wallet credit "
                    "flag may be updated",
                    details={
                        "escrow_transaction_id": str(self.id),
                        "update_fields": sorted(update_fields or []),
                    },
                )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError(
            "Escrow transactions cannot be deleted",
            details={"escrow_transaction_id": str(self.id)},
        )
