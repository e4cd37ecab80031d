"""
WalletCreditFailure model - reconciliation queue for failed vendor credits.

A refund is completed even when crediting the vendor wallet fails
afterwards. The failed credit is recorded here with the idempotency key
it would have used, so an operator can retry it without risking a double
credit.

Usage:
    from settlements.models import WalletCreditFailure
    from settlements.services import ReconciliationService

    for failure in WalletCreditFailure.objects.pending():
        ReconciliationService.retry_wallet_credit(failure.id)
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from settlements.state_machines import CreditFailureStatus, WalletTransactionSource


class WalletCreditFailureQuerySet(models.QuerySet):
    def pending(self):
        return self.filter(status=CreditFailureStatus.PENDING)


class WalletCreditFailure(UUIDPrimaryKeyMixin, BaseModel):
    """
    A vendor wallet credit that still has to be made.

    Fields:
        vendor_id: Vendor whose wallet should be credited
        amount: Amount to credit
        source: Wallet transaction source the credit will carry
        booking: Originating booking
        refund: Originating refund, for refund splits
        idempotency_key: Key the wallet credit is made with
        last_error: Most recent error message
        attempts: Number of credit attempts so far (including the original)
        status: pending or resolved
        resolved_at: When the credit finally went through
        wallet_transaction: The credit, once made
    """

    vendor_id = models.UUIDField(
        db_index=True,
        help_text="Vendor whose wallet should be credited",
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount to credit",
    )
    source = models.CharField(
        max_length=30,
        choices=WalletTransactionSource.choices,
        help_text="Source of the pending credit",
    )
    booking = models.ForeignKey(
        "settlements.Booking",
        on_delete=models.PROTECT,
        related_name="wallet_credit_failures",
        help_text="Originating booking",
    )
    refund = models.ForeignKey(
        "settlements.Refund",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="wallet_credit_failures",
        help_text="Originating refund",
    )
    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        help_text="Idempotency key of the wallet credit",
    )
    last_error = models.TextField(
        blank=True,
        default="",
        help_text="Most recent error message",
    )
    attempts = models.PositiveIntegerField(
        default=1,
        help_text="Number of credit attempts so far",
    )
    status = models.CharField(
        max_length=20,
        choices=CreditFailureStatus.choices,
        default=CreditFailureStatus.PENDING,
        db_index=True,
        help_text="Reconciliation status",
    )
    resolved_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the credit was made",
    )
    wallet_transaction = models.ForeignKey(
        "settlements.WalletTransaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
        help_text="Wallet transaction created on resolution",
    )

    objects = WalletCreditFailureQuerySet.as_manager()

    class Meta:
        db_table = "wallet_credit_failures"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"WalletCreditFailure({self.id}, {self.status}, ₹{self.amount})"
