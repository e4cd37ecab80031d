"""
Refund model - the settlement outcome of a cancelled booking.

Refund rows are created by the cancellation flow with refund_amount and
non_refundable_amount already decided. An admin then completes the refund
(splitting the non-refundable part between company and vendor) or rejects
it. Either way the refund leaves PENDING exactly once.

Usage:
    from settlements.models import Refund
    from settlements.state_machines import RefundStatus

    pending = Refund.objects.filter(status=RefundStatus.PENDING)
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from settlements.state_machines import CancelledBy, RefundStatus


class Refund(UUIDPrimaryKeyMixin, BaseModel):
    """
    Settlement of a cancelled booking.

    State Flow:
        PENDING -> COMPLETED
        PENDING -> REJECTED

    Fields:
        booking: Cancelled booking
        cancelled_by: customer or vendor
        refund_amount: Amount owed back to the customer
        non_refundable_amount: Amount forfeited by the customer
        refund_percentage: Percentage of the booking refunded (0-100)
        reason: Cancellation reason
        status: Current FSM state
        customer_amount / company_amount / vendor_amount: Split, set on completion
        processed_at / processed_by: When and by which admin it was settled
        rejection_reason: Why the refund was rejected

    Invariant:
        Once completed, customer_amount + company_amount + vendor_amount
        equals refund_amount + non_refundable_amount.
    """

    booking = models.ForeignKey(
        "settlements.Booking",
        on_delete=models.PROTECT,
        related_name="refunds",
        help_text="Cancelled booking",
    )
    cancelled_by = models.CharField(
        max_length=20,
        choices=CancelledBy.choices,
        help_text="Party that cancelled the booking",
    )
    refund_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount owed back to the customer",
    )
    non_refundable_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=0,
        help_text="Amount forfeited by the customer",
    )
    refund_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        help_text="Percentage of the booking total refunded (0-100)",
    )
    reason = models.TextField(
        blank=True,
        default="",
        help_text="Cancellation reason",
    )

    status = FSMField(
        default=RefundStatus.PENDING,
        choices=RefundStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the refund (managed by FSM)",
    )

    customer_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Returned to the customer (set on completion)",
    )
    company_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Kept by the company (set on completion)",
    )
    vendor_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Credited to the vendor (set on completion)",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When an admin completed or rejected the refund",
    )
    processed_by = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Identifier of the admin who processed the refund",
    )
    rejection_reason = models.TextField(
        null=True,
        blank=True,
        help_text="Why the refund was rejected",
    )

    class Meta:
        db_table = "refunds"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(refund_amount__gte=0)
                & models.Q(non_refundable_amount__gte=0),
                name="refund_amounts_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Refund({self.id}, {self.status}, ₹{self.refund_amount})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=RefundStatus.PENDING,
        target=RefundStatus.COMPLETED,
    )
    def complete(self, split, processed_by: str | None = None):
        """
        Record the split and mark the refund completed.

        Transition: PENDING -> COMPLETED

        Args:
            split: RefundSplit from the refund policy
            processed_by: Admin identifier
        """
        self.customer_amount = split.customer_amount
        self.company_amount = split.company_amount
        self.vendor_amount = split.vendor_amount
        self.processed_at = timezone.now()
        self.processed_by = processed_by

    @transition(
        field=status,
        source=RefundStatus.PENDING,
        target=RefundStatus.REJECTED,
    )
    def reject(self, processed_by: str | None = None, reason: str | None = None):
        """
        Reject the refund. No money moves.

        Transition: PENDING -> REJECTED
        """
        self.customer_amount = None
        self.company_amount = None
        self.vendor_amount = None
        self.processed_at = timezone.now()
        self.processed_by = processed_by
        self.rejection_reason = reason

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def total_exposure(self):
        """refund_amount + non_refundable_amount."""
        return self.refund_amount + self.non_refundable_amount
