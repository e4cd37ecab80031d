"""
Booking model - a purchased service order.

Bookings are created and driven through their lifecycle by order
fulfilment. The settlement engine only reads them: total_amount is the
base for every milestone and refund percentage, and vendor_id selects
the wallet that receives the vendor share.
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from settlements.state_machines import BookingStatus
from settlements.wallet.exceptions import ImmutableRecordError

# Fields the settlement math depends on; never updated after insert
FIXED_FIELDS = ("total_amount", "vendor_id", "customer_id")


class Booking(UUIDPrimaryKeyMixin, BaseModel):
    """
    A purchased service order.

    Fields:
        total_amount: Booking total, fixed at creation
        status: Lifecycle status (pending → confirmed → ... → completed / cancelled)
        vendor_id: UUID of the vendor providing the service
        customer_id: UUID of the customer who booked it

    Note:
        total_amount must never change after creation. All settlement
        percentages are computed from it, so save() rejects edits to it
        and to the vendor and customer references.
    """

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Booking total amount (base for all settlement percentages)",
    )
    status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.PENDING,
        db_index=True,
        help_text="Booking lifecycle status",
    )
    vendor_id = models.UUIDField(
        db_index=True,
        help_text="UUID of the vendor providing the service",
    )
    customer_id = models.UUIDField(
        db_index=True,
        help_text="UUID of the customer who made the booking",
    )

    class Meta:
        db_table = "bookings"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gt=0),
                name="booking_total_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Booking({self.id}, {self.status}, ₹{self.total_amount})"

    def save(self, *args, **kwargs):
        """
        Save the booking, refusing changes to its settlement base.

        Raises:
            ImmutableRecordError: If total_amount, vendor_id or customer_id
                differ from the stored row
        """
        if not self._state.adding:
            stored = (
                Booking.objects.filter(pk=self.pk).values(*FIXED_FIELDS).first()
            )
            if stored is not None:
                changed = sorted(
                    field
                    for field in FIXED_FIELDS
                    if self._meta.get_field(field).to_python(getattr(self, field))
                    != stored[field]
                )
                if changed:
                    raise ImmutableRecordError(
                        "Booking amounts and parties are fixed at creation",
                        details={"booking_id": str(self.id), "fields": changed},
                    )
        super().save(*args, **kwargs)
