"""
PaymentMilestone model - one of the three payments of a booking.

Every booking pays in three milestones (advance 20%, arrival 50%,
completion 30%). Milestones are created when the booking is confirmed and
their amount is fixed then. Only the completion milestone is released by
an admin; the settlement orchestrator moves it to RELEASED exactly once.

Usage:
    from settlements.models import PaymentMilestone
    from settlements.state_machines import MilestoneStatus

    held = PaymentMilestone.objects.filter(status=MilestoneStatus.HELD_IN_ESCROW)
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from settlements.state_machines import MilestoneStatus, MilestoneType


class PaymentMilestone(UUIDPrimaryKeyMixin, BaseModel):
    """
    A milestone payment of a booking.

    State Flow:
        PENDING -> PAID -> HELD_IN_ESCROW -> RELEASED
        HELD_IN_ESCROW -> REFUNDED

    Fields:
        booking: Booking this milestone belongs to
        milestone_type: advance / arrival / completion
        percentage: Fraction of the booking total (e.g. 0.30)
        amount: percentage × booking total, fixed at creation
        status: Current FSM state
        escrow_held_at: When the money entered escrow
        escrow_released_at: When the money left escrow
    """

    booking = models.ForeignKey(
        "settlements.Booking",
        on_delete=models.PROTECT,
        related_name="milestones",
        help_text="Booking this milestone belongs to",
    )
    milestone_type = models.CharField(
        max_length=20,
        choices=MilestoneType.choices,
        help_text="Which of the three milestones this is",
    )
    percentage = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        help_text="Fraction of the booking total (e.g. 0.3000)",
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Milestone amount, computed once at creation",
    )

    status = FSMField(
        default=MilestoneStatus.PENDING,
        choices=MilestoneStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the milestone (managed by FSM)",
    )

    escrow_held_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the milestone amount entered escrow",
    )
    escrow_released_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the milestone amount was released from escrow",
    )

    class Meta:
        db_table = "payment_milestones"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["milestone_type", "status"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["booking", "milestone_type"],
                name="unique_milestone_type_per_booking",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="milestone_amount_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"PaymentMilestone({self.id}, {self.milestone_type}, {self.status})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=MilestoneStatus.PENDING,
        target=MilestoneStatus.PAID,
    )
    def mark_paid(self):
        """Customer paid this milestone. Transition: PENDING -> PAID"""
        pass

    @transition(
        field=status,
        source=MilestoneStatus.PAID,
        target=MilestoneStatus.HELD_IN_ESCROW,
    )
    def hold_in_escrow(self):
        """Payment moved into escrow. Transition: PAID -> HELD_IN_ESCROW"""
        self.escrow_held_at = timezone.now()

    @transition(
        field=status,
        source=MilestoneStatus.HELD_IN_ESCROW,
        target=MilestoneStatus.RELEASED,
    )
    def release(self):
        """Escrow released. Transition: HELD_IN_ESCROW -> RELEASED"""
        self.escrow_released_at = timezone.now()

    @transition(
        field=status,
        source=MilestoneStatus.HELD_IN_ESCROW,
        target=MilestoneStatus.REFUNDED,
    )
    def refund(self):
        """Escrow returned on cancellation. Transition: HELD_IN_ESCROW -> REFUNDED"""
        self.escrow_released_at = timezone.now()

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_manually_releasable(self) -> bool:
        """Completion milestone currently held in escrow."""
        return (
            self.milestone_type == MilestoneType.COMPLETION
            and self.status == MilestoneStatus.HELD_IN_ESCROW
        )
