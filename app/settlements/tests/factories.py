"""
Factory Boy factories for settlement test data.

Factories set FSM status fields at construction, which django-fsm allows;
only re-assigning a loaded instance's status is blocked.

Usage:
    from settlements.tests.factories import BookingFactory, PaymentMilestoneFactory

    booking = BookingFactory(total_amount=Decimal("10000.00"))
    milestone = PaymentMilestoneFactory(
        booking=booking,
        milestone_type=MilestoneType.COMPLETION,
        status=MilestoneStatus.HELD_IN_ESCROW,
    )
"""

import uuid
from decimal import Decimal

import factory
from django.utils import timezone

from settlements.models import (
    Booking,
    PaymentMilestone,
    Refund,
    WalletCreditFailure,
)
from settlements.policies import get_settlement_rates, milestone_amount
from settlements.state_machines import (
    BookingStatus,
    CancelledBy,
    CreditFailureStatus,
    MilestoneStatus,
    MilestoneType,
    RefundStatus,
    WalletTransactionSource,
)


class BookingFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Booking instances.

    Default creates a confirmed booking of ₹10,000.
    """

    class Meta:
        model = Booking
        skip_postgeneration_save = True

    total_amount = Decimal("10000.00")
    status = BookingStatus.CONFIRMED
    vendor_id = factory.LazyFunction(uuid.uuid4)
    customer_id = factory.LazyFunction(uuid.uuid4)


class PaymentMilestoneFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating PaymentMilestone instances.

    Default creates a completion milestone held in escrow, with the
    percentage and amount derived from the booking total.

    Example:
        # Advance milestone already paid
        advance = PaymentMilestoneFactory(
            milestone_type=MilestoneType.ADVANCE,
            status=MilestoneStatus.PAID,
        )
    """

    class Meta:
        model = PaymentMilestone
        skip_postgeneration_save = True

    booking = factory.SubFactory(BookingFactory)
    milestone_type = MilestoneType.COMPLETION
    status = MilestoneStatus.HELD_IN_ESCROW
    percentage = factory.LazyAttribute(
        lambda o: get_settlement_rates().percentage_for(o.milestone_type)
    )
    amount = factory.LazyAttribute(
        lambda o: milestone_amount(o.booking.total_amount, o.milestone_type)
    )
    escrow_held_at = factory.LazyAttribute(
        lambda o: timezone.now()
        if o.status in (MilestoneStatus.HELD_IN_ESCROW, MilestoneStatus.RELEASED)
        else None
    )


class RefundFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Refund instances.

    Default creates a pending customer cancellation of a ₹10,000 booking
    with ₹5,000 refunded and ₹5,000 forfeited.
    """

    class Meta:
        model = Refund
        skip_postgeneration_save = True

    booking = factory.SubFactory(BookingFactory, status=BookingStatus.CANCELLED)
    cancelled_by = CancelledBy.CUSTOMER
    refund_amount = Decimal("5000.00")
    non_refundable_amount = Decimal("5000.00")
    refund_percentage = Decimal("50.00")
    reason = "Change of plans"
    status = RefundStatus.PENDING


class WalletCreditFailureFactory(factory.django.DjangoModelFactory):
    """Factory for a pending refund credit that failed."""

    class Meta:
        model = WalletCreditFailure
        skip_postgeneration_save = True

    refund = factory.SubFactory(RefundFactory, status=RefundStatus.COMPLETED)
    booking = factory.SelfAttribute("refund.booking")
    vendor_id = factory.SelfAttribute("booking.vendor_id")
    amount = Decimal("4750.00")
    source = WalletTransactionSource.REFUND_SPLIT
    idempotency_key = factory.LazyAttribute(lambda o: f"refund_split:{o.refund.id}")
    last_error = "OperationalError: database is locked"
    status = CreditFailureStatus.PENDING
