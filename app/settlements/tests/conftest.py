"""
Pytest fixtures for settlement tests.

Fixtures provide bookings, milestones and refunds in the states the
settlement orchestrator starts from.

Usage:
    def test_release(completion_milestone):
        result = SettlementOrchestrator.release_milestone(completion_milestone.id)
        assert result.split.vendor_amount == Decimal("2000.00")
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from settlements.state_machines import MilestoneStatus, MilestoneType
from settlements.tests.factories import (
    BookingFactory,
    PaymentMilestoneFactory,
    RefundFactory,
)


# =============================================================================
# Booking and Milestone Fixtures
# =============================================================================


@pytest.fixture
def booking(db):
    """₹10,000 booking."""
    return BookingFactory(total_amount=Decimal("10000.00"))


@pytest.fixture
def completion_milestone(db, booking):
    """Completion milestone of ₹3,000 held in escrow."""
    return PaymentMilestoneFactory(
        booking=booking,
        milestone_type=MilestoneType.COMPLETION,
        status=MilestoneStatus.HELD_IN_ESCROW,
    )


@pytest.fixture
def advance_milestone(db, booking):
    """Advance milestone of ₹2,000 held in escrow."""
    return PaymentMilestoneFactory(
        booking=booking,
        milestone_type=MilestoneType.ADVANCE,
        status=MilestoneStatus.HELD_IN_ESCROW,
    )


# =============================================================================
# Refund Fixtures
# =============================================================================


@pytest.fixture
def pending_refund(db):
    """Pending refund: ₹5,000 back to the customer, ₹5,000 forfeited."""
    return RefundFactory(
        refund_amount=Decimal("5000.00"),
        non_refundable_amount=Decimal("5000.00"),
    )


@pytest.fixture
def full_refund(db):
    """Pending refund with nothing forfeited."""
    return RefundFactory(
        refund_amount=Decimal("10000.00"),
        non_refundable_amount=Decimal("0.00"),
        refund_percentage=Decimal("100.00"),
    )


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def staff_user(db):
    """Staff user allowed to call the settlement endpoints."""
    return get_user_model().objects.create_user(
        username="settlement-admin",
        email="admin@example.com",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture
def staff_client(staff_user):
    """APIClient authenticated as a staff user."""
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def api_client():
    """Unauthenticated APIClient."""
    return APIClient()
