"""
Tests for settlement models.

Covers database constraints, computed properties, the fixed booking
total and the append-only behaviour of escrow transactions.
"""

import uuid
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from settlements.models import Booking, EscrowTransaction, WalletCreditFailure
from settlements.services import SettlementOrchestrator
from settlements.state_machines import (
    BookingStatus,
    CreditFailureStatus,
    EscrowTransactionStatus,
    EscrowTransactionType,
    MilestoneStatus,
    MilestoneType,
)
from settlements.tests.factories import (
    BookingFactory,
    PaymentMilestoneFactory,
    RefundFactory,
    WalletCreditFailureFactory,
)
from settlements.wallet import ImmutableRecordError


@pytest.fixture
def escrow_transaction(completion_milestone):
    return EscrowTransaction.objects.create(
        booking=completion_milestone.booking,
        milestone=completion_milestone,
        transaction_type=EscrowTransactionType.COMMISSION_DEDUCT,
        amount=Decimal("3000.00"),
        commission_amount=Decimal("1000.00"),
        vendor_amount=Decimal("2000.00"),
        status=EscrowTransactionStatus.COMPLETED,
        admin_verified_at=timezone.now(),
    )


class TestBooking:
    """Tests for Booking."""

    def test_total_must_be_positive(self, db):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                BookingFactory(total_amount=Decimal("0.00"))

    def test_total_change_after_insert_raises(self, completion_milestone):
        booking = Booking.objects.get(id=completion_milestone.booking_id)
        booking.total_amount = Decimal("50000.00")

        with pytest.raises(ImmutableRecordError):
            booking.save()

        assert Booking.objects.get(id=booking.id).total_amount == Decimal("10000.00")

    def test_vendor_change_after_insert_raises(self, booking):
        booking.vendor_id = uuid.uuid4()

        with pytest.raises(ImmutableRecordError) as exc_info:
            booking.save()

        assert exc_info.value.details["fields"] == ["vendor_id"]

    def test_status_may_change(self, booking):
        booking.status = BookingStatus.COMPLETED
        booking.save()

        assert Booking.objects.get(id=booking.id).status == BookingStatus.COMPLETED

    def test_release_after_rejected_edit_uses_original_total(self, completion_milestone):
        booking = Booking.objects.get(id=completion_milestone.booking_id)
        booking.total_amount = Decimal("50000.00")
        with pytest.raises(ImmutableRecordError):
            booking.save()

        result = SettlementOrchestrator.release_milestone(completion_milestone.id)

        assert result.split.commission_amount == Decimal("1000.00")
        assert result.split.vendor_amount == Decimal("2000.00")
        assert result.split.distributed_amount == result.split.gross_amount


class TestPaymentMilestone:
    """Tests for PaymentMilestone."""

    def test_one_milestone_per_type_per_booking(self, completion_milestone):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                PaymentMilestoneFactory(
                    booking=completion_milestone.booking,
                    milestone_type=MilestoneType.COMPLETION,
                )

    def test_is_manually_releasable(self, completion_milestone, advance_milestone):
        assert completion_milestone.is_manually_releasable is True
        assert advance_milestone.is_manually_releasable is False

    def test_completion_not_in_escrow_is_not_releasable(self, db):
        milestone = PaymentMilestoneFactory(status=MilestoneStatus.PAID)

        assert milestone.is_manually_releasable is False

    def test_factory_derives_amount_from_booking_total(self, completion_milestone):
        assert completion_milestone.amount == Decimal("3000.00")


class TestEscrowTransaction:
    """Tests for EscrowTransaction immutability."""

    def test_full_save_after_insert_raises(self, escrow_transaction):
        escrow_transaction.notes = "edited"

        with pytest.raises(ImmutableRecordError):
            escrow_transaction.save()

    def test_amount_update_raises(self, escrow_transaction):
        escrow_transaction.vendor_amount = Decimal("0.00")

        with pytest.raises(ImmutableRecordError):
            escrow_transaction.save(update_fields=["vendor_amount"])

    def test_wallet_credit_flag_may_be_saved(self, escrow_transaction):
        escrow_transaction.vendor_wallet_credited = True
        escrow_transaction.save(update_fields=["vendor_wallet_credited", "updated_at"])

        escrow_transaction.refresh_from_db()
        assert escrow_transaction.vendor_wallet_credited is True

    def test_delete_raises(self, escrow_transaction):
        with pytest.raises(ImmutableRecordError):
            escrow_transaction.delete()

        assert EscrowTransaction.objects.filter(id=escrow_transaction.id).exists()

    def test_one_escrow_transaction_per_milestone(self, escrow_transaction):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                EscrowTransaction.objects.create(
                    booking=escrow_transaction.booking,
                    milestone=escrow_transaction.milestone,
                    transaction_type=EscrowTransactionType.COMMISSION_DEDUCT,
                    amount=Decimal("3000.00"),
                    commission_amount=Decimal("1000.00"),
                    vendor_amount=Decimal("2000.00"),
                    status=EscrowTransactionStatus.COMPLETED,
                    admin_verified_at=timezone.now(),
                )


class TestRefund:
    def test_total_exposure(self, db):
        refund = RefundFactory(
            refund_amount=Decimal("6000.00"),
            non_refundable_amount=Decimal("4000.00"),
        )

        assert refund.total_exposure == Decimal("10000.00")

    def test_negative_amounts_rejected(self, db):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                RefundFactory(refund_amount=Decimal("-1.00"))


class TestWalletCreditFailure:
    def test_pending_queryset(self, db):
        pending = WalletCreditFailureFactory()
        WalletCreditFailureFactory(status=CreditFailureStatus.RESOLVED)

        assert list(WalletCreditFailure.objects.pending()) == [pending]

    def test_idempotency_key_is_unique(self, db):
        failure = WalletCreditFailureFactory()

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                WalletCreditFailureFactory(
                    refund=failure.refund,
                    idempotency_key=failure.idempotency_key,
                )
