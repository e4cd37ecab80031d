"""
Concurrency tests for the wallet ledger and milestone release.

Each worker runs on its own database connection, so these tests need
transaction=True: the rows have to be committed to be seen across
threads.

SQLite has no row locks and reports a busy table as OperationalError
instead of waiting; workers retry those attempts the way a caller
would. PostgreSQL queues them on the row lock instead.
"""

import random
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from django.db import DatabaseError, OperationalError, connection

from settlements.exceptions import InvalidStateTransitionError, SettlementStepError
from settlements.models import (
    EscrowTransaction,
    PaymentMilestone,
    VendorWallet,
    WalletTransaction,
)
from settlements.services import (
    MilestoneReleaseResult,
    ReconciliationService,
    SettlementOrchestrator,
)
from settlements.state_machines import (
    MilestoneStatus,
    MilestoneType,
    WalletTransactionSource,
)
from settlements.tests.factories import BookingFactory, PaymentMilestoneFactory
from settlements.wallet import WalletCreditParams, wallet_ledger

MAX_ATTEMPTS = 50


def retry_while_locked(operation):
    """Run operation, retrying attempts the database refused as locked."""
    for _ in range(MAX_ATTEMPTS):
        try:
            return operation()
        except OperationalError:
            pass
        except SettlementStepError as e:
            if not isinstance(e.__cause__, DatabaseError):
                raise
        time.sleep(random.uniform(0.005, 0.02))
    raise AssertionError(f"Database stayed locked for {MAX_ATTEMPTS} attempts")


def run_concurrently(operation, workers: int) -> list:
    """
    Start operation on `workers` threads at once.

    Returns each worker's result, or the exception it raised.
    """
    barrier = threading.Barrier(workers)

    def worker(index):
        connection.close()  # Force new connection for thread
        try:
            barrier.wait()
            return retry_while_locked(lambda: operation(index))
        except Exception as e:
            return e
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(worker, range(workers)))


@pytest.mark.django_db(transaction=True)
class TestConcurrentWalletCredits:
    """First credits for a vendor racing to create the wallet."""

    def test_concurrent_first_credits_share_one_wallet(self):
        vendor_id = uuid.uuid4()
        workers = 8

        def credit(index):
            return wallet_ledger.credit_wallet(
                WalletCreditParams(
                    vendor_id=vendor_id,
                    amount=Decimal("100.00"),
                    source=WalletTransactionSource.REFUND_SPLIT,
                    idempotency_key=f"concurrent-credit-{vendor_id}-{index}",
                )
            )

        outcomes = run_concurrently(credit, workers)

        errors = [o for o in outcomes if isinstance(o, Exception)]
        assert errors == []
        assert VendorWallet.objects.filter(vendor_id=vendor_id).count() == 1

        wallet = VendorWallet.objects.get(vendor_id=vendor_id)
        assert wallet.balance == Decimal("800.00")
        assert wallet.total_earned == Decimal("800.00")
        sequences = list(
            WalletTransaction.objects.filter(wallet=wallet)
            .order_by("sequence")
            .values_list("sequence", flat=True)
        )
        assert sequences == list(range(1, workers + 1))
        assert ReconciliationService.verify_wallet(wallet.id).is_consistent

    def test_concurrent_credits_with_one_key_apply_once(self):
        vendor_id = uuid.uuid4()
        key = f"concurrent-duplicate-{vendor_id}"

        def credit(index):
            return wallet_ledger.credit_wallet(
                WalletCreditParams(
                    vendor_id=vendor_id,
                    amount=Decimal("250.00"),
                    source=WalletTransactionSource.REFUND_SPLIT,
                    idempotency_key=key,
                )
            )

        outcomes = run_concurrently(credit, 4)

        assert all(not isinstance(o, Exception) for o in outcomes)
        assert len({o.id for o in outcomes}) == 1
        wallet = VendorWallet.objects.get(vendor_id=vendor_id)
        assert wallet.balance == Decimal("250.00")
        assert WalletTransaction.objects.filter(wallet=wallet).count() == 1


@pytest.mark.django_db(transaction=True)
class TestConcurrentMilestoneRelease:
    """Two admins releasing the same completion milestone."""

    def test_only_one_release_wins(self):
        booking = BookingFactory(total_amount=Decimal("10000.00"))
        milestone = PaymentMilestoneFactory(
            booking=booking,
            milestone_type=MilestoneType.COMPLETION,
            status=MilestoneStatus.HELD_IN_ESCROW,
        )

        def release(index):
            return SettlementOrchestrator.release_milestone(
                milestone.id, admin_id=f"admin-{index}"
            )

        outcomes = run_concurrently(release, 2)

        released = [o for o in outcomes if isinstance(o, MilestoneReleaseResult)]
        rejected = [o for o in outcomes if isinstance(o, InvalidStateTransitionError)]
        assert len(released) == 1
        assert len(rejected) == 1

        assert PaymentMilestone.objects.get(id=milestone.id).status == (
            MilestoneStatus.RELEASED
        )
        assert EscrowTransaction.objects.filter(milestone_id=milestone.id).count() == 1
        assert WalletTransaction.objects.filter(milestone_id=milestone.id).count() == 1
        wallet = VendorWallet.objects.get(vendor_id=booking.vendor_id)
        assert wallet.balance == Decimal("2000.00")
