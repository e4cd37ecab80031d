"""
Settlement orchestrator for escrow releases and refunds.

This module provides the SettlementOrchestrator class which sequences the
two admin-triggered money movements of the marketplace:

1. Completion milestone release (release_milestone):
   validate -> lock milestone -> compute split -> record escrow transaction
   -> held_in_escrow to released (compare-and-swap) -> credit vendor wallet
   -> flag escrow transaction as credited.
   All writes happen in ONE database transaction. A failure at any step
   rolls every write back and raises SettlementStepError naming the step.

2. Refund release (release_refund):
   validate -> lock refund -> compute split -> pending to completed
   (compare-and-swap) and COMMIT -> credit vendor wallet.
   Refund completion never waits on wallet bookkeeping: if the credit
   fails, the refund stays completed and the credit is queued as a
   WalletCreditFailure for an operator to retry. Only when that record
   cannot be written either is PartialFailureError raised.

Wallet credits carry idempotency keys (milestone_release:<id>,
refund_split:<id>) so a retry can never credit twice. Nothing is retried
automatically.

Usage:
    from settlements.services import SettlementOrchestrator

    result = SettlementOrchestrator.release_milestone(milestone_id, admin_id="admin-7")
    result.split.vendor_amount  # Decimal("2000.00")

    result = SettlementOrchestrator.release_refund(refund_id, admin_id="admin-7")
    if result.credit_failure:
        notify_operator(result.credit_failure.id)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from django.db import DatabaseError
from django.db.models import Count, Sum
from django.utils import timezone

from core.services import BaseService

from settlements.exceptions import (
    InvalidStateTransitionError,
    LedgerInvariantError,
    PartialFailureError,
    SettlementNotFoundError,
    SettlementStepError,
    SettlementValidationError,
)
from settlements.models import (
    EscrowTransaction,
    PaymentMilestone,
    Refund,
    WalletCreditFailure,
    WalletTransaction,
)
from settlements.money import ZERO, format_amount, is_positive, round_currency
from settlements.policies import (
    MilestoneSplit,
    RefundSplit,
    compute_completion_split,
    compute_refund_split,
    validate_manual_release,
    validate_refund_release,
)
from settlements.state_machines import (
    EscrowTransactionStatus,
    EscrowTransactionType,
    MilestoneStatus,
    RefundStatus,
    WalletTransactionSource,
)
from settlements.wallet import WalletCreditParams, WalletError, wallet_ledger

logger = logging.getLogger(__name__)


# =============================================================================
# Step Names
# =============================================================================

STEP_LOCK_MILESTONE = "lock_milestone"
STEP_COMPUTE_SPLIT = "compute_split"
STEP_RECORD_ESCROW = "record_escrow_transaction"
STEP_RELEASE_MILESTONE = "release_milestone"
STEP_CREDIT_WALLET = "credit_wallet"
STEP_MARK_CREDITED = "mark_wallet_credited"

STEP_LOCK_REFUND = "lock_refund"
STEP_COMPLETE_REFUND = "complete_refund"
STEP_REJECT_REFUND = "reject_refund"
STEP_RECORD_CREDIT_FAILURE = "record_credit_failure"


def milestone_release_key(milestone_id: uuid.UUID) -> str:
    """Idempotency key of the wallet credit for a milestone release."""
    return f"milestone_release:{milestone_id}"


def refund_split_key(refund_id: uuid.UUID) -> str:
    """Idempotency key of the wallet credit for a refund split."""
    return f"refund_split:{refund_id}"


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class MilestoneReleaseResult:
    """
    Outcome of a completion milestone release.

    Attributes:
        milestone: The released milestone
        escrow_transaction: Audit record of the release
        wallet_transaction: Vendor wallet credit (None if the vendor share was zero)
        split: Commission/vendor split that was applied
    """

    milestone: PaymentMilestone
    escrow_transaction: EscrowTransaction
    wallet_transaction: WalletTransaction | None
    split: MilestoneSplit


@dataclass
class RefundReleaseResult:
    """
    Outcome of a refund release.

    Attributes:
        refund: The completed refund
        split: Customer/company/vendor split that was applied
        wallet_transaction: Vendor wallet credit, if one was made
        credit_failure: Reconciliation record, if the credit failed
    """

    refund: Refund
    split: RefundSplit
    wallet_transaction: WalletTransaction | None = None
    credit_failure: WalletCreditFailure | None = None

    @property
    def wallet_credited(self) -> bool:
        return self.wallet_transaction is not None

    @property
    def needs_reconciliation(self) -> bool:
        return self.credit_failure is not None


@dataclass
class MilestoneSummary:
    """Counts and amounts of held and released milestones."""

    total_held: int
    total_held_amount: Decimal
    total_released: int
    total_released_amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_held": self.total_held,
            "total_held_amount": str(self.total_held_amount),
            "total_released": self.total_released,
            "total_released_amount": str(self.total_released_amount),
        }


# =============================================================================
# Settlement Orchestrator
# =============================================================================


class SettlementOrchestrator(BaseService):
    """
    Entry point for admin settlement actions.

    All methods are class methods - no instance state is maintained.

    Error contract:
        SettlementValidationError / InvalidStateTransitionError: nothing changed
        SettlementNotFoundError: referenced record is missing, nothing changed
        SettlementStepError: a step failed and everything was rolled back
        PartialFailureError: committed writes exist and need an operator
        LedgerInvariantError: computed money broke an invariant (bug)
    """

    # =========================================================================
    # Lookups
    # =========================================================================

    @classmethod
    def _get_milestone(cls, milestone_id: uuid.UUID, lock: bool = False) -> PaymentMilestone:
        queryset = PaymentMilestone.objects.select_related("booking")
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(id=milestone_id)
        except PaymentMilestone.DoesNotExist:
            raise SettlementNotFoundError(
                f"Milestone {milestone_id} not found",
                error_code="MILESTONE_NOT_FOUND",
                details={"milestone_id": str(milestone_id)},
            )

    @classmethod
    def _get_refund(cls, refund_id: uuid.UUID, lock: bool = False) -> Refund:
        queryset = Refund.objects.select_related("booking")
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(id=refund_id)
        except Refund.DoesNotExist:
            raise SettlementNotFoundError(
                f"Refund {refund_id} not found",
                error_code="REFUND_NOT_FOUND",
                details={"refund_id": str(refund_id)},
            )

    @classmethod
    def _compare_and_swap(
        cls,
        instance: PaymentMilestone | Refund,
        expected_status: str,
        fields: dict[str, Any],
    ) -> None:
        """
        Persist a status change only if the row still has expected_status.

        The in-memory transition has already been applied by django-fsm;
        this writes it with a conditional UPDATE so two concurrent
        releases can never both succeed.

        Raises:
            InvalidStateTransitionError: If another request changed the row first
        """
        model = type(instance)
        updated = model.objects.filter(pk=instance.pk, status=expected_status).update(
            updated_at=timezone.now(),
            **fields,
        )
        if updated != 1:
            raise InvalidStateTransitionError(
                f"{model.__name__} {instance.pk} is no longer '{expected_status}'",
                details={
                    "record_id": str(instance.pk),
                    "required_state": expected_status,
                },
            )

    # =========================================================================
    # Milestone Release
    # =========================================================================

    @classmethod
    def release_milestone(
        cls,
        milestone_id: uuid.UUID,
        admin_id: str | None = None,
    ) -> MilestoneReleaseResult:
        """
        Release a completion milestone from escrow.

        Splits the release into company commission and vendor share,
        records the escrow transaction, marks the milestone released and
        credits the vendor wallet, all in one transaction.

        Args:
            milestone_id: Milestone to release
            admin_id: Identifier of the admin who confirmed the release

        Returns:
            MilestoneReleaseResult

        Raises:
            SettlementNotFoundError: If the milestone does not exist
            SettlementValidationError: If it is not a completion milestone
            InvalidStateTransitionError: If it is not held in escrow
                (including when a concurrent release won)
            SettlementStepError: If a step failed; nothing was written
            LedgerInvariantError: If the split is invalid
        """
        cls.get_logger().info(
            "Starting milestone release",
            extra={"milestone_id": str(milestone_id), "admin_id": admin_id},
        )

        # Step 1: Validate without locking; no state changes on failure
        milestone = cls._get_milestone(milestone_id)
        validate_manual_release(milestone)

        step = STEP_LOCK_MILESTONE
        try:
            with cls.atomic():
                # Re-fetch with lock and check again
                milestone = cls._get_milestone(milestone_id, lock=True)
                validate_manual_release(milestone)
                booking = milestone.booking

                step = STEP_COMPUTE_SPLIT
                split = compute_completion_split(booking.total_amount, milestone.amount)

                notes = (
                    f"Commission: {format_amount(split.commission_amount)}, "
                    f"Vendor Amount: {format_amount(split.vendor_amount)}"
                )
                if not is_positive(split.vendor_amount):
                    notes += ". No wallet credit: vendor share is zero"

                step = STEP_RECORD_ESCROW
                escrow_transaction = EscrowTransaction.objects.create(
                    booking=booking,
                    milestone=milestone,
                    transaction_type=EscrowTransactionType.COMMISSION_DEDUCT,
                    amount=split.gross_amount,
                    commission_amount=split.commission_amount,
                    vendor_amount=split.vendor_amount,
                    status=EscrowTransactionStatus.COMPLETED,
                    admin_verified_at=timezone.now(),
                    notes=notes,
                )
                cls.get_logger().info(
                    "Escrow transaction recorded",
                    extra={
                        "milestone_id": str(milestone_id),
                        "escrow_transaction_id": str(escrow_transaction.id),
                        "gross_amount": str(split.gross_amount),
                        "commission_amount": str(split.commission_amount),
                        "vendor_amount": str(split.vendor_amount),
                    },
                )

                step = STEP_RELEASE_MILESTONE
                milestone.release()
                cls._compare_and_swap(
                    milestone,
                    MilestoneStatus.HELD_IN_ESCROW,
                    {
                        "status": MilestoneStatus.RELEASED,
                        "escrow_released_at": milestone.escrow_released_at,
                    },
                )

                wallet_transaction = None
                if is_positive(split.vendor_amount):
                    step = STEP_CREDIT_WALLET
                    wallet_transaction = wallet_ledger.credit_wallet(
                        WalletCreditParams(
                            vendor_id=booking.vendor_id,
                            amount=split.vendor_amount,
                            source=WalletTransactionSource.MILESTONE_RELEASE,
                            idempotency_key=milestone_release_key(milestone.id),
                            booking_id=booking.id,
                            milestone_id=milestone.id,
                            escrow_transaction_id=escrow_transaction.id,
                            notes=f"Completion milestone release for booking {booking.id}",
                            created_by=admin_id,
                        )
                    )

                    step = STEP_MARK_CREDITED
                    escrow_transaction.vendor_wallet_credited = True
                    escrow_transaction.wallet_transaction = wallet_transaction
                    escrow_transaction.save(
                        update_fields=[
                            "vendor_wallet_credited",
                            "wallet_transaction",
                            "updated_at",
                        ]
                    )

        except (SettlementValidationError, SettlementNotFoundError, LedgerInvariantError):
            raise
        except (DatabaseError, WalletError) as e:
            cls.get_logger().error(
                f"Milestone release failed at step {step}: {type(e).__name__}",
                extra={"milestone_id": str(milestone_id), "step": step},
                exc_info=True,
            )
            raise SettlementStepError(
                f"Milestone release failed at step '{step}': {e}",
                step=step,
                details={"milestone_id": str(milestone_id)},
            ) from e

        cls.get_logger().info(
            "Milestone released",
            extra={
                "milestone_id": str(milestone_id),
                "booking_id": str(booking.id),
                "vendor_id": str(booking.vendor_id),
                "escrow_transaction_id": str(escrow_transaction.id),
                "wallet_transaction_id": (
                    str(wallet_transaction.id) if wallet_transaction else None
                ),
                "commission_amount": str(split.commission_amount),
                "vendor_amount": str(split.vendor_amount),
            },
        )

        return MilestoneReleaseResult(
            milestone=milestone,
            escrow_transaction=escrow_transaction,
            wallet_transaction=wallet_transaction,
            split=split,
        )

    @classmethod
    def milestone_summary(cls, milestone_type: str | None = None) -> MilestoneSummary:
        """
        Count and total the milestones held in escrow and released.

        Args:
            milestone_type: Restrict to one milestone type (default: all)
        """
        queryset = PaymentMilestone.objects.filter(
            status__in=[MilestoneStatus.HELD_IN_ESCROW, MilestoneStatus.RELEASED]
        )
        if milestone_type:
            queryset = queryset.filter(milestone_type=milestone_type)

        rows = {
            row["status"]: row
            for row in queryset.order_by()
            .values("status")
            .annotate(count=Count("id"), amount=Sum("amount"))
        }
        held = rows.get(MilestoneStatus.HELD_IN_ESCROW, {})
        released = rows.get(MilestoneStatus.RELEASED, {})

        return MilestoneSummary(
            total_held=held.get("count", 0),
            total_held_amount=round_currency(held.get("amount") or ZERO),
            total_released=released.get("count", 0),
            total_released_amount=round_currency(released.get("amount") or ZERO),
        )

    # =========================================================================
    # Refund Release
    # =========================================================================

    @classmethod
    def release_refund(
        cls,
        refund_id: uuid.UUID,
        admin_id: str | None = None,
    ) -> RefundReleaseResult:
        """
        Complete a pending refund and credit the vendor share.

        The refund's completion commits before the wallet credit is
        attempted. A failed credit leaves the refund completed and is
        queued as a WalletCreditFailure.

        Args:
            refund_id: Refund to complete
            admin_id: Identifier of the admin who approved it

        Returns:
            RefundReleaseResult

        Raises:
            SettlementNotFoundError: If the refund does not exist
            InvalidStateTransitionError: If the refund is not pending
            SettlementStepError: If completing the refund failed; nothing was written
            PartialFailureError: If the refund completed, the credit failed
                and the failure could not be queued
        """
        cls.get_logger().info(
            "Starting refund release",
            extra={"refund_id": str(refund_id), "admin_id": admin_id},
        )

        refund = cls._get_refund(refund_id)
        validate_refund_release(refund)

        step = STEP_LOCK_REFUND
        try:
            with cls.atomic():
                refund = cls._get_refund(refund_id, lock=True)
                validate_refund_release(refund)

                step = STEP_COMPUTE_SPLIT
                split = compute_refund_split(
                    refund.refund_amount, refund.non_refundable_amount
                )

                step = STEP_COMPLETE_REFUND
                refund.complete(split, processed_by=admin_id)
                cls._compare_and_swap(
                    refund,
                    RefundStatus.PENDING,
                    {
                        "status": RefundStatus.COMPLETED,
                        "customer_amount": refund.customer_amount,
                        "company_amount": refund.company_amount,
                        "vendor_amount": refund.vendor_amount,
                        "processed_at": refund.processed_at,
                        "processed_by": refund.processed_by,
                    },
                )
        except (SettlementValidationError, SettlementNotFoundError, LedgerInvariantError):
            raise
        except DatabaseError as e:
            cls.get_logger().error(
                f"Refund release failed at step {step}: {type(e).__name__}",
                extra={"refund_id": str(refund_id), "step": step},
                exc_info=True,
            )
            raise SettlementStepError(
                f"Refund release failed at step '{step}': {e}",
                step=step,
                details={"refund_id": str(refund_id)},
            ) from e

        cls.get_logger().info(
            "Refund completed",
            extra={
                "refund_id": str(refund_id),
                "customer_amount": str(split.customer_amount),
                "company_amount": str(split.company_amount),
                "vendor_amount": str(split.vendor_amount),
            },
        )

        if not is_positive(split.vendor_amount):
            cls.get_logger().info(
                "No vendor share, skipping wallet credit",
                extra={"refund_id": str(refund_id)},
            )
            return RefundReleaseResult(refund=refund, split=split)

        booking = refund.booking
        idempotency_key = refund_split_key(refund.id)
        try:
            wallet_transaction = wallet_ledger.credit_wallet(
                WalletCreditParams(
                    vendor_id=booking.vendor_id,
                    amount=split.vendor_amount,
                    source=WalletTransactionSource.REFUND_SPLIT,
                    idempotency_key=idempotency_key,
                    booking_id=booking.id,
                    notes=f"Vendor share of cancelled booking {booking.id}",
                    created_by=admin_id,
                )
            )
        except (DatabaseError, WalletError) as e:
            credit_failure = cls._record_credit_failure(refund, split, idempotency_key, e)
            cls.get_logger().error(
                "Vendor wallet credit failed after refund completion",
                extra={
                    "refund_id": str(refund_id),
                    "vendor_id": str(booking.vendor_id),
                    "vendor_amount": str(split.vendor_amount),
                    "credit_failure_id": str(credit_failure.id),
                },
                exc_info=True,
            )
            return RefundReleaseResult(
                refund=refund, split=split, credit_failure=credit_failure
            )

        cls.get_logger().info(
            "Refund vendor share credited",
            extra={
                "refund_id": str(refund_id),
                "vendor_id": str(booking.vendor_id),
                "wallet_transaction_id": str(wallet_transaction.id),
            },
        )
        return RefundReleaseResult(
            refund=refund, split=split, wallet_transaction=wallet_transaction
        )

    @classmethod
    def _record_credit_failure(
        cls,
        refund: Refund,
        split: RefundSplit,
        idempotency_key: str,
        error: Exception,
    ) -> WalletCreditFailure:
        """
        Queue a failed refund credit for reconciliation.

        Raises:
            PartialFailureError: If the failure itself cannot be recorded
        """
        try:
            return WalletCreditFailure.objects.create(
                vendor_id=refund.booking.vendor_id,
                amount=split.vendor_amount,
                source=WalletTransactionSource.REFUND_SPLIT,
                booking=refund.booking,
                refund=refund,
                idempotency_key=idempotency_key,
                last_error=f"{type(error).__name__}: {error}",
            )
        except DatabaseError as e:
            cls.get_logger().critical(
                "Could not record wallet credit failure",
                extra={
                    "refund_id": str(refund.id),
                    "vendor_amount": str(split.vendor_amount),
                    "idempotency_key": idempotency_key,
                },
                exc_info=True,
            )
            raise PartialFailureError(
                f"Refund {refund.id} was completed but crediting "
                f"{format_amount(split.vendor_amount)} to the vendor failed "
                "and could not be queued for reconciliation",
                step=STEP_CREDIT_WALLET,
                completed_steps=[STEP_COMPLETE_REFUND],
                details={
                    "refund_id": str(refund.id),
                    "vendor_id": str(refund.booking.vendor_id),
                    "vendor_amount": str(split.vendor_amount),
                    "idempotency_key": idempotency_key,
                    "credit_error": str(error),
                },
            ) from e

    # =========================================================================
    # Refund Rejection
    # =========================================================================

    @classmethod
    def reject_refund(
        cls,
        refund_id: uuid.UUID,
        admin_id: str | None = None,
        reason: str | None = None,
    ) -> Refund:
        """
        Reject a pending refund. No money moves.

        Raises:
            SettlementNotFoundError: If the refund does not exist
            InvalidStateTransitionError: If the refund is not pending
            SettlementStepError: If the update failed
        """
        refund = cls._get_refund(refund_id)
        validate_refund_release(refund)

        try:
            with cls.atomic():
                refund = cls._get_refund(refund_id, lock=True)
                validate_refund_release(refund)
                refund.reject(processed_by=admin_id, reason=reason)
                cls._compare_and_swap(
                    refund,
                    RefundStatus.PENDING,
                    {
                        "status": RefundStatus.REJECTED,
                        "customer_amount": None,
                        "company_amount": None,
                        "vendor_amount": None,
                        "processed_at": refund.processed_at,
                        "processed_by": refund.processed_by,
                        "rejection_reason": refund.rejection_reason,
                    },
                )
        except DatabaseError as e:
            raise SettlementStepError(
                f"Refund rejection failed: {e}",
                step=STEP_REJECT_REFUND,
                details={"refund_id": str(refund_id)},
            ) from e

        cls.get_logger().info(
            "Refund rejected",
            extra={"refund_id": str(refund_id), "admin_id": admin_id, "reason": reason},
        )
        return refund
