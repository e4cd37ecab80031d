"""
Settlement-specific exceptions.

Exception Hierarchy:
    SettlementError (base, BaseApplicationError)
    ├── SettlementStepError - A step failed; the atomic unit was rolled back
    ├── PartialFailureError - A step failed after earlier writes committed
    └── LedgerInvariantError - Computed money violated an invariant (fatal)

    SettlementValidationError (core ValidationError) - User-visible, no state change
    └── InvalidStateTransitionError - Record is not in the required state

    SettlementNotFoundError (core NotFoundError) - Referenced record missing

Usage:
    from settlements.exceptions import (
        PartialFailureError,
        SettlementValidationError,
    )

    try:
        SettlementOrchestrator.release_refund(refund_id)
    except SettlementValidationError as e:
        return Response(e.to_dict(), status=400)
    except PartialFailureError as e:
        alert_operator(e.details)  # needs reconciliation
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Settlement Domain Exceptions
# =============================================================================


class SettlementError(BaseApplicationError):
    """
    Base exception for systemic settlement failures.

    Validation and not-found errors inherit from the matching core classes
    instead, so callers can tell operator mistakes from system faults.
    """

    default_error_code: str = "SETTLEMENT_ERROR"


class SettlementValidationError(ValidationError):
    """
    Raised when a settlement request is not allowed.

    Use for:
    - Manual release of an advance or arrival milestone
    - Missing required input

    No state has changed when this is raised.
    """

    default_error_code: str = "SETTLEMENT_VALIDATION_ERROR"


class InvalidStateTransitionError(SettlementValidationError):
    """
    Raised when a record is not in the state an operation starts from.

    Covers both the up-front status check and a lost compare-and-swap,
    i.e. another request released the same milestone first.

    Example:
        raise InvalidStateTransitionError(
            "Milestone is 'released', expected 'held_in_escrow'",
            details={
                "milestone_id": str(milestone.id),
                "current_state": milestone.status,
                "required_state": "held_in_escrow",
            },
        )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


class SettlementNotFoundError(NotFoundError):
    """
    Raised when a booking, milestone, refund or wallet does not exist.
    """

    default_error_code: str = "SETTLEMENT_NOT_FOUND"


class SettlementStepError(SettlementError):
    """
    Raised when a step of an atomic settlement sequence fails.

    Every write of the sequence has been rolled back, so the operation
    can be retried once the cause is fixed.

    Attributes:
        step: Name of the step that failed
    """

    default_error_code: str = "SETTLEMENT_STEP_FAILED"

    def __init__(
        self,
        message: str,
        step: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.step = step
        full_details = {"step": step, "rolled_back": True}
        if details:
            full_details.update(details)
        super().__init__(message, error_code=error_code, details=full_details)


class PartialFailureError(SettlementError):
    """
    Raised when a sequence fails after some of its writes have committed.

    The system is in a partially settled state and needs operator
    attention. The details carry the failed step and the steps that did
    commit, so the operator can reconcile by hand.

    Attributes:
        step: Name of the step that failed
        completed_steps: Steps whose writes are committed
        needs_reconciliation: Always True
    """

    default_error_code: str = "SETTLEMENT_PARTIAL_FAILURE"
    needs_reconciliation: bool = True

    def __init__(
        self,
        message: str,
        step: str,
        completed_steps: list[str],
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.step = step
        self.completed_steps = list(completed_steps)
        full_details = {
            "step": step,
            "completed_steps": self.completed_steps,
            "needs_reconciliation": True,
        }
        if details:
            full_details.update(details)
        super().__init__(message, error_code=error_code, details=full_details)


class LedgerInvariantError(SettlementError):
    """
    Raised when computed money breaks an invariant.

    A negative split amount or a non-numeric amount is a programming
    error. It must fail loudly and is never clamped.
    """

    default_error_code: str = "LEDGER_INVARIANT_VIOLATION"


__all__ = [
    "SettlementError",
    "SettlementValidationError",
    "InvalidStateTransitionError",
    "SettlementNotFoundError",
    "SettlementStepError",
    "PartialFailureError",
    "LedgerInvariantError",
]
