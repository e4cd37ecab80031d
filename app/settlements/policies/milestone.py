"""
Milestone release policy.

Pure functions that decide how the completion milestone is split. Every
booking pays in three milestones (advance 20%, arrival 50%, completion 30%
of the total). Advance and arrival reach the vendor in full upstream. The
completion milestone is the only slice the company takes commission from:

    commission_amount = total × COMMISSION_RATE          (10% of total)
    vendor_amount     = total × COMPLETION_VENDOR_SHARE  (20% of total)
    gross_amount      = milestone.amount                 (~30% of total)

Both shares are fractions of the booking TOTAL, never of the milestone
amount, and vendor_amount is not derived as gross - commission.
Overall the vendor receives 20% + 50% + 20% = 90% and the company 10%.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from settlements.exceptions import (
    InvalidStateTransitionError,
    LedgerInvariantError,
    SettlementValidationError,
)
from settlements.money import AmountLike, ensure_non_negative, round_currency
from settlements.policies.rates import SettlementRates, get_settlement_rates
from settlements.state_machines import MilestoneStatus, MilestoneType

if TYPE_CHECKING:
    from settlements.models import PaymentMilestone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MilestoneSplit:
    """
    Result of splitting a completion milestone release.

    Attributes:
        total_amount: Booking total the percentages apply to
        gross_amount: The milestone's own amount, recorded for audit
        commission_amount: Company commission
        vendor_amount: Amount credited to the vendor wallet
    """

    total_amount: Decimal
    gross_amount: Decimal
    commission_amount: Decimal
    vendor_amount: Decimal

    @property
    def distributed_amount(self) -> Decimal:
        """Commission plus vendor share."""
        return self.commission_amount + self.vendor_amount


def milestone_amount(
    total_amount: AmountLike,
    milestone_type: str,
    rates: SettlementRates | None = None,
) -> Decimal:
    """
    Amount of one milestone for a booking total.

    Milestone amounts are fixed when the booking is confirmed; this helper
    reproduces that calculation for fixtures and dashboard summaries.
    """
    rates = rates or get_settlement_rates()
    total = ensure_non_negative("total_amount", total_amount)
    return round_currency(total * rates.percentage_for(milestone_type))


def compute_completion_split(
    total_amount: AmountLike,
    gross_amount: AmountLike,
    rates: SettlementRates | None = None,
) -> MilestoneSplit:
    """
    Split a completion milestone release between company and vendor.

    Args:
        total_amount: Booking total amount
        gross_amount: The completion milestone's amount (audit only)
        rates: Rates to apply (defaults to configured rates)

    Returns:
        MilestoneSplit with amounts rounded to two decimals

    Logs a warning when commission + vendor differs from the milestone
    amount; the release still uses the fractions of the total.

    Raises:
        LedgerInvariantError: If the total is not positive or any
            computed amount is negative

    Example:
        split = compute_completion_split(Decimal("10000"), Decimal("3000"))
        split.commission_amount  # Decimal("1000.00")
        split.vendor_amount      # Decimal("2000.00")
    """
    rates = rates or get_settlement_rates()
    total = ensure_non_negative("total_amount", total_amount)
    if total == 0:
        raise LedgerInvariantError(
            "Booking total must be positive to release a milestone",
            details={"total_amount": str(total)},
        )
    gross = ensure_non_negative("gross_amount", gross_amount)

    commission = ensure_non_negative(
        "commission_amount", total * rates.commission_rate
    )
    vendor = ensure_non_negative(
        "vendor_amount", total * rates.completion_vendor_share
    )

    if commission + vendor != gross:
        logger.warning(
            "Completion split does not match the escrowed milestone amount",
            extra={
                "total_amount": str(total),
                "gross_amount": str(gross),
                "distributed_amount": str(commission + vendor),
            },
        )

    return MilestoneSplit(
        total_amount=total,
        gross_amount=gross,
        commission_amount=commission,
        vendor_amount=vendor,
    )


def validate_manual_release(milestone: PaymentMilestone) -> None:
    """
    Check that an admin may release this milestone.

    Raises:
        SettlementValidationError: If the milestone is not a completion milestone
        InvalidStateTransitionError: If it is not held in escrow
    """
    if milestone.milestone_type != MilestoneType.COMPLETION:
        raise SettlementValidationError(
            "Only the completion milestone can be released manually. "
            f"'{milestone.milestone_type}' milestones are released automatically.",
            error_code="MILESTONE_NOT_RELEASABLE",
            details={
                "milestone_id": str(milestone.id),
                "milestone_type": milestone.milestone_type,
            },
        )

    if milestone.status != MilestoneStatus.HELD_IN_ESCROW:
        raise InvalidStateTransitionError(
            f"Milestone is '{milestone.status}', expected "
            f"'{MilestoneStatus.HELD_IN_ESCROW}'",
            details={
                "milestone_id": str(milestone.id),
                "current_state": milestone.status,
                "required_state": MilestoneStatus.HELD_IN_ESCROW,
            },
        )
