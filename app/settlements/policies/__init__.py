"""
Settlement policies - pure split calculations.

Public API:
    Rates:
        SettlementRates - Named settlement constants (Decimals)
        get_settlement_rates - Load and validate rates from settings

    Milestone policy:
        MilestoneSplit, compute_completion_split, milestone_amount,
        validate_manual_release

    Refund policy:
        RefundSplit, compute_refund_split, validate_refund_release

Usage:
    from settlements.policies import compute_completion_split, compute_refund_split

    split = compute_completion_split(booking.total_amount, milestone.amount)
    refund_split = compute_refund_split(refund.refund_amount, refund.non_refundable_amount)
"""

from .milestone import (
    MilestoneSplit,
    compute_completion_split,
    milestone_amount,
    validate_manual_release,
)
from .rates import DEFAULT_RATES, SettlementRates, get_settlement_rates
from .refund import RefundSplit, compute_refund_split, validate_refund_release

__all__ = [
    # Rates
    "DEFAULT_RATES",
    "SettlementRates",
    "get_settlement_rates",
    # Milestone
    "MilestoneSplit",
    "compute_completion_split",
    "milestone_amount",
    "validate_manual_release",
    # Refund
    "RefundSplit",
    "compute_refund_split",
    "validate_refund_release",
]
