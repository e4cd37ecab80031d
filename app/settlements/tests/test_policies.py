"""
Tests for the settlement policies.

Covers:
- Rate loading and cross-checks (SETTLEMENT settings)
- Completion milestone split
- Refund split and conservation of money
- Release preconditions
"""

from decimal import Decimal
from unittest import mock

import pytest
from django.core.exceptions import ImproperlyConfigured

from settlements.exceptions import (
    InvalidStateTransitionError,
    LedgerInvariantError,
    SettlementValidationError,
)
from settlements.models import PaymentMilestone, Refund
from settlements.policies import (
    compute_completion_split,
    compute_refund_split,
    get_settlement_rates,
    milestone_amount,
    validate_manual_release,
    validate_refund_release,
)
from settlements.state_machines import MilestoneStatus, MilestoneType, RefundStatus


# =============================================================================
# Rates
# =============================================================================


class TestSettlementRates:
    """Tests for get_settlement_rates()."""

    def test_default_rates(self):
        rates = get_settlement_rates()

        assert rates.commission_rate == Decimal("0.10")
        assert rates.completion_vendor_share == Decimal("0.20")
        assert rates.refund_company_share == Decimal("0.05")
        assert rates.refund_vendor_share == Decimal("0.95")
        assert rates.percentage_for(MilestoneType.COMPLETION) == Decimal("0.30")

    def test_consistent_override_is_accepted(self, settings):
        """Commission and vendor share may move as long as they cover completion."""
        settings.SETTLEMENT = {
            "COMMISSION_RATE": "0.12",
            "COMPLETION_VENDOR_SHARE": "0.18",
        }

        split = compute_completion_split(Decimal("10000"), Decimal("3000"))

        assert split.commission_amount == Decimal("1200.00")
        assert split.vendor_amount == Decimal("1800.00")

    def test_commission_not_covering_completion_raises(self, settings):
        """15% + 20% would consume more than the 30% completion milestone."""
        settings.SETTLEMENT = {"COMMISSION_RATE": "0.15"}

        with pytest.raises(ImproperlyConfigured, match="COMMISSION_RATE"):
            get_settlement_rates()

    def test_refund_shares_must_sum_to_one(self, settings):
        settings.SETTLEMENT = {"REFUND_COMPANY_SHARE": "0.10"}

        with pytest.raises(ImproperlyConfigured, match="REFUND_COMPANY_SHARE"):
            get_settlement_rates()

    def test_milestone_percentages_must_sum_to_one(self, settings):
        settings.SETTLEMENT = {
            "MILESTONE_PERCENTAGES": {
                "advance": "0.20",
                "arrival": "0.40",
                "completion": "0.30",
            }
        }

        with pytest.raises(ImproperlyConfigured, match="sum to 1"):
            get_settlement_rates()

    def test_missing_milestone_type_raises(self, settings):
        settings.SETTLEMENT = {
            "MILESTONE_PERCENTAGES": {"advance": "0.70", "completion": "0.30"}
        }

        with pytest.raises(ImproperlyConfigured, match="exactly"):
            get_settlement_rates()

    def test_non_numeric_rate_raises(self, settings):
        settings.SETTLEMENT = {"COMMISSION_RATE": "ten percent"}

        with pytest.raises(ImproperlyConfigured, match="not a number"):
            get_settlement_rates()

    def test_rate_out_of_range_raises(self, settings):
        settings.SETTLEMENT = {"REFUND_COMPANY_SHARE": "-0.05", "REFUND_VENDOR_SHARE": "1.05"}

        with pytest.raises(ImproperlyConfigured, match="between 0 and 1"):
            get_settlement_rates()


# =============================================================================
# Milestone Policy
# =============================================================================


class TestMilestoneAmount:
    @pytest.mark.parametrize(
        "milestone_type,expected",
        [
            (MilestoneType.ADVANCE, Decimal("2000.00")),
            (MilestoneType.ARRIVAL, Decimal("5000.00")),
            (MilestoneType.COMPLETION, Decimal("3000.00")),
        ],
    )
    def test_amount_per_milestone_type(self, milestone_type, expected):
        assert milestone_amount(Decimal("10000"), milestone_type) == expected


class TestComputeCompletionSplit:
    """Tests for compute_completion_split()."""

    def test_splits_ten_thousand_booking(self):
        """Commission is 10% and the vendor gets 20% of the booking total."""
        split = compute_completion_split(Decimal("10000.00"), Decimal("3000.00"))

        assert split.total_amount == Decimal("10000.00")
        assert split.gross_amount == Decimal("3000.00")
        assert split.commission_amount == Decimal("1000.00")
        assert split.vendor_amount == Decimal("2000.00")
        assert split.distributed_amount == split.gross_amount

    def test_shares_follow_booking_total_not_milestone_amount(self):
        """The gross amount is recorded for audit but does not drive the split."""
        split = compute_completion_split(Decimal("10000.00"), Decimal("2999.99"))

        assert split.commission_amount == Decimal("1000.00")
        assert split.vendor_amount == Decimal("2000.00")
        assert split.gross_amount == Decimal("2999.99")

    def test_mismatch_with_milestone_amount_logs_warning(self):
        with mock.patch("settlements.policies.milestone.logger") as logger:
            compute_completion_split(Decimal("10000.00"), Decimal("2500.00"))

        logger.warning.assert_called_once()
        assert logger.warning.call_args.kwargs["extra"]["distributed_amount"] == "3000.00"

    def test_matching_milestone_amount_logs_nothing(self):
        with mock.patch("settlements.policies.milestone.logger") as logger:
            compute_completion_split(Decimal("10000.00"), Decimal("3000.00"))

        logger.warning.assert_not_called()

    def test_rounds_each_share_half_up(self):
        split = compute_completion_split(Decimal("333.33"), Decimal("100.00"))

        assert split.commission_amount == Decimal("33.33")
        assert split.vendor_amount == Decimal("66.67")

    def test_zero_total_raises(self):
        with pytest.raises(LedgerInvariantError):
            compute_completion_split(Decimal("0"), Decimal("0"))

    def test_negative_total_raises(self):
        with pytest.raises(LedgerInvariantError):
            compute_completion_split(Decimal("-100"), Decimal("30"))


class TestValidateManualRelease:
    """Tests for validate_manual_release()."""

    def test_completion_held_in_escrow_passes(self):
        milestone = PaymentMilestone(
            milestone_type=MilestoneType.COMPLETION,
            status=MilestoneStatus.HELD_IN_ESCROW,
        )

        validate_manual_release(milestone)

    @pytest.mark.parametrize("milestone_type", [MilestoneType.ADVANCE, MilestoneType.ARRIVAL])
    def test_advance_and_arrival_rejected(self, milestone_type):
        """Non-completion milestones fail with a plain validation error."""
        milestone = PaymentMilestone(
            milestone_type=milestone_type,
            status=MilestoneStatus.HELD_IN_ESCROW,
        )

        with pytest.raises(SettlementValidationError) as exc_info:
            validate_manual_release(milestone)

        assert not isinstance(exc_info.value, InvalidStateTransitionError)
        assert exc_info.value.error_code == "MILESTONE_NOT_RELEASABLE"

    @pytest.mark.parametrize(
        "status",
        [
            MilestoneStatus.PENDING,
            MilestoneStatus.PAID,
            MilestoneStatus.RELEASED,
            MilestoneStatus.REFUNDED,
        ],
    )
    def test_completion_not_in_escrow_rejected(self, status):
        milestone = PaymentMilestone(milestone_type=MilestoneType.COMPLETION, status=status)

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_manual_release(milestone)

        assert exc_info.value.details["current_state"] == status


# =============================================================================
# Refund Policy
# =============================================================================


class TestComputeRefundSplit:
    """Tests for compute_refund_split()."""

    def test_fully_forfeited_booking(self):
        split = compute_refund_split(Decimal("0"), Decimal("5000"))

        assert split.customer_amount == Decimal("0.00")
        assert split.company_amount == Decimal("250.00")
        assert split.vendor_amount == Decimal("4750.00")

    def test_half_refund(self):
        split = compute_refund_split(Decimal("5000"), Decimal("5000"))

        assert split.customer_amount == Decimal("5000.00")
        assert split.company_amount == Decimal("250.00")
        assert split.vendor_amount == Decimal("4750.00")

    def test_full_refund_gives_company_and_vendor_nothing(self):
        split = compute_refund_split(Decimal("10000"), Decimal("0"))

        assert split.customer_amount == Decimal("10000.00")
        assert split.company_amount == Decimal("0.00")
        assert split.vendor_amount == Decimal("0.00")

    @pytest.mark.parametrize(
        "refund_amount,non_refundable",
        [
            (Decimal("1234.56"), Decimal("789.01")),
            (Decimal("0.01"), Decimal("0.01")),
            (Decimal("99.99"), Decimal("33.33")),
            (Decimal("0"), Decimal("0.10")),
        ],
    )
    def test_parts_add_up_to_the_booking_money(self, refund_amount, non_refundable):
        """Vendor takes the remainder, so no paisa is lost to rounding."""
        split = compute_refund_split(refund_amount, non_refundable)

        assert split.total == refund_amount + non_refundable
        assert split.company_amount >= 0
        assert split.vendor_amount >= 0

    def test_negative_input_raises(self):
        with pytest.raises(LedgerInvariantError):
            compute_refund_split(Decimal("-1"), Decimal("100"))


class TestValidateRefundRelease:
    def test_pending_refund_passes(self):
        validate_refund_release(Refund(status=RefundStatus.PENDING))

    @pytest.mark.parametrize("status", [RefundStatus.COMPLETED, RefundStatus.REJECTED])
    def test_processed_refund_rejected(self, status):
        with pytest.raises(InvalidStateTransitionError):
            validate_refund_release(Refund(status=status))
