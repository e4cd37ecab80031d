"""
DRF serializers for the settlements app.

This module provides serializers for:
- Settlement records (milestones, escrow transactions, refunds, wallets)
- Orchestrator results (splits, release outcomes, dashboard summary)
- Admin action requests (refund rejection, summary filters)

All record serializers are read-only: records only change through
SettlementOrchestrator and WalletLedger.

Usage:
    result = SettlementOrchestrator.release_milestone(milestone_id)
    data = MilestoneReleaseResultSerializer(result).data
"""

from __future__ import annotations

from rest_framework import serializers

from settlements.models import (
    EscrowTransaction,
    PaymentMilestone,
    Refund,
    VendorWallet,
    WalletCreditFailure,
    WalletTransaction,
)
from settlements.state_machines import MilestoneType


def _money_field(**kwargs) -> serializers.DecimalField:
    return serializers.DecimalField(max_digits=12, decimal_places=2, **kwargs)


# =============================================================================
# Record Serializers
# =============================================================================


class PaymentMilestoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentMilestone
        fields = [
            "id",
            "booking",
            "milestone_type",
            "percentage",
            "amount",
            "status",
            "escrow_held_at",
            "escrow_released_at",
        ]
        read_only_fields = fields


class EscrowTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = EscrowTransaction
        fields = [
            "id",
            "booking",
            "milestone",
            "transaction_type",
            "amount",
            "commission_amount",
            "vendor_amount",
            "status",
            "admin_verified_at",
            "vendor_wallet_credited",
            "notes",
        ]
        read_only_fields = fields


class WalletTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = [
            "id",
            "sequence",
            "txn_type",
            "source",
            "amount",
            "balance_after",
            "booking",
            "milestone",
            "escrow_transaction",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class RefundSerializer(serializers.ModelSerializer):
    class Meta:
        model = Refund
        fields = [
            "id",
            "booking",
            "cancelled_by",
            "refund_amount",
            "non_refundable_amount",
            "refund_percentage",
            "status",
            "customer_amount",
            "company_amount",
            "vendor_amount",
            "processed_at",
            "processed_by",
            "rejection_reason",
        ]
        read_only_fields = fields


class WalletCreditFailureSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletCreditFailure
        fields = [
            "id",
            "vendor_id",
            "amount",
            "source",
            "idempotency_key",
            "last_error",
            "attempts",
            "status",
        ]
        read_only_fields = fields


class VendorWalletSerializer(serializers.ModelSerializer):
    """Wallet amounts; available_balance excludes pending withdrawals."""

    available_balance = _money_field(read_only=True)

    class Meta:
        model = VendorWallet
        fields = [
            "id",
            "vendor_id",
            "balance",
            "pending_withdrawal",
            "available_balance",
            "total_earned",
            "updated_at",
        ]
        read_only_fields = fields


# =============================================================================
# Result Serializers
# =============================================================================


class MilestoneSplitSerializer(serializers.Serializer):
    total_amount = _money_field()
    gross_amount = _money_field()
    commission_amount = _money_field()
    vendor_amount = _money_field()


class RefundSplitSerializer(serializers.Serializer):
    customer_amount = _money_field()
    company_amount = _money_field()
    vendor_amount = _money_field()


class MilestoneReleaseResultSerializer(serializers.Serializer):
    milestone = PaymentMilestoneSerializer()
    escrow_transaction = EscrowTransactionSerializer()
    wallet_transaction = WalletTransactionSerializer(allow_null=True)
    split = MilestoneSplitSerializer()


class RefundReleaseResultSerializer(serializers.Serializer):
    """
    Refund release outcome.

    needs_reconciliation is true when the refund completed but the
    vendor credit was queued as a WalletCreditFailure.
    """

    refund = RefundSerializer()
    split = RefundSplitSerializer()
    wallet_credited = serializers.BooleanField()
    needs_reconciliation = serializers.BooleanField()
    wallet_transaction = WalletTransactionSerializer(allow_null=True)
    credit_failure = WalletCreditFailureSerializer(allow_null=True)


class MilestoneSummarySerializer(serializers.Serializer):
    total_held = serializers.IntegerField()
    total_held_amount = _money_field()
    total_released = serializers.IntegerField()
    total_released_amount = _money_field()


# =============================================================================
# Request Serializers
# =============================================================================


class RefundRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=2000,
        help_text="Why the refund is rejected",
    )


class MilestoneSummaryQuerySerializer(serializers.Serializer):
    milestone_type = serializers.ChoiceField(
        choices=MilestoneType.choices,
        required=False,
        help_text="Restrict the summary to one milestone type",
    )


class WalletQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(
        required=False,
        default=20,
        min_value=1,
        max_value=100,
        help_text="Number of recent transactions to include",
    )
