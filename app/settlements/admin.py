"""
Settlement admin configuration.

This file imports admin configurations from the wallet submodule and
registers the settlement models with the Django admin.

Money-bearing fields are read-only everywhere: releases, refunds and
wallet entries only change through SettlementOrchestrator and
WalletLedger.
"""

from django.contrib import admin, messages

from settlements.models import (
    Booking,
    EscrowTransaction,
    PaymentMilestone,
    Refund,
    WalletCreditFailure,
)
from settlements.money import format_amount
from settlements.services import ReconciliationService
from settlements.state_machines import CreditFailureStatus
from settlements.wallet.admin import VendorWalletAdmin, WalletTransactionAdmin

__all__ = [
    "VendorWalletAdmin",
    "WalletTransactionAdmin",
    "BookingAdmin",
    "PaymentMilestoneAdmin",
    "EscrowTransactionAdmin",
    "RefundAdmin",
    "WalletCreditFailureAdmin",
]


class PaymentMilestoneInline(admin.TabularInline):
    model = PaymentMilestone
    extra = 0
    can_delete = False
    fields = ["milestone_type", "percentage", "amount", "status", "escrow_released_at"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """
    Admin configuration for Booking.

    Bookings belong to order fulfilment; the settlement admin only views
    them, since every release and refund is computed from total_amount.
    """

    list_display = ["id", "vendor_id", "customer_id", "amount_display", "status", "created_at"]
    list_filter = ["status"]
    search_fields = ["id", "vendor_id", "customer_id"]
    readonly_fields = [
        "id",
        "total_amount",
        "status",
        "vendor_id",
        "customer_id",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]
    inlines = [PaymentMilestoneInline]

    def amount_display(self, obj: Booking) -> str:
        return format_amount(obj.total_amount)

    amount_display.short_description = "Total"

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(PaymentMilestone)
class PaymentMilestoneAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentMilestone.

    Status is driven by the milestone state machine and is read-only.
    Completion milestones are released through the settlements API.
    """

    list_display = [
        "id",
        "booking",
        "milestone_type",
        "amount_display",
        "status",
        "escrow_held_at",
        "escrow_released_at",
    ]
    list_filter = ["milestone_type", "status"]
    search_fields = ["id", "booking__id", "booking__vendor_id"]
    readonly_fields = [
        "id",
        "booking",
        "milestone_type",
        "percentage",
        "amount",
        "status",
        "escrow_held_at",
        "escrow_released_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    def amount_display(self, obj: PaymentMilestone) -> str:
        return format_amount(obj.amount)

    amount_display.short_description = "Amount"

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(EscrowTransaction)
class EscrowTransactionAdmin(admin.ModelAdmin):
    """
    Admin configuration for EscrowTransaction.

    Escrow transactions are an immutable audit trail:
    - No add permission (created by milestone releases)
    - No change permission
    - No delete permission
    """

    list_display = [
        "id",
        "booking",
        "milestone",
        "amount",
        "commission_amount",
        "vendor_amount",
        "vendor_wallet_credited",
        "created_at",
    ]
    list_filter = ["transaction_type", "status", "vendor_wallet_credited"]
    search_fields = ["id", "booking__id", "milestone__id"]
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    """
    Admin configuration for Refund.

    Refunds are approved or rejected through the settlements API so the
    vendor share reaches the wallet ledger.
    """

    list_display = [
        "id",
        "booking",
        "cancelled_by",
        "amount_display",
        "status",
        "vendor_amount",
        "processed_at",
    ]
    list_filter = ["status", "cancelled_by"]
    search_fields = ["id", "booking__id", "processed_by"]
    readonly_fields = [
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
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "booking", "cancelled_by", "reason", "status"),
            },
        ),
        (
            "Amounts",
            {
                "fields": (
                    "refund_amount",
                    "non_refundable_amount",
                    "refund_percentage",
                ),
            },
        ),
        (
            "Split",
            {
                "fields": ("customer_amount", "company_amount", "vendor_amount"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("processed_at", "processed_by", "rejection_reason"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def amount_display(self, obj: Refund) -> str:
        return format_amount(obj.refund_amount)

    amount_display.short_description = "Refund Amount"

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(WalletCreditFailure)
class WalletCreditFailureAdmin(admin.ModelAdmin):
    """
    Admin configuration for WalletCreditFailure.

    Operators retry queued vendor credits with the bulk action once the
    cause of the failure has been fixed.
    """

    list_display = [
        "id",
        "vendor_id",
        "amount",
        "source",
        "status",
        "attempts",
        "created_at",
        "resolved_at",
    ]
    list_filter = ["status", "source"]
    search_fields = ["id", "vendor_id", "idempotency_key"]
    readonly_fields = [
        "id",
        "vendor_id",
        "amount",
        "source",
        "booking",
        "refund",
        "idempotency_key",
        "last_error",
        "attempts",
        "status",
        "resolved_at",
        "wallet_transaction",
        "created_at",
        "updated_at",
    ]
    ordering = ["created_at"]
    actions = ["retry_credit"]

    @admin.action(description="Retry selected wallet credits")
    def retry_credit(self, request, queryset):
        """Bulk action to retry pending credits with their original keys."""
        resolved = 0
        pending_ids = queryset.filter(status=CreditFailureStatus.PENDING).values_list(
            "id", flat=True
        )
        for failure_id in list(pending_ids):
            failure = ReconciliationService.retry_wallet_credit(failure_id)
            if failure.status == CreditFailureStatus.RESOLVED:
                resolved += 1
        level = messages.SUCCESS if resolved else messages.WARNING
        self.message_user(request, f"Resolved {resolved} wallet credits.", level=level)

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
