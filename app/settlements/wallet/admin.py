"""
Django admin configuration for wallet models.

Key features:
- WalletTransaction is immutable (no add/edit/delete permissions)
- VendorWallet balances are read-only; they only change through WalletLedger
"""

from django.contrib import admin

from settlements.money import format_amount

from .models import VendorWallet, WalletTransaction


@admin.register(VendorWallet)
class VendorWalletAdmin(admin.ModelAdmin):
    """
    Admin configuration for VendorWallet.

    Balances are denormalized from the wallet ledger and must not be
    edited by hand. Corrections are made with adjustment entries.
    """

    list_display = [
        "vendor_id",
        "balance_display",
        "pending_withdrawal",
        "total_earned",
        "updated_at",
    ]
    search_fields = ["id", "vendor_id"]
    readonly_fields = [
        "id",
        "vendor_id",
        "balance",
        "pending_withdrawal",
        "total_earned",
        "created_at",
        "updated_at",
    ]
    ordering = ["-updated_at"]

    def balance_display(self, obj: VendorWallet) -> str:
        return format_amount(obj.balance)

    balance_display.short_description = "Balance"

    def has_add_permission(self, request) -> bool:
        """Wallets are created by the first credit."""
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
    """
    Admin configuration for WalletTransaction.

    Wallet entries are immutable - they cannot be added, edited or
    deleted through the admin interface.
    """

    list_display = [
        "created_at",
        "vendor_id",
        "sequence",
        "txn_type",
        "source",
        "amount_display",
        "balance_after",
        "created_by",
    ]
    list_filter = ["txn_type", "source", "created_at"]
    search_fields = ["id", "vendor_id", "idempotency_key", "notes", "created_by"]
    readonly_fields = [
        "id",
        "wallet",
        "vendor_id",
        "sequence",
        "txn_type",
        "source",
        "amount",
        "balance_after",
        "booking",
        "milestone",
        "escrow_transaction",
        "idempotency_key",
        "notes",
        "created_by",
        "created_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def amount_display(self, obj: WalletTransaction) -> str:
        return format_amount(obj.signed_amount)

    amount_display.short_description = "Amount"

    def has_add_permission(self, request) -> bool:
        """Entries are only created through WalletLedger."""
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
