"""
Wallet ledger service for vendor earnings.

This module provides the WalletLedger class which encapsulates all
business logic for vendor wallets. Every balance change must go through
this service so each change is paired with exactly one WalletTransaction
and the balance_after chain stays intact.

Usage:
    from settlements.wallet.services import WalletLedger, wallet_ledger
    from settlements.wallet.types import WalletCreditParams

    # Credit a vendor
    txn = wallet_ledger.credit_wallet(WalletCreditParams(
        vendor_id=booking.vendor_id,
        amount=Decimal("2000.00"),
        source=WalletTransactionSource.MILESTONE_RELEASE,
        idempotency_key=f"milestone_release:{milestone.id}",
        booking_id=booking.id,
    ))

    # Read the balance
    wallet_ledger.get_balance(vendor_id)  # WalletBalance(...)
"""

from __future__ import annotations

import logging
import uuid

from django.db import transaction
from django.db.models import Max

from settlements.money import round_currency
from settlements.state_machines import WalletTransactionType

from .exceptions import InsufficientWalletBalance, WalletNotFound
from .models import VendorWallet, WalletTransaction
from .types import WalletBalance, WalletCreditParams, WalletDebitParams

logger = logging.getLogger(__name__)


class WalletLedger:
    """
    Service class for vendor wallet operations.

    Key features:
    - Get-or-create of wallets that tolerates concurrent first credits
    - Wallet row locked for every balance change
    - Idempotency via unique keys (safe to retry)
    - Withdrawable balance checked before debits

    All methods are static - no instance state is maintained.
    """

    @staticmethod
    def get_or_create_wallet(vendor_id: uuid.UUID) -> VendorWallet:
        """
        Get the vendor's wallet, creating it if needed, and lock it.

        Inserts with ON CONFLICT DO NOTHING and then selects the row
        FOR UPDATE, so two concurrent first credits for the same vendor
        end up with one wallet and queue on its lock.

        Must be called inside a transaction for the lock to be held.

        Args:
            vendor_id: UUID of the vendor

        Returns:
            The locked VendorWallet
        """
        VendorWallet.objects.bulk_create(
            [VendorWallet(vendor_id=vendor_id)],
            ignore_conflicts=True,
        )
        return VendorWallet.objects.select_for_update().get(vendor_id=vendor_id)

    @staticmethod
    def get_wallet(vendor_id: uuid.UUID) -> VendorWallet:
        """
        Get wallet by vendor.

        Raises:
            WalletNotFound: If the vendor has never been credited
        """
        try:
            return VendorWallet.objects.get(vendor_id=vendor_id)
        except VendorWallet.DoesNotExist:
            raise WalletNotFound(
                f"Wallet for vendor {vendor_id} not found",
                details={"vendor_id": str(vendor_id)},
            )

    @staticmethod
    def _lock_wallet(vendor_id: uuid.UUID) -> VendorWallet:
        try:
            return VendorWallet.objects.select_for_update().get(vendor_id=vendor_id)
        except VendorWallet.DoesNotExist:
            raise WalletNotFound(
                f"Wallet for vendor {vendor_id} not found",
                details={"vendor_id": str(vendor_id)},
            )

    @staticmethod
    def _next_sequence(wallet: VendorWallet) -> int:
        """Next sequence number. Caller must hold the wallet lock."""
        last = wallet.transactions.aggregate(last=Max("sequence"))["last"]
        return (last or 0) + 1

    @staticmethod
    def _existing_entry(idempotency_key: str) -> WalletTransaction | None:
        try:
            return WalletTransaction.objects.get(idempotency_key=idempotency_key)
        except WalletTransaction.DoesNotExist:
            return None

    @staticmethod
    def _append_entry(
        wallet: VendorWallet,
        params: WalletCreditParams | WalletDebitParams,
        txn_type: str,
    ) -> WalletTransaction:
        return WalletTransaction.objects.create(
            wallet=wallet,
            vendor_id=wallet.vendor_id,
            sequence=WalletLedger._next_sequence(wallet),
            txn_type=txn_type,
            source=params.source,
            amount=params.amount,
            balance_after=wallet.balance,
            booking_id=params.booking_id,
            milestone_id=params.milestone_id,
            escrow_transaction_id=params.escrow_transaction_id,
            idempotency_key=params.idempotency_key,
            notes=params.notes,
            created_by=params.created_by,
        )

    @staticmethod
    def credit_wallet(params: WalletCreditParams) -> WalletTransaction:
        """
        Credit a vendor wallet.

        Idempotent - safe to call multiple times with the same
        idempotency_key. If an entry with the key already exists, it is
        returned and the balance is not touched.

        The wallet update and the new entry are written in one atomic
        unit. When called inside an outer transaction (the settlement
        orchestrator), they commit or roll back with it.

        Args:
            params: Credit parameters

        Returns:
            The created or existing WalletTransaction
        """
        with transaction.atomic():
            wallet = WalletLedger.get_or_create_wallet(params.vendor_id)

            # Check idempotency under the wallet lock
            existing = WalletLedger._existing_entry(params.idempotency_key)
            if existing is not None:
                logger.info(
                    "Wallet credit already recorded",
                    extra={
                        "vendor_id": str(params.vendor_id),
                        "idempotency_key": params.idempotency_key,
                        "wallet_transaction_id": str(existing.id),
                    },
                )
                return existing

            wallet.balance = round_currency(wallet.balance + params.amount)
            wallet.total_earned = round_currency(wallet.total_earned + params.amount)
            wallet.save(update_fields=["balance", "total_earned", "updated_at"])

            entry = WalletLedger._append_entry(
                wallet, params, WalletTransactionType.CREDIT
            )

        logger.info(
            "Wallet credited",
            extra={
                "vendor_id": str(params.vendor_id),
                "wallet_id": str(wallet.id),
                "amount": str(params.amount),
                "source": params.source,
                "balance_after": str(entry.balance_after),
                "wallet_transaction_id": str(entry.id),
            },
        )
        return entry

    @staticmethod
    def debit_wallet(params: WalletDebitParams) -> WalletTransaction:
        """
        Debit a vendor wallet.

        Idempotent like credit_wallet. The debit may not exceed the
        withdrawable balance (balance - pending_withdrawal), so the
        balance >= pending_withdrawal >= 0 invariant holds afterwards.

        Args:
            params: Debit parameters

        Returns:
            The created or existing WalletTransaction

        Raises:
            WalletNotFound: If the vendor has no wallet
            InsufficientWalletBalance: If the withdrawable balance is too low
        """
        with transaction.atomic():
            wallet = WalletLedger._lock_wallet(params.vendor_id)

            existing = WalletLedger._existing_entry(params.idempotency_key)
            if existing is not None:
                return existing

            if wallet.available_balance < params.amount:
                raise InsufficientWalletBalance(
                    vendor_id=params.vendor_id,
                    required=params.amount,
                    available=wallet.available_balance,
                )

            wallet.balance = round_currency(wallet.balance - params.amount)
            wallet.save(update_fields=["balance", "updated_at"])

            entry = WalletLedger._append_entry(
                wallet, params, WalletTransactionType.DEBIT
            )

        logger.info(
            "Wallet debited",
            extra={
                "vendor_id": str(params.vendor_id),
                "wallet_id": str(wallet.id),
                "amount": str(params.amount),
                "source": params.source,
                "balance_after": str(entry.balance_after),
                "wallet_transaction_id": str(entry.id),
            },
        )
        return entry

    @staticmethod
    def get_balance(vendor_id: uuid.UUID) -> WalletBalance:
        """
        Get current balance for a vendor.

        Raises:
            WalletNotFound: If the vendor has no wallet
        """
        wallet = WalletLedger.get_wallet(vendor_id)
        return WalletBalance(
            vendor_id=wallet.vendor_id,
            balance=wallet.balance,
            pending_withdrawal=wallet.pending_withdrawal,
            total_earned=wallet.total_earned,
        )

    @staticmethod
    def get_transactions(
        vendor_id: uuid.UUID,
        limit: int = 100,
        offset: int = 0,
    ) -> list[WalletTransaction]:
        """
        Get a vendor's wallet entries, newest first.

        Args:
            vendor_id: UUID of the vendor
            limit: Maximum number of entries to return (default: 100)
            offset: Number of entries to skip (default: 0)

        Returns:
            List of WalletTransaction objects (empty if there is no wallet)
        """
        return list(
            WalletTransaction.objects.filter(vendor_id=vendor_id).order_by(
                "-sequence"
            )[offset : offset + limit]
        )


# Singleton instance for convenience
wallet_ledger = WalletLedger()
