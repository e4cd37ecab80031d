"""
Reconciliation service for vendor wallets.

This module provides the ReconciliationService which keeps the wallet
ledger honest after the fact:

1. Wallet credit retries: refund completions whose vendor credit failed
   are queued as WalletCreditFailure rows. An operator retries them here
   with the original idempotency key, so a credit that did land in the
   meantime is never made twice.

2. Wallet replay: folding a wallet's transactions in sequence order must
   reproduce every recorded balance_after, the current balance and the
   lifetime earnings. Mismatches are reported, never auto-healed.

Usage:
    from settlements.services import ReconciliationService

    failure = ReconciliationService.retry_wallet_credit(failure_id)
    failure.status  # "resolved" or still "pending"

    result = ReconciliationService.verify_wallet(wallet_id)
    if not result.is_consistent:
        print(result.mismatches)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from django.db import DatabaseError, transaction
from django.utils import timezone

from core.services import BaseService

from settlements.exceptions import SettlementNotFoundError
from settlements.models import VendorWallet, WalletCreditFailure
from settlements.money import ZERO
from settlements.state_machines import CreditFailureStatus, WalletTransactionType
from settlements.wallet import WalletCreditParams, WalletError, WalletNotFound, wallet_ledger

logger = logging.getLogger(__name__)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class WalletReplayResult:
    """Result of replaying one wallet's transactions."""

    wallet_id: uuid.UUID
    vendor_id: uuid.UUID
    transaction_count: int
    replayed_balance: Decimal
    recorded_balance: Decimal
    replayed_total_earned: Decimal
    recorded_total_earned: Decimal
    mismatches: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.mismatches


@dataclass
class WalletAuditResult:
    """Result of replaying every wallet."""

    wallets_checked: int = 0
    inconsistent: list[WalletReplayResult] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.inconsistent


@dataclass
class CreditRetryRunResult:
    """Result of retrying the pending wallet credit failures."""

    attempted: int = 0
    resolved: int = 0
    still_pending: int = 0


# =============================================================================
# Reconciliation Service
# =============================================================================


class ReconciliationService(BaseService):
    """
    Operator tools for the wallet ledger.

    All methods are class methods - no instance state is maintained.
    Nothing here runs automatically except the read-only wallet audit.
    """

    # =========================================================================
    # Wallet Credit Retries
    # =========================================================================

    @classmethod
    def retry_wallet_credit(cls, failure_id: uuid.UUID) -> WalletCreditFailure:
        """
        Retry a failed vendor wallet credit.

        Uses the idempotency key of the original attempt. Resolved
        failures are returned unchanged.

        Args:
            failure_id: WalletCreditFailure to retry

        Returns:
            The updated WalletCreditFailure (resolved, or pending with
            attempts incremented and last_error set)

        Raises:
            SettlementNotFoundError: If the failure record does not exist
        """
        with transaction.atomic():
            try:
                failure = WalletCreditFailure.objects.select_for_update().get(
                    id=failure_id
                )
            except WalletCreditFailure.DoesNotExist:
                raise SettlementNotFoundError(
                    f"Wallet credit failure {failure_id} not found",
                    error_code="CREDIT_FAILURE_NOT_FOUND",
                    details={"failure_id": str(failure_id)},
                )

            if failure.status == CreditFailureStatus.RESOLVED:
                return failure

            try:
                with transaction.atomic():
                    wallet_transaction = wallet_ledger.credit_wallet(
                        WalletCreditParams(
                            vendor_id=failure.vendor_id,
                            amount=failure.amount,
                            source=failure.source,
                            idempotency_key=failure.idempotency_key,
                            booking_id=failure.booking_id,
                            notes=f"Reconciled credit for booking {failure.booking_id}",
                            created_by="reconciliation",
                        )
                    )
            except (DatabaseError, WalletError) as e:
                failure.attempts += 1
                failure.last_error = f"{type(e).__name__}: {e}"
                failure.save(update_fields=["attempts", "last_error", "updated_at"])
                cls.get_logger().warning(
                    "Wallet credit retry failed",
                    extra={
                        "failure_id": str(failure.id),
                        "attempts": failure.attempts,
                        "error": str(e),
                    },
                )
                return failure

            failure.attempts += 1
            failure.status = CreditFailureStatus.RESOLVED
            failure.resolved_at = timezone.now()
            failure.wallet_transaction = wallet_transaction
            failure.save(
                update_fields=[
                    "attempts",
                    "status",
                    "resolved_at",
                    "wallet_transaction",
                    "updated_at",
                ]
            )

        cls.get_logger().info(
            "Wallet credit failure resolved",
            extra={
                "failure_id": str(failure.id),
                "vendor_id": str(failure.vendor_id),
                "amount": str(failure.amount),
                "wallet_transaction_id": str(wallet_transaction.id),
            },
        )
        return failure

    @classmethod
    def retry_pending_credit_failures(cls, limit: int = 100) -> CreditRetryRunResult:
        """Retry up to `limit` pending failures, oldest first."""
        result = CreditRetryRunResult()
        pending_ids = list(
            WalletCreditFailure.objects.pending().values_list("id", flat=True)[:limit]
        )
        for failure_id in pending_ids:
            result.attempted += 1
            failure = cls.retry_wallet_credit(failure_id)
            if failure.status == CreditFailureStatus.RESOLVED:
                result.resolved += 1
            else:
                result.still_pending += 1
        return result

    # =========================================================================
    # Wallet Replay
    # =========================================================================

    @classmethod
    def verify_wallet(cls, wallet_id: uuid.UUID) -> WalletReplayResult:
        """
        Replay a wallet's transactions and compare with its stored amounts.

        Checks, in sequence order:
        - sequences run 1, 2, 3, ... without gaps
        - every balance_after equals the running sum of signed amounts
        - the final sum equals the wallet balance
        - the sum of credits equals total_earned

        Raises:
            WalletNotFound: If the wallet does not exist
        """
        try:
            wallet = VendorWallet.objects.get(id=wallet_id)
        except VendorWallet.DoesNotExist:
            raise WalletNotFound(
                f"Wallet {wallet_id} not found",
                details={"wallet_id": str(wallet_id)},
            )

        running = ZERO
        earned = ZERO
        count = 0
        mismatches: list[dict[str, Any]] = []

        for txn in wallet.transactions.order_by("sequence").iterator():
            count += 1
            running += txn.signed_amount
            if txn.txn_type == WalletTransactionType.CREDIT:
                earned += txn.amount

            if txn.sequence != count:
                mismatches.append(
                    {
                        "type": "sequence_gap",
                        "wallet_transaction_id": str(txn.id),
                        "expected_sequence": count,
                        "recorded_sequence": txn.sequence,
                    }
                )
            if txn.balance_after != running:
                mismatches.append(
                    {
                        "type": "balance_after",
                        "wallet_transaction_id": str(txn.id),
                        "sequence": txn.sequence,
                        "expected": str(running),
                        "recorded": str(txn.balance_after),
                    }
                )

        if running != wallet.balance:
            mismatches.append(
                {
                    "type": "balance",
                    "expected": str(running),
                    "recorded": str(wallet.balance),
                }
            )
        if earned != wallet.total_earned:
            mismatches.append(
                {
                    "type": "total_earned",
                    "expected": str(earned),
                    "recorded": str(wallet.total_earned),
                }
            )

        return WalletReplayResult(
            wallet_id=wallet.id,
            vendor_id=wallet.vendor_id,
            transaction_count=count,
            replayed_balance=running,
            recorded_balance=wallet.balance,
            replayed_total_earned=earned,
            recorded_total_earned=wallet.total_earned,
            mismatches=mismatches,
        )

    @classmethod
    def verify_all_wallets(cls) -> WalletAuditResult:
        """Replay every wallet and log the inconsistent ones."""
        result = WalletAuditResult()
        for wallet_id in VendorWallet.objects.order_by("id").values_list("id", flat=True):
            replay = cls.verify_wallet(wallet_id)
            result.wallets_checked += 1
            if not replay.is_consistent:
                result.inconsistent.append(replay)
                cls.get_logger().error(
                    "Wallet ledger mismatch",
                    extra={
                        "wallet_id": str(replay.wallet_id),
                        "vendor_id": str(replay.vendor_id),
                        "mismatches": replay.mismatches,
                    },
                )

        cls.get_logger().info(
            "Wallet audit finished",
            extra={
                "wallets_checked": result.wallets_checked,
                "inconsistent": len(result.inconsistent),
            },
        )
        return result
