"""
Celery tasks for settlement housekeeping.

This module provides async tasks for:
- Auditing vendor wallets against their transaction history (read-only)
- Retrying queued vendor wallet credits (operator-triggered)

Settlement operations themselves run synchronously inside the admin
request; nothing here re-runs a settlement.

Usage:
    # Audit all wallets (scheduled via CELERY_BEAT_SCHEDULE)
    from settlements.tasks import audit_vendor_wallets
    audit_vendor_wallets.delay()

    # Retry failed vendor credits after the cause was fixed
    from settlements.tasks import retry_wallet_credit_failures
    retry_wallet_credit_failures.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from settlements.services import ReconciliationService

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

CREDIT_RETRY_BATCH_SIZE = 100


# =============================================================================
# Wallet Tasks
# =============================================================================


@shared_task
def audit_vendor_wallets() -> dict:
    """
    Periodic task replaying every vendor wallet.

    Read-only. Mismatches are logged at ERROR for an operator to
    investigate; nothing is corrected automatically.

    Returns:
        Dict with wallets_checked and the ids of inconsistent wallets
    """
    result = ReconciliationService.verify_all_wallets()

    inconsistent_ids = [str(replay.wallet_id) for replay in result.inconsistent]
    if inconsistent_ids:
        logger.error(
            f"Wallet audit found {len(inconsistent_ids)} inconsistent wallets",
            extra={"inconsistent_wallet_ids": inconsistent_ids},
        )

    return {
        "wallets_checked": result.wallets_checked,
        "inconsistent_wallet_ids": inconsistent_ids,
    }


@shared_task
def retry_wallet_credit_failures(limit: int = CREDIT_RETRY_BATCH_SIZE) -> dict:
    """
    Retry pending vendor wallet credits.

    Not scheduled. An operator queues it once the cause of the failures
    has been fixed. Each retry reuses the original idempotency key.

    Args:
        limit: Maximum number of failures to retry

    Returns:
        Dict with attempted, resolved and still_pending counts
    """
    result = ReconciliationService.retry_pending_credit_failures(limit=limit)

    logger.info(
        f"Retried {result.attempted} wallet credit failures",
        extra={
            "attempted": result.attempted,
            "resolved": result.resolved,
            "still_pending": result.still_pending,
        },
    )

    return {
        "attempted": result.attempted,
        "resolved": result.resolved,
        "still_pending": result.still_pending,
    }
