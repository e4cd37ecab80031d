"""
Settlement services for coordinating money movements.

This module provides:
- SettlementOrchestrator: Milestone releases, refund releases and rejections
- ReconciliationService: Wallet credit retries and wallet replay audits

Usage:
    from settlements.services import SettlementOrchestrator

    # Release a completion milestone
    result = SettlementOrchestrator.release_milestone(milestone_id, admin_id="admin-7")

    # Complete a refund
    result = SettlementOrchestrator.release_refund(refund_id, admin_id="admin-7")

    # Retry a failed vendor credit
    from settlements.services import ReconciliationService

    failure = ReconciliationService.retry_wallet_credit(failure_id)
"""

from settlements.services.reconciliation_service import (
    CreditRetryRunResult,
    ReconciliationService,
    WalletAuditResult,
    WalletReplayResult,
)
from settlements.services.settlement_orchestrator import (
    MilestoneReleaseResult,
    MilestoneSummary,
    RefundReleaseResult,
    SettlementOrchestrator,
    milestone_release_key,
    refund_split_key,
)

__all__ = [
    # Orchestrator
    "SettlementOrchestrator",
    "MilestoneReleaseResult",
    "MilestoneSummary",
    "RefundReleaseResult",
    "milestone_release_key",
    "refund_split_key",
    # Reconciliation
    "ReconciliationService",
    "CreditRetryRunResult",
    "WalletAuditResult",
    "WalletReplayResult",
]
