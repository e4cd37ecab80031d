"""
Settlements app for booking payment settlement.

This app handles:
- Release of the completion milestone held in escrow (commission + vendor share)
- Three-way refund split (customer / company / vendor) on cancellation
- Vendor wallet crediting with an append-only transaction ledger
- Reconciliation of wallet credits that failed after a refund completed

Usage:
    from settlements.services import SettlementOrchestrator

    result = SettlementOrchestrator.release_milestone(milestone_id, admin_id="admin-1")
    result = SettlementOrchestrator.release_refund(refund_id, admin_id="admin-1")
"""
