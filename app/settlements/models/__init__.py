"""
Settlement domain models.

This module contains all settlement-related models:
- Booking: Purchased service order (read by the engine)
- PaymentMilestone: One of the three milestone payments of a booking
- EscrowTransaction: Audit record of a completion milestone release
- Refund: Settlement outcome of a cancelled booking
- WalletCreditFailure: Vendor credits waiting for reconciliation
- VendorWallet / WalletTransaction: Vendor wallet ledger (settlements.wallet)
"""

from settlements.models.booking import Booking
from settlements.models.escrow_transaction import EscrowTransaction
from settlements.models.milestone import PaymentMilestone
from settlements.models.refund import Refund
from settlements.models.wallet_credit_failure import WalletCreditFailure
from settlements.wallet.models import VendorWallet, WalletTransaction

__all__ = [
    "Booking",
    "EscrowTransaction",
    "PaymentMilestone",
    "Refund",
    "VendorWallet",
    "WalletCreditFailure",
    "WalletTransaction",
]
