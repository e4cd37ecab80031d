"""
Wallet - Vendor wallet balances and their append-only ledger.

Every vendor has one wallet, created on the first credit. Each balance
change appends one immutable WalletTransaction carrying the resulting
balance, so the wallet's history can always be replayed.

Public API:
    Models:
        VendorWallet - Balance, pending withdrawal and lifetime earnings
        WalletTransaction - Append-only credit/debit entry

    Service:
        wallet_ledger - Singleton instance of WalletLedger
        WalletLedger - Class with all wallet operations

    Types:
        WalletBalance - Snapshot of a wallet
        WalletCreditParams - Parameters for crediting
        WalletDebitParams - Parameters for debiting

    Exceptions:
        WalletError - Base exception for wallet operations
        WalletNotFound - Vendor has no wallet yet
        InsufficientWalletBalance - Debit larger than withdrawable balance
        ImmutableRecordError - Update/delete of an audit record

Usage:
    from settlements.wallet import wallet_ledger, WalletCreditParams

    txn = wallet_ledger.credit_wallet(WalletCreditParams(
        vendor_id=vendor_id,
        amount=Decimal("4750.00"),
        source=WalletTransactionSource.REFUND_SPLIT,
        idempotency_key=f"refund_split:{refund.id}",
    ))
"""

from .exceptions import (
    ImmutableRecordError,
    InsufficientWalletBalance,
    WalletError,
    WalletNotFound,
)
from .models import VendorWallet, WalletTransaction
from .services import WalletLedger, wallet_ledger
from .types import WalletBalance, WalletCreditParams, WalletDebitParams

__all__ = [
    # Models
    "VendorWallet",
    "WalletTransaction",
    # Service
    "wallet_ledger",
    "WalletLedger",
    # Types
    "WalletBalance",
    "WalletCreditParams",
    "WalletDebitParams",
    # Exceptions
    "WalletError",
    "WalletNotFound",
    "InsufficientWalletBalance",
    "ImmutableRecordError",
]
