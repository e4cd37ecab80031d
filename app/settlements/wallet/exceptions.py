"""
Wallet-specific exceptions.

This module provides a hierarchy of exceptions for wallet operations,
inheriting from the core exception base class for API consistency.

Exception Hierarchy:
    WalletError (base)
    ├── WalletNotFound - Wallet lookup failures
    ├── InsufficientWalletBalance - Debit larger than the withdrawable balance
    └── ImmutableRecordError - Update or delete of an append-only record

Usage:
    from settlements.wallet.exceptions import InsufficientWalletBalance

    try:
        wallet_ledger.debit_wallet(params)
    except InsufficientWalletBalance as e:
        print(f"Need {e.required}, have {e.available}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    import uuid
    from decimal import Decimal
    from typing import Any


class WalletError(BaseApplicationError):
    """
    Base exception for all wallet operations.

    Example:
        try:
            wallet_ledger.credit_wallet(params)
        except WalletError as e:
            logger.error(f"Wallet operation failed: {e}")
    """

    default_error_code: str = "WALLET_ERROR"


class WalletNotFound(WalletError):
    """
    Raised when a vendor has no wallet yet.

    Wallets are created on the first credit, so reads for a vendor that
    has never been credited raise this.
    """

    default_error_code: str = "WALLET_NOT_FOUND"


class InsufficientWalletBalance(WalletError):
    """
    Raised when a debit exceeds the withdrawable balance.

    The withdrawable balance is balance - pending_withdrawal.

    Attributes:
        vendor_id: Vendor whose wallet lacks funds
        required: Amount that was requested
        available: Withdrawable amount
    """

    default_error_code: str = "INSUFFICIENT_WALLET_BALANCE"

    def __init__(
        self,
        vendor_id: uuid.UUID,
        required: Decimal,
        available: Decimal,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.vendor_id = vendor_id
        self.required = required
        self.available = available

        message = (
            f"Wallet of vendor {vendor_id} has insufficient balance: "
            f"required ₹{required}, available ₹{available}"
        )

        full_details = {
            "vendor_id": str(vendor_id),
            "required": str(required),
            "available": str(available),
        }
        if details:
            full_details.update(details)

        super().__init__(
            message=message,
            error_code=error_code,
            details=full_details,
        )


class ImmutableRecordError(WalletError):
    """
    Raised when an append-only record is updated or deleted.

    Wallet transactions and escrow transactions are audit records.
    Corrections are made with new adjustment entries.
    """

    default_error_code: str = "IMMUTABLE_RECORD"
