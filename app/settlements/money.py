"""
Money-safe arithmetic helpers for settlement amounts.

All settlement amounts are `decimal.Decimal` values with two decimal places
(rupees and paise). Binary floats are never compared for equality: every
input is converted through `to_decimal` and every value written to the
database goes through `round_currency` first.

Usage:
    from settlements.money import round_currency, is_positive

    commission = round_currency(total * Decimal("0.10"))
    if is_positive(vendor_amount):
        wallet_ledger.credit_wallet(...)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from settlements.exceptions import LedgerInvariantError

AmountLike = Union[Decimal, int, float, str]

# Two decimal places on every persisted boundary
CURRENCY_QUANTUM = Decimal("0.01")

ZERO = Decimal("0.00")


def to_decimal(value: AmountLike) -> Decimal:
    """
    Convert a number to Decimal without binary float artefacts.

    Floats are converted through their shortest repr, so 0.1 becomes
    Decimal("0.1") rather than 0.1000000000000000055511151231257827.

    Raises:
        LedgerInvariantError: If the value is not a finite number
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        try:
            result = Decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise LedgerInvariantError(
                f"Not a monetary amount: {value!r}",
                details={"value": repr(value)},
            )
    if not result.is_finite():
        raise LedgerInvariantError(
            f"Not a finite monetary amount: {value!r}",
            details={"value": repr(value)},
        )
    return result


def round_currency(value: AmountLike) -> Decimal:
    """
    Round to two decimal places, half away from zero.

    Example:
        round_currency(Decimal("12.345"))  # Decimal("12.35")
        round_currency(0.1 + 0.2)          # Decimal("0.30")
    """
    return to_decimal(value).quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def is_positive(value: AmountLike) -> bool:
    """Return True when the rounded amount is strictly greater than zero."""
    return round_currency(value) > ZERO


def ensure_non_negative(name: str, value: AmountLike) -> Decimal:
    """
    Round an amount and fail loudly if it is negative.

    A negative split amount is a programming error, never something to
    clamp to zero.

    Args:
        name: Field name used in the error details
        value: The computed amount

    Returns:
        The rounded amount

    Raises:
        LedgerInvariantError: If the amount is below zero
    """
    amount = round_currency(value)
    if amount < ZERO:
        raise LedgerInvariantError(
            f"{name} must not be negative, got {amount}",
            details={"field": name, "amount": str(amount)},
        )
    return amount


def format_amount(value: AmountLike) -> str:
    """Format an amount for audit notes (e.g. '₹1,000.00')."""
    return f"₹{round_currency(value):,.2f}"


__all__ = [
    "AmountLike",
    "CURRENCY_QUANTUM",
    "ZERO",
    "to_decimal",
    "round_currency",
    "is_positive",
    "ensure_non_negative",
    "format_amount",
]
