"""
Refund split policy.

When a booking is cancelled, the upstream cancellation policy decides how
much goes back to the customer (refund_amount) and how much is forfeited
(non_refundable_amount). This module splits the forfeited part:

    customer_amount = refund_amount
    company_amount  = non_refundable × REFUND_COMPANY_SHARE   (5%)
    vendor_amount   = non_refundable - company_amount        (95%)

A full refund (non_refundable == 0) gives the company and the vendor
nothing. This zero floor is business policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from settlements.exceptions import InvalidStateTransitionError
from settlements.money import (
    ZERO,
    AmountLike,
    ensure_non_negative,
    is_positive,
)
from settlements.policies.rates import SettlementRates, get_settlement_rates
from settlements.state_machines import RefundStatus

if TYPE_CHECKING:
    from settlements.models import Refund


@dataclass(frozen=True)
class RefundSplit:
    """
    Three-way split of a cancelled booking's money.

    Attributes:
        customer_amount: Returned to the customer
        company_amount: Kept by the company
        vendor_amount: Credited to the vendor wallet
    """

    customer_amount: Decimal
    company_amount: Decimal
    vendor_amount: Decimal

    @property
    def total(self) -> Decimal:
        return self.customer_amount + self.company_amount + self.vendor_amount


def compute_refund_split(
    refund_amount: AmountLike,
    non_refundable_amount: AmountLike,
    rates: SettlementRates | None = None,
) -> RefundSplit:
    """
    Split a cancellation between customer, company and vendor.

    The vendor takes the remainder of the non-refundable amount after the
    company share is rounded, so the three parts always add up to
    refund_amount + non_refundable_amount to the paisa.

    Raises:
        LedgerInvariantError: If either input is negative

    Example:
        split = compute_refund_split(Decimal("0"), Decimal("5000"))
        split.company_amount  # Decimal("250.00")
        split.vendor_amount   # Decimal("4750.00")
    """
    rates = rates or get_settlement_rates()
    customer = ensure_non_negative("refund_amount", refund_amount)
    non_refundable = ensure_non_negative("non_refundable_amount", non_refundable_amount)

    if not is_positive(non_refundable):
        return RefundSplit(customer_amount=customer, company_amount=ZERO, vendor_amount=ZERO)

    company = ensure_non_negative(
        "company_amount", non_refundable * rates.refund_company_share
    )
    vendor = ensure_non_negative("vendor_amount", non_refundable - company)

    return RefundSplit(
        customer_amount=customer,
        company_amount=company,
        vendor_amount=vendor,
    )


def validate_refund_release(refund: Refund) -> None:
    """
    Check that a refund can still be completed or rejected.

    Raises:
        InvalidStateTransitionError: If the refund is no longer pending
    """
    if refund.status != RefundStatus.PENDING:
        raise InvalidStateTransitionError(
            f"Refund is '{refund.status}', expected '{RefundStatus.PENDING}'",
            details={
                "refund_id": str(refund.id),
                "current_state": refund.status,
                "required_state": RefundStatus.PENDING,
            },
        )
