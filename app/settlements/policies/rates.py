"""
Settlement rate configuration.

The rates live in the SETTLEMENT settings dict (see config/settings.py) so
they can be overridden per environment. They are loaded into a frozen
SettlementRates of Decimals and cross-checked on every load:

- milestone percentages cover advance/arrival/completion and sum to 1
- commission_rate + completion_vendor_share equals the completion
  percentage, so the completion milestone is consumed exactly
- refund_company_share + refund_vendor_share equals 1

Usage:
    from settlements.policies import get_settlement_rates

    rates = get_settlement_rates()
    rates.commission_rate  # Decimal("0.10")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from settlements.exceptions import LedgerInvariantError
from settlements.money import to_decimal
from settlements.state_machines import MilestoneType

ONE = Decimal("1")

DEFAULT_RATES = {
    "COMMISSION_RATE": "0.10",
    "COMPLETION_VENDOR_SHARE": "0.20",
    "REFUND_COMPANY_SHARE": "0.05",
    "REFUND_VENDOR_SHARE": "0.95",
    "MILESTONE_PERCENTAGES": {
        MilestoneType.ADVANCE: "0.20",
        MilestoneType.ARRIVAL: "0.50",
        MilestoneType.COMPLETION: "0.30",
    },
}


@dataclass(frozen=True)
class SettlementRates:
    """
    Named settlement constants.

    Attributes:
        commission_rate: Company commission, as a fraction of the booking total
        completion_vendor_share: Vendor share of the completion release,
            as a fraction of the booking total
        refund_company_share: Company share of a non-refundable amount
        refund_vendor_share: Vendor share of a non-refundable amount
        milestone_percentages: Fraction of the booking total per milestone type
    """

    commission_rate: Decimal
    completion_vendor_share: Decimal
    refund_company_share: Decimal
    refund_vendor_share: Decimal
    milestone_percentages: dict[str, Decimal] = field(default_factory=dict)

    def percentage_for(self, milestone_type: str) -> Decimal:
        """Return the fraction of the booking total for a milestone type."""
        try:
            return self.milestone_percentages[milestone_type]
        except KeyError:
            raise ImproperlyConfigured(
                f"No milestone percentage configured for {milestone_type!r}"
            )

    def validate(self) -> None:
        """
        Cross-check the rates.

        Raises:
            ImproperlyConfigured: If any rate is out of range or the
                rates do not add up
        """
        named = {
            "COMMISSION_RATE": self.commission_rate,
            "COMPLETION_VENDOR_SHARE": self.completion_vendor_share,
            "REFUND_COMPANY_SHARE": self.refund_company_share,
            "REFUND_VENDOR_SHARE": self.refund_vendor_share,
        }
        named.update(
            {f"MILESTONE_PERCENTAGES[{k}]": v for k, v in self.milestone_percentages.items()}
        )
        for name, rate in named.items():
            if rate < 0 or rate > ONE:
                raise ImproperlyConfigured(
                    f"SETTLEMENT {name} must be between 0 and 1, got {rate}"
                )

        expected_types = set(MilestoneType.values)
        if set(self.milestone_percentages) != expected_types:
            raise ImproperlyConfigured(
                "SETTLEMENT MILESTONE_PERCENTAGES must define exactly "
                f"{sorted(expected_types)}, got {sorted(self.milestone_percentages)}"
            )

        total = sum(self.milestone_percentages.values(), Decimal("0"))
        if total != ONE:
            raise ImproperlyConfigured(
                f"SETTLEMENT MILESTONE_PERCENTAGES must sum to 1, got {total}"
            )

        completion = self.milestone_percentages[MilestoneType.COMPLETION]
        if self.commission_rate + self.completion_vendor_share != completion:
            raise ImproperlyConfigured(
                "SETTLEMENT COMMISSION_RATE + COMPLETION_VENDOR_SHARE "
                f"({self.commission_rate} + {self.completion_vendor_share}) "
                f"must equal the completion percentage ({completion})"
            )

        if self.refund_company_share + self.refund_vendor_share != ONE:
            raise ImproperlyConfigured(
                "SETTLEMENT REFUND_COMPANY_SHARE + REFUND_VENDOR_SHARE "
                f"({self.refund_company_share} + {self.refund_vendor_share}) "
                "must equal 1"
            )


def get_settlement_rates() -> SettlementRates:
    """
    Load and validate the rates from settings.SETTLEMENT.

    Missing keys fall back to DEFAULT_RATES. Settings are read on every
    call so test overrides take effect immediately.

    Raises:
        ImproperlyConfigured: If the configured rates are inconsistent
    """
    configured = getattr(settings, "SETTLEMENT", None) or {}

    def rate(key: str) -> Decimal:
        try:
            return to_decimal(configured.get(key, DEFAULT_RATES[key]))
        except LedgerInvariantError as e:
            raise ImproperlyConfigured(f"SETTLEMENT {key} is not a number: {e}")

    raw_percentages = configured.get(
        "MILESTONE_PERCENTAGES", DEFAULT_RATES["MILESTONE_PERCENTAGES"]
    )
    percentages = {}
    for milestone_type, value in raw_percentages.items():
        try:
            percentages[str(milestone_type)] = to_decimal(value)
        except LedgerInvariantError as e:
            raise ImproperlyConfigured(
                f"SETTLEMENT MILESTONE_PERCENTAGES[{milestone_type}] is not a number: {e}"
            )

    rates = SettlementRates(
        commission_rate=rate("COMMISSION_RATE"),
        completion_vendor_share=rate("COMPLETION_VENDOR_SHARE"),
        refund_company_share=rate("REFUND_COMPANY_SHARE"),
        refund_vendor_share=rate("REFUND_VENDOR_SHARE"),
        milestone_percentages=percentages,
    )
    rates.validate()
    return rates
