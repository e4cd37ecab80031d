"""
Settlements app configuration.

This app owns the payment milestone escrow release and refund-splitting
engine:
- Milestone and refund split policies
- Vendor wallet ledger
- Settlement orchestration and reconciliation
"""

from django.apps import AppConfig


class SettlementsConfig(AppConfig):
    """Configuration for the settlements application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "settlements"
    verbose_name = "Settlements"

    def ready(self):
        # Fail fast on inconsistent rate configuration
        from settlements.policies import get_settlement_rates

        get_settlement_rates()
