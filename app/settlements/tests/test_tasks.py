"""
Tests for settlement Celery tasks.

Tasks are called directly; the Celery worker is not involved.
"""

import uuid
from decimal import Decimal

from settlements.models import VendorWallet
from settlements.state_machines import CreditFailureStatus, WalletTransactionSource
from settlements.tasks import audit_vendor_wallets, retry_wallet_credit_failures
from settlements.tests.factories import WalletCreditFailureFactory
from settlements.wallet import WalletCreditParams, wallet_ledger


class TestAuditVendorWallets:
    def test_returns_inconsistent_wallet_ids(self, db):
        vendor_id = uuid.uuid4()
        wallet_ledger.credit_wallet(
            WalletCreditParams(
                vendor_id=vendor_id,
                amount=Decimal("500.00"),
                source=WalletTransactionSource.MILESTONE_RELEASE,
                idempotency_key="audit-credit",
            )
        )
        wallet = VendorWallet.objects.get(vendor_id=vendor_id)
        VendorWallet.objects.filter(id=wallet.id).update(balance=Decimal("501.00"))

        result = audit_vendor_wallets()

        assert result == {
            "wallets_checked": 1,
            "inconsistent_wallet_ids": [str(wallet.id)],
        }

    def test_no_wallets(self, db):
        assert audit_vendor_wallets() == {
            "wallets_checked": 0,
            "inconsistent_wallet_ids": [],
        }


class TestRetryWalletCreditFailures:
    def test_resolves_pending_failures(self, db):
        failure = WalletCreditFailureFactory()

        result = retry_wallet_credit_failures()

        assert result == {"attempted": 1, "resolved": 1, "still_pending": 0}
        failure.refresh_from_db()
        assert failure.status == CreditFailureStatus.RESOLVED
