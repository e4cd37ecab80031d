"""
Tests for wallet models.

Covers the balance constraints of VendorWallet and the append-only
behaviour of WalletTransaction.
"""

from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from settlements.state_machines import WalletTransactionType
from settlements.wallet import ImmutableRecordError
from settlements.wallet.models import WalletTransaction
from settlements.wallet.tests.factories import VendorWalletFactory


class TestVendorWallet:
    """Tests for VendorWallet."""

    def test_available_balance_excludes_pending_withdrawal(self, db):
        wallet = VendorWalletFactory(
            balance=Decimal("1000.00"),
            pending_withdrawal=Decimal("300.00"),
        )

        assert wallet.available_balance == Decimal("700.00")

    def test_one_wallet_per_vendor(self, db):
        wallet = VendorWalletFactory()

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                VendorWalletFactory(vendor_id=wallet.vendor_id)

    def test_pending_withdrawal_cannot_exceed_balance(self, db):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                VendorWalletFactory(
                    balance=Decimal("100.00"),
                    pending_withdrawal=Decimal("200.00"),
                )

    def test_negative_pending_withdrawal_rejected(self, db):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                VendorWalletFactory(pending_withdrawal=Decimal("-1.00"))


class TestWalletTransaction:
    """Tests for WalletTransaction immutability."""

    def test_save_existing_entry_raises(self, funded_wallet):
        entry = funded_wallet.transactions.get()
        entry.notes = "edited"

        with pytest.raises(ImmutableRecordError):
            entry.save()

    def test_delete_raises(self, funded_wallet):
        entry = funded_wallet.transactions.get()

        with pytest.raises(ImmutableRecordError):
            entry.delete()

        assert WalletTransaction.objects.filter(id=entry.id).exists()

    def test_signed_amount(self, funded_wallet):
        entry = funded_wallet.transactions.get()

        assert entry.txn_type == WalletTransactionType.CREDIT
        assert entry.signed_amount == Decimal("1000.00")

        debit = WalletTransaction(
            txn_type=WalletTransactionType.DEBIT, amount=Decimal("250.00")
        )
        assert debit.signed_amount == Decimal("-250.00")
