"""
Pytest fixtures for wallet tests.

Sections:
    - Wallet Fixtures: Wallets funded through the ledger
    - Test Data Fixtures: Vendor ids and idempotency keys
"""

import uuid
from decimal import Decimal

import pytest

from settlements.state_machines import WalletTransactionSource
from settlements.wallet import WalletCreditParams, wallet_ledger
from settlements.wallet.models import VendorWallet


# ==========================================================================
# Wallet Fixtures
# ==========================================================================


@pytest.fixture
def funded_wallet(db, vendor_id):
    """Wallet holding ₹1,000 from one milestone release."""
    wallet_ledger.credit_wallet(
        WalletCreditParams(
            vendor_id=vendor_id,
            amount=Decimal("1000.00"),
            source=WalletTransactionSource.MILESTONE_RELEASE,
            idempotency_key=f"fund-{vendor_id}",
        )
    )
    return VendorWallet.objects.get(vendor_id=vendor_id)


# ==========================================================================
# Test Data Fixtures
# ==========================================================================


@pytest.fixture
def vendor_id():
    """Generate a random vendor UUID."""
    return uuid.uuid4()


@pytest.fixture
def unique_idempotency_key():
    """Generate a unique idempotency key for testing."""
    return f"test-{uuid.uuid4()}"
