"""
Rent Guardian Test Configuration
================================
Shared fixtures and pytest markers for the test suite.
"""

import os
import sys
import tempfile
import time

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Settings reads the environment on first import: keep tests off real keys and paths
_TEST_DIR = tempfile.mkdtemp(prefix="rent_guardian_tests_")
os.environ["GUARDIAN_SILENT_MODE"] = "true"
os.environ["GUARDIAN_LOG_DIR"] = os.path.join(_TEST_DIR, "logs")
os.environ["GUARDIAN_DB_PATH"] = os.path.join(_TEST_DIR, "default.db")
os.environ["OPERATOR_PRIVATE_KEY"] = ""
os.environ["OPERATOR_PUBLIC_KEY"] = ""

from solders.keypair import Keypair  # noqa: E402
from solders.pubkey import Pubkey  # noqa: E402

from rent_guardian.modules.guardian.config import GuardianConfig  # noqa: E402
from rent_guardian.shared.infrastructure.operator_wallet import OperatorWallet  # noqa: E402
from rent_guardian.shared.models import AccountStatus, SponsoredAccount  # noqa: E402
from rent_guardian.shared.system.database.core import DatabaseCore  # noqa: E402
from rent_guardian.shared.system.database.store import GuardianStore  # noqa: E402
from tests.mocks import MockLedgerGateway  # noqa: E402

DAY = 86_400
RENT_165 = 0.00203928  # Rent floor for a 165-byte account, in SOL


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture
def store(tmp_path):
    """GuardianStore on a throwaway SQLite file."""
    return GuardianStore(DatabaseCore(str(tmp_path / "guardian.db")))


@pytest.fixture
def ledger():
    return MockLedgerGateway()


@pytest.fixture
def sponsor_keypair():
    return Keypair()


@pytest.fixture
def sponsor(sponsor_keypair):
    return str(sponsor_keypair.pubkey())


@pytest.fixture
def signing_wallet(sponsor_keypair):
    """Wallet with a signing key: real mode available."""
    return OperatorWallet.from_keypair(sponsor_keypair)


@pytest.fixture
def readonly_wallet(sponsor):
    """Wallet with only a sponsor address: real mode unavailable."""
    return OperatorWallet(private_key="", public_key=sponsor)


@pytest.fixture
def config():
    """Default thresholds with no inter-attempt delays."""
    return GuardianConfig(batch_delay_ms=0)


@pytest.fixture
def new_address():
    """Factory for fresh valid addresses."""
    return lambda: str(Pubkey.new_unique())


@pytest.fixture
def make_account(new_address):
    """
    Factory for SponsoredAccount records.

    Usage:
        acct = make_account(balance=RENT_165, idle_days=92)
    """
    def _make(
        address=None,
        balance=RENT_165,
        rent_exempt_min=RENT_165,
        idle_days=92.0,
        status=AccountStatus.ACTIVE,
        now=None,
    ):
        now = time.time() if now is None else now
        return SponsoredAccount(
            address=address or new_address(),
            balance=balance,
            rent_exempt_min=rent_exempt_min,
            last_activity=now - idle_days * DAY,
            status=status,
            detected_at=now - idle_days * DAY,
        )

    return _make


@pytest.fixture
def seed_accounts(store):
    """Insert SponsoredAccount records directly, bypassing the scanner (no log rows)."""
    def _seed(*accounts):
        with store.core.cursor(commit=True) as c:
            for a in accounts:
                c.execute(
                    "INSERT INTO sponsored_accounts VALUES (?, ?, ?, ?, ?, ?)",
                    (a.address, a.balance, a.rent_exempt_min, a.last_activity, a.status.value, a.detected_at),
                )
        return accounts

    return _seed
