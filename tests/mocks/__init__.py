"""
Rent Guardian Test Mocks
========================
Reusable fakes for isolated testing.
"""

from tests.mocks.mock_ledger import MockLedgerGateway, create_account_ix, rent_for_size

__all__ = [
    "MockLedgerGateway",
    "create_account_ix",
    "rent_for_size",
]
