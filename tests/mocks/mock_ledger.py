"""
Mock Ledger Gateway
===================
Fake LedgerGateway for testing the pipeline without network calls.
"""

from typing import Any, Dict, List, Optional

from rent_guardian.shared.infrastructure.ledger_gateway import (
    AccountState,
    LedgerGatewayError,
    ParsedTransaction,
    SignatureInfo,
)

LAMPORTS_PER_SOL = 1_000_000_000


def rent_for_size(data_size: int) -> int:
    """Ledger rent-exempt formula: (128 + size) bytes * 3480 lamports/byte-year * 2 years."""
    return (128 + data_size) * 3480 * 2


def create_account_ix(
    source: str,
    new_account: str,
    lamports: int,
    space: int = 165,
    with_seed: bool = False,
    program: str = "system",
) -> Dict[str, Any]:
    """jsonParsed System Program create instruction."""
    info = {
        "source": source,
        "newAccount": new_account,
        "lamports": lamports,
        "space": space,
        "owner": "11111111111111111111111111111111",
    }
    if with_seed:
        info.update({"base": source, "seed": "guardian"})
    return {
        "program": program,
        "programId": "11111111111111111111111111111111",
        "parsed": {"type": "createAccountWithSeed" if with_seed else "createAccount", "info": info},
    }


class MockLedgerGateway:
    """
    In-memory ledger.

    Usage:
        ledger = MockLedgerGateway()
        ledger.add_transaction("sig1", [create_account_ix(sponsor, addr, 2039280)], block_time=...)
        ledger.set_account(addr, lamports=2039280, data_size=165)
    """

    def __init__(self):
        self.signatures: List[SignatureInfo] = []
        self.transactions: Dict[str, ParsedTransaction] = {}
        self.accounts: Dict[str, AccountState] = {}

        # Failure injection
        self.fail_signatures = False
        self.fail_transactions: set = set()
        self.fail_state: set = set()
        self.fail_rent = False
        self.submit_error: Optional[Exception] = None

        # Call recording
        self.submitted: List[Dict[str, Any]] = []
        self.rent_queries: List[int] = []
        self.balance_queries: List[str] = []
        self.call_count = 0

    # -- setup ---------------------------------------------------------------

    def add_transaction(self, signature: str, instructions: list, block_time: Optional[int] = None, err=None):
        self.signatures.append(SignatureInfo(signature=signature, err=err, block_time=block_time))
        self.transactions[signature] = ParsedTransaction(
            signature=signature, block_time=block_time, instructions=instructions
        )

    def set_account(self, address: str, lamports: int, data_size: int = 165):
        self.accounts[address] = AccountState(
            lamports=lamports, data_size=data_size, owner="11111111111111111111111111111111"
        )

    def close_account(self, address: str):
        self.accounts.pop(address, None)

    # -- LedgerGateway interface ----------------------------------------------

    def get_recent_signatures(self, address: str, limit: int = 100) -> List[SignatureInfo]:
        self.call_count += 1
        if self.fail_signatures:
            raise LedgerGatewayError("getSignaturesForAddress failed: HTTP 429")
        return self.signatures[:limit]

    def get_parsed_transaction(self, signature: str) -> Optional[ParsedTransaction]:
        self.call_count += 1
        if signature in self.fail_transactions:
            raise LedgerGatewayError(f"getTransaction failed: timeout ({signature})")
        return self.transactions.get(signature)

    def get_account_state(self, address: str) -> Optional[AccountState]:
        self.call_count += 1
        if address in self.fail_state:
            raise LedgerGatewayError("getAccountInfo failed: timeout")
        return self.accounts.get(address)

    def get_balance(self, address: str) -> int:
        self.call_count += 1
        self.balance_queries.append(address)
        state = self.accounts.get(address)
        return state.lamports if state else 0

    def get_rent_exempt_minimum(self, data_size: int) -> int:
        self.call_count += 1
        self.rent_queries.append(data_size)
        if self.fail_rent:
            raise LedgerGatewayError("getMinimumBalanceForRentExemption failed")
        return rent_for_size(data_size)

    def submit_transfer(self, source: str, destination: str, lamports: int, signer) -> str:
        self.call_count += 1
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append({
            "source": source,
            "destination": destination,
            "lamports": lamports,
            "signer": str(signer.pubkey()),
        })
        state = self.accounts.get(source)
        if state:
            self.set_account(source, max(0, state.lamports - lamports - 5000), state.data_size)
        return f"MockSig{len(self.submitted)}" + "1" * 40

    def explorer_url(self, signature: str, kind: str = "tx") -> str:
        return f"https://explorer.solana.com/{kind}/{signature}?cluster=devnet"
