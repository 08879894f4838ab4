"""
Ledger Gateway
==============
Thin, stateless wrapper around the Solana RPC boundary.

Reads go through RpcConnectionManager (JSON-RPC over requests, provider
failover). The single write, a System Program transfer, is built and signed
with solders and submitted through a solana-py Client.

No business logic lives here: every method either returns plain data or
raises LedgerGatewayError.
"""

import base64
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from rent_guardian.config.settings import Settings
from rent_guardian.shared.infrastructure.rpc_manager import RpcConnectionManager
from rent_guardian.shared.system.logging import Logger

EXPLORER_BASE_URL = "https://explorer.solana.com"


class LedgerGatewayError(Exception):
    """Network, HTTP, RPC-payload or confirmation failure at the ledger boundary."""


@dataclass(frozen=True)
class SignatureInfo:
    signature: str
    err: Optional[Any] = None
    block_time: Optional[int] = None


@dataclass(frozen=True)
class ParsedTransaction:
    signature: str
    block_time: Optional[int]
    instructions: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class AccountState:
    lamports: int
    data_size: int
    owner: str

    @property
    def balance_sol(self) -> float:
        return self.lamports / Settings.LAMPORTS_PER_SOL


def explorer_url(signature: str, kind: str = "tx", rpc_url: Optional[str] = None) -> str:
    """Solana Explorer link; devnet cluster unless the RPC endpoint is mainnet."""
    url = f"{EXPLORER_BASE_URL}/{kind}/{signature}"
    if "mainnet" in (rpc_url or Settings.RPC_URL):
        return url
    return f"{url}?cluster=devnet"


class LedgerGateway:
    """
    Stateless RPC wrapper.

    Usage:
        gateway = LedgerGateway(RpcConnectionManager())
        sigs = gateway.get_recent_signatures(sponsor, limit=100)
    """

    def __init__(
        self,
        rpc_manager: Optional[RpcConnectionManager] = None,
        timeout: Optional[float] = None,
        client_factory: Callable[..., Client] = Client,
    ):
        self.rpc_manager = rpc_manager or RpcConnectionManager()
        self.timeout = timeout or Settings.RPC_TIMEOUT_S
        self._client_factory = client_factory
        self._request_id = 0

    # =========================================================================
    # JSON-RPC
    # =========================================================================

    def _call(self, method: str, params: list) -> Any:
        """POST one JSON-RPC request and return its `result` field."""
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}

        try:
            response = self.rpc_manager.post(payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise LedgerGatewayError(f"{method} failed: {e}") from e

        if response.status_code != 200:
            raise LedgerGatewayError(f"{method} failed: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise LedgerGatewayError(f"{method} returned invalid JSON") from e

        if data.get("error"):
            err = data["error"]
            message = err.get("message", err) if isinstance(err, dict) else err
            raise LedgerGatewayError(f"{method} RPC error: {message}")

        return data.get("result")

    # =========================================================================
    # READS
    # =========================================================================

    def get_recent_signatures(self, address: str, limit: int = 100) -> List[SignatureInfo]:
        """One page of signatures involving `address`, most recent first."""
        result = self._call("getSignaturesForAddress", [address, {"limit": limit}]) or []
        return [
            SignatureInfo(
                signature=item["signature"],
                err=item.get("err"),
                block_time=item.get("blockTime"),
            )
            for item in result
        ]

    def get_parsed_transaction(self, signature: str) -> Optional[ParsedTransaction]:
        """Parsed transaction detail, or None if the ledger no longer has it."""
        result = self._call("getTransaction", [
            signature,
            {"encoding": "jsonParsed", "maxSupportedTransactionVersion": 0, "commitment": "confirmed"},
        ])
        if not result:
            return None

        message = (result.get("transaction") or {}).get("message") or {}
        return ParsedTransaction(
            signature=signature,
            block_time=result.get("blockTime"),
            instructions=list(message.get("instructions") or []),
        )

    def get_account_state(self, address: str) -> Optional[AccountState]:
        """Current lamports, data size and owner; None if the account does not exist."""
        result = self._call("getAccountInfo", [address, {"encoding": "base64"}]) or {}
        value = result.get("value")
        if value is None:
            return None

        data_size = value.get("space")
        if data_size is None:
            raw = value.get("data") or ["", "base64"]
            data_size = len(base64.b64decode(raw[0])) if raw[0] else 0

        return AccountState(
            lamports=int(value.get("lamports", 0)),
            data_size=int(data_size),
            owner=value.get("owner", ""),
        )

    def get_balance(self, address: str) -> int:
        """Balance in lamports (0 for a closed account)."""
        result = self._call("getBalance", [address]) or {}
        return int(result.get("value", 0))

    def get_rent_exempt_minimum(self, data_size: int) -> int:
        """Minimum rent-exempt balance in lamports for `data_size` bytes."""
        result = self._call("getMinimumBalanceForRentExemption", [int(data_size)])
        if result is None:
            raise LedgerGatewayError("getMinimumBalanceForRentExemption returned no result")
        return int(result)

    # =========================================================================
    # WRITE
    # =========================================================================

    def submit_transfer(self, source: str, destination: str, lamports: int, signer: Keypair) -> str:
        """
        Build, sign and submit a System Program transfer, then wait for
        `confirmed` commitment.

        Returns:
            Transaction signature (base58)

        Raises:
            LedgerGatewayError: on build, signing, submission or confirmation failure
        """
        try:
            client = self._client_factory(self.rpc_manager.get_active_url(), timeout=self.timeout)

            ix = transfer(TransferParams(
                from_pubkey=Pubkey.from_string(source),
                to_pubkey=Pubkey.from_string(destination),
                lamports=int(lamports),
            ))

            blockhash = client.get_latest_blockhash(commitment=Confirmed).value.blockhash
            msg = Message.new_with_blockhash([ix], signer.pubkey(), blockhash)
            tx = Transaction([signer], msg, blockhash)

            sig = client.send_transaction(
                tx, opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed)
            ).value
            Logger.info(f"📡 [LEDGER] Transaction sent: {sig}")

            status = client.confirm_transaction(sig, commitment=Confirmed).value
            if status and status[0] is not None and status[0].err is not None:
                raise LedgerGatewayError(f"Transaction {sig} failed on-chain: {status[0].err}")

            return str(sig)

        except LedgerGatewayError:
            raise
        except Exception as e:
            raise LedgerGatewayError(f"Transfer failed: {e}") from e

    def explorer_url(self, signature: str, kind: str = "tx") -> str:
        return explorer_url(signature, kind, self.rpc_manager.get_active_url())
