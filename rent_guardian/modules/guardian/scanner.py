"""
Account Scanner - Sponsorship Discovery
=======================================
Finds accounts the sponsor paid to create and reconciles them against
their current on-ledger state.

Safety Guardrails:
1. One signature page per run (max_signatures_per_scan)
2. Per-transaction failures are skipped, never fatal
3. Per-account state failures skip that account for this run
4. All writes for a run land in one transaction, or none do
5. A RECLAIMED record is never demoted
"""

import sqlite3
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from rent_guardian.config.settings import Settings
from rent_guardian.modules.guardian.config import GuardianConfig
from rent_guardian.shared.infrastructure.ledger_gateway import (
    AccountState,
    LedgerGateway,
    LedgerGatewayError,
    ParsedTransaction,
)
from rent_guardian.shared.models import (
    ACCOUNTLESS,
    AccountStatus,
    ActivityAction,
    ActivityEntry,
    DiscoveryResult,
    ExecutionMode,
    SponsoredAccount,
)
from rent_guardian.shared.system.database.store import GuardianStore
from rent_guardian.shared.system.logging import Logger

SYSTEM_PROGRAM = "system"
CREATE_INSTRUCTIONS = ("createAccount", "createAccountWithSeed")


@dataclass
class CreatedAccount:
    """A create-account instruction paid for by the sponsor."""
    address: str
    funded_lamports: int
    rent_exempt_lamports: int
    created_at: float


class AccountScanner:
    """
    Discovers sponsored accounts from the sponsor's recent history.

    Usage:
        scanner = AccountScanner(gateway, store)
        result = scanner.discover(sponsor_address)
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        store: GuardianStore,
        config: Optional[GuardianConfig] = None,
        simulation: bool = True,
    ):
        self.gateway = gateway
        self.store = store
        self.config = config or GuardianConfig()
        # Mode stamped on SCAN entries (SIMULATION when no signing key is loaded)
        self.simulation = simulation

    def discover(self, sponsor_address: str) -> DiscoveryResult:
        """
        Run one discovery pass for `sponsor_address`.

        Returns:
            DiscoveryResult. On a failed signature fetch, success=False and
            nothing is written.
        """
        Logger.info(f"🔍 [SCANNER] Starting scan for sponsor {sponsor_address}")

        try:
            signatures = self.gateway.get_recent_signatures(
                sponsor_address, limit=self.config.max_signatures_per_scan
            )
        except LedgerGatewayError as e:
            Logger.error(f"❌ [SCANNER] Signature fetch failed: {e}")
            return DiscoveryResult(success=False, total_count=self.store.accounts.count(), error=str(e))

        Logger.info(f"   [SCANNER] Found {len(signatures)} recent transactions")

        rent_cache: Dict[int, int] = {}
        discovered: Dict[str, CreatedAccount] = {}
        skipped = 0

        for i, sig in enumerate(signatures):
            if sig.err:
                continue

            if i > 0 and self.config.rpc_request_delay_ms:
                time.sleep(self.config.rpc_request_delay_ms / 1000.0)

            try:
                tx = self.gateway.get_parsed_transaction(sig.signature)
                if tx is None:
                    continue
                created_at = float(sig.block_time or tx.block_time or time.time())
                for created in self._extract_created(tx, sponsor_address, created_at, rent_cache):
                    # Most recent creation wins
                    discovered.setdefault(created.address, created)
            except LedgerGatewayError as e:
                Logger.warning(f"⚠️ [SCANNER] Skipping tx {sig.signature[:16]}...: {e}")
                skipped += 1

        Logger.info(f"   [SCANNER] Discovered {len(discovered)} sponsored accounts")

        created_rows, updated_rows, state_skips = self._reconcile(discovered.values())
        skipped += state_skips

        mode = ExecutionMode.for_dry_run(self.simulation)
        entry = ActivityEntry(
            action=ActivityAction.SCAN,
            account=ACCOUNTLESS,
            mode=mode,
            reason=(
                f"Scan complete for {sponsor_address}: {len(created_rows)} new, "
                f"{len(updated_rows)} updated, {skipped} skipped"
            ),
        )

        try:
            self.store.accounts.save_scan(created_rows, updated_rows, entry)
        except sqlite3.Error as e:
            return DiscoveryResult(
                success=False,
                skipped_count=skipped,
                total_count=self.store.accounts.count(),
                error=f"Store write failed: {e}",
            )

        total = self.store.accounts.count()
        Logger.success(
            f"✅ [SCANNER] Scan complete: {len(created_rows)} new, "
            f"{len(updated_rows)} updated, {total} total"
        )

        return DiscoveryResult(
            success=True,
            new_count=len(created_rows),
            updated_count=len(updated_rows),
            total_count=total,
            skipped_count=skipped,
        )

    def _extract_created(
        self,
        tx: ParsedTransaction,
        sponsor_address: str,
        created_at: float,
        rent_cache: Dict[int, int],
    ) -> List[CreatedAccount]:
        """Sponsor-paid createAccount / createAccountWithSeed instructions in `tx`."""
        found = []
        for ix in tx.instructions:
            if ix.get("program") != SYSTEM_PROGRAM:
                continue
            parsed = ix.get("parsed")
            if not isinstance(parsed, dict) or parsed.get("type") not in CREATE_INSTRUCTIONS:
                continue
            info = parsed.get("info") or {}
            if info.get("source") != sponsor_address or not info.get("newAccount"):
                continue

            space = int(info.get("space") or 0)
            if space not in rent_cache:
                rent_cache[space] = self.gateway.get_rent_exempt_minimum(space)

            found.append(CreatedAccount(
                address=info["newAccount"],
                funded_lamports=int(info.get("lamports") or 0),
                rent_exempt_lamports=rent_cache[space],
                created_at=created_at,
            ))
            Logger.debug(f"   [SCANNER] Found sponsored account ({parsed['type']}): {info['newAccount']}")

        return found

    def _reconcile(self, discovered: Iterable[CreatedAccount]):
        """
        Compare discoveries with current ledger state and stored records.

        Returns:
            (created, updated, skipped) where created/updated are rows to write
        """
        created: List[SponsoredAccount] = []
        updated: List[SponsoredAccount] = []
        skipped = 0
        now = time.time()

        for found in discovered:
            try:
                state = self.gateway.get_account_state(found.address)
            except LedgerGatewayError as e:
                Logger.warning(f"⚠️ [SCANNER] State unavailable for {found.address[:8]}..., skipping: {e}")
                skipped += 1
                continue

            balance = state.balance_sol if state else 0.0
            closed = self._is_closed(state)
            existing = self.store.accounts.get(found.address)

            if existing is not None:
                # last_activity tracks the most recent observed balance change
                changed = balance != existing.balance
                updated.append(SponsoredAccount(
                    address=existing.address,
                    balance=balance,
                    rent_exempt_min=existing.rent_exempt_min,
                    last_activity=now if changed else existing.last_activity,
                    status=AccountStatus.RECLAIMED if closed else existing.status,
                    detected_at=existing.detected_at,
                ))
                continue

            floor = found.rent_exempt_lamports / Settings.LAMPORTS_PER_SOL
            created.append(SponsoredAccount(
                address=found.address,
                balance=balance,
                rent_exempt_min=floor,
                last_activity=found.created_at,
                status=self._initial_status(closed, balance, floor),
                detected_at=now,
            ))

        return created, updated, skipped

    @staticmethod
    def _is_closed(state: Optional[AccountState]) -> bool:
        return state is None or state.lamports == 0

    def _initial_status(self, closed: bool, balance: float, floor: float) -> AccountStatus:
        """Conservative first-pass classification. The Judge refines it later."""
        if closed:
            return AccountStatus.RECLAIMED
        if balance > floor * self.config.initial_protect_multiplier:
            return AccountStatus.PROTECTED
        return AccountStatus.ACTIVE
