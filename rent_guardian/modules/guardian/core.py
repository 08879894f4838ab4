"""
Rent Guardian Core
==================
Facade over the scan → judge → reclaim pipeline.

Architecture:
- LedgerGateway, GuardianStore and OperatorWallet are injected
  (constructed from Settings when omitted)
- AccountScanner writes new rows (discovery phase)
- judge_account() classifies them (judgment phase)
- Executioner re-judges and reclaims (execution phase)
"""

from typing import List, Optional

from rent_guardian.modules.guardian.config import GuardianConfig
from rent_guardian.modules.guardian.executioner import Executioner
from rent_guardian.modules.guardian.judge import judge_account
from rent_guardian.modules.guardian.scanner import AccountScanner
from rent_guardian.shared.infrastructure.ledger_gateway import LedgerGateway
from rent_guardian.shared.infrastructure.operator_wallet import OperatorWallet
from rent_guardian.shared.models import (
    AccountStatus,
    ActivityAction,
    ActivityEntry,
    BatchResult,
    DiscoveryResult,
    ExecutionMode,
    GuardianSettings,
    GuardianStats,
    JudgeSummary,
    ReclaimResult,
    SponsoredAccount,
    Verdict,
)
from rent_guardian.shared.system.database.repositories.settings_repo import DRY_RUN_MODE
from rent_guardian.shared.system.database.store import GuardianStore
from rent_guardian.shared.system.logging import Logger


class RentGuardian:
    """
    Operator-facing entry point.

    Usage:
        guardian = RentGuardian()
        guardian.scan()
        guardian.judge_all()
        batch = guardian.reclaim_batch()   # dry_run from settings
        stats = guardian.get_stats()
    """

    def __init__(
        self,
        gateway: Optional[LedgerGateway] = None,
        store: Optional[GuardianStore] = None,
        wallet: Optional[OperatorWallet] = None,
        config: Optional[GuardianConfig] = None,
    ):
        self.config = config or GuardianConfig()
        self.gateway = gateway or LedgerGateway()
        self.store = store or GuardianStore(default_min_age_days=self.config.default_min_age_days)
        self.wallet = wallet or OperatorWallet()

        self.scanner = AccountScanner(
            self.gateway, self.store, self.config, simulation=not self.wallet.is_configured
        )
        self.executioner = Executioner(self.gateway, self.store, self.wallet, self.config)

        Logger.info(f"[GUARDIAN] Core initialized ({self.wallet!r})")

    # =========================================================================
    # PIPELINE
    # =========================================================================

    def scan(self, sponsor_address: Optional[str] = None) -> DiscoveryResult:
        """Discover sponsored accounts; defaults to the operator wallet's address."""
        sponsor = sponsor_address or self.wallet.address
        if not sponsor:
            return DiscoveryResult(
                success=False,
                total_count=self.store.accounts.count(),
                error="No sponsor address: set OPERATOR_PUBLIC_KEY or pass one explicitly",
            )
        return self.scanner.discover(sponsor)

    def _judge_candidates(self):
        settings = self.store.settings.load()
        whitelist = self.store.whitelist.addresses()
        for account in self.store.accounts.list_unreclaimed():
            yield account, judge_account(account, settings, whitelist, config=self.config)

    def judge_all(self) -> JudgeSummary:
        """Re-judge every non-RECLAIMED account and persist the new statuses."""
        summary = JudgeSummary()
        for account, verdict in self._judge_candidates():
            summary.total += 1
            summary.count(verdict.status)
            self.store.accounts.update_status(account.address, verdict.status)
            Logger.debug(f"[JUDGE] {account.address}: {verdict.status.value} - {verdict.reason}")

        Logger.info(
            f"⚖️ [JUDGE] {summary.total} judged: {summary.eligible} eligible, "
            f"{summary.protected} protected, {summary.active} active, "
            f"{summary.skipped} skipped, {summary.whitelisted} whitelisted"
        )
        return summary

    def get_eligible(self) -> List[Verdict]:
        """Fresh ELIGIBLE verdicts. Read-only: nothing is persisted."""
        return [verdict for _, verdict in self._judge_candidates() if verdict.is_eligible]

    def _resolve_dry_run(self, dry_run: Optional[bool]) -> bool:
        return self.store.settings.is_dry_run_enabled() if dry_run is None else dry_run

    def reclaim_one(self, address: str, dry_run: Optional[bool] = None) -> ReclaimResult:
        return self.executioner.reclaim_one(address, dry_run=self._resolve_dry_run(dry_run))

    def reclaim_batch(self, dry_run: Optional[bool] = None) -> BatchResult:
        return self.executioner.reclaim_batch(dry_run=self._resolve_dry_run(dry_run))

    def get_stats(self) -> GuardianStats:
        """
        total_recovered sums REAL RECLAIM log amounts; the rest is derived
        from current stored statuses.
        """
        stats = GuardianStats(total_recovered=self.store.activity.total_recovered())
        fee = self.config.tx_fee_sol
        for account in self.store.accounts.list_accounts():
            if account.status is AccountStatus.ELIGIBLE:
                stats.eligible_count += 1
                stats.potential_recovery += max(0.0, account.balance - fee)
            elif account.status is AccountStatus.PROTECTED:
                stats.protected_count += 1
            elif account.status is AccountStatus.ACTIVE:
                stats.active_count += 1
        return stats

    # =========================================================================
    # SETTINGS & WHITELIST
    # =========================================================================

    def get_settings(self) -> GuardianSettings:
        return self.store.settings.load()

    def update_setting(self, key: str, value: str) -> None:
        """Raises ValueError for keys other than min_age_days / dry_run_mode."""
        self.store.settings.set(key, value)

    def is_dry_run_enabled(self) -> bool:
        return self.store.settings.is_dry_run_enabled()

    def set_dry_run_mode(self, enabled: bool) -> None:
        self.store.settings.set(DRY_RUN_MODE, "true" if enabled else "false")
        Logger.info(f"[EXECUTIONER] Dry run mode: {'ENABLED' if enabled else 'DISABLED'}")

    def is_real_mode_available(self) -> bool:
        return self.wallet.is_configured

    def _rejudge(self, address: str) -> None:
        """Refresh one tracked account after a whitelist change."""
        account = self.store.accounts.get(address)
        if account is None or account.status is AccountStatus.RECLAIMED:
            return
        verdict = judge_account(
            account,
            self.store.settings.load(),
            self.store.whitelist.addresses(),
            config=self.config,
        )
        self.store.accounts.update_status(address, verdict.status)

    def add_to_whitelist(self, address: str, note: Optional[str] = None) -> None:
        self.store.whitelist.add(address, note)
        self._rejudge(address)

    def remove_from_whitelist(self, address: str) -> bool:
        removed = self.store.whitelist.remove(address)
        if removed:
            self._rejudge(address)
        return removed

    def list_whitelist(self) -> List[dict]:
        return self.store.whitelist.list_entries()

    # =========================================================================
    # LISTINGS
    # =========================================================================

    def list_accounts(self, status: Optional[AccountStatus] = None) -> List[SponsoredAccount]:
        return self.store.accounts.list_accounts(status)

    def list_activity(
        self,
        limit: int = 100,
        mode: Optional[ExecutionMode] = None,
        action: Optional[ActivityAction] = None,
    ) -> List[ActivityEntry]:
        return self.store.activity.list_entries(limit=limit, mode=mode, action=action)
