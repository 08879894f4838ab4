"""
Reclamation Executioner
=======================
Returns rent from idle sponsored accounts to the sponsor.

Workflow (per account):
1. Load the stored record
2. Re-run the Judge with current settings and whitelist
3. Dry run: record what would be reclaimed, touch nothing on-ledger
4. Real run: re-read balance, transfer (balance - fee) to the sponsor,
   then mark RECLAIMED and log the signature in one transaction

Every decision appends exactly one Activity Log entry. The signing key is
only ever handed to LedgerGateway.submit_transfer().
"""

import sqlite3
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional

from rent_guardian.config.settings import Settings
from rent_guardian.modules.guardian.config import GuardianConfig
from rent_guardian.modules.guardian.judge import judge_account
from rent_guardian.shared.infrastructure.ledger_gateway import LedgerGateway
from rent_guardian.shared.infrastructure.operator_wallet import OperatorWallet
from rent_guardian.shared.models import (
    AccountStatus,
    ActivityAction,
    ActivityEntry,
    BatchResult,
    ExecutionMode,
    ReclaimError,
    ReclaimResult,
)
from rent_guardian.shared.system.database.store import GuardianStore
from rent_guardian.shared.system.logging import Logger


class Executioner:
    """
    Reclaims ELIGIBLE accounts, one at a time.

    Usage:
        executioner = Executioner(gateway, store, wallet)
        result = executioner.reclaim_one(address, dry_run=True)
        batch = executioner.reclaim_batch(dry_run=True)
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        store: GuardianStore,
        wallet: OperatorWallet,
        config: Optional[GuardianConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.gateway = gateway
        self.store = store
        self.wallet = wallet
        self.config = config or GuardianConfig()
        self._sleep = sleep

        # One lock per in-flight address: [lock, holders]. Dropped when unused.
        self._locks: Dict[str, List] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _address_lock(self, address: str):
        """Serialise attempts on one address without keeping idle locks around."""
        with self._locks_guard:
            entry = self._locks.setdefault(address, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[address]

    def _skip(self, address: str, mode: ExecutionMode, reason: str, amount: float = 0.0):
        self.store.activity.append(ActivityEntry(
            action=ActivityAction.SKIP,
            account=address,
            amount=amount,
            mode=mode,
            reason=reason,
        ))

    # =========================================================================
    # SINGLE ACCOUNT
    # =========================================================================

    def reclaim_one(self, address: str, dry_run: bool = True) -> ReclaimResult:
        """
        Reclaim one account.

        Args:
            address: Sponsored account address
            dry_run: If True, no ledger contact; records a SIMULATION entry

        Returns:
            ReclaimResult (never raises)
        """
        mode = ExecutionMode.for_dry_run(dry_run)
        Logger.info(f"⚙️ [EXECUTIONER] Processing {address} (mode: {mode.value})")

        with self._address_lock(address):
            try:
                return self._reclaim_locked(address, dry_run, mode)
            except Exception as e:
                Logger.error(f"❌ [EXECUTIONER] Failed to reclaim {address}: {e}")
                try:
                    self._skip(address, mode, f"Error: {e}")
                except Exception as log_error:
                    Logger.error(f"❌ [EXECUTIONER] Could not record failure for {address}: {log_error}")
                return ReclaimResult(
                    success=False,
                    address=address,
                    mode=mode,
                    message=f"Failed to reclaim: {e}",
                    error=ReclaimError.ERROR,
                )

    def _reclaim_locked(self, address: str, dry_run: bool, mode: ExecutionMode) -> ReclaimResult:
        # 1. Load
        account = self.store.accounts.get(address)
        if account is None:
            self._skip(address, mode, "Account not found in database")
            return ReclaimResult(
                success=False,
                address=address,
                mode=mode,
                message="Account not found in database",
                error=ReclaimError.ACCOUNT_NOT_FOUND,
            )

        if account.status is AccountStatus.RECLAIMED:
            self._skip(address, mode, "Already reclaimed")
            return ReclaimResult(
                success=False,
                address=address,
                mode=mode,
                message="Account already reclaimed",
                error=ReclaimError.ALREADY_RECLAIMED,
            )

        # 2. Re-judge against current settings and whitelist
        verdict = judge_account(
            account,
            self.store.settings.load(),
            self.store.whitelist.addresses(),
            config=self.config,
        )
        if not verdict.is_eligible:
            self._skip(address, mode, verdict.reason, amount=account.balance)
            return ReclaimResult(
                success=False,
                address=address,
                mode=mode,
                message=f"Cannot reclaim: {verdict.reason}",
                error=ReclaimError.from_verdict(verdict.status),
            )

        # 3. Dry run
        if dry_run:
            amount = verdict.potential_recovery
            self.store.activity.append(ActivityEntry(
                action=ActivityAction.RECLAIM,
                account=address,
                amount=amount,
                mode=ExecutionMode.SIMULATION,
                reason=f"Simulation: Would reclaim {amount:.6f} SOL",
            ))
            Logger.info(f"🧪 [EXECUTIONER] SIMULATION: Would reclaim {amount:.6f} SOL from {address}")
            return ReclaimResult(
                success=True,
                address=address,
                mode=ExecutionMode.SIMULATION,
                amount=amount,
                message=f"Simulation Success: Would reclaim {amount:.6f} SOL from {address}",
            )

        # 4. Real mode needs a signing key
        if not self.wallet.is_configured:
            Logger.warning("⚠️ [EXECUTIONER] No private key configured - forcing simulation")
            message = "Cannot execute real transaction: OPERATOR_PRIVATE_KEY not configured"
            self._skip(address, ExecutionMode.SIMULATION, message)
            return ReclaimResult(
                success=False,
                address=address,
                mode=ExecutionMode.SIMULATION,
                message=message,
                error=ReclaimError.NO_PRIVATE_KEY,
            )

        # 5. Real transfer
        balance_lamports = self.gateway.get_balance(address)

        if balance_lamports == 0:
            entry = ActivityEntry(
                action=ActivityAction.RECLAIM,
                account=address,
                amount=0.0,
                mode=ExecutionMode.REAL,
                reason="Account already empty - marked as reclaimed",
            )
            if not self.store.accounts.mark_reclaimed(address, entry):
                return self._lost_race(address)
            return ReclaimResult(
                success=True,
                address=address,
                mode=ExecutionMode.REAL,
                message="Account already empty - marked as reclaimed",
            )

        transfer_lamports = balance_lamports - self.config.tx_fee_lamports
        if transfer_lamports <= 0:
            message = (
                f"Balance too low to cover transaction fee "
                f"({balance_lamports} <= {self.config.tx_fee_lamports} lamports)"
            )
            self._skip(address, ExecutionMode.REAL, message, amount=balance_lamports / Settings.LAMPORTS_PER_SOL)
            return ReclaimResult(
                success=False,
                address=address,
                mode=ExecutionMode.REAL,
                message=message,
                error=ReclaimError.INSUFFICIENT_BALANCE,
            )

        amount = transfer_lamports / Settings.LAMPORTS_PER_SOL
        Logger.info(f"📤 [EXECUTIONER] Sending transaction to reclaim {amount:.6f} SOL...")

        signature = self.gateway.submit_transfer(
            source=address,
            destination=self.wallet.address,
            lamports=transfer_lamports,
            signer=self.wallet.keypair,
        )
        Logger.success(f"✅ [EXECUTIONER] Transaction confirmed: {signature}")

        entry = ActivityEntry(
            action=ActivityAction.RECLAIM,
            account=address,
            amount=amount,
            mode=ExecutionMode.REAL,
            reason=f"Successfully reclaimed {amount:.6f} SOL",
            tx_signature=signature,
        )

        explorer_url = self.gateway.explorer_url(signature)

        # Funds have moved: from here on the signature must reach the log
        try:
            marked = self.store.accounts.mark_reclaimed(address, entry)
        except sqlite3.Error as e:
            reason = f"Transfer {signature} confirmed but store update failed: {e}"
            Logger.error(f"❌ [EXECUTIONER] {reason}")
            self.store.activity.append(ActivityEntry(
                action=ActivityAction.SKIP,
                account=address,
                amount=amount,
                mode=ExecutionMode.REAL,
                reason=reason,
                tx_signature=signature,
            ))
            return ReclaimResult(
                success=False,
                address=address,
                mode=ExecutionMode.REAL,
                amount=amount,
                message=reason,
                error=ReclaimError.ERROR,
                tx_signature=signature,
                explorer_url=explorer_url,
            )

        if not marked:
            # Another writer recorded RECLAIMED first; our transfer still landed
            Logger.warning(f"⚠️ [EXECUTIONER] {address} was marked reclaimed concurrently; recording {signature}")
            entry.reason = f"Reclaimed {amount:.6f} SOL (account already marked reclaimed by a concurrent attempt)"
            self.store.activity.append(entry)

        return ReclaimResult(
            success=True,
            address=address,
            mode=ExecutionMode.REAL,
            amount=amount,
            message=f"Success: Reclaimed {amount:.6f} SOL from {address}",
            tx_signature=signature,
            explorer_url=explorer_url,
        )

    def _lost_race(self, address: str) -> ReclaimResult:
        """Another writer recorded RECLAIMED between our read and our update."""
        Logger.warning(f"⚠️ [EXECUTIONER] {address} was reclaimed concurrently")
        self._skip(address, ExecutionMode.REAL, "Already reclaimed by a concurrent attempt")
        return ReclaimResult(
            success=False,
            address=address,
            mode=ExecutionMode.REAL,
            message="Account already reclaimed",
            error=ReclaimError.ALREADY_RECLAIMED,
        )

    # =========================================================================
    # BATCH
    # =========================================================================

    def reclaim_batch(self, dry_run: bool = True) -> BatchResult:
        """
        Reclaim every ELIGIBLE account sequentially. Failures never abort the batch.
        """
        mode = ExecutionMode.for_dry_run(dry_run)
        candidates = self.store.accounts.list_accounts(AccountStatus.ELIGIBLE)
        Logger.section(f"BATCH RECLAIM ({mode.value}): {len(candidates)} eligible")

        batch = BatchResult(total=len(candidates), successful=0, failed=0, total_reclaimed=0.0, mode=mode)

        for i, account in enumerate(candidates):
            if i > 0 and not dry_run and self.config.batch_delay_ms:
                self._sleep(self.config.batch_delay_ms / 1000.0)

            result = self.reclaim_one(account.address, dry_run=dry_run)
            batch.results.append(result)

            if result.success:
                batch.successful += 1
                batch.total_reclaimed += result.amount
            else:
                batch.failed += 1

        Logger.success(
            f"✅ [EXECUTIONER] Batch complete: {batch.successful}/{batch.total} successful, "
            f"{batch.total_reclaimed:.6f} SOL reclaimed"
        )
        return batch
