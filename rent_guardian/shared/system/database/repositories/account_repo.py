"""
Sponsored Account Repository
============================
Tracks sponsored accounts through the reclamation workflow.

State machine enforcement:
- update_status() can never write or leave RECLAIMED (AccountStatus.can_transition_to)
- mark_reclaimed() is the single Executioner write site for RECLAIMED and
  is conditional on the row not already being RECLAIMED
- save_scan() may promote to RECLAIMED (closure observed on-ledger) but
  never demotes a RECLAIMED row (same check)
"""

import time
from typing import List, Optional

from rent_guardian.shared.models.account import (
    AccountStatus,
    ActivityEntry,
    SponsoredAccount,
    StatusTransitionError,
)
from rent_guardian.shared.system.database.repositories.activity_repo import insert_activity
from rent_guardian.shared.system.database.repositories.base import BaseRepository
from rent_guardian.shared.system.logging import Logger

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in AccountStatus)


class AccountRepository(BaseRepository):
    """
    Repository for sponsored account rows.

    Balances are stored in SOL; timestamps are unix seconds.
    """

    def init_table(self):
        """Initialize sponsored_accounts table."""
        with self.db.cursor(commit=True) as c:
            c.execute(f"""
            CREATE TABLE IF NOT EXISTS sponsored_accounts (
                address TEXT PRIMARY KEY,
                balance REAL NOT NULL DEFAULT 0.0,
                rent_exempt_min REAL NOT NULL,
                last_activity REAL NOT NULL,
                status TEXT NOT NULL CHECK(status IN ({_STATUS_VALUES})) DEFAULT 'ACTIVE',
                detected_at REAL NOT NULL
            )
            """)
            c.execute("""
            CREATE INDEX IF NOT EXISTS idx_sponsored_status
            ON sponsored_accounts(status)
            """)

            Logger.debug("[DB] sponsored_accounts table initialized")

    # =========================================================================
    # READS
    # =========================================================================

    def get(self, address: str) -> Optional[SponsoredAccount]:
        row = self._fetchone("SELECT * FROM sponsored_accounts WHERE address = ?", (address,))
        return SponsoredAccount.from_row(row) if row else None

    def list_accounts(self, status: Optional[AccountStatus] = None) -> List[SponsoredAccount]:
        """All accounts (optionally filtered), most recently detected first."""
        if status is None:
            rows = self._fetchall("SELECT * FROM sponsored_accounts ORDER BY detected_at DESC")
        else:
            rows = self._fetchall(
                "SELECT * FROM sponsored_accounts WHERE status = ? ORDER BY detected_at DESC",
                (status.value,)
            )
        return [SponsoredAccount.from_row(r) for r in rows]

    def list_unreclaimed(self) -> List[SponsoredAccount]:
        rows = self._fetchall(
            "SELECT * FROM sponsored_accounts WHERE status != 'RECLAIMED' ORDER BY detected_at ASC"
        )
        return [SponsoredAccount.from_row(r) for r in rows]

    def count(self) -> int:
        row = self._fetchone("SELECT COUNT(*) AS n FROM sponsored_accounts")
        return row['n'] if row else 0

    # =========================================================================
    # WRITES
    # =========================================================================

    def update_status(self, address: str, status: AccountStatus) -> bool:
        """
        Persist a judge disposition.

        Returns False when the row is missing or the current status may not
        move to `status` (a RECLAIMED row). Raises StatusTransitionError for a
        RECLAIMED target.
        """
        if status is AccountStatus.RECLAIMED:
            raise StatusTransitionError(
                "RECLAIMED may only be written by mark_reclaimed() or scan reconciliation"
            )
        current = self.get(address)
        if current is None or not current.status.can_transition_to(status):
            return False
        return self._execute("""
        UPDATE sponsored_accounts SET status = ?
        WHERE address = ? AND status != 'RECLAIMED'
        """, (status.value, address), commit=True) > 0

    def mark_reclaimed(self, address: str, entry: Optional[ActivityEntry] = None) -> bool:
        """
        Transition an account to RECLAIMED and append its audit entry atomically.

        The update is conditional: if another attempt already reclaimed the
        account, nothing is written (no status change, no log entry) and
        False is returned.
        """
        with self.db.cursor(commit=True) as c:
            c.execute("""
            UPDATE sponsored_accounts
            SET status = 'RECLAIMED', balance = 0.0, last_activity = ?
            WHERE address = ? AND status != 'RECLAIMED'
            """, (time.time(), address))

            if c.rowcount == 0:
                return False

            if entry is not None:
                insert_activity(c, entry)

        return True

    def save_scan(
        self,
        created: List[SponsoredAccount],
        updated: List[SponsoredAccount],
        entry: ActivityEntry,
    ) -> None:
        """
        Apply one scan run: inserts, updates and the SCAN log entry in a
        single transaction. Either the whole run lands or none of it does.
        """
        with self.db.cursor(commit=True) as c:
            for account in created:
                c.execute("""
                INSERT INTO sponsored_accounts (
                    address, balance, rent_exempt_min, last_activity, status, detected_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """, (
                    account.address,
                    account.balance,
                    account.rent_exempt_min,
                    account.last_activity,
                    account.status.value,
                    account.detected_at,
                ))

            for account in updated:
                c.execute("SELECT status FROM sponsored_accounts WHERE address = ?", (account.address,))
                row = c.fetchone()
                if row is None:
                    continue
                current = AccountStatus(row['status'])
                status = account.status if current.can_transition_to(account.status) else current
                c.execute("""
                UPDATE sponsored_accounts
                SET balance = ?, last_activity = ?, status = ?
                WHERE address = ?
                """, (
                    account.balance,
                    account.last_activity,
                    status.value,
                    account.address,
                ))

            insert_activity(c, entry)
