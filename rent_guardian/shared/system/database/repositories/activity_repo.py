"""
Activity Log Repository
=======================
Append-only audit trail. One row per scan, per skip decision and per
reclamation attempt. Rows are never updated or deleted here.
"""

import sqlite3
from typing import List, Optional

from rent_guardian.shared.models.account import ActivityAction, ActivityEntry, ExecutionMode
from rent_guardian.shared.system.database.repositories.base import BaseRepository

MAX_LOG_PAGE = 1000


def insert_activity(c: sqlite3.Cursor, entry: ActivityEntry) -> int:
    """Insert on an open cursor so callers can share a transaction."""
    c.execute("""
    INSERT INTO activity_log (action, account, amount, mode, reason, tx_signature, timestamp)
    VALUES (?, ?, ?, ?, ?, ?, ?)
    """, (
        entry.action.value,
        entry.account,
        entry.amount,
        entry.mode.value,
        entry.reason,
        entry.tx_signature,
        entry.timestamp,
    ))
    return c.lastrowid


class ActivityRepository(BaseRepository):

    def init_table(self):
        with self.db.cursor(commit=True) as c:
            c.execute("""
            CREATE TABLE IF NOT EXISTS activity_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                action TEXT NOT NULL CHECK(action IN ('SCAN', 'RECLAIM', 'SKIP')),
                account TEXT NOT NULL DEFAULT '-',
                amount REAL NOT NULL DEFAULT 0.0,
                mode TEXT NOT NULL CHECK(mode IN ('REAL', 'SIMULATION')),
                reason TEXT,
                tx_signature TEXT,
                timestamp REAL NOT NULL
            )
            """)
            c.execute("""
            CREATE INDEX IF NOT EXISTS idx_activity_action_mode
            ON activity_log(action, mode)
            """)

    def append(self, entry: ActivityEntry) -> int:
        with self.db.cursor(commit=True) as c:
            return insert_activity(c, entry)

    def list_entries(
        self,
        limit: int = 100,
        mode: Optional[ExecutionMode] = None,
        action: Optional[ActivityAction] = None,
    ) -> List[ActivityEntry]:
        """Newest first, capped at MAX_LOG_PAGE rows."""
        clauses = []
        params: list = []
        if mode is not None:
            clauses.append("mode = ?")
            params.append(mode.value)
        if action is not None:
            clauses.append("action = ?")
            params.append(action.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(max(0, min(limit, MAX_LOG_PAGE)))

        rows = self._fetchall(
            f"SELECT * FROM activity_log {where} ORDER BY timestamp DESC, id DESC LIMIT ?",
            tuple(params)
        )
        return [ActivityEntry.from_row(r) for r in rows]

    def total_recovered(self) -> float:
        """Sum of REAL-mode RECLAIM amounts: the only source of 'total ever recovered'."""
        row = self._fetchone("""
        SELECT COALESCE(SUM(amount), 0.0) AS total
        FROM activity_log
        WHERE action = 'RECLAIM' AND mode = 'REAL'
        """)
        return float(row['total']) if row else 0.0

    def count(self) -> int:
        row = self._fetchone("SELECT COUNT(*) AS n FROM activity_log")
        return row['n'] if row else 0
