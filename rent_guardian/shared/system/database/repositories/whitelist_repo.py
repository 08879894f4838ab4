import time
from typing import FrozenSet, List, Optional

from rent_guardian.shared.system.database.repositories.base import BaseRepository
from rent_guardian.shared.system.logging import Logger


class WhitelistRepository(BaseRepository):
    """Operator-protected addresses."""

    def init_table(self):
        with self.db.cursor(commit=True) as c:
            c.execute("""
            CREATE TABLE IF NOT EXISTS whitelist (
                address TEXT PRIMARY KEY,
                note TEXT,
                created_at REAL NOT NULL
            )
            """)

    def add(self, address: str, note: Optional[str] = None) -> None:
        """Protect an address. Account statuses are left to the Judge."""
        self._execute("""
        INSERT INTO whitelist (address, note, created_at) VALUES (?, ?, ?)
        ON CONFLICT(address) DO UPDATE SET note = excluded.note
        """, (address, note, time.time()), commit=True)

        Logger.info(f"[DB] Added to whitelist: {address}")

    def remove(self, address: str) -> bool:
        removed = self._execute("DELETE FROM whitelist WHERE address = ?", (address,), commit=True) > 0
        if removed:
            Logger.info(f"[DB] Removed from whitelist: {address}")
        return removed

    def contains(self, address: str) -> bool:
        return self._fetchone("SELECT 1 AS hit FROM whitelist WHERE address = ?", (address,)) is not None

    def addresses(self) -> FrozenSet[str]:
        return frozenset(r['address'] for r in self._fetchall("SELECT address FROM whitelist"))

    def list_entries(self) -> List[dict]:
        return self._fetchall("SELECT address, note, created_at FROM whitelist ORDER BY created_at DESC")
