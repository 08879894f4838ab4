import sqlite3
import os
from contextlib import contextmanager
from typing import Optional

from rent_guardian.config.settings import Settings
from rent_guardian.shared.system.logging import Logger


class DatabaseCore:
    """
    Core Database Connection Manager.
    Handles WAL mode and hands out per-operation connections.

    Constructed explicitly and passed to repositories, so tests can point
    it at a temporary file.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or Settings.DB_PATH
        self._ensure_data_dir()
        self._init_wal_mode()

    def _ensure_data_dir(self):
        directory = os.path.dirname(os.path.abspath(self.db_path))
        if not os.path.exists(directory):
            try:
                os.makedirs(directory)
            except OSError as e:
                Logger.error(f"[DB] ❌ Failed to create data dir: {e}")

    def _init_wal_mode(self):
        """Enable Write-Ahead Logging for concurrency."""
        try:
            with self.cursor(commit=True) as c:
                c.execute("PRAGMA journal_mode=WAL;")
                c.execute("PRAGMA synchronous=NORMAL;")
        except sqlite3.Error as e:
            Logger.warning(f"[DB] ⚠️ Failed to enable WAL mode: {e}")

    def get_connection(self) -> sqlite3.Connection:
        """Get a configured SQLite connection."""
        conn = sqlite3.connect(self.db_path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def cursor(self, commit=False):
        """
        Context manager for database interaction.

        Everything executed on one cursor shares a connection, so a
        commit=True block is a single transaction: it commits on exit or
        rolls back entirely on error.
        """
        conn = self.get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            if commit:
                conn.commit()
        except Exception as e:
            if commit:
                conn.rollback()
            Logger.error(f"[DB] ❌ DB Error: {e}")
            raise
        finally:
            conn.close()
