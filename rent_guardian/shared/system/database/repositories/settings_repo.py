import time
from typing import Optional

from rent_guardian.shared.models.account import GuardianSettings
from rent_guardian.shared.system.database.repositories.base import BaseRepository
from rent_guardian.shared.system.logging import Logger

MIN_AGE_DAYS = "min_age_days"
DRY_RUN_MODE = "dry_run_mode"
ALLOWED_KEYS = (MIN_AGE_DAYS, DRY_RUN_MODE)


class SettingsRepository(BaseRepository):
    """Key/value operator settings. No caching: every read hits the table."""

    def __init__(self, db, default_min_age_days: int = 30):
        super().__init__(db)
        self.default_min_age_days = default_min_age_days

    def init_table(self):
        with self.db.cursor(commit=True) as c:
            c.execute("""
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at REAL NOT NULL
            )
            """)

    def get(self, key: str) -> Optional[str]:
        row = self._fetchone("SELECT value FROM settings WHERE key = ?", (key,))
        return row['value'] if row else None

    def set(self, key: str, value: str) -> None:
        """
        Upsert a setting. Only min_age_days and dry_run_mode are accepted.

        Raises:
            ValueError: unknown key or malformed value
        """
        if key not in ALLOWED_KEYS:
            raise ValueError(f"Invalid setting key '{key}'. Allowed: {', '.join(ALLOWED_KEYS)}")

        value = str(value).strip()
        if key == MIN_AGE_DAYS:
            if not value.isdigit():
                raise ValueError(f"{MIN_AGE_DAYS} must be a non-negative integer, got '{value}'")
        elif key == DRY_RUN_MODE:
            value = value.lower()
            if value not in ("true", "false"):
                raise ValueError(f"{DRY_RUN_MODE} must be 'true' or 'false', got '{value}'")

        self._execute("""
        INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
        """, (key, value, time.time()), commit=True)

        Logger.info(f"[DB] Setting updated: {key} = {value}")

    def load(self) -> GuardianSettings:
        """Current judgment settings with safe defaults (dry run ON)."""
        raw_age = self.get(MIN_AGE_DAYS)
        raw_dry = self.get(DRY_RUN_MODE)

        min_age = self.default_min_age_days
        if raw_age is not None:
            try:
                min_age = int(raw_age)
            except ValueError:
                Logger.warning(f"[DB] Ignoring malformed {MIN_AGE_DAYS}='{raw_age}'")

        return GuardianSettings(
            min_age_days=min_age,
            dry_run_mode=True if raw_dry is None else raw_dry == "true",
        )

    def is_dry_run_enabled(self) -> bool:
        return self.load().dry_run_mode
