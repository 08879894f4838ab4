from typing import Optional

from rent_guardian.shared.system.database.core import DatabaseCore
from rent_guardian.shared.system.database.repositories.account_repo import AccountRepository
from rent_guardian.shared.system.database.repositories.activity_repo import ActivityRepository
from rent_guardian.shared.system.database.repositories.settings_repo import SettingsRepository
from rent_guardian.shared.system.database.repositories.whitelist_repo import WhitelistRepository


class GuardianStore:
    """
    Durable Store Facade.
    Groups the repositories over one DatabaseCore and creates their schemas.
    """

    def __init__(self, core: Optional[DatabaseCore] = None, default_min_age_days: int = 30):
        # 1. Core (connection, WAL)
        self.core = core or DatabaseCore()

        # 2. Repositories
        self.accounts = AccountRepository(self.core)
        self.activity = ActivityRepository(self.core)
        self.settings = SettingsRepository(self.core, default_min_age_days=default_min_age_days)
        self.whitelist = WhitelistRepository(self.core)

        # 3. Schemas
        self.accounts.init_table()
        self.activity.init_table()
        self.settings.init_table()
        self.whitelist.init_table()
