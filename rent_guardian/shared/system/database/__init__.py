from rent_guardian.shared.system.database.core import DatabaseCore
from rent_guardian.shared.system.database.store import GuardianStore

__all__ = ['DatabaseCore', 'GuardianStore']
