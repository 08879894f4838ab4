from rent_guardian.config.settings import Settings

__all__ = ['Settings']
