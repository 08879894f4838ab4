"""
Rent Guardian Module
====================
Discovers, judges and reclaims sponsor-funded Solana accounts.

Pipeline:
- Discovery: AccountScanner writes sponsored_accounts rows
- Judgment: judge_account() classifies each row (pure)
- Execution: Executioner re-judges, then reclaims ELIGIBLE rows

Safety Guardrails:
- Dry run by default (dry_run_mode setting)
- Mandatory re-judgment immediately before any transfer
- RECLAIMED is terminal and written conditionally
"""

from rent_guardian.modules.guardian.config import GuardianConfig
from rent_guardian.modules.guardian.core import RentGuardian
from rent_guardian.modules.guardian.judge import judge_account

__all__ = ['GuardianConfig', 'RentGuardian', 'judge_account']
