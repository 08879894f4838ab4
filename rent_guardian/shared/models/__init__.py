from rent_guardian.shared.models.account import (
    ACCOUNTLESS,
    AccountStatus,
    ActivityAction,
    ActivityEntry,
    ExecutionMode,
    GuardianSettings,
    SponsoredAccount,
    StatusTransitionError,
)
from rent_guardian.shared.models.reclaim_result import (
    BatchResult,
    CheckName,
    DiscoveryResult,
    GuardianStats,
    JudgeSummary,
    ReclaimError,
    ReclaimResult,
    Verdict,
)

__all__ = [
    'ACCOUNTLESS',
    'AccountStatus',
    'ActivityAction',
    'ActivityEntry',
    'ExecutionMode',
    'GuardianSettings',
    'SponsoredAccount',
    'StatusTransitionError',
    'BatchResult',
    'CheckName',
    'DiscoveryResult',
    'GuardianStats',
    'JudgeSummary',
    'ReclaimError',
    'ReclaimResult',
    'Verdict',
]
