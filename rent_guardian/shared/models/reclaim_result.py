"""
Reclamation Result Schemas
==========================
Standardized return types for the judge, scanner and executioner.

None of these carry signing material.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from rent_guardian.shared.models.account import AccountStatus, ExecutionMode


class CheckName(Enum):
    """Judge check that vetoed an account."""
    PROFIT = "PROFIT"
    USER_FUNDS = "USER_FUNDS"
    AGE = "AGE"
    WHITELIST = "WHITELIST"


class ReclaimError(Enum):
    """Machine-readable failure codes for ReclaimResult."""

    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    ALREADY_RECLAIMED = "ALREADY_RECLAIMED"

    # Fresh verdict was not ELIGIBLE (mirrors AccountStatus values)
    SKIP = "SKIP"
    PROTECTED = "PROTECTED"
    ACTIVE = "ACTIVE"
    WHITELISTED = "WHITELISTED"

    NO_PRIVATE_KEY = "NO_PRIVATE_KEY"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    ERROR = "ERROR"

    @classmethod
    def from_verdict(cls, status: AccountStatus) -> "ReclaimError":
        return cls(status.value)


@dataclass(frozen=True)
class Verdict:
    """The Judge's classification plus its numeric justification."""
    status: AccountStatus
    reason: str
    address: str
    balance: float
    potential_recovery: float
    failed_check: Optional[CheckName] = None
    age_days: float = 0.0

    @property
    def is_eligible(self) -> bool:
        return self.status is AccountStatus.ELIGIBLE


@dataclass
class DiscoveryResult:
    success: bool
    new_count: int = 0
    updated_count: int = 0
    total_count: int = 0
    skipped_count: int = 0
    error: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class ReclaimResult:
    success: bool
    address: str
    mode: ExecutionMode
    amount: float = 0.0
    message: str = ""
    error: Optional[ReclaimError] = None
    tx_signature: Optional[str] = None
    explorer_url: Optional[str] = None

    def __repr__(self):
        status = "✅" if self.success else "❌"
        return f"{status} RECLAIM {self.address[:8]}... {self.amount:.6f} SOL ({self.mode.value})"


@dataclass
class BatchResult:
    total: int
    successful: int
    failed: int
    total_reclaimed: float
    mode: ExecutionMode
    results: List[ReclaimResult] = field(default_factory=list)


@dataclass
class JudgeSummary:
    total: int = 0
    eligible: int = 0
    protected: int = 0
    active: int = 0
    skipped: int = 0
    whitelisted: int = 0

    def count(self, status: AccountStatus) -> None:
        if status is AccountStatus.ELIGIBLE:
            self.eligible += 1
        elif status is AccountStatus.PROTECTED:
            self.protected += 1
        elif status is AccountStatus.ACTIVE:
            self.active += 1
        elif status is AccountStatus.SKIP:
            self.skipped += 1
        elif status is AccountStatus.WHITELISTED:
            self.whitelisted += 1


@dataclass
class GuardianStats:
    total_recovered: float = 0.0
    potential_recovery: float = 0.0
    eligible_count: int = 0
    protected_count: int = 0
    active_count: int = 0
