"""
Sponsored Account Schema
========================
Records persisted by the Durable Store.

Status workflow:
    (created) → ACTIVE | PROTECTED | SKIP → re-judged any number of times
              → ACTIVE | PROTECTED | SKIP | WHITELISTED | ELIGIBLE
              → RECLAIMED (terminal)
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class StatusTransitionError(ValueError):
    """Raised when a status write would violate the account state machine."""


class AccountStatus(Enum):
    """Closed set of account dispositions."""

    ACTIVE = "ACTIVE"            # Too recent, may still be in use
    PROTECTED = "PROTECTED"      # Holds user funds, never swept
    ELIGIBLE = "ELIGIBLE"        # Safe to reclaim
    SKIP = "SKIP"                # Not worth reclaiming
    WHITELISTED = "WHITELISTED"  # Operator-protected
    RECLAIMED = "RECLAIMED"      # Terminal

    @property
    def is_terminal(self) -> bool:
        return self is AccountStatus.RECLAIMED

    def can_transition_to(self, target: "AccountStatus") -> bool:
        """RECLAIMED is forward-only: anything may enter it, nothing may leave it."""
        if self.is_terminal:
            return target is AccountStatus.RECLAIMED
        return True


class ActivityAction(Enum):
    SCAN = "SCAN"
    RECLAIM = "RECLAIM"
    SKIP = "SKIP"


class ExecutionMode(Enum):
    REAL = "REAL"
    SIMULATION = "SIMULATION"

    @classmethod
    def for_dry_run(cls, dry_run: bool) -> "ExecutionMode":
        return cls.SIMULATION if dry_run else cls.REAL


@dataclass
class SponsoredAccount:
    """One discovered account. Balances are in SOL, timestamps are unix seconds."""
    address: str
    balance: float
    rent_exempt_min: float
    last_activity: float
    status: AccountStatus = AccountStatus.ACTIVE
    detected_at: float = field(default_factory=time.time)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SponsoredAccount":
        return cls(
            address=row['address'],
            balance=float(row['balance']),
            rent_exempt_min=float(row['rent_exempt_min']),
            last_activity=float(row['last_activity']),
            status=AccountStatus(row['status']),
            detected_at=float(row['detected_at']),
        )


ACCOUNTLESS = "-"


@dataclass
class ActivityEntry:
    """Append-only audit trail entry."""
    action: ActivityAction
    account: str = ACCOUNTLESS
    amount: float = 0.0
    mode: ExecutionMode = ExecutionMode.SIMULATION
    reason: str = ""
    tx_signature: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ActivityEntry":
        return cls(
            id=row.get('id'),
            action=ActivityAction(row['action']),
            account=row['account'],
            amount=float(row['amount']),
            mode=ExecutionMode(row['mode']),
            reason=row['reason'] or "",
            tx_signature=row.get('tx_signature'),
            timestamp=float(row['timestamp']),
        )


@dataclass(frozen=True)
class GuardianSettings:
    """Operator settings read by the Judge and the Executioner."""
    min_age_days: int = 30
    dry_run_mode: bool = True
