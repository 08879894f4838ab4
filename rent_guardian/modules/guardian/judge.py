"""
Eligibility Judge
=================
Decides whether a sponsored account is safe to reclaim.

"When in doubt, do not reclaim." Every check is a veto, evaluated in a
fixed order with short-circuit:

1. PROFIT:     balance <= tx fee               → SKIP
2. USER_FUNDS: balance > rent floor * 1.01     → PROTECTED
3. AGE:        idle days < min_age_days        → ACTIVE
4. WHITELIST:  operator-protected address      → WHITELISTED

Otherwise the account is ELIGIBLE. The whitelist is evaluated last, so an
unprofitable whitelisted account still reports SKIP.

judge_account() is pure: no I/O, no clock reads unless `now` is omitted.
"""

import math
import time
from typing import Collection, Optional

from rent_guardian.modules.guardian.config import GuardianConfig
from rent_guardian.shared.models import (
    AccountStatus,
    CheckName,
    GuardianSettings,
    SponsoredAccount,
    Verdict,
)

SECONDS_PER_DAY = 86_400

_DEFAULT_CONFIG = GuardianConfig()


def judge_account(
    account: SponsoredAccount,
    settings: GuardianSettings,
    whitelist: Collection[str],
    now: Optional[float] = None,
    config: GuardianConfig = _DEFAULT_CONFIG,
) -> Verdict:
    """
    Classify one account.

    Args:
        account: Stored account record
        settings: Operator settings (min_age_days)
        whitelist: Operator-protected addresses
        now: Evaluation time (unix seconds); defaults to the current time
        config: Thresholds (fee, user-fund tolerance)

    Returns:
        Verdict with status, reason, failed check and potential recovery
    """
    now = time.time() if now is None else now
    fee = config.tx_fee_sol
    address = account.address
    balance = account.balance
    floor = account.rent_exempt_min

    potential = max(0.0, balance - fee)
    age_days = (now - account.last_activity) / SECONDS_PER_DAY

    # 1. Profit
    if balance <= fee:
        return Verdict(
            status=AccountStatus.SKIP,
            reason=(
                f"Skipped: Balance ({balance:.9f} SOL) is less than transaction fee "
                f"({fee} SOL) - not profitable to reclaim"
            ),
            failed_check=CheckName.PROFIT,
            address=address,
            balance=balance,
            potential_recovery=0.0,
            age_days=age_days,
        )

    # 2. User funds
    if balance > floor * config.user_fund_tolerance:
        excess = balance - floor
        return Verdict(
            status=AccountStatus.PROTECTED,
            reason=(
                f"Protected: Balance ({balance:.6f} SOL) exceeds rent minimum "
                f"({floor:.6f} SOL) by {excess:.6f} SOL - account contains user funds"
            ),
            failed_check=CheckName.USER_FUNDS,
            address=address,
            balance=balance,
            potential_recovery=potential,
            age_days=age_days,
        )

    # 3. Age (0 falls back to the default)
    min_age = settings.min_age_days or config.default_min_age_days
    if age_days < min_age:
        days_remaining = math.ceil(min_age - age_days)
        return Verdict(
            status=AccountStatus.ACTIVE,
            reason=(
                f"Active: Account age ({math.floor(age_days)} days) is less than minimum "
                f"({min_age} days) - wait {days_remaining} more days"
            ),
            failed_check=CheckName.AGE,
            address=address,
            balance=balance,
            potential_recovery=potential,
            age_days=age_days,
        )

    # 4. Whitelist
    if address in whitelist:
        return Verdict(
            status=AccountStatus.WHITELISTED,
            reason="Whitelisted: Account is explicitly protected by operator - will never be reclaimed",
            failed_check=CheckName.WHITELIST,
            address=address,
            balance=balance,
            potential_recovery=potential,
            age_days=age_days,
        )

    return Verdict(
        status=AccountStatus.ELIGIBLE,
        reason=(
            f"Eligible: Account passed all safety checks - {age_days:.0f} days old, "
            f"balance equals rent minimum, ready to reclaim {potential:.6f} SOL"
        ),
        address=address,
        balance=balance,
        potential_recovery=potential,
        age_days=age_days,
    )
