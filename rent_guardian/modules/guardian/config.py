"""
Rent Guardian Configuration
===========================
Thresholds and safety parameters for discovery, judgment and reclamation.
"""

from dataclasses import dataclass

from rent_guardian.config.settings import Settings


@dataclass
class GuardianConfig:
    """Tunables for the scan → judge → reclaim pipeline."""

    # Discovery
    max_signatures_per_scan: int = 100  # One page, no pagination
    rpc_request_delay_ms: int = 0  # Delay between per-transaction fetches

    # Judgment
    user_fund_tolerance: float = 1.01  # Balance above floor * this = user funds
    initial_protect_multiplier: float = 1.5  # Coarser first-pass heuristic at discovery
    default_min_age_days: int = 30

    # Execution
    batch_delay_ms: int = 500  # Between real-mode batch attempts
    tx_fee_lamports: int = Settings.TX_FEE_LAMPORTS

    @property
    def tx_fee_sol(self) -> float:
        return self.tx_fee_lamports / Settings.LAMPORTS_PER_SOL
