import os
from dotenv import load_dotenv

# Load Environment Variables from working directory .env
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # RENT GUARDIAN CONFIGURATION (Environment-Based)
    # ═══════════════════════════════════════════════════════════════════

    # --- Console ---
    SILENT_MODE = _env_bool("GUARDIAN_SILENT_MODE", False)

    # --- Network ---
    DEVNET_RPC_URL = "https://api.devnet.solana.com"

    # Defaults to Devnet for safe prototyping
    RPC_URL = os.getenv("SOLANA_RPC_URL", DEVNET_RPC_URL)
    RPC_FALLBACK_URLS = [
        u.strip() for u in os.getenv("RPC_FALLBACK_URLS", "").split(",") if u.strip()
    ]
    RPC_TIMEOUT_S = float(os.getenv("RPC_TIMEOUT_S", "10"))

    # --- Operator (Sponsor) ---
    # The private key is read by OperatorWallet only. Never log it.
    OPERATOR_PRIVATE_KEY = os.getenv("OPERATOR_PRIVATE_KEY") or None
    OPERATOR_PUBLIC_KEY = os.getenv("OPERATOR_PUBLIC_KEY") or None

    # --- Storage ---
    DATA_DIR = os.path.abspath(os.getenv("GUARDIAN_DATA_DIR", "data"))
    DB_PATH = os.getenv("GUARDIAN_DB_PATH", os.path.join(DATA_DIR, "rent_guardian.db"))
    LOG_DIR = os.path.abspath(os.getenv("GUARDIAN_LOG_DIR", "logs"))

    # ═══════════════════════════════════════════════════════════════════
    # LEDGER CONSTANTS
    # ═══════════════════════════════════════════════════════════════════
    LAMPORTS_PER_SOL = 1_000_000_000
    TX_FEE_LAMPORTS = 5000  # Base signature fee (~0.000005 SOL)
    TX_FEE_SOL = TX_FEE_LAMPORTS / LAMPORTS_PER_SOL

    @classmethod
    def is_mock_mode(cls) -> bool:
        """True when no operator key is configured (no real transactions possible)."""
        return not cls.OPERATOR_PRIVATE_KEY

    @classmethod
    def client_safe(cls) -> dict:
        """Config view for presentation layers. NEVER includes the private key."""
        return {
            "is_mock_mode": cls.is_mock_mode(),
            "rpc_url": cls.RPC_URL,
            "operator_public_key": cls.OPERATOR_PUBLIC_KEY,
            "tx_fee_sol": cls.TX_FEE_SOL,
        }
