"""
Operator Wallet
===============
Holds the sponsor's signing credential. The key is parsed once, kept in
memory only, and never logged or rendered.
"""

from typing import Optional

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from rent_guardian.config.settings import Settings
from rent_guardian.shared.system.logging import Logger


class OperatorWallet:

    def __init__(self, private_key: Optional[str] = None, public_key: Optional[str] = None):
        """
        Args:
            private_key: base58 keypair. Defaults to OPERATOR_PRIVATE_KEY.
            public_key: sponsor address used when no keypair is configured
                (scan-only setups). Defaults to OPERATOR_PUBLIC_KEY.
        """
        self._keypair: Optional[Keypair] = None

        secret = private_key if private_key is not None else Settings.OPERATOR_PRIVATE_KEY
        if secret:
            try:
                self._keypair = Keypair.from_bytes(base58.b58decode(secret))
            except ValueError:
                # Error text could echo key material; report only that parsing failed
                Logger.error("❌ [WALLET] OPERATOR_PRIVATE_KEY is not a valid base58 keypair")

        configured_pubkey = public_key if public_key is not None else Settings.OPERATOR_PUBLIC_KEY
        if self._keypair is not None:
            self._address: Optional[str] = str(self._keypair.pubkey())
            if configured_pubkey and configured_pubkey != self._address:
                Logger.warning(
                    f"⚠️ [WALLET] OPERATOR_PUBLIC_KEY {configured_pubkey} does not match "
                    f"keypair {self._address}; using keypair"
                )
        else:
            self._address = configured_pubkey or None

    @classmethod
    def from_keypair(cls, keypair: Keypair) -> "OperatorWallet":
        wallet = cls(private_key="", public_key="")
        wallet._keypair = keypair
        wallet._address = str(keypair.pubkey())
        return wallet

    @property
    def is_configured(self) -> bool:
        """True when a signing credential is loaded (real mode possible)."""
        return self._keypair is not None

    @property
    def address(self) -> Optional[str]:
        return self._address

    @property
    def pubkey(self) -> Optional[Pubkey]:
        return Pubkey.from_string(self._address) if self._address else None

    @property
    def keypair(self) -> Optional[Keypair]:
        return self._keypair

    def __repr__(self):
        state = "configured" if self.is_configured else "read-only"
        return f"OperatorWallet(address={self._address}, key=<redacted>, {state})"

    __str__ = __repr__
