"""Rent Guardian: reclaims rent from idle sponsor-funded Solana accounts."""

__version__ = "0.1.0"
