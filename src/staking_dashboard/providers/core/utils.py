"""Shared utilities for external providers."""

DECIMALS = 2


def normalize_coin_id(symbol: str) -> str:
    """Normalize a CoinGecko coin ID (lowercase, trimmed)."""
    return symbol.strip().lower()


def round2(x: float | None) -> float | None:
    """Round a value to 2 decimal places; preserve None."""
    if x is None:
        return None
    return round(float(x), DECIMALS)
