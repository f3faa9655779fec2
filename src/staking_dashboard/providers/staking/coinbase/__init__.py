"""Coinbase Developer Platform staking client."""
from staking_dashboard.providers.staking.coinbase.provider import \
    CoinbaseStakingProvider

__all__ = ["CoinbaseStakingProvider"]
