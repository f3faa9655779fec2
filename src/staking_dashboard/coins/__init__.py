"""Coin configuration: a JSON document validated at startup."""
from staking_dashboard.coins.models import CoinConfig
from staking_dashboard.coins.registry import CoinRegistry, load_coin_registry

__all__ = ["CoinConfig", "CoinRegistry", "load_coin_registry"]
