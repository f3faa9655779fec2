"""CoinGecko price feed."""
from staking_dashboard.providers.prices.coingecko.provider import \
    CoinGeckoProvider

__all__ = ["CoinGeckoProvider"]
