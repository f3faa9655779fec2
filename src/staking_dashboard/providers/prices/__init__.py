"""Price-feed providers."""
from staking_dashboard.providers.prices.coingecko import CoinGeckoProvider
from staking_dashboard.providers.prices.price_provider_abc import \
    PriceProviderABC

__all__ = ["CoinGeckoProvider", "PriceProviderABC"]
