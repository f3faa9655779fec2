"""External collaborators: price feeds and staking providers.

- CoinGeckoProvider: spot and historical USD prices (read-only, best-effort)
- CoinbaseStakingProvider / NullStakingProvider: upstream stake placement
- MasterWallet: the platform account that delegates user stakes

Example:
    async with CoinGeckoProvider() as provider:
        quote = await provider.get_quote("ethereum")
        print(f"{quote.symbol}: ${quote.value}")
"""
from staking_dashboard.providers.core import ProviderErrorMapper
from staking_dashboard.providers.prices import (CoinGeckoProvider,
                                               PriceProviderABC)
from staking_dashboard.providers.staking import (CoinbaseStakingProvider,
                                                MasterWallet,
                                                NullStakingProvider,
                                                StakingProviderABC)

__all__ = [
    "CoinGeckoProvider",
    "CoinbaseStakingProvider",
    "MasterWallet",
    "NullStakingProvider",
    "PriceProviderABC",
    "ProviderErrorMapper",
    "StakingProviderABC",
]
