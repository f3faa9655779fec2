"""Staking-provider SDK wrappers and the platform master wallet."""
from staking_dashboard.providers.staking.coinbase import \
    CoinbaseStakingProvider
from staking_dashboard.providers.staking.master_wallet import MasterWallet
from staking_dashboard.providers.staking.null_provider import \
    NullStakingProvider
from staking_dashboard.providers.staking.staking_provider_abc import (
    ProviderStake, StakingProviderABC, ValidatorInfo)

__all__ = [
    "CoinbaseStakingProvider",
    "MasterWallet",
    "NullStakingProvider",
    "ProviderStake",
    "StakingProviderABC",
    "ValidatorInfo",
]
