"""Offline staking provider used when no external SDK is configured."""
import uuid
from decimal import Decimal

from staking_dashboard.providers.staking.staking_provider_abc import (
    ProviderStake, StakingProviderABC, ValidatorInfo, to_wei)


class NullStakingProvider(StakingProviderABC):
    """Accepts every stake and remembers it in memory."""

    def __init__(self, validator_id: str = "local-validator") -> None:
        self._validator_id = validator_id
        self._stakes: dict[str, ProviderStake] = {}

    async def create_stake(self, amount: Decimal, protocol: str = "eth2") -> ProviderStake:
        stake = ProviderStake(
            id=f"local-{uuid.uuid4().hex}",
            status="ACTIVE",
            amount=to_wei(amount),
            validator_id=self._validator_id,
        )
        self._stakes[stake.id] = stake
        return stake

    async def get_stake(self, stake_id: str) -> ProviderStake:
        if stake_id not in self._stakes:
            raise ValueError(f"Stake '{stake_id}' not found")
        return self._stakes[stake_id]

    async def list_stakes(self) -> list[ProviderStake]:
        return list(self._stakes.values())

    async def get_validator(self, validator_id: str) -> ValidatorInfo:
        total = sum(int(s.amount) for s in self._stakes.values())
        return ValidatorInfo(
            id=validator_id, status="ACTIVE", total_staked=str(total), effectiveness=100.0
        )
