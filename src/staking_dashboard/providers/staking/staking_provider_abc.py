"""Abstract base class for staking-provider SDKs."""
from abc import ABC, abstractmethod
from decimal import Decimal

from pydantic import BaseModel

WEI_PER_ETH = 10**18


def to_wei(amount: Decimal) -> str:
    """ETH amount as an integer wei string (what provider APIs expect)."""
    return str(int(amount * WEI_PER_ETH))


class ProviderStake(BaseModel):
    """A stake as reported by the external provider."""

    id: str
    status: str
    amount: str  # wei
    validator_id: str | None = None


class ValidatorInfo(BaseModel):
    id: str
    status: str
    total_staked: str | None = None
    effectiveness: float | None = None


class StakingProviderABC(ABC):
    """Base interface for external staking providers.

    Local reward accounting never depends on these calls succeeding.
    """

    @abstractmethod
    async def create_stake(self, amount: Decimal, protocol: str = "eth2") -> ProviderStake:
        """Place a stake of `amount` (ETH) with the provider."""

    @abstractmethod
    async def get_stake(self, stake_id: str) -> ProviderStake:
        """Fetch a provider stake by id."""

    @abstractmethod
    async def list_stakes(self) -> list[ProviderStake]:
        """List stakes held by the platform account."""

    @abstractmethod
    async def get_validator(self, validator_id: str) -> ValidatorInfo:
        """Fetch validator status."""

    async def close(self) -> None:
        """Clean up resources (connections, clients)."""
