"""Platform master wallet: the single account that delegates user stakes upstream."""
import asyncio
import logging
from decimal import Decimal

import httpx

from staking_dashboard.providers.staking.staking_provider_abc import (
    ProviderStake, StakingProviderABC, ValidatorInfo)

logger = logging.getLogger(__name__)

# Errors we tolerate from the provider; local accounting proceeds regardless.
_PROVIDER_EXCEPTIONS: tuple[type[Exception], ...] = (
    ValueError,
    KeyError,
    TimeoutError,
    OSError,
    asyncio.TimeoutError,
    httpx.HTTPError,
)


class MasterWallet:
    """Wraps a staking provider with the platform's wallet address.

    Built once by the DI container and injected where provider calls are needed.
    All provider calls are best-effort: failures are logged and reported as None.
    """

    def __init__(self, provider: StakingProviderABC, address: str | None = None) -> None:
        self._provider = provider
        self._address = address
        self._validator_id: str | None = None
        self._initialized = False

    @property
    def address(self) -> str | None:
        return self._address

    @address.setter
    def address(self, value: str | None) -> None:
        self._address = value

    @property
    def validator_id(self) -> str | None:
        return self._validator_id

    async def initialize(self) -> None:
        """Discover the active master stake's validator, if any."""
        if self._initialized:
            return
        try:
            stakes = await self._provider.list_stakes()
            active = next((s for s in stakes if s.status.upper() == "ACTIVE"), None)
            if active is not None:
                self._validator_id = active.validator_id
                logger.info("Master stake %s on validator %s", active.id, active.validator_id)
        except _PROVIDER_EXCEPTIONS as exc:
            logger.warning("Master wallet initialization failed, running in fallback mode: %s", exc)
        self._initialized = True

    async def delegate(self, user_id: int, amount: Decimal) -> ProviderStake | None:
        """Place a user's stake upstream. Returns None when the provider fails."""
        await self.initialize()
        try:
            stake = await self._provider.create_stake(amount)
        except _PROVIDER_EXCEPTIONS as exc:
            logger.warning("Provider stake for user %s (%s) failed: %s", user_id, amount, exc)
            return None
        if stake.validator_id and not self._validator_id:
            self._validator_id = stake.validator_id
        logger.info("Provider stake %s placed for user %s", stake.id, user_id)
        return stake

    async def network_stats(self) -> ValidatorInfo | None:
        """Validator info for the master stake, or None if unavailable."""
        await self.initialize()
        if not self._validator_id:
            return None
        try:
            return await self._provider.get_validator(self._validator_id)
        except _PROVIDER_EXCEPTIONS as exc:
            logger.warning("Validator lookup failed: %s", exc)
            return None

    async def close(self) -> None:
        await self._provider.close()
