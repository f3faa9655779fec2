"""Price service: provider quotes with a last-good-value cache.

Prices are display-only. When the feed fails, the cached quote for the symbol
is served with stale=True; only a failure with nothing cached becomes an HTTP
error.
"""
import asyncio
import logging
import time
from datetime import timedelta

import httpx
from fastapi import HTTPException

from staking_dashboard.coins import CoinRegistry
from staking_dashboard.providers.core import ProviderErrorMapper
from staking_dashboard.providers.core.utils import normalize_coin_id
from staking_dashboard.providers.prices import PriceProviderABC
from staking_dashboard.schemas import PriceQuote
from staking_dashboard.utils import utcnow

logger = logging.getLogger(__name__)

# Exceptions from providers we map to HTTP; all others propagate (e.g. bugs, BaseException).
_PROVIDER_EXCEPTIONS: tuple[type[Exception], ...] = (
    ValueError,
    KeyError,
    TypeError,
    TimeoutError,
    OSError,
    asyncio.TimeoutError,
    httpx.HTTPError,
)


class PriceService:
    """Quotes for configured coins, keyed by ticker symbol."""

    def __init__(
        self,
        provider: PriceProviderABC,
        coins: CoinRegistry,
        error_mapper: ProviderErrorMapper,
        *,
        ttl_seconds: float = 60.0,
    ) -> None:
        """Initialize with provider and error mapping config.

        Args:
            provider: The price feed (e.g. CoinGeckoProvider).
            coins: Registry used to translate tickers to provider ids.
            error_mapper: Maps provider exceptions to HTTP (resource_name, api_name).
            ttl_seconds: How long a cached quote is served without asking the feed.
        """
        self._provider = provider
        self._coins = coins
        self._error_mapper = error_mapper
        self._ttl = ttl_seconds
        self._cache: dict[str, tuple[float, PriceQuote]] = {}

    def _coin_id(self, symbol: str) -> str:
        coin = self._coins.get(symbol)
        return coin.coingecko_id if coin is not None else normalize_coin_id(symbol)

    async def get_quote(self, symbol: str) -> PriceQuote:
        """Current quote; stale cache on feed failure. Raises HTTPException otherwise."""
        key = symbol.strip().upper()
        cached = self._cache.get(key)
        if cached is not None and time.monotonic() - cached[0] < self._ttl:
            return cached[1]
        try:
            quote = await self._provider.get_quote(self._coin_id(symbol))
        except _PROVIDER_EXCEPTIONS as exc:
            if cached is not None:
                logger.warning("Price feed failed for %s, serving cached quote: %s", key, exc)
                return cached[1].model_copy(update={"stale": True})
            logger.warning("Price feed failed for %s with no cached quote: %s", key, exc)
            self._error_mapper.raise_http(exc, symbol=symbol)
        quote = quote.model_copy(update={"symbol": key, "stale": False})
        self._cache[key] = (time.monotonic(), quote)
        return quote

    async def quote_or_none(self, symbol: str) -> PriceQuote | None:
        """Like get_quote, but None instead of an error. For optional USD values."""
        key = symbol.strip().upper()
        try:
            return await self.get_quote(symbol)
        except HTTPException:
            logger.debug("No price available for %s", key)
            return None

    async def get_history(self, symbol: str, days: int) -> list[PriceQuote]:
        """Historical quotes over the last `days`. Raises HTTPException on provider errors."""
        end = utcnow()
        start = end - timedelta(days=days)
        try:
            return await self._provider.get_history(self._coin_id(symbol), start, end)
        except _PROVIDER_EXCEPTIONS as exc:
            self._error_mapper.raise_http(exc, symbol=symbol)

    async def close(self) -> None:
        await self._provider.close()
