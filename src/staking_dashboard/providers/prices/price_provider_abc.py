"""Abstract base class for price-feed providers."""
from abc import ABC, abstractmethod
from datetime import datetime

from staking_dashboard.schemas import PriceQuote


class PriceProviderABC(ABC):
    """Base interface for read-only price feeds.

    Prices are informational: reward math never depends on them.
    """

    @abstractmethod
    async def get_quote(self, coin_id: str) -> PriceQuote:
        """Fetch the current USD quote for a coin.

        Args:
            coin_id: Provider coin identifier (e.g. "ethereum").

        Raises:
            ValueError: If the coin is unknown to the provider.
        """

    async def get_history(
        self, coin_id: str, start: datetime, end: datetime
    ) -> list[PriceQuote]:
        """Fetch historical quotes within a time range, ordered by timestamp.

        Default implementation raises NotImplementedError. Override in providers
        that support historical data.
        """
        raise NotImplementedError("Historical data is not supported by this provider")

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "PriceProviderABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
