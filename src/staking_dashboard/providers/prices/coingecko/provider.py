"""CoinGecko price provider."""
from datetime import datetime

import httpx

from staking_dashboard.providers.core import round2
from staking_dashboard.providers.core.utils import normalize_coin_id
from staking_dashboard.providers.prices.coingecko.models import (
    CoinGeckoHistoryParams, CoinGeckoQuoteMetadata, CoinGeckoSimplePriceParams)
from staking_dashboard.providers.prices.price_provider_abc import \
    PriceProviderABC
from staking_dashboard.schemas import PriceQuote
from staking_dashboard.utils import parse_timestamp


class CoinGeckoProvider(PriceProviderABC):
    """Price provider for cryptocurrencies via the CoinGecko REST API.

    Uses CoinGecko IDs as symbols (e.g., "ethereum", "pivx").
    See https://api.coingecko.com/api/v3/coins/list for all available IDs.
    """

    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

    def __init__(
        self,
        api_key: str | None = None,
        use_pro_api: bool = False,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the CoinGecko provider.

        Args:
            api_key: CoinGecko API key; when set the Pro endpoint is used.
            use_pro_api: Whether to use the Pro API endpoint.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self._api_key = api_key
        self._use_pro_api = use_pro_api or bool(self._api_key)

        headers: dict[str, str] = {"Accept": "application/json"}
        if self._api_key:
            headers["x-cg-pro-api-key"] = self._api_key

        base = self.PRO_BASE_URL if self._use_pro_api else self.BASE_URL
        self._client = httpx.AsyncClient(
            base_url=base, headers=headers, timeout=timeout, transport=transport
        )

    async def get_quote(self, coin_id: str) -> PriceQuote:
        """Fetch the current quote for a cryptocurrency.

        Args:
            coin_id: CoinGecko ID (e.g., "ethereum").

        Returns:
            PriceQuote with the current USD price.
        """
        coin_id = normalize_coin_id(coin_id)
        params = CoinGeckoSimplePriceParams().model_dump() | {"ids": coin_id}
        response = await self._client.get("/simple/price", params=params)
        response.raise_for_status()
        data = response.json()

        row = data.get(coin_id)
        if not row or row.get("usd") is None:
            raise ValueError(f"Coin '{coin_id}' not found")

        vol = row.get("usd_24h_vol")
        return PriceQuote(
            symbol=coin_id,
            value=round2(float(row["usd"])),
            volume=round2(vol) if vol is not None else None,
            timestamp=parse_timestamp(row.get("last_updated_at")),
            metadata=CoinGeckoQuoteMetadata(
                market_cap=round2(row.get("usd_market_cap")),
                change_24h=round2(row.get("usd_24h_change")),
            ).model_dump(),
        )

    async def get_history(
        self, coin_id: str, start: datetime, end: datetime
    ) -> list[PriceQuote]:
        """Fetch historical price data for a cryptocurrency.

        Args:
            coin_id: CoinGecko ID.
            start: Start of time range (naive UTC).
            end: End of time range (naive UTC).

        Returns:
            List of PriceQuotes ordered by timestamp.
        """
        coin_id = normalize_coin_id(coin_id)
        epoch = datetime(1970, 1, 1)
        params = CoinGeckoHistoryParams(
            from_ts=int((start - epoch).total_seconds()),
            to_ts=int((end - epoch).total_seconds()),
        ).model_dump(by_alias=True)
        response = await self._client.get(
            f"/coins/{coin_id}/market_chart/range",
            params=params,
        )
        response.raise_for_status()
        data = response.json()

        prices = data.get("prices", [])
        volumes = data.get("total_volumes", [])
        market_caps = data.get("market_caps", [])

        volume_by_ts = {int(v[0]): v[1] for v in volumes}
        mcap_by_ts = {int(m[0]): m[1] for m in market_caps}

        return [
            PriceQuote(
                symbol=coin_id,
                value=round2(float(price)),
                volume=round2(float(volume_by_ts.get(ts_ms, 0))) or None,
                timestamp=parse_timestamp(ts_ms / 1000),
                metadata=CoinGeckoQuoteMetadata(
                    market_cap=round2(mcap_by_ts.get(ts_ms)),
                ).model_dump(),
            )
            for (ts_ms, price) in ((int(p[0]), p[1]) for p in prices)
        ]

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
