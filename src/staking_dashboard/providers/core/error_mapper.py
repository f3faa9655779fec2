"""Translate price-feed and staking-provider failures into HTTP responses."""
import asyncio
from dataclasses import dataclass

import httpx
from fastapi import HTTPException, status

_TIMEOUTS = (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)


@dataclass(frozen=True)
class ProviderErrorMapper:
    """Maps exceptions from one external API to (status_code, detail).

    The container builds one per API (e.g. "Crypto price" / "CoinGecko") and
    injects it into the service that talks to that API.
    """

    resource_name: str = "Resource"
    api_name: str = "API"

    def _missing(self, symbol: str | None) -> str:
        if symbol is None:
            return f"{self.resource_name} not found"
        return f"{self.resource_name} '{symbol}' not found"

    def _upstream(self, code: int, symbol: str | None) -> tuple[int, str]:
        if code == status.HTTP_404_NOT_FOUND:
            return (code, self._missing(symbol))
        if code == status.HTTP_429_TOO_MANY_REQUESTS:
            return (code, f"{self.api_name} error")
        if code >= 500:
            return (status.HTTP_502_BAD_GATEWAY, f"{self.api_name} error")
        return (code, f"{self.api_name} error")

    def to_http(self, exc: Exception, symbol: str | None = None) -> tuple[int, str]:
        """Return (status_code, detail) for an exception raised by the provider.

        ValueError means the provider did not know the symbol; its own message is
        kept unless a symbol is given, in which case the detail names the symbol.
        """
        if isinstance(exc, ValueError):
            detail = str(exc) or self._missing(symbol)
            if symbol is not None and "not found" in detail.lower():
                detail = self._missing(symbol)
            return (status.HTTP_404_NOT_FOUND, detail)
        if isinstance(exc, httpx.HTTPStatusError):
            return self._upstream(exc.response.status_code, symbol)
        if isinstance(exc, _TIMEOUTS):
            if symbol is None:
                return (status.HTTP_504_GATEWAY_TIMEOUT, "Request timed out")
            return (
                status.HTTP_504_GATEWAY_TIMEOUT,
                f"Request to {self.api_name} timed out for '{symbol}'",
            )
        if isinstance(exc, httpx.TransportError):
            return (status.HTTP_502_BAD_GATEWAY, f"{self.api_name} unreachable")
        if isinstance(exc, (KeyError, TypeError)):
            # malformed payload for this symbol
            return (status.HTTP_404_NOT_FOUND, self._missing(symbol))
        return (status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    def raise_http(self, exc: Exception, symbol: str | None = None) -> None:
        """Raise the mapped HTTPException, chained to exc."""
        status_code, detail = self.to_http(exc, symbol=symbol)
        raise HTTPException(status_code=status_code, detail=detail) from exc
