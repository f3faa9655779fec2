"""Price routes (CoinGecko). Informational only; reward math never reads them."""
from fastapi import APIRouter, Query

from staking_dashboard.deps import PriceServiceDep
from staking_dashboard.schemas import PriceQuote

router = APIRouter(prefix="/prices", tags=["prices"])


@router.get("/{symbol}", response_model=PriceQuote)
async def get_price(symbol: str, prices: PriceServiceDep) -> PriceQuote:
    """Current USD quote for a coin ticker.

    Args:
        symbol: Ticker from the coin configuration (e.g. "ETH") or a CoinGecko ID.

    Returns:
        The quote; `stale` is set when it was served from cache after a feed failure.
    """
    return await prices.get_quote(symbol)


@router.get("/{symbol}/history", response_model=list[PriceQuote])
async def get_price_history(
    symbol: str,
    prices: PriceServiceDep,
    days: int = Query(default=30, ge=1, le=365, description="Number of days of history"),
) -> list[PriceQuote]:
    """Historical quotes ordered by timestamp."""
    return await prices.get_history(symbol, days)
