"""Portfolio, chart and calculator routes."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fastapi import APIRouter, Query
from starlette.concurrency import run_in_threadpool

from staking_dashboard.deps import (CurrentUser, PortfolioDep,
                                    PriceServiceDep, SessionDep,
                                    SettingsServiceDep)
from staking_dashboard.schemas import (CompoundProjection, PortfolioRead,
                                       SeriesPoint, StakingDataRead)
from staking_dashboard.services import compound_calculator
from staking_dashboard.utils import utcnow

router = APIRouter(tags=["portfolio"])


@router.get("/portfolio", response_model=PortfolioRead)
async def read_portfolio(
    user: CurrentUser,
    session: SessionDep,
    portfolio: PortfolioDep,
    prices: PriceServiceDep,
    settings: SettingsServiceDep,
) -> PortfolioRead:
    """Staked total, reward figures and (when the price feed answers) USD value."""
    quote = await prices.quote_or_none(settings.coin_symbol)
    price = quote.value if quote is not None else None
    return await run_in_threadpool(portfolio.portfolio, session, user.id, None, price)


@router.get("/portfolio/rewards-series", response_model=list[SeriesPoint])
def rewards_series(
    user: CurrentUser,
    session: SessionDep,
    portfolio: PortfolioDep,
    start: datetime | None = Query(default=None, description="Defaults to 24 hours before end"),
    end: datetime | None = Query(default=None, description="Defaults to now (UTC)"),
    step_seconds: int = Query(default=3600, description="Spacing between points"),
) -> list[SeriesPoint]:
    """Cumulative accrued rewards at evenly spaced instants, end inclusive."""
    end = _naive_utc(end) if end is not None else utcnow()
    start = _naive_utc(start) if start is not None else end - timedelta(hours=24)
    return portfolio.rewards_series(session, user.id, start, end, step_seconds)


@router.get("/staking/data", response_model=StakingDataRead)
def staking_data(user: CurrentUser, session: SessionDep, portfolio: PortfolioDep) -> StakingDataRead:
    """Dashboard payload with the last 7 days of rewards."""
    return portfolio.staking_data(session, user.id)


@router.get("/calculator", response_model=CompoundProjection)
def calculator(
    amount: Decimal = Query(gt=0),
    days: int = Query(default=365, ge=1, le=3650),
    apy: Decimal = Query(default=Decimal("3.00"), ge=0, le=100),
) -> CompoundProjection:
    """Simple versus daily-compounded rewards. Illustration only."""
    return compound_calculator(amount, apy, days)


def _naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)
