"""Coin configuration routes."""
from fastapi import APIRouter, Query

from staking_dashboard.coins import CoinConfig
from staking_dashboard.deps import CoinRegistryDep
from staking_dashboard.services import NotFoundError

router = APIRouter(prefix="/coins", tags=["coins"])


@router.get("", response_model=list[CoinConfig])
def list_coins(
    coins: CoinRegistryDep,
    enabled_only: bool = Query(default=False, description="Only coins that accept stakes"),
) -> list[CoinConfig]:
    return coins.enabled() if enabled_only else coins.all()


@router.get("/{symbol}", response_model=CoinConfig)
def get_coin(symbol: str, coins: CoinRegistryDep) -> CoinConfig:
    """Look up a coin by ticker (e.g. "ETH") or key (e.g. "eth")."""
    coin = coins.get(symbol)
    if coin is None:
        raise NotFoundError(f"Coin '{symbol}' not found")
    return coin
