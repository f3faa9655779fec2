"""Stake and balance routes."""
import logging

from fastapi import APIRouter, status
from starlette.concurrency import run_in_threadpool

from staking_dashboard.deps import (CurrentUser, MasterWalletDep, SessionDep,
                                    StakingServiceDep)
from staking_dashboard.schemas import (AmountRequest, CoinRequest,
                                       NetworkStatsRead, OperationResult,
                                       RewardCreate, RewardRead, StakeRead,
                                       StakeRequest, TransactionRead)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["staking"])


@router.post("/stakes", response_model=StakeRead, status_code=status.HTTP_201_CREATED)
async def create_stake(
    body: StakeRequest,
    user: CurrentUser,
    session: SessionDep,
    staking: StakingServiceDep,
    master_wallet: MasterWalletDep,
) -> StakeRead:
    """Stake an amount of the platform coin.

    The stake is recorded locally first; placing it with the upstream provider
    is best-effort and only adds the provider reference when it succeeds.
    """
    stake = await run_in_threadpool(staking.create_stake, session, user, body.amount, body.coin)
    placed = await master_wallet.delegate(user.id, stake.amount)
    if placed is not None:
        stake = await run_in_threadpool(staking.attach_reference, session, stake.id, placed.id)
    return StakeRead.model_validate(stake)


@router.get("/stakes", response_model=list[StakeRead])
def list_stakes(user: CurrentUser, session: SessionDep, staking: StakingServiceDep) -> list[StakeRead]:
    return [StakeRead.model_validate(s) for s in staking.list_stakes(session, user)]


@router.get("/stakes/{stake_id}/rewards", response_model=list[RewardRead])
def list_stake_rewards(
    stake_id: int, user: CurrentUser, session: SessionDep, staking: StakingServiceDep
) -> list[RewardRead]:
    return [RewardRead.model_validate(r) for r in staking.stake_rewards(session, user, stake_id)]


@router.post(
    "/stakes/{stake_id}/rewards",
    response_model=RewardRead,
    status_code=status.HTTP_201_CREATED,
)
def add_stake_reward(
    stake_id: int,
    body: RewardCreate,
    user: CurrentUser,
    session: SessionDep,
    staking: StakingServiceDep,
) -> RewardRead:
    """Record a reward against one of the caller's stakes."""
    return RewardRead.model_validate(staking.add_stake_reward(session, user, stake_id, body.amount))


@router.post("/withdraw", response_model=OperationResult)
def withdraw(
    body: AmountRequest, user: CurrentUser, session: SessionDep, staking: StakingServiceDep
) -> OperationResult:
    """Withdraw from the reward balance."""
    return staking.withdraw(session, user, body.amount, body.coin)


@router.post("/withdraw-all", response_model=OperationResult)
def withdraw_all(
    body: CoinRequest, user: CurrentUser, session: SessionDep, staking: StakingServiceDep
) -> OperationResult:
    """Close all stakes and withdraw principal plus reward balance."""
    return staking.withdraw_all(session, user, body.coin)


@router.post("/transfer", response_model=OperationResult)
def transfer(
    body: AmountRequest, user: CurrentUser, session: SessionDep, staking: StakingServiceDep
) -> OperationResult:
    """Transfer out, spending rewards before principal."""
    return staking.transfer(session, user, body.amount, body.coin)


@router.get("/transactions", response_model=list[TransactionRead])
def list_transactions(
    user: CurrentUser, session: SessionDep, staking: StakingServiceDep
) -> list[TransactionRead]:
    """The caller's ledger, newest first."""
    return [TransactionRead.model_validate(t) for t in staking.list_transactions(session, user)]


@router.get("/staking/network", response_model=NetworkStatsRead)
async def network_stats(_: CurrentUser, master_wallet: MasterWalletDep) -> NetworkStatsRead:
    """Validator status for the master wallet's stake.

    Only the address is filled in when no provider stake exists yet or the
    provider call fails.
    """
    validator = await master_wallet.network_stats()
    if validator is None:
        return NetworkStatsRead(master_wallet_address=master_wallet.address)
    return NetworkStatsRead(
        master_wallet_address=master_wallet.address,
        validator_id=validator.id,
        status=validator.status,
        total_staked_wei=validator.total_staked,
        effectiveness=validator.effectiveness,
    )
