"""Operator routes. All require an admin bearer token."""
import logging

from fastapi import APIRouter, status
from starlette.concurrency import run_in_threadpool

from staking_dashboard.deps import (AdminServiceDep, AdminUser,
                                    MasterWalletDep, MaterializerDep,
                                    SessionDep, SettingsServiceDep,
                                    SkimCalculatorDep)
from staking_dashboard.schemas import (AdminOverview, AdminRewardsReport,
                                       AdminStakingRow, AdminUserDetail,
                                       MaterializationRead,
                                       StakingSettingsRead,
                                       StakingSettingsUpdate, UserRead)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/overview", response_model=AdminOverview)
def overview(_: AdminUser, session: SessionDep, admin: AdminServiceDep) -> AdminOverview:
    return admin.overview(session)


@router.get("/users", response_model=list[UserRead])
def list_users(_: AdminUser, session: SessionDep, admin: AdminServiceDep) -> list[UserRead]:
    return [UserRead.model_validate(u) for u in admin.list_users(session)]


@router.get("/users/{user_id}", response_model=AdminUserDetail)
def user_detail(
    user_id: int, _: AdminUser, session: SessionDep, admin: AdminServiceDep
) -> AdminUserDetail:
    return admin.user_detail(session, user_id)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int, current: AdminUser, session: SessionDep, admin: AdminServiceDep
) -> None:
    """Hard-delete a user with their stakes, rewards, transactions and referral links."""
    admin.delete_user(session, user_id, acting_admin_id=current.id)


@router.get("/staking", response_model=list[AdminStakingRow])
def staking_rows(_: AdminUser, session: SessionDep, admin: AdminServiceDep) -> list[AdminStakingRow]:
    """Staking users with their 24-hour rewards."""
    return admin.staking_rows(session)


@router.get("/rewards", response_model=AdminRewardsReport)
def rewards_report(
    _: AdminUser, session: SessionDep, skim: SkimCalculatorDep
) -> AdminRewardsReport:
    """Platform take from the actual/displayed APY spread. Read-only."""
    return skim.report(session)


@router.get("/settings", response_model=StakingSettingsRead)
def read_settings(
    _: AdminUser, session: SessionDep, settings: SettingsServiceDep
) -> StakingSettingsRead:
    return StakingSettingsRead.model_validate(settings.get(session))


@router.put("/settings", response_model=StakingSettingsRead)
def update_settings(
    body: StakingSettingsUpdate,
    current: AdminUser,
    session: SessionDep,
    settings: SettingsServiceDep,
    master_wallet: MasterWalletDep,
) -> StakingSettingsRead:
    """Change APYs, minimum stake or master wallet address."""
    row = settings.update(session, body, updated_by=current.id)
    master_wallet.address = row.master_wallet_address
    return StakingSettingsRead.model_validate(row)


@router.post("/rewards/run", response_model=MaterializationRead)
async def run_rewards(current: AdminUser, materializer: MaterializerDep) -> MaterializationRead:
    """Run one reward-materializer tick now."""
    logger.info("Reward tick triggered by admin %s", current.id)
    report = await run_in_threadpool(materializer.run_once)
    return MaterializationRead(
        posted=report.posted,
        referral_posted=report.referral_posted,
        skipped=report.skipped,
        failed=report.failed,
    )
