"""Current-user routes: profile, wallet and referrals."""
from fastapi import APIRouter

from staking_dashboard.deps import CurrentUser, SessionDep, UserServiceDep
from staking_dashboard.schemas import ReferralSummary, UserRead, WalletUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def read_me(user: CurrentUser) -> UserRead:
    return UserRead.model_validate(user)


@router.put("/me/wallet", response_model=UserRead)
def update_wallet(
    body: WalletUpdate, user: CurrentUser, session: SessionDep, users: UserServiceDep
) -> UserRead:
    """Connect a wallet. The address must be 0x followed by 40 hex digits."""
    return UserRead.model_validate(users.update_wallet(session, user, body.wallet_address))


@router.get("/me/referrals", response_model=ReferralSummary)
def read_referrals(user: CurrentUser, session: SessionDep, users: UserServiceDep) -> ReferralSummary:
    """Referral code, referred usernames and referral earnings."""
    return users.referral_summary(session, user)
