"""FastAPI dependency injection: app.state.container holds singletons; Depends() resolves them."""
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from staking_dashboard.coins import CoinRegistry
from staking_dashboard.container import Container
from staking_dashboard.db import User
from staking_dashboard.providers import MasterWallet
from staking_dashboard.services import (AdminService, AdminSkimCalculator,
                                        AuthError, PermissionDeniedError,
                                        PortfolioAggregator, PriceService,
                                        RewardMaterializer,
                                        ServiceErrorMapper, StakingService,
                                        StakingSettingsService, UserService)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

_auth_errors = ServiceErrorMapper(resource_name="User")


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_session(request: Request) -> Generator[Session, None, None]:
    """One session per request; services commit explicitly."""
    session = Session(get_container(request).engine())
    try:
        yield session
    finally:
        session.close()


def get_user_service(request: Request) -> UserService:
    return get_container(request).user_service()


def get_staking_service(request: Request) -> StakingService:
    return get_container(request).staking_service()


def get_portfolio_service(request: Request) -> PortfolioAggregator:
    return get_container(request).portfolio_service()


def get_admin_service(request: Request) -> AdminService:
    return get_container(request).admin_service()


def get_skim_calculator(request: Request) -> AdminSkimCalculator:
    return get_container(request).skim_calculator()


def get_settings_service(request: Request) -> StakingSettingsService:
    return get_container(request).settings_service()


def get_price_service(request: Request) -> PriceService:
    return get_container(request).price_service()


def get_coin_registry(request: Request) -> CoinRegistry:
    return get_container(request).coin_registry()


def get_master_wallet(request: Request) -> MasterWallet:
    return get_container(request).master_wallet()


def get_reward_materializer(request: Request) -> RewardMaterializer:
    return get_container(request).reward_materializer()


# Type aliases for route injection
SessionDep = Annotated[Session, Depends(get_session)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
StakingServiceDep = Annotated[StakingService, Depends(get_staking_service)]
PortfolioDep = Annotated[PortfolioAggregator, Depends(get_portfolio_service)]
AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
SkimCalculatorDep = Annotated[AdminSkimCalculator, Depends(get_skim_calculator)]
SettingsServiceDep = Annotated[StakingSettingsService, Depends(get_settings_service)]
PriceServiceDep = Annotated[PriceService, Depends(get_price_service)]
CoinRegistryDep = Annotated[CoinRegistry, Depends(get_coin_registry)]
MasterWalletDep = Annotated[MasterWallet, Depends(get_master_wallet)]
MaterializerDep = Annotated[RewardMaterializer, Depends(get_reward_materializer)]


def get_current_user(
    session: SessionDep,
    users: UserServiceDep,
    token: Annotated[str, Depends(oauth2_scheme)],
) -> User:
    """Resolve the bearer token to a user; 401 otherwise."""
    try:
        return users.get_from_token(session, token)
    except AuthError as exc:
        _auth_errors.raise_http(exc)


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_admin(user: CurrentUser) -> User:
    if not user.is_admin:
        _auth_errors.raise_http(PermissionDeniedError("Admin access required"))
    return user


AdminUser = Annotated[User, Depends(require_admin)]
