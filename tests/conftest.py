"""Shared fixtures: in-memory SQLite, fake providers, and an app wired to both."""
from datetime import datetime
from decimal import Decimal

import httpx
import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient
from sqlmodel import Session

from staking_dashboard.coins import load_coin_registry
from staking_dashboard.config import Settings
from staking_dashboard.container import Container
from staking_dashboard.db import (Stake, StakeStatus, Transaction,
                                  TransactionStatus, TransactionType, User)
from staking_dashboard.db.sessions import create_db_engine, init_db
from staking_dashboard.main import create_app
from staking_dashboard.providers import NullStakingProvider, PriceProviderABC
from staking_dashboard.schemas import PriceQuote
from staking_dashboard.services import (StakingService,
                                        StakingSettingsService, UserService)

T0 = datetime(2024, 1, 1, 0, 0, 0)


class FakePriceProvider(PriceProviderABC):
    """In-memory price feed; set `fail` to make every call raise a transport error."""

    def __init__(self, prices: dict[str, float] | None = None) -> None:
        self.prices = prices if prices is not None else {"ethereum": 2500.0}
        self.fail = False
        self.calls = 0
        self.closed = False

    async def get_quote(self, coin_id: str) -> PriceQuote:
        self.calls += 1
        if self.fail:
            raise httpx.ConnectError("feed down")
        if coin_id not in self.prices:
            raise ValueError(f"Coin '{coin_id}' not found")
        return PriceQuote(symbol=coin_id, value=self.prices[coin_id], timestamp=T0)

    async def get_history(self, coin_id: str, start: datetime, end: datetime) -> list[PriceQuote]:
        if self.fail:
            raise httpx.ConnectError("feed down")
        price = self.prices[coin_id]
        return [
            PriceQuote(symbol=coin_id, value=price, timestamp=start),
            PriceQuote(symbol=coin_id, value=price, timestamp=end),
        ]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        reward_job_enabled=False,
        reward_interval_seconds=60,
        price_cache_ttl_seconds=0.0,
    )


@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings.database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def settings_service(settings) -> StakingSettingsService:
    return StakingSettingsService(settings)


@pytest.fixture
def user_service(settings) -> UserService:
    return UserService(settings)


@pytest.fixture
def coin_registry():
    return load_coin_registry()


@pytest.fixture
def staking_service(coin_registry, settings_service) -> StakingService:
    return StakingService(coin_registry, settings_service)


@pytest.fixture
def make_user(session):
    """Create a user directly in the database."""
    counter = {"n": 0}

    def _make(username: str | None = None, referrer: User | None = None, is_admin: bool = False) -> User:
        counter["n"] += 1
        user = User(
            username=username or f"user{counter['n']}",
            hashed_password="not-a-real-hash",
            referral_code=f"REF-TEST{counter['n']:04d}",
            referrer_id=referrer.id if referrer else None,
            is_admin=is_admin,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def add_stake(session):
    """Record an active stake and its ledger row at a fixed time."""

    def _add(user: User, amount: str | Decimal, at: datetime = T0) -> Stake:
        amount = Decimal(amount)
        stake = Stake(
            user_id=user.id,
            amount=amount,
            status=StakeStatus.ACTIVE,
            created_at=at,
            updated_at=at,
        )
        session.add(stake)
        session.add(
            Transaction(
                user_id=user.id,
                type=TransactionType.STAKE,
                amount=amount,
                status=TransactionStatus.COMPLETED,
                created_at=at,
            )
        )
        session.commit()
        session.refresh(stake)
        return stake

    return _add


@pytest.fixture
def add_transaction(session):
    def _add(user: User, tx_type: TransactionType, amount: str | Decimal, at: datetime = T0) -> Transaction:
        tx = Transaction(
            user_id=user.id,
            type=tx_type,
            amount=Decimal(amount),
            status=TransactionStatus.COMPLETED,
            created_at=at,
        )
        session.add(tx)
        session.commit()
        session.refresh(tx)
        return tx

    return _add


@pytest.fixture
def price_provider() -> FakePriceProvider:
    return FakePriceProvider()


@pytest.fixture
def container(settings, engine, price_provider):
    container = Container()
    container.settings.override(providers.Object(settings))
    container.engine.override(providers.Object(engine))
    container.price_provider.override(providers.Object(price_provider))
    container.staking_provider.override(providers.Object(NullStakingProvider()))
    yield container
    container.reset_override()


@pytest.fixture
def client(container):
    app = create_app(container)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register a user through the API and return bearer headers for them."""

    def _register(username: str = "alice", password: str = "correct-horse", **extra) -> dict:
        body = {"username": username, "password": password, **extra}
        response = client.post("/auth/register", json=body)
        assert response.status_code == 201, response.text
        response = client.post("/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _register


@pytest.fixture
def admin_headers(client, engine, user_service) -> dict:
    with Session(engine) as session:
        user_service.create_admin(session, "root", "admin-password")
    response = client.post("/auth/login", json={"username": "root", "password": "admin-password"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
