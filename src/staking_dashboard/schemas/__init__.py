"""Pydantic schemas for API and runtime use. Not persisted to DB."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer

from staking_dashboard.accrual import display_principal, display_reward
from staking_dashboard.db import StakeStatus, TransactionStatus, TransactionType
from staking_dashboard.utils import utcnow


class PriceQuote(BaseModel):
    """Spot or historical price from the price feed."""

    symbol: str
    value: float
    volume: float | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: dict | None = None
    stale: bool = False  # served from cache after a feed failure


# Auth / users


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=8, max_length=128)
    email: str | None = None
    referral_code: str | None = None


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class WalletUpdate(BaseModel):
    wallet_address: str


class UserRead(BaseModel):
    id: int
    username: str
    email: str | None = None
    wallet_address: str | None = None
    referral_code: str
    referrer_id: int | None = None
    is_admin: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ReferralSummary(BaseModel):
    referral_code: str
    referred_users: list[str]
    total_earned: Decimal


# Staking


class StakeRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    coin: str = "ETH"


class AmountRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    coin: str = "ETH"


class CoinRequest(BaseModel):
    coin: str = "ETH"


class RewardCreate(BaseModel):
    amount: Decimal = Field(gt=0)


class StakeRead(BaseModel):
    id: int
    user_id: int
    amount: Decimal
    status: StakeStatus
    transaction_hash: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RewardRead(BaseModel):
    id: int
    stake_id: int
    amount: Decimal
    transaction_hash: str | None = None
    claimed_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TransactionRead(BaseModel):
    id: int
    user_id: int
    type: TransactionType
    amount: Decimal
    status: TransactionStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class OperationResult(BaseModel):
    """Response for withdraw / withdraw-all / transfer."""

    message: str
    amount: Decimal
    coin: str


# Portfolio / stats


class SeriesPoint(BaseModel):
    timestamp: datetime
    value: Decimal

    @field_serializer("value")
    def _round_value(self, value: Decimal) -> Decimal:
        return display_reward(value)


class PortfolioRead(BaseModel):
    coin: str
    staked: Decimal
    apy: Decimal
    ledger_rewards: Decimal
    pending_rewards: Decimal
    current_rewards: Decimal
    accrued_rewards: Decimal
    referral_rewards: Decimal
    withdrawable_rewards: Decimal
    monthly_rewards: Decimal
    price_usd: float | None = None
    value_usd: float | None = None

    @field_serializer("staked")
    def _round_principal(self, value: Decimal) -> Decimal:
        return display_principal(value)

    @field_serializer(
        "ledger_rewards",
        "pending_rewards",
        "current_rewards",
        "accrued_rewards",
        "referral_rewards",
        "withdrawable_rewards",
        "monthly_rewards",
    )
    def _round_rewards(self, value: Decimal) -> Decimal:
        return display_reward(value)


class StakingDataRead(BaseModel):
    total_staked: Decimal
    rewards: Decimal
    monthly_rewards: Decimal
    rewards_history: list[SeriesPoint]
    last_updated: datetime

    @field_serializer("total_staked")
    def _round_principal(self, value: Decimal) -> Decimal:
        return display_principal(value)

    @field_serializer("rewards", "monthly_rewards")
    def _round_rewards(self, value: Decimal) -> Decimal:
        return display_reward(value)


class CompoundProjection(BaseModel):
    amount: Decimal
    apy: Decimal
    days: int
    simple_rewards: Decimal
    compound_rewards: Decimal
    final_balance: Decimal


# Admin


class AdminRewardsReport(BaseModel):
    as_of: datetime
    current: Decimal
    monthly_projected: Decimal
    yearly_projected: Decimal
    total_value_locked: Decimal
    apy_spread: Decimal
    active_stakes: int

    @field_serializer("total_value_locked")
    def _round_principal(self, value: Decimal) -> Decimal:
        return display_principal(value)

    @field_serializer("current", "monthly_projected", "yearly_projected")
    def _round_rewards(self, value: Decimal) -> Decimal:
        return display_reward(value)


class AdminOverview(BaseModel):
    total_users: int
    total_stakes: int
    active_stakes: int
    total_transactions: int
    total_staked_amount: Decimal


class AdminStakingRow(BaseModel):
    id: int
    username: str
    wallet_address: str
    total_staked: Decimal
    current_rewards: Decimal
    last_reward_at: datetime | None = None

    @field_serializer("total_staked")
    def _round_principal(self, value: Decimal) -> Decimal:
        return display_principal(value)

    @field_serializer("current_rewards")
    def _round_rewards(self, value: Decimal) -> Decimal:
        return display_reward(value)


class AdminUserDetail(BaseModel):
    user: UserRead
    stakes: list[StakeRead]
    transactions: list[TransactionRead]


class StakingSettingsRead(BaseModel):
    coin_symbol: str
    displayed_apy: Decimal
    actual_apy: Decimal
    min_stake_amount: Decimal
    master_wallet_address: str | None = None
    updated_by: int | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}


class StakingSettingsUpdate(BaseModel):
    displayed_apy: Decimal | None = Field(default=None, ge=0, le=100)
    actual_apy: Decimal | None = Field(default=None, ge=0, le=100)
    min_stake_amount: Decimal | None = Field(default=None, ge=0)
    master_wallet_address: str | None = None


class MaterializationRead(BaseModel):
    posted: int
    referral_posted: int
    skipped: int
    failed: int


class NetworkStatsRead(BaseModel):
    """Validator behind the master wallet; fields are null when the provider has none."""

    master_wallet_address: str | None = None
    validator_id: str | None = None
    status: str | None = None
    total_staked_wei: str | None = None
    effectiveness: float | None = None


__all__ = [
    "AdminOverview",
    "AdminRewardsReport",
    "AdminStakingRow",
    "AdminUserDetail",
    "AmountRequest",
    "CoinRequest",
    "CompoundProjection",
    "LoginRequest",
    "MaterializationRead",
    "NetworkStatsRead",
    "OperationResult",
    "PortfolioRead",
    "PriceQuote",
    "ReferralSummary",
    "RegisterRequest",
    "RewardCreate",
    "RewardRead",
    "SeriesPoint",
    "StakeRead",
    "StakeRequest",
    "StakingDataRead",
    "StakingSettingsRead",
    "StakingSettingsUpdate",
    "TokenResponse",
    "TransactionRead",
    "UserRead",
    "WalletUpdate",
]
