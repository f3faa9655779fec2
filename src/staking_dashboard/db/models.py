"""Database models for the staking dashboard.

Monetary columns are Numeric(36, 18) and surface as Decimal. Timestamps are
naive UTC (see utils.utcnow), declared NaiveDatetime. Transactions are an
append-only ledger: rows are never updated except for their status.
"""
from decimal import Decimal
from enum import Enum

from pydantic import NaiveDatetime
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from staking_dashboard.utils import utcnow

AMOUNT_DIGITS = 36
AMOUNT_PLACES = 18


class StakeStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    WITHDRAWN = "withdrawn"


class TransactionType(str, Enum):
    STAKE = "stake"
    REWARD = "reward"
    REFERRAL_REWARD = "referral_reward"
    WITHDRAW = "withdraw"
    WITHDRAW_ALL = "withdraw_all"
    UNSTAKE = "unstake"
    TRANSFER = "transfer"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class User(SQLModel, table=True):
    """Account that can stake, refer other users, and (if admin) operate the platform."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    email: str | None = Field(default=None, unique=True, index=True)
    hashed_password: str
    wallet_address: str | None = None
    referrer_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    referral_code: str = Field(unique=True, index=True)
    is_admin: bool = Field(default=False)
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)


class Stake(SQLModel, table=True):
    """A deposit of principal; created_at is the accrual start."""

    __tablename__ = "stakes"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    amount: Decimal = Field(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES)
    status: StakeStatus = Field(default=StakeStatus.PENDING, index=True)
    transaction_hash: str | None = Field(default=None, unique=True)
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)


class Transaction(SQLModel, table=True):
    """Ledger entry attributed to a user (not to a stake).

    period_key is set for job-generated postings; the unique constraint allows
    at most one posting of a type per user per interval bucket.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint("user_id", "type", "period_key", name="uq_transactions_period"),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    type: TransactionType = Field(index=True)
    amount: Decimal = Field(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES)
    status: TransactionStatus = Field(default=TransactionStatus.PENDING)
    period_key: str | None = Field(default=None)
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime, index=True)


class Reward(SQLModel, table=True):
    """Per-stake reward record."""

    __tablename__ = "rewards"

    id: int | None = Field(default=None, primary_key=True)
    stake_id: int = Field(foreign_key="stakes.id", index=True)
    amount: Decimal = Field(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES)
    transaction_hash: str | None = Field(default=None, unique=True)
    claimed_at: NaiveDatetime | None = Field(default=None, sa_type=DateTime)
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)


class ReferralReward(SQLModel, table=True):
    """Links a referral payout to the reward posting that generated it."""

    __tablename__ = "referral_rewards"

    id: int | None = Field(default=None, primary_key=True)
    referrer_id: int = Field(foreign_key="users.id", index=True)
    referred_id: int = Field(foreign_key="users.id", index=True)
    transaction_id: int = Field(foreign_key="transactions.id")
    source_transaction_id: int = Field(foreign_key="transactions.id")
    amount: Decimal = Field(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES)
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)


class StakingSettings(SQLModel, table=True):
    """Operator-configured staking constants for one coin."""

    __tablename__ = "staking_settings"

    id: int | None = Field(default=None, primary_key=True)
    coin_symbol: str = Field(unique=True, index=True)
    displayed_apy: Decimal = Field(max_digits=8, decimal_places=4)
    actual_apy: Decimal = Field(max_digits=8, decimal_places=4)
    min_stake_amount: Decimal = Field(max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES)
    master_wallet_address: str | None = None
    updated_by: int | None = Field(default=None, foreign_key="users.id")
    updated_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)
