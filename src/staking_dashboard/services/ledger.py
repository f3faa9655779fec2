"""Ledger queries and the per-user ledger fold.

Receipt rows (transfer, withdraw_all) carry the total a user moved; the balance
effects of those operations are booked as component rows (withdraw for the
reward part, unstake for principal). withdraw_all additionally resets the
principal to zero.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlmodel import Session, col, select

from staking_dashboard.accrual import PrincipalTimeline
from staking_dashboard.db import (Stake, StakeStatus, Transaction,
                                  TransactionStatus, TransactionType)


@dataclass
class LedgerSummary:
    """Balances derived from a user's completed transactions."""

    rewards_earned: Decimal = Decimal(0)
    referral_earned: Decimal = Decimal(0)
    withdrawn: Decimal = Decimal(0)
    last_reward_at: datetime | None = None
    timeline: PrincipalTimeline = field(default_factory=PrincipalTimeline)

    @property
    def withdrawable(self) -> Decimal:
        return max(self.rewards_earned + self.referral_earned - self.withdrawn, Decimal(0))

    @classmethod
    def from_transactions(cls, transactions: list[Transaction]) -> "LedgerSummary":
        completed = [tx for tx in transactions if tx.status == TransactionStatus.COMPLETED]
        summary = cls(timeline=PrincipalTimeline.from_transactions(completed))
        for tx in completed:
            amount = Decimal(tx.amount)
            if tx.type == TransactionType.REWARD:
                summary.rewards_earned += amount
                if summary.last_reward_at is None or tx.created_at > summary.last_reward_at:
                    summary.last_reward_at = tx.created_at
            elif tx.type == TransactionType.REFERRAL_REWARD:
                summary.referral_earned += amount
            elif tx.type == TransactionType.WITHDRAW:
                summary.withdrawn += amount
        return summary


def active_stakes(session: Session, user_id: int) -> list[Stake]:
    """Active stakes for a user, oldest first."""
    stmt = (
        select(Stake)
        .where(Stake.user_id == user_id, Stake.status == StakeStatus.ACTIVE)
        .order_by(col(Stake.created_at), col(Stake.id))
    )
    return list(session.exec(stmt).all())


def total_active_stake(session: Session, user_id: int) -> Decimal:
    """Sum of active stake amounts, in Decimal."""
    return sum((Decimal(s.amount) for s in active_stakes(session, user_id)), Decimal(0))


def user_ids_with_active_stakes(session: Session) -> list[int]:
    stmt = (
        select(Stake.user_id)
        .where(Stake.status == StakeStatus.ACTIVE)
        .distinct()
        .order_by(col(Stake.user_id))
    )
    return list(session.exec(stmt).all())


def user_transactions(
    session: Session,
    user_id: int,
    types: list[TransactionType] | None = None,
    newest_first: bool = False,
) -> list[Transaction]:
    stmt = select(Transaction).where(Transaction.user_id == user_id)
    if types:
        stmt = stmt.where(col(Transaction.type).in_(types))
    order = col(Transaction.created_at).desc() if newest_first else col(Transaction.created_at)
    stmt = stmt.order_by(order, col(Transaction.id).desc() if newest_first else col(Transaction.id))
    return list(session.exec(stmt).all())


def has_transaction_since(
    session: Session, user_id: int, tx_type: TransactionType, since: datetime
) -> bool:
    """Whether a transaction of the type was created strictly after `since`."""
    stmt = (
        select(Transaction.id)
        .where(
            Transaction.user_id == user_id,
            Transaction.type == tx_type,
            Transaction.created_at > since,
        )
        .limit(1)
    )
    return session.exec(stmt).first() is not None


def ledger_summary(session: Session, user_id: int) -> LedgerSummary:
    return LedgerSummary.from_transactions(user_transactions(session, user_id))
