"""Operator reporting and user management.

AdminSkimCalculator reports the platform's take: interest at the actual APY
minus what users are shown, on every active stake. It is a pure read.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func
from sqlmodel import Session, col, or_, select

from staking_dashboard.accrual import accrued_reward, quantize_amount
from staking_dashboard.db import (ReferralReward, Reward, Stake, StakeStatus,
                                  StakingSettings, Transaction, User)
from staking_dashboard.schemas import (AdminOverview, AdminRewardsReport,
                                       AdminStakingRow, AdminUserDetail,
                                       StakeRead, TransactionRead, UserRead)
from staking_dashboard.services.errors import ConflictError, NotFoundError
from staking_dashboard.services.ledger import (ledger_summary,
                                               total_active_stake,
                                               user_ids_with_active_stakes,
                                               user_transactions)
from staking_dashboard.services.settings import StakingSettingsService
from staking_dashboard.utils import utcnow

logger = logging.getLogger(__name__)


class AdminSkimCalculator:
    """Computes the APY spread the operator keeps."""

    def __init__(self, settings_service: StakingSettingsService) -> None:
        self._settings_service = settings_service

    def report(self, session: Session, as_of: datetime | None = None) -> AdminRewardsReport:
        as_of = as_of or utcnow()
        config = self._settings_service.get(session)
        spread = Decimal(config.actual_apy) - Decimal(config.displayed_apy)
        stakes = session.exec(select(Stake).where(Stake.status == StakeStatus.ACTIVE)).all()

        current = Decimal(0)
        tvl = Decimal(0)
        for stake in stakes:
            amount = Decimal(stake.amount)
            tvl += amount
            elapsed = (as_of - stake.created_at).total_seconds()
            current += accrued_reward(amount, spread, elapsed, minimum=Decimal(0))

        yearly = quantize_amount(tvl * spread / 100) if spread > 0 else Decimal(0)
        return AdminRewardsReport(
            as_of=as_of,
            current=current,
            monthly_projected=quantize_amount(yearly / 12),
            yearly_projected=yearly,
            total_value_locked=tvl,
            apy_spread=spread,
            active_stakes=len(stakes),
        )


class AdminService:
    """Platform overview and per-user administration."""

    def __init__(self, settings_service: StakingSettingsService) -> None:
        self._settings_service = settings_service

    def overview(self, session: Session) -> AdminOverview:
        active = session.exec(select(Stake.amount).where(Stake.status == StakeStatus.ACTIVE)).all()
        return AdminOverview(
            total_users=session.exec(select(func.count()).select_from(User)).one(),
            total_stakes=session.exec(select(func.count()).select_from(Stake)).one(),
            active_stakes=len(active),
            total_transactions=session.exec(select(func.count()).select_from(Transaction)).one(),
            total_staked_amount=sum((Decimal(a) for a in active), Decimal(0)),
        )

    def list_users(self, session: Session) -> list[User]:
        return list(session.exec(select(User).order_by(col(User.id))).all())

    def _user(self, session: Session, user_id: int) -> User:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def user_detail(self, session: Session, user_id: int) -> AdminUserDetail:
        user = self._user(session, user_id)
        stakes = session.exec(
            select(Stake).where(Stake.user_id == user_id).order_by(col(Stake.created_at).desc())
        ).all()
        return AdminUserDetail(
            user=UserRead.model_validate(user),
            stakes=[StakeRead.model_validate(s) for s in stakes],
            transactions=[
                TransactionRead.model_validate(t)
                for t in user_transactions(session, user_id, newest_first=True)
            ],
        )

    def delete_user(self, session: Session, user_id: int, acting_admin_id: int | None = None) -> None:
        """Hard-delete a user and everything attributed to them."""
        if acting_admin_id is not None and user_id == acting_admin_id:
            raise ConflictError("Admins cannot delete their own account")
        user = self._user(session, user_id)
        stake_ids = list(session.exec(select(Stake.id).where(Stake.user_id == user_id)).all())
        tx_ids = list(
            session.exec(select(Transaction.id).where(Transaction.user_id == user_id)).all()
        )

        links = session.exec(
            select(ReferralReward).where(
                or_(
                    ReferralReward.referrer_id == user_id,
                    ReferralReward.referred_id == user_id,
                    col(ReferralReward.transaction_id).in_(tx_ids),
                    col(ReferralReward.source_transaction_id).in_(tx_ids),
                )
            )
        ).all()
        for row in links:
            session.delete(row)
        if stake_ids:
            for row in session.exec(select(Reward).where(col(Reward.stake_id).in_(stake_ids))).all():
                session.delete(row)
        session.flush()
        for row in session.exec(select(Transaction).where(Transaction.user_id == user_id)).all():
            session.delete(row)
        for row in session.exec(select(Stake).where(Stake.user_id == user_id)).all():
            session.delete(row)
        for referred in session.exec(select(User).where(User.referrer_id == user_id)).all():
            referred.referrer_id = None
            session.add(referred)
        for row in session.exec(
            select(StakingSettings).where(StakingSettings.updated_by == user_id)
        ).all():
            row.updated_by = None
            session.add(row)
        session.flush()
        session.delete(user)
        session.commit()
        logger.info(
            "Deleted user %s (%d stakes, %d transactions)", user_id, len(stake_ids), len(tx_ids)
        )

    def staking_rows(self, session: Session, now: datetime | None = None) -> list[AdminStakingRow]:
        """One row per staking user with rewards accrued over the last 24 hours."""
        now = now or utcnow()
        config = self._settings_service.get(session)
        apy = Decimal(config.displayed_apy)
        minimum = Decimal(config.min_stake_amount)
        rows = []
        for user_id in user_ids_with_active_stakes(session):
            user = session.get(User, user_id)
            summary = ledger_summary(session, user_id)
            rows.append(
                AdminStakingRow(
                    id=user_id,
                    username=user.username,
                    wallet_address=user.wallet_address or "",
                    total_staked=total_active_stake(session, user_id),
                    current_rewards=summary.timeline.accrued(
                        now - timedelta(hours=24), now, apy, minimum=minimum
                    ),
                    last_reward_at=summary.last_reward_at,
                )
            )
        return rows
