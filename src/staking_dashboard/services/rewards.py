"""Reward materializer: turns accrued interest into ledger postings.

Each tick, every user with an active stake gets at most one `reward`
transaction worth one interval of simple interest on their current active
principal. Referrers receive a `referral_reward` of REFERRAL_RATE times that
reward, booked in the same database transaction.

At-most-one-posting-per-interval is enforced twice: a read check for a reward
created within the last interval, and the (user_id, type, period_key) unique
constraint, which also holds across several service instances.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from staking_dashboard.accrual import accrued_reward, quantize_amount
from staking_dashboard.config import Settings
from staking_dashboard.db import (ReferralReward, Transaction,
                                  TransactionStatus, TransactionType, User)
from staking_dashboard.db.sessions import session_scope
from staking_dashboard.services.ledger import (has_transaction_since,
                                               total_active_stake,
                                               user_ids_with_active_stakes)
from staking_dashboard.services.settings import StakingSettingsService
from staking_dashboard.utils import floor_to_interval, utcnow

logger = logging.getLogger(__name__)


@dataclass
class MaterializationReport:
    """Outcome counts for one tick."""

    posted: int = 0
    referral_posted: int = 0
    skipped: int = 0
    failed: int = 0


class RewardMaterializer:
    """Posts one interval's reward per staking user."""

    def __init__(
        self,
        engine: Engine,
        settings: Settings,
        settings_service: StakingSettingsService,
    ) -> None:
        self._engine = engine
        self._interval = settings.reward_interval_seconds
        self._min_postable = settings.min_postable_reward
        self._referral_rate = settings.referral_rate
        self._settings_service = settings_service

    @property
    def interval_seconds(self) -> int:
        return self._interval

    def run_once(self, now: datetime | None = None) -> MaterializationReport:
        """Process every user with an active stake once.

        Errors for one user are logged and counted; other users still run.
        """
        now = now or utcnow()
        report = MaterializationReport()
        with session_scope(self._engine) as session:
            config = self._settings_service.get(session)
            apy = Decimal(config.displayed_apy)
            minimum = Decimal(config.min_stake_amount)
            user_ids = user_ids_with_active_stakes(session)

        logger.debug("Reward tick at %s for %d users", now, len(user_ids))
        for user_id in user_ids:
            try:
                posted, referral = self._materialize_user(user_id, apy, minimum, now)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Reward posting failed for user %s", user_id)
                report.failed += 1
                continue
            if posted:
                report.posted += 1
                report.referral_posted += int(referral)
            else:
                report.skipped += 1

        logger.info(
            "Reward tick done: posted=%d referral=%d skipped=%d failed=%d",
            report.posted,
            report.referral_posted,
            report.skipped,
            report.failed,
        )
        return report

    def _materialize_user(
        self, user_id: int, apy: Decimal, minimum: Decimal, now: datetime
    ) -> tuple[bool, bool]:
        """Post the reward (and referral) for one user. Returns (posted, referral_posted)."""
        with session_scope(self._engine) as session:
            total_staked = total_active_stake(session, user_id)
            if total_staked < minimum:
                return False, False

            reward = accrued_reward(total_staked, apy, self._interval, minimum=minimum)
            if reward < self._min_postable:
                return False, False

            window_start = now - timedelta(seconds=self._interval)
            if has_transaction_since(session, user_id, TransactionType.REWARD, window_start):
                logger.debug("Reward for user %s already posted this interval", user_id)
                return False, False

            period_key = floor_to_interval(now, self._interval).isoformat()
            posting = Transaction(
                user_id=user_id,
                type=TransactionType.REWARD,
                amount=reward,
                status=TransactionStatus.COMPLETED,
                period_key=period_key,
                created_at=now,
            )
            session.add(posting)
            try:
                session.flush()
            except IntegrityError:
                session.rollback()
                logger.debug("Reward for user %s period %s already exists", user_id, period_key)
                return False, False

            user = session.get(User, user_id)
            if user is None or user.referrer_id is None:
                return True, False

            referral_amount = quantize_amount(reward * self._referral_rate)
            if referral_amount <= 0:
                return True, False
            payout = Transaction(
                user_id=user.referrer_id,
                type=TransactionType.REFERRAL_REWARD,
                amount=referral_amount,
                status=TransactionStatus.COMPLETED,
                period_key=f"{period_key}:{user_id}",
                created_at=now,
            )
            session.add(payout)
            session.flush()
            session.add(
                ReferralReward(
                    referrer_id=user.referrer_id,
                    referred_id=user_id,
                    transaction_id=payout.id,
                    source_transaction_id=posting.id,
                    amount=referral_amount,
                    created_at=now,
                )
            )
            return True, True
