"""Read-time reward figures and chart series.

Two views of "rewards so far" are offered:

- current_rewards: what the ledger has booked plus the estimate accrued since
  the last posting. This is what the user can expect to see materialize.
- accrued_rewards: the closed-form amount over the whole principal history,
  ignoring the ledger entirely.

Both evaluate the principal piecewise, so stakes added or removed later do not
retroactively earn from the first stake's date.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlmodel import Session

from staking_dashboard.accrual import (MAX_AMOUNT, SECONDS_PER_DAY,
                                       accrued_reward, compound_projection,
                                       quantize_amount, to_decimal)
from staking_dashboard.schemas import (CompoundProjection, PortfolioRead,
                                       SeriesPoint, StakingDataRead)
from staking_dashboard.services.errors import (InvalidAmountError,
                                               InvalidInputError)
from staking_dashboard.services.ledger import (LedgerSummary, ledger_summary,
                                               total_active_stake)
from staking_dashboard.services.settings import StakingSettingsService
from staking_dashboard.utils import utcnow

logger = logging.getLogger(__name__)

MAX_SERIES_POINTS = 10_000
HISTORY_WINDOW = timedelta(days=7)
HISTORY_STEP_SECONDS = 300


def compound_calculator(amount: Decimal, apy: Decimal, days: int) -> CompoundProjection:
    """Simple vs daily-compounded projection; illustration only."""
    amount = to_decimal(amount)
    apy = to_decimal(apy)
    if amount <= 0:
        raise InvalidAmountError("Amount must be positive")
    if amount > MAX_AMOUNT:
        raise InvalidAmountError("Amount is too large")
    if days <= 0:
        raise InvalidInputError("Days must be positive")
    if apy < 0:
        raise InvalidInputError("APY must not be negative")
    simple = accrued_reward(amount, apy, days * SECONDS_PER_DAY, minimum=Decimal(0))
    final_balance, earned = compound_projection(amount, apy, days)
    return CompoundProjection(
        amount=amount,
        apy=apy,
        days=days,
        simple_rewards=simple,
        compound_rewards=earned,
        final_balance=final_balance,
    )


class PortfolioAggregator:
    """Recomputes a user's reward figures from the ledger on every read."""

    def __init__(self, settings_service: StakingSettingsService) -> None:
        self._settings_service = settings_service

    def _rates(self, session: Session) -> tuple[Decimal, Decimal]:
        config = self._settings_service.get(session)
        return Decimal(config.displayed_apy), Decimal(config.min_stake_amount)

    @staticmethod
    def _pending(summary: LedgerSummary, now: datetime, apy: Decimal, minimum: Decimal) -> Decimal:
        start = summary.timeline.start
        if start is None:
            return Decimal(0)
        if summary.last_reward_at is not None and summary.last_reward_at > start:
            start = summary.last_reward_at
        return summary.timeline.accrued(start, now, apy, minimum=minimum)

    def current_rewards(self, session: Session, user_id: int, now: datetime | None = None) -> Decimal:
        now = now or utcnow()
        apy, minimum = self._rates(session)
        summary = ledger_summary(session, user_id)
        return summary.rewards_earned + self._pending(summary, now, apy, minimum)

    def accrued_rewards(self, session: Session, user_id: int, now: datetime | None = None) -> Decimal:
        now = now or utcnow()
        apy, minimum = self._rates(session)
        timeline = ledger_summary(session, user_id).timeline
        if timeline.start is None:
            return Decimal(0)
        return timeline.accrued(timeline.start, now, apy, minimum=minimum)

    def rewards_series(
        self,
        session: Session,
        user_id: int,
        start: datetime,
        end: datetime,
        step_seconds: int,
    ) -> list[SeriesPoint]:
        """Cumulative accrued rewards sampled every step_seconds, end inclusive."""
        if step_seconds <= 0:
            raise InvalidInputError("step_seconds must be positive")
        if end < start:
            raise InvalidInputError("end must not be before start")
        span = (end - start).total_seconds()
        if span // step_seconds + 2 > MAX_SERIES_POINTS:
            raise InvalidInputError(f"Series would exceed {MAX_SERIES_POINTS} points")

        apy, minimum = self._rates(session)
        timeline = ledger_summary(session, user_id).timeline
        origin = timeline.start
        step = timedelta(seconds=step_seconds)
        instants = []
        moment = start
        while moment <= end:
            instants.append(moment)
            moment += step
        if instants[-1] != end:
            instants.append(end)

        points = []
        for moment in instants:
            value = Decimal(0)
            if origin is not None and moment > origin:
                value = timeline.accrued(origin, moment, apy, minimum=minimum)
            points.append(SeriesPoint(timestamp=moment, value=value))
        return points

    def portfolio(
        self,
        session: Session,
        user_id: int,
        now: datetime | None = None,
        price_usd: float | None = None,
    ) -> PortfolioRead:
        now = now or utcnow()
        apy, minimum = self._rates(session)
        staked = total_active_stake(session, user_id)
        summary = ledger_summary(session, user_id)
        pending = self._pending(summary, now, apy, minimum)
        origin = summary.timeline.start
        accrued = (
            summary.timeline.accrued(origin, now, apy, minimum=minimum)
            if origin is not None
            else Decimal(0)
        )
        value_usd = None
        if price_usd is not None:
            value_usd = round(float(staked) * price_usd, 2)
        return PortfolioRead(
            coin=self._settings_service.coin_symbol,
            staked=staked,
            apy=apy,
            ledger_rewards=summary.rewards_earned,
            pending_rewards=pending,
            current_rewards=summary.rewards_earned + pending,
            accrued_rewards=accrued,
            referral_rewards=summary.referral_earned,
            withdrawable_rewards=summary.withdrawable,
            monthly_rewards=self.monthly_rewards(staked, apy),
            price_usd=price_usd,
            value_usd=value_usd,
        )

    def staking_data(self, session: Session, user_id: int, now: datetime | None = None) -> StakingDataRead:
        """Dashboard payload: totals plus the last week of rewards at 5-minute steps."""
        now = now or utcnow()
        apy, _ = self._rates(session)
        staked = total_active_stake(session, user_id)
        return StakingDataRead(
            total_staked=staked,
            rewards=self.current_rewards(session, user_id, now),
            monthly_rewards=self.monthly_rewards(staked, apy),
            rewards_history=self.rewards_series(
                session, user_id, now - HISTORY_WINDOW, now, HISTORY_STEP_SECONDS
            ),
            last_updated=now,
        )

    @staticmethod
    def monthly_rewards(staked: Decimal, apy: Decimal) -> Decimal:
        return quantize_amount(staked * apy / 100 / 12)
