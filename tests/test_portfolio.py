from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from staking_dashboard.accrual import SECONDS_PER_YEAR, accrued_reward
from staking_dashboard.db import TransactionType
from staking_dashboard.schemas import SeriesPoint
from staking_dashboard.services import (InvalidAmountError, InvalidInputError,
                                        PortfolioAggregator,
                                        RewardMaterializer,
                                        compound_calculator)

T0 = datetime(2024, 1, 1)
YEAR = timedelta(seconds=SECONDS_PER_YEAR)
TOLERANCE = Decimal("1e-15")


@pytest.fixture
def aggregator(settings_service):
    return PortfolioAggregator(settings_service)


def test_user_without_stakes_has_nothing(session, aggregator, make_user):
    user = make_user()
    assert aggregator.current_rewards(session, user.id, T0) == 0
    assert aggregator.accrued_rewards(session, user.id, T0) == 0
    portfolio = aggregator.portfolio(session, user.id, T0)
    assert portfolio.staked == 0
    assert portfolio.withdrawable_rewards == 0
    assert portfolio.value_usd is None


def test_current_rewards_without_postings_is_the_formula(session, aggregator, make_user, add_stake):
    user = make_user()
    add_stake(user, "10")

    assert aggregator.current_rewards(session, user.id, T0 + YEAR) == Decimal("0.3")
    assert aggregator.accrued_rewards(session, user.id, T0 + YEAR) == Decimal("0.3")


def test_current_rewards_adds_pending_since_last_posting(engine, settings, settings_service, session, aggregator, make_user, add_stake):
    user = make_user()
    add_stake(user, "10")
    RewardMaterializer(engine, settings, settings_service).run_once(T0 + timedelta(seconds=60))

    current = aggregator.current_rewards(session, user.id, T0 + timedelta(seconds=120))

    assert abs(current - 2 * accrued_reward(10, 3, 60)) < TOLERANCE


def test_later_stakes_do_not_earn_from_the_first_stake_date(session, aggregator, make_user, add_stake):
    user = make_user()
    add_stake(user, "10", T0)
    add_stake(user, "10", T0 + YEAR / 2)

    assert aggregator.accrued_rewards(session, user.id, T0 + YEAR) == Decimal("0.45")


def test_portfolio_figures(session, aggregator, make_user, add_stake, add_transaction):
    user = make_user()
    add_stake(user, "12")
    add_transaction(user, TransactionType.REWARD, "0.25", T0 + YEAR / 2)
    add_transaction(user, TransactionType.REFERRAL_REWARD, "0.05", T0 + YEAR / 2)
    add_transaction(user, TransactionType.WITHDRAW, "0.1", T0 + YEAR / 2)

    portfolio = aggregator.portfolio(session, user.id, T0 + YEAR, price_usd=2000.0)

    assert portfolio.coin == "ETH"
    assert portfolio.staked == 12
    assert portfolio.apy == Decimal("3.00")
    assert portfolio.ledger_rewards == Decimal("0.25")
    # pending from the last posting at half a year
    assert portfolio.pending_rewards == Decimal("0.18")
    assert portfolio.current_rewards == Decimal("0.43")
    assert portfolio.accrued_rewards == Decimal("0.36")
    assert abs(portfolio.referral_rewards - Decimal("0.05")) < TOLERANCE
    assert abs(portfolio.withdrawable_rewards - Decimal("0.2")) < TOLERANCE
    assert portfolio.monthly_rewards == Decimal("0.03")
    assert portfolio.value_usd == 24000.0


def test_rewards_series_is_end_inclusive_and_non_decreasing(session, aggregator, make_user, add_stake):
    user = make_user()
    add_stake(user, "10")
    end = T0 + timedelta(hours=1)

    points = aggregator.rewards_series(session, user.id, T0, end, 1500)

    assert [p.timestamp for p in points] == [
        T0,
        T0 + timedelta(seconds=1500),
        T0 + timedelta(seconds=3000),
        end,
    ]
    assert points[0].value == 0
    values = [p.value for p in points]
    assert values == sorted(values)
    assert points[-1].value == accrued_reward(10, 3, 3600)


def test_rewards_series_before_first_stake_is_zero(session, aggregator, make_user, add_stake):
    user = make_user()
    add_stake(user, "10", T0 + timedelta(days=1))

    points = aggregator.rewards_series(session, user.id, T0, T0 + timedelta(hours=2), 3600)

    assert [p.value for p in points] == [0, 0, 0]


@pytest.mark.parametrize(
    "start,end,step",
    [
        (T0, T0 + timedelta(hours=1), 0),
        (T0, T0 + timedelta(hours=1), -5),
        (T0 + timedelta(hours=1), T0, 60),
        (T0, T0 + timedelta(days=30), 60),
    ],
)
def test_rewards_series_rejects_bad_ranges(session, aggregator, make_user, start, end, step):
    user = make_user()
    with pytest.raises(InvalidInputError):
        aggregator.rewards_series(session, user.id, start, end, step)


def test_staking_data_covers_the_last_week(session, aggregator, make_user, add_stake):
    user = make_user()
    add_stake(user, "10")
    now = T0 + timedelta(days=30)

    data = aggregator.staking_data(session, user.id, now)

    assert data.total_staked == 10
    assert data.last_updated == now
    assert data.rewards_history[0].timestamp == now - timedelta(days=7)
    assert data.rewards_history[-1].timestamp == now
    assert len(data.rewards_history) == 7 * 24 * 12 + 1
    assert data.rewards == data.rewards_history[-1].value


def test_compound_calculator_compares_simple_and_compound():
    projection = compound_calculator(Decimal(1000), Decimal(3), 365)

    assert projection.simple_rewards == Decimal(30)
    assert projection.compound_rewards > projection.simple_rewards
    assert projection.final_balance == 1000 + projection.compound_rewards


def test_compound_calculator_validates_input():
    with pytest.raises(InvalidInputError):
        compound_calculator(Decimal(0), Decimal(3), 365)
    with pytest.raises(InvalidInputError):
        compound_calculator(Decimal(1), Decimal(3), 0)


def test_compound_calculator_handles_large_amounts():
    projection = compound_calculator(Decimal(2 * 10**10), Decimal(3), 365)

    assert projection.simple_rewards == Decimal(6 * 10**8)
    with pytest.raises(InvalidAmountError):
        compound_calculator(Decimal(10) ** 18, Decimal(3), 365)


def test_responses_round_for_display(session, aggregator, make_user, add_stake):
    user = make_user()
    add_stake(user, "1.23456789")

    body = aggregator.portfolio(session, user.id, T0 + timedelta(days=1)).model_dump(mode="json")
    point = SeriesPoint(timestamp=T0, value=Decimal("0.123456789987654321"))

    assert body["staked"] == "1.234568"
    assert Decimal(body["accrued_rewards"]).as_tuple().exponent == -9
    assert point.model_dump(mode="json")["value"] == "0.123456790"
