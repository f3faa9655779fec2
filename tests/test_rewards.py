from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlmodel import Session, select

from staking_dashboard.accrual import accrued_reward, quantize_amount
from staking_dashboard.db import (ReferralReward, StakeStatus, Transaction,
                                  TransactionStatus, TransactionType)
from staking_dashboard.services import PortfolioAggregator, RewardMaterializer
from staking_dashboard.utils import floor_to_interval

T0 = datetime(2024, 1, 1)
TOLERANCE = Decimal("1e-15")


@pytest.fixture
def materializer(engine, settings, settings_service):
    return RewardMaterializer(engine, settings, settings_service)


def _rewards(engine, tx_type=TransactionType.REWARD, user_id=None):
    with Session(engine) as session:
        stmt = select(Transaction).where(Transaction.type == tx_type)
        if user_id is not None:
            stmt = stmt.where(Transaction.user_id == user_id)
        return list(session.exec(stmt).all())


def test_posts_one_interval_of_interest_on_active_stake(engine, materializer, make_user, add_stake):
    user = make_user()
    add_stake(user, "10")

    report = materializer.run_once(T0 + timedelta(minutes=5))

    assert (report.posted, report.skipped, report.failed) == (1, 0, 0)
    [posting] = _rewards(engine)
    assert posting.user_id == user.id
    assert posting.status == TransactionStatus.COMPLETED
    assert posting.created_at == T0 + timedelta(minutes=5)
    assert abs(Decimal(posting.amount) - accrued_reward(10, 3, 60)) < TOLERANCE


def test_two_ticks_inside_one_interval_post_once(engine, materializer, make_user, add_stake):
    add_stake(make_user(), "10")
    now = T0 + timedelta(hours=1)

    first = materializer.run_once(now)
    second = materializer.run_once(now + timedelta(seconds=30))

    assert first.posted == 1
    assert (second.posted, second.skipped) == (0, 1)
    assert len(_rewards(engine)) == 1


def test_next_interval_posts_again(engine, materializer, make_user, add_stake):
    add_stake(make_user(), "10")
    now = T0 + timedelta(hours=1)

    materializer.run_once(now)
    materializer.run_once(now + timedelta(seconds=60))

    assert len(_rewards(engine)) == 2


def test_period_key_constraint_blocks_a_second_posting(engine, materializer, make_user, add_stake, session):
    user = make_user()
    add_stake(user, "10")
    now = T0 + timedelta(hours=1, seconds=45)
    # A posting for this bucket whose timestamp falls outside the read-check window
    session.add(
        Transaction(
            user_id=user.id,
            type=TransactionType.REWARD,
            amount=Decimal("0.000001"),
            status=TransactionStatus.COMPLETED,
            period_key=floor_to_interval(now, 60).isoformat(),
            created_at=now - timedelta(minutes=10),
        )
    )
    session.commit()

    report = materializer.run_once(now)

    assert (report.posted, report.skipped, report.failed) == (0, 1, 0)
    assert len(_rewards(engine)) == 1


def test_stake_below_minimum_never_earns(engine, materializer, make_user, add_stake):
    add_stake(make_user(), "0.005")

    for minute in range(1, 11):
        materializer.run_once(T0 + timedelta(minutes=minute))

    assert _rewards(engine) == []


def test_reward_below_postable_threshold_is_skipped(engine, materializer, make_user, add_stake):
    # 0.01 ETH for 60 s at 3% is about 5.7e-10, under the 1e-8 threshold
    add_stake(make_user(), "0.01")

    report = materializer.run_once(T0 + timedelta(minutes=1))

    assert (report.posted, report.skipped) == (0, 1)
    assert _rewards(engine) == []


def test_referrer_gets_one_percent_of_each_reward(engine, materializer, make_user, add_stake):
    referrer = make_user("referrer")
    referred = make_user("referred", referrer=referrer)
    add_stake(referred, "10")

    report = materializer.run_once(T0 + timedelta(minutes=1))

    assert (report.posted, report.referral_posted) == (1, 1)
    [reward] = _rewards(engine, user_id=referred.id)
    [payout] = _rewards(engine, TransactionType.REFERRAL_REWARD)
    assert payout.user_id == referrer.id
    assert payout.status == TransactionStatus.COMPLETED
    expected = quantize_amount(accrued_reward(10, 3, 60) * Decimal("0.01"))
    assert abs(Decimal(payout.amount) - expected) < TOLERANCE
    with Session(engine) as session:
        [link] = session.exec(select(ReferralReward)).all()
    assert (link.referrer_id, link.referred_id) == (referrer.id, referred.id)
    assert (link.transaction_id, link.source_transaction_id) == (payout.id, reward.id)


def test_no_referral_without_referrer(engine, materializer, make_user, add_stake):
    add_stake(make_user(), "10")

    report = materializer.run_once(T0 + timedelta(minutes=1))

    assert report.referral_posted == 0
    assert _rewards(engine, TransactionType.REFERRAL_REWARD) == []


def test_referrer_with_several_referred_users_gets_one_payout_each(engine, materializer, make_user, add_stake):
    referrer = make_user("referrer")
    for name in ("a", "b"):
        add_stake(make_user(name, referrer=referrer), "10")

    materializer.run_once(T0 + timedelta(minutes=1))

    assert len(_rewards(engine, TransactionType.REFERRAL_REWARD, user_id=referrer.id)) == 2


def test_failure_for_one_user_does_not_stop_others(engine, materializer, make_user, add_stake, monkeypatch):
    broken = make_user("broken")
    healthy = make_user("healthy")
    add_stake(broken, "10")
    add_stake(healthy, "10")
    real = materializer._materialize_user

    def flaky(user_id, *args):
        if user_id == broken.id:
            raise RuntimeError("boom")
        return real(user_id, *args)

    monkeypatch.setattr(materializer, "_materialize_user", flaky)

    report = materializer.run_once(T0 + timedelta(minutes=1))

    assert (report.posted, report.failed) == (1, 1)
    assert [tx.user_id for tx in _rewards(engine)] == [healthy.id]


def test_only_active_stakes_count(engine, materializer, make_user, add_stake, session):
    user = make_user()
    stake = add_stake(user, "10")
    stake.status = StakeStatus.WITHDRAWN
    session.add(stake)
    session.commit()

    report = materializer.run_once(T0 + timedelta(minutes=1))

    assert report.posted == 0
    assert _rewards(engine) == []


def test_daily_postings_for_a_year_match_the_formula(engine, settings, settings_service, make_user, add_stake, session):
    daily = settings.model_copy(update={"reward_interval_seconds": 86_400})
    materializer = RewardMaterializer(engine, daily, settings_service)
    user = make_user()
    add_stake(user, "10")

    for day in range(1, 366):
        materializer.run_once(T0 + timedelta(days=day))

    postings = _rewards(engine)
    assert len(postings) == 365
    ledger_total = sum((Decimal(tx.amount) for tx in postings), Decimal(0))
    assert abs(ledger_total - Decimal("0.3")) < Decimal("1e-9")

    formula = PortfolioAggregator(settings_service).accrued_rewards(
        session, user.id, T0 + timedelta(days=365)
    )
    assert abs(formula - Decimal("0.3")) < Decimal("1e-12")
