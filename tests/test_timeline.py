from datetime import datetime, timedelta
from decimal import Decimal

from staking_dashboard.accrual import SECONDS_PER_YEAR, PrincipalTimeline
from staking_dashboard.db import Transaction, TransactionType

T0 = datetime(2024, 1, 1)
YEAR = timedelta(seconds=SECONDS_PER_YEAR)


def _tx(tx_type, amount, at, tx_id=None):
    return Transaction(id=tx_id, user_id=1, type=tx_type, amount=Decimal(amount), created_at=at)


def test_empty_ledger_has_no_principal():
    timeline = PrincipalTimeline.from_transactions([])
    assert timeline.start is None
    assert timeline.principal_at(T0) == 0
    assert timeline.accrued(T0, T0 + YEAR, Decimal(3)) == 0


def test_stake_unstake_and_withdraw_all_move_principal():
    timeline = PrincipalTimeline.from_transactions(
        [
            _tx(TransactionType.STAKE, "10", T0),
            _tx(TransactionType.REWARD, "1", T0 + timedelta(days=1)),
            _tx(TransactionType.STAKE, "5", T0 + timedelta(days=2)),
            _tx(TransactionType.UNSTAKE, "3", T0 + timedelta(days=3)),
            _tx(TransactionType.WITHDRAW_ALL, "12.5", T0 + timedelta(days=4)),
        ]
    )
    assert timeline.start == T0
    assert timeline.principal_at(T0 - timedelta(seconds=1)) == 0
    assert timeline.principal_at(T0) == 10
    assert timeline.principal_at(T0 + timedelta(days=1)) == 10
    assert timeline.principal_at(T0 + timedelta(days=2)) == 15
    assert timeline.principal_at(T0 + timedelta(days=3, hours=1)) == 12
    assert timeline.principal_at(T0 + timedelta(days=5)) == 0
    assert len(timeline.breakpoints) == 4


def test_same_instant_changes_collapse_into_one_breakpoint():
    timeline = PrincipalTimeline.from_transactions(
        [
            _tx(TransactionType.STAKE, "1", T0, tx_id=1),
            _tx(TransactionType.STAKE, "2", T0, tx_id=2),
        ]
    )
    assert timeline.breakpoints == [(T0, Decimal(3))]


def test_unordered_input_is_sorted():
    timeline = PrincipalTimeline.from_transactions(
        [
            _tx(TransactionType.UNSTAKE, "4", T0 + timedelta(days=1)),
            _tx(TransactionType.STAKE, "10", T0),
        ]
    )
    assert timeline.principal_at(T0 + timedelta(days=2)) == 6


def test_accrual_is_piecewise_over_principal_changes():
    timeline = PrincipalTimeline.from_transactions(
        [
            _tx(TransactionType.STAKE, "10", T0),
            _tx(TransactionType.STAKE, "10", T0 + YEAR / 2),
        ]
    )
    # 10 for the whole year, plus 10 for the second half
    assert timeline.accrued(T0, T0 + YEAR, Decimal(3)) == Decimal("0.45")


def test_accrual_stops_after_withdraw_all():
    timeline = PrincipalTimeline.from_transactions(
        [
            _tx(TransactionType.STAKE, "100", T0),
            _tx(TransactionType.WITHDRAW_ALL, "103", T0 + YEAR),
        ]
    )
    assert timeline.accrued(T0, T0 + 3 * YEAR, Decimal(3)) == Decimal(3)


def test_accrual_window_clips_segments():
    timeline = PrincipalTimeline.from_transactions([_tx(TransactionType.STAKE, "100", T0)])
    assert timeline.accrued(T0 - YEAR, T0 + YEAR / 2, Decimal(3)) == Decimal("1.5")
    assert timeline.accrued(T0 + YEAR, T0, Decimal(3)) == 0


def test_floor_applies_per_segment():
    timeline = PrincipalTimeline.from_transactions(
        [
            _tx(TransactionType.STAKE, "0.005", T0),
            _tx(TransactionType.STAKE, "0.005", T0 + YEAR),
        ]
    )
    assert timeline.accrued(T0, T0 + 2 * YEAR, Decimal(3)) == Decimal("0.0003")
