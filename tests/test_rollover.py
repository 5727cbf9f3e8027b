from __future__ import annotations

from datetime import date

import pytest

from payoff_dashboard.budgets.rollover import current_week_for, weekly_rollover, weekly_spending
from payoff_dashboard.models import Transaction

FEBRUARY = date(2026, 2, 1)


def _txn(day: date, name: str, amount: float, **kwargs) -> Transaction:
    return Transaction(id=f"{day.isoformat()}-{name}", date=day, name=name, amount=amount, **kwargs)


def _february():
    return [
        _txn(date(2026, 2, 3), 'Safeway', 80.0),
        _txn(date(2026, 2, 10), 'Trader Joe', 100.0),
        # Not flexible spending
        _txn(date(2026, 2, 4), 'Rent Payment Co', 2000.0, category='Rent'),
        _txn(date(2026, 2, 5), 'Paycheck', 3000.0, type='income'),
    ]


def test_completed_surpluses_carry_forward(rules):
    rollover = weekly_rollover(_february(), FEBRUARY, 400, today=date(2026, 3, 10), rules=rules)

    assert rollover.total_weeks == 4
    assert rollover.base_weekly_budget == pytest.approx(100.0)
    assert rollover.current_week == 4
    week1, week2, week3, week4 = rollover.weeks
    assert (week1.effective_budget, week1.surplus) == (pytest.approx(100.0), pytest.approx(20.0))
    assert (week2.effective_budget, week2.surplus) == (pytest.approx(120.0), pytest.approx(20.0))
    assert week3.effective_budget == pytest.approx(140.0)
    assert [w.is_completed for w in rollover.weeks] == [True, True, True, False]
    assert week4.is_current_week


def test_carry_compounds_across_completed_weeks(rules):
    transactions = _february() + [_txn(date(2026, 2, 17), 'Safeway', 100.0)]

    rollover = weekly_rollover(transactions, FEBRUARY, 400, today=date(2026, 2, 24), rules=rules)

    assert [w.effective_budget for w in rollover.weeks] == pytest.approx([100.0, 120.0, 140.0, 180.0])
    assert rollover.cumulative_rollover == pytest.approx(80.0)
    assert rollover.effective_budget_this_week == pytest.approx(180.0)


def test_current_week_remaining(rules):
    rollover = weekly_rollover(_february(), FEBRUARY, 400, today=date(2026, 2, 10), rules=rules)

    assert rollover.current_week == 2
    assert rollover.cumulative_rollover == pytest.approx(20.0)
    assert rollover.effective_budget_this_week == pytest.approx(120.0)
    assert rollover.spent_this_week == pytest.approx(100.0)
    assert rollover.remaining_this_week == pytest.approx(20.0)
    assert rollover.has_rollover
    assert rollover.rollover_type == 'surplus'
    assert rollover.weeks[1].rollover_to_next == 0.0


def test_overspending_creates_deficit(rules):
    transactions = [_txn(date(2026, 2, 2), 'Safeway', 180.0)]

    rollover = weekly_rollover(transactions, FEBRUARY, 400, today=date(2026, 2, 9), rules=rules)

    assert rollover.cumulative_rollover == pytest.approx(-80.0)
    assert rollover.rollover_type == 'deficit'
    assert rollover.rollover_amount == pytest.approx(80.0)
    assert rollover.remaining_this_week == pytest.approx(20.0)


def test_small_rollover_is_noise(rules):
    transactions = [_txn(date(2026, 2, 2), 'Safeway', 99.5)]

    rollover = weekly_rollover(transactions, FEBRUARY, 400, today=date(2026, 2, 9), rules=rules)

    assert not rollover.has_rollover


def test_future_month_has_no_completed_weeks(rules):
    rollover = weekly_rollover(_february(), FEBRUARY, 400, today=date(2026, 1, 20), rules=rules)

    assert rollover.current_week == 1
    assert rollover.cumulative_rollover == 0.0
    assert not any(w.is_completed for w in rollover.weeks)


def test_disabled_returns_none(rules):
    assert weekly_rollover(_february(), FEBRUARY, 400, enabled=False, rules=rules) is None


def test_long_month_has_partial_last_week(rules):
    rollover = weekly_rollover([], date(2026, 3, 1), 500, today=date(2026, 3, 2), rules=rules)

    assert rollover.total_weeks == 5
    assert rollover.base_weekly_budget == pytest.approx(100.0)
    assert (rollover.weeks[-1].start_day, rollover.weeks[-1].end_day) == (29, 31)


def test_weekly_spending_ignores_non_flexible(rules):
    assert weekly_spending(_february(), FEBRUARY, rules) == pytest.approx({1: 80.0, 2: 100.0})


def test_current_week_for():
    assert current_week_for(FEBRUARY, date(2026, 2, 15), 4) == 3
    assert current_week_for(FEBRUARY, date(2026, 5, 1), 4) == 4
    assert current_week_for(FEBRUARY, date(2025, 12, 1), 4) == 1
