from __future__ import annotations

from datetime import date

import pytest

from payoff_dashboard.budgets import calculations as calc
from payoff_dashboard.models import Transaction

MARCH = date(2026, 3, 1)


def _txn(day: date, name: str, amount: float, **kwargs) -> Transaction:
    return Transaction(id=f"{day.isoformat()}-{name}-{amount}", date=day, name=name, amount=amount, **kwargs)


def _march_transactions():
    return [
        _txn(date(2026, 3, 2), 'Safeway', 120.0),
        _txn(date(2026, 3, 3), 'Trader Joe', 80.0),
        _txn(date(2026, 3, 4), 'Starbucks', 6.5),
        _txn(date(2026, 3, 5), 'Dinner Spot', 300.0, category='Restaurants'),
        _txn(date(2026, 3, 6), 'Netflix', 15.49),
        _txn(date(2026, 3, 7), 'Mystery Vendor', 75.0),
        _txn(date(2026, 3, 8), 'Corner Shop', 10.0, category='Other'),
        _txn(date(2026, 3, 9), 'AMEX EPAYMENT PAYMENT', 900.0),
        _txn(date(2026, 3, 10), 'Paycheck', 2500.0, type='income'),
        _txn(date(2026, 3, 11), 'Refund', 40.0, excluded=True),
        _txn(date(2026, 2, 27), 'Safeway', 99.0),
    ]


def test_pace_status_equal_is_under():
    pace = calc.pace_status(50, 100, 15, 30)

    assert pace == calc.PaceStatus(percentage=50.0, expected_percentage=50.0, status='under', difference=0.0)


def test_pace_status_on_pace_within_ten_percent():
    pace = calc.pace_status(54, 100, 15, 30)

    assert pace.status == 'on-pace'
    assert pace.percentage == 54.0
    assert pace.difference == 4.0


def test_pace_status_over():
    pace = calc.pace_status(56, 100, 15, 30)

    assert pace.status == 'over'
    assert pace.percentage == 56.0
    assert pace.expected_percentage == 50.0


def test_pace_status_zero_guards():
    assert calc.pace_status(120, 0, 10, 30).percentage == 0.0
    assert calc.pace_status(120, 0, 10, 30).status == 'under'
    assert calc.pace_status(10, 100, 5, 0).expected_percentage == 0.0


def test_pace_status_rounds_to_one_decimal():
    pace = calc.pace_status(1200, 2150, 15, 30)

    assert pace.percentage == 55.8
    assert pace.difference == 5.8
    assert pace.status == 'over'


def test_spending_by_category_only_flexible(rules):
    spending = calc.spending_by_category(_march_transactions(), MARCH, rules)

    assert spending == pytest.approx({'Groceries': 200.0, 'Dining': 306.5})


def test_full_category_spending_includes_every_tier(rules):
    spending = calc.full_category_spending(_march_transactions(), MARCH, rules)

    assert spending == pytest.approx({
        'Dining': 306.5,
        'Groceries': 200.0,
        'Uncategorized': 85.0,
        'Subscriptions': 15.49,
    })
    assert list(spending)[0] == 'Dining'


def test_category_and_total_flexible_spending(rules):
    transactions = _march_transactions()

    assert calc.category_spending(transactions, 'Groceries', MARCH, rules) == pytest.approx(200.0)
    assert calc.category_spending(transactions, 'Travel', MARCH, rules) == 0.0
    assert calc.total_flexible_spending(transactions, MARCH, rules) == pytest.approx(506.5)


def test_empty_month(rules):
    empty = date(2025, 1, 1)

    assert calc.spending_by_category(_march_transactions(), empty, rules) == {}
    assert calc.full_category_spending([], empty, rules) == {}
    assert calc.total_flexible_spending([], empty, rules) == 0.0
    assert calc.normalized_spending([], empty, rules) == 0.0


def test_is_one_time_transaction():
    assert calc.is_one_time_transaction(_txn(MARCH, 'Big Purchase', 250.0))
    assert calc.is_one_time_transaction(_txn(MARCH, 'EMERALD CITY COMIC CON', 40.0))
    assert calc.is_one_time_transaction({'name': 'Frame Central', 'amount': 10.0})
    assert not calc.is_one_time_transaction(_txn(MARCH, 'Safeway', 200.0))


def test_normalized_spending_skips_one_time(rules):
    # The 300 dinner is over the one-time threshold
    assert calc.normalized_spending(_march_transactions(), MARCH, rules) == pytest.approx(206.5)


def test_monthly_stats(rules):
    stats = calc.monthly_stats(_march_transactions(), MARCH, rules)

    assert stats == {
        'total_transactions': 10,
        'active_transactions': 7,
        'uncategorized_count': 2,
        'low_confidence_count': 1,
        'other_count': 1,
        'needs_attention_count': 2,
    }
