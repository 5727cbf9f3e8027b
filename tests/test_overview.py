from __future__ import annotations

from datetime import date

import pytest

from payoff_dashboard.budgets import BudgetSettings, monthly_overview
from payoff_dashboard.models import Transaction

APRIL = date(2026, 4, 1)


def _april():
    return [
        Transaction(id='a', date=date(2026, 4, 2), name='Trader Joe', amount=600.0),
        Transaction(id='b', date=date(2026, 4, 9), name='Starbucks', amount=600.0),
        Transaction(id='c', date=date(2026, 4, 1), name='Landlord', amount=2400.0, category='Rent'),
    ]


def test_overview_mid_month(rules):
    overview = monthly_overview(_april(), APRIL, today=date(2026, 4, 15), rules=rules)

    info = overview.month_info
    assert (info.label, info.day_of_month, info.days_in_month) == ('April 2026', 15, 30)
    assert info.is_current_month

    assert overview.total_monthly_budget == 2150.0
    assert overview.total_flexible_spending == pytest.approx(1200.0)
    assert overview.remaining_budget == pytest.approx(950.0)

    assert overview.monthly_pace.percentage == 55.8
    assert overview.monthly_pace.expected_percentage == 50.0
    assert overview.monthly_pace.status == 'over'
    assert overview.weekly_pace.percentage == 56.0

    assert overview.category_pace['Groceries'].percentage == 100.0
    assert overview.category_pace['Travel'].status == 'under'


def test_every_flexible_category_is_listed(rules):
    overview = monthly_overview(_april(), APRIL, today=date(2026, 4, 15), rules=rules)

    assert overview.category_spending == pytest.approx({
        'Groceries': 600.0,
        'Dining': 600.0,
        'Discretionary': 0.0,
        'Travel': 0.0,
        'Dates': 0.0,
    })


def test_overview_includes_rollover(rules):
    overview = monthly_overview(_april(), APRIL, today=date(2026, 4, 15), rules=rules)

    assert overview.rollover.current_week == 3
    assert overview.rollover.base_weekly_budget == pytest.approx(430.0)
    assert overview.rollover.rollover_type == 'deficit'


def test_rollover_disabled(rules):
    settings = BudgetSettings(enable_rollover=False)

    overview = monthly_overview(_april(), APRIL, settings=settings, today=date(2026, 4, 15), rules=rules)

    assert overview.rollover is None


def test_past_month_is_paced_as_complete(rules):
    overview = monthly_overview(_april(), APRIL, today=date(2026, 6, 1), rules=rules)

    assert overview.month_info.day_of_month == 30
    assert not overview.month_info.is_current_month
    assert overview.monthly_pace.expected_percentage == 100.0
    assert overview.monthly_pace.status == 'under'
