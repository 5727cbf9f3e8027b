from __future__ import annotations

from datetime import date, datetime

import pandas as pd
import pytest

from payoff_dashboard import dates


def test_as_date_conversions():
    assert dates.as_date('2026-03-05') == date(2026, 3, 5)
    assert dates.as_date(datetime(2026, 3, 5, 14, 30)) == date(2026, 3, 5)
    assert dates.as_date(pd.Timestamp('2026-03-05')) == date(2026, 3, 5)
    assert dates.as_date('not a date') is None
    assert dates.as_date('') is None
    assert dates.as_date(None) is None


def test_month_boundaries():
    assert dates.days_in_month(date(2024, 2, 10)) == 29
    assert dates.days_in_month(date(2026, 2, 10)) == 28
    assert dates.month_range(date(2026, 4, 17)) == (date(2026, 4, 1), date(2026, 4, 30))
    assert dates.is_in_month('2026-04-30', date(2026, 4, 1))
    assert not dates.is_in_month('2026-05-01', date(2026, 4, 1))


def test_expected_pace_percentage():
    assert dates.expected_pace_percentage(date(2026, 4, 15)) == 50.0


@pytest.mark.parametrize(
    'month, expected',
    [
        (date(2026, 3, 1), 15),   # current month: today's day
        (date(2026, 2, 1), 28),   # past month: full month
        (date(2026, 4, 1), 1),    # future month: not started
    ],
)
def test_effective_day_of_month(month, expected):
    assert dates.effective_day_of_month(month, date(2026, 3, 15)) == expected


def test_months_between_is_floored_at_zero():
    assert dates.months_between(date(2025, 9, 1), date(2026, 3, 15)) == 6
    assert dates.months_between(date(2026, 6, 1), date(2026, 3, 1)) == 0


def test_add_months_clamps_day():
    assert dates.add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert dates.add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)
    assert dates.add_months(date(2026, 3, 31), -1) == date(2026, 2, 28)


def test_week_of_month():
    assert dates.week_of_month(date(2026, 3, 1)) == 1
    assert dates.week_of_month(date(2026, 3, 7)) == 1
    assert dates.week_of_month(date(2026, 3, 8)) == 2
    assert dates.week_of_month(date(2026, 3, 31)) == 5


def test_week_key_uses_iso_year():
    assert dates.week_key(date(2026, 1, 1)) == '2026-W01'
    assert dates.week_key(date(2025, 12, 29)) == '2026-W01'
    assert dates.week_key(date(2021, 1, 1)) == '2020-W53'


def test_previous_week_key_crosses_years():
    assert dates.previous_week_key('2026-W10') == '2026-W09'
    assert dates.previous_week_key('2021-W01') == '2020-W53'
    assert dates.previous_week_key('2026-W01') == '2025-W52'


def test_month_labels():
    assert dates.month_key(date(2026, 3, 9)) == '2026-03'
    assert dates.format_month_year(date(2026, 1, 9)) == 'January 2026'
