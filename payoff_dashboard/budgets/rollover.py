"""Weekly rollover budgeting.

The month is cut into weeks of up to seven days (days 1-7, 8-14, ...). The
monthly budget is spread evenly over those weeks and whatever a completed
week leaves over (or overspends) is carried into the weeks after it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from ..category_rules import CategoryRuleSet, get_rule_set
from ..dates import days_in_month, is_same_month, week_of_month
from ..defaults import get_budget_config
from .calculations import flexible_only, spending_frame


@dataclass(frozen=True)
class WeekSummary:
    week: int
    start_day: int
    end_day: int
    base_budget: float
    effective_budget: float
    spent: float
    surplus: float
    rollover_to_next: float
    is_current_week: bool
    is_completed: bool


@dataclass
class WeeklyRollover:
    base_weekly_budget: float
    current_week: int
    total_weeks: int
    cumulative_rollover: float
    effective_budget_this_week: float
    spent_this_week: float
    remaining_this_week: float
    weeks: List[WeekSummary] = field(default_factory=list)
    enabled: bool = True

    @property
    def rollover_amount(self) -> float:
        return abs(self.cumulative_rollover)

    @property
    def rollover_type(self) -> str:
        return 'surplus' if self.cumulative_rollover >= 0 else 'deficit'

    @property
    def has_rollover(self) -> bool:
        threshold = float(get_budget_config().get('rollover_noise_threshold', 1))
        return abs(self.cumulative_rollover) > threshold


def current_week_for(month: date, today: date, total_weeks: int) -> int:
    """Active week when ``month`` is viewed on ``today``.

    Past months are viewed from their last week, future months from week 1.
    """
    if is_same_month(month, today):
        return week_of_month(today)
    if (month.year, month.month) < (today.year, today.month):
        return total_weeks
    return 1


def weekly_spending(transactions, month: date, rules: Optional[CategoryRuleSet] = None) -> Dict[int, float]:
    """Flexible spending per week-of-month."""
    rules = rules or get_rule_set()
    df = flexible_only(spending_frame(transactions, month, rules), rules)
    if df.empty:
        return {}
    weeks = df['date'].map(week_of_month)
    totals = df.groupby(weeks)['amount'].sum()
    return {int(week): float(amount) for week, amount in totals.items()}


def weekly_rollover(
    transactions: List[Any],
    month: date,
    total_monthly_budget: float,
    enabled: bool = True,
    today: Optional[date] = None,
    rules: Optional[CategoryRuleSet] = None,
) -> Optional[WeeklyRollover]:
    """Walk the weeks of ``month`` carrying completed-week surpluses forward.

    Each completed week's surplus (effective budget minus spend) is added to
    the running rollover, and every later week's effective budget is the base
    weekly budget plus that running total. Returns ``None`` when disabled.

    The carry compounds: a completed week's surplus already includes what was
    carried into it, and all of it is added to the running total again. With
    80, 100 and 100 spent against a 400 budget over four weeks, week 3 gets
    140 and week 4 gets 180, although only 120 of the month is left. Use
    ``total_monthly_budget`` minus the month's spend for the remaining-money
    view.
    """
    if not enabled:
        return None
    today = today or date.today()

    total_days = days_in_month(month)
    total_weeks = math.ceil(total_days / 7)
    base = total_monthly_budget / total_weeks
    current_week = current_week_for(month, today, total_weeks)
    spent_by_week = weekly_spending(transactions, month, rules)

    weeks: List[WeekSummary] = []
    cumulative = 0.0
    for week in range(1, total_weeks + 1):
        effective = base + cumulative
        spent = spent_by_week.get(week, 0.0)
        surplus = effective - spent
        completed = week < current_week
        if completed:
            cumulative += surplus
        weeks.append(WeekSummary(
            week=week,
            start_day=(week - 1) * 7 + 1,
            end_day=min(week * 7, total_days),
            base_budget=base,
            effective_budget=effective,
            spent=spent,
            surplus=surplus,
            rollover_to_next=surplus if completed else 0.0,
            is_current_week=week == current_week,
            is_completed=completed,
        ))

    spent_this_week = spent_by_week.get(current_week, 0.0)
    effective_this_week = base + cumulative
    return WeeklyRollover(
        base_weekly_budget=base,
        current_week=current_week,
        total_weeks=total_weeks,
        cumulative_rollover=cumulative,
        effective_budget_this_week=effective_this_week,
        spent_this_week=spent_this_week,
        remaining_this_week=effective_this_week - spent_this_week,
        weeks=weeks,
    )
