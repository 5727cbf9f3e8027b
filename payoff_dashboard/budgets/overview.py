"""One-call monthly budget view combining spending, pacing and rollover."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from ..category_rules import CategoryRuleSet, budget_categories, get_rule_set
from ..dates import days_in_month, effective_day_of_month, format_month_year, is_same_month, month_start
from .calculations import PaceStatus, pace_status, spending_by_category, total_flexible_spending
from .rollover import WeeklyRollover, weekly_rollover
from .settings import BudgetSettings, category_budgets, total_monthly_budget


@dataclass
class MonthInfo:
    month: date
    label: str
    day_of_month: int
    days_in_month: int
    is_current_month: bool


@dataclass
class MonthlyOverview:
    month_info: MonthInfo
    category_budgets: Dict[str, float]
    category_spending: Dict[str, float]
    total_flexible_spending: float
    total_monthly_budget: float
    weekly_pace: PaceStatus
    monthly_pace: PaceStatus
    category_pace: Dict[str, PaceStatus] = field(default_factory=dict)
    rollover: Optional[WeeklyRollover] = None

    @property
    def remaining_budget(self) -> float:
        return self.total_monthly_budget - self.total_flexible_spending


def monthly_overview(
    transactions: List[Any],
    month: date,
    settings: Optional[BudgetSettings] = None,
    today: Optional[date] = None,
    rules: Optional[CategoryRuleSet] = None,
) -> MonthlyOverview:
    """Build the budget view for ``month`` as seen on ``today``.

    Every flexible category appears in the spending map, with 0 when nothing
    was spent. Weekly pace measures flexible spend against the weekly budget
    scaled to the month length (``weekly_budget * days / 7``).
    """
    settings = settings or BudgetSettings.defaults()
    today = today or date.today()
    rules = rules or get_rule_set()
    transactions = list(transactions)

    total_days = days_in_month(month)
    day = effective_day_of_month(month, today)

    spending = spending_by_category(transactions, month, rules)
    for category in budget_categories(rules):
        spending.setdefault(category, 0.0)

    budgets = category_budgets(settings)
    total_budget = total_monthly_budget(settings)
    flexible_total = total_flexible_spending(transactions, month, rules)

    return MonthlyOverview(
        month_info=MonthInfo(
            month=month_start(month),
            label=format_month_year(month),
            day_of_month=day,
            days_in_month=total_days,
            is_current_month=is_same_month(month, today),
        ),
        category_budgets=budgets,
        category_spending=spending,
        total_flexible_spending=flexible_total,
        total_monthly_budget=total_budget,
        weekly_pace=pace_status(flexible_total, settings.weekly_budget * (total_days / 7), day, total_days),
        monthly_pace=pace_status(flexible_total, total_budget, day, total_days),
        category_pace={
            category: pace_status(spending.get(category, 0.0), budget, day, total_days)
            for category, budget in budgets.items()
        },
        rollover=weekly_rollover(
            transactions, month, total_budget,
            enabled=settings.enable_rollover, today=today, rules=rules,
        ),
    )
