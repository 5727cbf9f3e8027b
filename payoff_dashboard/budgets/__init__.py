"""Budget engine: settings, spending aggregation, pacing and weekly rollover."""

from .settings import (
    BudgetSettings,
    BudgetSettingsStore,
    phase_budgets,
    category_budgets,
    total_monthly_budget,
)
from .calculations import (
    PaceStatus,
    pace_status,
    spending_frame,
    category_spending,
    spending_by_category,
    full_category_spending,
    total_flexible_spending,
    is_one_time_transaction,
    normalized_spending,
    monthly_stats,
)
from .rollover import (
    WeekSummary,
    WeeklyRollover,
    weekly_rollover,
    weekly_spending,
)
from .overview import (
    MonthInfo,
    MonthlyOverview,
    monthly_overview,
)

__all__ = [
    # Settings
    'BudgetSettings',
    'BudgetSettingsStore',
    'phase_budgets',
    'category_budgets',
    'total_monthly_budget',
    # Calculations
    'PaceStatus',
    'pace_status',
    'spending_frame',
    'category_spending',
    'spending_by_category',
    'full_category_spending',
    'total_flexible_spending',
    'is_one_time_transaction',
    'normalized_spending',
    'monthly_stats',
    # Rollover
    'WeekSummary',
    'WeeklyRollover',
    'weekly_rollover',
    'weekly_spending',
    # Overview
    'MonthInfo',
    'MonthlyOverview',
    'monthly_overview',
]
