"""Budget calculations: spending aggregation, pace status and monthly stats.

Spending is aggregated with pandas over the month's non-excluded
transactions. Budget categories are always re-derived with the category
mapper; whatever is cached on the transaction is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from ..category_rules import (
    UNCATEGORIZED,
    CategoryRuleSet,
    classify,
    get_rule_set,
    is_excluded,
)
from ..dates import as_date, is_same_month
from ..defaults import get_budget_config
from ..formatting import round_half_up

SPEND_COLUMNS = ['id', 'date', 'name', 'amount', 'category', 'budget_category', 'confidence']

PACE_UNDER = 'under'
PACE_ON_PACE = 'on-pace'
PACE_OVER = 'over'
ON_PACE_TOLERANCE = 1.10


def _get(txn: Any, name: str, default: Any = None) -> Any:
    if isinstance(txn, dict):
        return txn.get(name, default)
    return getattr(txn, name, default)


def spending_frame(
    transactions: Iterable[Any],
    month: Optional[date] = None,
    rules: Optional[CategoryRuleSet] = None,
) -> pd.DataFrame:
    """Frame of non-excluded transactions (optionally for one month) with fresh categories."""
    rules = rules or get_rule_set()
    rows = []
    for txn in transactions:
        day = as_date(_get(txn, 'date'))
        if day is None:
            continue
        if month is not None and not is_same_month(day, month):
            continue
        if is_excluded(txn, rules):
            continue
        match = classify(txn, rules)
        rows.append({
            'id': _get(txn, 'id'),
            'date': day,
            'name': _get(txn, 'name') or '',
            'amount': float(_get(txn, 'amount', 0.0) or 0.0),
            'category': _get(txn, 'category') or '',
            'budget_category': match.budget_category,
            'confidence': match.confidence,
        })
    return pd.DataFrame(rows, columns=SPEND_COLUMNS)


def flexible_only(df: pd.DataFrame, rules: CategoryRuleSet) -> pd.DataFrame:
    flexible = set(rules.tiers.get('flexible', []))
    return df[df['budget_category'].isin(flexible)]


def category_spending(transactions, budget_category: str, month: date, rules: Optional[CategoryRuleSet] = None) -> float:
    """Total spent in one budget category during ``month``."""
    df = spending_frame(transactions, month, rules)
    return float(df.loc[df['budget_category'] == budget_category, 'amount'].sum())


def spending_by_category(transactions, month: date, rules: Optional[CategoryRuleSet] = None) -> Dict[str, float]:
    """Spending per flexible category for ``month``; categories without spend are absent."""
    rules = rules or get_rule_set()
    df = flexible_only(spending_frame(transactions, month, rules), rules)
    if df.empty:
        return {}
    totals = df.groupby('budget_category')['amount'].sum()
    return {category: float(amount) for category, amount in totals.items()}


def full_category_spending(transactions, month: date, rules: Optional[CategoryRuleSet] = None) -> Dict[str, float]:
    """Spending per budget category across every tier, including ``Uncategorized``."""
    df = spending_frame(transactions, month, rules)
    if df.empty:
        return {}
    totals = df.groupby('budget_category')['amount'].sum().sort_values(ascending=False)
    return {category: float(amount) for category, amount in totals.items()}


def total_flexible_spending(transactions, month: date, rules: Optional[CategoryRuleSet] = None) -> float:
    rules = rules or get_rule_set()
    df = flexible_only(spending_frame(transactions, month, rules), rules)
    return float(df['amount'].sum())


def is_one_time_transaction(transaction: Any) -> bool:
    """Large purchases and known one-off merchants are treated as one-time."""
    budget_config = get_budget_config()
    if float(_get(transaction, 'amount', 0.0) or 0.0) > float(budget_config.get('one_time_threshold', 200)):
        return True
    name = (_get(transaction, 'name') or '').lower()
    return any(merchant.lower() in name for merchant in budget_config.get('one_time_merchants', []))


def normalized_spending(transactions, month: date, rules: Optional[CategoryRuleSet] = None) -> float:
    """Flexible spending for ``month`` without one-time transactions."""
    rules = rules or get_rule_set()
    df = flexible_only(spending_frame(transactions, month, rules), rules)
    if df.empty:
        return 0.0
    recurring = ~df.apply(lambda row: is_one_time_transaction(row.to_dict()), axis=1)
    return float(df.loc[recurring, 'amount'].sum())


@dataclass(frozen=True)
class PaceStatus:
    percentage: float
    expected_percentage: float
    status: str
    difference: float


def pace_status(spent: float, budget: float, day_of_month: int, days_in_month: int) -> PaceStatus:
    """Compare spend-to-budget against elapsed-time-in-month.

    ``under`` when the spent share does not exceed the elapsed share (ties
    count as ``under``), ``on-pace`` within 10% above it, ``over`` beyond.
    Percentages are computed unrounded and reported to one decimal.
    """
    percentage = spent / budget * 100 if budget > 0 else 0.0
    expected = day_of_month / days_in_month * 100 if days_in_month > 0 else 0.0
    if percentage <= expected:
        status = PACE_UNDER
    elif percentage <= expected * ON_PACE_TOLERANCE:
        status = PACE_ON_PACE
    else:
        status = PACE_OVER
    return PaceStatus(
        percentage=round_half_up(percentage),
        expected_percentage=round_half_up(expected),
        status=status,
        difference=round_half_up(percentage - expected),
    )


def monthly_stats(transactions, month: date, rules: Optional[CategoryRuleSet] = None) -> Dict[str, int]:
    """Counts used to flag transactions that need a manual look."""
    rules = rules or get_rule_set()
    threshold = float(get_budget_config().get('attention_amount_threshold', 50))
    transactions = list(transactions)
    month_days = [as_date(_get(txn, 'date')) for txn in transactions]
    month_count = sum(1 for day in month_days if day is not None and is_same_month(day, month))
    df = spending_frame(transactions, month, rules)

    uncategorized = df[df['budget_category'] == UNCATEGORIZED]
    low_confidence = df[(df['confidence'] == 'low') & (df['amount'] > threshold)]
    raw_other = df[df['category'] == 'Other']
    attention_ids: List[Any] = pd.concat([uncategorized, low_confidence, raw_other])['id'].unique().tolist()

    return {
        'total_transactions': month_count,
        'active_transactions': len(df),
        'uncategorized_count': len(uncategorized),
        'low_confidence_count': len(low_confidence),
        'other_count': len(raw_other),
        'needs_attention_count': len(attention_ids),
    }
