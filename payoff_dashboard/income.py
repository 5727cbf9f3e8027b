"""Expected income: paycheck schedule plus one-off extra income per month."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from . import storage
from .dates import add_months, days_in_month, month_end, month_key, month_start
from .defaults import get_income_config
from .models import coerce_date

PAY_FREQUENCIES = ('biweekly', 'semimonthly', 'monthly')
BIWEEKLY_DAYS = 14
SEMIMONTHLY_DAY = 15


def biweekly_pay_dates(month: date, reference_date: date) -> List[date]:
    """Every-other-week pay dates that fall inside ``month``.

    ``reference_date`` is any known pay date, before or after the month.
    """
    start, end = month_start(month), month_end(month)
    periods = math.ceil((start - reference_date).days / BIWEEKLY_DAYS)
    pay_day = reference_date + timedelta(days=BIWEEKLY_DAYS * periods)
    dates = []
    while pay_day <= end:
        dates.append(pay_day)
        pay_day += timedelta(days=BIWEEKLY_DAYS)
    return dates


def pay_dates(month: date, frequency: str, reference_date: date) -> List[date]:
    if frequency == 'biweekly':
        return biweekly_pay_dates(month, reference_date)
    if frequency == 'semimonthly':
        return [month.replace(day=SEMIMONTHLY_DAY), month_end(month)]
    if frequency == 'monthly':
        return [month.replace(day=min(reference_date.day, days_in_month(month)))]
    raise ValueError(f"frequency must be one of {PAY_FREQUENCIES}, got {frequency!r}")


@dataclass
class MonthlyIncome:
    paycheck_count: int
    paycheck_amount: float
    paycheck_total: float
    pay_dates: List[date] = field(default_factory=list)
    extra_income: List[Dict[str, Any]] = field(default_factory=list)
    extra_total: float = 0.0

    @property
    def total_income(self) -> float:
        return self.paycheck_total + self.extra_total


def _amount(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"amount must be a number, got {value!r}") from None
    if number != number or number < 0:
        raise ValueError(f"amount must be a non-negative number, got {value!r}")
    return number


class IncomeTracker:
    """Paycheck settings and extra income entries stored under one key."""

    def __init__(self, store):
        self.store = store

    def config(self) -> Dict[str, Any]:
        defaults = get_income_config()
        data = self.store.get(storage.INCOME_KEY)
        if not isinstance(data, dict):
            return defaults
        return {
            'paycheck': {**defaults['paycheck'], **(data.get('paycheck') or {})},
            'extra_income': dict(data.get('extra_income') or {}),
        }

    def monthly_income(self, month: date) -> MonthlyIncome:
        config = self.config()
        paycheck = config['paycheck']
        amount = float(paycheck['amount'])
        dates = pay_dates(month, paycheck['frequency'], coerce_date(paycheck['reference_date']))
        extras = list(config['extra_income'].get(month_key(month), []))
        return MonthlyIncome(
            paycheck_count=len(dates),
            paycheck_amount=amount,
            paycheck_total=len(dates) * amount,
            pay_dates=dates,
            extra_income=extras,
            extra_total=float(sum(float(entry.get('amount', 0.0)) for entry in extras)),
        )

    def income_frame(self, first_month: date, months: int) -> pd.DataFrame:
        """Income per month for ``months`` consecutive months starting at ``first_month``."""
        rows = []
        for offset in range(months):
            month = add_months(month_start(first_month), offset)
            income = self.monthly_income(month)
            rows.append({
                'month': month_key(month),
                'paychecks': income.paycheck_count,
                'paycheck_total': income.paycheck_total,
                'extra_total': income.extra_total,
                'total_income': income.total_income,
            })
        return pd.DataFrame(rows).set_index('month') if rows else pd.DataFrame()

    def add_extra_income(self, month: date, entry: Mapping[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
        """Add a one-off income entry (``amount`` plus optional ``source``/``note``)."""
        amount = _amount(entry.get('amount'))
        now = now or datetime.now()
        record = {
            'id': int(now.timestamp() * 1000),
            'date': now.date().isoformat(),
            **dict(entry),
            'amount': amount,
        }
        config = self.config()
        key = month_key(month)
        config['extra_income'][key] = list(config['extra_income'].get(key, [])) + [record]
        self.store.set(storage.INCOME_KEY, config)
        return record

    def remove_extra_income(self, month: date, entry_id: Any) -> None:
        config = self.config()
        key = month_key(month)
        config['extra_income'][key] = [e for e in config['extra_income'].get(key, []) if e.get('id') != entry_id]
        self.store.set(storage.INCOME_KEY, config)

    def update_paycheck(self, **settings: Any) -> Dict[str, Any]:
        config = self.config()
        paycheck = dict(config['paycheck'])
        if 'amount' in settings:
            paycheck['amount'] = _amount(settings['amount'])
        if 'frequency' in settings:
            if settings['frequency'] not in PAY_FREQUENCIES:
                raise ValueError(f"frequency must be one of {PAY_FREQUENCIES}, got {settings['frequency']!r}")
            paycheck['frequency'] = settings['frequency']
        if 'reference_date' in settings:
            paycheck['reference_date'] = coerce_date(settings['reference_date']).isoformat()
        config['paycheck'] = paycheck
        self.store.set(storage.INCOME_KEY, config)
        return paycheck
