"""Interest projections: minimum-payment path vs. aggressive fixed-term payoff.

Totals are reported in whole currency units (rounded half up); the month
count of the minimum path is exact.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from .defaults import get_debt_config
from .formatting import round_half_up
from .models import Debt

MINIMUM_PAYMENT_FLOOR = 25.0
MINIMUM_PAYMENT_RATE = 0.01
MAX_MONTHS = 360
PAYOFF_TOLERANCE = 1.0


@dataclass(frozen=True)
class MinimumPath:
    months: int
    total_interest: float
    total_paid: float


@dataclass(frozen=True)
class AggressivePath:
    months: int
    total_interest: float
    monthly_payment: float
    total_paid: float


@dataclass(frozen=True)
class InterestSavings:
    balance: float
    apr: float
    minimum_path: MinimumPath
    aggressive_path: AggressivePath
    interest_saved: float
    months_saved: int
    years_saved: float


@dataclass(frozen=True)
class DebtSavings:
    key: str
    name: str
    savings: InterestSavings
    is_term_loan: bool = False

    @property
    def interest_saved(self) -> float:
        return self.savings.interest_saved


@dataclass(frozen=True)
class TermLoanInterest:
    key: str
    name: str
    balance: float
    apr: float
    remaining_months: int
    total_interest: float
    monthly_payment: float
    message: str
    is_term_loan: bool = True
    interest_saved: float = 0.0


@dataclass
class TotalInterestSavings:
    debts: List[Union[DebtSavings, TermLoanInterest]] = field(default_factory=list)
    total_interest_saved: float = 0.0
    total_minimum_interest: float = 0.0
    total_aggressive_interest: float = 0.0
    total_months_saved: int = 0
    total_years_saved: float = 0.0
    target_date: Optional[date] = None
    months_to_target: int = 1


def _days_per_month() -> float:
    return float(get_debt_config().get('days_per_month', 30.44))


def minimum_payment_path(balance: float, apr: float) -> MinimumPath:
    """Simulate paying only the minimum each month.

    The minimum is the larger of $25 and 1% of the balance plus that month's
    interest, never more than what is owed. The simulation stops once the
    balance is within $1 of zero or after 30 years.
    """
    if balance <= 0 or apr <= 0:
        return MinimumPath(months=0, total_interest=0.0, total_paid=float(max(balance, 0.0)))

    monthly_rate = apr / 100 / 12
    remaining = float(balance)
    total_interest = 0.0
    months = 0
    while remaining > PAYOFF_TOLERANCE and months < MAX_MONTHS:
        interest = remaining * monthly_rate
        payment = max(MINIMUM_PAYMENT_FLOOR, remaining * MINIMUM_PAYMENT_RATE + interest)
        payment = min(payment, remaining + interest)
        total_interest += interest
        remaining = remaining + interest - payment
        months += 1

    return MinimumPath(
        months=months,
        total_interest=round_half_up(total_interest, 0),
        total_paid=round_half_up(balance + total_interest, 0),
    )


def level_payment(balance: float, apr: float, months: int) -> float:
    """Fixed monthly payment that clears ``balance`` in ``months``."""
    monthly_rate = apr / 100 / 12
    if monthly_rate == 0:
        return balance / months
    return monthly_rate * balance / (1 - (1 + monthly_rate) ** -months)


def aggressive_payoff(balance: float, apr: float, target_months: int) -> AggressivePath:
    """Level-payment amortization that clears the balance in ``target_months``."""
    if balance <= 0 or target_months <= 0:
        return AggressivePath(months=0, total_interest=0.0, monthly_payment=0.0, total_paid=0.0)

    payment = level_payment(balance, apr, target_months)
    total_paid = payment * target_months
    return AggressivePath(
        months=target_months,
        total_interest=round_half_up(max(0.0, total_paid - balance), 0),
        monthly_payment=round_half_up(payment, 0),
        total_paid=round_half_up(total_paid, 0),
    )


def interest_saved(balance: float, apr: float, target_months: int) -> InterestSavings:
    """Interest avoided by paying off in ``target_months`` instead of minimums.

    Paying on a schedule no shorter than the minimum path saves nothing.
    """
    minimum = minimum_payment_path(balance, apr)
    aggressive = aggressive_payoff(balance, apr, target_months)
    months_saved = max(0, minimum.months - target_months)
    saved = minimum.total_interest - aggressive.total_interest if months_saved > 0 else 0.0
    return InterestSavings(
        balance=balance,
        apr=apr,
        minimum_path=minimum,
        aggressive_path=aggressive,
        interest_saved=max(0.0, saved),
        months_saved=months_saved,
        years_saved=round_half_up(months_saved / 12, 1),
    )


def months_until(target_date: date, today: date) -> int:
    """Average-length months from ``today`` to ``target_date``, at least 1."""
    days = (target_date - today).days
    return max(1, math.ceil(days / _days_per_month()))


def term_loan_remaining_months(debt: Debt, today: date) -> int:
    if not debt.term_months:
        return int(get_debt_config().get('default_term_months_remaining', 24))
    if debt.start_date is None:
        return debt.term_months
    elapsed = math.ceil((today - debt.start_date).days / _days_per_month())
    return max(0, debt.term_months - elapsed)


def total_interest_saved(
    debts: Union[Mapping[str, Debt], List[Debt]],
    target_date: date,
    today: Optional[date] = None,
) -> TotalInterestSavings:
    """Aggregate savings over every open debt.

    Managed and paid-off debts are skipped. Term loans report the interest
    left on their own schedule and have no savings figure. Results list the
    target debts by savings (highest first) followed by the term loans.
    """
    today = today or date.today()
    items = list(debts.values()) if isinstance(debts, Mapping) else list(debts)
    months_to_target = months_until(target_date, today)

    result = TotalInterestSavings(target_date=target_date, months_to_target=months_to_target)
    for debt in items:
        if debt.category == 'managed' or debt.current <= 0:
            continue
        if debt.category == 'termLoan':
            remaining = term_loan_remaining_months(debt, today)
            schedule = aggressive_payoff(debt.current, debt.apr, remaining)
            result.debts.append(TermLoanInterest(
                key=debt.key,
                name=debt.name,
                balance=debt.current,
                apr=debt.apr,
                remaining_months=remaining,
                total_interest=schedule.total_interest,
                monthly_payment=schedule.monthly_payment,
                message=f"Fixed {remaining}-month term remaining",
            ))
            continue

        savings = interest_saved(debt.current, debt.apr, months_to_target)
        result.debts.append(DebtSavings(key=debt.key, name=debt.name, savings=savings))
        result.total_interest_saved += savings.interest_saved
        result.total_minimum_interest += savings.minimum_path.total_interest
        result.total_aggressive_interest += savings.aggressive_path.total_interest
        result.total_months_saved = max(result.total_months_saved, savings.months_saved)

    result.debts.sort(key=lambda item: (item.is_term_loan, -item.interest_saved))
    result.total_years_saved = round_half_up(result.total_months_saved / 12, 1)
    return result


INTEREST_MESSAGES = [
    (15000, "That's a down payment on a car!", "Your future self is doing a happy dance"),
    (10000, "That's a dream vacation!", "All that money staying in YOUR pocket"),
    (5000, "That's a solid emergency fund!", "Financial security, here you come"),
    (2500, "That's a nice chunk of change!", "Every dollar saved is a dollar earned"),
    (1000, "That's real money saved!", "Keep up the momentum"),
    (500, "Great start on savings!", "Small wins add up"),
]


def interest_saved_message(amount: float) -> Dict[str, str]:
    """Pick an encouragement line for a savings amount."""
    for minimum, message, subtext in INTEREST_MESSAGES:
        if amount >= minimum:
            return {'message': message, 'subtext': subtext}
    return {'message': "Every dollar counts!", 'subtext': "You're making smart choices"}


def amortization_schedule(balance: float, apr: float, payment: float, max_months: int = MAX_MONTHS) -> pd.DataFrame:
    """Month-by-month schedule for a fixed payment.

    Columns: ``month``, ``payment``, ``interest``, ``principal``,
    ``balance`` and ``cumulative_interest``. The final payment is reduced to
    what is owed.

    Raises:
        ValueError: If the payment does not cover the first month's interest.
    """
    columns = ['month', 'payment', 'interest', 'principal', 'balance']
    if balance <= 0:
        return pd.DataFrame(columns=columns + ['cumulative_interest'])
    monthly_rate = apr / 100 / 12
    if payment <= balance * monthly_rate:
        raise ValueError(f"Payment {payment:.2f} does not cover monthly interest on {balance:.2f}")

    rows: List[Dict[str, Any]] = []
    remaining = float(balance)
    month = 0
    while remaining > 0.005 and month < max_months:
        month += 1
        interest = remaining * monthly_rate
        paid = min(payment, remaining + interest)
        remaining = remaining + interest - paid
        rows.append({
            'month': month,
            'payment': paid,
            'interest': interest,
            'principal': paid - interest,
            'balance': max(remaining, 0.0),
        })
    df = pd.DataFrame(rows, columns=columns)
    df['cumulative_interest'] = np.cumsum(df['interest'].to_numpy())
    return df
