"""Debt tracking: balances, daily history snapshots and payoff statistics.

Balances change only through explicit user updates. Every update writes a
snapshot for the day (replacing an earlier snapshot from the same day) and
all statistics are derived fresh from the stored balances.

The payoff goal covers ``target`` debts only and is measured against a fixed
peak baseline rather than against anything in the history.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from . import config, storage
from .dates import add_months, months_between
from .defaults import get_debt_config
from .formatting import round_half_up
from .models import DEBT_CATEGORIES, Debt, DebtSnapshot, coerce_date

EDITABLE_FIELDS = {f.name for f in fields(Debt)} - {'key'}
NUMERIC_FIELDS = {'original', 'current', 'apr', 'monthly_payment'}


def default_debts() -> Dict[str, Debt]:
    return {key: Debt.from_dict(key, data) for key, data in get_debt_config()['debts'].items()}


def _validated_amount(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be a number, got {value!r}") from None
    if math.isnan(number) or math.isinf(number) or number < 0:
        raise ValueError(f"{field_name} must be a non-negative number, got {value!r}")
    return number


@dataclass(frozen=True)
class DebtProgress:
    key: str
    name: str
    category: str
    original: float
    current: float
    apr: float
    paid_off: float
    percentage_paid: float
    note: str = ''

    @classmethod
    def from_debt(cls, debt: Debt) -> 'DebtProgress':
        return cls(
            key=debt.key,
            name=debt.name,
            category=debt.category,
            original=debt.original,
            current=debt.current,
            apr=debt.apr,
            paid_off=debt.paid_off,
            percentage_paid=debt.percentage_paid,
            note=debt.note,
        )


@dataclass(frozen=True)
class TermLoanProgress:
    key: str
    name: str
    original: float
    current: float
    apr: float
    paid_off: float
    percentage_paid: float
    months_remaining: Optional[int]
    monthly_payment: Optional[float]


@dataclass(frozen=True)
class Milestone:
    threshold: float
    label: str
    reached: bool
    amount_needed: float
    amount_remaining: float


@dataclass
class DebtStats:
    current_target_debt: float
    target_debt_paid_off: float
    target_payoff_percentage: float
    peak_baseline: float
    total_original: float
    total_current: float
    total_paid_off: float
    total_payoff_percentage: float
    avg_monthly_payment: float
    projected_payoff_date: Optional[date]
    target_payoff_date: date
    is_on_track: bool
    months_to_target: int
    required_monthly_payment: float
    milestones: List[Milestone] = field(default_factory=list)
    next_milestone: Optional[Milestone] = None
    recently_reached_milestone: Optional[Milestone] = None
    paid_off_cards: List[Dict[str, str]] = field(default_factory=list)
    target_debts: List[DebtProgress] = field(default_factory=list)
    managed_debts: List[DebtProgress] = field(default_factory=list)
    term_loans: List[TermLoanProgress] = field(default_factory=list)
    debt_progress: List[DebtProgress] = field(default_factory=list)


def projected_payoff_date(current_target_debt: float, avg_monthly_payment: float, today: date) -> Optional[date]:
    """Date the target debt reaches zero at the historical payment rate.

    ``None`` when nothing has been paid down on average.
    """
    if avg_monthly_payment <= 0:
        return None
    if current_target_debt <= 0:
        return today
    return add_months(today, math.ceil(current_target_debt / avg_monthly_payment))


def milestone_label(threshold: float) -> str:
    return 'Debt Free!' if threshold >= 100 else f"{threshold:g}% Paid Off"


def build_milestones(percentage: float, paid_off: float, peak_baseline: float,
                     thresholds: Optional[List[float]] = None) -> List[Milestone]:
    thresholds = thresholds or get_debt_config()['milestone_thresholds']
    milestones = []
    for threshold in sorted(thresholds):
        needed = threshold / 100 * peak_baseline
        milestones.append(Milestone(
            threshold=threshold,
            label=milestone_label(threshold),
            reached=percentage >= threshold,
            amount_needed=round_half_up(needed, 0),
            amount_remaining=round_half_up(max(0.0, needed - paid_off), 0),
        ))
    return milestones


def recently_reached(milestones: List[Milestone], percentage: float,
                     band: Optional[float] = None) -> Optional[Milestone]:
    """Highest reached milestone that the percentage crossed by less than ``band`` points."""
    if band is None:
        band = float(get_debt_config().get('recently_reached_band', 0.5))
    candidates = [m for m in milestones if m.reached and percentage < m.threshold + band]
    return max(candidates, key=lambda m: m.threshold) if candidates else None


def term_loan_progress(debt: Debt, today: date) -> TermLoanProgress:
    months_remaining = None
    if debt.term_months and debt.start_date:
        months_remaining = months_between(today, add_months(debt.start_date, debt.term_months))
    payment = debt.monthly_payment
    if payment is None and debt.term_months:
        payment = debt.original / debt.term_months
    return TermLoanProgress(
        key=debt.key,
        name=debt.name,
        original=debt.original,
        current=debt.current,
        apr=debt.apr,
        paid_off=debt.paid_off,
        percentage_paid=debt.percentage_paid,
        months_remaining=months_remaining,
        monthly_payment=payment,
    )


def compute_stats(
    debts: Mapping[str, Debt],
    today: date,
    peak_baseline: float,
    peak_date: date,
    target_date: date,
) -> DebtStats:
    """Derive every payoff figure from the current balances."""
    all_debts = list(debts.values())
    targets = [d for d in all_debts if d.category == 'target']
    managed = [d for d in all_debts if d.category == 'managed']
    term_loans = [d for d in all_debts if d.category == 'termLoan']

    current_target = sum(d.current for d in targets)
    paid_off = peak_baseline - current_target
    percentage = paid_off / peak_baseline * 100 if peak_baseline else 0.0

    total_original = sum(d.original for d in all_debts)
    total_current = sum(d.current for d in all_debts)
    total_paid_off = total_original - total_current
    total_percentage = total_paid_off / total_original * 100 if total_original else 0.0

    months_elapsed = months_between(peak_date, today) or 1
    avg_payment = paid_off / months_elapsed
    projected = projected_payoff_date(current_target, avg_payment, today)

    months_to_target = months_between(today, target_date)
    required = current_target / months_to_target if months_to_target > 0 else current_target

    milestones = build_milestones(percentage, paid_off, peak_baseline)

    return DebtStats(
        current_target_debt=current_target,
        target_debt_paid_off=paid_off,
        target_payoff_percentage=percentage,
        peak_baseline=peak_baseline,
        total_original=total_original,
        total_current=total_current,
        total_paid_off=total_paid_off,
        total_payoff_percentage=total_percentage,
        avg_monthly_payment=avg_payment,
        projected_payoff_date=projected,
        target_payoff_date=target_date,
        is_on_track=projected is not None and projected <= target_date,
        months_to_target=months_to_target,
        required_monthly_payment=required,
        milestones=milestones,
        next_milestone=next((m for m in milestones if not m.reached), None),
        recently_reached_milestone=recently_reached(milestones, percentage),
        paid_off_cards=[{'key': d.key, 'name': d.name} for d in targets if d.current == 0],
        target_debts=[DebtProgress.from_debt(d) for d in targets],
        managed_debts=[DebtProgress.from_debt(d) for d in managed],
        term_loans=[term_loan_progress(d, today) for d in term_loans],
        debt_progress=[DebtProgress.from_debt(d) for d in all_debts],
    )


class DebtTracker:
    """Debt balances and history persisted in a keyed store.

    Args:
        store: Keyed store (see :mod:`payoff_dashboard.storage`).
        peak_baseline: Historical maximum of the target debt.
        peak_date: Date the peak was recorded.
        target_date: Payoff-by date for the target debts.
    """

    def __init__(self, store, peak_baseline: Optional[float] = None,
                 peak_date: Optional[date] = None, target_date: Optional[date] = None):
        self.store = store
        self.peak_baseline = config.PEAK_BASELINE if peak_baseline is None else float(peak_baseline)
        self.peak_date = peak_date or config.PEAK_DATE
        self.target_date = target_date or config.TARGET_PAYOFF_DATE

    # -- state -----------------------------------------------------------

    def debts(self) -> Dict[str, Debt]:
        raw = self.store.get(storage.DEBT_KEY)
        if not isinstance(raw, dict) or not raw:
            return default_debts()
        return {key: Debt.from_dict(key, data) for key, data in raw.items()}

    def history(self) -> List[DebtSnapshot]:
        return [DebtSnapshot.from_dict(item) for item in self.store.get(storage.DEBT_HISTORY_KEY, [])]

    def _save(self, debts: Mapping[str, Debt], now: Optional[datetime]) -> None:
        self.store.set(storage.DEBT_KEY, {key: debt.to_dict() for key, debt in debts.items()})
        self.record_snapshot(debts, now)

    def record_snapshot(self, debts: Mapping[str, Debt], now: Optional[datetime] = None) -> DebtSnapshot:
        """Write today's snapshot, replacing any earlier one from the same day."""
        now = now or datetime.now()
        snapshot = DebtSnapshot(
            date=now.date(),
            total_target_debt=sum(d.current for d in debts.values() if d.category == 'target'),
            balances={key: debt.current for key, debt in debts.items()},
            timestamp=now.isoformat(),
        )
        day = snapshot.date.isoformat()

        def _merge(history):
            kept = [item for item in history if item.get('date') != day]
            kept.append(snapshot.to_dict())
            return sorted(kept, key=lambda item: item['date'])

        storage.update(self.store, storage.DEBT_HISTORY_KEY, [], _merge)
        return snapshot

    # -- updates ---------------------------------------------------------

    def update_balance(self, key: str, new_balance: Any, now: Optional[datetime] = None) -> Debt:
        """Set the current balance of one debt.

        Raises:
            KeyError: If ``key`` is not a known debt.
            ValueError: If the balance is negative or not a number.
        """
        amount = _validated_amount(new_balance, 'balance')
        debts = self.debts()
        if key not in debts:
            raise KeyError(key)
        debts[key].current = amount
        self._save(debts, now)
        return debts[key]

    def update_details(self, key: str, updates: Mapping[str, Any], now: Optional[datetime] = None) -> Debt:
        """Update any editable field (APR, payment, note, ...) of one debt."""
        debts = self.debts()
        if key not in debts:
            raise KeyError(key)
        unknown = set(updates) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown debt fields: {', '.join(sorted(unknown))}")

        cleaned: Dict[str, Any] = {}
        for name, value in updates.items():
            if name in NUMERIC_FIELDS:
                cleaned[name] = None if value is None and name == 'monthly_payment' else _validated_amount(value, name)
            elif name == 'term_months':
                cleaned[name] = None if value is None else int(_validated_amount(value, name))
            elif name == 'start_date':
                cleaned[name] = coerce_date(value)
            elif name == 'category':
                if value not in DEBT_CATEGORIES:
                    raise ValueError(f"category must be one of {DEBT_CATEGORIES}, got {value!r}")
                cleaned[name] = value
            else:
                cleaned[name] = '' if value is None else str(value)

        debt = debts[key]
        for name, value in cleaned.items():
            setattr(debt, name, value)
        self._save(debts, now)
        return debt

    def update_all_balances(self, balances: Mapping[str, Any], now: Optional[datetime] = None) -> Dict[str, Debt]:
        """Set several balances at once with a single snapshot; unknown keys are ignored."""
        debts = self.debts()
        cleaned = {key: _validated_amount(value, key) for key, value in balances.items() if key in debts}
        for key, amount in cleaned.items():
            debts[key].current = amount
        self._save(debts, now)
        return debts

    def reset(self) -> Dict[str, Debt]:
        """Restore the seed debts and clear the history."""
        debts = default_debts()
        self.store.set(storage.DEBT_KEY, {key: debt.to_dict() for key, debt in debts.items()})
        self.store.set(storage.DEBT_HISTORY_KEY, [])
        return debts

    # -- statistics ------------------------------------------------------

    def stats(self, today: Optional[date] = None) -> DebtStats:
        return compute_stats(
            self.debts(),
            today or date.today(),
            self.peak_baseline,
            self.peak_date,
            self.target_date,
        )

    def celebrated(self) -> List[float]:
        return list(self.store.get(storage.CELEBRATED_KEY, []))

    def pending_celebration(self, today: Optional[date] = None) -> Optional[Milestone]:
        """Recently reached milestone that has not been celebrated yet."""
        milestone = self.stats(today).recently_reached_milestone
        if milestone is None or milestone.threshold in self.celebrated():
            return None
        return milestone

    def mark_celebrated(self, threshold: float) -> None:
        storage.update(
            self.store,
            storage.CELEBRATED_KEY,
            [],
            lambda done: done if threshold in done else list(done) + [threshold],
        )
