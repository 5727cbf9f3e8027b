"""Consecutive-week streaks for staying under budget and updating balances."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from . import storage
from .dates import previous_week_key, week_key

STREAK_KINDS = ('budget', 'update')


def record_qualifying_week(weeks: Iterable[str], day: date) -> List[str]:
    """Return ``weeks`` with the week containing ``day`` added (once)."""
    weeks = list(weeks)
    key = week_key(day)
    if key not in weeks:
        weeks.append(key)
    return weeks


def current_streak(weeks: Iterable[str], today: date) -> int:
    """Consecutive qualifying weeks ending this week or last week.

    A streak stays alive through the current week even before it has
    qualified, so the anchor is this week when present, else last week.
    """
    present = set(weeks)
    if not present:
        return 0
    this_week = week_key(today)
    anchor = this_week if this_week in present else previous_week_key(this_week)
    streak = 0
    while anchor in present:
        streak += 1
        anchor = previous_week_key(anchor)
    return streak


@dataclass(frozen=True)
class StreakStatus:
    current: int
    best: int
    weeks_recorded: int


def _default_state() -> Dict[str, Any]:
    return {
        'budget_weeks': [],
        'best_budget_streak': 0,
        'update_weeks': [],
        'best_update_streak': 0,
        'last_updated': None,
    }


class StreakTracker:
    """Week markers and best-streak high-water marks kept in a keyed store."""

    def __init__(self, store):
        self.store = store

    def state(self) -> Dict[str, Any]:
        data = self.store.get(storage.STREAKS_KEY)
        if not isinstance(data, dict):
            return _default_state()
        return {**_default_state(), **data}

    def _record(self, kind: str, today: date, now: Optional[datetime]) -> StreakStatus:
        state = self.state()
        weeks_field = f"{kind}_weeks"
        best_field = f"best_{kind}_streak"
        if week_key(today) not in state[weeks_field]:
            state[weeks_field] = record_qualifying_week(state[weeks_field], today)
            streak = current_streak(state[weeks_field], today)
            state[best_field] = max(state[best_field], streak)
            state['last_updated'] = (now or datetime.now()).isoformat()
            self.store.set(storage.STREAKS_KEY, state)
        return self.status(kind, today)

    def record_under_budget(self, today: Optional[date] = None, now: Optional[datetime] = None) -> StreakStatus:
        return self._record('budget', today or date.today(), now)

    def record_balance_update(self, today: Optional[date] = None, now: Optional[datetime] = None) -> StreakStatus:
        return self._record('update', today or date.today(), now)

    def status(self, kind: str, today: Optional[date] = None) -> StreakStatus:
        if kind not in STREAK_KINDS:
            raise ValueError(f"Unknown streak kind: {kind!r}")
        state = self.state()
        weeks = state[f"{kind}_weeks"]
        current = current_streak(weeks, today or date.today())
        return StreakStatus(
            current=current,
            best=max(int(state[f"best_{kind}_streak"]), current),
            weeks_recorded=len(weeks),
        )

    def streaks(self, today: Optional[date] = None) -> Dict[str, StreakStatus]:
        return {kind: self.status(kind, today) for kind in STREAK_KINDS}

    def has_updated_this_week(self, today: Optional[date] = None) -> bool:
        return week_key(today or date.today()) in self.state()['update_weeks']

    def was_under_budget_this_week(self, today: Optional[date] = None) -> bool:
        return week_key(today or date.today()) in self.state()['budget_weeks']

    def reset(self) -> None:
        self.store.set(storage.STREAKS_KEY, _default_state())
