"""Milestone ladder mixing percentage, dollar-amount and special achievements.

Reached state is derived from payoff progress on every read; only the set
of celebrated milestone ids and the first-update flag are stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from . import storage
from .defaults import get_debt_config
from .formatting import round_half_up

PROGRESS_BAR_THRESHOLDS = (25, 50, 75, 100)


@dataclass(frozen=True)
class MilestoneDefinition:
    id: str
    type: str
    label: str
    description: str
    threshold: Optional[float] = None


@dataclass(frozen=True)
class MilestoneStatus:
    definition: MilestoneDefinition
    reached: bool
    celebrated: bool
    progress: float
    amount_to_go: float

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def label(self) -> str:
        return self.definition.label


@dataclass
class MilestoneSummary:
    reached: List[MilestoneStatus] = field(default_factory=list)
    upcoming: List[MilestoneStatus] = field(default_factory=list)

    @property
    def newly_reached(self) -> List[MilestoneStatus]:
        return [m for m in self.reached if not m.celebrated]

    @property
    def next_milestone(self) -> Optional[MilestoneStatus]:
        return self.upcoming[0] if self.upcoming else None

    @property
    def total_reached(self) -> int:
        return len(self.reached)

    @property
    def total_milestones(self) -> int:
        return len(self.reached) + len(self.upcoming)


def milestone_ladder() -> List[MilestoneDefinition]:
    return [
        MilestoneDefinition(
            id=item['id'],
            type=item['type'],
            label=item['label'],
            description=item.get('description', ''),
            threshold=item.get('threshold'),
        )
        for item in get_debt_config()['milestone_ladder']
    ]


def _default_state() -> Dict[str, Any]:
    return {'celebrated': [], 'first_update_done': False, 'last_check': None}


def evaluate(
    definition: MilestoneDefinition,
    paid_off: float,
    percentage: float,
    peak_baseline: float,
    first_update_done: bool = False,
    celebrated: bool = False,
) -> MilestoneStatus:
    reached = False
    progress = 0.0
    amount_to_go = 0.0
    if definition.type == 'percentage':
        threshold = float(definition.threshold)
        reached = percentage >= threshold
        progress = min(percentage / threshold * 100, 100.0)
        amount_to_go = max(0.0, threshold / 100 * peak_baseline - paid_off)
    elif definition.type == 'amount':
        threshold = float(definition.threshold)
        reached = paid_off >= threshold
        progress = min(paid_off / threshold * 100, 100.0)
        amount_to_go = max(0.0, threshold - paid_off)
    elif definition.type == 'special' and definition.id == 'first-update':
        reached = first_update_done
        progress = 100.0 if reached else 0.0
    return MilestoneStatus(
        definition=definition,
        reached=reached,
        celebrated=celebrated,
        progress=progress,
        amount_to_go=round_half_up(amount_to_go, 0),
    )


class MilestoneTracker:
    """Celebration state for the milestone ladder, stored under one key."""

    def __init__(self, store):
        self.store = store

    def state(self) -> Dict[str, Any]:
        data = self.store.get(storage.MILESTONES_KEY)
        if not isinstance(data, dict):
            return _default_state()
        return {**_default_state(), **data}

    def summary(self, paid_off: float, percentage: float, peak_baseline: float) -> MilestoneSummary:
        """Split the ladder into reached and upcoming milestones.

        Upcoming milestones are ordered by progress, closest first.
        """
        state = self.state()
        celebrated = set(state['celebrated'])
        result = MilestoneSummary()
        for definition in milestone_ladder():
            status = evaluate(
                definition,
                paid_off,
                percentage,
                peak_baseline,
                first_update_done=bool(state['first_update_done']),
                celebrated=definition.id in celebrated,
            )
            (result.reached if status.reached else result.upcoming).append(status)
        result.upcoming.sort(key=lambda m: m.progress, reverse=True)
        return result

    def celebrate(self, milestone_id: str, now: Optional[datetime] = None) -> None:
        state = self.state()
        if milestone_id not in state['celebrated']:
            state['celebrated'].append(milestone_id)
        state['last_check'] = (now or datetime.now()).isoformat()
        self.store.set(storage.MILESTONES_KEY, state)

    def mark_first_update(self) -> None:
        state = self.state()
        if not state['first_update_done']:
            state['first_update_done'] = True
            self.store.set(storage.MILESTONES_KEY, state)

    def reset(self) -> None:
        self.store.set(storage.MILESTONES_KEY, _default_state())


def progress_bar_milestones(percentage: float) -> List[Dict[str, Any]]:
    """The quarter markers shown on a payoff progress bar."""
    return [
        {'id': d.id, 'label': d.label, 'threshold': d.threshold, 'reached': percentage >= d.threshold}
        for d in milestone_ladder()
        if d.type == 'percentage' and d.threshold in PROGRESS_BAR_THRESHOLDS
    ]
