from __future__ import annotations

from datetime import datetime

from payoff_dashboard import storage
from payoff_dashboard.milestones import (
    MilestoneTracker,
    evaluate,
    milestone_ladder,
    progress_bar_milestones,
)

PEAK = 40077
PAID_OFF = 27617.27
PERCENTAGE = PAID_OFF / PEAK * 100


def test_ladder_has_every_kind():
    kinds = {definition.type for definition in milestone_ladder()}

    assert kinds == {'special', 'percentage', 'amount'}
    assert len(milestone_ladder()) == 16


def test_summary_splits_reached_and_upcoming(store):
    summary = MilestoneTracker(store).summary(PAID_OFF, PERCENTAGE, PEAK)

    assert summary.total_reached == 11
    assert summary.total_milestones == 16
    assert [m.id for m in summary.upcoming] == [
        '30k-paid', '75-percent', '90-percent', '100-percent', 'first-update',
    ]
    assert summary.next_milestone.id == '30k-paid'
    assert summary.upcoming[1].amount_to_go == 2440


def test_celebrated_milestones_are_not_new(store):
    tracker = MilestoneTracker(store)
    tracker.celebrate('50-percent', now=datetime(2026, 3, 1, 10, 0))
    tracker.celebrate('50-percent', now=datetime(2026, 3, 2, 10, 0))

    summary = tracker.summary(PAID_OFF, PERCENTAGE, PEAK)

    assert '50-percent' not in [m.id for m in summary.newly_reached]
    assert len(summary.newly_reached) == 10
    assert tracker.state()['celebrated'] == ['50-percent']
    assert tracker.state()['last_check'] == '2026-03-02T10:00:00'


def test_first_update_milestone(store):
    tracker = MilestoneTracker(store)
    tracker.mark_first_update()

    summary = tracker.summary(0, 0, PEAK)

    assert [m.id for m in summary.reached] == ['first-update']


def test_reset(store):
    tracker = MilestoneTracker(store)
    tracker.mark_first_update()
    tracker.celebrate('10-percent')

    tracker.reset()

    assert store.get(storage.MILESTONES_KEY) == {'celebrated': [], 'first_update_done': False, 'last_check': None}


def test_evaluate_amount_milestone():
    definition = next(d for d in milestone_ladder() if d.id == '5k-paid')

    status = evaluate(definition, paid_off=2500, percentage=6.2, peak_baseline=PEAK)

    assert not status.reached
    assert status.progress == 50.0
    assert status.amount_to_go == 2500


def test_progress_bar_markers():
    markers = progress_bar_milestones(60)

    assert [m['threshold'] for m in markers] == [25, 50, 75, 100]
    assert [m['reached'] for m in markers] == [True, True, False, False]
