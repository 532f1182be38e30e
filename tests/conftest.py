"""Shared fixtures for meetgraph tests."""

from datetime import datetime, timedelta, timezone

import pytest

from meetgraph.core.models import MeetingStatus
from meetgraph.core.schemas import MeetingRecord

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_meeting(
    meeting_id,
    start=None,
    status=MeetingStatus.COMPLETED,
    score=None,
    next_ids=(),
    previous_ids=(),
    action_items=0,
    objective_id=None,
    people=0,
):
    """Build a MeetingRecord; ``start`` defaults to a week before NOW."""
    return MeetingRecord(
        id=meeting_id,
        name=f"Meeting {meeting_id}",
        start_time=start or NOW - timedelta(days=7),
        status=status,
        coach_score=score,
        people=[{"id": f"p{i}", "name": f"Person {i}"} for i in range(people)],
        action_items=[f"{meeting_id}-a{i}" for i in range(action_items)],
        next_connected_meetings=list(next_ids),
        previous_connected_meetings=list(previous_ids),
        objective_id=objective_id,
    )


@pytest.fixture
def now():
    """Fixed reference clock."""
    return NOW


@pytest.fixture
def sprint_meetings():
    """Planning -> standup -> retrospective chain with a side review."""
    start = NOW - timedelta(days=10)
    return [
        make_meeting("planning", start=start, score=70, next_ids=["standup", "review"],
                     action_items=3, objective_id="q1", people=4),
        make_meeting("standup", start=start + timedelta(days=2), score=85,
                     next_ids=["retro"], objective_id="q1", people=6),
        make_meeting("review", start=start + timedelta(hours=5), score=60,
                     next_ids=["external"], objective_id="q2"),
        make_meeting("retro", start=start + timedelta(days=9), status=MeetingStatus.SCHEDULED,
                     objective_id="q1"),
    ]
