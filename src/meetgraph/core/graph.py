"""Meeting graph builder.

Turns a flat list of meetings into nodes and directed edges. Edges come only
from each meeting's successor list; predecessor lists describe the same
relationships from the other end and are not used for edge construction.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Set, Tuple

from meetgraph.core.errors import InvalidMeetingError
from meetgraph.core.models import (
    ColorClass,
    ConnectionEdge,
    MeetingGraph,
    MeetingNode,
    MeetingStatus,
    StrokeWeight,
)
from meetgraph.core.schemas import MeetingRecord

logger = logging.getLogger(__name__)

UPCOMING_WINDOW = timedelta(hours=24)

# (minimum action items, weight), checked top to bottom
_STROKE_THRESHOLDS: Tuple[Tuple[int, StrokeWeight], ...] = (
    (5, StrokeWeight.HEAVIEST),
    (3, StrokeWeight.HEAVY),
    (1, StrokeWeight.MEDIUM),
)


def build_graph(meetings: Sequence[MeetingRecord], now: datetime) -> MeetingGraph:
    """Build the meeting graph.

    Args:
        meetings: Meetings in display order
        now: Reference time for the upcoming-meeting check

    Returns:
        MeetingGraph with one node per meeting (input order) and one edge per
        resolvable successor reference

    Raises:
        InvalidMeetingError: a record has no ID, no start time, or a duplicate ID
    """
    _validate_records(meetings)
    now = _as_utc(now)

    # First pass: nodes and ID lookup
    lookup: Dict[str, MeetingRecord] = {}
    nodes: List[MeetingNode] = []
    for meeting in meetings:
        lookup[meeting.id] = meeting
        nodes.append(MeetingNode(
            id=meeting.id,
            label=meeting.name,
            start_time=meeting.start_time,
            status=meeting.status,
            score=meeting.coach_score,
            people_count=meeting.people_count,
        ))

    # Second pass: edges from successor references
    edges: List[ConnectionEdge] = []
    seen: Set[Tuple[str, str]] = set()
    dropped = 0
    for meeting in meetings:
        for next_id in meeting.next_connected_meetings:
            target = lookup.get(next_id)
            if target is None:
                # Outside the current collection, e.g. a filtered objective view
                dropped += 1
                logger.debug(f"Dropping reference {meeting.id} -> {next_id}: not in collection")
                continue
            if (meeting.id, next_id) in seen:
                continue
            seen.add((meeting.id, next_id))
            edges.append(_build_edge(meeting, target, now))

    logger.info(
        f"Built meeting graph: {len(nodes)} nodes, {len(edges)} edges, "
        f"{dropped} unresolved references"
    )
    return MeetingGraph(nodes=nodes, edges=edges)


def _build_edge(source: MeetingRecord, target: MeetingRecord, now: datetime) -> ConnectionEdge:
    score_delta = compute_score_delta(source.coach_score, target.coach_score)
    action_item_count = source.count_action_items()
    return ConnectionEdge(
        source_id=source.id,
        target_id=target.id,
        time_gap=format_time_gap(source.start_time, target.start_time),
        score_delta=score_delta,
        action_item_count=action_item_count,
        animated=is_animated(source.status, target.status, target.start_time, now),
        stroke_weight=stroke_weight_for(action_item_count),
        color_class=color_class_for(score_delta),
        source_status=source.status,
        target_status=target.status,
        backwards=_as_utc(target.start_time) < _as_utc(source.start_time),
    )


# ============================================================================
# Edge Metrics
# ============================================================================

def format_time_gap(source_start: datetime, target_start: datetime) -> str:
    """Describe the time between two meetings: ``2d``, ``5h`` or ``same day``.

    Uses the magnitude of the difference, so an edge pointing backward in
    time reports the same gap as its forward counterpart.
    """
    gap = abs(_as_utc(target_start) - _as_utc(source_start))
    days = gap // timedelta(days=1)
    if days >= 1:
        return f"{days}d"
    hours = gap // timedelta(hours=1)
    if hours >= 1:
        return f"{hours}h"
    return "same day"


def compute_score_delta(source_score: Optional[int], target_score: Optional[int]) -> Optional[int]:
    """Target minus source score; None unless both scores exist."""
    if source_score is None or target_score is None:
        return None
    return target_score - source_score


def is_animated(
    source_status: MeetingStatus,
    target_status: MeetingStatus,
    target_start: datetime,
    now: datetime,
) -> bool:
    """Whether the connection is urgent enough to animate.

    A meeting in progress on either end always animates. Otherwise the edge
    animates when the target starts within the next 24 hours.
    """
    if MeetingStatus.IN_PROGRESS in (source_status, target_status):
        return True
    until_start = _as_utc(target_start) - _as_utc(now)
    return timedelta(0) < until_start <= UPCOMING_WINDOW


def stroke_weight_for(action_item_count: int) -> StrokeWeight:
    for minimum, weight in _STROKE_THRESHOLDS:
        if action_item_count >= minimum:
            return weight
    return StrokeWeight.LIGHT


def color_class_for(score_delta: Optional[int]) -> ColorClass:
    if score_delta is None or score_delta == 0:
        return ColorClass.NEUTRAL
    return ColorClass.IMPROVING if score_delta > 0 else ColorClass.DECLINING


# ============================================================================
# Collection Helpers
# ============================================================================

@dataclass
class ConnectedMeetings:
    """Resolved neighbours of one meeting."""
    meeting: MeetingRecord
    previous: List[MeetingRecord] = field(default_factory=list)
    next: List[MeetingRecord] = field(default_factory=list)


def filter_by_objective(meetings: Sequence[MeetingRecord], objective_id: str) -> List[MeetingRecord]:
    """Meetings that belong to one objective, in input order."""
    return [m for m in meetings if m.objective_id == objective_id]


def connected_meetings(meetings: Sequence[MeetingRecord], meeting_id: str) -> ConnectedMeetings:
    """Resolve the previous and next meetings of ``meeting_id``.

    References to meetings outside ``meetings`` are skipped.

    Raises:
        KeyError: ``meeting_id`` is not in ``meetings``
    """
    lookup = {m.id: m for m in meetings}
    if meeting_id not in lookup:
        raise KeyError(meeting_id)
    meeting = lookup[meeting_id]
    return ConnectedMeetings(
        meeting=meeting,
        previous=[lookup[i] for i in meeting.previous_connected_meetings if i in lookup],
        next=[lookup[i] for i in meeting.next_connected_meetings if i in lookup],
    )


# ============================================================================
# Helper Functions
# ============================================================================

def _validate_records(meetings: Sequence[MeetingRecord]) -> None:
    """Reject the whole call on the first structurally invalid record."""
    seen: Set[str] = set()
    for index, meeting in enumerate(meetings):
        meeting_id = getattr(meeting, "id", None)
        if not meeting_id:
            raise InvalidMeetingError(f"Meeting at index {index} has no id")
        if getattr(meeting, "start_time", None) is None:
            raise InvalidMeetingError(f"Meeting {meeting_id} has no start time", meeting_id=meeting_id)
        if meeting_id in seen:
            raise InvalidMeetingError(f"Duplicate meeting id {meeting_id}", meeting_id=meeting_id)
        seen.add(meeting_id)


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so naive and aware values compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
