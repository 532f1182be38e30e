"""
Pydantic schemas for meetgraph.

This module defines the input records handed to the engine by the meeting
store (serialized dashboard meetings, camelCase on the wire), the layout
parameters, and the payload handed back to a flow-chart renderer.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from meetgraph.core.errors import InvalidMeetingError
from meetgraph.core.layout import BoxSize, Spacing
from meetgraph.core.models import Direction, MeetingStatus


# Input Records

class Person(BaseModel):
    """Meeting attendee."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Person identifier")
    name: str = Field("", description="Display name")
    email: Optional[str] = Field(None, description="Contact address")


class MeetingRecord(BaseModel):
    """A meeting as supplied by the meeting store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(..., description="Unique meeting identifier")
    name: str = Field("", description="Display name")
    start_time: datetime = Field(..., description="Scheduled start; naive values are UTC")
    status: MeetingStatus = Field(MeetingStatus.SCHEDULED, description="Lifecycle state")
    coach_score: Optional[int] = Field(None, ge=0, le=100, description="Coaching score (0-100)")
    people: List[Person] = Field(default_factory=list, description="Attendees")
    action_items: List[str] = Field(default_factory=list, description="Action item IDs")
    action_item_count: Optional[int] = Field(
        None, ge=0, description="Explicit action item count, overrides len(action_items)"
    )
    previous_connected_meetings: List[str] = Field(default_factory=list, description="Predecessor IDs")
    next_connected_meetings: List[str] = Field(default_factory=list, description="Successor IDs")
    objective_id: Optional[str] = Field(None, description="Objective this meeting belongs to")

    @property
    def people_count(self) -> int:
        return len(self.people)

    def count_action_items(self) -> int:
        if self.action_item_count is not None:
            return self.action_item_count
        return len(self.action_items)


def parse_meetings(data: Union[List[Dict[str, Any]], Dict[str, Any]]) -> List[MeetingRecord]:
    """Validate raw meeting dicts.

    Accepts either a bare list or an object with a ``meetings`` key.
    Raises InvalidMeetingError naming the offending record.
    """
    if isinstance(data, dict):
        if "meetings" not in data:
            raise InvalidMeetingError("Expected a list of meetings or an object with a 'meetings' key")
        data = data["meetings"]
    if not isinstance(data, list):
        raise InvalidMeetingError("Expected a list of meetings")

    records: List[MeetingRecord] = []
    for index, raw in enumerate(data):
        try:
            records.append(MeetingRecord.model_validate(raw))
        except ValidationError as e:
            meeting_id = raw.get("id", "") if isinstance(raw, dict) else ""
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "record"
            raise InvalidMeetingError(
                f"Invalid meeting at index {index} ({location}): {first['msg']}",
                meeting_id=str(meeting_id),
            ) from e
    return records


def load_meetings(path: Path) -> List[MeetingRecord]:
    """Read and validate a JSON file of meetings."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except UnicodeDecodeError as e:
            raise InvalidMeetingError(f"Not UTF-8 text: {path} ({e})") from e
        except json.JSONDecodeError as e:
            raise InvalidMeetingError(f"Malformed JSON in {path}: {e}") from e
    return parse_meetings(data)


# Layout Configuration

class LayoutConfig(BaseModel):
    """Layout parameters for one drawing."""

    direction: Direction = Field(
        default=Direction.LR,
        description="Flow direction: TB (top to bottom) or LR (left to right)"
    )
    node_width: float = Field(default=200.0, gt=0, description="Node box width")
    node_height: float = Field(default=120.0, gt=0, description="Node box height")
    node_sep: float = Field(
        default=100.0,
        ge=0,
        description="Gap between neighbouring nodes in the same rank"
    )
    rank_sep: float = Field(default=50.0, ge=0, description="Gap between ranks")

    def box_size(self) -> BoxSize:
        return BoxSize(width=self.node_width, height=self.node_height)

    def spacing(self) -> Spacing:
        return Spacing(in_rank=self.node_sep, between_ranks=self.rank_sep)


# Render Payload

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(_CamelModel):
    x: float = Field(..., description="Left edge of the node box")
    y: float = Field(..., description="Top edge of the node box")


class FlowNodeData(_CamelModel):
    label: str
    start_time: datetime
    status: MeetingStatus
    coach_score: Optional[int] = None
    people_count: int = 0


class FlowNode(_CamelModel):
    """A positioned meeting node."""

    id: str = Field(..., description="Meeting ID")
    type: str = Field("meeting", description="Renderer node type")
    position: Position
    rank: int = Field(..., description="Layer index")
    data: FlowNodeData


class FlowEdgeData(_CamelModel):
    time_gap: str
    coach_score_delta: Optional[int] = None
    action_item_count: int = 0
    source_status: MeetingStatus
    target_status: MeetingStatus
    stroke_weight: int
    color_class: str
    back_edge: bool = False


class FlowEdge(_CamelModel):
    """A connection between two meetings."""

    id: str = Field(..., description="Edge ID (e-<source>-<target>)")
    source: str = Field(..., description="Source meeting ID")
    target: str = Field(..., description="Target meeting ID")
    type: str = Field("smoothstep", description="Renderer edge type")
    animated: bool = False
    label: str = ""
    data: FlowEdgeData


class GraphPayload(_CamelModel):
    """The top-level payload handed to a renderer."""

    direction: str
    nodes: List[FlowNode]
    edges: List[FlowEdge]
    summary: str


class ConnectionRecord(_CamelModel):
    """A connection without layout information."""

    id: str = Field(..., description="Edge ID (e-<source>-<target>)")
    source: str
    target: str
    time_gap: str
    coach_score_delta: Optional[int] = None
    action_item_count: int = 0
    animated: bool = False
    stroke_weight: int
    color_class: str
    status: str = Field(..., description="Status transition, e.g. 'completed → scheduled'")


class MeetingNodeRecord(_CamelModel):
    id: str
    label: str
    start_time: datetime
    status: MeetingStatus
    coach_score: Optional[int] = None
    people_count: int = 0


class MeetingGraphPayload(_CamelModel):
    """An unpositioned meeting graph."""

    nodes: List[MeetingNodeRecord]
    edges: List[ConnectionRecord]
    summary: str
