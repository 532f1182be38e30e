"""Value types for the meeting relationship graph.

Nodes and edges are plain frozen dataclasses (not pydantic models): they are
derived artifacts, rebuilt in full on every call and never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import List, Optional


class MeetingStatus(str, Enum):
    """Lifecycle state of a meeting."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StrokeWeight(IntEnum):
    """Ordinal edge weight derived from the source meeting's action items."""
    LIGHT = 1
    MEDIUM = 2
    HEAVY = 3
    HEAVIEST = 4


class ColorClass(str, Enum):
    """Edge colour category derived from the sign of the score delta."""
    IMPROVING = "improving"
    DECLINING = "declining"
    NEUTRAL = "neutral"


class Direction(str, Enum):
    """Flow direction of the drawing."""
    TB = "TB"  # top to bottom
    LR = "LR"  # left to right


@dataclass(frozen=True)
class MeetingNode:
    """Node in the meeting graph, one per meeting."""
    id: str
    label: str
    start_time: datetime
    status: MeetingStatus
    score: Optional[int] = None  # None means "no score yet", not zero
    people_count: int = 0


@dataclass(frozen=True)
class ConnectionEdge:
    """Directed edge from a meeting to one of its successor meetings."""
    source_id: str
    target_id: str
    time_gap: str
    score_delta: Optional[int]
    action_item_count: int
    animated: bool
    stroke_weight: StrokeWeight
    color_class: ColorClass
    source_status: MeetingStatus = MeetingStatus.SCHEDULED
    target_status: MeetingStatus = MeetingStatus.SCHEDULED
    backwards: bool = False  # target starts before source

    @property
    def id(self) -> str:
        return f"e-{self.source_id}-{self.target_id}"

    @property
    def label(self) -> str:
        return self.time_gap

    @property
    def is_self_loop(self) -> bool:
        return self.source_id == self.target_id

    @property
    def status_transition(self) -> str:
        """Status text shown on the edge, e.g. ``completed → scheduled``."""
        if self.source_status == self.target_status:
            return self.source_status.value
        return f"{self.source_status.value} → {self.target_status.value}"


@dataclass(frozen=True)
class MeetingGraph:
    """Result of a graph build: nodes in input order plus resolved edges."""
    nodes: List[MeetingNode] = field(default_factory=list)
    edges: List[ConnectionEdge] = field(default_factory=list)

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[MeetingNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def summary(self) -> str:
        return f"{len(self.nodes)} meetings • {len(self.edges)} connections"


@dataclass(frozen=True)
class PositionedNode:
    """A meeting node placed by the layout engine.

    ``x``/``y`` is the top-left corner of the node box, so a renderer can
    draw a box of the configured size directly at that coordinate.
    """
    node: MeetingNode
    rank: int
    order: int
    x: float
    y: float

    @property
    def id(self) -> str:
        return self.node.id
