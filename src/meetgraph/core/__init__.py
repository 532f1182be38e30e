"""Meeting relationship graph engine.

Build a directed graph from meeting successor references and lay it out in
ranks for a flow-chart renderer.
"""

from meetgraph.core.errors import InvalidMeetingError, LayoutError, MeetgraphError
from meetgraph.core.models import (
    ColorClass,
    ConnectionEdge,
    Direction,
    MeetingGraph,
    MeetingNode,
    MeetingStatus,
    PositionedNode,
    StrokeWeight,
)
from meetgraph.core.schemas import LayoutConfig, MeetingRecord, Person, load_meetings, parse_meetings
from meetgraph.core.graph import (
    ConnectedMeetings,
    build_graph,
    connected_meetings,
    filter_by_objective,
)
from meetgraph.core.layout import BoxSize, Spacing, layout, layout_with_back_edges
from meetgraph.core.pipeline import GraphLayout, build_layout, graph_payload

__all__ = [
    "BoxSize",
    "ColorClass",
    "ConnectedMeetings",
    "ConnectionEdge",
    "Direction",
    "GraphLayout",
    "InvalidMeetingError",
    "LayoutConfig",
    "LayoutError",
    "MeetgraphError",
    "MeetingGraph",
    "MeetingNode",
    "MeetingRecord",
    "MeetingStatus",
    "Person",
    "PositionedNode",
    "Spacing",
    "StrokeWeight",
    "build_graph",
    "build_layout",
    "connected_meetings",
    "filter_by_objective",
    "graph_payload",
    "layout",
    "layout_with_back_edges",
    "load_meetings",
    "parse_meetings",
]
