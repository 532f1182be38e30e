"""Build-then-layout pipeline and conversion to the renderer payload."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Set, Tuple

from meetgraph.core.graph import build_graph
from meetgraph.core.layout import layout_with_back_edges
from meetgraph.core.models import Direction, MeetingGraph, PositionedNode
from meetgraph.core.schemas import (
    ConnectionRecord,
    FlowEdge,
    FlowEdgeData,
    FlowNode,
    FlowNodeData,
    GraphPayload,
    LayoutConfig,
    MeetingGraphPayload,
    MeetingNodeRecord,
    MeetingRecord,
    Position,
)

logger = logging.getLogger(__name__)


@dataclass
class GraphLayout:
    """A built and positioned meeting graph."""
    graph: MeetingGraph
    nodes: List[PositionedNode]
    direction: Direction
    back_edges: Set[Tuple[str, str]] = field(default_factory=set)

    def to_payload(self) -> GraphPayload:
        nodes = [
            FlowNode(
                id=p.id,
                position=Position(x=p.x, y=p.y),
                rank=p.rank,
                data=FlowNodeData(
                    label=p.node.label,
                    start_time=p.node.start_time,
                    status=p.node.status,
                    coach_score=p.node.score,
                    people_count=p.node.people_count,
                ),
            )
            for p in self.nodes
        ]
        edges = [
            FlowEdge(
                id=e.id,
                source=e.source_id,
                target=e.target_id,
                animated=e.animated,
                label=e.label,
                data=FlowEdgeData(
                    time_gap=e.time_gap,
                    coach_score_delta=e.score_delta,
                    action_item_count=e.action_item_count,
                    source_status=e.source_status,
                    target_status=e.target_status,
                    stroke_weight=int(e.stroke_weight),
                    color_class=e.color_class.value,
                    back_edge=(e.source_id, e.target_id) in self.back_edges,
                ),
            )
            for e in self.graph.edges
        ]
        return GraphPayload(
            direction=self.direction.value,
            nodes=nodes,
            edges=edges,
            summary=self.graph.summary(),
        )


def build_layout(
    meetings: Sequence[MeetingRecord],
    now: datetime,
    config: Optional[LayoutConfig] = None,
) -> GraphLayout:
    """Build the meeting graph and position it."""
    config = config or LayoutConfig()
    graph = build_graph(meetings, now)
    positioned, back_edges = layout_with_back_edges(
        graph.nodes,
        graph.edges,
        direction=config.direction,
        box_size=config.box_size(),
        spacing=config.spacing(),
    )
    if back_edges:
        logger.info(f"{len(back_edges)} connection(s) close a cycle and are drawn against the flow")
    return GraphLayout(
        graph=graph,
        nodes=positioned,
        direction=config.direction,
        back_edges=back_edges,
    )


def graph_payload(graph: MeetingGraph) -> MeetingGraphPayload:
    """Serializable form of an unpositioned graph."""
    return MeetingGraphPayload(
        nodes=[
            MeetingNodeRecord(
                id=n.id,
                label=n.label,
                start_time=n.start_time,
                status=n.status,
                coach_score=n.score,
                people_count=n.people_count,
            )
            for n in graph.nodes
        ],
        edges=[
            ConnectionRecord(
                id=e.id,
                source=e.source_id,
                target=e.target_id,
                time_gap=e.time_gap,
                coach_score_delta=e.score_delta,
                action_item_count=e.action_item_count,
                animated=e.animated,
                stroke_weight=int(e.stroke_weight),
                color_class=e.color_class.value,
                status=e.status_transition,
            )
            for e in graph.edges
        ],
        summary=graph.summary(),
    )
