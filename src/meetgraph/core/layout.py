"""Layered layout for the meeting graph.

Places nodes in ranks (layers) that follow edge direction, orders each rank
to reduce edge crossings, then converts rank/order to 2-D coordinates:

1. Cycle breaking: depth-first search marks back-edges, which are ignored
   for layering only
2. Rank assignment: longest path from sources
3. Crossing reduction: alternating barycenter sweeps
4. Coordinates: rank on one axis, order on the other, per flow direction
"""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Dict, List, Sequence, Set, Tuple, Union

from meetgraph.core.errors import LayoutError
from meetgraph.core.models import ConnectionEdge, Direction, MeetingNode, PositionedNode

logger = logging.getLogger(__name__)

BARYCENTER_SWEEPS = 8

_UNVISITED, _ON_STACK, _DONE = 0, 1, 2


@dataclass(frozen=True)
class BoxSize:
    width: float = 200.0
    height: float = 120.0


@dataclass(frozen=True)
class Spacing:
    in_rank: float = 100.0  # between neighbours of the same rank
    between_ranks: float = 50.0


class LayoutGraph:
    """Adjacency lists over node IDs, in insertion order."""

    def __init__(self):
        self.nodes: List[str] = []
        self.edges: List[Tuple[str, str]] = []
        self.adjacency_list: Dict[str, List[str]] = defaultdict(list)
        self.reverse_adjacency_list: Dict[str, List[str]] = defaultdict(list)
        self._node_set: Set[str] = set()
        self._edge_set: Set[Tuple[str, str]] = set()

    def add_node(self, node_id: str):
        if node_id in self._node_set:
            raise LayoutError(f"Duplicate node id {node_id}")
        self._node_set.add(node_id)
        self.nodes.append(node_id)

    def add_edge(self, source: str, target: str):
        """Add a directed edge; parallel edges collapse to one."""
        if (source, target) in self._edge_set:
            return
        self._edge_set.add((source, target))
        self.edges.append((source, target))
        self.adjacency_list[source].append(target)
        self.reverse_adjacency_list[target].append(source)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._node_set

    def get_successors(self, node_id: str) -> List[str]:
        return self.adjacency_list.get(node_id, [])

    def get_predecessors(self, node_id: str) -> List[str]:
        return self.reverse_adjacency_list.get(node_id, [])


def build_layout_graph(nodes: Sequence[MeetingNode], edges: Sequence[ConnectionEdge]) -> LayoutGraph:
    """Build a LayoutGraph, keeping only edges whose endpoints are both nodes."""
    graph = LayoutGraph()
    for node in nodes:
        graph.add_node(node.id)
    for edge in edges:
        if graph.has_node(edge.source_id) and graph.has_node(edge.target_id):
            graph.add_edge(edge.source_id, edge.target_id)
    return graph


# ============================================================================
# Cycle Breaking
# ============================================================================

def find_back_edges(graph: LayoutGraph) -> Set[Tuple[str, str]]:
    """Edges that close a cycle during a depth-first walk.

    The walk starts from nodes in insertion order and follows successors in
    edge order, so the result is deterministic. Self-loops are always
    back-edges. Iterative to stay clear of the recursion limit on long chains.
    """
    state: Dict[str, int] = {node: _UNVISITED for node in graph.nodes}
    back_edges: Set[Tuple[str, str]] = set()

    for root in graph.nodes:
        if state[root] != _UNVISITED:
            continue
        state[root] = _ON_STACK
        stack = [(root, iter(graph.get_successors(root)))]
        while stack:
            node, successors = stack[-1]
            child = next(successors, None)
            if child is None:
                state[node] = _DONE
                stack.pop()
            elif state[child] == _ON_STACK:
                back_edges.add((node, child))
            elif state[child] == _UNVISITED:
                state[child] = _ON_STACK
                stack.append((child, iter(graph.get_successors(child))))

    if back_edges:
        logger.debug(f"Broke {len(back_edges)} cycle(s) for layering: {sorted(back_edges)}")
    return back_edges


# ============================================================================
# Rank Assignment
# ============================================================================

def assign_ranks(graph: LayoutGraph, back_edges: Set[Tuple[str, str]]) -> Dict[str, int]:
    """Longest-path layering over the graph minus its back-edges.

    Nodes without incoming edges get rank 0; every other node sits one rank
    below its deepest predecessor.
    """
    in_degree = {node: 0 for node in graph.nodes}
    forward: Dict[str, List[str]] = {}
    for node in graph.nodes:
        forward[node] = [s for s in graph.get_successors(node) if (node, s) not in back_edges]
        for successor in forward[node]:
            in_degree[successor] += 1

    ranks = {node: 0 for node in graph.nodes}
    queue = deque(node for node in graph.nodes if in_degree[node] == 0)
    while queue:
        node = queue.popleft()
        for successor in forward[node]:
            ranks[successor] = max(ranks[successor], ranks[node] + 1)
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                queue.append(successor)

    return ranks


# ============================================================================
# Crossing Reduction
# ============================================================================

def order_ranks(
    graph: LayoutGraph,
    ranks: Dict[str, int],
    back_edges: Set[Tuple[str, str]],
    sweeps: int = BARYCENTER_SWEEPS,
) -> List[List[str]]:
    """Order nodes within each rank to reduce crossings.

    Starts from insertion order and alternates downward and upward barycenter
    sweeps. The ordering with the fewest crossings seen is returned; the
    earliest wins ties.
    """
    if not graph.nodes:
        return []

    layers: List[List[str]] = [[] for _ in range(max(ranks.values()) + 1)]
    for node in graph.nodes:
        layers[ranks[node]].append(node)

    forward = [(s, t) for s, t in graph.edges if (s, t) not in back_edges]
    predecessors: Dict[str, List[str]] = defaultdict(list)
    successors: Dict[str, List[str]] = defaultdict(list)
    for source, target in forward:
        predecessors[target].append(source)
        successors[source].append(target)

    best = [list(layer) for layer in layers]
    best_crossings = count_crossings(best, ranks, forward)

    for sweep in range(sweeps):
        if best_crossings == 0:
            break
        if sweep % 2 == 0:
            for rank in range(1, len(layers)):
                layers[rank] = _barycenter_sort(layers[rank], predecessors, layers)
        else:
            for rank in range(len(layers) - 2, -1, -1):
                layers[rank] = _barycenter_sort(layers[rank], successors, layers)

        crossings = count_crossings(layers, ranks, forward)
        if crossings < best_crossings:
            best = [list(layer) for layer in layers]
            best_crossings = crossings

    logger.debug(f"Ordered {len(best)} ranks with {best_crossings} crossing(s)")
    return best


def count_crossings(
    layers: List[List[str]],
    ranks: Dict[str, int],
    edges: Sequence[Tuple[str, str]],
) -> int:
    """Count crossings among edges that join adjacent ranks."""
    position = _positions(layers)
    by_rank: Dict[int, List[Tuple[float, float]]] = defaultdict(list)
    for source, target in edges:
        if ranks[target] == ranks[source] + 1:
            by_rank[ranks[source]].append((position[source], position[target]))

    crossings = 0
    for segments in by_rank.values():
        for i in range(len(segments)):
            for j in range(i + 1, len(segments)):
                (u1, v1), (u2, v2) = segments[i], segments[j]
                if (u1 - u2) * (v1 - v2) < 0:
                    crossings += 1
    return crossings


def _barycenter_sort(
    layer: List[str],
    neighbours: Dict[str, List[str]],
    layers: List[List[str]],
) -> List[str]:
    position = _positions(layers)
    keyed = []
    for index, node in enumerate(layer):
        linked = neighbours.get(node, [])
        if linked:
            barycenter = sum(position[n] for n in linked) / len(linked)
        else:
            barycenter = position[node]
        keyed.append((barycenter, index, node))
    keyed.sort()
    return [node for _, _, node in keyed]


def _positions(layers: List[List[str]]) -> Dict[str, float]:
    """Position of each node relative to the centre of its rank.

    Ranks are drawn centred on each other, so these values line up across
    ranks of different sizes.
    """
    position: Dict[str, float] = {}
    for layer in layers:
        middle = (len(layer) - 1) / 2
        for index, node in enumerate(layer):
            position[node] = index - middle
    return position


# ============================================================================
# Coordinates
# ============================================================================

def layout(
    nodes: Sequence[MeetingNode],
    edges: Sequence[ConnectionEdge],
    direction: Union[Direction, str] = Direction.TB,
    box_size: BoxSize = BoxSize(),
    spacing: Spacing = Spacing(),
) -> List[PositionedNode]:
    """Position every node for the given flow direction.

    Args:
        nodes: Nodes to place; output keeps this order
        edges: Directed edges; edges to unknown nodes are ignored
        direction: ``TB`` (ranks top to bottom) or ``LR`` (ranks left to right)
        box_size: Node box dimensions
        spacing: Gaps between neighbours in a rank and between ranks

    Returns:
        One PositionedNode per input node, with the box's top-left corner

    Raises:
        LayoutError: invalid direction, dimensions, or duplicate node IDs
    """
    positioned, _ = layout_with_back_edges(nodes, edges, direction, box_size, spacing)
    return positioned


def layout_with_back_edges(
    nodes: Sequence[MeetingNode],
    edges: Sequence[ConnectionEdge],
    direction: Union[Direction, str] = Direction.TB,
    box_size: BoxSize = BoxSize(),
    spacing: Spacing = Spacing(),
) -> Tuple[List[PositionedNode], Set[Tuple[str, str]]]:
    """Like layout(), also returning the edges reversed to break cycles."""
    direction = _coerce_direction(direction)
    _validate_dimensions(box_size, spacing)

    graph = build_layout_graph(nodes, edges)
    if not graph.nodes:
        return [], set()

    back_edges = find_back_edges(graph)
    ranks = assign_ranks(graph, back_edges)
    layers = order_ranks(graph, ranks, back_edges)

    if direction == Direction.TB:
        order_box, rank_box = box_size.width, box_size.height
    else:
        order_box, rank_box = box_size.height, box_size.width
    order_step = order_box + spacing.in_rank
    rank_step = rank_box + spacing.between_ranks
    widest = max(len(layer) for layer in layers)

    placed: Dict[str, Tuple[int, float, float]] = {}
    for rank, layer in enumerate(layers):
        offset = (widest - len(layer)) * order_step / 2
        for order, node_id in enumerate(layer):
            along = offset + order * order_step + order_box / 2
            across = rank * rank_step + rank_box / 2
            if direction == Direction.TB:
                center_x, center_y = along, across
            else:
                center_x, center_y = across, along
            placed[node_id] = (
                order,
                center_x - box_size.width / 2,
                center_y - box_size.height / 2,
            )

    positioned = []
    for node in nodes:
        order, x, y = placed[node.id]
        positioned.append(PositionedNode(node=node, rank=ranks[node.id], order=order, x=x, y=y))

    logger.debug(f"Laid out {len(positioned)} nodes in {len(layers)} ranks ({direction.value})")
    return positioned, back_edges


def _coerce_direction(direction: Union[Direction, str]) -> Direction:
    try:
        return Direction(direction)
    except ValueError:
        raise LayoutError(f"Unknown direction {direction!r}, expected 'TB' or 'LR'") from None


def _validate_dimensions(box_size: BoxSize, spacing: Spacing):
    if box_size.width <= 0 or box_size.height <= 0:
        raise LayoutError(f"Node box must be positive, got {box_size.width}x{box_size.height}")
    if spacing.in_rank < 0 or spacing.between_ranks < 0:
        raise LayoutError("Spacing must not be negative")
