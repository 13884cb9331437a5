"""
Automatic placement of top-level nodes without explicit positions.

Nodes are layered by longest path over the connection graph (roots are nodes
without incoming connections), then laid out layer by layer:

- landscape: layers run left to right, nodes of a layer top to bottom
- portrait: layers run top to bottom, nodes of a layer centred horizontally

Within a layer, nodes are ordered by the mean position of their already
placed predecessors (barycenter heuristic).
"""

from __future__ import annotations

import warnings
from collections import deque
from typing import Iterable, Optional, Sequence

from ..geometry import ComputedNode
from ..types import Connection, DiagramOrientation

# Placement grid
SPACING_X = 160.0
SPACING_Y = 160.0
START_X = 100.0
START_Y = 100.0


class GraphStructureWarning(UserWarning):
    """Warning for connection graphs that layering cannot order cleanly."""

    pass


def _needs_position(node: ComputedNode) -> bool:
    return node.node.position is None and node.x == 0 and node.y == 0


def needs_auto_layout(nodes: Iterable[ComputedNode]) -> bool:
    """Check if any top-level node is still unpositioned."""
    return any(_needs_position(node) for node in nodes)


def _has_cycle(
    node_ids: Sequence[str],
    outgoing: dict[str, list[str]],
    in_degree: dict[str, int],
) -> bool:
    """Kahn's algorithm: a cycle leaves nodes that never reach in-degree 0."""
    remaining = dict(in_degree)
    queue = deque(node_id for node_id in node_ids if remaining[node_id] == 0)
    visited = 0
    while queue:
        node_id = queue.popleft()
        visited += 1
        for target in outgoing[node_id]:
            remaining[target] -= 1
            if remaining[target] == 0:
                queue.append(target)
    return visited < len(node_ids)


def assign_layers(node_ids: Sequence[str], connections: Iterable[Connection]) -> dict[str, int]:
    """
    Assign each node the length of the longest path reaching it from a root.

    Connections touching nodes outside ``node_ids`` are ignored. On a
    cyclic graph without roots, layering starts from the first node.
    Nodes unreachable from any root go to a trailing layer.

    Args:
        node_ids: Nodes to layer, in document order
        connections: Directed connections

    Returns:
        Mapping node id -> layer index
    """
    known = set(node_ids)
    outgoing: dict[str, list[str]] = {node_id: [] for node_id in node_ids}
    in_degree: dict[str, int] = {node_id: 0 for node_id in node_ids}

    for conn in connections:
        if conn.source not in known or conn.target not in known:
            continue
        outgoing[conn.source].append(conn.target)
        in_degree[conn.target] += 1

    roots = [node_id for node_id in node_ids if in_degree[node_id] == 0]
    if _has_cycle(node_ids, outgoing, in_degree):
        warnings.warn(
            "Connection graph contains a cycle; layers are approximate",
            GraphStructureWarning,
            stacklevel=3,
        )
    if not roots and node_ids:
        roots = [node_ids[0]]

    layers: dict[str, int] = {}
    queue: deque[str] = deque()
    for root in roots:
        layers[root] = 0
        queue.append(root)

    # A path never has more than n - 1 edges; longer ones go round a cycle
    limit = len(node_ids) - 1
    while queue:
        node_id = queue.popleft()
        new_layer = layers[node_id] + 1
        for target in outgoing[node_id]:
            if new_layer <= limit and new_layer > layers.get(target, -1):
                layers[target] = new_layer
                queue.append(target)

    trailing = max(layers.values(), default=-1) + 1
    for node_id in node_ids:
        if node_id not in layers:
            layers[node_id] = trailing

    return layers


def apply_auto_layout(
    nodes: Sequence[ComputedNode],
    connections: Iterable[Connection],
    *,
    orientation: DiagramOrientation = DiagramOrientation.LANDSCAPE,
    viewport_width: Optional[float] = None,
    spacing: tuple[float, float] = (SPACING_X, SPACING_Y),
    start: tuple[float, float] = (START_X, START_Y),
) -> list[ComputedNode]:
    """
    Place unpositioned top-level nodes.

    Nodes with an explicit position (or any non-origin position) are left
    untouched. Moving a node moves its whole subtree.

    Args:
        nodes: Computed top-level nodes
        connections: Connections used to build the layering graph
        orientation: Landscape (left to right) or portrait (top to bottom)
        viewport_width: Canvas width; portrait layers are centred on it
        spacing: Distance between layers and between nodes of a layer
        start: Top-left of the placement grid

    Returns:
        New list of top-level nodes in the original order
    """
    pending = [node for node in nodes if _needs_position(node)]
    if not pending:
        return list(nodes)

    connections = list(connections)
    node_ids = [node.id for node in pending]
    layers = assign_layers(node_ids, connections)

    predecessors: dict[str, list[str]] = {node_id: [] for node_id in node_ids}
    for conn in connections:
        if conn.source in predecessors and conn.target in predecessors:
            predecessors[conn.target].append(conn.source)

    by_layer: dict[int, list[ComputedNode]] = {}
    for node in pending:
        by_layer.setdefault(layers[node.id], []).append(node)

    spacing_x, spacing_y = spacing
    start_x, start_y = start
    placed: dict[str, tuple[float, float]] = {}
    moved: dict[str, ComputedNode] = {}

    for layer_index in sorted(by_layer):
        ordered = _order_layer(by_layer[layer_index], predecessors, placed)
        center_offset = (len(ordered) - 1) / 2

        for node_index, node in enumerate(ordered):
            if orientation == DiagramOrientation.PORTRAIT:
                center_x = viewport_width / 2 if viewport_width else start_x
                x = center_x + (node_index - center_offset) * spacing_x - node.width / 2
                y = start_y + layer_index * spacing_y
            else:
                x = start_x + layer_index * spacing_x
                y = start_y + node_index * spacing_y

            moved[node.id] = node.translated(x - node.x, y - node.y)
            placed[node.id] = (x, y)

    return [moved.get(node.id, node) for node in nodes]


def _order_layer(
    layer: list[ComputedNode],
    predecessors: dict[str, list[str]],
    placed: dict[str, tuple[float, float]],
) -> list[ComputedNode]:
    if len(layer) <= 1:
        return layer

    def score(node: ComputedNode) -> float:
        positions = [placed[src] for src in predecessors[node.id] if src in placed]
        if not positions:
            return float("inf")
        return sum(x + y for x, y in positions) / len(positions)

    return sorted(layer, key=score)


__all__ = [
    "GraphStructureWarning",
    "needs_auto_layout",
    "assign_layers",
    "apply_auto_layout",
]
