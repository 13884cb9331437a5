"""
Anchor distribution along node edges.

All connector endpoints landing on the same node side, outgoing and incoming
alike, share that edge. They are ordered by the position of the node at the
other end (x for top/bottom, y for left/right) and spread evenly along it.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ..geometry import AnchorInfo, Bounds, ComputedNode, Point
from ..types import Connection, DiagramOrientation, Side
from .sides import sides_for_connection


def distributed_anchor(bounds: Bounds, side: Side, index: int = 0, total: int = 1) -> Point:
    """
    Anchor point of slot ``index`` out of ``total`` on a side.

    Slots divide the edge into ``total + 1`` equal parts, so a single
    connector sits at the midpoint.
    """
    ratio = (index + 1) / (total + 1)
    if side == Side.TOP:
        return (bounds.left + ratio * bounds.width, bounds.top)
    elif side == Side.BOTTOM:
        return (bounds.left + ratio * bounds.width, bounds.bottom)
    elif side == Side.LEFT:
        return (bounds.left, bounds.top + ratio * bounds.height)
    else:  # RIGHT
        return (bounds.right, bounds.top + ratio * bounds.height)


def calculate_anchor_distribution(
    connections: Sequence[Connection],
    node_map: Mapping[str, ComputedNode],
    orientation: DiagramOrientation = DiagramOrientation.LANDSCAPE,
    sides: Optional[Mapping[int, tuple[Side, Side]]] = None,
) -> dict[int, AnchorInfo]:
    """
    Resolve sides and slot positions for every connection.

    Args:
        connections: Connections in routing order
        node_map: Computed nodes by id
        orientation: Diagram orientation passed to the side resolver
        sides: Pre-resolved (from_side, to_side) by connection index

    Returns:
        AnchorInfo by connection index; connections with a missing endpoint
        are absent
    """
    resolved: dict[int, tuple[Side, Side]] = {}
    # (node_id, side) -> [(sort key, connection index, is_source)]
    slots: dict[tuple[str, Side], list[tuple[float, int, bool]]] = {}

    for i, conn in enumerate(connections):
        source = node_map.get(conn.source)
        target = node_map.get(conn.target)
        if source is None or target is None:
            continue

        if sides is not None and i in sides:
            from_side, to_side = sides[i]
        else:
            from_side, to_side = sides_for_connection(conn, source, target, node_map, orientation)
        resolved[i] = (from_side, to_side)

        slots.setdefault((source.id, from_side), []).append(
            (_ordering_key(from_side, target), i, True)
        )
        slots.setdefault((target.id, to_side), []).append(
            (_ordering_key(to_side, source), i, False)
        )

    positions: dict[tuple[int, bool], tuple[int, int]] = {}
    for entries in slots.values():
        # Stable: equal keys keep connection order
        ordered = sorted(entries, key=lambda entry: entry[0])
        total = len(ordered)
        for index, (_, conn_index, is_source) in enumerate(ordered):
            positions[(conn_index, is_source)] = (index, total)

    result: dict[int, AnchorInfo] = {}
    for i, (from_side, to_side) in resolved.items():
        from_index, from_total = positions[(i, True)]
        to_index, to_total = positions[(i, False)]
        result[i] = AnchorInfo(
            from_side=from_side,
            to_side=to_side,
            from_index=from_index,
            from_total=from_total,
            to_index=to_index,
            to_total=to_total,
        )
    return result


def _ordering_key(side: Side, other: ComputedNode) -> float:
    if side.is_horizontal():
        return other.bounds.center_x
    return other.bounds.center_y


__all__ = [
    "distributed_anchor",
    "calculate_anchor_distribution",
]
