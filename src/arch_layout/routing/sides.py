"""
Anchor side resolution.

Decides which side of each node a connector leaves from and arrives at.
The default compares centre-to-centre deltas; nodes inside a group also
look at their siblings and the group bounds so that connectors leave the
group on the side facing the target and do not run through siblings.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ..geometry import Bounds, ComputedNode
from ..types import Connection, DiagramOrientation, Side


def default_sides(source: Bounds, target: Bounds) -> tuple[Side, Side]:
    """Sides facing each other along the dominant axis of the centre delta."""
    dx = target.center_x - source.center_x
    dy = target.center_y - source.center_y

    if abs(dx) > abs(dy):
        if dx > 0:
            return (Side.RIGHT, Side.LEFT)
        return (Side.LEFT, Side.RIGHT)
    if dy > 0:
        return (Side.BOTTOM, Side.TOP)
    return (Side.TOP, Side.BOTTOM)


def _outward_side(
    source: Bounds,
    target: Bounds,
    parent: Bounds,
    orientation: DiagramOrientation,
) -> Optional[Side]:
    """Side of the group the target lies beyond, or None when it lies inside."""
    horizontal: Optional[Side] = None
    vertical: Optional[Side] = None

    if target.center_x > parent.right:
        horizontal = Side.RIGHT
    elif target.center_x < parent.left:
        horizontal = Side.LEFT
    if target.center_y > parent.bottom:
        vertical = Side.BOTTOM
    elif target.center_y < parent.top:
        vertical = Side.TOP

    if horizontal is not None and vertical is not None:
        # Diagonal: follow the reading direction of the diagram
        if orientation == DiagramOrientation.PORTRAIT:
            return vertical
        return horizontal
    return horizontal or vertical


def _ray_blocked(
    source: Bounds,
    side: Side,
    limit: float,
    siblings: Sequence[ComputedNode],
) -> bool:
    """Check if a sibling sits on the straight run from the anchor on ``side`` up to ``limit``."""
    ax, ay = source.anchor(side)
    for sibling in siblings:
        b = sibling.bounds
        if side == Side.RIGHT:
            hit = b.top <= ay <= b.bottom and b.left >= ax and b.left < limit
        elif side == Side.LEFT:
            hit = b.top <= ay <= b.bottom and b.right <= ax and b.right > limit
        elif side == Side.BOTTOM:
            hit = b.left <= ax <= b.right and b.top >= ay and b.top < limit
        else:  # TOP
            hit = b.left <= ax <= b.right and b.bottom <= ay and b.bottom > limit
        if hit:
            return True
    return False


def _perpendicular_toward(source: Bounds, target: Bounds, side: Side) -> Side:
    if side.is_vertical():
        return Side.TOP if target.center_y < source.center_y else Side.BOTTOM
    return Side.LEFT if target.center_x < source.center_x else Side.RIGHT


def resolve_sides(
    source: ComputedNode,
    target: ComputedNode,
    siblings: Sequence[ComputedNode] = (),
    parent_bounds: Optional[Bounds] = None,
    orientation: DiagramOrientation = DiagramOrientation.LANDSCAPE,
) -> tuple[Side, Side]:
    """
    Resolve exit and entry sides of a connector.

    Args:
        source: Node the connector leaves
        target: Node the connector enters
        siblings: Other children of the source's parent group
        parent_bounds: Bounds of the source's parent group
        orientation: Diagram orientation (tie-break for diagonal exits)

    Returns:
        (from_side, to_side)
    """
    src = source.bounds
    tgt = target.bounds
    from_side, to_side = default_sides(src, tgt)

    if parent_bounds is None:
        return (from_side, to_side)

    others = [s for s in siblings if s.id not in (source.id, target.id)]

    outward = _outward_side(src, tgt, parent_bounds, orientation)
    if outward is not None:
        from_side = outward
        to_side = outward.opposite()
        limit = parent_bounds.anchor(outward)
    else:
        limit = tgt.anchor(to_side)
    limit_value = limit[0] if from_side.is_vertical() else limit[1]

    if others and _ray_blocked(src, from_side, limit_value, others):
        from_side = _perpendicular_toward(src, tgt, from_side)

    return (from_side, to_side)


def siblings_and_parent_bounds(
    node: ComputedNode,
    node_map: Mapping[str, ComputedNode],
) -> tuple[list[ComputedNode], Optional[Bounds]]:
    """Siblings and parent group bounds of a node (empty/None at top level)."""
    if node.parent_id is None or node.parent_id not in node_map:
        return ([], None)
    parent = node_map[node.parent_id]
    siblings = [child for child in parent.children if child.id != node.id]
    return (siblings, parent.bounds)


def sides_for_connection(
    connection: Connection,
    source: ComputedNode,
    target: ComputedNode,
    node_map: Mapping[str, ComputedNode],
    orientation: DiagramOrientation = DiagramOrientation.LANDSCAPE,
) -> tuple[Side, Side]:
    """
    Sides for one connection; explicit connection sides override the resolver.

    Args:
        connection: Connection to resolve
        source: Computed source node
        target: Computed target node
        node_map: All computed nodes by id (for group context)
        orientation: Diagram orientation

    Returns:
        (from_side, to_side)
    """
    if connection.from_side is not None and connection.to_side is not None:
        return (connection.from_side, connection.to_side)

    siblings, parent_bounds = siblings_and_parent_bounds(source, node_map)
    from_side, to_side = resolve_sides(source, target, siblings, parent_bounds, orientation)

    return (
        connection.from_side if connection.from_side is not None else from_side,
        connection.to_side if connection.to_side is not None else to_side,
    )


__all__ = [
    "default_sides",
    "resolve_sides",
    "siblings_and_parent_bounds",
    "sides_for_connection",
]
