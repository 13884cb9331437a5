"""
Geometry types produced by layout and routing.

Provides absolute node geometry, reservation lines for obstacle avoidance,
per-connection anchor information and routed connector paths.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from .types import Connection, LayoutDirection, Node, NodeKind, Side

Point = tuple[float, float]


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box in absolute coordinates."""

    left: float
    top: float
    right: float
    bottom: float
    center_x: float
    center_y: float
    width: float
    height: float

    @classmethod
    def from_rect(cls, x: float, y: float, width: float, height: float) -> Bounds:
        return cls(
            left=x,
            top=y,
            right=x + width,
            bottom=y + height,
            center_x=x + width / 2,
            center_y=y + height / 2,
            width=width,
            height=height,
        )

    @property
    def center(self) -> Point:
        return (self.center_x, self.center_y)

    def anchor(self, side: Side) -> Point:
        """Midpoint of the given side."""
        if side == Side.TOP:
            return (self.center_x, self.top)
        elif side == Side.BOTTOM:
            return (self.center_x, self.bottom)
        elif side == Side.LEFT:
            return (self.left, self.center_y)
        else:  # RIGHT
            return (self.right, self.center_y)


@dataclass(frozen=True)
class ComputedNode:
    """
    A node with absolute geometry.

    Created once per layout pass and never mutated afterwards; routing
    reads it only.

    Attributes:
        node: The input node
        x: Absolute left edge
        y: Absolute top edge
        width: Computed width
        height: Computed height
        icon: Resolved icon (node icon, then resource icon, then None)
        children: Computed child nodes
        parent_id: Id of the enclosing group, if any
    """

    node: Node
    x: float
    y: float
    width: float
    height: float
    icon: Optional[str] = None
    children: tuple[ComputedNode, ...] = ()
    parent_id: Optional[str] = None
    bounds: Bounds = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bounds", Bounds.from_rect(self.x, self.y, self.width, self.height))

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def kind(self) -> NodeKind:
        return self.node.kind

    @property
    def layout(self) -> LayoutDirection:
        return self.node.layout

    @property
    def label(self) -> Optional[str]:
        return self.node.label

    @property
    def center(self) -> Point:
        return self.bounds.center

    @property
    def anchors(self) -> dict[Side, Point]:
        """Midpoints of the four sides, keyed by side."""
        return {side: self.bounds.anchor(side) for side in Side}

    def translated(self, dx: float, dy: float) -> ComputedNode:
        """Copy of this subtree moved by (dx, dy)."""
        if dx == 0 and dy == 0:
            return self
        return replace(
            self,
            x=self.x + dx,
            y=self.y + dy,
            children=tuple(child.translated(dx, dy) for child in self.children),
        )

    def __repr__(self) -> str:
        return (
            f"ComputedNode(id={self.id!r}, x={self.x:.1f}, y={self.y:.1f}, "
            f"w={self.width:.1f}, h={self.height:.1f})"
        )


class ReservationKind(Enum):
    """What placed a reservation line."""

    NODE = "node"
    CONNECTOR = "connector"


@dataclass(frozen=True)
class ReservedVerticalLine:
    """Occupied vertical segment at x spanning [y_min, y_max]."""

    x: float
    y_min: float
    y_max: float
    kind: ReservationKind = ReservationKind.CONNECTOR
    owner: Optional[str] = None


@dataclass(frozen=True)
class ReservedHorizontalLine:
    """Occupied horizontal segment at y spanning [x_min, x_max]."""

    y: float
    x_min: float
    x_max: float
    kind: ReservationKind = ReservationKind.CONNECTOR
    owner: Optional[str] = None


@dataclass(frozen=True)
class AnchorInfo:
    """Resolved sides and slot positions of one connection's endpoints."""

    from_side: Side
    to_side: Side
    from_index: int = 0
    from_total: int = 1
    to_index: int = 0
    to_total: int = 1


@dataclass(frozen=True)
class RoutedPath:
    """
    Final geometry of one connector.

    Attributes:
        connection: The routed connection
        points: Polyline vertices from source anchor to target anchor
            (for curved paths: start, two control points, end)
        from_side: Side the connector leaves the source
        to_side: Side the connector enters the target
        collided: True when no conflict-free candidate was found and the
            best-effort path still touches a reservation
        curved: True for cubic paths
        bidirectional: True when this path also stands for the reverse connection
        index: Position of the connection in the routed sequence
    """

    connection: Connection
    points: tuple[Point, ...]
    from_side: Side
    to_side: Side
    collided: bool = False
    curved: bool = False
    bidirectional: bool = False
    index: Optional[int] = None

    @property
    def segments(self) -> list[tuple[Point, Point]]:
        """Consecutive point pairs (empty for curved paths)."""
        if self.curved:
            return []
        return list(zip(self.points[:-1], self.points[1:]))

    @property
    def svg_path(self) -> str:
        """SVG path data for this connector."""
        if not self.points:
            return ""
        head = f"M {_fmt(self.points[0][0])} {_fmt(self.points[0][1])}"
        if self.curved and len(self.points) == 4:
            (c1x, c1y), (c2x, c2y), (ex, ey) = self.points[1:]
            return f"{head} C {_fmt(c1x)} {_fmt(c1y)}, {_fmt(c2x)} {_fmt(c2y)}, {_fmt(ex)} {_fmt(ey)}"
        rest = " ".join(f"L {_fmt(x)} {_fmt(y)}" for x, y in self.points[1:])
        return f"{head} {rest}"


def _fmt(value: float) -> str:
    # 148.0 -> "148", 148.5 -> "148.5"
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


__all__ = [
    "Point",
    "Bounds",
    "ComputedNode",
    "ReservationKind",
    "ReservedVerticalLine",
    "ReservedHorizontalLine",
    "AnchorInfo",
    "RoutedPath",
]
