"""
Reservation index for obstacle-aware routing.

Occupied space is recorded as axis-aligned line segments: the edges of a
square around each leaf node, and every segment of already routed
connectors. A candidate segment conflicts when it runs along a reserved
line of the same orientation (closer than TOLERANCE, intervals overlapping
or touching), or when it crosses straight through a node area.

Node areas use the square circumscribing the node's inscribed circle, so
corners stay free and connectors may graze them.

Collections are append-only and live for one render only.
"""

from __future__ import annotations

from typing import Collection, Iterable, Optional, Sequence, Union

import numpy as np

from ..geometry import (
    ComputedNode,
    Point,
    ReservationKind,
    ReservedHorizontalLine,
    ReservedVerticalLine,
)

TOLERANCE = 5.0
NODE_MARGIN = 5.0

# Coordinates closer than this are treated as equal when classifying segments
_EPS = 1e-9

_Line = Union[ReservedVerticalLine, ReservedHorizontalLine]


def conflicts_vertical(
    x: float,
    y_min: float,
    y_max: float,
    existing: Iterable[ReservedVerticalLine],
    tolerance: float = TOLERANCE,
) -> bool:
    """
    Check a vertical segment against reserved vertical lines.

    True iff some line lies closer than ``tolerance`` in x and its y range
    overlaps or touches [y_min, y_max]. Same rule as the index queries
    (_LineTable.parallel).
    """
    table = _LineTable()
    for line in existing:
        table.append(line, line.x, line.y_min, line.y_max)
    return bool(table.parallel(x, y_min, y_max, tolerance, ()).any())


def conflicts_horizontal(
    y: float,
    x_min: float,
    x_max: float,
    existing: Iterable[ReservedHorizontalLine],
    tolerance: float = TOLERANCE,
) -> bool:
    """Mirror of conflicts_vertical for horizontal segments."""
    table = _LineTable()
    for line in existing:
        table.append(line, line.y, line.x_min, line.x_max)
    return bool(table.parallel(y, x_min, x_max, tolerance, ()).any())


def node_area(node: ComputedNode, margin: float = NODE_MARGIN) -> tuple[float, float, float, float]:
    """
    Reserved square around a node as (left, top, right, bottom).

    Radius is half the smaller node dimension plus ``margin - 1``.
    """
    b = node.bounds
    radius = min(b.width, b.height) / 2 + margin - 1
    return (
        b.center_x - radius,
        b.center_y - radius,
        b.center_x + radius,
        b.center_y + radius,
    )


class _LineTable:
    """Append-only line store with a lazily rebuilt numpy view."""

    def __init__(self) -> None:
        self.lines: list[tuple[_Line, float, float, float]] = []
        self._coords: Optional[np.ndarray] = None
        self._is_node: Optional[np.ndarray] = None
        self._owners: Optional[np.ndarray] = None

    def append(self, line: _Line, coord: float, lo: float, hi: float) -> None:
        self.lines.append((line, coord, lo, hi))
        self._coords = None

    def _refresh(self) -> None:
        if self._coords is not None:
            return
        if self.lines:
            self._coords = np.array([(c, lo, hi) for _, c, lo, hi in self.lines], dtype=np.float64)
        else:
            self._coords = np.zeros((0, 3), dtype=np.float64)
        self._is_node = np.array(
            [line.kind == ReservationKind.NODE for line, *_ in self.lines], dtype=bool
        )
        self._owners = np.array([line.owner or "" for line, *_ in self.lines], dtype=str)

    def _visible(self, ignore: Collection[str]) -> np.ndarray:
        assert self._owners is not None
        if not ignore or len(self._owners) == 0:
            return np.ones(len(self.lines), dtype=bool)
        return ~np.isin(self._owners, list(ignore))

    def parallel(self, coord: float, lo: float, hi: float, tolerance: float, ignore: Collection[str]) -> np.ndarray:
        """Mask of lines closer than tolerance whose interval overlaps [lo, hi]."""
        self._refresh()
        assert self._coords is not None
        c = self._coords
        mask = (np.abs(c[:, 0] - coord) < tolerance) & (lo <= c[:, 2]) & (hi >= c[:, 1])
        return mask & self._visible(ignore)

    def crossing(self, coord: float, lo: float, hi: float, ignore: Collection[str]) -> np.ndarray:
        """Mask of node lines cut by a perpendicular segment at ``coord`` spanning [lo, hi]."""
        self._refresh()
        assert self._coords is not None and self._is_node is not None
        c = self._coords
        mask = (
            self._is_node
            & (lo <= c[:, 0])
            & (c[:, 0] <= hi)
            & (c[:, 1] <= coord)
            & (coord <= c[:, 2])
        )
        return mask & self._visible(ignore)

    def coord_at(self, index: int) -> float:
        return self.lines[index][1]


class ReservationIndex:
    """
    Reserved vertical and horizontal lines of one render.

    Example:
        index = ReservationIndex()
        index.register_node_areas(flatten_nodes(nodes))
        if not index.path_conflicts(points, ignore={"a", "b"}):
            index.register_path(points, owner="a->b")
    """

    def __init__(self, tolerance: float = TOLERANCE, node_margin: float = NODE_MARGIN) -> None:
        self.tolerance = tolerance
        self.node_margin = node_margin
        self._vertical = _LineTable()
        self._horizontal = _LineTable()
        self._areas: dict[str, tuple[float, float, float, float]] = {}

    @property
    def vertical_lines(self) -> list[ReservedVerticalLine]:
        return [line for line, *_ in self._vertical.lines]

    @property
    def horizontal_lines(self) -> list[ReservedHorizontalLine]:
        return [line for line, *_ in self._horizontal.lines]

    def __len__(self) -> int:
        return len(self._vertical.lines) + len(self._horizontal.lines)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def reserve_vertical(
        self,
        x: float,
        y_min: float,
        y_max: float,
        kind: ReservationKind = ReservationKind.CONNECTOR,
        owner: Optional[str] = None,
    ) -> ReservedVerticalLine:
        line = ReservedVerticalLine(x, min(y_min, y_max), max(y_min, y_max), kind, owner)
        self._vertical.append(line, line.x, line.y_min, line.y_max)
        return line

    def reserve_horizontal(
        self,
        y: float,
        x_min: float,
        x_max: float,
        kind: ReservationKind = ReservationKind.CONNECTOR,
        owner: Optional[str] = None,
    ) -> ReservedHorizontalLine:
        line = ReservedHorizontalLine(y, min(x_min, x_max), max(x_min, x_max), kind, owner)
        self._horizontal.append(line, line.y, line.x_min, line.x_max)
        return line

    def register_node_areas(self, nodes: Iterable[ComputedNode]) -> int:
        """
        Reserve the area of every leaf node.

        Groups and composites are skipped; their children register
        individually.

        Args:
            nodes: Flattened computed nodes

        Returns:
            Number of nodes registered
        """
        count = 0
        for node in nodes:
            if node.kind.is_container():
                continue
            left, top, right, bottom = node_area(node, self.node_margin)
            self._areas[node.id] = (left, top, right, bottom)
            self.reserve_vertical(left, top, bottom, ReservationKind.NODE, node.id)
            self.reserve_vertical(right, top, bottom, ReservationKind.NODE, node.id)
            self.reserve_horizontal(top, left, right, ReservationKind.NODE, node.id)
            self.reserve_horizontal(bottom, left, right, ReservationKind.NODE, node.id)
            count += 1
        return count

    def area(self, node_id: str) -> Optional[tuple[float, float, float, float]]:
        """Reserved square of a registered node as (left, top, right, bottom)."""
        return self._areas.get(node_id)

    def register_path(self, points: Sequence[Point], owner: Optional[str] = None) -> None:
        """Reserve every axis-aligned segment of a routed path."""
        for (x1, y1), (x2, y2) in zip(points[:-1], points[1:]):
            if abs(x1 - x2) < _EPS and abs(y1 - y2) < _EPS:
                continue
            if abs(x1 - x2) < _EPS:
                self.reserve_vertical(x1, y1, y2, ReservationKind.CONNECTOR, owner)
            elif abs(y1 - y2) < _EPS:
                self.reserve_horizontal(y1, x1, x2, ReservationKind.CONNECTOR, owner)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def count_segment_conflicts(self, p1: Point, p2: Point, ignore: Collection[str] = ()) -> int:
        """
        Number of reservations a segment collides with.

        Args:
            p1: Segment start
            p2: Segment end
            ignore: Owners whose reservations are invisible to this query

        Returns:
            Count of parallel overlaps plus node-area crossings (0 = clear)
        """
        (x1, y1), (x2, y2) = p1, p2
        if abs(x1 - x2) < _EPS:
            lo, hi = min(y1, y2), max(y1, y2)
            parallel = self._vertical.parallel(x1, lo, hi, self.tolerance, ignore)
            crossing = self._horizontal.crossing(x1, lo, hi, ignore)
        elif abs(y1 - y2) < _EPS:
            lo, hi = min(x1, x2), max(x1, x2)
            parallel = self._horizontal.parallel(y1, lo, hi, self.tolerance, ignore)
            crossing = self._vertical.crossing(y1, lo, hi, ignore)
        else:
            # Diagonal segments are never produced by the router
            return 0
        return int(parallel.sum()) + int(crossing.sum())

    def segment_conflict(self, p1: Point, p2: Point, ignore: Collection[str] = ()) -> bool:
        """Check if a segment collides with any reservation."""
        return self.count_segment_conflicts(p1, p2, ignore) > 0

    def path_conflicts(self, points: Sequence[Point], ignore: Collection[str] = ()) -> int:
        """Total conflicts over all segments of a path."""
        return sum(
            self.count_segment_conflicts(p1, p2, ignore)
            for p1, p2 in zip(points[:-1], points[1:])
        )

    def parallel_conflict_coordinate(
        self, p1: Point, p2: Point, ignore: Collection[str] = ()
    ) -> Optional[float]:
        """
        Coordinate of the nearest parallel reservation a segment runs along.

        Returns the x of a vertical line for vertical segments, the y of a
        horizontal line for horizontal ones, or None without such conflict.
        """
        (x1, y1), (x2, y2) = p1, p2
        if abs(x1 - x2) < _EPS:
            table, coord = self._vertical, x1
            mask = table.parallel(x1, min(y1, y2), max(y1, y2), self.tolerance, ignore)
        elif abs(y1 - y2) < _EPS:
            table, coord = self._horizontal, y1
            mask = table.parallel(y1, min(x1, x2), max(x1, x2), self.tolerance, ignore)
        else:
            return None
        hits = np.flatnonzero(mask)
        if len(hits) == 0:
            return None
        coords = np.array([table.coord_at(int(i)) for i in hits])
        return float(coords[np.argmin(np.abs(coords - coord))])

    def blocking_nodes(self, p1: Point, p2: Point, ignore: Collection[str] = ()) -> list[str]:
        """Owners of the node areas a segment crosses, in first-seen order."""
        (x1, y1), (x2, y2) = p1, p2
        if abs(x1 - x2) < _EPS:
            table = self._horizontal
            mask = table.crossing(x1, min(y1, y2), max(y1, y2), ignore)
        elif abs(y1 - y2) < _EPS:
            table = self._vertical
            mask = table.crossing(y1, min(x1, x2), max(x1, x2), ignore)
        else:
            return []
        owners: list[str] = []
        for i in np.flatnonzero(mask):
            owner = table.lines[int(i)][0].owner
            if owner is not None and owner not in owners:
                owners.append(owner)
        return owners


__all__ = [
    "TOLERANCE",
    "NODE_MARGIN",
    "conflicts_vertical",
    "conflicts_horizontal",
    "node_area",
    "ReservationIndex",
]
