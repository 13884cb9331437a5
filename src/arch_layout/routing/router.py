"""
Orthogonal connection routing with obstacle avoidance.

Each connection is routed between its distributed anchor points. The path
shape follows from the anchor sides:

- opposite sides, aligned anchors: straight line (with a short jog onto the
  target anchor when they are not exactly aligned)
- opposite sides, offset anchors: Z shape with a searched bend coordinate
- adjacent sides: L shape
- same side: U shape with a searched detour coordinate

Candidates are probed against the reservation index; conflicting bends are
shifted step by step until clear or the retry budget runs out. Straight
lines and Z searches blocked by a node fall back to a channel detour around
the blocking area. The chosen path is registered before the next
connection is routed, so later connectors avoid earlier ones.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Callable, Collection, Iterable, Mapping, Optional, Sequence

from ..config import RouterSettings
from ..geometry import AnchorInfo, ComputedNode, Point, RoutedPath
from ..types import Connection, ConnectionStyle, Side
from .distribution import distributed_anchor
from .reservations import ReservationIndex
from .sides import default_sides

logger = logging.getLogger(__name__)

_EPS = 1e-9

# Anchors offset by less than this still get a straight line
STRAIGHT_THRESHOLD = 10.0


class ConnectorType(Enum):
    """Path shape implied by the exit and entry sides."""

    STRAIGHT = "straight"
    L_HORIZONTAL = "L_horizontal"
    L_VERTICAL = "L_vertical"
    Z_HORIZONTAL = "Z_horizontal"
    Z_VERTICAL = "Z_vertical"
    U_HORIZONTAL = "U_horizontal"
    U_VERTICAL = "U_vertical"


def determine_connector_type(
    from_side: Side,
    to_side: Side,
    start: Point,
    end: Point,
    threshold: float = STRAIGHT_THRESHOLD,
) -> ConnectorType:
    """
    Classify the path shape of a connector.

    Args:
        from_side: Exit side on the source
        to_side: Entry side on the target
        start: Source anchor
        end: Target anchor
        threshold: Largest anchor offset still drawn as a straight line

    Returns:
        The connector type
    """
    if from_side == to_side:
        if from_side.is_vertical():
            return ConnectorType.U_HORIZONTAL
        return ConnectorType.U_VERTICAL

    if from_side.opposite() == to_side:
        if from_side.is_vertical():
            if abs(start[1] - end[1]) < threshold:
                return ConnectorType.STRAIGHT
            return ConnectorType.Z_HORIZONTAL
        if abs(start[0] - end[0]) < threshold:
            return ConnectorType.STRAIGHT
        return ConnectorType.Z_VERTICAL

    if from_side.is_vertical():
        return ConnectorType.L_HORIZONTAL
    return ConnectorType.L_VERTICAL


def curved_path(start: Point, end: Point) -> tuple[Point, Point, Point, Point]:
    """
    Cubic Bezier from start to end as (start, control1, control2, end).

    Control points pull along the dominant axis by 40% of the distance,
    capped at 100.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    strength = min(math.hypot(dx, dy) * 0.4, 100.0)

    if abs(dx) > abs(dy):
        sign = 1.0 if dx > 0 else -1.0
        c1 = (start[0] + sign * strength, start[1])
        c2 = (end[0] - sign * strength, end[1])
    else:
        sign = 1.0 if dy > 0 else -1.0
        c1 = (start[0], start[1] + sign * strength)
        c2 = (end[0], end[1] - sign * strength)
    return (start, c1, c2, end)


def simplify_path(points: Sequence[Point]) -> list[Point]:
    """Remove duplicate consecutive points and collinear middle points."""
    deduped: list[Point] = []
    for pt in points:
        if deduped and abs(pt[0] - deduped[-1][0]) < _EPS and abs(pt[1] - deduped[-1][1]) < _EPS:
            continue
        deduped.append(pt)

    if len(deduped) <= 2:
        return deduped

    simplified = [deduped[0]]
    for i in range(1, len(deduped) - 1):
        px, py = simplified[-1]
        cx, cy = deduped[i]
        nx, ny = deduped[i + 1]
        if abs(py - cy) < _EPS and abs(cy - ny) < _EPS:
            continue
        if abs(px - cx) < _EPS and abs(cx - nx) < _EPS:
            continue
        simplified.append((cx, cy))
    simplified.append(deduped[-1])
    return simplified


class _Best:
    """Least conflicting candidate seen so far (first wins on ties)."""

    def __init__(self) -> None:
        self.points: Optional[list[Point]] = None
        self.conflicts = math.inf

    def offer(self, points: list[Point], conflicts: int) -> None:
        if conflicts < self.conflicts:
            self.points = points
            self.conflicts = conflicts

    @property
    def clear(self) -> bool:
        return self.conflicts == 0


class ConnectionRouter:
    """
    Routes connections one after another against a shared reservation index.

    Example:
        index = ReservationIndex()
        index.register_node_areas(flatten_nodes(nodes))
        router = ConnectionRouter(index)
        path = router.route(conn, node_map[conn.source], node_map[conn.target], info)
    """

    def __init__(
        self,
        reservations: Optional[ReservationIndex] = None,
        settings: Optional[RouterSettings] = None,
        node_map: Optional[Mapping[str, ComputedNode]] = None,
    ) -> None:
        """
        Initialize the router.

        Args:
            reservations: Index to probe and extend; a fresh one when omitted
            settings: Router settings; defaults to RouterSettings()
            node_map: Computed nodes by id, used by route_all
        """
        self.settings = settings if settings is not None else RouterSettings()
        self.reservations = (
            reservations
            if reservations is not None
            else ReservationIndex(self.settings.tolerance, self.settings.node_margin)
        )
        self.node_map: dict[str, ComputedNode] = dict(node_map or {})

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def anchor_points(
        self,
        source: ComputedNode,
        target: ComputedNode,
        info: AnchorInfo,
    ) -> tuple[Point, Point]:
        """Physical anchor points of a connection."""
        start = distributed_anchor(source.bounds, info.from_side, info.from_index, info.from_total)
        end = distributed_anchor(target.bounds, info.to_side, info.to_index, info.to_total)
        return (start, end)

    def route(
        self,
        connection: Connection,
        source: ComputedNode,
        target: ComputedNode,
        anchor_info: Optional[AnchorInfo] = None,
        min_y: Optional[float] = None,
        *,
        bidirectional: bool = False,
        index: Optional[int] = None,
    ) -> RoutedPath:
        """
        Route one connection and register the result.

        Args:
            connection: Connection to route
            source: Computed source node
            target: Computed target node
            anchor_info: Sides and slots; centre anchors on resolved sides when omitted
            min_y: Smallest y a bend may use (keeps paths below the title band)
            bidirectional: Mark the path as standing for both directions
            index: Position of the connection in the routed sequence

        Returns:
            The routed path; ``collided`` is set when no clear candidate was found
        """
        if anchor_info is None:
            from_side, to_side = default_sides(source.bounds, target.bounds)
            anchor_info = AnchorInfo(
                from_side=connection.from_side or from_side,
                to_side=connection.to_side or to_side,
            )

        start, end = self.anchor_points(source, target, anchor_info)
        from_side, to_side = anchor_info.from_side, anchor_info.to_side

        if connection.style == ConnectionStyle.CURVED:
            return RoutedPath(
                connection=connection,
                points=curved_path(start, end),
                from_side=from_side,
                to_side=to_side,
                curved=True,
                bidirectional=bidirectional,
                index=index,
            )

        ignore = {source.id, target.id}
        ctype = determine_connector_type(from_side, to_side, start, end, self.settings.tolerance)

        if ctype == ConnectorType.STRAIGHT:
            best = self._route_straight(start, end, from_side, to_side, ignore, min_y)
        elif ctype == ConnectorType.Z_HORIZONTAL:
            best = self._route_z(start, end, from_side, to_side, ignore, min_y, horizontal=True)
        elif ctype == ConnectorType.Z_VERTICAL:
            best = self._route_z(start, end, from_side, to_side, ignore, min_y, horizontal=False)
        elif ctype == ConnectorType.L_HORIZONTAL:
            best = self._single([start, (end[0], start[1]), end], ignore)
        elif ctype == ConnectorType.L_VERTICAL:
            best = self._single([start, (start[0], end[1]), end], ignore)
        else:
            best = self._route_u(start, end, from_side, ignore, min_y)

        assert best.points is not None
        points = simplify_path(best.points)
        collided = not best.clear
        if collided:
            logger.debug(
                "No clear route for %s after %d attempts; keeping path with %d conflict(s)",
                connection.key,
                self.settings.max_retries,
                best.conflicts,
            )

        self.reservations.register_path(points, owner=connection.key)

        return RoutedPath(
            connection=connection,
            points=tuple(points),
            from_side=from_side,
            to_side=to_side,
            collided=collided,
            bidirectional=bidirectional,
            index=index,
        )

    def route_all(
        self,
        connections: Sequence[Connection],
        node_map: Optional[Mapping[str, ComputedNode]] = None,
        anchors: Optional[Mapping[int, AnchorInfo]] = None,
        min_y: Optional[float] = None,
        bidirectional: Collection[int] = (),
    ) -> list[RoutedPath]:
        """
        Route connections in the given order.

        Args:
            connections: Connections in routing order
            node_map: Computed nodes by id (defaults to the router's map)
            anchors: AnchorInfo by connection index
            min_y: Smallest y a bend may use
            bidirectional: Indices of connections standing for a pair

        Returns:
            Routed paths; connections with a missing endpoint are skipped
        """
        if node_map is not None:
            self.node_map.update(node_map)
        lookup = self.node_map
        anchors = anchors or {}

        paths: list[RoutedPath] = []
        for i, conn in enumerate(connections):
            source = lookup.get(conn.source)
            target = lookup.get(conn.target)
            if source is None or target is None:
                logger.debug("Skipping %s: endpoint not found", conn.key)
                continue
            paths.append(
                self.route(
                    conn,
                    source,
                    target,
                    anchors.get(i),
                    min_y,
                    bidirectional=i in bidirectional,
                    index=i,
                )
            )
        return paths

    # -------------------------------------------------------------------------
    # Candidate search
    # -------------------------------------------------------------------------

    def _conflicts(self, points: Sequence[Point], ignore: Collection[str]) -> int:
        return self.reservations.path_conflicts(simplify_path(points), ignore)

    def _single(self, points: list[Point], ignore: Collection[str]) -> _Best:
        best = _Best()
        best.offer(points, self._conflicts(points, ignore))
        return best

    def _route_straight(
        self,
        start: Point,
        end: Point,
        from_side: Side,
        to_side: Side,
        ignore: Collection[str],
        min_y: Optional[float],
    ) -> _Best:
        # Anchors within tolerance of each other still get orthogonal segments:
        # run along the source's axis, then jog onto the target anchor.
        if from_side.is_vertical():
            corner = (end[0], start[1])
        else:
            corner = (start[0], end[1])

        points = [start, corner, end]
        best = _Best()
        best.offer(points, self._conflicts(points, ignore))
        if best.clear:
            return best

        blockers = self.reservations.blocking_nodes(start, corner, ignore)
        if blockers:
            detour = self._route_channel(start, end, from_side, to_side, blockers, ignore, min_y)
            if detour.points is not None:
                best.offer(detour.points, int(detour.conflicts))
        return best

    def _route_z(
        self,
        start: Point,
        end: Point,
        from_side: Side,
        to_side: Side,
        ignore: Collection[str],
        min_y: Optional[float],
        horizontal: bool,
    ) -> _Best:
        """Z path; the bend is an x coordinate (horizontal) or a y coordinate."""
        axis = 0 if horizontal else 1
        lo = min(start[axis], end[axis])
        hi = max(start[axis], end[axis])
        if not horizontal and min_y is not None:
            lo = max(lo, min_y)
            hi = max(hi, lo)

        def build(bend: float) -> list[Point]:
            if horizontal:
                return [start, (bend, start[1]), (bend, end[1]), end]
            return [start, (start[0], bend), (end[0], bend), end]

        best = self._search(build, (lo + hi) / 2, lo, hi, ignore, middle=1)
        if best.clear:
            return best

        blockers: list[str] = []
        assert best.points is not None
        for p1, p2 in zip(best.points[:-1], best.points[1:]):
            for owner in self.reservations.blocking_nodes(p1, p2, ignore):
                if owner not in blockers:
                    blockers.append(owner)
        if blockers:
            detour = self._route_channel(start, end, from_side, to_side, blockers, ignore, min_y)
            if detour.points is not None:
                best.offer(detour.points, int(detour.conflicts))
        return best

    def _route_u(
        self,
        start: Point,
        end: Point,
        side: Side,
        ignore: Collection[str],
        min_y: Optional[float],
    ) -> _Best:
        dx, dy = side.outward
        detour = self.settings.detour_distance
        step = self.settings.step
        best = _Best()

        if side.is_vertical():
            coord = (max(start[0], end[0]) if dx > 0 else min(start[0], end[0])) + dx * detour
            for attempt in range(self.settings.max_retries):
                x = coord + dx * step * attempt
                points = [start, (x, start[1]), (x, end[1]), end]
                best.offer(points, self._conflicts(points, ignore))
                if best.clear:
                    break
            return best

        coord = (max(start[1], end[1]) if dy > 0 else min(start[1], end[1])) + dy * detour
        if min_y is not None and coord < min_y:
            coord = min_y
        for attempt in range(self.settings.max_retries):
            y = coord + dy * step * attempt
            if min_y is not None and y < min_y:
                break
            points = [start, (start[0], y), (end[0], y), end]
            best.offer(points, self._conflicts(points, ignore))
            if best.clear:
                break
        return best

    def _search(
        self,
        build: Callable[[float], list[Point]],
        origin: float,
        lo: float,
        hi: float,
        ignore: Collection[str],
        middle: int,
    ) -> _Best:
        """
        Shift a bend coordinate away from conflicts.

        Starts at ``origin`` and moves by ``step`` in one direction, chosen
        away from the first parallel conflict of segment ``middle``. Leaving
        [lo, hi] restarts once from the origin in the other direction.
        """
        step = self.settings.step
        best = _Best()
        bend = origin
        direction = 0.0
        flipped = False

        for _ in range(self.settings.max_retries):
            points = build(bend)
            conflicts = self._conflicts(points, ignore)
            best.offer(points, conflicts)
            if conflicts == 0:
                break

            if direction == 0.0:
                coord = self.reservations.parallel_conflict_coordinate(
                    points[middle], points[middle + 1], ignore
                )
                direction = -1.0 if coord is not None and coord > bend else 1.0

            bend += direction * step
            if not lo <= bend <= hi:
                if flipped:
                    break
                flipped = True
                direction = -direction
                bend = origin + direction * step
                if not lo <= bend <= hi:
                    break
        return best

    def _route_channel(
        self,
        start: Point,
        end: Point,
        from_side: Side,
        to_side: Side,
        blockers: Iterable[str],
        ignore: Collection[str],
        min_y: Optional[float],
    ) -> _Best:
        """
        Detour around the blocking node areas through a parallel channel.

        Leaves the source with a short stub, runs along a channel just
        outside the blocking area and re-enters the target with a stub.
        Horizontal connectors pass above the area (below when ``min_y``
        forbids it); vertical connectors pass left, then right.
        """
        best = _Best()
        areas = [area for area in map(self.reservations.area, blockers) if area is not None]
        if not areas:
            return best

        left = min(a[0] for a in areas)
        top = min(a[1] for a in areas)
        right = max(a[2] for a in areas)
        bottom = max(a[3] for a in areas)

        stub = self.settings.stub_length
        clearance = self.settings.channel_clearance
        step = self.settings.step
        retries = self.settings.max_retries

        if from_side.is_vertical():
            x1 = start[0] + from_side.outward[0] * stub
            x2 = end[0] + to_side.outward[0] * stub

            def build(channel: float) -> list[Point]:
                return [start, (x1, start[1]), (x1, channel), (x2, channel), (x2, end[1]), end]

            above = top - clearance
            if min_y is None or above >= min_y:
                for attempt in range(retries):
                    cy = above - step * attempt
                    if min_y is not None and cy < min_y:
                        break
                    points = build(cy)
                    best.offer(points, self._conflicts(points, ignore))
                    if best.clear:
                        return best

            for attempt in range(retries):
                points = build(bottom + clearance + step * attempt)
                best.offer(points, self._conflicts(points, ignore))
                if best.clear:
                    return best
            return best

        y1 = start[1] + from_side.outward[1] * stub
        y2 = end[1] + to_side.outward[1] * stub
        # Only anchors at or below min_y are clamped
        if min_y is not None:
            if start[1] >= min_y:
                y1 = max(y1, min_y)
            if end[1] >= min_y:
                y2 = max(y2, min_y)

        def build_vertical(channel: float) -> list[Point]:
            return [start, (start[0], y1), (channel, y1), (channel, y2), (end[0], y2), end]

        for origin, sign in ((left - clearance, -1.0), (right + clearance, 1.0)):
            for attempt in range(retries):
                points = build_vertical(origin + sign * step * attempt)
                best.offer(points, self._conflicts(points, ignore))
                if best.clear:
                    return best
        return best


__all__ = [
    "STRAIGHT_THRESHOLD",
    "ConnectorType",
    "determine_connector_type",
    "curved_path",
    "simplify_path",
    "ConnectionRouter",
]
