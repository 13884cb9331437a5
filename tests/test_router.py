"""Tests for the orthogonal connection router."""

from __future__ import annotations

import logging

import pytest

from arch_layout.config import RouterSettings
from arch_layout.geometry import AnchorInfo, ComputedNode
from arch_layout.routing.reservations import ReservationIndex
from arch_layout.routing.router import (
    ConnectionRouter,
    ConnectorType,
    curved_path,
    determine_connector_type,
    simplify_path,
)
from arch_layout.types import Connection, ConnectionStyle, Node, Side


def _make_node(node_id: str, x: float, y: float, w: float = 48, h: float = 48) -> ComputedNode:
    return ComputedNode(node=Node(id=node_id), x=x, y=y, width=w, height=h)


def _router(*nodes: ComputedNode) -> ConnectionRouter:
    index = ReservationIndex()
    index.register_node_areas(nodes)
    return ConnectionRouter(index, node_map={n.id: n for n in nodes})


RIGHT_LEFT = AnchorInfo(from_side=Side.RIGHT, to_side=Side.LEFT)


# ---------------------------------------------------------------------------
# determine_connector_type
# ---------------------------------------------------------------------------


class TestDetermineConnectorType:
    @pytest.mark.parametrize(
        "from_side, to_side, start, end, expected",
        [
            (Side.RIGHT, Side.LEFT, (0, 0), (100, 5), ConnectorType.STRAIGHT),
            (Side.RIGHT, Side.LEFT, (0, 0), (100, 50), ConnectorType.Z_HORIZONTAL),
            (Side.BOTTOM, Side.TOP, (0, 0), (3, 100), ConnectorType.STRAIGHT),
            (Side.BOTTOM, Side.TOP, (0, 0), (80, 100), ConnectorType.Z_VERTICAL),
            (Side.RIGHT, Side.TOP, (0, 0), (100, 100), ConnectorType.L_HORIZONTAL),
            (Side.BOTTOM, Side.LEFT, (0, 0), (100, 100), ConnectorType.L_VERTICAL),
            (Side.LEFT, Side.LEFT, (0, 0), (0, 100), ConnectorType.U_HORIZONTAL),
            (Side.TOP, Side.TOP, (0, 0), (100, 0), ConnectorType.U_VERTICAL),
        ],
    )
    def test_classification(self, from_side, to_side, start, end, expected) -> None:
        assert determine_connector_type(from_side, to_side, start, end) == expected

    def test_custom_threshold(self) -> None:
        ctype = determine_connector_type(Side.RIGHT, Side.LEFT, (0, 0), (100, 7), threshold=5)
        assert ctype == ConnectorType.Z_HORIZONTAL


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestSimplifyPath:
    def test_removes_duplicates_and_collinear_points(self) -> None:
        points = [(0, 0), (0, 0), (50, 0), (100, 0), (100, 50), (100, 100)]
        assert simplify_path(points) == [(0, 0), (100, 0), (100, 100)]

    def test_short_paths_untouched(self) -> None:
        assert simplify_path([(0, 0), (10, 0)]) == [(0, 0), (10, 0)]


class TestCurvedPath:
    def test_horizontal_control_points(self) -> None:
        start, c1, c2, end = curved_path((148, 124), (300, 124))
        # strength = min(152 * 0.4, 100) = 60.8
        assert c1 == pytest.approx((208.8, 124))
        assert c2 == pytest.approx((239.2, 124))
        assert (start, end) == ((148, 124), (300, 124))

    def test_strength_is_capped(self) -> None:
        _, c1, c2, _ = curved_path((0, 0), (0, 1000))
        assert c1 == (0, 100)
        assert c2 == (0, 900)


# ---------------------------------------------------------------------------
# Straight and detour routes
# ---------------------------------------------------------------------------


class TestStraightRoutes:
    def test_direct_connection(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 100)
        router = _router(a, b)

        path = router.route(Connection("a", "b"), a, b, RIGHT_LEFT)

        assert path.points == ((148, 124), (300, 124))
        assert path.collided is False
        assert path.svg_path == "M 148 124 L 300 124"

    def test_path_is_registered(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 100)
        router = _router(a, b)
        before = len(router.reservations.horizontal_lines)

        router.route(Connection("a", "b"), a, b, RIGHT_LEFT)

        lines = router.reservations.horizontal_lines
        assert len(lines) == before + 1
        assert lines[-1].owner == "a->b"
        assert (lines[-1].y, lines[-1].x_min, lines[-1].x_max) == (124, 148, 300)

    def test_slightly_offset_anchors_stay_orthogonal(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 102)
        router = _router(a, b)
        before = len(router.reservations)

        path = router.route(Connection("a", "b"), a, b, RIGHT_LEFT)

        assert path.points == ((148, 124), (300, 124), (300, 126))
        for (x1, y1), (x2, y2) in path.segments:
            assert x1 == x2 or y1 == y2
        assert len(router.reservations) == before + 2
        # A later connector running on top of the first one must see it
        assert router.reservations.segment_conflict((160, 125), (290, 125))

    def test_detour_above_blocking_node(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 100)
        c = _make_node("c", 200, 100)
        router = _router(a, b, c)

        path = router.route(Connection("a", "b"), a, b, RIGHT_LEFT)

        assert path.points == (
            (148, 124),
            (168, 124),
            (168, 76),
            (280, 76),
            (280, 124),
            (300, 124),
        )
        assert path.collided is False

    def test_detour_below_when_title_band_forbids_above(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 100)
        c = _make_node("c", 200, 100)
        router = _router(a, b, c)

        path = router.route(Connection("a", "b"), a, b, RIGHT_LEFT, min_y=90)

        assert path.points == (
            (148, 124),
            (168, 124),
            (168, 172),
            (280, 172),
            (280, 124),
            (300, 124),
        )
        assert all(y >= 90 for _, y in path.points)

    def test_detour_avoids_node_area(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 100)
        c = _make_node("c", 200, 100)
        router = _router(a, b, c)

        path = router.route(Connection("a", "b"), a, b, RIGHT_LEFT)

        fresh = ReservationIndex()
        fresh.register_node_areas([c])
        assert fresh.path_conflicts(path.points) == 0

    def test_side_detour_keeps_stub_above_title_band(self) -> None:
        # Source sits inside the title band; its top stub must not be
        # pulled back down into it.
        a = _make_node("a", 100, 40)
        b = _make_node("b", 100, -300)
        c = _make_node("c", 100, -150)
        router = _router(a, b, c)
        info = AnchorInfo(from_side=Side.TOP, to_side=Side.BOTTOM)

        path = router.route(Connection("a", "b"), a, b, info, min_y=60)

        assert path.points == (
            (124, 40),
            (124, 20),
            (76, 20),
            (76, -232),
            (124, -232),
            (124, -252),
        )
        assert all(y <= 40 for _, y in path.points)
        assert path.collided is False


# ---------------------------------------------------------------------------
# Z, L and U routes
# ---------------------------------------------------------------------------


class TestBentRoutes:
    def test_z_bend_starts_at_midpoint(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 200)
        router = _router(a, b)

        path = router.route(Connection("a", "b"), a, b, RIGHT_LEFT)

        assert path.points == ((148, 124), (224, 124), (224, 224), (300, 224))

    def test_z_bend_moves_away_from_conflict(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 200)
        router = _router(a, b)
        router.reservations.reserve_vertical(226, 0, 400, owner="x->y")

        path = router.route(Connection("a", "b"), a, b, RIGHT_LEFT)

        # Conflict lies to the right of the midpoint, so the bend shifts left
        assert path.points == ((148, 124), (214, 124), (214, 224), (300, 224))

    def test_later_connection_avoids_earlier_one(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 200)
        c = _make_node("c", 100, 140)
        d = _make_node("d", 300, 240)
        router = ConnectionRouter()

        first = router.route(Connection("a", "b"), a, b, RIGHT_LEFT)
        second = router.route(Connection("c", "d"), c, d, RIGHT_LEFT)

        assert first.points[1][0] == 224
        assert second.points[1][0] == 234

    def test_vertical_bend_respects_min_y(self) -> None:
        a = _make_node("a", 100, 300)
        b = _make_node("b", 300, 100)
        router = ConnectionRouter()
        info = AnchorInfo(from_side=Side.TOP, to_side=Side.BOTTOM)

        path = router.route(Connection("a", "b"), a, b, info, min_y=250)

        assert path.points == ((124, 300), (124, 275), (324, 275), (324, 148))

    def test_l_route(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 300)
        router = _router(a, b)
        info = AnchorInfo(from_side=Side.RIGHT, to_side=Side.TOP)

        path = router.route(Connection("a", "b"), a, b, info)

        assert path.points == ((148, 124), (324, 124), (324, 300))

    def test_u_route(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 100, 300)
        router = _router(a, b)
        info = AnchorInfo(from_side=Side.RIGHT, to_side=Side.RIGHT)

        path = router.route(Connection("a", "b"), a, b, info)

        assert path.points == ((148, 124), (188, 124), (188, 324), (148, 324))

    def test_distributed_anchor_slot(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 100)
        router = ConnectionRouter()
        info = AnchorInfo(Side.RIGHT, Side.LEFT, from_index=0, from_total=2, to_index=0, to_total=2)

        start, end = router.anchor_points(a, b, info)

        assert start == pytest.approx((148, 116))
        assert end == pytest.approx((300, 116))


# ---------------------------------------------------------------------------
# Degraded routes, curved style, route_all
# ---------------------------------------------------------------------------


class TestDegradedAndSpecialRoutes:
    def test_unavoidable_conflict_is_flagged(self, caplog) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 300)
        c = _make_node("c", 300, 100)
        router = _router(a, b, c)
        info = AnchorInfo(from_side=Side.RIGHT, to_side=Side.TOP)

        with caplog.at_level(logging.DEBUG, logger="arch_layout.routing.router"):
            path = router.route(Connection("a", "b"), a, b, info)

        assert path.collided is True
        assert path.points == ((148, 124), (324, 124), (324, 300))
        assert "No clear route for a->b" in caplog.text

    def test_retry_budget_bounds_search(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 200)
        router = ConnectionRouter(settings=RouterSettings(max_retries=1))
        router.reservations.reserve_vertical(224, 0, 400, owner="x->y")

        path = router.route(Connection("a", "b"), a, b, RIGHT_LEFT)

        assert path.collided is True
        assert path.points[1][0] == 224

    def test_curved_connection_is_not_registered(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 100)
        router = ConnectionRouter()
        conn = Connection("a", "b", style=ConnectionStyle.CURVED)

        path = router.route(conn, a, b, RIGHT_LEFT)

        assert path.curved is True
        assert len(path.points) == 4
        assert path.svg_path.startswith("M 148 124 C ")
        assert len(router.reservations) == 0

    def test_default_sides_without_anchor_info(self) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 100, 300)
        router = ConnectionRouter()

        path = router.route(Connection("a", "b"), a, b)

        assert (path.from_side, path.to_side) == (Side.BOTTOM, Side.TOP)
        assert path.points == ((124, 148), (124, 300))

    def test_route_all_skips_missing_endpoints(self, caplog) -> None:
        a = _make_node("a", 100, 100)
        b = _make_node("b", 300, 100)
        router = ConnectionRouter(node_map={"a": a, "b": b})
        connections = [Connection("a", "b"), Connection("a", "ghost")]

        with caplog.at_level(logging.DEBUG, logger="arch_layout.routing.router"):
            paths = router.route_all(connections, anchors={0: RIGHT_LEFT})

        assert len(paths) == 1
        assert paths[0].index == 0
        assert "a->ghost" in caplog.text
