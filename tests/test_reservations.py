"""Tests for the reservation index."""

from __future__ import annotations

import pytest

from arch_layout.geometry import (
    ComputedNode,
    ReservationKind,
    ReservedHorizontalLine,
    ReservedVerticalLine,
)
from arch_layout.routing.reservations import (
    ReservationIndex,
    conflicts_horizontal,
    conflicts_vertical,
    node_area,
)
from arch_layout.types import Node, NodeKind


def _make_node(node_id: str, x: float, y: float, w: float = 48, h: float = 48, kind: NodeKind = NodeKind.ICON) -> ComputedNode:
    return ComputedNode(node=Node(id=node_id, kind=kind), x=x, y=y, width=w, height=h)


def _v(x: float, y_min: float, y_max: float) -> ReservedVerticalLine:
    return ReservedVerticalLine(x, y_min, y_max)


def _h(y: float, x_min: float, x_max: float) -> ReservedHorizontalLine:
    return ReservedHorizontalLine(y, x_min, x_max)


# ---------------------------------------------------------------------------
# conflicts_vertical
# ---------------------------------------------------------------------------


class TestConflictsVertical:
    @pytest.mark.parametrize(
        "existing, y_min, y_max",
        [
            ((50, 150), 60, 140),  # existing contains new
            ((80, 120), 50, 150),  # new contains existing
            ((100, 200), 50, 150),  # partial overlap at top
            ((100, 200), 150, 250),  # partial overlap at bottom
            ((100, 200), 50, 100),  # touching at boundary
        ],
    )
    def test_overlapping_intervals_conflict(self, existing, y_min, y_max) -> None:
        reserved = [_v(100, *existing)]
        assert conflicts_vertical(100, y_min, y_max, reserved) is True

    def test_interval_above_is_clear(self) -> None:
        assert conflicts_vertical(100, 10, 90, [_v(100, 100, 200)]) is False

    def test_interval_below_is_clear(self) -> None:
        assert conflicts_vertical(100, 210, 300, [_v(100, 100, 200)]) is False

    def test_distant_x_is_clear(self) -> None:
        assert conflicts_vertical(200, 50, 150, [_v(100, 50, 150)]) is False

    def test_empty_reservations(self) -> None:
        assert conflicts_vertical(100, 50, 150, []) is False

    @pytest.mark.parametrize("x, expected", [(103, True), (104, True), (105, False), (106, False)])
    def test_x_tolerance_is_strict(self, x, expected) -> None:
        assert conflicts_vertical(x, 60, 140, [_v(100, 50, 150)]) is expected

    def test_any_of_multiple_reservations(self) -> None:
        reserved = [_v(100, 50, 100), _v(100, 200, 250), _v(100, 300, 350)]
        assert conflicts_vertical(100, 210, 240, reserved) is True

    def test_gap_between_reservations(self) -> None:
        reserved = [_v(100, 50, 100), _v(100, 200, 250)]
        assert conflicts_vertical(100, 120, 180, reserved) is False

    def test_reservations_at_different_x(self) -> None:
        reserved = [_v(100, 50, 150), _v(200, 50, 150), _v(300, 50, 150)]
        assert conflicts_vertical(200, 60, 140, reserved) is True
        assert conflicts_vertical(150, 60, 140, reserved) is False


# ---------------------------------------------------------------------------
# conflicts_horizontal
# ---------------------------------------------------------------------------


class TestConflictsHorizontal:
    @pytest.mark.parametrize(
        "existing, x_min, x_max",
        [
            ((50, 150), 60, 140),
            ((80, 120), 50, 150),
            ((100, 200), 50, 150),
            ((100, 200), 150, 250),
            ((100, 200), 50, 100),
        ],
    )
    def test_overlapping_intervals_conflict(self, existing, x_min, x_max) -> None:
        assert conflicts_horizontal(100, x_min, x_max, [_h(100, *existing)]) is True

    def test_disjoint_intervals_are_clear(self) -> None:
        reserved = [_h(100, 100, 200)]
        assert conflicts_horizontal(100, 10, 90, reserved) is False
        assert conflicts_horizontal(100, 210, 300, reserved) is False

    @pytest.mark.parametrize("y, expected", [(103, True), (104, True), (105, False), (106, False)])
    def test_y_tolerance_is_strict(self, y, expected) -> None:
        assert conflicts_horizontal(y, 60, 140, [_h(100, 50, 150)]) is expected

    def test_reservations_at_different_y(self) -> None:
        reserved = [_h(100, 50, 150), _h(200, 50, 150), _h(300, 50, 150)]
        assert conflicts_horizontal(200, 60, 140, reserved) is True
        assert conflicts_horizontal(150, 60, 140, reserved) is False


class TestConflictsMatchIndex:
    """The standalone checks and the index apply one tolerance rule."""

    @pytest.mark.parametrize(
        "coord, lo, hi",
        [
            (100, 60, 140),
            (104, 60, 140),
            (105, 60, 140),
            (96, 150, 250),
            (100, 151, 250),
            (95, 10, 50),
        ],
    )
    def test_vertical_and_horizontal_agree(self, coord, lo, hi) -> None:
        index = ReservationIndex()
        index.reserve_vertical(100, 50, 150)
        index.reserve_horizontal(100, 50, 150)

        assert conflicts_vertical(coord, lo, hi, index.vertical_lines) is index.segment_conflict(
            (coord, lo), (coord, hi)
        )
        assert conflicts_horizontal(coord, lo, hi, index.horizontal_lines) is index.segment_conflict(
            (lo, coord), (hi, coord)
        )


# ---------------------------------------------------------------------------
# register_node_areas
# ---------------------------------------------------------------------------


class TestRegisterNodeAreas:
    def test_single_icon_registers_four_edges(self) -> None:
        index = ReservationIndex()
        index.register_node_areas([_make_node("icon1", 100, 100)])

        assert len(index.vertical_lines) == 2
        assert len(index.horizontal_lines) == 2

        # radius = 24 + 5 - 1 = 28 around centre (124, 124)
        xs = sorted(line.x for line in index.vertical_lines)
        assert xs == [96, 152]
        for line in index.vertical_lines:
            assert (line.y_min, line.y_max) == (96, 152)
            assert line.kind == ReservationKind.NODE
            assert line.owner == "icon1"

        ys = sorted(line.y for line in index.horizontal_lines)
        assert ys == [96, 152]
        for line in index.horizontal_lines:
            assert (line.x_min, line.x_max) == (96, 152)

    @pytest.mark.parametrize("kind", [NodeKind.GROUP, NodeKind.COMPOSITE])
    def test_containers_are_skipped(self, kind) -> None:
        index = ReservationIndex()
        count = index.register_node_areas([_make_node("c", 100, 100, 80, 200, kind=kind)])
        assert count == 0
        assert len(index) == 0

    def test_text_box_uses_smaller_dimension(self) -> None:
        index = ReservationIndex()
        index.register_node_areas([_make_node("tb", 100, 100, 120, 40, kind=NodeKind.TEXT_BOX)])

        # radius = 20 + 4 = 24 around centre (160, 120)
        top = [line for line in index.horizontal_lines if line.y == 96]
        assert len(top) == 1
        assert (top[0].x_min, top[0].x_max) == (136, 184)

    def test_multiple_nodes(self) -> None:
        index = ReservationIndex()
        nodes = [_make_node(f"n{i}", 100, 100 + i * 100) for i in range(3)]
        assert index.register_node_areas(nodes) == 3
        assert len(index.vertical_lines) == 6
        assert len(index.horizontal_lines) == 6
        tops = sorted({line.y_min for line in index.vertical_lines})
        assert tops == [96, 196, 296]

    def test_node_at_origin(self) -> None:
        index = ReservationIndex()
        index.register_node_areas([_make_node("o", 0, 0)])
        left = [line for line in index.vertical_lines if line.x == -4]
        assert len(left) == 1
        assert (left[0].y_min, left[0].y_max) == (-4, 52)

    def test_large_node(self) -> None:
        index = ReservationIndex()
        index.register_node_areas([_make_node("big", 100, 100, 500, 500)])
        right = [line for line in index.vertical_lines if line.x == 604]
        assert len(right) == 1
        assert (right[0].y_min, right[0].y_max) == (96, 604)

    def test_appends_to_existing(self) -> None:
        index = ReservationIndex()
        index.reserve_vertical(50, 50, 150)
        index.reserve_horizontal(50, 50, 150)
        index.register_node_areas([_make_node("icon1", 100, 100)])
        assert len(index.vertical_lines) == 3
        assert len(index.horizontal_lines) == 3

    def test_area_lookup(self) -> None:
        index = ReservationIndex()
        node = _make_node("icon1", 100, 100)
        index.register_node_areas([node])
        assert index.area("icon1") == node_area(node) == (96, 96, 152, 152)
        assert index.area("missing") is None

    def test_area_lines_feed_conflict_checks(self) -> None:
        index = ReservationIndex()
        index.register_node_areas([_make_node("icon1", 100, 100)])

        assert conflicts_vertical(120, 90, 160, index.vertical_lines) is False
        assert conflicts_vertical(96, 90, 160, index.vertical_lines) is True
        assert conflicts_vertical(152, 90, 160, index.vertical_lines) is True
        assert conflicts_vertical(96, 10, 80, index.vertical_lines) is False
        assert conflicts_horizontal(96, 170, 250, index.horizontal_lines) is False


# ---------------------------------------------------------------------------
# Segment queries
# ---------------------------------------------------------------------------


class TestSegmentQueries:
    def test_parallel_overlap_is_conflict(self) -> None:
        index = ReservationIndex()
        index.reserve_horizontal(100, 0, 200, owner="a->b")
        assert index.segment_conflict((50, 102), (150, 102)) is True
        assert index.segment_conflict((50, 110), (150, 110)) is False

    def test_segment_direction_does_not_matter(self) -> None:
        index = ReservationIndex()
        index.reserve_vertical(100, 0, 200)
        assert index.segment_conflict((100, 150), (100, 50)) is True

    def test_crossing_a_node_area_is_conflict(self) -> None:
        index = ReservationIndex()
        index.register_node_areas([_make_node("c", 200, 100)])
        # Horizontal line at y=124 cuts both vertical edges of the area
        assert index.count_segment_conflicts((148, 124), (300, 124)) == 2
        assert index.blocking_nodes((148, 124), (300, 124)) == ["c"]

    def test_crossing_a_connector_is_allowed(self) -> None:
        index = ReservationIndex()
        index.register_path([(200, 0), (200, 300)], owner="x->y")
        assert index.segment_conflict((100, 150), (300, 150)) is False

    def test_ignored_owners_are_invisible(self) -> None:
        index = ReservationIndex()
        index.register_node_areas([_make_node("a", 100, 100), _make_node("b", 300, 100)])
        assert index.segment_conflict((148, 124), (300, 124)) is True
        assert index.segment_conflict((148, 124), (300, 124), ignore={"a", "b"}) is False

    def test_corners_stay_free(self) -> None:
        index = ReservationIndex()
        index.register_node_areas([_make_node("c", 100, 100)])
        # Passes left of the reserved square (x < 96 - tolerance)
        assert index.segment_conflict((90, 50), (90, 200)) is False

    def test_path_conflicts_sums_segments(self) -> None:
        index = ReservationIndex()
        index.register_node_areas([_make_node("c", 200, 100)])
        clear = [(148, 124), (168, 124), (168, 76), (280, 76), (280, 124), (300, 124)]
        assert index.path_conflicts(clear) == 0
        assert index.path_conflicts([(148, 124), (300, 124)]) == 2

    def test_register_path_records_owner(self) -> None:
        index = ReservationIndex()
        index.register_path([(0, 0), (100, 0), (100, 50), (100, 50)], owner="a->b")
        assert len(index.horizontal_lines) == 1
        assert len(index.vertical_lines) == 1
        assert index.vertical_lines[0].owner == "a->b"
        assert index.vertical_lines[0].kind == ReservationKind.CONNECTOR

    def test_parallel_conflict_coordinate(self) -> None:
        index = ReservationIndex()
        index.reserve_vertical(200, 0, 100)
        index.reserve_vertical(203, 0, 100)
        assert index.parallel_conflict_coordinate((202, 10), (202, 90)) == 203
        assert index.parallel_conflict_coordinate((250, 10), (250, 90)) is None

    def test_fresh_index_per_render(self) -> None:
        first = ReservationIndex()
        first.reserve_vertical(100, 0, 100)
        second = ReservationIndex()
        assert len(second) == 0
