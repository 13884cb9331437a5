"""
Connection ordering and bidirectional pairing.

Routing is greedy: earlier connections claim space first. These helpers make
the order deterministic and let callers put the connections most in need of
a direct route first.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable, Mapping, Optional, Sequence

from ..geometry import ComputedNode
from ..types import Connection, SortStrategy


@dataclass(frozen=True)
class ConnectionPair:
    """A connection and its reverse (None when there is no reverse)."""

    primary: Connection
    reverse: Optional[Connection] = None

    @property
    def is_bidirectional(self) -> bool:
        return self.reverse is not None


def detect_bidirectional_pairs(connections: Sequence[Connection]) -> list[ConnectionPair]:
    """
    Pair each connection with the first unprocessed exact reverse.

    Args:
        connections: Connections in document order

    Returns:
        One ConnectionPair per primary connection, in document order; a
        connection consumed as the reverse of an earlier one gets no entry
    """
    processed: set[int] = set()
    pairs: list[ConnectionPair] = []

    for i, conn in enumerate(connections):
        if i in processed:
            continue
        processed.add(i)

        reverse: Optional[Connection] = None
        for j in range(i + 1, len(connections)):
            other = connections[j]
            if j not in processed and other.source == conn.target and other.target == conn.source:
                reverse = other
                processed.add(j)
                break

        pairs.append(ConnectionPair(conn, reverse))
    return pairs


# =============================================================================
# Sort strategies
# =============================================================================

_Comparator = Callable[[Connection, Connection], float]


def _ends(conn: Connection, node_map: Mapping[str, ComputedNode]):
    return node_map.get(conn.source), node_map.get(conn.target)


def _vertical_length(node_map: Mapping[str, ComputedNode], descending: bool) -> _Comparator:
    sign = -1 if descending else 1

    def compare(a: Connection, b: Connection) -> float:
        from_a, to_a = _ends(a, node_map)
        from_b, to_b = _ends(b, node_map)
        if not (from_a and to_a and from_b and to_b):
            return 0
        length_a = abs(to_a.y - from_a.y)
        length_b = abs(to_b.y - from_b.y)
        return sign * (length_a - length_b)

    return compare


def _target_y(node_map: Mapping[str, ComputedNode], descending: bool) -> _Comparator:
    sign = -1 if descending else 1

    def compare(a: Connection, b: Connection) -> float:
        to_a = node_map.get(a.target)
        to_b = node_map.get(b.target)
        if not (to_a and to_b):
            return 0
        return sign * (to_a.y - to_b.y)

    return compare


def _source_x(node_map: Mapping[str, ComputedNode], descending: bool) -> _Comparator:
    sign = -1 if descending else 1

    def compare(a: Connection, b: Connection) -> float:
        from_a = node_map.get(a.source)
        from_b = node_map.get(b.source)
        if not (from_a and from_b):
            return 0
        return sign * (from_a.x - from_b.x)

    return compare


def _is_horizontal(source: ComputedNode, target: ComputedNode) -> bool:
    """Connection bounding box is wider than tall."""
    return abs(target.x - source.x) > abs(target.y - source.y)


def _bounding_box_aware(node_map: Mapping[str, ComputedNode]) -> _Comparator:
    def compare(a: Connection, b: Connection) -> float:
        from_a, to_a = _ends(a, node_map)
        from_b, to_b = _ends(b, node_map)
        if not (from_a and to_a and from_b and to_b):
            return 0

        horizontal_a = _is_horizontal(from_a, to_a)
        horizontal_b = _is_horizontal(from_b, to_b)

        if horizontal_a and horizontal_b:
            return from_a.x - from_b.x
        if not horizontal_a and not horizontal_b:
            return to_a.y - to_b.y
        # Horizontal connections claim space first
        return -1 if horizontal_a else 1

    return compare


def sort_connection_indices(
    connections: Sequence[Connection],
    strategy: SortStrategy | str,
    node_map: Mapping[str, ComputedNode],
) -> list[int]:
    """
    Routing order as positions into ``connections``.

    Sorting is stable: connections comparing equal keep their input order.
    Comparisons involving a connection with a missing endpoint are ties.

    Args:
        connections: Connections to order
        strategy: Sort strategy (enum or its string value)
        node_map: Computed nodes by id

    Returns:
        New list of indices in routing order
    """
    if isinstance(strategy, str):
        strategy = SortStrategy(strategy)

    if strategy == SortStrategy.VERTICAL_LENGTH_DESC:
        compare = _vertical_length(node_map, descending=True)
    elif strategy == SortStrategy.VERTICAL_LENGTH_ASC:
        compare = _vertical_length(node_map, descending=False)
    elif strategy == SortStrategy.TARGET_Y_ASC:
        compare = _target_y(node_map, descending=False)
    elif strategy == SortStrategy.TARGET_Y_DESC:
        compare = _target_y(node_map, descending=True)
    elif strategy == SortStrategy.SOURCE_X_ASC:
        compare = _source_x(node_map, descending=False)
    elif strategy == SortStrategy.SOURCE_X_DESC:
        compare = _source_x(node_map, descending=True)
    elif strategy == SortStrategy.BOUNDING_BOX_AWARE:
        compare = _bounding_box_aware(node_map)
    else:
        return list(range(len(connections)))

    def compare_at(i: int, j: int) -> float:
        return compare(connections[i], connections[j])

    return sorted(range(len(connections)), key=cmp_to_key(compare_at))


def sort_connections(
    connections: Sequence[Connection],
    strategy: SortStrategy | str,
    node_map: Mapping[str, ComputedNode],
) -> list[Connection]:
    """Order connections for routing; see sort_connection_indices."""
    return [connections[i] for i in sort_connection_indices(connections, strategy, node_map)]


def select_sort_strategy(
    connections: Sequence[Connection],
    node_map: Mapping[str, ComputedNode],
) -> SortStrategy:
    """
    Pick a strategy for documents that do not name one.

    Mixed horizontal and vertical connections get ``bounding_box_aware``;
    uniform ones keep their original order.
    """
    seen: set[bool] = set()
    for conn in connections:
        source, target = _ends(conn, node_map)
        if source is None or target is None:
            continue
        seen.add(_is_horizontal(source, target))
        if len(seen) == 2:
            return SortStrategy.BOUNDING_BOX_AWARE
    return SortStrategy.ORIGINAL


__all__ = [
    "ConnectionPair",
    "detect_bidirectional_pairs",
    "sort_connection_indices",
    "sort_connections",
    "select_sort_strategy",
]
