"""
Routing quality metrics.

Provides quantitative measures of routed connectors:
- Path length: Total length of a connector
- Bend count: Number of direction changes
- Node collisions: Connector segments passing through node areas
- Summary: Aggregate figures over a whole render

All metrics work on RoutedPath objects from any render.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

import numpy as np

from .geometry import ComputedNode, Point, RoutedPath
from .routing.reservations import node_area


def path_length(points: Sequence[Point] | RoutedPath) -> float:
    """
    Total polyline length.

    For curved paths this is the length of the control polygon, an upper
    bound of the curve length.
    """
    if isinstance(points, RoutedPath):
        points = points.points
    if len(points) < 2:
        return 0.0
    arr = np.asarray(points, dtype=np.float64)
    return float(np.hypot(*np.diff(arr, axis=0).T).sum())


def bend_count(points: Sequence[Point] | RoutedPath) -> int:
    """Number of interior points where the path changes direction."""
    if isinstance(points, RoutedPath):
        if points.curved:
            return 0
        points = points.points
    if len(points) < 3:
        return 0
    arr = np.asarray(points, dtype=np.float64)
    d = np.diff(arr, axis=0)
    # Drop zero-length segments before comparing directions
    d = d[np.hypot(d[:, 0], d[:, 1]) > 1e-9]
    if len(d) < 2:
        return 0
    cross = d[:-1, 0] * d[1:, 1] - d[:-1, 1] * d[1:, 0]
    return int(np.count_nonzero(np.abs(cross) > 1e-9))


def _segment_crosses_area(p1: Point, p2: Point, area: tuple[float, float, float, float]) -> bool:
    left, top, right, bottom = area
    x1, y1 = p1
    x2, y2 = p2
    if abs(x1 - x2) < 1e-9:
        return left < x1 < right and min(y1, y2) < bottom and max(y1, y2) > top
    if abs(y1 - y2) < 1e-9:
        return top < y1 < bottom and min(x1, x2) < right and max(x1, x2) > left
    return False


def path_node_collisions(path: RoutedPath, nodes: Iterable[ComputedNode]) -> list[str]:
    """
    Ids of leaf nodes whose reserved area a path runs through.

    The path's own endpoints are not counted; curved paths are not checked.
    """
    if path.curved:
        return []
    endpoints = {path.connection.source, path.connection.target}
    hits: list[str] = []
    for node in nodes:
        if node.id in endpoints or node.kind.is_container():
            continue
        area = node_area(node)
        if any(_segment_crosses_area(p1, p2, area) for p1, p2 in path.segments):
            hits.append(node.id)
    return hits


def routing_quality_summary(paths: Sequence[RoutedPath], nodes: Iterable[ComputedNode]) -> dict[str, Any]:
    """
    Compute a summary of routing quality.

    Args:
        paths: Routed connectors
        nodes: Flattened computed nodes

    Returns:
        Dictionary with:
        - connections: Number of routed paths
        - total_length: Sum of path lengths
        - mean_length: Mean path length (0 without paths)
        - total_bends: Sum of bend counts
        - max_bends: Largest bend count of any path
        - collided: Paths flagged as best effort
        - node_collisions: Path/node pairs where a path crosses a node area
    """
    node_list = list(nodes)
    lengths = np.array([path_length(p) for p in paths], dtype=np.float64)
    bends = np.array([bend_count(p) for p in paths], dtype=np.int64)
    return {
        "connections": len(paths),
        "total_length": float(lengths.sum()),
        "mean_length": float(lengths.mean()) if len(paths) else 0.0,
        "total_bends": int(bends.sum()),
        "max_bends": int(bends.max()) if len(paths) else 0,
        "collided": sum(1 for p in paths if p.collided),
        "node_collisions": sum(len(path_node_collisions(p, node_list)) for p in paths),
    }


__all__ = [
    "path_length",
    "bend_count",
    "path_node_collisions",
    "routing_quality_summary",
]
