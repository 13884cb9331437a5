"""
Input validation utilities for diagram layout.

Provides the error hierarchy and validation functions for render hints,
resource claims and connection endpoints. Raises descriptive exceptions on
invalid input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Collection, Iterable, Mapping

if TYPE_CHECKING:
    from .types import Connection, Node


class LayoutError(ValueError):
    """Base exception for layout errors."""

    pass


class DuplicateResourceClaimError(LayoutError):
    """Raised when more than one node claims the same resource id."""

    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__(
            f'Resource "{resource_id}" is used by multiple nodes. '
            "Each resource ID must be unique."
        )


class InvalidRenderHintsError(LayoutError):
    """Raised when render hints are out of range."""

    pass


class InvalidNodeError(LayoutError):
    """Raised when a node is malformed."""

    pass


class InvalidConnectionError(LayoutError):
    """Raised when a connection is malformed."""

    pass


def validate_render_hints(
    width: float,
    height: float,
    icon_size: float,
    font_size: float,
) -> tuple[float, float, float, float]:
    """
    Validate render hint dimensions.

    Args:
        width: Canvas width
        height: Canvas height
        icon_size: Icon edge length
        font_size: Label font size

    Returns:
        Validated (width, height, icon_size, font_size) tuple

    Raises:
        InvalidRenderHintsError: If any value is not positive
    """
    values = {
        "width": width,
        "height": height,
        "icon_size": icon_size,
        "font_size": font_size,
    }
    for name, value in values.items():
        if float(value) <= 0:
            raise InvalidRenderHintsError(f"{name} must be positive, got {value}")

    return float(width), float(height), float(icon_size), float(font_size)


def validate_resource_claims(nodes: Iterable[Node], resources: Mapping[str, Any]) -> set[str]:
    """
    Check that every resource id is claimed by at most one node.

    Walks the node tree depth-first, children included.

    Args:
        nodes: Top-level nodes
        resources: Resource map keyed by node id

    Returns:
        Set of claimed resource ids

    Raises:
        DuplicateResourceClaimError: On the second claim of a resource id
    """
    claimed: set[str] = set()
    if not resources:
        return claimed

    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        if node.id in resources:
            if node.id in claimed:
                raise DuplicateResourceClaimError(node.id)
            claimed.add(node.id)
        stack.extend(reversed(node.children))

    return claimed


def validate_connection_endpoints(
    connections: Iterable[Connection],
    node_ids: Collection[str],
    strict: bool = True,
) -> list[tuple[int, str]]:
    """
    Validate that all connection endpoints reference existing nodes.

    Args:
        connections: Connections to check
        node_ids: Ids of every node in the diagram (children included)
        strict: If True, raises on invalid. If False, returns list of issues.

    Returns:
        List of (connection_index, issue_description) tuples

    Raises:
        InvalidConnectionError: If strict=True and invalid connections found
    """
    issues: list[tuple[int, str]] = []

    for i, conn in enumerate(connections):
        if conn.source not in node_ids:
            issues.append((i, f"Connection {i}: unknown source node {conn.source!r}"))
        if conn.target not in node_ids:
            issues.append((i, f"Connection {i}: unknown target node {conn.target!r}"))

    if strict and issues:
        msg = "Invalid connection endpoints:\n" + "\n".join(issue[1] for issue in issues)
        raise InvalidConnectionError(msg)

    return issues


__all__ = [
    "LayoutError",
    "DuplicateResourceClaimError",
    "InvalidRenderHintsError",
    "InvalidNodeError",
    "InvalidConnectionError",
    "validate_render_hints",
    "validate_resource_claims",
    "validate_connection_endpoints",
]
