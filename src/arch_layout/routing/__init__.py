"""
Connector routing for architecture diagrams.

Connectors use only horizontal and vertical segments, leave and enter nodes
on sides facing each other, share node edges evenly and avoid running
through other nodes or along earlier connectors.

Available components:
- resolve_sides / sides_for_connection: Exit and entry sides
- calculate_anchor_distribution: Slot positions along shared node edges
- ReservationIndex: Occupied-space index probed by the router
- ConnectionRouter: Greedy orthogonal router with bend search
- sort_connections / sort_connection_indices / detect_bidirectional_pairs:
  Routing order and pairing
"""

from .distribution import calculate_anchor_distribution, distributed_anchor
from .ordering import (
    ConnectionPair,
    detect_bidirectional_pairs,
    select_sort_strategy,
    sort_connection_indices,
    sort_connections,
)
from .reservations import (
    NODE_MARGIN,
    TOLERANCE,
    ReservationIndex,
    conflicts_horizontal,
    conflicts_vertical,
    node_area,
)
from .router import (
    ConnectionRouter,
    ConnectorType,
    curved_path,
    determine_connector_type,
    simplify_path,
)
from .sides import (
    default_sides,
    resolve_sides,
    sides_for_connection,
    siblings_and_parent_bounds,
)

__all__ = [
    # Sides
    "default_sides",
    "resolve_sides",
    "sides_for_connection",
    "siblings_and_parent_bounds",
    # Distribution
    "calculate_anchor_distribution",
    "distributed_anchor",
    # Reservations
    "TOLERANCE",
    "NODE_MARGIN",
    "ReservationIndex",
    "conflicts_horizontal",
    "conflicts_vertical",
    "node_area",
    # Router
    "ConnectionRouter",
    "ConnectorType",
    "curved_path",
    "determine_connector_type",
    "simplify_path",
    # Ordering
    "ConnectionPair",
    "detect_bidirectional_pairs",
    "select_sort_strategy",
    "sort_connection_indices",
    "sort_connections",
]
