"""
arch-layout: Layout and connector routing for architecture diagrams.

This package turns a declarative diagram document (node tree, resources,
connections) into absolute node geometry and orthogonal connector paths.

Available components:
- layout: Node placement (explicit, formula-based and automatic)
- routing: Anchor sides, edge distribution, reservations and the router
- pipeline: One-call render of a whole document
- metrics: Routing quality measures
"""

__version__ = "0.1.0"

# Base classes for geometry passes
from .base import BaseLayout, StaticLayout

# Configuration
from .config import (
    SUBTITLE_BAND_HEIGHT,
    TITLE_BAND_HEIGHT,
    LayoutConstants,
    RenderHints,
    RouterSettings,
)

# Geometry produced by layout and routing
from .geometry import (
    AnchorInfo,
    Bounds,
    ComputedNode,
    Point,
    ReservationKind,
    ReservedHorizontalLine,
    ReservedVerticalLine,
    RoutedPath,
)

# Layout
from .layout import (
    DiagramLayout,
    GraphStructureWarning,
    apply_auto_layout,
    build_node_map,
    compute_layout,
    flatten_nodes,
    get_node_anchors,
    get_node_center,
    needs_auto_layout,
)

# Metrics for routing quality evaluation
from .metrics import (
    bend_count,
    path_length,
    path_node_collisions,
    routing_quality_summary,
)

# Render pipeline
from .pipeline import DiagramGeometry, GeometryPass, render_geometry, title_band

# Routing
from .routing import (
    ConnectionPair,
    ConnectionRouter,
    ConnectorType,
    ReservationIndex,
    calculate_anchor_distribution,
    conflicts_horizontal,
    conflicts_vertical,
    detect_bidirectional_pairs,
    determine_connector_type,
    distributed_anchor,
    resolve_sides,
    select_sort_strategy,
    siblings_and_parent_bounds,
    sides_for_connection,
    sort_connection_indices,
    sort_connections,
)
from .types import (
    Connection,
    ConnectionKind,
    ConnectionLike,
    ConnectionStyle,
    DiagramOrientation,
    Document,
    DocumentLike,
    Event,
    EventType,
    IconRef,
    LayoutDirection,
    Node,
    NodeKind,
    NodeLike,
    Resource,
    ResourceLike,
    Side,
    SortStrategy,
    make_document,
)

# Validation utilities
from .validation import (
    DuplicateResourceClaimError,
    InvalidConnectionError,
    InvalidNodeError,
    InvalidRenderHintsError,
    LayoutError,
    validate_connection_endpoints,
    validate_render_hints,
    validate_resource_claims,
)

__all__ = [
    # Version
    "__version__",
    # Input types
    "Node",
    "NodeKind",
    "IconRef",
    "Resource",
    "Connection",
    "ConnectionKind",
    "ConnectionStyle",
    "Document",
    "DiagramOrientation",
    "LayoutDirection",
    "Side",
    "SortStrategy",
    "EventType",
    "Event",
    "make_document",
    # Type aliases for API
    "NodeLike",
    "ConnectionLike",
    "ResourceLike",
    "DocumentLike",
    # Geometry
    "Point",
    "Bounds",
    "ComputedNode",
    "ReservationKind",
    "ReservedVerticalLine",
    "ReservedHorizontalLine",
    "AnchorInfo",
    "RoutedPath",
    # Configuration
    "TITLE_BAND_HEIGHT",
    "SUBTITLE_BAND_HEIGHT",
    "RenderHints",
    "LayoutConstants",
    "RouterSettings",
    # Base classes
    "BaseLayout",
    "StaticLayout",
    # Layout
    "DiagramLayout",
    "compute_layout",
    "flatten_nodes",
    "build_node_map",
    "get_node_center",
    "get_node_anchors",
    "GraphStructureWarning",
    "apply_auto_layout",
    "needs_auto_layout",
    # Routing
    "resolve_sides",
    "siblings_and_parent_bounds",
    "sides_for_connection",
    "calculate_anchor_distribution",
    "distributed_anchor",
    "conflicts_vertical",
    "conflicts_horizontal",
    "ReservationIndex",
    "ConnectionRouter",
    "ConnectorType",
    "determine_connector_type",
    "ConnectionPair",
    "detect_bidirectional_pairs",
    "sort_connection_indices",
    "sort_connections",
    "select_sort_strategy",
    # Pipeline
    "DiagramGeometry",
    "GeometryPass",
    "render_geometry",
    "title_band",
    # Metrics
    "path_length",
    "bend_count",
    "path_node_collisions",
    "routing_quality_summary",
    # Validation
    "LayoutError",
    "DuplicateResourceClaimError",
    "InvalidRenderHintsError",
    "InvalidNodeError",
    "InvalidConnectionError",
    "validate_render_hints",
    "validate_resource_claims",
    "validate_connection_endpoints",
]
