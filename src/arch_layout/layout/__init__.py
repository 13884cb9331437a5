"""
Node placement for architecture diagrams.

Available components:
- compute_layout / DiagramLayout: Absolute geometry from the node tree
- apply_auto_layout: Layered placement of unpositioned top-level nodes
"""

from .auto import (
    GraphStructureWarning,
    apply_auto_layout,
    assign_layers,
    needs_auto_layout,
)
from .engine import (
    DiagramLayout,
    build_node_map,
    compute_layout,
    flatten_nodes,
    get_node_anchors,
    get_node_center,
)

__all__ = [
    "DiagramLayout",
    "compute_layout",
    "flatten_nodes",
    "build_node_map",
    "get_node_center",
    "get_node_anchors",
    "GraphStructureWarning",
    "apply_auto_layout",
    "assign_layers",
    "needs_auto_layout",
]
