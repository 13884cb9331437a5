"""
Layout engine for architecture diagrams.

Turns the node tree of a document into absolute geometry. Nodes with an
explicit position keep it (children are positioned relative to their
parent); other children are stacked along their parent's layout direction.
Sizes follow fixed per-kind formulas unless the node carries an explicit
size.

The computation is pure: running it twice on the same document gives
identical geometry.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from ..base import StaticLayout
from ..config import LayoutConstants
from ..geometry import ComputedNode, Point
from ..types import (
    DocumentLike,
    LayoutDirection,
    Node,
    NodeKind,
    Resource,
    Side,
    coerce_document,
)
from ..validation import validate_resource_claims
from .auto import apply_auto_layout


def compute_layout(
    document: DocumentLike,
    constants: Optional[LayoutConstants] = None,
    *,
    auto_layout: bool = False,
    viewport_width: Optional[float] = None,
) -> list[ComputedNode]:
    """
    Compute absolute geometry for every node of a document.

    Args:
        document: Diagram document (Document or dict)
        constants: Sizing constants (defaults when omitted)
        auto_layout: Place unpositioned top-level nodes by connection layering
        viewport_width: Canvas width used to centre portrait auto-layouts

    Returns:
        Computed top-level nodes, children nested inside

    Raises:
        DuplicateResourceClaimError: If two nodes claim the same resource id
    """
    doc = coerce_document(document)
    consts = constants if constants is not None else LayoutConstants()

    validate_resource_claims(doc.nodes, doc.resources)

    computed = [
        _compute_node(node, index, None, doc.resources, consts)
        for index, node in enumerate(doc.nodes)
    ]

    if auto_layout:
        computed = apply_auto_layout(
            computed,
            doc.connections,
            orientation=doc.orientation,
            viewport_width=viewport_width,
        )

    return computed


def _compute_node(
    node: Node,
    index: int,
    parent: Optional[tuple[Node, float, float]],
    resources: Mapping[str, Resource],
    consts: LayoutConstants,
) -> ComputedNode:
    icon = node.icon
    if not icon and node.id in resources:
        icon = resources[node.id].icon

    x, y = _position(node, index, parent, consts)
    width, height = _size(node, consts)

    children = tuple(
        _compute_node(child, i, (node, x, y), resources, consts)
        for i, child in enumerate(node.children)
    )

    parent_id = node.parent_id
    if parent_id is None and parent is not None:
        parent_id = parent[0].id

    return ComputedNode(
        node=node,
        x=x,
        y=y,
        width=width,
        height=height,
        icon=icon,
        children=children,
        parent_id=parent_id,
    )


def _position(
    node: Node,
    index: int,
    parent: Optional[tuple[Node, float, float]],
    consts: LayoutConstants,
) -> Point:
    """Absolute top-left corner of a node."""
    if parent is None:
        if node.position is not None:
            return node.position
        return (0.0, 0.0)

    parent_node, origin_x, origin_y = parent
    if node.position is not None:
        return (origin_x + node.position[0], origin_y + node.position[1])

    pad = consts.group_padding
    if parent_node.layout == LayoutDirection.VERTICAL:
        dx = pad
        dy = pad + consts.label_reserve + index * (consts.default_icon_height + consts.spacing)
    else:
        dx = pad + index * (consts.icon_size + consts.spacing)
        dy = pad + consts.label_reserve
    return (origin_x + dx, origin_y + dy)


def _size(node: Node, consts: LayoutConstants) -> tuple[float, float]:
    """Width and height of a node; an explicit size always wins."""
    if node.size is not None:
        return node.size

    if node.kind == NodeKind.GROUP:
        return _group_size(node, consts)
    if node.kind == NodeKind.COMPOSITE:
        return _composite_size(node, consts)
    if node.kind == NodeKind.TEXT_BOX:
        width = max(consts.text_min_width, consts.char_width * len(node.label or "") + consts.text_padding)
        height = consts.text_height_with_sublabel if node.sublabel else consts.text_height
        return (width, height)

    # icon, label and person variants
    return (consts.icon_size, consts.default_icon_height)


def _group_size(node: Node, consts: LayoutConstants) -> tuple[float, float]:
    pad2 = 2 * consts.group_padding
    n = len(node.children)
    if n == 0:
        # Room for a single icon
        return (consts.icon_size + pad2, consts.default_icon_height + pad2 + consts.group_label_band)

    if node.layout == LayoutDirection.VERTICAL:
        width = consts.icon_size + pad2 + consts.vertical_group_extra_width
        height = pad2 + consts.group_label_band + n * (consts.default_icon_height + consts.spacing)
    else:
        width = pad2 + n * (consts.icon_size + consts.spacing)
        height = consts.default_icon_height + pad2 + consts.group_label_band
    return (width, height)


def _composite_size(node: Node, consts: LayoutConstants) -> tuple[float, float]:
    pad2 = 2 * consts.composite_padding
    n = len(node.icons)
    step = consts.composite_icon_size + consts.composite_spacing

    if node.layout == LayoutDirection.VERTICAL:
        width = consts.composite_icon_size + pad2
        height = pad2 + n * step + consts.label_height
    else:
        width = pad2 + n * step
        height = consts.composite_icon_size + consts.label_height + pad2
    return (width, height)


# =============================================================================
# Tree helpers
# =============================================================================


def flatten_nodes(nodes: Iterable[ComputedNode]) -> list[ComputedNode]:
    """All nodes of the tree in depth-first order, parents before children."""
    result: list[ComputedNode] = []
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        result.append(node)
        stack.extend(reversed(node.children))
    return result


def build_node_map(nodes: Iterable[ComputedNode]) -> dict[str, ComputedNode]:
    """Map node id -> computed node, children included."""
    return {node.id: node for node in flatten_nodes(nodes)}


def get_node_center(node: ComputedNode) -> Point:
    return node.center


def get_node_anchors(node: ComputedNode) -> dict[Side, Point]:
    """Midpoints of the four sides of a node."""
    return node.anchors


# =============================================================================
# Layout class
# =============================================================================


class DiagramLayout(StaticLayout):
    """
    Layout pass producing absolute node geometry.

    Example:
        layout = DiagramLayout(document={"nodes": [{"id": "api"}]})
        layout.run()
        layout.node_map["api"].bounds
    """

    def __init__(
        self,
        *,
        auto_layout: bool = False,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the layout.

        Args:
            auto_layout: Place unpositioned top-level nodes by connection layering
            **kwargs: Arguments passed to BaseLayout (document, hints, ...)
        """
        super().__init__(**kwargs)
        self._auto_layout = auto_layout
        self._computed: list[ComputedNode] = []
        self._node_map: dict[str, ComputedNode] = {}

    @property
    def auto_layout(self) -> bool:
        return self._auto_layout

    @auto_layout.setter
    def auto_layout(self, value: bool) -> None:
        self._auto_layout = value

    @property
    def computed_nodes(self) -> list[ComputedNode]:
        """Computed top-level nodes from the last run."""
        return self._computed

    @property
    def node_map(self) -> dict[str, ComputedNode]:
        """Every computed node of the last run, keyed by id."""
        return self._node_map

    def _compute(self, **kwargs: Any) -> None:
        self._computed = compute_layout(
            self._document,
            self.constants,
            auto_layout=self._auto_layout,
            viewport_width=self._hints.width,
        )
        self._node_map = build_node_map(self._computed)


__all__ = [
    "compute_layout",
    "flatten_nodes",
    "build_node_map",
    "get_node_center",
    "get_node_anchors",
    "DiagramLayout",
]
