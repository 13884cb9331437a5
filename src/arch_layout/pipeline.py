"""
Render pipeline: from a diagram document to node geometry and connector paths.

Steps:
1. Layout: absolute geometry for every node
2. Pairing: A->B and B->A become one shared connector
3. Ordering: deterministic routing order (sort strategy)
4. Sides and anchor distribution
5. Reservations seeded with node areas
6. Routing in order, each path registered before the next

Every call starts from a fresh reservation index; nothing is shared between
renders.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .base import StaticLayout
from .config import SUBTITLE_BAND_HEIGHT, TITLE_BAND_HEIGHT, LayoutConstants, RenderHints, RouterSettings
from .geometry import AnchorInfo, ComputedNode, RoutedPath
from .layout.engine import build_node_map, compute_layout, flatten_nodes
from .routing.distribution import calculate_anchor_distribution
from .routing.ordering import detect_bidirectional_pairs, select_sort_strategy, sort_connection_indices
from .routing.reservations import ReservationIndex
from .routing.router import ConnectionRouter
from .types import Document, DocumentLike, SortStrategy, coerce_document
from .validation import validate_connection_endpoints

logger = logging.getLogger(__name__)


def title_band(document: Document) -> Optional[float]:
    """Height reserved above the diagram for its title and subtitle, if any."""
    if document.title and document.subtitle:
        return TITLE_BAND_HEIGHT + SUBTITLE_BAND_HEIGHT
    if document.title:
        return TITLE_BAND_HEIGHT
    if document.subtitle:
        return SUBTITLE_BAND_HEIGHT
    return None


@dataclass
class DiagramGeometry:
    """
    Result of one render.

    Attributes:
        nodes: Computed top-level nodes (children nested)
        node_map: Every computed node by id
        paths: Routed connectors in routing order
        anchors: AnchorInfo by position in routing order
        strategy: Sort strategy that produced the routing order
        min_y: Upper bound used for bends, if any
    """

    nodes: list[ComputedNode]
    node_map: dict[str, ComputedNode]
    paths: list[RoutedPath] = field(default_factory=list)
    anchors: dict[int, AnchorInfo] = field(default_factory=dict)
    strategy: SortStrategy = SortStrategy.ORIGINAL
    min_y: Optional[float] = None

    @property
    def collided_paths(self) -> list[RoutedPath]:
        """Paths returned as best effort after the retry budget ran out."""
        return [path for path in self.paths if path.collided]


def render_geometry(
    document: DocumentLike,
    hints: Optional[RenderHints] = None,
    strategy: Optional[SortStrategy | str] = None,
    min_y: Optional[float] = None,
    *,
    constants: Optional[LayoutConstants] = None,
    settings: Optional[RouterSettings] = None,
    auto_layout: bool = False,
) -> DiagramGeometry:
    """
    Lay out a document and route all of its connections.

    Args:
        document: Diagram document (Document or dict)
        hints: Render hints (canvas size, icon and font size)
        strategy: Routing order; the document's strategy, then an automatic
            choice, when omitted
        min_y: Smallest y a bend may use; derived from the title band when omitted
        constants: Sizing constants; derived from the hints when omitted
        settings: Router settings
        auto_layout: Place unpositioned top-level nodes by connection layering

    Returns:
        DiagramGeometry with nodes and paths

    Raises:
        DuplicateResourceClaimError: If two nodes claim the same resource id
    """
    doc = coerce_document(document)
    hints = hints if hints is not None else RenderHints()
    consts = constants if constants is not None else LayoutConstants.from_hints(hints)
    settings = settings if settings is not None else RouterSettings()

    nodes = compute_layout(doc, consts, auto_layout=auto_layout, viewport_width=hints.width)
    node_map = build_node_map(nodes)

    for _, issue in validate_connection_endpoints(doc.connections, node_map, strict=False):
        logger.debug("%s; connection skipped", issue)

    pairs = detect_bidirectional_pairs(doc.connections)
    primaries = [pair.primary for pair in pairs]
    paired = {i for i, pair in enumerate(pairs) if pair.is_bidirectional or pair.primary.bidirectional}

    if strategy is None:
        strategy = doc.sort_strategy
    if strategy is None:
        strategy = select_sort_strategy(primaries, node_map)
    elif isinstance(strategy, str):
        strategy = SortStrategy(strategy)

    order = sort_connection_indices(primaries, strategy, node_map)
    ordered = [primaries[i] for i in order]
    anchors = calculate_anchor_distribution(ordered, node_map, doc.orientation)

    if min_y is None:
        min_y = title_band(doc)

    reservations = ReservationIndex(settings.tolerance, settings.node_margin)
    registered = reservations.register_node_areas(flatten_nodes(nodes))
    logger.debug(
        "Routing %d connection(s) around %d node area(s) using %s order",
        len(ordered),
        registered,
        strategy.value,
    )

    router = ConnectionRouter(reservations, settings, node_map)
    paths = router.route_all(
        ordered,
        anchors=anchors,
        min_y=min_y,
        bidirectional={pos for pos, i in enumerate(order) if i in paired},
    )

    return DiagramGeometry(
        nodes=nodes,
        node_map=node_map,
        paths=paths,
        anchors=anchors,
        strategy=strategy,
        min_y=min_y,
    )


class GeometryPass(StaticLayout):
    """
    Layout and routing as one pass with start/end events.

    Example:
        geometry = GeometryPass(document=doc, hints=RenderHints(width=1280)).run().geometry
        for path in geometry.paths:
            print(path.svg_path)
    """

    def __init__(
        self,
        *,
        strategy: Optional[SortStrategy | str] = None,
        min_y: Optional[float] = None,
        settings: Optional[RouterSettings] = None,
        auto_layout: bool = False,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the pass.

        Args:
            strategy: Routing order (see render_geometry)
            min_y: Smallest y a bend may use
            settings: Router settings
            auto_layout: Place unpositioned top-level nodes by connection layering
            **kwargs: Arguments passed to BaseLayout (document, hints, ...)
        """
        super().__init__(**kwargs)
        self._strategy = strategy
        self._min_y = min_y
        self._settings = settings
        self._auto_layout = auto_layout
        self._geometry: Optional[DiagramGeometry] = None

    @property
    def strategy(self) -> Optional[SortStrategy | str]:
        return self._strategy

    @strategy.setter
    def strategy(self, value: Optional[SortStrategy | str]) -> None:
        self._strategy = value

    @property
    def geometry(self) -> DiagramGeometry:
        """Result of the last run."""
        if self._geometry is None:
            raise RuntimeError("GeometryPass has not been run yet")
        return self._geometry

    def _compute(self, **kwargs: Any) -> None:
        self._geometry = render_geometry(
            self._document,
            self._hints,
            self._strategy,
            self._min_y,
            constants=self.constants,
            settings=self._settings,
            auto_layout=self._auto_layout,
        )


__all__ = [
    "title_band",
    "DiagramGeometry",
    "render_geometry",
    "GeometryPass",
]
