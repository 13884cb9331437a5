"""
Input types for architecture diagram layout.

This module provides the document model consumed by the layout and routing
engine:
- Node: A diagram element (icon, group, composite, text box, ...)
- Resource: Icon/description keyed by node id
- Connection: Logical relationship between two nodes
- Document: Node tree, resources and connections of one diagram
- EventType / Event: Layout lifecycle events

Values are expected to be normalised already (naming conventions and format
versions are the parser's concern). Dicts are accepted wherever a model
object is expected and are coerced once at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Callable, Mapping, Optional, Sequence, TypedDict, Union

from .validation import InvalidConnectionError, InvalidNodeError


class EventType(IntEnum):
    """
    Layout lifecycle events.

    - start: Computation has begun
    - end: Geometry is available
    """

    start = 0
    end = 1


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    nodes: int
    connections: int
    listener: Optional[Callable[[], None]]


class Side(Enum):
    """Side of a node where connectors attach."""

    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

    def opposite(self) -> Side:
        """Get the opposite side."""
        opposites = {
            Side.TOP: Side.BOTTOM,
            Side.BOTTOM: Side.TOP,
            Side.LEFT: Side.RIGHT,
            Side.RIGHT: Side.LEFT,
        }
        return opposites[self]

    def is_horizontal(self) -> bool:
        """Check if this side is a horizontal edge of the node."""
        return self in (Side.TOP, Side.BOTTOM)

    def is_vertical(self) -> bool:
        """Check if this side is a vertical edge of the node."""
        return self in (Side.LEFT, Side.RIGHT)

    @property
    def outward(self) -> tuple[int, int]:
        """Unit (dx, dy) pointing away from the node through this side."""
        return {
            Side.TOP: (0, -1),
            Side.BOTTOM: (0, 1),
            Side.LEFT: (-1, 0),
            Side.RIGHT: (1, 0),
        }[self]


class NodeKind(Enum):
    """Kind of diagram node."""

    ICON = "icon"
    GROUP = "group"
    COMPOSITE = "composite"
    TEXT_BOX = "text_box"
    LABEL = "label"
    PERSON = "person"
    PERSON_PC_MOBILE = "person_pc_mobile"
    PC_MOBILE = "pc_mobile"
    PC = "pc"

    def is_container(self) -> bool:
        """Groups and composites hold other elements."""
        return self in (NodeKind.GROUP, NodeKind.COMPOSITE)

    def is_person_variant(self) -> bool:
        return self in (
            NodeKind.PERSON,
            NodeKind.PERSON_PC_MOBILE,
            NodeKind.PC_MOBILE,
            NodeKind.PC,
        )


class LayoutDirection(Enum):
    """Direction in which a group arranges its children."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class DiagramOrientation(Enum):
    """Overall reading direction of a diagram."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"


class ConnectionKind(Enum):
    DATA = "data"
    AUTH = "auth"
    FLOW = "flow"


class ConnectionStyle(Enum):
    ORTHOGONAL = "orthogonal"
    CURVED = "curved"
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


class SortStrategy(Enum):
    """Order in which connections claim routing space."""

    ORIGINAL = "original"
    VERTICAL_LENGTH_DESC = "vertical_length_desc"
    VERTICAL_LENGTH_ASC = "vertical_length_asc"
    TARGET_Y_ASC = "target_y_asc"
    TARGET_Y_DESC = "target_y_desc"
    SOURCE_X_ASC = "source_x_asc"
    SOURCE_X_DESC = "source_x_desc"
    BOUNDING_BOX_AWARE = "bounding_box_aware"


@dataclass(frozen=True)
class IconRef:
    """Icon shown inside a composite node."""

    id: str
    icon: str
    label: Optional[str] = None


@dataclass(frozen=True)
class Resource:
    """Reusable icon and description, keyed by node id."""

    icon: str
    desc: Optional[str] = None


@dataclass(frozen=True)
class Node:
    """
    Diagram node.

    Attributes:
        id: Unique identifier
        kind: Node kind (icon when omitted)
        icon: Explicit icon id; wins over the resource icon
        label: Display label (drives text box width)
        sublabel: Second label line
        position: Explicit (x, y); absolute at top level, parent-relative for children
        size: Explicit (width, height)
        layout: Direction used to place children without explicit positions
        children: Child nodes (groups)
        icons: Icon references (composites)
        parent_id: Id of the enclosing group, if any
    """

    id: str
    kind: NodeKind = NodeKind.ICON
    icon: Optional[str] = None
    label: Optional[str] = None
    sublabel: Optional[str] = None
    position: Optional[tuple[float, float]] = None
    size: Optional[tuple[float, float]] = None
    layout: LayoutDirection = LayoutDirection.HORIZONTAL
    children: tuple[Node, ...] = ()
    icons: tuple[IconRef, ...] = ()
    parent_id: Optional[str] = None

    def __repr__(self) -> str:
        return f"Node(id={self.id!r}, kind={self.kind.value})"


@dataclass(frozen=True)
class Connection:
    """
    Logical relationship between two nodes.

    Attributes:
        source: Id of the node the connector leaves
        target: Id of the node the connector enters
        kind: data, auth or flow
        style: Line style; curved connectors skip obstacle avoidance
        from_side: Explicit exit side (overrides the resolver)
        to_side: Explicit entry side (overrides the resolver)
        bidirectional: Draw arrowheads on both ends
    """

    source: str
    target: str
    kind: ConnectionKind = ConnectionKind.DATA
    style: ConnectionStyle = ConnectionStyle.ORTHOGONAL
    from_side: Optional[Side] = None
    to_side: Optional[Side] = None
    bidirectional: bool = False
    label: Optional[str] = None
    width: Optional[float] = None
    color: Optional[str] = None

    @property
    def key(self) -> str:
        """Identifier used to tag reservations made by this connection."""
        return f"{self.source}->{self.target}"

    def __repr__(self) -> str:
        return f"Connection({self.source} -> {self.target})"


@dataclass(frozen=True)
class Document:
    """A diagram: node tree, resources and connections."""

    nodes: tuple[Node, ...] = ()
    resources: Mapping[str, Resource] = field(default_factory=dict)
    connections: tuple[Connection, ...] = ()
    title: Optional[str] = None
    subtitle: Optional[str] = None
    sort_strategy: Optional[SortStrategy] = None
    orientation: DiagramOrientation = DiagramOrientation.LANDSCAPE


# Type aliases for the Pythonic API
NodeLike = Union[Node, dict[str, Any]]
"""Input type for nodes: Node objects or dicts with node fields."""

ConnectionLike = Union[Connection, dict[str, Any]]
"""Input type for connections: Connection objects or dicts with from/to."""

ResourceLike = Union[Resource, dict[str, Any]]

DocumentLike = Union[Document, dict[str, Any]]


def _enum_value(enum_cls: Any, value: Any, default: Any = None) -> Any:
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    return enum_cls(value)


def _pair(value: Any) -> Optional[tuple[float, float]]:
    if value is None:
        return None
    if len(value) < 2:
        raise InvalidNodeError(f"Expected an (x, y) or (width, height) pair, got {value!r}")
    return (float(value[0]), float(value[1]))


def coerce_node(data: NodeLike, parent_id: Optional[str] = None) -> Node:
    """
    Build a Node from a Node or a dict.

    Recognises both ``type``/``kind`` and ``parentId``/``parent_id`` keys.

    Raises:
        InvalidNodeError: If the id is missing or a field has an unknown value
    """
    if isinstance(data, Node):
        return data
    if not isinstance(data, dict):
        raise InvalidNodeError(f"Cannot build a node from {type(data).__name__}")

    node_id = data.get("id")
    if not node_id:
        raise InvalidNodeError(f"Node is missing an id: {data!r}")

    try:
        kind = _enum_value(NodeKind, data.get("kind", data.get("type")), NodeKind.ICON)
        layout = _enum_value(LayoutDirection, data.get("layout"), LayoutDirection.HORIZONTAL)
    except ValueError as exc:
        raise InvalidNodeError(f"Node {node_id!r}: {exc}") from exc

    own_parent = data.get("parent_id", data.get("parentId", parent_id))
    children = tuple(coerce_node(child, parent_id=node_id) for child in data.get("children") or ())
    icons = tuple(
        ref if isinstance(ref, IconRef) else IconRef(ref["id"], ref["icon"], ref.get("label"))
        for ref in data.get("icons") or ()
    )

    return Node(
        id=node_id,
        kind=kind,
        icon=data.get("icon"),
        label=data.get("label"),
        sublabel=data.get("sublabel"),
        position=_pair(data.get("position")),
        size=_pair(data.get("size")),
        layout=layout,
        children=children,
        icons=icons,
        parent_id=own_parent,
    )


def coerce_connection(data: ConnectionLike) -> Connection:
    """
    Build a Connection from a Connection or a dict.

    Accepts ``from``/``to`` as well as ``source``/``target`` keys and
    ``fromSide``/``toSide`` alongside ``from_side``/``to_side``.

    Raises:
        InvalidConnectionError: If an endpoint is missing or a field has an unknown value
    """
    if isinstance(data, Connection):
        return data
    if not isinstance(data, dict):
        raise InvalidConnectionError(f"Cannot build a connection from {type(data).__name__}")

    source = data.get("from", data.get("source"))
    target = data.get("to", data.get("target"))
    if source is None:
        raise InvalidConnectionError("Connection source cannot be None")
    if target is None:
        raise InvalidConnectionError("Connection target cannot be None")

    try:
        return Connection(
            source=source,
            target=target,
            kind=_enum_value(ConnectionKind, data.get("kind", data.get("type")), ConnectionKind.DATA),
            style=_enum_value(ConnectionStyle, data.get("style"), ConnectionStyle.ORTHOGONAL),
            from_side=_enum_value(Side, data.get("from_side", data.get("fromSide"))),
            to_side=_enum_value(Side, data.get("to_side", data.get("toSide"))),
            bidirectional=bool(data.get("bidirectional", False)),
            label=data.get("label"),
            width=data.get("width"),
            color=data.get("color"),
        )
    except ValueError as exc:
        raise InvalidConnectionError(f"Connection {source} -> {target}: {exc}") from exc


def coerce_resource(data: ResourceLike) -> Resource:
    if isinstance(data, Resource):
        return data
    return Resource(icon=data["icon"], desc=data.get("desc"))


def coerce_document(data: DocumentLike) -> Document:
    """Build a Document from a Document or a dict."""
    if isinstance(data, Document):
        return data

    resources = {key: coerce_resource(value) for key, value in (data.get("resources") or {}).items()}
    strategy = data.get("sort_strategy", data.get("connectionSortStrategy"))
    return Document(
        nodes=tuple(coerce_node(node) for node in data.get("nodes") or ()),
        resources=resources,
        connections=tuple(coerce_connection(conn) for conn in data.get("connections") or ()),
        title=data.get("title"),
        subtitle=data.get("subtitle"),
        sort_strategy=_enum_value(SortStrategy, strategy),
        orientation=_enum_value(
            DiagramOrientation, data.get("orientation", data.get("layout")), DiagramOrientation.LANDSCAPE
        ),
    )


def make_document(
    nodes: Sequence[NodeLike] = (),
    connections: Sequence[ConnectionLike] = (),
    resources: Optional[Mapping[str, ResourceLike]] = None,
    **kwargs: Any,
) -> Document:
    """Convenience constructor accepting dicts for every part."""
    return Document(
        nodes=tuple(coerce_node(node) for node in nodes),
        connections=tuple(coerce_connection(conn) for conn in connections),
        resources={key: coerce_resource(value) for key, value in (resources or {}).items()},
        **kwargs,
    )


__all__ = [
    "EventType",
    "Event",
    "Side",
    "NodeKind",
    "LayoutDirection",
    "DiagramOrientation",
    "ConnectionKind",
    "ConnectionStyle",
    "SortStrategy",
    "IconRef",
    "Resource",
    "Node",
    "Connection",
    "Document",
    "coerce_node",
    "coerce_connection",
    "coerce_resource",
    "coerce_document",
    "make_document",
    # Pythonic API type aliases
    "NodeLike",
    "ConnectionLike",
    "ResourceLike",
    "DocumentLike",
]
