"""
Base classes for diagram geometry passes.

This module provides abstract base classes that define the common interface
and shared functionality for the layout and routing passes:

- BaseLayout: Abstract base with event system, document and hints management
- StaticLayout: Single-pass computation fired between start/end events
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from typing_extensions import Self

from .config import LayoutConstants, RenderHints
from .types import Document, DocumentLike, Event, EventType, coerce_document


class BaseLayout(ABC):
    """
    Abstract base class for geometry passes over a diagram document.

    Provides shared infrastructure:
    - Event system (start/end events)
    - Document and render hint management via properties
    - Sizing constants derived from the hints

    Example:
        layout = SomeLayout(
            document=document,
            hints=RenderHints(width=1280, height=720),
        )
        layout.run()
    """

    def __init__(
        self,
        *,
        document: Optional[DocumentLike] = None,
        hints: Optional[RenderHints] = None,
        constants: Optional[LayoutConstants] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
    ) -> None:
        """
        Initialize the pass with configuration.

        Args:
            document: Diagram document (Document or dict)
            hints: Render hints; defaults to RenderHints()
            constants: Sizing constants; derived from hints when omitted
            on_start: Callback for start event
            on_end: Callback for end event
        """
        self._document: Document = Document()
        self._hints: RenderHints = hints if hints is not None else RenderHints()
        self._constants: Optional[LayoutConstants] = constants
        self._events: dict[EventType, Callable[[Optional[Event]], None]] = {}

        if document is not None:
            self.document = document

        if on_start:
            self._events[EventType.start] = on_start
        if on_end:
            self._events[EventType.end] = on_end

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def document(self) -> Document:
        """Get the diagram document."""
        return self._document

    @document.setter
    def document(self, value: DocumentLike) -> None:
        """Set the document from a Document or a dict."""
        self._document = coerce_document(value)

    @property
    def hints(self) -> RenderHints:
        """Get render hints."""
        return self._hints

    @hints.setter
    def hints(self, value: RenderHints) -> None:
        self._hints = value

    @property
    def constants(self) -> LayoutConstants:
        """Sizing constants (explicit, or derived from the render hints)."""
        if self._constants is not None:
            return self._constants
        return LayoutConstants.from_hints(self._hints)

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: Callable[[Optional[Event]], None]) -> Self:
        """
        Subscribe to a layout event.

        Args:
            event: Event type (EventType enum or string name)
            callback: Function to call when event fires

        Returns:
            self (for chaining)
        """
        if isinstance(event, str):
            event = EventType[event]
        self._events[event] = callback
        return self

    def trigger(self, event: Event) -> None:
        """
        Trigger an event, calling the registered callback.

        Args:
            event: Event payload with type and optional data
        """
        event_type = event.get("type")
        if event_type is not None and event_type in self._events:
            self._events[event_type](event)

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    @abstractmethod
    def run(self, **kwargs: Any) -> Self:
        """
        Run the pass.

        Returns:
            self (for chaining)
        """
        pass


class StaticLayout(BaseLayout):
    """
    Base class for single-pass computations.

    Each run starts from the document alone; nothing computed by a previous
    run is reused.
    """

    def run(self, **kwargs: Any) -> Self:
        """
        Run the pass.

        Fires start event, computes, fires end event.

        Args:
            **kwargs: Additional arguments passed to _compute()

        Returns:
            self (for chaining)
        """
        self.trigger(
            {
                "type": EventType.start,
                "nodes": len(self._document.nodes),
                "connections": len(self._document.connections),
            }
        )

        self._compute(**kwargs)

        self.trigger({"type": EventType.end})
        return self

    @abstractmethod
    def _compute(self, **kwargs: Any) -> None:
        """
        Compute geometry.

        Subclasses must implement this to perform the actual computation.
        """
        pass


__all__ = [
    "BaseLayout",
    "StaticLayout",
]
