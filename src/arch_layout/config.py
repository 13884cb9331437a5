"""
Configuration for layout and routing.

All settings are frozen dataclasses with the defaults used by the renderer:

- RenderHints: Canvas and typography hints supplied by the caller
- LayoutConstants: Sizing formula constants, derived from render hints
- RouterSettings: Tolerances and retry budget of the connection router
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .validation import LayoutError, validate_render_hints

# Vertical space reserved for the diagram title and subtitle
TITLE_BAND_HEIGHT = 60.0
SUBTITLE_BAND_HEIGHT = 30.0


@dataclass(frozen=True)
class RenderHints:
    """
    Render hints consumed by the layout engine.

    Attributes:
        width: Canvas width
        height: Canvas height
        icon_size: Icon edge length; scales icon-based sizing formulas
        font_size: Label font size; scales text box width estimates

    Raises:
        InvalidRenderHintsError: If any value is not positive
    """

    width: float = 1920.0
    height: float = 1080.0
    icon_size: float = 48.0
    font_size: float = 11.0

    def __post_init__(self) -> None:
        validate_render_hints(self.width, self.height, self.icon_size, self.font_size)


@dataclass(frozen=True)
class LayoutConstants:
    """Constants of the per-kind sizing and child placement formulas."""

    icon_size: float = 48.0
    group_padding: float = 20.0
    spacing: float = 30.0
    label_height: float = 80.0
    # Band at the top of a group kept free for its label
    label_reserve: float = 20.0
    group_label_band: float = 30.0
    vertical_group_extra_width: float = 20.0
    composite_icon_size: float = 40.0
    composite_padding: float = 20.0
    composite_spacing: float = 10.0
    char_width: float = 8.0
    text_padding: float = 20.0
    text_min_width: float = 60.0
    text_height: float = 30.0
    text_height_with_sublabel: float = 50.0

    @property
    def default_icon_height(self) -> float:
        """Icon plus its label band."""
        return self.icon_size + self.label_height

    @classmethod
    def from_hints(cls, hints: Optional[RenderHints] = None) -> LayoutConstants:
        """Constants scaled to the given render hints (11px font ~ 8px per character)."""
        base = cls()
        if hints is None:
            return base
        return replace(
            base,
            icon_size=hints.icon_size,
            char_width=base.char_width * hints.font_size / 11.0,
        )


@dataclass(frozen=True)
class RouterSettings:
    """
    Connection router settings.

    Attributes:
        tolerance: Distance under which two parallel lines count as the same line
        node_margin: Margin added around node reservation squares
        step: Shift applied to a bend coordinate after a conflict
        max_retries: Bend candidates tried per search before giving up
        detour_distance: Initial offset of U-shaped detours
        channel_clearance: Gap between a blocking node and a detour channel
        stub_length: Straight run leaving/entering a node before a detour turns
    """

    tolerance: float = 5.0
    node_margin: float = 5.0
    step: float = 10.0
    max_retries: int = 20
    detour_distance: float = 40.0
    channel_clearance: float = 20.0
    stub_length: float = 20.0

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise LayoutError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.step <= 0:
            raise LayoutError(f"step must be positive, got {self.step}")


__all__ = [
    "TITLE_BAND_HEIGHT",
    "SUBTITLE_BAND_HEIGHT",
    "RenderHints",
    "LayoutConstants",
    "RouterSettings",
]
