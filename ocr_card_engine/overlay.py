"""Coordinate mapper: source-image pixels -> on-screen overlay rectangles.

Frames stay in source pixel space; everything here is derived per render and
never stored. Until the rendered size of the image is known, the scale is 0
and no overlays are produced.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .types import Classification, Frame, ImageDimensions, TextRegion

# highlight precedence: selected > front > back > unassigned
H_SELECTED = "selected"
H_FRONT = "front"
H_BACK = "back"
H_UNASSIGNED = "unassigned"


@dataclass(frozen=True)
class RenderedBounds:
    """Where the image is actually drawn on screen.

    With "contain" rendering the image may be letterboxed inside its
    container; `offset_x/offset_y` are the letterbox margins. Zero offsets mean
    the image fills exactly `width` x `height`.
    """

    width: float
    height: float
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass(frozen=True)
class ScreenRect:
    left: float
    top: float
    width: float
    height: float

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.left + self.width and self.top <= y <= self.top + self.height


@dataclass(frozen=True)
class OverlayBox:
    region_id: str
    rect: ScreenRect
    classification: Classification
    selected: bool


def scale_factors(source: ImageDimensions, rendered: RenderedBounds | None) -> tuple[float, float]:
    if rendered is None:
        return 0.0, 0.0
    scale_x = rendered.width / source.width if rendered.width > 0 and source.width > 0 else 0.0
    scale_y = rendered.height / source.height if rendered.height > 0 and source.height > 0 else 0.0
    return scale_x, scale_y


def map_frame(frame: Frame, source: ImageDimensions, rendered: RenderedBounds) -> ScreenRect:
    scale_x, scale_y = scale_factors(source, rendered)
    return ScreenRect(
        left=rendered.offset_x + frame.x * scale_x,
        top=rendered.offset_y + frame.y * scale_y,
        width=frame.width * scale_x,
        height=frame.height * scale_y,
    )


def overlay_boxes(
    regions: Iterable[TextRegion],
    source: ImageDimensions,
    rendered: RenderedBounds | None,
    selected_ids: Iterable[str] = (),
) -> list[OverlayBox]:
    """One box per region in store order, or [] while the scale is unknown."""
    scale_x, scale_y = scale_factors(source, rendered)
    if rendered is None or scale_x == 0 or scale_y == 0:
        return []
    selected = set(selected_ids)
    return [
        OverlayBox(
            region_id=r.id,
            rect=map_frame(r.frame, source, rendered),
            classification=r.classification,
            selected=r.id in selected or r.selected,
        )
        for r in regions
    ]


def highlight_for(box: OverlayBox) -> str:
    if box.selected:
        return H_SELECTED
    if box.classification == "front":
        return H_FRONT
    if box.classification == "back":
        return H_BACK
    return H_UNASSIGNED


def hit_test(boxes: list[OverlayBox], x: float, y: float) -> str | None:
    # Later boxes are drawn on top, so they win.
    for box in reversed(boxes):
        if box.rect.contains(x, y):
            return box.region_id
    return None


def contain_bounds(source: ImageDimensions, container_width: float, container_height: float) -> RenderedBounds | None:
    """True drawn image rectangle for "contain" rendering inside a container."""
    if source.width <= 0 or source.height <= 0 or container_width <= 0 or container_height <= 0:
        return None
    scale = min(container_width / source.width, container_height / source.height)
    width = source.width * scale
    height = source.height * scale
    return RenderedBounds(
        width=width,
        height=height,
        offset_x=(container_width - width) / 2,
        offset_y=(container_height - height) / 2,
    )


def fit_preview_size(source: ImageDimensions, available_width: float, max_height: float) -> tuple[float, float]:
    """Preview size that keeps the aspect ratio: full width, capped height."""
    if source.width == 0 or source.height == 0:
        return 0.0, 0.0
    aspect = source.width / source.height
    width = available_width
    height = available_width / aspect
    if height > max_height:
        height = max_height
        width = height * aspect
    return width, height
