"""Text edit reconciler.

An edit buffer for one side is seeded with that side's text, one region per
line. Saving pairs surviving lines with the side's regions by position:

- region i gets line i when it exists
- regions without a line keep their text
- lines beyond the region count are dropped (no regions are created)
"""
from __future__ import annotations

from dataclasses import dataclass

from .types import Side, TextRegion


@dataclass(frozen=True)
class EditState:
    side: Side
    buffer: str = ""


def split_edit_lines(text: str) -> list[str]:
    """Buffer lines that are not blank after trimming, in order."""
    lines = [line.rstrip("\r") for line in text.split("\n")]
    return [line for line in lines if line.strip()]


def reconcile(regions: list[TextRegion], edited_text: str) -> dict[str, str]:
    """Map region id -> new text for the regions of one side.

    `regions` must be the side's regions in store order.
    """
    lines = split_edit_lines(edited_text)
    updated: dict[str, str] = {}
    for i, region in enumerate(regions):
        updated[region.id] = lines[i] if i < len(lines) else region.text
    return updated


def dropped_line_count(regions: list[TextRegion], edited_text: str) -> int:
    return max(0, len(split_edit_lines(edited_text)) - len(regions))
