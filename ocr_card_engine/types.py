from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Literal

Side = Literal["front", "back"]
Classification = Literal["unassigned", "front", "back"]

SIDES: tuple[Side, Side] = ("front", "back")
UNASSIGNED: Classification = "unassigned"


@dataclass(frozen=True)
class ImageDimensions:
    width: float
    height: float

    def to_dict(self) -> dict[str, Any]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class Frame:
    # source-image pixel space, never display space
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class TextRegion:
    id: str  # e.g. block-3, stable for one pipeline run
    text: str
    frame: Frame
    classification: Classification = UNASSIGNED
    selected: bool = False

    def with_classification(self, classification: Classification) -> "TextRegion":
        # Any classification change clears the transient selection flag.
        return replace(self, classification=classification, selected=False)

    def with_text(self, text: str) -> "TextRegion":
        return replace(self, text=text)

    def with_selected(self, selected: bool) -> "TextRegion":
        return replace(self, selected=selected)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "classification": self.classification,
            "selected": self.selected,
            "frame": self.frame.to_dict(),
        }


@dataclass(frozen=True)
class RecognitionResult:
    image_dimensions: ImageDimensions
    blocks: list[TextRegion]

    def to_dict(self) -> dict[str, Any]:
        return {
            "imageDimensions": self.image_dimensions.to_dict(),
            "blocks": [b.to_dict() for b in self.blocks],
        }


@dataclass(frozen=True)
class CardDraft:
    front: str
    back: str
    image_uri: str | None
    region_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "front": self.front,
            "back": self.back,
            "image_uri": self.image_uri,
            "region_ids": list(self.region_ids),
        }
