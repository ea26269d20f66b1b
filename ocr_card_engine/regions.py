"""Region store and the selection/classification engine.

Selection and classification are independent: any number of regions can be
selected, then committed to one side in a single step. Committing, and
resetting, always clears selection for the affected regions.

Region order is the recognizer order and is never re-sorted.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from .types import SIDES, UNASSIGNED, Side, TextRegion


def _check_side(side: str) -> None:
    if side not in SIDES:
        raise ValueError(f"side must be one of {SIDES}, got {side!r}")


@dataclass(frozen=True)
class RegionCounts:
    front: int = 0
    back: int = 0
    selected: int = 0


@dataclass
class RegionStore:
    regions: list[TextRegion] = field(default_factory=list)
    selected_ids: list[str] = field(default_factory=list)  # ordered set

    def load(self, blocks: list[TextRegion]) -> None:
        """Replace the store with freshly recognized regions."""
        seen: set[str] = set()
        for b in blocks:
            if b.id in seen:
                raise ValueError(f"duplicate region id: {b.id}")
            seen.add(b.id)
        self.regions = [TextRegion(id=b.id, text=b.text, frame=b.frame) for b in blocks]
        self.selected_ids = []

    def clear(self) -> None:
        self.regions = []
        self.selected_ids = []

    def get(self, region_id: str) -> TextRegion | None:
        for r in self.regions:
            if r.id == region_id:
                return r
        return None

    def is_selected(self, region_id: str) -> bool:
        return region_id in self.selected_ids

    def toggle_select(self, region_id: str) -> None:
        """Add or remove `region_id` from the selection. Unknown ids are ignored."""
        if self.get(region_id) is None:
            return
        if region_id in self.selected_ids:
            self.selected_ids = [i for i in self.selected_ids if i != region_id]
            flag = False
        else:
            self.selected_ids = [*self.selected_ids, region_id]
            flag = True
        self.regions = [r.with_selected(flag) if r.id == region_id else r for r in self.regions]

    def assign_selected_to(self, side: Side) -> list[str]:
        """Classify every selected region as `side`; returns the affected ids."""
        _check_side(side)
        if not self.selected_ids:
            return []
        chosen = set(self.selected_ids)
        self.regions = [r.with_classification(side) if r.id in chosen else r for r in self.regions]
        self.selected_ids = []
        return [r.id for r in self.regions if r.id in chosen]

    def reset_all(self) -> None:
        self.regions = [r.with_classification(UNASSIGNED) for r in self.regions]
        self.selected_ids = []

    def regions_for(self, side: Side) -> list[TextRegion]:
        return [r for r in self.regions if r.classification == side]

    def text_for(self, side: Side) -> str:
        _check_side(side)
        return "\n".join(r.text for r in self.regions_for(side))

    def replace_texts(self, updated: dict[str, str]) -> None:
        """Set new text on regions by id, keeping their position in the store."""
        self.regions = [r.with_text(updated[r.id]) if r.id in updated else r for r in self.regions]

    def counts(self) -> RegionCounts:
        return RegionCounts(
            front=len(self.regions_for("front")),
            back=len(self.regions_for("back")),
            selected=len(self.selected_ids),
        )

    @property
    def ready_to_finalize(self) -> bool:
        return bool(self.text_for("front")) and bool(self.text_for("back"))
