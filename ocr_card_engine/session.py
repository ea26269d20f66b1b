"""Acquisition orchestrator and per-run state.

One `OCRSession` drives one card-creation session. Each pipeline run goes:
source prompt -> permission -> acquisition -> recognition -> region store.
Every failure ends in a notice offered to the user; nothing escapes to the
caller and no retry happens without the user choosing it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from .acquisition import AcquisitionSource, ImageSource
from .config import DEFAULT_ACQUISITION
from .editor import EditState, dropped_line_count, reconcile
from .errors import PermissionDeniedError
from .job import SessionPaths, record_error, record_notice
from .notices import (
    ActionStyle,
    N_ACQUISITION_ERROR,
    N_NO_TEXT,
    N_PERMISSION_DENIED,
    N_RECOGNITION_ERROR,
    N_SOURCE_PROMPT,
    Notice,
    NoticeAction,
    NoticeSurface,
)
from .ocr import RecognitionGateway
from .overlay import OverlayBox, RenderedBounds, overlay_boxes
from .regions import RegionCounts, RegionStore
from .strings import StringTable
from .types import ImageDimensions, Side, TextRegion

EMPTY_DIMENSIONS = ImageDimensions(width=0, height=0)


@dataclass
class PipelineRunState:
    image_uri: str | None = None
    image_dimensions: ImageDimensions = EMPTY_DIMENSIONS
    store: RegionStore = field(default_factory=RegionStore)
    is_processing: bool = False
    editing: EditState | None = None
    generation: int = 0  # bumped on every reset; stale results are dropped

    @property
    def regions(self) -> list[TextRegion]:
        return self.store.regions

    @property
    def selected_ids(self) -> list[str]:
        return self.store.selected_ids

    @property
    def editing_side(self) -> Side | None:
        return self.editing.side if self.editing else None

    @property
    def edited_text(self) -> str:
        return self.editing.buffer if self.editing else ""

    def reset(self) -> None:
        self.image_uri = None
        self.image_dimensions = EMPTY_DIMENSIONS
        self.store.clear()
        self.is_processing = False
        self.editing = None
        self.generation += 1

    def snapshot(self) -> dict[str, Any]:
        return {
            "image_uri": self.image_uri,
            "image_dimensions": self.image_dimensions.to_dict(),
            "regions": [r.to_dict() for r in self.regions],
            "selected_ids": list(self.selected_ids),
            "is_processing": self.is_processing,
            "editing_side": self.editing_side,
            "edited_text": self.edited_text,
        }


class OCRSession:
    def __init__(
        self,
        *,
        gateway: RecognitionGateway,
        acquisition: AcquisitionSource,
        notices: NoticeSurface,
        strings: StringTable | None = None,
        on_cancel: Callable[[], None] | None = None,
        paths: SessionPaths | None = None,
        acquisition_cfg: dict[str, Any] | None = None,
    ) -> None:
        self.gateway = gateway
        self.acquisition = acquisition
        self.notices = notices
        self.strings = strings or StringTable()
        self.on_cancel = on_cancel
        self.paths = paths
        self.acquisition_cfg = dict(DEFAULT_ACQUISITION)
        self.acquisition_cfg.update(acquisition_cfg or {})
        self.state = PipelineRunState()

    # -- notices -----------------------------------------------------------

    def show_notice(self, notice: Notice) -> None:
        record_notice(self.paths, kind=notice.kind, title=notice.title, actions=notice.action_keys)
        self.notices.show(notice)

    def _cancel(self) -> None:
        if self.on_cancel is not None:
            self.on_cancel()

    def _action(
        self,
        key: str,
        label_key: str,
        callback: Callable[[], None] | None,
        style: ActionStyle = "default",
    ) -> NoticeAction:
        return NoticeAction(label=self.strings.t(label_key), callback=callback, style=style, key=key)

    # -- acquisition -------------------------------------------------------

    def prompt_image_source(self) -> None:
        t = self.strings.t
        self.show_notice(
            Notice(
                kind=N_SOURCE_PROMPT,
                title=t("ocr.chooseSource.title"),
                message=t("ocr.chooseSource.message"),
                actions=(
                    self._action("camera", "ocr.camera", self.open_camera),
                    self._action("gallery", "ocr.gallery", self.open_gallery),
                    self._action("cancel", "common.cancel", self._cancel, style="cancel"),
                ),
            )
        )

    def open_camera(self) -> None:
        self._acquire("camera")

    def open_gallery(self) -> None:
        self._acquire("gallery")

    def _permission_denied(self, source: ImageSource) -> None:
        t = self.strings.t
        self.show_notice(
            Notice(
                kind=N_PERMISSION_DENIED,
                title=t("ocr.permission.title"),
                message=t(f"ocr.permission.{source}"),
                actions=(self._action("ok", "common.ok", None),),
            )
        )

    def _acquire(self, source: ImageSource) -> None:
        t = self.strings.t
        try:
            if self.acquisition_cfg.get(f"{source}_requires_permission"):
                if not self.acquisition.request_permission(source):
                    self._permission_denied(source)
                    return
            result = self.acquisition.acquire(source)
        except PermissionDeniedError:
            self._permission_denied(source)
            return
        except Exception as e:
            record_error(self.paths, stage=f"acquire_{source}", message=str(e), run=self.state.generation)
            self.show_notice(
                Notice(
                    kind=N_ACQUISITION_ERROR,
                    title=t("ocr.error.title"),
                    message=t(f"ocr.error.{source}"),
                    actions=(self._action("ok", "common.ok", None),),
                )
            )
            return

        uri = result.first
        if uri is None:
            # user backed out of the picker/camera
            return
        self.process_image(uri)

    def process_image(self, image_uri: str) -> None:
        """Recognize `image_uri` and populate the region store."""
        t = self.strings.t
        run = self.state.generation
        self.state.is_processing = True
        self.state.image_uri = image_uri

        try:
            result = self.gateway.recognize_text(image_uri)
            if run == self.state.generation:
                self.state.store.load(result.blocks)
        except Exception as e:
            if run != self.state.generation:
                record_error(self.paths, stage="ocr", message=f"stale_failure_ignored: {e}", run=run)
                return
            record_error(self.paths, stage="ocr", message=str(e), run=run)
            self.state.reset()
            self.show_notice(
                Notice(
                    kind=N_RECOGNITION_ERROR,
                    title=t("ocr.error.title"),
                    message=t("ocr.error.recognition"),
                    actions=(
                        self._action("retry", "common.retry", self.retake_image),
                        self._action("cancel", "common.cancel", self._cancel, style="cancel"),
                    ),
                )
            )
            return

        if run != self.state.generation:
            record_error(self.paths, stage="ocr", message="late_result_dropped", run=run)
            return

        self.state.image_dimensions = result.image_dimensions
        self.state.editing = None
        self.state.is_processing = False

        if not result.blocks:
            self.show_notice(
                Notice(
                    kind=N_NO_TEXT,
                    title=t("ocr.noText.title"),
                    message=t("ocr.noText.message"),
                    actions=(self._action("retry", "common.retry", self.retake_image),),
                )
            )

    def retake_image(self) -> None:
        self.state.reset()
        self.prompt_image_source()

    # -- selection / classification ----------------------------------------

    def toggle_select(self, region_id: str) -> None:
        self.state.store.toggle_select(region_id)

    def assign_selected_to(self, side: Side) -> list[str]:
        return self.state.store.assign_selected_to(side)

    def assign_to_front(self) -> list[str]:
        return self.assign_selected_to("front")

    def assign_to_back(self) -> list[str]:
        return self.assign_selected_to("back")

    def reset_all(self) -> None:
        self.state.store.reset_all()

    def text_for(self, side: Side) -> str:
        return self.state.store.text_for(side)

    @property
    def front_text(self) -> str:
        return self.text_for("front")

    @property
    def back_text(self) -> str:
        return self.text_for("back")

    @property
    def ready_to_finalize(self) -> bool:
        return self.state.store.ready_to_finalize

    def counts(self) -> RegionCounts:
        return self.state.store.counts()

    # -- editing -----------------------------------------------------------

    def start_editing(self, side: Side) -> None:
        self.state.editing = EditState(side=side, buffer=self.text_for(side))

    def set_edited_text(self, text: str) -> None:
        if self.state.editing is None:
            return
        self.state.editing = EditState(side=self.state.editing.side, buffer=text)

    def cancel_editing(self) -> None:
        self.state.editing = None

    def save_edited_text(self) -> None:
        editing = self.state.editing
        if editing is None:
            return
        side_regions = self.state.store.regions_for(editing.side)
        dropped = dropped_line_count(side_regions, editing.buffer)
        if dropped:
            record_error(self.paths, stage="edit", message=f"extra_lines_dropped: {dropped}", run=self.state.generation)
        self.state.store.replace_texts(reconcile(side_regions, editing.buffer))
        self.state.editing = None

    # -- rendering ---------------------------------------------------------

    def overlay_boxes(self, rendered: RenderedBounds | None) -> list[OverlayBox]:
        return overlay_boxes(self.state.regions, self.state.image_dimensions, rendered, self.state.selected_ids)
