"""Recognition gateway.

A gateway turns one image reference into a `RecognitionResult`: the natural
image size plus the recognized text regions with frames in image pixel space.
Engines report boxes in several shapes; they are all converted to `Frame`
here and, when the engine works in a different coordinate space than the
decoded image, rescaled once before anything is stored.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import cv2
import numpy as np
from PIL import Image, ImageEnhance, UnidentifiedImageError

from .errors import RecognitionError
from .job import SessionPaths, record_error
from .types import Frame, ImageDimensions, RecognitionResult, TextRegion
from .utils import as_float, load_json, write_json


class RecognitionGateway(Protocol):
    def recognize_text(self, image_uri: str) -> RecognitionResult:
        ...


def read_image_dimensions(image_uri: str) -> ImageDimensions:
    try:
        with Image.open(image_uri) as im:
            w, h = im.size
    except (OSError, UnidentifiedImageError) as e:
        raise RecognitionError(f"Failed to get image dimensions: {e}") from e
    if not w:
        raise RecognitionError("Failed to get image dimensions")
    return ImageDimensions(width=float(w), height=float(h))


def _vertices_to_frame(vertices: list[Any]) -> Frame:
    xs: list[float] = []
    ys: list[float] = []
    for v in vertices:
        if isinstance(v, dict):
            xs.append(as_float(v.get("x")))
            ys.append(as_float(v.get("y")))
        else:
            xs.append(as_float(v[0]))
            ys.append(as_float(v[1]))
    x0, y0, x1, y1 = min(xs), min(ys), max(xs), max(ys)
    return Frame(x=x0, y=y0, width=x1 - x0, height=y1 - y0)


def frame_from_raw(raw: Any) -> Frame | None:
    """Convert an engine box to a top-left `Frame`.

    Supported shapes:
    - {"boundingCenterX", "boundingCenterY", "width", "height"}
    - {"left", "top", "width", "height"}
    - {"x", "y", "width", "height"}
    - {"vertices": [[x, y], ...]} or a bare list of vertices

    Returns None for unknown shapes and zero-size boxes.
    """
    if isinstance(raw, (list, tuple)):
        raw = {"vertices": list(raw)}
    if not isinstance(raw, dict):
        return None

    if "boundingCenterX" in raw and "boundingCenterY" in raw:
        width = as_float(raw.get("width"))
        height = as_float(raw.get("height"))
        x = as_float(raw.get("boundingCenterX")) - width / 2
        y = as_float(raw.get("boundingCenterY")) - height / 2
        frame = Frame(x=x, y=y, width=width, height=height)
    elif "left" in raw and "top" in raw:
        frame = Frame(
            x=as_float(raw.get("left")),
            y=as_float(raw.get("top")),
            width=as_float(raw.get("width")),
            height=as_float(raw.get("height")),
        )
    elif "x" in raw and "y" in raw:
        frame = Frame(
            x=as_float(raw.get("x")),
            y=as_float(raw.get("y")),
            width=as_float(raw.get("width")),
            height=as_float(raw.get("height")),
        )
    elif raw.get("vertices"):
        try:
            frame = _vertices_to_frame(raw["vertices"])
        except (TypeError, IndexError, KeyError):
            return None
    else:
        return None

    if frame.width == 0 or frame.height == 0:
        return None
    return frame


def blocks_from_raw(raw_blocks: list[Any], *, paths: SessionPaths | None = None) -> list[TextRegion]:
    """Build unassigned, unselected regions in recognizer order.

    Ids are `block-<n>` with n the raw index, so skipped blocks leave gaps.
    """
    out: list[TextRegion] = []
    for i, b in enumerate(raw_blocks):
        if not isinstance(b, dict) or b.get("frame") is None:
            record_error(paths, stage="ocr", message=f"block_{i}: missing_frame")
            continue
        frame = frame_from_raw(b["frame"])
        if frame is None:
            record_error(paths, stage="ocr", message=f"block_{i}: invalid_frame")
            continue
        text = str(b.get("text") or "").strip()
        if not text:
            record_error(paths, stage="ocr", message=f"block_{i}: empty_text")
            continue
        out.append(TextRegion(id=f"block-{i}", text=text, frame=frame))
    return out


def normalize_frames(
    blocks: list[TextRegion],
    dims: ImageDimensions,
    *,
    tolerance: float = 0.1,
) -> list[TextRegion]:
    """Rescale frames into image pixel space when the engine used another space.

    The engine space is estimated from the furthest right/bottom edges. If
    either ratio to the image size is off by more than `tolerance`, every
    frame is scaled by (image / engine) on each axis.
    """
    if not blocks or dims.width == 0 or dims.height == 0:
        return blocks

    max_x = max(b.frame.right for b in blocks)
    max_y = max(b.frame.bottom for b in blocks)
    if max_x <= 0 or max_y <= 0:
        return blocks

    ratio_x = dims.width / max_x
    ratio_y = dims.height / max_y
    if abs(ratio_x - 1) <= tolerance and abs(ratio_y - 1) <= tolerance:
        return blocks

    out: list[TextRegion] = []
    for b in blocks:
        f = b.frame
        scaled = Frame(x=f.x * ratio_x, y=f.y * ratio_y, width=f.width * ratio_x, height=f.height * ratio_y)
        out.append(TextRegion(id=b.id, text=b.text, frame=scaled, classification=b.classification, selected=b.selected))
    return out


def _raw_output_path(paths: SessionPaths | None, image_uri: str) -> Path | None:
    if paths is None:
        return None
    return paths.stage_ocr_dir / f"{Path(image_uri).stem or 'image'}_raw.json"


@dataclass
class EasyOCRGateway:
    """Recognize text with EasyOCR (PaddleOCR as `auto` fallback)."""

    lang: str = "en"
    engine: str = "auto"  # auto, easyocr, paddleocr
    preprocess: bool = False
    normalize_tolerance: float = 0.1
    paths: SessionPaths | None = None
    _ocr: Any | None = None

    def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """Binarize, denoise and sharpen; geometry is unchanged."""
        img_array = np.array(image.convert("RGB"))
        gray = cv2.cvtColor(img_array, cv2.COLOR_RGB2GRAY)
        binary = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 11, 2)
        denoised = cv2.fastNlMeansDenoising(binary, None, 10, 7, 21)
        kernel = np.array([[-1, -1, -1], [-1, 9, -1], [-1, -1, -1]])
        sharpened = cv2.filter2D(denoised, -1, kernel)
        processed = ImageEnhance.Contrast(Image.fromarray(sharpened)).enhance(1.5)
        return processed.convert("RGB")

    def recognize_text(self, image_uri: str) -> RecognitionResult:
        dims = read_image_dimensions(image_uri)
        try:
            with Image.open(image_uri) as im:
                image = im.convert("RGB")
            if self.preprocess:
                image = self._preprocess_image(image)
            raw_blocks = self._extract_with_engine(image)
        except RecognitionError:
            raise
        except Exception as e:
            record_error(self.paths, stage="ocr", message=str(e))
            raise RecognitionError(f"recognition_failed: {e}") from e

        raw_path = _raw_output_path(self.paths, image_uri)
        if raw_path is not None:
            write_json(raw_path, {"image": image_uri, "imageDimensions": dims.to_dict(), "blocks": raw_blocks})

        blocks = blocks_from_raw(raw_blocks, paths=self.paths)
        blocks = normalize_frames(blocks, dims, tolerance=self.normalize_tolerance)
        return RecognitionResult(image_dimensions=dims, blocks=blocks)

    def _extract_with_engine(self, image: Image.Image) -> list[dict[str, Any]]:
        if self.engine == "auto":
            try:
                return self._extract_easyocr(image)
            except ImportError:
                return self._extract_paddleocr(image)
        if self.engine == "easyocr":
            return self._extract_easyocr(image)
        if self.engine == "paddleocr":
            return self._extract_paddleocr(image)
        raise RecognitionError(f"unknown_engine: {self.engine}")

    def _extract_easyocr(self, image: Image.Image) -> list[dict[str, Any]]:
        import easyocr

        if self._ocr is None or not isinstance(self._ocr, easyocr.Reader):
            langs = [s.strip() for s in self.lang.split(",") if s.strip()]
            self._ocr = easyocr.Reader(langs, gpu=False)

        results = self._ocr.readtext(np.array(image))
        # bbox: [[x1,y1], [x2,y2], [x3,y3], [x4,y4]]
        return [
            {"text": text, "confidence": float(conf), "frame": {"vertices": [[float(x), float(y)] for x, y in bbox]}}
            for (bbox, text, conf) in results
        ]

    def _extract_paddleocr(self, image: Image.Image) -> list[dict[str, Any]]:
        from paddleocr import PaddleOCR

        if self._ocr is None or not hasattr(self._ocr, "ocr"):
            self._ocr = PaddleOCR(use_angle_cls=True, lang=self.lang, show_log=False)

        arr = np.array(image)
        try:
            result = self._ocr.ocr(arr, cls=True)
        except TypeError:
            result = self._ocr.ocr(arr)

        blocks: list[dict[str, Any]] = []
        for line in result or []:
            for item in line or []:
                poly, (text, score) = item
                blocks.append(
                    {"text": text, "confidence": float(score), "frame": {"vertices": [[float(x), float(y)] for x, y in poly]}}
                )
        return blocks


@dataclass
class JsonFixtureGateway:
    """Replay a recorded recognizer response.

    Fixture format:
    {"imageDimensions": {"width": W, "height": H},   # optional
     "blocks": [{"text": "...", "frame": {...}}, ...]}

    When dimensions are absent they are read from the image itself.
    """

    fixture_path: str | Path
    normalize_tolerance: float = 0.1
    paths: SessionPaths | None = None

    def recognize_text(self, image_uri: str) -> RecognitionResult:
        try:
            data = load_json(self.fixture_path)
        except (OSError, ValueError) as e:
            record_error(self.paths, stage="ocr", message=f"fixture_unreadable: {e}")
            raise RecognitionError(f"fixture_unreadable: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("blocks"), list):
            raise RecognitionError("fixture must be an object with list field: blocks")

        raw_dims = data.get("imageDimensions")
        if isinstance(raw_dims, dict):
            dims = ImageDimensions(width=as_float(raw_dims.get("width")), height=as_float(raw_dims.get("height")))
            if dims.width == 0:
                raise RecognitionError("Failed to get image dimensions")
        else:
            dims = read_image_dimensions(image_uri)

        raw_path = _raw_output_path(self.paths, image_uri)
        if raw_path is not None:
            write_json(raw_path, {"image": image_uri, "imageDimensions": dims.to_dict(), "blocks": data["blocks"]})

        blocks = blocks_from_raw(data["blocks"], paths=self.paths)
        blocks = normalize_frames(blocks, dims, tolerance=self.normalize_tolerance)
        return RecognitionResult(image_dimensions=dims, blocks=blocks)
