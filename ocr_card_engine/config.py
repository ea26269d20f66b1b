from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .utils import load_json

DEFAULT_RECOGNIZER: dict[str, Any] = {
    "engine": "auto",  # auto, easyocr, paddleocr
    "lang": "en",
    "preprocess": False,
    "normalize_tolerance": 0.1,
}

DEFAULT_ACQUISITION: dict[str, Any] = {
    "camera_requires_permission": True,
    "gallery_requires_permission": False,
}

DEFAULT_PREVIEW: dict[str, Any] = {
    "colors": {
        "selected": "#E67E22",
        "front": "#2ECC71",
        "back": "#3498DB",
        "unassigned": "#000000",
    },
    "fill_alpha": 102,
    "unassigned_fill_alpha": 26,
    "border_width": 2,
    "unassigned_border_width": 1,
}

DEFAULT_STRINGS: dict[str, Any] = {
    "locale": "en",
    "path": None,
}


@dataclass(frozen=True)
class EngineConfig:
    recognizer: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_RECOGNIZER))
    acquisition: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_ACQUISITION))
    preview: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_PREVIEW))
    strings: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_STRINGS))


def _merged(defaults: dict[str, Any], override: Any) -> dict[str, Any]:
    out = dict(defaults)
    if isinstance(override, dict):
        out.update(override)
    return out


def load_config(config_path: str | Path | None) -> EngineConfig:
    """Load config JSON; sections that are missing fall back to defaults."""
    if config_path is None or not Path(config_path).exists():
        return EngineConfig()
    data = load_json(config_path)
    if not isinstance(data, dict):
        raise ValueError(f"config must be a JSON object: {config_path}")
    return EngineConfig(
        recognizer=_merged(DEFAULT_RECOGNIZER, data.get("recognizer")),
        acquisition=_merged(DEFAULT_ACQUISITION, data.get("acquisition")),
        preview=_merged(DEFAULT_PREVIEW, data.get("preview")),
        strings=_merged(DEFAULT_STRINGS, data.get("strings")),
    )
