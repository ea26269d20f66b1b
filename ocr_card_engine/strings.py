"""Localized user-facing strings.

The table is created once (built-in English, optionally overlaid by a locale
JSON file) and is read-only afterwards. Unknown keys resolve to the key.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from .utils import load_json

EN_STRINGS: dict[str, str] = {
    "ocr.chooseSource.title": "Choose Image Source",
    "ocr.chooseSource.message": "Select where to get the image from",
    "ocr.camera": "Camera",
    "ocr.gallery": "Gallery",
    "common.cancel": "Cancel",
    "common.retry": "Retry",
    "common.ok": "OK",
    "ocr.permission.title": "Permission Required",
    "ocr.permission.camera": "Camera permission is required to take photos.",
    "ocr.permission.gallery": "Photo library permission is required to pick images.",
    "ocr.noText.title": "No Text Detected",
    "ocr.noText.message": (
        "No text was found in the image. Tips:\n"
        "• Ensure good lighting\n"
        "• Hold camera steady\n"
        "• Use high contrast text\n"
        "• Avoid blurry images"
    ),
    "ocr.error.title": "Error",
    "ocr.error.recognition": "Failed to recognize text from image. Please try again with a clearer photo.",
    "ocr.error.camera": "Failed to open camera",
    "ocr.error.gallery": "Failed to open gallery",
    "card.notReady.title": "Error",
    "card.notReady.message": "Please assign text to both Front and Back",
    "card.created.title": "Success",
    "card.created.message": "Card created successfully! You can continue creating more cards from this image.",
    "card.failed.title": "Error",
    "card.failed.message": "Failed to create card",
}


@dataclass(frozen=True)
class StringTable:
    locale: str = "en"
    entries: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(dict(EN_STRINGS)))

    def t(self, key: str) -> str:
        return self.entries.get(key, key)

    __call__ = t


def load_strings(locale: str = "en", path: str | Path | None = None) -> StringTable:
    """Build the table for `locale`.

    `path` may point at a JSON object of key -> text, or at a directory
    holding `<locale>.json`. Missing files leave the English defaults.
    """
    entries = dict(EN_STRINGS)
    if path is not None:
        p = Path(path)
        if p.is_dir():
            p = p / f"{locale}.json"
        if p.is_file():
            data: Any = load_json(p)
            if not isinstance(data, dict):
                raise ValueError(f"strings file must be a JSON object: {p}")
            entries.update({str(k): str(v) for k, v in data.items()})
    return StringTable(locale=locale, entries=MappingProxyType(entries))
