"""OCR-to-flashcard pipeline.

This package turns one photographed/imported image into a two-sided card:
- recognize text regions (EasyOCR or a recorded fixture)
- let the user select regions and classify them as front/back
- project region geometry onto the rendered preview
- reconcile free-form edits back onto the classified regions

Card storage formats beyond a session-local cards.json are out of scope.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
