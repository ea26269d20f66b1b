from __future__ import annotations


class OCRCardError(Exception):
    """Base class for errors raised by pipeline collaborators."""


class RecognitionError(OCRCardError):
    """The recognizer could not produce a result for an image."""


class PermissionDeniedError(OCRCardError):
    """A platform permission needed for acquisition was refused."""


class AcquisitionError(OCRCardError):
    """The acquisition mechanism failed (not a user cancellation)."""


class CardSinkError(OCRCardError):
    """The card-creation collaborator rejected a finished card."""
