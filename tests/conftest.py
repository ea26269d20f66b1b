from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import Callable

import pytest

from ocr_card_engine.acquisition import AcquisitionResult
from ocr_card_engine.notices import Notice
from ocr_card_engine.session import OCRSession
from ocr_card_engine.types import Frame, ImageDimensions, RecognitionResult, TextRegion


def make_region(i: int, text: str, x: float = 0, y: float = 0, w: float = 10, h: float = 10) -> TextRegion:
    return TextRegion(id=f"block-{i}", text=text, frame=Frame(x=x, y=y, width=w, height=h))


def make_result(*texts: str, width: float = 400, height: float = 300) -> RecognitionResult:
    blocks = [make_region(i, t, x=10, y=10 + 20 * i, w=100, h=15) for i, t in enumerate(texts)]
    return RecognitionResult(image_dimensions=ImageDimensions(width=width, height=height), blocks=blocks)


class RecordingNoticeSurface:
    """Keeps every notice; tests pick actions explicitly."""

    def __init__(self) -> None:
        self.shown: list[Notice] = []

    def show(self, notice: Notice) -> None:
        self.shown.append(notice)

    @property
    def kinds(self) -> list[str]:
        return [n.kind for n in self.shown]

    @property
    def last(self) -> Notice:
        return self.shown[-1]


class FakeAcquisition:
    def __init__(
        self,
        *,
        granted: bool = True,
        result: AcquisitionResult | None = None,
        error: Exception | None = None,
    ) -> None:
        self.granted = granted
        self.result = result or AcquisitionResult(canceled=False, assets=["photo-1.jpg"])
        self.error = error
        self.permission_calls: list[str] = []
        self.acquire_calls: list[str] = []

    def request_permission(self, source: str) -> bool:
        self.permission_calls.append(source)
        return self.granted

    def acquire(self, source: str) -> AcquisitionResult:
        self.acquire_calls.append(source)
        if self.error is not None:
            raise self.error
        return self.result


class FakeGateway:
    def __init__(self, result: RecognitionResult | None = None, *, error: Exception | None = None) -> None:
        self.result = result if result is not None else make_result("A", "B", "C")
        self.error = error
        self.calls: list[str] = []
        self.before_return: Callable[[], None] | None = None

    def recognize_text(self, image_uri: str) -> RecognitionResult:
        self.calls.append(image_uri)
        if self.before_return is not None:
            self.before_return()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def workspace_dir() -> Path:
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def notices() -> RecordingNoticeSurface:
    return RecordingNoticeSurface()


@pytest.fixture
def acquisition() -> FakeAcquisition:
    return FakeAcquisition()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def cancel_calls() -> list[int]:
    return []


@pytest.fixture
def session(gateway, acquisition, notices, cancel_calls) -> OCRSession:
    return OCRSession(
        gateway=gateway,
        acquisition=acquisition,
        notices=notices,
        on_cancel=lambda: cancel_calls.append(1),
    )


@pytest.fixture
def loaded_session(session: OCRSession) -> OCRSession:
    """Session with a recognized image (regions A, B, C)."""
    session.process_image("photo-1.jpg")
    return session
