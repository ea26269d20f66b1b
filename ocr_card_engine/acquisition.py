from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal, Protocol

from .errors import AcquisitionError

ImageSource = Literal["camera", "gallery"]


@dataclass(frozen=True)
class AcquisitionResult:
    canceled: bool
    assets: list[str] = field(default_factory=list)  # image references (uri/path)

    @property
    def first(self) -> str | None:
        # Only one image is processed per pipeline run.
        if self.canceled or not self.assets:
            return None
        return self.assets[0]


class AcquisitionSource(Protocol):
    def request_permission(self, source: ImageSource) -> bool:
        ...

    def acquire(self, source: ImageSource) -> AcquisitionResult:
        ...


class FileAcquisitionSource:
    """Acquire images from the local filesystem.

    Both sources resolve to a file path. When no fixed path is configured the
    user is asked for one; an empty answer counts as a cancellation.
    """

    def __init__(
        self,
        image_path: str | Path | None = None,
        *,
        read: Callable[[str], str] = input,
        permissions: dict[str, bool] | None = None,
    ) -> None:
        self.image_path = None if image_path is None else str(image_path)
        self._read = read
        self._permissions = dict(permissions or {})

    def request_permission(self, source: ImageSource) -> bool:
        return bool(self._permissions.get(source, True))

    def acquire(self, source: ImageSource) -> AcquisitionResult:
        path = self.image_path
        if path is None:
            path = self._read(f"{source} image path (empty to cancel): ").strip()
            if not path:
                return AcquisitionResult(canceled=True)
        p = Path(path)
        if not p.is_file():
            raise AcquisitionError(f"image_not_found: {path}")
        return AcquisitionResult(canceled=False, assets=[str(p)])
