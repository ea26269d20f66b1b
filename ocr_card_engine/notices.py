from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Literal, Protocol

ActionStyle = Literal["default", "cancel"]

# Notice kinds raised by the pipeline.
N_SOURCE_PROMPT = "source_prompt"
N_PERMISSION_DENIED = "permission_denied"
N_NO_TEXT = "no_text"
N_RECOGNITION_ERROR = "recognition_error"
N_ACQUISITION_ERROR = "acquisition_error"
N_NOT_READY = "not_ready"
N_CARD_CREATED = "card_created"
N_CARD_FAILED = "card_failed"


@dataclass(frozen=True)
class NoticeAction:
    label: str
    callback: Callable[[], None] | None = None
    style: ActionStyle = "default"
    key: str = ""  # stable id (camera, gallery, retry, cancel, ok)

    def invoke(self) -> None:
        if self.callback is not None:
            self.callback()


@dataclass(frozen=True)
class Notice:
    kind: str
    title: str
    message: str
    actions: tuple[NoticeAction, ...] = field(default_factory=tuple)

    def action(self, key: str) -> NoticeAction:
        for a in self.actions:
            if a.key == key:
                return a
        raise KeyError(f"notice {self.kind} has no action {key!r}")

    @property
    def action_keys(self) -> list[str]:
        return [a.key for a in self.actions]


class NoticeSurface(Protocol):
    def show(self, notice: Notice) -> None:
        ...


class ConsoleNoticeSurface:
    """Prints a notice and lets the user pick one of its actions.

    Notices without actions behave like a dismissable alert.
    """

    def __init__(
        self,
        *,
        read: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ) -> None:
        self._read = read
        self._write = write

    def show(self, notice: Notice) -> None:
        self._write(f"[{notice.title}]")
        if notice.message:
            self._write(notice.message)
        if not notice.actions:
            return

        for i, a in enumerate(notice.actions, start=1):
            self._write(f"  {i}) {a.label}")

        while True:
            raw = self._read("> ").strip()
            if raw.isdigit() and 1 <= int(raw) <= len(notice.actions):
                chosen = notice.actions[int(raw) - 1]
                break
            matches = [a for a in notice.actions if a.key == raw.lower() or a.label.lower() == raw.lower()]
            if matches:
                chosen = matches[0]
                break
            self._write(f"choose 1-{len(notice.actions)}")

        chosen.invoke()
