from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .utils import append_jsonl, ensure_dir, utc_now_iso, write_json


@dataclass
class SessionPaths:
    session_dir: Path
    stage_ocr_dir: Path
    preview_dir: Path
    cards_json: Path
    notices_jsonl: Path
    errors_jsonl: Path


def session_paths(session_dir: str | Path) -> SessionPaths:
    d = Path(session_dir)
    return SessionPaths(
        session_dir=d,
        stage_ocr_dir=d / "stage" / "ocr",
        preview_dir=d / "preview",
        cards_json=d / "cards.json",
        notices_jsonl=d / "notices.jsonl",
        errors_jsonl=d / "errors.jsonl",
    )


def create_session_dirs(workspace: str | Path, session_id: str) -> SessionPaths:
    """Create session directories under <workspace>/sessions/<session_id>."""
    paths = session_paths(Path(workspace) / "sessions" / session_id)
    for p in [paths.stage_ocr_dir, paths.preview_dir]:
        ensure_dir(p)
    return paths


def new_session_id(use_timeline: bool = True) -> str:
    """Generate a new session ID.

    Timeline format: YYYY-MM-DD/HH-MM-SS__<shortid>; otherwise a plain UUID.
    """
    if not use_timeline:
        return str(uuid.uuid4())

    now = datetime.now(timezone.utc)
    date_part = now.strftime("%Y-%m-%d")
    time_part = now.strftime("%H-%M-%S")
    short_id = uuid.uuid4().hex[:8]
    return f"{date_part}/{time_part}__{short_id}"


def init_session_outputs(paths: SessionPaths) -> None:
    # Always create output files, even if empty.
    write_json(paths.cards_json, {"created_at": utc_now_iso(), "cards": []})
    for p in (paths.notices_jsonl, paths.errors_jsonl):
        p.parent.mkdir(parents=True, exist_ok=True)
        p.touch(exist_ok=True)


def record_error(paths: SessionPaths | None, *, stage: str, message: str, run: int | None = None) -> None:
    if paths is None:
        return
    entry: dict[str, Any] = {"at": utc_now_iso(), "stage": stage, "message": message}
    if run is not None:
        entry["run"] = run
    try:
        append_jsonl(paths.errors_jsonl, entry)
    except OSError:
        # Journaling must never break the pipeline.
        pass


def record_notice(paths: SessionPaths | None, *, kind: str, title: str, actions: list[str]) -> None:
    if paths is None:
        return
    try:
        append_jsonl(
            paths.notices_jsonl,
            {"at": utc_now_iso(), "kind": kind, "title": title, "actions": actions},
        )
    except OSError:
        pass
