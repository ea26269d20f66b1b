from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def ensure_dir(path: str | Path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def write_json(path: str | Path, data: Any) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def append_jsonl(path: str | Path, obj: dict[str, Any]) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(obj, ensure_ascii=False) + "\n")


def load_json(path: str | Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_jsonl(path: str | Path) -> list[dict[str, Any]]:
    p = Path(path)
    if not p.exists():
        return []
    out: list[dict[str, Any]] = []
    with open(p, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                out.append(json.loads(line))
    return out


def as_float(v: Any, default: float = 0.0) -> float:
    """Coerce recognizer numbers; None/missing/garbage become `default`."""
    try:
        if v is None:
            return default
        return float(v)
    except (TypeError, ValueError):
        return default


def parse_hex_color(value: str, alpha: int | None = None) -> tuple[int, ...]:
    """'#RRGGBB' or '#RRGGBBAA' -> RGB(A) tuple."""
    s = value.strip().lstrip("#")
    if len(s) not in (6, 8):
        raise ValueError(f"invalid_color: {value}")
    parts = [int(s[i : i + 2], 16) for i in range(0, len(s), 2)]
    if alpha is not None:
        parts = parts[:3] + [alpha]
    return tuple(parts)
