from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable

from PIL import Image

from .acquisition import FileAcquisitionSource
from .cards import JsonCardSink, finalize_card
from .config import EngineConfig, load_config
from .job import SessionPaths, create_session_dirs, init_session_outputs, new_session_id
from .notices import ConsoleNoticeSurface
from .ocr import EasyOCRGateway, JsonFixtureGateway, RecognitionGateway, read_image_dimensions
from .overlay import RenderedBounds, contain_bounds, fit_preview_size, overlay_boxes
from .regions import RegionStore
from .render import render_overlay, save_preview
from .session import OCRSession
from .strings import load_strings
from .types import SIDES

HELP = """commands:
  list                      show regions
  select <id> [<id> ...]    toggle selection
  front | back              assign selected regions
  reset                     unassign everything
  edit front|back           edit one side (finish with a single '.', ':cancel' aborts)
  show                      front/back text and counts
  preview [WIDTH]           write an overlay preview PNG
  create                    create a card from front/back
  retake                    discard this image and start over
  quit"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ocr_card_engine")
    sub = p.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Interactive image -> flashcard session")
    run.add_argument("--image", default=None, help="Image path (asked for interactively when omitted)")
    run.add_argument("--mocked-ocr", default=None, help="Recorded recognizer JSON to replay instead of OCR")
    run.add_argument("--workspace", default="./workspace", help="Workspace root")
    run.add_argument("--config", default=str(Path("config") / "default.json"), help="Config path")
    run.add_argument("--lang", default=None, help="OCR language(s), comma separated (overrides config)")

    preview = sub.add_parser("preview", help="Render region overlays for an image")
    preview.add_argument("--image", required=True, help="Image path")
    preview.add_argument("--mocked-ocr", default=None, help="Recorded recognizer JSON to replay instead of OCR")
    preview.add_argument("--out", required=True, help="Output PNG path")
    preview.add_argument("--width", type=float, default=800.0, help="Available preview width")
    preview.add_argument("--max-height", type=float, default=1000.0, help="Maximum preview height")
    preview.add_argument("--contain", action="store_true", help="Letterbox into WIDTH x MAX_HEIGHT")
    preview.add_argument("--config", default=str(Path("config") / "default.json"), help="Config path")

    return p


def make_gateway(cfg: EngineConfig, *, mocked_ocr: str | None, paths: SessionPaths | None, lang: str | None = None) -> RecognitionGateway:
    rc = cfg.recognizer
    tolerance = float(rc.get("normalize_tolerance", 0.1))
    if mocked_ocr:
        return JsonFixtureGateway(fixture_path=mocked_ocr, normalize_tolerance=tolerance, paths=paths)
    return EasyOCRGateway(
        lang=lang or str(rc.get("lang", "en")),
        engine=str(rc.get("engine", "auto")),
        preprocess=bool(rc.get("preprocess", False)),
        normalize_tolerance=tolerance,
        paths=paths,
    )


def _print_regions(session: OCRSession, write: Callable[[str], None]) -> None:
    if not session.state.regions:
        write("(no regions)")
        return
    for r in session.state.regions:
        mark = "*" if session.state.store.is_selected(r.id) else " "
        write(f"{mark} {r.id:<10} {r.classification:<10} {r.text}")


def _write_preview(session: OCRSession, cfg: EngineConfig, width: float, out: Path) -> Path | None:
    uri = session.state.image_uri
    dims = session.state.image_dimensions
    if uri is None or dims.width == 0:
        return None
    w, h = fit_preview_size(dims, width, width * 4)
    rendered = RenderedBounds(width=w, height=h)
    with Image.open(uri) as im:
        img = render_overlay(
            im,
            session.overlay_boxes(rendered),
            canvas_size=(round(w), round(h)),
            rendered=rendered,
            preview_cfg=cfg.preview,
        )
    return save_preview(img, out)


def _read_edit_buffer(read: Callable[[str], str]) -> str | None:
    lines: list[str] = []
    while True:
        try:
            line = read("")
        except EOFError:
            return None
        if line == ".":
            return "\n".join(lines)
        if line.strip() == ":cancel":
            return None
        lines.append(line)


def cmd_run(
    args: argparse.Namespace,
    *,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> int:
    cfg = load_config(args.config)
    session_id = new_session_id()
    paths = create_session_dirs(args.workspace, session_id)
    init_session_outputs(paths)

    strings = load_strings(str(cfg.strings.get("locale", "en")), cfg.strings.get("path"))
    cancelled = {"value": False}

    def on_cancel() -> None:
        cancelled["value"] = True

    session = OCRSession(
        gateway=make_gateway(cfg, mocked_ocr=args.mocked_ocr, paths=paths, lang=args.lang),
        acquisition=FileAcquisitionSource(args.image, read=read),
        notices=ConsoleNoticeSurface(read=read, write=write),
        strings=strings,
        on_cancel=on_cancel,
        paths=paths,
        acquisition_cfg=cfg.acquisition,
    )
    sink = JsonCardSink(path=paths.cards_json)
    write(str(paths.session_dir))

    session.prompt_image_source()
    preview_n = 0
    while not cancelled["value"]:
        try:
            raw = read("ocr> ").strip()
        except EOFError:
            break
        if not raw:
            continue
        cmd, *rest = raw.split()
        cmd = cmd.lower()

        if cmd in ("quit", "exit", "q"):
            break
        elif cmd == "help":
            write(HELP)
        elif cmd == "list":
            _print_regions(session, write)
        elif cmd == "select":
            for region_id in rest:
                session.toggle_select(region_id)
            _print_regions(session, write)
        elif cmd in SIDES:
            moved = session.assign_selected_to(cmd)  # type: ignore[arg-type]
            write(f"assigned={len(moved)} side={cmd}")
        elif cmd == "reset":
            session.reset_all()
        elif cmd == "edit" and rest and rest[0] in SIDES:
            session.start_editing(rest[0])  # type: ignore[arg-type]
            write(session.state.edited_text)
            buffer = _read_edit_buffer(read)
            if buffer is None:
                session.cancel_editing()
            else:
                session.set_edited_text(buffer)
                session.save_edited_text()
        elif cmd == "show":
            c = session.counts()
            write(f"front={c.front} back={c.back} selected={c.selected} ready={session.ready_to_finalize}")
            write(f"[front]\n{session.front_text}\n[back]\n{session.back_text}")
        elif cmd == "preview":
            width = float(rest[0]) if rest else 800.0
            preview_n += 1
            out = _write_preview(session, cfg, width, paths.preview_dir / f"preview_{preview_n:03d}.png")
            write(str(out) if out else "no image")
        elif cmd == "create":
            draft = finalize_card(session, sink)
            if draft is not None:
                write(f"created front={draft.front!r} back={draft.back!r}")
        elif cmd == "retake":
            session.retake_image()
        else:
            write(HELP)

    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    gateway = make_gateway(cfg, mocked_ocr=args.mocked_ocr, paths=None)
    try:
        read_image_dimensions(args.image)
        result = gateway.recognize_text(args.image)
    except Exception as e:
        print(f"preview_failed: {e}")
        return 1

    store = RegionStore()
    store.load(result.blocks)
    dims = result.image_dimensions
    if args.contain:
        canvas = (round(args.width), round(args.max_height))
        rendered = contain_bounds(dims, args.width, args.max_height)
    else:
        w, h = fit_preview_size(dims, args.width, args.max_height)
        canvas = (round(w), round(h))
        rendered = RenderedBounds(width=w, height=h)
    if rendered is None:
        print("preview_failed: empty image")
        return 1

    boxes = overlay_boxes(store.regions, dims, rendered)
    with Image.open(args.image) as im:
        out = save_preview(render_overlay(im, boxes, canvas_size=canvas, rendered=rendered, preview_cfg=cfg.preview), args.out)
    print(f"regions={len(boxes)} out={out}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        return cmd_run(args)

    if args.command == "preview":
        return cmd_preview(args)

    raise SystemExit(2)


if __name__ == "__main__":
    raise SystemExit(main())
