"""CLI: overlay preview and a scripted interactive session."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from PIL import Image

from ocr_card_engine.cli import build_parser, cmd_run, main
from ocr_card_engine.overlay import RenderedBounds, overlay_boxes
from ocr_card_engine.render import render_overlay
from ocr_card_engine.types import ImageDimensions
from ocr_card_engine.utils import load_json

from conftest import make_region


@pytest.fixture
def image_and_fixture(workspace_dir: Path) -> tuple[Path, Path]:
    img = workspace_dir / "card.png"
    Image.new("RGB", (200, 100), color=(255, 255, 255)).save(img)
    fx = workspace_dir / "fx.json"
    fx.write_text(
        json.dumps(
            {
                "imageDimensions": {"width": 200, "height": 100},
                "blocks": [
                    {"text": "apple", "frame": {"x": 10, "y": 10, "width": 60, "height": 20}},
                    {"text": "pomme", "frame": {"x": 10, "y": 60, "width": 180, "height": 30}},
                ],
            }
        ),
        encoding="utf-8",
    )
    return img, fx


class TestRender:
    def test_render_colors_front_region(self):
        img = Image.new("RGB", (100, 100), color=(255, 255, 255))
        region = make_region(0, "A", x=10, y=10, w=40, h=40).with_classification("front")
        boxes = overlay_boxes([region], ImageDimensions(width=100, height=100), RenderedBounds(width=100, height=100))
        out = render_overlay(img, boxes)
        r, g, b = out.getpixel((30, 30))
        assert g > r and g > b
        assert out.getpixel((80, 80)) == (255, 255, 255)


class TestPreviewCommand:
    def test_preview_writes_png(self, workspace_dir, image_and_fixture, capsys):
        img, fx = image_and_fixture
        out = workspace_dir / "out" / "preview.png"
        rc = main(["preview", "--image", str(img), "--mocked-ocr", str(fx), "--out", str(out), "--width", "400"])
        assert rc == 0
        assert out.exists()
        with Image.open(out) as im:
            assert im.size == (400, 200)
        assert "regions=2" in capsys.readouterr().out

    def test_preview_contain_letterboxes(self, workspace_dir, image_and_fixture):
        img, fx = image_and_fixture
        out = workspace_dir / "preview.png"
        rc = main(
            ["preview", "--image", str(img), "--mocked-ocr", str(fx), "--out", str(out), "--width", "300", "--max-height", "300", "--contain"]
        )
        assert rc == 0
        with Image.open(out) as im:
            assert im.size == (300, 300)

    def test_preview_failure_returns_1(self, workspace_dir, image_and_fixture):
        _, fx = image_and_fixture
        rc = main(["preview", "--image", str(workspace_dir / "missing.png"), "--mocked-ocr", str(fx), "--out", str(workspace_dir / "x.png")])
        assert rc == 1


class TestRunCommand:
    def test_scripted_session_creates_card(self, workspace_dir, image_and_fixture):
        img, fx = image_and_fixture
        args = build_parser().parse_args(
            ["run", "--image", str(img), "--mocked-ocr", str(fx), "--workspace", str(workspace_dir / "ws"), "--config", str(workspace_dir / "none.json")]
        )
        script = iter(
            [
                "2",  # gallery
                "select block-0",
                "front",
                "select block-1",
                "back",
                "edit front",
                "APPLE",
                ".",
                "create",
                "1",  # OK on the success notice
                "quit",
            ]
        )
        output: list[str] = []
        rc = cmd_run(args, read=lambda prompt: next(script), write=output.append)
        assert rc == 0

        session_dir = Path(output[0])
        cards = load_json(session_dir / "cards.json")["cards"]
        assert [(c["front"], c["back"]) for c in cards] == [("APPLE", "pomme")]

    def test_cancel_at_source_prompt_ends_session(self, workspace_dir, image_and_fixture):
        img, fx = image_and_fixture
        args = build_parser().parse_args(
            ["run", "--image", str(img), "--mocked-ocr", str(fx), "--workspace", str(workspace_dir / "ws"), "--config", str(workspace_dir / "none.json")]
        )
        script = iter(["3"])
        rc = cmd_run(args, read=lambda prompt: next(script), write=lambda s: None)
        assert rc == 0

    def test_input_ending_inside_edit_cancels_it(self, workspace_dir, image_and_fixture):
        img, fx = image_and_fixture
        args = build_parser().parse_args(
            ["run", "--image", str(img), "--mocked-ocr", str(fx), "--workspace", str(workspace_dir / "ws"), "--config", str(workspace_dir / "none.json")]
        )
        script = iter(["2", "select block-0", "front", "edit front", "APPLE"])

        def read(prompt: str) -> str:
            try:
                return next(script)
            except StopIteration:
                raise EOFError from None

        output: list[str] = []
        rc = cmd_run(args, read=read, write=output.append)
        assert rc == 0
        assert output[-1] == "apple"
