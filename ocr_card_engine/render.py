from __future__ import annotations

from pathlib import Path
from typing import Any

from PIL import Image, ImageDraw

from .config import DEFAULT_PREVIEW
from .overlay import H_UNASSIGNED, OverlayBox, RenderedBounds, highlight_for
from .utils import parse_hex_color


def render_overlay(
    image: Image.Image,
    boxes: list[OverlayBox],
    *,
    canvas_size: tuple[int, int] | None = None,
    rendered: RenderedBounds | None = None,
    preview_cfg: dict[str, Any] | None = None,
) -> Image.Image:
    """Draw region highlights over the image as the preview would show them.

    The image is resized into `rendered` (defaults to the full canvas) on a
    dark canvas; box geometry must come from the same `rendered` bounds.
    """
    cfg = dict(DEFAULT_PREVIEW)
    cfg.update(preview_cfg or {})
    colors = dict(DEFAULT_PREVIEW["colors"])
    colors.update(cfg.get("colors") or {})

    cw, ch = canvas_size or image.size
    if rendered is None:
        rendered = RenderedBounds(width=cw, height=ch)

    canvas = Image.new("RGBA", (int(cw), int(ch)), (51, 51, 51, 255))
    drawn = image.convert("RGBA").resize((max(1, round(rendered.width)), max(1, round(rendered.height))))
    canvas.paste(drawn, (round(rendered.offset_x), round(rendered.offset_y)))

    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    for box in boxes:
        kind = highlight_for(box)
        if kind == H_UNASSIGNED:
            fill = parse_hex_color(colors[kind], alpha=int(cfg["unassigned_fill_alpha"]))
            outline = (255, 255, 255, 128)
            width = int(cfg["unassigned_border_width"])
        else:
            fill = parse_hex_color(colors[kind], alpha=int(cfg["fill_alpha"]))
            outline = parse_hex_color(colors[kind], alpha=255)
            width = int(cfg["border_width"])
        r = box.rect
        draw.rectangle([r.left, r.top, r.left + r.width, r.top + r.height], fill=fill, outline=outline, width=width)

    return Image.alpha_composite(canvas, layer).convert("RGB")


def save_preview(image: Image.Image, out_path: str | Path) -> Path:
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    image.save(out, format="PNG")
    return out
