"""Coordinate mapping from image pixels to the rendered preview."""
from __future__ import annotations

import pytest

from conftest import make_region
from ocr_card_engine.overlay import (
    H_BACK,
    H_FRONT,
    H_SELECTED,
    H_UNASSIGNED,
    RenderedBounds,
    contain_bounds,
    fit_preview_size,
    highlight_for,
    hit_test,
    map_frame,
    overlay_boxes,
    scale_factors,
)
from ocr_card_engine.types import Frame, ImageDimensions


class TestMapFrame:
    def test_independent_axis_scales(self):
        src = ImageDimensions(width=1000, height=500)
        rect = map_frame(Frame(x=100, y=50, width=200, height=100), src, RenderedBounds(width=500, height=500))
        assert (rect.left, rect.top, rect.width, rect.height) == (50, 50, 100, 100)

    def test_origin_preserved_at_any_scale(self):
        zero = Frame(x=0, y=0, width=0, height=0)
        for w, h in [(10, 10), (1234, 77), (3, 4000)]:
            rect = map_frame(zero, ImageDimensions(width=w, height=h), RenderedBounds(width=321, height=123))
            assert (rect.left, rect.top, rect.width, rect.height) == (0, 0, 0, 0)

    @pytest.mark.parametrize("k", [2.0, 4.0, 0.5])
    def test_scaling_source_scales_output_inversely(self, k):
        frame = Frame(x=40, y=30, width=80, height=20)
        rendered = RenderedBounds(width=300, height=200)
        base = map_frame(frame, ImageDimensions(width=400, height=400), rendered)
        scaled = map_frame(frame, ImageDimensions(width=400 * k, height=400 * k), rendered)
        assert scaled.left == pytest.approx(base.left / k)
        assert scaled.top == pytest.approx(base.top / k)
        assert scaled.width == pytest.approx(base.width / k)
        assert scaled.height == pytest.approx(base.height / k)

    def test_letterbox_offsets_are_added(self):
        rect = map_frame(
            Frame(x=0, y=0, width=10, height=10),
            ImageDimensions(width=100, height=100),
            RenderedBounds(width=200, height=200, offset_x=50, offset_y=0),
        )
        assert (rect.left, rect.top, rect.width) == (50, 0, 20)


class TestOverlayBoxes:
    def test_no_boxes_until_rendered_size_known(self):
        regions = [make_region(0, "A")]
        src = ImageDimensions(width=100, height=100)
        assert scale_factors(src, None) == (0.0, 0.0)
        assert overlay_boxes(regions, src, None) == []
        assert overlay_boxes(regions, src, RenderedBounds(width=0, height=0)) == []
        assert overlay_boxes(regions, ImageDimensions(width=0, height=0), RenderedBounds(width=10, height=10)) == []

    def test_boxes_follow_store_order_and_carry_tags(self):
        a = make_region(0, "A", x=10, y=10, w=10, h=10).with_classification("front")
        b = make_region(1, "B", x=20, y=20, w=10, h=10)
        boxes = overlay_boxes([a, b], ImageDimensions(width=100, height=100), RenderedBounds(width=50, height=50), ["block-1"])
        assert [x.region_id for x in boxes] == ["block-0", "block-1"]
        assert boxes[0].classification == "front" and boxes[0].selected is False
        assert boxes[1].selected is True
        assert boxes[1].rect.left == 10

    def test_highlight_precedence(self):
        front = make_region(0, "A").with_classification("front")
        back = make_region(1, "B").with_classification("back")
        plain = make_region(2, "C")
        boxes = overlay_boxes(
            [front, back, plain], ImageDimensions(width=10, height=10), RenderedBounds(width=10, height=10), ["block-0"]
        )
        assert [highlight_for(b) for b in boxes] == [H_SELECTED, H_BACK, H_UNASSIGNED]
        boxes = overlay_boxes([front], ImageDimensions(width=10, height=10), RenderedBounds(width=10, height=10))
        assert highlight_for(boxes[0]) == H_FRONT

    def test_hit_test_prefers_topmost(self):
        under = make_region(0, "A", x=0, y=0, w=50, h=50)
        over = make_region(1, "B", x=10, y=10, w=10, h=10)
        boxes = overlay_boxes([under, over], ImageDimensions(width=100, height=100), RenderedBounds(width=100, height=100))
        assert hit_test(boxes, 15, 15) == "block-1"
        assert hit_test(boxes, 40, 40) == "block-0"
        assert hit_test(boxes, 90, 90) is None


class TestRenderedSize:
    def test_contain_bounds_letterboxes_wide_image(self):
        b = contain_bounds(ImageDimensions(width=200, height=100), 100, 100)
        assert (b.width, b.height, b.offset_x, b.offset_y) == (100, 50, 0, 25)

    def test_contain_bounds_unknown_size(self):
        assert contain_bounds(ImageDimensions(width=0, height=0), 100, 100) is None

    def test_fit_preview_caps_height(self):
        assert fit_preview_size(ImageDimensions(width=100, height=50), 200, 1000) == (200, 100)
        assert fit_preview_size(ImageDimensions(width=50, height=100), 200, 200) == (100, 200)
        assert fit_preview_size(ImageDimensions(width=0, height=0), 200, 200) == (0, 0)
