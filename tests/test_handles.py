"""
Tests for crop and annotation handles.

Covers:
- Crop handle placement and hit testing (size constant on screen)
- Crop handle drags, free and with an aspect ratio
- Aspect constraint for dragged-out boxes
- Annotation handle ordering and sizes
- Multi-selection handles
"""
import pytest

from canvas_composer.interaction.handles import (
    CropHandle, crop_handles, hit_crop_handle, constrain_to_aspect,
    annotation_handles, hit_annotation_handle, hit_selection_handle,
    START, END, SCALE, ROTATE,
)
from canvas_composer.models.annotation import ArrowAnnotation
from canvas_composer.models.transform import Rect, Vec2


CROP = Rect(100, 100, 200, 100)


# ══════════════════════════════════════════════════════════════════════════
# Crop handles
# ══════════════════════════════════════════════════════════════════════════

class TestCropHandles:

    def test_eight_handles(self):
        names = [handle.name for handle in crop_handles(CROP, 1)]
        assert len(names) == 8
        assert 'bottom-right' in names

    @pytest.mark.parametrize('name,anchor', [
        ('top-left', Vec2(100, 100)),
        ('top', Vec2(200, 100)),
        ('right', Vec2(300, 150)),
        ('bottom-right', Vec2(300, 200)),
    ])
    def test_anchor_positions(self, name, anchor):
        assert CropHandle(name, CROP, 1).position == anchor

    def test_unknown_handle(self):
        with pytest.raises(ValueError):
            CropHandle('middle', CROP, 1)

    def test_hit_shrinks_with_zoom(self):
        assert hit_crop_handle(CROP, Vec2(304, 204), view_scale=1).name == 'bottom-right'
        assert hit_crop_handle(CROP, Vec2(304, 204), view_scale=2) is None

    def test_free_drag(self):
        handle = CropHandle('top-left', CROP, 1)
        assert handle.drag(CROP, 10, 20) == Rect(110, 120, 190, 80)

    def test_edge_drag_only_moves_that_edge(self):
        handle = CropHandle('right', CROP, 1)
        assert handle.drag(CROP, 50, 999) == Rect(100, 100, 250, 100)

    def test_aspect_drag_from_corner(self):
        handle = CropHandle('bottom-right', CROP, 1)
        resized = handle.drag(CROP, 100, 0, aspect_ratio=1.0)
        assert (resized.width, resized.height) == (300, 300)

    def test_aspect_drag_from_vertical_edge(self):
        handle = CropHandle('bottom', CROP, 1)
        resized = handle.drag(CROP, 0, 50, aspect_ratio=16 / 9)
        assert resized.height == 150
        assert resized.width == pytest.approx(150 * 16 / 9)


class TestConstrainToAspect:

    def test_free(self):
        assert constrain_to_aspect(30, -10, None) == (30, -10)

    def test_wide_drag_shrinks_width(self):
        assert constrain_to_aspect(100, 20, 1.0) == (20, 20)

    def test_tall_drag_shrinks_height(self):
        width, height = constrain_to_aspect(-40, 90, 4 / 3)
        assert width == -40
        assert height == pytest.approx(30)

    def test_keeps_drag_direction(self):
        width, height = constrain_to_aspect(-100, -20, 1.0)
        assert (width, height) == (-20, -20)


# ══════════════════════════════════════════════════════════════════════════
# Annotation handles
# ══════════════════════════════════════════════════════════════════════════

class TestAnnotationHandles:

    def test_rect_handles(self, small_rect):
        handles = annotation_handles(small_rect, None, view_scale=1)
        assert [h.kind for h in handles] == [SCALE, ROTATE]
        scale = handles[0]
        # Bounds padded by stroke/2 + 15 -> right/bottom at 30 + 17
        assert scale.position == Vec2(47, 47)
        assert scale.click_radius == pytest.approx(12)

    def test_rotate_handle_above_bounds(self, small_rect):
        rotate = annotation_handles(small_rect, None, view_scale=2)[1]
        assert rotate.position.x == pytest.approx(20)
        assert rotate.position.y == pytest.approx(10 - 17 - 10)

    def test_segment_endpoints_come_first(self):
        arrow = ArrowAnnotation(start=Vec2(0, 0), end=Vec2(100, 0))
        kinds = [h.kind for h in annotation_handles(arrow, None, view_scale=1)]
        assert kinds == [START, END, SCALE, ROTATE]

    def test_handle_radius_follows_owner_scale(self, small_rect, scaled_image):
        plain = annotation_handles(small_rect, None, view_scale=1)[0]
        owned = annotation_handles(small_rect, scaled_image, view_scale=1)[0]
        assert owned.click_radius == pytest.approx(plain.click_radius / 2)

    def test_hit_endpoint(self):
        arrow = ArrowAnnotation(start=Vec2(0, 0), end=Vec2(100, 0))
        assert hit_annotation_handle(arrow, None, Vec2(99, 2), view_scale=1).kind == END
        assert hit_annotation_handle(arrow, None, Vec2(50, 60), view_scale=1) is None


class TestSelectionHandles:

    def test_scale_and_rotate(self):
        bounds = Rect(0, 0, 100, 50)
        assert hit_selection_handle(bounds, Vec2(100, 50), view_scale=1).kind == SCALE
        assert hit_selection_handle(bounds, Vec2(50, -20), view_scale=1).kind == ROTATE
        assert hit_selection_handle(bounds, Vec2(50, 25), view_scale=1) is None
