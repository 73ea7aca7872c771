"""
Tests for the nested affine transform model.

Covers:
- image <-> global round trips across scales and rotations
- numpy batch transforms agreeing with the point helpers
- annotation <-> global chains (with and without an owner)
- global deltas converted into image-local units
- zero-scale guarding
"""
import math

import pytest

from canvas_composer.constants import SCALE_EPSILON
from canvas_composer.models.annotation import RectAnnotation, LineAnnotation
from canvas_composer.models.image import CanvasImage
from canvas_composer.models.transform import Vec2
from canvas_composer.utils.transform_math import (
    image_to_global, global_to_image, image_matrix, apply_matrix,
    annotation_to_global, global_to_annotation, annotation_pivot,
    global_delta_to_local, rotate_point, safe_scale,
)

SAMPLE_POINTS = [Vec2(0, 0), Vec2(120, 0), Vec2(120, 80), Vec2(37.5, -12.25), Vec2(-300, 450)]


def assert_vec_close(actual, expected, abs_tol=1e-6):
    assert actual.x == pytest.approx(expected.x, abs=abs_tol)
    assert actual.y == pytest.approx(expected.y, abs=abs_tol)


# ══════════════════════════════════════════════════════════════════════════
# Image <-> global
# ══════════════════════════════════════════════════════════════════════════

class TestImageTransform:

    @pytest.mark.parametrize('scale', [0.1, 1.0, 5.0])
    @pytest.mark.parametrize('rotation', [0, 37, 90, 180, 271])
    def test_round_trip(self, scale, rotation):
        image = CanvasImage(width=120, height=80, x=10, y=20, scale=scale, rotation=rotation)
        for point in SAMPLE_POINTS:
            assert_vec_close(global_to_image(image_to_global(point, image), image), point)
            assert_vec_close(image_to_global(global_to_image(point, image), image), point)

    @pytest.mark.parametrize('rotation', [0, 37, 271])
    def test_matrix_batch_matches_points(self, rotation):
        image = CanvasImage(width=120, height=80, x=-5, y=7, scale=1.5, rotation=rotation)
        batch = apply_matrix(image_matrix(image), SAMPLE_POINTS)
        for point, transformed in zip(SAMPLE_POINTS, batch):
            assert_vec_close(transformed, image_to_global(point, image))

    def test_local_center_maps_to_global_center(self):
        image = CanvasImage(width=120, height=80, x=10, y=20, scale=3, rotation=45)
        assert_vec_close(image_to_global(Vec2(60, 40), image), image.center)

    def test_quarter_turn_moves_top_left_corner(self, rotated_image):
        # Rotating 90 degrees about (50, 50) sends the top-left corner to the top-right
        assert_vec_close(image_to_global(Vec2(0, 0), rotated_image), Vec2(100, 0))

    def test_scale_about_center(self, scaled_image):
        # Scale 2 at x=y=0: footprint is 0..200, so local maps to 2x
        assert_vec_close(image_to_global(Vec2(25, 75), scaled_image), Vec2(50, 150))


# ══════════════════════════════════════════════════════════════════════════
# Annotation chains
# ══════════════════════════════════════════════════════════════════════════

class TestAnnotationTransform:

    @pytest.fixture
    def rect(self):
        return RectAnnotation(x=10, y=20, width=40, height=30, scale=2, rotation=30)

    def test_pivot_is_rect_center(self, rect):
        assert annotation_pivot(rect) == Vec2(30, 35)

    def test_pivot_is_segment_midpoint(self):
        line = LineAnnotation(start=Vec2(0, 0), end=Vec2(10, 20))
        assert annotation_pivot(line) == Vec2(5, 10)

    def test_pivot_is_fixed_under_own_transform(self, rect):
        assert_vec_close(annotation_to_global(annotation_pivot(rect), rect), annotation_pivot(rect))

    @pytest.mark.parametrize('owner_rotation', [0, 90, 200])
    def test_round_trip_with_owner(self, rect, owner_rotation):
        owner = CanvasImage(width=100, height=60, x=50, y=-40, scale=0.5, rotation=owner_rotation)
        for point in SAMPLE_POINTS:
            there = annotation_to_global(point, rect, owner)
            assert_vec_close(global_to_annotation(there, rect, owner), point)

    def test_canvas_annotation_has_no_owner_step(self):
        plain = RectAnnotation(x=0, y=0, width=10, height=10)
        assert_vec_close(annotation_to_global(Vec2(3, 4), plain), Vec2(3, 4))


# ══════════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════════

class TestHelpers:

    def test_delta_to_local_undoes_rotation_and_scale(self):
        image = CanvasImage(width=100, height=100, scale=2, rotation=90)
        assert_vec_close(global_delta_to_local(10, 0, image), Vec2(0, -5))

    def test_delta_to_local_identity(self, image_a):
        assert_vec_close(global_delta_to_local(3, -4, image_a), Vec2(3, -4))

    def test_rotate_point(self):
        assert_vec_close(rotate_point(Vec2(1, 0), Vec2(0, 0), 90), Vec2(0, 1))
        assert_vec_close(rotate_point(Vec2(2, 1), Vec2(1, 1), 180), Vec2(0, 1))

    def test_safe_scale_clamps_zero(self):
        assert safe_scale(0) == SCALE_EPSILON
        assert safe_scale(-1e-12) == -SCALE_EPSILON
        assert safe_scale(0.5) == 0.5

    def test_zero_scale_image_does_not_divide_by_zero(self):
        image = CanvasImage(width=10, height=10, scale=0)
        local = global_to_image(Vec2(5, 5), image)
        assert math.isfinite(local.x) and math.isfinite(local.y)
