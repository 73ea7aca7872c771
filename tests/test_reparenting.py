"""
Tests for moving annotations between coordinate-space owners.

Covers:
- Apparent geometry preserved canvas -> image -> image -> canvas
- Scale / rotation bookkeeping against owner transforms
- Layer order only touched for canvas adds/removes
- Selection references repaired
- Same-owner and stale-reference no-ops
- Detaching from an unrotated and a quarter-turned image at the origin
"""
import pytest

from canvas_composer.models.annotation import RectAnnotation, ArrowAnnotation, CircleAnnotation
from canvas_composer.models.composition import Composition
from canvas_composer.models.image import CanvasImage
from canvas_composer.models.selection import AnnotationRef
from canvas_composer.models.transform import Vec2
from canvas_composer.services.reparenting import reparent_geometry
from canvas_composer.utils.bounds import global_bounds
from canvas_composer.utils.transform_math import annotation_to_global, annotation_pivot


def rendered_corners(annotation, owner):
    """Global positions of a few annotation-local points"""
    pivot = annotation_pivot(annotation)
    probes = [pivot, Vec2(pivot.x + 7, pivot.y), Vec2(pivot.x, pivot.y - 11)]
    return [annotation_to_global(p, annotation, owner) for p in probes]


def assert_same_rendering(before, before_owner, after, after_owner):
    # Probe offsets are relative to the pivot, which reparenting keeps in local units
    for a, b in zip(rendered_corners(before, before_owner), rendered_corners(after, after_owner)):
        assert b.x == pytest.approx(a.x, abs=1e-6)
        assert b.y == pytest.approx(a.y, abs=1e-6)
    gb_before = global_bounds(before, before_owner)
    gb_after = global_bounds(after, after_owner)
    for x, y in zip((gb_before.x, gb_before.y, gb_before.width, gb_before.height),
                    (gb_after.x, gb_after.y, gb_after.width, gb_after.height)):
        assert y == pytest.approx(x, abs=1e-6)


OWNERS = [
    CanvasImage(width=100, height=100, x=0, y=0),
    CanvasImage(width=100, height=50, x=30, y=-20, scale=2.5),
    CanvasImage(width=80, height=120, x=-40, y=60, rotation=33),
    CanvasImage(width=60, height=60, x=10, y=10, scale=0.4, rotation=271),
]


# ══════════════════════════════════════════════════════════════════════════
# Geometry
# ══════════════════════════════════════════════════════════════════════════

class TestReparentGeometry:

    @pytest.mark.parametrize('owner', OWNERS)
    def test_canvas_to_image_keeps_rendering(self, owner):
        rect = RectAnnotation(x=15, y=25, width=40, height=20, scale=1.3, rotation=12)
        moved = reparent_geometry(rect, None, owner)
        assert_same_rendering(rect, None, moved, owner)
        assert moved.scale == pytest.approx(1.3 / owner.scale)
        assert moved.rotation == pytest.approx(12 - owner.rotation)

    @pytest.mark.parametrize('owner', OWNERS)
    def test_image_to_canvas_keeps_rendering(self, owner):
        arrow = ArrowAnnotation(start=Vec2(5, 5), end=Vec2(60, 30), scale=0.8, rotation=-20)
        moved = reparent_geometry(arrow, owner, None)
        assert_same_rendering(arrow, owner, moved, None)

    def test_image_to_image_keeps_rendering(self):
        circle = CircleAnnotation(x=20, y=30, radius=8)
        moved = reparent_geometry(circle, OWNERS[1], OWNERS[3])
        assert_same_rendering(circle, OWNERS[1], moved, OWNERS[3])

    def test_shape_extents_are_unchanged(self):
        rect = RectAnnotation(x=0, y=0, width=40, height=20)
        moved = reparent_geometry(rect, None, OWNERS[1])
        assert (moved.width, moved.height) == (40, 20)


# ══════════════════════════════════════════════════════════════════════════
# Composition operations
# ══════════════════════════════════════════════════════════════════════════

class TestReparentOperations:

    @pytest.fixture
    def composition(self, rotated_image):
        note = RectAnnotation(id='note', x=70, y=70, width=20, height=20)
        return Composition(images=[rotated_image], canvas_annotations=[note])

    def test_move_into_rotated_image(self, composition):
        ref = composition.move_to_image(AnnotationRef(None, 'note'), 'img-rot')
        assert ref == AnnotationRef('img-rot', 'note')
        moved = composition.get_annotation(ref)
        # Pivot (80, 80) maps to local (80, 20) under the quarter turn about (50, 50)
        assert moved.x == pytest.approx(70)
        assert moved.y == pytest.approx(10)
        assert moved.rotation == pytest.approx(-90)
        assert moved.scale == pytest.approx(1)

    def test_round_trip_back_to_canvas(self, composition):
        ref = composition.move_to_image(AnnotationRef(None, 'note'), 'img-rot')
        back = composition.move_to_canvas(ref)
        restored = composition.get_annotation(back)
        assert restored.x == pytest.approx(70)
        assert restored.y == pytest.approx(70)
        assert restored.rotation == pytest.approx(0)

    def test_layer_order_only_tracks_canvas(self, composition):
        assert 'note' in composition.layer_order
        ref = composition.move_to_image(AnnotationRef(None, 'note'), 'img-rot')
        assert 'note' not in composition.layer_order
        composition.move_to_canvas(ref)
        assert composition.layer_order[-1] == 'note'

    def test_selection_is_repaired(self, composition):
        composition.select_annotations([AnnotationRef(None, 'note')])
        composition.move_to_image(AnnotationRef(None, 'note'), 'img-rot')
        assert composition.selection.annotations == (AnnotationRef('img-rot', 'note'),)

    def test_same_owner_is_noop(self, composition):
        before = composition.snapshot()
        ref = AnnotationRef(None, 'note')
        assert composition.reparent(ref, None) == ref
        assert composition.snapshot() == before

    def test_stale_reference_is_noop(self, composition):
        before = composition.snapshot()
        assert composition.reparent(AnnotationRef(None, 'gone'), 'img-rot') is None
        assert composition.reparent(AnnotationRef(None, 'note'), 'img-gone') is None
        assert composition.snapshot() == before

    def test_move_to_image_needs_target(self, composition):
        with pytest.raises(ValueError):
            composition.move_to_image(AnnotationRef(None, 'note'), None)

    def test_reparent_many_skips_same_owner(self, composition, image_a):
        composition.add_image(image_a)
        first = composition.move_to_image(AnnotationRef(None, 'note'), 'img-a')
        moved = composition.reparent_many([first], 'img-a')
        assert moved == []


# ══════════════════════════════════════════════════════════════════════════
# Detaching from an image at the origin
# ══════════════════════════════════════════════════════════════════════════

class TestDetachToCanvas:

    @pytest.fixture
    def composition(self, image_a):
        rect = RectAnnotation(id='box', x=10, y=10, width=20, height=20)
        return Composition(images=[image_a.with_annotations([rect])])

    def test_unrotated_owner_keeps_global_rect(self, composition):
        ref = composition.move_to_canvas(AnnotationRef('img-a', 'box'))
        moved = composition.get_annotation(ref)
        assert (moved.x, moved.y, moved.width, moved.height) == pytest.approx((10, 10, 20, 20))
        assert moved.scale == pytest.approx(1)
        assert moved.rotation == pytest.approx(0)

    def test_rotated_owner_lands_on_rotated_region(self, composition):
        composition.update_images(['img-a'], rotation=90)
        ref = composition.move_to_canvas(AnnotationRef('img-a', 'box'))
        moved = composition.get_annotation(ref)
        # (10,10)-(30,30) turned a quarter about (50,50) covers (70,10)-(90,30)
        corners = [Vec2(moved.x, moved.y), Vec2(moved.x + moved.width, moved.y),
                   Vec2(moved.x + moved.width, moved.y + moved.height), Vec2(moved.x, moved.y + moved.height)]
        rendered = [annotation_to_global(c, moved, None) for c in corners]
        xs = sorted(round(p.x, 6) for p in rendered)
        ys = sorted(round(p.y, 6) for p in rendered)
        assert (xs[0], xs[-1]) == pytest.approx((70, 90))
        assert (ys[0], ys[-1]) == pytest.approx((10, 30))
        assert moved.rotation == pytest.approx(90)
