"""
Tests for crop / uncrop and image arrangement.

Covers:
- apply_crop keeps the visible content where it was (plain and rotated images)
- Annotations follow the crop offset, crop_rect accumulates in source pixels
- uncrop restores the archived extents in place
- align / arrange / stack / match sizes on global footprints
"""
import pytest

from canvas_composer.models.composition import Composition
from canvas_composer.models.image import CanvasImage
from canvas_composer.models.transform import Rect
from canvas_composer.utils.bounds import image_bounds


def assert_rect(actual, expected):
    for a, e in zip((actual.x, actual.y, actual.width, actual.height), expected):
        assert a == pytest.approx(e, abs=1e-6)


# ══════════════════════════════════════════════════════════════════════════
# Crop
# ══════════════════════════════════════════════════════════════════════════

class TestCrop:

    @pytest.fixture
    def single(self, image_a, small_rect):
        return Composition(images=[image_a.with_annotations([small_rect])])

    def test_crop_keeps_content_in_place(self, single):
        assert single.apply_crop(Rect(20, 30, 40, 50)) == ['img-a']
        cropped = single.get_image('img-a')
        assert (cropped.width, cropped.height) == (40, 50)
        assert cropped.x == pytest.approx(20)
        assert cropped.y == pytest.approx(30)
        assert_rect(cropped.crop_rect, (20, 30, 40, 50))
        assert cropped.uncropped_from_id == 'img-a'

    def test_annotations_shift_with_crop(self, single):
        single.apply_crop(Rect(20, 30, 40, 50))
        rect = single.get_image('img-a').annotations[0]
        assert (rect.x, rect.y) == (-10, -20)

    def test_crop_is_clipped_to_image(self, single):
        single.apply_crop(Rect(50, 50, 500, 500))
        cropped = single.get_image('img-a')
        assert (cropped.width, cropped.height) == (50, 50)

    def test_crop_rect_accumulates(self, single):
        single.apply_crop(Rect(20, 30, 40, 50))
        single.apply_crop(Rect(30, 40, 10, 10))
        assert_rect(single.get_image('img-a').crop_rect, (30, 40, 10, 10))
        # The first uncropped record stays archived
        assert single.archived_images['img-a'].width == 100

    def test_crop_missing_everything(self, single):
        assert single.apply_crop(Rect(500, 500, 10, 10)) == []
        assert single.archived_images == {}

    def test_zero_size_crop(self, single):
        assert single.apply_crop(Rect(10, 10, 0, 20)) == []

    def test_negative_drag_is_normalized(self, single):
        assert single.apply_crop(Rect(60, 80, -40, -50)) == ['img-a']
        assert_rect(single.get_image('img-a').crop_rect, (20, 30, 40, 50))

    def test_rotated_image_crop(self, rotated_image):
        composition = Composition(images=[rotated_image])
        composition.apply_crop(Rect(50, 0, 50, 100))
        cropped = composition.get_image('img-rot')
        assert (cropped.width, cropped.height) == pytest.approx((100, 50))
        assert_rect(image_bounds(cropped), (50, 0, 50, 100))


# ══════════════════════════════════════════════════════════════════════════
# Uncrop
# ══════════════════════════════════════════════════════════════════════════

class TestUncrop:

    def test_uncrop_restores_in_place(self, image_a, small_rect):
        composition = Composition(images=[image_a.with_annotations([small_rect])])
        composition.apply_crop(Rect(20, 30, 40, 50))
        assert composition.uncrop(['img-a']) == ['img-a']
        restored = composition.get_image('img-a')
        assert (restored.width, restored.height) == (100, 100)
        assert restored.x == pytest.approx(0)
        assert restored.y == pytest.approx(0)
        assert restored.crop_rect is None
        rect = restored.annotations[0]
        assert (rect.x, rect.y) == (10, 10)

    def test_uncrop_follows_moved_image(self, image_a):
        composition = Composition(images=[image_a])
        composition.apply_crop(Rect(20, 30, 40, 50))
        composition.move_images(['img-a'], 100, 0)
        composition.uncrop(['img-a'])
        restored = composition.get_image('img-a')
        assert restored.x == pytest.approx(100)
        assert restored.y == pytest.approx(0)

    def test_uncrop_rotated(self, rotated_image):
        composition = Composition(images=[rotated_image])
        composition.apply_crop(Rect(50, 0, 50, 100))
        composition.uncrop(['img-rot'])
        restored = composition.get_image('img-rot')
        assert restored.center.x == pytest.approx(50)
        assert restored.center.y == pytest.approx(50)

    def test_uncrop_uncropped_image(self, composition):
        assert composition.uncrop(['img-a', 'img-gone']) == []


# ══════════════════════════════════════════════════════════════════════════
# Arrangement
# ══════════════════════════════════════════════════════════════════════════

class TestArrange:

    @pytest.fixture
    def pair(self, image_a):
        lowered = CanvasImage(width=100, height=100, id='img-b', name='B', x=200, y=50)
        return Composition(images=[image_a, lowered])

    def test_align_top(self, pair):
        assert pair.align_images('top', ['img-a', 'img-b'])
        assert pair.get_image('img-b').y == 0
        assert pair.get_image('img-b').x == 200

    def test_align_right(self, pair):
        pair.align_images('right', ['img-a', 'img-b'])
        assert pair.get_image('img-a').x == 200

    def test_align_h_center(self, pair):
        pair.align_images('h-center', ['img-a', 'img-b'])
        assert pair.get_image('img-a').x == pytest.approx(100)
        assert pair.get_image('img-b').x == pytest.approx(100)

    def test_align_uses_selection(self, pair):
        pair.select_images(['img-a', 'img-b'])
        assert pair.align_images('bottom')
        assert pair.get_image('img-a').y == 50

    def test_align_needs_two_images(self, pair):
        assert pair.align_images('left', ['img-a']) is False

    def test_unknown_alignment(self, pair):
        with pytest.raises(ValueError):
            pair.align_images('diagonal', ['img-a', 'img-b'])

    def test_arrange_row_topmost_first(self, pair):
        assert pair.arrange_images('horizontal', 'normal', ['img-a', 'img-b'], padding=10)
        assert (pair.get_image('img-b').x, pair.get_image('img-b').y) == (0, 0)
        assert (pair.get_image('img-a').x, pair.get_image('img-a').y) == (110, 0)

    def test_arrange_reverse_column(self, pair):
        pair.arrange_images('vertical', 'reverse', ['img-a', 'img-b'], padding=10)
        assert (pair.get_image('img-a').x, pair.get_image('img-a').y) == (0, 0)
        assert (pair.get_image('img-b').x, pair.get_image('img-b').y) == (0, 110)

    def test_stack_has_no_gap(self, pair):
        pair.stack_images('horizontal', 'reverse', ['img-a', 'img-b'])
        assert pair.get_image('img-b').x == 100

    def test_arrange_bad_direction(self, pair):
        with pytest.raises(ValueError):
            pair.arrange_images('sideways', 'normal', ['img-a', 'img-b'])

    def test_match_width(self, image_a):
        narrow = CanvasImage(width=50, height=80, id='img-narrow')
        composition = Composition(images=[image_a, narrow])
        assert composition.match_image_sizes('width', ['img-a', 'img-narrow'])
        assert composition.get_image('img-narrow').scale == pytest.approx(2)

    def test_match_height_against_scaled_reference(self, scaled_image):
        short = CanvasImage(width=10, height=50, id='img-short')
        composition = Composition(images=[scaled_image, short])
        composition.match_image_sizes('height', ['img-scaled', 'img-short'])
        assert composition.get_image('img-short').scale == pytest.approx(4)
