"""
Tests for the screen <-> canvas viewport.

Covers:
- Round trips at arbitrary zoom/offset
- Zooming about a fixed screen point, clamped to [0.1, 10]
- Panning by screen deltas
- Visible center and centering on a point
"""
import pytest

from canvas_composer.interaction.viewport import Viewport
from canvas_composer.models.transform import Vec2


@pytest.fixture
def view():
    viewport = Viewport(scale=2.0, offset=Vec2(30, -10))
    viewport.set_surface_size(800, 600)
    return viewport


class TestMapping:

    def test_to_screen(self, view):
        assert view.to_screen(Vec2(10, 20)) == Vec2(50, 30)

    def test_round_trip(self, view):
        point = Vec2(123.5, -47.25)
        back = view.to_canvas(view.to_screen(point))
        assert back.x == pytest.approx(point.x)
        assert back.y == pytest.approx(point.y)

    def test_screen_delta(self, view):
        assert view.screen_delta_to_canvas(10, -4) == Vec2(5, -2)


class TestZoom:

    def test_zoom_keeps_cursor_point_fixed(self, view):
        cursor = Vec2(400, 250)
        before = view.to_canvas(cursor)
        view.zoom_at(cursor, zoom_in=True)
        assert view.scale == pytest.approx(2.2)
        after = view.to_canvas(cursor)
        assert after.x == pytest.approx(before.x)
        assert after.y == pytest.approx(before.y)

    def test_zoom_out(self, view):
        view.zoom_at(Vec2(0, 0), zoom_in=False)
        assert view.scale == pytest.approx(2 / 1.1)

    @pytest.mark.parametrize('requested,expected', [(50, 10.0), (0.001, 0.1), (3, 3)])
    def test_zoom_is_clamped(self, view, requested, expected):
        view.set_scale(requested)
        assert view.scale == pytest.approx(expected)

    def test_repeated_zoom_stops_at_limit(self):
        view = Viewport()
        for _ in range(100):
            view.zoom_at(Vec2(10, 10), zoom_in=True)
        assert view.scale == pytest.approx(10.0)

    def test_custom_limits(self):
        view = Viewport(min_zoom=0.5, max_zoom=2.0)
        view.set_scale(5, Vec2(0, 0))
        assert view.scale == 2.0


class TestPanAndCenter:

    def test_pan_by_screen_delta(self, view):
        view.pan_by(20, 5)
        assert view.offset == Vec2(50, -5)

    def test_visible_center(self, view):
        # Screen center (400, 300) -> ((400 - 30) / 2, (300 + 10) / 2)
        assert view.visible_center() == Vec2(185, 155)

    def test_center_on(self, view):
        view.center_on(Vec2(100, 100))
        center = view.visible_center()
        assert center.x == pytest.approx(100)
        assert center.y == pytest.approx(100)
