"""
Viewport: screen <-> canvas mapping.

screen = canvas * scale + offset. The drawing surface size is supplied by the
rendering layer and only used to find the visible center (where new content
is placed) and to center the view on a point.
"""

import logging
from dataclasses import dataclass, field

from canvas_composer.constants import MIN_ZOOM, MAX_ZOOM, ZOOM_FACTOR
from canvas_composer.models.transform import Vec2


@dataclass
class Viewport:
    scale: float = 1.0
    offset: Vec2 = Vec2(0.0, 0.0)
    surface_width: float = 0.0
    surface_height: float = 0.0
    min_zoom: float = MIN_ZOOM
    max_zoom: float = MAX_ZOOM
    zoom_factor: float = ZOOM_FACTOR
    _logger: logging.Logger = field(default_factory=lambda: logging.getLogger('Viewport'), repr=False, compare=False)

    def set_surface_size(self, width, height):
        self.surface_width = width
        self.surface_height = height

    def to_canvas(self, screen_point: Vec2) -> Vec2:
        return Vec2((screen_point.x - self.offset.x) / self.scale, (screen_point.y - self.offset.y) / self.scale)

    def to_screen(self, canvas_point: Vec2) -> Vec2:
        return Vec2(canvas_point.x * self.scale + self.offset.x, canvas_point.y * self.scale + self.offset.y)

    def screen_delta_to_canvas(self, dx, dy) -> Vec2:
        return Vec2(dx / self.scale, dy / self.scale)

    def zoom_at(self, screen_point: Vec2, zoom_in: bool):
        """Zoom one step keeping the canvas point under the cursor fixed"""
        target = self.scale * self.zoom_factor if zoom_in else self.scale / self.zoom_factor
        self.set_scale(target, screen_point)

    def set_scale(self, scale, screen_point: Vec2 = None):
        """Set the zoom (clamped), keeping screen_point (default: surface center) fixed"""
        if screen_point is None:
            screen_point = Vec2(self.surface_width / 2, self.surface_height / 2)
        new_scale = max(self.min_zoom, min(scale, self.max_zoom))
        world = self.to_canvas(screen_point)
        self.offset = Vec2(screen_point.x - world.x * new_scale, screen_point.y - world.y * new_scale)
        self.scale = new_scale
        self._logger.debug(f"Zoom {new_scale:.3f}")

    def pan_by(self, dx, dy):
        """Shift the view by a screen-space delta"""
        self.offset = self.offset.translated(dx, dy)

    def visible_center(self) -> Vec2:
        """Canvas point at the middle of the drawing surface"""
        return self.to_canvas(Vec2(self.surface_width / 2, self.surface_height / 2))

    def center_on(self, canvas_point: Vec2):
        self.offset = Vec2(self.surface_width / 2 - canvas_point.x * self.scale,
                           self.surface_height / 2 - canvas_point.y * self.scale)
