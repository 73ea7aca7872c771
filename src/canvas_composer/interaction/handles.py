"""Handle system - ABC-based handles for crop and annotation transforms.

Each handle type is a class that knows:
- Where it sits (in the space its hit test runs in)
- How to test if a pointer position hits it
- How a drag on it changes the thing it controls (crop handles)

Handle sizes are on-screen pixels divided by the relevant scale chain so
handles keep a constant apparent size at any zoom.
"""

import math
from abc import ABC, abstractmethod
from typing import List, Optional

from canvas_composer.constants import (
    HANDLE_SIZE_PX, HANDLE_CLICK_FACTOR, ROTATION_HANDLE_OFFSET_PX, CROP_HANDLE_SIZE_PX,
)
from canvas_composer.models.annotation import SEGMENT_TYPES
from canvas_composer.models.transform import Rect, Vec2
from canvas_composer.utils.bounds import primitive_bounds
from canvas_composer.utils.transform_math import (
    annotation_pivot, global_to_annotation, owner_scale, safe_scale,
)

CROP_HANDLE_NAMES = ('top-left', 'top', 'top-right', 'left', 'right', 'bottom-left', 'bottom', 'bottom-right')

# Handle kinds for annotation selections
START = 'start'
END = 'end'
SCALE = 'scale'
ROTATE = 'rotate'


class Handle(ABC):
    """Abstract base class for interaction handles."""

    kind = ''

    @abstractmethod
    def hit_test(self, point: Vec2) -> bool:
        """Test if a point (in the handle's space) hits this handle."""

    @property
    @abstractmethod
    def position(self) -> Vec2:
        """Handle anchor position in the handle's space."""


class PointHandle(Handle):
    """Round handle with a click radius (annotation endpoints, scale, rotate)."""

    def __init__(self, kind, position, click_radius):
        self.kind = kind
        self._position = position
        self.click_radius = click_radius

    @property
    def position(self):
        return self._position

    def hit_test(self, point):
        return math.hypot(point.x - self._position.x, point.y - self._position.y) < self.click_radius


class CropHandle(Handle):
    """Square handle on the crop rectangle's edge or corner (canvas space)."""

    def __init__(self, name, crop_rect, view_scale, handle_size_px=CROP_HANDLE_SIZE_PX):
        """
        Args:
            name: One of CROP_HANDLE_NAMES
            crop_rect: Crop rectangle in canvas space
            view_scale: Viewport zoom
            handle_size_px: On-screen handle size
        """
        if name not in CROP_HANDLE_NAMES:
            raise ValueError(f"Unknown crop handle '{name}'")
        self.kind = name
        self.name = name
        size = handle_size_px / view_scale
        anchor = self._anchor(name, crop_rect)
        self.rect = Rect(anchor.x - size / 2, anchor.y - size / 2, size, size)

    @staticmethod
    def _anchor(name, r):
        x = {'left': r.x, 'right': r.right}.get(name.split('-')[-1], r.x + r.width / 2)
        y = {'top': r.y, 'bottom': r.bottom}.get(name.split('-')[0], r.y + r.height / 2)
        return Vec2(x, y)

    @property
    def position(self):
        return self.rect.center

    def hit_test(self, point):
        return self.rect.contains(point)

    def drag(self, initial: Rect, dx, dy, aspect_ratio=None) -> Rect:
        """Resize the initial crop rect by a canvas delta

        Each edge named by the handle follows the pointer. With a fixed
        aspect ratio, top/bottom handles derive width from height and all
        other handles derive height from width.
        """
        x, y, width, height = initial.x, initial.y, initial.width, initial.height
        parts = self.name.split('-')
        if 'left' in parts:
            x += dx
            width -= dx
        if 'right' in parts:
            width += dx
        if 'top' in parts:
            y += dy
            height -= dy
        if 'bottom' in parts:
            height += dy

        if aspect_ratio:
            if self.name in ('top', 'bottom'):
                width = height * aspect_ratio
            else:
                height = width / aspect_ratio
        return Rect(x, y, width, height)


# ======================================================================
# CROP
# ======================================================================

def crop_handles(crop_rect: Rect, view_scale, handle_size_px=CROP_HANDLE_SIZE_PX) -> List[CropHandle]:
    return [CropHandle(name, crop_rect, view_scale, handle_size_px) for name in CROP_HANDLE_NAMES]


def hit_crop_handle(crop_rect: Rect, point: Vec2, view_scale, handle_size_px=CROP_HANDLE_SIZE_PX) -> Optional[CropHandle]:
    for handle in crop_handles(crop_rect, view_scale, handle_size_px):
        if handle.hit_test(point):
            return handle
    return None


def constrain_to_aspect(width, height, aspect_ratio):
    """Shrink one side of a dragged-out box to match width / height == aspect_ratio

    Keeps the drag direction (signs) of both sides.
    """
    if not aspect_ratio:
        return width, height
    if abs(width) > abs(height) * aspect_ratio:
        width = math.copysign(abs(height) * aspect_ratio, width)
    else:
        height = math.copysign(abs(width) / aspect_ratio, height)
    return width, height


# ======================================================================
# SINGLE ANNOTATION
# ======================================================================

def annotation_handles(annotation, owner, view_scale,
                       handle_size_px=HANDLE_SIZE_PX,
                       click_factor=HANDLE_CLICK_FACTOR,
                       rotation_offset_px=ROTATION_HANDLE_OFFSET_PX) -> List[PointHandle]:
    """Handles of a single selected annotation, in annotation-local space

    Ordered by hit priority: line/arrow endpoints, then scale (bottom-right
    of the padded bounds), then rotation (above the top edge).
    """
    chain = safe_scale(view_scale * owner_scale(owner))
    anno_scale = safe_scale(annotation.scale)
    click_radius = abs(handle_size_px / chain / anno_scale * click_factor)

    handles = []
    if isinstance(annotation, SEGMENT_TYPES):
        handles.append(PointHandle(START, annotation.start, click_radius))
        handles.append(PointHandle(END, annotation.end, click_radius))

    bounds = primitive_bounds(annotation).normalized()
    pivot = annotation_pivot(annotation)
    rotation_offset = abs(rotation_offset_px / (chain * anno_scale))
    handles.append(PointHandle(SCALE, Vec2(bounds.right, bounds.bottom), click_radius))
    handles.append(PointHandle(ROTATE, Vec2(pivot.x, bounds.y - rotation_offset), click_radius))
    return handles


def hit_annotation_handle(annotation, owner, point: Vec2, view_scale, **sizes) -> Optional[PointHandle]:
    """First handle of a single selected annotation under a global point"""
    local = global_to_annotation(point, annotation, owner)
    for handle in annotation_handles(annotation, owner, view_scale, **sizes):
        if handle.hit_test(local):
            return handle
    return None


# ======================================================================
# MULTI-SELECTION
# ======================================================================

def selection_handles(bounds: Rect, view_scale,
                      handle_size_px=HANDLE_SIZE_PX,
                      click_factor=HANDLE_CLICK_FACTOR,
                      rotation_offset_px=ROTATION_HANDLE_OFFSET_PX) -> List[PointHandle]:
    """Group handles around a multi-selection's global bounds (rotate first)"""
    click_radius = handle_size_px / view_scale * click_factor
    return [
        PointHandle(ROTATE, Vec2(bounds.center.x, bounds.y - rotation_offset_px / view_scale), click_radius),
        PointHandle(SCALE, Vec2(bounds.right, bounds.bottom), click_radius),
    ]


def hit_selection_handle(bounds: Rect, point: Vec2, view_scale, **sizes) -> Optional[PointHandle]:
    for handle in selection_handles(bounds, view_scale, **sizes):
        if handle.hit_test(point):
            return handle
    return None
