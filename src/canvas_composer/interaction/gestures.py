"""
Gesture states for the interaction engine.

One Gesture object is the state of the pointer state machine between
pointer-down and pointer-up. It consumes pointer moves and writes its effect
into the editor context:

- document edits go to ctx.working (a Composition staged as the live snapshot)
- transient UI state (crop rect, marquee, drop target, viewport) goes to the
  context attributes of the same name

The context is duck-typed; EditorState provides:
- ctx.working: Composition being edited for this gesture
- ctx.viewport: Viewport
- ctx.config: EngineConfig
- ctx.crop_rect, ctx.marquee_rect, ctx.drop_target_image_id
- ctx.crop_aspect_ratio: width / height or None
- ctx.active_tool: tool name (reset to 'select' after drawing)

finish() returns a history label, or None when nothing should be committed.
Targets are captured by id at pointer-down; if one disappears the gesture
silently does nothing.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from canvas_composer.constants import DISTANCE_EPSILON
from canvas_composer.models.annotation import (
    FreehandAnnotation, RectAnnotation, CircleAnnotation, SEGMENT_TYPES, is_degenerate,
)
from canvas_composer.models.selection import AnnotationRef
from canvas_composer.models.transform import Rect, Vec2
from canvas_composer.services.group_transform import (
    group_bounds, freeze_selection, apply_group_scale, apply_group_rotate,
)
from canvas_composer.services.hit_testing import find_image_at
from canvas_composer.utils.bounds import image_bounds, global_bounds
from canvas_composer.utils.transform_math import (
    annotation_pivot, annotation_matrix, apply_point, global_to_parent, safe_scale,
)
from .handles import constrain_to_aspect, START

_logger = logging.getLogger('Interaction')


class GestureMode(Enum):
    IDLE = 'idle'
    PAN = 'pan'
    MOVE_IMAGES = 'move-images'
    DRAW_CROP = 'draw-crop'
    RESIZE_CROP = 'resize-crop'
    MOVE_CROP = 'move-crop'
    DRAW_ANNOTATION = 'draw-annotation'
    MOVE_ANNOTATIONS = 'move-annotations'
    MARQUEE_SELECT = 'marquee-select'
    SCALE_ANNOTATION = 'scale-annotation'
    ROTATE_ANNOTATION = 'rotate-annotation'
    DRAG_ARROW_START = 'drag-arrow-start'
    DRAG_ARROW_END = 'drag-arrow-end'
    SCALE_MULTI_ANNOTATION = 'scale-multi-annotation'
    ROTATE_MULTI_ANNOTATION = 'rotate-multi-annotation'


@dataclass(frozen=True)
class Modifiers:
    """Keyboard state at pointer-down"""
    shift: bool = False
    ctrl: bool = False
    meta: bool = False
    alt: bool = False
    space: bool = False
    crop_key: bool = False


@dataclass(frozen=True)
class PointerEvent:
    """A pointer position in canvas space, plus its screen position"""
    canvas: Vec2
    screen: Optional[Vec2] = None


def _angle(point, center):
    return math.degrees(math.atan2(point.y - center.y, point.x - center.x))


def _distance(a, b):
    return max(DISTANCE_EPSILON, math.hypot(a.x - b.x, a.y - b.y))


class Gesture(ABC):
    """Base class for a pointer gesture

    Attributes:
        mode: GestureMode of this state
        edits_document: Whether the gesture stages edits through the live snapshot
        start: PointerEvent at pointer-down
        last: Most recent PointerEvent
    """

    mode = GestureMode.IDLE
    edits_document = True

    def __init__(self, start: PointerEvent, modifiers: Modifiers = None):
        self.start = start
        self.last = start
        self.modifiers = modifiers or Modifiers()

    def update(self, ctx, event: PointerEvent):
        self._update(ctx, event)
        self.last = event

    @abstractmethod
    def _update(self, ctx, event: PointerEvent):
        """Apply one pointer move"""

    def finish(self, ctx) -> Optional[str]:
        return None

    def __repr__(self):
        return f"<{type(self).__name__} {self.mode.value}>"


# ======================================================================
# VIEW
# ======================================================================

class PanGesture(Gesture):
    mode = GestureMode.PAN
    edits_document = False

    def _update(self, ctx, event):
        if event.screen is None or self.last.screen is None:
            return
        ctx.viewport.pan_by(event.screen.x - self.last.screen.x, event.screen.y - self.last.screen.y)


# ======================================================================
# MOVE
# ======================================================================

class MoveImagesGesture(Gesture):
    """Drag the selection by incremental canvas deltas"""

    mode = GestureMode.MOVE_IMAGES
    label = "Move images"

    def _update(self, ctx, event):
        dx = event.canvas.x - self.last.canvas.x
        dy = event.canvas.y - self.last.canvas.y
        ctx.working.move_selection(dx, dy)

    def finish(self, ctx):
        return self.label


class MoveAnnotationsGesture(MoveImagesGesture):
    """Drag selected annotations, tracking the image they would be dropped into

    The drop target is the topmost image under the pointer that differs from
    at least one selected annotation's owner. On release, annotations are
    reparented into the drop target; released over empty canvas, image-owned
    annotations move to the canvas.
    """

    mode = GestureMode.MOVE_ANNOTATIONS
    label = "Move annotations"

    def _update(self, ctx, event):
        super()._update(ctx, event)
        ctx.drop_target_image_id = self._drop_target(ctx, event.canvas)

    @staticmethod
    def _drop_target(ctx, point):
        working = ctx.working
        owners = [ref.image_id for ref in working.selection.annotations]
        image_id = find_image_at(working, point)
        if image_id is None or not owners:
            return None
        if any(owner != image_id for owner in owners):
            return image_id
        return None

    def finish(self, ctx):
        target = ctx.drop_target_image_id
        ctx.drop_target_image_id = None
        # A click without movement is a selection, never a drop
        if self.last is self.start:
            return self.label
        working = ctx.working
        refs = list(working.selection.annotations)
        if target is not None:
            moved = working.reparent_many([r for r in refs if r.image_id != target], target)
            if moved:
                _logger.debug(f"Dropped {len(moved)} annotation(s) into {target}")
        elif find_image_at(working, self.last.canvas) is None:
            moved = working.reparent_many([r for r in refs if not r.is_canvas], None)
            if moved:
                _logger.debug(f"Dropped {len(moved)} annotation(s) onto the canvas")
        return self.label


# ======================================================================
# CROP
# ======================================================================

class DrawCropGesture(Gesture):
    mode = GestureMode.DRAW_CROP
    edits_document = False

    def _update(self, ctx, event):
        origin = self.start.canvas
        width, height = constrain_to_aspect(event.canvas.x - origin.x, event.canvas.y - origin.y,
                                            ctx.crop_aspect_ratio)
        ctx.crop_rect = Rect(origin.x, origin.y, width, height)

    def finish(self, ctx):
        if ctx.crop_rect is not None:
            rect = ctx.crop_rect.normalized()
            ctx.crop_rect = rect if rect.width > 0 and rect.height > 0 else None
        return None


class ResizeCropGesture(Gesture):
    mode = GestureMode.RESIZE_CROP
    edits_document = False

    def __init__(self, start, handle, initial_rect: Rect, modifiers=None):
        super().__init__(start, modifiers)
        self.handle = handle
        self.initial_rect = initial_rect

    def _update(self, ctx, event):
        dx = event.canvas.x - self.start.canvas.x
        dy = event.canvas.y - self.start.canvas.y
        ctx.crop_rect = self.handle.drag(self.initial_rect, dx, dy, ctx.crop_aspect_ratio)

    def finish(self, ctx):
        if ctx.crop_rect is not None:
            ctx.crop_rect = ctx.crop_rect.normalized()
        return None


class MoveCropGesture(Gesture):
    mode = GestureMode.MOVE_CROP
    edits_document = False

    def __init__(self, start, initial_rect: Rect, modifiers=None):
        super().__init__(start, modifiers)
        self.initial_rect = initial_rect

    def _update(self, ctx, event):
        ctx.crop_rect = self.initial_rect.translated(event.canvas.x - self.start.canvas.x,
                                                     event.canvas.y - self.start.canvas.y)


# ======================================================================
# DRAW
# ======================================================================

class DrawAnnotationGesture(Gesture):
    """Drag out a new annotation

    The draft lives on the gesture (in its owner's local space) until
    pointer-up; a draft that was never dragged out is discarded. With shift
    held, rects become squares and lines/arrows snap to 45 degrees.
    """

    mode = GestureMode.DRAW_ANNOTATION

    def __init__(self, start, draft, target_image_id, owner, modifiers=None):
        """
        Args:
            start: PointerEvent at pointer-down
            draft: Zero-size annotation anchored at the start point (owner space)
            target_image_id: Owner image id, or None for the canvas
            owner: Owner CanvasImage at pointer-down, or None
        """
        super().__init__(start, modifiers)
        self.draft = draft
        self.target_image_id = target_image_id
        self._owner = owner
        self._anchor = global_to_parent(start.canvas, owner)

    def _update(self, ctx, event):
        point = global_to_parent(event.canvas, self._owner)
        anchor = self._anchor
        draft = self.draft
        dx = point.x - anchor.x
        dy = point.y - anchor.y

        if isinstance(draft, FreehandAnnotation):
            self.draft = replace(draft, points=draft.points + (point,))
        elif isinstance(draft, RectAnnotation):
            if self.modifiers.shift:
                size = max(abs(dx), abs(dy))
                dx = math.copysign(size, dx)
                dy = math.copysign(size, dy)
            self.draft = replace(draft, width=dx, height=dy)
        elif isinstance(draft, CircleAnnotation):
            self.draft = replace(draft, radius=math.hypot(dx, dy))
        elif isinstance(draft, SEGMENT_TYPES):
            if self.modifiers.shift:
                snap = round(math.atan2(dy, dx) / (math.pi / 4)) * (math.pi / 4)
                length = math.hypot(dx, dy)
                point = Vec2(anchor.x + length * math.cos(snap), anchor.y + length * math.sin(snap))
            self.draft = replace(draft, end=point)

    def finish(self, ctx):
        draft = self.draft
        working = ctx.working
        if self.target_image_id is not None and working.get_image(self.target_image_id) is None:
            _logger.debug(f"Draw target {self.target_image_id} disappeared, discarding draft")
            return None
        if is_degenerate(draft):
            _logger.debug(f"Discarding degenerate {draft.type.value} draft")
            return None
        if isinstance(draft, RectAnnotation):
            draft = draft.normalized()
        ref = working.add_annotation(self.target_image_id, draft)
        if ref is None:
            return None
        working.select_annotations([ref])
        ctx.active_tool = 'select'
        return f"Draw {draft.type.value}"


# ======================================================================
# MARQUEE
# ======================================================================

class MarqueeGesture(Gesture):
    """Rubber-band selection of images and canvas annotations"""

    mode = GestureMode.MARQUEE_SELECT
    edits_document = False

    def _update(self, ctx, event):
        origin = self.start.canvas
        ctx.marquee_rect = Rect(origin.x, origin.y, event.canvas.x - origin.x, event.canvas.y - origin.y)

    def finish(self, ctx):
        rect = ctx.marquee_rect
        ctx.marquee_rect = None
        if rect is None:
            return None
        rect = rect.normalized()
        working = ctx.working
        images = working.images_by_id()
        image_ids = [i for i in working.image_order() if image_bounds(images[i]).intersects(rect)]
        refs = [AnnotationRef(None, a.id) for a in working.canvas_annotations
                if global_bounds(a).intersects(rect)]

        if self.modifiers.ctrl:
            mode = 'subtract'
        elif self.modifiers.shift:
            mode = 'union'
        else:
            mode = 'replace'
        working.box_select(image_ids, refs, mode)
        return None


# ======================================================================
# SINGLE ANNOTATION TRANSFORM
# ======================================================================

class _AnnotationGesture(Gesture):
    """Gesture on one annotation, measured in the annotation's parent space"""

    label = ""

    def __init__(self, start, ref, initial, owner, modifiers=None):
        super().__init__(start, modifiers)
        self.ref = ref
        self.initial = initial
        self.owner = owner
        self.pivot = annotation_pivot(initial)

    def _parent_point(self, event):
        return global_to_parent(event.canvas, self.owner)

    def finish(self, ctx):
        return self.label


class ScaleAnnotationGesture(_AnnotationGesture):
    mode = GestureMode.SCALE_ANNOTATION
    label = "Scale annotation"

    def __init__(self, start, ref, initial, owner, modifiers=None):
        super().__init__(start, ref, initial, owner, modifiers)
        self.initial_distance = _distance(self._parent_point(start), self.pivot)

    def _update(self, ctx, event):
        ratio = _distance(self._parent_point(event), self.pivot) / self.initial_distance
        scale = max(ctx.config.min_annotation_scale, self.initial.scale * ratio)
        ctx.working.update_annotation(self.ref, scale=scale)


class RotateAnnotationGesture(_AnnotationGesture):
    mode = GestureMode.ROTATE_ANNOTATION
    label = "Rotate annotation"

    def __init__(self, start, ref, initial, owner, modifiers=None):
        super().__init__(start, ref, initial, owner, modifiers)
        self.initial_angle = _angle(self._parent_point(start), self.pivot)

    def _update(self, ctx, event):
        delta = _angle(self._parent_point(event), self.pivot) - self.initial_angle
        ctx.working.update_annotation(self.ref, rotation=self.initial.rotation + delta)


class DragEndpointGesture(_AnnotationGesture):
    """Move one endpoint of a line/arrow, keeping the other fixed on screen

    The pivot (segment midpoint) moves with the edit, so the local geometry
    is solved so that the fixed endpoint keeps its rendered parent-space
    position and the dragged endpoint renders under the pointer.
    """

    label = "Move endpoint"

    def __init__(self, start, ref, initial, owner, endpoint, modifiers=None):
        super().__init__(start, ref, initial, owner, modifiers)
        if not isinstance(initial, SEGMENT_TYPES):
            raise TypeError(f"Endpoint drag needs a line or arrow, got {type(initial).__name__}")
        self.endpoint = endpoint
        self.mode = GestureMode.DRAG_ARROW_START if endpoint == START else GestureMode.DRAG_ARROW_END
        fixed = initial.end if endpoint == START else initial.start
        self.fixed_rendered = apply_point(annotation_matrix(initial), fixed)

    def _update(self, ctx, event):
        target = self._parent_point(event)
        fixed = self.fixed_rendered
        # Undo the annotation's own rotation/scale on the rendered offset
        radians = math.radians(-self.initial.rotation)
        scale = safe_scale(self.initial.scale)
        ox = target.x - fixed.x
        oy = target.y - fixed.y
        dx = (ox * math.cos(radians) - oy * math.sin(radians)) / scale
        dy = (ox * math.sin(radians) + oy * math.cos(radians)) / scale

        mid = Vec2((fixed.x + target.x) / 2, (fixed.y + target.y) / 2)
        moving = Vec2(mid.x + dx / 2, mid.y + dy / 2)
        anchored = Vec2(mid.x - dx / 2, mid.y - dy / 2)
        if self.endpoint == START:
            ctx.working.update_annotation(self.ref, start=moving, end=anchored)
        else:
            ctx.working.update_annotation(self.ref, start=anchored, end=moving)


# ======================================================================
# MULTI-SELECTION TRANSFORM
# ======================================================================

class _GroupGesture(Gesture):
    """Broadcast one scalar to every selected annotation's own field"""

    label = ""

    def __init__(self, start, working, modifiers=None):
        super().__init__(start, modifiers)
        self.refs = tuple(working.selection.annotations)
        self.initial = freeze_selection(working, self.refs)
        bounds = group_bounds(working, self.refs)
        self.center = bounds.center if bounds is not None else start.canvas

    def finish(self, ctx):
        return self.label


class ScaleMultiGesture(_GroupGesture):
    mode = GestureMode.SCALE_MULTI_ANNOTATION
    label = "Scale annotations"

    def __init__(self, start, working, modifiers=None):
        super().__init__(start, working, modifiers)
        self.initial_distance = _distance(start.canvas, self.center)

    def _update(self, ctx, event):
        ratio = _distance(event.canvas, self.center) / self.initial_distance
        apply_group_scale(ctx.working, self.refs, self.initial, ratio, ctx.config.min_annotation_scale)


class RotateMultiGesture(_GroupGesture):
    mode = GestureMode.ROTATE_MULTI_ANNOTATION
    label = "Rotate annotations"

    def __init__(self, start, working, modifiers=None):
        super().__init__(start, working, modifiers)
        self.initial_angle = _angle(start.canvas, self.center)

    def _update(self, ctx, event):
        apply_group_rotate(ctx.working, self.refs, self.initial, _angle(event.canvas, self.center) - self.initial_angle)

