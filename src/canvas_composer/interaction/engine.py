"""
Interaction engine: pointer-down transition resolution.

resolve() decides which gesture a pointer-down starts, in priority order:

1. Pan (space held)
2. Crop handle, then crop body; a click elsewhere clears the crop unless the
   crop tool or crop key is active
3. Crop tool / crop key: draw a new crop
4. Select tool, >= 2 annotations selected: group rotate/scale handles
5. Select tool, exactly 1 annotation selected: endpoint, scale, rotate handles
6. Text tool: creates the text immediately (no gesture)
7. Draw tools: start a draft
8. Select tool: annotation pick, then image pick, else marquee

Selection side effects of a click are applied to the committed composition
before the gesture starts, so the gesture's working copy already carries them.
"""

import logging
from dataclasses import dataclass, asdict
from typing import NamedTuple, Optional

from canvas_composer.constants import (
    DEFAULT_COLOR, DEFAULT_STROKE_WIDTH, DEFAULT_FONT_SIZE, DEFAULT_FONT_FAMILY, DEFAULT_TEXT,
)
from canvas_composer.models.annotation import (
    FreehandAnnotation, TextAnnotation, RectAnnotation, CircleAnnotation, ArrowAnnotation, LineAnnotation,
    SEGMENT_TYPES,
)
from canvas_composer.models.transform import Rect
from canvas_composer.services.group_transform import group_bounds
from canvas_composer.services.hit_testing import find_annotation_at, find_image_at
from canvas_composer.utils.transform_math import global_to_parent
from .gestures import (
    GestureMode, Modifiers, PanGesture, MoveImagesGesture, MoveAnnotationsGesture, DrawCropGesture,
    ResizeCropGesture, MoveCropGesture, DrawAnnotationGesture, MarqueeGesture, ScaleAnnotationGesture,
    RotateAnnotationGesture, DragEndpointGesture, ScaleMultiGesture, RotateMultiGesture,
)
from .handles import (
    CropHandle, hit_crop_handle, hit_annotation_handle, hit_selection_handle, START, END, SCALE, ROTATE,
)

SELECT_TOOL = 'select'
CROP_TOOL = 'crop'
TEXT_TOOL = 'text'
DRAW_TOOLS = ('freehand', 'rect', 'circle', 'arrow', 'line')
TOOLS = (SELECT_TOOL, CROP_TOOL, TEXT_TOOL) + DRAW_TOOLS


@dataclass
class ToolOptions:
    """Style applied to newly created annotations"""
    color: str = DEFAULT_COLOR
    stroke_width: float = DEFAULT_STROKE_WIDTH
    fill_color: Optional[str] = None
    fill_opacity: float = 1.0
    outline_color: Optional[str] = None
    outline_width: float = 0.0
    outline_opacity: float = 1.0
    font_size: float = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    background_color: Optional[str] = None
    background_opacity: float = 0.0
    stroke_color: Optional[str] = None
    stroke_opacity: float = 1.0

    def to_dict(self):
        return asdict(self)


def make_draft(tool, point, options: ToolOptions):
    """New zero-size annotation for a tool, anchored at point (owner space)

    Raises:
        ValueError: If tool does not create annotations
    """
    base = dict(color=options.color, stroke_width=options.stroke_width)
    outline = dict(outline_color=options.outline_color, outline_width=options.outline_width,
                   outline_opacity=options.outline_opacity)
    fill = dict(fill_color=options.fill_color, fill_opacity=options.fill_opacity)

    if tool == 'freehand':
        return FreehandAnnotation(points=(point,), **base, **outline)
    if tool == 'rect':
        return RectAnnotation(x=point.x, y=point.y, width=0.0, height=0.0, **base, **fill)
    if tool == 'circle':
        return CircleAnnotation(x=point.x, y=point.y, radius=0.0, **base, **fill)
    if tool == 'arrow':
        return ArrowAnnotation(start=point, end=point, **base, **outline)
    if tool == 'line':
        return LineAnnotation(start=point, end=point, **base, **outline)
    if tool == TEXT_TOOL:
        return TextAnnotation(
            x=point.x, y=point.y, text=DEFAULT_TEXT, font_size=options.font_size,
            font_family=options.font_family, background_color=options.background_color,
            background_opacity=options.background_opacity, stroke_color=options.stroke_color,
            stroke_opacity=options.stroke_opacity, **base,
        )
    raise ValueError(f"Tool '{tool}' does not create annotations")


class Resolution(NamedTuple):
    """Outcome of a pointer-down: a gesture to run and/or a label to commit now"""
    gesture: Optional[object] = None
    commit_label: Optional[str] = None


class InteractionEngine:
    """Builds gestures from pointer-downs and explicit requests

    The ctx argument is the EditorState: ctx.composition (committed
    document), ctx.viewport, ctx.config, ctx.active_tool, ctx.tool_options,
    ctx.crop_rect, ctx.marquee_rect.
    """

    def __init__(self):
        self._logger = logging.getLogger('Interaction')

    # ========================================
    # Pointer-down
    # ========================================

    def resolve(self, ctx, event, modifiers: Modifiers = None) -> Resolution:
        modifiers = modifiers or Modifiers()
        point = event.canvas
        tool = ctx.active_tool
        config = ctx.config
        view_scale = ctx.viewport.scale

        if modifiers.space:
            return Resolution(PanGesture(event, modifiers))

        crop_mode = tool == CROP_TOOL or modifiers.crop_key
        if ctx.crop_rect is not None:
            handle = hit_crop_handle(ctx.crop_rect, point, view_scale, config.crop_handle_size_px)
            if handle is not None:
                return Resolution(ResizeCropGesture(event, handle, ctx.crop_rect, modifiers))
            if ctx.crop_rect.normalized().contains(point):
                return Resolution(MoveCropGesture(event, ctx.crop_rect, modifiers))
            if not crop_mode:
                ctx.crop_rect = None

        if crop_mode:
            ctx.crop_rect = Rect(point.x, point.y, 0.0, 0.0)
            return Resolution(DrawCropGesture(event, modifiers))

        if tool == SELECT_TOOL:
            gesture = self._selection_handle_gesture(ctx, event, modifiers)
            if gesture is not None:
                return Resolution(gesture)

        if tool == TEXT_TOOL:
            return Resolution(commit_label=self._create_text(ctx, point))

        if tool in DRAW_TOOLS:
            return Resolution(self._start_draw(ctx, event, tool, modifiers))

        return Resolution(self._pick_gesture(ctx, event, modifiers))

    def _selection_handle_gesture(self, ctx, event, modifiers):
        composition = ctx.composition
        config = ctx.config
        refs = composition.selection.annotations
        sizes = dict(handle_size_px=config.handle_size_px, click_factor=config.handle_click_factor,
                     rotation_offset_px=config.rotation_handle_offset_px)

        if len(refs) >= 2:
            bounds = group_bounds(composition, refs)
            if bounds is None:
                return None
            handle = hit_selection_handle(bounds, event.canvas, ctx.viewport.scale, **sizes)
            if handle is None:
                return None
            if handle.kind == ROTATE:
                return RotateMultiGesture(event, composition, modifiers)
            return ScaleMultiGesture(event, composition, modifiers)

        if len(refs) == 1:
            resolved = composition.resolve(refs[0])
            if resolved is None:
                return None
            annotation, owner = resolved
            handle = hit_annotation_handle(annotation, owner, event.canvas, ctx.viewport.scale, **sizes)
            if handle is not None:
                return self._annotation_gesture(event, handle.kind, refs[0], annotation, owner, modifiers)
        return None

    @staticmethod
    def _annotation_gesture(event, kind, ref, annotation, owner, modifiers):
        if kind in (START, END):
            return DragEndpointGesture(event, ref, annotation, owner, kind, modifiers)
        if kind == SCALE:
            return ScaleAnnotationGesture(event, ref, annotation, owner, modifiers)
        return RotateAnnotationGesture(event, ref, annotation, owner, modifiers)

    def _draw_target(self, composition, point):
        """Single selected image, else the topmost image under point, else the canvas"""
        if len(composition.selection.image_ids) == 1:
            image = composition.get_image(composition.selection.image_ids[0])
            if image is not None:
                return image
        image_id = find_image_at(composition, point)
        return composition.get_image(image_id) if image_id is not None else None

    def _create_text(self, ctx, point):
        composition = ctx.composition
        owner = self._draw_target(composition, point)
        draft = make_draft(TEXT_TOOL, global_to_parent(point, owner), ctx.tool_options)
        ref = composition.add_annotation(owner.id if owner is not None else None, draft)
        if ref is None:
            return None
        composition.select_annotations([ref])
        ctx.active_tool = SELECT_TOOL
        self._logger.debug(f"Created text {ref.annotation_id} on {ref.image_id or 'canvas'}")
        return "Add text"

    def _start_draw(self, ctx, event, tool, modifiers):
        composition = ctx.composition
        owner = self._draw_target(composition, event.canvas)
        target_id = owner.id if owner is not None else None
        if target_id is not None and target_id not in composition.selection.image_ids:
            composition.select_image(target_id)
        draft = make_draft(tool, global_to_parent(event.canvas, owner), ctx.tool_options)
        return DrawAnnotationGesture(event, draft, target_id, owner, modifiers)

    def _pick_gesture(self, ctx, event, modifiers):
        composition = ctx.composition
        point = event.canvas
        ref = find_annotation_at(composition, point, ctx.viewport.scale, ctx.config.hit_tolerance_px)
        if ref is not None:
            composition.select_annotation(ref, additive=modifiers.shift)
            return MoveAnnotationsGesture(event, modifiers)

        image_id = find_image_at(composition, point)
        if image_id is not None:
            toggle = modifiers.shift or modifiers.ctrl or modifiers.meta
            if toggle or image_id not in composition.selection.image_ids:
                composition.select_image(image_id, shift=modifiers.shift, ctrl=modifiers.ctrl or modifiers.meta)
            return MoveImagesGesture(event, modifiers)

        ctx.marquee_rect = Rect(point.x, point.y, 0.0, 0.0)
        return MarqueeGesture(event, modifiers)

    # ========================================
    # Explicit gestures
    # ========================================

    def create(self, ctx, kind, event, modifiers: Modifiers = None, target=None):
        """Build a gesture of a given kind without pointer-down resolution

        Args:
            kind: GestureMode (or its value)
            event: PointerEvent at the gesture start
            modifiers: Keyboard state
            target: Kind-specific target: crop handle name (RESIZE_CROP), tool
                name (DRAW_ANNOTATION, default the active tool) or
                AnnotationRef (single-annotation gestures, default the single
                selected annotation)

        Returns:
            The gesture, or None if its target does not exist

        Raises:
            ValueError: For IDLE or an unknown kind
        """
        kind = GestureMode(kind)
        modifiers = modifiers or Modifiers()
        composition = ctx.composition

        if kind == GestureMode.PAN:
            return PanGesture(event, modifiers)
        if kind == GestureMode.MOVE_IMAGES:
            return MoveImagesGesture(event, modifiers)
        if kind == GestureMode.MOVE_ANNOTATIONS:
            return MoveAnnotationsGesture(event, modifiers)
        if kind == GestureMode.MARQUEE_SELECT:
            ctx.marquee_rect = Rect(event.canvas.x, event.canvas.y, 0.0, 0.0)
            return MarqueeGesture(event, modifiers)
        if kind == GestureMode.DRAW_CROP:
            ctx.crop_rect = Rect(event.canvas.x, event.canvas.y, 0.0, 0.0)
            return DrawCropGesture(event, modifiers)
        if kind in (GestureMode.RESIZE_CROP, GestureMode.MOVE_CROP):
            if ctx.crop_rect is None:
                self._logger.debug(f"No crop rect for {kind.value}")
                return None
            if kind == GestureMode.MOVE_CROP:
                return MoveCropGesture(event, ctx.crop_rect, modifiers)
            handle = CropHandle(target or 'bottom-right', ctx.crop_rect, ctx.viewport.scale,
                                ctx.config.crop_handle_size_px)
            return ResizeCropGesture(event, handle, ctx.crop_rect, modifiers)
        if kind == GestureMode.DRAW_ANNOTATION:
            tool = target or ctx.active_tool
            if tool not in DRAW_TOOLS:
                raise ValueError(f"Tool '{tool}' cannot be dragged out")
            return self._start_draw(ctx, event, tool, modifiers)
        if kind in (GestureMode.SCALE_MULTI_ANNOTATION, GestureMode.ROTATE_MULTI_ANNOTATION):
            if not composition.selection.annotations:
                return None
            if kind == GestureMode.SCALE_MULTI_ANNOTATION:
                return ScaleMultiGesture(event, composition, modifiers)
            return RotateMultiGesture(event, composition, modifiers)

        handle_kinds = {
            GestureMode.SCALE_ANNOTATION: SCALE,
            GestureMode.ROTATE_ANNOTATION: ROTATE,
            GestureMode.DRAG_ARROW_START: START,
            GestureMode.DRAG_ARROW_END: END,
        }
        if kind in handle_kinds:
            ref = target
            if ref is None and len(composition.selection.annotations) == 1:
                ref = composition.selection.annotations[0]
            resolved = composition.resolve(ref) if ref is not None else None
            if resolved is None:
                self._logger.debug(f"No annotation for {kind.value}")
                return None
            annotation, owner = resolved
            if handle_kinds[kind] in (START, END) and not isinstance(annotation, SEGMENT_TYPES):
                return None
            return self._annotation_gesture(event, handle_kinds[kind], ref, annotation, owner, modifiers)

        raise ValueError(f"Cannot begin a gesture of kind '{kind.value}'")
