"""
Canvas Composer - Bounds Calculator

Axis-aligned bounds for annotations, images and groups.

- primitive_bounds(): un-rotated, un-scaled box in annotation-local space,
  padded for easy picking (stroke half-width + HIT_PADDING, plus arrowhead
  allowance for arrows; text uses HIT_PADDING only)
- annotation_bounds(): primitive bounds after the annotation's own
  rotation/scale, in its parent space
- global_bounds(): primitive bounds through the full chain into global space

Rotated boxes are re-boxed from their four transformed corners, so the
result is the AABB of the rotated rect and is generally larger than the
tight rotated shape.
"""

from typing import Iterable, Optional

import numpy as np

from canvas_composer.constants import HIT_PADDING, ARROW_HEAD_PADDING
from canvas_composer.models.annotation import (
    FreehandAnnotation, TextAnnotation, RectAnnotation, CircleAnnotation, ArrowAnnotation,
    SEGMENT_TYPES, unhandled_annotation,
)
from canvas_composer.models.transform import Rect
from canvas_composer.utils.text_metrics import measure_text
from canvas_composer.utils.transform_math import (
    annotation_matrix, annotation_to_global_matrix, image_matrix, annotation_pivot,
)

__all__ = [
    'bounds_padding', 'primitive_bounds', 'annotation_pivot', 'annotation_bounds', 'global_bounds',
    'transform_rect', 'image_bounds', 'images_bounds', 'group_bounds', 'union_rects',
]


def bounds_padding(annotation) -> float:
    """Padding applied around an annotation's geometry"""
    return (annotation.stroke_width or 1.0) / 2 + HIT_PADDING


def primitive_bounds(annotation) -> Rect:
    """Padded local bounds of an annotation, before its own rotation/scale"""
    padding = bounds_padding(annotation)

    if isinstance(annotation, FreehandAnnotation):
        tight = Rect.from_points(annotation.points)
        if tight is None:
            return Rect(0.0, 0.0, 0.0, 0.0)
        return Rect(tight.x - padding, tight.y - padding,
                    tight.width + padding * 2, tight.height + padding * 2)

    if isinstance(annotation, RectAnnotation):
        r = annotation.normalized()
        return Rect(r.x - padding, r.y - padding, r.width + padding * 2, r.height + padding * 2)

    if isinstance(annotation, CircleAnnotation):
        extent = annotation.radius + padding
        return Rect(annotation.x - extent, annotation.y - extent, extent * 2, extent * 2)

    if isinstance(annotation, TextAnnotation):
        width, height = measure_text(annotation.text, annotation.font_family, annotation.font_size)
        return Rect(annotation.x - HIT_PADDING, annotation.y - HIT_PADDING,
                    width + HIT_PADDING * 2, height + HIT_PADDING * 2)

    if isinstance(annotation, SEGMENT_TYPES):
        tight = Rect.from_points((annotation.start, annotation.end))
        if isinstance(annotation, ArrowAnnotation):
            padding += ARROW_HEAD_PADDING + (annotation.stroke_width or 0.0)
        return Rect(tight.x - padding, tight.y - padding,
                    tight.width + padding * 2, tight.height + padding * 2)

    unhandled_annotation(annotation)


def transform_rect(matrix: np.ndarray, rect: Rect) -> Rect:
    """AABB of a rect's four corners after an affine transform"""
    r = rect.normalized()
    corners = np.array([
        [r.x, r.right, r.right, r.x],
        [r.y, r.y, r.bottom, r.bottom],
        [1.0, 1.0, 1.0, 1.0],
    ])
    xs, ys, _ = matrix @ corners
    min_x, max_x = float(xs.min()), float(xs.max())
    min_y, max_y = float(ys.min()), float(ys.max())
    return Rect(min_x, min_y, max_x - min_x, max_y - min_y)


def annotation_bounds(annotation) -> Rect:
    """Bounds in the annotation's parent space (own rotation/scale applied)"""
    local = primitive_bounds(annotation).normalized()
    if annotation.rotation == 0 and annotation.scale == 1:
        return local
    return transform_rect(annotation_matrix(annotation), local)


def global_bounds(annotation, owner=None) -> Rect:
    """Bounds in global space; owner is the owning image or None for the canvas"""
    return transform_rect(annotation_to_global_matrix(annotation, owner), primitive_bounds(annotation))


def image_bounds(image) -> Rect:
    """Rotated/scaled footprint of an image, as a global AABB"""
    return transform_rect(image_matrix(image), Rect(0.0, 0.0, image.width, image.height))


def union_rects(rects: Iterable[Optional[Rect]]) -> Optional[Rect]:
    result = None
    for rect in rects:
        if rect is None:
            continue
        result = rect.normalized() if result is None else result.union(rect)
    return result


def images_bounds(images) -> Optional[Rect]:
    """Union of the footprints of the visible images, or None"""
    return union_rects(image_bounds(image) for image in images if image.visible)


def group_bounds(group, groups_by_id, images_by_id, _seen=None) -> Optional[Rect]:
    """Union of member image and nested group bounds

    Args:
        group: Group to measure
        groups_by_id: Mapping of group id -> Group
        images_by_id: Mapping of image id -> CanvasImage
    """
    seen = set() if _seen is None else _seen
    if group.id in seen:
        return None
    seen.add(group.id)

    members = [images_by_id[i] for i in group.image_ids if i in images_by_id]
    rects = [images_bounds(members)]
    for child_id in group.group_ids:
        child = groups_by_id.get(child_id)
        if child is not None:
            rects.append(group_bounds(child, groups_by_id, images_by_id, seen))
    return union_rects(rects)
