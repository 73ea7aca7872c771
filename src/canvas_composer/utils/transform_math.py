"""
Canvas Composer - Transform Math Utilities

Single source of truth for the nested coordinate spaces:

    global (canvas) space
      └─ image-local space   origin at the image's pre-transform top-left
           └─ annotation-local space   shape geometry before its own rotation/scale

Forward mapping for an image: translate to the image's own center, rotate by
its rotation, scale uniformly, translate to its global center. Annotations
apply the same pattern about their pivot, composed with their owner image
when they are image-owned.

Transforms are 3x3 affine numpy matrices so chains can be composed once and
applied to many points (e.g. bounding box corners) at a time. Angles are in
degrees everywhere and converted to radians only at the trig call sites.
"""

import math
from typing import Iterable, List, Optional

import numpy as np

from canvas_composer.constants import SCALE_EPSILON
from canvas_composer.models.annotation import (
    FreehandAnnotation, TextAnnotation, RectAnnotation, CircleAnnotation, SEGMENT_TYPES,
    unhandled_annotation,
)
from canvas_composer.models.transform import Vec2
from canvas_composer.utils.text_metrics import measure_text


# ======================================================================
# PRIMITIVES
# ======================================================================

def safe_scale(scale: float) -> float:
    """Clamp a near-zero scale to SCALE_EPSILON, preserving its sign"""
    if abs(scale) < SCALE_EPSILON:
        return -SCALE_EPSILON if scale < 0 else SCALE_EPSILON
    return scale


def translation_matrix(dx: float, dy: float) -> np.ndarray:
    return np.array([
        [1.0, 0.0, dx],
        [0.0, 1.0, dy],
        [0.0, 0.0, 1.0],
    ])


def rotation_matrix(degrees: float) -> np.ndarray:
    rad = math.radians(degrees)
    cos = math.cos(rad)
    sin = math.sin(rad)
    return np.array([
        [cos, -sin, 0.0],
        [sin, cos, 0.0],
        [0.0, 0.0, 1.0],
    ])


def scale_matrix(scale: float) -> np.ndarray:
    return np.array([
        [scale, 0.0, 0.0],
        [0.0, scale, 0.0],
        [0.0, 0.0, 1.0],
    ])


def pivot_matrix(pivot: Vec2, rotation: float, scale: float) -> np.ndarray:
    """Rotate then scale about a pivot point"""
    return (translation_matrix(pivot.x, pivot.y)
            @ rotation_matrix(rotation)
            @ scale_matrix(scale)
            @ translation_matrix(-pivot.x, -pivot.y))


def inverse_pivot_matrix(pivot: Vec2, rotation: float, scale: float) -> np.ndarray:
    """Exact inverse of pivot_matrix: undo scale before rotation"""
    return (translation_matrix(pivot.x, pivot.y)
            @ scale_matrix(1.0 / safe_scale(scale))
            @ rotation_matrix(-rotation)
            @ translation_matrix(-pivot.x, -pivot.y))


def apply_matrix(matrix: np.ndarray, points: Iterable[Vec2]) -> List[Vec2]:
    """Transform many points at once"""
    points = list(points)
    if not points:
        return []
    coords = np.array([[p.x, p.y, 1.0] for p in points]).T
    result = matrix @ coords
    return [Vec2(float(x), float(y)) for x, y in zip(result[0], result[1])]


def apply_point(matrix: np.ndarray, point: Vec2) -> Vec2:
    x, y, _ = matrix @ np.array([point.x, point.y, 1.0])
    return Vec2(float(x), float(y))


def rotate_point(point: Vec2, center: Vec2, degrees: float) -> Vec2:
    """Rotate a point about a center by degrees"""
    rad = math.radians(degrees)
    cos = math.cos(rad)
    sin = math.sin(rad)
    dx = point.x - center.x
    dy = point.y - center.y
    return Vec2(center.x + dx * cos - dy * sin, center.y + dx * sin + dy * cos)


# ======================================================================
# IMAGE <-> GLOBAL
# ======================================================================

def image_matrix(image) -> np.ndarray:
    """Image-local -> global affine matrix"""
    center = image.center
    return (translation_matrix(center.x, center.y)
            @ rotation_matrix(image.rotation)
            @ scale_matrix(image.scale)
            @ translation_matrix(-image.width / 2, -image.height / 2))


def inverse_image_matrix(image) -> np.ndarray:
    """Global -> image-local affine matrix"""
    center = image.center
    return (translation_matrix(image.width / 2, image.height / 2)
            @ scale_matrix(1.0 / safe_scale(image.scale))
            @ rotation_matrix(-image.rotation)
            @ translation_matrix(-center.x, -center.y))


def image_to_global(point: Vec2, image) -> Vec2:
    return apply_point(image_matrix(image), point)


def global_to_image(point: Vec2, image) -> Vec2:
    return apply_point(inverse_image_matrix(image), point)


def parent_to_global(point: Vec2, owner) -> Vec2:
    """Map from an owner's space (None = canvas) to global space"""
    return point if owner is None else image_to_global(point, owner)


def global_to_parent(point: Vec2, owner) -> Vec2:
    """Map a global point into an owner's space (None = canvas)"""
    return point if owner is None else global_to_image(point, owner)


def global_delta_to_local(dx: float, dy: float, image) -> Vec2:
    """Convert a global displacement into the image's local units

    Rotates the delta by -rotation and divides by the image scale, so a drag
    of an image-owned annotation follows the pointer on screen.
    """
    rad = math.radians(-image.rotation)
    cos = math.cos(rad)
    sin = math.sin(rad)
    scale = safe_scale(image.scale)
    return Vec2((dx * cos - dy * sin) / scale, (dx * sin + dy * cos) / scale)


# ======================================================================
# ANNOTATION <-> PARENT <-> GLOBAL
# ======================================================================

def annotation_pivot(annotation) -> Vec2:
    """Point about which an annotation's own rotation/scale is applied

    Segment midpoint for lines/arrows, the circle center, the rect center
    and the center of the text block / freehand extents otherwise.
    """
    if isinstance(annotation, RectAnnotation):
        return Vec2(annotation.x + annotation.width / 2, annotation.y + annotation.height / 2)
    if isinstance(annotation, CircleAnnotation):
        return Vec2(annotation.x, annotation.y)
    if isinstance(annotation, SEGMENT_TYPES):
        return Vec2((annotation.start.x + annotation.end.x) / 2, (annotation.start.y + annotation.end.y) / 2)
    if isinstance(annotation, TextAnnotation):
        width, height = measure_text(annotation.text, annotation.font_family, annotation.font_size)
        return Vec2(annotation.x + width / 2, annotation.y + height / 2)
    if isinstance(annotation, FreehandAnnotation):
        if not annotation.points:
            return Vec2(0.0, 0.0)
        xs = [p.x for p in annotation.points]
        ys = [p.y for p in annotation.points]
        return Vec2((min(xs) + max(xs)) / 2, (min(ys) + max(ys)) / 2)
    unhandled_annotation(annotation)


def annotation_matrix(annotation) -> np.ndarray:
    """Annotation-local -> parent space (owner image space or global)"""
    return pivot_matrix(annotation_pivot(annotation), annotation.rotation, annotation.scale)


def inverse_annotation_matrix(annotation) -> np.ndarray:
    return inverse_pivot_matrix(annotation_pivot(annotation), annotation.rotation, annotation.scale)


def annotation_to_global_matrix(annotation, owner=None) -> np.ndarray:
    """Full annotation-local -> global chain; owner None for canvas annotations"""
    matrix = annotation_matrix(annotation)
    if owner is not None:
        matrix = image_matrix(owner) @ matrix
    return matrix


def global_to_annotation_matrix(annotation, owner=None) -> np.ndarray:
    matrix = inverse_annotation_matrix(annotation)
    if owner is not None:
        matrix = matrix @ inverse_image_matrix(owner)
    return matrix


def annotation_to_global(point: Vec2, annotation, owner=None) -> Vec2:
    return apply_point(annotation_to_global_matrix(annotation, owner), point)


def global_to_annotation(point: Vec2, annotation, owner=None) -> Vec2:
    return apply_point(global_to_annotation_matrix(annotation, owner), point)


def owner_scale(owner: Optional[object]) -> float:
    return 1.0 if owner is None else owner.scale


def owner_rotation(owner: Optional[object]) -> float:
    return 0.0 if owner is None else owner.rotation
