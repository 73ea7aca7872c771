"""
Hit testing (picking) over a composition snapshot.

Objects are tested in strict z-order, topmost first, over the flattened draw
order (groups expanded, hidden images skipped):

1. Annotations: each image's annotations (topmost first) at that image's z
   position, canvas annotations at their own layer position.
2. Image bodies: point inside [0, width] x [0, height] in image-local space.

Annotation tests run in annotation-local space (inverse of the full
owner + own transform chain):
- line / arrow / freehand: distance to each segment below
  stroke_width / 2 + tolerance / (owner_scale * view_scale * annotation_scale),
  so the on-screen tolerance stays constant; zero-length segments are skipped
- rect / text: point inside the normalized, padded primitive bounds
- circle: distance to the center within radius + padding
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from canvas_composer.constants import HIT_TOLERANCE_PX, DISTANCE_EPSILON
from canvas_composer.models.annotation import (
    FreehandAnnotation, TextAnnotation, RectAnnotation, CircleAnnotation, SEGMENT_TYPES,
    unhandled_annotation,
)
from canvas_composer.models.composition.query_mixin import IMAGE, ANNOTATION
from canvas_composer.models.selection import AnnotationRef
from canvas_composer.models.transform import Vec2
from canvas_composer.utils.bounds import bounds_padding, primitive_bounds
from canvas_composer.utils.transform_math import (
    global_to_annotation, global_to_image, owner_scale, safe_scale,
)

_logger = logging.getLogger('HitTest')


@dataclass(frozen=True)
class HitResult:
    """Result of a pick: an annotation (with its owner) or an image body"""
    annotation: Optional[AnnotationRef] = None
    image_id: Optional[str] = None

    @property
    def is_annotation(self) -> bool:
        return self.annotation is not None


def point_segment_distance(point: Vec2, a: Vec2, b: Vec2) -> Optional[float]:
    """Distance from point to segment ab, or None for a zero-length segment"""
    dx = b.x - a.x
    dy = b.y - a.y
    length_sq = dx * dx + dy * dy
    if length_sq < DISTANCE_EPSILON * DISTANCE_EPSILON:
        return None
    t = ((point.x - a.x) * dx + (point.y - a.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(point.x - (a.x + t * dx), point.y - (a.y + t * dy))


def _segments(annotation):
    if isinstance(annotation, FreehandAnnotation):
        points = annotation.points
        return zip(points, points[1:])
    return ((annotation.start, annotation.end),)


def hit_annotation(annotation, owner, point: Vec2, view_scale=1.0, tolerance_px=HIT_TOLERANCE_PX) -> bool:
    """Test a global point against one annotation owned by owner (None = canvas)"""
    local = global_to_annotation(point, annotation, owner)

    if isinstance(annotation, (FreehandAnnotation,) + SEGMENT_TYPES):
        scale_chain = safe_scale(owner_scale(owner) * view_scale * annotation.scale)
        threshold = annotation.stroke_width / 2 + tolerance_px / abs(scale_chain)
        for a, b in _segments(annotation):
            distance = point_segment_distance(local, a, b)
            if distance is not None and distance < threshold:
                return True
        return False

    if isinstance(annotation, (RectAnnotation, TextAnnotation)):
        return primitive_bounds(annotation).normalized().contains(local)

    if isinstance(annotation, CircleAnnotation):
        distance = math.hypot(local.x - annotation.x, local.y - annotation.y)
        return distance <= annotation.radius + bounds_padding(annotation)

    unhandled_annotation(annotation)


def point_in_image(image, point: Vec2) -> bool:
    local = global_to_image(point, image)
    return 0 <= local.x <= image.width and 0 <= local.y <= image.height


def find_annotation_at(snapshot, point: Vec2, view_scale=1.0, tolerance_px=HIT_TOLERANCE_PX) -> Optional[AnnotationRef]:
    """Topmost annotation under a global point"""
    images = snapshot.images_by_id()
    canvas = {a.id: a for a in snapshot.canvas_annotations}
    for kind, item_id in reversed(snapshot.draw_order()):
        if kind == IMAGE:
            image = images[item_id]
            for annotation in reversed(image.annotations):
                if hit_annotation(annotation, image, point, view_scale, tolerance_px):
                    return AnnotationRef(image.id, annotation.id)
        elif kind == ANNOTATION:
            if hit_annotation(canvas[item_id], None, point, view_scale, tolerance_px):
                return AnnotationRef(None, item_id)
    return None


def find_image_at(snapshot, point: Vec2, exclude=()) -> Optional[str]:
    """Topmost visible image whose body contains a global point"""
    images = snapshot.images_by_id()
    for image_id in reversed(snapshot.image_order()):
        if image_id in exclude:
            continue
        if point_in_image(images[image_id], point):
            return image_id
    return None


def pick(snapshot, point: Vec2, view_scale=1.0, tolerance_px=HIT_TOLERANCE_PX) -> Optional[HitResult]:
    """Pick the topmost annotation, else the topmost image body, at a global point"""
    ref = find_annotation_at(snapshot, point, view_scale, tolerance_px)
    if ref is not None:
        _logger.debug(f"Picked annotation {ref.annotation_id} at ({point.x:.1f}, {point.y:.1f})")
        return HitResult(annotation=ref, image_id=ref.image_id)
    image_id = find_image_at(snapshot, point)
    if image_id is not None:
        return HitResult(image_id=image_id)
    return None
