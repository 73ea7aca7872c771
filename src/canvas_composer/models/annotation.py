"""
Annotation models for Canvas Composer.

Annotations are vector shapes owned either by an image (expressed in the
image's local space) or by the canvas (expressed in global space). Each
variant carries the shared transform fields (scale, rotation about its pivot)
and its own geometry:

- FreehandAnnotation: polyline of points
- TextAnnotation: top-left anchored text block
- RectAnnotation: x/y/width/height (width/height may be negative while drawn)
- CircleAnnotation: center + radius
- ArrowAnnotation / LineAnnotation: start/end segment

Records are immutable; use dataclasses.replace() or the helpers below to
derive updated copies.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from canvas_composer.constants import (
    DEFAULT_COLOR, DEFAULT_STROKE_WIDTH, DEFAULT_FONT_SIZE, DEFAULT_FONT_FAMILY, DEFAULT_TEXT,
)
from canvas_composer.models.transform import Vec2


class AnnotationType(Enum):
    """Tag for the annotation variants."""
    FREEHAND = 'freehand'
    TEXT = 'text'
    RECT = 'rect'
    CIRCLE = 'circle'
    ARROW = 'arrow'
    LINE = 'line'


def new_annotation_id() -> str:
    return f"anno-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class AnnotationBase(ABC):
    """Fields shared by every annotation variant.

    scale and rotation (degrees) are applied about the variant's pivot:
    the segment midpoint for lines/arrows, the geometric center otherwise.
    """
    id: str = field(default_factory=new_annotation_id)
    color: str = DEFAULT_COLOR
    stroke_width: float = DEFAULT_STROKE_WIDTH
    scale: float = 1.0
    rotation: float = 0.0

    type: ClassVar[AnnotationType]

    @abstractmethod
    def translated(self, dx: float, dy: float) -> 'AnnotationBase':
        """Return a copy with its geometry shifted by (dx, dy) in parent space"""

    def with_id(self, annotation_id: str) -> 'AnnotationBase':
        return replace(self, id=annotation_id)


@dataclass(frozen=True)
class FreehandAnnotation(AnnotationBase):
    points: Tuple[Vec2, ...] = ()
    outline_color: Optional[str] = None
    outline_width: float = 0.0
    outline_opacity: float = 1.0

    type: ClassVar[AnnotationType] = AnnotationType.FREEHAND

    def translated(self, dx, dy):
        return replace(self, points=tuple(p.translated(dx, dy) for p in self.points))


@dataclass(frozen=True)
class TextAnnotation(AnnotationBase):
    x: float = 0.0
    y: float = 0.0
    text: str = DEFAULT_TEXT
    font_size: float = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    background_color: Optional[str] = None
    background_opacity: float = 0.0
    stroke_color: Optional[str] = None
    stroke_opacity: float = 1.0

    type: ClassVar[AnnotationType] = AnnotationType.TEXT

    def translated(self, dx, dy):
        return replace(self, x=self.x + dx, y=self.y + dy)


@dataclass(frozen=True)
class RectAnnotation(AnnotationBase):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    fill_color: Optional[str] = None
    fill_opacity: float = 1.0

    type: ClassVar[AnnotationType] = AnnotationType.RECT

    def translated(self, dx, dy):
        return replace(self, x=self.x + dx, y=self.y + dy)

    def normalized(self) -> 'RectAnnotation':
        """Flip negative width/height into a positive-size rect"""
        x, y, w, h = self.x, self.y, self.width, self.height
        if w < 0:
            x += w
            w = -w
        if h < 0:
            y += h
            h = -h
        return replace(self, x=x, y=y, width=w, height=h)


@dataclass(frozen=True)
class CircleAnnotation(AnnotationBase):
    x: float = 0.0  # center x
    y: float = 0.0  # center y
    radius: float = 0.0
    fill_color: Optional[str] = None
    fill_opacity: float = 1.0

    type: ClassVar[AnnotationType] = AnnotationType.CIRCLE

    def translated(self, dx, dy):
        return replace(self, x=self.x + dx, y=self.y + dy)


@dataclass(frozen=True)
class _SegmentAnnotation(AnnotationBase):
    start: Vec2 = Vec2(0.0, 0.0)
    end: Vec2 = Vec2(0.0, 0.0)
    outline_color: Optional[str] = None
    outline_width: float = 0.0
    outline_opacity: float = 1.0

    def translated(self, dx, dy):
        return replace(self, start=self.start.translated(dx, dy), end=self.end.translated(dx, dy))

    @property
    def length(self) -> float:
        return ((self.end.x - self.start.x) ** 2 + (self.end.y - self.start.y) ** 2) ** 0.5


@dataclass(frozen=True)
class ArrowAnnotation(_SegmentAnnotation):
    type: ClassVar[AnnotationType] = AnnotationType.ARROW


@dataclass(frozen=True)
class LineAnnotation(_SegmentAnnotation):
    type: ClassVar[AnnotationType] = AnnotationType.LINE


Annotation = Union[
    FreehandAnnotation, TextAnnotation, RectAnnotation, CircleAnnotation, ArrowAnnotation, LineAnnotation,
]

SEGMENT_TYPES = (ArrowAnnotation, LineAnnotation)


def unhandled_annotation(annotation) -> None:
    """Raise for a variant a geometry routine does not know about"""
    raise TypeError(f"Unhandled annotation variant: {type(annotation).__name__}")


def is_degenerate(annotation: Annotation) -> bool:
    """True for a draft that was clicked but never dragged out"""
    if isinstance(annotation, FreehandAnnotation):
        return len(annotation.points) < 2
    if isinstance(annotation, RectAnnotation):
        return annotation.width == 0 or annotation.height == 0
    if isinstance(annotation, CircleAnnotation):
        return annotation.radius <= 0
    if isinstance(annotation, SEGMENT_TYPES):
        return annotation.length == 0
    if isinstance(annotation, TextAnnotation):
        return not annotation.text
    unhandled_annotation(annotation)
