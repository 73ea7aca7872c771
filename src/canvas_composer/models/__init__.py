"""Document records: value types, annotations, images, groups, selection."""
from .transform import Vec2, Rect
from .annotation import (
    AnnotationType, FreehandAnnotation, TextAnnotation, RectAnnotation, CircleAnnotation,
    ArrowAnnotation, LineAnnotation,
)
from .image import CanvasImage, Group
from .selection import AnnotationRef, Selection

__all__ = [
    'Vec2', 'Rect',
    'AnnotationType', 'FreehandAnnotation', 'TextAnnotation', 'RectAnnotation', 'CircleAnnotation',
    'ArrowAnnotation', 'LineAnnotation',
    'CanvasImage', 'Group',
    'AnnotationRef', 'Selection',
]
