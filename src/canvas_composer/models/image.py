"""Image and group records.

A CanvasImage's (x, y) is the top-left of its scaled, un-rotated footprint in
global space; width/height are the displayed (cropped) local extents. Its
annotations live in image-local space, origin at the pre-transform top-left.
"""
import uuid
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from canvas_composer.models.transform import Rect, Vec2


def new_image_id() -> str:
    return f"img-{uuid.uuid4().hex}"


def new_group_id() -> str:
    return f"group-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class CanvasImage:
    width: float
    height: float
    id: str = field(default_factory=new_image_id)
    name: str = 'Image'
    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0
    rotation: float = 0.0
    annotations: Tuple = ()
    original_width: Optional[float] = None
    original_height: Optional[float] = None
    crop_rect: Optional[Rect] = None
    uncropped_from_id: Optional[str] = None
    visible: bool = True
    locked: bool = False
    tags: Tuple[str, ...] = ()

    def __post_init__(self):
        # Uncropped images start with their original extents
        if self.original_width is None:
            object.__setattr__(self, 'original_width', self.width)
        if self.original_height is None:
            object.__setattr__(self, 'original_height', self.height)

    @property
    def center(self) -> Vec2:
        """Global center of the image (rotation pivot)"""
        return Vec2(self.x + self.width * self.scale / 2, self.y + self.height * self.scale / 2)

    def find_annotation(self, annotation_id: str):
        for annotation in self.annotations:
            if annotation.id == annotation_id:
                return annotation
        return None

    def with_annotations(self, annotations) -> 'CanvasImage':
        return replace(self, annotations=tuple(annotations))

    def moved(self, dx: float, dy: float) -> 'CanvasImage':
        return replace(self, x=self.x + dx, y=self.y + dy)


@dataclass(frozen=True)
class Group:
    """Named collection of images and nested groups. Has no geometry."""
    name: str
    id: str = field(default_factory=new_group_id)
    label: str = ''
    show_label: bool = False
    image_ids: Tuple[str, ...] = ()
    group_ids: Tuple[str, ...] = ()
    parent_id: Optional[str] = None
    visible: bool = True
    locked: bool = False
    is_expanded: bool = True

    @property
    def is_empty(self) -> bool:
        return not self.image_ids and not self.group_ids
