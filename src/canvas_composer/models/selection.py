"""Selection state: selected images, annotation references and the active layer."""
from dataclasses import dataclass, replace
from typing import NamedTuple, Optional, Tuple


class AnnotationRef(NamedTuple):
    """Reference to an annotation by owner; image_id None means canvas-owned"""
    image_id: Optional[str]
    annotation_id: str

    @property
    def is_canvas(self) -> bool:
        return self.image_id is None


@dataclass(frozen=True)
class Selection:
    image_ids: Tuple[str, ...] = ()
    annotations: Tuple[AnnotationRef, ...] = ()
    active_layer_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.image_ids and not self.annotations

    def has_annotation(self, annotation_id: str) -> bool:
        return any(ref.annotation_id == annotation_id for ref in self.annotations)

    def with_images(self, image_ids) -> 'Selection':
        return replace(self, image_ids=tuple(dict.fromkeys(image_ids)))

    def with_annotations(self, refs) -> 'Selection':
        return replace(self, annotations=tuple(dict.fromkeys(refs)))
