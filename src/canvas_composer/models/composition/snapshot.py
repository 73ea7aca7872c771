"""Immutable point-in-time copy of the document collections."""
from dataclasses import dataclass, field
from typing import Tuple

from canvas_composer.models.selection import Selection
from .query_mixin import QueryMixin


@dataclass(frozen=True)
class CompositionSnapshot(QueryMixin):
    """Frozen (images, groups, canvas_annotations, layer_order, selection)

    All collections are tuples of frozen records, so consecutive snapshots
    share every record that did not change. Equality compares contents.
    """
    images: Tuple = ()
    groups: Tuple = ()
    canvas_annotations: Tuple = ()
    layer_order: Tuple[str, ...] = ()
    selection: Selection = field(default_factory=Selection)

    def same_document(self, other: 'CompositionSnapshot') -> bool:
        """True when only the selection differs (or nothing does)"""
        return (self.images == other.images and self.groups == other.groups
                and self.canvas_annotations == other.canvas_annotations
                and self.layer_order == other.layer_order)
