"""
Canvas Composer - Composition Data Model

THE MODEL for the editor core. Owns the document collections and every
operation on them.

This class handles:
- Images (with their image-local annotations) and groups
- Canvas annotations (global space)
- Layer order (top-level ids, back-to-front)
- Selection state (images, annotation references, active layer)
- Reparenting annotations between canvas and images
- Crop / uncrop, alignment and arrangement
- Snapshot API (for undo/redo and live gesture staging)

All records are immutable. Every operation builds new records and replaces
the whole owning collection, so a snapshot taken at any time is never torn
by a later mutation.

Usage:
    composition = Composition()
    composition.add_image(CanvasImage(width=100, height=100))
    ref = composition.add_annotation(image.id, RectAnnotation(x=10, y=10, width=20, height=20))
    composition.move_to_canvas(ref)

    snapshot = composition.snapshot()
    composition.restore(snapshot)
"""

import logging
from dataclasses import replace

from canvas_composer.models.selection import Selection
from .snapshot import CompositionSnapshot
from .query_mixin import QueryMixin
from .layer_mixin import LayerMixin
from .annotation_mixin import AnnotationMixin
from .reparent_mixin import ReparentMixin
from .crop_mixin import CropMixin
from .arrange_mixin import ArrangeMixin
from .selection_mixin import SelectionMixin


class Composition(LayerMixin, AnnotationMixin, ReparentMixin, CropMixin, ArrangeMixin, SelectionMixin, QueryMixin):
    """Document model with the full operation API

    Attributes:
        images: tuple of CanvasImage
        groups: tuple of Group
        canvas_annotations: tuple of annotations in global space
        layer_order: tuple of top-level ids, back-to-front
        selection: Selection
        archived_images: uncropped originals keyed by image id (not part of history)
    """

    def __init__(self, images=(), groups=(), canvas_annotations=(), layer_order=None, selection=None):
        self.images = tuple(images)
        self.groups = tuple(groups)
        self.canvas_annotations = tuple(canvas_annotations)
        if layer_order is None:
            layer_order = [i.id for i in self.images] + [a.id for a in self.canvas_annotations]
        self.layer_order = tuple(layer_order)
        self.selection = selection if selection is not None else Selection()
        self.archived_images = {}
        self._logger = logging.getLogger('Composition')

    # ========================================
    # Snapshot API
    # ========================================

    def snapshot(self) -> CompositionSnapshot:
        return CompositionSnapshot(
            images=self.images,
            groups=self.groups,
            canvas_annotations=self.canvas_annotations,
            layer_order=self.layer_order,
            selection=self.selection,
        )

    def restore(self, snapshot: CompositionSnapshot):
        """Replace the document collections with a snapshot's"""
        self.images = snapshot.images
        self.groups = snapshot.groups
        self.canvas_annotations = snapshot.canvas_annotations
        self.layer_order = snapshot.layer_order
        self.selection = snapshot.selection

    @classmethod
    def from_snapshot(cls, snapshot: CompositionSnapshot, archived_images=None) -> 'Composition':
        composition = cls(
            images=snapshot.images,
            groups=snapshot.groups,
            canvas_annotations=snapshot.canvas_annotations,
            layer_order=snapshot.layer_order,
            selection=snapshot.selection,
        )
        if archived_images:
            composition.archived_images = dict(archived_images)
        return composition

    # ========================================
    # Collection helpers (copy-on-write)
    # ========================================

    def _replace_images(self, updated):
        """Swap in updated image records keyed by id"""
        if updated:
            self.images = tuple(updated.get(image.id, image) for image in self.images)

    def _replace_canvas_annotations(self, updated):
        if updated:
            self.canvas_annotations = tuple(updated.get(a.id, a) for a in self.canvas_annotations)

    def _replace_groups(self, updated):
        if updated:
            self.groups = tuple(updated.get(g.id, g) for g in self.groups)

    def _set_annotation(self, ref, annotation) -> bool:
        """Replace the annotation a reference points to; False for a stale ref"""
        resolved = self.resolve(ref)
        if resolved is None:
            self._logger.debug(f"Ignoring update of stale annotation ref {ref}")
            return False
        _, owner = resolved
        if owner is None:
            self._replace_canvas_annotations({annotation.id: annotation})
        else:
            annotations = tuple(annotation if a.id == ref.annotation_id else a for a in owner.annotations)
            self._replace_images({owner.id: replace(owner, annotations=annotations)})
        return True
