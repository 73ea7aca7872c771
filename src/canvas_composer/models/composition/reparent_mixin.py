"""
Canvas Composer - Reparent Mixin

Moves annotation records between coordinate-space owners
(canvas -> image, image -> canvas, image -> image) while keeping their
rendered appearance. Geometry rewriting lives in services.reparenting; this
mixin moves the record between collections, keeps the layer order for
canvas-level adds/removes and repairs selection references.
"""

from dataclasses import replace
from typing import List, Optional

from canvas_composer.models.selection import AnnotationRef
from canvas_composer.services.reparenting import reparent_geometry


class ReparentMixin:
    """Mixin containing reparenting operations

    This mixin expects the parent class to have:
    - self.resolve(ref), self.get_image(id): query methods
    - self._replace_images(updated): copy-on-write helper
    - self._logger: Logger instance
    """

    def reparent(self, ref: AnnotationRef, target_image_id) -> Optional[AnnotationRef]:
        """Move an annotation to an image, or to the canvas when target_image_id is None

        Returns:
            The annotation's new reference (the same ref when the owner does
            not change), or None for a stale ref or missing target image
        """
        resolved = self.resolve(ref)
        if resolved is None:
            self._logger.debug(f"Ignoring reparent of stale annotation ref {ref}")
            return None
        if ref.image_id == target_image_id:
            return ref
        annotation, old_owner = resolved
        new_owner = None
        if target_image_id is not None:
            new_owner = self.get_image(target_image_id)
            if new_owner is None:
                self._logger.debug(f"Ignoring reparent to missing image {target_image_id}")
                return None

        moved = reparent_geometry(annotation, old_owner, new_owner)

        # Remove from the source collection
        if old_owner is None:
            self.canvas_annotations = tuple(a for a in self.canvas_annotations if a.id != annotation.id)
            self.layer_order = tuple(i for i in self.layer_order if i != annotation.id)
        else:
            self._replace_images({old_owner.id: old_owner.with_annotations(
                a for a in old_owner.annotations if a.id != annotation.id
            )})

        # Add to the destination collection
        if new_owner is None:
            self.canvas_annotations = self.canvas_annotations + (moved,)
            self.layer_order = self.layer_order + (moved.id,)
        else:
            self._replace_images({new_owner.id: new_owner.with_annotations(new_owner.annotations + (moved,))})

        new_ref = AnnotationRef(target_image_id, annotation.id)
        self._repair_annotation_ref(annotation.id, new_ref)
        self._logger.debug(f"Reparented {annotation.id} from {ref.image_id or 'canvas'} to {target_image_id or 'canvas'}")
        return new_ref

    def move_to_image(self, ref: AnnotationRef, image_id) -> Optional[AnnotationRef]:
        if image_id is None:
            raise ValueError("move_to_image() needs a target image id; use move_to_canvas()")
        return self.reparent(ref, image_id)

    def move_to_canvas(self, ref: AnnotationRef) -> Optional[AnnotationRef]:
        return self.reparent(ref, None)

    def reparent_many(self, refs, target_image_id) -> List[AnnotationRef]:
        """Reparent several annotations; returns the refs that actually moved"""
        moved = []
        for ref in list(refs):
            if ref.image_id == target_image_id:
                continue
            new_ref = self.reparent(ref, target_image_id)
            if new_ref is not None:
                moved.append(new_ref)
        return moved

    def _repair_annotation_ref(self, annotation_id, new_ref):
        refs = tuple(new_ref if r.annotation_id == annotation_id else r for r in self.selection.annotations)
        self.selection = replace(self.selection, annotations=tuple(dict.fromkeys(refs)))
