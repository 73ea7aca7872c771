"""
Canvas Composer - Annotation Mixin

Editing operations for annotations and image placement:
- Field updates by reference (single, batch, selection)
- Translation in parent space
- Moving the whole selection by one global delta

Stale references are ignored (logged at debug level) so gestures holding ids
captured at pointer-down never fail.
"""

from dataclasses import replace

from canvas_composer.utils.transform_math import global_delta_to_local


class AnnotationMixin:
    """Mixin containing annotation/image editing operations

    This mixin expects the parent class to have:
    - self.resolve(ref), self.get_image(id), self.is_locked(id): query methods
    - self._set_annotation(ref, annotation), self._replace_images(updated)
    - self._logger: Logger instance
    """

    # ========================================
    # Field updates
    # ========================================

    def update_annotation(self, ref, **changes) -> bool:
        """Apply field changes to one annotation

        Raises:
            TypeError: If a change names a field the variant does not have
        """
        resolved = self.resolve(ref)
        if resolved is None:
            self._logger.debug(f"Ignoring update of stale annotation ref {ref}")
            return False
        annotation, _ = resolved
        return self._set_annotation(ref, replace(annotation, **changes))

    def update_annotations(self, updates) -> int:
        """Apply many (ref, changes) updates; returns how many were applied"""
        applied = 0
        for ref, changes in updates:
            if self.update_annotation(ref, **changes):
                applied += 1
        return applied

    def update_selected_annotations(self, **changes) -> int:
        return self.update_annotations((ref, changes) for ref in self.selection.annotations)

    def replace_annotation(self, ref, annotation) -> bool:
        """Swap in a whole new record for the referenced annotation"""
        if annotation.id != ref.annotation_id:
            raise ValueError(f"Replacement id {annotation.id} does not match {ref.annotation_id}")
        return self._set_annotation(ref, annotation)

    def translate_annotation(self, ref, dx, dy) -> bool:
        """Shift an annotation's geometry by (dx, dy) in its parent space"""
        resolved = self.resolve(ref)
        if resolved is None:
            return False
        annotation, _ = resolved
        return self._set_annotation(ref, annotation.translated(dx, dy))

    # ========================================
    # Images
    # ========================================

    def update_images(self, image_ids, **changes) -> int:
        updated = {}
        for image_id in image_ids:
            image = self.get_image(image_id)
            if image is not None:
                updated[image_id] = replace(image, **changes)
        self._replace_images(updated)
        return len(updated)

    def move_images(self, image_ids, dx, dy) -> int:
        """Translate unlocked images by a global delta"""
        updated = {}
        for image_id in image_ids:
            image = self.get_image(image_id)
            if image is not None and not self.is_locked(image_id):
                updated[image_id] = image.moved(dx, dy)
        self._replace_images(updated)
        return len(updated)

    # ========================================
    # Selection move
    # ========================================

    def move_selection(self, dx, dy):
        """Move selected images and annotations by one global delta

        Image-owned annotations convert the delta into their owner's local
        units. Annotations whose owner image is itself moving are not moved
        twice.
        """
        moving_images = {
            image_id for image_id in self.selection.image_ids
            if self.get_image(image_id) is not None and not self.is_locked(image_id)
        }
        # Annotations first: conversion uses the owner's pre-move transform
        for ref in self.selection.annotations:
            resolved = self.resolve(ref)
            if resolved is None:
                continue
            annotation, owner = resolved
            if owner is None:
                self._set_annotation(ref, annotation.translated(dx, dy))
            elif owner.id not in moving_images:
                local = global_delta_to_local(dx, dy, owner)
                self._set_annotation(ref, annotation.translated(local.x, local.y))
        self.move_images(moving_images, dx, dy)
