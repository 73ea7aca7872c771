"""
Canvas Composer - Query Mixin

Read-only lookups shared by the live Composition and its immutable
CompositionSnapshot: resolving ids and annotation references, owner lookups,
draw order and selection queries.

This mixin expects the class to have:
- self.images: tuple of CanvasImage
- self.groups: tuple of Group
- self.canvas_annotations: tuple of annotations in global space
- self.layer_order: tuple of top-level ids, back-to-front
- self.selection: Selection
"""

from typing import List, Optional, Tuple

from canvas_composer.models.selection import AnnotationRef
from canvas_composer.utils.bounds import group_bounds

IMAGE = 'image'
ANNOTATION = 'annotation'


class QueryMixin:
    """Mixin containing lookup operations over the document collections"""

    # ========================================
    # Id lookups
    # ========================================

    def get_image(self, image_id):
        for image in self.images:
            if image.id == image_id:
                return image
        return None

    def get_group(self, group_id):
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def get_canvas_annotation(self, annotation_id):
        for annotation in self.canvas_annotations:
            if annotation.id == annotation_id:
                return annotation
        return None

    def images_by_id(self):
        return {image.id: image for image in self.images}

    def groups_by_id(self):
        return {group.id: group for group in self.groups}

    # ========================================
    # Annotation references
    # ========================================

    def resolve(self, ref: AnnotationRef):
        """Resolve a reference to (annotation, owner image or None)

        Returns None for a stale reference (owner or annotation missing, or
        the annotation no longer lives under that owner).
        """
        if ref.image_id is None:
            annotation = self.get_canvas_annotation(ref.annotation_id)
            return None if annotation is None else (annotation, None)
        image = self.get_image(ref.image_id)
        if image is None:
            return None
        annotation = image.find_annotation(ref.annotation_id)
        return None if annotation is None else (annotation, image)

    def get_annotation(self, ref: AnnotationRef):
        resolved = self.resolve(ref)
        return resolved[0] if resolved else None

    def find_annotation_ref(self, annotation_id) -> Optional[AnnotationRef]:
        """Current reference (actual owner) of an annotation id, or None"""
        if self.get_canvas_annotation(annotation_id) is not None:
            return AnnotationRef(None, annotation_id)
        for image in self.images:
            if image.find_annotation(annotation_id) is not None:
                return AnnotationRef(image.id, annotation_id)
        return None

    def selected_images(self):
        selected = set(self.selection.image_ids)
        return [image for image in self.images if image.id in selected]

    # ========================================
    # Groups & layer order
    # ========================================

    def parent_group_of(self, member_id):
        """Group directly containing an image or group id, or None"""
        for group in self.groups:
            if member_id in group.image_ids or member_id in group.group_ids:
                return group
        return None

    def is_locked(self, image_id) -> bool:
        """An image is locked when it or any enclosing group is locked"""
        image = self.get_image(image_id)
        if image is None or image.locked:
            return True
        seen = set()
        group = self.parent_group_of(image_id)
        while group is not None and group.id not in seen:
            if group.locked:
                return True
            seen.add(group.id)
            group = self.parent_group_of(group.id)
        return False

    def draw_order(self, include_hidden=False) -> List[Tuple[str, str]]:
        """Flattened back-to-front list of (kind, id) drawables

        Groups are expanded in place (child groups first, then images).
        Images and canvas annotations missing from the layer order are drawn
        on top, in collection order.
        """
        images = self.images_by_id()
        groups = self.groups_by_id()
        canvas_ids = {a.id for a in self.canvas_annotations}
        order = []
        placed = set()

        def visit_group(group, seen, hidden=False):
            if group.id in seen:
                return
            seen.add(group.id)
            hidden = hidden or (not group.visible and not include_hidden)
            for child_id in group.group_ids:
                child = groups.get(child_id)
                if child is not None:
                    visit_group(child, seen, hidden)
            for image_id in group.image_ids:
                if image_id in images and image_id not in placed:
                    placed.add(image_id)
                    if not hidden:
                        add_image(images[image_id])

        def add_image(image):
            if image.visible or include_hidden:
                order.append((IMAGE, image.id))

        for layer_id in self.layer_order:
            if layer_id in placed:
                continue
            if layer_id in images:
                placed.add(layer_id)
                add_image(images[layer_id])
            elif layer_id in canvas_ids:
                placed.add(layer_id)
                order.append((ANNOTATION, layer_id))
            elif layer_id in groups:
                visit_group(groups[layer_id], set())

        for image in self.images:
            if image.id not in placed:
                placed.add(image.id)
                add_image(image)
        for annotation in self.canvas_annotations:
            if annotation.id not in placed:
                order.append((ANNOTATION, annotation.id))
        return order

    def image_order(self, include_hidden=False) -> List[str]:
        """Image ids back-to-front"""
        return [item_id for kind, item_id in self.draw_order(include_hidden) if kind == IMAGE]

    # ========================================
    # Bounds
    # ========================================

    def get_group_bounds(self, group_id):
        group = self.get_group(group_id)
        if group is None:
            return None
        return group_bounds(group, self.groups_by_id(), self.images_by_id())

