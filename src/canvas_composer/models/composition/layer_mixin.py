"""
Canvas Composer - Layer Mixin

Contains layer management methods for the Composition model:
- Adding / deleting images, annotations and groups
- Layer reordering (top level and in/out of groups)
- Grouping, visibility, lock and naming
- Duplication

This mixin is pure domain logic - no UI dependencies.
"""

from dataclasses import replace
from typing import Optional

from canvas_composer.constants import DUPLICATE_OFFSET
from canvas_composer.models.annotation import new_annotation_id
from canvas_composer.models.image import Group, new_image_id
from canvas_composer.models.selection import AnnotationRef

REORDER_POSITIONS = ('before', 'after', 'inside')


class LayerMixin:
    """Mixin containing layer operations for the Composition model

    This mixin expects the parent class to have:
    - self.images, self.groups, self.canvas_annotations, self.layer_order, self.selection
    - self._logger: Logger instance
    - self._replace_images(), self._replace_groups(): copy-on-write helpers
    - self._prune_selection(): drop selection entries for deleted records
    """

    # ========================================
    # Adding
    # ========================================

    def add_image(self, image, select=False):
        """Add an image on top of the layer order"""
        self.images = self.images + (image,)
        self.layer_order = self.layer_order + (image.id,)
        if select:
            self.selection = replace(self.selection, image_ids=(image.id,), annotations=(),
                                     active_layer_id=image.id)
        self._logger.debug(f"Added image {image.id} ({image.width}x{image.height})")
        return image.id

    def add_annotation(self, image_id, annotation) -> Optional[AnnotationRef]:
        """Add an annotation to an image (local space) or the canvas (image_id None)

        Returns:
            Reference to the new annotation, or None if the image is gone
        """
        if image_id is None:
            self.canvas_annotations = self.canvas_annotations + (annotation,)
            self.layer_order = self.layer_order + (annotation.id,)
        else:
            image = self.get_image(image_id)
            if image is None:
                self._logger.debug(f"Cannot add annotation to missing image {image_id}")
                return None
            self._replace_images({image_id: image.with_annotations(image.annotations + (annotation,))})
        self._logger.debug(f"Added {annotation.type.value} annotation {annotation.id} to {image_id or 'canvas'}")
        return AnnotationRef(image_id, annotation.id)

    # ========================================
    # Deleting
    # ========================================

    def delete_images(self, image_ids):
        """Delete images (with their annotations); empty groups are removed"""
        doomed = set(image_ids) & {image.id for image in self.images}
        if not doomed:
            return False
        self.images = tuple(image for image in self.images if image.id not in doomed)
        self.groups = tuple(
            replace(g, image_ids=tuple(i for i in g.image_ids if i not in doomed)) for g in self.groups
        )
        self.layer_order = tuple(i for i in self.layer_order if i not in doomed)
        self._prune_empty_groups()
        self._prune_selection()
        self._logger.debug(f"Deleted {len(doomed)} image(s)")
        return True

    def delete_selected_images(self):
        return self.delete_images(self.selection.image_ids)

    def delete_annotations(self, refs):
        """Delete annotations by reference; stale references are skipped"""
        canvas_ids = set()
        per_image = {}
        for ref in refs:
            if self.resolve(ref) is None:
                continue
            if ref.image_id is None:
                canvas_ids.add(ref.annotation_id)
            else:
                per_image.setdefault(ref.image_id, set()).add(ref.annotation_id)
        if not canvas_ids and not per_image:
            return False

        updated = {}
        for image_id, annotation_ids in per_image.items():
            image = self.get_image(image_id)
            updated[image_id] = image.with_annotations(
                a for a in image.annotations if a.id not in annotation_ids
            )
        self._replace_images(updated)
        self.canvas_annotations = tuple(a for a in self.canvas_annotations if a.id not in canvas_ids)
        self.layer_order = tuple(i for i in self.layer_order if i not in canvas_ids)
        self._prune_selection()
        return True

    def delete_selected_annotations(self):
        return self.delete_annotations(self.selection.annotations)

    def delete_group(self, group_id):
        """Remove a group; its members take its place in the parent (or layer order)"""
        group = self.get_group(group_id)
        if group is None:
            return False
        members = group.group_ids + group.image_ids
        parent = self.parent_group_of(group_id)
        if parent is not None:
            self._replace_groups({parent.id: replace(
                parent,
                group_ids=tuple(g for g in parent.group_ids if g != group_id) + group.group_ids,
                image_ids=parent.image_ids + group.image_ids,
            )})
            self.layer_order = tuple(i for i in self.layer_order if i != group_id)
        elif group_id in self.layer_order:
            index = self.layer_order.index(group_id)
            self.layer_order = self.layer_order[:index] + members + self.layer_order[index + 1:]
        new_parent_id = parent.id if parent is not None else None
        self.groups = tuple(
            replace(g, parent_id=new_parent_id) if g.id in group.group_ids else g
            for g in self.groups if g.id != group_id
        )
        if self.selection.active_layer_id == group_id:
            self.selection = replace(self.selection, active_layer_id=None)
        self._logger.debug(f"Deleted group {group_id}")
        return True

    def _prune_empty_groups(self):
        """Drop groups with no members, repeatedly (a parent may empty out)"""
        while True:
            empty = {g.id for g in self.groups if g.is_empty}
            if not empty:
                return
            self.groups = tuple(
                replace(g, group_ids=tuple(c for c in g.group_ids if c not in empty))
                for g in self.groups if g.id not in empty
            )
            self.layer_order = tuple(i for i in self.layer_order if i not in empty)

    # ========================================
    # Reordering
    # ========================================

    def reorder_layer(self, dragged_id, target_id, position):
        """Move a layer relative to another

        Args:
            dragged_id: Image, group or canvas annotation id being moved
            target_id: Layer the drop happened on
            position: 'before' (visually above: higher index, drawn later),
                'after' (visually below) or 'inside' (into target group)
        """
        if position not in REORDER_POSITIONS:
            raise ValueError(f"Unknown reorder position '{position}'")
        if dragged_id == target_id:
            return False

        order = list(self.layer_order)
        is_image = self.get_image(dragged_id) is not None
        is_group = self.get_group(dragged_id) is not None

        if position == 'inside':
            target = self.get_group(target_id)
            if target is None or not (is_image or is_group):
                self._logger.debug(f"Cannot move {dragged_id} inside {target_id}")
                return False
            if is_group and self._group_contains(dragged_id, target_id):
                self._logger.debug(f"Refusing to nest group {dragged_id} inside its descendant {target_id}")
                return False
            self._detach_from_groups(dragged_id)
            target = self.get_group(target_id)
            if is_image:
                target = replace(target, image_ids=target.image_ids + (dragged_id,))
            else:
                target = replace(target, group_ids=target.group_ids + (dragged_id,))
                self._replace_groups({dragged_id: replace(self.get_group(dragged_id), parent_id=target_id)})
            self._replace_groups({target_id: target})
            self.layer_order = tuple(i for i in order if i != dragged_id)
            self._prune_empty_groups()
            return True

        if target_id not in order:
            self._logger.debug(f"Reorder target {target_id} is not a top-level layer")
            return False
        if dragged_id in order:
            order.remove(dragged_id)
        elif self.parent_group_of(dragged_id) is not None:
            # Moving a group member back to the top level
            self._detach_from_groups(dragged_id)
            if is_group:
                self._replace_groups({dragged_id: replace(self.get_group(dragged_id), parent_id=None)})
        else:
            return False

        index = order.index(target_id)
        order.insert(index + 1 if position == 'before' else index, dragged_id)
        self.layer_order = tuple(order)
        self._prune_empty_groups()
        return True

    def _detach_from_groups(self, member_id):
        self.groups = tuple(
            replace(g, image_ids=tuple(i for i in g.image_ids if i != member_id),
                    group_ids=tuple(i for i in g.group_ids if i != member_id))
            for g in self.groups
        )

    def _group_contains(self, ancestor_id, group_id):
        """True if group_id is ancestor_id or nested anywhere inside it"""
        groups = self.groups_by_id()
        pending = [ancestor_id]
        seen = set()
        while pending:
            current = pending.pop()
            if current == group_id:
                return True
            if current in seen or current not in groups:
                continue
            seen.add(current)
            pending.extend(groups[current].group_ids)
        return False

    # ========================================
    # Grouping
    # ========================================

    def create_group(self, image_ids=None) -> Optional[str]:
        """Group two or more images; the group takes the topmost member's slot

        Returns:
            New group id, or None when fewer than two images qualify
        """
        if image_ids is None:
            image_ids = self.selection.image_ids
        known = {image.id for image in self.images}
        image_ids = tuple(i for i in dict.fromkeys(image_ids) if i in known)
        if len(image_ids) < 2:
            return None

        existing_names = {g.name for g in self.groups}
        number = 1
        while f"New Group {number}" in existing_names:
            number += 1
        name = f"New Group {number}"
        group = Group(name=name, label=name, image_ids=image_ids)

        member_set = set(image_ids)
        indices = [i for i, layer_id in enumerate(self.layer_order) if layer_id in member_set]
        insert_at = max(indices) if indices else len(self.layer_order)
        order = list(self.layer_order)
        order.insert(insert_at + 1 if indices else insert_at, group.id)
        self.layer_order = tuple(i for i in order if i not in member_set)

        for image_id in image_ids:
            self._detach_from_groups(image_id)
        self.groups = self.groups + (group,)
        self._prune_empty_groups()
        self.selection = replace(self.selection, image_ids=(), annotations=(), active_layer_id=group.id)
        self._logger.debug(f"Created group '{name}' with {len(image_ids)} image(s)")
        return group.id

    def rename_group(self, group_id, name):
        group = self.get_group(group_id)
        if group is None:
            return False
        self._replace_groups({group_id: replace(group, name=name)})
        return True

    def rename_image(self, image_id, name):
        image = self.get_image(image_id)
        if image is None:
            return False
        self._replace_images({image_id: replace(image, name=name)})
        return True

    def toggle_group_expanded(self, group_id):
        group = self.get_group(group_id)
        if group is None:
            return False
        self._replace_groups({group_id: replace(group, is_expanded=not group.is_expanded)})
        return True

    # ========================================
    # Visibility / lock
    # ========================================

    def toggle_visibility(self, layer_id):
        return self._toggle_flag(layer_id, 'visible')

    def toggle_lock(self, layer_id):
        return self._toggle_flag(layer_id, 'locked')

    def _toggle_flag(self, layer_id, flag):
        image = self.get_image(layer_id)
        if image is not None:
            self._replace_images({layer_id: replace(image, **{flag: not getattr(image, flag)})})
            return True
        group = self.get_group(layer_id)
        if group is not None:
            self._replace_groups({layer_id: replace(group, **{flag: not getattr(group, flag)})})
            return True
        return False

    # ========================================
    # Duplication
    # ========================================

    def duplicate_layer(self, layer_id=None, offset=DUPLICATE_OFFSET) -> Optional[str]:
        """Duplicate an image or canvas annotation, offset and placed above the original

        Args:
            layer_id: Layer to copy (defaults to the active layer)
            offset: Shift applied to the copy on both axes

        Returns:
            Id of the copy, or None if the layer cannot be duplicated
        """
        if layer_id is None:
            layer_id = self.selection.active_layer_id
        if layer_id is None:
            return None

        image = self.get_image(layer_id)
        if image is not None:
            copy = replace(
                image.moved(offset, offset),
                id=new_image_id(),
                name=f"{image.name} Copy",
                annotations=tuple(a.with_id(new_annotation_id()) for a in image.annotations),
            )
            index = self.images.index(image)
            self.images = self.images[:index + 1] + (copy,) + self.images[index + 1:]
            self._insert_after(layer_id, copy.id)
            self.selection = replace(self.selection, image_ids=(copy.id,), annotations=(),
                                     active_layer_id=copy.id)
            return copy.id

        annotation = self.get_canvas_annotation(layer_id)
        if annotation is not None:
            copy = annotation.translated(offset, offset).with_id(new_annotation_id())
            self.canvas_annotations = self.canvas_annotations + (copy,)
            self._insert_after(layer_id, copy.id)
            self.selection = replace(self.selection, image_ids=(),
                                     annotations=(AnnotationRef(None, copy.id),), active_layer_id=copy.id)
            return copy.id

        self._logger.debug(f"Layer {layer_id} cannot be duplicated")
        return None

    def _insert_after(self, anchor_id, new_id):
        order = list(self.layer_order)
        if anchor_id in order:
            order.insert(order.index(anchor_id) + 1, new_id)
        else:
            order.append(new_id)
        self.layer_order = tuple(order)
