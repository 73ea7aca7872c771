"""
Canvas Composer - Selection Mixin

Selection operations mirroring pointer semantics:
- select_image: plain click replaces (and clears annotations), shift/ctrl toggles
- select_annotation: plain click replaces images+annotations, additive toggles
- box_select: replace, union (shift) or subtract (ctrl)

The selection invariant (every AnnotationRef names its current owner, and
only existing records are selected) is restored by _prune_selection() after
deletions.
"""

from dataclasses import replace

from canvas_composer.models.selection import AnnotationRef, Selection

BOX_SELECT_MODES = ('replace', 'union', 'subtract')


class SelectionMixin:
    """Mixin containing selection operations

    This mixin expects the parent class to have:
    - self.selection: Selection
    - self.get_image(id), self.find_annotation_ref(id): query methods
    """

    def select_image(self, image_id, shift=False, ctrl=False):
        """Select an image as a click would; image_id None clears image selection"""
        selection = self.selection
        if image_id is None:
            self.selection = replace(selection, image_ids=(), active_layer_id=None)
            return
        if shift or ctrl:
            if image_id in selection.image_ids:
                image_ids = tuple(i for i in selection.image_ids if i != image_id)
            else:
                image_ids = selection.image_ids + (image_id,)
            self.selection = replace(selection, image_ids=image_ids, active_layer_id=image_id)
        else:
            self.selection = replace(selection, image_ids=(image_id,), annotations=(), active_layer_id=image_id)

    def select_images(self, image_ids, keep=False):
        ids = (self.selection.image_ids + tuple(image_ids)) if keep else tuple(image_ids)
        self.selection = self.selection.with_images(ids)

    def select_annotation(self, ref: AnnotationRef, additive=False):
        """Select an annotation as a click would

        Plain clicks keep an existing selection that already contains the
        annotation (so a multi-selection can be dragged), otherwise replace
        it. Additive clicks toggle membership.
        """
        selection = self.selection
        already = selection.has_annotation(ref.annotation_id)
        if additive:
            if already:
                refs = tuple(r for r in selection.annotations if r.annotation_id != ref.annotation_id)
            else:
                refs = selection.annotations + (ref,)
            self.selection = replace(selection, annotations=refs)
        else:
            refs = selection.annotations if already else (ref,)
            self.selection = replace(selection, image_ids=(), annotations=refs)

    def select_annotations(self, refs):
        self.selection = self.selection.with_annotations(refs)

    def box_select(self, image_ids, refs, mode='replace'):
        """Apply a marquee result to the selection"""
        if mode not in BOX_SELECT_MODES:
            raise ValueError(f"Unknown box select mode '{mode}'")
        selection = self.selection
        image_ids = tuple(image_ids)
        refs = tuple(refs)
        if mode == 'subtract':
            drop_images = set(image_ids)
            drop_refs = set(refs)
            self.selection = replace(
                selection,
                image_ids=tuple(i for i in selection.image_ids if i not in drop_images),
                annotations=tuple(r for r in selection.annotations if r not in drop_refs),
            )
        elif mode == 'union':
            current = {r.annotation_id for r in selection.annotations}
            self.selection = replace(
                selection.with_images(selection.image_ids + image_ids),
                annotations=selection.annotations + tuple(r for r in refs if r.annotation_id not in current),
            )
        else:
            self.selection = replace(selection.with_images(image_ids), annotations=refs)

    def clear_selection(self):
        self.selection = Selection()

    def set_active_layer(self, layer_id):
        self.selection = replace(self.selection, active_layer_id=layer_id)

    def _prune_selection(self):
        """Drop selection entries for deleted records and fix annotation owners"""
        selection = self.selection
        image_ids = tuple(i for i in selection.image_ids if self.get_image(i) is not None)
        refs = []
        for ref in selection.annotations:
            current = self.find_annotation_ref(ref.annotation_id)
            if current is not None:
                refs.append(current)
        active = selection.active_layer_id
        if active is not None and not self._layer_exists(active):
            active = None
        self.selection = Selection(image_ids, tuple(dict.fromkeys(refs)), active)

    def _layer_exists(self, layer_id):
        return (self.get_image(layer_id) is not None or self.get_group(layer_id) is not None
                or self.get_canvas_annotation(layer_id) is not None)
