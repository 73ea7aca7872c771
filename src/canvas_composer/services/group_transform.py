"""
Multi-selection group transform.

The group handles of a heterogeneous annotation selection (members may live
in different images and on the canvas) drive each member's own scale or
rotation field with one shared scalar. Members are not repositioned around
the group centroid: the gesture is a uniform broadcast of the ratio/delta,
always applied to a frozen copy of the members taken at gesture start so
repeated updates during a drag do not compound.
"""

from typing import Dict, Optional

from canvas_composer.constants import MIN_ANNOTATION_SCALE
from canvas_composer.models.transform import Rect
from canvas_composer.utils.bounds import global_bounds, union_rects


def group_bounds(document, selections) -> Optional[Rect]:
    """Union of the global bounds of the selected annotations, or None

    Args:
        document: Composition or CompositionSnapshot
        selections: Iterable of AnnotationRef (stale refs are skipped)
    """
    rects = []
    for ref in selections:
        resolved = document.resolve(ref)
        if resolved is not None:
            annotation, owner = resolved
            rects.append(global_bounds(annotation, owner))
    return union_rects(rects)


def freeze_selection(document, selections) -> Dict:
    """Capture the per-gesture initial state: {ref: annotation}"""
    frozen = {}
    for ref in selections:
        annotation = document.get_annotation(ref)
        if annotation is not None:
            frozen[ref] = annotation
    return frozen


def apply_group_scale(composition, selections, initial_annotations, ratio, min_scale=MIN_ANNOTATION_SCALE) -> int:
    """Set every member's scale to initial_scale * ratio

    Returns:
        Number of members updated (stale refs are skipped)
    """
    applied = 0
    for ref in selections:
        initial = initial_annotations.get(ref)
        if initial is None:
            continue
        scale = max(min_scale, initial.scale * ratio)
        if composition.update_annotation(ref, scale=scale):
            applied += 1
    return applied


def apply_group_rotate(composition, selections, initial_annotations, delta_degrees) -> int:
    """Set every member's rotation to initial_rotation + delta_degrees"""
    applied = 0
    for ref in selections:
        initial = initial_annotations.get(ref)
        if initial is None:
            continue
        if composition.update_annotation(ref, rotation=initial.rotation + delta_degrees):
            applied += 1
    return applied
