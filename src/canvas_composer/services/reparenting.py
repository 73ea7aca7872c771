"""
Reparent geometry: rewrite an annotation for a new coordinate-space owner.

The annotation's pivot is carried old owner -> global -> new owner and the
shape is translated so its pivot lands there. Shape extents are kept as-is;
the size and orientation change of the owner is absorbed by the annotation's
own fields:

    scale    = old_scale * old_owner_scale / new_owner_scale
    rotation = old_rotation + old_owner_rotation - new_owner_rotation

so the rendered result is unchanged at the moment of the move.
"""

from dataclasses import replace

from canvas_composer.utils.transform_math import (
    annotation_pivot, parent_to_global, global_to_parent, owner_scale, owner_rotation, safe_scale,
)


def reparent_geometry(annotation, old_owner, new_owner):
    """Return the annotation expressed in new_owner's space

    Args:
        annotation: Annotation in old_owner's space
        old_owner: Current owner image, or None for the canvas
        new_owner: Target owner image, or None for the canvas
    """
    pivot = annotation_pivot(annotation)
    target = global_to_parent(parent_to_global(pivot, old_owner), new_owner)
    moved = annotation.translated(target.x - pivot.x, target.y - pivot.y)
    return replace(
        moved,
        scale=annotation.scale * owner_scale(old_owner) / safe_scale(owner_scale(new_owner)),
        rotation=annotation.rotation + owner_rotation(old_owner) - owner_rotation(new_owner),
    )
