"""
Canvas Composer - Crop Mixin

apply_crop() crops every image overlapped by a global crop rectangle; the
overlap is computed in each image's local space and clipped to the image.
Cropped images are re-positioned so their content does not move, their
annotations are shifted by the crop offset, and the accumulated crop_rect is
kept in original raster pixels. The first crop of an image archives the
uncropped record so uncrop() can restore it.
"""

from dataclasses import replace
from typing import List

from canvas_composer.models.transform import Rect, Vec2
from canvas_composer.utils.transform_math import global_to_image, image_to_global, rotate_point


class CropMixin:
    """Mixin containing crop operations

    This mixin expects the parent class to have:
    - self.images, self.archived_images
    - self.get_image(id), self._replace_images(updated)
    - self._logger: Logger instance
    """

    def apply_crop(self, crop_rect: Rect) -> List[str]:
        """Crop all images overlapped by crop_rect (global space)

        Returns:
            Ids of the images that were cropped
        """
        area = crop_rect.normalized()
        if area.width <= 0 or area.height <= 0:
            return []

        corners = [Vec2(area.x, area.y), Vec2(area.right, area.y),
                   Vec2(area.x, area.bottom), Vec2(area.right, area.bottom)]
        updated = {}
        for image in self.images:
            local = [global_to_image(corner, image) for corner in corners]
            crop_x = max(0.0, min(p.x for p in local))
            crop_y = max(0.0, min(p.y for p in local))
            crop_r = min(image.width, max(p.x for p in local))
            crop_b = min(image.height, max(p.y for p in local))
            if crop_x >= crop_r or crop_y >= crop_b:
                continue

            if image.id not in self.archived_images:
                self.archived_images[image.id] = image

            new_width = crop_r - crop_x
            new_height = crop_b - crop_y
            new_center = image_to_global(Vec2(crop_x + new_width / 2, crop_y + new_height / 2), image)
            previous = image.crop_rect or Rect(0.0, 0.0, image.width, image.height)

            updated[image.id] = replace(
                image,
                x=new_center.x - new_width * image.scale / 2,
                y=new_center.y - new_height * image.scale / 2,
                width=new_width,
                height=new_height,
                annotations=tuple(a.translated(-crop_x, -crop_y) for a in image.annotations),
                crop_rect=Rect(previous.x + crop_x, previous.y + crop_y, new_width, new_height),
                uncropped_from_id=image.uncropped_from_id or image.id,
            )

        self._replace_images(updated)
        if updated:
            self._logger.debug(f"Cropped {len(updated)} image(s) to {area}")
        return list(updated)

    def uncrop(self, image_ids) -> List[str]:
        """Restore archived uncropped extents, keeping the visible content in place

        The image keeps its id, current scale and rotation; annotations are
        shifted back into the uncropped local space.
        """
        updated = {}
        for image_id in image_ids:
            image = self.get_image(image_id)
            if image is None or image.uncropped_from_id is None or image.crop_rect is None:
                continue
            original = self.archived_images.get(image.uncropped_from_id)
            if original is None:
                continue

            original_crop = original.crop_rect or Rect(0.0, 0.0, original.width, original.height)
            offset_x = image.crop_rect.x - original_crop.x
            offset_y = image.crop_rect.y - original_crop.y

            # Global center of the restored image: the cropped center moved by
            # the (scaled, rotated) offset between the two local centers
            current_center = image.center
            shift = Vec2(
                (original.width / 2 - (offset_x + image.width / 2)) * image.scale,
                (original.height / 2 - (offset_y + image.height / 2)) * image.scale,
            )
            restored_center = rotate_point(current_center + shift, current_center, image.rotation)

            updated[image_id] = replace(
                image,
                x=restored_center.x - original.width * image.scale / 2,
                y=restored_center.y - original.height * image.scale / 2,
                width=original.width,
                height=original.height,
                annotations=tuple(a.translated(offset_x, offset_y) for a in image.annotations),
                crop_rect=original.crop_rect,
                uncropped_from_id=original.uncropped_from_id,
            )

        self._replace_images(updated)
        return list(updated)
