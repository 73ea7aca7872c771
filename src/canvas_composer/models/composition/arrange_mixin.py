"""
Canvas Composer - Arrange Mixin

Alignment and layout of the selected images, measured on their rotated
global footprints:
- align_images: left / h-center / right / top / v-center / bottom
- arrange_images: lay out in a row or column with padding
- stack_images: same as arrange with no gap
- match_image_sizes: scale images to the first selected image's width/height
"""

from dataclasses import replace

from canvas_composer.constants import ARRANGE_PADDING
from canvas_composer.utils.bounds import image_bounds, images_bounds

ALIGNMENTS = ('left', 'h-center', 'right', 'top', 'v-center', 'bottom')
DIRECTIONS = ('horizontal', 'vertical')
ORDERS = ('normal', 'reverse')


class ArrangeMixin:
    """Mixin containing alignment/arrangement operations

    This mixin expects the parent class to have:
    - self.images, self.selection
    - self.selected_images(), self._replace_images(updated)
    """

    def align_images(self, alignment, image_ids=None) -> bool:
        """Align two or more images on a shared edge or center line"""
        if alignment not in ALIGNMENTS:
            raise ValueError(f"Unknown alignment '{alignment}'")
        images = self._arrange_targets(image_ids)
        if len(images) < 2:
            return False

        boxes = {image.id: image_bounds(image) for image in images}
        total = images_bounds(images) or next(iter(boxes.values()))
        if alignment == 'left':
            target = min(b.x for b in boxes.values())
            deltas = {i: (target - b.x, 0.0) for i, b in boxes.items()}
        elif alignment == 'right':
            target = max(b.right for b in boxes.values())
            deltas = {i: (target - b.right, 0.0) for i, b in boxes.items()}
        elif alignment == 'h-center':
            target = total.center.x
            deltas = {i: (target - b.center.x, 0.0) for i, b in boxes.items()}
        elif alignment == 'top':
            target = min(b.y for b in boxes.values())
            deltas = {i: (0.0, target - b.y) for i, b in boxes.items()}
        elif alignment == 'bottom':
            target = max(b.bottom for b in boxes.values())
            deltas = {i: (0.0, target - b.bottom) for i, b in boxes.items()}
        else:  # v-center
            target = total.center.y
            deltas = {i: (0.0, target - b.center.y) for i, b in boxes.items()}

        self._replace_images({image.id: image.moved(*deltas[image.id]) for image in images})
        return True

    def arrange_images(self, direction='horizontal', order='normal', image_ids=None, padding=ARRANGE_PADDING) -> bool:
        """Lay images out in a row or column starting at the selection's top-left

        'normal' order starts with the topmost layer, 'reverse' with the bottommost.
        """
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction '{direction}'")
        if order not in ORDERS:
            raise ValueError(f"Unknown order '{order}'")
        images = self._arrange_targets(image_ids)
        if len(images) < 2:
            return False

        # Collection order is bottom-to-top
        if order == 'normal':
            images = list(reversed(images))
        total = images_bounds(images)
        if total is None:
            return False

        cursor_x, cursor_y = total.x, total.y
        updated = {}
        for image in images:
            box = image_bounds(image)
            updated[image.id] = image.moved(cursor_x - box.x, cursor_y - box.y)
            if direction == 'horizontal':
                cursor_x += box.width + padding
            else:
                cursor_y += box.height + padding
        self._replace_images(updated)
        return True

    def stack_images(self, direction='horizontal', order='normal', image_ids=None) -> bool:
        """Arrange edge to edge"""
        return self.arrange_images(direction, order, image_ids, padding=0.0)

    def match_image_sizes(self, dimension, image_ids=None) -> bool:
        """Scale images so their displayed width/height match the first one"""
        if dimension not in ('width', 'height'):
            raise ValueError(f"Unknown dimension '{dimension}'")
        ids = list(image_ids) if image_ids is not None else list(self.selection.image_ids)
        if len(ids) < 2:
            return False
        reference = self.get_image(ids[0])
        if reference is None:
            return False

        updated = {}
        for image in self._arrange_targets(ids[1:]):
            extent = getattr(image, dimension)
            if extent == 0:
                continue
            updated[image.id] = replace(image, scale=getattr(reference, dimension) * reference.scale / extent)
        self._replace_images(updated)
        return bool(updated)

    def _arrange_targets(self, image_ids):
        """Selected (or given) images in collection order"""
        if image_ids is None:
            return self.selected_images()
        wanted = set(image_ids)
        return [image for image in self.images if image.id in wanted]
