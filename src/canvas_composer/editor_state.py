"""
Canvas Composer - Editor State

Facade tying the document model, history, viewport and interaction engine
together. A host (UI toolkit, test, script) feeds it pointer events and
commands and reads display_snapshot to render.

Gesture lifecycle:
- pointer_down / begin_gesture: selection side effects are applied to the
  committed composition, then a working copy is staged as the live snapshot
- pointer_move / update_gesture: the gesture edits the working copy and the
  live snapshot is replaced as a whole
- pointer_up / end_gesture: the working copy is committed to history if the
  gesture produced a label and the document actually changed; otherwise the
  live snapshot is discarded (selection changes are kept)

Commands (run_command and the wrappers below) apply to the committed
composition and commit one history entry each.
"""

import logging
from dataclasses import replace
from typing import Optional

from canvas_composer.config import EngineConfig
from canvas_composer.constants import ASPECT_RATIOS
from canvas_composer.interaction.engine import InteractionEngine, ToolOptions, TOOLS, SELECT_TOOL
from canvas_composer.interaction.gestures import DrawAnnotationGesture, Modifiers, PointerEvent
from canvas_composer.interaction.viewport import Viewport
from canvas_composer.models.composition import Composition, CompositionSnapshot
from canvas_composer.models.transform import Vec2
from canvas_composer.services import hit_testing
from canvas_composer.utils.history_manager import HistoryManager


class EditorState:
    """Headless editor: document, history, viewport and the active gesture

    Attributes:
        composition: Committed Composition
        history: HistoryManager (initial entry "Initial state")
        viewport: Viewport
        config: EngineConfig
        active_tool: One of engine.TOOLS
        aspect_ratio: Crop aspect key from constants.ASPECT_RATIOS
        tool_options: ToolOptions for new annotations
        crop_rect: Pending crop rectangle (canvas space) or None
        marquee_rect: Rubber band while a marquee runs, else None
        drop_target_image_id: Image highlighted while dragging annotations
        gesture: Active Gesture or None
        working: Composition edited by the active gesture, else None
    """

    def __init__(self, composition: Composition = None, config: EngineConfig = None, viewport: Viewport = None):
        self._logger = logging.getLogger('EditorState')
        self.config = config or EngineConfig()
        self.composition = composition if composition is not None else Composition()
        self.history = HistoryManager(self.config.max_history)
        self.history.commit(self.composition.snapshot(), "Initial state")
        self.viewport = viewport or Viewport(
            min_zoom=self.config.min_zoom, max_zoom=self.config.max_zoom, zoom_factor=self.config.zoom_factor,
        )
        self.engine = InteractionEngine()

        self.active_tool = SELECT_TOOL
        self.aspect_ratio = 'free'
        self.tool_options = ToolOptions()
        self.crop_rect = None
        self.marquee_rect = None
        self.drop_target_image_id = None

        self.gesture = None
        self.working = None
        self._base = None
        self._base_crop = None

    # ========================================
    # Tools
    # ========================================

    def set_tool(self, tool):
        if tool not in TOOLS:
            raise ValueError(f"Unknown tool '{tool}'")
        self.active_tool = tool

    def set_aspect_ratio(self, key):
        if key not in ASPECT_RATIOS:
            raise ValueError(f"Unknown aspect ratio '{key}'")
        self.aspect_ratio = key

    @property
    def crop_aspect_ratio(self) -> Optional[float]:
        return ASPECT_RATIOS[self.aspect_ratio]

    # ========================================
    # Reading
    # ========================================

    @property
    def display_snapshot(self) -> CompositionSnapshot:
        """What a renderer should draw: the live snapshot during a gesture, else the committed state"""
        live = self.history.live
        return live if live is not None else self.composition.snapshot()

    @property
    def drawing_annotation(self):
        """(draft annotation, owner image id) while an annotation is dragged out, else None"""
        if isinstance(self.gesture, DrawAnnotationGesture):
            return self.gesture.draft, self.gesture.target_image_id
        return None

    def pick(self, point: Vec2):
        """Topmost annotation or image at a canvas point (see services.hit_testing.pick)"""
        return hit_testing.pick(self.display_snapshot, point, self.viewport.scale, self.config.hit_tolerance_px)

    # ========================================
    # Pointer events (screen space)
    # ========================================

    def pointer_down(self, screen_point: Vec2, modifiers: Modifiers = None):
        """Resolve and start the gesture for a pointer-down

        Returns:
            The started Gesture, or None (e.g. the text tool creates immediately)
        """
        self._finish_active()
        base_crop = self.crop_rect
        event = PointerEvent(self.viewport.to_canvas(screen_point), screen_point)
        resolution = self.engine.resolve(self, event, modifiers)
        if resolution.commit_label:
            self.commit(resolution.commit_label)
        return self._start(resolution.gesture, base_crop)

    def pointer_move(self, screen_point: Vec2) -> bool:
        if self.gesture is None:
            return False
        self._update(PointerEvent(self.viewport.to_canvas(screen_point), screen_point))
        return True

    def pointer_up(self) -> bool:
        """End the active gesture; True if a history entry was committed"""
        if self.gesture is None:
            return False
        return self._end()

    # ========================================
    # Explicit gestures (canvas space)
    # ========================================

    def begin_gesture(self, kind, point: Vec2, modifiers: Modifiers = None, target=None):
        """Start a gesture of a given GestureMode at a canvas point

        Returns:
            The gesture handle, or None if its target does not exist
        """
        self._finish_active()
        base_crop = self.crop_rect
        event = PointerEvent(point, self.viewport.to_screen(point))
        return self._start(self.engine.create(self, kind, event, modifiers, target), base_crop)

    def update_gesture(self, handle, point: Vec2) -> bool:
        if handle is None or handle is not self.gesture:
            self._logger.debug(f"Ignoring update for inactive gesture {handle!r}")
            return False
        self._update(PointerEvent(point, self.viewport.to_screen(point)))
        return True

    def end_gesture(self, handle) -> bool:
        if handle is None or handle is not self.gesture:
            self._logger.debug(f"Ignoring end of inactive gesture {handle!r}")
            return False
        return self._end()

    def cancel_gesture(self):
        """Drop the active gesture without touching the committed document"""
        if self.gesture is None:
            return
        if self.gesture.edits_document:
            self.history.end_live(False)
        self.crop_rect = self._base_crop
        self.marquee_rect = None
        self.drop_target_image_id = None
        self._logger.debug(f"Cancelled {self.gesture!r}")
        self._reset_gesture()

    def _finish_active(self):
        if self.gesture is not None:
            self._logger.debug(f"Ending {self.gesture!r} before starting another")
            self._end()

    def _start(self, gesture, base_crop):
        if gesture is None:
            return None
        self.gesture = gesture
        self._base = self.composition.snapshot()
        self._base_crop = base_crop
        if gesture.edits_document:
            self.working = Composition.from_snapshot(self._base, self.composition.archived_images)
            self.history.begin_live(self.working.snapshot())
        else:
            self.working = self.composition
        self._logger.debug(f"Started {gesture!r}")
        return gesture

    def _update(self, event):
        self.gesture.update(self, event)
        if self.gesture.edits_document:
            self.history.update_live(self.working.snapshot())

    def _end(self) -> bool:
        gesture = self.gesture
        label = gesture.finish(self)
        committed = False
        if gesture.edits_document:
            snapshot = self.working.snapshot()
            if label and not snapshot.same_document(self._base):
                self.history.update_live(snapshot)
                self.history.end_live(True, label)
                self.composition.restore(snapshot)
                committed = True
            else:
                self.history.end_live(False)
                self.composition.selection = snapshot.selection
                self.composition._prune_selection()
        self._logger.debug(f"Finished {gesture!r} (committed: {committed})")
        self._reset_gesture()
        return committed

    def _reset_gesture(self):
        self.gesture = None
        self.working = None
        self._base = None
        self._base_crop = None

    # ========================================
    # History
    # ========================================

    def commit(self, label) -> bool:
        """Commit the committed composition if the document changed since the last entry"""
        if self.history.is_live:
            self._logger.debug(f"Not committing '{label}' while a gesture is live")
            return False
        snapshot = self.composition.snapshot()
        current = self.history.current
        if current is not None and snapshot.same_document(current):
            return False
        self.history.commit(snapshot, label)
        return True

    def undo(self) -> bool:
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self.composition.restore(snapshot)
        return True

    def redo(self) -> bool:
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self.composition.restore(snapshot)
        return True

    # ========================================
    # Commands
    # ========================================

    def run_command(self, label, fn, *args, **kwargs):
        """Apply a composition operation and commit it

        Args:
            label: History description
            fn: Composition method name, or a callable taking the composition first

        Raises:
            RuntimeError: If a gesture is active
        """
        if self.gesture is not None:
            raise RuntimeError(f"Cannot run '{label}' while {self.gesture!r} is active")
        if isinstance(fn, str):
            result = getattr(self.composition, fn)(*args, **kwargs)
        else:
            result = fn(self.composition, *args, **kwargs)
        self.commit(label)
        return result

    def add_image(self, image, center_in_view=True):
        """Add an image (centred in the visible area when the surface size is known) and select it"""
        if center_in_view and self.viewport.surface_width and self.viewport.surface_height:
            center = self.viewport.visible_center()
            image = replace(image, x=center.x - image.width * image.scale / 2,
                            y=center.y - image.height * image.scale / 2)
        return self.run_command("Add image", 'add_image', image, select=True)

    def add_annotation(self, image_id, annotation, select=True):
        def add(composition):
            ref = composition.add_annotation(image_id, annotation)
            if ref is not None and select:
                composition.select_annotations([ref])
            return ref
        return self.run_command(f"Add {annotation.type.value}", add)

    def reparent(self, ref, target_image_id):
        label = "Move to canvas" if target_image_id is None else "Move to image"
        return self.run_command(label, 'reparent', ref, target_image_id)

    def move_selection(self, dx, dy):
        return self.run_command("Move selection", 'move_selection', dx, dy)

    def update_selected_annotations(self, **changes):
        return self.run_command("Edit annotations", 'update_selected_annotations', **changes)

    def delete_selection(self):
        """Delete the selected annotations and images"""
        def delete(composition):
            composition.delete_selected_annotations()
            composition.delete_selected_images()
        self.run_command("Delete", delete)

    def apply_crop(self):
        """Crop every image under the pending crop rect; clears it on success"""
        if self.crop_rect is None:
            return []
        cropped = self.run_command("Crop", 'apply_crop', self.crop_rect)
        if cropped:
            self.crop_rect = None
            self.active_tool = SELECT_TOOL
        return cropped

    def uncrop(self, image_ids=None):
        ids = image_ids if image_ids is not None else self.composition.selection.image_ids
        return self.run_command("Uncrop", 'uncrop', ids)

    def reorder_layer(self, dragged_id, target_id, position):
        return self.run_command("Reorder layers", 'reorder_layer', dragged_id, target_id, position)

    def create_group(self, image_ids=None):
        return self.run_command("Create group", 'create_group', image_ids)

    def delete_group(self, group_id):
        return self.run_command("Delete group", 'delete_group', group_id)

    def rename_group(self, group_id, name):
        return self.run_command("Rename group", 'rename_group', group_id, name)

    def rename_image(self, image_id, name):
        return self.run_command("Rename image", 'rename_image', image_id, name)

    def toggle_visibility(self, layer_id):
        return self.run_command("Toggle visibility", 'toggle_visibility', layer_id)

    def toggle_lock(self, layer_id):
        return self.run_command("Toggle lock", 'toggle_lock', layer_id)

    def toggle_group_expanded(self, group_id):
        return self.run_command("Toggle group", 'toggle_group_expanded', group_id)

    def duplicate_layer(self, layer_id=None):
        return self.run_command("Duplicate", 'duplicate_layer', layer_id, offset=self.config.duplicate_offset)

    def align_images(self, alignment, image_ids=None):
        return self.run_command(f"Align {alignment}", 'align_images', alignment, image_ids)

    def arrange_images(self, direction='horizontal', order='normal', image_ids=None):
        return self.run_command("Arrange images", 'arrange_images', direction, order, image_ids,
                                padding=self.config.arrange_padding)

    def stack_images(self, direction='horizontal', order='normal', image_ids=None):
        return self.run_command("Stack images", 'stack_images', direction, order, image_ids)

    def match_image_sizes(self, dimension, image_ids=None):
        return self.run_command(f"Match {dimension}", 'match_image_sizes', dimension, image_ids)

    # ========================================
    # View
    # ========================================

    def zoom_at(self, screen_point: Vec2, zoom_in: bool):
        self.viewport.zoom_at(screen_point, zoom_in)

    def pan_by(self, dx, dy):
        self.viewport.pan_by(dx, dy)
