"""
Undo/Redo History Manager for Canvas Composer

Manages committed composition snapshots with undo/redo, plus a single "live"
snapshot staged while a gesture is in progress. The live snapshot is what a
renderer should read during a gesture; it is invisible to undo/redo until it
is folded into history by end_live(commit=True).

Snapshots are immutable (structurally shared), so they are stored as-is.
"""

import logging

from canvas_composer.constants import MAX_HISTORY


class HistoryManager:
    """Manages undo/redo history with state snapshots"""

    def __init__(self, max_history=MAX_HISTORY):
        """
        Initialize the history manager

        Args:
            max_history: Maximum number of states to keep in history
        """
        self.max_history = max_history
        self.history = []  # List of {'data', 'description'} entries
        self.current_index = -1  # Current position in history (-1 means no states)
        self._live = None
        self._listeners = []  # Callbacks to notify on state changes
        self._logger = logging.getLogger('History')

    # ========================================
    # Committed history
    # ========================================

    def commit(self, snapshot, description=""):
        """
        Append a new state after the current index

        Any redo branch past the current index is discarded; the oldest entry
        is evicted once max_history is exceeded.

        Args:
            snapshot: Immutable composition snapshot
            description: Optional description of the change
        """
        # If we're not at the end of history, remove everything after current position
        if self.current_index < len(self.history) - 1:
            self.history = self.history[:self.current_index + 1]

        self.history.append({'data': snapshot, 'description': description})
        self.current_index += 1

        # Trim history if it exceeds max_history
        while len(self.history) > self.max_history:
            self.history.pop(0)
            self.current_index -= 1

        self._notify_listeners()
        self._logger.debug(f"State saved: {description} (index: {self.current_index}, total: {len(self.history)})")

    def undo(self):
        """
        Move back one state in history

        Returns:
            The previous snapshot, or None if at the beginning or while live
        """
        if not self.can_undo():
            self._logger.debug("Cannot undo - at beginning of history or gesture in progress")
            return None

        self.current_index -= 1
        entry = self.history[self.current_index]
        self._notify_listeners()
        self._logger.debug(f"Undo to: {entry['description']} (index: {self.current_index})")
        return entry['data']

    def redo(self):
        """
        Move forward one state in history

        Returns:
            The next snapshot, or None if at the end or while live
        """
        if not self.can_redo():
            self._logger.debug("Cannot redo - at end of history or gesture in progress")
            return None

        self.current_index += 1
        entry = self.history[self.current_index]
        self._notify_listeners()
        self._logger.debug(f"Redo to: {entry['description']} (index: {self.current_index})")
        return entry['data']

    def can_undo(self):
        """Check if undo is available"""
        return self._live is None and self.current_index > 0

    def can_redo(self):
        """Check if redo is available"""
        return self._live is None and self.current_index < len(self.history) - 1

    @property
    def current(self):
        """The snapshot at the current index, or None when empty"""
        if 0 <= self.current_index < len(self.history):
            return self.history[self.current_index]['data']
        return None

    def clear(self):
        """Clear all history (including any live snapshot)"""
        self.history = []
        self.current_index = -1
        self._live = None
        self._notify_listeners()
        self._logger.debug("History cleared")

    # ========================================
    # Live staging
    # ========================================

    @property
    def live(self):
        """The staged in-progress snapshot, or None"""
        return self._live

    @property
    def is_live(self):
        return self._live is not None

    def begin_live(self, snapshot):
        """Start staging a gesture; at most one live snapshot may exist"""
        if self._live is not None:
            raise RuntimeError("A live snapshot is already active. Call end_live() first.")
        self._live = snapshot
        self._notify_listeners()

    def update_live(self, snapshot):
        """Replace the staged snapshot"""
        if self._live is None:
            raise RuntimeError("No live snapshot to update. Call begin_live() first.")
        self._live = snapshot

    def end_live(self, commit, description=""):
        """
        Finish staging

        Args:
            commit: True to fold the live snapshot into history, False to discard it
            description: History description used when committing

        Returns:
            The committed snapshot, or None when discarded or not live
        """
        snapshot = self._live
        if snapshot is None:
            return None
        self._live = None
        if commit:
            self.commit(snapshot, description)
            return snapshot
        self._notify_listeners()
        self._logger.debug("Live snapshot discarded")
        return None

    # ========================================
    # Listeners & descriptions
    # ========================================

    def add_listener(self, callback):
        """
        Add a listener to be notified when history state changes

        Args:
            callback: Function to call when history changes (receives can_undo, can_redo)
        """
        self._listeners.append(callback)

    def remove_listener(self, callback):
        """Remove a listener"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self):
        """Notify all listeners of history state change"""
        for callback in self._listeners:
            try:
                callback(self.can_undo(), self.can_redo())
            except Exception:
                self._logger.exception("Error notifying listener")

    def get_current_description(self):
        """Get the description of the current state"""
        if 0 <= self.current_index < len(self.history):
            return self.history[self.current_index]['description']
        return ""

    def get_undo_description(self):
        """Get the description of the state that would be restored by undo"""
        if self.can_undo():
            return self.history[self.current_index - 1]['description']
        return ""

    def get_redo_description(self):
        """Get the description of the state that would be restored by redo"""
        if self.can_redo():
            return self.history[self.current_index + 1]['description']
        return ""
