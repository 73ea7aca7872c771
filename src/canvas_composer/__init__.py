"""
Canvas Composer - headless multi-layer composition editor core.

Public API:
    EditorState: facade over the document, history, viewport and gestures
    Composition: the document model
"""

__version__ = '0.1.0'

from .editor_state import EditorState
from .models.composition import Composition, CompositionSnapshot

__all__ = ['EditorState', 'Composition', 'CompositionSnapshot', '__version__']
