"""Pointer interaction: viewport, handles, gesture states and the engine."""
from .gestures import GestureMode, Modifiers, PointerEvent
from .engine import InteractionEngine, ToolOptions, TOOLS
from .viewport import Viewport

__all__ = ['GestureMode', 'Modifiers', 'PointerEvent', 'InteractionEngine', 'ToolOptions', 'TOOLS', 'Viewport']
