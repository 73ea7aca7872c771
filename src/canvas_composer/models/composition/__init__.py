"""Composition document model (core + operation mixins) and its snapshot."""
from .core import Composition
from .snapshot import CompositionSnapshot

__all__ = ['Composition', 'CompositionSnapshot']
