"""
Shared fixtures for Canvas Composer tests.

Provides small compositions (plain, rotated and scaled images) and an
EditorState wired to them.
"""
import sys
import os
import pytest

# Ensure src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from canvas_composer.editor_state import EditorState
from canvas_composer.models.annotation import RectAnnotation
from canvas_composer.models.composition import Composition
from canvas_composer.models.image import CanvasImage


# ── Images ──────────────────────────────────────────────────────────────

@pytest.fixture
def image_a():
    """100x100 image at the origin"""
    return CanvasImage(width=100, height=100, id='img-a', name='A')


@pytest.fixture
def image_b():
    """100x100 image to the right of image_a"""
    return CanvasImage(width=100, height=100, id='img-b', name='B', x=200)


@pytest.fixture
def rotated_image():
    """100x100 image at the origin rotated 90 degrees (center stays at 50,50)"""
    return CanvasImage(width=100, height=100, id='img-rot', name='Rotated', rotation=90)


@pytest.fixture
def scaled_image():
    """100x100 image at the origin scaled 2x (covers 0..200)"""
    return CanvasImage(width=100, height=100, id='img-scaled', name='Scaled', scale=2)


@pytest.fixture
def small_rect():
    return RectAnnotation(id='anno-rect', x=10, y=10, width=20, height=20, stroke_width=4)


# ── Compositions ────────────────────────────────────────────────────────

@pytest.fixture
def composition(image_a, image_b):
    return Composition(images=[image_a, image_b])


@pytest.fixture
def editor(composition):
    return EditorState(composition)
