"""
Canvas Composer - Constants and Configuration Defaults

This module contains the constant values used throughout the engine:
- Picking tolerances and bounds padding
- Handle sizes for transform/crop handles
- Numeric guards (epsilons, scale clamps)
- History capacity
- Viewport zoom limits
- Defaults for newly drawn annotations

Interaction tunables can be overridden at runtime through config.EngineConfig.
"""

# ======================================================================
# PICKING / BOUNDS PADDING
# ======================================================================
# Extra local-space padding around every annotation primitive so thin
# shapes are easy to click
HIT_PADDING = 15.0

# Extra padding for arrows (arrowhead extent + rotation allowance);
# stroke width is added on top of this
ARROW_HEAD_PADDING = 25.0

# On-screen pixel tolerance for line-like hit tests (divided by the
# full scale chain so it stays constant on screen)
HIT_TOLERANCE_PX = 5.0

# Text layout
TEXT_LINE_HEIGHT = 1.2  # Multiplied by font size
DEFAULT_FONT_FAMILY = 'sans-serif'

# ======================================================================
# HANDLES
# ======================================================================
HANDLE_SIZE_PX = 8.0             # Annotation scale/rotate/endpoint handles
HANDLE_CLICK_FACTOR = 1.5        # Click radius = handle size * factor
ROTATION_HANDLE_OFFSET_PX = 20.0  # Distance of rotate handle above the bounds
CROP_HANDLE_SIZE_PX = 10.0

# ======================================================================
# NUMERIC GUARDS
# ======================================================================
SCALE_EPSILON = 1e-6        # Replaces a zero scale before dividing
DISTANCE_EPSILON = 1e-6     # Minimum pivot distance for scale gestures
MIN_ANNOTATION_SCALE = 0.01  # Floor for gesture-driven annotation scale

# ======================================================================
# HISTORY
# ======================================================================
MAX_HISTORY = 20

# ======================================================================
# VIEWPORT
# ======================================================================
MIN_ZOOM = 0.1
MAX_ZOOM = 10.0
ZOOM_FACTOR = 1.1

# ======================================================================
# LAYOUT OPERATIONS
# ======================================================================
DUPLICATE_OFFSET = 10.0  # Offset applied to duplicated layers
ARRANGE_PADDING = 10.0   # Gap used by arrange_images (stack uses 0)

# ======================================================================
# CROP ASPECT RATIOS
# ======================================================================
# width / height, None means free-form
ASPECT_RATIOS = {
    'free': None,
    '1:1': 1.0,
    '4:3': 4.0 / 3.0,
    '16:9': 16.0 / 9.0,
}

# ======================================================================
# NEW ANNOTATION DEFAULTS
# ======================================================================
DEFAULT_COLOR = '#ef4444'
DEFAULT_STROKE_WIDTH = 4.0
DEFAULT_FONT_SIZE = 24.0
DEFAULT_TEXT = 'New Text'
