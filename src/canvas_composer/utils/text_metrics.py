"""
Canvas Composer - Text Metrics

Measures text annotation extents with Pillow's font machinery so bounds and
pivots of text do not depend on a drawing surface. Fonts are resolved by
family name through ImageFont.truetype(); when the family cannot be found the
scalable built-in default font is used at the requested size.
"""

import logging
from functools import lru_cache

from PIL import ImageFont

from canvas_composer.constants import TEXT_LINE_HEIGHT

_logger = logging.getLogger('TextMetrics')

# Common aliases for CSS-style generic families
_FAMILY_FILES = {
    'sans-serif': 'DejaVuSans.ttf',
    'serif': 'DejaVuSerif.ttf',
    'monospace': 'DejaVuSansMono.ttf',
    'arial': 'arial.ttf',
}


@lru_cache(maxsize=64)
def get_font(family: str, size: float):
    """Load (and cache) a font for the given family and pixel size"""
    size = max(1, int(round(size)))
    candidates = [family, _FAMILY_FILES.get(family.lower(), None)]
    for candidate in candidates:
        if not candidate:
            continue
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    _logger.debug(f"Font '{family}' not found, using default font at {size}px")
    return ImageFont.load_default(size)


def measure_line(text: str, family: str, size: float) -> float:
    """Advance width of a single line of text in pixels"""
    if not text:
        return 0.0
    return float(get_font(family, size).getlength(text))


def measure_text(text: str, family: str, size: float):
    """Measure a (possibly multi-line) text block

    Args:
        text: Text content, lines separated by '\\n'
        family: Font family name
        size: Font size in pixels

    Returns:
        Tuple of (width, height): widest line width and
        line count * size * TEXT_LINE_HEIGHT
    """
    lines = text.split('\n')
    width = max([0.0] + [measure_line(line, family, size) for line in lines])
    height = size * TEXT_LINE_HEIGHT * len(lines)
    return width, height
