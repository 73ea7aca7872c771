"""Engine configuration

EngineConfig collects the interaction tunables (history size, zoom limits,
pick tolerance, handle sizes, layout offsets). Defaults come from constants.py;
a JSON file may override any subset of them:

    {
        "max_history": 50,
        "hit_tolerance_px": 8
    }
"""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields

from canvas_composer import constants
from canvas_composer.utils.logger import loggerRaise

_logger = logging.getLogger('Config')


@dataclass
class EngineConfig:
    max_history: int = constants.MAX_HISTORY
    hit_tolerance_px: float = constants.HIT_TOLERANCE_PX
    handle_size_px: float = constants.HANDLE_SIZE_PX
    handle_click_factor: float = constants.HANDLE_CLICK_FACTOR
    rotation_handle_offset_px: float = constants.ROTATION_HANDLE_OFFSET_PX
    crop_handle_size_px: float = constants.CROP_HANDLE_SIZE_PX
    min_annotation_scale: float = constants.MIN_ANNOTATION_SCALE
    min_zoom: float = constants.MIN_ZOOM
    max_zoom: float = constants.MAX_ZOOM
    zoom_factor: float = constants.ZOOM_FACTOR
    duplicate_offset: float = constants.DUPLICATE_OFFSET
    arrange_padding: float = constants.ARRANGE_PADDING

    def __post_init__(self):
        if self.max_history < 1:
            raise ValueError(f"max_history must be at least 1, got {self.max_history}")
        if not 0 < self.min_zoom <= self.max_zoom:
            raise ValueError(f"Invalid zoom range [{self.min_zoom}, {self.max_zoom}]")
        if self.zoom_factor <= 1:
            raise ValueError(f"zoom_factor must be greater than 1, got {self.zoom_factor}")

    @classmethod
    def from_dict(cls, data):
        """Build a config from a dict, ignoring (and logging) unknown keys"""
        if not isinstance(data, dict):
            raise TypeError(f"Config must be a JSON object, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                _logger.warning(f"Ignoring unknown config key '{key}'")
                continue
            default = getattr(cls, key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"Config key '{key}' must be a number, got {value!r}")
            values[key] = int(value) if isinstance(default, int) else float(value)
        return cls(**values)

    def to_dict(self):
        return asdict(self)


def load_config(path):
    """Load an EngineConfig from a JSON file; a missing file yields the defaults"""
    if not os.path.exists(path):
        _logger.debug(f"No config at {path}, using defaults")
        return EngineConfig()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return EngineConfig.from_dict(json.load(f))
    except (OSError, ValueError, TypeError) as e:
        loggerRaise(e, f"Error loading config from {path}")


def save_config(config, path):
    """Write a config as JSON"""
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)
    except OSError as e:
        loggerRaise(e, f"Error saving config to {path}")
