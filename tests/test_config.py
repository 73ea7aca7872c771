"""
Tests for EngineConfig loading.

Covers:
- Defaults mirror constants
- from_dict: unknown keys ignored, numeric coercion, type errors
- Validation of ranges
- JSON load / save round trip, missing file
"""
import json

import pytest

from canvas_composer import constants
from canvas_composer.config import EngineConfig, load_config, save_config


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.max_history == constants.MAX_HISTORY
        assert config.hit_tolerance_px == constants.HIT_TOLERANCE_PX
        assert config.max_zoom == constants.MAX_ZOOM

    def test_from_dict_ignores_unknown_keys(self):
        config = EngineConfig.from_dict({"max_history": 5, "theme": 3})
        assert config.max_history == 5
        assert not hasattr(config, 'theme')

    def test_from_dict_coerces_types(self):
        config = EngineConfig.from_dict({"max_history": 7.0, "hit_tolerance_px": 8})
        assert config.max_history == 7
        assert isinstance(config.max_history, int)
        assert isinstance(config.hit_tolerance_px, float)

    @pytest.mark.parametrize('value', [True, "10", None, [1]])
    def test_from_dict_rejects_non_numbers(self, value):
        with pytest.raises(TypeError):
            EngineConfig.from_dict({"max_history": value})

    def test_from_dict_requires_object(self):
        with pytest.raises(TypeError):
            EngineConfig.from_dict([1, 2])

    @pytest.mark.parametrize('overrides', [
        {"max_history": 0},
        {"min_zoom": 0},
        {"min_zoom": 5, "max_zoom": 1},
        {"zoom_factor": 1},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            EngineConfig(**overrides)


class TestConfigFiles:

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(str(tmp_path / 'absent.json')) == EngineConfig()

    def test_save_and_load(self, tmp_path):
        path = str(tmp_path / 'nested' / 'config.json')
        save_config(EngineConfig(max_history=42, arrange_padding=4), path)
        loaded = load_config(path)
        assert loaded.max_history == 42
        assert loaded.arrange_padding == 4.0

    def test_partial_file(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({"hit_tolerance_px": 9}), encoding='utf-8')
        loaded = load_config(str(path))
        assert loaded.hit_tolerance_px == 9.0
        assert loaded.max_history == constants.MAX_HISTORY

    def test_malformed_file_raises(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text("{not json", encoding='utf-8')
        with pytest.raises(ValueError):
            load_config(str(path))
