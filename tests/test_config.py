"""Tests for configuration system."""

import pytest

from visionvoice.core.config import (
    AppConfig,
    GestureConfig,
    NarrationConfig,
    SpeechConfig,
    deep_merge,
)
from visionvoice.core.exceptions import ConfigError


class TestDeepMerge:
    def test_simple_merge(self):
        base = {"a": 1, "b": 2}
        override = {"b": 3, "c": 4}
        result = deep_merge(base, override)
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"a": {"x": 1, "y": 2}, "b": 3}
        override = {"a": {"y": 99, "z": 100}}
        result = deep_merge(base, override)
        assert result == {"a": {"x": 1, "y": 99, "z": 100}, "b": 3}

    def test_base_is_not_mutated(self):
        base = {"a": {"x": 1}}
        deep_merge(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}


class TestDefaults:
    def test_speech(self):
        cfg = SpeechConfig()
        assert cfg.backend == "pyttsx3"
        assert cfg.max_rate == 10.0
        assert cfg.base_wpm == 175

    def test_gesture(self):
        cfg = GestureConfig()
        assert cfg.sensitivity == 150
        assert cfg.throttle_seconds == 0.1
        assert cfg.deadband == 0.1
        assert cfg.min_rate == 0.5

    def test_narration(self):
        cfg = NarrationConfig()
        assert cfg.default_rate == 0.8
        assert cfg.default_auto_read is True
        assert cfg.double_tap_window == 0.3
        assert cfg.preferences_path.endswith("preferences.json")


class TestAppConfig:
    def test_load_default_file(self):
        config = AppConfig.load()
        assert config.speech.max_rate == 10.0
        assert config.narration.default_rate == 0.8
        assert config.vision["provider"] == "auto"
        assert config.logging["level"] == "INFO"

    def test_user_override(self, tmp_path):
        user = tmp_path / "my.yaml"
        user.write_text(
            "language: zh\nspeech:\n  backend: silent\ngesture:\n  sensitivity: 300\n",
            encoding="utf-8",
        )
        config = AppConfig.load(str(user))
        assert config.language == "zh"
        assert config.speech.backend == "silent"
        assert config.speech.max_rate == 10.0
        assert config.gesture.sensitivity == 300

    def test_missing_user_file(self, tmp_path):
        with pytest.raises(ConfigError):
            AppConfig.load(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        user = tmp_path / "bad.yaml"
        user.write_text("speech: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            AppConfig.load(str(user))

    def test_unknown_keys_ignored(self):
        config = AppConfig._from_dict({"speech": {"backend": "silent", "pitch": 3}})
        assert config.speech.backend == "silent"

    @pytest.mark.parametrize(
        "data",
        [
            {"gesture": {"min_rate": 0}},
            {"gesture": {"min_rate": 5.0}, "speech": {"max_rate": 2.0}},
            {"gesture": {"sensitivity": -1}},
        ],
    )
    def test_rejects_invalid_ranges(self, data):
        with pytest.raises(ConfigError):
            AppConfig._from_dict(data)

    def test_bare_off_screen_reader(self):
        config = AppConfig._from_dict({"narration": {"screen_reader": False}})
        assert config.narration.screen_reader == "off"
