"""Configuration system with YAML loading and user overrides."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from visionvoice.core.constants import (
    CONFIG_DIR,
    DATA_DIR,
    DEFAULT_AUTO_READ,
    DEFAULT_MAX_RATE,
    DEFAULT_RATE,
    DOUBLE_TAP_WINDOW,
    MIN_RATE,
    PYTTSX3_BASE_WPM,
    RATE_DEADBAND,
    RATE_SENSITIVITY,
    RATE_THROTTLE_SECONDS,
)
from visionvoice.core.exceptions import ConfigError

logger = logging.getLogger(__name__)


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _pick(cls, data: dict) -> dict:
    return {k: v for k, v in data.items() if k in cls.__dataclass_fields__}


@dataclass
class SpeechConfig:
    backend: str = "pyttsx3"
    max_rate: float = DEFAULT_MAX_RATE
    base_wpm: int = PYTTSX3_BASE_WPM
    volume: float = 0.9
    voice: Optional[str] = None
    words_per_second: float = 2.5


@dataclass
class GestureConfig:
    sensitivity: float = RATE_SENSITIVITY
    throttle_seconds: float = RATE_THROTTLE_SECONDS
    deadband: float = RATE_DEADBAND
    min_rate: float = MIN_RATE


@dataclass
class NarrationConfig:
    default_rate: float = DEFAULT_RATE
    default_auto_read: bool = DEFAULT_AUTO_READ
    double_tap_window: float = DOUBLE_TAP_WINDOW
    preferences_path: str = str(DATA_DIR / "preferences.json")
    screen_reader: str = "auto"  # "auto" polls processes, "off" never suppresses
    screen_reader_poll_seconds: float = 2.0


@dataclass
class AppConfig:
    language: str = "auto"
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    gesture: GestureConfig = field(default_factory=GestureConfig)
    narration: NarrationConfig = field(default_factory=NarrationConfig)
    vision: dict = field(default_factory=dict)
    logging: dict = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "AppConfig":
        """Load config from YAML, apply the user override file."""
        default_path = CONFIG_DIR / "default.yaml"
        config_data: dict = {}
        if default_path.exists():
            with open(default_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        else:
            logger.warning(f"Default config not found at {default_path}, using built-in defaults.")

        if config_path:
            user_path = Path(config_path)
            if not user_path.exists():
                raise ConfigError(f"User config not found: {user_path}")
            with open(user_path, "r", encoding="utf-8") as f:
                try:
                    user_data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"Invalid YAML in {user_path}: {e}") from e
            config_data = deep_merge(config_data, user_data)

        return cls._from_dict(config_data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "AppConfig":
        speech = SpeechConfig(**_pick(SpeechConfig, data.get("speech", {})))
        gesture = GestureConfig(**_pick(GestureConfig, data.get("gesture", {})))
        narration = NarrationConfig(**_pick(NarrationConfig, data.get("narration", {})))
        # YAML reads a bare `off` as False
        if narration.screen_reader is False:
            narration.screen_reader = "off"

        if gesture.min_rate <= 0 or gesture.min_rate > speech.max_rate:
            raise ConfigError(
                f"gesture.min_rate must be in (0, {speech.max_rate}], got {gesture.min_rate}"
            )
        if gesture.sensitivity <= 0:
            raise ConfigError(f"gesture.sensitivity must be positive, got {gesture.sensitivity}")

        return cls(
            language=data.get("language", "auto"),
            speech=speech,
            gesture=gesture,
            narration=narration,
            vision=data.get("vision", {}),
            logging=data.get("logging", {}),
        )
