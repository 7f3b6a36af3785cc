"""Factory for creating speech backends based on config."""

import logging

from visionvoice.core.config import SpeechConfig
from visionvoice.tts.base import SpeechBackend
from visionvoice.tts.silent_backend import SilentBackend

logger = logging.getLogger(__name__)


def create_speech_backend(config: SpeechConfig) -> SpeechBackend:
    """Create the configured backend, falling back to the silent one."""
    if config.backend == "pyttsx3":
        try:
            from visionvoice.tts.pyttsx3_backend import Pyttsx3Backend

            return Pyttsx3Backend(
                base_wpm=config.base_wpm,
                volume=config.volume,
                voice=config.voice,
                max_rate=config.max_rate,
            )
        except Exception as e:
            logger.warning(f"pyttsx3 backend failed, falling back to silent: {e}")
    elif config.backend != "silent":
        logger.warning(f"Unknown speech backend '{config.backend}', using silent")

    return SilentBackend(
        words_per_second=config.words_per_second,
        max_rate=config.max_rate,
    )
