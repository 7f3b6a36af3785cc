"""Audio-free backend that paces utterances on the event loop clock.

Used for headless runs and as the fallback when no platform TTS starts.
"""

import asyncio
import logging

from visionvoice.core.constants import DEFAULT_MAX_RATE
from visionvoice.tts.base import BackendListener, SpeechBackend

logger = logging.getLogger(__name__)


class SilentBackend(SpeechBackend):
    """Pretends to speak for as long as the text would take at the given rate."""

    def __init__(self, words_per_second: float = 2.5, max_rate: float = DEFAULT_MAX_RATE):
        self._words_per_second = words_per_second
        self._max_rate = max_rate
        self._timers: dict[int, asyncio.TimerHandle] = {}

    def duration(self, text: str, rate: float) -> float:
        words = max(1, len(text.split()))
        return words / (self._words_per_second * max(rate, 0.01))

    def start(self, utterance_id: int, text: str, rate: float, listener: BackendListener) -> None:
        loop = asyncio.get_running_loop()
        delay = self.duration(text, rate)
        listener.utterance_started(utterance_id)
        self._timers[utterance_id] = loop.call_later(
            delay, self._finish, utterance_id, listener
        )
        logger.debug(f"Silent utterance #{utterance_id} will last {delay:.1f}s")

    def _finish(self, utterance_id: int, listener: BackendListener) -> None:
        self._timers.pop(utterance_id, None)
        listener.utterance_finished(utterance_id, True)

    def cancel(self, utterance_id: int) -> None:
        timer = self._timers.pop(utterance_id, None)
        if timer is not None:
            timer.cancel()

    def max_supported_rate(self) -> float:
        return self._max_rate

    def cleanup(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
