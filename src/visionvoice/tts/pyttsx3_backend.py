"""pyttsx3-based speech backend (SAPI5 / NSSpeechSynthesizer / espeak).

pyttsx3 drivers are not thread-safe and SAPI5 is apartment-threaded, so the
engine lives in one dedicated daemon thread. Commands reach it through a
queue; it drives pyttsx3's external event loop with ``iterate()`` so that a
cancel can interrupt an utterance mid-sentence.
"""

import logging
import queue
import threading
from typing import Optional

from visionvoice.core.constants import DEFAULT_MAX_RATE, PYTTSX3_BASE_WPM
from visionvoice.core.exceptions import SpeechError
from visionvoice.tts.base import BackendListener, SpeechBackend

logger = logging.getLogger(__name__)

# Seconds to wait for the driver to come up
INIT_TIMEOUT = 10
# How long the worker blocks on the command queue between iterate() calls
POLL_INTERVAL = 0.02


class Pyttsx3Backend(SpeechBackend):
    """Speaks through pyttsx3 in a dedicated worker thread."""

    def __init__(
        self,
        base_wpm: int = PYTTSX3_BASE_WPM,
        volume: float = 0.9,
        voice: Optional[str] = None,
        max_rate: float = DEFAULT_MAX_RATE,
    ):
        self._base_wpm = base_wpm
        self._volume = volume
        self._voice = voice
        self._max_rate = max_rate
        self._commands: queue.Queue = queue.Queue()
        self._listener: Optional[BackendListener] = None
        self._active_id: Optional[int] = None
        self._voices: list[str] = []
        self._init_error: Optional[Exception] = None
        self._running = True
        self._ready = threading.Event()
        self._thread = threading.Thread(
            target=self._engine_loop, daemon=True, name="pyttsx3-worker"
        )
        self._thread.start()
        if not self._ready.wait(timeout=INIT_TIMEOUT):
            raise SpeechError(f"pyttsx3 engine failed to initialize within {INIT_TIMEOUT}s")
        if self._init_error is not None:
            raise SpeechError(f"pyttsx3 init failed: {self._init_error}") from self._init_error

    def _engine_loop(self):
        """Dedicated thread that owns the pyttsx3 engine."""
        try:
            import pyttsx3
            engine = pyttsx3.init()
            engine.setProperty("volume", self._volume)
            if self._voice:
                engine.setProperty("voice", self._voice)
            voices = engine.getProperty("voices")
            self._voices = [v.id for v in voices] if voices else []
            engine.connect("started-utterance", self._on_started)
            engine.connect("finished-utterance", self._on_finished)
            engine.connect("error", self._on_error)
            engine.startLoop(False)
        except Exception as e:
            logger.error(f"pyttsx3 init failed: {e}")
            self._init_error = e
            self._ready.set()
            return

        self._ready.set()
        logger.info("pyttsx3 engine thread started.")

        while self._running:
            try:
                command, args = self._commands.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                command = None

            try:
                if command == "speak":
                    utterance_id, text, rate = args
                    self._active_id = utterance_id
                    engine.setProperty("rate", int(self._base_wpm * rate))
                    engine.say(text, str(utterance_id))
                elif command == "cancel":
                    if self._active_id == args:
                        engine.stop()
                        self._active_id = None
                engine.iterate()
            except Exception as e:
                logger.error(f"pyttsx3 worker error: {e}", exc_info=True)
                failed_id, self._active_id = self._active_id, None
                if failed_id is not None and self._listener:
                    self._listener.utterance_failed(failed_id, SpeechError(str(e)))

        try:
            engine.endLoop()
        except Exception as e:
            logger.debug(f"pyttsx3 endLoop: {e}")

    # pyttsx3 callbacks run on the worker thread

    def _on_started(self, name):
        if self._listener:
            self._listener.utterance_started(int(name))

    def _on_finished(self, name, completed):
        utterance_id = int(name)
        if self._active_id == utterance_id:
            self._active_id = None
        if self._listener:
            self._listener.utterance_finished(utterance_id, bool(completed))

    def _on_error(self, name, exception):
        if self._listener:
            self._listener.utterance_failed(int(name), SpeechError(str(exception)))

    # SpeechBackend API (called from the event loop thread)

    def start(self, utterance_id: int, text: str, rate: float, listener: BackendListener) -> None:
        if not self._thread.is_alive():
            raise SpeechError("pyttsx3 worker is not running")
        self._listener = listener
        self._commands.put(("speak", (utterance_id, text, rate)))

    def cancel(self, utterance_id: int) -> None:
        self._commands.put(("cancel", utterance_id))

    def max_supported_rate(self) -> float:
        return self._max_rate

    def get_available_voices(self) -> list[str]:
        return list(self._voices)

    def cleanup(self) -> None:
        self._running = False
        if self._thread.is_alive():
            self._thread.join(timeout=3)
