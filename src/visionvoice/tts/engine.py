"""Single-flight speech engine on top of a platform backend.

The engine is the only owner of the "currently speaking" resource:
``speak`` and ``stop`` are its only mutators. Each ``speak`` produces an
:class:`Utterance` whose outcome is settled exactly once (done, stopped or
error). Callbacks are always delivered later on the event loop, never from
inside ``speak``/``stop`` and never from a backend thread.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from visionvoice.core.exceptions import SpeechError
from visionvoice.tts.base import SpeechBackend, SpeechOutcome

logger = logging.getLogger(__name__)

UtteranceCallback = Callable[["Utterance"], None]
ErrorCallback = Callable[["Utterance", Exception], None]


@dataclass(eq=False)
class Utterance:
    """Handle for one speak() call."""
    id: int
    text: str
    rate: float
    future: asyncio.Future
    on_start: Optional[UtteranceCallback] = None
    on_done: Optional[UtteranceCallback] = None
    on_stopped: Optional[UtteranceCallback] = None
    on_error: Optional[ErrorCallback] = None
    started: bool = False
    error: Optional[Exception] = field(default=None, repr=False)

    @property
    def finished(self) -> bool:
        return self.future.done()

    @property
    def outcome(self) -> Optional[SpeechOutcome]:
        return self.future.result() if self.future.done() else None

    async def wait(self) -> SpeechOutcome:
        """Wait for the utterance to end; cancelling the wait does not stop speech."""
        return await asyncio.shield(self.future)


class SpeechEngine:
    """Speaks one utterance at a time; a new speak() interrupts the old one."""

    def __init__(self, backend: SpeechBackend):
        self._backend = backend
        self._current: Optional[Utterance] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._ids = itertools.count(1)

    @property
    def is_speaking(self) -> bool:
        return self._current is not None

    @property
    def current(self) -> Optional[Utterance]:
        return self._current

    def max_supported_rate(self) -> float:
        return self._backend.max_supported_rate()

    def speak(
        self,
        text: str,
        rate: float,
        on_start: Optional[UtteranceCallback] = None,
        on_done: Optional[UtteranceCallback] = None,
        on_stopped: Optional[UtteranceCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Utterance:
        """Start speaking text, stopping whatever is playing first.

        Must be called from the event loop thread. Returns immediately.
        """
        loop = asyncio.get_running_loop()
        self._loop = loop

        if self._current is not None:
            self.stop()

        utterance = Utterance(
            id=next(self._ids),
            text=text,
            rate=rate,
            future=loop.create_future(),
            on_start=on_start,
            on_done=on_done,
            on_stopped=on_stopped,
            on_error=on_error,
        )
        self._current = utterance
        logger.info(f"Starting utterance #{utterance.id} at rate {rate:.2f} ({len(text)} chars)")

        try:
            self._backend.start(utterance.id, text, rate, self)
        except Exception as e:
            logger.error(f"Speech backend failed to start: {e}", exc_info=True)
            self._current = None
            err = e if isinstance(e, SpeechError) else SpeechError(str(e))
            self._settle(utterance, SpeechOutcome.ERROR, err)

        return utterance

    def stop(self) -> None:
        """Interrupt the current utterance. Safe to call when silent."""
        utterance = self._current
        if utterance is None:
            return
        self._current = None
        try:
            self._backend.cancel(utterance.id)
        except Exception as e:
            logger.warning(f"Speech backend cancel failed: {e}")
        logger.info(f"Utterance #{utterance.id} stopped")
        self._settle(utterance, SpeechOutcome.STOPPED)

    def close(self) -> None:
        self.stop()
        self._backend.cleanup()

    # ---- BackendListener (any thread) ----

    def utterance_started(self, utterance_id: int) -> None:
        self._post(self._handle_started, utterance_id)

    def utterance_finished(self, utterance_id: int, completed: bool) -> None:
        self._post(self._handle_finished, utterance_id, completed)

    def utterance_failed(self, utterance_id: int, error: Exception) -> None:
        self._post(self._handle_failed, utterance_id, error)

    def _post(self, handler: Callable, *args) -> None:
        if self._loop is None:
            return
        try:
            self._loop.call_soon_threadsafe(handler, *args)
        except RuntimeError:
            # Loop already closed; nobody is left to notify
            logger.debug(f"Dropping backend event for utterance {args[0]}: loop closed")

    # ---- Loop-thread handlers ----

    def _live(self, utterance_id: int) -> Optional[Utterance]:
        utterance = self._current
        if utterance is None or utterance.id != utterance_id:
            logger.debug(f"Ignoring stale backend event for utterance #{utterance_id}")
            return None
        return utterance

    def _handle_started(self, utterance_id: int) -> None:
        utterance = self._live(utterance_id)
        if utterance is None or utterance.started:
            return
        utterance.started = True
        if utterance.on_start:
            self._invoke(utterance.on_start, utterance)

    def _handle_finished(self, utterance_id: int, completed: bool) -> None:
        utterance = self._live(utterance_id)
        if utterance is None:
            return
        self._current = None
        outcome = SpeechOutcome.DONE if completed else SpeechOutcome.STOPPED
        logger.info(f"Utterance #{utterance_id} {outcome.value}")
        self._settle(utterance, outcome)

    def _handle_failed(self, utterance_id: int, error: Exception) -> None:
        utterance = self._live(utterance_id)
        if utterance is None:
            return
        self._current = None
        logger.error(f"Utterance #{utterance_id} failed: {error}")
        err = error if isinstance(error, SpeechError) else SpeechError(str(error))
        self._settle(utterance, SpeechOutcome.ERROR, err)

    def _settle(
        self,
        utterance: Utterance,
        outcome: SpeechOutcome,
        error: Optional[Exception] = None,
    ) -> None:
        if utterance.future.done():
            return
        utterance.error = error
        utterance.future.set_result(outcome)

        loop = utterance.future.get_loop()
        if outcome is SpeechOutcome.DONE and utterance.on_done:
            loop.call_soon(self._invoke, utterance.on_done, utterance)
        elif outcome is SpeechOutcome.STOPPED and utterance.on_stopped:
            loop.call_soon(self._invoke, utterance.on_stopped, utterance)
        elif outcome is SpeechOutcome.ERROR and utterance.on_error:
            loop.call_soon(self._invoke, utterance.on_error, utterance, error)

    @staticmethod
    def _invoke(callback: Callable, *args) -> None:
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Speech callback error: {e}", exc_info=True)
