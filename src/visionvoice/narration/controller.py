"""Narration controller: the state machine behind the result screen.

One session per image. The controller fetches a description, reads it aloud
when the user is eligible for auto-speech, and reacts to taps, rate changes,
the auto-read toggle and the platform screen reader:

    IDLE -> ANALYZING -> SPEAKING | STOPPED
    SPEAKING <-> STOPPED, SPEAKING -> IDLE on natural end

A failed fetch is narrated like a real description, using the localized
error text.

Everything runs on one asyncio loop. Fetches are tagged with the session id
so a late result from an abandoned session is dropped, and speech goes
exclusively through :class:`SpeechEngine`. Rate changes always restart the
description from the beginning.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from visionvoice.accessibility.screen_reader import ScreenReaderStatus
from visionvoice.controls.gesture import GestureRateController, RateSource
from visionvoice.controls.taps import TapDisambiguator, TapIntent
from visionvoice.core.i18n import translate
from visionvoice.core.state import NarrationSnapshot, NarrationState
from visionvoice.storage.preferences import NarrationPreferences
from visionvoice.tts.engine import SpeechEngine, Utterance
from visionvoice.vision.base import DescriptionProvider

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[NarrationSnapshot], None]


class NarrationController:
    """Owns the narration state, the description and the speaking resource."""

    def __init__(
        self,
        engine: SpeechEngine,
        provider: DescriptionProvider,
        preferences: NarrationPreferences,
        screen_reader: ScreenReaderStatus,
        rate_controller: Optional[GestureRateController] = None,
        taps: Optional[TapDisambiguator] = None,
        language: str = "en",
        on_retake: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._engine = engine
        self._provider = provider
        self._preferences = preferences
        self._screen_reader = screen_reader
        self._rates = rate_controller or GestureRateController(
            preferences, rate=preferences.default_rate
        )
        self._taps = taps or TapDisambiguator()
        self.language = language
        self._on_retake = on_retake
        self._clock = clock

        self._state = NarrationState.IDLE
        self._description: Optional[str] = None
        self._auto_read = preferences.default_auto_read
        self._session_id = 0
        self._session_active = False
        self._fetch_task: Optional[asyncio.Task] = None
        # Set only by a single-tap stop; blocks resume via the auto-read toggle
        self._user_stopped = False
        self._utterance: Optional[Utterance] = None

        self._listeners: list[SnapshotListener] = []
        self._last_snapshot: Optional[NarrationSnapshot] = None

        self._rates.set_listener(self._on_rate_committed)
        self._unsubscribe_reader = screen_reader.subscribe(self._on_screen_reader_changed)

    # ---- Read-only view ----

    @property
    def state(self) -> NarrationState:
        return self._state

    @property
    def description(self) -> Optional[str]:
        return self._description

    @property
    def rate(self) -> float:
        return self._rates.rate

    @property
    def auto_read(self) -> bool:
        return self._auto_read

    @property
    def session_active(self) -> bool:
        return self._session_active

    @property
    def fetch_task(self) -> Optional[asyncio.Task]:
        return self._fetch_task

    @property
    def is_eligible(self) -> bool:
        """May the description be spoken without the user asking?"""
        return self._auto_read and not self._screen_reader.is_active

    @property
    def snapshot(self) -> NarrationSnapshot:
        return NarrationSnapshot(
            state=self._state,
            description=self._description,
            rate=self.rate,
            auto_read=self._auto_read,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call listener with every new snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- Lifecycle ----

    async def initialize(self) -> None:
        """Load the persisted rate and auto-read flag."""
        self._rates.restore(await self._preferences.load_rate())
        self._auto_read = await self._preferences.load_auto_read()
        logger.info(f"Narration initialized: rate={self.rate:.2f}, auto_read={self._auto_read}")
        self._emit()

    def start_session(
        self, image_ref: str, description: Optional[str] = None
    ) -> Optional[asyncio.Task]:
        """Begin narrating an image.

        With a pre-fetched description, narration starts immediately and None
        is returned. Otherwise the description is fetched in the background
        and the fetch task is returned.
        """
        if self._session_active:
            logger.info("New image supplied; ending the previous session.")
            self._teardown()

        self._session_id += 1
        self._session_active = True
        self._taps.reset()
        # Capability query happens once per session, not per gesture frame
        self._rates.set_max_rate(self._engine.max_supported_rate())

        if description is not None:
            logger.info(f"Session {self._session_id}: using supplied description")
            self._description = description
            self._settle_description()
            return None

        logger.info(f"Session {self._session_id}: analyzing {image_ref}")
        self._transition(NarrationState.ANALYZING)
        self._fetch_task = asyncio.get_running_loop().create_task(
            self._fetch(self._session_id, image_ref)
        )
        return self._fetch_task

    def end_session(self) -> None:
        """Tear down: silence speech and ignore any late description."""
        if not self._session_active and self._state is NarrationState.IDLE:
            return
        self._teardown()
        self._emit()

    def close(self) -> None:
        self.end_session()
        self._unsubscribe_reader()
        self._rates.set_listener(None)
        self._listeners.clear()

    def _teardown(self) -> None:
        self._stop_speech()
        # Bumping the id turns any in-flight fetch into a stale one
        self._session_id += 1
        self._session_active = False
        self._fetch_task = None
        self._description = None
        self._user_stopped = False
        self._state = NarrationState.IDLE

    async def _fetch(self, session_id: int, image_ref: str) -> None:
        try:
            text = await self._provider.describe(image_ref)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error analyzing image: {e}")
            text = translate("result.errorAnalyzing", self.language)

        if session_id != self._session_id or self._state is not NarrationState.ANALYZING:
            logger.info(f"Discarding description for stale session {session_id}")
            return

        self._description = text
        self._settle_description()

    def _settle_description(self) -> None:
        if self.is_eligible:
            self._speak()
        else:
            self._transition(NarrationState.STOPPED)

    # ---- Taps ----

    def tap(self, timestamp: Optional[float] = None) -> Optional[TapIntent]:
        """Handle a pointer-up. Taps are rejected while the image is analyzed."""
        if self._state is NarrationState.ANALYZING:
            logger.debug("Tap ignored while analyzing")
            return None
        intent = self._taps.classify(self._clock() if timestamp is None else timestamp)
        if intent is TapIntent.DOUBLE:
            self.double_tap()
        else:
            self.single_tap()
        return intent

    def single_tap(self) -> None:
        """Stop reading. A no-op unless currently speaking."""
        if self._state is not NarrationState.SPEAKING:
            return
        self._stop_speech()
        self._user_stopped = True
        self._transition(NarrationState.STOPPED)

    def double_tap(self) -> None:
        """Stop reading and ask the host to retake the photo."""
        if self._state is NarrationState.ANALYZING:
            return
        logger.info("Double tap: retake requested")
        self._teardown()
        self._emit()
        if self._on_retake is not None:
            try:
                self._on_retake()
            except Exception as e:
                logger.error(f"Retake handler error: {e}", exc_info=True)

    # ---- Rate ----

    async def on_drag_delta(self, delta_y: float) -> Optional[float]:
        return await self._rates.on_drag_delta(delta_y)

    async def on_drag_end(self) -> float:
        return await self._rates.on_drag_end()

    async def select_speed(self, rate: float) -> float:
        """Pick a preset speed; restarts reading even after an explicit stop."""
        return await self._rates.set_rate(rate)

    def _on_rate_committed(self, rate: float, source: RateSource) -> None:
        if self._description is None:
            self._emit()
            return

        if source is RateSource.PRESET:
            should_speak = not self._screen_reader.is_active
        else:
            should_speak = self.is_eligible

        if should_speak:
            self._speak()
        else:
            self._emit()

    # ---- Auto-read ----

    async def set_auto_read(self, enabled: bool) -> None:
        self._auto_read = enabled
        logger.info(f"Auto-read {'on' if enabled else 'off'}")

        if enabled:
            resumable = (
                self._description is not None
                and self._state not in (NarrationState.ANALYZING, NarrationState.SPEAKING)
                and not self._user_stopped
                and not self._screen_reader.is_active
            )
            if resumable:
                self._speak()
            else:
                self._emit()
        else:
            self._stop_speech()
            if self._description is not None and self._state is not NarrationState.ANALYZING:
                self._transition(NarrationState.STOPPED)
            else:
                self._emit()

        await self._preferences.save_auto_read(enabled)

    # ---- Screen reader ----

    def _on_screen_reader_changed(self, active: bool) -> None:
        if active:
            logger.info("Screen reader active; suppressing narration")
            self._stop_speech()
            if self._state is NarrationState.SPEAKING:
                self._transition(NarrationState.STOPPED)
        else:
            logger.info("Screen reader inactive; narration allowed again")

    # ---- Speech ----

    def _speak(self) -> None:
        if self._screen_reader.is_active:
            logger.debug("Not speaking: screen reader is active")
            self._emit()
            return
        self._user_stopped = False
        self._utterance = self._engine.speak(
            self._description,
            self.rate,
            on_done=self._on_utterance_done,
            on_error=self._on_utterance_error,
        )
        self._transition(NarrationState.SPEAKING)

    def _stop_speech(self) -> None:
        self._utterance = None
        self._engine.stop()

    def _on_utterance_done(self, utterance: Utterance) -> None:
        if utterance is not self._utterance or self._state is not NarrationState.SPEAKING:
            return
        self._utterance = None
        self._transition(NarrationState.IDLE)

    def _on_utterance_error(self, utterance: Utterance, error: Exception) -> None:
        if utterance is not self._utterance:
            return
        self._utterance = None
        logger.warning(f"Speech failed, stopping narration: {error}")
        if self._state is NarrationState.SPEAKING:
            self._transition(NarrationState.STOPPED)

    # ---- Snapshots ----

    def _transition(self, state: NarrationState) -> None:
        if state is not self._state:
            logger.debug(f"Narration {self._state.value} -> {state.value}")
        self._state = state
        self._emit(force=True)

    def _emit(self, force: bool = False) -> None:
        snapshot = self.snapshot
        if snapshot == self._last_snapshot and not force:
            return
        self._last_snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Snapshot listener error: {e}", exc_info=True)
