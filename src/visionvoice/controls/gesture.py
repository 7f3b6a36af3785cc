"""Vertical drag to adjust reading speed.

Dragging up speeds narration up, dragging down slows it. Drag updates are
throttled and pass through a deadband before they are committed; every
committed rate is reported to the listener and persisted.
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional

from visionvoice.core.constants import (
    DEFAULT_MAX_RATE,
    DEFAULT_RATE,
    MIN_RATE,
    RATE_DEADBAND,
    RATE_SENSITIVITY,
    RATE_THROTTLE_SECONDS,
)
from visionvoice.storage.preferences import NarrationPreferences

logger = logging.getLogger(__name__)


class RateSource(Enum):
    GESTURE = "gesture"
    PRESET = "preset"


RateListener = Callable[[float, RateSource], None]


class GestureRateController:
    """Maps drag displacement to a clamped, throttled, persisted rate."""

    def __init__(
        self,
        preferences: NarrationPreferences,
        rate: float = DEFAULT_RATE,
        min_rate: float = MIN_RATE,
        max_rate: float = DEFAULT_MAX_RATE,
        sensitivity: float = RATE_SENSITIVITY,
        throttle_seconds: float = RATE_THROTTLE_SECONDS,
        deadband: float = RATE_DEADBAND,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._preferences = preferences
        self.min_rate = min_rate
        self.max_rate = max(max_rate, min_rate)
        self.sensitivity = sensitivity
        self.throttle_seconds = throttle_seconds
        self.deadband = deadband
        self._clock = clock
        self._rate = self.clamp(rate)
        self._listener: Optional[RateListener] = None
        self._last_commit: Optional[float] = None

    @property
    def rate(self) -> float:
        return self._rate

    def set_listener(self, listener: Optional[RateListener]) -> None:
        self._listener = listener

    def clamp(self, rate: float) -> float:
        return max(self.min_rate, min(self.max_rate, rate))

    def restore(self, rate: float) -> None:
        """Seed the rate loaded from storage; no notification, no write."""
        self._rate = self.clamp(rate)

    def set_max_rate(self, max_rate: float) -> None:
        """Apply the backend's ceiling for this session."""
        self.max_rate = max(max_rate, self.min_rate)
        clamped = self.clamp(self._rate)
        if clamped != self._rate:
            logger.info(f"Rate {self._rate:.2f} exceeds new ceiling, clamped to {clamped:.2f}")
            self._rate = clamped

    async def on_drag_delta(self, delta_y: float) -> Optional[float]:
        """Handle one drag frame. ``delta_y`` is the movement since the previous frame.

        Returns the committed rate, or None if the frame was throttled or
        absorbed by the deadband.
        """
        now = self._clock()
        if self._last_commit is not None and now - self._last_commit < self.throttle_seconds:
            return None

        candidate = self.clamp(self._rate - delta_y / self.sensitivity)
        if abs(candidate - self._rate) <= self.deadband:
            return None

        self._last_commit = now
        await self._commit(candidate, RateSource.GESTURE)
        return candidate

    async def on_drag_end(self) -> float:
        """Finish the drag and persist the resting rate."""
        await self._preferences.save_rate(self._rate)
        logger.debug(f"Drag ended at rate {self._rate:.2f}")
        return self._rate

    async def set_rate(self, rate: float) -> float:
        """Explicit speed selection; skips throttle and deadband."""
        rate = self.clamp(rate)
        await self._commit(rate, RateSource.PRESET)
        return rate

    async def _commit(self, rate: float, source: RateSource) -> None:
        self._rate = rate
        logger.info(f"Rate committed: {rate:.2f} ({source.value})")
        if self._listener is not None:
            try:
                self._listener(rate, source)
            except Exception as e:
                logger.error(f"Rate listener error: {e}", exc_info=True)
        await self._preferences.save_rate(rate)
