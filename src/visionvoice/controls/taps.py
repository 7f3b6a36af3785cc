"""Single vs. double tap classification."""

from enum import Enum
from typing import Optional

from visionvoice.core.constants import DOUBLE_TAP_WINDOW


class TapIntent(Enum):
    SINGLE = "single"
    DOUBLE = "double"


class TapDisambiguator:
    """Classifies each tap as it arrives.

    A tap less than ``window`` seconds after the previous one is a double tap.
    The first tap of a pair is still reported as single, since it is acted on
    immediately. Callers must drop taps while the screen is loading.
    """

    def __init__(self, window: float = DOUBLE_TAP_WINDOW):
        self.window = window
        self._last_tap: Optional[float] = None

    def classify(self, timestamp: float) -> TapIntent:
        previous, self._last_tap = self._last_tap, timestamp
        if previous is not None and 0 <= timestamp - previous < self.window:
            # A third quick tap starts a new pair
            self._last_tap = None
            return TapIntent.DOUBLE
        return TapIntent.SINGLE

    def reset(self) -> None:
        self._last_tap = None
