"""Narration state types shared by the controller and its observers."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NarrationState(Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    SPEAKING = "speaking"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass(frozen=True)
class NarrationSnapshot:
    """Everything a renderer needs to draw the result screen."""
    state: NarrationState
    description: Optional[str]
    rate: float
    auto_read: bool

    @property
    def is_loading(self) -> bool:
        return self.state is NarrationState.ANALYZING
