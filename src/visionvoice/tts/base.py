"""Abstract platform text-to-speech backend."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Protocol


class SpeechOutcome(Enum):
    """How an utterance ended. Exactly one per utterance."""
    DONE = "done"
    STOPPED = "stopped"
    ERROR = "error"


class BackendListener(Protocol):
    """Receives lifecycle events from a backend, possibly from another thread."""

    def utterance_started(self, utterance_id: int) -> None: ...

    def utterance_finished(self, utterance_id: int, completed: bool) -> None: ...

    def utterance_failed(self, utterance_id: int, error: Exception) -> None: ...


class SpeechBackend(ABC):
    """Platform TTS driver. Only SpeechEngine may call these methods."""

    @abstractmethod
    def start(self, utterance_id: int, text: str, rate: float, listener: BackendListener) -> None:
        """Begin speaking without blocking. Report progress to listener."""
        ...

    @abstractmethod
    def cancel(self, utterance_id: int) -> None:
        """Silence the given utterance if it is still playing."""
        ...

    @abstractmethod
    def max_supported_rate(self) -> float:
        """Highest rate multiplier this backend/voice accepts."""
        ...

    def get_available_voices(self) -> list[str]:
        """List available voice identifiers."""
        return []

    def cleanup(self) -> None:
        """Release engine resources."""
        pass
