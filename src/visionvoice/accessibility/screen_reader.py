"""Screen reader status sources.

When a platform screen reader is running, our own narration must stay
silent; the controller subscribes to one of these sources.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import psutil

from visionvoice.core.constants import SCREEN_READER_PROCESSES

logger = logging.getLogger(__name__)

StatusListener = Callable[[bool], None]


class ScreenReaderStatus(ABC):
    """Read-only boolean signal with change notifications."""

    def __init__(self):
        self._listeners: list[StatusListener] = []

    @property
    @abstractmethod
    def is_active(self) -> bool:
        ...

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register for changes. Returns a function that unsubscribes."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: StatusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, active: bool) -> None:
        for listener in list(self._listeners):
            try:
                listener(active)
            except Exception as e:
                logger.error(f"Screen reader listener error: {e}", exc_info=True)


class ManualScreenReaderStatus(ScreenReaderStatus):
    """Status set explicitly by the host (CLI flag, tests)."""

    def __init__(self, active: bool = False):
        super().__init__()
        self._active = active

    @property
    def is_active(self) -> bool:
        return self._active

    def set_active(self, active: bool) -> None:
        if active == self._active:
            return
        self._active = active
        logger.info(f"Screen reader {'active' if active else 'inactive'}")
        self._notify(active)


class ProcessScreenReaderMonitor(ScreenReaderStatus):
    """Polls the process table for known screen readers."""

    def __init__(
        self,
        poll_seconds: float = 2.0,
        process_names: tuple = SCREEN_READER_PROCESSES,
    ):
        super().__init__()
        self.poll_seconds = poll_seconds
        self._names = {n.lower() for n in process_names}
        self._active = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._active

    def scan(self) -> bool:
        """One blocking pass over running processes."""
        for proc in psutil.process_iter(["name"]):
            try:
                name = (proc.info.get("name") or "").lower()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
            if name in self._names:
                return True
        return False

    async def refresh(self) -> bool:
        active = await asyncio.to_thread(self.scan)
        if active != self._active:
            self._active = active
            logger.info(f"Screen reader {'detected' if active else 'no longer running'}")
            self._notify(active)
        return active

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._poll())

    async def _poll(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception as e:
                logger.warning(f"Screen reader scan failed: {e}")
            await asyncio.sleep(self.poll_seconds)

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
