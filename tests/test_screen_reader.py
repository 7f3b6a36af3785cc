"""Tests for screen reader status sources."""

import asyncio
from unittest.mock import MagicMock, patch

from visionvoice.accessibility.screen_reader import (
    ManualScreenReaderStatus,
    ProcessScreenReaderMonitor,
)


def _process(name):
    proc = MagicMock()
    proc.info = {"name": name}
    return proc


class TestManualScreenReaderStatus:
    def test_notifies_on_change_only(self):
        status = ManualScreenReaderStatus()
        seen = []
        status.subscribe(seen.append)
        status.set_active(True)
        status.set_active(True)
        status.set_active(False)
        assert seen == [True, False]
        assert status.is_active is False

    def test_unsubscribe(self):
        status = ManualScreenReaderStatus()
        seen = []
        unsubscribe = status.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        status.set_active(True)
        assert seen == []

    def test_listener_error_does_not_block_others(self):
        status = ManualScreenReaderStatus()
        seen = []

        def broken(active):
            raise RuntimeError("listener bug")

        status.subscribe(broken)
        status.subscribe(seen.append)
        status.set_active(True)
        assert seen == [True]


class TestProcessScreenReaderMonitor:
    @patch("visionvoice.accessibility.screen_reader.psutil.process_iter")
    def test_scan_finds_known_reader(self, mock_iter):
        mock_iter.return_value = [_process("bash"), _process("NVDA.exe")]
        assert ProcessScreenReaderMonitor().scan() is True

    @patch("visionvoice.accessibility.screen_reader.psutil.process_iter")
    def test_scan_without_reader(self, mock_iter):
        mock_iter.return_value = [_process("bash"), _process(None)]
        assert ProcessScreenReaderMonitor().scan() is False

    @patch("visionvoice.accessibility.screen_reader.psutil.process_iter")
    def test_refresh_notifies_changes(self, mock_iter):
        monitor = ProcessScreenReaderMonitor(process_names=("orca",))
        seen = []
        monitor.subscribe(seen.append)

        async def scenario():
            mock_iter.return_value = [_process("orca")]
            assert await monitor.refresh() is True
            assert await monitor.refresh() is True
            mock_iter.return_value = []
            assert await monitor.refresh() is False

        asyncio.run(scenario())
        assert seen == [True, False]

    @patch("visionvoice.accessibility.screen_reader.psutil.process_iter")
    def test_polling_task(self, mock_iter):
        mock_iter.return_value = [_process("orca")]
        monitor = ProcessScreenReaderMonitor(poll_seconds=0.01)

        async def scenario():
            monitor.start()
            for _ in range(100):
                if monitor.is_active:
                    break
                await asyncio.sleep(0.01)
            monitor.stop()
            return monitor.is_active

        assert asyncio.run(scenario()) is True
