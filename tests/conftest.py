"""Shared test fixtures for VisionVoice."""

import asyncio

import pytest

from visionvoice.accessibility.screen_reader import ManualScreenReaderStatus
from visionvoice.controls.gesture import GestureRateController
from visionvoice.core.config import AppConfig, GestureConfig, NarrationConfig, SpeechConfig
from visionvoice.core.exceptions import FetchError
from visionvoice.narration.controller import NarrationController
from visionvoice.storage.preferences import MemoryPreferenceStore, NarrationPreferences
from visionvoice.tts.base import SpeechBackend
from visionvoice.tts.engine import SpeechEngine
from visionvoice.vision.base import DescriptionProvider


class FakeBackend(SpeechBackend):
    """Records calls; the test decides when utterances end."""

    def __init__(self, max_rate: float = 10.0):
        self.max_rate = max_rate
        self.started = []   # (utterance_id, text, rate)
        self.cancelled = []
        self.listener = None
        self.fail_on_start = False
        self.rate_queries = 0

    def start(self, utterance_id, text, rate, listener):
        if self.fail_on_start:
            raise RuntimeError("no audio device")
        self.listener = listener
        self.started.append((utterance_id, text, rate))
        listener.utterance_started(utterance_id)

    def cancel(self, utterance_id):
        self.cancelled.append(utterance_id)

    def max_supported_rate(self):
        self.rate_queries += 1
        return self.max_rate

    @property
    def last_id(self):
        return self.started[-1][0]

    @property
    def last_rate(self):
        return self.started[-1][2]

    def finish(self, utterance_id=None, completed=True):
        self.listener.utterance_finished(
            self.last_id if utterance_id is None else utterance_id, completed
        )

    def fail(self, utterance_id=None, error=None):
        self.listener.utterance_failed(
            self.last_id if utterance_id is None else utterance_id,
            error or RuntimeError("synthesis failed"),
        )


class ScriptedProvider(DescriptionProvider):
    """Each describe() waits on a future the test resolves."""

    def __init__(self):
        self.calls = []
        self.pending = []

    async def describe(self, image_ref):
        self.calls.append(image_ref)
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    def resolve(self, text, index=-1):
        self.pending[index].set_result(text)

    def reject(self, error=None, index=-1):
        self.pending[index].set_exception(error or FetchError("service unavailable"))


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class BrokenStore(MemoryPreferenceStore):
    """Storage that is never available."""

    async def get(self, key):
        raise OSError("storage unavailable")

    async def set(self, key, value):
        raise OSError("storage unavailable")


async def flush(rounds: int = 5):
    """Let scheduled loop callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def mock_config():
    """Minimal config for testing."""
    return AppConfig(
        language="en",
        speech=SpeechConfig(backend="silent", max_rate=10.0),
        gesture=GestureConfig(),
        narration=NarrationConfig(preferences_path="unused.json"),
        vision={
            "provider": "auto",
            "openai": {"base_url": "http://localhost:9999/v1", "api_key_env": "TEST_OPENAI_KEY"},
        },
    )


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def engine(backend):
    return SpeechEngine(backend)


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryPreferenceStore()


@pytest.fixture
def preferences(store):
    return NarrationPreferences(store, default_rate=1.0, default_auto_read=True)


@pytest.fixture
def screen_reader():
    return ManualScreenReaderStatus(active=False)


@pytest.fixture
def rates(preferences, clock):
    return GestureRateController(preferences, rate=1.0, clock=clock)


@pytest.fixture
def retakes():
    return []


@pytest.fixture
def controller(engine, provider, preferences, screen_reader, rates, clock, retakes):
    """Fresh controller with rate 1.0 and auto-read on."""
    return NarrationController(
        engine=engine,
        provider=provider,
        preferences=preferences,
        screen_reader=screen_reader,
        rate_controller=rates,
        language="en",
        on_retake=lambda: retakes.append(True),
        clock=clock,
    )
