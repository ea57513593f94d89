"""Test configuration and fixtures."""

from pathlib import Path

import numpy as np
import pytest

from metroguide.config import DEFAULT_STATIONS
from metroguide.dialogue import CommandCatalog
from metroguide.navigation import RouteDirectionResolver
from metroguide.types import Box, Detection
from metroguide.utils.scheduling import TimerHandle


class ManualClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class ManualScheduler:
    """Timers fire only when the test advances time through the scheduler."""

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self.timers = []

    def call_later(self, delay_s, callback):
        handle = TimerHandle()
        self.timers.append((self.clock() + delay_s, handle, callback))
        return handle

    @property
    def pending(self):
        return [t for t in self.timers if not t[1].cancelled]

    def advance(self, seconds: float):
        target = self.clock.now + seconds
        while True:
            due = sorted(
                (t for t in self.pending if t[0] <= target),
                key=lambda t: t[0],
            )
            if not due:
                break
            when, handle, callback = due[0]
            self.timers.remove(due[0])
            self.clock.now = max(self.clock.now, when)
            callback()
        self.clock.now = target
        self.timers = self.pending


class RecordingSink:
    """TTS sink that records phrases; completion is signalled by the test."""

    def __init__(self):
        self.spoken = []
        self.stopped = 0

    def speak(self, text, utterance_id):
        self.spoken.append((utterance_id, text))

    def stop(self):
        self.stopped += 1

    @property
    def phrases(self):
        return [text for _, text in self.spoken]

    @property
    def last_id(self):
        return self.spoken[-1][0] if self.spoken else None


class FakeRecognizer:
    """Speech recognizer stand-in counting start/stop calls."""

    def __init__(self, available: bool = True):
        self.available = available
        self.starts = 0
        self.stops = 0

    def is_available(self):
        return self.available

    def start(self):
        self.starts += 1

    def stop(self):
        self.stops += 1


class FakeOcr:
    """OCR reader returning scripted texts, then ``default``."""

    def __init__(self, texts=None, default: str = ""):
        self.texts = list(texts or [])
        self.default = default
        self.calls = 0

    def read_text(self, image):
        self.calls += 1
        if self.texts:
            return self.texts.pop(0)
        return self.default


@pytest.fixture
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def configs_dir(project_root: Path) -> Path:
    """Get bundled configs directory."""
    return project_root / "configs"


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def scheduler(clock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def fake_ocr() -> FakeOcr:
    return FakeOcr()


@pytest.fixture
def resolver() -> RouteDirectionResolver:
    """Ten-station line, cerrillos to los leones."""
    return RouteDirectionResolver(DEFAULT_STATIONS)


@pytest.fixture
def catalog() -> CommandCatalog:
    """Small catalog covering every intent kind."""
    return CommandCatalog.from_records([
        {"phrases": "open camera|start camera", "intent": "open_camera"},
        {"phrases": "mute guidance", "intent": "mute_guidance"},
        {"phrases": "unmute guidance", "intent": "unmute_guidance"},
        {"phrases": "clear target", "intent": "clear_target"},
        {"phrases": "guidance status", "intent": "status"},
        {"phrases": "go to station", "intent": "go_to_station"},
        {"phrases": "take me home", "intent": "go_to_station", "station": "cerrillos"},
        {"phrases": "find door|buscar puerta", "intent": "search_object", "object": "puerta"},
        {"phrases": "walking mode", "intent": "activate_guidance_mode", "mode": "walking"},
        {"phrases": "confirm", "intent": "confirm"},
        {"phrases": "cancel", "intent": "cancel"},
        {"phrases": "change", "intent": "modify"},
        {"phrases": "repeat", "intent": "repeat"},
        {"phrases": "describe", "intent": "describe_environment"},
    ])


@pytest.fixture
def make_detection():
    """Factory: make_detection(label, left, top, right, bottom, confidence=0.9)."""
    def _make(label, left, top, right, bottom, confidence=0.9):
        return Detection(label=label, confidence=confidence, box=Box(left, top, right, bottom))
    return _make


@pytest.fixture
def frame() -> np.ndarray:
    """Blank full-resolution preview frame (720p)."""
    return np.zeros((720, 1280, 3), dtype=np.uint8)
