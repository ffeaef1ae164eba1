"""
Pytest configuration and shared fixtures.

This module provides fixtures used across multiple test files.
"""

import sys
from pathlib import Path
from typing import Dict, List

import cv2
import numpy as np
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.scoreboard.factions import REGION_HEIGHT, REGION_WIDTH, Region  # noqa: E402


class FakeTimer:
    """Stand-in for threading.Timer that fires only when told to."""

    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False
        self.daemon = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.callback()


class FakeTimerFactory:
    """Record every timer created so tests can fire them by hand."""

    def __init__(self):
        self.timers: List[FakeTimer] = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]

    @property
    def active(self) -> List[FakeTimer]:
        return [t for t in self.timers if t.started and not t.cancelled]


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingBroadcaster:
    """Broadcaster that keeps every publication in memory."""

    def __init__(self):
        self.states = []
        self.messages: List[Dict] = []
        self.closed = False

    def publish(self, state):
        self.states.append(state)

    def publish_message(self, message):
        self.messages.append(message)

    def close(self):
        self.closed = True


class RecordingAnnouncer:
    """Announcer that keeps every announcement in memory."""

    def __init__(self):
        self.announcements: List[str] = []
        self.closed = False

    def announce(self, text):
        self.announcements.append(text)

    def close(self):
        self.closed = True


class ScriptedRecognizer:
    """Recognizer returning canned text per region, or raising a canned error."""

    def __init__(self, texts=None):
        self.texts = texts or {}
        self.calls: List[Region] = []
        self.opened = 0
        self.closed = 0

    def open(self):
        self.opened += 1

    def close(self):
        self.closed += 1

    def recognize(self, image, region):
        self.calls.append(region)
        value = self.texts.get(region, "")
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def temp_output_dir(tmp_path) -> Path:
    """Return a temporary output directory for tests."""
    output_dir = tmp_path / "test_output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


@pytest.fixture
def fake_timers() -> FakeTimerFactory:
    """Timer factory whose timers never fire on their own."""
    return FakeTimerFactory()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def announcer() -> RecordingAnnouncer:
    return RecordingAnnouncer()


@pytest.fixture
def make_recognizer():
    """Return a factory for scripted recognizers."""
    return ScriptedRecognizer


@pytest.fixture
def stacked_frame() -> np.ndarray:
    """Create a blank stacked grayscale frame holding all four zones."""
    return np.full((REGION_HEIGHT * len(Region), REGION_WIDTH), 255, dtype=np.uint8)


@pytest.fixture
def stacked_image_bytes(stacked_frame) -> bytes:
    """Encode the stacked frame as PNG, like ffmpeg's image pipe output."""
    ok, encoded = cv2.imencode('.png', stacked_frame)
    assert ok
    return encoded.tobytes()


@pytest.fixture
def stacked_image_file(tmp_path, stacked_image_bytes) -> Path:
    """Write the stacked frame to disk for file-based samplers."""
    image_path = tmp_path / "stacked.png"
    image_path.write_bytes(stacked_image_bytes)
    return image_path


@pytest.fixture
def mock_openai_api_key(monkeypatch):
    """Mock OpenAI API key for tests that don't actually call the API."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key-1234567890")


# Markers for conditional test skipping
def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "requires_tesseract: mark test as requiring the tesseract binary"
    )
    config.addinivalue_line(
        "markers", "requires_api_key: mark test as requiring OpenAI API key"
    )
    config.addinivalue_line(
        "markers", "requires_capture_device: mark test as requiring a live capture device"
    )
