"""Pytest fixtures for VoiceQA telemetry tests."""

import pytest

from voiceqa.telemetry import TelemetryRecorder


class FakeClock:
    """Millisecond clock advanced manually by tests."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class FakeSource:
    """In-memory audio source recording open/close calls."""

    def __init__(self, samples=None, open_error=None, read_error=None) -> None:
        self.samples = list(samples or [])
        self.open_error = open_error
        self.read_error = read_error
        self.open_calls = 0
        self.close_calls = 0
        self.reads = 0

    def open(self) -> None:
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error

    def read(self):
        self.reads += 1
        if self.read_error is not None:
            raise self.read_error
        return self.samples

    def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock starting at a fixed epoch millisecond."""
    return FakeClock()


@pytest.fixture
def recorder(clock: FakeClock) -> TelemetryRecorder:
    """A recorder driven by the fake clock."""
    return TelemetryRecorder(agent_id="test-agent", clock=clock)


@pytest.fixture
def make_source():
    """Factory for in-memory audio sources."""
    return FakeSource


@pytest.fixture
def loud_samples() -> list[float]:
    """A window whose instant level is 0.75 with default gain."""
    return [0.5] * 2048


@pytest.fixture
def silent_samples() -> list[float]:
    """An all-zero window."""
    return [0.0] * 2048
