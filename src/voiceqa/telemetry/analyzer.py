"""Per-frame loudness and overlap (barge-in) detection."""

import math
import sys
from array import array
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from voiceqa.telemetry.config import Settings, settings


class AnalyzerConfig(BaseModel):
    """
    Fixed signal-analysis constants.

    Attributes:
        gain: Multiplier applied to the RMS before clamping to [0, 1].
        smoothing: Weight of the previous level in the single-pole low-pass
            filter; the new frame gets ``1 - smoothing``.
        overlap_threshold: ``instant`` level above which user speech counts
            as overlapping the agent.
    """

    model_config = ConfigDict(frozen=True)

    gain: float = 1.5
    smoothing: float = 0.7
    overlap_threshold: float = 0.25

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "AnalyzerConfig":
        source = source or settings
        return cls(
            gain=source.gain,
            smoothing=source.smoothing,
            overlap_threshold=source.overlap_threshold,
        )


class FrameResult(BaseModel):
    """Outcome of analysing one frame."""

    model_config = ConfigDict(frozen=True)

    timestamp: int
    instant: float
    level: float
    overlap_started: bool = False


def compute_rms(samples: Sequence[float]) -> float:
    """Root-mean-square of signed samples; 0.0 for an empty window."""
    if not samples:
        return 0.0
    return math.sqrt(sum(v * v for v in samples) / len(samples))


def normalize_uint8(data: bytes | Sequence[int]) -> list[float]:
    """Convert unsigned 8-bit time-domain data (centered on 128) to [-1, 1]."""
    return [(b - 128) / 128 for b in data]


def normalize_pcm16(data: bytes) -> list[float]:
    """Convert little-endian signed 16-bit PCM to [-1, 1].

    A trailing odd byte is dropped.
    """
    usable = len(data) - (len(data) % 2)
    samples = array("h")
    samples.frombytes(data[:usable])
    if sys.byteorder == "big":
        samples.byteswap()
    return [s / 32768 for s in samples]


class SignalAnalyzer:
    """
    Turns sample windows into a smoothed level and overlap edges.

    Overlap is edge-detected: while the agent is speaking and ``instant``
    stays above the threshold, only the first frame reports
    ``overlap_started``. Dropping below the threshold (or the agent going
    quiet) re-arms detection.
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.config = config or AnalyzerConfig.from_settings()
        self.level = 0.0
        self.overlap_active = False

    def process(
        self,
        samples: Sequence[float],
        agent_speaking: bool,
        timestamp: int,
    ) -> FrameResult:
        """Analyse one window of signed samples in [-1, 1].

        Args:
            samples: Current time-domain window.
            agent_speaking: Whether the agent is speaking during this frame.
            timestamp: Frame time (ms since epoch).
        """
        cfg = self.config
        instant = min(1.0, max(0.0, compute_rms(samples) * cfg.gain))
        self.level = self.level * cfg.smoothing + instant * (1 - cfg.smoothing)

        overlap_started = False
        if agent_speaking and instant > cfg.overlap_threshold:
            if not self.overlap_active:
                self.overlap_active = True
                overlap_started = True
        else:
            self.overlap_active = False

        return FrameResult(
            timestamp=timestamp,
            instant=instant,
            level=self.level,
            overlap_started=overlap_started,
        )

    def reset(self) -> None:
        self.level = 0.0
        self.overlap_active = False
