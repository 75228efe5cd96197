"""Tests for the signal analyzer."""

import struct

import pytest

from voiceqa.telemetry import (
    AnalyzerConfig,
    Settings,
    SignalAnalyzer,
    compute_rms,
    normalize_pcm16,
    normalize_uint8,
)


class TestLevelComputation:
    """Tests for RMS, gain and smoothing."""

    def test_rms_of_empty_window_is_zero(self):
        assert compute_rms([]) == 0.0

    def test_rms_of_constant_signal(self):
        assert compute_rms([0.5, -0.5, 0.5, -0.5]) == pytest.approx(0.5)

    def test_silent_window_gives_zero_instant(self, silent_samples):
        """GIVEN an all-zero window WHEN processed SHOULD give instant 0
        and leave overlap state unchanged."""
        analyzer = SignalAnalyzer()
        frame = analyzer.process(silent_samples, agent_speaking=True, timestamp=0)
        assert frame.instant == 0.0
        assert frame.level == 0.0
        assert not frame.overlap_started
        assert not analyzer.overlap_active

    def test_empty_window_does_not_raise(self):
        frame = SignalAnalyzer().process([], agent_speaking=True, timestamp=0)
        assert frame.instant == 0.0

    def test_gain_and_clamp(self):
        analyzer = SignalAnalyzer()
        assert analyzer.process([0.5] * 8, False, 0).instant == pytest.approx(0.75)
        assert analyzer.process([1.0] * 8, False, 0).instant == 1.0

    def test_level_is_exponentially_smoothed(self, loud_samples):
        """The level moves 30% of the way toward each new instant value."""
        analyzer = SignalAnalyzer()
        first = analyzer.process(loud_samples, False, 0)
        second = analyzer.process(loud_samples, False, 16)

        assert first.level == pytest.approx(0.225)
        assert second.level == pytest.approx(0.225 * 0.7 + 0.75 * 0.3)
        assert analyzer.level == second.level

    def test_reset(self, loud_samples):
        analyzer = SignalAnalyzer()
        analyzer.process(loud_samples, True, 0)
        analyzer.reset()
        assert analyzer.level == 0.0
        assert not analyzer.overlap_active


class TestOverlapDetection:
    """Tests for edge-triggered overlap detection."""

    def test_sustained_overlap_fires_once(self, loud_samples):
        """GIVEN five loud frames while the agent speaks
        WHEN processed SHOULD report exactly one overlap start."""
        analyzer = SignalAnalyzer()
        frames = [analyzer.process(loud_samples, True, t) for t in range(5)]

        assert sum(f.overlap_started for f in frames) == 1
        assert frames[0].overlap_started
        assert analyzer.overlap_active

    def test_release_rearms_detection(self, loud_samples, silent_samples):
        analyzer = SignalAnalyzer()
        starts = [
            analyzer.process(loud_samples, True, 0).overlap_started,
            analyzer.process(silent_samples, True, 1).overlap_started,
            analyzer.process(loud_samples, True, 2).overlap_started,
        ]
        assert starts == [True, False, True]

    def test_agent_silence_rearms_detection(self, loud_samples):
        analyzer = SignalAnalyzer()
        analyzer.process(loud_samples, True, 0)
        analyzer.process(loud_samples, False, 1)
        assert not analyzer.overlap_active
        assert analyzer.process(loud_samples, True, 2).overlap_started

    def test_no_overlap_when_agent_quiet(self, loud_samples):
        analyzer = SignalAnalyzer()
        frame = analyzer.process(loud_samples, False, 0)
        assert not frame.overlap_started
        assert not analyzer.overlap_active

    def test_threshold_is_strict(self):
        """An instant exactly at the threshold is not an overlap."""
        analyzer = SignalAnalyzer(AnalyzerConfig(gain=1.0))
        frame = analyzer.process([0.25] * 16, True, 0)
        assert frame.instant == 0.25
        assert not frame.overlap_started

    def test_config_from_settings(self):
        cfg = AnalyzerConfig.from_settings(Settings(gain=2.0, overlap_threshold=0.5))
        assert cfg.gain == 2.0
        assert cfg.overlap_threshold == 0.5
        assert cfg.smoothing == 0.7


class TestNormalisation:
    """Tests for raw buffer normalisation."""

    def test_uint8_centered_on_128(self):
        assert normalize_uint8(bytes([128, 0, 192])) == [0.0, -1.0, 0.5]

    def test_pcm16_little_endian(self):
        data = struct.pack("<hhh", 0, -32768, 16384)
        assert normalize_pcm16(data) == [0.0, -1.0, 0.5]

    def test_pcm16_drops_trailing_odd_byte(self):
        data = struct.pack("<h", 16384) + b"\x01"
        assert normalize_pcm16(data) == [0.5]
