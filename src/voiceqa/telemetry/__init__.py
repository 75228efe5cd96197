"""
VoiceQA Telemetry - quality and reliability telemetry for live voice conversations.

Records a human/speech-agent conversation as it happens (messages, errors,
agent speaking intervals, barge-ins) and exposes an immutable summary for
report writers.

Example:
    >>> from voiceqa.telemetry import AudioMonitor, ConversationBridge, RingBufferSource, TelemetryRecorder
    >>> recorder = TelemetryRecorder(agent_id="agent-123")
    >>> bridge = ConversationBridge(recorder)
    >>> async with AudioMonitor(RingBufferSource(), recorder, bridge.is_agent_speaking):
    ...     bridge.on_connect()
    ...     bridge.on_mode_change(True)
    >>> recorder.get_summary().overlap_segments
"""

from voiceqa.telemetry.analyzer import (
    AnalyzerConfig,
    FrameResult,
    SignalAnalyzer,
    compute_rms,
    normalize_pcm16,
    normalize_uint8,
)
from voiceqa.telemetry.bridge import ConversationBridge, InboundMessage, parse_inbound
from voiceqa.telemetry.config import Settings, settings
from voiceqa.telemetry.monitor import AudioMonitor
from voiceqa.telemetry.recorder import TelemetryRecorder
from voiceqa.telemetry.report import build_report, kpi_rows
from voiceqa.telemetry.schema import (
    MessageRole,
    SessionState,
    TelemetryError,
    TelemetryMessage,
    TelemetrySummary,
)
from voiceqa.telemetry.sources import AudioSource, RingBufferSource, SampleFormat

__all__ = [
    # Recorder
    "TelemetryRecorder",
    # Signal analysis
    "AnalyzerConfig",
    "FrameResult",
    "SignalAnalyzer",
    "compute_rms",
    "normalize_pcm16",
    "normalize_uint8",
    # Audio capture
    "AudioMonitor",
    "AudioSource",
    "RingBufferSource",
    "SampleFormat",
    # Conversation bridge
    "ConversationBridge",
    "InboundMessage",
    "parse_inbound",
    # Report bridge
    "build_report",
    "kpi_rows",
    # Configuration
    "Settings",
    "settings",
    # Type aliases
    "MessageRole",
    # Models
    "SessionState",
    "TelemetryMessage",
    "TelemetryError",
    "TelemetrySummary",
]

__version__ = "0.1.0"
