"""
VoiceQA - instrumentation for live voice-agent conversations.

Example:
    >>> from voiceqa import TelemetryRecorder
    >>> recorder = TelemetryRecorder(agent_id="agent-123")
    >>> recorder.start_session()
    >>> recorder.record_message("Hello, how can I help?")
    >>> recorder.end_session()
    >>> recorder.get_summary().errors_total
    0
"""

from voiceqa.telemetry import (
    AudioMonitor,
    ConversationBridge,
    SignalAnalyzer,
    TelemetryError,
    TelemetryMessage,
    TelemetryRecorder,
    TelemetrySummary,
)

__all__ = [
    "TelemetryRecorder",
    "SignalAnalyzer",
    "AudioMonitor",
    "ConversationBridge",
    "TelemetryMessage",
    "TelemetryError",
    "TelemetrySummary",
]

__version__ = "0.1.0"
