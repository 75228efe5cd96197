"""
Voice conversation telemetry schema.

This module defines the core data types recorded for a single live voice
conversation between a human and a speech agent.

The schema supports:
- Append-only message and error logs
- Turn-taking metrics (barge-in latency, overlap, agent speaking time)
- Reliability counters (retries, reconnects, errors)
- Heuristic PII hit counting
- Placeholder categories (ASR, RAG, network, UX) carried for report completeness
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# TYPE DEFINITIONS
# =============================================================================

MessageRole = Literal["agent", "system", "user"]
"""
Speaker of a recorded message.

- agent: The speech agent
- system: Lifecycle notices emitted by the conversation session
- user: The human participant
"""


# =============================================================================
# EVENT LOG MODELS
# =============================================================================

class TelemetryMessage(BaseModel):
    """
    Single message observed during the conversation.

    Attributes:
        timestamp: When the message was observed (ms since epoch).
        role: Who produced the message.
        text: Message text as received, or a placeholder if unparseable.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int
    role: MessageRole = "agent"
    text: str


class TelemetryError(BaseModel):
    """
    Error reported during the conversation.

    Errors are recorded verbatim and never classified further.

    Attributes:
        timestamp: When the error was recorded (ms since epoch).
        message: Error text.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int
    message: str


# =============================================================================
# SESSION STATE
# =============================================================================

class SessionState(BaseModel):
    """
    Mutable state of one recorded session.

    Owned exclusively by a single ``TelemetryRecorder`` and mutated only
    through its methods.
    """

    session_id: str
    started_at: int
    ended_at: int | None = None
    agent_id: str | None = None
    conversation_id: str | None = None

    messages: list[TelemetryMessage] = Field(default_factory=list)
    errors: list[TelemetryError] = Field(default_factory=list)

    retry_attempts: int = 0
    reconnects: int = 0
    overlap_segments: int = 0
    tts_interruptions: int = 0
    pii_hits: int = 0
    total_agent_speaking_ms: int = 0
    barge_in_latency_ms: int | None = None  # Latched once per session

    # Start of the open speaking interval, None when closed
    agent_speaking_started_at: int | None = None


# =============================================================================
# SUMMARY
# =============================================================================

class TelemetrySummary(BaseModel):
    """
    Immutable point-in-time snapshot of a session's derived metrics.

    Built fresh by ``TelemetryRecorder.get_summary()`` on every call. Fields
    for categories this library does not measure are always ``None`` (or an
    empty list) so downstream reports keep a stable shape.

    Example:
        >>> summary = recorder.get_summary()
        >>> summary.overlap_segments
        1
        >>> summary.model_dump()["asr_detected_language"] is None
        True
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    started_at: int
    ended_at: int | None = None
    retry_attempts: int = 0

    # 1. Latency & turn-taking
    barge_in_latency_ms: int | None = None
    overlap_segments: int = 0
    total_agent_speaking_ms: int = 0

    # 2. ASR quality & robustness (unmeasured)
    asr_detected_language: str | None = None
    asr_code_switching_detected: bool | None = None
    asr_numeric_extraction_issues: int | None = None

    # 3. TTS quality proxies
    tts_interruptions: int = 0  # User overlapped while agent speaking

    # 4. Tool/Webhook
    webhook_errors: int = 0
    webhook_timeouts: int | None = None
    webhook_schema_errors: int | None = None

    # 5. RAG (unmeasured)
    rag_grounding_coverage: str | None = None
    rag_ambiguity_handled: bool | None = None
    rag_stale_avoidance_incidents: int | None = None

    # 6. Multilingual & accessibility (unmeasured)
    multilingual_pairs_observed: list[str] = Field(default_factory=list)
    disfluency_count: int | None = None

    # 7. Network impairments (unmeasured)
    network_loss_pct: float | None = None
    network_jitter_ms: float | None = None
    network_bandwidth_kbps: float | None = None

    # 8. Scale & reliability
    reconnects: int = 0
    errors_total: int = 0

    # 9. Security & compliance
    pii_hits: int = 0

    # 10. Observability & ops
    agent_id: str | None = None
    user_agent: str = "server"
    conversation_id: str | None = None

    # 11. UX & handoff (unmeasured)
    handoff_occurred: bool | None = None
