"""Session-scoped telemetry recorder for a live voice conversation."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import get_args
from uuid import uuid4

from voiceqa.telemetry._pii import matched_pii_classes
from voiceqa.telemetry.config import settings
from voiceqa.telemetry.schema import (
    MessageRole,
    SessionState,
    TelemetryError,
    TelemetryMessage,
    TelemetrySummary,
)


_ROLES = get_args(MessageRole)


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(datetime.now(UTC).timestamp() * 1000)


class TelemetryRecorder:
    """
    Append-only event sink and derived-metrics engine for one session.

    The recorder performs no I/O and never raises for well-formed calls.
    It assumes a single writer: one conversation control flow plus the
    audio monitor loop running on the same event loop.

    Usage:
        from voiceqa.telemetry import TelemetryRecorder

        recorder = TelemetryRecorder(agent_id="agent-123")
        recorder.start_session()

        recorder.record_agent_speaking_start()
        recorder.record_overlap_event()
        recorder.maybe_record_barge_in_latency(now_ms())
        recorder.record_agent_speaking_stop()

        recorder.end_session()
        summary = recorder.get_summary()
    """

    def __init__(
        self,
        agent_id: str | None = None,
        *,
        user_agent: str | None = None,
        clock: Callable[[], int] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the recorder and its session.

        Args:
            agent_id: Optional external agent correlation id; defaults to
                ``settings.agent_id``.
            user_agent: Client identifier carried in the summary; defaults to
                ``settings.user_agent``.
            clock: Millisecond clock; defaults to wall-clock time.
            logger: Logger instance; defaults to ``logging.getLogger("voiceqa.telemetry")``.
        """
        self.clock = clock or now_ms
        self.logger = logger or logging.getLogger("voiceqa.telemetry")
        self.user_agent = user_agent or settings.user_agent
        self._state = SessionState(
            session_id=uuid4().hex,
            started_at=self._now(),
            agent_id=agent_id if agent_id is not None else settings.agent_id,
        )
        self._started = False

    # -------------------------------------------------------------------------
    # Identity and lifecycle
    # -------------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._state.session_id

    @property
    def started(self) -> bool:
        """True once ``start_session`` has been called."""
        return self._started

    @property
    def ended(self) -> bool:
        return self._state.ended_at is not None

    @property
    def agent_speaking(self) -> bool:
        """True while a speaking interval is open."""
        return self._state.agent_speaking_started_at is not None

    def _now(self) -> int:
        return int(round(self.clock()))

    def start_session(self) -> None:
        """Mark the moment the conversation actually began."""
        self._state.started_at = self._now()
        self._started = True
        self.logger.info("Session %s started", self._state.session_id)

    def end_session(self) -> None:
        """Stamp the end time and close any open speaking interval.

        A second call only re-stamps ``ended_at``.
        """
        self._state.ended_at = self._now()
        self._close_speaking_interval(self._state.ended_at)
        self.logger.info("Session %s ended", self._state.session_id)

    def set_agent_id(self, agent_id: str) -> None:
        self._state.agent_id = agent_id

    def set_conversation_id(self, conversation_id: str | None) -> bool:
        """Record the provider-assigned conversation id.

        The first non-empty value wins; later values are ignored.

        Returns:
            True if the value was stored.
        """
        if not conversation_id:
            return False
        current = self._state.conversation_id
        if current is not None:
            if current != conversation_id:
                self.logger.warning(
                    "Ignoring conversation id %s, already set to %s",
                    conversation_id,
                    current,
                )
            return False
        self._state.conversation_id = conversation_id
        self.logger.debug("Conversation id set to %s", conversation_id)
        return True

    def get_conversation_id(self) -> str | None:
        return self._state.conversation_id

    # -------------------------------------------------------------------------
    # Counters and event logs
    # -------------------------------------------------------------------------

    def increment_retry_attempt(self) -> None:
        self._state.retry_attempts += 1

    def increment_reconnects(self) -> None:
        self._state.reconnects += 1

    def record_error(self, message: object) -> None:
        """Append an error to the errors log; non-string values are stored as text."""
        message = str(message)
        self._state.errors.append(TelemetryError(timestamp=self._now(), message=message))
        self.logger.warning("Recorded error: %s", message)

    def record_message(
        self,
        message: TelemetryMessage | str,
        role: str = "agent",
    ) -> None:
        """Append a message and scan its text for PII.

        Args:
            message: A complete message, or bare text stamped with the
                current time and ``role``.
            role: Role used when ``message`` is bare text; unknown roles
                are recorded as ``agent``.
        """
        if not isinstance(message, TelemetryMessage):
            if role not in _ROLES:
                role = "agent"
            message = TelemetryMessage(timestamp=self._now(), role=role, text=str(message))
        self._state.messages.append(message)
        self._scan_for_pii(message.text)

    def _scan_for_pii(self, text: str) -> None:
        matched = matched_pii_classes(text)
        if matched:
            self._state.pii_hits += len(matched)
            self.logger.debug("PII pattern classes matched: %s", ", ".join(matched))

    # -------------------------------------------------------------------------
    # Turn-taking
    # -------------------------------------------------------------------------

    def record_agent_speaking_start(self) -> None:
        """Open a speaking interval unless one is already open."""
        if self._state.agent_speaking_started_at is None:
            self._state.agent_speaking_started_at = self._now()

    def record_agent_speaking_stop(self) -> None:
        """Close the open speaking interval, if any."""
        self._close_speaking_interval(self._now())

    def _close_speaking_interval(self, at: int) -> None:
        started_at = self._state.agent_speaking_started_at
        if started_at is None:
            return
        self._state.total_agent_speaking_ms += at - started_at
        self._state.agent_speaking_started_at = None

    def record_overlap_event(self) -> None:
        """Count one user-over-agent overlap span."""
        self._state.overlap_segments += 1
        self._state.tts_interruptions += 1

    def maybe_record_barge_in_latency(self, timestamp: int) -> None:
        """Latch the first barge-in latency of the session.

        No-op if a latency is already recorded or the agent is not speaking.

        Args:
            timestamp: When user speech was first detected (ms since epoch).
        """
        state = self._state
        if state.barge_in_latency_ms is not None:
            return
        if state.agent_speaking_started_at is None:
            return
        elapsed = timestamp - state.agent_speaking_started_at
        state.barge_in_latency_ms = max(0, int(round(elapsed)))
        self.logger.debug("Barge-in latency latched at %d ms", state.barge_in_latency_ms)

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    def get_summary(self) -> TelemetrySummary:
        """Build a fresh snapshot of the session's metrics.

        The open speaking interval, if any, is not counted in
        ``total_agent_speaking_ms`` until it closes.
        """
        state = self._state
        error_count = len(state.errors)
        return TelemetrySummary(
            session_id=state.session_id,
            started_at=state.started_at,
            ended_at=state.ended_at,
            retry_attempts=state.retry_attempts,
            barge_in_latency_ms=state.barge_in_latency_ms,
            overlap_segments=state.overlap_segments,
            total_agent_speaking_ms=state.total_agent_speaking_ms,
            tts_interruptions=state.tts_interruptions,
            webhook_errors=error_count,
            reconnects=state.reconnects,
            errors_total=error_count,
            pii_hits=state.pii_hits,
            agent_id=state.agent_id,
            user_agent=self.user_agent,
            conversation_id=state.conversation_id,
        )

    def get_messages(self) -> list[TelemetryMessage]:
        return list(self._state.messages)

    def get_errors(self) -> list[TelemetryError]:
        return list(self._state.errors)
