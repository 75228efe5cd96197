"""Bridge from conversation-session callbacks to a telemetry recorder."""

import json
import logging
from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from voiceqa.telemetry.recorder import TelemetryRecorder
from voiceqa.telemetry.schema import MessageRole

UNPARSEABLE_TEXT = "[unparseable message]"

_CONVERSATION_ID_KEYS = ("conversation_id", "conversationId")
_START_RESULT_ID_KEYS = ("conversationId", "conversation_id", "id", "sessionId")
_ROLE_KEYS = ("role", "source")
_ROLE_ALIASES: dict[str, MessageRole] = {
    "user": "user",
    "ai": "agent",
    "agent": "agent",
    "system": "system",
}


# =============================================================================
# INBOUND MESSAGE VARIANTS
# =============================================================================

class PlainText(BaseModel):
    """Message delivered as a bare string."""

    kind: Literal["plain"] = "plain"
    text: str
    role: MessageRole = "agent"
    conversation_id: str | None = None


class TextPayload(BaseModel):
    """Object message carrying a ``text`` field."""

    kind: Literal["text"] = "text"
    text: str
    role: MessageRole = "agent"
    conversation_id: str | None = None


class MessagePayload(BaseModel):
    """Object message carrying a ``message`` field."""

    kind: Literal["message"] = "message"
    text: str
    role: MessageRole = "agent"
    conversation_id: str | None = None


class OpaquePayload(BaseModel):
    """Anything else, serialised to text."""

    kind: Literal["opaque"] = "opaque"
    text: str
    role: MessageRole = "agent"
    conversation_id: str | None = None


InboundMessage = Annotated[
    PlainText | TextPayload | MessagePayload | OpaquePayload,
    Field(discriminator="kind"),
]


def _string_field(payload: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _serialise(message: object) -> str:
    try:
        return json.dumps(message, default=str)
    except (TypeError, ValueError, RecursionError):
        return UNPARSEABLE_TEXT


def parse_inbound(message: object) -> InboundMessage:
    """Classify a raw conversation message into one of the accepted shapes.

    Never raises: unserialisable input degrades to ``UNPARSEABLE_TEXT``.
    """
    if isinstance(message, str):
        return PlainText(text=message)
    if isinstance(message, (list, tuple)):
        return OpaquePayload(text=_serialise(message))
    if not isinstance(message, Mapping):
        try:
            return OpaquePayload(text=str(message))
        except Exception:
            return OpaquePayload(text=UNPARSEABLE_TEXT)

    conversation_id = _string_field(message, _CONVERSATION_ID_KEYS)
    role_name = _string_field(message, _ROLE_KEYS) or ""
    role = _ROLE_ALIASES.get(role_name.lower(), "agent")
    text = message.get("text")
    if isinstance(text, str) and text:
        return TextPayload(text=text, role=role, conversation_id=conversation_id)
    text = message.get("message")
    if isinstance(text, str) and text:
        return MessagePayload(text=text, role=role, conversation_id=conversation_id)
    return OpaquePayload(text=_serialise(message), role=role, conversation_id=conversation_id)


def extract_start_result_id(result: object) -> str | None:
    """Pull the provider conversation id out of a session-start result."""
    if isinstance(result, str):
        return result or None
    if isinstance(result, Mapping):
        return _string_field(result, _START_RESULT_ID_KEYS)
    return None


# =============================================================================
# BRIDGE
# =============================================================================

class ConversationBridge:
    """
    Adapts conversation-session callbacks to recorder calls.

    Wire the ``on_*`` methods to the session's callbacks and hand
    ``is_agent_speaking`` to the audio monitor.

    Usage:
        recorder = TelemetryRecorder(agent_id="agent-123")
        bridge = ConversationBridge(recorder)

        session = start_conversation(
            on_connect=bridge.on_connect,
            on_disconnect=bridge.on_disconnect,
            on_message=bridge.on_message,
            on_error=bridge.on_error,
            on_mode_change=bridge.on_mode_change,
        )
        bridge.on_start_result(session)
    """

    def __init__(
        self,
        recorder: TelemetryRecorder,
        logger: logging.Logger | None = None,
    ) -> None:
        self.recorder = recorder
        self.logger = logger or logging.getLogger("voiceqa.telemetry")
        self._speaking = False

    def is_agent_speaking(self) -> bool:
        return self._speaking

    def on_connect(self) -> None:
        self.recorder.start_session()

    def on_disconnect(self) -> None:
        self.recorder.end_session()

    def on_message(self, message: object) -> InboundMessage:
        """Record an inbound message and learn the conversation id from it."""
        inbound = parse_inbound(message)
        if inbound.conversation_id and self.recorder.get_conversation_id() is None:
            self.logger.debug("Found conversation id in message: %s", inbound.conversation_id)
            self.recorder.set_conversation_id(inbound.conversation_id)
        self.recorder.record_message(inbound.text, role=inbound.role)
        return inbound

    def on_error(self, error: object) -> None:
        self.recorder.record_error(str(error))

    def on_mode_change(self, speaking: bool) -> None:
        """Track agent speaking transitions; repeated states are ignored."""
        if speaking and not self._speaking:
            self.recorder.record_agent_speaking_start()
        elif self._speaking and not speaking:
            self.recorder.record_agent_speaking_stop()
        self._speaking = speaking

    def on_start_result(self, result: object) -> str | None:
        """Learn the conversation id from the session-start result."""
        conversation_id = extract_start_result_id(result)
        if conversation_id is None:
            self.logger.debug("No conversation id in start result")
            return None
        self.recorder.set_conversation_id(conversation_id)
        return conversation_id

    def on_reconnect(self) -> None:
        self.recorder.increment_reconnects()

    def on_retry(self) -> None:
        self.recorder.increment_retry_attempt()
