"""Bridge from a telemetry recorder to report sheet rows.

Produces plain row dicts keyed by sheet name; writing them to a workbook
or any other format is left to the caller.
"""

from datetime import UTC, datetime

from voiceqa.telemetry.recorder import TelemetryRecorder
from voiceqa.telemetry.schema import TelemetrySummary

_KPI_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("Latency & turn-taking", "Barge-in latency (ms)", "barge_in_latency_ms"),
    ("Latency & turn-taking", "Overlap segments", "overlap_segments"),
    ("Latency & turn-taking", "Agent speaking time (ms)", "total_agent_speaking_ms"),
    ("ASR quality & robustness", "Detected language", "asr_detected_language"),
    ("ASR quality & robustness", "Code-switching detected", "asr_code_switching_detected"),
    ("ASR quality & robustness", "Numeric extraction issues", "asr_numeric_extraction_issues"),
    ("TTS quality", "Interruptions (overlaps during TTS)", "tts_interruptions"),
    ("Tool/Webhook", "Errors", "webhook_errors"),
    ("Tool/Webhook", "Timeouts", "webhook_timeouts"),
    ("Tool/Webhook", "Schema errors", "webhook_schema_errors"),
    ("RAG", "Grounding coverage", "rag_grounding_coverage"),
    ("RAG", "Ambiguity handled", "rag_ambiguity_handled"),
    ("RAG", "Stale avoidance incidents", "rag_stale_avoidance_incidents"),
    ("Multilingual & accessibility", "Observed language pairs", "multilingual_pairs_observed"),
    ("Multilingual & accessibility", "Disfluency count", "disfluency_count"),
    ("Network impairments", "Loss %", "network_loss_pct"),
    ("Network impairments", "Jitter (ms)", "network_jitter_ms"),
    ("Network impairments", "Bandwidth (kbps)", "network_bandwidth_kbps"),
    ("Scale & reliability", "Retry attempts", "retry_attempts"),
    ("Scale & reliability", "Reconnects", "reconnects"),
    ("Scale & reliability", "Errors total", "errors_total"),
    ("Security & compliance", "PII hits", "pii_hits"),
    ("Observability & ops", "Agent ID", "agent_id"),
    ("Observability & ops", "Conversation ID", "conversation_id"),
    ("Observability & ops", "User agent", "user_agent"),
    ("UX & handoff", "Handoff occurred", "handoff_occurred"),
)


def build_report(recorder: TelemetryRecorder) -> dict[str, list[dict]]:
    """Collect every report sheet for a recorder's session.

    Args:
        recorder: The recorder of a finished or in-progress session.

    Returns:
        Rows keyed by sheet name: ``Summary``, ``Messages``, ``Errors``
        and ``KPIs``.
    """
    summary = recorder.get_summary()
    return {
        "Summary": [summary.model_dump()],
        "Messages": [
            {
                "timestamp": _iso(m.timestamp),
                "role": m.role,
                "text": m.text,
            }
            for m in recorder.get_messages()
        ],
        "Errors": [
            {"timestamp": _iso(e.timestamp), "message": e.message}
            for e in recorder.get_errors()
        ],
        "KPIs": kpi_rows(summary),
    }


def kpi_rows(summary: TelemetrySummary) -> list[dict]:
    """Flatten a summary into area/metric/value rows.

    Unmeasured values render as an empty string and lists are joined.
    """
    rows = []
    for area, metric, field in _KPI_FIELDS:
        value = getattr(summary, field)
        if value is None:
            value = ""
        elif isinstance(value, list):
            value = ", ".join(value)
        rows.append({"area": area, "metric": metric, "value": value})
    return rows


def _iso(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, UTC).isoformat()
