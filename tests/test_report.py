"""Tests for the report bridge."""

from voiceqa.telemetry import TelemetryMessage, build_report, kpi_rows
from voiceqa.telemetry.report import _KPI_FIELDS


def _kpi(rows: list[dict], metric: str):
    return next(r["value"] for r in rows if r["metric"] == metric)


class TestBuildReport:
    """Tests for assembling report sheets."""

    def test_sheets_present(self, recorder):
        report = build_report(recorder)
        assert list(report) == ["Summary", "Messages", "Errors", "KPIs"]
        assert len(report["Summary"]) == 1
        assert report["Summary"][0]["session_id"] == recorder.session_id

    def test_messages_and_errors_rendered_with_iso_timestamps(self, recorder):
        recorder.record_message(TelemetryMessage(timestamp=0, role="user", text="hi"))
        recorder.record_error("boom")

        report = build_report(recorder)
        assert report["Messages"] == [
            {"timestamp": "1970-01-01T00:00:00+00:00", "role": "user", "text": "hi"}
        ]
        assert report["Errors"][0]["message"] == "boom"
        assert report["Errors"][0]["timestamp"].endswith("+00:00")

    def test_report_does_not_mutate_recorder(self, recorder):
        recorder.record_message("hello")
        before = recorder.get_summary()
        build_report(recorder)
        assert recorder.get_summary() == before


class TestKpiRows:
    """Tests for KPI flattening."""

    def test_one_row_per_metric(self, recorder):
        rows = kpi_rows(recorder.get_summary())
        assert len(rows) == len(_KPI_FIELDS)
        assert all(set(r) == {"area", "metric", "value"} for r in rows)

    def test_unmeasured_values_are_blank(self, recorder):
        rows = kpi_rows(recorder.get_summary())
        assert _kpi(rows, "Barge-in latency (ms)") == ""
        assert _kpi(rows, "Detected language") == ""
        assert _kpi(rows, "Observed language pairs") == ""
        assert _kpi(rows, "Handoff occurred") == ""

    def test_measured_values(self, recorder):
        recorder.record_overlap_event()
        recorder.record_error("x")
        rows = kpi_rows(recorder.get_summary())

        assert _kpi(rows, "Overlap segments") == 1
        assert _kpi(rows, "Interruptions (overlaps during TTS)") == 1
        assert _kpi(rows, "Errors total") == 1
        assert _kpi(rows, "Agent ID") == "test-agent"
