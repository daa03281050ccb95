"""Tests for the rowcalc structured event logging system."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create a minimal project directory."""
    (tmp_path / "logs").mkdir()
    return tmp_path


@pytest.fixture
def sink(project_dir: Path):
    from rowcalc.logging.sink import EventSink

    return EventSink(project_dir)


def _event(level: str = "info", event_type: str = "table_eval_started", **kwargs):
    from rowcalc.logging.events import EventLevel, EventType, RowcalcEvent

    return RowcalcEvent(level=EventLevel(level), event_type=EventType(event_type), **kwargs)


# ---------------------------------------------------------------------------
# A) Event schema
# ---------------------------------------------------------------------------


class TestRowcalcEvent:
    def test_event_defaults(self):
        evt = _event(message="hello")
        assert evt.schema_version == 1
        assert evt.ts.endswith("Z")
        assert evt.level == "info"
        assert evt.event_type == "table_eval_started"
        assert evt.context == {}
        assert evt.error_code is None

    def test_event_with_error_code(self):
        evt = _event(
            "warning",
            "formula_row_error",
            message="Row 3: 'NaN'",
            error_code="row_eval_error",
            context={"row": 3},
        )
        assert evt.error_code == "row_eval_error"
        assert evt.context["row"] == 3

    def test_event_serialization(self):
        d = _event("error", "formula_parse_error", message="bad").model_dump(mode="json")
        assert d["level"] == "error"
        assert d["event_type"] == "formula_parse_error"

    def test_all_event_types_exist(self):
        from rowcalc.logging.events import EventType

        assert {e.value for e in EventType} == {
            "table_eval_started",
            "table_eval_completed",
            "formula_parse_error",
            "formula_row_error",
            "function_failure",
        }


# ---------------------------------------------------------------------------
# B) Context truncation
# ---------------------------------------------------------------------------


class TestTruncateContext:
    def test_short_values_untouched(self):
        from rowcalc.logging.events import truncate_context

        ctx = {"formula": "=c1+c2", "rows": 3}
        assert truncate_context(ctx) == ctx

    def test_long_string_truncated(self):
        from rowcalc.logging.events import truncate_context

        out = truncate_context({"formula": "x" * 1000})
        assert out["formula"].endswith("...[truncated]")
        assert len(out["formula"]) == 256 + len("...[truncated]")

    def test_nested_and_lists(self):
        from rowcalc.logging.events import truncate_context

        out = truncate_context({"inner": {"v": "y" * 300}, "items": ["z" * 300, 1]})
        assert out["inner"]["v"].endswith("...[truncated]")
        assert out["items"][0].endswith("...[truncated]")
        assert out["items"][1] == 1


# ---------------------------------------------------------------------------
# C) Sink
# ---------------------------------------------------------------------------


class TestEventSink:
    def test_write_creates_global_log(self, sink, project_dir):
        sink.write(_event(message="one"))
        lines = (project_dir / "logs" / "events.ndjson").read_text().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["message"] == "one"

    def test_sorted_keys(self, sink, project_dir):
        sink.write(_event(message="one"))
        line = (project_dir / "logs" / "events.ndjson").read_text().strip()
        keys = list(json.loads(line).keys())
        assert keys == sorted(keys)

    def test_batch_log(self, sink, project_dir):
        sink.write(_event(message="one"), batch_id="abc123")
        assert sink.read_batch_log("abc123")[0]["message"] == "one"
        assert (project_dir / "logs" / "events.ndjson").exists()

    def test_unsafe_batch_id_ignored(self, sink, project_dir):
        sink.write(_event(message="one"), batch_id="../escape")
        assert not list((project_dir / "logs" / "batches").iterdir())
        assert sink.read_batch_log("../escape") == []

    def test_read_global_newest_first(self, sink):
        for i in range(3):
            sink.write(_event(message=str(i)))
        assert [e["message"] for e in sink.read_global()] == ["2", "1", "0"]

    def test_read_global_filters(self, sink):
        sink.write(_event(message="a"), batch_id="b1")
        sink.write(_event("warning", "formula_row_error", message="b"), batch_id="b1")
        sink.write(_event("error", "formula_parse_error", message="c"), batch_id="b2")

        assert [e["message"] for e in sink.read_global(level="warning")] == ["b"]
        assert [e["message"] for e in sink.read_global(event_type="formula_parse_error")] == ["c"]
        assert len(sink.read_global(limit=1)) == 1

    def test_read_batch_log_filters(self, sink):
        sink.write(_event(message="a"), batch_id="b1")
        sink.write(_event("warning", "formula_row_error", message="b"), batch_id="b1")
        sink.write(_event("error", "formula_parse_error", message="c"), batch_id="b2")

        assert [e["message"] for e in sink.read_batch_log("b1")] == ["b", "a"]
        assert [e["message"] for e in sink.read_batch_log("b1", level="info")] == ["a"]
        assert [e["message"] for e in sink.read_batch_log("b2", event_type="formula_row_error")] == []
        assert len(sink.read_batch_log("b1", limit=1)) == 1
        assert sink.read_batch_log("missing") == []

    def test_unparseable_lines_skipped(self, sink, project_dir):
        sink.write(_event(message="ok"))
        with open(project_dir / "logs" / "events.ndjson", "a") as f:
            f.write("not json\n")
        assert [e["message"] for e in sink.read_global()] == ["ok"]

    def test_tail_read_drops_partial_line(self, project_dir):
        from rowcalc.logging.sink import EventSink

        sink = EventSink(project_dir, tail_bytes=400)
        for i in range(20):
            sink.write(_event(message=f"event-{i}"))
        events = sink.read_global(limit=2000)
        assert 0 < len(events) < 20
        assert events[0]["message"] == "event-19"


# ---------------------------------------------------------------------------
# D) Emit helpers
# ---------------------------------------------------------------------------


class TestEmit:
    def test_no_sink_discards(self, tmp_path):
        from rowcalc.logging.events import EventType, emit_info

        emit_info(EventType.table_eval_started, "nothing configured")
        assert not (tmp_path / "logs").exists()

    def test_emit_after_set_project_dir(self, tmp_path):
        from rowcalc.logging.events import EventType, emit_warning, set_project_dir
        from rowcalc.logging.sink import EventSink

        set_project_dir(tmp_path)
        emit_warning(
            EventType.formula_row_error,
            "Row 0: 'NaN'",
            {"row": 0},
            error_code="row_eval_error",
            batch_id="b1",
        )
        events = EventSink(tmp_path).read_batch_log("b1")
        assert events[0]["level"] == "warning"
        assert events[0]["error_code"] == "row_eval_error"

    def test_emit_truncates_context(self, tmp_path):
        from rowcalc.logging.events import EventType, emit_error, set_project_dir
        from rowcalc.logging.sink import EventSink

        set_project_dir(tmp_path)
        emit_error(EventType.formula_parse_error, "bad", {"formula": "=" + "1+" * 500})
        evt = EventSink(tmp_path).read_global()[0]
        assert evt["context"]["formula"].endswith("...[truncated]")

    def test_emit_never_raises(self, monkeypatch):
        from rowcalc.logging import events

        class BrokenSink:
            def write(self, event, *, batch_id=None):
                raise OSError("disk full")

        monkeypatch.setattr(events, "_sink", BrokenSink())
        monkeypatch.setattr(events, "_last_stderr_ts", 0.0)
        events.emit_info(events.EventType.table_eval_completed, "done")

    def test_reset_sink(self, tmp_path):
        from rowcalc.logging import events

        events.set_project_dir(tmp_path)
        assert events._get_sink() is not None
        events.reset_sink()
        assert events._get_sink() is None

    def test_config_controls_sink(self, tmp_path):
        from rowcalc.logging import events

        (tmp_path / "rowcalc.yaml").write_text("logging:\n  fsync: true\n  tail_bytes: 1024\n")
        events.set_project_dir(tmp_path)
        sink = events._get_sink()
        assert sink._fsync is True
        assert sink._tail_bytes == 1024
