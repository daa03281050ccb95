"""Structured event logging for rowcalc.

Provides a unified event schema, filesystem NDJSON sink, and safe
emit helpers that never raise uncaught exceptions.
"""

from rowcalc.logging.events import (
    EventLevel,
    EventType,
    RowcalcEvent,
    emit,
    emit_error,
    emit_info,
    emit_warning,
    reset_sink,
    set_project_dir,
    truncate_context,
)
from rowcalc.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "RowcalcEvent",
    "emit",
    "emit_error",
    "emit_info",
    "emit_warning",
    "reset_sink",
    "set_project_dir",
    "truncate_context",
]
