from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _reset_event_sink():
    """Keep a sink configured by one test from capturing another's events."""
    from rowcalc.logging.events import reset_sink

    yield
    reset_sink()
