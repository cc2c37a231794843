"""
Shared fixtures for dojo-log tests.
"""

import asyncio
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from dojo_log.persistence import LogStore
from dojo_log.speech import SpeechEngine, SpeechEventKind


class FakeSpeechEngine(SpeechEngine):
    """Scriptable engine: records control calls, events are emitted by the test."""

    def __init__(self, available: bool = True):
        super().__init__()
        self._available = available
        self.start_calls: list[tuple[str, dict]] = []
        self.stop_calls = 0
        self.destroy_calls = 0
        self.fail_start: Exception | None = None
        self.fail_stop: Exception | None = None
        # Seconds start/stop stay suspended, to interleave with other calls.
        self.start_delay = 0.0
        self.stop_delay = 0.0

    @property
    def available(self) -> bool:
        return self._available

    async def _start(self, locale, options):
        self.start_calls.append((locale, options))
        if self.start_delay:
            await asyncio.sleep(self.start_delay)
        if self.fail_start is not None:
            raise self.fail_start

    async def _stop(self):
        self.stop_calls += 1
        if self.stop_delay:
            await asyncio.sleep(self.stop_delay)
        if self.fail_stop is not None:
            raise self.fail_stop

    async def _destroy(self):
        self.destroy_calls += 1

    # Event helpers -----------------------------------------------------

    def speech_start(self):
        self.emit_kind(SpeechEventKind.START)

    def partial(self, *values):
        self.emit_kind(SpeechEventKind.PARTIAL, values)

    def final(self, *values):
        self.emit_kind(SpeechEventKind.FINAL, values)

    def end(self):
        self.emit_kind(SpeechEventKind.END)

    def error(self, message):
        self.emit_kind(SpeechEventKind.ERROR, error=message)


@pytest.fixture
def speech_engine():
    """A present, idle fake speech engine."""
    return FakeSpeechEngine()


@pytest.fixture
def make_speech_engine():
    """Factory for fake engines, e.g. ``make_speech_engine(available=False)``."""
    return FakeSpeechEngine


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "logs" / "dojo_log.db"


@pytest_asyncio.fixture
async def store(db_path):
    """An initialized LogStore on a temporary database."""
    s = LogStore(db_path)
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def fixed_now():
    """Clock returning a fixed submission time."""
    moment = datetime(2024, 5, 4, 18, 30, 0, tzinfo=timezone.utc)
    return lambda: moment


@pytest.fixture
def make_entry():
    """Build a LogEntryInput with sensible defaults."""
    from contracts.v1 import LogEntryInput

    def _make(technique_name="Ikkyo", date="2024-01-01T10:00:00", **kwargs):
        return LogEntryInput(technique_name=technique_name, date=date, **kwargs)

    return _make
