"""Data structures shared by the log store, dictation controller and form."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Source(str, Enum):
    """Provenance of a log entry's text."""

    MANUAL = "manual"
    VOICE = "voice"


class DictationState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    LISTENING = "listening"
    DESTROYED = "destroyed"


@dataclass
class LogEntry:
    """One persisted training-session record."""

    id: int
    technique_name: str
    date: str
    notes: Optional[str] = None
    teacher: Optional[str] = None
    partner: Optional[str] = None
    source: Optional[Source] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "LogEntry":
        source = row["source"]
        return cls(
            id=row["id"],
            technique_name=row["technique_name"],
            date=row["date"],
            notes=row["notes"],
            teacher=row["teacher"],
            partner=row["partner"],
            source=Source(source) if source else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "technique_name": self.technique_name,
            "date": self.date,
            "notes": self.notes,
            "teacher": self.teacher,
            "partner": self.partner,
            "source": self.source.value if self.source else None,
        }


@dataclass
class DictationSession:
    """In-memory state of one recording gesture.

    ``token`` identifies the gesture; events delivered for any other token
    are stale and ignored. ``original_text`` is the bound field's value when
    the gesture started, if the form could report it.
    """

    token: int
    target_field: str
    last_partial_text: str = ""
    original_text: Optional[str] = None
    stop_requested: bool = False
    partial_applied: bool = False
