"""Log entry form state and submission."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from pydantic import ValidationError

from contracts.v1 import LogEntryInput
from dojo_log.config import FORM_FIELDS
from dojo_log.dictation import LISTENING_TEXT, DictationController
from dojo_log.errors import InvalidEntry, StorageError
from dojo_log.models import DictationState, Source
from dojo_log.persistence import LogStore

logger = logging.getLogger(__name__)

SAVED_TEXT = "Log saved"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_entry(values: Mapping[str, Optional[str]], source: Source | str,
                date: str) -> LogEntryInput:
    """Validate raw form values into a ``LogEntryInput``.

    Raises:
        InvalidEntry: a required value is missing or malformed.
    """
    payload = {name: values.get(name) for name in FORM_FIELDS}
    try:
        return LogEntryInput(date=date, source=Source(source).value, **payload)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise InvalidEntry(f"Invalid log entry ({fields})", errors=e.errors()) from e
    except ValueError as e:
        raise InvalidEntry(f"Invalid log entry (source: {source!r})") from e


async def submit_log(
    store: LogStore,
    values: Mapping[str, Optional[str]],
    source: Source | str = Source.MANUAL,
    *,
    now: Callable[[], datetime] = _utc_now,
) -> int:
    """Stamp the submission time on *values*, validate, and insert.

    Returns the new entry id. Storage errors propagate unchanged.
    """
    date = now().isoformat(timespec="milliseconds")
    entry = build_entry(values, source, date)
    return await store.insert(entry)


class LogForm:
    """Editable state behind the log entry screen.

    Typing into a field marks the entry as manual; a confirmed dictation
    marks it as voice. A failed submit leaves every value in place.
    """

    def __init__(
        self,
        store: LogStore,
        *,
        on_records_changed: Optional[Callable[[], None]] = None,
        now: Callable[[], datetime] = _utc_now,
    ):
        self.store = store
        self.on_records_changed = on_records_changed
        self._now = now
        self.values: dict[str, str] = {name: "" for name in FORM_FIELDS}
        self.source = Source.MANUAL
        self.feedback = ""
        self.error = ""

    def read_field(self, field_id: str) -> str:
        return self.values[field_id]

    def set_field(self, field_id: str, value: str) -> None:
        """Apply a typed value."""
        self._check_field(field_id)
        self.values[field_id] = value
        self.source = Source.MANUAL

    def apply_dictation(self, field_id: str, text: str) -> None:
        """Apply a dictated (partial or final) value."""
        self._check_field(field_id)
        self.values[field_id] = text

    def mark_voice(self, source: Source = Source.VOICE) -> None:
        self.source = source

    def bind(self, controller: DictationController) -> None:
        """Reflect a ``DictationController``'s updates in this form."""
        controller.on_field_update(self.apply_dictation)
        controller.on_provenance(self.mark_voice)
        controller.on_status_change(self._on_dictation_status)
        controller.on_error(self._on_dictation_error)

    def reset(self) -> None:
        self.values = {name: "" for name in FORM_FIELDS}
        self.source = Source.MANUAL

    async def submit(self) -> int:
        """Save the current values as a new log entry.

        Raises:
            InvalidEntry: the technique name is missing.
            StorageError: the store could not be opened or written.
        """
        self.error = ""
        self.feedback = ""
        try:
            entry_id = await submit_log(self.store, self.values, self.source, now=self._now)
        except InvalidEntry:
            self.error = "Technique name is required"
            raise
        except StorageError as e:
            self.error = f"Save failed: {e}"
            logger.warning("Submitting log failed: %s", e)
            raise

        self.reset()
        self.feedback = SAVED_TEXT
        if self.on_records_changed is not None:
            self.on_records_changed()
        return entry_id

    def _on_dictation_status(self, state: DictationState) -> None:
        if state in (DictationState.REQUESTING, DictationState.LISTENING):
            self.feedback = LISTENING_TEXT
            self.error = ""
        elif self.feedback == LISTENING_TEXT:
            self.feedback = ""

    def _on_dictation_error(self, message: str) -> None:
        self.error = message

    def _check_field(self, field_id: str) -> None:
        if field_id not in self.values:
            raise ValueError(f"Unknown form field: {field_id!r}")


__all__ = ["LogForm", "SAVED_TEXT", "build_entry", "submit_log"]
