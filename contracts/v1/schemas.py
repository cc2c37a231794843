"""Pydantic contracts for v1 log entry records."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _StrictModel(BaseModel):
    """Base model that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class LogEntryInput(_StrictModel):
    """A validated log entry, ready to be inserted.

    ``date`` is assigned by the submitting caller, never by the store.
    """

    technique_name: str = Field(min_length=1)
    date: str
    notes: str | None = None
    teacher: str | None = None
    partner: str | None = None
    source: Literal["manual", "voice"] = "manual"

    @field_validator("technique_name", mode="before")
    @classmethod
    def _strip_technique(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("notes", "teacher", "partner", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date")
    @classmethod
    def _iso_date(cls, value: str) -> str:
        try:
            # fromisoformat() only accepts a trailing "Z" from Python 3.11 on
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValueError(f"date is not ISO-8601: {value!r}") from e
        return value


class LogEntryContract(_StrictModel):
    id: int = Field(ge=1)
    technique_name: str
    date: str
    notes: str | None = None
    teacher: str | None = None
    partner: str | None = None
    source: Literal["manual", "voice"] | None = None
