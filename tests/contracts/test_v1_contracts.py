"""Tests for v1 log entry contracts."""

import pytest
from pydantic import ValidationError

from contracts.v1 import LogEntryContract, LogEntryInput


def test_minimal_input_defaults_to_manual():
    entry = LogEntryInput(technique_name="Ikkyo", date="2024-01-01T10:00:00.000Z")
    assert entry.source == "manual"
    assert entry.notes is None


def test_technique_name_is_stripped():
    entry = LogEntryInput(technique_name="  Nikyo ", date="2024-01-01")
    assert entry.technique_name == "Nikyo"


@pytest.mark.parametrize("name", ["", "   "])
def test_blank_technique_name_rejected(name):
    with pytest.raises(ValidationError):
        LogEntryInput(technique_name=name, date="2024-01-01")


def test_missing_date_rejected():
    with pytest.raises(ValidationError):
        LogEntryInput(technique_name="Ikkyo")


def test_non_iso_date_rejected():
    with pytest.raises(ValidationError):
        LogEntryInput(technique_name="Ikkyo", date="04/05/2024")


def test_blank_optional_fields_become_none():
    entry = LogEntryInput(
        technique_name="Sankyo", date="2024-01-01", notes="", teacher="  ", partner="Aiko",
    )
    assert entry.notes is None
    assert entry.teacher is None
    assert entry.partner == "Aiko"


def test_unknown_source_rejected():
    with pytest.raises(ValidationError):
        LogEntryInput(technique_name="Ikkyo", date="2024-01-01", source="keyboard")


def test_extra_fields_forbidden():
    with pytest.raises(ValidationError):
        LogEntryInput(technique_name="Ikkyo", date="2024-01-01", rank="3rd kyu")


def test_contract_requires_positive_id():
    with pytest.raises(ValidationError):
        LogEntryContract(id=0, technique_name="Ikkyo", date="2024-01-01")
