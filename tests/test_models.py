"""
Tests for data models.
"""

import pytest
from efis_checklists.data.models import (
    Checklist, ChecklistFile, ChecklistFileMetadata, ChecklistFormat, ChecklistGroup,
    ChecklistGroupCategory, ChecklistItem, ChecklistItemType, ParsedChecklistFile,
    clamp_indent,
)
from efis_checklists.data.errors import ChecklistFormatError, SchemaViolationError


class TestChecklistItem:
    """Test cases for ChecklistItem model."""

    def test_create_valid_item(self):
        """Test creating a valid challenge/response item."""
        item = ChecklistItem(
            type=ChecklistItemType.CHALLENGE_RESPONSE,
            challenge_text="Parking brake",
            response_text="SET",
            indent=2,
        )

        assert item.challenge_text == "Parking brake"
        assert item.response_text == "SET"
        assert item.indent == 2
        assert item.centered is False
        assert item.collapsible is False
        assert item.id

    def test_indent_range(self):
        """Test indent validation (should be 0 to 3)."""
        for indent in range(4):
            ChecklistItem(type=ChecklistItemType.NOTE, indent=indent)

        with pytest.raises(ValueError):
            ChecklistItem(type=ChecklistItemType.NOTE, indent=4)
        with pytest.raises(ValueError):
            ChecklistItem(type=ChecklistItemType.NOTE, indent=-1)

    def test_type_validation(self):
        """Test that types must be real enum members."""
        with pytest.raises(TypeError):
            ChecklistItem(type="note")
        with pytest.raises(TypeError):
            ChecklistItem(type=ChecklistItemType.NOTE, indent=1.5)

    def test_is_space(self):
        """Test spacer detection."""
        assert ChecklistItem(type=ChecklistItemType.NOTE).is_space
        assert not ChecklistItem(type=ChecklistItemType.NOTE, challenge_text="x").is_space
        assert not ChecklistItem(type=ChecklistItemType.CHALLENGE_ONLY).is_space

    def test_equality_ignores_id(self):
        """Test that structurally equal items compare equal."""
        a = ChecklistItem(type=ChecklistItemType.TITLE, challenge_text="Cabin")
        b = ChecklistItem(type=ChecklistItemType.TITLE, challenge_text="Cabin")

        assert a.id != b.id
        assert a == b

    def test_to_dict(self):
        """Test conversion to dictionary."""
        item = ChecklistItem(type=ChecklistItemType.CAUTION, challenge_text="Hot", indent=1)
        assert item.to_dict() == {
            "type": "caution",
            "challengeText": "Hot",
            "responseText": "",
            "indent": 1,
            "centered": False,
            "collapsible": False,
        }


class TestClampIndent:
    """Test cases for indent clamping."""

    def test_clamp(self):
        assert clamp_indent(-3) == 0
        assert clamp_indent(2) == 2
        assert clamp_indent(9) == 3


class TestChecklistFile:
    """Test cases for the file containers."""

    def test_from_parsed_stamps_runtime_fields(self):
        """Test that from_parsed fills id, path and state."""
        parsed = ParsedChecklistFile(
            name="Test",
            format=ChecklistFormat.ACE,
            groups=[ChecklistGroup(name="G", checklists=[Checklist(name="C")])],
        )
        file = ChecklistFile.from_parsed(parsed, file_path="/tmp/test.ace")

        assert file.id
        assert file.file_path == "/tmp/test.ace"
        assert file.dirty is False
        assert file.last_modified > 0
        assert file.groups == parsed.groups

    def test_iter_checklists(self, sample_file):
        """Test iterating over checklists in file order."""
        names = [checklist.name for _, checklist in sample_file.iter_checklists()]
        assert names == ["Preflight", "Before takeoff", "Engine fire"]

    def test_to_dict_has_no_runtime_fields(self, sample_file):
        """Test that the dictionary form holds only data fields."""
        data = sample_file.to_dict()

        assert set(data) == {"name", "format", "groups", "metadata"}
        assert data["groups"][1]["category"] == "emergency"
        assert data["metadata"] == {
            "aircraftRegistration": "N12345",
            "makeModel": "Cessna 172S",
            "copyright": "Example Aero Club",
        }

    def test_format_validation(self):
        with pytest.raises(TypeError):
            ParsedChecklistFile(name="x", format="json")

    def test_group_category_validation(self):
        with pytest.raises(TypeError):
            ChecklistGroup(name="x", category="normal")

    def test_metadata_defaults(self):
        metadata = ChecklistFileMetadata()
        assert metadata.aircraft_registration == ""
        assert metadata.make_model == ""
        assert metadata.copyright == ""


class TestErrors:
    """Test cases for codec errors."""

    def test_context_in_message(self):
        error = SchemaViolationError("bad thing", offset=12, line="CHKLST0.LINE1,")

        assert isinstance(error, ChecklistFormatError)
        assert isinstance(error, ValueError)
        assert error.offset == 12
        assert error.line == "CHKLST0.LINE1,"
        assert "offset 12" in str(error)
        assert "CHKLST0.LINE1," in str(error)

    def test_message_without_context(self):
        assert str(SchemaViolationError("bad thing")) == "bad thing"
