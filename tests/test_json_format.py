"""
Tests for the JSON codec (own and legacy schemas).
"""

import json

import pytest
from efis_checklists.data.models import ChecklistFormat, ChecklistGroupCategory, ChecklistItemType
from efis_checklists.data.errors import SchemaViolationError
from efis_checklists.formats.json_format import JsonCodec, is_legacy_schema


def encode(data):
    return json.dumps(data).encode("utf-8")


LEGACY_FILE = {
    "groups": [{
        "title": "G",
        "checklists": [{
            "title": "C",
            "items": [
                {"type": "ITEM_TITLE", "prompt": "X"},
                {"type": "ITEM_CHALLENGE_RESPONSE", "prompt": "Flaps", "expectation": "UP", "indent": 1},
                {"type": "ITEM_SPACE"},
                {"type": "ITEM_PLAINTEXT", "prompt": "Text", "indent": 7},
                {"type": "ITEM_MYSTERY", "prompt": "Odd"},
            ],
        }],
    }],
    "metadata": {
        "name": "Legacy name",
        "aircraftInfo": "N999",
        "makeAndModel": "Vans RV-7",
        "copyrightInfo": "Someone",
    },
}


class TestJsonOwnSchema:
    """Test cases for the tool's own schema."""

    def test_round_trip(self, sample_file):
        codec = JsonCodec()
        parsed = codec.parse(codec.serialize(sample_file).encode("utf-8"), "sample.json")

        assert parsed.name == sample_file.name
        assert parsed.format == ChecklistFormat.JSON
        assert parsed.groups == sample_file.groups
        assert parsed.metadata == sample_file.metadata

    def test_serialize_strips_runtime_fields(self, sample_file):
        sample_file.dirty = True
        data = json.loads(JsonCodec().serialize(sample_file))

        assert set(data) == {"name", "format", "groups", "metadata"}
        group = data["groups"][0]
        assert "id" not in group
        assert "id" not in group["checklists"][0]
        assert "id" not in group["checklists"][0]["items"][0]
        assert group["checklists"][0]["items"][1]["challengeText"] == "Parking brake"

    def test_ids_are_regenerated(self, sample_file):
        parsed = JsonCodec().parse(JsonCodec().serialize(sample_file).encode("utf-8"), "s.json")

        assert parsed.groups[0].id != sample_file.groups[0].id
        assert parsed.groups[0].checklists[0].items[0].id != sample_file.groups[0].checklists[0].items[0].id

    def test_defaults_for_missing_fields(self):
        parsed = JsonCodec().parse(encode({"groups": [{"checklists": [{"items": [{}]}]}]}), "Bare.json")

        assert parsed.name == "Bare"
        group = parsed.groups[0]
        assert group.name == ""
        assert group.category == ChecklistGroupCategory.NORMAL
        item = group.checklists[0].items[0]
        assert item.type == ChecklistItemType.CHALLENGE_RESPONSE
        assert item.indent == 0

    def test_unknown_item_type(self):
        data = {"groups": [{"name": "G", "checklists": [{"name": "C", "items": [{"type": "bogus"}]}]}]}
        with pytest.raises(SchemaViolationError):
            JsonCodec().parse(encode(data), "x.json")

    def test_invalid_json(self):
        with pytest.raises(SchemaViolationError) as excinfo:
            JsonCodec().parse(b'{"name": ', "x.json")
        assert excinfo.value.offset is not None

    def test_top_level_must_be_object(self):
        with pytest.raises(SchemaViolationError):
            JsonCodec().parse(b"[]", "x.json")

    def test_groups_must_be_objects(self):
        with pytest.raises(SchemaViolationError):
            JsonCodec().parse(encode({"groups": ["nope"]}), "x.json")

    @pytest.mark.parametrize("indent", [b"1e999", b"-1e999", b"NaN"])
    def test_non_finite_indent(self, indent):
        content = (b'{"groups": [{"name": "G", "checklists": [{"name": "C", "items": '
                   b'[{"type": "note", "challengeText": "x", "indent": ' + indent + b'}]}]}]}')
        with pytest.raises(SchemaViolationError):
            JsonCodec().parse(content, "x.json")

    def test_fractional_and_large_indents_are_clamped(self):
        data = {"groups": [{"name": "G", "checklists": [{"name": "C", "items": [
            {"type": "note", "challengeText": "a", "indent": 1.7},
            {"type": "note", "challengeText": "b", "indent": 10 ** 30},
        ]}]}]}
        items = JsonCodec().parse(encode(data), "x.json").groups[0].checklists[0].items

        assert [item.indent for item in items] == [1, 3]


class TestJsonLegacySchema:
    """Test cases for the legacy schema."""

    def test_detection(self):
        assert is_legacy_schema(LEGACY_FILE)
        assert is_legacy_schema({"groups": [{"name": "G", "checklists": [{"items": [{"type": "ITEM_NOTE"}]}]}]})
        assert not is_legacy_schema({"groups": [{"name": "G", "title": "T"}]})
        assert not is_legacy_schema({"groups": []})

    def test_detection_looks_past_first_group(self):
        data = {"groups": [{"name": "A", "checklists": []}, {"title": "B"}]}
        assert is_legacy_schema(data)

    def test_parse(self):
        parsed = JsonCodec().parse(encode(LEGACY_FILE), "legacy.json")

        assert parsed.name == "Legacy name"
        assert parsed.metadata.aircraft_registration == "N999"
        assert parsed.metadata.make_model == "Vans RV-7"
        assert parsed.metadata.copyright == "Someone"

        group = parsed.groups[0]
        assert group.name == "G"
        assert group.checklists[0].name == "C"

        items = group.checklists[0].items
        assert items[0].type == ChecklistItemType.TITLE
        assert items[0].challenge_text == "X"
        assert (items[1].type, items[1].response_text, items[1].indent) == (
            ChecklistItemType.CHALLENGE_RESPONSE, "UP", 1)
        assert items[2].is_space
        assert items[3].type == ChecklistItemType.NOTE
        assert items[3].indent == 3
        assert items[4].type == ChecklistItemType.CHALLENGE_RESPONSE

    def test_name_falls_back_to_file_name(self):
        data = {"groups": [{"title": "G", "checklists": []}]}
        parsed = JsonCodec().parse(encode(data), "Old.json")

        assert parsed.name == "Old"

    def test_serialize_writes_own_schema(self):
        codec = JsonCodec()
        parsed = codec.parse(encode(LEGACY_FILE), "legacy.json")
        data = json.loads(codec.serialize(parsed))

        assert data["groups"][0]["name"] == "G"
        assert data["groups"][0]["checklists"][0]["items"][0]["type"] == "title"
        assert data["metadata"]["aircraftRegistration"] == "N999"


class TestExtractChecklists:
    """Test cases for importing checklists from JSON."""

    def test_full_file(self, sample_file):
        content = JsonCodec().serialize(sample_file).encode("utf-8")
        checklists = JsonCodec().extract_checklists(content, "sample.json")

        assert [c.name for c in checklists] == ["Preflight", "Before takeoff", "Engine fire"]

    def test_legacy_file(self):
        checklists = JsonCodec().extract_checklists(encode(LEGACY_FILE), "legacy.json")
        assert [c.name for c in checklists] == ["C"]

    def test_standalone_checklist(self):
        data = {
            "title": "Standalone",
            "items": [
                {"type": "ITEM_WARNING", "prompt": "Hot"},
                {"type": "challenge_only", "challengeText": "Go", "indent": 2},
            ],
        }
        checklists = JsonCodec().extract_checklists(encode(data), "single.json")

        assert len(checklists) == 1
        assert checklists[0].name == "Standalone"
        items = checklists[0].items
        assert (items[0].type, items[0].challenge_text) == (ChecklistItemType.WARNING, "Hot")
        assert (items[1].type, items[1].challenge_text, items[1].indent) == (
            ChecklistItemType.CHALLENGE_ONLY, "Go", 2)

    def test_standalone_name_falls_back_to_file_name(self):
        checklists = JsonCodec().extract_checklists(encode({"items": []}), "Imported.json")
        assert checklists[0].name == "Imported"

    def test_unrecognized_content(self):
        with pytest.raises(SchemaViolationError):
            JsonCodec().extract_checklists(encode({"something": "else"}), "x.json")
