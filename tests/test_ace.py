"""
Tests for the Garmin ACE codec.
"""

import dataclasses
import zlib

import pytest
from efis_checklists.data.models import (
    Checklist, ChecklistFile, ChecklistFormat, ChecklistGroup, ChecklistGroupCategory,
    ChecklistItem, ChecklistItemType,
)
from efis_checklists.data.errors import (
    ChecksumMismatchError, MalformedHeaderError, SchemaViolationError, TruncatedInputError,
)
from efis_checklists.formats.ace import AceCodec, ace_checksum, signed_crc32
from efis_checklists.config.constants import ACE_HEADER


def build_ace(body: bytes, header: bytes = ACE_HEADER) -> bytes:
    """Assemble an ACE buffer with a valid checksum."""
    content = header + b"\x00\x00\r\n" + body
    return content + ace_checksum(content)


METADATA = b"My list\r\nCessna 172S\r\nN12345\r\nCessna\r\nAero Club\r\n"


class TestAceChecksum:
    """Test cases for the ACE checksum."""

    def test_signed_crc32(self):
        assert signed_crc32(b"") == 0
        value = signed_crc32(b"123456789")
        assert value == 0xCBF43926 - 0x100000000
        assert value < 0

    def test_serialized_checksum_invariant(self, sample_file):
        """The trailing bytes, inverted, equal the CRC32 of everything before."""
        data = AceCodec().serialize(sample_file)

        stored = int.from_bytes(data[-4:], "little")
        assert (~stored & 0xFFFFFFFF) == zlib.crc32(data[:-4])

    def test_corrupted_file_is_rejected(self, sample_file):
        data = bytearray(AceCodec().serialize(sample_file))
        data[20] ^= 0xFF

        with pytest.raises(ChecksumMismatchError):
            AceCodec().parse(bytes(data), "sample.ace")

    def test_truncated_file_is_rejected(self):
        with pytest.raises(TruncatedInputError):
            AceCodec().parse(b"\xf0\xf0", "short.ace")


class TestAceParse:
    """Test cases for reading ACE buffers."""

    def test_parse_minimal_file(self):
        body = METADATA + b"<0Group\r\n(0List\r\nr0A~B~C\r\n\r\nn2Note\r\nwcCentered\r\n)\r\n>\r\nEND\r\n"
        parsed = AceCodec().parse(build_ace(body), "file.ace")

        assert parsed.name == "My list"
        assert parsed.format == ChecklistFormat.ACE
        assert parsed.metadata.make_model == "Cessna 172S"
        assert parsed.metadata.aircraft_registration == "N12345"
        assert parsed.metadata.copyright == "Aero Club"

        items = parsed.groups[0].checklists[0].items
        assert len(items) == 3  # the blank line is not an item

        assert items[0].type == ChecklistItemType.CHALLENGE_RESPONSE
        assert items[0].challenge_text == "A"
        assert items[0].response_text == "B~C"

        assert items[1].type == ChecklistItemType.NOTE
        assert items[1].indent == 2

        assert items[2].type == ChecklistItemType.WARNING
        assert items[2].centered is True
        assert items[2].indent == 0

    def test_plain_text_code_reads_as_note(self):
        body = METADATA + b"<0G\r\n(0C\r\np0Plain\r\n)\r\n>\r\nEND\r\n"
        parsed = AceCodec().parse(build_ace(body), "file.ace")

        assert parsed.groups[0].checklists[0].items[0].type == ChecklistItemType.NOTE

    def test_empty_name_falls_back_to_file_name(self):
        body = b" \r\n \r\n \r\n \r\n \r\nEND\r\n"
        parsed = AceCodec().parse(build_ace(body), "Cessna.ACE")

        assert parsed.name == "Cessna"
        assert parsed.groups == []
        assert parsed.metadata.make_model == ""

    def test_name_is_kept_as_read(self):
        body = b" Spaced \r\n \r\n \r\n \r\n \r\nEND\r\n"
        parsed = AceCodec().parse(build_ace(body), "Cessna.ace")

        assert parsed.name == " Spaced "

    def test_bad_header(self):
        body = METADATA + b"END\r\n"
        with pytest.raises(MalformedHeaderError):
            AceCodec().parse(build_ace(body, header=b"\xf0\xf0\xf0\xf0\x00\x02"), "bad.ace")

    def test_unknown_item_type(self):
        body = METADATA + b"<0G\r\n(0C\r\nx0Oops\r\n)\r\n>\r\nEND\r\n"
        with pytest.raises(SchemaViolationError):
            AceCodec().parse(build_ace(body), "bad.ace")

    def test_missing_end(self):
        body = METADATA + b"<0G\r\n(0C\r\n"
        with pytest.raises(TruncatedInputError):
            AceCodec().parse(build_ace(body), "bad.ace")

    def test_data_after_end(self):
        body = METADATA + b"END\r\nextra\r\n"
        with pytest.raises(SchemaViolationError):
            AceCodec().parse(build_ace(body), "bad.ace")

    def test_ids_are_fresh(self):
        body = METADATA + b"<0G\r\n(0C\r\nc0One\r\n)\r\n>\r\nEND\r\n"
        data = build_ace(body)

        first = AceCodec().parse(data, "a.ace")
        second = AceCodec().parse(data, "a.ace")
        assert first.groups[0].id != second.groups[0].id
        assert first.groups[0].checklists[0].items[0].id != second.groups[0].checklists[0].items[0].id


class TestAceSerialize:
    """Test cases for writing ACE buffers."""

    def test_round_trip(self, sample_file):
        """Everything except group categories survives a round trip."""
        parsed = AceCodec().parse(AceCodec().serialize(sample_file), "Sample.ace")

        expected_groups = [
            dataclasses.replace(group, category=ChecklistGroupCategory.NORMAL)
            for group in sample_file.groups
        ]
        assert parsed.name == sample_file.name
        assert parsed.metadata == sample_file.metadata
        assert parsed.groups == expected_groups

    def test_header_and_empty_metadata(self):
        file = ChecklistFile(name="", format=ChecklistFormat.ACE)
        data = AceCodec().serialize(file)

        assert data.startswith(ACE_HEADER + b"\x00\x00\r\n")
        assert b"\r\n \r\n \r\n \r\n \r\n \r\nEND\r\n" in data

    def test_empty_containers_are_omitted(self):
        file = ChecklistFile(
            name="Empty",
            format=ChecklistFormat.ACE,
            groups=[ChecklistGroup(name="Group", checklists=[Checklist(name="List")])],
        )
        data = AceCodec().serialize(file)

        assert b"<0" not in data
        assert b"(0" not in data
        assert b"Group" not in data

    def test_empty_checklist_omitted_from_non_empty_group(self):
        file = ChecklistFile(
            name="Mixed",
            format=ChecklistFormat.ACE,
            groups=[ChecklistGroup(name="Group", checklists=[
                Checklist(name="Empty"),
                Checklist(name="Full", items=[
                    ChecklistItem(type=ChecklistItemType.CHALLENGE_ONLY, challenge_text="Go"),
                ]),
            ])],
        )
        parsed = AceCodec().parse(AceCodec().serialize(file), "mixed.ace")

        assert [c.name for c in parsed.groups[0].checklists] == ["Full"]

    def test_item_encoding(self):
        file = ChecklistFile(
            name="Items",
            format=ChecklistFormat.ACE,
            groups=[ChecklistGroup(name="G", checklists=[Checklist(name="C", items=[
                ChecklistItem(type=ChecklistItemType.CHALLENGE_RESPONSE, challenge_text="Flaps",
                              response_text="UP", indent=3),
                ChecklistItem(type=ChecklistItemType.CAUTION, challenge_text="Hot", centered=True),
            ])])],
        )
        data = AceCodec().serialize(file)

        assert b"(0C\r\nr3Flaps~UP\r\nacHot\r\n)\r\n>\r\nEND\r\n" in data
