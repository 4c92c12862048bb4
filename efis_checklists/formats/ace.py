"""
Garmin ACE binary checklist codec (.ace).

Layout (latin-1, CRLF line endings):
header, default indices, blank line, five metadata lines, groups
("<0" title ... ">"), each holding checklists ("(0" title ... ")"),
each holding item lines, then "END" and a 4 byte checksum. The checksum
is the bitwise inverse of the CRC32 of everything before it, stored
little-endian.
"""

import logging
import zlib
from typing import List, Optional

from .base import SyncCodec, strip_extension
from ..data.models import (
    Checklist, ChecklistFileMetadata, ChecklistFormat, ChecklistGroup,
    ChecklistGroupCategory, ChecklistItem, ChecklistItemType, ParsedChecklistFile,
    clamp_indent,
)
from ..data.errors import (
    ChecksumMismatchError, MalformedHeaderError, SchemaViolationError, TruncatedInputError,
)
from ..config.constants import (
    ACE_CHECKLIST_END, ACE_CHECKLIST_HEADER, ACE_CRC_SIZE, ACE_ENCODING, ACE_EXTENSION,
    ACE_FILE_END, ACE_GROUP_END, ACE_GROUP_HEADER, ACE_HEADER, CRLF,
)

logger = logging.getLogger("efis_checklists.formats.ace")

# Type code byte -> item type ('p' is plain text, read as a note)
CODE_TO_ITEM_TYPE = {
    ord('w'): ChecklistItemType.WARNING,
    ord('a'): ChecklistItemType.CAUTION,
    ord('n'): ChecklistItemType.NOTE,
    ord('p'): ChecklistItemType.NOTE,
    ord('c'): ChecklistItemType.CHALLENGE_ONLY,
    ord('r'): ChecklistItemType.CHALLENGE_RESPONSE,
    ord('t'): ChecklistItemType.TITLE,
}

ITEM_TYPE_TO_CODE = {
    ChecklistItemType.WARNING: ord('w'),
    ChecklistItemType.CAUTION: ord('a'),
    ChecklistItemType.NOTE: ord('n'),
    ChecklistItemType.CHALLENGE_ONLY: ord('c'),
    ChecklistItemType.CHALLENGE_RESPONSE: ord('r'),
    ChecklistItemType.TITLE: ord('t'),
}

CENTERED_CODE = ord('c')
RESPONSE_SEPARATOR = '~'


def signed_crc32(data: bytes) -> int:
    """CRC32 of data as a signed 32-bit integer"""
    crc = zlib.crc32(data) & 0xFFFFFFFF
    return crc - 0x100000000 if crc & 0x80000000 else crc


def ace_checksum(data: bytes) -> bytes:
    """The 4 checksum bytes ACE stores after data"""
    return (~signed_crc32(data) & 0xFFFFFFFF).to_bytes(ACE_CRC_SIZE, 'little')


def verify_checksum(buf: bytes) -> None:
    """
    Check the trailing checksum of a complete ACE buffer.

    Raises:
        TruncatedInputError: If the buffer cannot even hold a checksum
        ChecksumMismatchError: If the stored value does not match
    """
    if len(buf) < len(ACE_HEADER) + ACE_CRC_SIZE:
        raise TruncatedInputError("ACE: file too short", offset=len(buf))
    expected = signed_crc32(buf[:-ACE_CRC_SIZE])
    stored = int.from_bytes(buf[-ACE_CRC_SIZE:], 'little')
    actual = ~stored & 0xFFFFFFFF
    if actual != expected & 0xFFFFFFFF:
        raise ChecksumMismatchError(
            f"ACE: checksum mismatch, expected {expected & 0xFFFFFFFF:08x}, got {actual:08x}",
            offset=len(buf) - ACE_CRC_SIZE,
        )


class _AceReader:
    """Cursor over the body of an ACE file (everything before the checksum)"""

    def __init__(self, body: bytes):
        self.buf = body
        self.offset = 0

    def peek_bytes(self, length: int) -> bytes:
        chunk = self.buf[self.offset:self.offset + length]
        if len(chunk) != length:
            raise TruncatedInputError(
                f"ACE: truncated file, expected {length} bytes", offset=self.offset
            )
        return chunk

    def read_bytes(self, length: int) -> bytes:
        chunk = self.peek_bytes(length)
        self.offset += length
        return chunk

    def consume_bytes(self, expected: bytes) -> bool:
        if self.peek_bytes(len(expected)) == expected:
            self.offset += len(expected)
            return True
        return False

    def _line_end(self) -> int:
        end = self.buf.find(CRLF, self.offset)
        if end == -1:
            raise TruncatedInputError("ACE: reached end of file while reading a line", offset=self.offset)
        return end

    def peek_line(self) -> str:
        return self.buf[self.offset:self._line_end()].decode(ACE_ENCODING)

    def read_line(self) -> str:
        end = self._line_end()
        line = self.buf[self.offset:end].decode(ACE_ENCODING)
        self.offset = end + len(CRLF)
        return line

    def consume_line(self, expected: str) -> bool:
        end = self._line_end()
        if self.buf[self.offset:end].decode(ACE_ENCODING) == expected:
            self.offset = end + len(CRLF)
            return True
        return False

    def read_item(self) -> Optional[ChecklistItem]:
        # An empty line is a spacer and produces no item
        if self.consume_line(""):
            return None

        start = self.offset
        type_code = self.read_bytes(1)[0]
        item_type = CODE_TO_ITEM_TYPE.get(type_code)
        if item_type is None:
            raise SchemaViolationError(
                f"ACE: unexpected item type code 0x{type_code:02x}", offset=start
            )

        indent_code = self.read_bytes(1)[0]
        centered = indent_code == CENTERED_CODE
        if centered:
            indent = 0
        elif ord('0') <= indent_code <= ord('9'):
            indent = clamp_indent(indent_code - ord('0'))
        else:
            raise SchemaViolationError(
                f"ACE: unexpected indent code 0x{indent_code:02x}", offset=start + 1
            )

        prompt = self.read_line()
        response = ""
        if item_type == ChecklistItemType.CHALLENGE_RESPONSE:
            # Only the first tilde separates challenge from response
            prompt, _, response = prompt.partition(RESPONSE_SEPARATOR)

        return ChecklistItem(
            type=item_type,
            challenge_text=prompt,
            response_text=response,
            indent=indent,
            centered=centered,
        )

    def read_checklist(self) -> Checklist:
        if not self.consume_bytes(ACE_CHECKLIST_HEADER):
            raise SchemaViolationError("ACE: bad checklist header", offset=self.offset, line=self.peek_line())
        checklist = Checklist(name=self.read_line())
        while not self.consume_line(ACE_CHECKLIST_END):
            item = self.read_item()
            if item is not None:
                checklist.items.append(item)
        return checklist

    def read_group(self) -> ChecklistGroup:
        if not self.consume_bytes(ACE_GROUP_HEADER):
            raise SchemaViolationError("ACE: bad group header", offset=self.offset, line=self.peek_line())
        group = ChecklistGroup(name=self.read_line(), category=ChecklistGroupCategory.NORMAL)
        while not self.consume_line(ACE_GROUP_END):
            group.checklists.append(self.read_checklist())
        return group


class AceCodec(SyncCodec):
    """Garmin ACE binary format codec"""

    format = ChecklistFormat.ACE

    def parse(self, content: bytes, file_name: str) -> ParsedChecklistFile:
        """
        Parse an ACE buffer.

        Raises:
            ChecksumMismatchError: If the trailing CRC does not match
            MalformedHeaderError: If the magic bytes are wrong
            SchemaViolationError: On unexpected markers or type codes
            TruncatedInputError: If the buffer ends mid-structure
        """
        content = bytes(content)
        verify_checksum(content)

        reader = _AceReader(content[:-ACE_CRC_SIZE])
        if reader.read_bytes(len(ACE_HEADER)) != ACE_HEADER:
            raise MalformedHeaderError(f"ACE: unexpected file header in {file_name}", offset=0)

        reader.read_bytes(2)  # default group and checklist indices
        if not reader.consume_line(""):
            raise MalformedHeaderError("ACE: unexpected header ending", offset=reader.offset)

        name = reader.read_line()
        if not name.strip():
            # The writer puts a single space in place of an empty name
            name = strip_extension(file_name, f".{ACE_EXTENSION}")
        make_model = reader.read_line().strip()
        aircraft_info = reader.read_line().strip()
        reader.read_line()  # manufacturer info is not part of the model
        copyright_info = reader.read_line().strip()

        groups: List[ChecklistGroup] = []
        while not reader.consume_line(ACE_FILE_END):
            groups.append(reader.read_group())

        if reader.offset != len(reader.buf):
            raise SchemaViolationError("ACE: unexpected data after END marker", offset=reader.offset)

        logger.info(f"Parsed ACE file '{name}' with {len(groups)} groups")
        return ParsedChecklistFile(
            name=name,
            format=ChecklistFormat.ACE,
            groups=groups,
            metadata=ChecklistFileMetadata(
                aircraft_registration=aircraft_info,
                make_model=make_model,
                copyright=copyright_info,
            ),
        )

    def serialize(self, file: ParsedChecklistFile) -> bytes:
        """
        Serialize to ACE bytes.
        Empty groups and checklists are left out; the target units reject them.
        """
        parts: List[bytes] = []

        def add_line(line: str = "") -> None:
            if line:
                parts.append(line.encode(ACE_ENCODING, errors="replace"))
            parts.append(CRLF)

        parts.append(ACE_HEADER)
        parts.append(bytes([0, 0]))  # default group and checklist indices
        add_line()

        # Garmin's editor treats the file as corrupt if any of these are empty
        add_line(file.name or " ")
        add_line(file.metadata.make_model or " ")
        add_line(file.metadata.aircraft_registration or " ")
        add_line(" ")  # manufacturer info
        add_line(file.metadata.copyright or " ")

        for group in file.groups:
            checklists = [checklist for checklist in group.checklists if checklist.items]
            if not checklists:
                logger.debug(f"Skipping empty group '{group.name}'")
                continue

            parts.append(ACE_GROUP_HEADER)
            add_line(group.name)

            for checklist in checklists:
                parts.append(ACE_CHECKLIST_HEADER)
                add_line(checklist.name)

                for item in checklist.items:
                    indent_code = CENTERED_CODE if item.centered else ord('0') + item.indent
                    parts.append(bytes([ITEM_TYPE_TO_CODE[item.type], indent_code]))

                    text = item.challenge_text
                    if item.type == ChecklistItemType.CHALLENGE_RESPONSE:
                        text += RESPONSE_SEPARATOR + item.response_text
                    add_line(text)

                add_line(ACE_CHECKLIST_END)

            add_line(ACE_GROUP_END)

        add_line(ACE_FILE_END)

        content = b"".join(parts)
        return content + ace_checksum(content)
