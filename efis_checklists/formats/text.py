"""
Line-oriented text checklist engine shared by Dynon/AFS and GRT.

Each format is a TextFormatOptions record; the same reader and writer
handle both. Every line is "<prefix> <contents>", where the prefix carries
the checklist (and optionally item) number. Long items may be wrapped over
several numbered lines, continuation lines starting with "| ".
"""

import datetime
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from .base import SyncCodec, strip_extension
from ..data.models import (
    Checklist, ChecklistFileMetadata, ChecklistFormat, ChecklistGroup,
    ChecklistGroupCategory, ChecklistItem, ChecklistItemType, ParsedChecklistFile,
    clamp_indent,
)
from ..data.errors import PositionalValidationError, SchemaViolationError
from ..config.constants import (
    TEXT_CENTER_FALLBACK_INDENT, TEXT_DEFAULT_FIRST_GROUP, TEXT_HEADER_COMMENT,
    TEXT_METADATA_AIRCRAFT_TITLE, TEXT_METADATA_CHECKLIST_TITLE, TEXT_METADATA_COPYRIGHT_TITLE,
    TEXT_METADATA_FILE_TITLE, TEXT_METADATA_MAKE_MODEL_TITLE, TEXT_METADATA_MANUFACTURER_TITLE,
    TEXT_WRAP_PREFIX,
)

logger = logging.getLogger("efis_checklists.formats.text")

CRLF = "\r\n"
CHECKLIST_NUM = "{{checklistNum}}"
ITEM_NUM = "{{itemNum}}"


@dataclass(frozen=True)
class TextFormatOptions:
    """Configuration of one text checklist format"""
    checklist_prefix: str
    item_prefix: str
    file_extensions: Tuple[str, ...] = (".txt",)
    indent_width: int = 2
    max_line_length: Optional[int] = None
    all_uppercase: bool = False
    group_name_separator: Optional[str] = ": "
    skip_first_group: bool = True
    checklist_top_blank_line: bool = False
    output_metadata: bool = True
    # Regexes may expose named groups "checklistNum" and "itemNum"
    checklist_prefix_matcher: Optional[Pattern] = None
    item_prefix_matcher: Optional[Pattern] = None
    checklist_zero_indexed: bool = False
    checklist_item_zero_indexed: bool = False
    forbid_commas: bool = False
    expectation_separator: str = " - "
    note_prefix: str = "NOTE: "
    title_prefix_suffix: str = "** "
    warning_prefix: str = "WARNING: "
    caution_prefix: str = "CAUTION: "
    comment_prefix: Optional[str] = "#"

    @property
    def title_suffix(self) -> str:
        """The title prefix mirrored, e.g. "** " -> " **" """
        return self.title_prefix_suffix[::-1]

    def checklist_matcher(self) -> Pattern:
        return self.checklist_prefix_matcher or re.compile("^" + re.escape(self.checklist_prefix) + "$")

    def item_matcher(self) -> Pattern:
        return self.item_prefix_matcher or re.compile("^" + re.escape(self.item_prefix) + "$")

    def proper_case(self, text: str) -> str:
        return text.upper() if self.all_uppercase else text


DYNON_OPTIONS = TextFormatOptions(
    file_extensions=(".txt", ".afd"),
    indent_width=2,
    all_uppercase=True,
    checklist_top_blank_line=True,
    output_metadata=True,
    checklist_prefix="CHKLST{{checklistNum}}.TITLE,",
    checklist_prefix_matcher=re.compile(r"^CHKLST(?P<checklistNum>\d+)\.TITLE"),
    item_prefix="CHKLST{{checklistNum}}.LINE{{itemNum}},",
    item_prefix_matcher=re.compile(r"^CHKLST(?P<checklistNum>\d+)\.LINE(?P<itemNum>\d+)"),
    checklist_zero_indexed=True,
    checklist_item_zero_indexed=False,
)

GRT_OPTIONS = TextFormatOptions(
    file_extensions=(".txt",),
    indent_width=2,
    checklist_prefix="LIST",
    item_prefix="ITEM",
    output_metadata=True,
)


class _TextReader:
    """Single-use parser state for one text buffer"""

    def __init__(self, options: TextFormatOptions):
        self.options = options
        self.checklist_matcher = options.checklist_matcher()
        self.item_matcher = options.item_matcher()
        self.checklist_offset = 0 if options.checklist_zero_indexed else 1
        self.item_offset = 0 if options.checklist_item_zero_indexed else 1

        self.groups: List[ChecklistGroup] = []
        self.group: Optional[ChecklistGroup] = None
        self.checklist: Optional[Checklist] = None
        self.item_seen = False
        self.item_contents = ""
        self.item_indent = 0
        self.item_start_spaces = 0
        self.checklist_count = 0
        self.item_line_count = 0

    def read(self, content: str) -> List[ChecklistGroup]:
        for line_no, line in enumerate(re.split(r"\r?\n", content), start=1):
            if self.options.comment_prefix and line.startswith(self.options.comment_prefix):
                continue
            if not line.strip():
                continue
            self._read_line(line, line_no)
        self._finish_item()
        return self.groups

    def _read_line(self, line: str, line_no: int) -> None:
        prefix, _, contents = line.partition(" ")

        checklist_match = self.checklist_matcher.match(prefix)
        if checklist_match:
            self._finish_item()
            self._start_checklist(contents)
            self._validate_number(checklist_match, "checklistNum",
                                  self.checklist_count - 1 + self.checklist_offset, line)
            return

        item_match = self.item_matcher.match(prefix)
        if item_match:
            if self.checklist is None:
                raise SchemaViolationError("Checklist item found before start of checklist", line=line)
            self._validate_number(item_match, "checklistNum",
                                  self.checklist_count - 1 + self.checklist_offset, line)
            self._validate_number(item_match, "itemNum",
                                  self.item_line_count + self.item_offset, line)
            self._read_item_line(contents)
            self.item_line_count += 1
            return

        logger.warning(f"Skipping unrecognized line {line_no}: {line!r}")

    @staticmethod
    def _validate_number(match, group_name: str, expected: int, line: str) -> None:
        numbers = match.groupdict()
        if numbers.get(group_name) is None:
            return
        actual = int(numbers[group_name])
        if actual != expected:
            raise PositionalValidationError(
                f"Unexpected {group_name} {actual} (expected {expected})", line=line
            )

    def _start_checklist(self, contents: str) -> None:
        options = self.options
        group_title = options.proper_case(TEXT_DEFAULT_FIRST_GROUP)
        checklist_title = contents

        separator = options.group_name_separator
        if separator and (self.groups or not options.skip_first_group):
            group_part, found, title_part = contents.partition(separator)
            if found:
                group_title, checklist_title = group_part, title_part

        if self.group is None or self.group.name != group_title:
            self.group = ChecklistGroup(name=group_title, category=ChecklistGroupCategory.NORMAL)
            self.groups.append(self.group)

        self.checklist = Checklist(name=checklist_title)
        self.group.checklists.append(self.checklist)
        self.checklist_count += 1
        self.item_line_count = 0

    def _read_item_line(self, contents: str) -> None:
        width = self.options.indent_width
        start_spaces = len(contents) - len(contents.lstrip())
        stripped = contents[start_spaces:]

        if self.item_seen and stripped.startswith(TEXT_WRAP_PREFIX):
            # Continuation of a wrapped item
            self.item_contents += " " + stripped[len(TEXT_WRAP_PREFIX):]
            return

        indent = start_spaces // width
        contents = contents[indent * width:]

        self._finish_item()
        self.item_contents = contents
        self.item_indent = indent
        self.item_start_spaces = start_spaces
        self.item_seen = True

    def _finish_item(self) -> None:
        if not self.item_seen or self.checklist is None:
            return
        item = self._item_for_contents(self.item_contents, self.item_indent, self.item_start_spaces)
        # The leading blank line some formats require is not a real item
        if not (self.options.checklist_top_blank_line
                and item.is_space
                and not self.checklist.items):
            self.checklist.items.append(item)
        self.item_contents = ""
        self.item_seen = False

    def _item_for_contents(self, contents: str, indent: int, start_spaces: int) -> ChecklistItem:
        options = self.options
        end_trimmed = contents.rstrip()
        end_spaces = len(contents) - len(end_trimmed)
        centered = end_spaces > 0 and end_spaces == start_spaces
        if centered:
            indent = 0

        prompt = end_trimmed.lstrip()
        response = ""
        title_suffix = options.title_suffix

        if not prompt:
            item_type = ChecklistItemType.NOTE
        elif prompt.startswith(options.note_prefix):
            item_type = ChecklistItemType.NOTE
            prompt = prompt[len(options.note_prefix):]
        elif (prompt.startswith(options.title_prefix_suffix)
              and prompt.endswith(title_suffix)
              and len(prompt) >= len(options.title_prefix_suffix) + len(title_suffix)):
            item_type = ChecklistItemType.TITLE
            prompt = prompt[len(options.title_prefix_suffix):len(prompt) - len(title_suffix)]
        elif prompt.startswith(options.warning_prefix):
            item_type = ChecklistItemType.WARNING
            prompt = prompt[len(options.warning_prefix):]
        elif prompt.startswith(options.caution_prefix):
            item_type = ChecklistItemType.CAUTION
            prompt = prompt[len(options.caution_prefix):]
        else:
            challenge, found, expectation = prompt.partition(options.expectation_separator)
            if found:
                item_type = ChecklistItemType.CHALLENGE_RESPONSE
                prompt, response = challenge, expectation
            else:
                item_type = ChecklistItemType.CHALLENGE_ONLY

        return ChecklistItem(
            type=item_type,
            challenge_text=prompt,
            response_text=response,
            indent=clamp_indent(indent),
            centered=centered,
        )


def _item_text(item: ChecklistItem, options: TextFormatOptions) -> str:
    """The line text an item was classified from, prefixes and separator included"""
    if item.type == ChecklistItemType.NOTE:
        return options.note_prefix + item.challenge_text if item.challenge_text else ""
    if item.type == ChecklistItemType.TITLE:
        return options.title_prefix_suffix + item.challenge_text + options.title_suffix
    if item.type == ChecklistItemType.WARNING:
        return options.warning_prefix + item.challenge_text
    if item.type == ChecklistItemType.CAUTION:
        return options.caution_prefix + item.challenge_text
    if item.type == ChecklistItemType.CHALLENGE_RESPONSE:
        return item.challenge_text + options.expectation_separator + item.response_text
    return item.challenge_text


def _extract_metadata(checklist: Checklist, options: TextFormatOptions) -> ChecklistFileMetadata:
    """Read key/value item pairs from the trailing info checklist; values are taken verbatim"""
    metadata = ChecklistFileMetadata()
    items = checklist.items
    i = 0
    while i < len(items) - 1:
        prompt = items[i].challenge_text
        if prompt == options.proper_case(TEXT_METADATA_MAKE_MODEL_TITLE):
            i += 1
            metadata.make_model = _item_text(items[i], options)
        elif prompt == options.proper_case(TEXT_METADATA_AIRCRAFT_TITLE):
            i += 1
            metadata.aircraft_registration = _item_text(items[i], options)
        elif prompt == options.proper_case(TEXT_METADATA_COPYRIGHT_TITLE):
            i += 1
            metadata.copyright = _item_text(items[i], options)
        elif prompt in (options.proper_case(TEXT_METADATA_FILE_TITLE),
                        options.proper_case(TEXT_METADATA_MANUFACTURER_TITLE)):
            i += 1  # value not part of the model
        i += 1
    return metadata


def read_text(content: str, file_name: str, options: TextFormatOptions,
              format: ChecklistFormat) -> ParsedChecklistFile:
    """
    Parse text checklist content.

    Raises:
        PositionalValidationError: If an embedded number is out of sequence
        SchemaViolationError: If an item appears before any checklist
    """
    name = strip_extension(file_name, *options.file_extensions)
    groups = _TextReader(options).read(content)
    metadata = ChecklistFileMetadata()

    if groups and groups[-1].checklists:
        last_group = groups[-1]
        last_checklist = last_group.checklists[-1]
        if last_checklist.name == options.proper_case(TEXT_METADATA_CHECKLIST_TITLE):
            metadata = _extract_metadata(last_checklist, options)
            last_group.checklists.pop()
            if not last_group.checklists:
                groups.pop()

    logger.info(f"Parsed {format.value} file '{name}' with {len(groups)} groups")
    return ParsedChecklistFile(
        name=metadata.aircraft_registration or name,
        format=format,
        groups=groups,
        metadata=metadata,
    )


class _TextWriter:
    """Accumulates output lines for one file"""

    def __init__(self, options: TextFormatOptions):
        self.options = options
        self.parts: List[str] = []

    def add_part(self, text: str) -> None:
        self.parts.append(self.options.proper_case(text))

    def add_line(self, text: str = "") -> None:
        if text:
            self.add_part(text)
        self.parts.append(CRLF)

    def normalize(self, text: str) -> str:
        return text.replace(",", "") if self.options.forbid_commas else text

    def prefix(self, template: str, checklist_idx: int, item_idx: int) -> str:
        options = self.options
        checklist_num = checklist_idx + (0 if options.checklist_zero_indexed else 1)
        item_num = item_idx + (0 if options.checklist_item_zero_indexed else 1)
        return template.replace(CHECKLIST_NUM, str(checklist_num)).replace(ITEM_NUM, str(item_num))

    def item_prefix(self, checklist_idx: int, item_idx: int) -> str:
        return self.prefix(self.options.item_prefix, checklist_idx, item_idx)

    def write_checklist_header(self, checklist_idx: int, title: str) -> None:
        self.add_line()
        self.add_part(self.prefix(self.options.checklist_prefix, checklist_idx, 0))
        self.add_part(" ")
        self.add_line(title)

    def write_items(self, items: List[ChecklistItem], checklist_idx: int) -> None:
        options = self.options
        item_idx = 0
        if options.checklist_top_blank_line:
            self.add_line(self.item_prefix(checklist_idx, item_idx))
            item_idx += 1

        for item in items:
            item_idx = self.write_item(item, checklist_idx, item_idx)

    def write_item(self, item: ChecklistItem, checklist_idx: int, item_idx: int) -> int:
        """
        Write one item over as many numbered lines as max_line_length needs.
        Lines break at the last space before the limit. A word longer than
        the limit is cut at the limit instead, and reading it back joins the
        pieces with a space, so such a word gains one space per cut.

        Returns:
            int: The next free item line number
        """
        options = self.options
        prefix = suffix = ""
        is_space = item.is_space

        if item.type == ChecklistItemType.TITLE:
            prefix, suffix = options.title_prefix_suffix, options.title_suffix
        elif item.type == ChecklistItemType.WARNING:
            prefix = options.warning_prefix
        elif item.type == ChecklistItemType.CAUTION:
            prefix = options.caution_prefix
        elif item.type == ChecklistItemType.NOTE and not is_space:
            prefix = options.note_prefix

        full_line = prefix + self.normalize(item.challenge_text)
        if item.type == ChecklistItemType.CHALLENGE_RESPONSE and item.response_text:
            full_line += options.expectation_separator + self.normalize(item.response_text)
        full_line += suffix

        max_length = options.max_line_length
        if is_space:
            indent_width = 0
        elif item.centered:
            if max_length and len(full_line) < max_length:
                indent_width = (max_length - len(full_line)) // 2
            else:
                indent_width = TEXT_CENTER_FALLBACK_INDENT
        else:
            indent_width = item.indent * options.indent_width
        indent = " " * indent_width

        remaining = full_line
        wrapped = False
        while True:
            self.add_part(self.item_prefix(checklist_idx, item_idx))
            item_idx += 1
            if not is_space:
                self.add_part(" ")
            self.add_part(indent)

            wrap_width = 0
            if wrapped:
                wrap_width = len(TEXT_WRAP_PREFIX)
                self.add_part(TEXT_WRAP_PREFIX)

            if max_length:
                max_content = max(1, max_length - indent_width - wrap_width)
                if len(remaining) > max_content:
                    wrap_idx = remaining.rfind(" ", 0, max_content)
                    if wrap_idx <= 0:
                        # No usable space: hard break at the limit
                        self.add_line(remaining[:max_content])
                        remaining = remaining[max_content:]
                    else:
                        self.add_line(remaining[:wrap_idx])
                        remaining = remaining[wrap_idx + 1:]
                    wrapped = True
                    continue

            self.add_part(remaining)
            if item.centered:
                self.add_part(indent)
            self.add_line()
            return item_idx

    def write_metadata(self, file: ParsedChecklistFile, checklist_idx: int) -> None:
        options = self.options
        self.write_checklist_header(checklist_idx, TEXT_METADATA_CHECKLIST_TITLE)

        item_idx = 0
        if options.checklist_top_blank_line:
            self.add_line(self.item_prefix(checklist_idx, item_idx))
            item_idx += 1

        pairs = [(TEXT_METADATA_FILE_TITLE, file.name)]
        if file.metadata.make_model:
            pairs.append((TEXT_METADATA_MAKE_MODEL_TITLE, file.metadata.make_model))
        if file.metadata.aircraft_registration:
            pairs.append((TEXT_METADATA_AIRCRAFT_TITLE, file.metadata.aircraft_registration))
        if file.metadata.copyright:
            pairs.append((TEXT_METADATA_COPYRIGHT_TITLE, file.metadata.copyright))

        for title, value in pairs:
            self.add_part(self.item_prefix(checklist_idx, item_idx))
            self.add_part(" ")
            self.add_line(title)
            self.add_part(self.item_prefix(checklist_idx, item_idx + 1))
            self.add_part("   ")
            self.add_line(self.normalize(value))
            item_idx += 2

        self.add_line(self.item_prefix(checklist_idx, item_idx))
        item_idx += 1

        self.add_part(self.item_prefix(checklist_idx, item_idx))
        self.add_part(" ")
        self.add_part("Last updated ")
        self.add_line(datetime.date.today().isoformat())


def write_text(file: ParsedChecklistFile, options: TextFormatOptions) -> str:
    """Serialize the checklist model into text checklist content"""
    writer = _TextWriter(options)
    writer.add_line(TEXT_HEADER_COMMENT)

    checklist_idx = 0
    first_group = True
    for group in file.groups:
        for checklist in group.checklists:
            title = writer.normalize(checklist.name)
            if options.group_name_separator and (not first_group or not options.skip_first_group):
                title = writer.normalize(group.name) + options.group_name_separator + title
            writer.write_checklist_header(checklist_idx, title)
            writer.write_items(checklist.items, checklist_idx)
            checklist_idx += 1
        first_group = False

    if options.output_metadata:
        writer.write_metadata(file, checklist_idx)

    logger.debug(f"Wrote {checklist_idx} checklists as text")
    return "".join(writer.parts)


class TextCodec(SyncCodec):
    """A text checklist format bound to its options"""

    def __init__(self, format: ChecklistFormat, options: TextFormatOptions):
        self.format = format
        self.options = options

    def parse(self, content: bytes, file_name: str) -> ParsedChecklistFile:
        text = bytes(content).decode("utf-8", errors="replace")
        return read_text(text, file_name, self.options, self.format)

    def serialize(self, file: ParsedChecklistFile) -> str:
        return write_text(file, self.options)


def create_dynon_codec(options: TextFormatOptions = DYNON_OPTIONS) -> TextCodec:
    """Dynon / AFS SkyView text codec (.txt, .afd)"""
    return TextCodec(ChecklistFormat.AFS_DYNON, options)


def create_grt_codec(options: TextFormatOptions = GRT_OPTIONS) -> TextCodec:
    """GRT (Grand Rapids Technology) text codec (.txt)"""
    return TextCodec(ChecklistFormat.GRT, options)
