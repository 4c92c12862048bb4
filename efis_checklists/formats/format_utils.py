"""
Helpers shared by formats that fold notes into neighbouring items
(ForeFlight, Garmin Pilot).
"""

from typing import Any, Dict, List, Sequence, Tuple

from ..data.models import ChecklistItem, ChecklistItemType
from ..data.errors import SchemaViolationError

# Prefix for note-like item types
ITEM_TYPE_PREFIXES: Dict[ChecklistItemType, str] = {
    ChecklistItemType.NOTE: "NOTE: ",
    ChecklistItemType.CAUTION: "CAUTION: ",
    ChecklistItemType.WARNING: "WARNING: ",
}

NOTE_LIKE_TYPES = tuple(ITEM_TYPE_PREFIXES)

DEFAULT_TITLE_LIKE_TYPES = (
    ChecklistItemType.TITLE,
    ChecklistItemType.CHALLENGE_RESPONSE,
)


def get_item_type_prefix(item_type: ChecklistItemType) -> str:
    """Get the text prefix for a note-like item type, or an empty string"""
    return ITEM_TYPE_PREFIXES.get(item_type, "")


def prompt_to_partial_item(prompt: str) -> Tuple[ChecklistItemType, str]:
    """
    Detect a type prefix such as "NOTE: " at the start of a prompt.

    Returns:
        Tuple[ChecklistItemType, str]: The detected type (NOTE when no prefix
        matches) and the prompt without its prefix
    """
    for item_type, prefix in ITEM_TYPE_PREFIXES.items():
        if prompt.startswith(prefix):
            return item_type, prompt[len(prefix):]
    return ChecklistItemType.NOTE, prompt


def multiline_note_to_items(text: str, standalone: bool) -> List[ChecklistItem]:
    """
    Split possibly multi-line note text into separate items.

    A standalone single-line note keeps indent 0. Multi-line notes and notes
    attached to another item are indented one level.
    """
    lines = text.replace("\r\n", "\n").split("\n")
    indent = 1 if len(lines) > 1 or not standalone else 0
    items = []
    for line in lines:
        item_type, prompt = prompt_to_partial_item(line)
        items.append(ChecklistItem(type=item_type, challenge_text=prompt, indent=indent))
    return items


def should_merge_notes(item: ChecklistItem,
                       last_item: ChecklistItem,
                       title_like_types: Sequence[ChecklistItemType] = DEFAULT_TITLE_LIKE_TYPES) -> bool:
    """
    Whether a note-like item should be folded into the previous item.

    It merges when the previous item is title-like and shallower, or when the
    previous item is itself an indented note-like item no deeper than this one.
    """
    return (
        (last_item.type in title_like_types and last_item.indent < item.indent)
        or (last_item.type in NOTE_LIKE_TYPES
            and last_item.indent <= item.indent
            and last_item.indent >= 1)
    )


def text_field(record: Dict[str, Any], key: str, context: str) -> str:
    """
    A string field of a decoded JSON object. A missing or null field reads
    as empty; any other non-string value raises SchemaViolationError.
    """
    value = record.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SchemaViolationError(f"{context}: {key} must be a string, got {value!r}")
    return value
