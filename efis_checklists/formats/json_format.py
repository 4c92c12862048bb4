"""
JSON checklist codec.

Reads the tool's own schema and the legacy third-party schema
(groups with "title", items with "prompt"/"expectation" and ITEM_* types).
Always writes the tool's own schema.
"""

import json
import logging
import math
from typing import Any, Dict, List

from .base import SyncCodec, strip_extension
from ..data.models import (
    Checklist, ChecklistFileMetadata, ChecklistFormat, ChecklistGroup,
    ChecklistGroupCategory, ChecklistItem, ChecklistItemType, ParsedChecklistFile,
    clamp_indent,
)
from ..data.errors import SchemaViolationError
from ..config.constants import JSON_EXTENSION

logger = logging.getLogger("efis_checklists.formats.json")

LEGACY_TYPE_PREFIX = "ITEM_"

LEGACY_TYPE_MAP: Dict[str, ChecklistItemType] = {
    "ITEM_CHALLENGE_RESPONSE": ChecklistItemType.CHALLENGE_RESPONSE,
    "ITEM_CHALLENGE": ChecklistItemType.CHALLENGE_ONLY,
    "ITEM_TITLE": ChecklistItemType.TITLE,
    "ITEM_PLAINTEXT": ChecklistItemType.NOTE,
    "ITEM_NOTE": ChecklistItemType.NOTE,
    "ITEM_WARNING": ChecklistItemType.WARNING,
    "ITEM_CAUTION": ChecklistItemType.CAUTION,
    "ITEM_SPACE": ChecklistItemType.NOTE,
}


def _loads(content: bytes) -> Any:
    try:
        return json.loads(bytes(content).decode("utf-8"))
    except UnicodeDecodeError as e:
        raise SchemaViolationError(f"JSON: content is not UTF-8: {e}", offset=e.start) from e
    except json.JSONDecodeError as e:
        raise SchemaViolationError(f"JSON: invalid JSON: {e.msg}", offset=e.pos) from e


def _objects(value: Any, what: str) -> List[Dict[str, Any]]:
    """A missing list reads as empty; anything else must be a list of objects"""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(entry, dict) for entry in value):
        raise SchemaViolationError(f"JSON: {what} must be a list of objects")
    return value


def _text(value: Any, what: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SchemaViolationError(f"JSON: {what} must be a string")
    return value


def _indent(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaViolationError(f"JSON: indent must be a number, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise SchemaViolationError(f"JSON: indent must be finite, got {value!r}")
    return clamp_indent(value)


def _is_legacy_item(raw_item: Dict[str, Any]) -> bool:
    item_type = raw_item.get("type")
    return isinstance(item_type, str) and item_type.startswith(LEGACY_TYPE_PREFIX)


def is_legacy_schema(raw: Dict[str, Any]) -> bool:
    """
    Whether a decoded file uses the legacy schema: some group has a
    "title" but no "name", or some item has an ITEM_* type.
    """
    groups = raw.get("groups")
    if not isinstance(groups, list):
        return False
    for group in groups:
        if not isinstance(group, dict):
            continue
        if isinstance(group.get("title"), str) and "name" not in group:
            return True
        checklists = group.get("checklists")
        if not isinstance(checklists, list):
            continue
        for checklist in checklists:
            if not isinstance(checklist, dict) or not isinstance(checklist.get("items"), list):
                continue
            if any(isinstance(item, dict) and _is_legacy_item(item) for item in checklist["items"]):
                return True
    return False


def _own_item(raw_item: Dict[str, Any]) -> ChecklistItem:
    raw_type = raw_item.get("type", ChecklistItemType.CHALLENGE_RESPONSE.value)
    try:
        item_type = ChecklistItemType(raw_type)
    except ValueError:
        raise SchemaViolationError(f"JSON: unknown item type {raw_type!r}") from None
    return ChecklistItem(
        type=item_type,
        challenge_text=_text(raw_item.get("challengeText"), "challengeText"),
        response_text=_text(raw_item.get("responseText"), "responseText"),
        indent=_indent(raw_item.get("indent")),
        centered=bool(raw_item.get("centered", False)),
        collapsible=bool(raw_item.get("collapsible", False)),
    )


def _legacy_item(raw_item: Dict[str, Any]) -> ChecklistItem:
    raw_type = raw_item.get("type")
    item_type = LEGACY_TYPE_MAP.get(raw_type)
    if item_type is None:
        logger.warning(f"Unknown legacy item type {raw_type!r}, reading it as challenge/response")
        item_type = ChecklistItemType.CHALLENGE_RESPONSE
    return ChecklistItem(
        type=item_type,
        challenge_text=_text(raw_item.get("prompt"), "prompt"),
        response_text=_text(raw_item.get("expectation"), "expectation"),
        indent=_indent(raw_item.get("indent")),
        centered=bool(raw_item.get("centered", False)),
    )


def _any_item(raw_item: Dict[str, Any]) -> ChecklistItem:
    """Read an item of either schema, judged per item"""
    if _is_legacy_item(raw_item) or "prompt" in raw_item or "expectation" in raw_item:
        return _legacy_item(raw_item)
    return _own_item(raw_item)


def _category(value: Any) -> ChecklistGroupCategory:
    if value is None:
        return ChecklistGroupCategory.NORMAL
    try:
        return ChecklistGroupCategory(value)
    except ValueError:
        raise SchemaViolationError(f"JSON: unknown group category {value!r}") from None


def _read_groups(raw: Dict[str, Any], legacy: bool) -> List[ChecklistGroup]:
    name_key = "title" if legacy else "name"
    read_item = _legacy_item if legacy else _own_item

    groups: List[ChecklistGroup] = []
    for raw_group in _objects(raw.get("groups"), "groups"):
        group = ChecklistGroup(
            name=_text(raw_group.get(name_key), f"group {name_key}"),
            category=_category(raw_group.get("category")),
        )
        for raw_checklist in _objects(raw_group.get("checklists"), "checklists"):
            group.checklists.append(Checklist(
                name=_text(raw_checklist.get(name_key), f"checklist {name_key}"),
                items=[read_item(raw_item) for raw_item in _objects(raw_checklist.get("items"), "items")],
            ))
        groups.append(group)
    return groups


def _read_metadata(raw: Dict[str, Any], legacy: bool) -> ChecklistFileMetadata:
    raw_metadata = raw.get("metadata")
    if raw_metadata is None:
        return ChecklistFileMetadata()
    if not isinstance(raw_metadata, dict):
        raise SchemaViolationError("JSON: metadata must be an object")
    if legacy:
        return ChecklistFileMetadata(
            aircraft_registration=_text(raw_metadata.get("aircraftInfo"), "aircraftInfo"),
            make_model=_text(raw_metadata.get("makeAndModel"), "makeAndModel"),
            copyright=_text(raw_metadata.get("copyrightInfo"), "copyrightInfo"),
        )
    return ChecklistFileMetadata(
        aircraft_registration=_text(raw_metadata.get("aircraftRegistration"), "aircraftRegistration"),
        make_model=_text(raw_metadata.get("makeModel"), "makeModel"),
        copyright=_text(raw_metadata.get("copyright"), "copyright"),
    )


class JsonCodec(SyncCodec):
    """JSON codec for the own and legacy schemas"""

    format = ChecklistFormat.JSON

    def parse(self, content: bytes, file_name: str) -> ParsedChecklistFile:
        """
        Parse a JSON buffer, detecting the schema.

        Raises:
            SchemaViolationError: If the JSON is invalid or has the wrong shape
        """
        raw = _loads(content)
        if not isinstance(raw, dict):
            raise SchemaViolationError("JSON: top level must be an object")

        legacy = is_legacy_schema(raw)
        default_name = strip_extension(file_name, f".{JSON_EXTENSION}")
        if legacy:
            raw_metadata = raw.get("metadata")
            name = raw_metadata.get("name") if isinstance(raw_metadata, dict) else None
        else:
            name = raw.get("name")

        parsed = ParsedChecklistFile(
            name=_text(name, "name") or default_name,
            format=ChecklistFormat.JSON,
            groups=_read_groups(raw, legacy),
            metadata=_read_metadata(raw, legacy),
        )
        logger.info(f"Parsed {'legacy ' if legacy else ''}JSON file '{parsed.name}' "
                    f"with {len(parsed.groups)} groups")
        return parsed

    def serialize(self, file: ParsedChecklistFile) -> str:
        """Serialize to the own schema, without runtime-only fields"""
        return json.dumps(file.to_dict(), indent=2)

    def extract_checklists(self, content: bytes, file_name: str) -> List[Checklist]:
        """
        Extract checklists from a JSON buffer for import into another file.

        Accepts a full file of either schema (all checklists, in order) or a
        standalone checklist object with an "items" list.

        Raises:
            SchemaViolationError: If the content is neither
        """
        raw = _loads(content)
        if isinstance(raw, dict) and isinstance(raw.get("groups"), list):
            parsed = self.parse(content, file_name)
            return [checklist for _, checklist in parsed.iter_checklists()]

        if isinstance(raw, dict) and isinstance(raw.get("items"), list):
            name = raw.get("name")
            if name is None:
                name = raw.get("title")
            if name is None:
                name = strip_extension(file_name, f".{JSON_EXTENSION}")
            checklist = Checklist(
                name=_text(name, "name"),
                items=[_any_item(raw_item) for raw_item in _objects(raw["items"], "items")],
            )
            return [checklist]

        raise SchemaViolationError(
            "JSON: expected a file with groups/checklists or a standalone checklist with items"
        )
