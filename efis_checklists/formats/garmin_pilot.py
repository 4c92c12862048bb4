"""
Garmin Pilot checklist codec (.gplt).

A .gplt file is a gzip-compressed tar archive holding one entry,
content.json. Checklists reference their items by UUID. Garmin's
(type, subtype) pairs map onto our (category, group title) pairs, and
"live data" items, which carry no text, are kept as challenge/response
items whose response is a fixed token such as %LOCAL_ALTIMETER%.
"""

import asyncio
import io
import json
import logging
import tarfile
import time
import uuid
import zlib
from typing import Any, Dict, List, Optional, Tuple

from .base import AsyncCodec, strip_extension
from .format_utils import get_item_type_prefix, multiline_note_to_items, should_merge_notes, text_field
from ..data.models import (
    Checklist, ChecklistFileMetadata, ChecklistFormat, ChecklistGroup,
    ChecklistGroupCategory, ChecklistItem, ChecklistItemType, ParsedChecklistFile,
)
from ..data.errors import MalformedHeaderError, SchemaViolationError
from ..config.constants import (
    GARMIN_PILOT_CONTAINER_TYPE, GARMIN_PILOT_CONTENT_FILENAME, GARMIN_PILOT_DATA_MODEL_VERSION,
    GARMIN_PILOT_EXTENSION, GARMIN_PILOT_PACKAGE_TYPE_VERSION,
)

logger = logging.getLogger("efis_checklists.formats.garmin_pilot")

# Checklist types
GP_TYPE_NORMAL = 0
GP_TYPE_ABNORMAL = 1
GP_TYPE_EMERGENCY = 2

# Checklist subtypes
GP_SUBTYPE_PREFLIGHT = 0
GP_SUBTYPE_TAKEOFF_CRUISE = 1
GP_SUBTYPE_LANDING = 2
GP_SUBTYPE_OTHER = 3
GP_SUBTYPE_EMERGENCY = 4

# Item types
GP_ITEM_PLAIN_TEXT = 0
GP_ITEM_NOTE = 1
GP_ITEM_LOCAL_ALTIMETER = 2
GP_ITEM_OPEN_NEAREST = 3
GP_ITEM_OPEN_ATIS_SCRATCHPAD = 4
GP_ITEM_OPEN_CRAFT_SCRATCHPAD = 5
GP_ITEM_WEATHER_FREQUENCY = 6
GP_ITEM_CLEARANCE_FREQUENCY = 7
GP_ITEM_GROUND_CTAF_FREQUENCY = 8
GP_ITEM_TOWER_CTAF_FREQUENCY = 9
GP_ITEM_APPROACH_FREQUENCY = 10
GP_ITEM_CENTER_FREQUENCY = 11

# Checklist completion actions
GP_ACTION_DO_NOTHING = 0
GP_ACTION_NEXT_CHECKLIST = 1
GP_ACTION_OPEN_FLIGHT_PLAN = 2
GP_ACTION_CLOSE_FLIGHT_PLAN = 3
GP_ACTION_OPEN_SAFETAXI = 4
GP_ACTION_OPEN_MAP = 5

GarminGroupKey = Tuple[int, int]
EfisGroupKey = Tuple[ChecklistGroupCategory, str]

GROUP_MAPPING: List[Tuple[GarminGroupKey, EfisGroupKey]] = [
    ((GP_TYPE_NORMAL, GP_SUBTYPE_PREFLIGHT), (ChecklistGroupCategory.NORMAL, "Preflight")),
    ((GP_TYPE_NORMAL, GP_SUBTYPE_TAKEOFF_CRUISE), (ChecklistGroupCategory.NORMAL, "Takeoff/Cruise")),
    ((GP_TYPE_NORMAL, GP_SUBTYPE_LANDING), (ChecklistGroupCategory.NORMAL, "Landing")),
    ((GP_TYPE_NORMAL, GP_SUBTYPE_OTHER), (ChecklistGroupCategory.NORMAL, "Other")),
    ((GP_TYPE_ABNORMAL, GP_SUBTYPE_EMERGENCY), (ChecklistGroupCategory.ABNORMAL, "Abnormal")),
    ((GP_TYPE_EMERGENCY, GP_SUBTYPE_EMERGENCY), (ChecklistGroupCategory.EMERGENCY, "Emergency")),
]

GARMIN_TO_EFIS: Dict[GarminGroupKey, EfisGroupKey] = dict(GROUP_MAPPING)
EFIS_TO_GARMIN: Dict[EfisGroupKey, GarminGroupKey] = {efis: garmin for garmin, efis in GROUP_MAPPING}

# Fallback Garmin key for groups whose title is not one of Garmin's
CATEGORY_DEFAULT_KEYS: Dict[ChecklistGroupCategory, GarminGroupKey] = {
    ChecklistGroupCategory.NORMAL: (GP_TYPE_NORMAL, GP_SUBTYPE_OTHER),
    ChecklistGroupCategory.ABNORMAL: (GP_TYPE_ABNORMAL, GP_SUBTYPE_EMERGENCY),
    ChecklistGroupCategory.EMERGENCY: (GP_TYPE_EMERGENCY, GP_SUBTYPE_EMERGENCY),
}

# Live data item type -> (token, example of what Garmin Pilot displays)
LIVE_DATA_TO_TOKEN: Dict[int, Tuple[str, str]] = {
    GP_ITEM_LOCAL_ALTIMETER: ("%LOCAL_ALTIMETER%", "1025.0HPA ETNG (14NM)"),
    GP_ITEM_OPEN_NEAREST: ("%OPEN_NEAREST%", "<Open NRST>"),
    GP_ITEM_OPEN_ATIS_SCRATCHPAD: ("%OPEN_ATIS_SCRATCHPAD%", "<ATIS ScratchPad>"),
    GP_ITEM_OPEN_CRAFT_SCRATCHPAD: ("%OPEN_CRAFT_SCRATCHPAD%", "<CRAFT ScratchPad>"),
    GP_ITEM_WEATHER_FREQUENCY: ("%WEATHER_FREQUENCY%", "123.45 ETNG (14NM)"),
    GP_ITEM_CLEARANCE_FREQUENCY: ("%CLEARANCE_FREQUENCY%", "121.83 EHBK (24NM)"),
    GP_ITEM_GROUND_CTAF_FREQUENCY: ("%GROUND_CTAF_FREQUENCY%", "123.525/129.875 EDKA (10NM)"),
    GP_ITEM_TOWER_CTAF_FREQUENCY: ("%TOWER_CTAF_FREQUENCY%", "129.875/123.525 EDKA (10NM)"),
    GP_ITEM_APPROACH_FREQUENCY: ("%APPROACH_FREQUENCY%", "120.205/123.875 EHBK (24NM)"),
    GP_ITEM_CENTER_FREQUENCY: ("%CENTER_FREQUENCY%", "122.835/125.98/126.115 BRUSSELS (24NM)"),
}

TOKEN_TO_LIVE_DATA: Dict[str, int] = {token: item_type for item_type, (token, _) in LIVE_DATA_TO_TOKEN.items()}


def get_live_data_token(item_type: int) -> str:
    """Token string for a live data item type"""
    try:
        return LIVE_DATA_TO_TOKEN[item_type][0]
    except KeyError:
        raise SchemaViolationError(f"Garmin Pilot: unsupported live data type {item_type}") from None


def get_live_data_type(response_text: str) -> Optional[int]:
    """Live data item type for an exact token match, or None"""
    return TOKEN_TO_LIVE_DATA.get(response_text)


def garmin_group_key_to_efis(key: GarminGroupKey) -> EfisGroupKey:
    """Convert a Garmin (type, subtype) key to (category, group title)"""
    try:
        return GARMIN_TO_EFIS[key]
    except KeyError:
        raise SchemaViolationError(f"Garmin Pilot: unsupported checklist type/subtype {key}") from None


def efis_group_key_to_garmin(key: EfisGroupKey) -> GarminGroupKey:
    """Convert (category, group title) to a Garmin (type, subtype) key"""
    garmin = EFIS_TO_GARMIN.get(key)
    if garmin is not None:
        return garmin
    return CATEGORY_DEFAULT_KEYS.get(key[0], (GP_TYPE_NORMAL, GP_SUBTYPE_OTHER))


def is_supported_container(container: Any) -> bool:
    """Whether a decoded content.json has the structure we understand"""
    return (
        isinstance(container, dict)
        and container.get("dataModelVersion") == GARMIN_PILOT_DATA_MODEL_VERSION
        and container.get("packageTypeVersion") == GARMIN_PILOT_PACKAGE_TYPE_VERSION
        and container.get("type") == GARMIN_PILOT_CONTAINER_TYPE
        and isinstance(container.get("objects"), list)
        and len(container["objects"]) == 1
    )


def _read_archive(content: bytes) -> bytes:
    """Return content.json from a .gplt archive"""
    try:
        with tarfile.open(fileobj=io.BytesIO(content), mode="r:gz") as archive:
            for member in archive.getmembers():
                if member.isfile() and member.name.lstrip("./") == GARMIN_PILOT_CONTENT_FILENAME:
                    extracted = archive.extractfile(member)
                    if extracted is not None:
                        return extracted.read()
    except (tarfile.TarError, zlib.error, EOFError, OSError) as e:
        raise SchemaViolationError(f"Garmin Pilot: not a valid tar.gz archive: {e}") from e
    raise SchemaViolationError(f"Garmin Pilot: {GARMIN_PILOT_CONTENT_FILENAME} not found in archive")


def _write_archive(data: bytes) -> bytes:
    """Pack data as the single content.json entry of a .gplt archive"""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        info = tarfile.TarInfo(name=GARMIN_PILOT_CONTENT_FILENAME)
        info.size = len(data)
        info.mtime = int(time.time())
        archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def _convert_checklist_item(gp_item: Dict[str, Any]) -> List[ChecklistItem]:
    item_type = gp_item.get("itemType")
    title = text_field(gp_item, "title", "Garmin Pilot")
    action = text_field(gp_item, "action", "Garmin Pilot")
    result: List[ChecklistItem] = []

    if item_type == GP_ITEM_PLAIN_TEXT:
        if action:
            result.append(ChecklistItem(
                type=ChecklistItemType.CHALLENGE_RESPONSE, challenge_text=title, response_text=action,
            ))
        else:
            result.append(ChecklistItem(type=ChecklistItemType.CHALLENGE_ONLY, challenge_text=title))
    elif item_type == GP_ITEM_NOTE:
        # A note with neither title nor action is an empty spacer
        if title:
            result.append(ChecklistItem(type=ChecklistItemType.TITLE, challenge_text=title))
        if action:
            result.extend(multiline_note_to_items(action, standalone=not title))
    elif item_type in LIVE_DATA_TO_TOKEN:
        result.append(ChecklistItem(
            type=ChecklistItemType.CHALLENGE_RESPONSE,
            challenge_text=title,
            response_text=get_live_data_token(item_type),
        ))
    else:
        logger.warning(f"Skipping Garmin Pilot item with unknown type {item_type!r}")

    return result


def _convert_groups(objects: Dict[str, Any]) -> List[ChecklistGroup]:
    gp_items = objects.get("checklistItems", [])
    gp_checklists = objects.get("checklists", [])
    if not isinstance(gp_items, list) or not isinstance(gp_checklists, list):
        raise SchemaViolationError("Garmin Pilot: checklists and checklistItems must be lists")

    items_by_uuid: Dict[str, List[ChecklistItem]] = {}
    for gp_item in gp_items:
        if not isinstance(gp_item, dict) or not isinstance(gp_item.get("uuid"), str):
            raise SchemaViolationError("Garmin Pilot: checklist item without uuid")
        items_by_uuid[gp_item["uuid"]] = _convert_checklist_item(gp_item)

    ungrouped: List[Tuple[GarminGroupKey, Checklist]] = []
    for gp_checklist in gp_checklists:
        if not isinstance(gp_checklist, dict):
            raise SchemaViolationError("Garmin Pilot: checklist must be an object")
        try:
            key = (int(gp_checklist["type"]), int(gp_checklist["subtype"]))
        except (KeyError, TypeError, ValueError, OverflowError):
            raise SchemaViolationError(
                f"Garmin Pilot: checklist {gp_checklist.get('name')!r} has no valid type/subtype"
            ) from None

        item_uuids = gp_checklist.get("checklistItems", [])
        if not isinstance(item_uuids, list) or not all(isinstance(u, str) for u in item_uuids):
            raise SchemaViolationError("Garmin Pilot: checklistItems must be a list of uuids")

        checklist = Checklist(name=text_field(gp_checklist, "name", "Garmin Pilot"))
        for item_uuid in item_uuids:
            # Each model item list is copied so a shared uuid cannot alias items
            for item in items_by_uuid.get(item_uuid, []):
                checklist.items.append(ChecklistItem(
                    type=item.type,
                    challenge_text=item.challenge_text,
                    response_text=item.response_text,
                    indent=item.indent,
                ))
        ungrouped.append((key, checklist))

    # Sort by raw Garmin key so merged groups are filled deterministically
    ungrouped.sort(key=lambda entry: entry[0])

    grouped: Dict[EfisGroupKey, ChecklistGroup] = {}
    for garmin_key, checklist in ungrouped:
        category, title = garmin_group_key_to_efis(garmin_key)
        group = grouped.get((category, title))
        if group is None:
            group = ChecklistGroup(name=title, category=category)
            grouped[(category, title)] = group
        group.checklists.append(checklist)

    return list(grouped.values())


def _convert_items(items: List[ChecklistItem]) -> List[Dict[str, Any]]:
    """Build Garmin Pilot items, folding notes into a preceding title"""
    acc: List[Tuple[Dict[str, Any], ChecklistItem]] = []

    for item in items:
        gp_item: Dict[str, Any] = {
            "checked": False,
            "itemType": GP_ITEM_PLAIN_TEXT,
            "title": item.challenge_text,
            "uuid": str(uuid.uuid4()),
            "action": item.response_text,
        }
        acc.append((gp_item, item))

        if item.type == ChecklistItemType.CHALLENGE_RESPONSE:
            live_type = get_live_data_type(item.response_text)
            if live_type is not None:
                gp_item["itemType"] = live_type
                gp_item["action"] = ""
        elif item.type == ChecklistItemType.CHALLENGE_ONLY:
            gp_item["action"] = ""
        elif item.type == ChecklistItemType.TITLE:
            gp_item["itemType"] = GP_ITEM_NOTE
            gp_item["action"] = ""
        else:
            gp_item["itemType"] = GP_ITEM_NOTE
            gp_item["title"] = ""
            text = get_item_type_prefix(item.type) + item.challenge_text

            previous = acc[-2] if len(acc) >= 2 else None
            if previous and should_merge_notes(item, previous[1], [ChecklistItemType.TITLE]):
                last_gp = previous[0]
                last_gp["action"] = f"{last_gp['action']}\n{text}" if last_gp["action"] else text
                acc.pop()
            else:
                gp_item["action"] = text

    return [gp_item for gp_item, _ in acc]


def _build_container(file: ParsedChecklistFile) -> Dict[str, Any]:
    # Checklists grouped by Garmin key, keys in first-seen order
    checklists_by_key: Dict[GarminGroupKey, List[Dict[str, Any]]] = {}
    all_items: List[Dict[str, Any]] = []

    for group in file.groups:
        garmin_type, subtype = efis_group_key_to_garmin((group.category, group.name))
        entries = checklists_by_key.setdefault((garmin_type, subtype), [])
        for checklist in group.checklists:
            items = _convert_items(checklist.items)
            all_items.extend(items)
            entries.append({
                "completionItem": GP_ACTION_NEXT_CHECKLIST,
                "uuid": str(uuid.uuid4()),
                "checklistItems": [item["uuid"] for item in items],
                "name": checklist.name,
                "type": garmin_type,
                "subtype": subtype,
            })

    all_checklists = [entry for entries in checklists_by_key.values() for entry in entries]

    return {
        "dataModelVersion": GARMIN_PILOT_DATA_MODEL_VERSION,
        "packageTypeVersion": GARMIN_PILOT_PACKAGE_TYPE_VERSION,
        "name": file.name,
        "type": GARMIN_PILOT_CONTAINER_TYPE,
        "objects": [
            {
                "checklists": all_checklists,
                "binders": [
                    {
                        "uuid": str(uuid.uuid4()),
                        "sortOrder": 0,
                        "name": file.name,
                        "checklists": [entry["uuid"] for entry in all_checklists],
                    }
                ],
                "checklistItems": all_items,
                "version": 0,
            }
        ],
    }


def read_garmin_pilot(content: bytes, file_name: str) -> ParsedChecklistFile:
    """
    Parse a .gplt buffer synchronously.

    Raises:
        SchemaViolationError: If the archive or its JSON has the wrong shape
        MalformedHeaderError: If the container type or versions are unknown
    """
    data = _read_archive(bytes(content))
    try:
        container = json.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise SchemaViolationError(f"Garmin Pilot: content.json is not UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise SchemaViolationError(f"Garmin Pilot: invalid JSON: {e.msg}", offset=e.pos) from e

    if not is_supported_container(container):
        raise MalformedHeaderError("Garmin Pilot: unsupported container format")

    objects = container["objects"][0]
    if not isinstance(objects, dict):
        raise SchemaViolationError("Garmin Pilot: objects entry must be an object")
    groups = _convert_groups(objects)
    name = (text_field(container, "name", "Garmin Pilot")
            or strip_extension(file_name, f".{GARMIN_PILOT_EXTENSION}"))

    logger.info(f"Parsed Garmin Pilot file '{name}' with {len(groups)} groups")
    return ParsedChecklistFile(
        name=name,
        format=ChecklistFormat.GPLT,
        groups=groups,
        metadata=ChecklistFileMetadata(),
    )


def write_garmin_pilot(file: ParsedChecklistFile) -> bytes:
    """Serialize to .gplt bytes synchronously"""
    container = _build_container(file)
    return _write_archive(json.dumps(container, indent=2).encode("utf-8"))


class GarminPilotCodec(AsyncCodec):
    """Garmin Pilot codec; archive work runs in the default executor"""

    format = ChecklistFormat.GPLT

    async def parse(self, content: bytes, file_name: str) -> ParsedChecklistFile:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, read_garmin_pilot, content, file_name)

    async def serialize(self, file: ParsedChecklistFile) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, write_garmin_pilot, file)
