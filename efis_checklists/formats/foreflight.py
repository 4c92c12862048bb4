"""
ForeFlight checklist codec (.fmd).

The file is AES-128-CBC encrypted JSON: a random 16 byte IV followed by
the ciphertext. The key is a fixed value shipped by the vendor.

ForeFlight nests group -> subgroup -> checklist -> items and attaches
notes to the item they follow, so note-like items are folded into the
preceding item on write and split back out on read.
"""

import json
import logging
import os
import uuid
from typing import Any, Dict, List, Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .base import SyncCodec, strip_extension
from .format_utils import get_item_type_prefix, multiline_note_to_items, should_merge_notes, text_field
from ..data.models import (
    Checklist, ChecklistFileMetadata, ChecklistFormat, ChecklistGroup,
    ChecklistGroupCategory, ChecklistItem, ChecklistItemType, ParsedChecklistFile,
)
from ..data.errors import (
    DecryptionError, MalformedHeaderError, SchemaViolationError, TruncatedInputError,
)
from ..config.constants import (
    FOREFLIGHT_BLOCK_SIZE, FOREFLIGHT_CONTAINER_TYPE, FOREFLIGHT_EXTENSION,
    FOREFLIGHT_ITEM_HEADER, FOREFLIGHT_KEY, FOREFLIGHT_SCHEMA_VERSION,
)

logger = logging.getLogger("efis_checklists.formats.foreflight")

GROUP_TYPE_TO_CATEGORY = {
    "ABNORMAL": ChecklistGroupCategory.ABNORMAL,
    "abnormal": ChecklistGroupCategory.ABNORMAL,
    "1": ChecklistGroupCategory.ABNORMAL,
    "EMERGENCY": ChecklistGroupCategory.EMERGENCY,
    "emergency": ChecklistGroupCategory.EMERGENCY,
    "2": ChecklistGroupCategory.EMERGENCY,
}

# Output order of the top-level groups
CATEGORY_ORDER = (
    ChecklistGroupCategory.NORMAL,
    ChecklistGroupCategory.ABNORMAL,
    ChecklistGroupCategory.EMERGENCY,
)


def _cipher(iv: bytes) -> Cipher:
    return Cipher(algorithms.AES(FOREFLIGHT_KEY), modes.CBC(iv))


def encrypt(text: str) -> bytes:
    """Encrypt a JSON string into .fmd bytes (IV + ciphertext)"""
    iv = os.urandom(FOREFLIGHT_BLOCK_SIZE)
    padder = padding.PKCS7(FOREFLIGHT_BLOCK_SIZE * 8).padder()
    padded = padder.update(text.encode("utf-8")) + padder.finalize()
    encryptor = _cipher(iv).encryptor()
    return iv + encryptor.update(padded) + encryptor.finalize()


def decrypt(data: bytes) -> str:
    """
    Decrypt .fmd bytes back into the JSON string.

    Raises:
        TruncatedInputError: If there is no IV or no whole cipher block
        DecryptionError: If the padding or the decoded text is invalid
    """
    data = bytes(data)
    if len(data) < 2 * FOREFLIGHT_BLOCK_SIZE:
        raise TruncatedInputError("ForeFlight: file too short", offset=len(data))
    if len(data) % FOREFLIGHT_BLOCK_SIZE:
        raise DecryptionError("ForeFlight: ciphertext is not a whole number of blocks", offset=len(data))

    iv, encrypted = data[:FOREFLIGHT_BLOCK_SIZE], data[FOREFLIGHT_BLOCK_SIZE:]
    decryptor = _cipher(iv).decryptor()
    padded = decryptor.update(encrypted) + decryptor.finalize()
    try:
        unpadder = padding.PKCS7(FOREFLIGHT_BLOCK_SIZE * 8).unpadder()
        plain = unpadder.update(padded) + unpadder.finalize()
        return plain.decode("utf-8")
    except ValueError as e:
        raise DecryptionError(f"ForeFlight: unable to decrypt file: {e}") from e


def new_object_id() -> str:
    """ForeFlight object ids are dash-less UUIDs"""
    return uuid.uuid4().hex


def _require_list(value: Any, what: str) -> List[Any]:
    if not isinstance(value, list) or not all(isinstance(entry, dict) for entry in value):
        raise SchemaViolationError(f"ForeFlight: {what} must be a list of objects")
    return value


def _convert_item(ff_item: Dict[str, Any]) -> List[ChecklistItem]:
    """Turn one ForeFlight item into one or more model items"""
    if not isinstance(ff_item, dict):
        raise SchemaViolationError("ForeFlight: checklist item must be an object")

    result: List[ChecklistItem] = []
    title = text_field(ff_item, "title", "ForeFlight")
    detail = text_field(ff_item, "detail", "ForeFlight")
    note = text_field(ff_item, "note", "ForeFlight")
    is_header = ff_item.get("type") == FOREFLIGHT_ITEM_HEADER

    if is_header:
        if title:
            result.append(ChecklistItem(type=ChecklistItemType.TITLE, challenge_text=title))
        elif detail:
            result.extend(multiline_note_to_items(detail, standalone=True))
        # A header with neither title nor detail is an empty spacer
    elif detail:
        result.append(ChecklistItem(
            type=ChecklistItemType.CHALLENGE_RESPONSE,
            challenge_text=title,
            response_text=detail.upper(),
        ))
    else:
        result.append(ChecklistItem(type=ChecklistItemType.CHALLENGE_ONLY, challenge_text=title))

    # Notes attached to the item
    if is_header and title and detail:
        result.extend(multiline_note_to_items(detail, standalone=False))
    elif not is_header and note:
        result.extend(multiline_note_to_items(note, standalone=False))

    return result


def _convert_checklist(ff_checklist: Dict[str, Any]) -> Checklist:
    checklist = Checklist(name=text_field(ff_checklist, "title", "ForeFlight"))
    for ff_item in _require_list(ff_checklist.get("items", []), "checklist items"):
        checklist.items.extend(_convert_item(ff_item))
    return checklist


def _convert_items(items: List[ChecklistItem]) -> List[Dict[str, Any]]:
    """
    Build ForeFlight items, folding note-like items into the item they follow.
    Each accumulator entry keeps the model item it was built from.
    """
    acc: List[Tuple[Dict[str, Any], ChecklistItem]] = []

    for item in items:
        ff_item: Dict[str, Any] = {
            "objectId": new_object_id(),
            "title": item.challenge_text,
            "detail": item.response_text.upper(),
        }
        acc.append((ff_item, item))

        if item.type == ChecklistItemType.CHALLENGE_RESPONSE:
            continue
        if item.type == ChecklistItemType.CHALLENGE_ONLY:
            del ff_item["detail"]
            continue
        if item.type == ChecklistItemType.TITLE:
            ff_item["type"] = FOREFLIGHT_ITEM_HEADER
            del ff_item["detail"]
            continue

        # Note, caution or warning
        text = get_item_type_prefix(item.type) + item.challenge_text
        previous = acc[-2] if len(acc) >= 2 else None
        if previous and should_merge_notes(item, previous[1]):
            last_ff = previous[0]
            field_name = "detail" if last_ff.get("type") == FOREFLIGHT_ITEM_HEADER else "note"
            existing = last_ff.get(field_name)
            last_ff[field_name] = f"{existing}\n{text}" if existing else text
            acc.pop()
            continue

        # Standalone note -> detail item without a title
        ff_item["type"] = FOREFLIGHT_ITEM_HEADER
        del ff_item["title"]
        ff_item["detail"] = text

    return [ff_item for ff_item, _ in acc]


class ForeFlightCodec(SyncCodec):
    """ForeFlight encrypted checklist codec"""

    format = ChecklistFormat.FOREFLIGHT

    def parse(self, content: bytes, file_name: str) -> ParsedChecklistFile:
        """
        Decrypt and parse a ForeFlight buffer.

        Raises:
            DecryptionError: If the container cannot be decrypted
            MalformedHeaderError: On an unknown container type or schema version
            SchemaViolationError: If the JSON does not have the expected shape
        """
        text = decrypt(content)
        try:
            container = json.loads(text)
        except json.JSONDecodeError as e:
            raise SchemaViolationError(f"ForeFlight: invalid JSON: {e.msg}", offset=e.pos) from e

        if not isinstance(container, dict):
            raise SchemaViolationError("ForeFlight: container must be an object")
        if container.get("type") != FOREFLIGHT_CONTAINER_TYPE:
            raise MalformedHeaderError(f"ForeFlight: unknown container type {container.get('type')!r}")
        payload = container.get("payload")
        if not isinstance(payload, dict):
            raise SchemaViolationError("ForeFlight: missing payload")
        if payload.get("schemaVersion") != FOREFLIGHT_SCHEMA_VERSION:
            raise MalformedHeaderError(
                f"ForeFlight: unknown schema version {payload.get('schemaVersion')!r}"
            )

        ff_metadata = payload.get("metadata") or {}
        if not isinstance(ff_metadata, dict):
            raise SchemaViolationError("ForeFlight: metadata must be an object")
        name = (text_field(ff_metadata, "name", "ForeFlight")
                or strip_extension(file_name, f".{FOREFLIGHT_EXTENSION}"))

        groups: List[ChecklistGroup] = []
        for ff_group in _require_list(payload.get("groups", []), "groups"):
            category = GROUP_TYPE_TO_CATEGORY.get(str(ff_group.get("groupType")), ChecklistGroupCategory.NORMAL)
            for subgroup in _require_list(ff_group.get("items", []), "group items"):
                checklists = [
                    _convert_checklist(ff_checklist)
                    for ff_checklist in _require_list(subgroup.get("items", []), "subgroup items")
                ]
                if checklists:
                    groups.append(ChecklistGroup(
                        name=text_field(subgroup, "title", "ForeFlight"),
                        category=category,
                        checklists=checklists,
                    ))

        logger.info(f"Parsed ForeFlight file '{name}' with {len(groups)} groups")
        return ParsedChecklistFile(
            name=name,
            format=ChecklistFormat.FOREFLIGHT,
            groups=groups,
            metadata=ChecklistFileMetadata(
                aircraft_registration=text_field(ff_metadata, "tailNumber", "ForeFlight"),
                make_model=text_field(ff_metadata, "detail", "ForeFlight"),
            ),
        )

    def serialize(self, file: ParsedChecklistFile) -> bytes:
        """Serialize and encrypt a ForeFlight buffer"""
        container = {
            "type": FOREFLIGHT_CONTAINER_TYPE,
            "payload": {
                "objectId": new_object_id(),
                "schemaVersion": FOREFLIGHT_SCHEMA_VERSION,
                "metadata": {
                    "name": file.name,
                    "detail": file.metadata.make_model,
                    "tailNumber": file.metadata.aircraft_registration.upper(),
                },
                "groups": self._build_groups(file.groups),
            },
        }
        return encrypt(json.dumps(container, indent=2))

    @staticmethod
    def _build_groups(groups: List[ChecklistGroup]) -> List[Dict[str, Any]]:
        return [
            {
                "objectId": new_object_id(),
                "groupType": category.value,
                "items": [
                    {
                        "objectId": new_object_id(),
                        "title": group.name,
                        "items": [
                            {
                                "objectId": new_object_id(),
                                "title": checklist.name,
                                "items": _convert_items(checklist.items),
                            }
                            for checklist in group.checklists
                        ],
                    }
                    for group in groups if group.category == category
                ],
            }
            for category in CATEGORY_ORDER
        ]
