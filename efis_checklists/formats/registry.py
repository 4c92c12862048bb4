"""
Format registry: detection by file name (and content for .txt) and
codec lookup, plus coroutine helpers that hide the sync/async split.
"""

import inspect
import logging
import os
import re
from typing import Dict, Optional, Union

from .base import Codec
from .ace import AceCodec
from .foreflight import ForeFlightCodec
from .garmin_pilot import GarminPilotCodec
from .json_format import JsonCodec
from .pdf import PdfCodec
from .text import create_dynon_codec, create_grt_codec
from ..data.models import ChecklistFormat, ParsedChecklistFile
from ..data.errors import UnsupportedFormatError
from ..config.constants import (
    ACE_EXTENSION, DYNON_EXTENSION, FOREFLIGHT_EXTENSION, GARMIN_PILOT_EXTENSION,
    JSON_EXTENSION, PDF_EXTENSION, TEXT_EXTENSION,
)

logger = logging.getLogger("efis_checklists.formats.registry")

EXTENSION_FORMATS: Dict[str, ChecklistFormat] = {
    ACE_EXTENSION: ChecklistFormat.ACE,
    JSON_EXTENSION: ChecklistFormat.JSON,
    DYNON_EXTENSION: ChecklistFormat.AFS_DYNON,
    FOREFLIGHT_EXTENSION: ChecklistFormat.FOREFLIGHT,
    GARMIN_PILOT_EXTENSION: ChecklistFormat.GPLT,
    PDF_EXTENSION: ChecklistFormat.PDF,
}

DYNON_LINE = re.compile(r"^CHKLST\d+\.")
GRT_LINE = re.compile(r"^(LIST|ITEM)\b")
COMMENT_PREFIX = "#"

CODECS: Dict[ChecklistFormat, Codec] = {
    ChecklistFormat.ACE: AceCodec(),
    ChecklistFormat.AFS_DYNON: create_dynon_codec(),
    ChecklistFormat.GRT: create_grt_codec(),
    ChecklistFormat.FOREFLIGHT: ForeFlightCodec(),
    ChecklistFormat.GPLT: GarminPilotCodec(),
    ChecklistFormat.JSON: JsonCodec(),
    ChecklistFormat.PDF: PdfCodec(),
}


def detect_text_format(content: Union[bytes, str]) -> ChecklistFormat:
    """Tell Dynon from GRT by the first line that identifies either"""
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue
        if DYNON_LINE.match(line):
            return ChecklistFormat.AFS_DYNON
        if GRT_LINE.match(line):
            return ChecklistFormat.GRT
    return ChecklistFormat.AFS_DYNON


def detect_format(file_name: str, content: Optional[Union[bytes, str]] = None) -> Optional[ChecklistFormat]:
    """
    Detect the format of a file from its name.

    Args:
        file_name: File name or path
        content: Optional file content, used to tell .txt formats apart

    Returns:
        Optional[ChecklistFormat]: The format, or None if the extension is unknown
    """
    extension = os.path.splitext(file_name)[1].lower().lstrip(".")
    if extension == TEXT_EXTENSION:
        if content is None:
            return ChecklistFormat.AFS_DYNON
        return detect_text_format(content)
    return EXTENSION_FORMATS.get(extension)


def get_codec(format: ChecklistFormat) -> Codec:
    """Look up the codec for a format"""
    try:
        return CODECS[format]
    except KeyError:
        raise UnsupportedFormatError(f"No codec for format {format!r}") from None


async def parse_content(content: bytes, file_name: str,
                        format: Optional[ChecklistFormat] = None) -> ParsedChecklistFile:
    """
    Parse content with the right codec, awaiting it when it is async.

    Raises:
        UnsupportedFormatError: If the format cannot be detected
        ChecklistFormatError: Whatever the codec raises
    """
    if format is None:
        format = detect_format(file_name, content)
        if format is None:
            raise UnsupportedFormatError(f"Unsupported file type: {file_name}")
    codec = get_codec(format)
    logger.debug(f"Parsing '{file_name}' as {format.value}")
    result = codec.parse(content, file_name)
    if inspect.isawaitable(result):
        result = await result
    return result


async def serialize_file(file: ParsedChecklistFile, format: ChecklistFormat) -> Union[bytes, str]:
    """Serialize with the codec for format, awaiting it when it is async"""
    codec = get_codec(format)
    logger.debug(f"Serializing '{file.name}' as {format.value}")
    result = codec.serialize(file)
    if inspect.isawaitable(result):
        result = await result
    return result
