"""
File management utilities for EFIS Checklists.
The codecs never touch the disk; this module reads, writes and tracks files for them.
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Dict, Any, Optional, Union

from ..config.settings import settings
from ..config.constants import MAX_RECENT_FILES, RECENT_FILES_NAME
from ..data.models import ChecklistFile, ChecklistFormat, ParsedChecklistFile
from ..data.errors import ChecklistFormatError, UnsupportedFormatError
from ..formats.registry import detect_format, parse_content, serialize_file

# Configure logger
logger = logging.getLogger("efis_checklists.io.files")

PathLike = Union[str, Path]


@dataclass
class RecentFileEntry:
    """A recently opened file"""
    file_path: str
    file_name: str
    format: ChecklistFormat
    last_opened: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'filePath': self.file_path,
            'fileName': self.file_name,
            'format': self.format.value,
            'lastOpened': self.last_opened,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RecentFileEntry':
        return cls(
            file_path=str(data['filePath']),
            file_name=str(data.get('fileName', '')),
            format=ChecklistFormat(data['format']),
            last_opened=float(data.get('lastOpened', 0)),
        )


def _ensure_parent(path: Path) -> None:
    """Create the parent directory of path if it doesn't exist"""
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created directory: {path.parent}")


async def read_checklist_file(path: PathLike) -> ChecklistFile:
    """
    Read, detect and parse a checklist file from disk.

    Args:
        path: Path to the file

    Returns:
        ChecklistFile: The parsed file with a fresh id, its path and a clean state

    Raises:
        OSError: If the file cannot be read
        UnsupportedFormatError: If the format cannot be detected
        ChecklistFormatError: If the content is invalid
    """
    path = Path(path)
    content = path.read_bytes()

    format = detect_format(path.name, content)
    if format is None:
        logger.error(f"Unsupported file format: {path.suffix}")
        raise UnsupportedFormatError(f"Unsupported file format: {path.suffix or path.name}")

    try:
        parsed = await parse_content(content, path.name, format)
    except ChecklistFormatError as e:
        logger.error(f"Error reading {path}: {e}")
        raise

    file = ChecklistFile.from_parsed(parsed, file_path=str(path))
    logger.info(f"Opened {path} as {format.value}")
    return file


async def export_checklist_file(file: ParsedChecklistFile, format: ChecklistFormat, path: PathLike) -> Path:
    """
    Serialize a checklist file to a format and write it to disk.
    Binary content is written as is, text as UTF-8.

    Returns:
        Path: The written path
    """
    path = Path(path)
    try:
        content = await serialize_file(file, format)
    except ChecklistFormatError as e:
        logger.error(f"Error exporting {file.name} as {format.value}: {e}")
        raise

    _ensure_parent(path)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)

    logger.info(f"Exported {file.name} to {path} as {format.value}")
    return path


async def save_checklist_file(file: ChecklistFile, path: Optional[PathLike] = None) -> Path:
    """
    Save a checklist file in the JSON format and mark it clean.

    Args:
        file: File to save
        path: Destination (default: the file's own path)
    """
    if path is None:
        if not file.file_path:
            raise ValueError(f"No path to save '{file.name}' to")
        path = file.file_path

    written = await export_checklist_file(file, ChecklistFormat.JSON, path)
    file.file_path = str(written)
    file.dirty = False
    file.last_modified = time.time()
    return written


def get_recent_files_path() -> Path:
    """Location of the recent files list"""
    return settings.config_dir / RECENT_FILES_NAME


def get_recent_files() -> List[RecentFileEntry]:
    """
    Get the recently opened files, newest first.
    An unreadable list is logged and treated as empty.
    """
    path = get_recent_files_path()
    if not path.exists():
        return []

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError("recent files list must be a JSON array")
        return [RecentFileEntry.from_dict(entry) for entry in data]
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Error reading recent files: {e}")
        return []


def _write_recent_files(entries: List[RecentFileEntry]) -> None:
    path = get_recent_files_path()
    _ensure_parent(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump([entry.to_dict() for entry in entries], f, indent=2)


def add_recent_file(file_path: PathLike, file_name: str, format: ChecklistFormat) -> List[RecentFileEntry]:
    """
    Put a file at the front of the recent files list.

    Returns:
        List[RecentFileEntry]: The updated list
    """
    file_path = str(file_path)
    entries = [entry for entry in get_recent_files() if entry.file_path != file_path]
    entries.insert(0, RecentFileEntry(
        file_path=file_path,
        file_name=file_name,
        format=format,
        last_opened=time.time(),
    ))

    limit = int(settings.get('max_recent_files', MAX_RECENT_FILES))
    entries = entries[:max(0, limit)]

    _write_recent_files(entries)
    logger.debug(f"Recent files updated ({len(entries)} entries)")
    return entries
