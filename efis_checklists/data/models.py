"""
Data models for EFIS Checklists.
Contains the checklist model shared by every file format.

Items are kept in a flat list per checklist. An item's parent is the
nearest preceding item with a strictly lower indent.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum
import time
import uuid


MAX_INDENT = 3


def new_id() -> str:
    """Generate a fresh identifier for a model object"""
    return str(uuid.uuid4())


def clamp_indent(value: int) -> int:
    """Clamp an externally supplied indent into the valid 0-3 range"""
    return min(MAX_INDENT, max(0, int(value)))


class ChecklistItemType(Enum):
    """Item type determines rendering and which text fields are meaningful"""
    CHALLENGE_RESPONSE = "challenge_response"
    CHALLENGE_ONLY = "challenge_only"
    TITLE = "title"
    NOTE = "note"
    WARNING = "warning"
    CAUTION = "caution"


class ChecklistGroupCategory(Enum):
    """Group category, used as a color hint"""
    NORMAL = "normal"
    EMERGENCY = "emergency"
    ABNORMAL = "abnormal"


class ChecklistFormat(Enum):
    """Supported file formats for import/export"""
    ACE = "ace"
    GPLT = "gplt"
    AFS_DYNON = "afs_dynon"
    FOREFLIGHT = "foreflight"
    GRT = "grt"
    JSON = "json"
    PDF = "pdf"


@dataclass
class ChecklistItem:
    """
    A single checklist line.
    response_text is only meaningful for CHALLENGE_RESPONSE items.
    """
    type: ChecklistItemType
    challenge_text: str = ""
    response_text: str = ""
    indent: int = 0
    centered: bool = False
    collapsible: bool = False
    id: str = field(default_factory=new_id, compare=False)

    def __post_init__(self):
        """Validate data after initialization"""
        if not isinstance(self.type, ChecklistItemType):
            raise TypeError("type must be a ChecklistItemType")
        if not isinstance(self.challenge_text, str):
            raise TypeError("challenge_text must be a string")
        if not isinstance(self.response_text, str):
            raise TypeError("response_text must be a string")
        if isinstance(self.indent, bool) or not isinstance(self.indent, int):
            raise TypeError("indent must be an integer")
        if not 0 <= self.indent <= MAX_INDENT:
            raise ValueError(f"indent must be between 0 and {MAX_INDENT}")

    @property
    def is_space(self) -> bool:
        """Whether this item is an empty spacer line"""
        return self.type == ChecklistItemType.NOTE and self.challenge_text == ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert the item to a dictionary without its id"""
        return {
            "type": self.type.value,
            "challengeText": self.challenge_text,
            "responseText": self.response_text,
            "indent": self.indent,
            "centered": self.centered,
            "collapsible": self.collapsible,
        }


@dataclass
class Checklist:
    """A named checklist containing an ordered list of items"""
    name: str
    items: List[ChecklistItem] = field(default_factory=list)
    id: str = field(default_factory=new_id, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class ChecklistGroup:
    """A named group of checklists (e.g. "Normal", "Emergency")"""
    name: str
    category: ChecklistGroupCategory = ChecklistGroupCategory.NORMAL
    checklists: List[Checklist] = field(default_factory=list)
    id: str = field(default_factory=new_id, compare=False)

    def __post_init__(self):
        if not isinstance(self.category, ChecklistGroupCategory):
            raise TypeError("category must be a ChecklistGroupCategory")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category.value,
            "checklists": [checklist.to_dict() for checklist in self.checklists],
        }


@dataclass
class ChecklistFileMetadata:
    """File-level metadata (aircraft info, copyright)"""
    aircraft_registration: str = ""
    make_model: str = ""
    copyright: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aircraftRegistration": self.aircraft_registration,
            "makeModel": self.make_model,
            "copyright": self.copyright,
        }


@dataclass
class ParsedChecklistFile:
    """
    Result of parsing a file. It has no id, dirty flag or modification
    time; the caller stamps those through ChecklistFile.from_parsed().
    """
    name: str
    format: ChecklistFormat
    groups: List[ChecklistGroup] = field(default_factory=list)
    metadata: ChecklistFileMetadata = field(default_factory=ChecklistFileMetadata)
    file_path: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.format, ChecklistFormat):
            raise TypeError("format must be a ChecklistFormat")

    def iter_checklists(self):
        """Yield (group, checklist) pairs in file order"""
        for group in self.groups:
            for checklist in group.checklists:
                yield group, checklist

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary holding only data fields"""
        return {
            "name": self.name,
            "format": self.format.value,
            "groups": [group.to_dict() for group in self.groups],
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class ChecklistFile(ParsedChecklistFile):
    """Top-level container representing an open checklist file"""
    id: str = field(default_factory=new_id, compare=False)
    last_modified: float = field(default=0.0, compare=False)
    dirty: bool = field(default=False, compare=False)

    @classmethod
    def from_parsed(cls, parsed: ParsedChecklistFile,
                    file_path: Optional[str] = None) -> "ChecklistFile":
        """Stamp the runtime-only fields onto a freshly parsed file"""
        return cls(
            name=parsed.name,
            format=parsed.format,
            groups=parsed.groups,
            metadata=parsed.metadata,
            file_path=file_path if file_path is not None else parsed.file_path,
            last_modified=time.time(),
            dirty=False,
        )
