"""
Data package for EFIS Checklists.
Contains the checklist model and the errors raised by codecs.
"""

from .models import (
    ChecklistItemType,
    ChecklistGroupCategory,
    ChecklistFormat,
    ChecklistItem,
    Checklist,
    ChecklistGroup,
    ChecklistFileMetadata,
    ParsedChecklistFile,
    ChecklistFile,
    MAX_INDENT,
    clamp_indent,
    new_id,
)
from .errors import (
    ChecklistFormatError,
    UnsupportedFormatError,
    MalformedHeaderError,
    ChecksumMismatchError,
    PositionalValidationError,
    SchemaViolationError,
    DecryptionError,
    TruncatedInputError,
)

__all__ = [
    'ChecklistItemType',
    'ChecklistGroupCategory',
    'ChecklistFormat',
    'ChecklistItem',
    'Checklist',
    'ChecklistGroup',
    'ChecklistFileMetadata',
    'ParsedChecklistFile',
    'ChecklistFile',
    'MAX_INDENT',
    'clamp_indent',
    'new_id',
    'ChecklistFormatError',
    'UnsupportedFormatError',
    'MalformedHeaderError',
    'ChecksumMismatchError',
    'PositionalValidationError',
    'SchemaViolationError',
    'DecryptionError',
    'TruncatedInputError',
]
