"""
Errors raised by the checklist format codecs.
Every structural problem in an input file surfaces as one of these.
"""

from typing import Optional


class ChecklistFormatError(ValueError):
    """
    Base class for codec failures.

    Args:
        message: Human readable description
        offset: Byte offset in the input, when known
        line: Offending line content, when known
    """

    def __init__(self, message: str, offset: Optional[int] = None, line: Optional[str] = None):
        self.offset = offset
        self.line = line
        details = []
        if offset is not None:
            details.append(f"offset {offset}")
        if line is not None:
            details.append(f"line {line!r}")
        if details:
            message = f"{message} ({', '.join(details)})"
        super().__init__(message)


class UnsupportedFormatError(ChecklistFormatError):
    """Unknown extension or an operation the format does not support"""


class MalformedHeaderError(ChecklistFormatError):
    """Magic bytes, container type or version mismatch"""


class ChecksumMismatchError(ChecklistFormatError):
    """Stored checksum does not match the content"""


class PositionalValidationError(ChecklistFormatError):
    """Embedded checklist/item number disagrees with its position"""


class SchemaViolationError(ChecklistFormatError):
    """Content does not have the required shape"""


class DecryptionError(ChecklistFormatError):
    """Cipher or padding failure while decrypting"""


class TruncatedInputError(ChecklistFormatError):
    """Input ended before a structural read completed"""
