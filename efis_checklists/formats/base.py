"""
Codec interfaces.

Formats whose primitives are synchronous implement SyncCodec. Formats
built on compression or document assembly implement AsyncCodec, whose
methods are coroutines. Codecs keep no state between calls.
"""

from abc import ABC, abstractmethod
from typing import Union

from ..data.models import ChecklistFormat, ParsedChecklistFile


class SyncCodec(ABC):
    """A codec that parses and serializes synchronously"""

    format: ChecklistFormat

    @abstractmethod
    def parse(self, content: bytes, file_name: str) -> ParsedChecklistFile:
        """Parse raw file content into the checklist model"""

    @abstractmethod
    def serialize(self, file: ParsedChecklistFile) -> Union[bytes, str]:
        """Serialize the checklist model to file content"""


class AsyncCodec(ABC):
    """A codec whose parse and serialize must be awaited"""

    format: ChecklistFormat

    @abstractmethod
    async def parse(self, content: bytes, file_name: str) -> ParsedChecklistFile:
        """Parse raw file content into the checklist model"""

    @abstractmethod
    async def serialize(self, file: ParsedChecklistFile) -> bytes:
        """Serialize the checklist model to file content"""


Codec = Union[SyncCodec, AsyncCodec]


def strip_extension(file_name: str, *extensions: str) -> str:
    """
    Remove the first matching extension from a file name.

    Args:
        file_name: Logical file name
        extensions: Extensions including the dot, e.g. ".ace"

    Returns:
        str: The name without the extension, or the name itself if nothing
        would remain
    """
    lowered = file_name.lower()
    for ext in extensions:
        if lowered.endswith(ext.lower()):
            return file_name[:-len(ext)] or file_name
    return file_name
