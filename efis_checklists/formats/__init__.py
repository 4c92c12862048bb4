"""
Format codecs for EFIS Checklists.
"""

from .base import SyncCodec, AsyncCodec, Codec, strip_extension
from .ace import AceCodec
from .text import TextCodec, TextFormatOptions, DYNON_OPTIONS, GRT_OPTIONS, create_dynon_codec, create_grt_codec
from .foreflight import ForeFlightCodec
from .garmin_pilot import GarminPilotCodec
from .json_format import JsonCodec
from .pdf import PdfCodec, DocumentWriter, ReportLabDocumentWriter, generate_pdf
from .registry import detect_format, get_codec, parse_content, serialize_file

__all__ = [
    'SyncCodec', 'AsyncCodec', 'Codec', 'strip_extension',
    'AceCodec',
    'TextCodec', 'TextFormatOptions', 'DYNON_OPTIONS', 'GRT_OPTIONS', 'create_dynon_codec', 'create_grt_codec',
    'ForeFlightCodec',
    'GarminPilotCodec',
    'JsonCodec',
    'PdfCodec', 'DocumentWriter', 'ReportLabDocumentWriter', 'generate_pdf',
    'detect_format', 'get_codec', 'parse_content', 'serialize_file',
]
