"""
Constants for EFIS Checklists.
These are fixed values that don't change during application execution.
"""

# Application information
APP_NAME = "EFIS Checklists"
APP_VERSION = "1.0.0"
APP_AUTHOR = "EFIS Checklists Contributors"
APP_LICENSE = "MIT License"
APP_DESCRIPTION = "Convert aircraft checklists between avionics file formats"

# File extensions (lowercase, without the dot)
ACE_EXTENSION = 'ace'
JSON_EXTENSION = 'json'
DYNON_EXTENSION = 'afd'
TEXT_EXTENSION = 'txt'
FOREFLIGHT_EXTENSION = 'fmd'
GARMIN_PILOT_EXTENSION = 'gplt'
PDF_EXTENSION = 'pdf'

# Garmin ACE binary layout
ACE_HEADER = bytes([0xF0, 0xF0, 0xF0, 0xF0, 0x00, 0x01])
ACE_GROUP_HEADER = b'<0'
ACE_GROUP_END = '>'
ACE_CHECKLIST_HEADER = b'(0'
ACE_CHECKLIST_END = ')'
ACE_FILE_END = 'END'
ACE_ENCODING = 'latin-1'
ACE_CRC_SIZE = 4
CRLF = b'\r\n'

# ForeFlight container (the key is a fixed vendor value, not a secret)
FOREFLIGHT_KEY = b'81e06e41a93f3848'
FOREFLIGHT_BLOCK_SIZE = 16
FOREFLIGHT_CONTAINER_TYPE = 'checklist'
FOREFLIGHT_SCHEMA_VERSION = '1.0'
FOREFLIGHT_ITEM_HEADER = 'comment'

# Garmin Pilot container
GARMIN_PILOT_CONTAINER_TYPE = 'checklistBinder'
GARMIN_PILOT_DATA_MODEL_VERSION = 1
GARMIN_PILOT_PACKAGE_TYPE_VERSION = 1
GARMIN_PILOT_CONTENT_FILENAME = 'content.json'

# Text formats
TEXT_WRAP_PREFIX = '| '
TEXT_CENTER_FALLBACK_INDENT = 7
TEXT_HEADER_COMMENT = '# CHECKLIST EXPORTED FROM EFIS Checklist Editor'
TEXT_DEFAULT_FIRST_GROUP = 'Main group'
TEXT_METADATA_CHECKLIST_TITLE = 'Checklist Info'
TEXT_METADATA_FILE_TITLE = 'Checklist file:'
TEXT_METADATA_MAKE_MODEL_TITLE = 'Make and model:'
TEXT_METADATA_AIRCRAFT_TITLE = 'Aircraft:'
TEXT_METADATA_MANUFACTURER_TITLE = 'Manufacturer:'
TEXT_METADATA_COPYRIGHT_TITLE = 'Copyright:'

# PDF layout (points)
PDF_DEFAULT_MARGIN = 50
PDF_INDENT_WIDTH = 15
PDF_BOTTOM_SAFETY = 60       # space kept free below the last item
PDF_HEADER_SAFETY = 120      # space needed for a checklist header plus a few items
PDF_CREATOR = "EFIS Checklist Editor"

# Recent files
MAX_RECENT_FILES = 20
RECENT_FILES_NAME = 'recent-files.json'
