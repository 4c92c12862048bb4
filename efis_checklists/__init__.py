"""
EFIS Checklists
Converts aircraft checklists between avionics file formats.

Features:
- One in-memory checklist model shared by every format
- Garmin ACE, Dynon/AFS, GRT, ForeFlight, Garmin Pilot and JSON codecs
- One-way PDF export
"""

from .config.constants import APP_NAME, APP_VERSION, APP_AUTHOR, APP_LICENSE
from .config.settings import settings

__version__ = APP_VERSION
__author__ = APP_AUTHOR
__license__ = APP_LICENSE

# Initialize logging when the package is imported
import logging
import sys

# Configure package logger
root_logger = logging.getLogger("efis_checklists")
root_logger.setLevel(settings.get_log_level())

if not root_logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

root_logger.debug(f"Initializing {APP_NAME} v{APP_VERSION}")
