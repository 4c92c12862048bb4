"""
Settings for EFIS Checklists.
These are configurable parameters that can be changed by the user.
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, Any

from .constants import MAX_RECENT_FILES, PDF_DEFAULT_MARGIN

logger = logging.getLogger("efis_checklists.settings")


class Settings:
    """
    Application settings that can be loaded from and saved to a configuration file.
    The configuration directory is only created when settings are saved.
    """

    def __init__(self):
        self._settings: Dict[str, Any] = self._defaults()

        self.config_dir = self._get_config_dir()
        self.config_file = self.config_dir / "settings.json"
        self.load_settings()

    @staticmethod
    def _defaults() -> Dict[str, Any]:
        """Default settings"""
        return {
            # Logging
            "log_level": "INFO",

            # Export settings
            "default_export_format": "json",
            "pdf_page_size": "letter",  # "letter" or "a4"
            "pdf_margin": PDF_DEFAULT_MARGIN,

            # Recent files
            "max_recent_files": MAX_RECENT_FILES,
        }

    @staticmethod
    def _get_config_dir() -> Path:
        """Get the configuration directory for the application"""
        if os.name == 'nt':  # Windows
            return Path(os.environ.get('APPDATA', '')) / 'EFISChecklists'
        return Path(os.path.expanduser("~")) / '.config' / 'efis-checklists'

    def load_settings(self) -> None:
        """Load settings from the configuration file"""
        try:
            if self.config_file.exists():
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    loaded_settings = json.load(f)
                if not isinstance(loaded_settings, dict):
                    raise ValueError("settings file must contain a JSON object")
                self._settings.update(loaded_settings)
                logger.info(f"Settings loaded from {self.config_file}")
            else:
                logger.debug("No settings file found, using defaults")
        except (OSError, ValueError) as e:
            logger.error(f"Error loading settings: {e}")

    def save_settings(self) -> bool:
        """Save current settings to the configuration file"""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self._settings, f, indent=4)
            logger.info(f"Settings saved to {self.config_file}")
            return True
        except OSError as e:
            logger.error(f"Error saving settings: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value by key"""
        return self._settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a setting value by key"""
        self._settings[key] = value

    def get_log_level(self) -> int:
        """The configured log level as a logging constant, INFO if unknown"""
        value = self.get('log_level', 'INFO')
        level = logging.getLevelName(str(value).upper())
        if not isinstance(level, int):
            logger.warning(f"Unknown log level {value!r}, using INFO")
            return logging.INFO
        return level

    def get_all(self) -> Dict[str, Any]:
        """Get all settings as a dictionary"""
        return self._settings.copy()

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values and save them"""
        self._settings = self._defaults()
        self.save_settings()
        logger.info("Settings reset to defaults")


# Create a global settings instance
settings = Settings()
