"""
Settings management for SketchGrid.

Handles persistent storage of user preferences in settings.ini.
"""

import logging
from configparser import ConfigParser, Error as ConfigError
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class Settings:
    """Manages application settings via settings.ini."""

    # Settings file location (project root)
    SETTINGS_FILE = Path(__file__).parent.parent.parent / "settings.ini"

    # Section and keys
    SECTION = "preferences"
    KEY_INPUT_DIR = "last_input_dir"
    KEY_OUTPUT_DIR = "last_output_dir"
    KEY_DEBOUNCE_MS = "preview_debounce_ms"
    KEY_LOG_LEVEL = "log_level"

    DEFAULT_DEBOUNCE_MS = 33  # ~30 preview frames per second
    DEFAULT_LOG_LEVEL = "INFO"

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """Initialize settings from file or create defaults."""
        self.path = Path(path) if path is not None else self.SETTINGS_FILE
        self.config = ConfigParser()
        self._load()

    def _load(self) -> None:
        """Load settings from file or create defaults."""
        if self.path.exists():
            self.config.read(self.path)
        else:
            # Create default section
            self.config.add_section(self.SECTION)
            self.config.set(self.SECTION, self.KEY_INPUT_DIR, "")
            self.config.set(self.SECTION, self.KEY_OUTPUT_DIR, "")
            self.config.set(self.SECTION, self.KEY_DEBOUNCE_MS, str(self.DEFAULT_DEBOUNCE_MS))
            self.config.set(self.SECTION, self.KEY_LOG_LEVEL, self.DEFAULT_LOG_LEVEL)
            self._save()

    def _save(self) -> None:
        """Save settings to file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            self.config.write(f)

    def _get(self, key: str) -> Optional[str]:
        try:
            return self.config.get(self.SECTION, key)
        except ConfigError:
            return None

    def _set(self, key: str, value: str) -> None:
        if not self.config.has_section(self.SECTION):
            self.config.add_section(self.SECTION)
        self.config.set(self.SECTION, key, value)
        self._save()

    def get_input_dir(self) -> Optional[str]:
        """Get last input directory."""
        return self._get(self.KEY_INPUT_DIR) or None

    def set_input_dir(self, path: str) -> None:
        """Set and save last input directory."""
        self._set(self.KEY_INPUT_DIR, path)

    def get_output_dir(self) -> Optional[str]:
        """Get last output directory."""
        return self._get(self.KEY_OUTPUT_DIR) or None

    def set_output_dir(self, path: str) -> None:
        """Set and save last output directory."""
        self._set(self.KEY_OUTPUT_DIR, path)

    def get_debounce_ms(self) -> int:
        """Get preview debounce interval in milliseconds (default: 33)."""
        val = self._get(self.KEY_DEBOUNCE_MS)
        if not val:
            return self.DEFAULT_DEBOUNCE_MS
        try:
            return max(0, int(val))
        except ValueError:
            logger.warning("Ignoring invalid %s=%r in %s", self.KEY_DEBOUNCE_MS, val, self.path)
            return self.DEFAULT_DEBOUNCE_MS

    def set_debounce_ms(self, interval: int) -> None:
        """Set and save preview debounce interval."""
        self._set(self.KEY_DEBOUNCE_MS, str(int(interval)))

    def get_log_level(self) -> str:
        """Get log level name (default: 'INFO')."""
        return (self._get(self.KEY_LOG_LEVEL) or self.DEFAULT_LOG_LEVEL).upper()

    def set_log_level(self, level: str) -> None:
        """Set and save log level name."""
        self._set(self.KEY_LOG_LEVEL, level.upper())
