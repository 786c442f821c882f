"""Settings persistence for per-document view preferences.

Settings are stored in an OS-appropriate location, indexed by document path,
so reopening a file restores its minimap, line numbers, scroll position and
collapsed headings.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

logger = logging.getLogger(__name__)

BOOLEAN_SETTINGS = ('show_minimap', 'show_line_numbers')
COUNT_SETTINGS = ('scroll_offset', 'current_line')


class SettingsPersistence:
    """Manages persistent storage of per-document settings.

    Settings are stored in a JSON file in the user's config directory,
    indexed by the absolute path of the document being viewed.
    """

    def __init__(self):
        """Initialize settings persistence."""
        self._config_dir = Path(platformdirs.user_config_dir("markview"))
        self._settings_file = self._config_dir / "settings.json"
        self._settings_cache: Optional[Dict[str, Dict[str, Any]]] = None

    def _ensure_config_dir(self) -> None:
        """Ensure the config directory exists."""
        try:
            self._config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create config directory {self._config_dir}: {e}")

    def _load_all_settings(self) -> Dict[str, Dict[str, Any]]:
        """Load all settings from disk.

        Returns:
            Dictionary mapping document paths to their settings.
            Returns empty dict if file doesn't exist or can't be read.
        """
        if self._settings_cache is not None:
            return self._settings_cache

        if not self._settings_file.exists():
            self._settings_cache = {}
            return self._settings_cache

        try:
            with open(self._settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load settings from {self._settings_file}: {e}")
            self._settings_cache = {}
            return self._settings_cache

        if not isinstance(data, dict):
            logger.warning("Settings file has invalid format (not a dict), ignoring")
            data = {}
        self._settings_cache = data
        return self._settings_cache

    def _save_all_settings(self, settings: Dict[str, Dict[str, Any]]) -> bool:
        """Save all settings to disk atomically (temp file + rename).

        Returns:
            True if save was successful, False otherwise.
        """
        self._ensure_config_dir()
        temp_file = self._settings_file.with_suffix('.tmp')

        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(settings, f, indent=2)
            temp_file.replace(self._settings_file)
            self._settings_cache = settings
            return True
        except OSError as e:
            logger.warning(f"Could not save settings to {self._settings_file}: {e}")
            try:
                if temp_file.exists():
                    temp_file.unlink()
            except OSError:
                pass
            return False

    @staticmethod
    def _key(document_path) -> Optional[str]:
        try:
            return os.path.abspath(document_path)
        except (OSError, ValueError, TypeError):
            logger.warning(f"Invalid document path: {document_path}")
            return None

    def load_settings(self, document_path) -> Dict[str, Any]:
        """Load the valid settings for a specific document.

        Args:
            document_path: Path to the document. If None, returns empty dict.

        Returns:
            Dictionary of settings for the document, with invalid entries dropped.
        """
        if document_path is None:
            return {}
        abs_path = self._key(document_path)
        if abs_path is None:
            return {}

        doc_settings = self._load_all_settings().get(abs_path, {})
        if not isinstance(doc_settings, dict):
            logger.warning(f"Settings for {abs_path} are not a dict, ignoring")
            return {}

        valid = {}
        for key, value in doc_settings.items():
            if self.validate_setting(key, value):
                valid[key] = value
            else:
                logger.warning(f"Ignoring invalid setting {key}={value!r} for {abs_path}")
        return valid

    def save_settings(self, document_path, settings: Dict[str, Any]) -> bool:
        """Save settings for a specific document.

        Returns:
            True if save was successful, False otherwise.
        """
        if document_path is None:
            return False
        abs_path = self._key(document_path)
        if abs_path is None:
            return False

        all_settings = self._load_all_settings()
        all_settings[abs_path] = settings
        return self._save_all_settings(all_settings)

    def validate_setting(self, key: str, value: Any) -> bool:
        """Validate a setting value.

        Args:
            key: Setting key name.
            value: Setting value to validate.

        Returns:
            True if setting is valid, False otherwise.
        """
        if value is None:
            return True  # None is valid (means "not set")

        if key in BOOLEAN_SETTINGS:
            return isinstance(value, bool)

        # bool is an int subclass; reject it for counts
        if key in COUNT_SETTINGS:
            return isinstance(value, int) and not isinstance(value, bool) and value >= 0

        if key == 'collapsed_sections':
            return isinstance(value, list) and all(
                isinstance(v, int) and not isinstance(v, bool) and v >= 0 for v in value)

        # Unknown settings are considered valid (forward compatibility)
        return True

    def clear_cache(self) -> None:
        """Clear the in-memory cache of settings."""
        self._settings_cache = None


# Global instance
_persistence: Optional[SettingsPersistence] = None


def get_persistence() -> SettingsPersistence:
    """Get the global settings persistence instance."""
    global _persistence
    if _persistence is None:
        _persistence = SettingsPersistence()
    return _persistence
