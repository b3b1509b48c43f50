import json
import os

from prm.config import get_config
from prm.log import get_logger

logger = get_logger("prm.settings")


class SettingsStore:
    """Per-machine UI settings (last view, sidebar state) kept in a JSON file."""

    def __init__(self, path=None):
        self.path = path or get_config().settings_file
        self._data = {}
        self._load()

    def _load(self):
        """Load settings from local JSON file if it exists."""
        if not os.path.exists(self.path):
            self._data = {}
            return
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            data = {}
        self._data = data if isinstance(data, dict) else {}

    def _save(self):
        """Persist settings to local JSON file."""
        with open(self.path, "w") as f:
            json.dump(self._data, f, indent=4)

    def get(self, key, default=None):
        """Get a setting, return default if missing."""
        return self._data.get(key, default)

    def set(self, key, value):
        """Update a setting and save it. Unchanged values skip the write."""
        if self._data.get(key) == value and key in self._data:
            return
        self._data[key] = value
        self._save()


# Singleton instance used by the app
settings_store = SettingsStore()
