"""
settings.py - Non-secret user preferences stored next to the vault
"""
import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict

from .storage import Storage

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "settings.json"

# JSON key -> (attribute name, type)
_KEYS = {
    "autoLockTimeout": ("auto_lock_timeout", int),
    "clipboardClearTimeout": ("clipboard_clear_timeout", int),
    "showPasswords": ("show_passwords", bool),
}


@dataclass
class AppSettings:
    auto_lock_timeout: int = 15        # minutes
    clipboard_clear_timeout: int = 30  # seconds
    show_passwords: bool = False

    def to_dict(self) -> Dict[str, Any]:
        values = asdict(self)
        return {key: values[attr] for key, (attr, _) in _KEYS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        """Known keys override the defaults; anything else is ignored."""
        settings = cls()
        for key, (attr, expected) in _KEYS.items():
            if key not in data:
                continue
            value = data[key]
            # bool is a subclass of int
            if isinstance(value, expected) and not (expected is int and isinstance(value, bool)):
                setattr(settings, attr, value)
            else:
                logger.warning("ignoring setting %s with invalid value %r", key, value)
        return settings


def load_settings(path: str) -> AppSettings:
    """
    Load settings, falling back to defaults.

    A missing or unreadable file gives the defaults; a broken file is
    logged, never fatal.
    """
    if not os.path.exists(path):
        return AppSettings()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        # ValueError covers bad JSON and bad UTF-8
        logger.warning("could not read settings from %s: %s", path, e)
        return AppSettings()
    if not isinstance(data, dict):
        logger.warning("settings file %s is not a JSON object", path)
        return AppSettings()
    return AppSettings.from_dict(data)


def save_settings(settings: AppSettings, path: str) -> None:
    """
    Write settings to disk.

    Raises:
        IOFailure: If the file cannot be written
    """
    payload = json.dumps(settings.to_dict(), indent=2).encode('utf-8')
    Storage(path).save(payload)
