"""Read-only access to FlashCap user preferences.

Preferences live in an external key-value store owned by the app shell.
This module only reads them: every lookup goes back to the store, and any
problem with the store (missing file, bad JSON, missing key, wrong type)
quietly falls back to the documented default.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

from .paths import FlashCapPaths

logger = logging.getLogger(__name__)


class SettingsStore(Protocol):
    """Anything with a ``get(key)`` lookup returning None when absent."""

    def get(self, key: str) -> Optional[Any]:
        ...


class JsonSettingsStore:
    """Settings store backed by a JSON object file.

    The file is re-read on every lookup so changes made by the app shell
    between requests are picked up.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or FlashCapPaths.get_settings_file()

    def get(self, key: str) -> Optional[Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug(f"Settings store not found: {self.path}")
            return None
        except (OSError, ValueError) as e:
            logger.debug(f"Settings store unreadable ({self.path}): {e}")
            return None

        if not isinstance(data, dict):
            logger.debug(f"Settings store is not a JSON object: {self.path}")
            return None
        return data.get(key)


class SaveDirectoryMode(Enum):
    DEFAULT = "default"
    SYSTEM_DEFAULT = "system"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SaveDirectorySetting:
    """Where screenshots go: the fixed default, the OS default, or a custom path."""

    mode: SaveDirectoryMode
    path: Optional[str] = None

    CUSTOM_PREFIX = "custom:"

    @classmethod
    def default(cls) -> "SaveDirectorySetting":
        return cls(SaveDirectoryMode.DEFAULT)

    @classmethod
    def system_default(cls) -> "SaveDirectorySetting":
        return cls(SaveDirectoryMode.SYSTEM_DEFAULT)

    @classmethod
    def custom(cls, path: str) -> "SaveDirectorySetting":
        return cls(SaveDirectoryMode.CUSTOM, path)

    @classmethod
    def parse(cls, value: Any) -> "SaveDirectorySetting":
        """Parse the stored ``save_directory`` value.

        Recognized values are ``"default"``, ``"system"`` and
        ``"custom:<path>"``. Anything else, including a custom tag with an
        empty path, is treated as the default.
        """
        if not isinstance(value, str):
            return cls.default()
        if value == SaveDirectoryMode.SYSTEM_DEFAULT.value:
            return cls.system_default()
        if value.startswith(cls.CUSTOM_PREFIX):
            path = value[len(cls.CUSTOM_PREFIX):].strip()
            if path:
                return cls.custom(path)
        return cls.default()


@dataclass(frozen=True)
class CaptureConfig:
    """Per-invocation capture options built from settings."""

    exclude_shadow: bool = True
    timer_delay: int = 5
    interactive: bool = True


class SettingsResolver:
    """Reads named preferences from a store, applying defaults."""

    SAVE_DIRECTORY_KEY = "save_directory"
    EXCLUDE_SHADOW_KEY = "exclude_shadow"
    TIMER_DELAY_KEY = "timer_delay"

    DEFAULT_EXCLUDE_SHADOW = True
    DEFAULT_TIMER_DELAY = 5

    def __init__(self, store: Optional[SettingsStore] = None):
        self.store = store if store is not None else JsonSettingsStore()

    def _lookup(self, key: str) -> Optional[Any]:
        try:
            return self.store.get(key)
        except Exception as e:
            # Stores are external collaborators; a broken one reads as empty.
            logger.debug(f"Settings lookup for {key!r} failed: {e}")
            return None

    def get_save_directory_setting(self) -> SaveDirectorySetting:
        return SaveDirectorySetting.parse(self._lookup(self.SAVE_DIRECTORY_KEY))

    def get_exclude_shadow(self) -> bool:
        value = self._lookup(self.EXCLUDE_SHADOW_KEY)
        if isinstance(value, bool):
            return value
        return self.DEFAULT_EXCLUDE_SHADOW

    def get_timer_delay(self) -> int:
        value = self._lookup(self.TIMER_DELAY_KEY)
        # bool is an int subclass; a stored true/false is not a delay
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return value
        return self.DEFAULT_TIMER_DELAY

    def get_capture_config(self) -> CaptureConfig:
        return CaptureConfig(
            exclude_shadow=self.get_exclude_shadow(),
            timer_delay=self.get_timer_delay(),
        )

