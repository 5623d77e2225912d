"""Save-directory resolution and destination path validation for FlashCap.

This module decides where screenshots are written and guards every write
that a caller can point at an arbitrary path: a destination is only
accepted once its canonical (symlink-free) form is inside the canonical
save directory.
"""

import logging
import os
import subprocess
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .errors import PathEscape, WriteFailed

logger = logging.getLogger(__name__)


class FlashCapPaths:
    """Centralized path management for FlashCap.

    Provides the default directories, the OS location query and the
    file naming convention used across the application.
    """

    # Default save directory (under the system temp directory)
    DEFAULT_DIR_NAME = "flashcap"
    # Fallback when the OS screenshot location cannot be queried
    USER_FALLBACK_DIR = "~/Desktop"
    SETTINGS_FILE = "~/.config/flashcap/settings.json"
    SETTINGS_ENV_VAR = "FLASHCAP_SETTINGS"

    # File naming configuration
    SCREENSHOT_PREFIX = "flashcap"
    SCREENSHOT_EXTENSION = ".png"
    TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

    # Asks the capture tool where the user wants screenshots saved
    SYSTEM_LOCATION_QUERY = ["defaults", "read", "com.apple.screencapture", "location"]
    QUERY_TIMEOUT_SECONDS = 5

    @staticmethod
    def get_default_dir() -> str:
        """Get the fixed default save directory.

        Returns:
            str: Absolute path to <tempdir>/flashcap.
        """
        return os.path.join(tempfile.gettempdir(), FlashCapPaths.DEFAULT_DIR_NAME)

    @staticmethod
    def get_user_fallback_dir() -> str:
        return os.path.expanduser(FlashCapPaths.USER_FALLBACK_DIR)

    @staticmethod
    def get_settings_file() -> str:
        """Get the settings store location, honoring FLASHCAP_SETTINGS."""
        override = os.environ.get(FlashCapPaths.SETTINGS_ENV_VAR)
        if override:
            return os.path.expanduser(override)
        return os.path.expanduser(FlashCapPaths.SETTINGS_FILE)

    @staticmethod
    def generate_screenshot_filename() -> str:
        """Generate a timestamped screenshot filename.

        Returns:
            str: Filename in format: flashcap_YYYYmmdd_HHMMSS.png

        Example:
            >>> FlashCapPaths.generate_screenshot_filename()
            'flashcap_20250115_143022.png'
        """
        timestamp = datetime.now().strftime(FlashCapPaths.TIMESTAMP_FORMAT)
        return f"{FlashCapPaths.SCREENSHOT_PREFIX}_{timestamp}{FlashCapPaths.SCREENSHOT_EXTENSION}"


def query_system_screenshot_dir(command: Optional[List[str]] = None) -> Optional[str]:
    """Ask the OS where the capture tool saves screenshots by default.

    Returns:
        The configured directory with ~ expanded, or None if the query
        could not be run, failed, or printed nothing.
    """
    command = command or FlashCapPaths.SYSTEM_LOCATION_QUERY
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=FlashCapPaths.QUERY_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"Could not query system screenshot location: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"System screenshot location not configured (exit {result.returncode})")
        return None

    location = result.stdout.strip().splitlines()[0].strip() if result.stdout.strip() else ""
    if not location:
        return None
    return os.path.expanduser(location)


def resolve_save_directory(setting) -> str:
    """Turn a SaveDirectorySetting into an existing absolute directory.

    The directory is created (with parents) if it does not exist yet;
    doing so repeatedly is harmless.

    Args:
        setting: SaveDirectorySetting read from the settings store.

    Returns:
        str: Absolute path to the save directory.

    Raises:
        WriteFailed: The directory could not be created.
    """
    # Imported here to keep settings -> paths the only import direction
    from .settings import SaveDirectoryMode

    if setting.mode is SaveDirectoryMode.CUSTOM and setting.path:
        directory = os.path.expanduser(setting.path)
    elif setting.mode is SaveDirectoryMode.SYSTEM_DEFAULT:
        directory = query_system_screenshot_dir()
        if directory is None:
            fallback = FlashCapPaths.get_user_fallback_dir()
            if os.path.isdir(fallback):
                logger.info(f"Using fallback screenshot directory: {fallback}")
                directory = fallback
            else:
                directory = FlashCapPaths.get_default_dir()
    else:
        directory = FlashCapPaths.get_default_dir()

    directory = os.path.abspath(directory)
    try:
        Path(directory).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create save directory {directory}: {e}")
        raise WriteFailed(directory, e) from e
    return directory


def build_capture_path(save_dir: str) -> str:
    """Get the full destination path for a new capture in save_dir."""
    return os.path.join(save_dir, FlashCapPaths.generate_screenshot_filename())


def _canonicalize(path: str) -> str:
    # lexists so a dangling symlink is followed to where a write would land
    if os.path.lexists(path):
        return os.path.realpath(path)

    parent, name = os.path.split(path)
    return os.path.join(os.path.realpath(parent or os.curdir), name)


def validate_destination(save_dir: str, requested_path: str) -> str:
    """Validate that requested_path lands strictly inside save_dir.

    Both paths are canonicalized first, so ``..`` components and symlinks
    (in the save directory or in the requested path) are resolved before
    the containment check. A file that does not exist yet is checked
    through its parent directory. Relative paths are taken relative to
    save_dir.

    Args:
        save_dir: The authorized save directory.
        requested_path: Destination the caller wants to write.

    Returns:
        str: The canonical destination path, safe to write.

    Raises:
        PathEscape: The destination is outside save_dir, is save_dir itself,
            or is not a valid path (embedded NUL byte).
    """
    canonical_dir = os.path.realpath(save_dir)

    if "\x00" in requested_path:
        logger.warning(f"Blocked write to path with embedded NUL byte: {requested_path!r}")
        raise PathEscape(repr(requested_path), canonical_dir)

    candidate = os.path.expanduser(requested_path)
    if not os.path.isabs(candidate):
        candidate = os.path.join(save_dir, candidate)

    name = os.path.basename(candidate)
    if name in ("", os.curdir, os.pardir):
        # "dir/" or "dir/.." names a directory, never a file to write
        candidate = os.path.normpath(candidate)

    target = _canonicalize(candidate)

    try:
        inside = os.path.commonpath([canonical_dir, target]) == canonical_dir
    except ValueError:
        # Different drives on Windows
        inside = False

    if not inside or target == canonical_dir:
        logger.warning(f"Blocked write outside save directory: {requested_path} -> {target}")
        raise PathEscape(target, canonical_dir)

    return target
