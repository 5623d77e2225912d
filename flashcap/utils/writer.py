"""Writing UI-supplied image data to disk.

This is the only place a caller chooses an arbitrary destination path,
so the destination is validated against the save directory before the
data is even decoded.
"""

import logging
from typing import Optional

from .errors import WriteFailed
from .image_ingest import decode_image_data
from .paths import resolve_save_directory, validate_destination
from .settings import SaveDirectorySetting, SettingsResolver, SettingsStore

logger = logging.getLogger(__name__)


def write_bytes(setting: SaveDirectorySetting, destination_path: str, encoded_data: str) -> str:
    """
    Write base64 image data to a path inside the save directory.

    Args:
        setting: Save directory setting the destination must stay inside
        destination_path: Requested file path (absolute or relative to the save directory)
        encoded_data: Base64 encoded file contents

    Returns:
        The canonical path that was written

    Raises:
        PathEscape: destination_path resolves outside the save directory
        DecodeFailed: encoded_data is not valid base64
        WriteFailed: The file could not be written
    """
    save_dir = resolve_save_directory(setting)
    target = validate_destination(save_dir, destination_path)
    data = decode_image_data(encoded_data)

    try:
        with open(target, "wb") as f:
            f.write(data)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to write image to {target}: {e}")
        raise WriteFailed(target, e) from e

    logger.info(f"Image written: {target} ({len(data)} bytes)")
    return target


def write_image(destination_path: str, encoded_data: str, store: Optional[SettingsStore] = None) -> str:
    """Convenient function: write_bytes with the save directory read from settings."""
    setting = SettingsResolver(store).get_save_directory_setting()
    return write_bytes(setting, destination_path, encoded_data)
