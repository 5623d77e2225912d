"""Loading captured images and encoding them for transport.

Captured PNGs are handed to the UI as base64 text together with their
pixel dimensions, which are read with Pillow.
"""

import base64
import binascii
import io
import logging
import os
from dataclasses import asdict, dataclass

from PIL import Image, UnidentifiedImageError

from .errors import DecodeFailed, ImageFileNotFound, ReadFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureResult:
    """A successfully captured screenshot."""

    width: int
    height: int
    data: str  # base64 encoded PNG
    file_path: str

    def to_dict(self) -> dict:
        return asdict(self)


def encode_image_data(raw: bytes) -> str:
    """Encode raw image bytes as base64 text."""
    return base64.b64encode(raw).decode("ascii")


def decode_image_data(encoded: str) -> bytes:
    """Decode base64 text back into raw bytes.

    Raises:
        DecodeFailed: encoded is not valid base64.
    """
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise DecodeFailed(f"Invalid base64 image data: {e}") from e


def read_image_size(raw: bytes):
    """Get (width, height) of an encoded image.

    Raises:
        DecodeFailed: raw is not a readable image.
    """
    try:
        with Image.open(io.BytesIO(raw)) as image:
            width, height = image.size
            image.verify()
        # verify() only checks chunk structure and leaves the image unusable;
        # decompress the pixel data from a fresh handle
        with Image.open(io.BytesIO(raw)) as image:
            image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise DecodeFailed(f"Failed to decode image: {e}") from e
    return width, height


def load_capture(file_path: str) -> CaptureResult:
    """
    Load a captured image file into a CaptureResult.

    Args:
        file_path: Path to the PNG written by the capture tool

    Returns:
        CaptureResult with dimensions, base64 data and the canonical path

    Raises:
        ImageFileNotFound: The file is missing (or vanished before reading)
        ReadFailed: The file exists but could not be read
        DecodeFailed: The file is not a valid image
    """
    if not os.path.exists(file_path):
        raise ImageFileNotFound(file_path)

    absolute_path = os.path.realpath(file_path)

    try:
        with open(absolute_path, "rb") as f:
            raw = f.read()
    except FileNotFoundError as e:
        raise ImageFileNotFound(absolute_path) from e
    except OSError as e:
        logger.error(f"Failed to read screenshot {absolute_path}: {e}")
        raise ReadFailed(absolute_path, e) from e

    width, height = read_image_size(raw)
    logger.debug(f"Loaded {absolute_path}: {width}x{height}, {len(raw)} bytes")

    return CaptureResult(
        width=width,
        height=height,
        data=encode_image_data(raw),
        file_path=absolute_path,
    )
