from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from flashcap.utils.paths import FlashCapPaths


class DummyStore:
    """Minimal settings store stub with get support."""

    def __init__(self, initial: dict[str, object] | None = None) -> None:
        self.store: dict[str, object] = dict(initial or {})

    def get(self, key: str) -> object | None:
        return self.store.get(key)


def make_png(width: int = 32, height: int = 16) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (0, 150, 255)).save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def default_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the fixed default save directory into tmp_path."""
    target = tmp_path / "default"
    monkeypatch.setattr(FlashCapPaths, "get_default_dir", staticmethod(lambda: str(target)))
    return target


@pytest.fixture
def save_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "shots"
    directory.mkdir()
    return directory
