"""Tests for the capture orchestrator.

Real child Python processes stand in for the OS capture tool so that the
asyncio subprocess handling is exercised end to end.
"""

from __future__ import annotations

import asyncio
import os
import sys
import threading
from pathlib import Path

import pytest

from conftest import DummyStore, make_png
from flashcap.utils import capture as capture_module
from flashcap.utils.capture import CaptureOrchestrator, CaptureTool, ScreencaptureTool
from flashcap.utils.errors import CaptureCancelled, CaptureInProgress, ProcessLaunchFailed
from flashcap.utils.settings import CaptureConfig, SettingsResolver

COPY_SOURCE = "import shutil, sys; shutil.copyfile(sys.argv[2], sys.argv[1])"
SLOW_COPY_SOURCE = "import shutil, sys, time; time.sleep(0.5); shutil.copyfile(sys.argv[2], sys.argv[1])"
EXIT_FAILURE = "import sys; sys.exit(1)"
EXIT_WITHOUT_FILE = "pass"


class ScriptTool(CaptureTool):
    """Runs a Python snippet instead of screencapture: argv = [dest, source]."""

    def __init__(self, script: str, source: Path | None = None, executable: str | None = None) -> None:
        self.script = script
        self.source = source
        self.executable = executable or sys.executable
        self.calls: list[tuple[CaptureConfig, str, int | None]] = []

    def build_args(self, config, destination, delay=None):
        self.calls.append((config, destination, delay))
        return [self.executable, "-c", self.script, destination, str(self.source or "")]


class FakeWindow:
    def __init__(self) -> None:
        self.events: list[str] = []

    def hide(self) -> None:
        self.events.append("hide")

    def show(self) -> None:
        self.events.append("show")


@pytest.fixture
def source_png(tmp_path: Path) -> Path:
    path = tmp_path / "source.png"
    path.write_bytes(make_png(64, 48))
    return path


@pytest.fixture
def resolver(save_dir: Path) -> SettingsResolver:
    return SettingsResolver(
        DummyStore({"save_directory": f"custom:{save_dir}", "exclude_shadow": False, "timer_delay": 3})
    )


def test_screencapture_interactive_args() -> None:
    args = ScreencaptureTool().build_args(CaptureConfig(exclude_shadow=False), "/shots/a.png")
    assert args == ["screencapture", "-i", "/shots/a.png"]


def test_screencapture_shadow_and_timer_args() -> None:
    args = ScreencaptureTool().build_args(CaptureConfig(exclude_shadow=True, timer_delay=7), "/shots/a.png", 7)
    assert args == ["screencapture", "-i", "-o", "-T", "7", "/shots/a.png"]


def test_successful_capture_returns_result(resolver, source_png, save_dir) -> None:
    tool = ScriptTool(COPY_SOURCE, source_png)
    orchestrator = CaptureOrchestrator(resolver, tool)

    result = asyncio.run(orchestrator.capture_interactive())

    assert (result.width, result.height) == (64, 48)
    assert Path(result.file_path).parent == save_dir.resolve()
    assert Path(result.file_path).read_bytes() == source_png.read_bytes()
    config, _, delay = tool.calls[0]
    assert delay is None
    assert config.exclude_shadow is False


def test_timer_capture_passes_configured_delay(resolver, source_png) -> None:
    tool = ScriptTool(COPY_SOURCE, source_png)
    asyncio.run(CaptureOrchestrator(resolver, tool).capture_with_timer())

    assert tool.calls[0][2] == 3


def test_explicit_config_overrides_settings(resolver, source_png) -> None:
    tool = ScriptTool(COPY_SOURCE, source_png)
    config = CaptureConfig(exclude_shadow=True, timer_delay=1)
    asyncio.run(CaptureOrchestrator(resolver, tool).capture_with_timer(config))

    assert tool.calls[0][0] is config
    assert tool.calls[0][2] == 1


def test_non_zero_exit_is_cancelled(resolver, save_dir) -> None:
    orchestrator = CaptureOrchestrator(resolver, ScriptTool(EXIT_FAILURE))

    with pytest.raises(CaptureCancelled):
        asyncio.run(orchestrator.capture_interactive())
    assert list(save_dir.iterdir()) == []


def test_zero_exit_without_file_is_cancelled(resolver) -> None:
    orchestrator = CaptureOrchestrator(resolver, ScriptTool(EXIT_WITHOUT_FILE))

    with pytest.raises(CaptureCancelled):
        asyncio.run(orchestrator.capture_interactive())


def test_missing_tool_is_launch_failure(resolver, tmp_path) -> None:
    tool = ScriptTool(EXIT_WITHOUT_FILE, executable=str(tmp_path / "no-such-tool"))

    with pytest.raises(ProcessLaunchFailed) as excinfo:
        asyncio.run(CaptureOrchestrator(resolver, tool).capture_interactive())
    assert "no-such-tool" in str(excinfo.value)


def test_window_is_hidden_and_restored(resolver, source_png) -> None:
    window = FakeWindow()
    orchestrator = CaptureOrchestrator(resolver, ScriptTool(COPY_SOURCE, source_png), window=window, hide_delay=0)

    asyncio.run(orchestrator.capture_interactive())

    assert window.events == ["hide", "show"]


def test_window_is_restored_after_cancel(resolver) -> None:
    window = FakeWindow()
    orchestrator = CaptureOrchestrator(resolver, ScriptTool(EXIT_FAILURE), window=window, hide_delay=0)

    with pytest.raises(CaptureCancelled):
        asyncio.run(orchestrator.capture_interactive())
    assert window.events == ["hide", "show"]


def test_second_capture_while_in_flight_is_rejected(resolver, source_png) -> None:
    orchestrator = CaptureOrchestrator(resolver, ScriptTool(SLOW_COPY_SOURCE, source_png))

    async def run_both():
        return await asyncio.gather(
            orchestrator.capture_interactive(),
            orchestrator.capture_interactive(),
            return_exceptions=True,
        )

    first, second = asyncio.run(run_both())

    assert first.width == 64
    assert isinstance(second, CaptureInProgress)
    assert not orchestrator.busy


def test_orchestrator_is_reusable_after_failure(resolver, source_png) -> None:
    tool = ScriptTool(EXIT_FAILURE, source_png)
    orchestrator = CaptureOrchestrator(resolver, tool)

    with pytest.raises(CaptureCancelled):
        asyncio.run(orchestrator.capture_interactive())

    tool.script = COPY_SOURCE
    assert asyncio.run(orchestrator.capture_interactive()).height == 48


def test_module_capture_reads_store(monkeypatch, save_dir, source_png) -> None:
    tool = ScriptTool(COPY_SOURCE, source_png)
    monkeypatch.setattr(capture_module, "ScreencaptureTool", lambda: tool)
    store = DummyStore({"save_directory": f"custom:{save_dir}"})

    result = asyncio.run(capture_module.capture_interactive(store))

    assert Path(result.file_path).parent == save_dir.resolve()
    assert tool.calls[0][0].exclude_shadow is True


class ThreadRecordingStore(DummyStore):
    def __init__(self, initial) -> None:
        super().__init__(initial)
        self.threads: set[int] = set()

    def get(self, key):
        self.threads.add(threading.get_ident())
        return super().get(key)


def test_settings_are_read_off_the_event_loop_thread(save_dir, source_png) -> None:
    store = ThreadRecordingStore({"save_directory": f"custom:{save_dir}"})
    orchestrator = CaptureOrchestrator(SettingsResolver(store), ScriptTool(COPY_SOURCE, source_png))

    asyncio.run(orchestrator.capture_interactive())

    assert store.threads
    assert threading.get_ident() not in store.threads


def test_cancelling_the_caller_kills_the_tool(resolver, tmp_path) -> None:
    pid_file = tmp_path / "tool.pid"
    script = "import os, pathlib, sys, time; pathlib.Path(sys.argv[2]).write_text(str(os.getpid())); time.sleep(30)"
    orchestrator = CaptureOrchestrator(resolver, ScriptTool(script, pid_file))

    async def start_then_cancel():
        task = asyncio.ensure_future(orchestrator.capture_interactive())
        for _ in range(200):
            if pid_file.exists() and pid_file.read_text():
                break
            await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(start_then_cancel())

    pid = int(pid_file.read_text())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
    assert not orchestrator.busy
