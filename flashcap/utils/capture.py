"""
Capture orchestration for FlashCap.

This module drives the OS screen-capture tool:
- Building the tool invocation (interactive selection, shadow, timer)
- Running it as an asyncio subprocess without blocking the event loop
- Hiding the app window while the capture overlay is up
- Telling a finished capture apart from a cancelled one
- Loading the resulting PNG into a CaptureResult
"""

import asyncio
import logging
import os
from typing import List, Optional

from .errors import CaptureCancelled, CaptureInProgress, ProcessLaunchFailed
from .image_ingest import CaptureResult, load_capture
from .paths import build_capture_path, resolve_save_directory, validate_destination
from .settings import CaptureConfig, SettingsResolver, SettingsStore

logger = logging.getLogger(__name__)


class CaptureTool:
    """Command-line screen-capture tool the orchestrator can drive."""

    executable = ""

    def build_args(self, config: CaptureConfig, destination: str, delay: Optional[int] = None) -> List[str]:
        raise NotImplementedError


class ScreencaptureTool(CaptureTool):
    """The macOS ``screencapture`` utility."""

    executable = "screencapture"

    INTERACTIVE_FLAG = "-i"
    NO_SHADOW_FLAG = "-o"
    DELAY_FLAG = "-T"

    def __init__(self, executable: Optional[str] = None):
        if executable:
            self.executable = executable

    def build_args(self, config: CaptureConfig, destination: str, delay: Optional[int] = None) -> List[str]:
        args = [self.executable]
        if config.interactive:
            args.append(self.INTERACTIVE_FLAG)
        if config.exclude_shadow:
            args.append(self.NO_SHADOW_FLAG)
        if delay is not None:
            args.extend([self.DELAY_FLAG, str(delay)])
        args.append(destination)
        return args


class CaptureOrchestrator:
    """Runs captures and turns their outcome into a CaptureResult.

    One orchestrator allows one capture at a time; a second request while
    the first is still running raises CaptureInProgress instead of
    queueing.
    """

    # Time for the window to disappear before the overlay starts
    HIDE_DELAY_SECONDS = 0.3

    def __init__(
        self,
        settings: Optional[SettingsResolver] = None,
        tool: Optional[CaptureTool] = None,
        window=None,
        hide_delay: float = HIDE_DELAY_SECONDS,
    ):
        """
        Args:
            settings: Source of the save directory and capture options
            tool: Capture tool to run (defaults to screencapture)
            window: Optional app window with hide()/show(), kept out of the shot
            hide_delay: Seconds to wait after hiding the window
        """
        self.settings = settings or SettingsResolver()
        self.tool = tool or ScreencaptureTool()
        self.window = window
        self.hide_delay = hide_delay
        self._in_flight = False

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def capture_interactive(self, config: Optional[CaptureConfig] = None) -> CaptureResult:
        """Let the user select a region or window, then load the result."""
        return await self._capture(config, timed=False)

    async def capture_with_timer(self, config: Optional[CaptureConfig] = None) -> CaptureResult:
        """Like capture_interactive, but the tool waits timer_delay seconds first."""
        return await self._capture(config, timed=True)

    async def _capture(self, config: Optional[CaptureConfig], timed: bool) -> CaptureResult:
        if self._in_flight:
            logger.warning("Capture requested while another is in progress")
            raise CaptureInProgress()

        self._in_flight = True
        try:
            config, save_dir = await asyncio.to_thread(self._prepare, config)
            destination = validate_destination(save_dir, build_capture_path(save_dir))

            delay = config.timer_delay if timed else None
            args = self.tool.build_args(config, destination, delay)

            returncode = await self._run_tool(args)

            if returncode != 0:
                logger.info(f"Capture tool exited with {returncode}, treating as cancelled")
                raise CaptureCancelled()

            # Some tools exit 0 when the user presses Escape in the overlay
            if not os.path.exists(destination):
                logger.info(f"No screenshot written to {destination}, treating as cancelled")
                raise CaptureCancelled()

            result = await asyncio.to_thread(load_capture, destination)
            logger.info(f"Screenshot captured: {result.file_path} ({result.width}x{result.height})")
            return result
        finally:
            self._in_flight = False

    def _prepare(self, config: Optional[CaptureConfig]):
        # Settings store and save directory both touch the filesystem
        if config is None:
            config = self.settings.get_capture_config()
        setting = self.settings.get_save_directory_setting()
        return config, resolve_save_directory(setting)

    async def _run_tool(self, args: List[str]) -> int:
        logger.debug(f"Running capture tool: {args}")

        if self.window is not None:
            self.window.hide()
            await asyncio.sleep(self.hide_delay)

        try:
            try:
                process = await asyncio.create_subprocess_exec(
                    *args,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except OSError as e:
                logger.error(f"Failed to launch {args[0]}: {e}")
                raise ProcessLaunchFailed(args[0], e) from e

            try:
                return await process.wait()
            except asyncio.CancelledError:
                if process.returncode is None:
                    logger.warning(f"Capture cancelled by caller, killing {args[0]} (pid {process.pid})")
                    process.kill()
                    await process.wait()
                raise
        finally:
            if self.window is not None:
                self.window.show()


async def capture_interactive(store: Optional[SettingsStore] = None, window=None) -> CaptureResult:
    """
    Convenient function to take an interactive screenshot.

    Settings are read fresh from store (the JSON settings file by default).

    Returns:
        CaptureResult for the captured image

    Raises:
        CaptureCancelled: The user aborted the selection
        ProcessLaunchFailed: screencapture could not be started
    """
    orchestrator = CaptureOrchestrator(SettingsResolver(store), window=window)
    return await orchestrator.capture_interactive()


async def capture_with_timer(store: Optional[SettingsStore] = None, window=None) -> CaptureResult:
    """Convenient function to take a timed screenshot (see capture_interactive)."""
    orchestrator = CaptureOrchestrator(SettingsResolver(store), window=window)
    return await orchestrator.capture_with_timer()
