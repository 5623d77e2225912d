"""Error types raised by FlashCap.

Every failure a capture or write request can end in is one of these.
Callers catch FlashCapError for the general case and CaptureCancelled
separately, since a cancelled capture is a normal outcome.
"""


class FlashCapError(Exception):
    """Base class for all FlashCap failures."""


class CaptureCancelled(FlashCapError):
    """The user aborted the capture or the tool reported non-success."""

    def __init__(self, message: str = "Screenshot was cancelled"):
        super().__init__(message)


class CaptureInProgress(FlashCapError):
    """A capture was requested while another one is still running."""

    def __init__(self):
        super().__init__("A screenshot capture is already in progress")


class PathEscape(FlashCapError):
    """A requested write target resolves outside the save directory."""

    def __init__(self, path: str, save_dir: str):
        self.path = path
        self.save_dir = save_dir
        super().__init__(
            f"Refusing to write outside the save directory: {path} is not inside {save_dir}"
        )


class ImageFileNotFound(FlashCapError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Screenshot file not found: {path}")


class ReadFailed(FlashCapError):
    def __init__(self, path: str, reason: object):
        self.path = path
        super().__init__(f"Failed to read screenshot {path}: {reason}")


class WriteFailed(FlashCapError):
    def __init__(self, path: str, reason: object):
        self.path = path
        super().__init__(f"Failed to write {path}: {reason}")


class DecodeFailed(FlashCapError):
    """Malformed image bytes or malformed base64 transport data."""


class ProcessLaunchFailed(FlashCapError):
    """The capture tool could not be started at all."""

    def __init__(self, executable: str, reason: object):
        self.executable = executable
        super().__init__(f"Failed to run {executable}: {reason}")
