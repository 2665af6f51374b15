"""Exception taxonomy for scan sessions.

Only ``ElementNotFoundError``, ``SessionStateError``, ``FileScanDisabledError``
and ``ConfigError`` ever reach the embedding application. The engine-side
errors are raised by decode engines and converted into status changes by the
session controller.
"""

from __future__ import annotations


class ScannerError(RuntimeError):
    """Base class for every error raised by qr_session.scanner."""


class ElementNotFoundError(ScannerError):
    """The mount reference handed to the controller does not resolve."""

    def __init__(self, mount_id: object) -> None:
        super().__init__(f"Mount with id={mount_id!r} not found")
        self.mount_id = mount_id


class SessionStateError(ScannerError):
    """An operation was called in a lifecycle state that does not allow it."""


class FileScanDisabledError(SessionStateError):
    """scan_file() was called while the file-scan affordance is disabled."""


class EnumerationError(ScannerError):
    """Camera enumeration failed (permission denied or no hardware access)."""


class CaptureStartError(ScannerError):
    """The capture device could not be opened or the loop did not start."""


class CaptureStopError(ScannerError):
    """The capture loop or device could not be released cleanly."""


class DecodeError(ScannerError):
    """A frame or an image file did not yield a QR payload."""


class ConfigError(ValueError):
    """Invalid scanner configuration."""


__all__ = [
    "ScannerError",
    "ElementNotFoundError",
    "SessionStateError",
    "FileScanDisabledError",
    "EnumerationError",
    "CaptureStartError",
    "CaptureStopError",
    "DecodeError",
    "ConfigError",
]
