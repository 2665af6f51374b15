"""Actions for the scan session state machine.

Flow:
  IDLE → (PermissionRequested) → PERMISSION → (CamerasEnumerated) →
  (CaptureStarting) → (CaptureStarted) → SCANNING → (DecodeMatched) → MATCH
"""

from dataclasses import dataclass

from .registry import CameraDescriptor


# Layout

@dataclass(frozen=True)
class Rendered:
    """Layout built and decode engine created."""
    file_scan: bool


@dataclass(frozen=True)
class Cleared:
    """Session torn down; surface restored to its pre-render content."""
    pass


# Camera enumeration

@dataclass(frozen=True)
class PermissionRequested:
    """Camera enumeration (and the permission prompt behind it) started."""
    pass


@dataclass(frozen=True)
class CamerasEnumerated:
    """Enumeration returned; possibly an empty sequence."""
    cameras: tuple[CameraDescriptor, ...]


@dataclass(frozen=True)
class EnumerationFailed:
    """Permission denied or no hardware access."""
    message: str


@dataclass(frozen=True)
class CameraSwitched:
    """Advance the selection to the next enumerated camera."""
    pass


# Capture loop

@dataclass(frozen=True)
class CaptureStarting:
    """Device open requested."""
    pass


@dataclass(frozen=True)
class CaptureStarted:
    """Capture loop is live."""
    pass


@dataclass(frozen=True)
class CaptureStartFailed:
    """Device could not be opened."""
    message: str


@dataclass(frozen=True)
class CaptureStopped:
    """Capture loop stopped (or was already idle)."""
    pass


@dataclass(frozen=True)
class CaptureStopFailed:
    """Engine failed to release the device."""
    message: str


@dataclass(frozen=True)
class CaptureLoopFailed:
    """Live capture loop ended on its own, e.g. the device went away."""
    message: str


# Decoding

@dataclass(frozen=True)
class DecodeMatched:
    """A payload was decoded from a frame or a file."""
    pass


@dataclass(frozen=True)
class DecodeMissed:
    """A frame was processed without finding a code."""
    pass


@dataclass(frozen=True)
class FileDecodeFailed:
    """A one-shot file decode failed."""
    message: str


Action = (
    Rendered | Cleared |
    PermissionRequested | CamerasEnumerated | EnumerationFailed | CameraSwitched |
    CaptureStarting | CaptureStarted | CaptureStartFailed |
    CaptureStopped | CaptureStopFailed | CaptureLoopFailed |
    DecodeMatched | DecodeMissed | FileDecodeFailed
)
