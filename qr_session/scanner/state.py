from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from .defaults import (
    STATUS_TEXT_ERROR,
    STATUS_TEXT_IDLE,
    STATUS_TEXT_MATCH,
    STATUS_TEXT_NO_CAMERAS,
    STATUS_TEXT_PERMISSION,
    STATUS_TEXT_SCANNING,
)
from .registry import CameraDescriptor, CameraRegistry


class SessionPhase(Enum):
    IDLE = auto()
    PERMISSION = auto()
    SCANNING = auto()
    MATCH = auto()


class StatusClass(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    WARNING = auto()


class ScanType(Enum):
    CAMERA = auto()
    FILE = auto()


class Control(Enum):
    START = auto()
    FILE_SCAN = auto()
    SWITCH = auto()
    STOP = auto()


CAMERA_CONTROLS = frozenset({Control.SWITCH, Control.STOP})


@dataclass(frozen=True)
class Status:
    text: str
    kind: StatusClass = StatusClass.DEFAULT

    @property
    def is_warning(self) -> bool:
        return self.kind == StatusClass.WARNING


STATUS_IDLE = Status(STATUS_TEXT_IDLE)
STATUS_PERMISSION = Status(STATUS_TEXT_PERMISSION)
STATUS_SCANNING = Status(STATUS_TEXT_SCANNING)
STATUS_MATCH = Status(STATUS_TEXT_MATCH, StatusClass.SUCCESS)
STATUS_ERROR = Status(STATUS_TEXT_ERROR, StatusClass.WARNING)
STATUS_NO_CAMERAS = Status(STATUS_TEXT_NO_CAMERAS, StatusClass.WARNING)


@dataclass(frozen=True)
class ScanResult:
    payload: Any
    source: ScanType = ScanType.CAMERA

    @property
    def text(self) -> str:
        return self.payload if isinstance(self.payload, str) else str(self.payload)


@dataclass(frozen=True)
class ScanError:
    message: str
    kind: str = "decode"
    source: ScanType = ScanType.CAMERA

    @classmethod
    def from_exception(cls, exc: BaseException, source: ScanType = ScanType.CAMERA) -> "ScanError":
        return cls(str(exc) or type(exc).__name__, type(exc).__name__, source)


@dataclass(frozen=True)
class SessionState:
    phase: SessionPhase = SessionPhase.IDLE
    status: Status = STATUS_IDLE
    rendered: bool = False
    file_scan: bool = False
    cameras: CameraRegistry = field(default_factory=CameraRegistry)
    camera_controls_ready: bool = False
    visible: frozenset[Control] = frozenset()
    placeholder: bool = False

    @property
    def idle(self) -> bool:
        return self.phase == SessionPhase.IDLE

    @property
    def scanning(self) -> bool:
        return self.phase == SessionPhase.SCANNING

    @property
    def matched(self) -> bool:
        return self.phase == SessionPhase.MATCH

    @property
    def awaiting_permission(self) -> bool:
        return self.phase == SessionPhase.PERMISSION

    @property
    def has_camera(self) -> bool:
        return self.cameras.has_selection

    @property
    def can_switch(self) -> bool:
        return self.cameras.can_switch

    @property
    def phase_display(self) -> str:
        if self.status.is_warning:
            return "Warning"
        return self.phase.name.capitalize()


def initial_state() -> SessionState:
    return SessionState()


__all__ = [
    "SessionPhase", "StatusClass", "ScanType", "Control", "CAMERA_CONTROLS",
    "Status", "STATUS_IDLE", "STATUS_PERMISSION", "STATUS_SCANNING",
    "STATUS_MATCH", "STATUS_ERROR", "STATUS_NO_CAMERAS",
    "CameraDescriptor", "CameraRegistry",
    "ScanResult", "ScanError", "SessionState", "initial_state",
]
