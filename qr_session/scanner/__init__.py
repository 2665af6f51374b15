from .state import (
    SessionPhase, StatusClass, ScanType, Control,
    Status, ScanResult, ScanError, SessionState, initial_state,
    STATUS_IDLE, STATUS_PERMISSION, STATUS_SCANNING,
    STATUS_MATCH, STATUS_ERROR, STATUS_NO_CAMERAS,
)
from .registry import CameraDescriptor, CameraRegistry
from .config import ScanConfig, DEFAULT_SCAN_CONFIG, effective_config, load_config
from .errors import (
    ScannerError, ElementNotFoundError, SessionStateError, FileScanDisabledError,
    EnumerationError, CaptureStartError, CaptureStopError, DecodeError, ConfigError,
)
from .actions import Action
from .effects import Effect
from .update import update
from .engine import CAPTURE_FAILED, DecodeEngine, EngineFactory
from .surface import ScannerSurface, MountDirectory, MemorySurface, MountTable
from .controller import SessionController

__all__ = [
    "SessionPhase", "StatusClass", "ScanType", "Control",
    "Status", "ScanResult", "ScanError", "SessionState", "initial_state",
    "STATUS_IDLE", "STATUS_PERMISSION", "STATUS_SCANNING",
    "STATUS_MATCH", "STATUS_ERROR", "STATUS_NO_CAMERAS",
    "CameraDescriptor", "CameraRegistry",
    "ScanConfig", "DEFAULT_SCAN_CONFIG", "effective_config", "load_config",
    "ScannerError", "ElementNotFoundError", "SessionStateError", "FileScanDisabledError",
    "EnumerationError", "CaptureStartError", "CaptureStopError", "DecodeError", "ConfigError",
    "Action", "Effect", "update",
    "CAPTURE_FAILED", "DecodeEngine", "EngineFactory",
    "ScannerSurface", "MountDirectory", "MemorySurface", "MountTable",
    "SessionController",
]
