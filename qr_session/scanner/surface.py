"""UI surface contract plus an in-memory implementation.

The controller never builds widgets. It sends display commands to a
``ScannerSurface`` resolved from a ``MountDirectory`` at construction time.
``MemorySurface`` keeps those commands as plain state, which is what headless
embedders, the CLI and the tests use.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from qr_session.core.logging_utils import get_module_logger

from .state import Control, Status

logger = get_module_logger(__name__)


@runtime_checkable
class ScannerSurface(Protocol):
    @property
    def scan_region(self) -> Any:
        """Opaque handle the decode engine renders its preview into."""
        ...

    def build_layout(self, file_scan: bool) -> None: ...

    def prepare_camera_controls(self, switchable: bool) -> None: ...

    def show(self, control: Control) -> None: ...

    def hide(self, control: Control) -> None: ...

    def set_status(self, status: Status) -> None: ...

    def show_placeholder(self) -> None: ...

    def hide_placeholder(self) -> None: ...

    def reset(self) -> None: ...


@runtime_checkable
class MountDirectory(Protocol):
    def lookup(self, mount_id: str) -> Optional[ScannerSurface]: ...


class MemorySurface:
    """Records display commands; nothing is drawn."""

    def __init__(
        self,
        name: str = "scanner",
        *,
        on_status: Optional[Callable[[Status], None]] = None,
    ) -> None:
        self.name = name
        self._on_status = on_status
        self._scan_region = f"{name}:scan-region"
        self.built = False
        self.file_scan = False
        self.controls: set[Control] = set()
        self.visible: set[Control] = set()
        self.placeholder = False
        self.status: Optional[Status] = None
        self.status_history: List[Status] = []

    @property
    def scan_region(self) -> Any:
        return self._scan_region

    def build_layout(self, file_scan: bool) -> None:
        self.built = True
        self.file_scan = file_scan
        self.controls = {Control.START}
        if file_scan:
            self.controls.add(Control.FILE_SCAN)
        self.visible = set(self.controls)

    def prepare_camera_controls(self, switchable: bool) -> None:
        self.controls.add(Control.STOP)
        if switchable:
            self.controls.add(Control.SWITCH)

    def show(self, control: Control) -> None:
        if control not in self.controls:
            logger.debug("%s: show(%s) ignored, control not created", self.name, control.name)
            return
        self.visible.add(control)

    def hide(self, control: Control) -> None:
        self.visible.discard(control)

    def set_status(self, status: Status) -> None:
        self.status = status
        self.status_history.append(status)
        if self._on_status:
            self._on_status(status)

    def show_placeholder(self) -> None:
        self.placeholder = True

    def hide_placeholder(self) -> None:
        self.placeholder = False

    def reset(self) -> None:
        self.built = False
        self.file_scan = False
        self.controls.clear()
        self.visible.clear()
        self.placeholder = False
        self.status = None
        self.status_history.clear()

    def is_visible(self, control: Control) -> bool:
        return control in self.visible

    @property
    def pristine(self) -> bool:
        """True when the surface holds no scanner layout."""
        return (
            not self.built
            and not self.controls
            and not self.placeholder
            and self.status is None
        )


class MountTable:
    """Dict-backed ``MountDirectory``."""

    def __init__(self, surfaces: Optional[Dict[str, ScannerSurface]] = None) -> None:
        self._surfaces: Dict[str, ScannerSurface] = dict(surfaces or {})

    def add(self, mount_id: str, surface: ScannerSurface) -> ScannerSurface:
        self._surfaces[mount_id] = surface
        return surface

    def remove(self, mount_id: str) -> None:
        self._surfaces.pop(mount_id, None)

    def lookup(self, mount_id: str) -> Optional[ScannerSurface]:
        return self._surfaces.get(mount_id)

    def __contains__(self, mount_id: object) -> bool:
        return mount_id in self._surfaces


__all__ = ["MemorySurface", "MountDirectory", "MountTable", "ScannerSurface"]
