"""Effects for the scan session.

Effects are display commands that the reducer requests. The session
controller applies them to its UI surface in order, inside the same dispatch
step that produced them.
"""

from dataclasses import dataclass

from .state import Control, Status


@dataclass(frozen=True)
class BuildLayout:
    """Create scan region, status line, start control and optional file control."""
    file_scan: bool


@dataclass(frozen=True)
class ResetSurface:
    """Restore the mount to its pre-render content."""
    pass


@dataclass(frozen=True)
class PrepareCameraControls:
    """Create the stop control, plus the switch control when switchable."""
    switchable: bool


@dataclass(frozen=True)
class ShowControl:
    control: Control


@dataclass(frozen=True)
class HideControl:
    control: Control


@dataclass(frozen=True)
class ShowPlaceholder:
    """Put the idle placeholder back into the scan region."""
    pass


@dataclass(frozen=True)
class HidePlaceholder:
    """Clear the placeholder so the live preview fills the scan region."""
    pass


@dataclass(frozen=True)
class SetStatus:
    status: Status


Effect = (
    BuildLayout | ResetSurface | PrepareCameraControls |
    ShowControl | HideControl | ShowPlaceholder | HidePlaceholder | SetStatus
)
