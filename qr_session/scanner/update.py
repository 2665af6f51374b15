"""State reducer for the scan session.

  IDLE --(start, camera known)--> SCANNING
  IDLE --(start, camera unknown)--> PERMISSION
  PERMISSION --(cameras > 0)--> SCANNING
  PERMISSION --(cameras == 0 | denied)--> IDLE
  SCANNING --(match)--> MATCH
  SCANNING --(stop | stop failure | loop failure)--> IDLE
  SCANNING --(miss)--> SCANNING
"""

from dataclasses import replace
from typing import Iterable

from .actions import (
    Action,
    Rendered, Cleared,
    PermissionRequested, CamerasEnumerated, EnumerationFailed, CameraSwitched,
    CaptureStarting, CaptureStarted, CaptureStartFailed,
    CaptureStopped, CaptureStopFailed, CaptureLoopFailed,
    DecodeMatched, DecodeMissed, FileDecodeFailed,
)
from .effects import (
    Effect,
    BuildLayout, ResetSurface, PrepareCameraControls,
    ShowControl, HideControl, ShowPlaceholder, HidePlaceholder, SetStatus,
)
from .registry import CameraRegistry
from .state import (
    CAMERA_CONTROLS, Control, SessionPhase, SessionState, Status,
    STATUS_ERROR, STATUS_IDLE, STATUS_MATCH, STATUS_NO_CAMERAS,
    STATUS_PERMISSION, STATUS_SCANNING,
    initial_state,
)


def _status(state: SessionState, status: Status, effects: list[Effect]) -> SessionState:
    if state.status == status:
        return state
    effects.append(SetStatus(status))
    return replace(state, status=status)


def _show(state: SessionState, controls: Iterable[Control], effects: list[Effect]) -> SessionState:
    visible = set(state.visible)
    for control in controls:
        if control not in visible:
            visible.add(control)
            effects.append(ShowControl(control))
    return replace(state, visible=frozenset(visible))


def _hide(state: SessionState, controls: Iterable[Control], effects: list[Effect]) -> SessionState:
    visible = set(state.visible)
    for control in controls:
        if control in visible:
            visible.discard(control)
            effects.append(HideControl(control))
    return replace(state, visible=frozenset(visible))


def update(state: SessionState, action: Action) -> tuple[SessionState, list[Effect]]:
    """Pure reducer function: (state, action) -> (new_state, effects)"""

    effects: list[Effect] = []

    match action:
        # ================================================================
        # Layout
        # ================================================================

        case Rendered(file_scan):
            if state.rendered:
                return state, []

            visible = {Control.START}
            if file_scan:
                visible.add(Control.FILE_SCAN)
            new_state = SessionState(
                rendered=True,
                file_scan=file_scan,
                visible=frozenset(visible),
                placeholder=True,
            )
            return new_state, [BuildLayout(file_scan), SetStatus(STATUS_IDLE), ShowPlaceholder()]

        case Cleared():
            if not state.rendered:
                return initial_state(), []
            return initial_state(), [ResetSurface()]

    if not state.rendered:
        return state, []

    match action:
        # ================================================================
        # Camera enumeration
        # ================================================================

        case PermissionRequested():
            state = _status(state, STATUS_PERMISSION, effects)
            return replace(state, phase=SessionPhase.PERMISSION), effects

        case CamerasEnumerated(cameras):
            if not cameras:
                state = _status(state, STATUS_NO_CAMERAS, effects)
                return replace(state, phase=SessionPhase.IDLE, cameras=CameraRegistry()), effects

            registry = CameraRegistry.from_enumeration(cameras)
            state = _status(state, STATUS_IDLE, effects)
            if not state.camera_controls_ready:
                effects.append(PrepareCameraControls(registry.can_switch))
            return replace(state, cameras=registry, camera_controls_ready=True), effects

        case EnumerationFailed():
            state = _status(state, STATUS_IDLE, effects)
            return replace(state, phase=SessionPhase.IDLE), effects

        case CameraSwitched():
            if not state.cameras.can_switch:
                return state, []
            return replace(state, cameras=state.cameras.advance()), []

        # ================================================================
        # Capture loop
        # ================================================================

        case CaptureStarting():
            state = _hide(state, [Control.START], effects)
            return state, effects

        case CaptureStarted():
            controls = [Control.SWITCH, Control.STOP] if state.can_switch else [Control.STOP]
            state = _show(state, controls, effects)
            state = _status(state, STATUS_SCANNING, effects)
            if state.placeholder:
                effects.append(HidePlaceholder())
            return replace(state, phase=SessionPhase.SCANNING, placeholder=False), effects

        case CaptureStartFailed():
            state = _status(state, STATUS_IDLE, effects)
            state = _show(state, [Control.START], effects)
            return replace(state, phase=SessionPhase.IDLE), effects

        case CaptureStopped():
            state = _hide(state, CAMERA_CONTROLS, effects)
            state = _show(state, [Control.START], effects)
            state = _status(state, STATUS_IDLE, effects)
            if not state.placeholder:
                effects.append(ShowPlaceholder())
            # enumeration hands over straight to capture; keep PERMISSION until it resolves
            phase = SessionPhase.PERMISSION if state.awaiting_permission else SessionPhase.IDLE
            return replace(state, phase=phase, placeholder=True), effects

        case CaptureStopFailed():
            state = _status(state, STATUS_ERROR, effects)
            state = _show(state, [Control.START], effects)
            return replace(state, phase=SessionPhase.IDLE), effects

        case CaptureLoopFailed():
            state = _hide(state, CAMERA_CONTROLS, effects)
            state = _show(state, [Control.START], effects)
            state = _status(state, STATUS_ERROR, effects)
            if not state.placeholder:
                effects.append(ShowPlaceholder())
            return replace(state, phase=SessionPhase.IDLE, placeholder=True), effects

        # ================================================================
        # Decoding
        # ================================================================

        case DecodeMatched():
            state = _status(state, STATUS_MATCH, effects)
            return replace(state, phase=SessionPhase.MATCH), effects

        case DecodeMissed():
            if not state.scanning:
                return state, []
            state = _status(state, STATUS_SCANNING, effects)
            return state, effects

        case FileDecodeFailed():
            state = _status(state, STATUS_ERROR, effects)
            return state, effects

        case _:
            return state, []
