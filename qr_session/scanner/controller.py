import asyncio
import inspect
import logging
import time
from functools import partial
from typing import Any, Awaitable, Callable, Optional, TypeVar

from qr_session.core.logging_utils import get_module_logger

from .actions import (
    Action,
    Rendered, Cleared,
    PermissionRequested, CamerasEnumerated, EnumerationFailed, CameraSwitched,
    CaptureStarting, CaptureStarted, CaptureStartFailed,
    CaptureStopped, CaptureStopFailed, CaptureLoopFailed,
    DecodeMatched, DecodeMissed, FileDecodeFailed,
)
from .config import ScanConfig, effective_config
from .effects import (
    Effect,
    BuildLayout, ResetSurface, PrepareCameraControls,
    ShowControl, HideControl, ShowPlaceholder, HidePlaceholder, SetStatus,
)
from .engine import CAPTURE_FAILED, DecodeEngine, EngineFactory
from .errors import ElementNotFoundError, FileScanDisabledError, SessionStateError
from .registry import CameraDescriptor
from .state import (
    ScanError, ScanResult, ScanType, SessionPhase, SessionState, Status,
    initial_state,
)
from .surface import MountDirectory, ScannerSurface
from .update import update

logger = get_module_logger(__name__)

T = TypeVar("T")
Callback = Optional[Callable[..., Any]]
Delivery = Callable[[], Awaitable[None]]


class SessionController:
    """Drives one QR scan session on one mount point.

    Every lifecycle operation runs under a single lock, so transitions for a
    session never interleave. Caller callbacks run after the lock is released,
    which lets a success callback restart or clear the session.
    """

    def __init__(
        self,
        mount_id: str,
        directory: MountDirectory,
        engine_factory: EngineFactory,
        config: Optional[ScanConfig] = None,
        verbose: bool = False,
    ):
        surface = directory.lookup(mount_id) if directory is not None else None
        if surface is None:
            raise ElementNotFoundError(mount_id)

        self._mount_id = mount_id
        self._surface: ScannerSurface = surface
        self._engine_factory = engine_factory
        self._config = config
        self._verbose = verbose is True
        self._log = logger.bind(mount=mount_id)

        self._state = initial_state()
        self._subscribers: list[Callable[[SessionState], None]] = []
        self._engine: Optional[DecodeEngine] = None
        self._lifecycle_lock = asyncio.Lock()
        self._pending: set[asyncio.Future] = set()

        # Identifies the live capture loop; engine callbacks carrying another
        # value are stale and dropped.
        self._generation = 0
        self._last_miss_report = float("-inf")

        self._on_start_requested: Callback = None
        self._on_stop_requested: Callback = None
        self._on_success: Callback = None
        self._on_error: Callback = None

    # ================================================================
    # PROPERTIES
    # ================================================================

    @property
    def mount_id(self) -> str:
        return self._mount_id

    @property
    def surface(self) -> ScannerSurface:
        return self._surface

    @property
    def engine(self) -> Optional[DecodeEngine]:
        return self._engine

    @property
    def config(self) -> ScanConfig:
        return effective_config(self._config)

    @property
    def verbose(self) -> bool:
        return self._verbose

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def status(self) -> Status:
        return self._state.status

    @property
    def cameras(self) -> tuple[CameraDescriptor, ...]:
        return self._state.cameras.cameras

    @property
    def selected_camera(self) -> Optional[CameraDescriptor]:
        return self._state.cameras.selected

    @property
    def is_rendered(self) -> bool:
        return self._state.rendered

    @property
    def is_scanning(self) -> bool:
        return self._engine is not None and self._engine.is_scanning

    def subscribe(self, callback: Callable[[SessionState], None]) -> Callable[[], None]:
        self._subscribers.append(callback)
        callback(self._state)
        return lambda: self._subscribers.remove(callback)

    # ================================================================
    # RENDER / CLEAR
    # ================================================================

    def render(
        self,
        on_start_requested: Callback = None,
        on_stop_requested: Callback = None,
        on_success: Callback = None,
        on_error: Callback = None,
    ) -> None:
        if self._state.rendered:
            raise SessionStateError(
                f"Session on {self._mount_id!r} is already rendered; call clear() first"
            )

        self._bind_callbacks(on_start_requested, on_stop_requested, on_success, on_error)
        self._last_miss_report = float("-inf")

        self._dispatch(Rendered(file_scan=self.config.enable_file_scan))
        try:
            self._engine = self._engine_factory(self._surface.scan_region, self._verbose)
        except Exception:
            self._dispatch(Cleared())
            self._bind_callbacks(None, None, None, None)
            raise
        self._diag(logging.INFO, "Rendered scanner on %r", self._mount_id)

    async def clear(self) -> None:
        """Tear the session down; safe to call any number of times."""
        async with self._lifecycle_lock:
            self._generation += 1
            engine, self._engine = self._engine, None
            if engine is not None:
                if engine.is_scanning:
                    try:
                        await engine.stop_capture()
                    except Exception as e:
                        self._diag(logging.ERROR, "Unable to stop qrcode scanner: %s", e)
                try:
                    engine.release()
                except Exception as e:
                    self._diag(logging.WARNING, "Engine release failed: %s", e)
            if self._state.rendered:
                self._dispatch(Cleared())
            self._bind_callbacks(None, None, None, None)

        current = asyncio.current_task()
        for pending in list(self._pending):
            if pending is not current:
                pending.cancel()

    # ================================================================
    # USER ACTIONS
    # ================================================================

    async def start(self) -> None:
        self._require_rendered("start")
        await self._call(self._on_start_requested)
        async with self._lifecycle_lock:
            if self._state.has_camera:
                await self._start_scan_locked()
            else:
                await self._get_cameras_locked()

    async def stop(self) -> None:
        self._require_rendered("stop")
        await self._call(self._on_stop_requested)
        async with self._lifecycle_lock:
            await self._stop_capture_locked()

    async def switch_camera(self) -> None:
        self._require_rendered("switch_camera")
        async with self._lifecycle_lock:
            if not self._state.can_switch:
                self._diag(
                    logging.DEBUG,
                    "Camera switch ignored, %d camera(s) enumerated",
                    len(self._state.cameras),
                )
                return
            self._dispatch(CameraSwitched())
            await self._start_scan_locked()

    async def scan_file(self, file: Any) -> None:
        self._require_rendered("scan_file")
        if not self.config.enable_file_scan:
            raise FileScanDisabledError("File scanning is disabled for this session")

        async with self._lifecycle_lock:
            delivery = await self._stop_then(partial(self._decode_file_locked, file))
            if delivery is None:
                error = ScanError("Unable to stop capture", "CaptureStopError", ScanType.FILE)
                delivery = partial(self._call, self._on_error, error)
        await delivery()

    # ================================================================
    # TRANSITIONS
    # ================================================================

    async def _get_cameras_locked(self) -> None:
        self._dispatch(PermissionRequested())
        try:
            cameras = await self._engine.enumerate_cameras()
        except Exception as e:
            self._diag(logging.WARNING, "Camera enumeration failed: %s", e)
            self._dispatch(EnumerationFailed(str(e)))
            return

        self._dispatch(CamerasEnumerated(tuple(cameras or ())))
        if not self._state.has_camera:
            self._diag(logging.WARNING, "No cameras found")
            return
        self._diag(
            logging.INFO,
            "Found %d camera(s), selected %s",
            len(self._state.cameras),
            self._state.cameras.selected_id,
        )
        await self._start_scan_locked()

    async def _start_scan_locked(self) -> None:
        await self._stop_then(self._start_capture_locked)

    async def _stop_then(self, acquire: Callable[[], Awaitable[T]]) -> Optional[T]:
        """Release any live capture loop, then run ``acquire``.

        ``acquire`` is skipped when the engine fails to stop, so nothing new
        is started on a device that may still be held.
        """
        if not await self._stop_capture_locked():
            return None
        return await acquire()

    async def _start_capture_locked(self) -> bool:
        camera_id = self._state.cameras.selected_id
        config = self.config

        self._generation += 1
        generation = self._generation
        self._dispatch(CaptureStarting())
        try:
            await self._engine.start_capture(
                camera_id,
                config,
                partial(self._on_engine_result, generation),
                partial(self._on_engine_miss, generation),
                partial(self._on_engine_failure, generation),
            )
        except Exception as e:
            self._generation += 1
            self._diag(logging.ERROR, "Unable to start scanning on %s: %s", camera_id, e)
            self._dispatch(CaptureStartFailed(str(e)))
            return False

        self._diag(logging.INFO, "Scanning on %s", camera_id)
        self._dispatch(CaptureStarted())
        return True

    async def _stop_capture_locked(self) -> bool:
        self._generation += 1
        try:
            await self._engine.stop_capture()
        except Exception as e:
            self._diag(logging.WARNING, "Unable to stop scanning: %s", e)
            self._dispatch(CaptureStopFailed(str(e)))
            return False

        self._dispatch(CaptureStopped())
        return True

    async def _decode_file_locked(self, file: Any) -> Delivery:
        try:
            payload = await self._engine.decode_single_image(file)
        except Exception as e:
            self._diag(logging.WARNING, "File scan failed: %s", e)
            self._dispatch(FileDecodeFailed(str(e)))
            return partial(self._call, self._on_error, ScanError.from_exception(e, ScanType.FILE))
        return await self._match_locked(ScanResult(payload, ScanType.FILE))

    async def _match_locked(self, result: ScanResult) -> Delivery:
        """Stop the loop and enter MATCH; the returned delivery hands over the result."""
        await self._stop_capture_locked()
        self._dispatch(DecodeMatched())
        self._diag(logging.INFO, "Matched %s payload", result.source.name.lower())
        return partial(self._call, self._on_success, result)

    # ================================================================
    # ENGINE CALLBACKS
    # ================================================================

    def _on_engine_result(self, generation: int, payload: Any) -> None:
        if generation != self._generation:
            self._diag(logging.DEBUG, "Dropping result from stale capture loop")
            return
        # silences the rest of this loop until the match is delivered
        self._generation += 1
        self._spawn(self._complete_match(self._generation, ScanResult(payload, ScanType.CAMERA)))

    async def _complete_match(self, token: int, result: ScanResult) -> None:
        async with self._lifecycle_lock:
            if token != self._generation:
                self._diag(logging.DEBUG, "Match superseded by a later lifecycle operation")
                return
            delivery = await self._match_locked(result)
        await delivery()

    def _on_engine_miss(self, generation: int, error: ScanError) -> None:
        if generation != self._generation:
            return
        self._dispatch(DecodeMissed())

        interval = self.config.miss_report_interval
        now = time.monotonic()
        if interval and now - self._last_miss_report < interval:
            return
        self._last_miss_report = now
        self._fire(self._on_error, error)

    def _on_engine_failure(self, generation: int, exc: Exception) -> None:
        if generation != self._generation:
            self._diag(logging.DEBUG, "Dropping failure from stale capture loop")
            return
        self._generation += 1
        self._spawn(self._complete_failure(self._generation, exc))

    async def _complete_failure(self, token: int, exc: Exception) -> None:
        async with self._lifecycle_lock:
            if token != self._generation:
                self._diag(logging.DEBUG, "Capture failure superseded by a later operation")
                return
            camera_id = self._state.cameras.selected_id
            self._diag(logging.ERROR, "Capture loop on %s failed: %s", camera_id, exc)
            try:
                await self._engine.stop_capture()
            except Exception as e:
                self._diag(logging.WARNING, "Unable to release camera after capture failure: %s", e)
            self._dispatch(CaptureLoopFailed(str(exc)))
        error = ScanError(str(exc) or type(exc).__name__, CAPTURE_FAILED, ScanType.CAMERA)
        await self._call(self._on_error, error)

    # ================================================================
    # DISPATCH
    # ================================================================

    def _dispatch(self, action: Action) -> None:
        self._state, effects = update(self._state, action)
        for effect in effects:
            self._apply(effect)
        self._notify()

    def _apply(self, effect: Effect) -> None:
        match effect:
            case BuildLayout(file_scan):
                self._surface.build_layout(file_scan)

            case ResetSurface():
                self._surface.reset()

            case PrepareCameraControls(switchable):
                self._surface.prepare_camera_controls(switchable)

            case ShowControl(control):
                self._surface.show(control)

            case HideControl(control):
                self._surface.hide(control)

            case ShowPlaceholder():
                self._surface.show_placeholder()

            case HidePlaceholder():
                self._surface.hide_placeholder()

            case SetStatus(status):
                self._surface.set_status(status)

    def _notify(self) -> None:
        for sub in list(self._subscribers):
            try:
                sub(self._state)
            except Exception as e:
                self._log.warning("Subscriber error: %s", e)

    # ================================================================
    # HELPERS
    # ================================================================

    def _bind_callbacks(self, on_start: Callback, on_stop: Callback, on_success: Callback, on_error: Callback) -> None:
        self._on_start_requested = on_start
        self._on_stop_requested = on_stop
        self._on_success = on_success
        self._on_error = on_error

    def _require_rendered(self, operation: str) -> None:
        if not self._state.rendered or self._engine is None:
            raise SessionStateError(f"{operation}() called before render()")

    async def _call(self, callback: Callback, *args: Any) -> None:
        if callback is None:
            return
        result = callback(*args)
        if inspect.isawaitable(result):
            await result

    def _fire(self, callback: Callback, *args: Any) -> None:
        """Invoke ``callback`` from an engine callback without blocking the capture loop."""
        if callback is None:
            return
        result = callback(*args)
        if inspect.isawaitable(result):
            self._spawn(result)

    def _spawn(self, awaitable: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log.error("Scan callback task failed: %s", exc, exc_info=exc)

    def _diag(self, level: int, message: str, *args: Any) -> None:
        if self._verbose:
            self._log.log(level, message, *args)


__all__ = ["SessionController"]
