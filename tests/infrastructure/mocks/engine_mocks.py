"""Fake decode engine for testing the scan session controller.

Implements the ``DecodeEngine`` protocol without cameras or OpenCV. Every
call is appended to ``calls`` so tests can assert on ordering, and the
capture callbacks handed over by the controller are kept so tests can push
decode results and misses into a live loop.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional

from qr_session.scanner.config import ScanConfig
from qr_session.scanner.errors import CaptureStartError
from qr_session.scanner.registry import CameraDescriptor
from qr_session.scanner.state import ScanError

CAM_A = CameraDescriptor("camA", "Front camera")
CAM_B = CameraDescriptor("camB", "Back camera")
CAM_C = CameraDescriptor("camC", "USB camera")


class FakeEngine:
    """In-memory decode engine.

    Errors assigned to ``enumerate_error``, ``start_error``, ``stop_error``
    or ``decode_error`` are raised by the matching call until reset.
    """

    def __init__(
        self,
        scan_region: Any = None,
        verbose: bool = False,
        *,
        cameras: Iterable[CameraDescriptor] = (CAM_A, CAM_B),
        decode_payload: Any = "file-payload",
    ):
        self.scan_region = scan_region
        self.verbose = verbose
        self.cameras: List[CameraDescriptor] = list(cameras)
        self.decode_payload = decode_payload

        self.calls: List[tuple] = []
        self.scanning = False
        self.released = False
        self.overlaps = 0
        self.camera_id: Optional[str] = None
        self.config: Optional[ScanConfig] = None
        self.on_result: Optional[Callable[[Any], None]] = None
        self.on_miss: Optional[Callable[[ScanError], None]] = None
        self.on_failure: Optional[Callable[[Exception], None]] = None

        self.enumerate_error: Optional[Exception] = None
        self.start_error: Optional[Exception] = None
        self.stop_error: Optional[Exception] = None
        self.decode_error: Optional[Exception] = None

    @property
    def is_scanning(self) -> bool:
        return self.scanning

    async def enumerate_cameras(self) -> list[CameraDescriptor]:
        self.calls.append(("enumerate",))
        if self.enumerate_error:
            raise self.enumerate_error
        return list(self.cameras)

    async def start_capture(self, camera_id, config, on_result, on_miss, on_failure) -> None:
        self.calls.append(("start", camera_id))
        if self.scanning:
            self.overlaps += 1
            raise CaptureStartError("capture loop already live")
        if self.start_error:
            raise self.start_error
        self.scanning = True
        self.camera_id = camera_id
        self.config = config
        self.on_result = on_result
        self.on_miss = on_miss
        self.on_failure = on_failure

    async def stop_capture(self) -> None:
        self.calls.append(("stop",))
        if self.stop_error:
            raise self.stop_error
        self.scanning = False

    async def decode_single_image(self, file: Any) -> Any:
        self.calls.append(("decode", file))
        if self.decode_error:
            raise self.decode_error
        return self.decode_payload

    def release(self) -> None:
        self.calls.append(("release",))
        self.released = True
        self.scanning = False

    # ------------------------------------------------------------------
    # Test helpers

    def emit_result(self, payload: Any) -> None:
        assert self.on_result is not None, "capture never started"
        self.on_result(payload)

    def emit_miss(self, message: str = "No QR code found") -> None:
        assert self.on_miss is not None, "capture never started"
        self.on_miss(ScanError(message, "NotFound"))

    def fail_loop(self, exc: Optional[Exception] = None) -> None:
        """End the live loop the way a real engine does when the device dies."""
        assert self.on_failure is not None, "capture never started"
        self.scanning = False
        self.on_failure(exc or RuntimeError("device unplugged"))

    @property
    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    @property
    def started_cameras(self) -> List[str]:
        return [call[1] for call in self.calls if call[0] == "start"]
