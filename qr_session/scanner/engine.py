"""Decode engine contract consumed by the session controller.

An engine owns frame capture and QR recognition. The controller only ever
talks to it through this protocol, so any backend (the bundled OpenCV engine,
a browser bridge, a test fake) can be plugged in through an
``EngineFactory``.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from .config import ScanConfig
from .registry import CameraDescriptor
from .state import ScanError

ResultCallback = Callable[[Any], None]
MissCallback = Callable[[ScanError], None]
FailureCallback = Callable[[Exception], None]

# Error kind reported to callers when a live capture loop dies.
CAPTURE_FAILED = "CaptureFailed"


@runtime_checkable
class DecodeEngine(Protocol):
    @property
    def is_scanning(self) -> bool: ...

    async def enumerate_cameras(self) -> list[CameraDescriptor]:
        """Return the available cameras; raise EnumerationError on failure."""
        ...

    async def start_capture(
        self,
        camera_id: str,
        config: ScanConfig,
        on_result: ResultCallback,
        on_miss: MissCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Resolve once the loop is live; raise CaptureStartError otherwise.

        ``on_result`` and ``on_miss`` are plain callables invoked from the
        capture loop. They must not be awaited by the engine. ``on_failure``
        is called once, with the exception, if the loop ends on its own;
        the device stays held until ``stop_capture``.
        """
        ...

    async def stop_capture(self) -> None:
        """Resolve once the device is released; no-op while idle."""
        ...

    async def decode_single_image(self, file: Any) -> Any:
        """Decode one image; raise DecodeError when no code is found."""
        ...

    def release(self) -> None:
        """Drop every resource held by the engine."""
        ...


EngineFactory = Callable[[Any, bool], DecodeEngine]
"""``factory(scan_region, verbose) -> DecodeEngine``"""


__all__ = [
    "CAPTURE_FAILED",
    "DecodeEngine",
    "EngineFactory",
    "FailureCallback",
    "MissCallback",
    "ResultCallback",
]
