"""OpenCV-backed decode engine.

Frames come from ``cv2.VideoCapture`` and are decoded with
``cv2.QRCodeDetector``. Image files are loaded through Pillow so paths, raw
bytes, binary file objects and in-memory images are all accepted.
"""

import asyncio
import io
import threading
from pathlib import Path
from typing import Any, Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from qr_session.core.logging_utils import get_module_logger

from ..config import ScanConfig
from ..defaults import DEFAULT_MAX_PROBED_DEVICES
from ..engine import FailureCallback, MissCallback, ResultCallback
from ..errors import (
    CaptureStartError,
    CaptureStopError,
    DecodeError,
    EnumerationError,
    SessionStateError,
)
from ..registry import CameraDescriptor
from ..state import ScanError

logger = get_module_logger(__name__)

MISS_NOT_FOUND = "NotFound"
MISS_NO_FRAME = "FrameUnavailable"


def _import_cv2(error_type: type[Exception]):
    try:
        import cv2
    except ImportError as exc:
        raise error_type("OpenCV (cv2) not available") from exc
    return cv2


def crop_scan_box(image: np.ndarray, box: Optional[tuple[int, int]]) -> np.ndarray:
    """Return the centred ``box`` region, clamped to the image size."""
    if box is None:
        return image
    height, width = image.shape[:2]
    box_w, box_h = min(box[0], width), min(box[1], height)
    left = (width - box_w) // 2
    top = (height - box_h) // 2
    return image[top:top + box_h, left:left + box_w]


def decode_frame(
    frame: np.ndarray,
    box: Optional[tuple[int, int]] = None,
    try_mirrored: bool = True,
) -> Optional[str]:
    """Decode one frame, retrying on the mirrored image unless disabled."""
    cv2 = _import_cv2(DecodeError)

    gray = frame
    if frame.ndim == 3:
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    region = crop_scan_box(gray, box)

    detector = cv2.QRCodeDetector()
    text, _, _ = detector.detectAndDecode(region)
    if text:
        return text
    if try_mirrored:
        text, _, _ = detector.detectAndDecode(cv2.flip(region, 1))
        if text:
            return text
    return None


def load_image(file: Any) -> np.ndarray:
    """Load ``file`` as a grayscale array.

    Accepts a path, raw bytes, a binary file object, a Pillow image or an
    already decoded numpy array.
    """
    if isinstance(file, np.ndarray):
        return file
    if isinstance(file, Image.Image):
        image = file
    else:
        source = io.BytesIO(file) if isinstance(file, (bytes, bytearray)) else file
        if isinstance(source, (str, Path)) and not Path(source).is_file():
            raise DecodeError(f"Image file not found: {source}")
        try:
            image = Image.open(source)
            image.load()
        except (OSError, UnidentifiedImageError) as exc:
            raise DecodeError(f"Unable to read image: {exc}") from exc
    return np.asarray(image.convert("L"))


class OpenCVDecodeEngine:
    def __init__(
        self,
        scan_region: Any = None,
        verbose: bool = False,
        *,
        max_devices: int = DEFAULT_MAX_PROBED_DEVICES,
    ):
        self._scan_region = scan_region
        self._verbose = verbose
        self._max_devices = max_devices

        self._cap = None
        self._cap_lock = threading.Lock()
        self._task: Optional[asyncio.Task] = None
        self._camera_id: Optional[str] = None
        self._released = False

    @property
    def scan_region(self) -> Any:
        return self._scan_region

    @property
    def camera_id(self) -> Optional[str]:
        return self._camera_id

    @property
    def is_scanning(self) -> bool:
        return self._task is not None and not self._task.done()

    # ================================================================
    # ENUMERATION
    # ================================================================

    async def enumerate_cameras(self) -> list[CameraDescriptor]:
        self._check_released()
        indices = await asyncio.to_thread(self._probe_indices)
        if self._verbose:
            logger.info("Probed %d camera(s)", len(indices))
        return [CameraDescriptor(str(index), f"Camera {index}") for index in indices]

    def _probe_indices(self) -> list[int]:
        cv2 = _import_cv2(EnumerationError)
        found = []
        for index in range(self._max_devices):
            cap = cv2.VideoCapture(index)
            try:
                if cap.isOpened():
                    found.append(index)
            finally:
                cap.release()
        return found

    # ================================================================
    # CAPTURE LOOP
    # ================================================================

    async def start_capture(
        self,
        camera_id: str,
        config: ScanConfig,
        on_result: ResultCallback,
        on_miss: MissCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._check_released()
        if self.is_scanning:
            raise CaptureStartError(f"Capture already running on {self._camera_id}")

        self._cap = await asyncio.to_thread(self._open_device, camera_id, config)
        self._camera_id = camera_id
        self._task = asyncio.create_task(
            self._capture_loop(config, on_result, on_miss, on_failure)
        )
        if self._verbose:
            logger.info("Capture started on %s at %.1f fps", camera_id, config.frame_rate)

    def _open_device(self, camera_id: str, config: ScanConfig):
        cv2 = _import_cv2(CaptureStartError)
        device: int | str = int(camera_id) if str(camera_id).isdigit() else camera_id

        cap = cv2.VideoCapture(device)
        if not cap.isOpened():
            cap.release()
            raise CaptureStartError(f"Failed to open camera {camera_id}")

        cap.set(cv2.CAP_PROP_FPS, config.frame_rate)
        if config.aspect_ratio:
            width = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
            if width > 0:
                cap.set(cv2.CAP_PROP_FRAME_HEIGHT, round(width / config.aspect_ratio))
        return cap

    def _read_frame(self):
        with self._cap_lock:
            if self._cap is None:
                return False, None
            return self._cap.read()

    async def _capture_loop(
        self,
        config: ScanConfig,
        on_result: ResultCallback,
        on_miss: MissCallback,
        on_failure: FailureCallback,
    ) -> None:
        loop = asyncio.get_running_loop()
        box = config.scan_box_size
        try_mirrored = not config.disable_flip

        try:
            while True:
                tick = loop.time()
                ok, frame = await asyncio.to_thread(self._read_frame)
                if not ok or frame is None:
                    on_miss(ScanError("No frame available", MISS_NO_FRAME))
                else:
                    payload = await asyncio.to_thread(decode_frame, frame, box, try_mirrored)
                    if payload is not None:
                        on_result(payload)
                    else:
                        on_miss(ScanError("No QR code found", MISS_NOT_FOUND))
                await asyncio.sleep(max(0.0, config.frame_interval - (loop.time() - tick)))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Capture loop error on %s: %s", self._camera_id, e)
            on_failure(e)

    async def stop_capture(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._cap is None:
            return
        try:
            await asyncio.to_thread(self._release_device)
        except Exception as e:
            raise CaptureStopError(f"Failed to release camera {self._camera_id}: {e}") from e
        if self._verbose:
            logger.info("Capture stopped on %s", self._camera_id)

    def _release_device(self) -> None:
        with self._cap_lock:
            cap, self._cap = self._cap, None
            if cap is not None:
                cap.release()

    # ================================================================
    # SINGLE IMAGE
    # ================================================================

    async def decode_single_image(self, file: Any) -> str:
        self._check_released()
        image = await asyncio.to_thread(load_image, file)
        payload = await asyncio.to_thread(decode_frame, image, None, True)
        if payload is None:
            raise DecodeError("No QR code found in image")
        return payload

    # ================================================================
    # RELEASE
    # ================================================================

    def release(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._release_device()
        self._released = True

    def _check_released(self) -> None:
        if self._released:
            raise SessionStateError("Decode engine has been released")


__all__ = ["OpenCVDecodeEngine", "crop_scan_box", "decode_frame", "load_image"]
