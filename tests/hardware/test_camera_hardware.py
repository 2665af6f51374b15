"""Smoke tests against a real camera. Run with --run-hardware."""

import asyncio

import pytest

from qr_session.scanner import ScanConfig
from qr_session.scanner.backends import OpenCVDecodeEngine


@pytest.mark.hardware
def test_first_camera_opens_and_streams():
    engine = OpenCVDecodeEngine()

    async def run_test():
        cameras = await engine.enumerate_cameras()
        assert cameras, "no camera attached"

        frames = asyncio.Event()
        await engine.start_capture(
            cameras[0].id,
            ScanConfig(frame_rate=15),
            lambda payload: frames.set(),
            lambda error: frames.set(),
            lambda exc: frames.set(),
        )
        try:
            await asyncio.wait_for(frames.wait(), timeout=5)
        finally:
            await engine.stop_capture()

    try:
        asyncio.run(run_test())
    finally:
        engine.release()
    assert not engine.is_scanning
