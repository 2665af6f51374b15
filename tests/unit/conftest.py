"""Unit test fixtures for the scan session controller.

Sessions here run against ``FakeEngine`` and ``MemorySurface``; nothing
touches a camera or OpenCV.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional
from unittest.mock import MagicMock

import pytest

from qr_session.scanner import MemorySurface, MountTable, ScanConfig, SessionController
from tests.infrastructure.helpers import MOUNT_ID
from tests.infrastructure.mocks.engine_mocks import CAM_A, CAM_B, FakeEngine


class SessionHarness:
    """Controller wired to a memory surface and recording engine factory."""

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        cameras=(CAM_A, CAM_B),
        verbose: bool = False,
    ):
        self.surface = MemorySurface(MOUNT_ID)
        self.mounts = MountTable({MOUNT_ID: self.surface})
        self.cameras = cameras
        self.engines: List[FakeEngine] = []
        self.factory_calls: List[tuple] = []
        self.callbacks = {
            "on_start_requested": MagicMock(name="on_start_requested"),
            "on_stop_requested": MagicMock(name="on_stop_requested"),
            "on_success": MagicMock(name="on_success"),
            "on_error": MagicMock(name="on_error"),
        }
        self.controller = SessionController(
            MOUNT_ID, self.mounts, self.factory, config=config, verbose=verbose
        )

    def factory(self, scan_region: Any, verbose: bool) -> FakeEngine:
        self.factory_calls.append((scan_region, verbose))
        engine = FakeEngine(scan_region, verbose, cameras=self.cameras)
        self.engines.append(engine)
        return engine

    @property
    def engine(self) -> FakeEngine:
        return self.engines[-1]

    def render(self, **overrides: Callable) -> None:
        callbacks = {**self.callbacks, **overrides}
        self.controller.render(**callbacks)

    @property
    def on_success(self) -> MagicMock:
        return self.callbacks["on_success"]

    @property
    def on_error(self) -> MagicMock:
        return self.callbacks["on_error"]


@pytest.fixture
def make_session() -> Callable[..., SessionHarness]:
    """Factory fixture for building session harnesses."""
    def _make(**kwargs: Any) -> SessionHarness:
        return SessionHarness(**kwargs)
    return _make


@pytest.fixture
def session(make_session) -> SessionHarness:
    """A rendered session with two cameras and recording callbacks."""
    harness = make_session()
    harness.render()
    return harness
