"""Root pytest configuration: import path, markers and the hardware switch."""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

MARKERS = {
    "hardware": "opens a real camera; skipped unless --run-hardware is given",
}


def pytest_addoption(parser):
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that open a real camera",
    )


def pytest_configure(config):
    for name, description in MARKERS.items():
        config.addinivalue_line("markers", f"{name}: {description}")


def pytest_runtest_setup(item):
    if item.get_closest_marker("hardware") and not item.config.getoption("--run-hardware"):
        pytest.skip("camera test; pass --run-hardware to run it")


@pytest.fixture
def project_root() -> Path:
    return PROJECT_ROOT
