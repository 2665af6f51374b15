"""Command-line front end: list cameras, scan from a camera, or decode a file."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from qr_session.core.logging_config import configure_logging
from qr_session.core.logging_utils import get_module_logger
from qr_session.scanner.backends.opencv_engine import OpenCVDecodeEngine
from qr_session.scanner.config import ScanConfig, load_config
from qr_session.scanner.controller import SessionController
from qr_session.scanner.engine import CAPTURE_FAILED
from qr_session.scanner.errors import ConfigError, EnumerationError
from qr_session.scanner.state import ScanError, ScanResult, Status
from qr_session.scanner.surface import MemorySurface, MountTable

logger = get_module_logger("cli")

MOUNT_ID = "cli"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qr-session",
        description="Scan QR codes from a camera or an image file",
    )
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default="warning",
        help="Logging verbosity",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to write logs to (rotated)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with scanner options (fps, qrbox, aspectRatio, ...)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Log session diagnostics",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("cameras", help="List the cameras OpenCV can open")

    scan = commands.add_parser("scan", help="Scan from a camera until the first code")
    scan.add_argument("--fps", type=float, default=None, help="Decode attempts per second")
    scan.add_argument("--qrbox", type=int, default=None, help="Side of the centred scan box in pixels")
    scan.add_argument("--no-flip", action="store_true", default=False, help="Skip mirrored decoding")
    scan.add_argument("--timeout", type=float, default=None, help="Give up after this many seconds")

    file_cmd = commands.add_parser("file", help="Decode a single image file")
    file_cmd.add_argument("path", type=Path, help="Image to decode")

    return parser


def _scan_config(args: argparse.Namespace) -> ScanConfig:
    overrides = {
        "frame_rate": getattr(args, "fps", None),
        "scan_box": getattr(args, "qrbox", None),
        "disable_flip": True if getattr(args, "no_flip", False) else None,
    }
    return load_config(args.config, overrides, logger=logger)


def _session(config: ScanConfig, verbose: bool) -> SessionController:
    surface = MemorySurface(MOUNT_ID, on_status=_log_status)
    return SessionController(MOUNT_ID, MountTable({MOUNT_ID: surface}), OpenCVDecodeEngine, config, verbose)


def _log_status(status: Status) -> None:
    logger.info("Status: %s", status.text)


async def list_cameras() -> int:
    engine = OpenCVDecodeEngine()
    try:
        cameras = await engine.enumerate_cameras()
    except EnumerationError as e:
        logger.error("Camera enumeration failed: %s", e)
        return EXIT_FAILURE
    finally:
        engine.release()

    if not cameras:
        print("No cameras found", file=sys.stderr)
        return EXIT_FAILURE
    for camera in cameras:
        print(f"{camera.id}\t{camera.display_name}")
    return EXIT_OK


async def scan_camera(config: ScanConfig, verbose: bool, timeout: Optional[float]) -> int:
    session = _session(config, verbose)
    found: asyncio.Future[ScanResult | ScanError] = asyncio.get_running_loop().create_future()

    def on_success(result: ScanResult) -> None:
        if not found.done():
            found.set_result(result)

    def on_error(error: ScanError) -> None:
        if error.kind == CAPTURE_FAILED:
            if not found.done():
                found.set_result(error)
            return
        logger.debug("Decode miss: %s", error.message)

    session.render(on_success=on_success, on_error=on_error)
    try:
        await session.start()
        if not found.done() and not session.is_scanning:
            logger.error("Scanning did not start (%s)", session.status.text)
            return EXIT_FAILURE
        try:
            result = await asyncio.wait_for(found, timeout)
        except asyncio.TimeoutError:
            logger.error("No QR code found within %.1fs", timeout)
            return EXIT_FAILURE
    finally:
        await session.clear()

    if isinstance(result, ScanError):
        logger.error("Camera stopped delivering frames: %s", result.message)
        return EXIT_FAILURE
    print(result.text)
    return EXIT_OK


async def scan_file(config: ScanConfig, verbose: bool, path: Path) -> int:
    session = _session(config, verbose)
    outcome: dict[str, object] = {}

    session.render(
        on_success=lambda result: outcome.setdefault("result", result),
        on_error=lambda error: outcome.setdefault("error", error),
    )
    try:
        await session.scan_file(path)
    finally:
        await session.clear()

    if "result" in outcome:
        print(outcome["result"].text)
        return EXIT_OK
    error = outcome.get("error")
    logger.error("Could not decode %s: %s", path, error.message if error else "unknown error")
    return EXIT_FAILURE


async def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    configure_logging(LOG_LEVELS[args.log_level], log_file=args.log_file)

    if args.command == "cameras":
        return await list_cameras()

    try:
        config = _scan_config(args)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_USAGE

    if args.command == "scan":
        return await scan_camera(config, args.verbose, args.timeout)
    if args.command == "file":
        if not config.enable_file_scan:
            logger.error("File scanning is disabled by configuration")
            return EXIT_USAGE
        return await scan_file(config, args.verbose, args.path)

    parser.error(f"Unknown command {args.command!r}")
    return EXIT_USAGE


__all__ = ["build_parser", "list_cameras", "main", "scan_camera", "scan_file"]
