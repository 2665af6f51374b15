"""Typed configuration helpers for scan sessions."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from qr_session.core.logging_utils import LoggerLike, ensure_structured_logger
from qr_session.scanner.defaults import (
    DEFAULT_DISABLE_FLIP,
    DEFAULT_ENABLE_FILE_SCAN,
    DEFAULT_FRAME_RATE,
    DEFAULT_MISS_REPORT_INTERVAL,
    DEFAULT_SCAN_BOX,
)
from qr_session.scanner.errors import ConfigError

ScanBox = Union[int, Tuple[int, int]]

_FRAME_RATE_KEYS = ("frame_rate", "frameRate", "fps")
_SCAN_BOX_KEYS = ("scan_box", "scanBoxSize", "qrbox")
_ASPECT_RATIO_KEYS = ("aspect_ratio", "aspectRatio")
_DISABLE_FLIP_KEYS = ("disable_flip", "disableFlip")
_FILE_SCAN_KEYS = ("enable_file_scan", "enableFileScan")
_MISS_INTERVAL_KEYS = ("miss_report_interval", "missReportInterval")

KNOWN_KEYS = frozenset(
    _FRAME_RATE_KEYS + _SCAN_BOX_KEYS + _ASPECT_RATIO_KEYS
    + _DISABLE_FLIP_KEYS + _FILE_SCAN_KEYS + _MISS_INTERVAL_KEYS
)


@dataclass(frozen=True, slots=True)
class ScanConfig:
    """Options handed to the decode engine when a capture loop starts.

    ``scan_box`` is either the side of a centred square region, a
    ``(width, height)`` region, or ``None`` to decode the full frame.
    ``miss_report_interval`` throttles how often decode misses are forwarded
    to the caller's error callback; ``0`` forwards every miss.
    """

    frame_rate: float = DEFAULT_FRAME_RATE
    scan_box: Optional[ScanBox] = DEFAULT_SCAN_BOX
    aspect_ratio: Optional[float] = None
    disable_flip: bool = DEFAULT_DISABLE_FLIP
    enable_file_scan: bool = DEFAULT_ENABLE_FILE_SCAN
    miss_report_interval: float = DEFAULT_MISS_REPORT_INTERVAL

    def __post_init__(self) -> None:
        if isinstance(self.frame_rate, bool) or not self.frame_rate > 0:
            raise ConfigError(f"frame_rate must be > 0, got {self.frame_rate!r}")
        if self.scan_box is not None:
            width, height = _box_dimensions(self.scan_box)
            if width <= 0 or height <= 0:
                raise ConfigError(f"scan_box must be positive, got {self.scan_box!r}")
        if self.aspect_ratio is not None and not self.aspect_ratio > 0:
            raise ConfigError(f"aspect_ratio must be > 0, got {self.aspect_ratio!r}")
        if self.miss_report_interval < 0:
            raise ConfigError(
                f"miss_report_interval must be >= 0, got {self.miss_report_interval!r}"
            )

    @property
    def scan_box_size(self) -> Optional[Tuple[int, int]]:
        if self.scan_box is None:
            return None
        return _box_dimensions(self.scan_box)

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.frame_rate

    def with_overrides(self, **overrides: Any) -> "ScanConfig":
        merged = asdict(self)
        merged.update({key: value for key, value in overrides.items() if value is not None})
        return load_config(merged)


# ---------------------------------------------------------------------------
# Public API


def load_config(
    source: Union[None, Mapping[str, Any], str, Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    logger: LoggerLike = None,
) -> ScanConfig:
    """Build a typed config from a mapping or JSON file plus optional overrides.

    Both the snake_case field names and the camelCase option names
    (``fps``, ``qrbox``, ``aspectRatio``, ``disableFlip``, ``enableFileScan``)
    are accepted. Unknown keys are logged and ignored.
    """

    log = ensure_structured_logger(logger, fallback_name=__name__)
    merged = dict(_read_source(source))
    if overrides:
        for key, value in overrides.items():
            if value is not None:
                merged[key] = value

    unknown = sorted(key for key in merged if key not in KNOWN_KEYS)
    if unknown:
        log.warning("Ignoring unknown scanner options: %s", ", ".join(unknown))

    return ScanConfig(
        frame_rate=_coerce_float(merged, _FRAME_RATE_KEYS, DEFAULT_FRAME_RATE),
        scan_box=_coerce_scan_box(merged, _SCAN_BOX_KEYS, DEFAULT_SCAN_BOX),
        aspect_ratio=_coerce_optional_float(merged, _ASPECT_RATIO_KEYS, None),
        disable_flip=_coerce_bool(merged, _DISABLE_FLIP_KEYS, DEFAULT_DISABLE_FLIP),
        enable_file_scan=_coerce_bool(merged, _FILE_SCAN_KEYS, DEFAULT_ENABLE_FILE_SCAN),
        miss_report_interval=_coerce_float(
            merged, _MISS_INTERVAL_KEYS, DEFAULT_MISS_REPORT_INTERVAL
        ),
    )


def as_dict(config: ScanConfig) -> Dict[str, Any]:
    """Return a JSON-friendly representation (useful for debug output)."""

    data = asdict(config)
    if isinstance(config.scan_box, tuple):
        data["scan_box"] = list(config.scan_box)
    return data


# ---------------------------------------------------------------------------
# Internal helpers


def _read_source(source: Union[None, Mapping[str, Any], str, Path]) -> Mapping[str, Any]:
    if source is None:
        return {}
    if isinstance(source, Mapping):
        return source
    path = Path(source)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return data


def _box_dimensions(box: ScanBox) -> Tuple[int, int]:
    if isinstance(box, tuple):
        return int(box[0]), int(box[1])
    return int(box), int(box)


def _coerce_bool(data: Dict[str, Any], keys: Tuple[str, ...], default: bool) -> bool:
    raw = _first_present(data, keys)
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


def _coerce_float(data: Dict[str, Any], keys: Tuple[str, ...], default: float) -> float:
    raw = _first_present(data, keys)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{keys[0]} must be a number, got {raw!r}") from exc


def _coerce_optional_float(
    data: Dict[str, Any],
    keys: Tuple[str, ...],
    default: Optional[float],
) -> Optional[float]:
    raw = _first_present(data, keys)
    if raw is None:
        return default
    if raw == "" or raw is False:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{keys[0]} must be a number, got {raw!r}") from exc


def _coerce_scan_box(
    data: Dict[str, Any],
    keys: Tuple[str, ...],
    default: Optional[ScanBox],
) -> Optional[ScanBox]:
    present = [key for key in keys if key in data]
    if not present:
        return default
    raw = data[present[0]]
    if raw is None or raw == "" or raw is False:
        return None
    try:
        return _parse_scan_box(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{keys[0]} must be a size or a width/height pair, got {raw!r}") from exc


def _parse_scan_box(raw: Any) -> ScanBox:
    if isinstance(raw, bool):
        raise TypeError("boolean is not a size")
    if isinstance(raw, (int, float)):
        return int(raw)
    if isinstance(raw, Mapping):
        return int(raw["width"]), int(raw["height"])
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        return int(raw[0]), int(raw[1])
    if isinstance(raw, str):
        text = raw.strip().lower()
        if "x" in text:
            width, height = text.split("x", 1)
            return int(width.strip()), int(height.strip())
        return int(text)
    raise ValueError(f"Unsupported scan box value: {raw!r}")


def _first_present(data: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data.get(key)
    return None



# Built after the helpers above; ScanConfig validation needs them.
DEFAULT_SCAN_CONFIG = ScanConfig()


def effective_config(config: Optional[ScanConfig]) -> ScanConfig:
    """Config used for a capture loop: the caller's, or the defaults."""
    return config if config is not None else DEFAULT_SCAN_CONFIG


__all__ = [
    "DEFAULT_SCAN_CONFIG",
    "ScanBox",
    "ScanConfig",
    "as_dict",
    "effective_config",
    "load_config",
]
