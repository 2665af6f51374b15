"""Logging helpers for qr-session.

Every module logs through a ``StructuredLogger`` under the ``qr_session``
namespace. Messages carry a ``[component]`` prefix plus any context bound
with ``bind()``; the session controller binds its mount id, so logs from
several scanners on one page stay apart.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

LOGGER_NAMESPACE = "qr_session"
DEFAULT_COMPONENT = "Session"


def qualified_name(name: Optional[str]) -> str:
    if not name:
        return LOGGER_NAMESPACE
    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return name
    return f"{LOGGER_NAMESPACE}.{name}"


def component_for(name: str) -> str:
    """qr_session.scanner.controller -> controller"""
    if name == LOGGER_NAMESPACE:
        return DEFAULT_COMPONENT
    if name.startswith(f"{LOGGER_NAMESPACE}."):
        return name.rsplit(".", 1)[-1]
    return name or DEFAULT_COMPONENT


class StructuredLogger:
    """Prefixing front for a stdlib logger."""

    __slots__ = ("_logger", "_component", "_context")

    def __init__(
        self,
        logger: logging.Logger,
        component: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._logger = logger
        self._component = component or component_for(logger.name)
        self._context = dict(context or {})

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"StructuredLogger({self._logger.name!r}, component={self._component!r})"

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def component(self) -> str:
        return self._component

    @property
    def context(self) -> dict[str, Any]:
        return dict(self._context)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def bind(self, **fields: Any) -> "StructuredLogger":
        return StructuredLogger(self._logger, self._component, {**self._context, **fields})

    def getChild(self, suffix: str) -> "StructuredLogger":
        return StructuredLogger(
            self._logger.getChild(suffix),
            f"{self._component}.{suffix}",
            self._context,
        )

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    # ------------------------------------------------------------------

    def _prefix(self) -> str:
        if not self._context:
            return f"[{self._component}]"
        fields = " ".join(f"{key}={value}" for key, value in self._context.items())
        return f"[{self._component} {fields}]"

    def _render(self, message: object, args: tuple) -> str:
        text = str(message)
        if args:
            try:
                text = text % args
            except (TypeError, ValueError):
                text = f"{text} (args={', '.join(repr(arg) for arg in args)})"
        return f"{self._prefix()} {text}"

    def log(self, level: int, message: object, *args: Any, **kwargs: Any) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, self._render(message, args), **kwargs)

    def debug(self, message: object, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: object, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: object, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: object, *args: Any, **kwargs: Any) -> None:
        self.log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: object, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, message, *args, **kwargs)


LoggerLike = Union[StructuredLogger, logging.Logger, logging.LoggerAdapter, None]


def get_module_logger(name: Optional[str] = None) -> StructuredLogger:
    return StructuredLogger(logging.getLogger(qualified_name(name)))


def ensure_structured_logger(
    logger: LoggerLike,
    *,
    component: Optional[str] = None,
    fallback_name: Optional[str] = None,
) -> StructuredLogger:
    """Accept whatever logger a caller hands in and return a StructuredLogger."""
    if isinstance(logger, StructuredLogger):
        return logger
    if isinstance(logger, logging.LoggerAdapter):
        logger = logger.logger
    if isinstance(logger, logging.Logger):
        return StructuredLogger(logger, component)
    return get_module_logger(fallback_name)


__all__ = [
    "LOGGER_NAMESPACE",
    "LoggerLike",
    "StructuredLogger",
    "component_for",
    "ensure_structured_logger",
    "get_module_logger",
    "qualified_name",
]
