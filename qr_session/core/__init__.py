"""Cross-cutting helpers shared by the scanner and the CLI."""

from .logging_config import configure_logging
from .logging_utils import StructuredLogger, ensure_structured_logger, get_module_logger

__all__ = [
    "configure_logging",
    "StructuredLogger",
    "ensure_structured_logger",
    "get_module_logger",
]
