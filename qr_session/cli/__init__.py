"""Command-line helpers for qr-session."""

from .commands import build_parser, main

__all__ = ["build_parser", "main"]
