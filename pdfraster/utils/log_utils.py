"""Logging utilities shared across the pdfraster package."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

from pdfraster.config import get_settings


_CONFIGURED: bool = False

DEFAULT_FILE_LEVEL = "DEBUG"
DEFAULT_FILE_ROTATION = "5 MB"
DEFAULT_FILE_RETENTION = 2

_RICH_HANDLER_KWARGS: dict[str, Any] = {
    "markup": False,
    "show_time": False,
}


def configure_logging(
    *,
    console_level: str | None = None,
    file_path: str | None = None,
    force: bool = False,
) -> None:
    """Configure the shared logger once per process.

    Explicit arguments win over the values from ``get_settings()``.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    settings = get_settings().logging
    level = console_level or settings.console_level
    log_file = file_path if file_path is not None else settings.file_path

    logger.remove()

    logger.add(
        RichHandler(console=Console(stderr=True), **_RICH_HANDLER_KWARGS),  # type: ignore[arg-type]
        level=level,
        format="{message}",
    )

    if log_file:
        resolved_file_path = Path(log_file).expanduser().resolve()
        resolved_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(resolved_file_path),
            level=DEFAULT_FILE_LEVEL,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}",
            rotation=DEFAULT_FILE_ROTATION,
            retention=DEFAULT_FILE_RETENTION,
            enqueue=True,
        )

    _CONFIGURED = True


__all__ = ["configure_logging", "logger"]

# Configure logging on import so callers only need to import `logger`.
configure_logging()
