"""Centralised environment configuration for pdfraster.

This module ensures `.env` loading happens in one place and exposes a
typed snapshot of rendering defaults and logging knobs. Downstream modules
call `get_settings()` instead of touching `os.environ` directly, making it
easier to validate values and override behaviour in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv


_DEFAULT_ENV_PATH = Path.cwd() / ".env"

DEFAULT_VIEWPORT_SCALE = 1.5
DEFAULT_OUTPUT_DIR = "./"
DEFAULT_JPEG_QUALITY = 0.8
DEFAULT_CONSOLE_LEVEL = "INFO"


def _coerce_float(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _coerce_positive_float(value: str | None, default: float) -> float:
    parsed = _coerce_float(value)
    if parsed is None or parsed <= 0:
        return default
    return parsed


def _coerce_unit_float(value: str | None, default: float) -> float:
    parsed = _coerce_float(value)
    if parsed is None or not 0.0 <= parsed <= 1.0:
        return default
    return parsed


@dataclass(frozen=True)
class RenderSettings:
    viewport_scale: float
    output_dir: str
    jpeg_quality: float


@dataclass(frozen=True)
class LoggingSettings:
    console_level: str
    file_path: str | None


@dataclass(frozen=True)
class PdfRasterSettings:
    """Top-level snapshot of configuration values."""

    env_file: Path
    render: RenderSettings
    logging: LoggingSettings


def _resolve_env_path(env_file: os.PathLike[str] | str | None) -> Path:
    if env_file is None:
        return _DEFAULT_ENV_PATH
    return Path(env_file).resolve()


@lru_cache(maxsize=4)
def _load_settings(env_path: Path) -> PdfRasterSettings:
    # Load the environment file once per unique path. We avoid override=True so
    # that existing environment variables take precedence over `.env` defaults.
    load_dotenv(dotenv_path=env_path, override=False)

    render = RenderSettings(
        viewport_scale=_coerce_positive_float(
            os.getenv("PDFRASTER_VIEWPORT_SCALE"), DEFAULT_VIEWPORT_SCALE
        ),
        output_dir=os.getenv("PDFRASTER_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR,
        jpeg_quality=_coerce_unit_float(
            os.getenv("PDFRASTER_JPEG_QUALITY"), DEFAULT_JPEG_QUALITY
        ),
    )

    logging_settings = LoggingSettings(
        console_level=(os.getenv("PDFRASTER_LOG_LEVEL") or DEFAULT_CONSOLE_LEVEL).upper(),
        file_path=os.getenv("PDFRASTER_LOG_FILE") or None,
    )

    return PdfRasterSettings(
        env_file=env_path,
        render=render,
        logging=logging_settings,
    )


def get_settings(
    env_file: os.PathLike[str] | str | None = None,
    *,
    reload: bool = False,
) -> PdfRasterSettings:
    """Return the cached settings snapshot.

    Args:
        env_file: Optional explicit path to a `.env` file. When omitted the
            `.env` file in the working directory is used.
        reload: When True the cached snapshot is cleared before loading.
    """
    env_path = _resolve_env_path(env_file)
    if reload:
        _load_settings.cache_clear()
    return _load_settings(env_path)
