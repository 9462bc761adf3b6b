"""Encoding rasterized pages as PNG/JPEG data URLs or files."""

from __future__ import annotations

import asyncio
import base64
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
import enum
from io import BytesIO
import os
from typing import Any, Union

import aiofiles
from PIL import Image, PngImagePlugin

from pdfraster.config.settings import DEFAULT_JPEG_QUALITY
from pdfraster.errors import InvalidOptionsError
from pdfraster.pdf.rasterizer import RasterSurface


STREAM_CHUNK_SIZE = 64 * 1024


class ImageFormat(enum.Enum):
    PNG = "png"
    JPEG = "jpeg"

    @property
    def ext(self) -> str:
        return "png" if self is ImageFormat.PNG else "jpg"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def pillow_format(self) -> str:
        return self.name


class PngFilter(enum.IntFlag):
    """Row filter flags, using the libpng bit values."""

    NO_FILTERS = 0x00
    NONE = 0x08
    SUB = 0x10
    UP = 0x20
    AVG = 0x40
    PAETH = 0x80
    ALL = NONE | SUB | UP | AVG | PAETH


@dataclass(frozen=True, slots=True)
class PngSettings:
    """PNG encoder settings.

    ``palette`` is a flat ``[r, g, b, r, g, b, ...]`` sequence; when given,
    the page is quantized to that palette and ``background_index`` is written
    as the image's background colour. ``resolution`` is in pixels per inch.
    Pillow picks a filter per row adaptively, so ``filters`` only accepts
    :attr:`PngFilter.ALL`.
    """

    compression_level: int = 6
    filters: PngFilter = PngFilter.ALL
    palette: Sequence[int] | bytes | None = None
    background_index: int = 0
    resolution: int | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.compression_level <= 9:
            raise InvalidOptionsError(
                f"compression_level must be between 0 and 9, got {self.compression_level}"
            )
        if self.filters != PngFilter.ALL:
            raise InvalidOptionsError(
                f"Only PngFilter.ALL is supported by the PNG encoder, got {self.filters!r}"
            )
        if self.palette is not None:
            entries = len(self.palette) // 3
            if not self.palette or len(self.palette) % 3 or entries > 256:
                raise InvalidOptionsError(
                    "palette must hold between 1 and 256 RGB triplets as a flat sequence"
                )
            if not 0 <= self.background_index < entries:
                raise InvalidOptionsError(
                    f"background_index {self.background_index} is outside the palette"
                )
        elif self.background_index < 0:
            raise InvalidOptionsError("background_index must not be negative")
        if self.resolution is not None and self.resolution <= 0:
            raise InvalidOptionsError(f"resolution must be positive, got {self.resolution}")


@dataclass(frozen=True, slots=True)
class JpegSettings:
    """JPEG encoder settings; ``quality`` is on a 0-1 scale."""

    quality: float = DEFAULT_JPEG_QUALITY
    progressive: bool = False
    chroma_subsampling: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.quality, bool) or not 0.0 <= self.quality <= 1.0:
            raise InvalidOptionsError(f"quality must be between 0 and 1, got {self.quality!r}")


EncoderSettings = Union[PngSettings, JpegSettings]


def default_settings(fmt: ImageFormat) -> EncoderSettings:
    return PngSettings() if fmt is ImageFormat.PNG else JpegSettings()


def _check_settings(fmt: ImageFormat, settings: EncoderSettings | None) -> EncoderSettings:
    if settings is None:
        return default_settings(fmt)
    expected = PngSettings if fmt is ImageFormat.PNG else JpegSettings
    if not isinstance(settings, expected):
        raise InvalidOptionsError(
            f"{fmt.name} output needs {expected.__name__}, got {type(settings).__name__}"
        )
    return settings


def _encode_png(image: Image.Image, settings: PngSettings) -> bytes:
    params: dict[str, Any] = {"compress_level": settings.compression_level}
    if settings.resolution is not None:
        params["dpi"] = (settings.resolution, settings.resolution)

    if settings.palette is None:
        buffer = BytesIO()
        image.save(buffer, format="PNG", **params)
        return buffer.getvalue()

    palette_image = Image.new("P", (1, 1))
    palette_image.putpalette(list(settings.palette))
    indexed = image.convert("RGB").quantize(palette=palette_image)
    info = PngImagePlugin.PngInfo()
    info.add(b"bKGD", bytes([settings.background_index]))
    buffer = BytesIO()
    indexed.save(buffer, format="PNG", pnginfo=info, **params)
    return buffer.getvalue()


def _encode_jpeg(image: Image.Image, settings: JpegSettings) -> bytes:
    buffer = BytesIO()
    image.convert("RGB").save(
        buffer,
        format="JPEG",
        quality=max(1, min(100, round(settings.quality * 100))),
        progressive=settings.progressive,
        # 2 is 4:2:0, 0 keeps full chroma resolution (4:4:4).
        subsampling=2 if settings.chroma_subsampling else 0,
    )
    return buffer.getvalue()


def encode_bytes(
    surface: RasterSurface,
    fmt: ImageFormat,
    settings: EncoderSettings | None = None,
) -> bytes:
    settings = _check_settings(fmt, settings)
    if isinstance(settings, PngSettings):
        return _encode_png(surface.image, settings)
    return _encode_jpeg(surface.image, settings)


def encode_data_url(
    surface: RasterSurface,
    fmt: ImageFormat,
    settings: EncoderSettings | None = None,
) -> str:
    payload = base64.b64encode(encode_bytes(surface, fmt, settings)).decode("ascii")
    return f"data:{fmt.mime_type};base64,{payload}"


async def encode_stream(
    surface: RasterSurface,
    fmt: ImageFormat,
    settings: EncoderSettings | None = None,
    *,
    chunk_size: int = STREAM_CHUNK_SIZE,
) -> AsyncIterator[bytes]:
    """Yield the encoded image in chunks; encoding runs in a worker thread."""
    data = await asyncio.to_thread(encode_bytes, surface, fmt, settings)
    for start in range(0, len(data), chunk_size):
        yield data[start : start + chunk_size]


def output_path(output_dir: str | os.PathLike[str], page_number: int, fmt: ImageFormat) -> str:
    return os.path.join(os.fspath(output_dir), f"page-{page_number}.{fmt.ext}")


async def write_stream_to_file(chunks: AsyncIterator[bytes], file_path: str) -> None:
    """Pipe ``chunks`` into a new file at ``file_path``.

    The destination is closed whether the source or the destination fails,
    and the original error is re-raised.
    """
    destination = await aiofiles.open(file_path, "wb")
    try:
        async for chunk in chunks:
            await destination.write(chunk)
    finally:
        await destination.close()


async def write_surface(
    surface: RasterSurface,
    fmt: ImageFormat,
    settings: EncoderSettings | None,
    output_dir: str | os.PathLike[str],
) -> str:
    settings = _check_settings(fmt, settings)
    file_path = output_path(output_dir, surface.page_number, fmt)
    await write_stream_to_file(encode_stream(surface, fmt, settings), file_path)
    return file_path


__all__ = [
    "EncoderSettings",
    "ImageFormat",
    "JpegSettings",
    "PngFilter",
    "PngSettings",
    "default_settings",
    "encode_bytes",
    "encode_data_url",
    "encode_stream",
    "output_path",
    "write_stream_to_file",
    "write_surface",
]
