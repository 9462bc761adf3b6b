from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import sys

import typer

from pdfraster.pdf import ImageFormat, JpegSettings, PdfConverter, PngSettings
from pdfraster.pdf.page_range import PageSelector
from pdfraster.utils.log_utils import logger
from pdfraster.utils.progress import TqdmProgressReporter


DEFAULT_FORMAT = "png"
DEFAULT_COMPRESSION_LEVEL = 6

_FORMATS: dict[str, ImageFormat] = {
    "png": ImageFormat.PNG,
    "jpeg": ImageFormat.JPEG,
    "jpg": ImageFormat.JPEG,
}


@dataclass(slots=True)
class ConvertOptions:
    input_file: Path
    output_dir: Path | None
    page: int | None
    first: int | None
    last: int | None
    scale: float | None
    image_format: str
    quality: float | None
    progressive: bool
    chroma_subsampling: bool
    compression_level: int
    data_url: bool


def _page_selector(options: ConvertOptions) -> PageSelector:
    if options.page is not None:
        return options.page
    if options.first is None and options.last is None:
        return None
    first = 1 if options.first is None else options.first
    last = sys.maxsize if options.last is None else options.last
    return (first, last)


def _resolve_format(name: str) -> ImageFormat:
    fmt = _FORMATS.get(name.strip().lower())
    if fmt is None:
        logger.error(f"Unsupported format '{name}'. Choose one of: png, jpeg.")
        raise typer.Exit(code=2)
    return fmt


async def run(options: ConvertOptions) -> int:
    fmt = _resolve_format(options.image_format)

    converter = PdfConverter(options.input_file)
    png = PngSettings(compression_level=options.compression_level)
    jpeg_kwargs: dict[str, object] = {
        "progressive": options.progressive,
        "chroma_subsampling": options.chroma_subsampling,
    }
    if options.quality is not None:
        jpeg_kwargs["quality"] = options.quality
    jpeg = JpegSettings(**jpeg_kwargs)  # type: ignore[arg-type]

    if not options.data_url and options.output_dir is not None:
        options.output_dir.mkdir(parents=True, exist_ok=True)

    progress = TqdmProgressReporter("pdfraster")
    try:
        results = await converter.convert(
            page_range=_page_selector(options),
            viewport_scale=options.scale,
            image_format=fmt,
            data_url=options.data_url,
            output_dir=options.output_dir,
            png=png,
            jpeg=jpeg,
            progress=progress,
        )
    except Exception as exc:
        logger.error(f"Failed to convert {options.input_file}: {exc}")
        return 1
    finally:
        progress.close()

    for result in results:
        typer.echo(result)
    return 0
