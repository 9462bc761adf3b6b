"""High-level PDF to image conversion façade."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import os
from typing import Any

from pdfraster.config import get_settings
from pdfraster.errors import InvalidOptionsError
from pdfraster.pdf.document import SourceDocument, SourceInput, load_document, open_document
from pdfraster.pdf.encoder import (
    ImageFormat,
    JpegSettings,
    PngSettings,
    encode_data_url,
    write_surface,
)
from pdfraster.pdf.page_range import PageSelector, normalize_page_range
from pdfraster.pdf.rasterizer import ScaleFunction, ViewportSpec, as_viewport_spec, render_page
from pdfraster.utils.log_utils import logger
from pdfraster.utils.progress import ProgressReporter


@dataclass(slots=True)
class ConversionOptions:
    """Everything that governs one conversion run.

    ``viewport_scale``, ``output_dir`` and ``jpeg`` fall back to the
    converter's scale and the values from ``get_settings()`` when left unset.
    """

    page_range: PageSelector = None
    viewport_scale: ViewportSpec | float | ScaleFunction | None = None
    image_format: ImageFormat = ImageFormat.PNG
    data_url: bool = False
    output_dir: str | os.PathLike[str] | None = None
    png: PngSettings = field(default_factory=PngSettings)
    jpeg: JpegSettings | None = None


class PdfConverter:
    """Convert the pages of one PDF into PNG/JPEG files or data URLs.

    The source is read into memory once, at construction. Each call to
    :meth:`convert` opens its own document handle, renders the selected pages
    one after the other in ascending order and returns one string per page:
    a file path, or a data URL when ``data_url`` is set.

    Example::

        converter = PdfConverter("report.pdf", viewport_scale=2.0)
        paths = await converter.download_png(page_range=(1, 3), output_dir="out")
    """

    def __init__(
        self,
        source: SourceInput | str | os.PathLike[str] | bytes | bytearray | memoryview,
        *,
        viewport_scale: ViewportSpec | float | ScaleFunction | None = None,
    ) -> None:
        self._document: SourceDocument = load_document(source)
        self._viewport_scale = (
            as_viewport_spec(viewport_scale) if viewport_scale is not None else None
        )

    @property
    def document(self) -> SourceDocument:
        return self._document

    async def to_data_url(
        self,
        *,
        page_range: PageSelector = None,
        viewport_scale: ViewportSpec | float | ScaleFunction | None = None,
        image_format: ImageFormat = ImageFormat.PNG,
        quality: float | None = None,
        progress: ProgressReporter | None = None,
    ) -> list[str]:
        jpeg = JpegSettings(quality=quality) if quality is not None else None
        return await self.convert(
            page_range=page_range,
            viewport_scale=viewport_scale,
            image_format=image_format,
            data_url=True,
            jpeg=jpeg,
            progress=progress,
        )

    async def download(
        self,
        *,
        page_range: PageSelector = None,
        output_dir: str | os.PathLike[str] | None = None,
        viewport_scale: ViewportSpec | float | ScaleFunction | None = None,
        image_format: ImageFormat = ImageFormat.PNG,
        settings: PngSettings | JpegSettings | None = None,
        progress: ProgressReporter | None = None,
    ) -> list[str]:
        overrides: dict[str, Any] = {}
        if isinstance(settings, PngSettings):
            overrides["png"] = settings
        elif isinstance(settings, JpegSettings):
            overrides["jpeg"] = settings
        return await self.convert(
            page_range=page_range,
            output_dir=output_dir,
            viewport_scale=viewport_scale,
            image_format=image_format,
            data_url=False,
            progress=progress,
            **overrides,
        )

    async def download_png(
        self,
        *,
        page_range: PageSelector = None,
        output_dir: str | os.PathLike[str] | None = None,
        viewport_scale: ViewportSpec | float | ScaleFunction | None = None,
        settings: PngSettings | None = None,
        progress: ProgressReporter | None = None,
    ) -> list[str]:
        return await self.download(
            page_range=page_range,
            output_dir=output_dir,
            viewport_scale=viewport_scale,
            image_format=ImageFormat.PNG,
            settings=settings,
            progress=progress,
        )

    async def download_jpeg(
        self,
        *,
        page_range: PageSelector = None,
        output_dir: str | os.PathLike[str] | None = None,
        viewport_scale: ViewportSpec | float | ScaleFunction | None = None,
        settings: JpegSettings | None = None,
        progress: ProgressReporter | None = None,
    ) -> list[str]:
        return await self.download(
            page_range=page_range,
            output_dir=output_dir,
            viewport_scale=viewport_scale,
            image_format=ImageFormat.JPEG,
            settings=settings,
            progress=progress,
        )

    def _resolve_options(
        self, options: ConversionOptions
    ) -> tuple[ViewportSpec, str, JpegSettings]:
        render_settings = get_settings().render

        if not isinstance(options.image_format, ImageFormat):
            raise InvalidOptionsError(
                f"image_format must be an ImageFormat, got {options.image_format!r}"
            )
        if not isinstance(options.png, PngSettings):
            raise InvalidOptionsError(f"png must be PngSettings, got {type(options.png).__name__}")
        if options.jpeg is not None and not isinstance(options.jpeg, JpegSettings):
            raise InvalidOptionsError(
                f"jpeg must be JpegSettings, got {type(options.jpeg).__name__}"
            )

        if options.viewport_scale is not None:
            viewport = as_viewport_spec(options.viewport_scale)
        elif self._viewport_scale is not None:
            viewport = self._viewport_scale
        else:
            viewport = as_viewport_spec(render_settings.viewport_scale)

        output_dir = options.output_dir
        if output_dir is None:
            output_dir = render_settings.output_dir
        jpeg = options.jpeg or JpegSettings(quality=render_settings.jpeg_quality)
        return viewport, os.fspath(output_dir), jpeg

    async def convert(
        self,
        options: ConversionOptions | None = None,
        *,
        progress: ProgressReporter | None = None,
        **overrides: Any,
    ) -> list[str]:
        """Render the selected pages and deliver them as files or data URLs.

        Keyword ``overrides`` replace the matching fields of ``options``. The
        first failure aborts the remaining pages and is re-raised as is; files
        written for earlier pages stay on disk.
        """
        options = options or ConversionOptions()
        if overrides:
            try:
                options = replace(options, **overrides)
            except TypeError as exc:
                raise InvalidOptionsError(str(exc)) from exc
        viewport, output_dir, jpeg = self._resolve_options(options)
        fmt = options.image_format
        settings = options.png if fmt is ImageFormat.PNG else jpeg

        results: list[str] = []
        progress_started = False
        try:
            doc = await open_document(self._document)
            try:
                page_range = normalize_page_range(options.page_range, doc.page_count)
                target = "data URLs" if options.data_url else output_dir
                logger.info(
                    f"Converting {self._document.name} pages {page_range.min_page}-"
                    f"{page_range.max_page} to {fmt.name} ({target})"
                )
                if progress is not None:
                    progress.start(len(page_range))
                    progress_started = True

                for page_number in page_range:
                    page = doc.load_page(page_number - 1)
                    surface = await render_page(page, viewport, page_number)
                    if options.data_url:
                        results.append(encode_data_url(surface, fmt, settings))
                    else:
                        results.append(await write_surface(surface, fmt, settings, output_dir))
                    if progress is not None:
                        progress.increment(page_number)
            finally:
                doc.close()
        except Exception as exc:
            logger.error(
                f"Conversion of {self._document.name} failed after {len(results)} page(s): {exc}"
            )
            raise
        finally:
            if progress_started and progress is not None:
                progress.close()

        logger.info(f"Converted {len(results)} page(s) from {self._document.name}")
        return results


async def convert_pdf(
    source: SourceInput | str | os.PathLike[str] | bytes | bytearray | memoryview,
    options: ConversionOptions | None = None,
    **overrides: Any,
) -> list[str]:
    """One-shot helper: build a :class:`PdfConverter` and run :meth:`PdfConverter.convert`."""
    return await PdfConverter(source).convert(options, **overrides)


__all__ = ["ConversionOptions", "PdfConverter", "convert_pdf"]
