"""Render PDF pages to PNG/JPEG images or data URLs."""

from pdfraster.errors import InvalidOptionsError, PdfRasterError
from pdfraster.pdf import (
    ConversionOptions,
    DerivedScale,
    FixedScale,
    FromBytes,
    FromPath,
    ImageFormat,
    JpegSettings,
    PageRange,
    PdfConverter,
    PngFilter,
    PngSettings,
    SourceDocument,
    convert_pdf,
    load_document,
    normalize_page_range,
)


__version__ = "0.1.0"

__all__ = [
    "ConversionOptions",
    "DerivedScale",
    "FixedScale",
    "FromBytes",
    "FromPath",
    "ImageFormat",
    "InvalidOptionsError",
    "JpegSettings",
    "PageRange",
    "PdfConverter",
    "PdfRasterError",
    "PngFilter",
    "PngSettings",
    "SourceDocument",
    "convert_pdf",
    "load_document",
    "normalize_page_range",
]
