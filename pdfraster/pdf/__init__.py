"""PDF rasterization utilities.

The pieces run in this order for every page of a conversion:

1. ``page_range`` turns the caller's selector into an inclusive range.
2. ``document`` holds the PDF bytes and opens them with PyMuPDF.
3. ``rasterizer`` resolves the viewport and paints the page onto a Pillow
   surface.
4. ``encoder`` turns the surface into a data URL or a ``page-<N>.<ext>`` file.

``PdfConverter`` in ``converter`` strings these together.
"""

from .converter import ConversionOptions, PdfConverter, convert_pdf
from .document import FromBytes, FromPath, SourceDocument, load_document
from .encoder import ImageFormat, JpegSettings, PngFilter, PngSettings
from .page_range import PageRange, normalize_page_range
from .rasterizer import DerivedScale, FixedScale


__all__ = [
    "ConversionOptions",
    "DerivedScale",
    "FixedScale",
    "FromBytes",
    "FromPath",
    "ImageFormat",
    "JpegSettings",
    "PageRange",
    "PdfConverter",
    "PngFilter",
    "PngSettings",
    "SourceDocument",
    "convert_pdf",
    "load_document",
    "normalize_page_range",
]
