"""Custom exception types for pdfraster."""

from __future__ import annotations


class PdfRasterError(Exception):
    """Base class for errors raised by pdfraster itself.

    Errors coming from PyMuPDF, Pillow or the filesystem are never wrapped in
    this type; they reach the caller unchanged.
    """

    pass


class InvalidOptionsError(PdfRasterError, ValueError):
    """Raised when a conversion option holds a value that cannot be honoured."""

    pass


__all__ = ["InvalidOptionsError", "PdfRasterError"]
