"""Loading PDF sources and opening them with PyMuPDF."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Union

import fitz  # PyMuPDF

from pdfraster.utils.log_utils import logger


@dataclass(frozen=True, slots=True)
class FromPath:
    path: str | os.PathLike[str]


@dataclass(frozen=True, slots=True)
class FromBytes:
    data: bytes | bytearray | memoryview


SourceInput = Union[FromPath, FromBytes]


class SourceDocument:
    """Immutable PDF bytes plus the path they came from, if any.

    Bytes are read eagerly when built from a path, so nothing touches the
    filesystem once a conversion has started.
    """

    __slots__ = ("_data", "_path")

    def __init__(self, source: SourceInput) -> None:
        if isinstance(source, FromPath):
            path = Path(source.path)
            self._path: Path | None = path
            self._data = path.read_bytes()
        elif isinstance(source, FromBytes):
            self._path = None
            self._data = bytes(source.data)
        else:
            raise TypeError(
                f"SourceDocument expects FromPath or FromBytes, got {type(source).__name__}"
            )

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> SourceDocument:
        return cls(FromPath(path))

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> SourceDocument:
        return cls(FromBytes(data))

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def name(self) -> str:
        return self._path.name if self._path is not None else "<bytes>"

    async def open(self) -> fitz.Document:
        return await open_document(self)

    async def page_count(self) -> int:
        doc = await self.open()
        try:
            return doc.page_count
        finally:
            doc.close()

    def __repr__(self) -> str:
        return f"SourceDocument(name={self.name!r}, size={len(self._data)})"


def load_document(
    source: SourceInput | str | os.PathLike[str] | bytes | bytearray | memoryview,
) -> SourceDocument:
    """Build a :class:`SourceDocument` from a path, raw bytes or a tagged source."""
    if isinstance(source, (FromPath, FromBytes)):
        return SourceDocument(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return SourceDocument(FromBytes(source))
    if isinstance(source, (str, os.PathLike)):
        return SourceDocument(FromPath(source))
    raise TypeError(
        f"Expected a filesystem path or a bytes-like PDF buffer, got {type(source).__name__}"
    )


def _open_stream(data: bytes) -> fitz.Document:
    return fitz.open(stream=data, filetype="pdf")


async def open_document(source: SourceDocument) -> fitz.Document:
    """Parse the source bytes with PyMuPDF off the event loop.

    PyMuPDF errors for corrupt or empty input are not caught here.
    """
    doc = await asyncio.to_thread(_open_stream, source.data)
    logger.debug(f"Opened {source.name}: {doc.page_count} page(s)")
    return doc


__all__ = [
    "FromBytes",
    "FromPath",
    "SourceDocument",
    "SourceInput",
    "load_document",
    "open_document",
]
