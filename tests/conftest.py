"""Shared fixtures: small PDFs generated on the fly with PyMuPDF."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import fitz
import pytest


PAGE_WIDTH = 200
PAGE_HEIGHT = 300


def build_pdf(
    page_count: int = 3, width: float = PAGE_WIDTH, height: float = PAGE_HEIGHT
) -> bytes:
    doc = fitz.open()
    try:
        for number in range(1, page_count + 1):
            page = doc.new_page(width=width, height=height)
            page.insert_text((20, 40), f"Page {number}", fontsize=24)
            frame = fitz.Rect(20, 60, width - 20, height - 20)
            page.draw_rect(frame, color=(0.1, 0.3, 0.8), width=3)
        return doc.tobytes()
    finally:
        doc.close()


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture
def pdf_bytes() -> bytes:
    return build_pdf(page_count=3)


@pytest.fixture
def pdf_path(tmp_path: Path, pdf_bytes: bytes) -> Path:
    path = tmp_path / "sample.pdf"
    path.write_bytes(pdf_bytes)
    return path


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    path = tmp_path / "out"
    path.mkdir()
    return path
