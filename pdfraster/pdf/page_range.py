"""Lenient page-range normalisation.

Page selectors arrive in whatever shape the caller had at hand and are turned
into an inclusive, 1-indexed range. Malformed selectors are never an error;
they fall back to the whole document:

==========================================  ==========================
selector                                    range before clipping
==========================================  ==========================
``(a, b)`` in any order, ``min(a, b) >= 1``  ``(min(a, b), max(a, b))``
``(a, b)`` with ``min(a, b) < 1``            ``(1, inf)``
positive integer ``n``                      ``(n, n)``
``None``, zero, negative, anything else     ``(1, inf)``
==========================================  ==========================

The upper bound is then clipped to the page count. The lower bound is left
alone, so a selector starting past the last page yields an empty range.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
import math
from numbers import Integral, Real
from typing import Union


PageSelector = Union[int, Sequence[int], None]

DEFAULT_PAGE_RANGE: tuple[int, float] = (1, math.inf)


@dataclass(frozen=True, slots=True)
class PageRange:
    """Inclusive 1-indexed page range; empty when ``min_page > max_page``."""

    min_page: int
    max_page: int

    def pages(self) -> Iterator[int]:
        return iter(range(self.min_page, self.max_page + 1))

    def __iter__(self) -> Iterator[int]:
        return self.pages()

    def __len__(self) -> int:
        return max(0, self.max_page - self.min_page + 1)

    @property
    def is_empty(self) -> bool:
        return self.min_page > self.max_page


def _as_page_number(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, Integral):
        return int(value)
    if isinstance(value, Real) and math.isfinite(value) and float(value).is_integer():
        return int(value)
    return None


def _resolve_selector(selector: object) -> tuple[int, float]:
    if isinstance(selector, Sequence) and not isinstance(selector, (str, bytes, bytearray)):
        if len(selector) != 2:
            return DEFAULT_PAGE_RANGE
        bounds = [_as_page_number(value) for value in selector]
        if bounds[0] is None or bounds[1] is None:
            return DEFAULT_PAGE_RANGE
        low, high = sorted(bounds)  # type: ignore[type-var]
        if low < 1:
            return DEFAULT_PAGE_RANGE
        return low, high

    page = _as_page_number(selector)
    if page is not None and page > 0:
        return page, page
    return DEFAULT_PAGE_RANGE


def normalize_page_range(selector: PageSelector, page_count: int) -> PageRange:
    """Resolve ``selector`` against a document with ``page_count`` pages."""
    min_page, max_page = _resolve_selector(selector)
    clipped = int(min(max_page, page_count))
    return PageRange(min_page=min_page, max_page=clipped)


__all__ = ["DEFAULT_PAGE_RANGE", "PageRange", "PageSelector", "normalize_page_range"]
