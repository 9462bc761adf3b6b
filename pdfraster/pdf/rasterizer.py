"""Per-page viewport resolution and rasterization."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
import math
from numbers import Real
from typing import Union

import fitz  # PyMuPDF
from PIL import Image

from pdfraster.errors import InvalidOptionsError
from pdfraster.utils.log_utils import logger


ScaleFunction = Callable[[float, float], float]

SURFACE_MODE = "RGB"
SURFACE_BACKGROUND = "white"


@dataclass(frozen=True, slots=True)
class FixedScale:
    scale: float

    def __post_init__(self) -> None:
        _check_scale(self.scale, source="viewport scale")


@dataclass(frozen=True, slots=True)
class DerivedScale:
    """Scale computed from the intrinsic page size (in points) at render time."""

    fn: ScaleFunction

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise InvalidOptionsError("DerivedScale requires a callable")


ViewportSpec = Union[FixedScale, DerivedScale]


@dataclass(frozen=True, slots=True)
class Viewport:
    scale: float
    width: float
    height: float

    @property
    def pixel_size(self) -> tuple[int, int]:
        return max(1, int(self.width)), max(1, int(self.height))


@dataclass(slots=True)
class RasterSurface:
    """Off-screen pixel buffer for exactly one page."""

    page_number: int
    viewport: Viewport
    image: Image.Image

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


def _check_scale(value: object, *, source: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidOptionsError(f"{source} must be a number, got {type(value).__name__}")
    scale = float(value)
    if not math.isfinite(scale) or scale <= 0:
        raise InvalidOptionsError(f"{source} must be a positive finite number, got {value!r}")
    return scale


def as_viewport_spec(value: ViewportSpec | float | ScaleFunction) -> ViewportSpec:
    """Coerce a plain number or callable into a :data:`ViewportSpec`."""
    if isinstance(value, (FixedScale, DerivedScale)):
        return value
    if callable(value):
        return DerivedScale(value)
    return FixedScale(_check_scale(value, source="viewport scale"))


def get_viewport(page: fitz.Page, scale: float) -> Viewport:
    rect = page.rect
    return Viewport(scale=scale, width=rect.width * scale, height=rect.height * scale)


def resolve_viewport(page: fitz.Page, spec: ViewportSpec) -> Viewport:
    if isinstance(spec, FixedScale):
        return get_viewport(page, spec.scale)
    intrinsic = get_viewport(page, 1.0)
    scale = _check_scale(
        spec.fn(intrinsic.width, intrinsic.height), source="derived viewport scale"
    )
    return get_viewport(page, scale)


def create_surface(viewport: Viewport, page_number: int) -> RasterSurface:
    image = Image.new(SURFACE_MODE, viewport.pixel_size, SURFACE_BACKGROUND)
    return RasterSurface(page_number=page_number, viewport=viewport, image=image)


def _paint(page: fitz.Page, surface: RasterSurface) -> None:
    scale = surface.viewport.scale
    pix = page.get_pixmap(
        matrix=fitz.Matrix(scale, scale),  # type: ignore[attr-defined]
        colorspace=fitz.csRGB,
        alpha=False,
    )
    rendered = Image.frombytes(SURFACE_MODE, (pix.width, pix.height), pix.samples)
    surface.image.paste(rendered, (0, 0))


async def render_page(page: fitz.Page, spec: ViewportSpec, page_number: int) -> RasterSurface:
    """Rasterize ``page`` onto a freshly allocated surface."""
    viewport = resolve_viewport(page, spec)
    surface = create_surface(viewport, page_number)
    logger.debug(
        f"Rendering page {page_number} at scale {viewport.scale:.3f} "
        f"({surface.size[0]}x{surface.size[1]} px)"
    )
    await asyncio.to_thread(_paint, page, surface)
    return surface


__all__ = [
    "DerivedScale",
    "FixedScale",
    "RasterSurface",
    "ScaleFunction",
    "Viewport",
    "ViewportSpec",
    "as_viewport_spec",
    "create_surface",
    "get_viewport",
    "render_page",
    "resolve_viewport",
]
