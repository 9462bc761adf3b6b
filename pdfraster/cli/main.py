from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
from pathlib import Path
from typing import Any, ParamSpec, TypeVar

import typer

from pdfraster.errors import InvalidOptionsError
from pdfraster.utils.log_utils import logger

from . import convert


app = typer.Typer(
    help="Render PDF pages to PNG or JPEG images.",
)


_P = ParamSpec("_P")
_T = TypeVar("_T")


def _synchronous(handler: Callable[_P, Coroutine[Any, Any, _T]]) -> Callable[_P, _T]:
    @wraps(handler)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _T:
        try:
            return asyncio.run(handler(*args, **kwargs))
        except KeyboardInterrupt as err:
            logger.info("Interrupted by user")
            raise typer.Exit(code=130) from err

    return wrapper


@app.callback()
def main() -> None:
    """pdfraster command-line interface."""


@app.command("convert")
@_synchronous
async def convert_command(
    input_file: Path = typer.Argument(
        ...,
        help="PDF file to render.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for page-<N>.<ext> files (created if missing). "
        "Defaults to PDFRASTER_OUTPUT_DIR or the working directory.",
        file_okay=False,
        dir_okay=True,
    ),
    page: int | None = typer.Option(
        None,
        "--page",
        "-p",
        help="Render a single page (1-based). Takes precedence over --first/--last.",
    ),
    first: int | None = typer.Option(
        None,
        "--first",
        help="First page to render (1-based).",
    ),
    last: int | None = typer.Option(
        None,
        "--last",
        help="Last page to render; clipped to the page count.",
    ),
    scale: float | None = typer.Option(
        None,
        "--scale",
        help="Viewport scale factor. Defaults to PDFRASTER_VIEWPORT_SCALE or 1.5.",
    ),
    image_format: str = typer.Option(
        convert.DEFAULT_FORMAT,
        "--format",
        "-f",
        help="Output format: png or jpeg.",
        show_default=True,
    ),
    quality: float | None = typer.Option(
        None,
        "--quality",
        help="JPEG quality between 0 and 1.",
    ),
    progressive: bool = typer.Option(
        False,
        "--progressive",
        help="Write progressive JPEGs.",
    ),
    no_chroma_subsampling: bool = typer.Option(
        False,
        "--no-chroma-subsampling",
        help="Keep full chroma resolution in JPEG output (4:4:4).",
    ),
    compression_level: int = typer.Option(
        convert.DEFAULT_COMPRESSION_LEVEL,
        "--compression-level",
        help="PNG zlib compression level (0-9).",
        show_default=True,
    ),
    data_url: bool = typer.Option(
        False,
        "--data-url",
        help="Print base64 data URLs instead of writing files.",
    ),
) -> int:
    options = convert.ConvertOptions(
        input_file=input_file,
        output_dir=output_dir,
        page=page,
        first=first,
        last=last,
        scale=scale,
        image_format=image_format,
        quality=quality,
        progressive=progressive,
        chroma_subsampling=not no_chroma_subsampling,
        compression_level=compression_level,
        data_url=data_url,
    )
    try:
        result = await convert.run(options)
    except InvalidOptionsError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if result != 0:
        raise typer.Exit(code=result)
    return result
