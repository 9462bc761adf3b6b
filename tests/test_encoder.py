from __future__ import annotations

import base64
from collections.abc import AsyncIterator
from io import BytesIO
from pathlib import Path
import random

from PIL import Image, JpegImagePlugin
import pytest

from pdfraster.errors import InvalidOptionsError
from pdfraster.pdf import encoder
from pdfraster.pdf.encoder import (
    ImageFormat,
    JpegSettings,
    PngFilter,
    PngSettings,
    encode_bytes,
    encode_data_url,
    output_path,
    write_stream_to_file,
    write_surface,
)
from pdfraster.pdf.rasterizer import RasterSurface, Viewport


def _noisy_surface(page_number: int = 1, size: tuple[int, int] = (64, 48)) -> RasterSurface:
    rng = random.Random(1234)
    image = Image.new("RGB", size)
    pixels = size[0] * size[1]
    image.putdata([tuple(rng.randrange(256) for _ in range(3)) for _ in range(pixels)])
    viewport = Viewport(scale=1.0, width=size[0], height=size[1])
    return RasterSurface(page_number=page_number, viewport=viewport, image=image)


def _png_chunk_types(data: bytes) -> list[bytes]:
    types: list[bytes] = []
    offset = 8
    while offset < len(data):
        length = int.from_bytes(data[offset : offset + 4], "big")
        types.append(data[offset + 4 : offset + 8])
        offset += 12 + length
    return types


def test_png_defaults() -> None:
    settings = PngSettings()
    assert settings.compression_level == 6
    assert settings.filters is PngFilter.ALL
    assert int(PngFilter.ALL) == 0xF8
    assert settings.palette is None
    assert settings.background_index == 0
    assert settings.resolution is None


def test_jpeg_defaults() -> None:
    settings = JpegSettings()
    assert settings.quality == 0.8
    assert settings.progressive is False
    assert settings.chroma_subsampling is True


def test_format_metadata() -> None:
    assert (ImageFormat.PNG.ext, ImageFormat.PNG.mime_type) == ("png", "image/png")
    assert (ImageFormat.JPEG.ext, ImageFormat.JPEG.mime_type) == ("jpg", "image/jpeg")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"compression_level": 10},
        {"compression_level": -1},
        {"filters": PngFilter.SUB},
        {"filters": PngFilter.NO_FILTERS},
        {"palette": [0, 0]},
        {"palette": []},
        {"palette": [0, 0, 0], "background_index": 1},
        {"background_index": -1},
        {"resolution": 0},
    ],
)
def test_png_settings_validation(kwargs: dict[str, object]) -> None:
    with pytest.raises(InvalidOptionsError):
        PngSettings(**kwargs)  # type: ignore[arg-type]


@pytest.mark.parametrize("quality", [-0.1, 1.5, True])
def test_jpeg_settings_validation(quality: object) -> None:
    with pytest.raises(InvalidOptionsError):
        JpegSettings(quality=quality)  # type: ignore[arg-type]


def test_mismatched_settings_are_rejected() -> None:
    with pytest.raises(InvalidOptionsError):
        encode_bytes(_noisy_surface(), ImageFormat.PNG, JpegSettings())


@pytest.mark.parametrize("fmt", [ImageFormat.PNG, ImageFormat.JPEG])
def test_data_url_round_trips_to_an_image(fmt: ImageFormat) -> None:
    surface = _noisy_surface()
    url = encode_data_url(surface, fmt)
    prefix = f"data:{fmt.mime_type};base64,"
    assert url.startswith(prefix)
    with Image.open(BytesIO(base64.b64decode(url[len(prefix) :]))) as decoded:
        assert decoded.format == fmt.pillow_format
        assert decoded.size == surface.size


def test_jpeg_quality_is_passed_through() -> None:
    surface = _noisy_surface(size=(128, 128))
    low = encode_bytes(surface, ImageFormat.JPEG, JpegSettings(quality=0.5))
    high = encode_bytes(surface, ImageFormat.JPEG, JpegSettings(quality=0.9))
    assert len(low) <= len(high)


def test_progressive_jpeg_flag() -> None:
    data = encode_bytes(_noisy_surface(), ImageFormat.JPEG, JpegSettings(progressive=True))
    with Image.open(BytesIO(data)) as decoded:
        assert decoded.info.get("progressive") or decoded.info.get("progression")


def test_png_compression_level_is_passed_through() -> None:
    surface = RasterSurface(
        page_number=1,
        viewport=Viewport(scale=1.0, width=200, height=200),
        image=Image.new("RGB", (200, 200), "white"),
    )
    stored = encode_bytes(surface, ImageFormat.PNG, PngSettings(compression_level=0))
    compressed = encode_bytes(surface, ImageFormat.PNG, PngSettings(compression_level=9))
    assert len(compressed) < len(stored)


def test_png_resolution_sets_dpi() -> None:
    data = encode_bytes(_noisy_surface(), ImageFormat.PNG, PngSettings(resolution=150))
    with Image.open(BytesIO(data)) as decoded:
        assert decoded.info["dpi"] == pytest.approx((150, 150), abs=1)


def test_png_palette_writes_indexed_image_with_background() -> None:
    palette = [255, 255, 255, 0, 0, 0, 255, 0, 0]
    data = encode_bytes(
        _noisy_surface(),
        ImageFormat.PNG,
        PngSettings(palette=palette, background_index=2),
    )
    chunks = _png_chunk_types(data)
    assert chunks.index(b"PLTE") < chunks.index(b"bKGD") < chunks.index(b"IDAT")
    with Image.open(BytesIO(data)) as decoded:
        assert decoded.mode == "P"
        assert decoded.info["background"] == 2
        decoded.load()


def test_output_path_naming(tmp_path: Path) -> None:
    assert output_path(tmp_path, 3, ImageFormat.PNG) == str(tmp_path / "page-3.png")
    assert output_path(str(tmp_path), 12, ImageFormat.JPEG) == str(tmp_path / "page-12.jpg")


@pytest.mark.asyncio
async def test_write_surface_creates_named_file(output_dir: Path) -> None:
    path = await write_surface(_noisy_surface(page_number=7), ImageFormat.JPEG, None, output_dir)
    assert path == str(output_dir / "page-7.jpg")
    with Image.open(path) as written:
        assert written.format == "JPEG"


@pytest.mark.asyncio
async def test_write_failure_propagates(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        await write_surface(_noisy_surface(), ImageFormat.PNG, None, tmp_path / "missing")


@pytest.mark.asyncio
async def test_source_error_closes_destination_and_reraises(tmp_path: Path) -> None:
    async def failing_stream() -> AsyncIterator[bytes]:
        yield b"partial"
        raise RuntimeError("encoder exploded")

    target = tmp_path / "page-1.png"
    with pytest.raises(RuntimeError, match="encoder exploded"):
        await write_stream_to_file(failing_stream(), str(target))

    # The bytes written before the failure were flushed by the close.
    assert target.read_bytes() == b"partial"


@pytest.mark.parametrize(("chroma_subsampling", "sampling"), [(True, 2), (False, 0)])
def test_chroma_subsampling_is_passed_through(chroma_subsampling: bool, sampling: int) -> None:
    data = encode_bytes(
        _noisy_surface(),
        ImageFormat.JPEG,
        JpegSettings(chroma_subsampling=chroma_subsampling),
    )
    with Image.open(BytesIO(data)) as decoded:
        assert JpegImagePlugin.get_sampling(decoded) == sampling


class _FullDiskDestination:
    def __init__(self) -> None:
        self.writes: list[bytes] = []
        self.closed = False

    async def write(self, data: bytes) -> int:
        if self.writes:
            raise OSError(28, "No space left on device")
        self.writes.append(data)
        return len(data)

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_destination_error_closes_destination_and_reraises(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    destination = _FullDiskDestination()

    async def fake_open(path: str, mode: str) -> _FullDiskDestination:
        return destination

    monkeypatch.setattr(encoder.aiofiles, "open", fake_open)

    async def two_chunks() -> AsyncIterator[bytes]:
        yield b"first"
        yield b"second"

    with pytest.raises(OSError, match="No space left"):
        await write_stream_to_file(two_chunks(), str(tmp_path / "page-1.png"))

    assert destination.writes == [b"first"]
    assert destination.closed is True
