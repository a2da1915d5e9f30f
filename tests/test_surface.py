import io

import numpy as np
import pytest
from PIL import Image

from stamp_remover.errors import DecodeError, SurfaceUnavailableError
from stamp_remover.pipeline.surface import (
    PixelBuffer,
    Rect,
    decode_and_resize,
    encode,
    fit_dimensions,
    round_half_up,
)


def _png_bytes(width: int, height: int, mode: str = "RGB", color=(10, 20, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new(mode, (width, height), color=color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.mark.parametrize(
    "width,height,max_dimension,expected",
    [
        (4000, 3000, 2048, (2048, 1536)),
        (3000, 4000, 2048, (1536, 2048)),
        (1000, 333, 512, (512, 170)),
        (333, 1000, 512, (170, 512)),
        (3000, 3000, 2048, (2048, 2048)),
        (100, 50, 2048, (100, 50)),
        (2048, 2048, 2048, (2048, 2048)),
        (5000, 1, 2048, (2048, 1)),
        (1, 5000, 2048, (1, 2048)),
    ],
)
def test_fit_dimensions(width, height, max_dimension, expected):
    assert fit_dimensions(width, height, max_dimension) == expected


def test_fit_dimensions_rounds_half_up():
    # 3 * 4 / 8 == 1.5
    assert fit_dimensions(8, 3, 4) == (4, 2)
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_decode_and_resize_downscales_wide_image():
    buffer = decode_and_resize(_png_bytes(300, 200), max_dimension=100)
    assert (buffer.width, buffer.height) == (100, 67)
    assert buffer.pixels.shape == (67, 100, 4)
    assert buffer.pixels.dtype == np.uint8


def test_decode_and_resize_downscales_tall_image():
    buffer = decode_and_resize(_png_bytes(200, 300), max_dimension=100)
    assert (buffer.width, buffer.height) == (67, 100)


def test_decode_keeps_small_image_and_adds_alpha():
    buffer = decode_and_resize(_png_bytes(50, 40), max_dimension=100)
    assert (buffer.width, buffer.height) == (50, 40)
    assert np.all(buffer.pixels == np.array([10, 20, 30, 255], dtype=np.uint8))


@pytest.mark.parametrize("data", [b"", b"definitely not an image", _png_bytes(64, 64)[:40]])
def test_decode_rejects_garbage(data):
    with pytest.raises(DecodeError):
        decode_and_resize(data, max_dimension=100)


def test_encode_is_lossless_png():
    rng = np.random.default_rng(7)
    pixels = rng.integers(0, 256, size=(13, 17, 4), dtype=np.uint8)
    data = encode(PixelBuffer(pixels.copy()))

    with Image.open(io.BytesIO(data)) as image:
        assert image.format == "PNG"
        assert image.mode == "RGBA"
        assert np.array_equal(np.asarray(image), pixels)


def test_allocate_rejects_empty_surface():
    with pytest.raises(SurfaceUnavailableError):
        PixelBuffer.allocate(0, 5)
    with pytest.raises(SurfaceUnavailableError):
        PixelBuffer.allocate(5, -1)


def test_allocate_is_transparent_black():
    buffer = PixelBuffer.allocate(3, 2)
    assert buffer.pixels.shape == (2, 3, 4)
    assert not buffer.pixels.any()


def test_read_returns_copy_and_write_composites_at_offset():
    buffer = PixelBuffer.allocate(6, 5)
    rect = Rect(x=4, y=3, width=2, height=2)

    region = buffer.read(rect)
    region[:] = 255
    assert not buffer.pixels.any()

    buffer.write(rect, region)
    assert np.all(buffer.pixels[3:5, 4:6] == 255)
    assert buffer.pixels.sum() == 255 * 2 * 2 * 4


def test_write_rejects_mismatched_region():
    buffer = PixelBuffer.allocate(6, 5)
    with pytest.raises(ValueError):
        buffer.write(Rect(0, 0, 2, 2), np.zeros((3, 2, 4), dtype=np.uint8))


def test_decode_keeps_thin_strip_at_least_one_pixel_high():
    buffer = decode_and_resize(_png_bytes(5000, 1), max_dimension=2048)
    assert (buffer.width, buffer.height) == (2048, 1)


def test_decode_applies_exif_orientation():
    image = Image.new("RGB", (40, 20), color=(10, 20, 30))
    image.paste((255, 255, 255), (30, 0, 40, 20))
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90 degrees clockwise on display
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=95, exif=exif.tobytes())

    buffer = decode_and_resize(buf.getvalue(), max_dimension=2048)

    assert (buffer.width, buffer.height) == (20, 40)
    # The stored right-hand white band is shown along the bottom
    assert buffer.pixels[35:, :, :3].min() > 200
    assert buffer.pixels[:16, :, :3].max() < 100
