"""
Pixel Surface

RGBA pixel buffers and the I/O around them:
- Decoding encoded images (JPEG/PNG/WebP) with a maximum-dimension downscale
- Reading and writing rectangular sub-regions
- Lossless PNG encoding
"""

import io
import logging
import math
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import DecodeError, EncodeError, SurfaceUnavailableError

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for non-negative input."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Rect:
    """Integer rectangle in the coordinate space of a parent buffer."""
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def slices(self) -> tuple[slice, slice]:
        """Row and column slices for indexing a (H, W, ...) array."""
        return slice(self.y, self.y + self.height), slice(self.x, self.x + self.width)


def fit_dimensions(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """
    Constrain (width, height) so neither side exceeds max_dimension.

    The larger side becomes max_dimension and the other is scaled with
    half-up rounding, never below one pixel. Square images take the height
    branch. Never upscales.
    """
    if width <= max_dimension and height <= max_dimension:
        return width, height

    if width > height:
        return max_dimension, max(1, round_half_up(height * max_dimension / width))
    return max(1, round_half_up(width * max_dimension / height)), max_dimension


class PixelBuffer:
    """
    Row-major RGBA pixels, shape (height, width, 4), dtype uint8.

    This is the pixel surface every stage works against: allocate it,
    decode into it, read and write sub-rectangles, encode it.
    """

    def __init__(self, pixels: np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA pixels, got shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")
        if pixels.shape[0] <= 0 or pixels.shape[1] <= 0:
            raise SurfaceUnavailableError(f"Empty surface: {pixels.shape[1]}x{pixels.shape[0]}")
        self.pixels = pixels

    @classmethod
    def allocate(cls, width: int, height: int) -> "PixelBuffer":
        """Allocate a transparent black surface."""
        if width <= 0 or height <= 0:
            raise SurfaceUnavailableError(f"Invalid surface size: {width}x{height}")
        try:
            pixels = np.zeros((height, width, 4), dtype=np.uint8)
        except MemoryError as e:
            raise SurfaceUnavailableError(f"Cannot allocate {width}x{height} surface") from e
        return cls(pixels)

    @classmethod
    def from_pil(cls, image: Image.Image, max_dimension: int = 0) -> "PixelBuffer":
        """
        Draw a PIL image onto a new surface.

        Args:
            image: Any-mode PIL image, EXIF-oriented and converted to RGBA
            max_dimension: Downscale limit, 0 to keep the original size

        Returns:
            PixelBuffer owning a fresh copy of the pixels
        """
        rgba = ImageOps.exif_transpose(image).convert("RGBA")
        if max_dimension > 0:
            target = fit_dimensions(rgba.width, rgba.height, max_dimension)
            if target != rgba.size:
                logger.debug(f"Resizing {rgba.width}x{rgba.height} -> {target[0]}x{target[1]}")
                rgba = rgba.resize(target, Image.Resampling.LANCZOS)

        buffer = cls.allocate(rgba.width, rgba.height)
        buffer.pixels[:] = np.asarray(rgba, dtype=np.uint8)
        return buffer

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.pixels.copy())

    def read(self, rect: Rect) -> np.ndarray:
        """Copy out the pixels covered by rect."""
        rows, cols = rect.slices
        return self.pixels[rows, cols].copy()

    def write(self, rect: Rect, pixels: np.ndarray) -> None:
        """Write pixels back at the rect's offset."""
        if pixels.shape[:2] != (rect.height, rect.width):
            raise ValueError(
                f"Region is {rect.width}x{rect.height}, pixels are {pixels.shape[1]}x{pixels.shape[0]}"
            )
        rows, cols = rect.slices
        self.pixels[rows, cols] = pixels

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    def encode(self) -> bytes:
        """Encode as PNG (lossless)."""
        buf = io.BytesIO()
        try:
            self.to_pil().save(buf, format="PNG")
        except (OSError, ValueError) as e:
            raise EncodeError(f"Failed to encode {self.width}x{self.height} image: {e}") from e
        return buf.getvalue()


def decode_and_resize(data: bytes, max_dimension: int) -> PixelBuffer:
    """
    Decode image bytes into an RGBA buffer no larger than max_dimension.

    Args:
        data: Encoded image (any format Pillow can read)
        max_dimension: Largest allowed width or height

    Returns:
        Decoded PixelBuffer

    Raises:
        DecodeError: If the bytes cannot be decoded
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            logger.debug(f"Decoded {image.format} image {image.width}x{image.height} ({image.mode})")
            return PixelBuffer.from_pil(image, max_dimension)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Could not decode image: {e}") from e


def encode(buffer: PixelBuffer) -> bytes:
    """Encode a buffer to PNG bytes."""
    return buffer.encode()
