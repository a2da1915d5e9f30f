"""
Stamp Remover

Detects and removes a near-white stamp from the bottom-right corner of images.
"""

from .config import Thresholds, Settings, get_settings
from .errors import StampRemoverError, DecodeError, SurfaceUnavailableError, EncodeError
from .pipeline import (
    PixelBuffer,
    Rect,
    WatermarkRemover,
    decode_and_resize,
    encode,
    remove_watermark,
    process_image_bytes,
    process_image_bytes_async,
)

__version__ = "0.1.0"

__all__ = [
    "Thresholds",
    "Settings",
    "get_settings",
    "StampRemoverError",
    "DecodeError",
    "SurfaceUnavailableError",
    "EncodeError",
    "PixelBuffer",
    "Rect",
    "WatermarkRemover",
    "decode_and_resize",
    "encode",
    "remove_watermark",
    "process_image_bytes",
    "process_image_bytes_async",
]
