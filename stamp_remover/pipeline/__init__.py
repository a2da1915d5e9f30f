"""
Stamp Remover Pipeline

Loading, detection, inpainting and encoding modules.
"""

from .surface import PixelBuffer, Rect, decode_and_resize, encode
from .region import select_roi
from .detector import WatermarkDetector, DetectionResult
from .inpainter import inpaint_region, InpaintResult
from .watermark_remover import (
    WatermarkRemover,
    RemovalResult,
    BatchItem,
    remove_watermark,
    process_image_bytes,
    process_image_bytes_async,
)

__all__ = [
    # Surface
    "PixelBuffer",
    "Rect",
    "decode_and_resize",
    "encode",
    # Detection
    "select_roi",
    "WatermarkDetector",
    "DetectionResult",
    # Inpainting
    "inpaint_region",
    "InpaintResult",
    # Removal
    "WatermarkRemover",
    "RemovalResult",
    "BatchItem",
    "remove_watermark",
    "process_image_bytes",
    "process_image_bytes_async",
]
