"""
Watermark Remover

Removes a near-white stamp from the bottom-right corner of an image:
- Decode and constrain the image to a maximum dimension
- Detect the stamp with a colour threshold and dilated mask
- Diffusion-fill the masked pixels from their surroundings
- Composite the repaired region back and encode losslessly

Images without a detected stamp pass through unmodified.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Callable

from PIL import Image

from ..config import Thresholds, get_settings
from ..errors import StampRemoverError
from .. import metrics
from .detector import DetectionResult, WatermarkDetector
from .inpainter import inpaint_region
from .surface import PixelBuffer, decode_and_resize, encode

logger = logging.getLogger(__name__)


@dataclass
class RemovalResult:
    """Result of watermark removal processing."""
    buffer: PixelBuffer
    detection: DetectionResult
    passes: int = 0
    residual_pixels: int = 0

    @property
    def watermark_detected(self) -> bool:
        return self.detection.detected


@dataclass
class BatchItem:
    """Outcome for one file in a batch run."""
    input_path: Path
    output_path: Optional[Path] = None
    watermark_detected: bool = False
    error: Optional[str] = None


class WatermarkRemover:
    """
    Detects and removes a bottom-right stamp.

    Holds only immutable thresholds, so one instance can serve concurrent
    callers; every call allocates its own buffers.
    """

    def __init__(self, thresholds: Optional[Thresholds] = None):
        self.thresholds = thresholds or get_settings().thresholds()
        self._detector = WatermarkDetector(self.thresholds)

    def remove(self, buffer: PixelBuffer) -> RemovalResult:
        """
        Remove the stamp from buffer in place.

        Never raises for pixel content: an undetected stamp is a passthrough
        and an unfinished fill leaves residual pixels.

        Args:
            buffer: Decoded image, mutated in place when a stamp is found

        Returns:
            RemovalResult wrapping the same buffer
        """
        roi = self._detector.region_for(buffer)
        roi_pixels = buffer.read(roi)
        detection = self._detector.detect_in_region(roi_pixels, roi)

        if not detection.detected:
            metrics.record_detection(False, detection.masked_pixel_count)
            return RemovalResult(buffer=buffer, detection=detection)

        fill = inpaint_region(roi_pixels, detection.mask)
        buffer.write(roi, roi_pixels)
        metrics.record_detection(True, detection.masked_pixel_count, fill.passes)

        return RemovalResult(
            buffer=buffer,
            detection=detection,
            passes=fill.passes,
            residual_pixels=fill.residual_pixels,
        )

    def decode(self, data: bytes) -> PixelBuffer:
        return decode_and_resize(data, self.thresholds.max_dimension)

    def process_bytes(self, data: bytes) -> bytes:
        """Decode, remove and encode one image."""
        start = time.perf_counter()
        try:
            buffer = self.decode(data)
            self.remove(buffer)
            output = encode(buffer)
        except StampRemoverError as e:
            logger.error(f"Failed to process image: {e}")
            metrics.record_failure()
            raise
        metrics.record_duration(time.perf_counter() - start)
        return output

    async def process_bytes_async(self, data: bytes) -> bytes:
        """
        Same as process_bytes, with decode and encode run in worker threads.

        Detection and inpainting stay on the calling task.
        """
        start = time.perf_counter()
        try:
            buffer = await asyncio.to_thread(self.decode, data)
            self.remove(buffer)
            output = await asyncio.to_thread(encode, buffer)
        except StampRemoverError as e:
            logger.error(f"Failed to process image: {e}")
            metrics.record_failure()
            raise
        metrics.record_duration(time.perf_counter() - start)
        return output

    def remove_from_pil(self, image: Image.Image) -> tuple[Image.Image, bool]:
        """
        Remove the stamp from a PIL Image directly.

        Args:
            image: PIL Image in any mode

        Returns:
            Tuple of (cleaned RGBA image, watermark_detected)
        """
        buffer = PixelBuffer.from_pil(image, self.thresholds.max_dimension)
        result = self.remove(buffer)
        return buffer.to_pil(), result.watermark_detected

    def remove_batch(
        self,
        image_paths: list[Path],
        output_dir: Optional[Path] = None,
        suffix: str = "_clean",
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ) -> list[BatchItem]:
        """
        Remove stamps from multiple image files, writing PNGs.

        Args:
            image_paths: List of image paths to process
            output_dir: Destination directory (default: next to each input)
            suffix: Appended to the input stem for the output name
            progress_callback: Optional callback(current, total, message)

        Returns:
            One BatchItem per input, in order
        """
        items = []
        total = len(image_paths)

        for i, path in enumerate(image_paths):
            path = Path(path)
            if progress_callback:
                progress_callback(i + 1, total, f"Processing {path.name}")

            target_dir = output_dir if output_dir is not None else path.parent
            output_path = Path(target_dir) / f"{path.stem}{suffix}.png"

            try:
                start = time.perf_counter()
                buffer = self.decode(path.read_bytes())
                result = self.remove(buffer)
                output_path.parent.mkdir(parents=True, exist_ok=True)
                output_path.write_bytes(encode(buffer))
                metrics.record_duration(time.perf_counter() - start)
            except (StampRemoverError, OSError) as e:
                logger.error(f"Failed to process {path}: {e}")
                metrics.record_failure()
                items.append(BatchItem(input_path=path, error=str(e)))
                continue

            logger.info(f"Processed {i + 1}/{total}: {path.name} watermark_detected={result.watermark_detected}")
            items.append(BatchItem(
                input_path=path,
                output_path=output_path,
                watermark_detected=result.watermark_detected,
            ))

        return items


def remove_watermark(buffer: PixelBuffer, thresholds: Thresholds) -> PixelBuffer:
    """Remove a bottom-right stamp from buffer; passthrough if none is found."""
    return WatermarkRemover(thresholds).remove(buffer).buffer


def process_image_bytes(data: bytes, thresholds: Optional[Thresholds] = None) -> bytes:
    """Decode, remove a stamp from, and PNG-encode one image."""
    return WatermarkRemover(thresholds).process_bytes(data)


async def process_image_bytes_async(data: bytes, thresholds: Optional[Thresholds] = None) -> bytes:
    """Async variant of process_image_bytes."""
    return await WatermarkRemover(thresholds).process_bytes_async(data)
