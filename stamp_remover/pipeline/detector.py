"""
Stamp Detector

Finds a near-white, opaque stamp in the bottom-right corner of an image:
1. Select the region of interest
2. Threshold pixels against white and alpha floors
3. Dilate the mask to cover anti-aliased edges
4. Gate on masked pixel count and area ratio
"""

import logging
from dataclasses import dataclass

import cv2
import numpy as np

from ..config import Thresholds
from .region import select_roi
from .surface import PixelBuffer, Rect

logger = logging.getLogger(__name__)

# 8-connected structuring element
NEIGHBORHOOD_KERNEL = np.ones((3, 3), dtype=np.uint8)


@dataclass
class DetectionResult:
    """Result of stamp detection."""
    mask: np.ndarray  # Boolean, shape (roi.height, roi.width)
    masked_pixel_count: int
    roi: Rect
    detected: bool

    @property
    def mask_coverage(self) -> float:
        """Fraction of the ROI covered by the mask."""
        if self.roi.area == 0:
            return 0.0
        return self.masked_pixel_count / self.roi.area


def build_white_mask(roi_pixels: np.ndarray, white_floor: int, alpha_floor: int) -> np.ndarray:
    """
    Mark pixels whose R, G and B all exceed white_floor and whose alpha
    exceeds alpha_floor. Both floors are exclusive.
    """
    rgb = roi_pixels[..., :3]
    alpha = roi_pixels[..., 3]
    return np.all(rgb > white_floor, axis=-1) & (alpha > alpha_floor)


def dilate_mask(mask: np.ndarray, iterations: int) -> tuple[np.ndarray, int]:
    """
    Grow the mask by one 8-connected ring per iteration.

    Each generation is computed from the previous one as a whole, so the
    spread per iteration is exactly one pixel regardless of scan order.
    Pixels outside the mask's bounds never contribute.

    Returns:
        Tuple of (dilated_mask, masked_pixel_count)
    """
    count = int(np.count_nonzero(mask))
    if mask.size == 0:
        return mask.copy(), count

    current = mask.astype(np.uint8)
    for i in range(iterations):
        current = cv2.dilate(current, NEIGHBORHOOD_KERNEL, iterations=1)
        grown = int(np.count_nonzero(current))
        logger.debug(f"Dilation {i + 1}/{iterations}: {count} -> {grown} pixels")
        count = grown

    return current.astype(bool), count


def passes_gate(masked_pixel_count: int, ratio: float, thresholds: Thresholds) -> bool:
    """
    Accept a candidate mask only if it is neither noise nor background.

    Too few pixels means speckle; too large a share of the ROI means a
    plain white area rather than a stamp.
    """
    return masked_pixel_count > thresholds.min_masked_pixels and ratio < thresholds.max_area_ratio


class WatermarkDetector:
    """Detects a bottom-right near-white stamp using colour thresholds."""

    def __init__(self, thresholds: Thresholds):
        self.thresholds = thresholds

    def region_for(self, buffer: PixelBuffer) -> Rect:
        return select_roi(
            buffer.width,
            buffer.height,
            self.thresholds.roi_fraction,
            self.thresholds.roi_padding_fraction,
        )

    def detect_in_region(self, roi_pixels: np.ndarray, roi: Rect) -> DetectionResult:
        """
        Build, dilate and gate the mask for already-extracted ROI pixels.

        Args:
            roi_pixels: RGBA pixels of shape (roi.height, roi.width, 4)
            roi: Where the pixels came from

        Returns:
            DetectionResult; mask dimensions always equal the ROI's
        """
        t = self.thresholds
        mask = build_white_mask(roi_pixels, t.white_floor, t.alpha_floor)
        logger.debug(f"Initial mask: {int(np.count_nonzero(mask))} pixels")

        mask, count = dilate_mask(mask, t.dilation_iterations)

        if roi.area == 0:
            detected = False
            ratio = 0.0
        else:
            ratio = count / roi.area
            detected = passes_gate(count, ratio, t)

        if detected:
            logger.info(f"Stamp detected: {count} pixels, coverage {ratio:.1%} of {roi.width}x{roi.height} ROI")
        else:
            logger.info(f"No stamp detected ({count} pixels, coverage {ratio:.1%})")

        return DetectionResult(mask=mask, masked_pixel_count=count, roi=roi, detected=detected)

    def detect(self, buffer: PixelBuffer) -> DetectionResult:
        """Run detection on a full buffer."""
        roi = self.region_for(buffer)
        return self.detect_in_region(buffer.read(roi), roi)
