"""Bottom-right region of interest selection."""

import logging
import math

from .surface import Rect

logger = logging.getLogger(__name__)


def select_roi(width: int, height: int, roi_fraction: float, padding_fraction: float) -> Rect:
    """
    Compute the bottom-right rectangle scanned for a stamp.

    The square side is a fraction of the shorter image side, grown by a
    padding fraction of itself and clamped to the image. Small images
    degenerate toward the whole image, never beyond it.
    """
    roi_size = math.floor(min(width, height) * roi_fraction)
    padding = math.floor(roi_size * padding_fraction)

    x = max(0, width - roi_size - padding)
    y = max(0, height - roi_size - padding)
    roi = Rect(
        x=x,
        y=y,
        width=min(roi_size + padding, width - x),
        height=min(roi_size + padding, height - y),
    )
    logger.debug(f"ROI for {width}x{height}: {roi}")
    return roi
