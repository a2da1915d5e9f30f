"""
Diffusion Inpainter

Fills masked pixels with the mean colour of their unmasked 8-neighbours,
working inward from the mask boundary one ring per pass.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

NEIGHBOR_OFFSETS = [
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1),
]


@dataclass
class InpaintResult:
    """Outcome of a diffusion fill."""
    passes: int
    filled_pixels: int
    residual_pixels: int  # Masked pixels left when the fill stopped


def _neighbor_sums(pixels: np.ndarray, known: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Per-pixel channel sums and counts over unmasked in-bounds neighbours."""
    h, w = known.shape
    values = np.pad(pixels.astype(np.int64) * known[..., None], ((1, 1), (1, 1), (0, 0)))
    padded_known = np.pad(known, 1).astype(np.int64)

    sums = np.zeros((h, w, pixels.shape[2]), dtype=np.int64)
    counts = np.zeros((h, w), dtype=np.int64)
    for dy, dx in NEIGHBOR_OFFSETS:
        sums += values[1 + dy:1 + dy + h, 1 + dx:1 + dx + w]
        counts += padded_known[1 + dy:1 + dy + h, 1 + dx:1 + dx + w]
    return sums, counts


def inpaint_region(pixels: np.ndarray, mask: np.ndarray, max_passes: Optional[int] = None) -> InpaintResult:
    """
    Replace masked pixels in place with values diffused from their surroundings.

    Every pass computes all fills from the mask as it stood at the start of
    the pass, then applies them together, so traversal order never matters.
    The fill stops when nothing is masked, when no masked pixel touches an
    unmasked one, or after max_passes (default: width + height).

    Args:
        pixels: RGBA pixels of shape (H, W, 4), modified in place
        mask: Boolean mask of shape (H, W); not modified

    Returns:
        InpaintResult with pass and pixel counts
    """
    h, w = mask.shape
    if max_passes is None:
        max_passes = w + h

    remaining = mask.copy()
    initial = int(np.count_nonzero(remaining))
    if initial == 0:
        return InpaintResult(passes=0, filled_pixels=0, residual_pixels=0)

    passes = 0
    left = initial
    while passes < max_passes and left > 0:
        sums, counts = _neighbor_sums(pixels, ~remaining)
        candidates = remaining & (counts > 0)
        filled = int(np.count_nonzero(candidates))
        if filled == 0:
            logger.warning(f"Inpainting stalled with {left} isolated pixels")
            break

        n = counts[candidates][:, None]
        # Integer round-half-up of sum / n
        pixels[candidates] = ((2 * sums[candidates] + n) // (2 * n)).astype(np.uint8)
        remaining[candidates] = False
        left -= filled
        passes += 1

    if left > 0:
        logger.warning(f"Inpainting left {left} of {initial} pixels after {passes} passes")
    else:
        logger.debug(f"Inpainted {initial} pixels in {passes} passes")

    return InpaintResult(passes=passes, filled_pixels=initial - left, residual_pixels=left)
