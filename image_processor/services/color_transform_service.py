from __future__ import annotations
import logging
import os

import numpy as np
from dotenv import load_dotenv

from ..models.color_matrix import ColorMatrix
from ..models.pixel_buffer import PIXEL_DTYPE

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

CHANNEL_MAX = 255
STEP_LIMIT = 2 ** 32


class ColorTransformService:
    """
    Per-pixel color operations on (H, W, 3) integer arrays.
    *   No I/O and no naming here: every method reads ``src`` and returns a
        brand-new array.
    *   The matrix path writes ``negative_fill`` for negative results
        (255 unless configured otherwise); the direct ops clamp to [0, 255].
    """

    def __init__(self, negative_fill: int | None = None):
        if negative_fill is None:
            negative_fill = int(os.getenv("COLOR_MATRIX_NEGATIVE_FILL", str(CHANNEL_MAX)))
        if not 0 <= negative_fill <= CHANNEL_MAX:
            raise ValueError(f"negative fill must be within [0, {CHANNEL_MAX}], got {negative_fill}")
        self.negative_fill = negative_fill
        logger.debug("ColorTransformService negative fill: %d", negative_fill)

    # ─── Linear (matrix) path ─────────────────────────────────────
    def apply_color_matrix(self, matrix: ColorMatrix, src: np.ndarray) -> np.ndarray:
        """
        new[c] = reduce_clamp(m[c][0]*R + m[c][1]*G + m[c][2]*B)

        The weighted sum is truncated toward zero; results above 255 become
        255 and results below 0 become ``negative_fill``.
        """
        rgb = src.astype(np.float64)
        r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
        out = np.empty(src.shape, dtype=PIXEL_DTYPE)
        for c, (wr, wg, wb) in enumerate(matrix.rows):
            total = np.trunc(wr * r + wg * g + wb * b)
            total = np.where(total > CHANNEL_MAX, CHANNEL_MAX, total)
            total = np.where(total < 0, self.negative_fill, total)
            out[..., c] = total.astype(PIXEL_DTYPE)
        return out

    # ─── Direct per-pixel ops ────────────────────────────────────
    @staticmethod
    def max_value(src: np.ndarray) -> np.ndarray:
        """Each channel becomes max(R, G, B) of the source pixel."""
        peak = np.clip(src.max(axis=2), 0, CHANNEL_MAX)
        return np.repeat(peak[..., np.newaxis], 3, axis=2).astype(PIXEL_DTYPE)

    @staticmethod
    def intensity(src: np.ndarray) -> np.ndarray:
        """Each channel becomes floor((R + G + B) / 3)."""
        average = np.clip(src.astype(np.int64).sum(axis=2) // 3, 0, CHANNEL_MAX)
        return np.repeat(average[..., np.newaxis], 3, axis=2).astype(PIXEL_DTYPE)

    @staticmethod
    def brightness(src: np.ndarray, increment: int) -> np.ndarray:
        """Add ``increment`` to every channel, clamped to [0, 255]."""
        # Stored values fit in int32, so any step past 2**32 saturates the
        # same way and keeps the int64 sum from overflowing.
        step = max(-STEP_LIMIT, min(STEP_LIMIT, int(increment)))
        shifted = src.astype(np.int64) + step
        return np.clip(shifted, 0, CHANNEL_MAX).astype(PIXEL_DTYPE)
