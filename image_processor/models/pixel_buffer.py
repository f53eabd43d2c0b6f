from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np

# Channel values may exceed 255 transiently (or when a PPM declares a larger
# max value), so buffers are kept in a signed type wider than uint8.
PIXEL_DTYPE = np.int32


@dataclass
class PixelBuffer:
    """
    Simple data object: RGB pixels (+ optional source path for bookkeeping).
    No codec or transform logic in this file.
    """
    pixels: np.ndarray  # Shape (H, W, 3), dtype int32, RGB order.
    path: Path | None = None  # Source of the image, if it was loaded.

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"pixel buffer must have shape (H, W, 3), got {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError("pixel buffer must be at least 1x1")
        if not np.issubdtype(pixels.dtype, np.integer):
            raise ValueError(f"pixel buffer must hold integers, got {pixels.dtype}")
        if pixels.dtype != PIXEL_DTYPE:
            pixels = pixels.astype(PIXEL_DTYPE)
        self.pixels = pixels

    @classmethod
    def blank(cls, height: int, width: int) -> PixelBuffer:
        return cls(np.zeros((height, width, 3), dtype=PIXEL_DTYPE))

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    def freeze(self) -> None:
        """Mark the pixel array read-only; buffers never change after creation."""
        self.pixels.setflags(write=False)

    def copy_pixels(self) -> np.ndarray:
        return self.pixels.copy()
