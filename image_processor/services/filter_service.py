from __future__ import annotations
import logging

import numpy as np

from ..errors import InvalidKernel
from ..models.kernel import Channel, Kernel, GAUSSIAN_BLUR, SHARPEN
from ..models.pixel_buffer import PIXEL_DTYPE

logger = logging.getLogger(__name__)


class FilterService:
    """
    Edge-cropped convolution on (H, W, 3) integer arrays.

    Kernel cells that would map outside the image are skipped, not
    zero-padded, and the remaining weights are not renormalised.
    """

    @staticmethod
    def _overlap(offset: int, size: int) -> tuple:
        """
        Destination and source slices along one axis for a kernel cell at
        ``offset`` from the origin, restricted to in-bounds coordinates.
        """
        dst = slice(max(0, -offset), min(size, size - offset))
        src = slice(max(0, offset), min(size, size + offset))
        return dst, src

    def apply_kernel(self, kernel: Kernel, channel: Channel, src: np.ndarray) -> np.ndarray:
        """
        Convolve one channel of ``src`` with ``kernel``.

        Args:
            kernel: odd-sized kernel no larger than the image.
            channel: channel to filter; the other two are copied unchanged.
            src: (H, W, 3) pixel array (not modified).

        Returns:
            (np.ndarray): a new pixel array.
        """
        height, width = src.shape[:2]
        if kernel.height > height or kernel.width > width:
            raise InvalidKernel(
                f"kernel ({kernel.height}x{kernel.width}) must not be larger "
                f"than the image ({height}x{width})"
            )

        plane = src[..., int(channel)].astype(np.float64)
        acc = np.zeros((height, width), dtype=np.float64)
        # Row-major kernel order so every pixel accumulates in the same sequence.
        for ky in range(kernel.height):
            rows_dst, rows_src = self._overlap(ky - kernel.y_offset, height)
            for kx in range(kernel.width):
                cols_dst, cols_src = self._overlap(kx - kernel.x_offset, width)
                acc[rows_dst, cols_dst] += kernel.values[ky, kx] * plane[rows_src, cols_src]

        out = np.array(src, dtype=PIXEL_DTYPE, copy=True)
        out[..., int(channel)] = np.clip(np.trunc(acc), 0, 255).astype(PIXEL_DTYPE)
        return out

    def apply_per_channel(self, kernel: Kernel, src: np.ndarray) -> np.ndarray:
        """Filter red, then green of that result, then blue of the green result."""
        logger.debug("Applying %dx%d kernel channel by channel", kernel.height, kernel.width)
        red = self.apply_kernel(kernel, Channel.RED, src)
        green = self.apply_kernel(kernel, Channel.GREEN, red)
        return self.apply_kernel(kernel, Channel.BLUE, green)

    def gaussian_blur(self, src: np.ndarray) -> np.ndarray:
        return self.apply_per_channel(GAUSSIAN_BLUR, src)

    def sharpen(self, src: np.ndarray) -> np.ndarray:
        return self.apply_per_channel(SHARPEN, src)
