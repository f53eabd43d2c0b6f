from __future__ import annotations
from enum import IntEnum
from typing import Sequence
import numpy as np

from ..errors import InvalidKernel


class Channel(IntEnum):
    RED = 0
    GREEN = 1
    BLUE = 2


class Kernel:
    """
    Immutable convolution kernel with odd height and width.

    The odd shape guarantees a unique center cell (the origin), located at
    (y_offset, x_offset) = ((height - 1) / 2, (width - 1) / 2).
    """

    def __init__(self, values: Sequence[Sequence[float]]):
        rows = [list(row) for row in values]
        if not rows or not rows[0]:
            raise InvalidKernel("kernel must be at least 1x1")
        if any(len(row) != len(rows[0]) for row in rows):
            raise InvalidKernel("kernel rows must all have the same width")
        arr = np.array(rows, dtype=np.float64)
        if arr.shape[0] % 2 == 0 or arr.shape[1] % 2 == 0:
            raise InvalidKernel(f"kernel must have odd width and height, got {arr.shape[0]}x{arr.shape[1]}")
        arr.setflags(write=False)
        self._values = arr

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def height(self) -> int:
        return self._values.shape[0]

    @property
    def width(self) -> int:
        return self._values.shape[1]

    @property
    def y_offset(self) -> int:
        return (self.height - 1) // 2

    @property
    def x_offset(self) -> int:
        return (self.width - 1) // 2

    def value_at(self, row: int, col: int) -> float:
        if not (0 <= row < self.height and 0 <= col < self.width):
            raise IndexError(f"kernel cell ({row}, {col}) out of bounds")
        return float(self._values[row, col])

    def __repr__(self):
        return f"Kernel({self._values.tolist()!r})"


GAUSSIAN_BLUR = Kernel([
    [0.0625, 0.125, 0.0625],
    [0.125, 0.25, 0.125],
    [0.0625, 0.125, 0.0625],
])

SHARPEN = Kernel([
    [-0.125, -0.125, -0.125, -0.125, -0.125],
    [-0.125, 0.25, 0.25, 0.25, -0.125],
    [-0.125, 0.25, 1.0, 0.25, -0.125],
    [-0.125, 0.25, 0.25, 0.25, -0.125],
    [-0.125, -0.125, -0.125, -0.125, -0.125],
])
