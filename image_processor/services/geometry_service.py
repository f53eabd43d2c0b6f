import numpy as np


class GeometryService:
    """Mirror flips. Results never share memory with the source."""

    @staticmethod
    def flip_horizontal(src: np.ndarray) -> np.ndarray:
        return src[:, ::-1].copy()

    @staticmethod
    def flip_vertical(src: np.ndarray) -> np.ndarray:
        return src[::-1].copy()
