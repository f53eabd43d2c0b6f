from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class ColorMatrix:
    """
    Value-object holding a 3x3 linear RGB -> RGB transform.
    Row i gives the weights applied to (R, G, B) to produce channel i.
    """
    rows: tuple  # three rows of three coefficients

    def __post_init__(self):
        rows = tuple(tuple(float(v) for v in row) for row in self.rows)
        if len(rows) != 3 or any(len(row) != 3 for row in rows):
            raise ValueError("color matrix must be 3x3")
        object.__setattr__(self, "rows", rows)

    @classmethod
    def from_weights(cls, r: float, g: float, b: float) -> ColorMatrix:
        """Single weight triple replicated across all three output channels."""
        return cls(((r, g, b), (r, g, b), (r, g, b)))


RED_CHANNEL = ColorMatrix.from_weights(1, 0, 0)
GREEN_CHANNEL = ColorMatrix.from_weights(0, 1, 0)
BLUE_CHANNEL = ColorMatrix.from_weights(0, 0, 1)
LUMA = ColorMatrix.from_weights(0.2126, 0.7152, 0.0722)
SEPIA = ColorMatrix((
    (0.393, 0.769, 0.189),
    (0.349, 0.686, 0.168),
    (0.272, 0.534, 0.131),
))
