"""
Shared fixtures: small hand-built images written as plain PPM files.
"""
from pathlib import Path

import numpy as np
import pytest

from image_processor.repositories.image_repository import ImageRepository
from image_processor.repositories.raster_codec import RasterCodec, extension_policy
from image_processor.services.color_transform_service import ColorTransformService
from image_processor.services.image_service import ImageService


def ppm_text(pixels) -> str:
    """Render an (H, W, 3) array as P3 text, one pixel per line."""
    pixels = np.asarray(pixels)
    height, width = pixels.shape[:2]
    lines = ["P3", f"{width} {height}", "255"]
    for row in pixels:
        for r, g, b in row:
            lines.append(f"{r} {g} {b}")
    return "\n".join(lines) + "\n"


@pytest.fixture
def write_ppm(tmp_path):
    """Factory: write pixels to ``tmp_path/<stem>.ppm`` and return the path."""
    def _write(pixels, stem: str = "image") -> Path:
        path = tmp_path / f"{stem}.ppm"
        path.write_text(ppm_text(pixels))
        return path
    return _write


@pytest.fixture
def rgbw_pixels() -> np.ndarray:
    """2x2 image: red, green / blue, white."""
    return np.array([
        [[255, 0, 0], [0, 255, 0]],
        [[0, 0, 255], [255, 255, 255]],
    ], dtype=np.int32)


@pytest.fixture
def random_pixels() -> np.ndarray:
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, size=(7, 9, 3), dtype=np.int32)


@pytest.fixture
def service() -> ImageService:
    """Service with explicit settings so a local .env cannot change results."""
    repository = ImageRepository(codec=RasterCodec(encoder_policy=extension_policy, jpeg_quality=95))
    return ImageService(
        image_repository=repository,
        color_service=ColorTransformService(negative_fill=255),
    )


@pytest.fixture
def loaded(service, write_ppm, random_pixels) -> ImageService:
    """Service with ``random_pixels`` bound to the name "img"."""
    service.load(write_ppm(random_pixels), "img")
    return service
