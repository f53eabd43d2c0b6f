from __future__ import annotations
from pathlib import Path
from typing import BinaryIO, Callable, Tuple, Union
import logging

import numpy as np
from PIL import Image as PILImage

from ..errors import NotFound, WriteError
from ..models import color_matrix
from ..models.color_matrix import ColorMatrix
from ..models.kernel import Channel, Kernel
from ..repositories.image_repository import ImageRepository
from ..repositories.raster_codec import check_supported, get_extension
from .color_transform_service import ColorTransformService
from .filter_service import FilterService
from .geometry_service import GeometryService

logger = logging.getLogger(__name__)


class ImageService:
    """
    Business-level operations on named images.

    Every transform takes a source name and a destination name: the store
    validates both, the relevant service computes a new array from the
    source, and the result is bound to the destination. The source image
    is never modified.
    """

    def __init__(
        self,
        image_repository: ImageRepository | None = None,
        color_service: ColorTransformService | None = None,
        filter_service: FilterService | None = None,
    ):
        self.image_repository = image_repository or ImageRepository()
        self.color_service = color_service or ColorTransformService()
        self.filter_service = filter_service or FilterService()
        self.geometry_service = GeometryService()

    # ─── Store access ─────────────────────────────────────────────
    def load(self, path: Union[str, Path], name: str) -> None:
        """Load an image file from disk and bind it to ``name``."""
        self.image_repository.load(path, name)

    def has_image(self, name: str) -> bool:
        return self.image_repository.has_image(name)

    def supported_formats(self) -> Tuple[str, ...]:
        return self.image_repository.supported_formats()

    def save(self, sink: BinaryIO, name: str, extension: str) -> None:
        """Encode image ``name`` as ``extension`` and write it to ``sink``."""
        self.image_repository.save(sink, name, extension)

    def save_file(self, path: Union[str, Path], name: str) -> None:
        """Save image ``name`` to ``path``, picking the format from its extension."""
        if not self.image_repository.has_image(name):
            raise NotFound(f'cannot find image named: "{name}"')
        extension = get_extension(path)
        check_supported(extension)
        data = self.image_repository.encode(name, extension)
        try:
            Path(path).write_bytes(data)
        except OSError as err:
            raise WriteError(f"could not write to: {path}") from err
        logger.info("Saved %r to %s", name, path)

    def encode(self, name: str, extension: str) -> bytes:
        return self.image_repository.encode(name, extension)

    def get_pixels(self, name: str) -> np.ndarray:
        """Copy of the (H, W, 3) pixel array bound to ``name``."""
        return self.image_repository.copy_pixels(name)

    def to_pil_image(self, name: str) -> PILImage.Image:
        """
        Convert a stored image to a PIL Image for display.
        Channel values are clipped to [0, 255].
        """
        np_img = np.clip(self.image_repository.retrieve_pixels(name), 0, 255).astype(np.uint8)
        return PILImage.fromarray(np.ascontiguousarray(np_img))

    # ─── Internal helpers ─────────────────────────────────────────
    def _derive(self, name: str, dest_name: str, transform: Callable[[np.ndarray], np.ndarray]) -> None:
        with self.image_repository.deriving(name, dest_name) as new_pixels:
            new_pixels[...] = transform(self.image_repository.retrieve_pixels(name))

    def _filter(self, name: str, dest_name: str, transform: Callable[[np.ndarray], np.ndarray]) -> None:
        self.image_repository.check_filter_names(name, dest_name)
        result = transform(self.image_repository.retrieve_pixels(name))
        self.image_repository.put(dest_name, result)

    # ─── Color transforms ─────────────────────────────────────────
    def color_transformation(self, name: str, dest_name: str, matrix: ColorMatrix) -> None:
        self._derive(name, dest_name, lambda src: self.color_service.apply_color_matrix(matrix, src))

    def red_channel(self, name: str, dest_name: str) -> None:
        self.color_transformation(name, dest_name, color_matrix.RED_CHANNEL)

    def green_channel(self, name: str, dest_name: str) -> None:
        self.color_transformation(name, dest_name, color_matrix.GREEN_CHANNEL)

    def blue_channel(self, name: str, dest_name: str) -> None:
        self.color_transformation(name, dest_name, color_matrix.BLUE_CHANNEL)

    def luma(self, name: str, dest_name: str) -> None:
        self.color_transformation(name, dest_name, color_matrix.LUMA)

    def sepia(self, name: str, dest_name: str) -> None:
        self.color_transformation(name, dest_name, color_matrix.SEPIA)

    def custom_greyscale(self, name: str, dest_name: str, r: float, g: float, b: float) -> None:
        """Greyscale using caller-supplied (r, g, b) weights for every channel."""
        self.color_transformation(name, dest_name, ColorMatrix.from_weights(r, g, b))

    def max_value(self, name: str, dest_name: str) -> None:
        self._derive(name, dest_name, self.color_service.max_value)

    def intensity(self, name: str, dest_name: str) -> None:
        self._derive(name, dest_name, self.color_service.intensity)

    def brightness(self, name: str, dest_name: str, increment: int) -> None:
        self._derive(name, dest_name, lambda src: self.color_service.brightness(src, increment))

    # ─── Geometry ─────────────────────────────────────────────────
    def flip_horizontal(self, name: str, dest_name: str) -> None:
        self._derive(name, dest_name, self.geometry_service.flip_horizontal)

    def flip_vertical(self, name: str, dest_name: str) -> None:
        self._derive(name, dest_name, self.geometry_service.flip_vertical)

    # ─── Convolution filters ──────────────────────────────────────
    # These only check that the source exists and differs from the
    # destination; the destination name itself is not validated.
    def gaussian_blur(self, name: str, dest_name: str) -> None:
        self._filter(name, dest_name, self.filter_service.gaussian_blur)

    def sharpen(self, name: str, dest_name: str) -> None:
        self._filter(name, dest_name, self.filter_service.sharpen)

    def apply_kernel(self, name: str, dest_name: str, kernel: Kernel, channel: Channel) -> None:
        self._filter(name, dest_name, lambda src: self.filter_service.apply_kernel(kernel, channel, src))
