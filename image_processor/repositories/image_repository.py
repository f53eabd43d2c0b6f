from __future__ import annotations
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, Tuple, Union
import logging
import threading

import numpy as np

from ..errors import InvalidName, NameCollision, NotFound, WriteError
from ..models.pixel_buffer import PixelBuffer
from .raster_codec import RasterCodec

logger = logging.getLogger(__name__)


class ImageRepository:
    """
    Named image store: owns every PixelBuffer by name.

    Handles file I/O through the RasterCodec and enforces the naming rules
    used by every derived image. Stored pixel arrays are read-only; callers
    outside the services layer only ever see copies.
    """

    def __init__(self, codec: RasterCodec | None = None):
        self.codec = codec or RasterCodec()
        self._images: Dict[str, PixelBuffer] = {}
        self._lock = threading.RLock()

    # ---------- naming rules ----------
    @staticmethod
    def validate_name(name: str) -> None:
        if len(name) == 0 or " " in name:
            raise InvalidName("image name cannot be empty or contain spaces")

    def _require(self, name: str) -> PixelBuffer:
        try:
            return self._images[name]
        except KeyError:
            raise NotFound(f'cannot find image named: "{name}"') from None

    @staticmethod
    def _check_collision(name: str, dest_name: str) -> None:
        if dest_name == name:
            raise NameCollision(
                f'The name "{dest_name}" is already taken. Please choose a different name'
            )

    # ---------- public API ----------
    def has_image(self, name: str) -> bool:
        with self._lock:
            return name in self._images

    def supported_formats(self) -> Tuple[str, ...]:
        return self.codec.supported_formats()

    def load(self, path: Union[str, Path], name: str) -> PixelBuffer:
        self.validate_name(name)
        buffer = self.codec.read(path)
        buffer.freeze()
        with self._lock:
            self._images[name] = buffer
        logger.info("Loaded %s as %r (%dx%d)", path, name, buffer.width, buffer.height)
        return buffer

    def retrieve_pixels(self, name: str) -> np.ndarray:
        """Read-only view of a stored buffer, for the transform services."""
        with self._lock:
            return self._require(name).pixels

    def copy_pixels(self, name: str) -> np.ndarray:
        with self._lock:
            return self._require(name).copy_pixels()

    def derive_buffer(self, name: str, dest_name: str) -> np.ndarray:
        """
        Allocate a zeroed buffer the size of ``name`` and bind it to ``dest_name``.

        Raises:
            NotFound: ``name`` is unbound.
            InvalidName: ``dest_name`` is empty or contains a space.
            NameCollision: ``dest_name`` equals ``name``.

        Returns:
            The writable pixel array of the new buffer. Callers fill it and
            then call ``seal(dest_name)``.
        """
        with self._lock:
            source = self._require(name)
            self.validate_name(dest_name)
            self._check_collision(name, dest_name)
            derived = PixelBuffer.blank(source.height, source.width)
            self._images[dest_name] = derived
        logger.debug("Derived %r from %r", dest_name, name)
        return derived.pixels

    def seal(self, name: str) -> None:
        with self._lock:
            self._require(name).freeze()

    @contextmanager
    def deriving(self, name: str, dest_name: str) -> Iterator[np.ndarray]:
        """
        ``derive_buffer`` + ``seal`` as one step, holding the store lock.

        If the body raises, ``dest_name`` goes back to whatever it was bound
        to before (or is unbound) and the error propagates.
        """
        with self._lock:
            previous = self._images.get(dest_name)
            new_pixels = self.derive_buffer(name, dest_name)
            try:
                yield new_pixels
            except BaseException:
                if previous is None:
                    del self._images[dest_name]
                else:
                    self._images[dest_name] = previous
                raise
            self._images[dest_name].freeze()

    def check_filter_names(self, name: str, dest_name: str) -> None:
        """
        Name checks used by the convolution filters: only existence and
        collision. Empty or space-containing destinations are accepted here.
        """
        with self._lock:
            self._require(name)
            self._check_collision(name, dest_name)

    def put(self, name: str, pixels: np.ndarray) -> None:
        """Bind a freshly computed array to ``name`` (replacing any previous buffer)."""
        buffer = PixelBuffer(pixels=pixels)
        if buffer.pixels is pixels:
            buffer.pixels = pixels.copy()
        buffer.freeze()
        with self._lock:
            self._images[name] = buffer
        logger.debug("Stored %r (%dx%d)", name, buffer.width, buffer.height)

    def encode(self, name: str, extension: str) -> bytes:
        with self._lock:
            buffer = self._require(name)
        return self.codec.encode(buffer, extension)

    def save(self, sink: BinaryIO, name: str, extension: str) -> None:
        data = self.encode(name, extension)
        try:
            sink.write(data)
            sink.flush()
        except (OSError, ValueError) as err:
            raise WriteError("could not transmit image data to the output") from err
        logger.info("Saved %r as %s (%d bytes)", name, extension, len(data))
