"""
Exceptions raised by the image processor.

Every error is reported to the immediate caller; nothing in the core
retries or swallows them.
"""


class ImageProcessorError(Exception):
    """Base class for all image processor failures."""


class InvalidName(ImageProcessorError, ValueError):
    """An image name is empty or contains a space."""


class NotFound(ImageProcessorError, LookupError):
    """No image is bound to the requested name."""


class NameCollision(ImageProcessorError, ValueError):
    """The destination name is the same as the source name."""


class UnsupportedFormat(ImageProcessorError, ValueError):
    """The file extension is not one of the supported formats."""


class DecodeError(ImageProcessorError, ValueError):
    """Image bytes could not be decoded."""


class InvalidKernel(ImageProcessorError, ValueError):
    """A convolution kernel is even-sized or larger than the image."""


class WriteError(ImageProcessorError, OSError):
    """The output sink failed while an image was being written."""
