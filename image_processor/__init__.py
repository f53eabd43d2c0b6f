"""
PPM Image Processor: named image store, color transforms, convolution
filters and an ASCII raster codec.
"""
from .errors import (
    ImageProcessorError,
    InvalidName,
    NotFound,
    NameCollision,
    UnsupportedFormat,
    DecodeError,
    InvalidKernel,
    WriteError,
)
from .models.color_matrix import ColorMatrix
from .models.kernel import Kernel, Channel
from .models.pixel_buffer import PixelBuffer
from .repositories.image_repository import ImageRepository
from .services.image_service import ImageService

__all__ = [
    "ImageProcessorError",
    "InvalidName",
    "NotFound",
    "NameCollision",
    "UnsupportedFormat",
    "DecodeError",
    "InvalidKernel",
    "WriteError",
    "ColorMatrix",
    "Kernel",
    "Channel",
    "PixelBuffer",
    "ImageRepository",
    "ImageService",
]
