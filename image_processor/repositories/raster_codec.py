from __future__ import annotations
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict, Tuple, Union
import logging
import os
import re

import cv2
import numpy as np
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..errors import DecodeError, UnsupportedFormat
from ..models.pixel_buffer import PixelBuffer, PIXEL_DTYPE

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

PPM_EXT = ".ppm"
SUPPORTED_FORMATS: Tuple[str, ...] = (".ppm", ".jpg", ".jpeg", ".png", ".bmp")
BINARY_FORMATS = {".jpg": "JPEG", ".jpeg": "JPEG", ".png": "PNG", ".bmp": "BMP"}

_INT_TOKEN = re.compile(r"[+-]?[0-9]+")
# Only real line terminators; str.splitlines would also break on latin-1 control bytes.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

# Maps a requested extension to the Pillow format name used to encode it.
EncoderPolicy = Callable[[str], str]


def extension_policy(extension: str) -> str:
    """Encode in the format the extension names."""
    return BINARY_FORMATS[extension]


def fixed_policy(fmt: str) -> EncoderPolicy:
    """Always encode in one format, whatever extension was requested."""
    fmt = fmt.upper()

    def _policy(extension: str) -> str:
        return fmt

    return _policy


def get_extension(path: Union[str, Path]) -> str:
    """
    Return the textual extension of ``path`` (leading dot included).

    Dispatch is purely textual and case-sensitive; file contents are never sniffed.
    """
    path = str(path)
    if len(path) < 2 or not path[-1].isalpha():
        raise UnsupportedFormat(f"not a file path: {path!r}")
    dot = path.rfind(".")
    if dot == -1:
        raise UnsupportedFormat(f"invalid file {path!r}: no extension")
    return path[dot:]


def check_supported(extension: str) -> None:
    if extension not in SUPPORTED_FORMATS:
        raise UnsupportedFormat(
            f"invalid file: {extension!r} extension is not supported. "
            f"Please use one of: {', '.join(SUPPORTED_FORMATS)}"
        )


# ─── ASCII (P3) ──────────────────────────────────────────────────────
def decode_ppm(data: Union[bytes, str]) -> np.ndarray:
    """
    Parse a plain (P3) PPM document into an (H, W, 3) pixel array.

    Lines starting with ``#`` are dropped before tokenising. A ``P6`` line
    (raw binary PPM) is rejected outright.
    """
    if isinstance(data, bytes):
        # latin-1 maps every byte, so comments and raw (P6) payloads still
        # reach the line checks below; stray bytes fail as integer tokens.
        data = data.decode("latin-1")

    kept = []
    for line in _LINE_BREAK.split(data):
        if line == "P6":
            raise DecodeError("raw formatting unsupported")
        if line.startswith("#"):
            continue
        kept.append(line)
    tokens = " ".join(kept).split()

    if not tokens:
        raise DecodeError("empty PPM data")
    if tokens[0] != "P3":
        raise DecodeError(f"plain ASCII PPM must begin with P3, got {tokens[0]!r}")

    header = tokens[1:4]
    if len(header) < 3:
        raise DecodeError("truncated PPM header: expected width, height and max value")
    width, height, _max_value = (_parse_int(tok) for tok in header)
    if width < 1 or height < 1:
        raise DecodeError(f"invalid PPM dimensions {width}x{height}")

    expected = width * height * 3
    body = tokens[4:4 + expected]
    if len(body) < expected:
        raise DecodeError(f"expected {expected} channel values, found {len(body)}")

    values = np.array([_parse_int(tok) for tok in body], dtype=PIXEL_DTYPE)
    return values.reshape(height, width, 3)


def _parse_int(token: str) -> int:
    if not _INT_TOKEN.fullmatch(token):
        raise DecodeError(f"expected an integer in PPM data, got {token!r}")
    return int(token)


def encode_ppm(pixels: np.ndarray) -> bytes:
    """
    Serialise pixels as P3: header lines, then one channel value per line
    (R, G, B for each pixel, row-major).
    """
    height, width = pixels.shape[:2]
    max_value = max(255, int(pixels.max()))
    lines = ["P3", f"{width} {height}", str(max_value)]
    lines.extend(str(v) for v in pixels.ravel().tolist())
    return ("\n".join(lines) + "\n").encode("ascii")


# ─── Binary (delegated) ──────────────────────────────────────────────
def decode_binary(data: bytes) -> np.ndarray:
    if not data:
        raise DecodeError("empty image data")
    try:
        arr_bgr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    except cv2.error as err:
        raise DecodeError("image bytes could not be decoded") from err
    if arr_bgr is None:
        raise DecodeError("image bytes could not be decoded")
    return np.ascontiguousarray(arr_bgr[:, :, ::-1]).astype(PIXEL_DTYPE)


def encode_binary(pixels: np.ndarray, fmt: str, jpeg_quality: int = 95) -> bytes:
    np_img = np.clip(pixels, 0, 255).astype(np.uint8)
    pil_obj = PILImage.fromarray(np.ascontiguousarray(np_img))
    buffer = BytesIO()
    params: Dict[str, int] = {}
    if fmt == "JPEG":
        params["quality"] = jpeg_quality
    pil_obj.save(buffer, format=fmt, **params)
    return buffer.getvalue()


class RasterCodec:
    """
    Reads and writes PixelBuffers.

    * ``.ppm`` is handled here (plain ASCII P3).
    * Binary formats are decoded with OpenCV and encoded with Pillow; the
      Pillow format is chosen by an encoder policy (extension-driven by default).
    """

    def __init__(self, encoder_policy: EncoderPolicy | None = None, jpeg_quality: int | None = None):
        if encoder_policy is None:
            policy_name = os.getenv("BINARY_ENCODE_POLICY", "extension").lower()
            if policy_name == "fixed":
                encoder_policy = fixed_policy(os.getenv("BINARY_FIXED_FORMAT", "GIF"))
            elif policy_name == "extension":
                encoder_policy = extension_policy
            else:
                raise ValueError(f"unknown BINARY_ENCODE_POLICY: {policy_name!r}")
        self.encoder_policy = encoder_policy
        self.jpeg_quality = jpeg_quality or int(os.getenv("JPEG_QUALITY", "95"))

    @staticmethod
    def supported_formats() -> Tuple[str, ...]:
        return SUPPORTED_FORMATS

    def read(self, path: Union[str, Path]) -> PixelBuffer:
        path = Path(path)
        extension = get_extension(path)
        check_supported(extension)
        try:
            data = path.read_bytes()
        except OSError as err:
            raise DecodeError(f"could not read from: {path}") from err

        if extension == PPM_EXT:
            pixels = decode_ppm(data)
        else:
            pixels = decode_binary(data)
        logger.debug("Decoded %s (%dx%d)", path, pixels.shape[1], pixels.shape[0])
        return PixelBuffer(pixels=pixels, path=path)

    def encode(self, buffer: PixelBuffer, extension: str) -> bytes:
        check_supported(extension)
        if extension == PPM_EXT:
            return encode_ppm(buffer.pixels)
        fmt = self.encoder_policy(extension)
        logger.debug("Encoding %s request as %s", extension, fmt)
        return encode_binary(buffer.pixels, fmt, self.jpeg_quality)
