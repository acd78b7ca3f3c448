"""
Image decoding with EXIF orientation applied.

Turns an opaque image buffer into an upright RGB or RGBA pixel matrix.
"""

import io
import logging

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from src.rectification.types import DecodeError

logger = logging.getLogger(__name__)

# Pillow modes that carry an alpha channel
_ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")


def _is_wide_grayscale(mode: str) -> bool:
    return mode == "I" or mode.startswith("I;16")


def _rescale_to_8bit(img: Image.Image) -> Image.Image:
    """
    Map a 16-bit or 32-bit integer grayscale image onto 0-255.

    Pillow's own conversion clips these modes instead of scaling them, so
    any sample above 255 would turn white. Samples are read as 16-bit
    values; the 32-bit mode is how Pillow exposes 16-bit PNGs and TIFFs.
    """
    wide = np.clip(np.asarray(img, dtype=np.int64), 0, 65535)
    return Image.fromarray((wide >> 8).astype(np.uint8))


def decode_image(buffer: bytes) -> np.ndarray:
    """
    Decode image bytes into an upright pixel matrix.

    Args:
        buffer: Raw bytes of any raster format Pillow can read.

    Returns:
        uint8 array of shape (H, W, 3) in RGB order, or (H, W, 4) in RGBA
        order when the source has transparency.

    Raises:
        DecodeError: If the buffer is empty or cannot be decoded.
    """
    if not buffer:
        raise DecodeError("Image buffer is empty")

    try:
        with Image.open(io.BytesIO(buffer)) as img:
            img.load()
            upright = ImageOps.exif_transpose(img)
            if _is_wide_grayscale(upright.mode):
                upright = _rescale_to_8bit(upright)
            has_alpha = upright.mode in _ALPHA_MODES or (
                "transparency" in upright.info
            )
            converted = upright.convert("RGBA" if has_alpha else "RGB")
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as e:
        raise DecodeError(f"Could not decode image: {e}") from e

    pixels = np.asarray(converted, dtype=np.uint8).copy()
    logger.debug(
        f"Decoded {converted.width}x{converted.height} image "
        f"with {pixels.shape[2]} channels"
    )
    return pixels
