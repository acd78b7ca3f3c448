"""
Channel normalization and image serialization.

Rectified images are normalized to RGBA, JPEG-encoded and wrapped in a
self-describing data URL for transport.
"""

import base64
import io
import logging
from typing import Optional

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


def normalize_channels(image: np.ndarray) -> np.ndarray:
    """
    Convert a 1, 3 or 4 channel image to RGBA.

    Grayscale is replicated across RGB, RGB gets an opaque alpha channel,
    RGBA is returned unchanged.

    Raises:
        ValueError: If the channel layout is not supported.
    """
    if image.ndim == 2 or (image.ndim == 3 and image.shape[2] == 1):
        gray = image.reshape(image.shape[0], image.shape[1])
        alpha = np.full_like(gray, 255)
        return np.dstack([gray, gray, gray, alpha])
    if image.ndim == 3 and image.shape[2] == 3:
        alpha = np.full(image.shape[:2], 255, dtype=image.dtype)
        return np.dstack([image, alpha])
    if image.ndim == 3 and image.shape[2] == 4:
        return image
    raise ValueError(f"Unsupported channel layout: shape {image.shape}")


def encode_jpeg(image: np.ndarray, quality: int = 80) -> bytes:
    """
    JPEG-encode an image; alpha is dropped since JPEG has no alpha channel.

    Args:
        image: uint8 array, (H, W) or (H, W, C) with C in {1, 3, 4}.
        quality: JPEG quality (1-100).
    """
    rgba = normalize_channels(np.ascontiguousarray(image, dtype=np.uint8))
    pil_image = Image.fromarray(rgba).convert("RGB")

    buffer = io.BytesIO()
    pil_image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def to_data_url(data: bytes, mime_type: str = "image/jpeg") -> str:
    """Wrap encoded bytes in a base64 data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def encode_image_data_url(image: np.ndarray, quality: Optional[int] = None) -> str:
    """Normalize, JPEG-encode and wrap an image as a data URL."""
    encoded = encode_jpeg(image, quality if quality is not None else 80)
    logger.debug(f"Encoded {image.shape[1]}x{image.shape[0]} image ({len(encoded)} bytes)")
    return to_data_url(encoded)


def decode_data_url(data_url: str) -> bytes:
    """
    Extract the raw bytes from a base64 data URL.

    Raises:
        ValueError: If the string is not a base64 data URL.
    """
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URL")
    return base64.b64decode(payload)
