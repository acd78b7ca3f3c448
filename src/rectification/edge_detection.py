"""
Edge detection for page boundary extraction.

Grayscale conversion, Gaussian smoothing and Canny edge detection.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from src.rectification.config_loader import EdgeConfig
from src.rectification.types import EdgeStages

logger = logging.getLogger(__name__)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convert an RGB or RGBA image to single-channel luma.

    Args:
        image: Array of shape (H, W), (H, W, 3) or (H, W, 4).

    Returns:
        uint8 array of shape (H, W).

    Raises:
        ValueError: If the channel layout is not supported.
    """
    if image.ndim == 2:
        return image
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    raise ValueError(f"Unsupported image shape for grayscale: {image.shape}")


def smooth(gray: np.ndarray, kernel_size: int = 5) -> np.ndarray:
    """Gaussian blur with a square kernel; sigma is derived from the kernel size."""
    return cv2.GaussianBlur(
        gray, (kernel_size, kernel_size), 0, 0, borderType=cv2.BORDER_DEFAULT
    )


def detect_edges(
    blurred: np.ndarray, low: float = 50.0, high: float = 150.0
) -> np.ndarray:
    """Binary (0/255) Canny edge map."""
    return cv2.Canny(blurred, low, high)


def run_edge_detection(
    image: np.ndarray, config: Optional[EdgeConfig] = None
) -> EdgeStages:
    """
    Run grayscale -> blur -> Canny on an image.

    Args:
        image: RGB or RGBA input image.
        config: Edge detection parameters (defaults if None).

    Returns:
        EdgeStages with the grayscale, blurred and edge images.
    """
    config = config or EdgeConfig()

    gray = to_grayscale(image)
    blurred = smooth(gray, config.blur_kernel_size)
    edges = detect_edges(blurred, config.canny_low, config.canny_high)

    logger.debug(
        f"Edge map: {int(np.count_nonzero(edges))} edge pixels "
        f"(thresholds {config.canny_low}/{config.canny_high})"
    )
    return EdgeStages(gray=gray, blurred=blurred, edges=edges)
