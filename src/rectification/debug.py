"""
Debug snapshots of intermediate pipeline stages.

Capture is best-effort: a failure while rendering or encoding a snapshot is
logged and never affects the pipeline outcome.
"""

import logging
from typing import Dict, Optional, Sequence

import cv2
import numpy as np

from src.rectification.encoder import encode_jpeg, to_data_url

logger = logging.getLogger(__name__)

CONTOUR_COLOR = (0, 255, 0, 255)
FALLBACK_COLOR = (255, 0, 0, 255)
QUAD_COLOR = (0, 0, 255, 255)


def resize_to_width(image: np.ndarray, max_width: int) -> np.ndarray:
    """Downscale to at most `max_width` wide, keeping aspect ratio; never enlarges."""
    height, width = image.shape[:2]
    if width <= max_width:
        return image
    new_height = max(1, int(round(height * max_width / width)))
    return cv2.resize(image, (max_width, new_height), interpolation=cv2.INTER_AREA)


def draw_contours_overlay(
    image: np.ndarray, contours: Sequence[np.ndarray]
) -> np.ndarray:
    vis = image.copy()
    cv2.drawContours(vis, list(contours), -1, CONTOUR_COLOR, 2)
    return vis


def draw_rectangle_overlay(image: np.ndarray, corners: np.ndarray) -> np.ndarray:
    """Axis-aligned rectangle from corner 0 to corner 2."""
    vis = image.copy()
    tl = tuple(int(v) for v in corners[0])
    br = tuple(int(v) for v in corners[2])
    cv2.rectangle(vis, tl, br, FALLBACK_COLOR, 3)
    return vis


def draw_quad_overlay(image: np.ndarray, corners: np.ndarray) -> np.ndarray:
    vis = image.copy()
    pts = np.round(corners).astype(np.int32).reshape(-1, 1, 2)
    cv2.polylines(vis, [pts], True, QUAD_COLOR, 2)
    return vis


class DebugRecorder:
    """
    Collects named, downscaled JPEG snapshots for one pipeline run.

    When disabled every method is a no-op and `images` is None.

    Example:
        >>> recorder = DebugRecorder(enabled=True)
        >>> recorder.capture("gray", gray)
        >>> recorder.images["gray"][:23]
        'data:image/jpeg;base64,'
    """

    def __init__(self, enabled: bool, max_width: int = 800, jpeg_quality: int = 60):
        self.enabled = enabled
        self.max_width = max_width
        self.jpeg_quality = jpeg_quality
        self._images: Dict[str, str] = {}

    @property
    def images(self) -> Optional[Dict[str, str]]:
        if not self.enabled:
            return None
        return dict(self._images)

    def capture(self, name: str, image: np.ndarray) -> None:
        """Store a snapshot under `name`; errors are logged, not raised."""
        if not self.enabled:
            return
        try:
            small = resize_to_width(image, self.max_width)
            self._images[name] = to_data_url(encode_jpeg(small, self.jpeg_quality))
        except Exception as e:
            logger.warning(f"Debug capture '{name}' failed: {e}")

    def capture_contours(self, image: np.ndarray, contours: Sequence[np.ndarray]) -> None:
        if not self.enabled:
            return
        try:
            self.capture("all_contours", draw_contours_overlay(image, contours))
        except Exception as e:
            logger.warning(f"Debug contour overlay failed: {e}")

    def capture_fallback(self, image: np.ndarray, corners: np.ndarray) -> None:
        if not self.enabled:
            return
        try:
            self.capture("fallback_full_image", draw_rectangle_overlay(image, corners))
        except Exception as e:
            logger.warning(f"Debug fallback overlay failed: {e}")

    def capture_quad(self, image: np.ndarray, corners: np.ndarray) -> None:
        if not self.enabled:
            return
        try:
            self.capture("quadrilateral", draw_quad_overlay(image, corners))
        except Exception as e:
            logger.warning(f"Debug quadrilateral overlay failed: {e}")
