"""
Quadrilateral extraction with a three-tier fallback chain.

1. Polygon approximation (approxPolyDP) yielding exactly 4 vertices
2. Minimum-area rotated bounding rectangle of the contour
3. Margin-based default rectangle spanning the full image width

The chain never fails: ambiguous geometry degrades to a more conservative
guess instead of an error.
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from src.rectification.config_loader import ContourConfig, FallbackConfig
from src.rectification.types import QuadExtraction, QuadSource

logger = logging.getLogger(__name__)


def approximate_polygon(
    contour: np.ndarray, epsilon_ratio: float = 0.05
) -> np.ndarray:
    """
    Douglas-Peucker simplification of a closed contour.

    Args:
        contour: Contour of shape (N, 1, 2).
        epsilon_ratio: Tolerance as a fraction of the closed perimeter.

    Returns:
        Simplified polygon vertices with shape (M, 2).
    """
    perimeter = cv2.arcLength(contour, True)
    approx = cv2.approxPolyDP(contour, epsilon_ratio * perimeter, True)
    return approx.reshape(-1, 2)


def min_area_rectangle(contour: np.ndarray) -> Optional[np.ndarray]:
    """
    Corners of the minimum-area rotated rectangle enclosing a contour.

    Returns:
        Array of shape (4, 2), or None if the rectangle is degenerate
        (zero width or height).
    """
    rect = cv2.minAreaRect(contour)
    (_, _), (rect_w, rect_h), angle = rect
    if rect_w <= 0 or rect_h <= 0:
        logger.debug(f"Degenerate minAreaRect: size=({rect_w}, {rect_h})")
        return None

    logger.debug(f"minAreaRect size=({rect_w:.1f}, {rect_h:.1f}) angle={angle:.1f}")
    return cv2.boxPoints(rect).astype(np.float32)


def margin_default_rectangle(
    width: int, height: int, margin_ratio: float = 0.05
) -> np.ndarray:
    """Full-width rectangle with a top/bottom margin of `margin_ratio * height`."""
    margin = int(round(margin_ratio * height))
    left, right = 0, width - 1
    top, bottom = margin, height - 1 - margin
    return np.array(
        [[left, top], [right, top], [right, bottom], [left, bottom]],
        dtype=np.float32,
    )


def full_image_rectangle(width: int, height: int) -> np.ndarray:
    """Corners of the whole image, already in TL, TR, BR, BL order."""
    return np.array(
        [[0, 0], [width - 1, 0], [width - 1, height - 1], [0, height - 1]],
        dtype=np.float32,
    )


def extract_quadrilateral(
    contour: np.ndarray,
    image_shape: Tuple[int, ...],
    contour_config: Optional[ContourConfig] = None,
    fallback_config: Optional[FallbackConfig] = None,
) -> QuadExtraction:
    """
    Reduce a contour to four corner points, first successful tier wins.

    Args:
        contour: Dominant contour of shape (N, 1, 2).
        image_shape: Shape of the source image, (H, W) or (H, W, C).
        contour_config: Approximation parameters (defaults if None).
        fallback_config: Default rectangle parameters (defaults if None).

    Returns:
        QuadExtraction with 4 unordered points and the tier that produced them.
    """
    contour_config = contour_config or ContourConfig()
    fallback_config = fallback_config or FallbackConfig()
    height, width = image_shape[:2]

    approx = approximate_polygon(contour, contour_config.approx_epsilon_ratio)
    if len(approx) == 4:
        logger.info("Quadrilateral found by polygon approximation")
        return QuadExtraction(approx.astype(np.float32), QuadSource.APPROXIMATED)

    logger.warning(
        f"approxPolyDP returned {len(approx)} points, using minAreaRect fallback"
    )
    box = min_area_rectangle(contour)
    if box is not None:
        return QuadExtraction(box, QuadSource.MIN_AREA_RECT)

    logger.warning("minAreaRect degenerated, using margin-based default rectangle")
    return QuadExtraction(
        margin_default_rectangle(width, height, fallback_config.margin_ratio),
        QuadSource.MARGIN_DEFAULT,
    )
