"""
Contour extraction and dominant contour selection.

The dominant (largest-area) external contour is taken as the page boundary
candidate. When it covers less than the minimum area ratio of the image it
is treated as a detection failure and the full image bounds are used instead.
"""

import logging
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from src.rectification.config_loader import ContourConfig
from src.rectification.types import ContourSelection

logger = logging.getLogger(__name__)


def find_external_contours(edges: np.ndarray) -> Tuple[np.ndarray, ...]:
    """Outermost closed contours of a binary edge map."""
    contours, _ = cv2.findContours(
        edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE
    )
    return tuple(contours)


def select_dominant_contour(
    contours: Sequence[np.ndarray],
) -> Tuple[Optional[np.ndarray], float]:
    """
    Pick the contour with the greatest enclosed area.

    Returns:
        (contour, area), or (None, 0.0) if there are no contours.
    """
    dominant = None
    largest_area = 0.0
    for contour in contours:
        area = float(cv2.contourArea(contour))
        if dominant is None or area > largest_area:
            dominant = contour
            largest_area = area
    return dominant, largest_area


def min_acceptable_area(width: int, height: int, ratio: float = 0.05) -> float:
    """Smallest dominant contour area trusted as a page boundary."""
    return ratio * width * height


def analyze_contours(
    edges: np.ndarray, config: Optional[ContourConfig] = None
) -> ContourSelection:
    """
    Extract contours from an edge map and select the page candidate.

    Args:
        edges: Binary edge map; its shape defines the total image area.
        config: Contour parameters (defaults if None).

    Returns:
        ContourSelection. `found` is False when no contours exist;
        `use_full_image` is True when the dominant contour is too small.
    """
    config = config or ContourConfig()
    height, width = edges.shape[:2]
    min_area = min_acceptable_area(width, height, config.min_area_ratio)

    contours = find_external_contours(edges)
    if not contours:
        logger.warning("No contours detected in edge map")
        return ContourSelection(
            contours=contours,
            dominant=None,
            area=0.0,
            min_area=min_area,
            use_full_image=False,
        )

    dominant, area = select_dominant_contour(contours)
    logger.info(
        f"Found {len(contours)} contours; largest area {area:.1f} "
        f"(min required {min_area:.1f})"
    )

    use_full_image = area < min_area
    if use_full_image:
        logger.warning(
            "No sufficiently large contour found, falling back to full image bounds"
        )

    return ContourSelection(
        contours=contours,
        dominant=dominant,
        area=area,
        min_area=min_area,
        use_full_image=use_full_image,
    )
