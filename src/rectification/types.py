"""
Data types and structures for the Rectification module.

Provides the tagged result returned to callers, the enums that record which
fallback tier produced the page quadrilateral, and the module exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import numpy as np


class RectificationError(Exception):
    """Base class for rectification errors."""


class DecodeError(RectificationError):
    """Input bytes are not a decodable raster image."""


class FailureReason(Enum):
    """Reasons reported in a failed RectificationResult."""

    NO_CONTOURS_DETECTED = "no_contours_detected"
    INTERNAL_ERROR = "internal_error"


class QuadSource(Enum):
    """Which tier of the fallback chain produced the quadrilateral."""

    APPROXIMATED = "approximated"  # approxPolyDP returned exactly 4 vertices
    MIN_AREA_RECT = "min_area_rect"  # rotated bounding rectangle of the contour
    MARGIN_DEFAULT = "margin_default"  # full width, 5% height margin
    FULL_IMAGE = "full_image"  # dominant contour below the minimum area


class EdgeStages(NamedTuple):
    """Intermediate outputs of the edge detector."""

    gray: np.ndarray
    blurred: np.ndarray
    edges: np.ndarray


class ContourSelection(NamedTuple):
    """Outcome of contour analysis.

    Attributes:
        contours: All external contours found in the edge map.
        dominant: Largest contour by enclosed area (None if no contours).
        area: Enclosed area of the dominant contour.
        min_area: Minimum acceptable area for the dominant contour.
        use_full_image: True if the dominant contour is too small to trust.
    """

    contours: Tuple[np.ndarray, ...]
    dominant: Optional[np.ndarray]
    area: float
    min_area: float
    use_full_image: bool

    @property
    def found(self) -> bool:
        return len(self.contours) > 0


class QuadExtraction(NamedTuple):
    """Four unordered corner points and the tier that produced them."""

    points: np.ndarray
    source: QuadSource


@dataclass(frozen=True)
class RectificationResult:
    """
    Output from the rectification pipeline.

    Attributes:
        success: True if a rectified image was produced.
        reason: Failure reason (None on success).
        corners: Ordered corners [TL, TR, BR, BL] as integer (x, y) pairs.
        scanned_image: Rectified image as a JPEG data URL.
        debug_images: Stage name -> data URL, present only when debug was requested.
        quad_source: Fallback tier that produced the corners.
        output_size: (width, height) of the rectified image.
    """

    success: bool
    reason: Optional[FailureReason] = None
    corners: Optional[Tuple[Tuple[int, int], ...]] = None
    scanned_image: Optional[str] = None
    debug_images: Optional[Dict[str, str]] = None
    quad_source: Optional[QuadSource] = None
    output_size: Optional[Tuple[int, int]] = None

    @classmethod
    def succeeded(
        cls,
        corners: np.ndarray,
        scanned_image: str,
        quad_source: QuadSource,
        output_size: Tuple[int, int],
        debug_images: Optional[Dict[str, str]] = None,
    ) -> "RectificationResult":
        int_corners = tuple(
            (int(round(float(x))), int(round(float(y)))) for x, y in corners
        )
        return cls(
            success=True,
            corners=int_corners,
            scanned_image=scanned_image,
            debug_images=debug_images,
            quad_source=quad_source,
            output_size=output_size,
        )

    @classmethod
    def failed(
        cls,
        reason: FailureReason,
        debug_images: Optional[Dict[str, str]] = None,
    ) -> "RectificationResult":
        return cls(success=False, reason=reason, debug_images=debug_images)

    def to_dict(self) -> Dict[str, Any]:
        """Render the result in the caller-facing wire shape."""
        payload: Dict[str, Any] = {"success": self.success}
        if self.success:
            payload["corners"] = [list(point) for point in self.corners]
            payload["scannedImage"] = self.scanned_image
        else:
            payload["reason"] = self.reason.value
        if self.debug_images is not None:
            payload["debugImages"] = dict(self.debug_images)
        return payload

    def corner_list(self) -> List[List[int]]:
        """Corners as nested lists, empty on failure."""
        if not self.corners:
            return []
        return [list(point) for point in self.corners]
