"""
Document Image Rectification

Flattens a photographed or scanned page into a perspective-corrected
rectangular image for downstream text extraction.

Pipeline stages:
1. Decode with EXIF orientation applied
2. Edge detection (grayscale, Gaussian blur, Canny)
3. Contour analysis (dominant contour, minimum-area fallback)
4. Quadrilateral extraction (approximation -> minAreaRect -> margin default)
5. Corner ordering
6. Perspective rectification
7. RGBA normalization and JPEG data URL encoding
"""

from src.rectification.config_loader import (
    RectificationConfig,
    get_default_config,
    load_config,
)
from src.rectification.image_rectification import order_corners, rectify
from src.rectification.processor import DocumentScanner, scan_image_buffer
from src.rectification.types import (
    DecodeError,
    FailureReason,
    QuadSource,
    RectificationError,
    RectificationResult,
)

__all__ = [
    "DocumentScanner",
    "scan_image_buffer",
    "load_config",
    "get_default_config",
    "order_corners",
    "rectify",
    "RectificationConfig",
    "RectificationResult",
    "RectificationError",
    "DecodeError",
    "FailureReason",
    "QuadSource",
]
