"""
Main processor for the Rectification module.

Orchestrates the complete pipeline:
1. Decode (EXIF orientation applied)
2. Edge detection (grayscale, blur, Canny)
3. Contour analysis (dominant contour, minimum-area check)
4. Quadrilateral extraction (approxPolyDP -> minAreaRect -> margin default)
5. Corner ordering
6. Perspective rectification
7. Channel normalization and JPEG encoding

Only a complete absence of contours is reported as a failure; every other
ambiguity degrades to a fallback quadrilateral. Unexpected errors are caught
here and reported as `internal_error`.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np

from src.rectification.config_loader import (
    RectificationConfig,
    get_default_config,
    load_config,
    resolve_debug_flag,
)
from src.rectification.contour_analysis import analyze_contours
from src.rectification.debug import DebugRecorder
from src.rectification.decoder import decode_image
from src.rectification.edge_detection import run_edge_detection
from src.rectification.encoder import encode_image_data_url
from src.rectification.engine import get_engine
from src.rectification.image_rectification import order_corners, rectify
from src.rectification.quadrilateral import extract_quadrilateral, full_image_rectangle
from src.rectification.types import (
    DecodeError,
    FailureReason,
    QuadSource,
    RectificationResult,
)

logger = logging.getLogger(__name__)


class DocumentScanner:
    """
    Flattens a photographed page into a perspective-corrected rectangle.

    Instances hold only immutable configuration and can be shared between
    threads.

    Example:
        >>> scanner = DocumentScanner()
        >>> with open("recipe.jpg", "rb") as f:
        ...     result = scanner.scan(f.read())
        >>> if result.success:
        ...     print(result.corners)
    """

    def __init__(
        self,
        config: Optional[RectificationConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the scanner.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses the bundled default.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = (
                load_config(config_path) if config_path else get_default_config()
            )
            logger.info("Loaded configuration from file")

    def scan(self, buffer: bytes, debug: Optional[bool] = None) -> RectificationResult:
        """
        Rectify the page in an image buffer.

        Args:
            buffer: Encoded image bytes.
            debug: Capture stage snapshots. None uses IMAGE_SCAN_DEBUG, then
                the config default.

        Returns:
            RectificationResult; never raises. Undecodable input is reported
            as `internal_error`.
        """
        recorder = DebugRecorder(
            enabled=resolve_debug_flag(debug, self.config),
            max_width=self.config.debug.max_width,
            jpeg_quality=self.config.debug.jpeg_quality,
        )

        try:
            logger.info("[Stage 1/7] Decoding image")
            image = decode_image(buffer)
        except DecodeError as e:
            logger.warning(f"Pipeline FAILED at Stage 1: {e}")
            return RectificationResult.failed(
                FailureReason.INTERNAL_ERROR, debug_images=recorder.images
            )

        try:
            get_engine(self.config.engine)
            return self._run(image, recorder)
        except Exception:
            logger.exception("Unexpected scan error")
            return RectificationResult.failed(
                FailureReason.INTERNAL_ERROR, debug_images=recorder.images
            )

    def _run(self, image: np.ndarray, recorder: DebugRecorder) -> RectificationResult:
        height, width = image.shape[:2]
        logger.info(f"Source image {width}x{height} with {image.shape[2]} channels")

        logger.info("[Stage 2/7] Edge detection")
        stages = run_edge_detection(image, self.config.edges)
        recorder.capture("gray", stages.gray)
        recorder.capture("blurred", stages.blurred)
        recorder.capture("edges", stages.edges)
        edges = stages.edges
        del stages

        logger.info("[Stage 3/7] Contour analysis")
        selection = analyze_contours(edges, self.config.contours)
        del edges
        recorder.capture_contours(image, selection.contours)

        if not selection.found:
            logger.warning("Pipeline FAILED at Stage 3: no contours detected")
            return RectificationResult.failed(
                FailureReason.NO_CONTOURS_DETECTED, debug_images=recorder.images
            )

        logger.info("[Stage 4/7] Quadrilateral extraction")
        if selection.use_full_image:
            points = full_image_rectangle(width, height)
            source = QuadSource.FULL_IMAGE
            recorder.capture_fallback(image, points)
        else:
            points, source = extract_quadrilateral(
                selection.dominant,
                image.shape,
                self.config.contours,
                self.config.fallback,
            )
        del selection
        logger.info(f"Quadrilateral source: {source.value}")

        logger.info("[Stage 5/7] Corner ordering")
        ordered = order_corners(points)
        recorder.capture_quad(image, ordered)

        logger.info("[Stage 6/7] Perspective rectification")
        warped, output_size = rectify(image, ordered)
        recorder.capture("warped", warped)

        logger.info("[Stage 7/7] Encoding")
        scanned_image = encode_image_data_url(warped, self.config.output.jpeg_quality)
        del warped

        logger.info(
            f"Pipeline SUCCEEDED: {output_size[0]}x{output_size[1]} page "
            f"({source.value})"
        )
        return RectificationResult.succeeded(
            corners=ordered,
            scanned_image=scanned_image,
            quad_source=source,
            output_size=output_size,
            debug_images=recorder.images,
        )


def scan_image_buffer(
    buffer: bytes,
    debug: Optional[bool] = None,
    config: Optional[RectificationConfig] = None,
) -> RectificationResult:
    """
    Convenience function for one-shot rectification.

    Args:
        buffer: Encoded image bytes.
        debug: Capture stage snapshots (None uses the process-wide default).
        config: Optional custom configuration. Uses default if None.

    Example:
        >>> result = scan_image_buffer(image_bytes)
        >>> result.to_dict()["success"]
        True
    """
    scanner = DocumentScanner(config=config)
    return scanner.scan(buffer, debug=debug)
