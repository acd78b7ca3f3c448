"""
Image Rectification Utilities

Provides corner ordering, homography estimation and perspective warping.
Used to flatten a photographed page from an arbitrary quadrilateral to a
rectangular top-down view for text extraction.
"""

import logging
from typing import Tuple, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def order_corners(pts: Union[np.ndarray, list]) -> np.ndarray:
    """
    Order 4 points as Top-Left, Top-Right, Bottom-Right, Bottom-Left.

    The algorithm:
    - Sort by coordinate sum (x + y), ascending
    - Top-Left: first (smallest sum); Bottom-Right: last (largest sum)
    - Of the two middle points, the one with the smaller y is Top-Right,
      the other is Bottom-Left

    Stable for near-rectangular shapes. Strongly skewed quadrilaterals can be
    mis-ordered; this heuristic is kept as is.

    Args:
        pts: Array of 4 points with shape (4, 2) or list of [x, y] coordinates.

    Returns:
        float32 array of shape (4, 2) ordered [TL, TR, BR, BL].

    Raises:
        ValueError: If input does not contain exactly 4 points.

    Example:
        >>> pts = np.array([[300, 150], [100, 200], [320, 400], [80, 380]])
        >>> order_corners(pts)[0]
        array([100., 200.], dtype=float32)
    """
    pts = np.array(pts, dtype=np.float32)

    if pts.shape != (4, 2):
        raise ValueError(
            f"Expected exactly 4 points with shape (4, 2), got shape {pts.shape}"
        )

    by_sum = sorted(pts.tolist(), key=lambda p: p[0] + p[1])
    tl, br = by_sum[0], by_sum[3]
    if by_sum[1][1] < by_sum[2][1]:
        tr, bl = by_sum[1], by_sum[2]
    else:
        tr, bl = by_sum[2], by_sum[1]

    rect = np.array([tl, tr, br, bl], dtype=np.float32)

    logger.debug(
        f"Ordered points: TL={rect[0]}, TR={rect[1]}, BR={rect[2]}, BL={rect[3]}"
    )
    return rect


def compute_output_size(ordered: np.ndarray) -> Tuple[int, int]:
    """
    Width and height of the flattened page.

    Width is the longer of the top and bottom edges, height the longer of the
    left and right edges, each rounded to the nearest pixel.

    Raises:
        ValueError: If either dimension rounds to less than 1 pixel.
    """
    tl, tr, br, bl = np.asarray(ordered, dtype=np.float64)

    width_top = np.linalg.norm(tr - tl)
    width_bottom = np.linalg.norm(br - bl)
    out_width = int(round(max(width_top, width_bottom)))

    height_left = np.linalg.norm(bl - tl)
    height_right = np.linalg.norm(br - tr)
    out_height = int(round(max(height_left, height_right)))

    if out_width < 1 or out_height < 1:
        raise ValueError(
            f"Page dimensions too small: width={out_width}, height={out_height}"
        )

    logger.debug(f"Calculated output dimensions: {out_width}x{out_height}")
    return out_width, out_height


def destination_rectangle(width: int, height: int) -> np.ndarray:
    """Destination corners [TL, TR, BR, BL] of a width x height image."""
    return np.array(
        [
            [0, 0],  # Top-Left
            [width - 1, 0],  # Top-Right
            [width - 1, height - 1],  # Bottom-Right
            [0, height - 1],  # Bottom-Left
        ],
        dtype=np.float32,
    )


def compute_perspective_transform(src: np.ndarray, dst: np.ndarray) -> np.ndarray:
    """
    Homography mapping 4 source points onto 4 destination points.

    Solves the 8x8 linear system obtained by fixing H[2, 2] = 1:
        u = (h0 x + h1 y + h2) / (h6 x + h7 y + 1)
        v = (h3 x + h4 y + h5) / (h6 x + h7 y + 1)

    Args:
        src: Source points, shape (4, 2).
        dst: Destination points, shape (4, 2), same order as src.

    Returns:
        3x3 float64 transform matrix.

    Raises:
        ValueError: If the points are not 4 pairs or the system is singular
            (e.g. three collinear source points).
    """
    src = np.asarray(src, dtype=np.float64)
    dst = np.asarray(dst, dtype=np.float64)
    if src.shape != (4, 2) or dst.shape != (4, 2):
        raise ValueError(
            f"Expected two (4, 2) point sets, got {src.shape} and {dst.shape}"
        )

    a = np.zeros((8, 8), dtype=np.float64)
    b = np.zeros(8, dtype=np.float64)
    for i, ((x, y), (u, v)) in enumerate(zip(src, dst)):
        a[2 * i] = [x, y, 1, 0, 0, 0, -u * x, -u * y]
        a[2 * i + 1] = [0, 0, 0, x, y, 1, -v * x, -v * y]
        b[2 * i] = u
        b[2 * i + 1] = v

    try:
        h = np.linalg.solve(a, b)
    except np.linalg.LinAlgError as e:
        raise ValueError(f"Degenerate point configuration: {e}") from e

    return np.append(h, 1.0).reshape(3, 3)


def warp_perspective(
    image: np.ndarray, transform: np.ndarray, size: Tuple[int, int]
) -> np.ndarray:
    """
    Resample an image through a homography.

    Bilinear interpolation; source lookups outside the image read black.

    Args:
        image: Source image (H, W) or (H, W, C).
        transform: 3x3 matrix mapping source to destination coordinates.
        size: Output (width, height).
    """
    return cv2.warpPerspective(
        image,
        transform,
        size,
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0,
    )


def rectify(
    image: np.ndarray, ordered: np.ndarray
) -> Tuple[np.ndarray, Tuple[int, int]]:
    """
    Flatten the page bounded by ordered corners to a top-down rectangle.

    Args:
        image: Source image.
        ordered: Corners [TL, TR, BR, BL], shape (4, 2).

    Returns:
        (warped image, (width, height)).

    Raises:
        ValueError: If the image is empty or the corners are degenerate.

    Example:
        >>> corners = order_corners([[120, 180], [450, 165], [470, 250], [100, 270]])
        >>> warped, (w, h) = rectify(image, corners)
    """
    if image is None or image.size == 0:
        raise ValueError("Invalid input image: image is None or empty")

    out_width, out_height = compute_output_size(ordered)
    dst = destination_rectangle(out_width, out_height)
    transform = compute_perspective_transform(ordered, dst)
    warped = warp_perspective(image, transform, (out_width, out_height))

    logger.info(
        f"Rectified page from quadrilateral to {out_width}x{out_height} rectangle"
    )
    return warped, (out_width, out_height)
