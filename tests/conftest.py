"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import io

import pytest


def encode_png(image) -> bytes:
    """Encode an RGB/RGBA/grayscale array as PNG bytes."""
    from PIL import Image

    buffer = io.BytesIO()
    Image.fromarray(image).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """Factory fixture: array -> PNG bytes."""
    return encode_png


@pytest.fixture(autouse=True)
def _clear_debug_env(monkeypatch):
    """Keep IMAGE_SCAN_DEBUG from the outer environment out of tests."""
    monkeypatch.delenv("IMAGE_SCAN_DEBUG", raising=False)


@pytest.fixture
def sample_quadrilateral_points():
    """Fixture providing sample 4-corner points in scrambled order."""
    import numpy as np

    return np.array(
        [
            [300, 150],  # Top-right area
            [100, 200],  # Top-left area
            [320, 400],  # Bottom-right area
            [80, 380],  # Bottom-left area
        ],
        dtype=np.float32,
    )


@pytest.fixture
def rotated_page():
    """
    400x400 black image with a centered 300x200 white page rotated by 15°.

    Returns:
        (RGB image, true corners as (4, 2) float32 array in boxPoints order)
    """
    import cv2
    import numpy as np

    image = np.zeros((400, 400, 3), dtype=np.uint8)
    corners = cv2.boxPoints(((200.0, 200.0), (300.0, 200.0), 15.0))
    cv2.fillPoly(image, [np.round(corners).astype(np.int32)], (255, 255, 255))
    return image, corners.astype(np.float32)


@pytest.fixture
def rotated_page_bytes(rotated_page):
    """PNG bytes of the rotated page image."""
    image, _ = rotated_page
    return encode_png(image)


@pytest.fixture
def blank_image_bytes():
    """PNG bytes of an all-black 100x100 image."""
    import numpy as np

    return encode_png(np.zeros((100, 100, 3), dtype=np.uint8))


@pytest.fixture
def small_mark_image():
    """
    White 300x200 page with a small dark square covering well under 5% of it.
    """
    import numpy as np

    image = np.full((200, 300, 3), 255, dtype=np.uint8)
    image[90:110, 140:160] = 0
    return image


@pytest.fixture
def small_mark_image_bytes(small_mark_image):
    return encode_png(small_mark_image)
