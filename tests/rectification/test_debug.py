"""
Unit tests for debug snapshot capture.
"""

import io
from unittest.mock import patch

import numpy as np
from PIL import Image

from src.rectification.debug import (
    DebugRecorder,
    draw_contours_overlay,
    draw_quad_overlay,
    draw_rectangle_overlay,
    resize_to_width,
)
from src.rectification.encoder import decode_data_url


class TestResizeToWidth:
    def test_downscales_wide_images(self):
        resized = resize_to_width(np.zeros((1000, 1600, 3), dtype=np.uint8), 800)
        assert resized.shape == (500, 800, 3)

    def test_never_enlarges(self):
        image = np.zeros((100, 200), dtype=np.uint8)
        assert resize_to_width(image, 800) is image


class TestOverlays:
    def test_overlays_do_not_modify_source(self, rotated_page):
        image, corners = rotated_page
        original = image.copy()
        contour = np.round(corners).astype(np.int32).reshape(-1, 1, 2)

        contour_vis = draw_contours_overlay(image, [contour])
        rect_vis = draw_rectangle_overlay(image, np.array([[0, 0], [399, 0], [399, 399], [0, 399]]))
        quad_vis = draw_quad_overlay(image, corners)

        np.testing.assert_array_equal(image, original)
        assert not np.array_equal(contour_vis, original)
        assert not np.array_equal(rect_vis, original)
        assert not np.array_equal(quad_vis, original)


class TestDebugRecorder:
    def test_disabled_recorder_is_noop(self):
        recorder = DebugRecorder(enabled=False)
        recorder.capture("gray", np.zeros((10, 10), dtype=np.uint8))

        assert recorder.images is None

    def test_capture_stores_jpeg_data_url(self):
        recorder = DebugRecorder(enabled=True, max_width=50)
        recorder.capture("gray", np.zeros((100, 200), dtype=np.uint8))

        images = recorder.images
        assert list(images) == ["gray"]
        with Image.open(io.BytesIO(decode_data_url(images["gray"]))) as img:
            assert img.format == "JPEG"
            assert img.size == (50, 25)

    def test_images_returns_copy(self):
        recorder = DebugRecorder(enabled=True)
        recorder.capture("gray", np.zeros((5, 5), dtype=np.uint8))

        recorder.images.clear()

        assert "gray" in recorder.images

    def test_capture_failure_is_swallowed(self):
        recorder = DebugRecorder(enabled=True)
        with patch(
            "src.rectification.debug.encode_jpeg", side_effect=RuntimeError("boom")
        ):
            recorder.capture("gray", np.zeros((5, 5), dtype=np.uint8))

        assert recorder.images == {}

    def test_overlay_failure_is_swallowed(self):
        recorder = DebugRecorder(enabled=True)
        with patch(
            "src.rectification.debug.draw_contours_overlay",
            side_effect=RuntimeError("boom"),
        ):
            recorder.capture_contours(np.zeros((5, 5, 3), dtype=np.uint8), [])

        assert recorder.images == {}

    def test_named_overlays(self, rotated_page):
        image, corners = rotated_page
        recorder = DebugRecorder(enabled=True)

        contour = np.round(corners).astype(np.int32).reshape(-1, 1, 2)
        recorder.capture_contours(image, [contour])
        recorder.capture_fallback(image, np.array([[0, 0], [399, 0], [399, 399], [0, 399]]))
        recorder.capture_quad(image, corners)

        assert set(recorder.images) == {
            "all_contours",
            "fallback_full_image",
            "quadrilateral",
        }
