"""
Unit tests for image decoding, channel normalization and encoding.
"""

import io

import numpy as np
import pytest
from PIL import Image

from src.rectification.decoder import decode_image
from src.rectification.encoder import (
    decode_data_url,
    encode_image_data_url,
    encode_jpeg,
    normalize_channels,
    to_data_url,
)
from src.rectification.types import DecodeError, RectificationError


class TestDecodeImage:
    def test_rgb_png(self, png_bytes):
        image = np.zeros((20, 30, 3), dtype=np.uint8)
        image[..., 2] = 200

        decoded = decode_image(png_bytes(image))

        assert decoded.shape == (20, 30, 3)
        assert decoded.dtype == np.uint8
        np.testing.assert_array_equal(decoded, image)

    def test_rgba_png_keeps_alpha(self, png_bytes):
        image = np.zeros((10, 10, 4), dtype=np.uint8)
        image[..., 3] = 128

        decoded = decode_image(png_bytes(image))

        assert decoded.shape == (10, 10, 4)
        assert decoded[0, 0, 3] == 128

    def test_grayscale_becomes_rgb(self, png_bytes):
        decoded = decode_image(png_bytes(np.full((8, 12), 90, dtype=np.uint8)))

        assert decoded.shape == (8, 12, 3)
        assert np.all(decoded == 90)

    def test_exif_orientation_applied(self):
        """Orientation 6 (rotate 90° CW) swaps width and height."""
        img = Image.new("RGB", (40, 20), (255, 0, 0))
        exif = Image.Exif()
        exif[0x0112] = 6
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", exif=exif)

        decoded = decode_image(buffer.getvalue())

        assert decoded.shape == (40, 20, 3)

    def test_sixteen_bit_grayscale_is_rescaled(self, png_bytes):
        wide = np.full((400, 400), 8000, dtype=np.uint16)
        wide[100:300, 50:350] = 60000

        decoded = decode_image(png_bytes(wide))

        assert decoded.shape == (400, 400, 3)
        assert decoded.dtype == np.uint8
        assert np.all(decoded[0, 0] == 8000 >> 8)
        assert np.all(decoded[200, 200] == 60000 >> 8)

    def test_oversized_image_raises_decode_error(self, png_bytes, monkeypatch):
        data = png_bytes(np.zeros((100, 100, 3), dtype=np.uint8))
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

        with pytest.raises(DecodeError, match="Could not decode"):
            decode_image(data)

    def test_garbage_raises_decode_error(self):
        with pytest.raises(DecodeError, match="Could not decode"):
            decode_image(b"definitely not an image")

    def test_empty_raises_decode_error(self):
        with pytest.raises(DecodeError, match="empty"):
            decode_image(b"")

    def test_decode_error_is_rectification_error(self):
        assert issubclass(DecodeError, RectificationError)


class TestNormalizeChannels:
    def test_gray_replicated(self):
        gray = np.full((3, 5), 17, dtype=np.uint8)
        rgba = normalize_channels(gray)

        assert rgba.shape == (3, 5, 4)
        assert np.all(rgba[..., :3] == 17)
        assert np.all(rgba[..., 3] == 255)

    def test_single_channel_3d(self):
        rgba = normalize_channels(np.zeros((3, 5, 1), dtype=np.uint8))
        assert rgba.shape == (3, 5, 4)

    def test_rgb_gets_opaque_alpha(self):
        rgb = np.random.default_rng(0).integers(0, 256, (4, 6, 3), dtype=np.uint8)
        rgba = normalize_channels(rgb)

        np.testing.assert_array_equal(rgba[..., :3], rgb)
        assert np.all(rgba[..., 3] == 255)

    def test_rgba_unchanged(self):
        rgba = np.zeros((2, 2, 4), dtype=np.uint8)
        assert normalize_channels(rgba) is rgba

    def test_unsupported_layout(self):
        with pytest.raises(ValueError, match="Unsupported channel layout"):
            normalize_channels(np.zeros((2, 2, 2), dtype=np.uint8))


class TestEncoding:
    def test_encode_jpeg_dimensions(self):
        image = np.full((33, 47, 4), 200, dtype=np.uint8)
        data = encode_jpeg(image)

        with Image.open(io.BytesIO(data)) as img:
            assert img.format == "JPEG"
            assert img.size == (47, 33)
            assert img.mode == "RGB"

    def test_quality_changes_size(self):
        rng = np.random.default_rng(1)
        image = rng.integers(0, 256, (64, 64, 3), dtype=np.uint8)

        assert len(encode_jpeg(image, quality=10)) < len(encode_jpeg(image, quality=95))

    def test_data_url_format(self):
        assert to_data_url(b"abc") == "data:image/jpeg;base64,YWJj"
        assert to_data_url(b"abc", "image/png").startswith("data:image/png;base64,")

    def test_encode_image_data_url_decodes(self):
        image = np.zeros((10, 20), dtype=np.uint8)
        url = encode_image_data_url(image)

        assert url.startswith("data:image/jpeg;base64,")
        with Image.open(io.BytesIO(decode_data_url(url))) as img:
            assert img.size == (20, 10)

    def test_decode_data_url_rejects_plain_string(self):
        with pytest.raises(ValueError, match="Not a base64 data URL"):
            decode_data_url("hello")
