"""Unit tests for image export.

Tests cover:
- 8-bit quantization (clamping, truncation, non-finite values)
- Gamma correction
- Binary PPM encoding and file output
- PNG output via Pillow
- Format dispatch on the file extension
"""

import os
import tempfile

import numpy as np
import pytest


class TestQuantization:
    """Tests for image_to_uint8."""

    def test_clamp_and_truncate(self):
        """Test min(1, max(0, v)) * 255 truncated toward zero."""
        from src.whitted.output.export import image_to_uint8

        image = np.array([[[0.0, 0.5, 1.0], [2.0, -1.0, 0.999]]], dtype=np.float32)
        result = image_to_uint8(image)

        assert result.dtype == np.uint8
        assert result[0, 0].tolist() == [0, 127, 255]
        assert result[0, 1].tolist() == [255, 0, 254]

    def test_non_finite_values(self):
        """Test that NaN maps to 0 and infinity saturates."""
        from src.whitted.output.export import image_to_uint8

        image = np.array([[[np.nan, np.inf, -np.inf]]], dtype=np.float32)
        result = image_to_uint8(image)

        assert result[0, 0].tolist() == [0, 255, 0]

    def test_rejects_bad_shape(self):
        """Test that images without three channels are rejected."""
        from src.whitted.output.export import image_to_uint8

        with pytest.raises(ValueError):
            image_to_uint8(np.zeros((4, 4), dtype=np.float32))
        with pytest.raises(ValueError):
            image_to_uint8(np.zeros((4, 4, 4), dtype=np.float32))


class TestGamma:
    """Tests for apply_gamma."""

    def test_gamma_one_is_identity(self):
        """Test that gamma 1.0 leaves HDR values untouched."""
        from src.whitted.output.export import apply_gamma

        image = np.full((2, 2, 3), 2.0, dtype=np.float32)
        result = apply_gamma(image, 1.0)
        np.testing.assert_array_equal(result, image)

    def test_gamma_brightens_midtones(self):
        """Test that gamma 2.2 raises 0.5 to 0.5^(1/2.2)."""
        from src.whitted.output.export import apply_gamma

        image = np.full((1, 1, 3), 0.5, dtype=np.float32)
        result = apply_gamma(image, 2.2)
        assert result[0, 0, 0] == pytest.approx(0.5 ** (1.0 / 2.2), rel=1e-5)

    def test_invalid_gamma(self):
        """Test that non-positive gamma raises ValueError."""
        from src.whitted.output.export import apply_gamma

        with pytest.raises(ValueError):
            apply_gamma(np.zeros((1, 1, 3), dtype=np.float32), 0.0)


class TestPPM:
    """Tests for PPM encoding and saving."""

    def test_encode_header_and_payload(self):
        """Test the P6 header followed by row-major RGB bytes."""
        from src.whitted.output.export import encode_ppm

        image = np.zeros((2, 3, 3), dtype=np.uint8)
        image[0, 0] = [255, 0, 0]
        image[1, 2] = [0, 0, 255]
        data = encode_ppm(image)

        header = b"P6\n3 2\n255\n"
        assert data.startswith(header)
        payload = data[len(header):]
        assert len(payload) == 2 * 3 * 3
        assert payload[0:3] == bytes([255, 0, 0])
        assert payload[-3:] == bytes([0, 0, 255])

    def test_encode_requires_uint8(self):
        """Test that float data must be quantized first."""
        from src.whitted.output.export import encode_ppm

        with pytest.raises(ValueError):
            encode_ppm(np.zeros((2, 2, 3), dtype=np.float32))

    def test_save_ppm(self):
        """Test writing a PPM file from a linear image."""
        from src.whitted.output.export import save_image

        image = np.full((4, 5, 3), 2.0, dtype=np.float32)

        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = os.path.join(tmpdir, "raytraced.ppm")
            save_image(image, filepath)

            with open(filepath, "rb") as f:
                data = f.read()

        header = b"P6\n5 4\n255\n"
        assert data.startswith(header)
        assert data[len(header):] == bytes([255]) * (4 * 5 * 3)


class TestPNG:
    """Tests for PNG output."""

    def test_save_png(self):
        """Test writing a PNG and reading it back with Pillow."""
        from PIL import Image

        from src.whitted.output.export import save_image

        image = np.zeros((6, 8, 3), dtype=np.float32)
        image[:, :, 1] = 0.5

        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = os.path.join(tmpdir, "test.png")
            save_image(image, filepath)

            with Image.open(filepath) as loaded:
                assert loaded.size == (8, 6)
                assert loaded.mode == "RGB"
                assert loaded.getpixel((0, 0)) == (0, 127, 0)

    def test_unsupported_extension(self):
        """Test that unknown formats are rejected."""
        from src.whitted.output.export import save_image

        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ValueError):
                save_image(np.zeros((2, 2, 3), dtype=np.float32), os.path.join(tmpdir, "x.bmp"))
