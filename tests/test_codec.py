"""Tests for photo decoding and encoding."""

import io

import numpy as np
import pytest
from PIL import Image

from unmasklab.codec import decode_photo, encode_jpeg, read_orientation
from unmasklab.errors import DecodeFailure
from unmasklab.orientation import Orientation


def _jpeg_with_orientation(value, size=(8, 4)):
    im = Image.new("RGB", size, (200, 100, 50))
    exif = Image.Exif()
    exif[0x0112] = value
    buf = io.BytesIO()
    im.save(buf, "JPEG", exif=exif)
    return buf.getvalue()


class TestDecodePhoto:
    def test_png_lossless(self, photo, photo_bytes):
        np.testing.assert_array_equal(decode_photo(photo_bytes), photo)

    def test_keeps_stored_layout(self):
        """EXIF orientation is not applied while decoding."""
        img = decode_photo(_jpeg_with_orientation(6))
        assert img.shape == (4, 8, 3)

    def test_empty_raises(self):
        with pytest.raises(DecodeFailure):
            decode_photo(b"")

    def test_garbage_raises(self):
        with pytest.raises(DecodeFailure):
            decode_photo(b"definitely not an image")


class TestReadOrientation:
    def test_exif_tag(self):
        assert read_orientation(_jpeg_with_orientation(6)) is Orientation.RIGHT

    def test_no_exif(self, photo_bytes):
        assert read_orientation(photo_bytes) is Orientation.UP

    def test_garbage(self):
        assert read_orientation(b"garbage") is Orientation.UP


class TestEncodeJpeg:
    def test_bgr(self, photo):
        data = encode_jpeg(photo)
        assert data[:2] == b"\xff\xd8"

    def test_bgra_drops_alpha(self):
        data = encode_jpeg(np.full((4, 4, 4), 128, dtype=np.uint8))
        assert decode_photo(data).shape == (4, 4, 3)

    def test_empty_raises(self):
        with pytest.raises(DecodeFailure):
            encode_jpeg(np.zeros((0, 0, 3), dtype=np.uint8))
