"""Tests for orientation normalization."""

import cv2
import numpy as np
import pytest

import unmasklab.orientation as orientation_module

from unmasklab.errors import DecodeFailure
from unmasklab.orientation import (
    Orientation,
    denormalize,
    mirror,
    mirror_then_rotate,
    normalize,
    rotate,
)

GRID = np.array([[1, 2, 3], [4, 5, 6]], dtype=np.uint8)


class TestRoundTrip:
    @pytest.mark.parametrize("orientation", list(Orientation))
    def test_gray_roundtrip(self, orientation):
        rng = np.random.default_rng(orientation.value)
        pixels = rng.integers(0, 256, size=(5, 7), dtype=np.uint8)
        restored = denormalize(normalize(pixels, orientation), orientation)
        np.testing.assert_array_equal(restored, pixels)

    @pytest.mark.parametrize("orientation", list(Orientation))
    def test_color_roundtrip(self, orientation, photo):
        restored = denormalize(normalize(photo, orientation), orientation)
        np.testing.assert_array_equal(restored, photo)

    @pytest.mark.parametrize("orientation", list(Orientation))
    def test_axes_swap(self, orientation):
        out = normalize(GRID, orientation)
        expected = (3, 2) if orientation.swaps_axes else (2, 3)
        assert out.shape == expected


class TestNormalize:
    def test_up_returns_copy(self):
        out = normalize(GRID, Orientation.UP)
        assert out is not GRID
        np.testing.assert_array_equal(out, GRID)

    def test_right_rotates_clockwise(self):
        out = normalize(GRID, Orientation.RIGHT)
        np.testing.assert_array_equal(out, [[4, 1], [5, 2], [6, 3]])

    def test_left_rotates_counter_clockwise(self):
        out = normalize(GRID, Orientation.LEFT)
        np.testing.assert_array_equal(out, [[3, 6], [2, 5], [1, 4]])

    def test_down_rotates_180(self):
        out = normalize(GRID, Orientation.DOWN)
        np.testing.assert_array_equal(out, [[6, 5, 4], [3, 2, 1]])

    def test_up_mirrored_flips_horizontally(self):
        out = normalize(GRID, Orientation.UP_MIRRORED)
        np.testing.assert_array_equal(out, [[3, 2, 1], [6, 5, 4]])

    def test_down_mirrored_flips_vertically(self):
        out = normalize(GRID, Orientation.DOWN_MIRRORED)
        np.testing.assert_array_equal(out, [[4, 5, 6], [1, 2, 3]])

    def test_left_mirrored_transposes(self):
        out = normalize(GRID, Orientation.LEFT_MIRRORED)
        np.testing.assert_array_equal(out, GRID.T)

    def test_right_mirrored_transverses(self):
        out = normalize(GRID, Orientation.RIGHT_MIRRORED)
        np.testing.assert_array_equal(out, [[6, 3], [5, 2], [4, 1]])

    def test_single_channel_kept(self):
        pixels = GRID[:, :, np.newaxis]
        out = normalize(pixels, Orientation.RIGHT)
        assert out.shape == (3, 2, 1)
        np.testing.assert_array_equal(out[:, :, 0], [[4, 1], [5, 2], [6, 3]])

    def test_none_raises(self):
        with pytest.raises(DecodeFailure):
            normalize(None, Orientation.UP)

    def test_empty_raises(self):
        with pytest.raises(DecodeFailure):
            normalize(np.zeros((0, 0), dtype=np.uint8), Orientation.RIGHT)

    def test_wrong_rank_raises(self):
        with pytest.raises(DecodeFailure):
            normalize(np.zeros(5, dtype=np.uint8), Orientation.UP)


class TestPrimitives:
    def test_rotate_360_is_identity(self):
        np.testing.assert_array_equal(rotate(GRID, 360), GRID)

    def test_rotate_90_matches_right(self):
        np.testing.assert_array_equal(rotate(GRID, 90), normalize(GRID, Orientation.RIGHT))

    def test_rotate_negative(self):
        np.testing.assert_array_equal(rotate(GRID, -90), normalize(GRID, Orientation.LEFT))

    def test_rotate_invalid_angle(self):
        with pytest.raises(ValueError):
            rotate(GRID, 45)

    def test_mirror(self):
        np.testing.assert_array_equal(mirror(GRID), GRID[:, ::-1])

    def test_mirror_then_rotate_default(self):
        np.testing.assert_array_equal(mirror_then_rotate(GRID), GRID.T)

    def test_mirror_then_rotate_matches_mirrored_upright(self):
        """RIGHT-tagged sensor buffer renders upright and mirrored."""
        upright = normalize(GRID, Orientation.RIGHT)
        np.testing.assert_array_equal(mirror_then_rotate(GRID), mirror(upright))


class TestOrientationEnum:
    def test_parse_values(self):
        assert Orientation.parse(6) is Orientation.RIGHT
        assert Orientation.parse("8") is Orientation.LEFT

    def test_parse_out_of_range(self):
        assert Orientation.parse(0) is Orientation.UP
        assert Orientation.parse(9) is Orientation.UP
        assert Orientation.parse(None) is Orientation.UP

    def test_from_transform(self):
        assert Orientation.from_transform(0) is Orientation.UP
        assert Orientation.from_transform(90) is Orientation.RIGHT
        assert Orientation.from_transform(-90) is Orientation.LEFT
        assert Orientation.from_transform(270, mirrored=True) is Orientation.LEFT_MIRRORED

    def test_mirrored_flags(self):
        mirrored = {o for o in Orientation if o.is_mirrored}
        assert mirrored == {
            Orientation.UP_MIRRORED,
            Orientation.DOWN_MIRRORED,
            Orientation.LEFT_MIRRORED,
            Orientation.RIGHT_MIRRORED,
        }


class TestTransformErrors:
    @pytest.mark.parametrize("shape", [(2, 3), (2, 3, 1), (2, 3, 3)])
    def test_opencv_error_becomes_decode_failure(self, monkeypatch, shape):
        def broken(img):
            raise cv2.error("unsupported buffer")

        monkeypatch.setitem(orientation_module._NORMALIZE, Orientation.RIGHT, broken)
        with pytest.raises(DecodeFailure):
            normalize(np.zeros(shape, dtype=np.uint8), Orientation.RIGHT)
