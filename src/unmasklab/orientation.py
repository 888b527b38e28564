"""Orientation normalization for pixel buffers.

Stored image buffers carry one of the eight EXIF orientation tags.
``normalize`` produces the buffer as intended for display (top-left origin,
row-major, no rotation, no mirroring); ``denormalize`` applies the inverse
transform so that ``denormalize(normalize(p, o), o)`` equals ``p``.

All transforms are lossless index permutations done with OpenCV.

Example:
    >>> upright = normalize(raw, Orientation.RIGHT)
    >>> restored = denormalize(upright, Orientation.RIGHT)
"""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, Dict

import cv2
import numpy as np

from unmasklab.errors import DecodeFailure


class Orientation(IntEnum):
    """EXIF orientation tag values."""

    UP = 1
    UP_MIRRORED = 2
    DOWN = 3
    DOWN_MIRRORED = 4
    LEFT_MIRRORED = 5
    RIGHT = 6
    RIGHT_MIRRORED = 7
    LEFT = 8

    @property
    def is_mirrored(self) -> bool:
        return self in _MIRRORED

    @property
    def rotation(self) -> int:
        """Clockwise rotation in degrees applied by ``normalize`` after mirroring."""
        return _ROTATION[self]

    @property
    def swaps_axes(self) -> bool:
        return self.rotation in (90, 270)

    @classmethod
    def from_transform(cls, degrees: int, mirrored: bool = False) -> "Orientation":
        """Orientation whose normalization mirrors (optionally) then rotates clockwise.

        Args:
            degrees: Clockwise rotation, a multiple of 90 (any sign).
            mirrored: Mirror horizontally before rotating.

        Raises:
            ValueError: If degrees is not a multiple of 90.
        """
        if degrees % 90 != 0:
            raise ValueError(f"Rotation must be a multiple of 90 degrees, got {degrees}")
        degrees %= 360
        for orientation in cls:
            if orientation.rotation == degrees and orientation.is_mirrored == mirrored:
                return orientation
        raise ValueError(f"No orientation for rotation={degrees} mirrored={mirrored}")

    @classmethod
    def parse(cls, value: object) -> "Orientation":
        """Parse an EXIF tag value; anything out of range maps to UP."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UP


_MIRRORED = frozenset({
    Orientation.UP_MIRRORED,
    Orientation.DOWN_MIRRORED,
    Orientation.LEFT_MIRRORED,
    Orientation.RIGHT_MIRRORED,
})

_ROTATION: Dict[Orientation, int] = {
    Orientation.UP: 0,
    Orientation.UP_MIRRORED: 0,
    Orientation.DOWN: 180,
    Orientation.DOWN_MIRRORED: 180,
    Orientation.LEFT_MIRRORED: 270,
    Orientation.RIGHT: 90,
    Orientation.RIGHT_MIRRORED: 90,
    Orientation.LEFT: 270,
}


def _transverse(img: np.ndarray) -> np.ndarray:
    return cv2.transpose(cv2.flip(img, -1))


_Transform = Callable[[np.ndarray], np.ndarray]

_NORMALIZE: Dict[Orientation, _Transform] = {
    Orientation.UP: np.copy,
    Orientation.UP_MIRRORED: lambda img: cv2.flip(img, 1),
    Orientation.DOWN: lambda img: cv2.rotate(img, cv2.ROTATE_180),
    Orientation.DOWN_MIRRORED: lambda img: cv2.flip(img, 0),
    Orientation.LEFT_MIRRORED: cv2.transpose,
    Orientation.RIGHT: lambda img: cv2.rotate(img, cv2.ROTATE_90_CLOCKWISE),
    Orientation.RIGHT_MIRRORED: _transverse,
    Orientation.LEFT: lambda img: cv2.rotate(img, cv2.ROTATE_90_COUNTERCLOCKWISE),
}

# Mirror-only, 180 and the two diagonal transposes are involutions.
_DENORMALIZE: Dict[Orientation, _Transform] = dict(_NORMALIZE)
_DENORMALIZE[Orientation.RIGHT] = _NORMALIZE[Orientation.LEFT]
_DENORMALIZE[Orientation.LEFT] = _NORMALIZE[Orientation.RIGHT]


def _apply(pixels: np.ndarray, transform: _Transform) -> np.ndarray:
    if pixels is None or not isinstance(pixels, np.ndarray):
        raise DecodeFailure(f"Expected a pixel buffer, got {type(pixels).__name__}")
    if pixels.ndim not in (2, 3) or pixels.size == 0:
        raise DecodeFailure(f"Cannot orient buffer of shape {pixels.shape}")

    img = np.ascontiguousarray(pixels)
    try:
        # OpenCV drops a trailing singleton channel
        if img.ndim == 3 and img.shape[2] == 1:
            return transform(img[:, :, 0])[:, :, np.newaxis]
        return transform(img)
    except cv2.error as e:
        raise DecodeFailure(f"Failed to transform buffer: {e}") from e


def normalize(pixels: np.ndarray, orientation: Orientation) -> np.ndarray:
    """Return the buffer laid out upright for display.

    Args:
        pixels: (H, W) or (H, W, C) buffer in stored layout.
        orientation: Stored orientation tag of the buffer.

    Returns:
        New buffer. Already-upright input is returned as a copy.

    Raises:
        DecodeFailure: If the buffer is missing, empty or not an image.
    """
    return _apply(pixels, _NORMALIZE[Orientation(orientation)])


def denormalize(pixels: np.ndarray, orientation: Orientation) -> np.ndarray:
    """Inverse of :func:`normalize`: re-apply a stored orientation."""
    return _apply(pixels, _DENORMALIZE[Orientation(orientation)])


def rotate(pixels: np.ndarray, degrees: int) -> np.ndarray:
    """Rotate clockwise by a multiple of 90 degrees (360 is identity)."""
    return denormalize(pixels, Orientation.from_transform(-degrees))


def mirror(pixels: np.ndarray) -> np.ndarray:
    """Mirror horizontally."""
    return normalize(pixels, Orientation.UP_MIRRORED)


def mirror_then_rotate(pixels: np.ndarray, degrees: int = 360) -> np.ndarray:
    """Render a stored photo the way the capture path always has.

    The stored buffer is re-tagged as left-mirrored and rendered upright,
    then rotated by ``degrees``. For sensor buffers stored with the usual
    RIGHT tag this yields the upright image mirrored like the front-camera
    preview.
    """
    return rotate(normalize(pixels, Orientation.LEFT_MIRRORED), degrees)


__all__ = [
    "Orientation",
    "normalize",
    "denormalize",
    "rotate",
    "mirror",
    "mirror_then_rotate",
]
