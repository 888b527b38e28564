"""Matte decoding: raw segmentation planes to oriented BGRA images."""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from unmasklab.errors import DecodeFailure
from unmasklab.orientation import Orientation, mirror_then_rotate
from unmasklab.types import SegmentationMatte

logger = logging.getLogger(__name__)


def to_uint8(plane: np.ndarray) -> np.ndarray:
    """Convert a matte buffer to uint8, scaling float confidences in [0, 1] by 255."""
    if np.issubdtype(plane.dtype, np.floating):
        return np.clip(np.nan_to_num(plane) * 255.0 + 0.5, 0, 255).astype(np.uint8)
    if plane.dtype != np.uint8:
        return np.clip(plane, 0, 255).astype(np.uint8)
    return plane


def matte_to_gray(pixels: np.ndarray) -> np.ndarray:
    """Convert a matte plane to a single-channel uint8 image.

    Float planes are treated as confidences in [0, 1]; packed BGR/BGRA
    buffers are reduced to luminance.

    Raises:
        DecodeFailure: If the buffer has an unsupported shape or is empty.
    """
    if pixels is None or not isinstance(pixels, np.ndarray) or pixels.size == 0:
        raise DecodeFailure("Matte has no pixel data")

    plane = pixels
    if plane.ndim == 3 and plane.shape[2] == 1:
        plane = plane[:, :, 0]

    plane = to_uint8(plane)

    if plane.ndim == 2:
        return np.ascontiguousarray(plane)
    if plane.ndim == 3 and plane.shape[2] == 3:
        return cv2.cvtColor(np.ascontiguousarray(plane), cv2.COLOR_BGR2GRAY)
    if plane.ndim == 3 and plane.shape[2] == 4:
        return cv2.cvtColor(np.ascontiguousarray(plane), cv2.COLOR_BGRA2GRAY)
    raise DecodeFailure(f"Unsupported matte shape {pixels.shape}")


class MatteDecoder:
    """Turns a SegmentationMatte into an image aligned with the final photo.

    Mattes share the stored layout of their photo, so they are rendered with
    the photo's own transform (:func:`mirror_then_rotate`). The orientation
    tag does not change the geometry; it is kept for tracing. For the usual
    RIGHT-tagged sensor buffer this is the upright, mirrored rendering.
    """

    def decode(
        self,
        matte: SegmentationMatte,
        photo_orientation: Optional[Orientation] = None,
    ) -> np.ndarray:
        """Decode one matte.

        Args:
            matte: Raw matte in the photo's stored layout.
            photo_orientation: Orientation tag of the photo the matte belongs
                to. Defaults to the tag carried by the matte.

        Returns:
            (H, W, 4) uint8 BGRA image, laid out like the canonical photo.

        Raises:
            DecodeFailure: If the matte cannot be converted.
        """
        orientation = matte.orientation if photo_orientation is None else photo_orientation
        gray = matte_to_gray(matte.pixels)
        image = cv2.cvtColor(mirror_then_rotate(gray), cv2.COLOR_GRAY2BGRA)
        logger.debug(
            "Decoded %s matte %s -> %s (photo orientation=%s)",
            matte.feature.label, matte.pixels.shape, image.shape, orientation.name,
        )
        return image


__all__ = ["MatteDecoder", "matte_to_gray", "to_uint8"]
