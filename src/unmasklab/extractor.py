"""Region extraction: cut a feature out of the photo using its matte.

The matte encodes feature confidence as near-white. A pixel belongs to the
region when, in HLS space, its lightness is within ``sensitivity`` of the
maximum and its saturation is at most ``sensitivity``, regardless of hue.
"""

from __future__ import annotations

import logging

import cv2
import numpy as np

from unmasklab.errors import DecodeFailure
from unmasklab.matte import to_uint8

logger = logging.getLogger(__name__)

# Fixed tolerance on the 0-255 lightness and saturation channels
SENSITIVITY = 50


def _to_bgr(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def _check_image(image: np.ndarray, what: str) -> None:
    if image is None or not isinstance(image, np.ndarray):
        raise DecodeFailure(f"{what} is not a pixel buffer")
    if image.ndim not in (2, 3) or image.shape[0] == 0 or image.shape[1] == 0:
        raise DecodeFailure(f"{what} has zero area: shape={getattr(image, 'shape', None)}")


def region_mask(
    matte: np.ndarray,
    size: tuple[int, int],
    sensitivity: int = SENSITIVITY,
    interpolation: int = cv2.INTER_LINEAR,
) -> np.ndarray:
    """Binary region-of-interest mask from a matte image.

    Args:
        matte: Matte image (gray, BGR or BGRA). Float buffers are
            confidences in [0, 1].
        size: Target (width, height).
        sensitivity: Tolerance on lightness and saturation.
        interpolation: OpenCV resampling flag.

    Returns:
        (height, width) uint8 mask, 255 inside the region and 0 elsewhere.

    Raises:
        DecodeFailure: If the matte is empty or cannot be resampled.
    """
    _check_image(matte, "Matte")
    width, height = size
    if width <= 0 or height <= 0:
        raise DecodeFailure(f"Cannot resample matte to {size}")

    bgr = _to_bgr(np.ascontiguousarray(to_uint8(matte)))
    try:
        resized = cv2.resize(bgr, (width, height), interpolation=interpolation)
    except cv2.error as e:
        raise DecodeFailure(f"Failed to resample matte: {e}") from e

    hls = cv2.cvtColor(resized, cv2.COLOR_BGR2HLS)
    lower = np.array([0, 255 - sensitivity, 0], dtype=np.uint8)
    upper = np.array([255, 255, sensitivity], dtype=np.uint8)
    return cv2.inRange(hls, lower, upper)


class RegionExtractor:
    """Masks a full-resolution photo with a feature matte.

    Args:
        sensitivity: Tolerance on lightness and saturation (0-255 scale).
        interpolation: OpenCV flag used to resample the matte.
    """

    def __init__(
        self,
        sensitivity: int = SENSITIVITY,
        interpolation: int = cv2.INTER_LINEAR,
    ) -> None:
        self.sensitivity = sensitivity
        self.interpolation = interpolation

    def extract(self, matte: np.ndarray, photo: np.ndarray) -> np.ndarray:
        """Copy the masked photo pixels into a blank buffer.

        Args:
            matte: Decoded matte image, any resolution.
            photo: Full-resolution canonical photo (H, W) or (H, W, C).

        Returns:
            Buffer with the photo's shape and dtype. Pixels outside the
            region are zero (fully transparent when the photo has alpha).

        Raises:
            DecodeFailure: If either image is empty or resampling fails.
        """
        _check_image(photo, "Photo")
        height, width = photo.shape[:2]
        mask = region_mask(
            matte, (width, height),
            sensitivity=self.sensitivity,
            interpolation=self.interpolation,
        )

        output = np.zeros_like(photo)
        selected = mask > 0
        output[selected] = photo[selected]
        logger.debug(
            "Extracted region: %d/%d pixels", int(selected.sum()), selected.size,
        )
        return output


def extract_region(
    matte: np.ndarray, photo: np.ndarray, sensitivity: int = SENSITIVITY,
) -> np.ndarray:
    """Functional shortcut for :meth:`RegionExtractor.extract`."""
    return RegionExtractor(sensitivity=sensitivity).extract(matte, photo)


__all__ = ["SENSITIVITY", "RegionExtractor", "region_mask", "extract_region"]
