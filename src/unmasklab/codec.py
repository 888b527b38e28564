"""Photo byte codec.

Decodes captured photo bytes into stored-layout BGR buffers (EXIF
orientation is *not* applied; callers orient explicitly) and encodes
images for persistence.
"""

import io
import logging

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from unmasklab.errors import DecodeFailure
from unmasklab.orientation import Orientation

logger = logging.getLogger(__name__)

_EXIF_ORIENTATION_TAG = 0x0112


def decode_photo(data: bytes) -> np.ndarray:
    """Decode photo bytes to a BGR buffer in stored layout.

    Args:
        data: Encoded image bytes (JPEG, PNG, ...).

    Returns:
        (H, W, 3) uint8 BGR image.

    Raises:
        DecodeFailure: If the bytes are empty or cannot be decoded.
    """
    if not data:
        raise DecodeFailure("Photo data is empty")

    buf = np.frombuffer(data, np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_COLOR | cv2.IMREAD_IGNORE_ORIENTATION)
    if img is None:
        raise DecodeFailure("Failed to decode photo data")
    return img


def read_orientation(data: bytes) -> Orientation:
    """Read the EXIF orientation tag from encoded bytes (UP if absent)."""
    try:
        with Image.open(io.BytesIO(data)) as im:
            value = im.getexif().get(_EXIF_ORIENTATION_TAG, 1)
    except (UnidentifiedImageError, OSError) as e:
        logger.debug("No EXIF orientation: %s", e)
        return Orientation.UP
    return Orientation.parse(value)


def encode_jpeg(image: np.ndarray, quality: int = 90) -> bytes:
    """Encode an image as JPEG.

    The alpha channel of BGRA input is dropped.

    Raises:
        DecodeFailure: If the image cannot be encoded.
    """
    if image is None or not isinstance(image, np.ndarray) or image.size == 0:
        raise DecodeFailure("Nothing to encode")

    if image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    ok, encoded = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise DecodeFailure("Failed to encode image as JPEG")
    return encoded.tobytes()


__all__ = ["decode_photo", "read_orientation", "encode_jpeg"]
