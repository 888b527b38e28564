"""Configuration for the capture pipeline.

Example:
    >>> from unmasklab.config import CaptureConfig
    >>> config = CaptureConfig(storage_dir="./photos", max_save_workers=2)
    >>> config = CaptureConfig.from_env()
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import cv2

from unmasklab.extractor import SENSITIVITY
from unmasklab.paths import get_images_dir

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return default


@dataclass
class CaptureConfig:
    """Settings shared by every capture session of a coordinator.

    Attributes:
        storage_dir: Directory of the image store. None resolves to
            ``{home}/CapturedPhotos``.
        jpeg_quality: JPEG quality (0-100) of saved images.
        sensitivity: Lightness/saturation tolerance of region extraction.
        processing_indicator_threshold_sec: Show the processing indicator
            when the expected processing time exceeds this.
        max_save_workers: Thread pool size for extraction + save jobs.
            0 runs jobs inline on the event thread.
        resample_interpolation: OpenCV flag for matte resampling.
    """

    storage_dir: Optional[Path] = None
    jpeg_quality: int = 90
    sensitivity: int = SENSITIVITY
    processing_indicator_threshold_sec: float = 1.0
    max_save_workers: int = 4
    resample_interpolation: int = cv2.INTER_LINEAR

    def __post_init__(self) -> None:
        if self.storage_dir is not None:
            self.storage_dir = Path(self.storage_dir)
        if not 0 <= self.jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be in [0, 100], got {self.jpeg_quality}")
        if not 0 <= self.sensitivity <= 255:
            raise ValueError(f"sensitivity must be in [0, 255], got {self.sensitivity}")
        if self.max_save_workers < 0:
            raise ValueError("max_save_workers must be >= 0")

    @property
    def resolved_storage_dir(self) -> Path:
        return self.storage_dir if self.storage_dir is not None else get_images_dir()

    @classmethod
    def from_env(cls, **overrides) -> "CaptureConfig":
        """Build a config from ``UNMASKLAB_*`` environment variables.

        ``UNMASKLAB_HOME`` is honored through the default storage dir;
        ``UNMASKLAB_JPEG_QUALITY`` and ``UNMASKLAB_SAVE_WORKERS`` override
        the numeric defaults. Keyword overrides win over the environment.
        """
        values = {
            "jpeg_quality": _env_int("UNMASKLAB_JPEG_QUALITY", cls.jpeg_quality),
            "max_save_workers": _env_int("UNMASKLAB_SAVE_WORKERS", cls.max_save_workers),
        }
        values.update(overrides)
        return cls(**values)


__all__ = ["CaptureConfig"]
