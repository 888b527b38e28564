"""Data types for the capture-completion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

import numpy as np

from unmasklab.orientation import Orientation


class FeatureType(str, Enum):
    """Facial feature with a segmentation matte.

    The value is the label written to the persistence metadata.
    """

    SKIN = "Skin"
    HAIR = "Hair"
    TEETH = "Teeth"
    GLASSES = "Glasses"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> "FeatureType":
        """Parse a feature from its label or enum name, case-insensitively."""
        key = name.strip().lower()
        for feature in cls:
            if key in (feature.value.lower(), feature.name.lower()):
                return feature
        raise ValueError(f"Unknown feature type: {name!r}")


ALL_FEATURES: FrozenSet[FeatureType] = frozenset(FeatureType)


class PhotoFormat(str, Enum):
    HEIC = "heic"
    JPEG = "jpeg"


class FlashMode(str, Enum):
    OFF = "off"
    ON = "on"
    AUTO = "auto"


class QualityPrioritization(str, Enum):
    SPEED = "speed"
    BALANCED = "balanced"
    QUALITY = "quality"


class SessionState(str, Enum):
    """Lifecycle state of a CaptureSession."""

    AWAITING_CAPTURE = "awaiting_capture"
    EXPOSING = "exposing"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.FAILED)


@dataclass(frozen=True)
class CaptureRequest:
    """One photo capture attempt.

    Attributes:
        request_id: Unique among in-flight requests, allocated monotonically.
        photo_format: Requested container format of the photo.
        flash_mode: Flash setting.
        quality: Quality/speed prioritization hint.
        features: Feature types whose mattes should be extracted.
            Snapshot of the user's selection at creation time.
        max_processing_time: Optional processing-time hint in seconds,
            used when the resolved settings carry no range.
    """

    request_id: int
    photo_format: PhotoFormat = PhotoFormat.HEIC
    flash_mode: FlashMode = FlashMode.AUTO
    quality: QualityPrioritization = QualityPrioritization.BALANCED
    features: FrozenSet[FeatureType] = ALL_FEATURES
    max_processing_time: Optional[float] = None

    def wants(self, feature: FeatureType) -> bool:
        return feature in self.features


@dataclass(frozen=True)
class ResolvedSettings:
    """Capture subsystem's resolved view of a request.

    Attributes:
        request_id: ID of the request these settings resolve.
        live_photo_movie_dimensions: (width, height) of the companion movie,
            (0, 0) when none is captured.
        processing_time_start: Lower bound of expected processing time (sec).
        processing_time_duration: Width of the processing time range (sec).
        photo_dimensions: (width, height) of the final photo.
    """

    request_id: int
    live_photo_movie_dimensions: Tuple[int, int] = (0, 0)
    processing_time_start: float = 0.0
    processing_time_duration: float = 0.0
    photo_dimensions: Tuple[int, int] = (0, 0)

    @property
    def has_live_photo(self) -> bool:
        w, h = self.live_photo_movie_dimensions
        return w > 0 and h > 0

    @property
    def max_processing_time(self) -> float:
        return self.processing_time_start + self.processing_time_duration


@dataclass(frozen=True)
class SegmentationMatte:
    """Per-feature matte as delivered by the capture subsystem.

    Attributes:
        feature: Feature the matte segments.
        pixels: (H, W) or (H, W, 1) uint8/float32 plane, or a packed
            (H, W, 3|4) buffer.
        orientation: Orientation tag carried with the matte. By convention
            this is the photo's tag, not the matte's own.
    """

    feature: FeatureType
    pixels: np.ndarray
    orientation: Orientation = Orientation.UP


@dataclass
class ExtractedFeatureImage:
    """Masked crop of the photo for one feature."""

    feature: FeatureType
    pixels: np.ndarray


@dataclass(frozen=True)
class SavedImage:
    """Metadata record of one persisted image.

    Attributes:
        id: UUID string.
        filename: File name inside the store directory.
        capture_date: Shared timestamp of the capture that produced it.
        feature_type: Feature label, or None for the original photo.
    """

    id: str
    filename: str
    capture_date: datetime
    feature_type: Optional[str] = None

    @property
    def is_original(self) -> bool:
        return self.feature_type is None


@dataclass
class OutputSet:
    """Aggregate result of one finished capture session.

    Attributes:
        request_id: Request this result belongs to.
        original: Canonical (upright) photo, None if never obtained.
        features: Successfully extracted and saved feature images.
        saved: Records of every successful save.
        error: Terminal error, None on success.
        failures: Per-feature errors absorbed during the session.
            Key None refers to the original photo.
    """

    request_id: int
    original: Optional[np.ndarray] = None
    features: List[ExtractedFeatureImage] = field(default_factory=list)
    saved: List[SavedImage] = field(default_factory=list)
    error: Optional[BaseException] = None
    failures: Dict[Optional[FeatureType], BaseException] = field(default_factory=dict)

    @property
    def saved_count(self) -> int:
        return len(self.saved)

    @property
    def ok(self) -> bool:
        return self.error is None


__all__ = [
    "FeatureType",
    "ALL_FEATURES",
    "PhotoFormat",
    "FlashMode",
    "QualityPrioritization",
    "SessionState",
    "CaptureRequest",
    "ResolvedSettings",
    "SegmentationMatte",
    "ExtractedFeatureImage",
    "SavedImage",
    "OutputSet",
]
