"""unmasklab - Capture-completion pipeline for portrait feature extraction.

Orients the captured photo, decodes per-feature segmentation mattes,
cuts each selected feature out of the photo and saves the original plus
one image per feature, reporting a single outcome per capture.

Quick Start:
    >>> from unmasklab import CaptureCoordinator, CaptureConfig, FeatureType
    >>> coordinator = CaptureCoordinator(CaptureConfig(storage_dir="./photos"))
    >>> session = coordinator.begin(features={FeatureType.SKIN, FeatureType.HAIR})
    >>> session.will_begin_capture(resolved)
    >>> session.matte_received(skin_matte)
    >>> session.photo_data_received(jpeg_bytes)
    >>> session.capture_finished(resolved)
    >>> print(f"Saved: {session.wait().saved_count}")
"""

from unmasklab.types import (
    FeatureType,
    ALL_FEATURES,
    PhotoFormat,
    FlashMode,
    QualityPrioritization,
    SessionState,
    CaptureRequest,
    ResolvedSettings,
    SegmentationMatte,
    ExtractedFeatureImage,
    SavedImage,
    OutputSet,
)
from unmasklab.errors import (
    CaptureError,
    DecodeFailure,
    MissingPhotoData,
    CaptureSubsystemError,
    PersistenceFailure,
    SaveFailed,
    CaptureTimeout,
)
from unmasklab.orientation import Orientation, normalize, denormalize, mirror_then_rotate
from unmasklab.matte import MatteDecoder
from unmasklab.extractor import RegionExtractor, extract_region
from unmasklab.observer import CaptureObserver, CallbackObserver, NullObserver
from unmasklab.storage import ImageStore, LocalImageStore
from unmasklab.preferences import FeaturePreferences
from unmasklab.config import CaptureConfig
from unmasklab.session import CaptureSession
from unmasklab.coordinator import CaptureCoordinator

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
    "CaptureError",
    "DecodeFailure",
    "MissingPhotoData",
    "CaptureSubsystemError",
    "PersistenceFailure",
    "SaveFailed",
    "CaptureTimeout",
    "Orientation",
    "normalize",
    "denormalize",
    "mirror_then_rotate",
    "MatteDecoder",
    "RegionExtractor",
    "extract_region",
    "CaptureObserver",
    "CallbackObserver",
    "NullObserver",
    "ImageStore",
    "LocalImageStore",
    "FeaturePreferences",
    "CaptureConfig",
    "CaptureSession",
    "CaptureCoordinator",
]
