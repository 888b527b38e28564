"""Shared fixtures for unmasklab tests.

All images are synthetic numpy buffers; NO camera or segmentation model needed.
"""

import threading
import uuid
from datetime import datetime

import cv2
import numpy as np
import pytest

from unmasklab.errors import PersistenceFailure
from unmasklab.matte import MatteDecoder
from unmasklab.types import FeatureType, SavedImage, SegmentationMatte


class RecordingStore:
    """In-memory ImageStore that records every save.

    Labels listed in ``fail_labels`` raise PersistenceFailure
    ("Original" stands for the original photo).
    """

    def __init__(self, fail_labels=()):
        self.fail_labels = set(fail_labels)
        self.saves = []
        self._lock = threading.Lock()

    def save(self, image, feature_type, capture_date):
        label = feature_type.label if isinstance(feature_type, FeatureType) else feature_type
        if (label or "Original") in self.fail_labels:
            raise PersistenceFailure(f"disk full ({label or 'Original'})")
        record = SavedImage(
            id=str(uuid.uuid4()),
            filename=f"{uuid.uuid4()}.jpg",
            capture_date=capture_date,
            feature_type=label,
        )
        with self._lock:
            self.saves.append((image, record))
        return record

    @property
    def labels(self):
        return sorted((r.feature_type or "Original") for _, r in self.saves)


class RecordingObserver:
    """CaptureObserver that records notifications in order."""

    def __init__(self):
        self.calls = []

    def on_capture_beginning_live_photo(self, active):
        self.calls.append(("live_photo", active))

    def on_shutter_animation(self):
        self.calls.append(("shutter",))

    def on_processing_indicator(self, visible):
        self.calls.append(("indicator", visible))

    def on_capture_completed(self, saved_count, error):
        self.calls.append(("completed", saved_count, error))

    @property
    def completions(self):
        return [c for c in self.calls if c[0] == "completed"]


class CountingDecoder(MatteDecoder):
    """MatteDecoder that counts decode calls per feature."""

    def __init__(self):
        super().__init__()
        self.counts = {}

    def decode(self, matte, photo_orientation=None):
        self.counts[matte.feature] = self.counts.get(matte.feature, 0) + 1
        return super().decode(matte, photo_orientation)


@pytest.fixture
def photo():
    """Deterministic 16x24 BGR photo with no zero pixels."""
    rng = np.random.default_rng(42)
    return rng.integers(1, 256, size=(16, 24, 3), dtype=np.uint8)


@pytest.fixture
def photo_bytes(photo):
    """PNG-encoded photo (lossless, no EXIF)."""
    ok, buf = cv2.imencode(".png", photo)
    assert ok
    return buf.tobytes()


@pytest.fixture
def make_matte():
    """Factory for uniform segmentation mattes."""
    def _make(feature=FeatureType.SKIN, value=1.0, shape=(8, 8)):
        pixels = np.full(shape, value, dtype=np.float32)
        return SegmentationMatte(feature=feature, pixels=pixels)
    return _make


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def counting_decoder():
    return CountingDecoder()


@pytest.fixture
def capture_date():
    return datetime(2024, 5, 1, 12, 30, 0).astimezone()


@pytest.fixture
def make_store():
    """Factory for RecordingStore instances with failing labels."""
    def _make(*fail_labels):
        return RecordingStore(fail_labels)
    return _make
