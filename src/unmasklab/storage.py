"""Persistence gateway: sandboxed image files + JSON metadata.

Each saved image is written as ``{uuid}.jpg`` inside the store directory and
recorded in ``images_metadata.json``. Images from one capture share the same
``capture_date`` so they can be grouped together.

Example:
    >>> store = LocalImageStore(tmp_dir)
    >>> record = store.save(image, "Skin", captured_at)
    >>> store.load_image(record).shape
"""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol, Union

import cv2
import numpy as np

from unmasklab.codec import encode_jpeg
from unmasklab.errors import DecodeFailure, PersistenceFailure
from unmasklab.types import FeatureType, SavedImage

logger = logging.getLogger(__name__)

METADATA_FILENAME = "images_metadata.json"
APP_VERSION = "0.1.0"

FeatureLabel = Union[FeatureType, str, None]


class ImageStore(Protocol):
    """Protocol for persistence gateways used by capture sessions."""

    def save(
        self,
        image: np.ndarray,
        feature_type: FeatureLabel,
        capture_date: datetime,
    ) -> SavedImage:
        """Persist one image.

        Args:
            image: BGR or BGRA image.
            feature_type: Feature label, or None for the original photo.
            capture_date: Shared timestamp of the capture.

        Returns:
            Metadata record of the saved image.

        Raises:
            PersistenceFailure: If the image could not be saved.
        """
        ...


@dataclass
class ImageGroup:
    """Saved images sharing a calendar day, newest first."""

    day: date
    images: List[SavedImage] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.day.isoformat()


def _label(feature_type: FeatureLabel) -> Optional[str]:
    if feature_type is None:
        return None
    if isinstance(feature_type, FeatureType):
        return feature_type.label
    return FeatureType.parse(feature_type).label


class LocalImageStore:
    """Image store backed by a local directory.

    Safe to call from several save threads at once: image files are
    written independently, metadata updates are serialized.

    Args:
        root: Store directory, created on first use.
        jpeg_quality: JPEG quality (0-100) of written images.
    """

    def __init__(self, root: Union[str, Path], jpeg_quality: int = 90) -> None:
        self.root = Path(root)
        self.jpeg_quality = jpeg_quality
        self._lock = threading.Lock()
        self.root.mkdir(parents=True, exist_ok=True)

    @property
    def metadata_path(self) -> Path:
        return self.root / METADATA_FILENAME

    # ── save / load ──

    def save(
        self,
        image: np.ndarray,
        feature_type: FeatureLabel = None,
        capture_date: Optional[datetime] = None,
    ) -> SavedImage:
        label = _label(feature_type)
        if capture_date is None:
            capture_date = datetime.now().astimezone()

        image_id = str(uuid.uuid4())
        filename = f"{image_id}.jpg"
        try:
            data = encode_jpeg(image, self.jpeg_quality)
        except DecodeFailure as e:
            raise PersistenceFailure(f"Could not encode {label or 'original'} image: {e}") from e

        path = self.root / filename
        try:
            path.write_bytes(data)
        except OSError as e:
            raise PersistenceFailure(f"Could not write {path}: {e}") from e

        record = SavedImage(
            id=image_id,
            filename=filename,
            capture_date=capture_date,
            feature_type=label,
        )
        with self._lock:
            records = self._read_metadata()
            records.append(record)
            try:
                self._write_metadata(records)
            except OSError as e:
                path.unlink(missing_ok=True)
                raise PersistenceFailure(f"Could not update metadata: {e}") from e

        logger.info("Saved image %s (feature=%s)", filename, label or "Original")
        return record

    def load_image(self, record: SavedImage) -> Optional[np.ndarray]:
        """Load the pixels of a saved image, None if the file is gone."""
        path = self.root / record.filename
        if not path.exists():
            return None
        return cv2.imread(str(path), cv2.IMREAD_COLOR)

    def load_all(self) -> List[SavedImage]:
        with self._lock:
            return self._read_metadata()

    def group_by_date(self) -> List[ImageGroup]:
        """Group records by local calendar day; groups and images newest first."""
        groups: dict[date, ImageGroup] = {}
        for record in self.load_all():
            day = record.capture_date.astimezone().date()
            groups.setdefault(day, ImageGroup(day=day)).images.append(record)
        for group in groups.values():
            group.images.sort(key=lambda r: r.capture_date, reverse=True)
        return sorted(groups.values(), key=lambda g: g.day, reverse=True)

    # ── delete ──

    def delete(self, record: SavedImage) -> bool:
        """Delete one image and its record. Returns False if it did not exist."""
        with self._lock:
            records = self._read_metadata()
            remaining = [r for r in records if r.id != record.id]
            path = self.root / record.filename
            if len(remaining) == len(records) and not path.exists():
                return False
            path.unlink(missing_ok=True)
            self._write_metadata(remaining)
        logger.info("Deleted image %s", record.filename)
        return True

    def delete_all(self) -> int:
        """Delete every stored image. Returns the number of records removed."""
        with self._lock:
            records = self._read_metadata()
            for entry in self.root.iterdir():
                if entry.is_file():
                    entry.unlink()
        logger.info("Deleted all images (%d records)", len(records))
        return len(records)

    # ── info ──

    def image_count(self) -> int:
        return len(self.load_all())

    def storage_used(self) -> int:
        """Total size in bytes of the files in the store directory."""
        return sum(p.stat().st_size for p in self.root.iterdir() if p.is_file())

    # ── metadata ──

    def _read_metadata(self) -> List[SavedImage]:
        path = self.metadata_path
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            entries = data["images"] if isinstance(data, dict) else data
            return [_dict_to_record(entry) for entry in entries]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Unreadable image metadata %s: %s", path, e)
            return []

    def _write_metadata(self, records: List[SavedImage]) -> None:
        data = {
            "images": [_record_to_dict(r) for r in records],
            "_version": {
                "app": "unmasklab",
                "app_version": APP_VERSION,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
        }
        tmp = self.metadata_path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.metadata_path)


def _record_to_dict(record: SavedImage) -> dict:
    return {
        "id": record.id,
        "filename": record.filename,
        "capture_date": record.capture_date.isoformat(),
        "feature_type": record.feature_type,
    }


def _dict_to_record(data: dict) -> SavedImage:
    return SavedImage(
        id=data["id"],
        filename=data["filename"],
        capture_date=datetime.fromisoformat(data["capture_date"]),
        feature_type=data.get("feature_type"),
    )


__all__ = ["ImageStore", "ImageGroup", "LocalImageStore", "METADATA_FILENAME"]
