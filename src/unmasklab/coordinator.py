"""Capture coordinator: creates sessions and owns the shared resources.

Example:
    >>> with CaptureCoordinator(CaptureConfig(storage_dir="./photos")) as coord:
    ...     session = coord.begin(features={FeatureType.SKIN})
    ...     session.will_begin_capture(resolved)
    ...     ...
    ...     session.capture_finished(resolved)
    ...     output = session.wait(timeout=10)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from unmasklab.config import CaptureConfig
from unmasklab.errors import CaptureTimeout
from unmasklab.extractor import RegionExtractor
from unmasklab.matte import MatteDecoder
from unmasklab.observer import CaptureObserver
from unmasklab.preferences import FeaturePreferences
from unmasklab.registry import InFlightRegistry
from unmasklab.session import CaptureSession
from unmasklab.storage import ImageStore, LocalImageStore
from unmasklab.types import (
    CaptureRequest,
    FeatureType,
    FlashMode,
    PhotoFormat,
    QualityPrioritization,
)

logger = logging.getLogger(__name__)


class CaptureCoordinator:
    """Creates capture sessions and tracks the ones in flight.

    Every session shares the coordinator's store, decoder, extractor and
    save executor. A session stays registered from ``begin`` until it
    reaches a terminal state.

    Args:
        config: Pipeline settings. Defaults to ``CaptureConfig.from_env()``.
        store: Persistence gateway. Defaults to a LocalImageStore in
            ``config.resolved_storage_dir``.
        preferences: Feature selection read when a request is created.
        decoder: Matte decoder.
        extractor: Region extractor. Defaults to one built from the config.
    """

    def __init__(
        self,
        config: Optional[CaptureConfig] = None,
        store: Optional[ImageStore] = None,
        preferences: Optional[FeaturePreferences] = None,
        decoder: Optional[MatteDecoder] = None,
        extractor: Optional[RegionExtractor] = None,
    ) -> None:
        self.config = config if config is not None else CaptureConfig.from_env()
        self.store = store if store is not None else LocalImageStore(
            self.config.resolved_storage_dir, jpeg_quality=self.config.jpeg_quality,
        )
        self.preferences = preferences if preferences is not None else FeaturePreferences()
        self.decoder = decoder if decoder is not None else MatteDecoder()
        self.extractor = extractor if extractor is not None else RegionExtractor(
            sensitivity=self.config.sensitivity,
            interpolation=self.config.resample_interpolation,
        )
        self.registry = InFlightRegistry()

        self._executor: Optional[ThreadPoolExecutor] = None
        if self.config.max_save_workers > 0:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.max_save_workers,
                thread_name_prefix="unmasklab-save",
            )

    def begin(
        self,
        features: Optional[Iterable[FeatureType]] = None,
        photo_format: PhotoFormat = PhotoFormat.HEIC,
        flash_mode: FlashMode = FlashMode.AUTO,
        quality: QualityPrioritization = QualityPrioritization.BALANCED,
        observer: Optional[CaptureObserver] = None,
        max_processing_time: Optional[float] = None,
    ) -> CaptureSession:
        """Create and register a session for a new capture.

        Args:
            features: Features to extract. Defaults to a snapshot of the
                current preferences.
            photo_format: Requested photo container.
            flash_mode: Flash setting.
            quality: Quality prioritization hint.
            observer: UI notifications for this capture.
            max_processing_time: Processing time hint in seconds.

        Returns:
            The registered session, ready for capture events.
        """
        selected = (
            self.preferences.snapshot() if features is None else frozenset(features)
        )
        request = CaptureRequest(
            request_id=self.registry.next_request_id(),
            photo_format=photo_format,
            flash_mode=flash_mode,
            quality=quality,
            features=selected,
            max_processing_time=max_processing_time,
        )
        session = CaptureSession(
            request,
            store=self.store,
            observer=observer,
            decoder=self.decoder,
            extractor=self.extractor,
            executor=self._executor,
            on_terminal=self.registry.remove,
            processing_indicator_threshold=self.config.processing_indicator_threshold_sec,
        )
        self.registry.insert(session)
        logger.info(
            "Request %d started (features=%s)",
            request.request_id, ",".join(sorted(f.label for f in selected)) or "none",
        )
        return session

    def get(self, request_id: int) -> Optional[CaptureSession]:
        return self.registry.get(request_id)

    @property
    def in_flight(self) -> List[int]:
        return self.registry.ids

    def reap_stale(self, max_age: float) -> List[int]:
        """Fail sessions that have been in flight longer than ``max_age`` seconds.

        Returns:
            Request ids of the sessions that were failed.
        """
        reaped = []
        for session in self.registry.sessions():
            if session.age <= max_age:
                continue
            error = CaptureTimeout(
                f"Request {session.request_id} not finished after {session.age:.1f}s"
            )
            if session.fail(error):
                logger.warning("Reaped stale request %d", session.request_id)
                reaped.append(session.request_id)
        return reaped

    def shutdown(self, wait: bool = True) -> None:
        """Stop the save executor. Pending save jobs finish when ``wait``."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
        if len(self.registry):
            logger.warning("Shutting down with %d request(s) in flight", len(self.registry))

    def __enter__(self) -> "CaptureCoordinator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()


__all__ = ["CaptureCoordinator"]
