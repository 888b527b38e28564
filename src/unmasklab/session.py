"""Per-capture state machine.

A CaptureSession is created for every capture request and consumes the
capture subsystem's events in order::

    AWAITING_CAPTURE -> EXPOSING -> FINALIZING -> COMPLETED | FAILED

When the capture finishes, one save job for the original photo plus one
extract-then-save job per decoded matte are fanned out to the executor.
The last job to complete finalizes the session: the observer is told the
outcome exactly once, ``future`` resolves with the OutputSet and the
session deregisters itself.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future
from datetime import datetime
from functools import partial
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from unmasklab.codec import decode_photo
from unmasklab.errors import DecodeFailure, MissingPhotoData, SaveFailed, as_error
from unmasklab.events import (
    CaptureEvent,
    CaptureFinished,
    MatteReceived,
    PhotoDataReceived,
    WillBeginCapture,
    WillCapturePhoto,
)
from unmasklab.extractor import RegionExtractor
from unmasklab.matte import MatteDecoder
from unmasklab.observer import CaptureObserver, NullObserver, notify
from unmasklab.orientation import Orientation, mirror_then_rotate
from unmasklab.storage import ImageStore
from unmasklab.types import (
    CaptureRequest,
    ExtractedFeatureImage,
    FeatureType,
    OutputSet,
    ResolvedSettings,
    SavedImage,
    SegmentationMatte,
    SessionState,
)

logger = logging.getLogger(__name__)

_JobResult = Tuple[np.ndarray, SavedImage]


class CaptureSession:
    """State of one in-flight capture.

    Args:
        request: The capture request, including the feature selection
            snapshot.
        store: Persistence gateway for the output images.
        observer: UI notifications. Defaults to a no-op observer.
        decoder: Matte decoder.
        extractor: Region extractor.
        executor: Runs save jobs. None runs them inline on the calling
            thread.
        on_terminal: Called with the request id once the session ends.
        processing_indicator_threshold: Seconds of expected processing
            above which the processing indicator is shown.
    """

    def __init__(
        self,
        request: CaptureRequest,
        store: ImageStore,
        observer: Optional[CaptureObserver] = None,
        decoder: Optional[MatteDecoder] = None,
        extractor: Optional[RegionExtractor] = None,
        executor: Optional[Executor] = None,
        on_terminal: Optional[Callable[[int], None]] = None,
        processing_indicator_threshold: float = 1.0,
    ) -> None:
        self.request = request
        self._store = store
        self._observer = observer if observer is not None else NullObserver()
        self._decoder = decoder if decoder is not None else MatteDecoder()
        self._extractor = extractor if extractor is not None else RegionExtractor()
        self._executor = executor
        self._on_terminal = on_terminal
        self._indicator_threshold = processing_indicator_threshold

        self._lock = threading.RLock()
        self._state = SessionState.AWAITING_CAPTURE
        self._created_at = time.monotonic()
        self._max_processing_time = request.max_processing_time or 0.0
        self._mattes: Dict[FeatureType, np.ndarray] = {}
        self._photo_data: Optional[bytes] = None
        self._photo: Optional[np.ndarray] = None
        self._pending = 0
        self._output = OutputSet(request_id=request.request_id)

        self.future: Future = Future()

    # ── properties ──

    @property
    def request_id(self) -> int:
        return self.request.request_id

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def age(self) -> float:
        """Seconds since the session was created."""
        return time.monotonic() - self._created_at

    @property
    def max_processing_time(self) -> float:
        return self._max_processing_time

    @property
    def decoded_features(self) -> List[FeatureType]:
        with self._lock:
            return list(self._mattes)

    def wait(self, timeout: Optional[float] = None) -> OutputSet:
        """Block until the session ends and return its output.

        Raises:
            concurrent.futures.TimeoutError: If it does not end in time.
        """
        return self.future.result(timeout)

    # ── event entry points ──

    def handle(self, event: CaptureEvent) -> None:
        """Dispatch one capture subsystem event."""
        if isinstance(event, WillBeginCapture):
            self.will_begin_capture(event.resolved)
        elif isinstance(event, WillCapturePhoto):
            self.will_capture_photo(event.resolved)
        elif isinstance(event, MatteReceived):
            self.matte_received(event.matte, event.photo_orientation)
        elif isinstance(event, PhotoDataReceived):
            self.photo_data_received(event.data, event.error)
        elif isinstance(event, CaptureFinished):
            self.capture_finished(event.resolved, event.error)
        else:
            raise TypeError(f"Unknown capture event: {type(event).__name__}")

    def will_begin_capture(self, resolved: ResolvedSettings) -> None:
        with self._lock:
            if self._ignored("will_begin_capture"):
                return
            if resolved.max_processing_time > 0:
                self._max_processing_time = resolved.max_processing_time
            self._state = SessionState.EXPOSING

        logger.debug(
            "Request %d: capture beginning (live_photo=%s, max_processing=%.2fs)",
            self.request_id, resolved.has_live_photo, self._max_processing_time,
        )
        if resolved.has_live_photo:
            notify(self._observer, "on_capture_beginning_live_photo", True)

    def will_capture_photo(self, resolved: ResolvedSettings) -> None:
        with self._lock:
            if self._ignored("will_capture_photo"):
                return
            show_indicator = self._max_processing_time > self._indicator_threshold

        notify(self._observer, "on_shutter_animation")
        if show_indicator:
            notify(self._observer, "on_processing_indicator", True)

    def matte_received(
        self,
        matte: SegmentationMatte,
        photo_orientation: Optional[Orientation] = None,
    ) -> None:
        """Decode and keep a matte, if its feature was requested."""
        with self._lock:
            if self._ignored("matte_received"):
                return
            if not self.request.wants(matte.feature):
                logger.debug(
                    "Request %d: skipping unrequested %s matte",
                    self.request_id, matte.feature.label,
                )
                return

            try:
                image = self._decoder.decode(matte, photo_orientation)
            except DecodeFailure as e:
                logger.warning(
                    "Request %d: %s matte could not be decoded: %s",
                    self.request_id, matte.feature.label, e,
                )
                self._output.failures[matte.feature] = e
                return

            if matte.feature in self._mattes:
                logger.debug(
                    "Request %d: replacing %s matte", self.request_id, matte.feature.label,
                )
            self._output.failures.pop(matte.feature, None)
            self._mattes[matte.feature] = image

    def photo_data_received(self, data: Optional[bytes], error: object = None) -> None:
        with self._lock:
            if self._ignored("photo_data_received"):
                return

        notify(self._observer, "on_processing_indicator", False)

        err = as_error(error)
        if err is not None:
            logger.error("Request %d: photo processing failed: %s", self.request_id, err)
            self._terminate(SessionState.FAILED, err)
            return
        if not data:
            logger.warning("Request %d: photo callback carried no data", self.request_id)
            return

        try:
            stored = decode_photo(data)
            photo = mirror_then_rotate(stored)
        except DecodeFailure as e:
            logger.error("Request %d: photo could not be decoded: %s", self.request_id, e)
            self._terminate(SessionState.FAILED, e)
            return

        with self._lock:
            if self._state.is_terminal:
                return
            self._photo_data = data
            self._photo = photo
        logger.debug("Request %d: photo decoded %s", self.request_id, photo.shape)

    def capture_finished(
        self, resolved: Optional[ResolvedSettings] = None, error: object = None,
    ) -> None:
        """Finish the capture: fail, or fan out the save jobs."""
        with self._lock:
            if self._ignored("capture_finished"):
                return

            err = as_error(error)
            if err is None and self._photo is None:
                err = MissingPhotoData()
            if err is None:
                self._state = SessionState.FINALIZING
                photo = self._photo
                jobs: List[Tuple[Optional[FeatureType], Optional[np.ndarray]]] = [(None, None)]
                jobs.extend(self._mattes.items())
                self._pending = len(jobs)

        if err is not None:
            logger.error("Request %d: capture failed: %s", self.request_id, err)
            self._terminate(SessionState.FAILED, err)
            return

        capture_date = datetime.now().astimezone()
        logger.debug("Request %d: issuing %d save jobs", self.request_id, len(jobs))
        for feature, matte in jobs:
            future = self._submit(self._run_job, feature, matte, photo, capture_date)
            future.add_done_callback(partial(self._job_done, feature))

    def fail(self, error: BaseException) -> bool:
        """End the session with an error unless it already ended.

        Save jobs still running finish in the background; their results
        are discarded.

        Returns:
            True if this call ended the session.
        """
        return self._terminate(SessionState.FAILED, error)

    # ── fan-out ──

    def _submit(self, fn: Callable[..., _JobResult], *args) -> Future:
        if self._executor is not None:
            try:
                return self._executor.submit(fn, *args)
            except RuntimeError as e:
                # executor already shut down
                logger.warning("Request %d: save job rejected: %s", self.request_id, e)
                future: Future = Future()
                future.set_exception(e)
                return future

        future = Future()
        try:
            future.set_result(fn(*args))
        except Exception as e:
            future.set_exception(e)
        return future

    def _run_job(
        self,
        feature: Optional[FeatureType],
        matte: Optional[np.ndarray],
        photo: np.ndarray,
        capture_date: datetime,
    ) -> _JobResult:
        image = photo if feature is None else self._extractor.extract(matte, photo)
        record = self._store.save(image, feature, capture_date)
        return image, record

    def _job_done(self, feature: Optional[FeatureType], future: Future) -> None:
        label = feature.label if feature is not None else "original"
        error = future.exception()
        with self._lock:
            self._pending -= 1
            if self._state.is_terminal:
                logger.debug(
                    "Request %d: discarding late %s save result", self.request_id, label,
                )
                return

            if error is not None:
                logger.warning(
                    "Request %d: %s save failed: %s", self.request_id, label, error,
                )
                self._output.failures[feature] = error
            else:
                image, record = future.result()
                self._output.saved.append(record)
                if feature is not None:
                    self._output.features.append(ExtractedFeatureImage(feature, image))

            if self._pending > 0:
                return
            saved = self._output.saved_count

        if saved > 0:
            self._terminate(SessionState.COMPLETED, None)
        else:
            self._terminate(SessionState.FAILED, SaveFailed())

    # ── terminal ──

    def _ignored(self, event: str) -> bool:
        if self._state.is_terminal:
            logger.warning(
                "Request %d: ignoring %s after %s",
                self.request_id, event, self._state.value,
            )
            return True
        return False

    def _terminate(self, state: SessionState, error: Optional[BaseException]) -> bool:
        with self._lock:
            if self._state.is_terminal:
                return False
            self._state = state
            self._mattes.clear()
            self._output.original = self._photo
            self._output.error = error
            output = self._output

        if error is None:
            logger.info(
                "Request %d completed: %d image(s) saved", self.request_id, output.saved_count,
            )
        else:
            logger.info(
                "Request %d failed after %d save(s): %s",
                self.request_id, output.saved_count, error,
            )

        notify(self._observer, "on_capture_completed", output.saved_count, error)
        if self._on_terminal is not None:
            self._on_terminal(self.request_id)
        self.future.set_result(output)
        return True


__all__ = ["CaptureSession"]
