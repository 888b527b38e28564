"""UI-facing notifications of a capture session."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class CaptureObserver(Protocol):
    """Receives the user-visible milestones of one capture.

    ``on_capture_completed`` is called exactly once per capture, after
    every other notification.
    """

    def on_capture_beginning_live_photo(self, active: bool) -> None: ...

    def on_shutter_animation(self) -> None: ...

    def on_processing_indicator(self, visible: bool) -> None: ...

    def on_capture_completed(
        self, saved_count: int, error: Optional[BaseException],
    ) -> None: ...


class NullObserver:
    """Observer that ignores every notification."""

    def on_capture_beginning_live_photo(self, active: bool) -> None:
        pass

    def on_shutter_animation(self) -> None:
        pass

    def on_processing_indicator(self, visible: bool) -> None:
        pass

    def on_capture_completed(
        self, saved_count: int, error: Optional[BaseException],
    ) -> None:
        pass


class CallbackObserver:
    """Adapts plain callables to the CaptureObserver protocol.

    Any callback left as None is skipped.

    Example:
        >>> observer = CallbackObserver(
        ...     on_capture_completed=lambda n, err: print(n, err),
        ... )
    """

    def __init__(
        self,
        on_capture_beginning_live_photo: Optional[Callable[[bool], None]] = None,
        on_shutter_animation: Optional[Callable[[], None]] = None,
        on_processing_indicator: Optional[Callable[[bool], None]] = None,
        on_capture_completed: Optional[
            Callable[[int, Optional[BaseException]], None]
        ] = None,
    ) -> None:
        self._live_photo = on_capture_beginning_live_photo
        self._shutter = on_shutter_animation
        self._indicator = on_processing_indicator
        self._completed = on_capture_completed

    def on_capture_beginning_live_photo(self, active: bool) -> None:
        if self._live_photo is not None:
            self._live_photo(active)

    def on_shutter_animation(self) -> None:
        if self._shutter is not None:
            self._shutter()

    def on_processing_indicator(self, visible: bool) -> None:
        if self._indicator is not None:
            self._indicator(visible)

    def on_capture_completed(
        self, saved_count: int, error: Optional[BaseException],
    ) -> None:
        if self._completed is not None:
            self._completed(saved_count, error)


def notify(observer: CaptureObserver, method: str, *args) -> None:
    """Call one observer method; exceptions are logged, not raised."""
    try:
        getattr(observer, method)(*args)
    except Exception:
        logger.exception("Observer %s.%s failed", type(observer).__name__, method)


__all__ = ["CaptureObserver", "NullObserver", "CallbackObserver", "notify"]
