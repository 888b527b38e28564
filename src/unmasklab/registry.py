"""Registry of in-flight capture sessions."""

from __future__ import annotations

import itertools
import logging
import threading
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from unmasklab.session import CaptureSession

logger = logging.getLogger(__name__)


class InFlightRegistry:
    """Thread-safe map of request id to session.

    Request ids are allocated from a monotonic counter, so two concurrent
    captures never share one.
    """

    def __init__(self, first_id: int = 1) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[int, "CaptureSession"] = {}
        self._counter = itertools.count(first_id)

    def next_request_id(self) -> int:
        with self._lock:
            return next(self._counter)

    def insert(self, session: "CaptureSession") -> None:
        """Register a session.

        Raises:
            KeyError: If a session with the same request id is in flight.
        """
        request_id = session.request_id
        with self._lock:
            if request_id in self._sessions:
                raise KeyError(f"Request {request_id} is already in flight")
            self._sessions[request_id] = session
        logger.debug("Registered request %d (%d in flight)", request_id, len(self))

    def remove(self, request_id: int) -> Optional["CaptureSession"]:
        """Deregister a session. Removing an unknown id is a no-op."""
        with self._lock:
            session = self._sessions.pop(request_id, None)
        if session is not None:
            logger.debug("Deregistered request %d", request_id)
        return session

    def get(self, request_id: int) -> Optional["CaptureSession"]:
        with self._lock:
            return self._sessions.get(request_id)

    def sessions(self) -> List["CaptureSession"]:
        with self._lock:
            return list(self._sessions.values())

    @property
    def ids(self) -> List[int]:
        with self._lock:
            return sorted(self._sessions)

    def __contains__(self, request_id: int) -> bool:
        with self._lock:
            return request_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["InFlightRegistry"]
