"""User feature selection shared between the UI and the capture path."""

import threading
from typing import FrozenSet, Iterable, Optional

from unmasklab.types import ALL_FEATURES, FeatureType


class FeaturePreferences:
    """Mutable set of selected feature types, all selected by default.

    The UI mutates it; each capture reads one immutable snapshot when its
    request is created.
    """

    def __init__(self, selected: Optional[Iterable[FeatureType]] = None) -> None:
        self._lock = threading.Lock()
        self._selected = set(ALL_FEATURES if selected is None else selected)

    def snapshot(self) -> FrozenSet[FeatureType]:
        with self._lock:
            return frozenset(self._selected)

    def is_selected(self, feature: FeatureType) -> bool:
        with self._lock:
            return feature in self._selected

    def toggle(self, feature: FeatureType) -> bool:
        """Flip one feature; return whether it is selected afterwards."""
        with self._lock:
            if feature in self._selected:
                self._selected.discard(feature)
                return False
            self._selected.add(feature)
            return True

    def select(self, features: Iterable[FeatureType]) -> None:
        with self._lock:
            self._selected = set(features)

    def select_all(self) -> None:
        self.select(ALL_FEATURES)

    @property
    def all_selected(self) -> bool:
        with self._lock:
            return len(self._selected) == len(ALL_FEATURES)


__all__ = ["FeaturePreferences"]
