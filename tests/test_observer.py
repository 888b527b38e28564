"""Tests for observer adapters."""

import logging

from unmasklab.observer import CallbackObserver, NullObserver, notify


class TestCallbackObserver:
    def test_forwards(self):
        calls = []
        observer = CallbackObserver(
            on_capture_beginning_live_photo=lambda active: calls.append(("live", active)),
            on_shutter_animation=lambda: calls.append(("shutter",)),
            on_processing_indicator=lambda visible: calls.append(("indicator", visible)),
            on_capture_completed=lambda n, err: calls.append(("completed", n, err)),
        )
        observer.on_capture_beginning_live_photo(True)
        observer.on_shutter_animation()
        observer.on_processing_indicator(False)
        observer.on_capture_completed(2, None)

        assert calls == [
            ("live", True), ("shutter",), ("indicator", False), ("completed", 2, None),
        ]

    def test_missing_callbacks_skipped(self):
        observer = CallbackObserver()
        observer.on_shutter_animation()
        observer.on_capture_completed(0, None)


class TestNotify:
    def test_swallows_and_logs(self, caplog):
        def boom():
            raise RuntimeError("ui gone")

        with caplog.at_level(logging.ERROR, logger="unmasklab.observer"):
            notify(CallbackObserver(on_shutter_animation=boom), "on_shutter_animation")

        assert "on_shutter_animation failed" in caplog.text

    def test_null_observer(self):
        notify(NullObserver(), "on_capture_completed", 1, None)
