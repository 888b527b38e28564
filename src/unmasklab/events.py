"""Capture subsystem events.

One record per callback of the capture subsystem, in delivery order:
WillBeginCapture, WillCapturePhoto, MatteReceived (0..n),
PhotoDataReceived, CaptureFinished. ``CaptureSession.handle`` dispatches
them to the matching entry point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from unmasklab.orientation import Orientation
from unmasklab.types import ResolvedSettings, SegmentationMatte


@dataclass(frozen=True)
class WillBeginCapture:
    resolved: ResolvedSettings


@dataclass(frozen=True)
class WillCapturePhoto:
    resolved: ResolvedSettings


@dataclass(frozen=True)
class MatteReceived:
    """A segmentation matte for one feature.

    Attributes:
        matte: Raw matte.
        photo_orientation: Orientation tag of the photo, if known.
            Falls back to the matte's own tag.
    """

    matte: SegmentationMatte
    photo_orientation: Optional[Orientation] = None


@dataclass(frozen=True)
class PhotoDataReceived:
    """Encoded photo bytes, or the error that prevented them."""

    data: Optional[bytes] = None
    error: Optional[Union[BaseException, str]] = None


@dataclass(frozen=True)
class CaptureFinished:
    """Last event of every capture."""

    resolved: Optional[ResolvedSettings] = None
    error: Optional[Union[BaseException, str]] = None


CaptureEvent = Union[
    WillBeginCapture,
    WillCapturePhoto,
    MatteReceived,
    PhotoDataReceived,
    CaptureFinished,
]


__all__ = [
    "WillBeginCapture",
    "WillCapturePhoto",
    "MatteReceived",
    "PhotoDataReceived",
    "CaptureFinished",
    "CaptureEvent",
]
