"""Error taxonomy for the capture pipeline.

Session-fatal: DecodeFailure on the main photo, MissingPhotoData,
CaptureSubsystemError, SaveFailed, CaptureTimeout.
Absorbed per feature: DecodeFailure on a matte, PersistenceFailure.
"""

from typing import Optional


class CaptureError(Exception):
    """Base class for unmasklab errors."""


class DecodeFailure(CaptureError):
    """Bytes or a pixel buffer could not be turned into an image."""


class MissingPhotoData(CaptureError):
    """The capture finished without photo data ever being received."""

    def __init__(self, message: str = "No photo data") -> None:
        super().__init__(message)


class CaptureSubsystemError(CaptureError):
    """Error reported by the capture subsystem as a plain message.

    Native exceptions are propagated as-is; this wrapper only exists for
    subsystems that report errors as strings or codes.
    """

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class PersistenceFailure(CaptureError):
    """A single save call failed."""


class SaveFailed(CaptureError):
    """No image of the session could be saved."""

    def __init__(self, message: str = "Failed to save images") -> None:
        super().__init__(message)


class CaptureTimeout(CaptureError):
    """Session was reaped before the capture subsystem finished it."""


def as_error(error: object) -> Optional[BaseException]:
    """Normalize an error reported by the capture subsystem.

    Exceptions are returned unchanged; strings are wrapped in
    CaptureSubsystemError; None stays None.
    """
    if error is None or isinstance(error, BaseException):
        return error
    return CaptureSubsystemError(str(error))


__all__ = [
    "CaptureError",
    "DecodeFailure",
    "MissingPhotoData",
    "CaptureSubsystemError",
    "PersistenceFailure",
    "SaveFailed",
    "CaptureTimeout",
    "as_error",
]
