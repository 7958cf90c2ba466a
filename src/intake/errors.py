"""
Error taxonomy and user-visible notices for the intake session.

Adapters raise the exceptions below; the coordinator turns them into
session state plus a Notice for the host to display. Cancelling the file
picker is not an error and has no exception here.
"""

from dataclasses import dataclass
from enum import Enum


class IntakeError(Exception):
    """Base class for acquisition errors."""


class FileAcquisitionError(IntakeError):
    """The file picker failed (not a user cancellation)."""


class LocationAcquisitionError(IntakeError):
    """Positioning failed: no capability, timeout, or provider error."""


class LocationPermissionDenied(LocationAcquisitionError):
    """The user refused access to the device location."""


class FileOpenUnavailable(IntakeError):
    """The selected file cannot be opened (or no file is selected)."""


class InvalidCropError(ValueError):
    """A crop value outside the catalog reached the session boundary."""


class NoticeKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    FILE_ACQUISITION_FAILED = "file_acquisition_failed"
    LOCATION_ACQUISITION_FAILED = "location_acquisition_failed"
    FILE_OPEN_UNAVAILABLE = "file_open_unavailable"


@dataclass(frozen=True)
class Notice:
    """A condition the user should be told about."""
    kind: NoticeKind
    message: str

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}
