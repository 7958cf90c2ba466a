"""
Session value objects: the file descriptor, the location state and the
Session aggregate itself.

All three are frozen; the coordinator replaces the whole Session on every
change, so a reader never sees a half-applied update.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from src.data.schema import CropType


@dataclass(frozen=True)
class FileDescriptor:
    """A picked soil-report document."""
    uri: str
    display_name: str
    mime_type: Optional[str] = None

    def __post_init__(self):
        if not self.uri:
            raise ValueError("File descriptor requires a uri")
        if not self.display_name:
            raise ValueError("File descriptor requires a display name")

    def to_dict(self) -> dict:
        return {
            "uri": self.uri,
            "display_name": self.display_name,
            "mime_type": self.mime_type,
        }


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


class LocationStatus(str, Enum):
    UNRESOLVED = "unresolved"
    PENDING = "pending"
    RESOLVED = "resolved"
    DENIED = "denied"
    FAILED = "failed"


TERMINAL_STATUSES = (LocationStatus.RESOLVED, LocationStatus.DENIED, LocationStatus.FAILED)


@dataclass(frozen=True)
class LocationState:
    """
    Exactly one of Unresolved, Pending, Resolved(lat, lon), Denied or
    Failed(message). Build instances through the classmethods.
    """
    status: LocationStatus = LocationStatus.UNRESOLVED
    coordinates: Optional[Coordinates] = None
    message: Optional[str] = None
    attempt: int = 0

    def __post_init__(self):
        if (self.status is LocationStatus.RESOLVED) != (self.coordinates is not None):
            raise ValueError("Coordinates are present exactly when the location is resolved")
        if self.status is LocationStatus.FAILED and not self.message:
            raise ValueError("A failed location carries a message")

    @classmethod
    def unresolved(cls) -> "LocationState":
        return cls()

    @classmethod
    def pending(cls, attempt: int) -> "LocationState":
        return cls(status=LocationStatus.PENDING, attempt=attempt)

    @classmethod
    def resolved(cls, latitude: float, longitude: float, attempt: int = 0) -> "LocationState":
        return cls(
            status=LocationStatus.RESOLVED,
            coordinates=Coordinates(float(latitude), float(longitude)),
            attempt=attempt,
        )

    @classmethod
    def denied(cls, message: Optional[str] = None, attempt: int = 0) -> "LocationState":
        return cls(
            status=LocationStatus.DENIED,
            message=message or "Permission to access location was denied",
            attempt=attempt,
        )

    @classmethod
    def failed(cls, message: str, attempt: int = 0) -> "LocationState":
        return cls(status=LocationStatus.FAILED, message=message, attempt=attempt)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_resolved(self) -> bool:
        return self.status is LocationStatus.RESOLVED

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "latitude": self.coordinates.latitude if self.coordinates else None,
            "longitude": self.coordinates.longitude if self.coordinates else None,
            "message": self.message,
            "attempt": self.attempt,
        }


@dataclass(frozen=True)
class Session:
    """Inputs collected during one visit to the fertilizer suggestion screen."""
    selected_file: Optional[FileDescriptor] = None
    crop_type: Optional[CropType] = None
    location: LocationState = field(default_factory=LocationState.unresolved)
    review_visible: bool = False

    @property
    def is_reviewable(self) -> bool:
        # The summary is informational and can always be opened
        return True

    @property
    def is_complete(self) -> bool:
        """All three inputs are present: a file, a crop and a resolved location."""
        return (
            self.selected_file is not None
            and self.crop_type is not None
            and self.location.is_resolved
        )

    def evolve(self, **changes) -> "Session":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "selected_file": self.selected_file.to_dict() if self.selected_file else None,
            "crop_type": self.crop_type.value if self.crop_type else None,
            "location": self.location.to_dict(),
            "review_visible": self.review_visible,
            "is_complete": self.is_complete,
        }
