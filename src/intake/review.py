"""
Read-only rendering of a Session for the review ("Details") panel.
"""

from dataclasses import dataclass, asdict
from typing import Optional

from src.intake.platform import Platform
from src.intake.session import LocationStatus, Session

GOOGLE_MAPS_URL = "https://www.google.com/maps?q={lat},{lon}"

NO_FILE_TEXT = "No file selected"
NO_CROP_TEXT = "Not selected"

LOCATION_PLACEHOLDERS = {
    LocationStatus.UNRESOLVED: "Location not requested",
    LocationStatus.PENDING: "Fetching location...",
}


def map_url(latitude: float, longitude: float) -> str:
    """Link that shows the coordinates on Google Maps."""
    return GOOGLE_MAPS_URL.format(lat=latitude, lon=longitude)


@dataclass(frozen=True)
class ReviewSummary:
    file_line: str
    crop_line: str
    location_line: str
    location_status: str
    map_url: Optional[str]
    is_complete: bool
    review_visible: bool

    def to_dict(self) -> dict:
        return asdict(self)

    def lines(self):
        return [
            f"Selected file: {self.file_line}",
            f"Crop Type: {self.crop_line}",
            f"Location: {self.location_line}",
        ]


def render_review(session: Session, platform: Platform) -> ReviewSummary:
    """
    Summarize a session snapshot.

    On the web the resolved location is offered as a map link; natively the
    coordinate pair is shown. Denied and failed locations show their message.
    """
    location = session.location
    link = None
    if location.is_resolved:
        lat, lon = location.coordinates.latitude, location.coordinates.longitude
        location_line = f"{lat}, {lon}"
        if platform is Platform.WEB:
            link = map_url(lat, lon)
    elif location.status in LOCATION_PLACEHOLDERS:
        location_line = LOCATION_PLACEHOLDERS[location.status]
    else:
        location_line = location.message

    return ReviewSummary(
        file_line=session.selected_file.display_name if session.selected_file else NO_FILE_TEXT,
        crop_line=session.crop_type.value if session.crop_type else NO_CROP_TEXT,
        location_line=location_line,
        location_status=location.status.value,
        map_url=link,
        is_complete=session.is_complete,
        review_visible=session.review_visible,
    )


class ReviewPresenter:
    """Keeps the latest ReviewSummary; subscribe it to a coordinator."""

    def __init__(self, platform: Platform):
        self.platform = platform
        self.summary: Optional[ReviewSummary] = None
        self.renders = 0

    def __call__(self, session: Session) -> None:
        self.summary = render_review(session, self.platform)
        self.renders += 1
