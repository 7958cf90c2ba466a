"""Tests for the review summary rendering."""

import sys
import asyncio
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.data.schema import CropType
from src.intake.coordinator import AcquisitionCoordinator
from src.intake.files import BrowserFileOpener, BrowserFilePicker
from src.intake.geolocation import BrowserLocationProvider
from src.intake.platform import Platform
from src.intake.review import ReviewPresenter, map_url, render_review
from src.intake.session import FileDescriptor, LocationState, Session

REPORT = FileDescriptor(uri="blob:https://app/1", display_name="soil_report.pdf")


class TestRenderReview:

    def test_empty_session(self):
        summary = render_review(Session(), Platform.NATIVE)
        assert summary.lines() == [
            "Selected file: No file selected",
            "Crop Type: Not selected",
            "Location: Location not requested",
        ]
        assert summary.map_url is None
        assert summary.is_complete is False

    def test_complete_session_native(self):
        session = Session(selected_file=REPORT, crop_type=CropType.GROUND_NUTS,
                          location=LocationState.resolved(12.9716, 77.5946))
        summary = render_review(session, Platform.NATIVE)
        assert summary.file_line == "soil_report.pdf"
        assert summary.crop_line == "Ground Nuts"
        assert summary.location_line == "12.9716, 77.5946"
        assert summary.map_url is None
        assert summary.is_complete is True

    def test_web_offers_map_link(self):
        session = Session(location=LocationState.resolved(12.9716, 77.5946))
        summary = render_review(session, Platform.WEB)
        assert summary.map_url == "https://www.google.com/maps?q=12.9716,77.5946"

    def test_pending_denied_failed(self):
        assert render_review(Session(location=LocationState.pending(1)), Platform.WEB) \
            .location_line == "Fetching location..."
        assert render_review(Session(location=LocationState.denied()), Platform.WEB) \
            .location_line == "Permission to access location was denied"
        failed = render_review(Session(location=LocationState.failed("GPS off")), Platform.WEB)
        assert failed.location_line == "GPS off"
        assert failed.location_status == "failed"

    def test_map_url(self):
        assert map_url(-33.8, 151.2) == "https://www.google.com/maps?q=-33.8,151.2"


class TestReviewPresenter:

    def test_follows_coordinator(self):
        async def scenario():
            coord = AcquisitionCoordinator(
                BrowserFilePicker(), BrowserLocationProvider(), BrowserFileOpener(),
            )
            presenter = ReviewPresenter(Platform.WEB)
            coord.subscribe(presenter)
            first = presenter.summary
            coord.select_crop("Sugarcane")
            coord.show_review()
            return coord, presenter, first

        coord, presenter, first = asyncio.run(scenario())
        assert first.crop_line == "Not selected"
        assert presenter.summary.crop_line == "Sugarcane"
        assert presenter.summary.review_visible is True
        assert presenter.renders == 3
