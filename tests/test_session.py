"""Tests for the Session value objects and the readiness predicate."""

import sys
import itertools
import pytest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.data.schema import CropType
from src.intake.session import (
    Coordinates, FileDescriptor, LocationState, LocationStatus, Session,
)

REPORT = FileDescriptor(uri="file:///tmp/report.pdf", display_name="report.pdf",
                        mime_type="application/pdf")


class TestFileDescriptor:

    def test_requires_uri(self):
        with pytest.raises(ValueError, match="uri"):
            FileDescriptor(uri="", display_name="report.pdf")

    def test_requires_name(self):
        with pytest.raises(ValueError, match="display name"):
            FileDescriptor(uri="file:///tmp/report.pdf", display_name="")

    def test_mime_type_optional(self):
        d = FileDescriptor(uri="file:///tmp/report", display_name="report")
        assert d.mime_type is None


class TestLocationState:

    def test_default_is_unresolved(self):
        assert LocationState().status is LocationStatus.UNRESOLVED
        assert LocationState.unresolved() == LocationState()

    def test_resolved_carries_coordinates(self):
        loc = LocationState.resolved(12.97, 77.59, attempt=3)
        assert loc.is_resolved
        assert loc.coordinates.latitude == 12.97
        assert loc.coordinates.longitude == 77.59
        assert loc.attempt == 3

    def test_coordinates_only_when_resolved(self):
        with pytest.raises(ValueError):
            LocationState(status=LocationStatus.RESOLVED)
        with pytest.raises(ValueError):
            LocationState(status=LocationStatus.PENDING, coordinates=Coordinates(1.0, 1.0))

    def test_failed_requires_message(self):
        with pytest.raises(ValueError):
            LocationState(status=LocationStatus.FAILED)

    def test_denied_default_message(self):
        assert "denied" in LocationState.denied().message

    def test_terminal_statuses(self):
        assert not LocationState.unresolved().is_terminal
        assert not LocationState.pending(1).is_terminal
        assert LocationState.resolved(1, 1).is_terminal
        assert LocationState.denied().is_terminal
        assert LocationState.failed("boom").is_terminal


class TestSession:

    def test_fresh_session(self):
        s = Session()
        assert s.selected_file is None
        assert s.crop_type is None
        assert s.location.status is LocationStatus.UNRESOLVED
        assert s.review_visible is False

    def test_evolve_leaves_original_untouched(self):
        s = Session()
        s2 = s.evolve(crop_type=CropType.WHEAT)
        assert s.crop_type is None
        assert s2.crop_type is CropType.WHEAT

    def test_always_reviewable(self):
        assert Session().is_reviewable

    def test_to_dict(self):
        s = Session(selected_file=REPORT, crop_type=CropType.OIL_SEEDS,
                    location=LocationState.resolved(1.5, 2.5))
        d = s.to_dict()
        assert d["selected_file"]["display_name"] == "report.pdf"
        assert d["crop_type"] == "Oil seeds"
        assert d["location"]["status"] == "resolved"
        assert d["is_complete"] is True


NOT_RESOLVED = [
    LocationState.unresolved(),
    LocationState.pending(1),
    LocationState.denied(),
    LocationState.failed("no fix"),
]


class TestIsComplete:

    @pytest.mark.parametrize(
        "has_file,has_crop,resolved",
        list(itertools.product([True, False], repeat=3)),
    )
    def test_corner_cases(self, has_file, has_crop, resolved):
        s = Session(
            selected_file=REPORT if has_file else None,
            crop_type=CropType.MAIZE if has_crop else None,
            location=LocationState.resolved(1, 1) if resolved else LocationState.unresolved(),
        )
        assert s.is_complete is (has_file and has_crop and resolved)

    @pytest.mark.parametrize("location", NOT_RESOLVED)
    def test_every_unresolved_variant_is_incomplete(self, location):
        s = Session(selected_file=REPORT, crop_type=CropType.MAIZE, location=location)
        assert s.is_complete is False

    def test_recomputed_after_change(self):
        s = Session(selected_file=REPORT, crop_type=CropType.MAIZE,
                    location=LocationState.resolved(1, 1))
        assert s.is_complete
        assert not s.evolve(selected_file=None).is_complete
