"""
Unit tests for the file picker and file opener adapters.
No dialogs or system handlers are launched.
"""

import sys
import asyncio
import pytest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.intake.errors import FileAcquisitionError, FileOpenUnavailable
from src.intake.files import (
    BrowserFileOpener, BrowserFilePicker, PromptFilePicker, SystemFileOpener,
    describe_local_file, normalize_picker_result, to_openable_uri,
)
from src.intake.session import FileDescriptor


# ---------- Picker result normalization ----------

class TestNormalizePickerResult:

    def test_legacy_success(self):
        outcome = normalize_picker_result({
            "type": "success",
            "uri": "file:///data/cache/soil_report.pdf",
            "name": "soil_report.pdf",
            "mimeType": "application/pdf",
            "size": 1234,
        })
        assert not outcome.cancelled
        assert outcome.descriptor == FileDescriptor(
            uri="file:///data/cache/soil_report.pdf",
            display_name="soil_report.pdf",
            mime_type="application/pdf",
        )

    def test_legacy_cancel(self):
        assert normalize_picker_result({"type": "cancel"}).cancelled

    def test_asset_shape(self):
        outcome = normalize_picker_result({
            "canceled": False,
            "assets": [
                {"uri": "blob:https://app/1f2e", "name": "lab.csv", "mimeType": "text/csv"},
                {"uri": "blob:https://app/9a9a", "name": "ignored.csv"},
            ],
        })
        assert outcome.descriptor.uri == "blob:https://app/1f2e"
        assert outcome.descriptor.display_name == "lab.csv"
        assert outcome.descriptor.mime_type == "text/csv"

    def test_asset_shape_cancelled(self):
        assert normalize_picker_result({"canceled": True, "assets": None}).cancelled
        assert normalize_picker_result({"canceled": False, "assets": []}).cancelled

    def test_none_is_cancel(self):
        assert normalize_picker_result(None).cancelled

    def test_name_derived_from_uri(self):
        outcome = normalize_picker_result({
            "type": "success", "uri": "file:///sdcard/Soil%20Report.pdf",
        })
        assert outcome.descriptor.display_name == "Soil Report.pdf"
        assert outcome.descriptor.mime_type == "application/pdf"

    def test_missing_uri_raises(self):
        with pytest.raises(FileAcquisitionError, match="no file uri"):
            normalize_picker_result({"type": "success", "name": "report.pdf"})

    def test_unrecognized_shape_raises(self):
        with pytest.raises(FileAcquisitionError, match="Unrecognized"):
            normalize_picker_result({"foo": "bar"})

    def test_non_dict_raises(self):
        with pytest.raises(FileAcquisitionError):
            normalize_picker_result(["file:///a.pdf"])


# ---------- Pickers ----------

class TestBrowserFilePicker:

    def test_pick_consumes_submission(self):
        picker = BrowserFilePicker()
        picker.submit({"type": "success", "uri": "blob:x/1", "name": "r.pdf"})

        first = asyncio.run(picker.pick())
        second = asyncio.run(picker.pick())

        assert first.descriptor.display_name == "r.pdf"
        assert second.cancelled

    def test_pick_without_submission_is_cancel(self):
        assert asyncio.run(BrowserFilePicker().pick()).cancelled


class TestPromptFilePicker:

    def test_existing_path(self, tmp_path):
        report = tmp_path / "soil report.csv"
        report.write_text("N,P,K\n90,42,43\n")
        picker = PromptFilePicker(ask=lambda prompt: str(report))

        outcome = asyncio.run(picker.pick())

        assert outcome.descriptor.display_name == "soil report.csv"
        assert outcome.descriptor.uri == report.resolve().as_uri()
        assert outcome.descriptor.mime_type == "text/csv"

    def test_blank_answer_cancels(self):
        picker = PromptFilePicker(ask=lambda prompt: "   ")
        assert asyncio.run(picker.pick()).cancelled

    def test_eof_cancels(self):
        def ask(prompt):
            raise EOFError

        assert asyncio.run(PromptFilePicker(ask=ask).pick()).cancelled

    def test_missing_path_raises(self, tmp_path):
        picker = PromptFilePicker(ask=lambda prompt: str(tmp_path / "nope.pdf"))
        with pytest.raises(FileAcquisitionError, match="No such file"):
            asyncio.run(picker.pick())

    def test_quoted_path(self, tmp_path):
        report = tmp_path / "r.pdf"
        report.write_bytes(b"%PDF-1.4")
        outcome = describe_local_file(f'"{report}"')
        assert outcome.descriptor.display_name == "r.pdf"


# ---------- Openers ----------

class TestOpeners:

    def test_to_openable_uri_keeps_uris(self):
        assert to_openable_uri("https://example.org/r.pdf") == "https://example.org/r.pdf"
        assert to_openable_uri("file:///tmp/r.pdf") == "file:///tmp/r.pdf"

    def test_to_openable_uri_converts_paths(self, tmp_path):
        path = tmp_path / "r.pdf"
        assert to_openable_uri(str(path)) == path.resolve().as_uri()

    def test_browser_opener_returns_uri(self):
        d = FileDescriptor(uri="blob:https://app/1", display_name="r.pdf")
        assert asyncio.run(BrowserFileOpener().open(d)) == "blob:https://app/1"

    def test_system_opener_launches(self, tmp_path):
        report = tmp_path / "r.pdf"
        report.write_bytes(b"%PDF-1.4")
        launched = []

        def launcher(uri):
            launched.append(uri)
            return True

        d = FileDescriptor(uri=str(report), display_name="r.pdf")
        uri = asyncio.run(SystemFileOpener(launcher=launcher).open(d))

        assert uri == report.resolve().as_uri()
        assert launched == [uri]

    def test_system_opener_missing_file(self, tmp_path):
        d = FileDescriptor(uri=(tmp_path / "gone.pdf").as_uri(), display_name="gone.pdf")
        opener = SystemFileOpener(launcher=lambda uri: True)
        with pytest.raises(FileOpenUnavailable, match="no longer available"):
            asyncio.run(opener.open(d))

    def test_system_opener_no_handler(self, tmp_path):
        report = tmp_path / "r.pdf"
        report.write_bytes(b"%PDF-1.4")
        d = FileDescriptor(uri=report.as_uri(), display_name="r.pdf")
        opener = SystemFileOpener(launcher=lambda uri: False)
        with pytest.raises(FileOpenUnavailable, match="No application"):
            asyncio.run(opener.open(d))
