"""
File acquisition adapters: pick a soil report and open it again.

Browser and native pickers report results in different shapes. Everything
is normalized here to a FilePickOutcome (picked descriptor or cancelled);
picker failures raise FileAcquisitionError.
"""

import asyncio
import logging
import mimetypes
import posixpath
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from src.intake.console import read_line
from src.intake.errors import FileAcquisitionError, FileOpenUnavailable
from src.intake.session import FileDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilePickOutcome:
    """Result of one pick: a descriptor, or None when the user cancelled."""
    descriptor: Optional[FileDescriptor] = None

    @property
    def cancelled(self) -> bool:
        return self.descriptor is None

    @classmethod
    def picked(cls, descriptor: FileDescriptor) -> "FilePickOutcome":
        return cls(descriptor=descriptor)

    @classmethod
    def cancel(cls) -> "FilePickOutcome":
        return cls()


def _name_from_uri(uri: str) -> str:
    return unquote(posixpath.basename(urlparse(uri).path))


def _descriptor_from_fields(fields: Dict) -> FileDescriptor:
    uri = fields.get("uri")
    if not uri:
        raise FileAcquisitionError("Picker result has no file uri")
    name = fields.get("name") or _name_from_uri(uri)
    if not name:
        raise FileAcquisitionError(f"Could not determine a file name for '{uri}'")
    mime_type = fields.get("mimeType") or fields.get("mime_type") or mimetypes.guess_type(name)[0]
    return FileDescriptor(uri=uri, display_name=name, mime_type=mime_type)


def normalize_picker_result(raw: Optional[Dict]) -> FilePickOutcome:
    """
    Normalize a document-picker result.

    Accepts:
        - None (nothing chosen)
        - legacy shape: {"type": "success" | "cancel", "uri", "name", "mimeType"}
        - asset shape:  {"canceled": bool, "assets": [{"uri", "name", "mimeType"}]}

    Raises:
        FileAcquisitionError: If the result is malformed or incomplete.
    """
    if raw is None:
        return FilePickOutcome.cancel()
    if not isinstance(raw, dict):
        raise FileAcquisitionError(f"Unexpected picker result type: {type(raw).__name__}")

    if "assets" in raw or "canceled" in raw:
        if raw.get("canceled"):
            return FilePickOutcome.cancel()
        assets = raw.get("assets") or []
        if not assets:
            return FilePickOutcome.cancel()
        return FilePickOutcome.picked(_descriptor_from_fields(assets[0]))

    result_type = raw.get("type")
    if result_type == "cancel":
        return FilePickOutcome.cancel()
    if result_type == "success":
        return FilePickOutcome.picked(_descriptor_from_fields(raw))

    raise FileAcquisitionError(f"Unrecognized picker result: {sorted(raw.keys())}")


class FilePicker:
    """Platform file chooser."""

    async def pick(self) -> FilePickOutcome:
        raise NotImplementedError


class BrowserFilePicker(FilePicker):
    """
    The browser runs its own file dialog and submits the result to the host.
    pick() consumes the latest submission; no submission counts as a cancel.
    """

    def __init__(self):
        self._submitted: Optional[Dict] = None

    def submit(self, raw: Optional[Dict]) -> None:
        self._submitted = raw

    async def pick(self) -> FilePickOutcome:
        raw, self._submitted = self._submitted, None
        return normalize_picker_result(raw)


class PromptFilePicker(FilePicker):
    """Ask for a file path on the terminal. A blank answer cancels."""

    prompt = "Path to soil report (blank to cancel): "

    def __init__(self, ask: Callable[[str], str] = input):
        self._ask = ask

    async def pick(self) -> FilePickOutcome:
        try:
            answer = await read_line(self._ask, self.prompt)
        except EOFError:
            answer = ""
        return describe_local_file(answer)


def describe_local_file(path_text: Optional[str]) -> FilePickOutcome:
    """Build a pick outcome for a local path typed or chosen by the user."""
    path_text = (path_text or "").strip().strip('"').strip("'")
    if not path_text:
        return FilePickOutcome.cancel()
    path = Path(path_text).expanduser()
    if not path.is_file():
        raise FileAcquisitionError(f"No such file: {path}")
    path = path.resolve()
    return FilePickOutcome.picked(FileDescriptor(
        uri=path.as_uri(),
        display_name=path.name,
        mime_type=mimetypes.guess_type(path.name)[0],
    ))


# ---------- Opening the selected file ----------

def to_openable_uri(uri: str) -> str:
    """Turn bare paths into file:// URIs; leave real URIs untouched."""
    scheme = urlparse(uri).scheme
    # A one-letter scheme is a Windows drive, not a URI scheme
    if len(scheme) > 1:
        return uri
    return Path(uri).expanduser().resolve().as_uri()


class FileOpener:
    """Platform URL/file handler."""

    async def open(self, descriptor: FileDescriptor) -> str:
        raise NotImplementedError


class BrowserFileOpener(FileOpener):
    """The browser opens the file itself; the host hands back its URI."""

    async def open(self, descriptor: FileDescriptor) -> str:
        return descriptor.uri


class SystemFileOpener(FileOpener):
    """Open the file with the system's default handler."""

    def __init__(self, launcher: Callable[[str], bool] = webbrowser.open):
        self._launcher = launcher

    async def open(self, descriptor: FileDescriptor) -> str:
        uri = to_openable_uri(descriptor.uri)
        parsed = urlparse(uri)
        if parsed.scheme == "file" and not Path(url2pathname(parsed.path)).exists():
            raise FileOpenUnavailable(f"{descriptor.display_name} is no longer available")
        logger.info("Opening %s", uri)
        opened = await asyncio.to_thread(self._launcher, uri)
        if not opened:
            raise FileOpenUnavailable(f"No application available to open {descriptor.display_name}")
        return uri
