"""
Acquisition coordinator: the only code that changes the Session.

Runs file picking and location lookups through the platform adapters,
applies their outcomes, and tells subscribers about every new snapshot.
Each acquisition is tagged with an attempt number per kind; an outcome is
applied only while its attempt is still the newest one of that kind, so a
slow early lookup can never overwrite a later one.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Set

from src.data.schema import CropType, parse_crop_type
from src.intake.errors import (
    FileAcquisitionError, FileOpenUnavailable, LocationAcquisitionError,
    LocationPermissionDenied, Notice, NoticeKind,
)
from src.intake.files import FileOpener, FilePickOutcome, FilePicker
from src.intake.geolocation import LocationProvider, PermissionStatus
from src.intake.session import LocationState, LocationStatus, Session

logger = logging.getLogger(__name__)

# Acquisition kinds
FILE = "file"
LOCATION = "location"

SessionListener = Callable[[Session], None]
OutcomeHook = Callable[[str, str], None]


class AcquisitionCoordinator:
    """
    Owns one screen visit's Session.

    Usage:
        coordinator = AcquisitionCoordinator(picker, locator, opener)
        coordinator.enter()              # implicit first location attempt
        await coordinator.request_file()
        coordinator.select_crop("Wheat")
        coordinator.session.is_complete
    """

    def __init__(
        self,
        files: FilePicker,
        locator: LocationProvider,
        opener: FileOpener,
        location_timeout_s: Optional[float] = None,
        on_outcome: Optional[OutcomeHook] = None,
    ):
        self._files = files
        self._locator = locator
        self._opener = opener
        self.location_timeout_s = location_timeout_s
        self._on_outcome = on_outcome

        self._session = Session()
        self._attempts: Dict[str, int] = {FILE: 0, LOCATION: 0}
        self._listeners: List[SessionListener] = []
        self._notices: List[Notice] = []
        self._tasks: Set[asyncio.Task] = set()
        self._location_task: Optional[asyncio.Task] = None

    # ---------- State plumbing ----------

    @property
    def session(self) -> Session:
        return self._session

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call listener with the current snapshot now and after every change."""
        self._listeners.append(listener)
        listener(self._session)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _replace(self, session: Session) -> None:
        self._session = session
        for listener in list(self._listeners):
            listener(session)

    def _apply(self, **changes) -> None:
        self._replace(self._session.evolve(**changes))

    def _notify(self, kind: NoticeKind, message: str) -> None:
        logger.warning("%s: %s", kind.value, message)
        self._notices.append(Notice(kind, message))

    def drain_notices(self) -> List[Notice]:
        """Return and forget the notices raised since the last drain."""
        notices, self._notices = self._notices, []
        return notices

    def _record(self, kind: str, outcome: str) -> None:
        if self._on_outcome is not None:
            self._on_outcome(kind, outcome)

    def _next_attempt(self, kind: str) -> int:
        self._attempts[kind] += 1
        return self._attempts[kind]

    def _is_current(self, kind: str, attempt: int) -> bool:
        return self._attempts[kind] == attempt

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ---------- Lifecycle ----------

    def enter(self) -> asyncio.Task:
        """Start the screen: kick off the implicit first location attempt."""
        logger.info("Session started")
        return self.start_location()

    def _abandon_location(self) -> None:
        if self._location_task is not None and not self._location_task.done():
            self._location_task.cancel()
            logger.info("Location attempt %d abandoned", self._attempts[LOCATION])
        self._location_task = None
        self._locator.cancel()

    async def close(self) -> None:
        """Leave the screen: cancel whatever is still in flight."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        self._locator.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._location_task = None
        self._listeners.clear()
        logger.info("Session closed (%d in-flight attempts cancelled)", len(tasks))

    def reset(self) -> None:
        """
        Clear file, crop and location and hide the review.

        In-flight attempts are invalidated so that nothing started before the
        reset can land afterwards; a background location attempt is cancelled
        along with the provider's open request. No new location attempt is
        started.
        """
        self._abandon_location()
        self._next_attempt(FILE)
        self._next_attempt(LOCATION)
        self._notices = []
        self._replace(Session())
        logger.info("Session reset")

    # ---------- File ----------

    async def request_file(self) -> Optional[FilePickOutcome]:
        """
        Run the file picker.

        Returns the outcome that was applied, or None when the picker failed
        or a newer pick superseded this one. Cancellation is returned as a
        cancelled outcome and changes nothing.
        """
        attempt = self._next_attempt(FILE)
        logger.info("File attempt %d started", attempt)
        try:
            outcome = await self._files.pick()
        except FileAcquisitionError as e:
            return self._file_failed(attempt, str(e))
        except Exception as e:
            logger.exception("File picker crashed")
            return self._file_failed(attempt, f"Unable to pick file: {e}")

        if not self._is_current(FILE, attempt):
            logger.debug("Discarding stale file result from attempt %d", attempt)
            self._record(FILE, "stale")
            return None
        if outcome.cancelled:
            logger.info("File attempt %d cancelled by user", attempt)
            self._record(FILE, "cancelled")
            return outcome

        self._apply(selected_file=outcome.descriptor)
        logger.info("File attempt %d picked %s", attempt, outcome.descriptor.display_name)
        self._record(FILE, "picked")
        return outcome

    def _file_failed(self, attempt: int, message: str) -> None:
        if not self._is_current(FILE, attempt):
            logger.debug("Discarding stale file failure from attempt %d", attempt)
            self._record(FILE, "stale")
            return None
        self._notify(NoticeKind.FILE_ACQUISITION_FAILED, message)
        self._record(FILE, "failed")
        return None

    def remove_file(self) -> None:
        if self._session.selected_file is None:
            return
        self._apply(selected_file=None)

    async def open_selected_file(self) -> Optional[str]:
        """Open the selected file; returns the URI opened, or None with a notice."""
        descriptor = self._session.selected_file
        if descriptor is None:
            self._notify(NoticeKind.FILE_OPEN_UNAVAILABLE, "No file selected")
            return None
        try:
            return await self._opener.open(descriptor)
        except FileOpenUnavailable as e:
            self._notify(NoticeKind.FILE_OPEN_UNAVAILABLE, str(e))
            return None

    # ---------- Crop ----------

    def select_crop(self, value) -> CropType:
        """
        Set the crop type.

        Raises:
            InvalidCropError: If value is not in the catalog (state unchanged).
        """
        crop = parse_crop_type(value)
        if crop is not self._session.crop_type:
            self._apply(crop_type=crop)
        return crop

    # ---------- Location ----------

    def _begin_location_attempt(self) -> int:
        attempt = self._next_attempt(LOCATION)
        self._apply(location=LocationState.pending(attempt))
        logger.info("Location attempt %d started", attempt)
        return attempt

    async def request_location(self) -> LocationState:
        """Run a location attempt to completion and return the session's location."""
        attempt = self._begin_location_attempt()
        return await self._complete_location_attempt(attempt)

    def start_location(self) -> asyncio.Task:
        """Start a location attempt in the background (Pending is set before returning)."""
        attempt = self._begin_location_attempt()
        task = asyncio.get_running_loop().create_task(
            self._complete_location_attempt(attempt)
        )
        self._track(task)
        self._location_task = task
        return task

    async def settle_location(self, timeout: Optional[float] = None) -> LocationState:
        """Wait until the newest background attempt has finished."""
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._location_task is not None and not self._location_task.done():
            remaining = None if deadline is None else max(0.0, deadline - loop.time())
            done, _ = await asyncio.wait({self._location_task}, timeout=remaining)
            if not done:
                break
        return self._session.location

    async def _locate(self, attempt: int) -> LocationState:
        try:
            if not await self._locator.has_permission():
                status = await self._locator.request_permission()
                if status is not PermissionStatus.GRANTED:
                    return LocationState.denied(attempt=attempt)
            coords = await asyncio.wait_for(
                self._locator.get_position(), self.location_timeout_s
            )
        except LocationPermissionDenied as e:
            return LocationState.denied(str(e), attempt=attempt)
        except LocationAcquisitionError as e:
            return LocationState.failed(str(e) or "Unable to retrieve location", attempt=attempt)
        except asyncio.TimeoutError:
            return LocationState.failed(
                f"Timed out after {self.location_timeout_s:g}s waiting for location",
                attempt=attempt,
            )
        except Exception as e:
            logger.exception("Location provider crashed")
            return LocationState.failed(f"Unable to retrieve location: {e}", attempt=attempt)
        return LocationState.resolved(coords.latitude, coords.longitude, attempt=attempt)

    async def _complete_location_attempt(self, attempt: int) -> LocationState:
        result = await self._locate(attempt)

        if not self._is_current(LOCATION, attempt):
            logger.debug(
                "Discarding stale location result from attempt %d (%s)",
                attempt, result.status.value,
            )
            self._record(LOCATION, "stale")
            return self._session.location

        self._apply(location=result)
        self._record(LOCATION, result.status.value)
        if result.status is LocationStatus.DENIED:
            self._notify(NoticeKind.PERMISSION_DENIED, result.message)
        elif result.status is LocationStatus.FAILED:
            self._notify(NoticeKind.LOCATION_ACQUISITION_FAILED, result.message)
        else:
            logger.info(
                "Location attempt %d resolved: lat=%.4f, lon=%.4f",
                attempt, result.coordinates.latitude, result.coordinates.longitude,
            )
        return result

    # ---------- Review ----------

    def show_review(self) -> None:
        if not self._session.review_visible:
            self._apply(review_visible=True)

    def hide_review(self) -> None:
        if self._session.review_visible:
            self._apply(review_visible=False)
