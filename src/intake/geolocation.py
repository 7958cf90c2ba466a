"""
Location acquisition adapters.

Both providers share one contract: has_permission(), request_permission()
and get_position(). The browser provider has no separate permission step
(the browser asks on its own), so it always reports permission as granted
and turns a browser-side refusal into LocationPermissionDenied.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Dict, Optional

import requests

from src.intake.config import IntakeConfig, validate_coordinates
from src.intake.console import read_line
from src.intake.errors import LocationAcquisitionError, LocationPermissionDenied
from src.intake.session import Coordinates

logger = logging.getLogger(__name__)


class PermissionStatus(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"


class LocationProvider:
    """Platform geolocation."""

    async def has_permission(self) -> bool:
        raise NotImplementedError

    async def request_permission(self) -> PermissionStatus:
        raise NotImplementedError

    async def get_position(self) -> Coordinates:
        raise NotImplementedError

    def cancel(self) -> None:
        """Abandon any position request still in flight."""


# ---------- Web ----------

# GeolocationPositionError codes reported by browsers
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

BROWSER_ERROR_MESSAGES = {
    PERMISSION_DENIED: "Permission to access location was denied",
    POSITION_UNAVAILABLE: "Location information is unavailable",
    TIMEOUT: "The browser timed out while getting the location",
}


class BrowserLocationProvider(LocationProvider):
    """
    Positions come from the browser's Geolocation API.

    get_position() opens a request and waits on a future; the browser's
    success or error callback is relayed to report_position() or
    report_error(). Only the newest request is kept open: opening a new one
    fails the previous future.
    """

    def __init__(self):
        self._pending: Optional[asyncio.Future] = None
        self._opened = asyncio.Event()
        self.requests_opened = 0

    async def has_permission(self) -> bool:
        return True

    async def request_permission(self) -> PermissionStatus:
        return PermissionStatus.GRANTED

    @property
    def awaiting_report(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def get_position(self) -> Coordinates:
        if self.awaiting_report:
            self._pending.set_exception(
                LocationAcquisitionError("Superseded by a newer location request")
            )
        future = asyncio.get_running_loop().create_future()
        self._pending = future
        self.requests_opened += 1
        self._opened.set()
        try:
            return await future
        finally:
            if self._pending is future:
                self._pending = None

    def cancel(self) -> None:
        """Close the open request; later reports find nothing waiting."""
        if self.awaiting_report:
            self._pending.cancel()
        self._pending = None

    def _is_open(self, newer_than: Optional[int]) -> bool:
        if newer_than is not None and self.requests_opened <= newer_than:
            return False
        return self.awaiting_report

    async def wait_for_request(self, timeout: float = 1.0, newer_than: Optional[int] = None) -> bool:
        """
        Wait until a position request is open, so a report has somewhere to go.

        With newer_than, only a request opened after requests_opened had that
        value counts.
        """
        async def opened():
            while not self._is_open(newer_than):
                self._opened.clear()
                await self._opened.wait()

        try:
            await asyncio.wait_for(opened(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def report_position(self, latitude: float, longitude: float) -> bool:
        """Deliver the browser's position. Returns False if nothing is waiting."""
        latitude, longitude = validate_coordinates(latitude, longitude)
        if not self.awaiting_report:
            return False
        self._pending.set_result(Coordinates(latitude, longitude))
        return True

    def report_error(self, code: int, message: Optional[str] = None) -> bool:
        """Deliver a browser GeolocationPositionError. Returns False if nothing is waiting."""
        if not self.awaiting_report:
            return False
        text = message or BROWSER_ERROR_MESSAGES.get(code, "Unable to retrieve location")
        if code == PERMISSION_DENIED:
            self._pending.set_exception(LocationPermissionDenied(text))
        else:
            self._pending.set_exception(LocationAcquisitionError(text))
        return True


# ---------- Native ----------

def parse_geoip_response(data: Dict) -> Coordinates:
    """Extract coordinates from an IP-geolocation JSON payload."""
    if data.get("error"):
        raise LocationAcquisitionError(
            f"Geolocation service error: {data.get('reason') or data.get('message') or 'unknown'}"
        )
    lat = data.get("latitude", data.get("lat"))
    lon = data.get("longitude", data.get("lon"))
    if lat is None or lon is None:
        raise LocationAcquisitionError("Geolocation service returned no coordinates")
    try:
        lat, lon = validate_coordinates(lat, lon)
    except (TypeError, ValueError) as e:
        raise LocationAcquisitionError(f"Invalid coordinates from geolocation service: {e}")
    return Coordinates(lat, lon)


def lookup_ip_location(url: str, timeout: float) -> Coordinates:
    """Blocking IP-geolocation lookup."""
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.exceptions.RequestException as e:
        logger.warning("Geolocation request failed: %s", e)
        raise LocationAcquisitionError(f"Unable to retrieve location: {e}")
    except ValueError as e:
        raise LocationAcquisitionError(f"Geolocation service returned invalid JSON: {e}")
    return parse_geoip_response(data)


class NativeLocationProvider(LocationProvider):
    """
    Foreground location on the host machine.

    Permission is asked once on the terminal and remembered for the life of
    the process. The position comes from INTAKE_FIXED_COORDINATES when set,
    otherwise from an IP-geolocation lookup.
    """

    prompt = "Allow this app to access your location? [y/N]: "

    def __init__(self, config: IntakeConfig, ask: Callable[[str], str] = input):
        self.config = config
        self._ask = ask
        self._granted = False

    async def has_permission(self) -> bool:
        return self._granted

    async def request_permission(self) -> PermissionStatus:
        try:
            answer = await read_line(self._ask, self.prompt)
        except EOFError:
            answer = ""
        self._granted = answer.strip().lower() in ("y", "yes")
        return PermissionStatus.GRANTED if self._granted else PermissionStatus.DENIED

    async def get_position(self) -> Coordinates:
        if self.config.fixed_coordinates is not None:
            return Coordinates(*self.config.fixed_coordinates)
        return await asyncio.to_thread(
            lookup_ip_location, self.config.geoip_url, self.config.geoip_timeout_s
        )
