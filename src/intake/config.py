"""
Runtime configuration for the intake session, read from environment
variables. Every setting has a usable default.

    INTAKE_PLATFORM            web | native | auto (default: auto)
    INTAKE_LOCATION_TIMEOUT_S  seconds before a location attempt fails (0 = no timeout)
    INTAKE_GEOIP_URL           IP geolocation endpoint used by the native provider
    INTAKE_GEOIP_TIMEOUT_S     HTTP timeout for the geolocation lookup
    INTAKE_FIXED_COORDINATES   'lat,lon' to report instead of looking up (native only)
"""

import os
import re
from dataclasses import dataclass
from typing import Optional, Tuple

PLATFORM_CHOICES = ("auto", "web", "native")

DEFAULT_LOCATION_TIMEOUT_S = 30.0
DEFAULT_GEOIP_URL = "https://ipapi.co/json/"
DEFAULT_GEOIP_TIMEOUT_S = 10.0

_COORDINATES_RE = re.compile(r"^-?\d+\.?\d*\s*,\s*-?\d+\.?\d*$")


def is_coordinates(text: str) -> bool:
    """Check if the string looks like lat,lon coordinates."""
    return bool(_COORDINATES_RE.match(text.strip()))


def validate_coordinates(lat: float, lon: float) -> Tuple[float, float]:
    """Range-check a coordinate pair and return it as floats."""
    lat, lon = float(lat), float(lon)
    if not (-90 <= lat <= 90):
        raise ValueError(f"Latitude {lat} out of range [-90, 90]")
    if not (-180 <= lon <= 180):
        raise ValueError(f"Longitude {lon} out of range [-180, 180]")
    return lat, lon


def parse_coordinates(text: str) -> Tuple[float, float]:
    """Parse a 'lat,lon' string into (float, float)."""
    if not is_coordinates(text):
        raise ValueError(
            f"Unrecognized coordinates: '{text}'. Expected 'lat,lon', e.g. '12.97,77.59'"
        )
    parts = text.strip().split(",")
    return validate_coordinates(float(parts[0].strip()), float(parts[1].strip()))


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


@dataclass
class IntakeConfig:
    """Settings shared by the HTTP host and the terminal host."""
    platform: str = "auto"
    location_timeout_s: Optional[float] = DEFAULT_LOCATION_TIMEOUT_S
    geoip_url: str = DEFAULT_GEOIP_URL
    geoip_timeout_s: float = DEFAULT_GEOIP_TIMEOUT_S
    fixed_coordinates: Optional[Tuple[float, float]] = None

    def __post_init__(self):
        self.platform = self.platform.lower().strip()
        if self.platform not in PLATFORM_CHOICES:
            raise ValueError(
                f"Unknown platform '{self.platform}'. Expected one of {PLATFORM_CHOICES}"
            )
        if not self.location_timeout_s:
            self.location_timeout_s = None
        if self.fixed_coordinates is not None:
            self.fixed_coordinates = validate_coordinates(*self.fixed_coordinates)

    @classmethod
    def from_env(cls) -> "IntakeConfig":
        fixed = os.environ.get("INTAKE_FIXED_COORDINATES")
        return cls(
            platform=os.environ.get("INTAKE_PLATFORM", "auto"),
            location_timeout_s=_float_env(
                "INTAKE_LOCATION_TIMEOUT_S", DEFAULT_LOCATION_TIMEOUT_S
            ),
            geoip_url=os.environ.get("INTAKE_GEOIP_URL", DEFAULT_GEOIP_URL),
            geoip_timeout_s=_float_env("INTAKE_GEOIP_TIMEOUT_S", DEFAULT_GEOIP_TIMEOUT_S),
            fixed_coordinates=parse_coordinates(fixed) if fixed and fixed.strip() else None,
        )
