"""
Type Definitions for the Wind Advisory Core.

This module defines the immutable records passed between components:
wind samples, observation records, wind vectors, locations, stations and
viewports. Each type validates its numeric domain at construction so that
a bad value is caught at the boundary where it enters, not three modules
downstream.

Conventions
-----------
- Speeds are in M/S and refer to the 10 m reference height unless tagged.
- Directions are in DEGREES, measured clockwise from north, in [0, 360).
- Coordinates are in DEGREES (latitude positive north, longitude positive east).
- Timestamps are timezone-aware UTC; naive datetimes are taken as UTC.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Tuple

from common.errors import InvalidInput


def ensure_utc(ts: datetime) -> datetime:
    """Return ``ts`` as an aware UTC datetime."""
    if not isinstance(ts, datetime):
        raise InvalidInput(f"Expected datetime, got {type(ts).__name__}")
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _check_finite(name: str, value: float) -> None:
    if value is None or not math.isfinite(value):
        raise InvalidInput(f"{name} must be a finite number, got {value!r}")


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Raise ``InvalidInput`` unless the pair is a finite lat/lon in degrees."""
    _check_finite("latitude", latitude)
    _check_finite("longitude", longitude)
    if not -90.0 <= latitude <= 90.0:
        raise InvalidInput(f"Latitude {latitude} out of range [-90, 90]")
    if not -180.0 <= longitude <= 180.0:
        raise InvalidInput(f"Longitude {longitude} out of range [-180, 180]")


@dataclass(frozen=True)
class WindSample:
    """Wind state at a single instant at the 10 m reference height.

    Attributes
    ----------
    timestamp : datetime
        Valid time of the sample (UTC).
    speed : float
        Steady wind speed in M/S, >= 0.
    direction : float, optional
        Direction in degrees clockwise from north, in [0, 360).
    gust : float, optional
        Gust speed in M/S, >= 0.
    is_daytime : bool
        Whether the sample falls between sunrise and sunset.
    """
    timestamp: datetime
    speed: float
    direction: Optional[float] = None
    gust: Optional[float] = None
    is_daytime: bool = True

    def __post_init__(self):
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        _check_finite("speed", self.speed)
        if self.speed < 0:
            raise InvalidInput(f"Wind speed {self.speed} must be >= 0")
        if self.direction is not None:
            _check_finite("direction", self.direction)
            if not 0.0 <= self.direction < 360.0:
                raise InvalidInput(
                    f"Direction {self.direction} out of range [0, 360)"
                )
        if self.gust is not None:
            _check_finite("gust", self.gust)
            if self.gust < 0:
                raise InvalidInput(f"Gust {self.gust} must be >= 0")

    def with_gust(self, gust: Optional[float]) -> "WindSample":
        """Return a copy of this sample with ``gust`` replaced."""
        return replace(self, gust=gust)


@dataclass(frozen=True)
class GeoWindSample(WindSample):
    """A wind sample tagged with the position it was observed at.

    Used as the sparse input of the spatial interpolator.
    """
    latitude: float = 0.0
    longitude: float = 0.0

    def __post_init__(self):
        super().__post_init__()
        validate_coordinates(self.latitude, self.longitude)


@dataclass(frozen=True)
class ObservationRecord:
    """A station observation reduced to what reconciliation needs.

    Attributes
    ----------
    timestamp : datetime
        Observation time (UTC).
    gust : float, optional
        Measured gust in M/S, or None when the station did not report one.
    """
    timestamp: datetime
    gust: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        if self.gust is not None:
            _check_finite("gust", self.gust)
            if self.gust < 0:
                raise InvalidInput(f"Gust {self.gust} must be >= 0")


@dataclass(frozen=True)
class WindVector:
    """Horizontal wind vector in M/S.

    ``magnitude`` is stored redundantly and must equal
    ``hypot(eastward, northward)``; it is computed when omitted.
    """
    eastward: float
    northward: float
    magnitude: Optional[float] = None

    TOLERANCE = 1e-9

    def __post_init__(self):
        _check_finite("eastward", self.eastward)
        _check_finite("northward", self.northward)
        expected = math.hypot(self.eastward, self.northward)
        if self.magnitude is None:
            object.__setattr__(self, "magnitude", expected)
        elif not math.isclose(self.magnitude, expected,
                              rel_tol=self.TOLERANCE, abs_tol=self.TOLERANCE):
            raise InvalidInput(
                f"Magnitude {self.magnitude} inconsistent with components "
                f"(expected {expected})"
            )

    @classmethod
    def zero(cls) -> "WindVector":
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def from_speed_direction(cls, speed: float, direction_deg: float) -> "WindVector":
        """Decompose a speed along ``direction_deg`` (clockwise from north)."""
        rad = math.radians(direction_deg)
        return cls(eastward=math.sin(rad) * speed, northward=math.cos(rad) * speed)

    @property
    def direction(self) -> float:
        """Direction in degrees clockwise from north, in [0, 360)."""
        if self.magnitude == 0.0:
            return 0.0
        return math.degrees(math.atan2(self.eastward, self.northward)) % 360.0


@dataclass(frozen=True)
class Location:
    """A geocoded point of interest."""
    latitude: float
    longitude: float
    display_name: str = ""

    def __post_init__(self):
        validate_coordinates(self.latitude, self.longitude)

    @property
    def key(self) -> Tuple[float, float]:
        return (round(self.latitude, 4), round(self.longitude, 4))


@dataclass(frozen=True)
class StationInfo:
    """A weather station as reported by the station-discovery collaborator.

    The identifier is used for reporting only; it never enters computation.
    """
    station_id: str
    name: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_km: Optional[float] = field(default=None, compare=False)

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class Viewport:
    """Visible map area and zoom as supplied by the map collaborator.

    Attributes
    ----------
    west, south, east, north : float
        Bounding box in degrees.
    zoom : float
        Web-map zoom level.
    """
    west: float
    south: float
    east: float
    north: float
    zoom: float = 8.0

    def __post_init__(self):
        for name in ("west", "south", "east", "north", "zoom"):
            _check_finite(name, getattr(self, name))
        if not self.west < self.east:
            raise InvalidInput(f"Viewport west {self.west} must be < east {self.east}")
        if not self.south < self.north:
            raise InvalidInput(f"Viewport south {self.south} must be < north {self.north}")
        if self.south < -90.0 or self.north > 90.0:
            raise InvalidInput("Viewport latitude bounds out of range [-90, 90]")

    def contains(self, longitude: float, latitude: float) -> bool:
        return (self.west <= longitude <= self.east
                and self.south <= latitude <= self.north)
