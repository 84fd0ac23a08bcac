"""
Approximate Sunrise and Sunset.

Forecast samples are tagged with whether they fall in daylight, since
most small-drone operations are restricted to daylight hours. A low-cost
astronomical approximation is sufficient for that flag:

    declination = 0.4095 * sin(0.016906 * (day_of_year - 80.086))
    cos(H) = -tan(latitude) * tan(declination)

where H is the sunset hour angle. Sunrise and sunset are solar noon
-/+ H expressed in hours (15 degrees per hour), and solar noon in UTC is
12:00 shifted by longitude / 15 hours.

Accuracy is a few minutes at mid latitudes; refraction and the equation
of time are ignored.
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Tuple

from common.constants import DEFAULT_LOCATION
from common.types import WindSample, ensure_utc, validate_coordinates


def solar_declination(day_of_year: int) -> float:
    """Solar declination in radians."""
    return 0.4095 * math.sin(0.016906 * (day_of_year - 80.086))


def _hour_angle_cosine(day: date, latitude: float) -> float:
    decl = solar_declination(day.timetuple().tm_yday)
    return -math.tan(math.radians(latitude)) * math.tan(decl)


def solar_date(ts: datetime, longitude: float) -> date:
    """Calendar date at the local mean solar time of ``longitude``."""
    return (ensure_utc(ts) + timedelta(hours=longitude / 15.0)).date()


def sunrise_sunset(
    day: date,
    latitude: float = DEFAULT_LOCATION["latitude"],
    longitude: float = DEFAULT_LOCATION["longitude"]
) -> Tuple[datetime, datetime]:
    """Sunrise and sunset for a solar day, as UTC datetimes.

    Parameters
    ----------
    day : date
        Solar day (see ``solar_date``).
    latitude, longitude : float
        Location in degrees.

    Returns
    -------
    tuple of datetime
        ``(sunrise, sunset)``. Equal during polar night; 24 hours apart
        during polar day.
    """
    validate_coordinates(latitude, longitude)
    cos_h = min(1.0, max(-1.0, _hour_angle_cosine(day, latitude)))
    half_day_hours = math.degrees(math.acos(cos_h)) / 15.0

    noon = (datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc)
            - timedelta(hours=longitude / 15.0))
    return (noon - timedelta(hours=half_day_hours),
            noon + timedelta(hours=half_day_hours))


def is_daylight(
    ts: datetime,
    latitude: float = DEFAULT_LOCATION["latitude"],
    longitude: float = DEFAULT_LOCATION["longitude"]
) -> bool:
    """True when ``ts`` lies between sunrise and sunset (inclusive)."""
    ts = ensure_utc(ts)
    sunrise, sunset = sunrise_sunset(solar_date(ts, longitude), latitude, longitude)
    if sunrise == sunset:
        return False
    return sunrise <= ts <= sunset


def filter_daylight_hours(
    samples: Iterable[WindSample],
    latitude: float = DEFAULT_LOCATION["latitude"],
    longitude: float = DEFAULT_LOCATION["longitude"]
) -> List[WindSample]:
    """Keep only samples that fall in daylight at the given location."""
    return [s for s in samples if is_daylight(s.timestamp, latitude, longitude)]
