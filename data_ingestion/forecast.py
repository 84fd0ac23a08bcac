"""
Hourly Forecast Payload Parsing.

Converts already-fetched hourly forecast periods (National Weather
Service ``/gridpoints/{office}/{x},{y}/forecast/hourly`` layout) into
``WindSample`` records at the 10 m reference height. No network access
happens here.

Payload Conventions
-------------------
- ``startTime``: ISO 8601 timestamp with offset.
- ``windSpeed``: free text such as ``"10 mph"`` or ``"5 to 10 mph"``; the
  first number is used.
- ``windDirection``: 16-point compass abbreviation (``"NNE"``). Unknown or
  empty values map to 0 degrees.
- Hourly forecasts carry no gusts.
"""

import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping

from common.errors import InvalidInput
from common.logging_config import get_logger
from common.types import Location, WindSample
from common.units import mph_to_ms
from data_ingestion.daylight import is_daylight

logger = get_logger(__name__)

COMPASS_DEGREES: Dict[str, float] = {
    "N": 0.0, "NNE": 22.5, "NE": 45.0, "ENE": 67.5,
    "E": 90.0, "ESE": 112.5, "SE": 135.0, "SSE": 157.5,
    "S": 180.0, "SSW": 202.5, "SW": 225.0, "WSW": 247.5,
    "W": 270.0, "WNW": 292.5, "NW": 315.0, "NNW": 337.5,
}

_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")


def parse_wind_speed_mph(text: str) -> float:
    """First number in a wind speed string, in mph; 0 when there is none.

    Examples
    --------
    >>> parse_wind_speed_mph("5 to 10 mph")
    5.0
    """
    match = _NUMBER.search(text or "")
    return float(match.group(1)) if match else 0.0


def compass_to_degrees(direction: str) -> float:
    """Degrees clockwise from north for a compass abbreviation."""
    return COMPASS_DEGREES.get((direction or "").strip().upper(), 0.0)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp, accepting a trailing ``Z``."""
    if not value:
        raise InvalidInput("Forecast period has no startTime")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise InvalidInput(f"Malformed timestamp {value!r}") from e


def parse_hourly_periods(
    periods: Iterable[Mapping[str, Any]],
    location: Location
) -> List[WindSample]:
    """Convert forecast periods into reference-height wind samples.

    Parameters
    ----------
    periods : iterable of mapping
        Hourly periods as decoded from JSON.
    location : Location
        Forecast location; used for the daylight flag.

    Returns
    -------
    list of WindSample
        In payload order, speeds in M/S, no gusts.
    """
    samples = []
    for period in periods:
        timestamp = parse_timestamp(period.get("startTime", ""))
        speed = mph_to_ms(parse_wind_speed_mph(period.get("windSpeed", "")))
        samples.append(WindSample(
            timestamp=timestamp,
            speed=speed,
            direction=compass_to_degrees(period.get("windDirection", "")),
            gust=None,
            is_daytime=is_daylight(timestamp, location.latitude, location.longitude),
        ))
    logger.debug(f"Parsed {len(samples)} forecast periods for {location.key}")
    return samples


def parse_hourly_forecast(
    payload: Mapping[str, Any],
    location: Location
) -> List[WindSample]:
    """Parse a full hourly forecast document (``properties.periods``)."""
    try:
        periods = payload["properties"]["periods"]
    except (KeyError, TypeError) as e:
        raise InvalidInput("Forecast payload has no properties.periods") from e
    return parse_hourly_periods(periods, location)
