"""
Data Ingestion Module for the Wind Advisory Core.

This module turns already-fetched forecast and station payloads into core
records, and provides the daylight model and a synthetic forecast.
"""

from data_ingestion.daylight import (
    solar_declination,
    solar_date,
    sunrise_sunset,
    is_daylight,
    filter_daylight_hours,
)
from data_ingestion.forecast import (
    COMPASS_DEGREES,
    parse_wind_speed_mph,
    compass_to_degrees,
    parse_hourly_periods,
    parse_hourly_forecast,
)
from data_ingestion.stations import (
    parse_station_features,
    parse_observation_features,
    PayloadStationSource,
)
from data_ingestion.synthetic import generate_synthetic_forecast

__all__ = [
    "solar_declination",
    "solar_date",
    "sunrise_sunset",
    "is_daylight",
    "filter_daylight_hours",
    "COMPASS_DEGREES",
    "parse_wind_speed_mph",
    "compass_to_degrees",
    "parse_hourly_periods",
    "parse_hourly_forecast",
    "parse_station_features",
    "parse_observation_features",
    "PayloadStationSource",
    "generate_synthetic_forecast",
]
