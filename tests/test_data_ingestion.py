from datetime import date, datetime, timedelta, timezone

import pytest

from common.errors import InvalidInput
from common.types import Location, WindSample
from data_ingestion.daylight import (
    filter_daylight_hours,
    is_daylight,
    solar_date,
    sunrise_sunset,
)
from data_ingestion.forecast import (
    compass_to_degrees,
    parse_hourly_forecast,
    parse_hourly_periods,
    parse_wind_speed_mph,
)
from data_ingestion.stations import (
    PayloadStationSource,
    parse_observation_features,
    parse_station_features,
)
from data_ingestion.synthetic import generate_synthetic_forecast
from reconciliation.pipeline import ReconciliationOutcome
from reconciliation.workflow import ReconciliationWorkflow

HOME = Location(38.01, -92.17, "Missouri, USA")


@pytest.fixture
def periods():
    return [
        {"startTime": "2024-06-21T13:00:00-05:00", "windSpeed": "10 mph", "windDirection": "S"},
        {"startTime": "2024-06-21T14:00:00-05:00", "windSpeed": "5 to 10 mph",
         "windDirection": "NNE"},
        {"startTime": "2024-06-21T23:00:00-05:00", "windSpeed": "calm", "windDirection": ""},
    ]


@pytest.fixture
def stations_payload():
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "geometry": {"type": "Point", "coordinates": [-90.37, 38.75]},
                "properties": {"stationIdentifier": "KSTL", "name": "St. Louis Lambert"},
            },
            {
                "geometry": {"type": "Point", "coordinates": [-91.77, 38.13]},
                "properties": {"stationIdentifier": "KVIH", "name": "Rolla National Airport"},
            },
            {"geometry": None, "properties": {"name": "no identifier"}},
        ],
    }


@pytest.fixture
def observations_payload():
    return {
        "features": [
            {"properties": {"timestamp": "2024-06-21T18:53:00+00:00",
                            "windGust": {"value": 36.0, "unitCode": "wmoUnit:km_h-1"}}},
            {"properties": {"timestamp": "2024-06-21T19:53:00+00:00",
                            "windGust": {"value": None, "unitCode": "wmoUnit:km_h-1"}}},
        ]
    }


@pytest.mark.parametrize("text, expected", [
    ("10 mph", 10.0), ("5 to 10 mph", 5.0), ("", 0.0), ("calm", 0.0),
])
def test_parse_wind_speed(text, expected):
    assert parse_wind_speed_mph(text) == expected


@pytest.mark.parametrize("text, expected", [
    ("N", 0.0), ("NNE", 22.5), ("SW", 225.0), ("nnw", 337.5), ("VRB", 0.0), ("", 0.0),
])
def test_compass_to_degrees(text, expected):
    assert compass_to_degrees(text) == expected


def test_parse_hourly_periods(periods):
    samples = parse_hourly_periods(periods, HOME)
    assert len(samples) == 3
    first = samples[0]
    assert first.timestamp == datetime(2024, 6, 21, 18, tzinfo=timezone.utc)
    assert first.speed == pytest.approx(4.4704)
    assert first.direction == 180.0
    assert first.gust is None
    assert first.is_daytime is True
    assert samples[1].direction == 22.5
    assert samples[2].speed == 0.0
    assert samples[2].is_daytime is False


def test_parse_hourly_forecast_requires_periods():
    with pytest.raises(InvalidInput):
        parse_hourly_forecast({"properties": {}}, HOME)


def test_malformed_start_time_rejected():
    with pytest.raises(InvalidInput):
        parse_hourly_periods([{"startTime": "yesterday", "windSpeed": "3 mph"}], HOME)


def test_parse_station_features(stations_payload):
    stations = parse_station_features(stations_payload)
    assert [s.station_id for s in stations] == ["KSTL", "KVIH"]
    assert stations[1].latitude == pytest.approx(38.13)
    assert stations[1].longitude == pytest.approx(-91.77)


def test_parse_observation_features(observations_payload):
    records = parse_observation_features(observations_payload)
    assert records[0].gust == pytest.approx(10.0)
    assert records[1].gust is None
    assert records[0].timestamp.tzinfo is not None


def test_unknown_unit_code_rejected():
    payload = {"features": [{"properties": {
        "timestamp": "2024-06-21T18:53:00+00:00",
        "windGust": {"value": 3.0, "unitCode": "wmoUnit:furlong_fortnight-1"},
    }}]}
    with pytest.raises(ValueError):
        parse_observation_features(payload)


def test_payload_source_drives_workflow(periods, stations_payload, observations_payload):
    source = PayloadStationSource(stations_payload, {"KVIH": observations_payload})
    forecast = parse_hourly_periods(periods, HOME)
    result = ReconciliationWorkflow(source).run(forecast, HOME)
    # nearest station wins over the listed order
    assert result.station.station_id == "KVIH"
    assert result.outcome is ReconciliationOutcome.MERGED_WITH_ESTIMATION_FILL
    assert result.series[0].gust == pytest.approx(10.0)


def test_sunrise_before_sunset():
    sunrise, sunset = sunrise_sunset(date(2024, 6, 21), 38.0, -92.0)
    assert sunrise < sunset
    assert (sunset - sunrise) > timedelta(hours=14)
    assert sunrise.tzinfo is not None


def test_winter_day_shorter_than_summer_day():
    s_rise, s_set = sunrise_sunset(date(2024, 6, 21), 38.0, -92.0)
    w_rise, w_set = sunrise_sunset(date(2024, 12, 21), 38.0, -92.0)
    assert (w_set - w_rise) < (s_set - s_rise)


def test_is_daylight_mid_latitude():
    assert is_daylight(datetime(2024, 6, 21, 18, tzinfo=timezone.utc), 38.0, -92.0)
    assert not is_daylight(datetime(2024, 6, 21, 6, tzinfo=timezone.utc), 38.0, -92.0)


def test_evening_after_utc_midnight_uses_local_solar_day():
    # 19:30 local (CDT) on June 21 is 00:30 UTC on June 22, still before sunset
    ts = datetime(2024, 6, 22, 0, 30, tzinfo=timezone.utc)
    assert solar_date(ts, -92.0) == date(2024, 6, 21)
    assert is_daylight(ts, 38.0, -92.0)


def test_polar_night_and_polar_day():
    assert not is_daylight(datetime(2024, 12, 21, 12, tzinfo=timezone.utc), 80.0, 0.0)
    assert is_daylight(datetime(2024, 6, 21, 6, tzinfo=timezone.utc), 80.0, 0.0)


def test_filter_daylight_hours():
    samples = [WindSample(timestamp=datetime(2024, 6, 21, h, tzinfo=timezone.utc), speed=1.0)
               for h in (6, 18)]
    kept = filter_daylight_hours(samples, 38.0, -92.0)
    assert [s.timestamp.hour for s in kept] == [18]


def test_synthetic_forecast_reproducible():
    start = datetime(2024, 3, 1, tzinfo=timezone.utc)
    a = generate_synthetic_forecast(start, rng=11)
    b = generate_synthetic_forecast(start, rng=11)
    assert a == b
    assert len(a) == 48
    assert a[1].timestamp - a[0].timestamp == timedelta(hours=1)
    assert all(1.0 <= s.speed <= 11.0 for s in a)
    assert all(s.speed <= s.gust <= 1.5 * s.speed for s in a)
    assert [s.direction for s in a[:3]] == [0.0, 15.0, 30.0]
