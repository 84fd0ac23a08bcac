import math
import warnings
from datetime import datetime, timedelta, timezone

import pytest

from common.constants import DEFAULT_THRESHOLDS, WindConstants
from common.errors import InvalidInput, WindCoreError
from common.logging_config import AuditLogger, CycleRecord, compute_config_hash
from common.types import (
    GeoWindSample,
    Location,
    StationInfo,
    Viewport,
    WindSample,
    WindVector,
)
from common.units import format_wind_speed, mph_to_ms, ms_to_mph, unit_code_to_ms
from geospatial.distance_calculations import (
    geodesic_distance_km,
    meters_to_degrees,
    planar_degree_distance,
)

T0 = datetime(2024, 3, 1, 14, tzinfo=timezone.utc)


def test_naive_timestamp_taken_as_utc():
    sample = WindSample(timestamp=datetime(2024, 3, 1, 14), speed=1.0)
    assert sample.timestamp == T0


def test_aware_timestamp_normalized_to_utc():
    local = datetime(2024, 3, 1, 8, tzinfo=timezone(timedelta(hours=-6)))
    assert WindSample(timestamp=local, speed=1.0).timestamp == T0


@pytest.mark.parametrize("kwargs", [
    {"speed": -0.1},
    {"speed": float("nan")},
    {"speed": 1.0, "direction": 360.0},
    {"speed": 1.0, "direction": -1.0},
    {"speed": 1.0, "gust": -2.0},
])
def test_wind_sample_validation(kwargs):
    with pytest.raises(InvalidInput):
        WindSample(timestamp=T0, **kwargs)


def test_geo_sample_rejects_bad_coordinates():
    with pytest.raises(InvalidInput):
        GeoWindSample(timestamp=T0, speed=1.0, latitude=95.0, longitude=0.0)


def test_with_gust_returns_copy():
    sample = WindSample(timestamp=T0, speed=3.0)
    gusty = sample.with_gust(4.2)
    assert sample.gust is None
    assert gusty.gust == 4.2


def test_wind_vector_magnitude_invariant():
    v = WindVector(3.0, 4.0)
    assert v.magnitude == 5.0
    with pytest.raises(InvalidInput):
        WindVector(3.0, 4.0, magnitude=6.0)


@pytest.mark.parametrize("direction", [0.0, 45.0, 90.0, 225.0, 359.0])
def test_wind_vector_direction_round_trip(direction):
    v = WindVector.from_speed_direction(5.0, direction)
    assert v.direction == pytest.approx(direction)
    assert v.magnitude == pytest.approx(5.0)


def test_location_key_and_validation():
    assert Location(38.012345, -92.171111).key == (38.0123, -92.1711)
    with pytest.raises(InvalidInput):
        Location(float("nan"), 0.0)


def test_station_distance_not_part_of_identity():
    a = StationInfo("KVIH", "Rolla", 38.13, -91.77)
    b = StationInfo("KVIH", "Rolla", 38.13, -91.77, distance_km=12.0)
    assert a == b
    assert StationInfo("X").has_position is False


@pytest.mark.parametrize("bounds", [
    (-92.0, 37.0, -93.0, 38.0),
    (-93.0, 38.0, -92.0, 37.0),
    (-93.0, -91.0, -92.0, 38.0),
])
def test_viewport_validation(bounds):
    with pytest.raises(InvalidInput):
        Viewport(*bounds)


def test_invalid_input_hierarchy():
    assert issubclass(InvalidInput, WindCoreError)
    assert issubclass(InvalidInput, ValueError)


def test_constants_have_provenance():
    assert WindConstants.GUST_FACTOR.value == 1.4
    assert WindConstants.HELLMAN_EXPONENT_OPEN_TERRAIN.value == pytest.approx(1 / 7)
    assert WindConstants.GUST_FACTOR.source
    assert DEFAULT_THRESHOLDS.max_steady == 11.0
    assert DEFAULT_THRESHOLDS.max_gust == 12.0


def test_speed_conversions():
    assert mph_to_ms(10) == pytest.approx(4.4704)
    assert ms_to_mph(4.4704) == pytest.approx(10.0)
    assert format_wind_speed(10.0) == "10.0 m/s (22.4 mph)"


def test_unit_codes():
    assert unit_code_to_ms(None, "wmoUnit:km_h-1") is None
    assert unit_code_to_ms(36.0, "wmoUnit:km_h-1") == pytest.approx(10.0)
    assert unit_code_to_ms(10.0, "wmoUnit:kn") == pytest.approx(5.14444, rel=1e-4)
    with pytest.warns(UserWarning):
        assert unit_code_to_ms(3.0, None) == 3.0


def test_distances():
    assert planar_degree_distance(0.0, 0.0, 3.0, 4.0) == pytest.approx(5.0)
    # one degree of latitude is about 111 km
    assert geodesic_distance_km(38.0, -92.0, 39.0, -92.0) == pytest.approx(111.0, abs=1.0)
    dlon, dlat = meters_to_degrees(111320.0, 111320.0, 60.0)
    assert dlat == pytest.approx(1.0)
    assert dlon == pytest.approx(1.0 / math.cos(math.radians(60.0)))


def test_audit_logger_records_and_summarizes():
    audit = AuditLogger({"gust_factor": 1.4})
    assert audit.config_hash == compute_config_hash({"gust_factor": 1.4})
    audit.record_cycle(CycleRecord(generation=1, location=(38.0, -92.1), outcome="MERGED"))
    audit.record_cycle(CycleRecord(generation=2, location=(38.0, -92.1),
                                   outcome="FULLY_ESTIMATED", discarded=True))
    summary = audit.summary()
    assert summary["total_cycles"] == 2
    assert summary["discarded_cycles"] == 1
    assert summary["outcome_counts"] == {"MERGED": 1}
    assert all(r.config_hash == audit.config_hash for r in audit.records)


def test_no_warning_for_coded_units():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        unit_code_to_ms(5.0, "wmoUnit:m_s-1")
