"""
Station Payload Parsing.

Converts already-fetched GeoJSON station listings and observation
collections into ``StationInfo`` and ``ObservationRecord``. Observation
values arrive as ``{"value": ..., "unitCode": "wmoUnit:km_h-1"}`` and are
converted to M/S through pint.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from common.logging_config import get_logger
from common.types import ObservationRecord, StationInfo
from common.units import unit_code_to_ms
from data_ingestion.forecast import parse_timestamp
from reconciliation.workflow import StationSource

logger = get_logger(__name__)


def _features(payload: Mapping[str, Any]) -> Sequence[Mapping[str, Any]]:
    return payload.get("features") or []


def parse_station_features(payload: Mapping[str, Any]) -> List[StationInfo]:
    """Stations from a GeoJSON FeatureCollection, in listed order.

    Features without a ``stationIdentifier`` are skipped.
    """
    stations = []
    for feature in _features(payload):
        props = feature.get("properties") or {}
        station_id = props.get("stationIdentifier")
        if not station_id:
            logger.warning("Skipping station feature without identifier")
            continue

        latitude: Optional[float] = None
        longitude: Optional[float] = None
        geometry = feature.get("geometry") or {}
        coords = geometry.get("coordinates")
        if geometry.get("type") == "Point" and coords and len(coords) >= 2:
            longitude, latitude = float(coords[0]), float(coords[1])

        stations.append(StationInfo(
            station_id=station_id,
            name=props.get("name") or "",
            latitude=latitude,
            longitude=longitude,
        ))
    return stations


def parse_observation_features(payload: Mapping[str, Any]) -> List[ObservationRecord]:
    """Gust observations from a GeoJSON FeatureCollection.

    A null gust value stays ``None``; the record is still returned so that
    callers can tell "station reported, no gust" from "no report".
    """
    records = []
    for feature in _features(payload):
        props = feature.get("properties") or {}
        timestamp = props.get("timestamp")
        if not timestamp:
            continue
        gust_field = props.get("windGust") or {}
        gust = unit_code_to_ms(gust_field.get("value"), gust_field.get("unitCode"))
        records.append(ObservationRecord(timestamp=parse_timestamp(timestamp), gust=gust))
    return records


class PayloadStationSource(StationSource):
    """Station source backed by decoded station and observation documents.

    Parameters
    ----------
    stations_payload : mapping
        Station FeatureCollection for the location.
    observation_payloads : dict
        Station id -> observation FeatureCollection.
    """

    def __init__(
        self,
        stations_payload: Mapping[str, Any],
        observation_payloads: Optional[Dict[str, Mapping[str, Any]]] = None
    ):
        self.stations_payload = stations_payload
        self.observation_payloads = observation_payloads or {}

    def find_stations(self, latitude: float, longitude: float) -> List[StationInfo]:
        return parse_station_features(self.stations_payload)

    def fetch_observations(self, station_id: str) -> List[ObservationRecord]:
        payload = self.observation_payloads.get(station_id)
        if payload is None:
            return []
        return parse_observation_features(payload)
