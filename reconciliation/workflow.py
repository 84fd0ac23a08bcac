"""
Reconciliation Workflow.

Drives one reconciliation cycle for a location: discover a station, fetch
its observations, and walk the fallback cascade. Station discovery and
observation fetching are external collaborators behind ``StationSource``;
any failure they raise is translated here into "no observations
available" so that the core itself never fails for missing optional data.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

import numpy as np

from common.constants import WindConstants
from common.logging_config import get_logger
from common.types import Location, ObservationRecord, StationInfo, WindSample
from geospatial.distance_calculations import geodesic_distance_batch_km
from reconciliation.pipeline import (
    ReconciliationResult,
    fully_estimated,
    merge_and_fill,
)


@dataclass(frozen=True)
class ReconciliationConfig:
    """Configuration for reconciliation cycles.

    Attributes
    ----------
    gust_factor : float
        Ratio applied by the gust estimator.
    prefer_nearest_station : bool
        Rank discovered stations by geodesic distance when they carry
        coordinates; otherwise the collaborator's order is used.
    max_station_distance_km : float, optional
        Stations farther than this are ignored.
    """
    gust_factor: float = WindConstants.GUST_FACTOR.value
    prefer_nearest_station: bool = True
    max_station_distance_km: Optional[float] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "gust_factor": self.gust_factor,
            "prefer_nearest_station": self.prefer_nearest_station,
            "max_station_distance_km": self.max_station_distance_km,
        }


class StationSource(ABC):
    """Boundary to the station discovery / observation collaborators.

    Implementations perform whatever I/O they need; the core only sees
    the parsed records.
    """

    @abstractmethod
    def find_stations(self, latitude: float, longitude: float) -> List[StationInfo]:
        """Stations near the point, closest first if the source knows."""
        pass

    @abstractmethod
    def fetch_observations(self, station_id: str) -> List[ObservationRecord]:
        """Recent observations for ``station_id``."""
        pass


class StaticStationSource(StationSource):
    """In-memory station source over already-fetched payloads."""

    def __init__(
        self,
        stations: Sequence[StationInfo] = (),
        observations: Optional[Dict[str, Sequence[ObservationRecord]]] = None
    ):
        self._stations = list(stations)
        self._observations = {k: list(v) for k, v in (observations or {}).items()}

    def find_stations(self, latitude: float, longitude: float) -> List[StationInfo]:
        return list(self._stations)

    def fetch_observations(self, station_id: str) -> List[ObservationRecord]:
        return list(self._observations.get(station_id, []))


def select_station(
    stations: Sequence[StationInfo],
    location: Location,
    config: ReconciliationConfig = ReconciliationConfig()
) -> Optional[StationInfo]:
    """Choose the station to reconcile against.

    Stations with coordinates get their geodesic distance filled in. With
    ``prefer_nearest_station`` the closest one wins; stations without
    coordinates keep their listed order behind those with.
    """
    if not stations:
        return None

    positioned = [i for i, s in enumerate(stations) if s.has_position]
    distances = {}
    if positioned:
        km = geodesic_distance_batch_km(
            location.latitude, location.longitude,
            np.array([stations[i].latitude for i in positioned]),
            np.array([stations[i].longitude for i in positioned])
        )
        distances = dict(zip(positioned, km.tolist()))

    ranked = []
    for order, station in enumerate(stations):
        if order in distances:
            station = replace(station, distance_km=distances[order])
        ranked.append((order, station))

    if config.max_station_distance_km is not None:
        ranked = [
            (order, s) for order, s in ranked
            if s.distance_km is None or s.distance_km <= config.max_station_distance_km
        ]
        if not ranked:
            return None

    if config.prefer_nearest_station:
        ranked.sort(key=lambda item: (
            item[1].distance_km is None,
            item[1].distance_km if item[1].distance_km is not None else 0.0,
            item[0],
        ))
    return ranked[0][1]


class ReconciliationWorkflow:
    """Runs the fallback cascade against a station collaborator."""

    def __init__(
        self,
        station_source: Optional[StationSource],
        config: ReconciliationConfig = ReconciliationConfig()
    ):
        """Initialize workflow.

        Parameters
        ----------
        station_source : StationSource, optional
            Station collaborator. ``None`` means no station network is
            available, and every cycle is fully estimated.
        config : ReconciliationConfig
            Cycle configuration.
        """
        self.station_source = station_source
        self.config = config
        self._logger = get_logger("ReconciliationWorkflow")

    def run(self, forecast: Sequence[WindSample], location: Location) -> ReconciliationResult:
        """Reconcile ``forecast`` for ``location``.

        Returns
        -------
        ReconciliationResult
            Tagged with the cascade outcome. Never raises for missing or
            failing station data.
        """
        factor = self.config.gust_factor
        if self.station_source is None:
            return fully_estimated(forecast, "No station network configured", gust_factor=factor)

        try:
            stations = self.station_source.find_stations(location.latitude, location.longitude)
        except Exception as e:
            self._logger.warning(f"Station lookup failed: {e}")
            return fully_estimated(
                forecast, "Error fetching station data", gust_factor=factor
            )

        station = select_station(stations, location, self.config)
        if station is None:
            return fully_estimated(forecast, "No nearby weather stations found",
                                   gust_factor=factor)

        try:
            observations = self.station_source.fetch_observations(station.station_id)
        except Exception as e:
            self._logger.warning(
                f"Observation fetch failed for {station.station_id}: {e}"
            )
            return fully_estimated(
                forecast, "Error fetching station data", station=station, gust_factor=factor
            )

        if not observations:
            return fully_estimated(
                forecast,
                f"No observation data from {station.name or station.station_id}",
                station=station,
                gust_factor=factor,
            )

        self._logger.info(
            f"Merging {len(observations)} observations from {station.station_id}"
        )
        return merge_and_fill(forecast, observations, station=station, gust_factor=factor)
