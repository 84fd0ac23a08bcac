"""
Forecast / Observation Reconciliation.

Hourly forecasts carry steady wind and direction but no gusts. Nearby
stations report measured gusts, but only for the recent past and only
when a station exists. Reconciliation merges the two by hour bucket and
falls back to a gust-factor estimate wherever no measurement is
available.

Fallback Cascade
----------------
The outcome of a cycle is one of three terminal states:

- ``MERGED``: every sample got a measured gust.
- ``MERGED_WITH_ESTIMATION_FILL``: measured gusts were merged and the
  remaining gaps were estimated.
- ``FULLY_ESTIMATED``: no station, no observations, or an upstream
  failure; every missing gust was estimated.

The pipeline returns the state as a tag; what the user is told about it
is the caller's business.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence

from common.constants import WindConstants
from common.errors import ReconciliationDegraded
from common.logging_config import get_logger
from common.types import ObservationRecord, StationInfo, WindSample, ensure_utc
from reconciliation.series import ReconciledSeries

logger = get_logger(__name__)

GUST_FACTOR = WindConstants.GUST_FACTOR.value


class ReconciliationOutcome(Enum):
    """Terminal state of one reconciliation cycle."""
    MERGED = "MERGED"
    MERGED_WITH_ESTIMATION_FILL = "MERGED_WITH_ESTIMATION_FILL"
    FULLY_ESTIMATED = "FULLY_ESTIMATED"

    @property
    def is_degraded(self) -> bool:
        return self is not ReconciliationOutcome.MERGED


@dataclass(frozen=True)
class ReconciliationResult:
    """Output of a reconciliation cycle.

    Attributes
    ----------
    series : ReconciledSeries
        Gap-filled series.
    outcome : ReconciliationOutcome
        Which branch of the cascade was taken.
    station : StationInfo, optional
        Station whose observations were consulted.
    reason : str
        Why the cycle ended in ``outcome``.
    filled_gaps : int
        Number of gusts produced by the estimator.
    """
    series: ReconciledSeries
    outcome: ReconciliationOutcome
    station: Optional[StationInfo] = None
    reason: str = ""
    filled_gaps: int = 0

    @property
    def degradation(self) -> Optional[ReconciliationDegraded]:
        """Informational status for degraded outcomes, None when fully merged."""
        if not self.outcome.is_degraded:
            return None
        return ReconciliationDegraded(
            outcome=self.outcome.value,
            reason=self.reason,
            station_id=self.station.station_id if self.station else None,
        )


def hour_key(ts: datetime) -> str:
    """Hour bucket key ``YYYY-MM-DD-HH`` of ``ts`` in UTC."""
    return ensure_utc(ts).strftime("%Y-%m-%d-%H")


def _dedupe_forecast(forecast: Iterable[WindSample]) -> list:
    seen = set()
    unique = []
    dropped = 0
    for sample in forecast:
        if sample.timestamp in seen:
            dropped += 1
            continue
        seen.add(sample.timestamp)
        unique.append(sample)
    if dropped:
        logger.warning(f"Dropped {dropped} forecast samples with duplicate timestamps")
    return unique


def _gusts_by_bucket(observations: Iterable[ObservationRecord]) -> Dict[str, float]:
    """Latest non-null gust per hour bucket."""
    latest: Dict[str, ObservationRecord] = {}
    for obs in observations:
        if obs.gust is None:
            continue
        key = hour_key(obs.timestamp)
        current = latest.get(key)
        if current is None or (obs.timestamp, obs.gust) > (current.timestamp, current.gust):
            latest[key] = obs
    return {key: obs.gust for key, obs in latest.items()}


def reconcile(
    forecast: Iterable[WindSample],
    observations: Iterable[ObservationRecord]
) -> ReconciledSeries:
    """Overlay measured gusts onto a forecast series by hour bucket.

    Parameters
    ----------
    forecast : iterable of WindSample
        Forecast samples in display order.
    observations : iterable of ObservationRecord
        Station observations; records without a gust are ignored.

    Returns
    -------
    ReconciledSeries
        Forecast order preserved. A sample whose bucket has a measured gust
        takes that gust (replacing any previous value); all other samples
        pass through unchanged. Applying the same observations again yields
        an identical series.
    """
    gusts = _gusts_by_bucket(observations)
    merged = []
    for sample in _dedupe_forecast(forecast):
        gust = gusts.get(hour_key(sample.timestamp))
        merged.append(sample.with_gust(gust) if gust is not None else sample)
    return ReconciledSeries(merged)


def estimate_missing_gusts(
    series: Iterable[WindSample],
    gust_factor: float = GUST_FACTOR
) -> ReconciledSeries:
    """Fill absent gusts with ``speed * gust_factor``.

    Existing gust values are never modified.
    """
    filled = [
        s if s.gust is not None else s.with_gust(s.speed * gust_factor)
        for s in _dedupe_forecast(series)
    ]
    return ReconciledSeries(filled)


def fully_estimated(
    forecast: Sequence[WindSample],
    reason: str,
    station: Optional[StationInfo] = None,
    gust_factor: float = GUST_FACTOR
) -> ReconciliationResult:
    """Cascade step 1: no usable observations, estimate everything missing."""
    base = ReconciledSeries(_dedupe_forecast(forecast))
    series = estimate_missing_gusts(base, gust_factor)
    return ReconciliationResult(
        series=series,
        outcome=ReconciliationOutcome.FULLY_ESTIMATED,
        station=station,
        reason=reason,
        filled_gaps=base.missing_gust_count,
    )


def merge_and_fill(
    forecast: Sequence[WindSample],
    observations: Sequence[ObservationRecord],
    station: Optional[StationInfo] = None,
    gust_factor: float = GUST_FACTOR
) -> ReconciliationResult:
    """Cascade step 2: merge measured gusts, estimate what is still missing."""
    merged = reconcile(forecast, observations)
    gaps = merged.missing_gust_count
    label = (station.name or station.station_id) if station else "station"
    if gaps == 0:
        return ReconciliationResult(
            series=merged,
            outcome=ReconciliationOutcome.MERGED,
            station=station,
            reason=f"Added gust data from {label}",
        )
    return ReconciliationResult(
        series=estimate_missing_gusts(merged, gust_factor),
        outcome=ReconciliationOutcome.MERGED_WITH_ESTIMATION_FILL,
        station=station,
        reason=f"Added gust data from {label}; estimated {gaps} hours without observations",
        filled_gaps=gaps,
    )
