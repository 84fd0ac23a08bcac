"""
Reconciliation Coordinator.

Location changes and timed refreshes can start reconciliation cycles that
overlap. Each request is stamped with a generation number from a single
counter; only the result of the most recent generation may replace the
published snapshot. Late results from superseded generations are dropped.

The snapshot itself is immutable and is replaced by one reference
assignment, so readers see either the old snapshot or the new one and
never a mix of both.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from common.constants import DEFAULT_REFRESH_INTERVAL_S
from common.errors import InvalidInput, StaleResult
from common.logging_config import AuditLogger, CycleRecord, get_logger
from common.types import Location, WindSample, ensure_utc
from reconciliation.pipeline import ReconciliationOutcome, ReconciliationResult
from reconciliation.series import ReconciledSeries
from reconciliation.workflow import ReconciliationWorkflow


@dataclass(frozen=True)
class WindSnapshot:
    """The published, display-ready state for one location.

    Attributes
    ----------
    result : ReconciliationResult
        Reconciled series with its cascade outcome.
    location : Location
        Location the series belongs to.
    generation : int
        Generation that produced it.
    refreshed_at : datetime
        UTC time of publication.
    """
    result: ReconciliationResult
    location: Location
    generation: int
    refreshed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def series(self) -> ReconciledSeries:
        return self.result.series

    @property
    def outcome(self) -> ReconciliationOutcome:
        return self.result.outcome


class ReconciliationCoordinator:
    """Serializes reconciliation results by generation.

    Parameters
    ----------
    workflow : ReconciliationWorkflow
        Runs a single cycle.
    audit : AuditLogger, optional
        Receives one record per applied or discarded cycle.
    refresh_interval_s : float
        Age after which the snapshot is due for a refresh.

    Examples
    --------
    >>> coordinator = ReconciliationCoordinator(ReconciliationWorkflow(None))
    >>> first = coordinator.begin(Location(38.0, -92.0))
    >>> second = coordinator.begin(Location(40.0, -90.0))
    >>> coordinator.is_current(first)
    False
    """

    def __init__(
        self,
        workflow: ReconciliationWorkflow,
        audit: Optional[AuditLogger] = None,
        refresh_interval_s: float = DEFAULT_REFRESH_INTERVAL_S
    ):
        self.workflow = workflow
        self.audit = audit
        self.refresh_interval_s = refresh_interval_s
        self._lock = threading.Lock()
        self._generation = 0
        self._pending = {}
        self._in_flight = set()
        self._snapshot: Optional[WindSnapshot] = None
        self._logger = get_logger("ReconciliationCoordinator")

    @property
    def generation(self) -> int:
        """Most recently issued generation."""
        return self._generation

    @property
    def snapshot(self) -> Optional[WindSnapshot]:
        """Currently published snapshot, or None before the first publish."""
        return self._snapshot

    def begin(self, location: Location) -> int:
        """Issue the generation number for a new request at ``location``."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._pending = {generation: location}
        self._logger.debug(f"Started generation {generation} for {location.key}")
        return generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def check_current(self, generation: int) -> None:
        """Raise ``StaleResult`` if ``generation`` has been superseded."""
        current = self._generation
        if generation != current:
            raise StaleResult(generation, current)

    def publish(self, generation: int, result: ReconciliationResult,
                location: Optional[Location] = None) -> bool:
        """Publish ``result`` if its generation is still the latest.

        Returns
        -------
        bool
            True when the snapshot was replaced, False when the result was
            stale and dropped.
        """
        with self._lock:
            try:
                self.check_current(generation)
            except StaleResult as stale:
                self._logger.debug(f"Discarding result: {stale}")
                self._record(generation, result, location, discarded=True)
                return False
            if location is None:
                location = self._pending.get(generation)
            if location is None:
                raise InvalidInput(f"No location known for generation {generation}")
            self._snapshot = WindSnapshot(
                result=result, location=location, generation=generation
            )
        self._record(generation, result, location, discarded=False)
        return True

    def refresh(self, location: Location, forecast: Sequence[WindSample],
                force: bool = False) -> bool:
        """Run one full cycle for ``location`` and publish it if still current.

        A location is reconciled at most once per refresh cycle: the call is
        skipped while a request for the same location is in flight, or while
        the published snapshot is for that location and not yet due.

        Returns
        -------
        bool
            True when a new snapshot was published.
        """
        key = location.key
        with self._lock:
            if not force:
                if key in self._in_flight:
                    self._logger.debug(f"Refresh for {key} already in flight")
                    return False
                snapshot = self._snapshot
                if (snapshot is not None and snapshot.location.key == key
                        and not self.refresh_due()):
                    self._logger.debug(f"Snapshot for {key} is current; skipping refresh")
                    return False
            self._in_flight.add(key)

        try:
            generation = self.begin(location)
            result = self.workflow.run(forecast, location)
            return self.publish(generation, result, location)
        finally:
            with self._lock:
                self._in_flight.discard(key)

    def refresh_due(self, now: Optional[datetime] = None) -> bool:
        """True when there is no snapshot or it is older than the interval."""
        snapshot = self._snapshot
        if snapshot is None:
            return True
        now = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
        age = (now - snapshot.refreshed_at).total_seconds()
        return age >= self.refresh_interval_s

    def _record(self, generation, result, location, discarded):
        if self.audit is None:
            return
        self.audit.record_cycle(CycleRecord(
            generation=generation,
            location=location.key if location is not None else (),
            outcome=result.outcome.value,
            station_id=result.station.station_id if result.station else None,
            filled_gaps=result.filled_gaps,
            discarded=discarded,
        ))
