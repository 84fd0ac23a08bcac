from datetime import datetime, timedelta, timezone

import pytest

from common.errors import StaleResult
from common.logging_config import AuditLogger
from common.types import Location, ObservationRecord, StationInfo, WindSample
from reconciliation.coordinator import ReconciliationCoordinator
from reconciliation.pipeline import ReconciliationOutcome
from reconciliation.workflow import (
    ReconciliationConfig,
    ReconciliationWorkflow,
    StaticStationSource,
    StationSource,
    select_station,
)

T0 = datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
HOME = Location(38.01, -92.17, "Missouri, USA")


class FailingStationSource(StationSource):
    def find_stations(self, latitude, longitude):
        raise ConnectionError("station service unavailable")

    def fetch_observations(self, station_id):
        raise AssertionError("should not be called")


class FailingObservationSource(StaticStationSource):
    def fetch_observations(self, station_id):
        raise TimeoutError("observation request timed out")


@pytest.fixture
def forecast():
    return [WindSample(timestamp=T0 + timedelta(hours=i), speed=5.0, direction=90.0)
            for i in range(4)]


@pytest.fixture
def near_station():
    return StationInfo("KVIH", "Rolla National Airport", latitude=38.13, longitude=-91.77)


@pytest.fixture
def far_station():
    return StationInfo("KSTL", "St. Louis Lambert", latitude=38.75, longitude=-90.37)


def test_no_station_network(forecast):
    result = ReconciliationWorkflow(None).run(forecast, HOME)
    assert result.outcome is ReconciliationOutcome.FULLY_ESTIMATED
    assert result.series.missing_gust_count == 0


def test_no_stations_found(forecast):
    result = ReconciliationWorkflow(StaticStationSource()).run(forecast, HOME)
    assert result.outcome is ReconciliationOutcome.FULLY_ESTIMATED
    assert result.reason == "No nearby weather stations found"
    assert result.station is None


def test_station_lookup_failure_becomes_estimation(forecast):
    result = ReconciliationWorkflow(FailingStationSource()).run(forecast, HOME)
    assert result.outcome is ReconciliationOutcome.FULLY_ESTIMATED
    assert result.reason == "Error fetching station data"


def test_observation_failure_becomes_estimation(forecast, near_station):
    source = FailingObservationSource([near_station])
    result = ReconciliationWorkflow(source).run(forecast, HOME)
    assert result.outcome is ReconciliationOutcome.FULLY_ESTIMATED
    assert result.station.station_id == "KVIH"


def test_empty_observations(forecast, near_station):
    source = StaticStationSource([near_station], {"KVIH": []})
    result = ReconciliationWorkflow(source).run(forecast, HOME)
    assert result.outcome is ReconciliationOutcome.FULLY_ESTIMATED
    assert "Rolla National Airport" in result.reason


def test_partial_observations_merge_and_fill(forecast, near_station):
    obs = [ObservationRecord(timestamp=T0 + timedelta(minutes=10), gust=8.0)]
    source = StaticStationSource([near_station], {"KVIH": obs})
    result = ReconciliationWorkflow(source).run(forecast, HOME)
    assert result.outcome is ReconciliationOutcome.MERGED_WITH_ESTIMATION_FILL
    assert result.series[0].gust == 8.0
    assert result.filled_gaps == 3


def test_custom_gust_factor(forecast):
    config = ReconciliationConfig(gust_factor=1.5)
    result = ReconciliationWorkflow(None, config).run(forecast, HOME)
    assert result.series[0].gust == pytest.approx(7.5)


def test_nearest_station_selected(near_station, far_station):
    chosen = select_station([far_station, near_station], HOME)
    assert chosen.station_id == "KVIH"
    assert chosen.distance_km == pytest.approx(37.0, abs=5.0)


def test_station_without_position_falls_back_to_listed_order():
    a = StationInfo("AAAA")
    b = StationInfo("BBBB")
    assert select_station([a, b], HOME).station_id == "AAAA"


def test_max_distance_excludes_far_stations(far_station):
    config = ReconciliationConfig(max_station_distance_km=50.0)
    assert select_station([far_station], HOME, config) is None


def test_stale_generation_discarded(forecast):
    config = ReconciliationConfig()
    audit = AuditLogger(config.as_dict())
    workflow = ReconciliationWorkflow(None, config)
    coordinator = ReconciliationCoordinator(workflow, audit=audit)

    first = coordinator.begin(HOME)
    second = coordinator.begin(Location(40.0, -90.0))
    late = workflow.run(forecast, HOME)

    assert coordinator.publish(first, late, HOME) is False
    assert coordinator.snapshot is None

    fresh = workflow.run(forecast, Location(40.0, -90.0))
    assert coordinator.publish(second, fresh) is True
    assert coordinator.snapshot.generation == second
    assert coordinator.snapshot.location == Location(40.0, -90.0)

    summary = audit.summary()
    assert summary["discarded_cycles"] == 1
    assert summary["outcome_counts"] == {"FULLY_ESTIMATED": 1}


def test_check_current_raises_for_superseded():
    coordinator = ReconciliationCoordinator(ReconciliationWorkflow(None))
    first = coordinator.begin(HOME)
    coordinator.begin(HOME)
    with pytest.raises(StaleResult) as excinfo:
        coordinator.check_current(first)
    assert excinfo.value.current == first + 1


def test_refresh_publishes_and_schedules(forecast):
    coordinator = ReconciliationCoordinator(ReconciliationWorkflow(None))
    assert coordinator.refresh_due()
    assert coordinator.refresh(HOME, forecast) is True

    snapshot = coordinator.snapshot
    assert snapshot.outcome is ReconciliationOutcome.FULLY_ESTIMATED
    assert len(snapshot.series) == 4
    assert not coordinator.refresh_due(snapshot.refreshed_at + timedelta(minutes=29))
    assert coordinator.refresh_due(snapshot.refreshed_at + timedelta(minutes=30))


def test_audit_export(tmp_path, forecast):
    audit = AuditLogger()
    coordinator = ReconciliationCoordinator(ReconciliationWorkflow(None), audit=audit)
    coordinator.refresh(HOME, forecast)
    out = tmp_path / "audit" / "cycles.json"
    audit.export(out)
    assert out.exists()
    assert '"FULLY_ESTIMATED"' in out.read_text()


class CountingWorkflow(ReconciliationWorkflow):
    def __init__(self):
        super().__init__(None)
        self.calls = 0

    def run(self, forecast, location):
        self.calls += 1
        return super().run(forecast, location)


def test_refresh_runs_once_per_location_and_cycle(forecast):
    workflow = CountingWorkflow()
    coordinator = ReconciliationCoordinator(workflow)
    assert coordinator.refresh(HOME, forecast) is True
    assert coordinator.refresh(HOME, forecast) is False
    assert workflow.calls == 1

    other = Location(40.0, -90.0)
    assert coordinator.refresh(other, forecast) is True
    assert workflow.calls == 2

    assert coordinator.refresh(other, forecast, force=True) is True
    assert workflow.calls == 3


def test_due_snapshot_is_refreshed_again(forecast):
    workflow = CountingWorkflow()
    coordinator = ReconciliationCoordinator(workflow, refresh_interval_s=0)
    coordinator.refresh(HOME, forecast)
    coordinator.refresh(HOME, forecast)
    assert workflow.calls == 2


def test_refresh_skipped_while_same_location_in_flight(forecast):
    nested = []

    class ReentrantWorkflow(CountingWorkflow):
        def run(self, forecast, location):
            nested.append(coordinator.refresh(location, forecast))
            return super().run(forecast, location)

    workflow = ReentrantWorkflow()
    coordinator = ReconciliationCoordinator(workflow)
    assert coordinator.refresh(HOME, forecast) is True
    assert nested == [False]
    assert workflow.calls == 1
