"""
Reconciliation Module.

Merges hourly forecasts with station gust observations:
- Hour-bucket merge and gust-factor estimation
- Fallback cascade with a tagged outcome
- Station workflow and generation-ordered snapshot publishing
"""

from reconciliation.series import ReconciledSeries
from reconciliation.pipeline import (
    ReconciliationOutcome,
    ReconciliationResult,
    hour_key,
    reconcile,
    estimate_missing_gusts,
    fully_estimated,
    merge_and_fill,
)
from reconciliation.workflow import (
    ReconciliationConfig,
    StationSource,
    StaticStationSource,
    ReconciliationWorkflow,
    select_station,
)
from reconciliation.coordinator import (
    WindSnapshot,
    ReconciliationCoordinator,
)

__all__ = [
    "ReconciledSeries",
    "ReconciliationOutcome",
    "ReconciliationResult",
    "hour_key",
    "reconcile",
    "estimate_missing_gusts",
    "fully_estimated",
    "merge_and_fill",
    "ReconciliationConfig",
    "StationSource",
    "StaticStationSource",
    "ReconciliationWorkflow",
    "select_station",
    "WindSnapshot",
    "ReconciliationCoordinator",
]
