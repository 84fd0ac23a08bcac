"""
Common utilities and infrastructure for the Drone Wind Advisory Core.

This package provides foundational components used across all modules:
- Wind constants and safety thresholds
- Unit conversion through pint
- Validated record types
- Error taxonomy
- Logging and reconciliation audit trail
"""

from common.constants import (
    WindConstants,
    SafetyThresholds,
    DEFAULT_THRESHOLDS,
    ANALYSIS_HEIGHTS,
)
from common.errors import (
    WindCoreError,
    InvalidInput,
    NoDataError,
    StaleResult,
    ReconciliationDegraded,
)
from common.units import UnitRegistry, mph_to_ms, ms_to_mph
from common.types import (
    WindSample,
    GeoWindSample,
    ObservationRecord,
    WindVector,
    Location,
    StationInfo,
    Viewport,
)
from common.logging_config import get_logger, AuditLogger, CycleRecord

__all__ = [
    "WindConstants",
    "SafetyThresholds",
    "DEFAULT_THRESHOLDS",
    "ANALYSIS_HEIGHTS",
    "WindCoreError",
    "InvalidInput",
    "NoDataError",
    "StaleResult",
    "ReconciliationDegraded",
    "UnitRegistry",
    "mph_to_ms",
    "ms_to_mph",
    "WindSample",
    "GeoWindSample",
    "ObservationRecord",
    "WindVector",
    "Location",
    "StationInfo",
    "Viewport",
    "get_logger",
    "AuditLogger",
    "CycleRecord",
]
