"""
Wind Constants and Operating Thresholds.

This module provides the empirical constants used by the wind advisory
core together with their provenance, and the process-wide safety
thresholds for drone operations.

All values are SI unless stated otherwise.

References
----------
- Hellman, G. (1916). Über die Bewegung der Luft in den untersten
  Schichten der Atmosphäre.
- WMO-No. 8, Guide to Meteorological Instruments (10 m reference height).
"""

from dataclasses import dataclass
from typing import Final, Tuple

from common.errors import InvalidInput


@dataclass(frozen=True)
class Constant:
    """An empirical constant with provenance.

    Attributes
    ----------
    value : float
        The nominal value of the constant.
    unit : str
        The unit of the constant.
    source : str
        Reference for the constant value.
    description : str
        Human-readable description of the constant.
    """
    value: float
    unit: str
    source: str
    description: str


class WindConstants:
    """Registry of constants used throughout the wind core.

    Vertical Profile
    ----------------
    Forecast and station winds are reported at the WMO standard 10 m
    height. The power-law exponent of 1/7 corresponds to open terrain.

    Gust Estimation
    ---------------
    When no measured gust is available, gusts are estimated from the
    steady speed using a fixed gust factor.
    """

    REFERENCE_HEIGHT: Final[Constant] = Constant(
        value=10.0,
        unit="m",
        source="WMO-No. 8",
        description="Standard anemometer height for surface wind reports"
    )

    HELLMAN_EXPONENT_OPEN_TERRAIN: Final[Constant] = Constant(
        value=1.0 / 7.0,
        unit="dimensionless",
        source="Hellman (1916); one-seventh power law",
        description="Power-law shear exponent for open, flat terrain"
    )

    GUST_FACTOR: Final[Constant] = Constant(
        value=1.4,
        unit="dimensionless",
        source="Empirical peak-to-mean ratio over land",
        description="Ratio of gust to steady speed used by the gust estimator"
    )

    METERS_PER_DEGREE_LATITUDE: Final[Constant] = Constant(
        value=111_320.0,
        unit="m/deg",
        source="Spherical approximation",
        description="Meridional arc length of one degree of latitude"
    )

    IDW_EPSILON: Final[Constant] = Constant(
        value=1e-6,
        unit="deg",
        source="Numerical guard",
        description="Distance offset preventing division by zero in IDW"
    )


# Shear exponents by terrain class. Open terrain is the default.
HELLMAN_EXPONENTS = {
    "open_water": 0.11,
    "open_terrain": WindConstants.HELLMAN_EXPONENT_OPEN_TERRAIN.value,
    "crops_hedges": 0.20,
    "suburban": 0.25,
    "urban": 0.40,
}

# Operating altitudes (m) reported by the advisory.
ANALYSIS_HEIGHTS: Tuple[float, ...] = (10.0, 20.0, 50.0, 80.0, 100.0, 120.0)

# Interval between full reconciliation cycles (seconds).
DEFAULT_REFRESH_INTERVAL_S: float = 30 * 60.0

DEFAULT_LOCATION = {
    "latitude": 38.01,
    "longitude": -92.17,
    "display_name": "Missouri, USA",
}


@dataclass(frozen=True)
class SafetyThresholds:
    """Wind limits for safe drone operations.

    Attributes
    ----------
    max_steady : float
        Maximum steady wind speed in M/S.
    max_gust : float
        Maximum gust speed in M/S.
    """
    max_steady: float = 11.0
    max_gust: float = 12.0

    def __post_init__(self):
        if not (self.max_steady > 0 and self.max_gust > 0):
            raise InvalidInput("Safety thresholds must be positive")


DEFAULT_THRESHOLDS: Final[SafetyThresholds] = SafetyThresholds()
