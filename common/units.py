"""
Unit Handling for Wind Speeds.

Upstream sources report wind in a mix of units: hourly forecasts in miles
per hour, station observations in km/h (WMO unit codes), aviation sources
in knots. The core works exclusively in meters per second; every
conversion goes through the `pint` registry defined here so that a wrong
unit fails loudly instead of silently scaling a speed.

Example Usage
-------------
>>> from common.units import Q_
>>> Q_(10, 'mile / hour').to('meter / second')
<Quantity(4.4704, 'meter / second')>
"""

from typing import Optional, Union
import warnings

import numpy as np
import pint
from pint import UnitRegistry as PintUnitRegistry

# Create the global unit registry
ureg = PintUnitRegistry()

# Convenience alias for creating quantities
Q_ = ureg.Quantity

SPEED_UNIT = "meter / second"

# WMO / NWS unit codes seen in observation payloads.
WMO_UNIT_CODES = {
    "wmoUnit:km_h-1": "kilometer / hour",
    "wmoUnit:m_s-1": "meter / second",
    "wmoUnit:kn": "knot",
    "unit:mi_h-1": "mile / hour",
}


class UnitRegistry:
    """Thin wrapper around the shared pint registry for wind quantities.

    Examples
    --------
    >>> units = UnitRegistry()
    >>> round(units.to_ms(36, 'kilometer / hour'), 3)
    10.0
    """

    def __init__(self):
        self._registry = ureg

    @property
    def registry(self) -> PintUnitRegistry:
        """Access the underlying pint registry."""
        return self._registry

    def quantity(self, value: float, unit: str) -> pint.Quantity:
        """Create a quantity with units."""
        return self._registry.Quantity(value, unit)

    def to_ms(self, value: float, unit: str) -> float:
        """Convert a speed expressed in ``unit`` to meters per second.

        Raises
        ------
        pint.DimensionalityError
            If ``unit`` is not a velocity.
        """
        return float(self._registry.Quantity(value, unit).to(SPEED_UNIT).magnitude)


_units = UnitRegistry()


def mph_to_ms(mph: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Convert miles per hour to meters per second."""
    result = Q_(mph, "mile / hour").to(SPEED_UNIT).magnitude
    return float(result) if np.ndim(result) == 0 else result


def ms_to_mph(ms: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Convert meters per second to miles per hour."""
    result = Q_(ms, SPEED_UNIT).to("mile / hour").magnitude
    return float(result) if np.ndim(result) == 0 else result


def unit_code_to_ms(value: Optional[float], unit_code: Optional[str]) -> Optional[float]:
    """Convert a WMO-coded observation value to meters per second.

    ``None`` values pass through unchanged. A missing unit code is treated
    as meters per second with a warning.
    """
    if value is None:
        return None
    if not unit_code:
        warnings.warn(
            f"Bare number {value} provided without units. "
            f"Assuming {SPEED_UNIT}.",
            UserWarning,
            stacklevel=2
        )
        return float(value)
    if unit_code not in WMO_UNIT_CODES:
        raise ValueError(f"Unsupported unit code: {unit_code}")
    return _units.to_ms(value, WMO_UNIT_CODES[unit_code])


def format_wind_speed(speed_ms: float) -> str:
    """Format a speed for display in both m/s and mph."""
    return f"{speed_ms:.1f} m/s ({ms_to_mph(speed_ms):.1f} mph)"
