"""
Wind Field Module.

Continuous wind estimates from sparse samples:
- Power-law vertical profile (height extrapolation)
- Inverse-distance weighted horizontal interpolation
"""

from wind_field.vertical_profile import (
    VerticalProfileModel,
    extrapolate,
    DEFAULT_PROFILE,
)
from wind_field.interpolation import (
    SpatialInterpolator,
    InterpolationResult,
    interpolate,
)

__all__ = [
    "VerticalProfileModel",
    "extrapolate",
    "DEFAULT_PROFILE",
    "SpatialInterpolator",
    "InterpolationResult",
    "interpolate",
]
