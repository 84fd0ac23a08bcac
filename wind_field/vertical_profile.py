"""
Vertical Wind Profile (Power Law).

Wind speed increases with height above ground because surface friction
slows the air closest to the ground. For the lowest ~150 m the increase is
well described by the empirical power law

    u(z) = u_r * (z / z_r) ** alpha

where u_r is the speed measured at the reference height z_r (10 m for
standard reports) and alpha is the Hellman exponent of the terrain.

Assumptions
-----------
- Neutral stability (no strong inversion or convective mixing)
- Homogeneous terrain upwind of the point
- Heights well within the surface layer
"""

from dataclasses import dataclass
from typing import Union
import numpy as np
from numpy.typing import NDArray

from common.constants import HELLMAN_EXPONENTS, WindConstants
from common.errors import InvalidInput

Speed = Union[float, NDArray[np.float64]]

DEFAULT_ALPHA = WindConstants.HELLMAN_EXPONENT_OPEN_TERRAIN.value
REFERENCE_HEIGHT = WindConstants.REFERENCE_HEIGHT.value


def _check_height(name: str, height: float) -> None:
    if height is None or not np.isfinite(height) or height <= 0:
        raise InvalidInput(f"{name} must be a finite height > 0 m, got {height!r}")


def extrapolate(
    reference_speed: Speed,
    reference_height: float,
    target_height: float,
    alpha: float = DEFAULT_ALPHA
) -> Speed:
    """Estimate the wind speed at ``target_height`` from a reference speed.

    Parameters
    ----------
    reference_speed : float or ndarray
        Speed(s) at the reference height in M/S, >= 0.
    reference_height : float
        Height of the reference measurement in METERS, > 0.
    target_height : float
        Height to estimate at in METERS, > 0.
    alpha : float
        Hellman exponent. Defaults to 1/7 (open terrain).

    Returns
    -------
    float or ndarray
        Estimated speed(s) in M/S, same shape as ``reference_speed``.

    Raises
    ------
    InvalidInput
        On a non-positive or non-finite height, or a negative speed.

    Examples
    --------
    >>> round(extrapolate(5.0, 10, 50), 2)
    6.19
    """
    _check_height("reference_height", reference_height)
    _check_height("target_height", target_height)
    if not np.isfinite(alpha):
        raise InvalidInput(f"alpha must be finite, got {alpha!r}")

    speed = np.asarray(reference_speed, dtype=np.float64)
    if np.any(~np.isfinite(speed)) or np.any(speed < 0):
        raise InvalidInput("reference_speed must be finite and >= 0")

    result = speed * (target_height / reference_height) ** alpha
    if result.ndim == 0:
        return float(result)
    return result


@dataclass(frozen=True)
class VerticalProfileModel:
    """Power-law profile bound to a terrain exponent and reference height.

    Attributes
    ----------
    alpha : float
        Hellman exponent.
    reference_height : float
        Height in METERS at which input speeds are valid.
    """
    alpha: float = DEFAULT_ALPHA
    reference_height: float = REFERENCE_HEIGHT

    def __post_init__(self):
        _check_height("reference_height", self.reference_height)
        if not np.isfinite(self.alpha):
            raise InvalidInput(f"alpha must be finite, got {self.alpha!r}")

    @classmethod
    def for_terrain(cls, terrain: str) -> "VerticalProfileModel":
        """Build a model from a named terrain class (see ``HELLMAN_EXPONENTS``)."""
        try:
            alpha = HELLMAN_EXPONENTS[terrain]
        except KeyError:
            raise InvalidInput(
                f"Unknown terrain '{terrain}'. "
                f"Expected one of {sorted(HELLMAN_EXPONENTS)}"
            ) from None
        return cls(alpha=alpha)

    def speed_at(self, reference_speed: Speed, target_height: float) -> Speed:
        """Project a reference-height speed to ``target_height``."""
        return extrapolate(reference_speed, self.reference_height,
                           target_height, self.alpha)


DEFAULT_PROFILE = VerticalProfileModel()
