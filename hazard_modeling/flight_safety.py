"""
Flight Safety Classification for Small Unmanned Aircraft.

Decides whether conditions are within the operating envelope at each
analysis altitude over a time window.

Decision Rule
-------------
A single sample is safe when

    speed <= max_steady  and  (gust is None or gust <= max_gust)

The steady speed is the 10 m reference speed projected to each altitude
with the power-law profile. Gusts are compared as reported; they are not
projected. A height is safe when every sample in the window is safe, and
conditions are safe overall when every height is safe.

Window Fallback
---------------
When no sample falls inside the window the first two samples in
chronological order are evaluated instead, so that a stale series still
produces a verdict. The fallback is reported on the verdict.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence
import numpy as np
import xarray as xr

from common.constants import ANALYSIS_HEIGHTS, DEFAULT_THRESHOLDS, SafetyThresholds
from common.errors import InvalidInput, NoDataError
from common.logging_config import get_logger
from common.types import WindSample, _check_finite, ensure_utc
from wind_field.vertical_profile import DEFAULT_PROFILE, VerticalProfileModel

logger = get_logger(__name__)

FALLBACK_SAMPLE_COUNT = 2


def is_safe_for_drones(
    speed: float,
    gust: Optional[float] = None,
    thresholds: SafetyThresholds = DEFAULT_THRESHOLDS
) -> bool:
    """Check a single speed/gust pair against the operating limits.

    Examples
    --------
    >>> is_safe_for_drones(11.0, 12.0)
    True
    >>> is_safe_for_drones(11.5, 10.0)
    False

    Raises
    ------
    InvalidInput
        If ``speed`` or a supplied ``gust`` is not a finite number.
    """
    _check_finite("speed", speed)
    if gust is not None:
        _check_finite("gust", gust)
    if speed > thresholds.max_steady:
        return False
    return gust is None or gust <= thresholds.max_gust


@dataclass(frozen=True)
class SafetyVerdict:
    """Outcome of a safety classification.

    Attributes
    ----------
    per_height : dict
        Height in METERS -> safe flag.
    overall : bool
        Conjunction of all per-height flags.
    used_fallback : bool
        True when the window was empty and the first samples were used.
    sample_count : int
        Number of samples evaluated.
    """
    per_height: Dict[float, bool]
    overall: bool
    used_fallback: bool = False
    sample_count: int = 0

    @property
    def unsafe_heights(self) -> List[float]:
        return [h for h, safe in self.per_height.items() if not safe]


def _check_heights(heights: Sequence[float]) -> List[float]:
    heights = [float(h) for h in heights]
    if not heights:
        raise InvalidInput("At least one analysis height is required")
    for h in heights:
        if not np.isfinite(h) or h <= 0:
            raise InvalidInput(f"Analysis height must be a finite value > 0 m, got {h!r}")
    return heights


def select_window(
    samples: Sequence[WindSample],
    window_start: datetime,
    window_end: datetime
) -> tuple:
    """Samples inside ``[window_start, window_end]``.

    Returns
    -------
    tuple
        ``(selected, used_fallback)``.
    """
    start = ensure_utc(window_start)
    end = ensure_utc(window_end)
    if end < start:
        raise InvalidInput(f"Window end {end.isoformat()} precedes start {start.isoformat()}")

    selected = [s for s in samples if start <= s.timestamp <= end]
    if selected:
        return selected, False

    chronological = sorted(samples, key=lambda s: s.timestamp)
    logger.info(
        f"No samples between {start.isoformat()} and {end.isoformat()}; "
        f"using first {FALLBACK_SAMPLE_COUNT} available"
    )
    return chronological[:FALLBACK_SAMPLE_COUNT], True


def classify(
    samples: Sequence[WindSample],
    heights: Iterable[float],
    window_start: datetime,
    window_end: datetime,
    thresholds: SafetyThresholds = DEFAULT_THRESHOLDS,
    profile: VerticalProfileModel = DEFAULT_PROFILE
) -> SafetyVerdict:
    """Classify operating safety per height over a time window.

    Parameters
    ----------
    samples : sequence of WindSample
        Reconciled series at the reference height.
    heights : iterable of float
        Analysis altitudes in METERS.
    window_start, window_end : datetime
        Inclusive window bounds (naive values are UTC).
    thresholds : SafetyThresholds
        Operating limits.
    profile : VerticalProfileModel
        Profile used to project steady speeds.

    Returns
    -------
    SafetyVerdict

    Raises
    ------
    NoDataError
        If ``samples`` is empty.
    InvalidInput
        If ``heights`` is empty or contains a non-positive height.
    """
    heights = _check_heights(list(heights))
    if len(samples) == 0:
        raise NoDataError("Cannot classify safety without wind samples")

    selected, used_fallback = select_window(samples, window_start, window_end)
    speeds = np.array([s.speed for s in selected], dtype=np.float64)

    per_height: Dict[float, bool] = {}
    for height in heights:
        projected = np.atleast_1d(profile.speed_at(speeds, height))
        per_height[height] = all(
            is_safe_for_drones(float(v), s.gust, thresholds)
            for v, s in zip(projected, selected)
        )

    verdict = SafetyVerdict(
        per_height=per_height,
        overall=all(per_height.values()),
        used_fallback=used_fallback,
        sample_count=len(selected),
    )
    if not verdict.overall:
        logger.info(f"Unsafe at heights {verdict.unsafe_heights}")
    return verdict


def classify_next_hours(
    samples: Sequence[WindSample],
    heights: Iterable[float] = ANALYSIS_HEIGHTS,
    now: Optional[datetime] = None,
    hours: float = 2.0,
    thresholds: SafetyThresholds = DEFAULT_THRESHOLDS,
    profile: VerticalProfileModel = DEFAULT_PROFILE
) -> SafetyVerdict:
    """Classify the window from ``now`` to ``now + hours``."""
    if hours < 0:
        raise InvalidInput(f"hours must be >= 0, got {hours}")
    start = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
    return classify(samples, heights, start, start + timedelta(hours=hours),
                    thresholds, profile)


def height_profile_table(
    samples: Sequence[WindSample],
    heights: Iterable[float] = ANALYSIS_HEIGHTS,
    thresholds: SafetyThresholds = DEFAULT_THRESHOLDS,
    profile: VerticalProfileModel = DEFAULT_PROFILE
) -> xr.Dataset:
    """Projected speeds and safety flags for every sample and height.

    Returns
    -------
    xr.Dataset
        Dimensions ``time`` x ``height`` with variables ``speed`` (M/S) and
        ``safe``, plus per-time ``gust`` (NaN where absent) and ``row_safe``
        (the conjunction over heights).
    """
    heights = _check_heights(list(heights))
    times = np.array([s.timestamp.replace(tzinfo=None) for s in samples],
                     dtype="datetime64[ns]")
    base = np.array([s.speed for s in samples], dtype=np.float64)
    gust = np.array([np.nan if s.gust is None else s.gust for s in samples],
                    dtype=np.float64)

    speed = np.empty((len(samples), len(heights)), dtype=np.float64)
    for j, height in enumerate(heights):
        speed[:, j] = profile.speed_at(base, height)

    gust_ok = np.isnan(gust) | (gust <= thresholds.max_gust)
    safe = (speed <= thresholds.max_steady) & gust_ok[:, None]

    ds = xr.Dataset(
        data_vars={
            "speed": (("time", "height"), speed),
            "safe": (("time", "height"), safe),
            "gust": ("time", gust),
            "row_safe": ("time", safe.all(axis=1)),
        },
        coords={"time": times, "height": np.array(heights, dtype=np.float64)},
    )
    ds["speed"].attrs["units"] = "m/s"
    ds["gust"].attrs["units"] = "m/s"
    ds["height"].attrs["units"] = "m"
    ds.attrs["max_steady"] = thresholds.max_steady
    ds.attrs["max_gust"] = thresholds.max_gust
    return ds
