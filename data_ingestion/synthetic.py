"""
Synthetic forecast used when the forecast source is unavailable.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Union

import numpy as np

from common.constants import DEFAULT_LOCATION
from common.errors import InvalidInput
from common.types import WindSample, ensure_utc, validate_coordinates
from data_ingestion.daylight import is_daylight


def generate_synthetic_forecast(
    start: datetime,
    hours: int = 48,
    rng: Union[np.random.Generator, int, None] = None,
    latitude: float = DEFAULT_LOCATION["latitude"],
    longitude: float = DEFAULT_LOCATION["longitude"]
) -> List[WindSample]:
    """Hourly samples with a slow diurnal swing plus noise.

    Speed is ``5 + 4 sin(i / 6) + U(0, 2)`` m/s, the gust is the speed
    times ``U(1, 1.5)``, and the direction veers 15 degrees per hour.

    Parameters
    ----------
    start : datetime
        Time of the first sample.
    hours : int
        Number of hourly samples.
    rng : Generator or int, optional
        Random source or seed.
    latitude, longitude : float
        Location used for the daylight flag.
    """
    if hours < 0:
        raise InvalidInput(f"hours must be >= 0, got {hours}")
    validate_coordinates(latitude, longitude)
    if not isinstance(rng, np.random.Generator):
        rng = np.random.default_rng(rng)

    start = ensure_utc(start)
    samples = []
    for i in range(hours):
        timestamp = start + timedelta(hours=i)
        speed = 5.0 + np.sin(i / 6.0) * 4.0 + rng.random() * 2.0
        gust = speed * (1.0 + rng.random() * 0.5)
        samples.append(WindSample(
            timestamp=timestamp,
            speed=float(speed),
            direction=float((i * 15) % 360),
            gust=float(gust),
            is_daytime=is_daylight(timestamp, latitude, longitude),
        ))
    return samples
