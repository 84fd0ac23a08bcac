"""
Particle Advection over the Interpolated Wind Field.

A fixed population of tracer particles is carried by the wind field to
visualize flow on a map. Particle state lives in three parallel arrays
(longitude, latitude, age) indexed by particle id; particles are never
created or destroyed after seeding, only overwritten in place.

Per Tick
--------
1. Particles outside the viewport respawn uniformly inside it with
   age 0 and emit no segment.
2. The remaining particles sample the field at the display altitude and
   move by

       d_lat = north * dt / 111320
       d_lon = east * dt / (111320 * cos(lat))

   with dt = clamp(0.6 + (zoom - 8) * 0.08, 0.3, 1.2), so apparent motion
   stays similar across zoom levels.
3. Each moved particle emits a (previous, new) segment and ages by one.
4. Particles older than the maximum lifetime respawn inside the viewport.

All randomness comes from one ``numpy.random.Generator``; a fixed seed
reproduces trajectories exactly.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union
import numpy as np
from numpy.typing import NDArray

from common.errors import InvalidInput
from common.logging_config import get_logger
from common.types import GeoWindSample, Viewport
from geospatial.distance_calculations import meters_to_degrees
from wind_field.interpolation import SpatialInterpolator

logger = get_logger(__name__)


@dataclass(frozen=True)
class AdvectionConfig:
    """Configuration for the particle simulator.

    Attributes
    ----------
    capacity : int
        Number of particles in the arena.
    max_age : int
        Ticks after which a particle respawns.
    initial_age_max : int
        Seeded ages are drawn from ``[0, initial_age_max)`` so that
        particles do not all expire on the same tick.
    base_dt : float
        Time step at zoom 8.
    dt_per_zoom : float
        Change of time step per zoom level.
    min_dt, max_dt : float
        Bounds on the time step.
    height_m : float
        Display altitude in METERS.
    random_seed : int, optional
        Seed used when no generator is supplied.
    """
    capacity: int = 500
    max_age: int = 100
    initial_age_max: int = 90
    base_dt: float = 0.6
    dt_per_zoom: float = 0.08
    min_dt: float = 0.3
    max_dt: float = 1.2
    height_m: float = 10.0
    random_seed: Optional[int] = None

    def __post_init__(self):
        if self.capacity < 1:
            raise InvalidInput(f"capacity must be >= 1, got {self.capacity}")
        if self.max_age < 1 or self.initial_age_max < 1:
            raise InvalidInput("max_age and initial_age_max must be >= 1")
        if not self.min_dt <= self.max_dt:
            raise InvalidInput("min_dt must not exceed max_dt")
        if not np.isfinite(self.height_m) or self.height_m <= 0:
            raise InvalidInput(f"height_m must be > 0, got {self.height_m}")

    def time_step(self, zoom: float) -> float:
        """Zoom-dependent integration step."""
        dt = self.base_dt + (zoom - 8.0) * self.dt_per_zoom
        return float(np.clip(dt, self.min_dt, self.max_dt))


@dataclass(frozen=True)
class SegmentBatch:
    """Line segments produced by one tick.

    Attributes
    ----------
    particle_ids : ndarray
        Ids of the particles that moved, shape (K,).
    start : ndarray
        Previous positions as (longitude, latitude), shape (K, 2).
    end : ndarray
        New positions as (longitude, latitude), shape (K, 2).
    """
    particle_ids: NDArray[np.int64]
    start: NDArray[np.float64]
    end: NDArray[np.float64]

    def __len__(self) -> int:
        return len(self.particle_ids)

    @classmethod
    def empty(cls) -> "SegmentBatch":
        return cls(np.empty(0, dtype=np.int64), np.empty((0, 2)), np.empty((0, 2)))


class ParticleAdvectionSimulator:
    """Fixed-capacity tracer population advected by an IDW wind field.

    Not thread-safe; a single driver calls ``tick`` repeatedly.

    Examples
    --------
    >>> sim = ParticleAdvectionSimulator(AdvectionConfig(capacity=10), rng=0)
    >>> sim.set_viewport(Viewport(-93.0, 37.0, -91.0, 39.0, zoom=8))
    >>> len(sim.tick())
    10
    """

    def __init__(
        self,
        config: Optional[AdvectionConfig] = None,
        interpolator: Optional[SpatialInterpolator] = None,
        rng: Union[np.random.Generator, int, None] = None
    ):
        """Initialize simulator.

        Parameters
        ----------
        config : AdvectionConfig, optional
            Population and integration settings; defaults when omitted.
        interpolator : SpatialInterpolator, optional
            Field sampler. A default interpolator is built when omitted.
        rng : Generator or int, optional
            Random source, or a seed for one. Falls back to
            ``config.random_seed``.
        """
        config = config if config is not None else AdvectionConfig()
        self.config = config
        self.interpolator = interpolator or SpatialInterpolator()
        if isinstance(rng, np.random.Generator):
            self.rng = rng
        else:
            self.rng = np.random.default_rng(
                rng if rng is not None else config.random_seed
            )

        n = config.capacity
        self.longitude = np.zeros(n, dtype=np.float64)
        self.latitude = np.zeros(n, dtype=np.float64)
        self.age = np.zeros(n, dtype=np.int64)

        self._viewport: Optional[Viewport] = None
        self._samples: Sequence[GeoWindSample] = ()
        self._height = config.height_m
        self._ticks = 0
        self._logger = get_logger("ParticleAdvectionSimulator")

    @property
    def capacity(self) -> int:
        return self.config.capacity

    @property
    def viewport(self) -> Optional[Viewport]:
        return self._viewport

    @property
    def height(self) -> float:
        return self._height

    @property
    def ticks(self) -> int:
        """Ticks since the last seed."""
        return self._ticks

    def _uniform_positions(self, count: int):
        vp = self._viewport
        lon = vp.west + self.rng.random(count) * (vp.east - vp.west)
        lat = vp.south + self.rng.random(count) * (vp.north - vp.south)
        return lon, lat

    def _respawn(self, mask: NDArray[np.bool_]) -> None:
        count = int(mask.sum())
        if count == 0:
            return
        lon, lat = self._uniform_positions(count)
        self.longitude[mask] = lon
        self.latitude[mask] = lat
        self.age[mask] = 0

    def seed(self, viewport: Optional[Viewport] = None) -> None:
        """Place every particle uniformly in the viewport with a random age."""
        if viewport is not None:
            self._viewport = viewport
        if self._viewport is None:
            raise InvalidInput("Cannot seed particles without a viewport")
        n = self.capacity
        self.longitude[:], self.latitude[:] = self._uniform_positions(n)
        self.age[:] = self.rng.integers(0, self.config.initial_age_max, size=n)
        self._ticks = 0
        self._logger.debug(f"Seeded {n} particles in {self._viewport}")

    def set_viewport(self, viewport: Viewport) -> None:
        """Switch to a new viewport; in-flight particle state is discarded."""
        self.seed(viewport)

    def set_field(
        self,
        samples: Sequence[GeoWindSample],
        height: Optional[float] = None
    ) -> None:
        """Replace the sparse wind samples and/or display altitude.

        Re-seeds immediately when a viewport is set.
        """
        if height is not None:
            if not np.isfinite(height) or height <= 0:
                raise InvalidInput(f"Display height must be > 0 m, got {height!r}")
            self._height = float(height)
        self._samples = tuple(samples)
        if self._viewport is not None:
            self.seed()

    def out_of_bounds(self) -> NDArray[np.bool_]:
        """Mask of particles currently outside the viewport."""
        vp = self._viewport
        return ((self.longitude < vp.west) | (self.longitude > vp.east)
                | (self.latitude < vp.south) | (self.latitude > vp.north))

    def tick(self) -> SegmentBatch:
        """Advance the simulation by one step.

        Returns
        -------
        SegmentBatch
            One segment per particle that moved this tick.
        """
        if self._viewport is None:
            raise InvalidInput("Viewport must be set before ticking")

        exited = self.out_of_bounds()
        self._respawn(exited)

        moving = np.flatnonzero(~exited)
        if moving.size == 0:
            self._ticks += 1
            return SegmentBatch.empty()

        lon0 = self.longitude[moving].copy()
        lat0 = self.latitude[moving].copy()

        east, north, _ = self.interpolator.interpolate_grid(
            self._samples, lat0, lon0, self._height
        )
        dt = self.config.time_step(self._viewport.zoom)
        d_lon, d_lat = meters_to_degrees(east * dt, north * dt, lat0)

        self.longitude[moving] = lon0 + d_lon
        self.latitude[moving] = lat0 + d_lat
        self.age[moving] += 1

        batch = SegmentBatch(
            particle_ids=moving.astype(np.int64),
            start=np.column_stack([lon0, lat0]),
            end=np.column_stack([self.longitude[moving], self.latitude[moving]]),
        )

        expired = self.age > self.config.max_age
        self._respawn(expired)

        self._ticks += 1
        return batch
