"""
Spatial Wind Interpolation by Inverse-Distance Weighting.

Station and forecast points are sparse (tens of points at most), so the
wind at an arbitrary location is estimated from its nearest neighbours:

    V(x) = sum_i w_i V_i / sum_i w_i,    w_i = 1 / d_i ** p

with p = 2 over the four nearest samples. A small epsilon is added to
every distance so a query that coincides with a sample is dominated by
that sample instead of dividing by zero.

Each neighbour's speed is first projected to the requested height with
the vertical profile, then decomposed into components:

    northward = cos(direction) * speed
    eastward  = sin(direction) * speed

with direction in degrees clockwise from north.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple
import numpy as np
from numpy.typing import NDArray

from common.constants import WindConstants
from common.errors import InvalidInput
from common.types import GeoWindSample, WindVector, validate_coordinates
from geospatial.distance_calculations import planar_degree_distance
from wind_field.vertical_profile import DEFAULT_PROFILE, VerticalProfileModel, _check_height


IDW_POWER = 2.0
MAX_NEIGHBORS = 4


@dataclass(frozen=True)
class InterpolationResult:
    """Interpolated wind with the separately weighted scalar speed.

    Attributes
    ----------
    vector : WindVector
        Weighted mean of the neighbour vectors.
    scalar_speed : float
        Weighted mean of the neighbour speeds in M/S. Differs from
        ``vector.magnitude`` when neighbour directions disagree.
    neighbor_count : int
        Number of samples that contributed.
    """
    vector: WindVector
    scalar_speed: float
    neighbor_count: int


class SpatialInterpolator:
    """Inverse-distance weighted wind field over a sparse sample set.

    The interpolator holds configuration only; every call is a pure
    function of its arguments and may be shared between threads.
    """

    def __init__(
        self,
        profile: VerticalProfileModel = DEFAULT_PROFILE,
        max_neighbors: int = MAX_NEIGHBORS,
        power: float = IDW_POWER,
        epsilon: float = WindConstants.IDW_EPSILON.value
    ):
        """Initialize interpolator.

        Parameters
        ----------
        profile : VerticalProfileModel
            Profile used to project sample speeds to the query height.
        max_neighbors : int
            Number of nearest samples to weight.
        power : float
            IDW exponent.
        epsilon : float
            Distance offset in degrees.
        """
        if max_neighbors < 1:
            raise InvalidInput("max_neighbors must be >= 1")
        self.profile = profile
        self.max_neighbors = max_neighbors
        self.power = power
        self.epsilon = epsilon

    def _components(
        self,
        samples: Sequence[GeoWindSample],
        target_height: float
    ) -> Tuple[NDArray[np.float64], ...]:
        lats = np.array([s.latitude for s in samples], dtype=np.float64)
        lons = np.array([s.longitude for s in samples], dtype=np.float64)
        speeds = np.asarray(
            self.profile.speed_at(np.array([s.speed for s in samples], dtype=np.float64),
                                  target_height),
            dtype=np.float64
        )
        # Missing direction is treated as north.
        dirs = np.radians([s.direction if s.direction is not None else 0.0
                           for s in samples])
        east = np.sin(dirs) * speeds
        north = np.cos(dirs) * speeds
        return lats, lons, speeds, east, north

    def interpolate_grid(
        self,
        samples: Sequence[GeoWindSample],
        query_lats: NDArray[np.float64],
        query_lons: NDArray[np.float64],
        target_height: float
    ) -> Tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """Evaluate the field at many points at once.

        Parameters
        ----------
        samples : sequence of GeoWindSample
            Sparse field input.
        query_lats, query_lons : ndarray
            Query coordinates in degrees, shape (N,).
        target_height : float
            Height in METERS to project sample speeds to.

        Returns
        -------
        tuple of ndarray
            ``(eastward, northward, scalar_speed)`` each of shape (N,).
            All zeros when ``samples`` is empty.
        """
        _check_height("target_height", target_height)
        q_lat = np.atleast_1d(np.asarray(query_lats, dtype=np.float64))
        q_lon = np.atleast_1d(np.asarray(query_lons, dtype=np.float64))
        if q_lat.shape != q_lon.shape:
            raise InvalidInput("query_lats and query_lons must have the same shape")
        if np.any(~np.isfinite(q_lat)) or np.any(~np.isfinite(q_lon)):
            raise InvalidInput("Query coordinates must be finite")

        zeros = np.zeros_like(q_lat)
        if len(samples) == 0:
            return zeros, zeros.copy(), zeros.copy()

        lats, lons, speeds, east, north = self._components(samples, target_height)

        # (N, M) distance matrix, then keep the k nearest per query.
        dist = planar_degree_distance(
            q_lat[:, None], q_lon[:, None], lats[None, :], lons[None, :]
        ) + self.epsilon
        k = min(self.max_neighbors, len(samples))
        nearest = np.argsort(dist, axis=1, kind="stable")[:, :k]
        d_k = np.take_along_axis(dist, nearest, axis=1)
        w = 1.0 / d_k ** self.power

        sum_w = w.sum(axis=1)
        valid = np.isfinite(sum_w) & (sum_w > 0)
        safe_sum = np.where(valid, sum_w, 1.0)

        east_i = np.where(valid, (w * east[nearest]).sum(axis=1) / safe_sum, 0.0)
        north_i = np.where(valid, (w * north[nearest]).sum(axis=1) / safe_sum, 0.0)
        speed_i = np.where(valid, (w * speeds[nearest]).sum(axis=1) / safe_sum, 0.0)
        return east_i, north_i, speed_i

    def interpolate_detailed(
        self,
        samples: Sequence[GeoWindSample],
        query_lat: float,
        query_lon: float,
        target_height: float
    ) -> InterpolationResult:
        """Interpolate at one point, also returning the weighted scalar speed."""
        validate_coordinates(query_lat, query_lon)
        _check_height("target_height", target_height)
        if len(samples) == 0:
            return InterpolationResult(WindVector.zero(), 0.0, 0)

        east, north, speed = self.interpolate_grid(
            samples, np.array([query_lat]), np.array([query_lon]), target_height
        )
        vector = WindVector(eastward=float(east[0]), northward=float(north[0]))
        return InterpolationResult(
            vector=vector,
            scalar_speed=float(speed[0]),
            neighbor_count=min(self.max_neighbors, len(samples)),
        )

    def interpolate(
        self,
        samples: Sequence[GeoWindSample],
        query_lat: float,
        query_lon: float,
        target_height: float
    ) -> WindVector:
        """Estimate the wind vector at a query point and height.

        Parameters
        ----------
        samples : sequence of GeoWindSample
            Sparse field input (10 m reference speeds).
        query_lat, query_lon : float
            Query point in degrees.
        target_height : float
            Height in METERS.

        Returns
        -------
        WindVector
            Interpolated vector; the zero vector for an empty sample set.
        """
        return self.interpolate_detailed(samples, query_lat, query_lon, target_height).vector


_default_interpolator = SpatialInterpolator()


def interpolate(
    samples: Sequence[GeoWindSample],
    query_lat: float,
    query_lon: float,
    target_height: float
) -> WindVector:
    """Module-level shortcut using the default interpolator settings."""
    return _default_interpolator.interpolate(samples, query_lat, query_lon, target_height)
