"""
Distance and Scale Calculations for Local Wind Fields.

Two notions of distance are used by the core:

1. Planar degree distance: Euclidean distance in (lat, lon) degree space.
   This is what the inverse-distance weighting uses. Over the few tens of
   kilometres a local advisory covers, ranking neighbours in degree space
   gives the same order as true distance, and the weights only need to be
   relative.

2. Geodesic distance on the WGS84 ellipsoid, via `pyproj`. This is used
   when a physically meaningful distance is reported, e.g. how far the
   nearest weather station is from the query point.

Metres-per-degree conversion for particle advection uses the spherical
approximation (111 320 m per degree of latitude, scaled by cos(latitude)
for longitude).

References
----------
- Karney, C.F.F. (2013). Algorithms for geodesics. Journal of Geodesy, 87(1), 43-55.
"""

from typing import Union
import numpy as np
from numpy.typing import NDArray

from pyproj import Geod

from common.constants import WindConstants


# Create the geodesic calculator for WGS84
_wgs84_geod = Geod(ellps='WGS84')

METERS_PER_DEGREE_LATITUDE = WindConstants.METERS_PER_DEGREE_LATITUDE.value

# Keeps the longitude scale finite at the poles.
_MIN_COS_LAT = 1e-6

ArrayLike = Union[float, NDArray[np.float64]]


def planar_degree_distance(
    lat1_deg: ArrayLike,
    lon1_deg: ArrayLike,
    lat2_deg: ArrayLike,
    lon2_deg: ArrayLike
) -> ArrayLike:
    """Euclidean distance in degree space.

    Parameters
    ----------
    lat1_deg, lon1_deg : float or ndarray
        First point(s) in degrees.
    lat2_deg, lon2_deg : float or ndarray
        Second point(s) in degrees.

    Returns
    -------
    float or ndarray
        ``hypot(dlat, dlon)`` in degrees. Broadcasts like numpy.
    """
    return np.hypot(np.subtract(lat2_deg, lat1_deg), np.subtract(lon2_deg, lon1_deg))


def meters_per_degree_longitude(latitude_deg: ArrayLike) -> ArrayLike:
    """Zonal arc length of one degree of longitude at ``latitude_deg``."""
    cos_lat = np.maximum(np.cos(np.radians(latitude_deg)), _MIN_COS_LAT)
    return METERS_PER_DEGREE_LATITUDE * cos_lat


def meters_to_degrees(
    east_m: ArrayLike,
    north_m: ArrayLike,
    latitude_deg: ArrayLike
):
    """Convert an east/north displacement in metres to (dlon, dlat) degrees.

    Parameters
    ----------
    east_m, north_m : float or ndarray
        Displacement components in METERS.
    latitude_deg : float or ndarray
        Latitude at which the displacement starts.

    Returns
    -------
    tuple
        ``(dlon_deg, dlat_deg)``.
    """
    dlat = np.divide(north_m, METERS_PER_DEGREE_LATITUDE)
    dlon = np.divide(east_m, meters_per_degree_longitude(latitude_deg))
    return dlon, dlat


def geodesic_distance_km(
    lat1_deg: float,
    lon1_deg: float,
    lat2_deg: float,
    lon2_deg: float
) -> float:
    """Geodesic distance between two points on the WGS84 ellipsoid.

    Parameters
    ----------
    lat1_deg, lon1_deg : float
        First point in degrees.
    lat2_deg, lon2_deg : float
        Second point in degrees.

    Returns
    -------
    float
        Distance in kilometres.
    """
    _, _, distance_m = _wgs84_geod.inv(lon1_deg, lat1_deg, lon2_deg, lat2_deg)
    return float(distance_m) / 1000.0


def geodesic_distance_batch_km(
    lat_deg: float,
    lon_deg: float,
    lats_deg: NDArray[np.float64],
    lons_deg: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Geodesic distances (km) from one point to many."""
    lats = np.asarray(lats_deg, dtype=np.float64)
    lons = np.asarray(lons_deg, dtype=np.float64)
    _, _, distances = _wgs84_geod.inv(
        np.full_like(lons, lon_deg), np.full_like(lats, lat_deg), lons, lats
    )
    return np.asarray(distances, dtype=np.float64) / 1000.0
