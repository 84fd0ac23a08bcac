"""
Geospatial Module for the Drone Wind Advisory Core.

All distance and metres-per-degree calculations used by the wind field,
the station selection and the particle advection originate here.
"""

from geospatial.distance_calculations import (
    planar_degree_distance,
    meters_per_degree_longitude,
    meters_to_degrees,
    geodesic_distance_km,
    geodesic_distance_batch_km,
    METERS_PER_DEGREE_LATITUDE,
)

__all__ = [
    "planar_degree_distance",
    "meters_per_degree_longitude",
    "meters_to_degrees",
    "geodesic_distance_km",
    "geodesic_distance_batch_km",
    "METERS_PER_DEGREE_LATITUDE",
]
