"""
Geodesic helpers.

Straight-line (great-circle) distance between two points, and a local
tangent-plane approximation used by the estimator to work in meters.
The tangent plane is only accurate over small areas around its origin.
"""

import math
from typing import Tuple

from track_core.proto.location_sample import GeoPoint

# Mean Earth radius (m), used for great-circle distance
EARTH_RADIUS_M = 6371008.8

# WGS84 ellipsoid parameters
WGS84_A = 6378137.0                      # Semi-major axis (m)
WGS84_F = 1.0 / 298.257223563            # Flattening
WGS84_E2 = 2 * WGS84_F - WGS84_F ** 2    # First eccentricity squared


def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """
    Great-circle distance between two points (haversine).

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in meters
    """
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lon - a.lon)

    h = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def _curvature_radii(lat_deg: float) -> Tuple[float, float]:
    """Prime vertical (N) and meridional (M) radii of curvature at a latitude."""
    sin_lat = math.sin(math.radians(lat_deg))
    denom = 1 - WGS84_E2 * sin_lat ** 2
    n_radius = WGS84_A / math.sqrt(denom)
    m_radius = WGS84_A * (1 - WGS84_E2) / (denom ** 1.5)
    return n_radius, m_radius


def to_local_en(origin: GeoPoint, point: GeoPoint) -> Tuple[float, float]:
    """
    Project a point into the east/north plane anchored at origin.

    Args:
        origin: Tangent-plane origin
        point: Point to project

    Returns:
        (east, north) offsets in meters
    """
    n_radius, m_radius = _curvature_radii(origin.lat)
    d_lat = math.radians(point.lat - origin.lat)
    # Shortest way round across the antimeridian
    d_lon = math.radians((point.lon - origin.lon + 180.0) % 360.0 - 180.0)

    east = n_radius * math.cos(math.radians(origin.lat)) * d_lon
    north = m_radius * d_lat
    return (east, north)


def from_local_en(origin: GeoPoint, east: float, north: float) -> GeoPoint:
    """
    Inverse of to_local_en.

    Args:
        origin: Tangent-plane origin
        east: East offset (m)
        north: North offset (m)

    Returns:
        GeoPoint at the given offset
    """
    n_radius, m_radius = _curvature_radii(origin.lat)
    cos_lat0 = math.cos(math.radians(origin.lat))

    lat = origin.lat + math.degrees(north / m_radius)
    if cos_lat0 > 1e-12:
        lon = origin.lon + math.degrees(east / (n_radius * cos_lat0))
    else:
        lon = origin.lon

    # Keep the result inside valid coordinate ranges
    lat = max(-90.0, min(90.0, lat))
    lon = ((lon + 180.0) % 360.0) - 180.0 if not -180.0 <= lon <= 180.0 else lon
    return GeoPoint(lat=lat, lon=lon)
