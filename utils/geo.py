import math
from typing import Tuple

import numpy as np

EARTH_RADIUS_KM = 6371.0088


def haversine_km(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """
    Great-circle distance between two WGS84 points, in kilometers.
    """
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    dp = p2 - p1
    dl = math.radians(lon2 - lon1)
    a = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def destination_point(lon: float, lat: float, distance_km: float, bearing_deg: float) -> Tuple[float, float]:
    """
    Point reached by travelling `distance_km` from (lon, lat) on the initial
    bearing `bearing_deg` (clockwise from north). Returns (lon, lat).
    """
    lon1 = math.radians(lon)
    lat1 = math.radians(lat)
    bearing = math.radians(bearing_deg)
    delta = distance_km / EARTH_RADIUS_KM

    lat2 = math.asin(
        math.sin(lat1) * math.cos(delta) + math.cos(lat1) * math.sin(delta) * math.cos(bearing)
    )
    lon2 = lon1 + math.atan2(
        math.sin(bearing) * math.sin(delta) * math.cos(lat1),
        math.cos(delta) - math.sin(lat1) * math.sin(lat2),
    )
    return math.degrees(lon2), math.degrees(lat2)


class LocalProjection:
    """
    Equirectangular projection to planar kilometers around a reference point.
    Good enough for city-scale triangulation and edge-length checks.
    """

    def __init__(self, ref_lon: float, ref_lat: float):
        self.ref_lon = ref_lon
        self.ref_lat = ref_lat
        self.kx = math.radians(1.0) * EARTH_RADIUS_KM * math.cos(math.radians(ref_lat))
        self.ky = math.radians(1.0) * EARTH_RADIUS_KM

    def forward(self, lons, lats) -> np.ndarray:
        lons = np.asarray(lons, dtype=float)
        lats = np.asarray(lats, dtype=float)
        return np.column_stack(((lons - self.ref_lon) * self.kx, (lats - self.ref_lat) * self.ky))
