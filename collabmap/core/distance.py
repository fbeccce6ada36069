"""
Great-circle distance between points on Earth.

Mathematical Definition (Haversine):
    a = sin^2((lat2-lat1)/2) + cos(lat1)*cos(lat2)*sin^2((lng2-lng1)/2)
    c = 2 * arcsin(min(1, sqrt(a)))
    d = R * c

The min(1, ...) clamp keeps arcsin inside its domain when rounding pushes
sqrt(a) marginally above 1 near antipodal points.
"""

import math
from enum import Enum

import numpy as np

from .models import GeoPoint

# Earth's mean radius
EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_MILES = 3958.8


class DistanceUnit(str, Enum):
    KILOMETERS = "km"
    MILES = "mi"

    @property
    def earth_radius(self) -> float:
        if self is DistanceUnit.KILOMETERS:
            return EARTH_RADIUS_KM
        return EARTH_RADIUS_MILES


def haversine_distance(
    a: GeoPoint,
    b: GeoPoint,
    unit: DistanceUnit = DistanceUnit.MILES
) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        a: First point
        b: Second point
        unit: Kilometers or miles

    Returns:
        Non-negative distance in the requested unit

    Example:
        >>> dayton = GeoPoint(39.7589, -84.1916)
        >>> columbus = GeoPoint(39.9612, -82.9988)
        >>> miles = haversine_distance(dayton, columbus)  # ~65 mi
    """
    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    dlat = lat2_rad - lat1_rad
    dlng = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlng / 2) ** 2
    c = 2 * math.asin(min(1.0, math.sqrt(h)))

    return unit.earth_radius * c


def vectorized_haversine(origin: GeoPoint,
                         lats: np.ndarray, lngs: np.ndarray,
                         unit: DistanceUnit = DistanceUnit.MILES) -> np.ndarray:
    """
    Vectorized haversine distance from one origin to many points at once.

    Args:
        origin: Reference point
        lats: Array of latitudes in degrees
        lngs: Array of longitudes in degrees
        unit: Kilometers or miles

    Returns:
        Array of distances in the requested unit
    """
    lat1_rad = np.radians(origin.latitude)
    lats_rad = np.radians(np.asarray(lats, dtype=np.float64))
    dlat = lats_rad - lat1_rad
    dlng = np.radians(np.asarray(lngs, dtype=np.float64) - origin.longitude)

    h = np.sin(dlat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lats_rad) * np.sin(dlng / 2) ** 2
    c = 2 * np.arcsin(np.minimum(1.0, np.sqrt(h)))

    return unit.earth_radius * c
