"""
Distance calculation using the Haversine formula.

Great-circle distance is the fallback metric whenever a routed (road)
distance is unavailable from the directions provider.

Complexity: O(1) per call.
"""

import math

from .entities import Coordinates

EARTH_RADIUS_KM = 6_371.0
KM_PER_DEGREE = 111.32


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def great_circle_distance_km(a: Coordinates, b: Coordinates) -> float:
    """Haversine distance between two coordinates, rounded to 2 decimals."""
    return round(
        haversine_km(a.latitude, a.longitude, b.latitude, b.longitude), 2
    )


def bounding_box(
    center: Coordinates, radius_km: float
) -> tuple[float, float, float, float]:
    """
    Return ``(north, south, east, west)`` of a box enclosing the circle of
    *radius_km* around *center*.

    Longitude degrees shrink with ``cos(latitude)``; the box is a
    superset of the circle, so callers must still filter by distance.
    """
    lat_delta = radius_km / KM_PER_DEGREE
    lng_delta = radius_km / (
        KM_PER_DEGREE * math.cos(math.radians(center.latitude))
    )
    return (
        center.latitude + lat_delta,
        center.latitude - lat_delta,
        center.longitude + lng_delta,
        center.longitude - lng_delta,
    )
