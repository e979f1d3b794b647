"""Great-circle distance helpers."""

import math
from typing import Any, Optional

EARTH_RADIUS_KM = 6371.0
# Larger than any great-circle distance (~20015 km at most).
INVALID_DISTANCE_KM = 99999.0


def _valid_coordinate(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def distance_km(lat1: Any, lng1: Any, lat2: Any, lng2: Any) -> float:
    """Haversine distance in kilometres, rounded to two decimals.

    Missing or non-numeric coordinates yield ``INVALID_DISTANCE_KM`` so the
    entry sorts after every real result instead of failing the search.
    """
    values = [_valid_coordinate(v) for v in (lat1, lng1, lat2, lng2)]
    if any(v is None for v in values):
        return INVALID_DISTANCE_KM
    a_lat, a_lng, b_lat, b_lng = values

    phi1 = math.radians(a_lat)
    phi2 = math.radians(b_lat)
    delta_phi = math.radians(b_lat - a_lat)
    delta_lambda = math.radians(b_lng - a_lng)

    h = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return round(EARTH_RADIUS_KM * c, 2)
