from __future__ import annotations

import math

# Fallback office location (London Bridge)
DEFAULT_OFFICE_LAT = 51.5047
DEFAULT_OFFICE_LNG = -0.0886

_EARTH_RADIUS_KM = 6371.0
_WALKING_SPEED_KMH = 5.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return _EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_from(
    ref_lat: float, ref_lng: float, lat: float | None, lng: float | None
) -> float | None:
    if lat is None or lng is None:
        return None
    return haversine_km(ref_lat, ref_lng, lat, lng)


def distance_from_office(lat: float | None, lng: float | None) -> float | None:
    return distance_from(DEFAULT_OFFICE_LAT, DEFAULT_OFFICE_LNG, lat, lng)


def km_to_walking_minutes(km: float | None) -> int | None:
    if km is None:
        return None
    return round(km / _WALKING_SPEED_KMH * 60)


def format_distance(km: float | None) -> str:
    minutes = km_to_walking_minutes(km)
    if minutes is None:
        return "?"
    return f"{minutes} min"
