"""Coordinate parsing and great-circle distance."""

from __future__ import annotations

import json
import math
import re
from typing import Any, Mapping, NamedTuple, Optional

EARTH_RADIUS_KM = 6371.0

_WKT_POINT_RE = re.compile(
    r"^\s*(?:SRID=\d+;\s*)?POINT\s*\(\s*"
    r"(?P<lng>[-+]?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\s+"
    r"(?P<lat>[-+]?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\s*\)\s*$",
    re.IGNORECASE,
)


class Point(NamedTuple):
    lat: float
    lng: float

    def as_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


def _coerce(lat: Any, lng: Any) -> Optional[Point]:
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return None
    if math.isnan(lat_f) or math.isnan(lng_f):
        return None
    if not (-90 <= lat_f <= 90 and -180 <= lng_f <= 180):
        return None
    return Point(lat_f, lng_f)


def _from_mapping(value: Mapping[str, Any]) -> Optional[Point]:
    coordinates = value.get("coordinates")
    if isinstance(coordinates, (list, tuple)) and len(coordinates) >= 2:
        # GeoJSON order is [lng, lat]
        return _coerce(coordinates[1], coordinates[0])
    for lat_key, lng_key in (("lat", "lng"), ("latitude", "longitude"), ("lat", "lon")):
        if lat_key in value and lng_key in value:
            return _coerce(value[lat_key], value[lng_key])
    return None


def parse_point(value: Any) -> Optional[Point]:
    """
    Extract a Point from any of the encodings clients and storage use:

    - ``{"lat": .., "lng": ..}`` or ``{"latitude": .., "longitude": ..}``
    - ``(lat, lng)`` pairs
    - WKT ``POINT(lng lat)``, optionally prefixed with ``SRID=4326;``
    - GeoJSON ``{"type": "Point", "coordinates": [lng, lat]}`` as a dict or JSON string

    Returns None when the value cannot be parsed or is out of range.
    """
    if value is None:
        return None
    if isinstance(value, Point):
        return value
    if isinstance(value, Mapping):
        return _from_mapping(value)
    if isinstance(value, (list, tuple)):
        if len(value) != 2:
            return None
        return _coerce(value[0], value[1])
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        match = _WKT_POINT_RE.match(text)
        if match:
            return _coerce(match.group("lat"), match.group("lng"))
        if text.startswith("{"):
            try:
                decoded = json.loads(text)
            except ValueError:
                return None
            if isinstance(decoded, Mapping):
                return _from_mapping(decoded)
    return None


def haversine_km(a: Point, b: Point) -> float:
    """Great-circle distance between two points in kilometres."""
    lat1, lng1 = math.radians(a.lat), math.radians(a.lng)
    lat2, lng2 = math.radians(b.lat), math.radians(b.lng)
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def bounding_box(center: Point, radius_km: float) -> tuple[float, float, float, float]:
    """
    Return (min_lat, max_lat, min_lng, max_lng) enclosing ``radius_km`` around ``center``.

    Used to pre-filter candidates in the database before the exact haversine check.
    """
    lat_delta = math.degrees(radius_km / EARTH_RADIUS_KM)
    cos_lat = math.cos(math.radians(center.lat))
    if cos_lat <= 1e-12:
        lng_delta = 180.0
    else:
        lng_delta = min(180.0, math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat)))
    min_lng, max_lng = center.lng - lng_delta, center.lng + lng_delta
    if min_lng < -180.0 or max_lng > 180.0:
        # wraps the antimeridian
        min_lng, max_lng = -180.0, 180.0
    return (
        max(-90.0, center.lat - lat_delta),
        min(90.0, center.lat + lat_delta),
        min_lng,
        max_lng,
    )
