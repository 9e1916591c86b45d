import math
from typing import Iterable, Sequence

from .errors import InvalidInput

EARTH_RADIUS_M = 6371000.0

BBox = tuple[float, float, float, float]  # min_lon, min_lat, max_lon, max_lat


def haversine_m(lat1, lon1, lat2, lon2) -> float:
    R = EARTH_RADIUS_M
    phi1 = math.radians(lat1); phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dl = math.radians(lon2 - lon1)
    a = math.sin(dphi/2)**2 + math.cos(phi1)*math.cos(phi2)*math.sin(dl/2)**2
    c = 2*math.atan2(math.sqrt(a), math.sqrt(1-a))
    return R * c

def polyline_distance_m(coords: Iterable[Sequence[float]]) -> float:
    """Geodesic length of GeoJSON-ordered (lon, lat[, z]) vertices."""
    total = 0.0
    prev = None
    for p in coords:
        if prev is not None:
            total += haversine_m(prev[1], prev[0], p[1], p[0])
        prev = p
    return total

def cumulative_distances_m(coords: Sequence[Sequence[float]]) -> list[float]:
    cum = [0.0]
    for a, b in zip(coords, coords[1:]):
        cum.append(cum[-1] + haversine_m(a[1], a[0], b[1], b[0]))
    return cum

def normalize_coordinate(lon: float, lat: float) -> tuple[float, float]:
    """Clamp latitude and wrap longitude into their valid ranges."""
    lat = max(-90.0, min(90.0, lat))
    if lon < -180.0 or lon > 180.0:
        lon = ((lon + 180.0) % 360.0) - 180.0
    return lon, lat

def is_valid_coordinate(lon: float, lat: float) -> bool:
    return (
        math.isfinite(lon)
        and math.isfinite(lat)
        and -180.0 <= lon <= 180.0
        and -90.0 <= lat <= 90.0
    )

def parse_bbox(raw: str | None) -> BBox | None:
    """Parse 'minLon,minLat,maxLon,maxLat'."""
    if raw is None or raw == "":
        return None
    parts = raw.split(",")
    if len(parts) != 4:
        raise InvalidInput("bbox must be 'minLon,minLat,maxLon,maxLat'")
    try:
        min_lon, min_lat, max_lon, max_lat = (float(p) for p in parts)
    except ValueError:
        raise InvalidInput("bbox must contain four numbers") from None
    if not (is_valid_coordinate(min_lon, min_lat) and is_valid_coordinate(max_lon, max_lat)):
        raise InvalidInput("bbox corners must be valid coordinates")
    if min_lon > max_lon or min_lat > max_lat:
        raise InvalidInput("bbox minimum corner must not exceed maximum corner")
    return min_lon, min_lat, max_lon, max_lat

def radius_bboxes(lon: float, lat: float, radius_m: float) -> list[BBox]:
    """Boxes that together contain every point within radius_m of (lon, lat).

    Bounding-circle method on the haversine sphere; boxes crossing the
    antimeridian are split in two.
    """
    delta = radius_m / EARTH_RADIUS_M
    lat_r = math.radians(lat)
    min_lat = math.degrees(lat_r - delta)
    max_lat = math.degrees(lat_r + delta)
    if min_lat <= -90.0 or max_lat >= 90.0 or math.sin(delta) >= math.cos(lat_r):
        return [(-180.0, max(min_lat, -90.0), 180.0, min(max_lat, 90.0))]
    dlon = math.degrees(math.asin(math.sin(delta) / math.cos(lat_r)))
    # slack for float rounding at the box edge
    pad = 1e-9
    min_lat -= pad
    max_lat += pad
    min_lon = lon - dlon - pad
    max_lon = lon + dlon + pad
    if min_lon < -180.0:
        return [(-180.0, min_lat, max_lon, max_lat), (min_lon + 360.0, min_lat, 180.0, max_lat)]
    if max_lon > 180.0:
        return [(min_lon, min_lat, 180.0, max_lat), (-180.0, min_lat, max_lon - 360.0, max_lat)]
    return [(min_lon, min_lat, max_lon, max_lat)]

def to_local_xy(lon: float, lat: float, origin_lon: float, origin_lat: float) -> tuple[float, float]:
    """Equirectangular projection in meters around an origin."""
    k = math.radians(1.0) * EARTH_RADIUS_M
    return (lon - origin_lon) * k * math.cos(math.radians(origin_lat)), (lat - origin_lat) * k

def from_local_xy(x: float, y: float, origin_lon: float, origin_lat: float) -> tuple[float, float]:
    k = math.radians(1.0) * EARTH_RADIUS_M
    cos_lat = max(math.cos(math.radians(origin_lat)), 1e-12)
    return origin_lon + x / (k * cos_lat), origin_lat + y / k

def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
