from __future__ import annotations

import math
from typing import Any, Optional, Sequence

from ..utils import cumulative_distances_m


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def add_constant_z(coords: Any, z: Optional[float]) -> Any:
    """Give every (lon, lat) tuple in a nested coordinate array a third value.

    Tuples that already carry an elevation keep it.
    """
    if not isinstance(coords, (list, tuple)) or not coords:
        return coords
    if isinstance(coords[0], (int, float)):
        if len(coords) >= 3:
            return [coords[0], coords[1], coords[2]]
        return [coords[0], coords[1], z if _finite(z) else 0.0]
    return [add_constant_z(c, z) for c in coords]


def interpolate_line(
    coords: Sequence[Sequence[float]],
    z_start: Optional[float],
    z_end: Optional[float],
) -> list[list[float]]:
    """Interpolate elevation along a polyline by geodesic distance fraction.

    The first vertex gets exactly z_start and the last exactly z_end. A line
    with no length falls back to vertex-index fractions.
    """
    if not coords:
        return []
    z0 = z_start if _finite(z_start) else 0.0
    z1 = z_end if _finite(z_end) else z0
    n = len(coords)
    cum = cumulative_distances_m(coords)
    total = cum[-1]
    out = []
    for i, pt in enumerate(coords):
        if len(pt) >= 3:
            out.append([pt[0], pt[1], pt[2]])
            continue
        if i == 0:
            zi = z0
        elif i == n - 1:
            zi = z1
        else:
            t = cum[i] / total if total > 0 else i / (n - 1)
            zi = z0 + (z1 - z0) * t
        out.append([pt[0], pt[1], zi])
    return out


def to_3d(
    geometry: Optional[dict],
    *,
    z: Optional[float] = None,
    z_start: Optional[float] = None,
    z_end: Optional[float] = None,
) -> Optional[dict]:
    """Return a copy of a GeoJSON geometry with a z on every coordinate.

    Points get ``z``. LineStrings are interpolated when ``z_start`` or
    ``z_end`` is given, otherwise they take ``z`` like every other type.
    """
    if not geometry or "type" not in geometry or "coordinates" not in geometry:
        return geometry
    kind = geometry["type"]
    coords = geometry["coordinates"]
    if kind == "LineString" and (_finite(z_start) or _finite(z_end)):
        return {**geometry, "coordinates": interpolate_line(coords, z_start, z_end)}
    return {**geometry, "coordinates": add_constant_z(coords, z)}
