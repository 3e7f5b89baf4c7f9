"""Geographic utilities for element placement and segment lengths.

Points are ``(lon, lat)`` pairs in WGS84 degrees throughout.
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Any, Mapping

from shapely.geometry import Point, Polygon, box

from fibertopo.config import ServiceAreaConfig
from fibertopo.log_config import get_logger
from fibertopo.model import NetworkConnection, NetworkElement, is_valid_point

logger = get_logger(__name__)

EARTH_RADIUS_KM = 6371.0


@lru_cache(maxsize=32)
def service_area_polygon(area: ServiceAreaConfig) -> Polygon:
    """Return the service area rectangle as a shapely polygon.

    Args:
        area: Service area bounds.

    Returns:
        Axis-aligned polygon in lon/lat space.
    """
    return box(*area.bounds)


def validate_position(point: Any, area: ServiceAreaConfig | None = None) -> bool:
    """Check that a point is well formed and inside the service area.

    Bounds are inclusive, so a point exactly on an edge or corner is valid.

    Args:
        point: Candidate ``(lon, lat)`` pair.
        area: Service area; the default area when omitted.

    Returns:
        True if the point is a pair of finite numbers inside the area. False
        for missing or malformed input; never raises.
    """
    if not is_valid_point(point):
        return False
    lon, lat = point
    polygon = service_area_polygon(area or ServiceAreaConfig())
    return bool(polygon.covers(Point(float(lon), float(lat))))


def _require_point(value: Any, name: str) -> tuple[float, float]:
    if not is_valid_point(value):
        raise ValueError(f"{name} must be a (lon, lat) pair of finite numbers, got {value!r}")
    lon, lat = value
    return (float(lon), float(lat))


def distance_km(point_a: Any, point_b: Any) -> float:
    """Great-circle distance between two points using the Haversine formula.

    The pair is put in canonical order before computing so the result is
    bit-for-bit symmetric. ``a`` is clamped to ``[0, 1]`` so rounding near
    antipodal points cannot produce NaN.

    Args:
        point_a: First ``(lon, lat)`` pair in degrees.
        point_b: Second ``(lon, lat)`` pair in degrees.

    Returns:
        Distance in kilometers (R = 6371 km).

    Raises:
        ValueError: If either point is malformed.
    """
    a_pt = _require_point(point_a, "point_a")
    b_pt = _require_point(point_b, "point_b")
    (lon1, lat1), (lon2, lat2) = sorted((a_pt, b_pt))

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def midpoint(point_a: Any, point_b: Any) -> tuple[float, float]:
    """Return the arithmetic lon/lat midpoint, used for label placement.

    Raises:
        ValueError: If either point is malformed.
    """
    lon1, lat1 = _require_point(point_a, "point_a")
    lon2, lat2 = _require_point(point_b, "point_b")
    return ((lon1 + lon2) / 2, (lat1 + lat2) / 2)


def is_point_in_radius(center: Any, point: Any, radius_km: float) -> bool:
    """Return True if ``point`` lies within ``radius_km`` of ``center``.

    Malformed points yield False.
    """
    if not is_valid_point(center) or not is_valid_point(point):
        return False
    return distance_km(center, point) <= radius_km


def connection_length_km(
    connection: NetworkConnection, elements_by_id: Mapping[str, NetworkElement]
) -> float | None:
    """Return the straight geodesic length of a connection's segment.

    Args:
        connection: Connection whose endpoints are looked up.
        elements_by_id: Element lookup keyed by id.

    Returns:
        Length in kilometers, or None when an endpoint is missing or lacks a
        valid position.
    """
    source = elements_by_id.get(connection.source_element_id)
    target = elements_by_id.get(connection.target_element_id)
    if source is None or target is None:
        logger.debug(f"Connection {connection.id!r}: endpoint not found, no length")
        return None
    if not source.has_valid_position or not target.has_valid_position:
        return None
    return distance_km(source.position, target.position)
