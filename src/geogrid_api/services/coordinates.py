"""Kilometer/degree conversions around a latitude."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from ..models.domain import GeoPoint

KM_PER_DEGREE = 111.32
EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True, slots=True)
class DegreeRatios:
    lat_per_km: float
    lng_per_km: float


def km_to_degree_ratios(latitude: float) -> DegreeRatios:
    """Degrees of latitude and longitude spanned by one kilometer at ``latitude``.

    The longitude ratio diverges at the poles and is left unguarded.
    """

    lat_per_km = 1 / KM_PER_DEGREE
    lng_per_km = 1 / (KM_PER_DEGREE * math.cos(latitude * math.pi / 180))
    return DegreeRatios(lat_per_km=lat_per_km, lng_per_km=lng_per_km)


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def coverage_area_km(size: int, spacing_km: float) -> Tuple[float, float]:
    """Width and height, in km, covered by a ``size`` x ``size`` grid."""

    span = (size - 1) * spacing_km
    return span, span


__all__ = ["DegreeRatios", "km_to_degree_ratios", "haversine_km", "coverage_area_km", "KM_PER_DEGREE"]
