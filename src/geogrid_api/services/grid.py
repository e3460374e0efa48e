"""Geogrid lattice generation around a business location."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from ..core.errors import GridConfigError
from ..models.domain import GeoPoint, GridConfig, RankedPoint
from .coordinates import km_to_degree_ratios


def validate_grid_config(
    center: GeoPoint,
    size: int,
    spacing_km: float,
    *,
    min_size: int = 1,
    max_size: Optional[int] = None,
    min_spacing_km: Optional[float] = None,
    max_spacing_km: Optional[float] = None,
) -> None:
    """Raise :class:`GridConfigError` for any input that would yield non-finite points."""

    if isinstance(size, bool) or not isinstance(size, int):
        raise GridConfigError(f"Grid size must be an integer, got {size!r}")
    if size < max(1, min_size):
        raise GridConfigError(f"Grid size must be at least {max(1, min_size)}, got {size}")
    if max_size is not None and size > max_size:
        raise GridConfigError(f"Grid size must be at most {max_size}, got {size}")

    if not math.isfinite(spacing_km) or spacing_km <= 0:
        raise GridConfigError(f"Spacing must be a positive number of kilometers, got {spacing_km!r}")
    if min_spacing_km is not None and spacing_km < min_spacing_km:
        raise GridConfigError(f"Spacing must be at least {min_spacing_km} km, got {spacing_km}")
    if max_spacing_km is not None and spacing_km > max_spacing_km:
        raise GridConfigError(f"Spacing must be at most {max_spacing_km} km, got {spacing_km}")

    if not (math.isfinite(center.lat) and math.isfinite(center.lng)):
        raise GridConfigError(f"Center coordinates must be finite, got ({center.lat}, {center.lng})")
    if abs(center.lat) >= 90:
        raise GridConfigError(f"Center latitude must be strictly between -90 and 90, got {center.lat}")


def generate_grid(center: GeoPoint, size: int, spacing_km: float) -> List[GeoPoint]:
    """Return ``size * size`` points, row-major, centered on ``center``.

    Rows step north and columns step east. The lattice is anchored at
    ``size // 2`` so even sizes have no point on the center itself.
    """

    validate_grid_config(center, size, spacing_km)
    ratios = km_to_degree_ratios(center.lat)
    offset = size // 2

    points: List[GeoPoint] = []
    for row in range(size):
        lat = center.lat + (row - offset) * spacing_km * ratios.lat_per_km
        for col in range(size):
            lng = center.lng + (col - offset) * spacing_km * ratios.lng_per_km
            points.append(GeoPoint(lat=lat, lng=lng))
    return points


def generate_grid_for(config: GridConfig) -> List[GeoPoint]:
    return generate_grid(config.center, config.size, config.spacing_km)


def grid_start(center: GeoPoint, size: int, spacing_km: float) -> GeoPoint:
    """South-west corner of the lattice."""

    ratios = km_to_degree_ratios(center.lat)
    return GeoPoint(
        lat=center.lat - (spacing_km * ratios.lat_per_km * (size - 1)) / 2,
        lng=center.lng - (spacing_km * ratios.lng_per_km * (size - 1)) / 2,
    )


def generate_grid_from_corner(center: GeoPoint, size: int, spacing_km: float) -> List[GeoPoint]:
    """Same lattice as :func:`generate_grid`, stepped from the south-west corner.

    Both forms agree for odd sizes. For even sizes this form is truly
    centered while :func:`generate_grid` is offset by half a step.
    """

    validate_grid_config(center, size, spacing_km)
    ratios = km_to_degree_ratios(center.lat)
    start = grid_start(center, size, spacing_km)

    return [
        GeoPoint(
            lat=start.lat + row * spacing_km * ratios.lat_per_km,
            lng=start.lng + col * spacing_km * ratios.lng_per_km,
        )
        for row in range(size)
        for col in range(size)
    ]


def map_rankings(points: Sequence[GeoPoint], matrix: Sequence[Sequence[int]], size: int) -> List[RankedPoint]:
    """Pair every lattice point with its ranking; missing cells read as 0 (no data)."""

    if len(points) != size * size:
        raise GridConfigError(f"Expected {size * size} points for a {size}x{size} grid, got {len(points)}")

    ranked: List[RankedPoint] = []
    for index, point in enumerate(points):
        row, col = divmod(index, size)
        rank = 0
        if row < len(matrix) and col < len(matrix[row]):
            rank = int(matrix[row][col])
        ranked.append(RankedPoint(row=row, col=col, lat=point.lat, lng=point.lng, rank=rank))
    return ranked


__all__ = [
    "validate_grid_config",
    "generate_grid",
    "generate_grid_for",
    "grid_start",
    "generate_grid_from_corner",
    "map_rankings",
]
