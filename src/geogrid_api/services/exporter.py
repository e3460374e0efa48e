"""CSV export of a stored grid result."""

from __future__ import annotations

import io
from typing import List

import pandas as pd

from ..models.domain import GridResult
from .coordinates import km_to_degree_ratios
from .grid import grid_start

EXPORT_COLUMNS = ["Row", "Column", "Latitude", "Longitude", "Ranking"]


def build_export_frame(result: GridResult) -> pd.DataFrame:
    """One row per grid cell, 1-based indices, coordinates stepped from the south-west corner."""

    center = result.business_info.location
    spacing = result.distance_km
    ratios = km_to_degree_ratios(center.lat)
    start = grid_start(center, result.side_length, spacing)

    rows: List[dict] = []
    for row_index, row in enumerate(result.grid_data):
        lat = start.lat + row_index * spacing * ratios.lat_per_km
        for col_index, ranking in enumerate(row):
            rows.append(
                {
                    "Row": row_index + 1,
                    "Column": col_index + 1,
                    "Latitude": round(lat, 6),
                    "Longitude": round(start.lng + col_index * spacing * ratios.lng_per_km, 6),
                    "Ranking": int(ranking),
                }
            )
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_csv(result: GridResult) -> str:
    """Full export: title block, the cell table and a metrics trailer."""

    buffer = io.StringIO()
    buffer.write(f'"GeoGrid Results for {result.business_info.name}"\n')
    buffer.write(f'"Search Term: {result.search_term}"\n')
    buffer.write(f'"Date: {result.created_at.strftime("%Y-%m-%d")}"\n\n')

    build_export_frame(result).to_csv(buffer, index=False, float_format="%.6f", lineterminator="\n")

    metrics = result.metrics
    buffer.write('\n"Metrics:"\n')
    buffer.write(f'"AGR (Average Grid Ranking)",{metrics.agr:.1f}\n')
    buffer.write(f'"ATGR (Average Top Grid Ranking)",{metrics.atgr:.2f}\n')
    buffer.write(f'"SoLV (Share of Local Voice)",{metrics.solv}\n')
    return buffer.getvalue()


__all__ = ["EXPORT_COLUMNS", "build_export_frame", "export_csv"]
