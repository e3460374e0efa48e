"""Render Folium maps of a grid result with rank-colored markers."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import branca.colormap as cm
import folium

from ..models.domain import GridResult, RankBand, RankedPoint
from .classifier import MAP_PALETTE, classify
from .grid import generate_grid_from_corner, map_rankings

LEGEND_BANDS = [
    RankBand.TOP3,
    RankBand.TOP4TO7,
    RankBand.TOP8TO10,
    RankBand.TOP11TO15,
    RankBand.TOP16TO20,
    RankBand.UNRANKED,
]
LEGEND_INDEX = [1, 4, 8, 11, 16, 21, 22]


class RankMapBuilder:
    def __init__(self, *, zoom_start: int = 12, marker_radius: int = 14) -> None:
        self.zoom_start = zoom_start
        self.marker_radius = marker_radius

    def ranked_points(self, result: GridResult) -> List[RankedPoint]:
        """Cells on the corner-stepped lattice, the same coordinates the CSV export writes."""

        size = result.side_length
        points = generate_grid_from_corner(result.business_info.location, size, result.distance_km)
        return map_rankings(points, result.grid_data, size)

    def build(self, result: GridResult, output_html: Path) -> Path:
        center = result.business_info.location
        ranked = self.ranked_points(result)

        fmap = folium.Map(location=[center.lat, center.lng], zoom_start=self.zoom_start)

        self._add_rank_layer(fmap, ranked)
        self._add_business_marker(fmap, result)
        self._add_legend(fmap)

        output_html.parent.mkdir(parents=True, exist_ok=True)
        fmap.save(output_html)
        return output_html

    # Rank markers ---------------------------------------------------------
    def _add_rank_layer(self, fmap: folium.Map, ranked: Sequence[RankedPoint]) -> None:
        layer = folium.FeatureGroup(name="Rankings", show=True)
        for point in ranked:
            if point.rank == 0:
                continue
            info = classify(point.rank)

            folium.CircleMarker(
                location=[point.lat, point.lng],
                radius=self.marker_radius,
                color=info.color,
                weight=1,
                fill=True,
                fill_color=info.color,
                fill_opacity=0.9,
                tooltip=f"Row {point.row + 1}, column {point.col + 1}: {info.label}",
            ).add_to(layer)

            folium.map.Marker(
                [point.lat, point.lng],
                icon=folium.DivIcon(
                    icon_size=(28, 28),
                    icon_anchor=(14, 9),
                    html=(
                        f'<div style="color:#ffffff; font-weight:700; '
                        f'font-size:12px; text-align:center;">{info.label}</div>'
                    ),
                ),
            ).add_to(layer)

        layer.add_to(fmap)
        folium.LayerControl(collapsed=False).add_to(fmap)

    def _add_business_marker(self, fmap: folium.Map, result: GridResult) -> None:
        business = result.business_info
        folium.Marker(
            location=[business.location.lat, business.location.lng],
            tooltip=business.name,
            popup=f"{business.name} - {result.search_term}",
            icon=folium.Icon(icon="star", prefix="fa", color="blue"),
        ).add_to(fmap)

    def _add_legend(self, fmap: folium.Map) -> None:
        legend = cm.StepColormap(
            colors=[MAP_PALETTE[band] for band in LEGEND_BANDS],
            index=LEGEND_INDEX,
            vmin=LEGEND_INDEX[0],
            vmax=LEGEND_INDEX[-1],
        )
        legend.caption = "Ranking: 1-3, 4-7, 8-10, 11-15, 16-20, 20+"
        legend.add_to(fmap)


__all__ = ["RankMapBuilder"]
