"""Rank bands, palettes and marker assets."""

from __future__ import annotations

from typing import Dict, Literal

from ..models.domain import RankBand, RankClassification

PaletteName = Literal["map", "export"]

UNRANKED_THRESHOLD = 20
NO_DATA_COLOR = "#9E9E9E"
RANK_ICON_DIR = "/images/rank-icons"

# Marker colors used on the interactive map.
MAP_PALETTE: Dict[RankBand, str] = {
    RankBand.TOP3: "#059669",
    RankBand.TOP4TO7: "#10b981",
    RankBand.TOP8TO10: "#f59e0b",
    RankBand.TOP11TO15: "#f97316",
    RankBand.TOP16TO20: "#ef4444",
    RankBand.UNRANKED: "#ef4444",
    RankBand.NO_DATA: NO_DATA_COLOR,
}

# Cell colors used by image and spreadsheet exports; 4-10 share one green.
EXPORT_PALETTE: Dict[RankBand, str] = {
    RankBand.TOP3: "#1b5e20",
    RankBand.TOP4TO7: "#388e3c",
    RankBand.TOP8TO10: "#388e3c",
    RankBand.TOP11TO15: "#fbc02d",
    RankBand.TOP16TO20: "#e64a19",
    RankBand.UNRANKED: "#b71c1c",
    RankBand.NO_DATA: NO_DATA_COLOR,
}

PALETTES: Dict[str, Dict[RankBand, str]] = {
    "map": MAP_PALETTE,
    "export": EXPORT_PALETTE,
}


def rank_band(rank: int, *, distinguish_no_data: bool = False) -> RankBand:
    if rank <= 0:
        return RankBand.NO_DATA if distinguish_no_data else RankBand.UNRANKED
    if rank <= 3:
        return RankBand.TOP3
    if rank <= 7:
        return RankBand.TOP4TO7
    if rank <= 10:
        return RankBand.TOP8TO10
    if rank <= 15:
        return RankBand.TOP11TO15
    if rank <= UNRANKED_THRESHOLD:
        return RankBand.TOP16TO20
    return RankBand.UNRANKED


def rank_label(rank: int) -> str:
    return "20+" if rank > UNRANKED_THRESHOLD else str(rank)


def rank_icon_path(rank: int) -> str:
    if 1 <= rank <= UNRANKED_THRESHOLD:
        return f"{RANK_ICON_DIR}/{rank}.png"
    return f"{RANK_ICON_DIR}/X.png"


def rank_color(rank: int, palette: PaletteName = "map", *, distinguish_no_data: bool = False) -> str:
    return _palette(palette)[rank_band(rank, distinguish_no_data=distinguish_no_data)]


def classify(rank: int, palette: PaletteName = "map", *, distinguish_no_data: bool = False) -> RankClassification:
    band = rank_band(rank, distinguish_no_data=distinguish_no_data)
    return RankClassification(
        rank=rank,
        band=band,
        color=_palette(palette)[band],
        label=rank_label(rank),
        icon=rank_icon_path(rank),
    )


def _palette(name: str) -> Dict[RankBand, str]:
    try:
        return PALETTES[name]
    except KeyError as exc:
        raise ValueError(f"Unknown palette {name!r}; expected one of {sorted(PALETTES)}") from exc


__all__ = [
    "MAP_PALETTE",
    "EXPORT_PALETTE",
    "PALETTES",
    "classify",
    "rank_band",
    "rank_color",
    "rank_icon_path",
    "rank_label",
]
