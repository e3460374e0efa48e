"""Domain models shared between services and the API layer."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import GridConfigError


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class RankedPoint(BaseModel):
    row: int
    col: int
    lat: float
    lng: float
    rank: int


class GridConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    center: GeoPoint
    size: int
    spacing_km: float = Field(alias="spacingKm")


class RankBand(str, Enum):
    """Severity buckets, best first."""

    TOP3 = "top3"
    TOP4TO7 = "top4to7"
    TOP8TO10 = "top8to10"
    TOP11TO15 = "top11to15"
    TOP16TO20 = "top16to20"
    UNRANKED = "unranked"
    NO_DATA = "no_data"

    @property
    def severity(self) -> int:
        return list(RankBand).index(self)


class RankClassification(BaseModel):
    rank: int
    band: RankBand
    color: str
    label: str
    icon: str


class Metrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    agr: float = 0.0
    atgr: float = 0.0
    solv: str = "0%"
    average_rank: float = Field(0.0, alias="averageRank")
    # Top-3 share, the meaning the dashboard persisted under this name.
    visibility_percentage: float = Field(0.0, alias="visibilityPercentage")
    top20_average_rank: float = Field(0.0, alias="top20AverageRank")
    top3_visibility_pct: float = Field(0.0, alias="top3VisibilityPct")
    top10_visibility_pct: float = Field(0.0, alias="top10VisibilityPct")
    found_visibility_pct: float = Field(0.0, alias="foundVisibilityPct")
    top_three_count: int = Field(0, alias="topThreeCount")
    top_ten_count: int = Field(0, alias="topTenCount")
    not_ranked_count: int = Field(0, alias="notRankedCount")
    total_rankings: int = Field(0, alias="totalRankings")


class KeywordMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_rankings: int = Field(alias="totalRankings")
    top_three_count: int = Field(alias="topThreeCount")
    top_ten_count: int = Field(alias="topTenCount")
    not_ranked_count: int = Field(alias="notRankedCount")
    top3_percentage: float = Field(alias="top3Percentage")
    top10_percentage: float = Field(alias="top10Percentage")
    other_percentage: float = Field(alias="otherPercentage")
    average_ranking: float = Field(alias="averageRanking")
    visibility_score: float = Field(alias="visibilityScore")


class BusinessInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    address: str = ""
    location: GeoPoint
    category: Optional[str] = None
    place_id: Optional[str] = Field(None, alias="placeId")


class Competitor(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: str
    address: Optional[str] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = Field(None, alias="userRatingsTotal")
    types: List[str] = Field(default_factory=list)
    location: GeoPoint


_GRID_SIZE_RE = re.compile(r"^\s*(\d+)\s*(?:[xX]\s*\d+)?\s*$")


def parse_grid_size(value: Union[int, str]) -> int:
    """Return the side length for ``7``, ``"7"`` or ``"7x7"``."""

    if isinstance(value, int):
        return value
    match = _GRID_SIZE_RE.match(value)
    if not match:
        raise GridConfigError(f"Unrecognised grid size: {value!r}")
    return int(match.group(1))


class GridResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    business_info: BusinessInfo = Field(alias="businessInfo")
    search_term: str = Field(alias="searchTerm")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="createdAt")
    # Stored either as a bare integer or as "7x7"; kept as given.
    grid_size: Union[int, str] = Field(alias="gridSize")
    grid_data: List[List[int]] = Field(alias="gridData")
    metrics: Metrics = Field(default_factory=Metrics)
    google_region: str = Field("global", alias="googleRegion")
    distance_km: float = Field(alias="distanceKm")

    @property
    def side_length(self) -> int:
        return parse_grid_size(self.grid_size)
