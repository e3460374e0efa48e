"""Pydantic schemas exposed by the HTTP layer."""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .domain import BusinessInfo, GeoPoint, GridResult, RankedPoint


class GridPointsResponse(BaseModel):
    size: int
    spacing_km: float = Field(alias="spacingKm")
    coverage_km: float = Field(alias="coverageKm")
    radius_km: float = Field(alias="radiusKm")
    points: List[GeoPoint]

    model_config = ConfigDict(populate_by_name=True)


class MatrixRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    grid_data: List[List[int]] = Field(alias="gridData")


class KeywordRankingsRequest(BaseModel):
    rankings: Union[List[List[int]], List[int]]


class GridRunRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    business_info: BusinessInfo = Field(alias="businessInfo")
    search_term: str = Field(alias="searchTerm")
    grid_size: int = Field(alias="gridSize")
    distance_km: float = Field(alias="distanceKm")
    google_region: Optional[str] = Field(None, alias="googleRegion")
    grid_data: Optional[List[List[int]]] = Field(None, alias="gridData")
    seed: Optional[int] = None
    save: bool = False


class GridRunResponse(BaseModel):
    result: GridResult
    points: List[RankedPoint]
    simulated: bool


class DeleteResponse(BaseModel):
    deleted: bool


class CompetitorSaveResponse(BaseModel):
    saved: bool
    count: int


class MapResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    view_file: str = Field(alias="viewFile")
    url: str
