"""HTTP routes exposed by the FastAPI application."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import FileResponse, Response

from ..core.config import Settings
from ..models.api import (
    CompetitorSaveResponse,
    DeleteResponse,
    GridPointsResponse,
    GridRunRequest,
    GridRunResponse,
    KeywordRankingsRequest,
    MapResponse,
    MatrixRequest,
)
from ..models.domain import Competitor, GridConfig, GridResult, KeywordMetrics, Metrics, RankClassification
from ..services.classifier import classify
from ..services.coordinates import coverage_area_km, haversine_km
from ..services.exporter import export_csv
from ..services.grid_results import GridResultRepository
from ..services.map_builder import RankMapBuilder
from ..services.metrics import compute_keyword_metrics, compute_metrics
from ..services.pipeline import GridRunService

logger = logging.getLogger(__name__)

router = APIRouter()


# Dependencies -----------------------------------------------------------
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(request: Request) -> GridResultRepository:
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise HTTPException(status_code=503, detail="Grid result store unavailable")
    return repository


def get_grid_service(request: Request) -> GridRunService:
    return request.app.state.grid_service


def get_map_builder(request: Request) -> RankMapBuilder:
    return request.app.state.map_builder


def _require_result(repository: GridResultRepository, result_id: str) -> GridResult:
    result = repository.get_by_id(result_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Grid result not found")
    return result


# Engine -----------------------------------------------------------------
@router.get("/health")
def healthcheck(request: Request) -> dict[str, bool]:
    repository = getattr(request.app.state, "repository", None)
    return {"ok": True, "repository": repository is not None and repository.ping()}


@router.post("/grid/points", response_model=GridPointsResponse)
def grid_points(grid: GridConfig, service: GridRunService = Depends(get_grid_service)) -> GridPointsResponse:
    points = service.points(grid)
    width, _ = coverage_area_km(grid.size, grid.spacing_km)
    # points[0] is a corner, the farthest cell from the center.
    radius = haversine_km(grid.center, points[0])
    return GridPointsResponse(
        size=grid.size,
        spacing_km=grid.spacing_km,
        coverage_km=width,
        radius_km=round(radius, 3),
        points=points,
    )


@router.post("/grid/metrics", response_model=Metrics)
def grid_metrics(payload: MatrixRequest) -> Metrics:
    return compute_metrics(payload.grid_data)


@router.post("/grid/keyword-metrics", response_model=KeywordMetrics)
def keyword_metrics(payload: KeywordRankingsRequest) -> KeywordMetrics:
    return compute_keyword_metrics(payload.rankings)


@router.get("/rankings/{rank}/classification", response_model=RankClassification)
def rank_classification(
    rank: int,
    palette: Literal["map", "export"] = "map",
    distinguish_no_data: bool = False,
) -> RankClassification:
    return classify(rank, palette, distinguish_no_data=distinguish_no_data)


@router.post("/grid/run", response_model=GridRunResponse)
def run_grid(payload: GridRunRequest, service: GridRunService = Depends(get_grid_service)) -> GridRunResponse:
    outcome = service.run(payload)
    return GridRunResponse(result=outcome.result, points=outcome.points, simulated=outcome.simulated)


# Stored results ---------------------------------------------------------
@router.get("/grid-results", response_model=List[GridResult])
def list_grid_results(
    search_term: Optional[str] = None,
    business_name: Optional[str] = None,
    place_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    direction: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=200),
    repository: GridResultRepository = Depends(get_repository),
) -> List[GridResult]:
    return repository.get_all(
        search_term=search_term,
        business_name=business_name,
        place_id=place_id,
        start_date=start_date,
        end_date=end_date,
        ascending=direction == "asc",
        skip=(page - 1) * per_page if per_page else 0,
        limit=per_page,
    )


@router.post("/grid-results", response_model=GridResult, status_code=201)
def create_grid_result(
    result: GridResult,
    repository: GridResultRepository = Depends(get_repository),
    service: GridRunService = Depends(get_grid_service),
) -> GridResult:
    service.validate_result(result)
    # Metrics always reflect the stored matrix.
    result = result.model_copy(update={"id": None, "metrics": compute_metrics(result.grid_data)})
    return repository.save(result)


@router.get("/grid-results/{result_id}", response_model=GridResult)
def get_grid_result(result_id: str, repository: GridResultRepository = Depends(get_repository)) -> GridResult:
    return _require_result(repository, result_id)


@router.delete("/grid-results/{result_id}", response_model=DeleteResponse)
def delete_grid_result(result_id: str, repository: GridResultRepository = Depends(get_repository)) -> DeleteResponse:
    if not repository.delete(result_id):
        raise HTTPException(status_code=404, detail="Grid result not found")
    return DeleteResponse(deleted=True)


@router.get("/grid-results/{result_id}/competitors", response_model=List[Competitor])
def list_competitors(result_id: str, repository: GridResultRepository = Depends(get_repository)) -> List[Competitor]:
    _require_result(repository, result_id)
    return repository.get_competitors(result_id)


@router.post("/grid-results/{result_id}/competitors", response_model=CompetitorSaveResponse)
def save_competitors(
    result_id: str,
    competitors: List[Competitor],
    repository: GridResultRepository = Depends(get_repository),
) -> CompetitorSaveResponse:
    _require_result(repository, result_id)
    saved = repository.save_competitors(result_id, competitors)
    return CompetitorSaveResponse(saved=saved, count=len(competitors))


@router.get("/grid-results/{result_id}/export.csv")
def export_grid_result(result_id: str, repository: GridResultRepository = Depends(get_repository)) -> Response:
    result = _require_result(repository, result_id)
    filename = f"geogrid-{result_id}.csv"
    return Response(
        content=export_csv(result),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/grid-results/{result_id}/map", response_model=MapResponse)
def render_grid_map(
    result_id: str,
    repository: GridResultRepository = Depends(get_repository),
    builder: RankMapBuilder = Depends(get_map_builder),
    config: Settings = Depends(get_settings),
) -> MapResponse:
    result = _require_result(repository, result_id)
    map_path = builder.build(result, config.views_dir / f"grid_{result_id}.html")
    logger.debug("Rendered map for grid result %s into %s", result_id, map_path)
    return MapResponse(view_file=map_path.name, url=f"/api/views/{map_path.name}")


@router.get("/views/{filename}")
def get_view(filename: str, config: Settings = Depends(get_settings)) -> FileResponse:
    safe_name = os.path.basename(filename)
    file_path = config.views_dir / safe_name
    if not file_path.exists():
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(file_path)


__all__ = ["router"]
