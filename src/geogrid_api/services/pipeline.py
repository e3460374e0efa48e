"""High level orchestration of a grid run: points, rankings, metrics, storage."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from ..core.config import Settings, settings
from ..core.errors import GridConfigError, RepositoryError
from ..models.api import GridRunRequest
from ..models.domain import GeoPoint, GridConfig, GridResult, RankedPoint
from .grid import generate_grid, map_rankings, validate_grid_config
from .grid_results import GridResultRepository
from .metrics import MetricsAggregator
from .simulator import RankingSimulator

logger = logging.getLogger(__name__)


@dataclass
class GridRunOutcome:
    result: GridResult
    points: List[RankedPoint]
    simulated: bool


class GridRunService:
    def __init__(
        self,
        config: Settings | None = None,
        *,
        repository: GridResultRepository | None = None,
        aggregator: MetricsAggregator | None = None,
        simulator: RankingSimulator | None = None,
    ) -> None:
        self.config = config or settings
        self.repository = repository
        self.aggregator = aggregator or MetricsAggregator()
        self.simulator = simulator

    def points(self, grid: GridConfig) -> List[GeoPoint]:
        self.validate(grid)
        return generate_grid(grid.center, grid.size, grid.spacing_km)

    def validate(self, grid: GridConfig) -> None:
        validate_grid_config(
            grid.center,
            grid.size,
            grid.spacing_km,
            min_size=self.config.grid_min_size,
            max_size=self.config.grid_max_size,
            min_spacing_km=self.config.grid_min_spacing_km,
            max_spacing_km=self.config.grid_max_spacing_km,
        )

    def validate_result(self, result: GridResult) -> None:
        """Reject stored records whose size, spacing or matrix the grid views cannot render."""

        size = result.side_length
        self.validate(GridConfig(center=result.business_info.location, size=size, spacing_km=result.distance_km))
        self._check_matrix(result.grid_data, size)

    def run(self, request: GridRunRequest) -> GridRunOutcome:
        center = request.business_info.location
        grid = GridConfig(center=center, size=request.grid_size, spacing_km=request.distance_km)
        points = self.points(grid)

        simulated = request.grid_data is None
        if simulated:
            simulator = self.simulator or RankingSimulator(seed=request.seed)
            matrix = simulator.simulate(grid.size)
        else:
            matrix = request.grid_data
            self._check_matrix(matrix, grid.size)

        result = GridResult(
            business_info=request.business_info,
            search_term=request.search_term,
            grid_size=f"{grid.size}x{grid.size}",
            grid_data=matrix,
            metrics=self.aggregator.compute(matrix),
            google_region=request.google_region or self.config.default_google_region,
            distance_km=grid.spacing_km,
        )

        if request.save:
            if self.repository is None:
                raise RepositoryError("Grid result store is not configured")
            result = self.repository.save(result)

        logger.info(
            "Grid run for %r (%dx%d, %s km): AGR=%.2f SoLV=%s",
            request.search_term,
            grid.size,
            grid.size,
            grid.spacing_km,
            result.metrics.agr,
            result.metrics.solv,
        )
        return GridRunOutcome(result=result, points=map_rankings(points, matrix, grid.size), simulated=simulated)

    def _check_matrix(self, matrix: Sequence[Sequence[int]], size: int) -> None:
        if len(matrix) != size or any(len(row) != size for row in matrix):
            raise GridConfigError(f"Ranking matrix must be {size}x{size}")
        if any(value < 0 for row in matrix for value in row):
            raise GridConfigError("Ranking values must be 0 (no data) or positive")


__all__ = ["GridRunOutcome", "GridRunService"]
