"""Application factory for the FastAPI service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import router
from .core.config import Settings, settings
from .core.errors import GridConfigError, RepositoryError
from .services.grid_results import GridResultRepository
from .services.map_builder import RankMapBuilder
from .services.pipeline import GridRunService

logger = logging.getLogger(__name__)


def create_app(
    config: Settings | None = None,
    *,
    repository: GridResultRepository | None = None,
) -> FastAPI:
    config = config or settings
    app = FastAPI(title="Geogrid Rank API", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if repository is None:
        try:
            repository = GridResultRepository(config)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not initialise the grid result store: %s", exc)
            repository = None

    app.state.settings = config
    app.state.repository = repository
    app.state.grid_service = GridRunService(config, repository=repository)
    app.state.map_builder = RankMapBuilder()

    @app.exception_handler(GridConfigError)
    async def _grid_config_error(request: Request, exc: GridConfigError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(RepositoryError)
    async def _repository_error(request: Request, exc: RepositoryError) -> JSONResponse:
        logger.error("Repository error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Grid result store unavailable"})

    app.include_router(router, prefix="/api")
    return app
