"""Global settings shared across the service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[3]


def _split_env_list(value: str | None) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


@dataclass(slots=True)
class Settings:
    """Encapsulates storage, retry and grid bounds options."""

    project_root: Path = PROJECT_ROOT
    data_dir: Path = PROJECT_ROOT / "data"
    allowed_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])

    views_dir: Path = field(init=False)
    mongo_dsn: str = field(default_factory=lambda: os.getenv("MONGO_DSN", "mongodb://localhost:27017"))
    mongo_db_name: str = field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "geogrid"))
    mongo_grid_collection: str = field(default_factory=lambda: os.getenv("MONGO_GRID_COLLECTION", "grid_results"))
    mongo_competitor_collection: str = field(
        default_factory=lambda: os.getenv("MONGO_COMPETITOR_COLLECTION", "competitors")
    )
    mongo_timeout_ms: int = field(default_factory=lambda: _env_int("MONGO_TIMEOUT_MS", 5000))

    retry_max_attempts: int = field(default_factory=lambda: _env_int("RETRY_MAX_ATTEMPTS", 3))
    retry_delay_ms: int = field(default_factory=lambda: _env_int("RETRY_DELAY_MS", 1000))

    grid_min_size: int = field(default_factory=lambda: _env_int("GRID_MIN_SIZE", 1))
    grid_max_size: int = field(default_factory=lambda: _env_int("GRID_MAX_SIZE", 25))
    grid_min_spacing_km: float = field(default_factory=lambda: _env_float("GRID_MIN_SPACING_KM", 0.1))
    grid_max_spacing_km: float = field(default_factory=lambda: _env_float("GRID_MAX_SPACING_KM", 25.0))
    default_google_region: str = field(default_factory=lambda: os.getenv("DEFAULT_GOOGLE_REGION", "global"))

    def __post_init__(self) -> None:
        origins_env = _split_env_list(os.getenv("API_ALLOWED_ORIGINS"))
        if origins_env:
            self.allowed_origins = origins_env

        data_env = os.getenv("GEOGRID_DATA_DIR")
        if data_env:
            self.data_dir = Path(data_env)

        self.views_dir = self.data_dir / "views"

        for directory in (self.data_dir, self.views_dir):
            directory.mkdir(parents=True, exist_ok=True)


settings = Settings()
