"""Mongo-backed storage for grid results and their competitors."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from bson import ObjectId
from bson.errors import InvalidDocument, InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..core.config import Settings, settings
from ..core.errors import RepositoryError, RetryError
from ..core.retry import create_retry_function
from ..models.domain import BusinessInfo, Competitor, GeoPoint, GridResult, Metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures that another attempt cannot clear.
PERMANENT_ERRORS = (DuplicateKeyError, InvalidDocument)


def _to_object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class GridResultRepository:
    """Sole writer of grid results; built once at startup and injected into routes."""

    def __init__(
        self,
        config: Settings = settings,
        *,
        grid_collection: Collection | None = None,
        competitor_collection: Collection | None = None,
        max_retries: int | None = None,
        delay_ms: int | None = None,
    ) -> None:
        self.client: MongoClient | None = None
        if grid_collection is None or competitor_collection is None:
            self.client = MongoClient(config.mongo_dsn, serverSelectionTimeoutMS=config.mongo_timeout_ms)
            db = self.client[config.mongo_db_name]
            if grid_collection is None:
                grid_collection = db[config.mongo_grid_collection]
            if competitor_collection is None:
                competitor_collection = db[config.mongo_competitor_collection]

        self.grid_results: Collection = grid_collection
        self.competitors: Collection = competitor_collection
        self.max_retries = max_retries if max_retries is not None else config.retry_max_attempts
        self.delay_ms = delay_ms if delay_ms is not None else config.retry_delay_ms

        self.grid_results.create_index([("created_at", DESCENDING)], name="created_at_idx")
        self.competitors.create_index("grid_result_id", name="grid_result_idx")

    # Lifecycle ----------------------------------------------------------
    def ping(self) -> bool:
        """Single round trip to the server; always healthy for injected collections."""
        if self.client is None:
            return True
        try:
            self.client.admin.command("ping")
        except PyMongoError as exc:
            logger.warning("Grid result store unreachable: %s", exc)
            return False
        return True

    # Grid results -------------------------------------------------------
    def save(self, result: GridResult) -> GridResult:
        document = self._to_document(result)

        def insert() -> str:
            return str(self.grid_results.insert_one(dict(document)).inserted_id)

        inserted_id = self._with_retry(insert, "save grid result")
        logger.info("Saved grid result %s for %s", inserted_id, result.business_info.name)
        return result.model_copy(update={"id": inserted_id})

    def get_all(
        self,
        *,
        search_term: Optional[str] = None,
        business_name: Optional[str] = None,
        place_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        ascending: bool = False,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[GridResult]:
        """Stored results, newest first unless ``ascending``; filters combine with AND."""

        query: Dict[str, Any] = {}
        if search_term:
            query["search_term"] = search_term
        if business_name:
            query["business.name"] = business_name
        if place_id:
            query["business.place_id"] = place_id
        created_range: Dict[str, datetime] = {}
        if start_date is not None:
            created_range["$gte"] = _as_utc(start_date)
        if end_date is not None:
            created_range["$lte"] = _as_utc(end_date)
        if created_range:
            query["created_at"] = created_range

        def fetch() -> List[Dict[str, Any]]:
            cursor = self.grid_results.find(query).sort("created_at", ASCENDING if ascending else DESCENDING)
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            return list(cursor)

        return [self._to_model(doc) for doc in self._with_retry(fetch, "list grid results")]

    def get_by_id(self, result_id: str) -> Optional[GridResult]:
        obj_id = _to_object_id(result_id)
        if obj_id is None:
            return None
        try:
            doc = self.grid_results.find_one({"_id": obj_id})
        except PyMongoError as exc:
            raise RepositoryError(f"Failed to fetch grid result {result_id}: {exc}") from exc
        return self._to_model(doc) if doc else None

    def delete(self, result_id: str) -> bool:
        obj_id = _to_object_id(result_id)
        if obj_id is None:
            return False
        try:
            outcome = self.grid_results.delete_one({"_id": obj_id})
            self.competitors.delete_many({"grid_result_id": result_id})
        except PyMongoError as exc:
            raise RepositoryError(f"Failed to delete grid result {result_id}: {exc}") from exc
        return outcome.deleted_count > 0

    # Competitors --------------------------------------------------------
    def save_competitors(self, grid_result_id: str, competitors: Sequence[Competitor]) -> bool:
        if not competitors:
            return True
        documents = [
            {
                "grid_result_id": grid_result_id,
                "name": competitor.name,
                "address": competitor.address,
                "rating": competitor.rating,
                "user_ratings_total": competitor.user_ratings_total,
                "types": list(competitor.types),
                "lat": competitor.location.lat,
                "lng": competitor.location.lng,
            }
            for competitor in competitors
        ]
        try:
            self.competitors.insert_many(documents)
        except PyMongoError as exc:
            raise RepositoryError(f"Failed to save competitors for {grid_result_id}: {exc}") from exc
        return True

    def get_competitors(self, grid_result_id: str) -> List[Competitor]:
        try:
            cursor = self.competitors.find({"grid_result_id": grid_result_id})
            docs = list(cursor)
        except PyMongoError as exc:
            raise RepositoryError(f"Failed to fetch competitors for {grid_result_id}: {exc}") from exc
        return [
            Competitor(
                id=str(doc["_id"]),
                name=doc.get("name") or "",
                address=doc.get("address"),
                rating=doc.get("rating"),
                user_ratings_total=doc.get("user_ratings_total"),
                types=doc.get("types") or [],
                location=GeoPoint(lat=float(doc["lat"]), lng=float(doc["lng"])),
            )
            for doc in docs
        ]

    # Helpers ------------------------------------------------------------
    def _with_retry(self, operation: Callable[[], T], action: str) -> T:
        runner = create_retry_function(operation, self.max_retries, self.delay_ms, give_up_on=PERMANENT_ERRORS)
        try:
            return runner()
        except PERMANENT_ERRORS as exc:
            raise RepositoryError(f"Failed to {action}: {exc}") from exc
        except RetryError as exc:
            logger.error("Could not %s after %d attempts", action, exc.attempts)
            raise RepositoryError(f"Failed to {action}: {exc}") from exc

    def _to_document(self, result: GridResult) -> Dict[str, Any]:
        business = result.business_info
        created_at = _as_utc(result.created_at)
        return {
            "business": {
                "name": business.name,
                "address": business.address,
                "place_id": business.place_id,
                "lat": business.location.lat,
                "lng": business.location.lng,
                "category": business.category,
            },
            "search_term": result.search_term,
            "created_at": created_at,
            "grid_size": result.grid_size,
            "grid_data": [list(row) for row in result.grid_data],
            "metrics": result.metrics.model_dump(by_alias=True),
            "google_region": result.google_region,
            "distance_km": result.distance_km,
        }

    def _to_model(self, doc: Dict[str, Any]) -> GridResult:
        business = doc.get("business") or {}
        created_at = doc.get("created_at") or datetime.now(timezone.utc)
        if isinstance(created_at, datetime) and created_at.tzinfo is None:
            # pymongo hands back naive UTC datetimes
            created_at = created_at.replace(tzinfo=timezone.utc)
        return GridResult(
            id=str(doc["_id"]),
            business_info=BusinessInfo(
                name=business.get("name") or "",
                address=business.get("address") or "",
                location=GeoPoint(lat=float(business.get("lat", 0.0)), lng=float(business.get("lng", 0.0))),
                category=business.get("category") or None,
                place_id=business.get("place_id") or None,
            ),
            search_term=doc.get("search_term") or "",
            created_at=created_at,
            grid_size=doc.get("grid_size", len(doc.get("grid_data") or [])),
            grid_data=doc.get("grid_data") or [],
            metrics=Metrics.model_validate(doc.get("metrics") or {}),
            google_region=doc.get("google_region") or "global",
            distance_km=float(doc.get("distance_km") or 0.0),
        )


__all__ = ["GridResultRepository"]
