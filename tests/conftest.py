from datetime import datetime, timezone

import pytest
from bson import ObjectId

from geogrid_api.core.config import Settings
from geogrid_api.models.domain import BusinessInfo, GeoPoint, GridResult
from geogrid_api.services.grid_results import GridResultRepository


class InsertOneResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class DeleteResult:
    def __init__(self, deleted_count):
        self.deleted_count = deleted_count


class DummyCursor:
    def __init__(self, docs):
        self.docs = list(docs)

    def sort(self, key, direction=1):
        self.docs.sort(key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    def skip(self, count):
        self.docs = self.docs[count:]
        return self

    def limit(self, count):
        self.docs = self.docs[:count]
        return self

    def __iter__(self):
        return iter(self.docs)


def _lookup(doc, dotted_key):
    value = doc
    for part in dotted_key.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _condition_holds(actual, expected):
    if isinstance(expected, dict):
        if "$gte" in expected and not (actual is not None and actual >= expected["$gte"]):
            return False
        if "$lte" in expected and not (actual is not None and actual <= expected["$lte"]):
            return False
        return True
    return actual == expected


def _matches(doc, query):
    return all(_condition_holds(_lookup(doc, key), value) for key, value in query.items())


class DummyCollection:
    """In-memory stand-in for the handful of pymongo calls the repository makes."""

    def __init__(self):
        self.docs = []
        self.indexes = []

    def create_index(self, keys, name=None):
        self.indexes.append(name or keys)
        return name

    def insert_one(self, doc):
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return InsertOneResult(doc["_id"])

    def insert_many(self, docs):
        for doc in docs:
            self.insert_one(doc)

    def find(self, query=None):
        query = query or {}
        return DummyCursor(doc for doc in self.docs if _matches(doc, query))

    def find_one(self, query):
        for doc in self.docs:
            if _matches(doc, query):
                return doc
        return None

    def delete_one(self, query):
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[index]
                return DeleteResult(1)
        return DeleteResult(0)

    def delete_many(self, query):
        before = len(self.docs)
        self.docs = [doc for doc in self.docs if not _matches(doc, query)]
        return DeleteResult(before - len(self.docs))


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("GEOGRID_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("API_ALLOWED_ORIGINS", raising=False)
    return Settings()


@pytest.fixture
def grid_collection():
    return DummyCollection()


@pytest.fixture
def competitor_collection():
    return DummyCollection()


@pytest.fixture
def repository(settings, grid_collection, competitor_collection):
    return GridResultRepository(
        settings,
        grid_collection=grid_collection,
        competitor_collection=competitor_collection,
        delay_ms=0,
    )


@pytest.fixture
def make_result():
    def _make(grid_data=None, *, name="Acme Plumbing", created_at=None, grid_size=None):
        grid_data = grid_data or [[1, 2, 3], [21, 21, 21], [10, 10, 10]]
        return GridResult(
            business_info=BusinessInfo(
                name=name,
                address="1 Main St",
                location=GeoPoint(lat=40.0, lng=-74.0),
                category="plumber",
                place_id="place-123",
            ),
            search_term="plumber near me",
            created_at=created_at or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            grid_size=grid_size if grid_size is not None else f"{len(grid_data)}x{len(grid_data)}",
            grid_data=grid_data,
            google_region="us",
            distance_km=1.0,
        )

    return _make
