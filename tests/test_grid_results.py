from datetime import datetime, timezone

import pytest
from pymongo.errors import AutoReconnect, DuplicateKeyError

from geogrid_api.core.errors import RepositoryError
from geogrid_api.models.domain import Competitor, GeoPoint
from geogrid_api.services.grid_results import GridResultRepository
from geogrid_api.services.metrics import compute_metrics

from conftest import DummyCollection


class BrokenCollection(DummyCollection):
    def __init__(self):
        super().__init__()
        self.attempts = 0

    def insert_one(self, doc):
        self.attempts += 1
        raise AutoReconnect("primary stepped down")

    def find(self, query=None):
        self.attempts += 1
        raise AutoReconnect("primary stepped down")

    def find_one(self, query):
        raise AutoReconnect("primary stepped down")


def test_indexes_created(repository, grid_collection, competitor_collection):
    assert "created_at_idx" in grid_collection.indexes
    assert "grid_result_idx" in competitor_collection.indexes


def test_save_assigns_id_and_round_trips(repository, make_result, grid_collection):
    result = make_result()
    result = result.model_copy(update={"metrics": compute_metrics(result.grid_data)})

    saved = repository.save(result)

    assert saved.id
    assert result.id is None
    stored = grid_collection.docs[0]
    assert stored["search_term"] == "plumber near me"
    assert stored["business"]["place_id"] == "place-123"
    assert stored["metrics"]["solv"] == "33%"
    assert "averageRank" in stored["metrics"]

    loaded = repository.get_by_id(saved.id)
    assert loaded == saved
    assert loaded.grid_size == "3x3"
    assert loaded.side_length == 3


def test_integer_grid_size_is_preserved(repository, make_result):
    saved = repository.save(make_result(grid_size=3))
    assert repository.get_by_id(saved.id).grid_size == 3


def test_get_all_is_newest_first(repository, make_result):
    older = repository.save(make_result(name="Old", created_at=datetime(2023, 1, 1, tzinfo=timezone.utc)))
    newer = repository.save(make_result(name="New", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)))

    results = repository.get_all()

    assert [r.id for r in results] == [newer.id, older.id]


def test_get_all_empty(repository):
    assert repository.get_all() == []


def test_get_by_id_unknown_or_invalid(repository):
    assert repository.get_by_id("0123456789abcdef01234567") is None
    assert repository.get_by_id("not-an-id") is None


def test_delete(repository, make_result, competitor_collection):
    saved = repository.save(make_result())
    repository.save_competitors(saved.id, [Competitor(name="Rival", location=GeoPoint(lat=40.0, lng=-74.0))])

    assert repository.delete(saved.id) is True
    assert repository.get_by_id(saved.id) is None
    assert competitor_collection.docs == []
    assert repository.delete(saved.id) is False
    assert repository.delete("garbage") is False


def test_competitors_round_trip(repository, make_result):
    saved = repository.save(make_result())
    competitors = [
        Competitor(
            name="Rival Plumbing",
            address="2 Main St",
            rating=4.2,
            user_ratings_total=87,
            types=["plumber"],
            location=GeoPoint(lat=40.01, lng=-74.02),
        ),
        Competitor(name="Pipe Pros", location=GeoPoint(lat=39.99, lng=-73.98)),
    ]

    assert repository.save_competitors(saved.id, competitors) is True
    assert repository.save_competitors(saved.id, []) is True

    loaded = repository.get_competitors(saved.id)
    assert [c.name for c in loaded] == ["Rival Plumbing", "Pipe Pros"]
    assert loaded[0].user_ratings_total == 87
    assert loaded[0].location == GeoPoint(lat=40.01, lng=-74.02)
    assert all(c.id for c in loaded)
    assert repository.get_competitors("other") == []


def test_save_retries_then_raises_repository_error(settings, make_result, competitor_collection):
    broken = BrokenCollection()
    repository = GridResultRepository(
        settings,
        grid_collection=broken,
        competitor_collection=competitor_collection,
        max_retries=3,
        delay_ms=0,
    )

    with pytest.raises(RepositoryError) as excinfo:
        repository.save(make_result())

    assert broken.attempts == 3
    assert "All 3 attempts failed" in str(excinfo.value)


def test_read_failures_surface_as_repository_error(settings, competitor_collection):
    repository = GridResultRepository(
        settings,
        grid_collection=BrokenCollection(),
        competitor_collection=competitor_collection,
        max_retries=2,
        delay_ms=0,
    )

    with pytest.raises(RepositoryError):
        repository.get_all()
    with pytest.raises(RepositoryError):
        repository.get_by_id("0123456789abcdef01234567")


def test_ping_without_client(repository):
    assert repository.ping() is True


class DuplicateCollection(DummyCollection):
    def __init__(self):
        super().__init__()
        self.attempts = 0

    def insert_one(self, doc):
        self.attempts += 1
        raise DuplicateKeyError("E11000 duplicate key error")


class FailingAdmin:
    def command(self, name):
        raise AutoReconnect("connection refused")


class FailingClient:
    admin = FailingAdmin()


def test_duplicate_key_is_not_retried(settings, make_result, competitor_collection):
    duplicate = DuplicateCollection()
    repository = GridResultRepository(
        settings,
        grid_collection=duplicate,
        competitor_collection=competitor_collection,
        max_retries=3,
        delay_ms=0,
    )

    with pytest.raises(RepositoryError) as excinfo:
        repository.save(make_result())

    assert duplicate.attempts == 1
    assert isinstance(excinfo.value.__cause__, DuplicateKeyError)


def test_ping_reports_unreachable_server(repository, caplog):
    repository.client = FailingClient()
    assert repository.ping() is False
    assert "unreachable" in caplog.text


def test_get_all_filters(repository, make_result):
    jan = repository.save(make_result(name="Acme", created_at=datetime(2024, 1, 10, tzinfo=timezone.utc)))
    feb = repository.save(make_result(name="Rival", created_at=datetime(2024, 2, 10, tzinfo=timezone.utc)))
    mar = repository.save(make_result(name="Acme", created_at=datetime(2024, 3, 10, tzinfo=timezone.utc)))

    assert [r.id for r in repository.get_all(business_name="Acme")] == [mar.id, jan.id]
    assert len(repository.get_all(place_id="place-123")) == 3
    assert repository.get_all(place_id="elsewhere") == []
    assert repository.get_all(search_term="drain cleaning") == []

    window = repository.get_all(start_date=datetime(2024, 2, 1), end_date=datetime(2024, 2, 28))
    assert [r.id for r in window] == [feb.id]


def test_get_all_sorts_and_pages(repository, make_result):
    saved = [
        repository.save(make_result(name=f"Shop {day}", created_at=datetime(2024, 4, day, tzinfo=timezone.utc)))
        for day in (1, 2, 3, 4, 5)
    ]

    ascending = repository.get_all(ascending=True)
    assert [r.id for r in ascending] == [r.id for r in saved]

    page = repository.get_all(skip=1, limit=2)
    assert [r.business_info.name for r in page] == ["Shop 4", "Shop 3"]
    assert repository.get_all(skip=5) == []
