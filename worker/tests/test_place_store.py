import psycopg2
import pytest
from psycopg2 import errors

from dummies import DummyConnection, DummyPool
from prospector.core.errors import DuplicateKey, StoreUnavailable
from prospector.core.place_store import PlaceStore
from prospector.models import PlaceRecord


def _record(**overrides):
    values = {
        "place_id": "pid-1",
        "google_maps_uri": "https://maps.google.com/?cid=1",
        "types": ["store", "point_of_interest"],
        "international_phone_number": "+33 1 23 45 67 89",
        "website_uri": None,
        "location_id": 6,
    }
    values.update(overrides)
    return PlaceRecord(**values)


def test_find_by_id_returns_record():
    connection = DummyConnection(rows=[("pid-1", "https://maps", ["store"], "+33 1", None, 6)])
    store = PlaceStore(DummyPool(connection))

    record = store.find_by_id("pid-1")

    assert record == PlaceRecord("pid-1", "https://maps", ["store"], "+33 1", None, 6)
    sql, params = connection.executed[0]
    assert sql.startswith("SELECT place_id")
    assert params == {"place_id": "pid-1"}


def test_find_by_id_missing():
    store = PlaceStore(DummyPool(DummyConnection()))

    assert store.find_by_id("nope") is None


def test_create_inserts_record():
    connection = DummyConnection()
    store = PlaceStore(DummyPool(connection))

    created = store.create(_record())

    assert created.place_id == "pid-1"
    sql, params = connection.executed[0]
    assert sql.startswith("INSERT INTO places")
    assert "ON CONFLICT" not in sql
    assert params["types"] == ["store", "point_of_interest"]
    assert params["location_id"] == 6
    assert connection.commits == 1


def test_create_duplicate_raises():
    connection = DummyConnection(fail_with=errors.UniqueViolation("duplicate key"))
    store = PlaceStore(DummyPool(connection))

    with pytest.raises(DuplicateKey):
        store.create(_record())
    assert connection.rollbacks == 1


def test_merge_categories_writes_union_when_it_grows():
    connection = DummyConnection(rows=[(["store", "point_of_interest"],)])
    store = PlaceStore(DummyPool(connection))

    merged = store.merge_categories("pid-1", ["restaurant", "store"])

    assert merged == ["store", "point_of_interest", "restaurant"]
    statements = connection.statements()
    assert statements[0].endswith("FOR UPDATE;")
    assert statements[1].startswith("UPDATE places SET types")
    assert connection.executed[1][1]["types"] == ["store", "point_of_interest", "restaurant"]


def test_merge_categories_skips_write_when_unchanged():
    connection = DummyConnection(rows=[(["store", "restaurant"],)])
    store = PlaceStore(DummyPool(connection))

    merged = store.merge_categories("pid-1", ["restaurant"])

    assert merged == ["store", "restaurant"]
    assert len(connection.executed) == 1


def test_merge_categories_ignores_stored_duplicates():
    connection = DummyConnection(rows=[(["store", "store"],)])
    store = PlaceStore(DummyPool(connection))

    merged = store.merge_categories("pid-1", ["store"])

    assert merged == ["store"]
    assert len(connection.executed) == 1


def test_merge_categories_unknown_place_is_noop():
    connection = DummyConnection()
    store = PlaceStore(DummyPool(connection))

    assert store.merge_categories("ghost", ["bar"]) is None
    assert len(connection.executed) == 1


def test_store_errors_surface_as_store_unavailable():
    connection = DummyConnection(fail_with=psycopg2.OperationalError("connection refused"))
    store = PlaceStore(DummyPool(connection))

    with pytest.raises(StoreUnavailable):
        store.find_by_id("pid-1")
