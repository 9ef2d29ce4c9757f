import json

from prospector.jobs import seed_locations


class DummySettings:
    database_url = "postgres://"


def _write(tmp_path, entries):
    path = tmp_path / "locations.json"
    path.write_text(json.dumps(entries), encoding="utf-8")
    return str(path)


def test_main_seeds_locations(tmp_path, monkeypatch):
    calls = {}
    monkeypatch.setattr(seed_locations, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(seed_locations, "init_pool", lambda url: "pool")
    monkeypatch.setattr(seed_locations, "close_pool", lambda: calls.setdefault("closed", True))
    monkeypatch.setattr(seed_locations, "ensure_schema", lambda pg_pool: calls.setdefault("schema", pg_pool))

    def fake_upsert(locations, pg_pool):
        calls["ids"] = [location.id for location in locations]
        return len(locations)

    monkeypatch.setattr(seed_locations, "upsert_locations", fake_upsert)
    path = _write(tmp_path, [{"id": 1, "latitude": 1.0, "longitude": 2.0}, {"id": 2, "latitude": 3.0, "longitude": 4.0}])

    assert seed_locations.main([path, "--init-schema"]) == 0
    assert calls == {"schema": "pool", "ids": [1, 2], "closed": True}


def test_main_rejects_duplicate_ids(tmp_path, monkeypatch):
    monkeypatch.setattr(seed_locations, "get_settings", lambda: DummySettings())
    path = _write(tmp_path, [{"id": 1, "latitude": 1.0, "longitude": 2.0}, {"id": 1, "latitude": 3.0, "longitude": 4.0}])

    assert seed_locations.main([path]) == 2


def test_main_missing_file(tmp_path, monkeypatch):
    monkeypatch.setattr(seed_locations, "get_settings", lambda: DummySettings())

    assert seed_locations.main([str(tmp_path / "absent.json")]) == 2
