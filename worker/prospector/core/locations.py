"""Loading the reference list of search locations."""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Union

from prospector.core.db import get_connection
from prospector.models import Location

logger = logging.getLogger(__name__)

_SELECT_LOCATIONS = "SELECT id, latitude, longitude FROM locations ORDER BY id;"

_UPSERT_LOCATION = """
INSERT INTO locations (id, latitude, longitude)
VALUES (%(id)s, %(latitude)s, %(longitude)s)
ON CONFLICT (id) DO UPDATE SET
    latitude = EXCLUDED.latitude,
    longitude = EXCLUDED.longitude;
"""


def parse_location(entry: Any) -> Location:
    if not isinstance(entry, dict):
        raise ValueError(f"location entry must be an object, got {type(entry).__name__}")
    missing = [key for key in ("id", "latitude", "longitude") if entry.get(key) is None]
    if missing:
        raise ValueError(f"location entry is missing fields: {', '.join(missing)}")
    try:
        return Location(
            id=int(entry["id"]),
            latitude=float(entry["latitude"]),
            longitude=float(entry["longitude"]),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid location entry {entry!r}: {exc}") from exc


def load_locations_from_file(path: Union[str, Path]) -> List[Location]:
    """Read a JSON list of ``{id, latitude, longitude}`` objects, keeping file order."""
    with Path(path).open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of locations")
    locations = [parse_location(entry) for entry in data]
    logger.info("Loaded %d locations from %s", len(locations), path)
    return locations


def load_locations_from_db(pg_pool=None) -> List[Location]:
    with get_connection(pg_pool) as conn:
        with conn.cursor() as cur:
            cur.execute(_SELECT_LOCATIONS)
            rows = cur.fetchall()
        conn.commit()
    locations = [Location(id=int(row[0]), latitude=float(row[1]), longitude=float(row[2])) for row in rows]
    logger.info("Loaded %d locations from database", len(locations))
    return locations


def upsert_locations(locations: Iterable[Location], pg_pool=None) -> int:
    count = 0
    with get_connection(pg_pool) as conn:
        with conn.cursor() as cur:
            for location in locations:
                cur.execute(
                    _UPSERT_LOCATION,
                    {"id": location.id, "latitude": location.latitude, "longitude": location.longitude},
                )
                count += 1
        conn.commit()
    logger.info("Upserted %d locations", count)
    return count
