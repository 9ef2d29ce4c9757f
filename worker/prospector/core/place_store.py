"""Idempotent persistence of place records keyed by Google place id."""

import logging
from typing import Iterable, List, Optional

from prospector.core.db import get_connection
from prospector.etl.transform import merge_types
from prospector.models import PlaceRecord

logger = logging.getLogger(__name__)

_SELECT_PLACE = """
SELECT place_id, google_maps_uri, types, international_phone_number, website_uri, location_id
FROM places
WHERE place_id = %(place_id)s;
"""

_INSERT_PLACE = """
INSERT INTO places (
    place_id,
    google_maps_uri,
    types,
    international_phone_number,
    website_uri,
    location_id
) VALUES (
    %(place_id)s,
    %(google_maps_uri)s,
    %(types)s,
    %(international_phone_number)s,
    %(website_uri)s,
    %(location_id)s
);
"""

_LOCK_PLACE_TYPES = """
SELECT types FROM places WHERE place_id = %(place_id)s FOR UPDATE;
"""

_UPDATE_PLACE_TYPES = """
UPDATE places SET types = %(types)s, updated_at = NOW() WHERE place_id = %(place_id)s;
"""


def _row_to_record(row) -> PlaceRecord:
    place_id, google_maps_uri, types, phone, website, location_id = row
    return PlaceRecord(
        place_id=place_id,
        google_maps_uri=google_maps_uri,
        types=list(types or []),
        international_phone_number=phone,
        website_uri=website,
        location_id=location_id,
    )


class PlaceStore:
    """Create-or-merge access to the ``places`` table.

    Only the category list of an existing record is ever updated; phone,
    website and owning location are fixed at creation.
    """

    def __init__(self, pg_pool=None) -> None:
        self._pool = pg_pool

    def find_by_id(self, place_id: str) -> Optional[PlaceRecord]:
        with get_connection(self._pool) as conn:
            with conn.cursor() as cur:
                cur.execute(_SELECT_PLACE, {"place_id": place_id})
                row = cur.fetchone()
            conn.commit()
        return _row_to_record(row) if row else None

    def create(self, record: PlaceRecord) -> PlaceRecord:
        """Insert a new record; raises DuplicateKey if the id already exists."""
        params = {
            "place_id": record.place_id,
            "google_maps_uri": record.google_maps_uri,
            "types": list(record.types),
            "international_phone_number": record.international_phone_number,
            "website_uri": record.website_uri,
            "location_id": record.location_id,
        }
        with get_connection(self._pool) as conn:
            with conn.cursor() as cur:
                cur.execute(_INSERT_PLACE, params)
            conn.commit()
        logger.debug("Created place %s for location %s", record.place_id, record.location_id)
        return record

    def merge_categories(self, place_id: str, new_categories: Iterable[str]) -> Optional[List[str]]:
        """Union ``new_categories`` into the stored list, writing only when it grows.

        Returns the resulting category list, or None when the place is unknown.
        """
        with get_connection(self._pool) as conn:
            with conn.cursor() as cur:
                cur.execute(_LOCK_PLACE_TYPES, {"place_id": place_id})
                row = cur.fetchone()
                if row is None:
                    conn.commit()
                    logger.debug("merge_categories ignored unknown place %s", place_id)
                    return None
                current = list(row[0] or [])
                merged = merge_types(current, new_categories)
                if set(merged) != set(current):
                    cur.execute(_UPDATE_PLACE_TYPES, {"place_id": place_id, "types": merged})
                    logger.debug("Place %s types %s -> %s", place_id, current, merged)
            conn.commit()
        return merged
