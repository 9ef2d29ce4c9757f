"""Singleton checkpoint holding the last fully processed location id."""

import logging

from prospector.core.db import get_connection

logger = logging.getLogger(__name__)

_SELECT_CHECKPOINT = "SELECT last_processed_location_id FROM ingest_checkpoint WHERE id = 1;"

_UPSERT_CHECKPOINT = """
INSERT INTO ingest_checkpoint (id, last_processed_location_id, updated_at)
VALUES (1, %(value)s, NOW())
ON CONFLICT (id) DO UPDATE SET
    last_processed_location_id = EXCLUDED.last_processed_location_id,
    updated_at = NOW();
"""


class CheckpointStore:
    def __init__(self, pg_pool=None) -> None:
        self._pool = pg_pool

    def read(self) -> int:
        """Return the stored cursor, 0 when nothing has been processed yet."""
        with get_connection(self._pool) as conn:
            with conn.cursor() as cur:
                cur.execute(_SELECT_CHECKPOINT)
                row = cur.fetchone()
            conn.commit()
        value = int(row[0]) if row and row[0] is not None else 0
        logger.info("Read checkpoint=%d", value)
        return value

    def write(self, value: int) -> None:
        # Callers only pass ids of fully processed locations, never lower than read().
        with get_connection(self._pool) as conn:
            with conn.cursor() as cur:
                cur.execute(_UPSERT_CHECKPOINT, {"value": int(value)})
            conn.commit()
        logger.info("Wrote checkpoint=%d", value)
