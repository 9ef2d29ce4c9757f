"""CLI job importing a JSON location list into the locations table."""

import argparse
import logging
from typing import Optional, Sequence

import psycopg2

from prospector.core.config import get_settings
from prospector.core.db import close_pool, ensure_schema, init_pool
from prospector.core.locations import load_locations_from_file, upsert_locations

logger = logging.getLogger(__name__)


def seed_locations(path: str, init_schema: bool = False) -> int:
    settings = get_settings()
    locations = load_locations_from_file(path)
    ids = [location.id for location in locations]
    if len(set(ids)) != len(ids):
        raise ValueError(f"{path} contains duplicate location ids")

    pg_pool = init_pool(settings.database_url)
    try:
        if init_schema:
            ensure_schema(pg_pool)
        return upsert_locations(locations, pg_pool)
    finally:
        close_pool()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Load search locations into the database")
    parser.add_argument("path", help="JSON file listing {id, latitude, longitude}")
    parser.add_argument(
        "--init-schema",
        dest="init_schema",
        action="store_true",
        help="Create the database tables before loading",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)
    try:
        count = seed_locations(args.path, init_schema=args.init_schema)
    except (OSError, ValueError) as exc:
        logger.error("Could not read locations: %s", exc)
        return 2
    except (RuntimeError, psycopg2.Error) as exc:
        logger.error("Seeding failed: %s", exc)
        return 1
    logger.info("Seeded %d locations", count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
