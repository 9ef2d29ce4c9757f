"""CLI job scanning locations for nearby places and alerting on those without a website."""

import argparse
import logging
from typing import Callable, Dict, List, Optional, Sequence

import psycopg2

from prospector.core.checkpoint_store import CheckpointStore
from prospector.core.config import ConfigError, Settings, get_settings
from prospector.core.db import close_pool, ensure_schema, init_pool
from prospector.core.errors import DeliveryFailure, IngestError
from prospector.core.locations import load_locations_from_db, load_locations_from_file
from prospector.core.place_store import PlaceStore
from prospector.etl.transform import candidate_key, to_place_record
from prospector.models import Location, PlaceCandidate, RunResult, RunStatus
from prospector.vendors.discord import DiscordAlertSink
from prospector.vendors.google_places import PlaceDirectoryClient

logger = logging.getLogger(__name__)

PLACE_TYPES = ("store", "restaurant", "lodging", "bar")
MAX_LOCATIONS_PER_RUN = 10


class IngestionPipeline:
    """Resumable scan over the location list.

    Each location is handled in two phases: every category is queried and the
    results gathered into one deduplicated set, then each unique result is
    upserted. The checkpoint only ever names a location whose categories were
    all queried and persisted; a location interrupted by an error is redone on
    the next run.
    """

    def __init__(
        self,
        directory: PlaceDirectoryClient,
        places: PlaceStore,
        checkpoints: CheckpointStore,
        alerts: DiscordAlertSink,
        load_locations: Callable[[], Sequence[Location]],
        categories: Sequence[str] = PLACE_TYPES,
        max_locations: int = MAX_LOCATIONS_PER_RUN,
    ) -> None:
        self._directory = directory
        self._places = places
        self._checkpoints = checkpoints
        self._alerts = alerts
        self._load_locations = load_locations
        self._categories = tuple(categories)
        self._max_locations = max_locations
        self._stats: Dict[str, int] = {}

    def run(self) -> RunResult:
        self._stats = {"created": 0, "merged": 0, "alerts": 0}
        processed_count = 0
        stored_checkpoint: Optional[int] = None
        last_completed_id: Optional[int] = None
        failure: Optional[Exception] = None

        try:
            stored_checkpoint = self._checkpoints.read()
            last_completed_id = stored_checkpoint
            locations = self._load_locations()
            logger.info(
                "Starting run: checkpoint=%d locations=%d cap=%d",
                stored_checkpoint,
                len(locations),
                self._max_locations,
            )

            for location in locations:
                if location.id <= last_completed_id:
                    continue
                if processed_count >= self._max_locations:
                    logger.info("Reached per-run cap of %d locations", self._max_locations)
                    break
                self._process_location(location)
                last_completed_id = location.id
                processed_count += 1
        except Exception as exc:  # noqa: BLE001
            failure = exc
            self._log_failure(exc, processed_count)

        if last_completed_id is not None and (failure is None or processed_count):
            try:
                self._checkpoints.write(last_completed_id)
                stored_checkpoint = last_completed_id
            except Exception as exc:  # noqa: BLE001
                if failure is None:
                    failure = exc
                    self._log_failure(exc, processed_count)
                else:
                    logger.error("Could not save checkpoint=%d after failure: %s", last_completed_id, exc)

        if failure is not None:
            message = str(failure) or failure.__class__.__name__
            self._send_outcome(RunStatus.FAILURE, f"Le script a rencontré une erreur : {message}")
            return self._result(RunStatus.FAILURE, processed_count, stored_checkpoint, error=message)

        logger.info(
            "Completed run: processed=%d checkpoint=%d created=%d merged=%d alerts=%d",
            processed_count,
            stored_checkpoint,
            self._stats["created"],
            self._stats["merged"],
            self._stats["alerts"],
        )
        self._send_outcome(RunStatus.SUCCESS, f"Le script a traité {processed_count} emplacements.")
        return self._result(RunStatus.SUCCESS, processed_count, stored_checkpoint)

    def _process_location(self, location: Location) -> None:
        unique: Dict[str, PlaceCandidate] = {}
        for category in self._categories:
            for candidate in self._directory.search_nearby(location, category):
                unique.setdefault(candidate_key(candidate), candidate)

        logger.info(
            "Location %d: %d unique results across %d categories", location.id, len(unique), len(self._categories)
        )
        for candidate in unique.values():
            self._upsert(candidate, location)

    def _upsert(self, candidate: PlaceCandidate, location: Location) -> None:
        existing = self._places.find_by_id(candidate.place_id)
        if existing is not None:
            self._places.merge_categories(candidate.place_id, candidate.types)
            self._stats["merged"] += 1
            return

        details = self._directory.get_details(candidate.place_id)
        record = self._places.create(to_place_record(candidate, details, location))
        self._stats["created"] += 1

        if details.website_uri:
            return
        try:
            self._alerts.notify_missing_website(
                name=candidate.display_name,
                categories=record.types,
                phone=details.international_phone_number,
                map_link=candidate.google_maps_uri,
            )
            self._stats["alerts"] += 1
        except DeliveryFailure as exc:
            logger.warning("Missing-website alert for %s not delivered: %s", candidate.place_id, exc)

    @staticmethod
    def _log_failure(exc: Exception, processed_count: int) -> None:
        if isinstance(exc, IngestError):
            logger.error("Run aborted after %d locations: %s", processed_count, exc)
        else:
            logger.exception("Run aborted after %d locations: %s", processed_count, exc)

    def _send_outcome(self, status: RunStatus, summary: str) -> None:
        try:
            self._alerts.notify_run_outcome(status, summary)
        except DeliveryFailure as exc:
            logger.error("Run outcome notification not delivered: %s", exc)

    def _result(
        self, status: RunStatus, processed_count: int, checkpoint: Optional[int], error: Optional[str] = None
    ) -> RunResult:
        return RunResult(
            status=status,
            processed_count=processed_count,
            checkpoint=checkpoint,
            places_created=self._stats["created"],
            places_merged=self._stats["merged"],
            alerts_sent=self._stats["alerts"],
            error=error,
        )


def build_pipeline(
    settings: Settings,
    pg_pool,
    alerts: DiscordAlertSink,
    locations_file: Optional[str] = None,
    max_locations: Optional[int] = None,
) -> IngestionPipeline:
    locations_file = locations_file or settings.locations_file

    def load_locations() -> List[Location]:
        if locations_file:
            return load_locations_from_file(locations_file)
        return load_locations_from_db(pg_pool)

    return IngestionPipeline(
        directory=PlaceDirectoryClient(settings.google_api_key, timeout=settings.request_timeout),
        places=PlaceStore(pg_pool),
        checkpoints=CheckpointStore(pg_pool),
        alerts=alerts,
        load_locations=load_locations,
        max_locations=max_locations if max_locations is not None else settings.max_locations_per_run,
    )


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Scan locations for nearby places without a website")
    parser.add_argument(
        "--locations-file",
        dest="locations_file",
        default=settings.locations_file,
        help="JSON file listing {id, latitude, longitude}; defaults to the locations table",
    )
    parser.add_argument(
        "--max-locations",
        dest="max_locations",
        type=int,
        default=settings.max_locations_per_run,
        help="Maximum number of locations to process in this run",
    )
    parser.add_argument(
        "--init-schema",
        dest="init_schema",
        action="store_true",
        help="Create the database tables before running",
    )
    return parser


def _notify_startup_failure(alerts: DiscordAlertSink, exc: Exception) -> None:
    try:
        alerts.notify_run_outcome(RunStatus.FAILURE, f"Le script a rencontré une erreur : {exc}")
    except DeliveryFailure as delivery_exc:
        logger.error("Run outcome notification not delivered: %s", delivery_exc)


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)
    if args.max_locations <= 0:
        logger.error("--max-locations must be positive")
        return 2

    settings = get_settings()
    alerts = DiscordAlertSink(
        settings.discord_webhook_url,
        delay_seconds=settings.alert_delay_seconds,
        timeout=settings.request_timeout,
    )

    try:
        if not settings.google_api_key:
            raise ConfigError("GOOGLE_API_KEY is required")
        pg_pool = init_pool(settings.database_url)
        if args.init_schema:
            ensure_schema(pg_pool)
    except (ConfigError, RuntimeError, psycopg2.Error) as exc:
        logger.error("Start-up failed: %s", exc)
        _notify_startup_failure(alerts, exc)
        close_pool()
        return 1

    try:
        pipeline = build_pipeline(
            settings,
            pg_pool,
            alerts,
            locations_file=args.locations_file,
            max_locations=args.max_locations,
        )
        result = pipeline.run()
    finally:
        close_pool()

    return 0 if result.succeeded else 1


if __name__ == "__main__":
    raise SystemExit(main())
