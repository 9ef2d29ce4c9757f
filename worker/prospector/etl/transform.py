"""Utilities for transforming Google Places responses into pipeline models."""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from prospector.models import Location, PlaceCandidate, PlaceDetails, PlaceRecord

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Nom inconnu"


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _display_name(raw: Dict[str, Any]) -> str:
    display_name = raw.get("displayName")
    if isinstance(display_name, dict):
        text = _strip_or_none(display_name.get("text"))
    else:
        text = _strip_or_none(display_name)
    return text or UNKNOWN_NAME


def to_place_candidate(raw: Dict[str, Any]) -> Optional[PlaceCandidate]:
    place_id = _strip_or_none(raw.get("id"))
    if not place_id:
        logger.debug("Skipping result without id: %s", raw)
        return None
    return PlaceCandidate(
        place_id=place_id,
        types=list(raw.get("types") or []),
        google_maps_uri=raw.get("googleMapsUri"),
        display_name=_display_name(raw),
        raw=raw,
    )


def candidate_key(candidate: PlaceCandidate) -> str:
    """Serialize the full directory payload; equal keys mean identical results.

    Candidates built without a payload are keyed on their mapped fields.
    """
    payload = candidate.raw or {
        "id": candidate.place_id,
        "types": list(candidate.types),
        "googleMapsUri": candidate.google_maps_uri,
        "displayName": candidate.display_name,
    }
    return json.dumps(payload, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def to_place_details(payload: Dict[str, Any]) -> PlaceDetails:
    return PlaceDetails(
        international_phone_number=_strip_or_none(payload.get("internationalPhoneNumber")),
        website_uri=_strip_or_none(payload.get("websiteUri")),
    )


def merge_types(existing: Iterable[str], observed: Iterable[str]) -> List[str]:
    """Ordered union of two category lists; existing entries keep their position."""
    merged = list(dict.fromkeys(existing))
    for type_name in observed:
        if type_name not in merged:
            merged.append(type_name)
    return merged


def to_place_record(candidate: PlaceCandidate, details: PlaceDetails, location: Location) -> PlaceRecord:
    return PlaceRecord(
        place_id=candidate.place_id,
        google_maps_uri=candidate.google_maps_uri,
        types=merge_types([], candidate.types),
        international_phone_number=details.international_phone_number,
        website_uri=details.website_uri,
        location_id=location.id,
    )
