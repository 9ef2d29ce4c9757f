"""Client for the Google Places API (v1, "New")."""

import logging
from typing import Any, Dict, List, Optional

import requests

from prospector.core.errors import DirectoryUnavailable
from prospector.etl.transform import to_place_candidate, to_place_details
from prospector.models import Location, PlaceCandidate, PlaceDetails

logger = logging.getLogger(__name__)
_BASE_URL = "https://places.googleapis.com/v1"

SEARCH_RADIUS_METERS = 2000.0
MAX_RESULT_COUNT = 20
SEARCH_FIELD_MASK = "places.id,places.googleMapsUri,places.types,places.displayName"
DETAILS_FIELD_MASK = "internationalPhoneNumber,websiteUri"


class PlaceDirectoryClient:
    """Nearby search and place details lookups; keeps no state between calls."""

    def __init__(self, api_key: str, timeout: float = 10, session: Optional[requests.Session] = None) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    def _headers(self, field_mask: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self._api_key,
            "X-Goog-FieldMask": field_mask,
        }

    def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("Places request failed: %s %s: %s", method, url, exc)
            raise DirectoryUnavailable(f"Places request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            logger.error(
                "Places API returned status=%s for %s: %s", response.status_code, url, response.text[:500]
            )
            raise DirectoryUnavailable(f"Places API returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise DirectoryUnavailable("Places API returned a non-JSON body") from exc
        return payload or {}

    def search_nearby(self, location: Location, category: str) -> List[PlaceCandidate]:
        body = {
            "includedTypes": [category],
            "maxResultCount": MAX_RESULT_COUNT,
            "locationRestriction": {
                "circle": {
                    "center": {"latitude": location.latitude, "longitude": location.longitude},
                    "radius": SEARCH_RADIUS_METERS,
                }
            },
            "rankPreference": "DISTANCE",
        }
        payload = self._request(
            "POST",
            f"{_BASE_URL}/places:searchNearby",
            json=body,
            headers=self._headers(SEARCH_FIELD_MASK),
        )
        candidates = []
        for raw in payload.get("places") or []:
            candidate = to_place_candidate(raw)
            if candidate is not None:
                candidates.append(candidate)
        logger.debug("Nearby search location=%s type=%s returned %d places", location.id, category, len(candidates))
        return candidates

    def get_details(self, place_id: str) -> PlaceDetails:
        payload = self._request(
            "GET",
            f"{_BASE_URL}/places/{place_id}",
            headers=self._headers(DETAILS_FIELD_MASK),
        )
        return to_place_details(payload)
