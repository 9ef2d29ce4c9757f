"""Core data models shared by the places prospecting pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, slots=True)
class Location:
    """A fixed search point; ``id`` orders locations and is the resume cursor."""

    id: int
    latitude: float
    longitude: float


@dataclass(slots=True)
class PlaceCandidate:
    """One nearby-search result, as returned by the directory."""

    place_id: str
    types: List[str] = field(default_factory=list)
    google_maps_uri: Optional[str] = None
    display_name: str = "Nom inconnu"
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True, slots=True)
class PlaceDetails:
    international_phone_number: Optional[str] = None
    website_uri: Optional[str] = None


@dataclass(slots=True)
class PlaceRecord:
    """Persisted place, unique per ``place_id``."""

    place_id: str
    google_maps_uri: Optional[str]
    types: List[str]
    international_phone_number: Optional[str]
    website_uri: Optional[str]
    location_id: int


class RunStatus(str, enum.Enum):
    SUCCESS = "Succès"
    FAILURE = "Échec"


@dataclass(slots=True)
class RunResult:
    status: RunStatus
    processed_count: int
    checkpoint: Optional[int]
    places_created: int = 0
    places_merged: int = 0
    alerts_sent: int = 0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.SUCCESS
