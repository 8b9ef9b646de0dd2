"""
Result models for the geocoding tool.

``NominatimPlace`` describes what the upstream search endpoint returns and is
validated with pydantic. ``LocationResult`` and the two outcome classes are
what the rest of the package works with.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_COUNTRY = "United Kingdom"


# --- Upstream schema ---

class NominatimAddress(BaseModel):
    """The subset of the ``address`` block (``addressdetails=1``) that is kept."""

    model_config = ConfigDict(extra="ignore")

    country: Optional[str] = None
    county: Optional[str] = None
    state: Optional[str] = None


class NominatimPlace(BaseModel):
    """One candidate from the Nominatim ``/search`` endpoint (``format=json``)."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    name: Optional[str] = None
    display_name: str = ""
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    address: Optional[NominatimAddress] = None


# --- Domain models ---

@dataclass(frozen=True)
class Coordinates:
    """WGS84 latitude and longitude in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class LocationResult:
    """A single geocoding match."""

    name: str
    coordinates: Coordinates
    display_name: str
    country: str = DEFAULT_COUNTRY
    county: Optional[str] = None
    state: Optional[str] = None

    @classmethod
    def from_place(cls, place: NominatimPlace) -> "LocationResult":
        address = place.address or NominatimAddress()
        return cls(
            name=place.name or place.display_name.split(",")[0],
            coordinates=Coordinates(latitude=place.lat, longitude=place.lon),
            display_name=place.display_name,
            country=address.country or DEFAULT_COUNTRY,
            county=address.county,
            state=address.state,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary; optional fields are left out when absent."""
        data: Dict[str, Any] = {
            "name": self.name,
            "coordinates": {
                "latitude": self.coordinates.latitude,
                "longitude": self.coordinates.longitude,
            },
            "display_name": self.display_name,
            "country": self.country,
        }
        if self.county is not None:
            data["county"] = self.county
        if self.state is not None:
            data["state"] = self.state
        return data


class ErrorKind(str, Enum):
    """Why a lookup or a batch entry failed."""

    SERVICE_UNAVAILABLE = "service_unavailable"
    NO_RESULTS = "no_results"
    LOOKUP_FAILED = "lookup_failed"
    MALFORMED_RESPONSE = "malformed_response"
    BATCH_ENTRY_FAILED = "batch_entry_failed"


@dataclass(frozen=True)
class LookupOk:
    """Successful lookup holding one LocationResult per valid upstream candidate."""

    results: Tuple[LocationResult, ...]

    ok = True

    def to_payload(self) -> List[Dict[str, Any]]:
        return [result.to_dict() for result in self.results]


@dataclass(frozen=True)
class LookupFailed:
    """
    Failed lookup.

    ``error`` is a short summary for the assistant; ``details`` carries the
    HTTP status, exception message or a hint when one is available.
    """

    kind: ErrorKind
    error: str
    details: Optional[str] = None

    ok = False

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error}
        if self.details is not None:
            payload["details"] = self.details
        return payload


LookupOutcome = Union[LookupOk, LookupFailed]
BatchResult = Dict[str, LookupOutcome]
