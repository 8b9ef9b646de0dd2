"""
Geocoding Tool for the UK Weather MCP Server

Turns free-text UK place names into coordinates with OpenStreetMap Nominatim,
keeping outbound requests at least one second apart as the Nominatim usage
policy requires.

Modules:
    - models: upstream response schema and result/outcome types
    - tool_implementation: lookup client, rate limiter and batch orchestration
"""

from .models import (
    BatchResult,
    Coordinates,
    ErrorKind,
    LocationResult,
    LookupFailed,
    LookupOk,
    LookupOutcome,
)
from .tool_implementation import (
    GeocodingClient,
    RateLimitedGeocoder,
    UKGeocodingTools,
    batch_geocode,
)

__all__ = [
    "BatchResult",
    "Coordinates",
    "ErrorKind",
    "GeocodingClient",
    "LocationResult",
    "LookupFailed",
    "LookupOk",
    "LookupOutcome",
    "RateLimitedGeocoder",
    "UKGeocodingTools",
    "batch_geocode",
]
