"""
Geocoding Tool Implementation

Resolves free-text UK place names to coordinates using OpenStreetMap Nominatim.

Classes and functions:
    - GeocodingClient: issues one search request and classifies the outcome
    - RateLimitedGeocoder: spaces outbound requests by a fixed minimum interval
    - batch_geocode: looks up a list of names one at a time
    - UKGeocodingTools: tool-facing coroutines returning JSON-ready payloads
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import aiohttp
from pydantic import ValidationError

from ..config import DEFAULT_COUNTRY_CODE, DEFAULT_USER_AGENT, NOMINATIM_SEARCH_URL
from .models import (
    BatchResult,
    ErrorKind,
    LocationResult,
    LookupFailed,
    LookupOk,
    LookupOutcome,
    NominatimPlace,
)

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 5
NO_RESULTS_HINT = "Try checking the spelling or using a more specific location name"


def _error_message(exc: BaseException) -> str:
    return str(exc) or "Unknown error"


def _summarize_validation_error(exc: ValidationError, index: int) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in (index, *first.get("loc", ())))
    summary = f"{location}: {first.get('msg', 'invalid value')}"
    if exc.error_count() > 1:
        summary += f" (+{exc.error_count() - 1} more)"
    return summary


class GeocodingClient:
    """
    Single-request client for the Nominatim search endpoint.

    Every failure mode is returned as a LookupFailed value; nothing but
    cancellation propagates out of geocode().
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        base_url: str = NOMINATIM_SEARCH_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_seconds: float = 10.0,
    ):
        """
        Initialize the GeocodingClient.

        Args:
            session: Shared aiohttp session. If None, a session is opened per request.
            base_url: Nominatim search URL.
            user_agent: Client identifier required by the Nominatim usage policy.
            timeout_seconds: Total deadline for one request.
        """
        self._session = session
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds

    def build_params(self, place_name: str, country_code: str) -> Dict[str, str]:
        return {
            "q": place_name.strip(),
            "countrycodes": country_code,
            "format": "json",
            "addressdetails": "1",
            "limit": str(MAX_CANDIDATES),
        }

    async def geocode(
        self, place_name: str, country_code: str = DEFAULT_COUNTRY_CODE
    ) -> LookupOutcome:
        """
        Look up a place name and return its candidate matches.

        Args:
            place_name: Free-text place name. Surrounding whitespace is trimmed;
                an empty name is still sent and left for the upstream to reject.
            country_code: Region qualifier passed as ``countrycodes``.

        Returns:
            LookupOk with up to five LocationResult values, or LookupFailed.
        """
        params = self.build_params(place_name, country_code)
        headers = {"User-Agent": self.user_agent}
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)

        try:
            logger.info(f"Geocoding {params['q']!r} (countrycodes={country_code})")
            if self._session is not None:
                return await self._search(self._session, place_name, params, headers, timeout)
            async with aiohttp.ClientSession() as session:
                return await self._search(session, place_name, params, headers, timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Geocoding {place_name!r} timed out after {self.timeout_seconds}s")
            return LookupFailed(
                ErrorKind.LOOKUP_FAILED,
                "Failed to geocode location",
                f"Request timed out after {self.timeout_seconds:g}s",
            )
        except Exception as e:
            logger.warning(f"Geocoding {place_name!r} failed: {e!r}")
            return LookupFailed(
                ErrorKind.LOOKUP_FAILED, "Failed to geocode location", _error_message(e)
            )

    async def _search(
        self,
        session: aiohttp.ClientSession,
        place_name: str,
        params: Dict[str, str],
        headers: Dict[str, str],
        timeout: aiohttp.ClientTimeout,
    ) -> LookupOutcome:
        async with session.get(
            self.base_url, params=params, headers=headers, timeout=timeout
        ) as response:
            if not response.ok:
                logger.warning(f"Nominatim returned HTTP {response.status} for {place_name!r}")
                return LookupFailed(
                    ErrorKind.SERVICE_UNAVAILABLE,
                    "Geocoding service unavailable",
                    f"{response.status}: {response.reason}",
                )
            data = await response.json(content_type=None)

        if not data:
            return LookupFailed(ErrorKind.NO_RESULTS, f"No results for {place_name}", NO_RESULTS_HINT)

        if not isinstance(data, list):
            logger.warning(f"Malformed Nominatim response for {place_name!r}: not a list")
            return LookupFailed(
                ErrorKind.MALFORMED_RESPONSE,
                "Malformed geocoding response",
                f"Expected a list of places, got {type(data).__name__}",
            )

        places = []
        rejected = []
        for index, item in enumerate(data):
            try:
                places.append(NominatimPlace.model_validate(item))
            except ValidationError as e:
                rejected.append(_summarize_validation_error(e, index))

        if rejected:
            logger.warning(
                f"Dropped {len(rejected)} malformed Nominatim candidates for {place_name!r}: {rejected}"
            )
        if not places:
            return LookupFailed(
                ErrorKind.MALFORMED_RESPONSE,
                "Malformed geocoding response",
                "; ".join(rejected),
            )

        results = tuple(LocationResult.from_place(place) for place in places)
        logger.info(f"Geocoding {place_name!r} returned {len(results)} candidates")
        return LookupOk(results)


class RateLimitedGeocoder:
    """
    Wraps a GeocodingClient so dispatches are at least ``min_interval`` apart.

    One instance is meant to be shared by every caller that talks to the same
    upstream. The timestamp is taken right before delegating, so a slow
    response does not stretch the spacing.
    """

    def __init__(
        self,
        client: GeocodingClient,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_dispatch: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def last_dispatch(self) -> Optional[float]:
        return self._last_dispatch

    async def wait_for_slot(self) -> None:
        async with self._lock:
            if self._last_dispatch is not None:
                elapsed = self._clock() - self._last_dispatch
                if elapsed < self.min_interval:
                    wait = self.min_interval - elapsed
                    logger.debug(f"Rate limit: waiting {wait:.3f}s before next request")
                    await self._sleep(wait)
            self._last_dispatch = self._clock()

    async def geocode(
        self, place_name: str, country_code: str = DEFAULT_COUNTRY_CODE
    ) -> LookupOutcome:
        await self.wait_for_slot()
        return await self.client.geocode(place_name, country_code)


async def batch_geocode(
    place_names: List[str],
    geocoder: RateLimitedGeocoder,
    use_rate_limiting: bool = True,
    country_code: str = DEFAULT_COUNTRY_CODE,
) -> BatchResult:
    """
    Geocode several place names, strictly one after another.

    Args:
        place_names: Names to look up, in order. A repeated name keeps the
            outcome of its last occurrence.
        geocoder: Shared rate-limited geocoder. Its ``client`` is used
            directly when rate limiting is off.
        use_rate_limiting: Route each lookup through the limiter (default: True)
        country_code: Region qualifier for every lookup.

    Returns:
        Mapping of each input name to its own outcome. Exceptions raised for one
        name are recorded as that name's LookupFailed and never abort the batch.

    Example:
        >>> results = await batch_geocode(["London", "Leeds"], geocoder)
        >>> results["Leeds"].ok
        True
    """
    results: BatchResult = {}
    for place_name in place_names:
        try:
            if use_rate_limiting:
                results[place_name] = await geocoder.geocode(place_name, country_code)
            else:
                results[place_name] = await geocoder.client.geocode(place_name, country_code)
        except Exception as e:
            logger.error(f"Batch geocoding of {place_name!r} raised: {e!r}")
            results[place_name] = LookupFailed(
                ErrorKind.BATCH_ENTRY_FAILED,
                f"Failed to geocode {place_name}",
                _error_message(e),
            )

    failed = sum(1 for outcome in results.values() if not outcome.ok)
    logger.info(f"Batch geocoded {len(place_names)} names ({failed} failed)")
    return results


class UKGeocodingTools:
    """Tool-facing geocoding operations exposed to the assistant host."""

    def __init__(self, geocoder: RateLimitedGeocoder, country_code: str = DEFAULT_COUNTRY_CODE):
        self.geocoder = geocoder
        self.country_code = country_code

    async def geocode_uk_city(
        self, city_name: str, country_code: Optional[str] = None
    ) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        """
        Converts a UK city, town or place name into latitude/longitude coordinates.

        Args:
            city_name: Name of the place to geocode (e.g., "Manchester", "Bath, Somerset")
            country_code: ISO country code to restrict matches to (default: the
                server's configured GEOCODER_COUNTRY_CODE, normally "gb")

        Returns:
            List of up to 5 candidate matches with coordinates, display name,
            country, county and state, or a dictionary with "error" and "details".

        Example:
            >>> await tools.geocode_uk_city("Edinburgh")
            [{"name": "Edinburgh", "coordinates": {"latitude": 55.95, ...}, ...}]
        """
        outcome = await self.geocoder.geocode(city_name, country_code or self.country_code)
        return outcome.to_payload()

    async def batch_geocode_uk_cities(
        self, city_names: List[str], use_rate_limiting: bool = True
    ) -> Dict[str, Any]:
        """
        Geocodes several UK place names in one call.

        Args:
            city_names: Place names to look up, in order
            use_rate_limiting: Keep one second between Nominatim requests (default: True)

        Returns:
            Dictionary keyed by place name; each value is a candidate list or an
            error dictionary.
        """
        results = await batch_geocode(
            city_names,
            self.geocoder,
            use_rate_limiting=use_rate_limiting,
            country_code=self.country_code,
        )
        return {name: outcome.to_payload() for name, outcome in results.items()}


__all__ = [
    "GeocodingClient",
    "RateLimitedGeocoder",
    "UKGeocodingTools",
    "batch_geocode",
]
