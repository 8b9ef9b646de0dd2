"""
Tests for batch geocoding and the tool-facing geocoding operations.
"""

import asyncio

import pytest

from uk_weather_tools.geocoding_tool import (
    Coordinates,
    ErrorKind,
    GeocodingClient,
    LocationResult,
    LookupFailed,
    LookupOk,
    RateLimitedGeocoder,
    UKGeocodingTools,
    batch_geocode,
)


def ok(name):
    return LookupOk((
        LocationResult(name=name, coordinates=Coordinates(51.0, -1.0), display_name=name),
    ))


class StubClient:
    """Succeeds for every name except those in ``failures`` / ``raises``."""

    def __init__(self, failures=(), raises=()):
        self.failures = set(failures)
        self.raises = set(raises)
        self.calls = []

    async def geocode(self, place_name, country_code="gb"):
        self.calls.append(place_name)
        if place_name in self.raises:
            raise RuntimeError(f"boom: {place_name}")
        if place_name in self.failures:
            return LookupFailed(ErrorKind.NO_RESULTS, f"No results for {place_name}")
        return ok(place_name)


class RecordingCountryClient:
    """Records the region qualifier of every lookup."""

    def __init__(self):
        self.country_codes = []

    async def geocode(self, place_name, country_code="gb"):
        self.country_codes.append(country_code)
        return ok(place_name)


def make_geocoder(client, clock):
    return RateLimitedGeocoder(client, min_interval=1.0, clock=clock, sleep=clock.sleep)


# ============================================================================
# batch_geocode
# ============================================================================

class TestBatchGeocode:

    def test_failed_lookup_does_not_affect_siblings(self, fake_clock):
        client = StubClient(failures={"Badcity"})
        results = asyncio.run(batch_geocode(["Validcity", "Badcity"], make_geocoder(client, fake_clock)))

        assert set(results) == {"Validcity", "Badcity"}
        assert isinstance(results["Validcity"], LookupOk)
        assert isinstance(results["Badcity"], LookupFailed)

    def test_exception_is_captured_per_entry(self, fake_clock):
        client = StubClient(raises={"Badcity"})
        results = asyncio.run(
            batch_geocode(["Validcity", "Badcity", "Othercity"], make_geocoder(client, fake_clock))
        )

        assert results["Badcity"] == LookupFailed(
            ErrorKind.BATCH_ENTRY_FAILED, "Failed to geocode Badcity", "boom: Badcity"
        )
        assert results["Othercity"].ok
        assert client.calls == ["Validcity", "Badcity", "Othercity"]

    def test_rate_limited_batch_spaces_requests(self, fake_clock):
        client = StubClient()
        asyncio.run(batch_geocode(["London", "Leeds", "York"], make_geocoder(client, fake_clock)))

        assert fake_clock.sleeps == [pytest.approx(1.0), pytest.approx(1.0)]

    def test_without_rate_limiting_calls_client_directly(self, fake_clock):
        client = StubClient()
        geocoder = make_geocoder(client, fake_clock)
        results = asyncio.run(
            batch_geocode(["London", "Leeds", "York"], geocoder, use_rate_limiting=False)
        )

        assert fake_clock.sleeps == []
        assert geocoder.last_dispatch is None
        assert len(results) == 3

    def test_duplicate_names_keep_last_outcome(self, fake_clock):
        client = StubClient()
        results = asyncio.run(batch_geocode(["Bath", "Bath"], make_geocoder(client, fake_clock)))

        assert list(results) == ["Bath"]
        assert client.calls == ["Bath", "Bath"]

    def test_empty_input_gives_empty_map(self, fake_clock):
        assert asyncio.run(batch_geocode([], make_geocoder(StubClient(), fake_clock))) == {}


# ============================================================================
# UKGeocodingTools
# ============================================================================

class TestUKGeocodingTools:

    def test_geocode_uk_city_returns_candidate_list(self, fake_session, fake_response, place, fake_clock):
        session = fake_session(fake_response([place("Glasgow", country="United Kingdom")]))
        tools = UKGeocodingTools(make_geocoder(GeocodingClient(session), fake_clock))

        payload = asyncio.run(tools.geocode_uk_city("Glasgow"))

        assert isinstance(payload, list)
        assert payload[0]["name"] == "Glasgow"
        assert payload[0]["coordinates"] == {"latitude": 53.4794892, "longitude": -2.2451148}

    def test_geocode_uk_city_returns_error_object(self, fake_session, fake_response, fake_clock):
        session = fake_session(fake_response(status=503, reason="Service Unavailable"))
        tools = UKGeocodingTools(make_geocoder(GeocodingClient(session), fake_clock))

        payload = asyncio.run(tools.geocode_uk_city("Glasgow"))

        assert payload == {
            "error": "Geocoding service unavailable",
            "details": "503: Service Unavailable",
        }

    def test_batch_returns_payload_per_name(self, fake_clock):
        client = StubClient(failures={"Badcity"})
        tools = UKGeocodingTools(make_geocoder(client, fake_clock))

        payload = asyncio.run(tools.batch_geocode_uk_cities(["Validcity", "Badcity"]))

        assert payload["Validcity"][0]["name"] == "Validcity"
        assert payload["Badcity"] == {"error": "No results for Badcity"}

    def test_configured_country_code_reaches_both_tools(self, fake_clock):
        client = RecordingCountryClient()
        tools = UKGeocodingTools(make_geocoder(client, fake_clock), country_code="ie")

        async def scenario():
            await tools.geocode_uk_city("Dublin")
            await tools.batch_geocode_uk_cities(["Dublin"])

        asyncio.run(scenario())

        assert client.country_codes == ["ie", "ie"]

    def test_explicit_country_code_overrides_configured_one(self, fake_clock):
        client = RecordingCountryClient()
        tools = UKGeocodingTools(make_geocoder(client, fake_clock), country_code="ie")

        asyncio.run(tools.geocode_uk_city("Belfast", "gb"))

        assert client.country_codes == ["gb"]

    def test_single_and_batch_share_one_limiter(self, fake_clock):
        tools = UKGeocodingTools(make_geocoder(StubClient(), fake_clock))

        async def scenario():
            await tools.geocode_uk_city("London")
            await tools.batch_geocode_uk_cities(["Leeds"])

        asyncio.run(scenario())

        assert fake_clock.sleeps == [pytest.approx(1.0)]
