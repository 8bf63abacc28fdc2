"""Unit tests for geocoding payload parsing and lookup failures."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from core import geocoding
from core.geo import Coordinates
from core.geocoding import GeocodingError, ParsedAddress, parse_reverse_payload, parse_zip_payload


class TestParseZipPayload:
    def test_first_place_coordinates(self):
        data = {"places": [{"latitude": "39.8434", "longitude": "-86.3977"}, {"latitude": "0", "longitude": "0"}]}
        assert parse_zip_payload(data) == Coordinates(latitude=39.8434, longitude=-86.3977)

    def test_no_places(self):
        with pytest.raises(GeocodingError):
            parse_zip_payload({"places": []})
        with pytest.raises(GeocodingError):
            parse_zip_payload({})

    def test_bad_coordinates(self):
        with pytest.raises(GeocodingError):
            parse_zip_payload({"places": [{"latitude": "north"}]})


class TestParseReversePayload:
    def test_state_from_iso_code(self):
        data = {"address": {"town": "Brownsburg", "ISO3166-2-lvl4": "US-IN", "postcode": "46112"}}
        assert parse_reverse_payload(data) == ParsedAddress(
            street_address="Brownsburg, Indiana 46112",
            city="Brownsburg",
            state="Indiana",
            postal_code="46112",
        )

    def test_falls_back_to_county_and_state_name(self):
        data = {"address": {"county": "Hendricks County", "state": "Indiana"}}
        parsed = parse_reverse_payload(data)
        assert parsed.city == "Hendricks County"
        assert parsed.street_address == "Hendricks County, Indiana"
        assert parsed.postal_code == ""

    def test_missing_city_or_state(self):
        assert parse_reverse_payload({"address": {"state": "Indiana"}}) is None
        assert parse_reverse_payload({"error": "Unable to geocode"}) is None


class TestLookupFailures:
    @pytest.mark.asyncio
    async def test_zip_lookup_network_error_is_no_result(self):
        with patch("httpx.AsyncClient.get", new=AsyncMock(side_effect=httpx.ConnectError("refused"))):
            assert await geocoding.coordinates_from_zip("46112") is None

    @pytest.mark.asyncio
    async def test_reverse_lookup_error_status_is_raised(self):
        with patch("httpx.AsyncClient.get", new=AsyncMock(return_value=httpx.Response(503))):
            with pytest.raises(GeocodingError) as info:
                await geocoding.reverse_geocode(39.8, -86.4)
        assert info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_reverse_lookup_without_address(self):
        with patch("httpx.AsyncClient.get", new=AsyncMock(return_value=httpx.Response(200, json={"error": "none"}))):
            assert await geocoding.reverse_geocode(0.0, 0.0) is None
