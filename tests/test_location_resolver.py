"""Tests for location precedence and postal code validation"""
import pytest

from frugsy_api.core.geocoder import GeocodingError
from frugsy_api.core.location_resolver import LocationResolver, validate_postal_code
from frugsy_api.models.domain import Coordinates, LocationHint
from frugsy_api.models.errors import ErrorCode, ResolutionError, ValidationError

from tests.fakes import FakeGeocoder

MAP_POINT = Coordinates(lat=1.0, lng=1.0)
DEVICE_POINT = Coordinates(lat=2.0, lng=2.0)


class TestValidatePostalCode:
    def test_blank_is_none(self):
        assert validate_postal_code("  ") is None
        assert validate_postal_code(None) is None

    def test_strips(self):
        assert validate_postal_code(" 10001 ") == "10001"

    @pytest.mark.parametrize("code", ["abc12", "1234", "123456", "10001-1234"])
    def test_malformed(self, code):
        with pytest.raises(ValidationError) as exc_info:
            validate_postal_code(code)
        assert exc_info.value.code == ErrorCode.INVALID_POSTAL_CODE


class TestResolve:
    @pytest.mark.asyncio
    async def test_map_point_wins(self):
        geocoder = FakeGeocoder()
        labels = []
        coords = await LocationResolver(geocoder).resolve(
            LocationHint(explicit_point=MAP_POINT, device_point=DEVICE_POINT, postal_code="10001"),
            on_step=labels.append,
        )
        assert coords == MAP_POINT
        assert geocoder.calls == []
        assert labels == ["Using coordinates from map selection..."]

    @pytest.mark.asyncio
    async def test_device_point_beats_postal_code(self):
        geocoder = FakeGeocoder()
        coords = await LocationResolver(geocoder).resolve(LocationHint(device_point=DEVICE_POINT, postal_code="10001"))
        assert coords == DEVICE_POINT
        assert geocoder.calls == []

    @pytest.mark.asyncio
    async def test_postal_code_is_geocoded(self):
        geocoder = FakeGeocoder(coords=Coordinates(lat=3.0, lng=3.0))
        labels = []
        coords = await LocationResolver(geocoder).resolve(LocationHint(postal_code="10001"), on_step=labels.append)
        assert coords == Coordinates(lat=3.0, lng=3.0)
        assert geocoder.calls == ["10001"]
        assert labels == ["Geocoding ZIP code 10001..."]

    @pytest.mark.asyncio
    async def test_no_source(self):
        with pytest.raises(ValidationError) as exc_info:
            await LocationResolver(FakeGeocoder()).resolve(LocationHint())
        assert exc_info.value.code == ErrorCode.NO_LOCATION_PROVIDED

    @pytest.mark.asyncio
    async def test_geocoding_failure_is_wrapped(self):
        cause = GeocodingError("Failed to geocode ZIP code 00000. Status: ZERO_RESULTS.", status="ZERO_RESULTS")
        geocoder = FakeGeocoder(error=cause)
        with pytest.raises(ResolutionError) as exc_info:
            await LocationResolver(geocoder).resolve(LocationHint(postal_code="00000"))
        error = exc_info.value
        assert error.code == ErrorCode.GEOCODING_FAILED
        assert error.cause is cause
        assert error.__cause__ is cause
        assert error.message.startswith("Failed to get coordinates for ZIP 00000.")
