"""Tests for settings loading and production wiring"""
import pytest

from frugsy_api.core.config import Settings
from frugsy_api.core.geocoder import GoogleGeocoder
from frugsy_api.core.image_synth import OpenAIImageSynthesizer
from frugsy_api.core.orchestrator import build_orchestrator
from frugsy_api.core.places_client import GooglePlacesClient
from frugsy_api.core.price_lookup import OpenAIPriceLookup


def test_defaults(monkeypatch):
    for name in ("GOOGLE_MAPS_API_KEY", "OPENAI_API_KEY", "DEFAULT_RADIUS_MILES", "PRICE_MODEL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)
    assert settings.default_radius_miles == 5.0
    assert settings.price_model == "gpt-4.1"
    assert settings.place_types == "grocery_or_supermarket|supermarket"
    assert settings.enable_image_generation is True


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "maps-key")
    monkeypatch.setenv("default_radius_miles", "2.5")
    monkeypatch.setenv("ENABLE_IMAGE_GENERATION", "false")
    settings = Settings(_env_file=None)
    assert settings.google_maps_api_key == "maps-key"
    assert settings.default_radius_miles == 2.5
    assert settings.enable_image_generation is False


@pytest.mark.asyncio
async def test_build_orchestrator_wires_settings():
    settings = Settings(
        _env_file=None,
        google_maps_api_key="maps-key",
        openai_api_key="oa-key",
        maps_base_url="https://maps.test/api/",
        price_model="pm",
        image_model="im",
        enable_image_generation=False,
    )
    orchestrator = build_orchestrator(settings)

    assert isinstance(orchestrator.resolver.geocoder, GoogleGeocoder)
    assert orchestrator.resolver.geocoder.base_url == "https://maps.test/api"
    assert isinstance(orchestrator.places, GooglePlacesClient)
    assert orchestrator.places.api_key == "maps-key"
    assert isinstance(orchestrator.price_lookup, OpenAIPriceLookup)
    assert orchestrator.price_lookup.model == "pm"
    assert isinstance(orchestrator.image_synth, OpenAIImageSynthesizer)
    assert orchestrator.image_synth.enabled is False
    await orchestrator.aclose()
