"""Shared fixtures for the search pipeline tests"""
import pytest

from frugsy_api.core.location_resolver import LocationResolver
from frugsy_api.core.orchestrator import SearchOrchestrator
from frugsy_api.core.state_machine import SearchState

from tests.fakes import FakeGeocoder, FakeImageSynth, FakePlaces, FakePriceLookup


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def make_orchestrator(geocoder):
    def build(places=None, price_lookup=None, image_synth=None, state=None):
        return SearchOrchestrator(
            resolver=LocationResolver(geocoder),
            places=places or FakePlaces(),
            price_lookup=price_lookup or FakePriceLookup(),
            image_synth=image_synth or FakeImageSynth(),
            state=state or SearchState("test-session"),
        )
    return build
