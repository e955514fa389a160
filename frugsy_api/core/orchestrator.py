"""Search orchestration: resolve → discover → price → enrich → aggregate"""

from typing import List, Optional, Tuple
import logging
import uuid
from frugsy_api.core.aggregator import aggregate, dedupe_citations
from frugsy_api.core.fanout import settle_all, wait_all
from frugsy_api.core.geocoder import GoogleGeocoder
from frugsy_api.core.image_synth import OpenAIImageSynthesizer
from frugsy_api.core.location_resolver import LocationResolver, has_location_source, validate_postal_code
from frugsy_api.core.places_client import GooglePlacesClient
from frugsy_api.core.price_lookup import OpenAIPriceLookup
from frugsy_api.core.state_machine import (
    EMPTY_NO_PRICED_ITEMS,
    EMPTY_NO_STORES,
    CAN_FAIL_FROM,
    SearchPhase,
    SearchState,
)
from frugsy_api.models.domain import (
    CandidateLocation,
    Citation,
    Coordinates,
    EnrichedRecord,
    LocationHint,
    PriceRecord,
    SearchResult,
)
from frugsy_api.models.errors import ApplicationError, ErrorCode, ValidationError

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred during the search process."


class StaleSearch(Exception):
    """A newer search started on the same state while this one was suspended"""


def describe_location(coords: Coordinates, postal_code: Optional[str]) -> str:
    descriptor = f"near (Lat: {coords.lat:.2f}, Lng: {coords.lng:.2f})"
    if postal_code:
        descriptor += f" (orig. ZIP: {postal_code})"
    return descriptor


def describe_search(item_query: str, coords: Coordinates, postal_code: Optional[str], radius_miles: float) -> str:
    return f'"{item_query}" {describe_location(coords, postal_code)} (radius: {radius_miles:g} miles)'


class SearchOrchestrator:
    """
    Runs one price search at a time against a shared SearchState.

    Collaborators are injected so tests can swap in fakes. A new search on the
    same state bumps its generation; any earlier run still in flight notices
    after its next await and drops its results instead of overwriting the
    newer ones.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        places,
        price_lookup,
        image_synth,
        state: Optional[SearchState] = None,
    ):
        self.resolver = resolver
        self.places = places
        self.price_lookup = price_lookup
        self.image_synth = image_synth
        self.state = state or SearchState(session_id=str(uuid.uuid4()))

    def for_state(self, state: SearchState) -> "SearchOrchestrator":
        """Same collaborators, bound to another session's state"""
        return SearchOrchestrator(
            resolver=self.resolver,
            places=self.places,
            price_lookup=self.price_lookup,
            image_synth=self.image_synth,
            state=state,
        )

    def _check(self, generation: int):
        if not self.state.is_current(generation):
            raise StaleSearch()

    async def search(
        self,
        item_query: str,
        postal_code: str = "",
        radius_miles: float = 5.0,
        explicit_point: Optional[Coordinates] = None,
        device_point: Optional[Coordinates] = None,
    ) -> SearchResult:
        state = self.state
        generation = state.next_generation()
        state.set_label("Initializing search...")
        citations: List[Citation] = []
        query = (item_query or "").strip()
        logger.info(f"[SEARCH] {state.session_id} gen={generation} query={query!r} zip={postal_code!r} radius={radius_miles}")

        try:
            hint = self._validate(query, postal_code, radius_miles, explicit_point, device_point)

            # Stage 1: coordinates
            state.enter(SearchPhase.RESOLVING_LOCATION, "Resolving search location...")
            coords = await self.resolver.resolve(hint, on_step=self._label_step(generation))
            self._check(generation)
            state.search_descriptor = describe_search(query, coords, hint.postal_code, radius_miles)

            # Stage 2: candidate stores
            state.enter(SearchPhase.DISCOVERING_PLACES, "Finding nearby stores via Google Maps...")
            candidates = await self.places.find_nearby(coords, radius_miles)
            self._check(generation)
            state.metadata["candidates"] = len(candidates)
            if not candidates:
                logger.info(f"[SEARCH] {state.session_id} no stores found")
                state.finish_empty(
                    EMPTY_NO_STORES,
                    f"No grocery stores found via Google Maps {describe_location(coords, hint.postal_code)}. "
                    "Try adjusting the radius or location.",
                )
                return state.snapshot()

            # Stage 3: per-store prices (settle-all)
            state.enter(
                SearchPhase.FETCHING_PRICES,
                f"Found {len(candidates)} store(s) via Google Maps. Fetching item prices...",
            )
            records, degraded = await self._fetch_prices(query, candidates, radius_miles, citations)
            self._check(generation)
            state.metadata["priced"] = len(records)
            state.metadata["degraded"] = degraded
            if not records:
                logger.info(f"[SEARCH] {state.session_id} no priced items across {len(candidates)} store(s)")
                state.finish_empty(
                    EMPTY_NO_PRICED_ITEMS,
                    f"Found {len(candidates)} store(s) via Maps, but couldn't find \"{query}\" "
                    "with pricing at any of them. Check sources for general store info.",
                    citations=dedupe_citations(citations),
                )
                return state.snapshot()

            # Stage 4: images (plain wait-all; branches never raise)
            state.enter(SearchPhase.ENRICHING_IMAGES, f"Found {len(records)} item(s). Generating images...")
            enriched = await self._enrich(records)
            self._check(generation)

            # Stage 5: grouping
            state.enter(SearchPhase.AGGREGATING, "Organizing results...")
            groups = aggregate(enriched)
            state.complete(groups, dedupe_citations(citations))
            logger.info(
                f"[SEARCH] {state.session_id} done: {len(groups)} store group(s), "
                f"{len(enriched)} item(s), {len(state.citations)} source(s)"
            )
            return state.snapshot()

        except StaleSearch:
            logger.info(f"[SEARCH] {state.session_id} gen={generation} superseded; discarding results")
            return state.snapshot()
        except ApplicationError as e:
            if not state.is_current(generation):
                return state.snapshot()
            logger.warning(f"[SEARCH] {state.session_id} failed in {state.phase.value}: {e.code.value}: {e.message}")
            e.session_id = state.session_id
            state.fail(e, citations=dedupe_citations(citations))
            return state.snapshot()
        except Exception as e:
            if not state.is_current(generation):
                return state.snapshot()
            logger.exception(f"[SEARCH] {state.session_id} unexpected error in {state.phase.value}")
            if state.phase not in CAN_FAIL_FROM:
                raise
            error = ApplicationError(
                code=ErrorCode.SEARCH_FAILED,
                message=UNKNOWN_ERROR_MESSAGE,
                retryable=True,
                session_id=state.session_id,
            )
            error.__cause__ = e
            state.fail(error, citations=dedupe_citations(citations))
            return state.snapshot()

    def _validate(
        self,
        query: str,
        postal_code: str,
        radius_miles: float,
        explicit_point: Optional[Coordinates],
        device_point: Optional[Coordinates],
    ) -> LocationHint:
        """Input checks that must pass before any network call"""
        if not query:
            raise ValidationError("Please enter an item name.")
        code = validate_postal_code(postal_code)
        if radius_miles is None or radius_miles <= 0:
            raise ValidationError("Search radius must be greater than zero.")
        hint = LocationHint(explicit_point=explicit_point, device_point=device_point, postal_code=code)
        if not has_location_source(hint):
            raise ValidationError(
                "Please provide a ZIP code, use your current location, or select a point on the map.",
                code=ErrorCode.NO_LOCATION_PROVIDED,
            )
        return hint

    def _label_step(self, generation: int):
        def step(label: str):
            if self.state.is_current(generation):
                self.state.set_label(label)
        return step

    async def _fetch_prices(
        self,
        query: str,
        candidates: List[CandidateLocation],
        radius_miles: float,
        citations: List[Citation],
    ) -> Tuple[List[PriceRecord], int]:
        outcomes = await settle_all([
            (lambda c=candidate: self.price_lookup.fetch_price(query, c, radius_miles))
            for candidate in candidates
        ])

        records: List[PriceRecord] = []
        degraded = 0
        for outcome in outcomes:
            candidate = candidates[outcome.index]
            if not outcome.ok:
                degraded += 1
                logger.warning(f"[PRICE] Lookup for {candidate.name} raised: {outcome.error!r}")
                continue
            result = outcome.value
            citations.extend(result.citations)
            if result.record is None:
                degraded += 1
                continue
            record = result.record
            # Every record keeps a usable location identity
            if not record.location_name or not record.location_address:
                record = record.model_copy(update={
                    "location_name": record.location_name or candidate.name,
                    "location_address": record.location_address or candidate.address,
                })
            records.append(record)

        logger.info(f"[PRICE] {len(records)}/{len(candidates)} store(s) returned a price")
        return records, degraded

    async def _enrich(self, records: List[PriceRecord]) -> List[EnrichedRecord]:
        images = await wait_all([
            (lambda r=record: self.image_synth.synthesize_image(r.item_name))
            for record in records
        ])
        return [
            EnrichedRecord(**record.model_dump(), generated_image=image)
            for record, image in zip(records, images)
        ]

    async def aclose(self):
        """Close HTTP clients owned by the collaborators"""
        for collaborator in (self.resolver.geocoder, self.places):
            close = getattr(collaborator, "close", None)
            if close is not None:
                await close()


def build_orchestrator(settings, state: Optional[SearchState] = None) -> SearchOrchestrator:
    """Wire the production collaborators from settings"""
    geocoder = GoogleGeocoder(
        api_key=settings.google_maps_api_key,
        base_url=settings.maps_base_url,
        timeout=settings.http_timeout_seconds,
    )
    places = GooglePlacesClient(
        api_key=settings.google_maps_api_key,
        base_url=settings.maps_base_url,
        timeout=settings.http_timeout_seconds,
        place_types=settings.place_types,
    )
    price_lookup = OpenAIPriceLookup(
        api_key=settings.openai_api_key,
        model=settings.price_model,
        temperature=settings.price_temperature,
        timeout=settings.price_lookup_timeout_seconds,
        base_url=settings.openai_base_url,
    )
    image_synth = OpenAIImageSynthesizer(
        api_key=settings.openai_api_key,
        model=settings.image_model,
        timeout=settings.image_timeout_seconds,
        base_url=settings.openai_base_url,
        enabled=settings.enable_image_generation,
    )
    return SearchOrchestrator(
        resolver=LocationResolver(geocoder),
        places=places,
        price_lookup=price_lookup,
        image_synth=image_synth,
        state=state,
    )
