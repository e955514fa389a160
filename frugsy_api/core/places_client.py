"""Google Places Nearby Search client - candidate store discovery"""

from typing import Optional, List, Dict, Any
import httpx
import logging
from frugsy_api.core.maps_http import GoogleMapsClient, DEFAULT_MAPS_BASE
from frugsy_api.models.domain import CandidateLocation, Coordinates
from frugsy_api.models.errors import ApplicationError, DiscoveryError, ErrorCode

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.34
DEFAULT_PLACE_TYPES = "grocery_or_supermarket|supermarket"
SUCCESS_STATUSES = {"OK", "ZERO_RESULTS"}


def miles_to_meters(miles: float) -> float:
    """Convert a radius in miles to the meters the Places API expects"""
    return miles * METERS_PER_MILE


class GooglePlacesClient(GoogleMapsClient):
    """
    Finds retail locations near a point.

    Only the first result page is read; ``next_page_token`` is ignored, so at
    most 20 candidates come back per search.
    """

    service_name = "Places"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_MAPS_BASE,
        timeout: float = 20.0,
        place_types: str = DEFAULT_PLACE_TYPES,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, client=client)
        self.place_types = place_types

    async def find_nearby(self, coords: Coordinates, radius_miles: float) -> List[CandidateLocation]:
        """
        Return candidate locations within ``radius_miles`` of ``coords``.

        An empty list is a valid outcome (ZERO_RESULTS). Transport errors and
        any other status raise DiscoveryError.
        """
        if not self.api_key:
            raise ApplicationError(
                code=ErrorCode.CONFIGURATION_ERROR,
                message="Google Maps API key not configured. Cannot find nearby stores.",
                hint="Set GOOGLE_MAPS_API_KEY in the .env file."
            )

        params = {
            "location": f"{coords.lat},{coords.lng}",
            "radius": miles_to_meters(radius_miles),
            "type": self.place_types,
        }
        logger.info(f"[PLACES] Nearby search at ({coords.lat:.4f}, {coords.lng:.4f}) radius={radius_miles}mi")
        try:
            data = await self._get_json("place/nearbysearch/json", params)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[PLACES] Network or parsing error: {e}")
            raise DiscoveryError("Network error or invalid response while finding nearby stores.") from e

        if not isinstance(data, dict):
            logger.error(f"[PLACES] Unexpected response body type: {type(data).__name__}")
            raise DiscoveryError("Invalid response while finding nearby stores.")

        status = data.get("status", "")
        if status not in SUCCESS_STATUSES:
            logger.error(f"[PLACES] Places API error: status={status} error_message={data.get('error_message')}")
            detail = data.get("error_message") or ""
            raise DiscoveryError(
                f"Failed to find nearby stores via Google Maps. Status: {status}. {detail}".strip(),
                status=status,
            )

        candidates = [c for c in (_to_candidate(r) for r in data.get("results") or []) if c]
        logger.info(f"[PLACES] status={status} candidates={len(candidates)}")
        return candidates


def _to_candidate(place: Dict[str, Any]) -> Optional[CandidateLocation]:
    name = (place.get("name") or "").strip()
    if not name:
        return None
    # Prefer the full address, then the short vicinity string
    address = place.get("formatted_address") or place.get("vicinity") or None
    location = (place.get("geometry") or {}).get("location") or {}
    coords = None
    if "lat" in location and "lng" in location:
        coords = Coordinates(lat=location["lat"], lng=location["lng"])
    return CandidateLocation(name=name, address=address, location=coords)
