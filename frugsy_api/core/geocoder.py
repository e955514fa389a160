"""Google Geocoding API client - postal code to coordinates"""

import httpx
import logging
from frugsy_api.core.maps_http import GoogleMapsClient
from frugsy_api.models.domain import Coordinates
from frugsy_api.models.errors import ApplicationError, ErrorCode

logger = logging.getLogger(__name__)


class GeocodingError(Exception):
    """Raised when a postal code cannot be geocoded"""

    def __init__(self, message: str, status: str = ""):
        super().__init__(message)
        self.status = status


class GoogleGeocoder(GoogleMapsClient):
    """Resolves a postal code to a single coordinate pair"""

    service_name = "Geocoding"

    async def geocode(self, postal_code: str) -> Coordinates:
        """
        Geocode a postal code.

        Raises GeocodingError on transport errors, non-2xx responses, a
        non-OK status, or an empty result set.
        """
        if not self.api_key:
            raise ApplicationError(
                code=ErrorCode.CONFIGURATION_ERROR,
                message="Google Maps API key not configured. Cannot geocode ZIP code.",
                hint="Set GOOGLE_MAPS_API_KEY in the .env file."
            )

        logger.info(f"[GEOCODE] Geocoding postal code {postal_code}")
        try:
            data = await self._get_json("geocode/json", {"address": postal_code})
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[GEOCODE] Network or parsing error: {e}")
            raise GeocodingError(f"Network error or invalid response while geocoding ZIP code {postal_code}.") from e

        if not isinstance(data, dict):
            logger.error(f"[GEOCODE] Unexpected response body type: {type(data).__name__}")
            raise GeocodingError(f"Invalid response while geocoding ZIP code {postal_code}.")

        status = data.get("status", "")
        results = data.get("results") or []
        if status != "OK" or not results:
            logger.error(f"[GEOCODE] Geocoding API error: status={status} error_message={data.get('error_message')}")
            detail = data.get("error_message") or ""
            raise GeocodingError(
                f"Failed to geocode ZIP code {postal_code}. Status: {status}. {detail}".strip(),
                status=status,
            )

        location = (results[0].get("geometry") or {}).get("location") or {}
        try:
            coords = Coordinates(lat=location["lat"], lng=location["lng"])
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError(f"Geocoding result for {postal_code} has no usable location.", status=status) from e

        logger.info(f"[GEOCODE] {postal_code} -> ({coords.lat:.4f}, {coords.lng:.4f})")
        return coords
