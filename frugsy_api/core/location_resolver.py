"""Resolve a search's location hint to a single coordinate pair"""

from typing import Callable, Optional
import re
import logging
from frugsy_api.core.geocoder import GeocodingError
from frugsy_api.models.domain import Coordinates, LocationHint
from frugsy_api.models.errors import ApplicationError, ErrorCode, ResolutionError, ValidationError

logger = logging.getLogger(__name__)

POSTAL_CODE_PATTERN = re.compile(r"^\d{5}$")


def validate_postal_code(postal_code: Optional[str]) -> Optional[str]:
    """Return the stripped postal code, None if blank; raise if malformed"""
    code = (postal_code or "").strip()
    if not code:
        return None
    if not POSTAL_CODE_PATTERN.match(code):
        raise ValidationError(
            "If providing a ZIP code, please enter a valid 5-digit US ZIP code.",
            code=ErrorCode.INVALID_POSTAL_CODE,
        )
    return code


def has_location_source(hint: LocationHint) -> bool:
    return bool(hint.explicit_point or hint.device_point or (hint.postal_code or "").strip())


class LocationResolver:
    """
    Picks exactly one location source, first satisfied wins:
    map selection, then device location, then postal code (geocoded).
    """

    def __init__(self, geocoder):
        self.geocoder = geocoder

    async def resolve(self, hint: LocationHint, on_step: Optional[Callable[[str], None]] = None) -> Coordinates:
        step = on_step or (lambda _label: None)

        if hint.explicit_point:
            step("Using coordinates from map selection...")
            return hint.explicit_point
        if hint.device_point:
            step("Using your current location...")
            return hint.device_point

        code = validate_postal_code(hint.postal_code)
        if not code:
            raise ValidationError(
                "Please provide a ZIP code, use your current location, or select a point on the map.",
                code=ErrorCode.NO_LOCATION_PROVIDED,
            )

        step(f"Geocoding ZIP code {code}...")
        try:
            return await self.geocoder.geocode(code)
        except ApplicationError:
            raise
        except GeocodingError as e:
            raise ResolutionError(f"Failed to get coordinates for ZIP {code}. {e}", cause=e) from e
        except Exception as e:
            logger.exception(f"[GEOCODE] Unexpected geocoding failure for {code}")
            raise ResolutionError(f"Failed to get coordinates for ZIP {code}. {e}", cause=e) from e
