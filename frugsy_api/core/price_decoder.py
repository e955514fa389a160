"""Decoder for the JSON-or-null answer of the price lookup model"""

from enum import Enum
from typing import Any, Dict, Optional
from dataclasses import dataclass
import json
import math
import re
import logging
from frugsy_api.models.domain import CandidateLocation, PriceRecord

logger = logging.getLogger(__name__)

SENTINEL = "null"
_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


class DecodeKind(str, Enum):
    PARSED = "PARSED"
    SENTINEL = "SENTINEL"
    MALFORMED = "MALFORMED"


@dataclass(frozen=True)
class DecodeOutcome:
    kind: DecodeKind
    payload: Optional[Dict[str, Any]] = None
    reason: str = ""

    @property
    def parsed(self) -> bool:
        return self.kind == DecodeKind.PARSED


def strip_code_fence(text: str) -> str:
    """Remove one enclosing ``` or ```json fence, if present"""
    cleaned = text.strip()
    match = _FENCE_RE.match(cleaned)
    if match and match.group(1):
        return match.group(1).strip()
    return cleaned


def decode_price_response(text: Optional[str]) -> DecodeOutcome:
    """
    Classify a model answer.

    PARSED requires a JSON object with a string ``fullItemName`` and a numeric
    ``price``. The literal ``null`` is SENTINEL. Anything else is MALFORMED,
    which callers treat the same as SENTINEL.
    """
    if not isinstance(text, str) or not text.strip():
        return DecodeOutcome(DecodeKind.MALFORMED, reason="empty response")

    body = strip_code_fence(text)
    if body == SENTINEL:
        return DecodeOutcome(DecodeKind.SENTINEL)

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        return DecodeOutcome(DecodeKind.MALFORMED, reason=f"invalid JSON: {e}")

    if not isinstance(data, dict):
        return DecodeOutcome(DecodeKind.MALFORMED, reason=f"expected object, got {type(data).__name__}")
    price = data.get("price")
    if not isinstance(data.get("fullItemName"), str) or isinstance(price, bool) or not isinstance(price, (int, float)) or not math.isfinite(price):
        return DecodeOutcome(DecodeKind.MALFORMED, reason="missing fullItemName or numeric price")
    return DecodeOutcome(DecodeKind.PARSED, payload=data)


def _optional_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or value.lower() == "null":
        return None
    return value


def to_price_record(payload: Dict[str, Any], candidate: CandidateLocation) -> PriceRecord:
    """Build a PriceRecord, backfilling location identity from the candidate"""
    return PriceRecord(
        item_name=payload["fullItemName"],
        location_name=_optional_text(payload.get("storeName")) or candidate.name,
        location_address=_optional_text(payload.get("storeAddress")) or candidate.address,
        price=float(payload["price"]),
        currency=_optional_text(payload.get("currency")) or "USD",
        product_url=_optional_text(payload.get("productUrl")),
        image_url=_optional_text(payload.get("imageUrl")),
        last_updated=_optional_text(payload.get("lastUpdated")),
        notes=_optional_text(payload.get("notes")),
    )
