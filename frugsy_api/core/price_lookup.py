"""Per-location price lookup backed by the OpenAI Responses API with web search"""

from typing import Any, List, Optional, Tuple
import asyncio
import logging
from openai import OpenAI
from frugsy_api.core.price_decoder import DecodeKind, decode_price_response, to_price_record
from frugsy_api.models.domain import CandidateLocation, Citation, PriceLookupResult

logger = logging.getLogger(__name__)


def build_price_prompt(item_query: str, candidate: CandidateLocation, radius_miles: float) -> str:
    """Fixed natural-language contract: answer with one JSON object or the word null"""
    store_name = candidate.name
    store_address = candidate.address or ""
    address_context = f" (around {store_address})" if store_address else ""
    return f"""
    You are an AI assistant. The user is looking for the item "{item_query}".
    Focus your search specifically on the store: "{store_name}"{address_context}.
    The user's general search area context is within a {radius_miles}-mile radius of their specified location, but for this query, pinpoint the item AT THIS SPECIFIC STORE.

    Use web search to find real-time pricing and availability for "{item_query}" at "{store_name}".

    Output rules:

    1. If the item AND its price are found at THIS specific store, respond ONLY with a single JSON object:
        {{
          "fullItemName": string,
          "storeName": "{store_name}",
          "storeAddress": "{store_address}",
          "price": number,
          "currency": string,
          "productUrl": string (full URL, else "" or null),
          "imageUrl": string (full URL to an image, else "" or null),
          "lastUpdated": string (date or phrase of last price update, else "" or null),
          "notes": string (optional notes, else "" or null)
        }}

    2. If the item is NOT found at this store, or its price CANNOT be determined, respond ONLY with the exact word null
       (lowercase, no quotes, no markdown, no explanation).

    Your entire response MUST be either the single JSON object or the word null.
    """


def _field(obj: Any, name: str) -> Any:
    """Read a field from an SDK object or a plain dict"""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def extract_text_and_citations(response: Any) -> Tuple[Optional[str], List[Citation]]:
    """Pull the first output text and every url_citation annotation from a Responses API result"""
    text: Optional[str] = None
    citations: List[Citation] = []
    for output_item in _field(response, "output") or []:
        if _field(output_item, "type") != "message":
            continue
        for content in _field(output_item, "content") or []:
            if _field(content, "type") != "output_text":
                continue
            if text is None:
                text = _field(content, "text")
            for annotation in _field(content, "annotations") or []:
                if _field(annotation, "type") != "url_citation":
                    continue
                uri = _field(annotation, "url")
                if uri:
                    citations.append(Citation(uri=uri, title=_field(annotation, "title") or uri))
    if text is None:
        text = _field(response, "output_text")
    return text, citations


class OpenAIPriceLookup:
    """
    Asks a web-search-enabled model for an item's price at one store.

    ``fetch_price`` never raises: every failure becomes an empty result so one
    store cannot abort its siblings.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4.1",
        temperature: float = 0.1,
        timeout: float = 120.0,
        base_url: Optional[str] = None,
        client: Optional[OpenAI] = None,
    ):
        if not api_key and client is None:
            logger.warning("[PRICE] OPENAI_API_KEY not set; price lookups will return nothing")
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.base_url = base_url
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("OpenAI API key is not configured. Cannot fetch item price.")
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def _create_response(self, prompt: str) -> Any:
        client = self._get_client()
        return await asyncio.wait_for(
            asyncio.to_thread(
                client.responses.create,
                model=self.model,
                input=prompt,
                tools=[{"type": "web_search"}],
                temperature=self.temperature,
            ),
            timeout=self.timeout
        )

    async def fetch_price(self, item_query: str, candidate: CandidateLocation, radius_miles: float) -> PriceLookupResult:
        prompt = build_price_prompt(item_query, candidate, radius_miles)
        try:
            response = await self._create_response(prompt)
            if response is None:
                raise ValueError("price lookup returned no response object")
            text, citations = extract_text_and_citations(response)
            outcome = decode_price_response(text)
        except asyncio.TimeoutError:
            logger.warning(f"[PRICE] Timed out after {self.timeout}s for '{item_query}' at {candidate.name}")
            return PriceLookupResult()
        except Exception as e:
            logger.warning(f"[PRICE] Lookup failed for '{item_query}' at {candidate.name}: {type(e).__name__}: {e}")
            return PriceLookupResult()

        if outcome.kind == DecodeKind.PARSED:
            record = to_price_record(outcome.payload, candidate)
            logger.info(f"[PRICE] {candidate.name}: {record.item_name} = {record.price} {record.currency}")
            return PriceLookupResult(record=record, citations=citations)

        if outcome.kind == DecodeKind.MALFORMED:
            preview = (text or "")[:200]
            logger.warning(f"[PRICE] Unusable answer for {candidate.name} ({outcome.reason}): {preview!r}")
        else:
            logger.info(f"[PRICE] '{item_query}' not found at {candidate.name}")
        return PriceLookupResult(citations=citations)
