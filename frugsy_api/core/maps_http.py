"""Shared HTTP plumbing for the Google Maps web service clients"""

from typing import Optional, Dict, Any
import httpx
import logging
import asyncio

logger = logging.getLogger(__name__)

DEFAULT_MAPS_BASE = "https://maps.googleapis.com/maps/api"
RETRY_STATUSES = (429, 500, 503)


class GoogleMapsClient:
    """
    Base class for Maps web service calls.

    Holds its own credential and base endpoint so instances can be built per
    environment (or per test) without touching process-wide state. An
    ``httpx.AsyncClient`` can be injected; otherwise one is created lazily.
    """

    service_name = "Google Maps"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_MAPS_BASE,
        timeout: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            logger.warning(f"{self.service_name}: GOOGLE_MAPS_API_KEY not set; calls will fail")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self):
        """Close HTTP client if we created it"""
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def _get_json(
        self,
        path: str,
        params: Dict[str, Any],
        retries: int = 3,
    ) -> Dict[str, Any]:
        """HTTP GET with retry on 429/5xx; returns the decoded JSON body"""
        client = await self._get_client()
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = {**params, "key": self.api_key}
        for i in range(retries):
            try:
                response = await client.get(url, params=query)
                if response.status_code in RETRY_STATUSES and i < retries - 1:
                    await asyncio.sleep(0.7 * (i + 1))
                    continue
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                if i == retries - 1 or e.response.status_code not in RETRY_STATUSES:
                    raise
                await asyncio.sleep(0.7 * (i + 1))
        raise httpx.HTTPError("Max retries exceeded")
