"""Product image synthesis via the OpenAI Images API"""

from typing import Any, Optional
import asyncio
import logging
from openai import OpenAI

logger = logging.getLogger(__name__)


def build_image_prompt(item_name: str) -> str:
    return (
        f'A clear, professional, well-lit studio product photo of "{item_name}" '
        "on a plain white or light neutral background. The item should be the main focus. "
        "Cropped to the product."
    )


class OpenAIImageSynthesizer:
    """Optional enrichment; any failure degrades to no image"""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-image-1",
        timeout: float = 120.0,
        base_url: Optional[str] = None,
        client: Optional[OpenAI] = None,
        enabled: bool = True,
    ):
        if enabled and not api_key and client is None:
            logger.warning("[IMAGE] OPENAI_API_KEY not set; product images will be skipped")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = base_url
        self.enabled = enabled
        self._client = client

    def _get_client(self) -> Optional[OpenAI]:
        if self._client is None and self.api_key:
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def synthesize_image(self, item_name: str) -> Optional[str]:
        """Return a ``data:`` URI for a generated product photo, or None"""
        if not self.enabled:
            return None
        client = self._get_client()
        if client is None:
            return None

        try:
            response: Any = await asyncio.wait_for(
                asyncio.to_thread(
                    client.images.generate,
                    model=self.model,
                    prompt=build_image_prompt(item_name),
                    n=1,
                ),
                timeout=self.timeout
            )
        except Exception as e:
            logger.warning(f"[IMAGE] Generation failed for '{item_name}': {type(e).__name__}: {e}")
            return None

        data = getattr(response, "data", None) or []
        b64 = getattr(data[0], "b64_json", None) if data else None
        if not b64:
            logger.warning(f"[IMAGE] No image bytes returned for '{item_name}'")
            return None
        return f"data:image/png;base64,{b64}"
