"""
Tests for the OpenAI-backed price lookup and image synthesis

The SDK client is replaced by a Mock; its sync methods run in a worker
thread exactly like the real client.
"""
import time
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from frugsy_api.core.image_synth import OpenAIImageSynthesizer
from frugsy_api.core.price_lookup import OpenAIPriceLookup, build_price_prompt, extract_text_and_citations
from frugsy_api.models.domain import CandidateLocation

ACME = CandidateLocation(name="Acme Market", address="1 Main St")


def responses_payload(text, urls=()):
    return {
        "output": [
            {"type": "web_search_call", "status": "completed"},
            {
                "type": "message",
                "content": [{
                    "type": "output_text",
                    "text": text,
                    "annotations": [{"type": "url_citation", "url": u, "title": f"title {u}"} for u in urls],
                }],
            },
        ]
    }


def price_client(response=None, side_effect=None):
    create = Mock(return_value=response, side_effect=side_effect)
    return SimpleNamespace(responses=SimpleNamespace(create=create)), create


class TestPricePrompt:
    def test_mentions_store_and_contract(self):
        prompt = build_price_prompt("Milk", ACME, 5)
        assert '"Acme Market"' in prompt
        assert "(around 1 Main St)" in prompt
        assert "5-mile radius" in prompt
        assert "null" in prompt

    def test_extract_falls_back_to_output_text(self):
        text, citations = extract_text_and_citations(SimpleNamespace(output=[], output_text="null"))
        assert text == "null"
        assert citations == []


class TestPriceLookup:
    @pytest.mark.asyncio
    async def test_parsed_answer(self):
        text = '```json\n{"fullItemName": "Acme Whole Milk", "storeName": "Acme Market", "price": 3.99, "currency": "USD", "productUrl": ""}\n```'
        client, create = price_client(responses_payload(text, urls=["https://acme.example/milk"]))
        lookup = OpenAIPriceLookup(api_key="", model="m", temperature=0.1, client=client)

        result = await lookup.fetch_price("Milk", ACME, 5)

        assert result.record.item_name == "Acme Whole Milk"
        assert result.record.price == 3.99
        assert result.record.location_address == "1 Main St"
        assert result.record.product_url is None
        assert [c.uri for c in result.citations] == ["https://acme.example/milk"]
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "m"
        assert kwargs["tools"] == [{"type": "web_search"}]
        assert kwargs["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_sentinel_keeps_citations(self):
        client, _ = price_client(responses_payload("null", urls=["https://acme.example"]))
        result = await OpenAIPriceLookup(api_key="", client=client).fetch_price("Milk", ACME, 5)
        assert result.record is None
        assert [c.uri for c in result.citations] == ["https://acme.example"]

    @pytest.mark.asyncio
    async def test_malformed_is_absent(self):
        client, _ = price_client(responses_payload("Sorry, I could not find that."))
        result = await OpenAIPriceLookup(api_key="", client=client).fetch_price("Milk", ACME, 5)
        assert result.record is None

    @pytest.mark.asyncio
    async def test_sdk_error_is_absent(self):
        client, _ = price_client(side_effect=RuntimeError("rate limited"))
        result = await OpenAIPriceLookup(api_key="", client=client).fetch_price("Milk", ACME, 5)
        assert result.record is None
        assert result.citations == []

    @pytest.mark.asyncio
    async def test_timeout_is_absent(self):
        def slow(**kwargs):
            time.sleep(0.2)
            return responses_payload("null")

        client = SimpleNamespace(responses=SimpleNamespace(create=slow))
        result = await OpenAIPriceLookup(api_key="", timeout=0.01, client=client).fetch_price("Milk", ACME, 5)
        assert result.record is None

    @pytest.mark.asyncio
    async def test_missing_key_is_absent(self):
        result = await OpenAIPriceLookup(api_key="").fetch_price("Milk", ACME, 5)
        assert result.record is None
        assert result.citations == []


class TestImageSynth:
    @pytest.mark.asyncio
    async def test_returns_data_uri(self):
        generate = Mock(return_value=SimpleNamespace(data=[SimpleNamespace(b64_json="AAAA")]))
        client = SimpleNamespace(images=SimpleNamespace(generate=generate))
        synth = OpenAIImageSynthesizer(api_key="", model="img", client=client)

        image = await synth.synthesize_image("Acme Whole Milk")

        assert image == "data:image/png;base64,AAAA"
        kwargs = generate.call_args.kwargs
        assert kwargs["model"] == "img"
        assert kwargs["n"] == 1
        assert "Acme Whole Milk" in kwargs["prompt"]

    @pytest.mark.asyncio
    async def test_failure_is_none(self):
        client = SimpleNamespace(images=SimpleNamespace(generate=Mock(side_effect=RuntimeError("boom"))))
        assert await OpenAIImageSynthesizer(api_key="", client=client).synthesize_image("Milk") is None

    @pytest.mark.asyncio
    async def test_empty_payload_is_none(self):
        client = SimpleNamespace(images=SimpleNamespace(generate=Mock(return_value=SimpleNamespace(data=[]))))
        assert await OpenAIImageSynthesizer(api_key="", client=client).synthesize_image("Milk") is None

    @pytest.mark.asyncio
    async def test_disabled_or_unconfigured(self):
        generate = Mock()
        client = SimpleNamespace(images=SimpleNamespace(generate=generate))
        assert await OpenAIImageSynthesizer(api_key="", client=client, enabled=False).synthesize_image("Milk") is None
        assert await OpenAIImageSynthesizer(api_key="").synthesize_image("Milk") is None
        generate.assert_not_called()
