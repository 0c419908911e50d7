"""Tests for the text-extraction client (HTTP mocked with httpx.MockTransport)."""

from __future__ import annotations

import httpx
import pytest

from aerogen.extraction import (
    RECORD_KEYS,
    ExtractionClient,
    ExtractionError,
    empty_record,
    get_api_key,
    parse_reply,
)


# ---------------------------------------------------------------------------
# Reply parsing
# ---------------------------------------------------------------------------


class TestParseReply:
    def test_fenced_json(self, wrap_reply) -> None:
        record = {"type": "wing", "span": 12, "sweep": "25 deg"}
        assert parse_reply(wrap_reply(record)) == record

    def test_first_to_last_brace(self) -> None:
        assert parse_reply('noise {"a": {"b": 1}} trailing') == {"a": {"b": 1}}

    @pytest.mark.parametrize("reply", ["no json here", "{not json}", "[1, 2]"])
    def test_unparsable_reply(self, reply: str) -> None:
        record = parse_reply(reply)
        assert record["_raw"] == reply
        assert all(record[key] is None for key in RECORD_KEYS)

    def test_empty_record_keys(self) -> None:
        assert set(empty_record("x")) == set(RECORD_KEYS) | {"_raw"}


def test_get_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AEROGEN_API_KEY", raising=False)
    assert get_api_key() is None
    monkeypatch.setenv("AEROGEN_API_KEY", "")
    assert get_api_key() is None
    monkeypatch.setenv("AEROGEN_API_KEY", "k-123")
    assert get_api_key() == "k-123"


class TestConfiguration:
    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AEROGEN_EXTRACTION_URL", "https://proxy.local/v1/")
        monkeypatch.setenv("AEROGEN_EXTRACTION_TIMEOUT", "7.5")
        client = ExtractionClient()
        assert client.base_url == "https://proxy.local/v1"
        assert client.timeout == 7.5

    def test_bad_timeout_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AEROGEN_EXTRACTION_TIMEOUT", "soon")
        assert ExtractionClient().timeout == 30.0


# ---------------------------------------------------------------------------
# Extraction round trips
# ---------------------------------------------------------------------------


@pytest.mark.anyio
class TestExtract:
    async def test_success(self, gemini_handler, make_extraction_client, wrap_reply) -> None:
        handler = gemini_handler(wrap_reply({"type": "fuselage", "length": 20, "diameter": 3}))
        client = make_extraction_client(handler)

        record = await client.extract("a 20 m fuselage", "secret")

        assert record == {"type": "fuselage", "length": 20, "diameter": 3}
        assert client.model == "gemini-test"
        post = handler.calls[-1]
        assert post.method == "POST"
        assert post.url.params["key"] == "secret"
        assert str(post.url).startswith(f"{client.base_url}/models/gemini-test:generateContent")
        assert b"a 20 m fuselage" in post.content

    async def test_model_cached(self, gemini_handler, make_extraction_client, wrap_reply) -> None:
        handler = gemini_handler(wrap_reply({"type": "wing"}))
        client = make_extraction_client(handler)

        await client.extract("wing", "k")
        await client.extract("wing again", "k")

        listings = [r for r in handler.calls if r.method == "GET"]
        assert len(listings) == 1
        assert len(handler.calls) == 3

    async def test_unparsable_reply(self, gemini_handler, make_extraction_client) -> None:
        client = make_extraction_client(gemini_handler("I cannot help with that."))
        record = await client.extract("???", "k")
        assert record["_raw"] == "I cannot help with that."
        assert record["type"] is None

    async def test_service_error_resets_model(self, make_extraction_client) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json={"models": [
                    {"name": "models/gemini-x", "supportedGenerationMethods": ["generateContent"]},
                ]})
            return httpx.Response(403, json={"error": {"message": "API key not valid."}})

        client = make_extraction_client(handler)
        with pytest.raises(ExtractionError, match="API key not valid."):
            await client.extract("wing", "bad")
        assert client.model is None

    async def test_unexpected_shape(self, make_extraction_client) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json={"models": [
                    {"name": "models/gemini-x", "supportedGenerationMethods": ["generateContent"]},
                ]})
            return httpx.Response(200, json={"candidates": []})

        client = make_extraction_client(handler)
        with pytest.raises(ExtractionError, match="Unexpected response"):
            await client.extract("wing", "k")
        assert client.model is None

    async def test_listing_failure_probes_fallbacks(self, make_extraction_client) -> None:
        probed: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(500)
            model = request.url.path.rsplit("/", 1)[-1].split(":")[0]
            probed.append(model)
            if model != "gemini-1.5-pro":
                return httpx.Response(404, json={"error": {"message": "not found"}})
            return httpx.Response(200, json={
                "candidates": [{"content": {"parts": [{"text": '{"type": "stabilizer"}'}]}}],
            })

        client = make_extraction_client(handler)
        record = await client.extract("tail", "k")

        assert record == {"type": "stabilizer"}
        assert client.model == "gemini-1.5-pro"
        assert probed == ["gemini-1.5-flash", "gemini-1.5-pro", "gemini-1.5-pro"]

    async def test_no_working_model(self, make_extraction_client) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        client = make_extraction_client(handler)
        with pytest.raises(ExtractionError, match="No working extraction model found."):
            await client.extract("wing", "k")
        assert client.model is None

    async def test_transport_error(self, make_extraction_client) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_extraction_client(handler)
        with pytest.raises(ExtractionError):
            await client.extract("wing", "k")

