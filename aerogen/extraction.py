"""Text-extraction client -- asks a generative-language service for a raw record.

The service is given the user's description and asked for a flat JSON object
``{type, span, length, diameter, chord, sweep, material}``.  Whatever comes
back is handed to ``aerogen.normalize.normalize()`` unchanged; this module
never validates values.

Model discovery:
  1. ``GET {base}/models?key=...`` -- first model whose
     ``supportedGenerationMethods`` contains "generateContent".
  2. Otherwise each of FALLBACK_MODELS is probed with a tiny request and the
     first that answers 2xx is used.
  3. The chosen model is cached on the client and forgotten after any failed
     extraction, so the next call rediscovers.

Configuration (read at client construction):
  AEROGEN_EXTRACTION_URL      base URL (default: public Generative Language v1)
  AEROGEN_EXTRACTION_TIMEOUT  request timeout in seconds (default 30)
  AEROGEN_API_KEY             default API key
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any

import httpx

logger = logging.getLogger("aerogen.extraction")

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1"
DEFAULT_TIMEOUT = 30.0

FALLBACK_MODELS: tuple[str, ...] = (
    "gemini-1.5-flash",
    "gemini-1.5-pro",
    "gemini-1.5-flash-latest",
    "gemini-pro",
)

RECORD_KEYS: tuple[str, ...] = (
    "type", "span", "length", "diameter", "chord", "sweep", "material",
)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_PROMPT = """Extract aircraft part parameters and return ONLY valid JSON, no prose.
Lengths in meters, sweep in degrees, use null for anything not stated.
Description: "{text}"
{{ "type": "wing|fuselage|stabilizer", "span": ..., "length": ..., "diameter": ..., "chord": ..., "sweep": ..., "material": "..." }}"""


class ExtractionError(RuntimeError):
    """The extraction service could not be reached or refused the request."""


def get_api_key() -> str | None:
    """Return the default API key from ``AEROGEN_API_KEY`` (None if unset/empty)."""
    return os.environ.get("AEROGEN_API_KEY") or None


def _env_timeout() -> float:
    raw = os.environ.get("AEROGEN_EXTRACTION_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning(
            "Invalid AEROGEN_EXTRACTION_TIMEOUT=%r, using %.0fs", raw, DEFAULT_TIMEOUT,
        )
        return DEFAULT_TIMEOUT


def empty_record(raw_text: str) -> dict[str, Any]:
    """All-null record carrying the unparsable reply under ``_raw``."""
    record: dict[str, Any] = {key: None for key in RECORD_KEYS}
    record["_raw"] = raw_text
    return record


def parse_reply(text: str) -> dict[str, Any]:
    """Pull the first ``{...}`` span out of a model reply and decode it.

    Never raises: a reply without a JSON object, or with one that does not
    decode to an object, becomes ``empty_record(text)``.
    """
    match = _JSON_OBJECT.search(text)
    if match is None:
        return empty_record(text)
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return empty_record(text)
    if not isinstance(parsed, dict):
        return empty_record(text)
    return parsed


class ExtractionClient:
    """Async client for the text-extraction service.

    Args:
        base_url: Service base URL; defaults to AEROGEN_EXTRACTION_URL.
        timeout:  Per-request timeout; defaults to AEROGEN_EXTRACTION_TIMEOUT.
        client:   Pre-built ``httpx.AsyncClient`` (tests pass one with a
                  ``MockTransport``).  When omitted a client is created per call.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (
            base_url or os.environ.get("AEROGEN_EXTRACTION_URL") or DEFAULT_BASE_URL
        ).rstrip("/")
        self.timeout = timeout if timeout is not None else _env_timeout()
        self._client = client
        self._model: str | None = None

    @property
    def model(self) -> str | None:
        """The cached working model name, if one has been found."""
        return self._model

    async def extract(self, text: str, api_key: str) -> dict[str, Any]:
        """Turn *text* into a raw parameter record.

        Raises:
            ExtractionError: On transport failure, a non-2xx reply, an
                unexpected response shape, or when no model works.
        """
        if self._client is not None:
            return await self._extract(self._client, text, api_key)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._extract(client, text, api_key)

    # -- internals ---------------------------------------------------------

    async def _extract(
        self, client: httpx.AsyncClient, text: str, api_key: str,
    ) -> dict[str, Any]:
        if self._model is None:
            self._model = await self._find_model(client, api_key)
            logger.info("Using extraction model %s", self._model)

        try:
            resp = await client.post(
                self._generate_url(self._model),
                params={"key": api_key},
                json=_request_body(_PROMPT.format(text=text)),
            )
        except httpx.HTTPError as exc:
            self._model = None
            raise ExtractionError(f"Extraction service unreachable: {exc}") from exc

        if not resp.is_success:
            self._model = None
            raise ExtractionError(_error_message(resp))

        try:
            reply = resp.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            self._model = None
            raise ExtractionError("Unexpected response from extraction service") from exc

        return parse_reply(str(reply))

    async def _find_model(self, client: httpx.AsyncClient, api_key: str) -> str:
        try:
            resp = await client.get(f"{self.base_url}/models", params={"key": api_key})
            if resp.is_success:
                for entry in resp.json().get("models") or []:
                    methods = entry.get("supportedGenerationMethods") or []
                    if "generateContent" in methods:
                        return str(entry["name"]).removeprefix("models/")
            else:
                logger.warning("Could not list models (HTTP %d)", resp.status_code)
        except (httpx.HTTPError, ValueError, KeyError, AttributeError) as exc:
            logger.warning("Could not list models: %s", exc)

        for model in FALLBACK_MODELS:
            try:
                probe = await client.post(
                    self._generate_url(model),
                    params={"key": api_key},
                    json=_request_body("test"),
                )
            except httpx.HTTPError as exc:
                logger.warning("Fallback model %s unreachable: %s", model, exc)
                continue
            if probe.is_success:
                return model
            logger.warning("Fallback model %s rejected (HTTP %d)", model, probe.status_code)

        raise ExtractionError("No working extraction model found.")

    def _generate_url(self, model: str) -> str:
        return f"{self.base_url}/models/{model}:generateContent"


def _request_body(prompt: str) -> dict[str, Any]:
    return {"contents": [{"parts": [{"text": prompt}]}]}


def _error_message(resp: httpx.Response) -> str:
    try:
        message = resp.json().get("error", {}).get("message")
    except (ValueError, AttributeError):
        message = None
    return message or f"Extraction service error (HTTP {resp.status_code})"
