"""Shared fixtures for aerogen tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from aerogen.extraction import ExtractionClient
from aerogen.models import FuselageParameters, StabilizerParameters, WingParameters
from aerogen.routes.presets import set_storage as set_preset_storage
from aerogen.routes.snapshots import set_storage as set_snapshot_storage
from aerogen.storage import LocalStorage

TEST_BASE_URL = "https://extraction.test/v1"


# ---------------------------------------------------------------------------
# Parameter Fixtures (used by geometry, metrics & safety tests)
# ---------------------------------------------------------------------------


@pytest.fixture
def wing_params() -> WingParameters:
    """Tapered, unswept 10 m wing: S = 15 m^2, AR = 6.67, taper 0.5."""
    return WingParameters(span=10.0, root_chord=2.0, tip_chord=1.0, sweep_deg=0.0, naca="0012")


@pytest.fixture
def swept_wing_params() -> WingParameters:
    """Cambered 30-degree swept wing."""
    return WingParameters(span=12.0, root_chord=3.0, tip_chord=1.2, sweep_deg=30.0, naca="2412")


@pytest.fixture
def fuselage_params() -> FuselageParameters:
    """12 m x 2 m fuselage (fineness 6, inside every envelope)."""
    return FuselageParameters(length=12.0, diameter=2.0)


@pytest.fixture
def stabilizer_params() -> StabilizerParameters:
    """Horizontal 4 m stabilizer."""
    return StabilizerParameters(span=4.0, sweep_deg=0.0, orientation="horizontal")


# ---------------------------------------------------------------------------
# Storage Fixtures (used by route/storage tests)
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_storage(tmp_path: Path) -> LocalStorage:
    """Return a LocalStorage instance backed by a temporary directory."""
    return LocalStorage(base_path=str(tmp_path / "records"))


@pytest.fixture(autouse=True)
def _use_tmp_route_storage(tmp_path: Path):
    """Point preset and snapshot routes at temp directories for every test."""
    set_preset_storage(LocalStorage(base_path=str(tmp_path / "presets")))
    set_snapshot_storage(LocalStorage(base_path=str(tmp_path / "snapshots")))
    yield
    set_preset_storage(None)
    set_snapshot_storage(None)


# ---------------------------------------------------------------------------
# Extraction service fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def gemini_handler() -> Callable[..., Callable[[httpx.Request], httpx.Response]]:
    """Factory for a MockTransport handler imitating the extraction service.

    ``gemini_handler(reply)`` lists one usable model ("gemini-test") and
    answers every generateContent call with *reply* as the model text.
    Requests are recorded on the handler's ``calls`` list.
    """

    def _make(reply: str, model: str = "gemini-test") -> Callable[[httpx.Request], httpx.Response]:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            path = request.url.path
            if request.method == "GET" and path.endswith("/models"):
                return httpx.Response(200, json={"models": [
                    {"name": "models/embedding-001", "supportedGenerationMethods": ["embedContent"]},
                    {"name": f"models/{model}", "supportedGenerationMethods": ["generateContent"]},
                ]})
            if path.endswith(f"/models/{model}:generateContent"):
                return httpx.Response(200, json={
                    "candidates": [{"content": {"parts": [{"text": reply}]}}],
                })
            return httpx.Response(404, json={"error": {"message": f"unknown path {path}"}})

        handler.calls = calls  # type: ignore[attr-defined]
        return handler

    return _make


@pytest.fixture
def make_extraction_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], ExtractionClient]:
    """Build an ExtractionClient whose HTTP traffic goes to *handler*."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> ExtractionClient:
        return ExtractionClient(
            base_url=TEST_BASE_URL,
            timeout=5.0,
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    return _make


def json_reply(record: dict) -> str:
    """A model reply wrapping *record* in a fenced code block, as models do."""
    return "Here you go:\n```json\n" + json.dumps(record) + "\n```"


@pytest.fixture
def wrap_reply() -> Callable[[dict], str]:
    return json_reply
