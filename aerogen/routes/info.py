"""GET /api/info -- deployment details for the front end.

The UI reads ``mode`` to decide whether to warn that saved presets and
snapshots disappear on restart (cloud mode).
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from aerogen.storage import get_data_dir, get_mode

router = APIRouter(prefix="/api", tags=["info"])


@router.get("/info")
async def get_info(request: Request) -> dict:
    """Return ``{mode, version, storage}``.

    ``storage`` names the active backend: the data directory in local mode,
    or the in-memory store in cloud mode.
    """
    mode = get_mode()
    if mode == "cloud":
        storage = "MemoryStorage (in-memory, cleared on restart)"
    else:
        storage = f"LocalStorage (JSON files under {get_data_dir()}/)"
    return {"mode": mode, "version": request.app.version, "storage": storage}
