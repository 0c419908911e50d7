"""GET /api/snapshots/{kind} -- last validated parameters per component kind.

Snapshots are written by POST /api/generate after every successful run and
keyed by kind, so there is at most one per kind.

In local mode: LocalStorage at <AEROGEN_DATA_DIR>/snapshots (injected by main.py).
In cloud mode: MemoryStorage, lost on restart.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from aerogen.models import ComponentKind
from aerogen.storage import StorageBackend, create_snapshot_storage

router = APIRouter(prefix="/api/snapshots", tags=["snapshots"])

# ---------------------------------------------------------------------------
# Dependency: snapshot storage backend
# ---------------------------------------------------------------------------

_default_storage: StorageBackend | None = None


def get_storage() -> StorageBackend:
    """FastAPI dependency returning the snapshot storage backend.

    Normally injected at startup via set_storage(); falls back to
    AEROGEN_MODE auto-detection when nothing was injected.
    """
    global _default_storage  # noqa: PLW0603
    if _default_storage is None:
        _default_storage = create_snapshot_storage()
    return _default_storage


def set_storage(storage: StorageBackend | None) -> None:
    """Override the default snapshot storage (called by main.py and tests)."""
    global _default_storage  # noqa: PLW0603
    _default_storage = storage


def save_snapshot(storage: StorageBackend, params_data: dict) -> None:
    """Store *params_data* (camelCase dump of a parameter record) under its kind."""
    storage.save_record(
        params_data["kind"],
        {
            "kind": params_data["kind"],
            "params": params_data,
            "savedAt": datetime.now(tz=timezone.utc).isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/{kind}")
async def get_snapshot(
    kind: ComponentKind,
    storage: StorageBackend = Depends(get_storage),
) -> dict:
    """Return ``{kind, params, savedAt}`` for *kind*; 404 if none yet."""
    try:
        record = storage.load_record(kind)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"No snapshot for kind: {kind}")
    return record
