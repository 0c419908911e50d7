"""Presets routes -- GET/POST/DELETE /api/presets.

Two sources are merged in listings:
  - built-in canned presets (``builtin-*`` ids, read-only, defined here)
  - custom presets saved by the user through a StorageBackend
    (LocalStorage at <AEROGEN_DATA_DIR>/presets, or MemoryStorage in cloud
    mode; injected by main.py)
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Response

from aerogen.models import (
    FuselageParameters,
    PresetSummary,
    SavePresetRequest,
    StabilizerParameters,
    WingParameters,
)
from aerogen.storage import StorageBackend, create_preset_storage

router = APIRouter(prefix="/api/presets", tags=["presets"])

BUILTIN_PREFIX = "builtin-"

# id -> (display name, parameters)
BUILTIN_PRESETS: dict[str, tuple[str, WingParameters | FuselageParameters | StabilizerParameters]] = {
    "builtin-trainer-wing": (
        "Trainer Wing",
        WingParameters(span=10.0, root_chord=1.6, tip_chord=1.6, sweep_deg=0.0, naca="2412"),
    ),
    "builtin-airliner-wing": (
        "Airliner Wing",
        WingParameters(span=34.0, root_chord=6.0, tip_chord=1.5, sweep_deg=25.0, naca="2412"),
    ),
    "builtin-delta-wing": (
        "Delta Wing",
        WingParameters(span=9.0, root_chord=10.0, tip_chord=1.0, sweep_deg=55.0, naca="0006"),
    ),
    "builtin-airliner-fuselage": (
        "Airliner Fuselage",
        FuselageParameters(length=38.0, diameter=4.0),
    ),
    "builtin-light-fuselage": (
        "Light Aircraft Fuselage",
        FuselageParameters(length=7.5, diameter=1.5),
    ),
    "builtin-horizontal-tail": (
        "Horizontal Stabilizer",
        StabilizerParameters(span=4.0, sweep_deg=10.0, orientation="horizontal"),
    ),
    "builtin-vertical-fin": (
        "Vertical Fin",
        StabilizerParameters(span=3.0, sweep_deg=35.0, orientation="vertical"),
    ),
}

# ---------------------------------------------------------------------------
# Dependency: preset storage backend
# ---------------------------------------------------------------------------

_default_storage: StorageBackend | None = None


def _get_storage() -> StorageBackend:
    """FastAPI dependency returning the custom-preset storage backend.

    The backend is normally injected at startup by main.py via set_storage().
    Falls back to auto-detecting from AEROGEN_MODE when not injected.
    """
    global _default_storage  # noqa: PLW0603
    if _default_storage is None:
        _default_storage = create_preset_storage()
    return _default_storage


def set_storage(storage: StorageBackend | None) -> None:
    """Override the default preset storage (called by main.py and tests)."""
    global _default_storage  # noqa: PLW0603
    _default_storage = storage


def _builtin_record(preset_id: str) -> dict:
    name, params = BUILTIN_PRESETS[preset_id]
    return {
        "id": preset_id,
        "name": name,
        "kind": params.kind,
        "builtin": True,
        "params": params.model_dump(by_alias=True),
    }


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("", response_model=list[PresetSummary], response_model_by_alias=True)
async def list_presets(
    storage: StorageBackend = Depends(_get_storage),
) -> list[PresetSummary]:
    """Built-in presets first, then saved custom presets newest first."""
    summaries = [
        PresetSummary(id=preset_id, name=name, kind=params.kind, builtin=True)
        for preset_id, (name, params) in BUILTIN_PRESETS.items()
    ]
    for record in storage.list_records():
        params = record.get("params") or {}
        kind = params.get("kind") if isinstance(params, dict) else None
        if kind not in ("wing", "fuselage", "stabilizer"):
            continue  # not a preset record
        summaries.append(
            PresetSummary(
                id=record["id"],
                name=record.get("name", "Untitled Preset"),
                kind=kind,
                created_at=record.get("createdAt", record.get("modified_at", "")),
            )
        )
    return summaries


@router.get("/{preset_id}")
async def get_preset(
    preset_id: str,
    storage: StorageBackend = Depends(_get_storage),
) -> dict:
    """Load a single preset's full record. Returns 404 if not found."""
    if preset_id in BUILTIN_PRESETS:
        return _builtin_record(preset_id)
    try:
        return storage.load_record(preset_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Preset not found: {preset_id}")
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid preset id: {preset_id!r}")


@router.post("", status_code=201)
async def save_preset(
    request: SavePresetRequest,
    storage: StorageBackend = Depends(_get_storage),
) -> dict:
    """Save validated parameters as a named custom preset.

    Generates a UUID, stores the parameters with preset metadata, and
    returns the id and name.
    """
    preset_id = str(uuid4())
    storage.save_record(
        preset_id,
        {
            "id": preset_id,
            "name": request.name,
            "kind": request.params.kind,
            "builtin": False,
            "createdAt": datetime.now(tz=timezone.utc).isoformat(),
            "params": request.params.model_dump(by_alias=True),
        },
    )
    return {"id": preset_id, "name": request.name}


@router.delete("/{preset_id}", status_code=204)
async def delete_preset(
    preset_id: str,
    storage: StorageBackend = Depends(_get_storage),
) -> Response:
    """Delete a custom preset. 404 if not found, 400 for built-ins."""
    if preset_id.startswith(BUILTIN_PREFIX):
        raise HTTPException(status_code=400, detail="Built-in presets cannot be deleted")
    try:
        storage.delete_record(preset_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Preset not found: {preset_id}")
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid preset id: {preset_id!r}")
    return Response(status_code=204)
