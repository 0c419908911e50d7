"""FastAPI application -- entry point for the aerogen backend.

Lifespan wires the storage backends, then route modules are registered and
the health endpoint is served.

AEROGEN_MODE environment variable controls storage behaviour:
  local (default) -- LocalStorage writes JSON files under AEROGEN_DATA_DIR
  cloud           -- MemoryStorage keeps presets/snapshots in-memory
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aerogen import __version__
from aerogen.routes.export import router as export_router
from aerogen.routes.generate import router as generate_router
from aerogen.routes.info import router as info_router
from aerogen.routes.metrics import router as metrics_router
from aerogen.routes.presets import router as presets_router, set_storage as set_preset_storage
from aerogen.routes.snapshots import router as snapshots_router, set_storage as set_snapshot_storage
from aerogen.routes.websocket import router as websocket_router
from aerogen.storage import create_preset_storage, create_snapshot_storage, get_mode

logger = logging.getLogger("aerogen")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: configure storage backends for the current AEROGEN_MODE.

    Presets and snapshots are separate namespaces.  A data directory that
    cannot be created leaves the routes to build their own backend lazily.
    """
    try:
        set_preset_storage(create_preset_storage())
        set_snapshot_storage(create_snapshot_storage())
    except OSError:
        logger.warning("Could not initialise storage -- routes will retry on first use", exc_info=True)
    yield


app = FastAPI(title="aerogen", version=__version__, lifespan=lifespan)

# ---------------------------------------------------------------------------
# CORS middleware for development (Vite dev server at localhost:5173)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# API route registration
# ---------------------------------------------------------------------------
app.include_router(generate_router)
app.include_router(metrics_router)
app.include_router(export_router)
app.include_router(presets_router)
app.include_router(snapshots_router)
app.include_router(info_router)
app.include_router(websocket_router)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__, "mode": get_mode()}
