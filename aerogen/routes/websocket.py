"""/ws/preview -- WebSocket handler for live mesh preview.

Protocol:
  - the client sends one ComponentParameters JSON object per slider edit
  - a newer message supersedes any mesh still being built for an older one
  - every accepted message is answered with a mesh frame (0x01) or an
    error frame (0x02); stale meshes are dropped, not sent

Mesh frame layout (little-endian)::

    [0x01: u32][vertex_count: u32][face_count: u32]
    [vertices: f32 * 3N][normals: f32 * 3N][faces: u32 * 3M]
    [JSON trailer: {"metrics", "safety", "groups"}]

Tasks:
  reader     decodes and validates messages, cancels the current build
             scope, and posts parameter records to a memory channel
  generator  drains the channel to the newest record and builds its mesh
             in a worker thread

Frames are sent under a lock so error frames from the reader never
interleave with mesh frames from the generator.  Builds run with
``abandon_on_cancel=False``: a cancelled build still holds its limiter
token until the thread returns, so cancellation can never oversubscribe
the worker pool.
"""

from __future__ import annotations

import json
import logging
import struct
from typing import Any

import anyio
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from aerogen.geometry.engine import _mesh_limiter, build_mesh
from aerogen.geometry.mesh import MeshData
from aerogen.metrics import compute_aero_metrics
from aerogen.models import AeroMetrics, SafetyVerdict, parse_component
from aerogen.safety import check

logger = logging.getLogger("aerogen.ws")

router = APIRouter()

# Larger messages are answered with an error frame.
MAX_MESSAGE_SIZE = 64 * 1024


def _build_error_frame(error: str, detail: str = "", field: str = "") -> bytes:
    """``0x02`` header followed by a JSON object with error, detail and field."""
    payload: dict[str, str] = {"error": error}
    if detail:
        payload["detail"] = detail
    if field:
        payload["field"] = field
    json_bytes = json.dumps(payload).encode("utf-8")
    header = struct.pack("<I", 0x02)
    return header + json_bytes


def _build_mesh_response(
    mesh: MeshData,
    metrics: AeroMetrics | None,
    safety: SafetyVerdict,
) -> bytes:
    """Mesh binary frame followed by the camelCase JSON trailer."""
    trailer_dict: dict[str, Any] = {
        "metrics": metrics.model_dump(by_alias=True) if metrics is not None else None,
        "safety": safety.model_dump(by_alias=True),
        "groups": {name: [start, end] for name, (start, end) in mesh.groups.items()},
    }
    trailer = json.dumps(trailer_dict).encode("utf-8")
    return mesh.to_binary_frame() + trailer


def _decode_message(raw: dict[str, Any]) -> tuple[Any | None, bytes | None]:
    """Turn one ASGI receive() event into ``(params, None)`` or ``(None, error_frame)``.

    Returns ``(None, None)`` for events that carry no payload.
    """
    if raw.get("text") is not None:
        text = raw["text"]
        # Limit is in bytes, not characters.
        if len(text.encode("utf-8", errors="replace")) > MAX_MESSAGE_SIZE:
            return None, _build_error_frame(
                error="Message too large",
                detail=f"Maximum message size is {MAX_MESSAGE_SIZE} bytes",
            )
    elif raw.get("bytes") is not None:
        raw_bytes = raw["bytes"]
        if len(raw_bytes) > MAX_MESSAGE_SIZE:
            return None, _build_error_frame(
                error="Message too large",
                detail=f"Maximum message size is {MAX_MESSAGE_SIZE} bytes",
            )
        try:
            text = raw_bytes.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Received non-UTF-8 binary frame, ignoring")
            return None, _build_error_frame(
                error="Invalid message format",
                detail="Expected UTF-8 encoded JSON text",
            )
    else:
        return None, None

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Malformed JSON from WebSocket client: %s", exc)
        return None, _build_error_frame(error="Invalid JSON", detail=str(exc))

    if not isinstance(data, dict):
        return None, _build_error_frame(
            error="Validation error", detail="Expected a JSON object",
        )

    try:
        return parse_component(data), None
    except ValidationError as exc:
        logger.warning("Pydantic validation error: %s", exc)
        errors = exc.errors()
        detail_parts = []
        field = ""
        for err in errors[:5]:
            loc = ".".join(str(part) for part in err["loc"])
            detail_parts.append(f"{loc}: {err['msg']}")
            if not field and err["loc"]:
                field = str(err["loc"][-1])
        return None, _build_error_frame(
            error="Validation error",
            detail="; ".join(detail_parts),
            field=field,
        )


@router.websocket("/ws/preview")
async def preview_websocket(ws: WebSocket) -> None:
    """Serve one preview connection until the client disconnects."""
    await ws.accept()
    logger.info("WebSocket client connected")

    send_ch, recv_ch = anyio.create_memory_object_stream[Any](max_buffer_size=16)
    ws_lock = anyio.Lock()

    # Reader cancels it when a new message arrives; generator creates it
    # before starting work.
    generation_scope: anyio.CancelScope | None = None

    async def _send_frame(frame: bytes) -> None:
        async with ws_lock:
            await ws.send_bytes(frame)

    async def reader_task() -> None:
        nonlocal generation_scope
        try:
            while True:
                try:
                    raw = await ws.receive()
                except WebSocketDisconnect:
                    return
                if raw.get("type") == "websocket.disconnect":
                    return

                params, error_frame = _decode_message(raw)
                if error_frame is not None:
                    await _send_frame(error_frame)
                    continue
                if params is None:
                    continue

                # The generator is blocked on run_sync, so only the reader
                # can cancel promptly.
                if generation_scope is not None:
                    generation_scope.cancel()

                try:
                    send_ch.send_nowait(params)
                except anyio.WouldBlock:
                    while True:
                        try:
                            recv_ch.receive_nowait()
                        except anyio.WouldBlock:
                            break
                    send_ch.send_nowait(params)
        finally:
            send_ch.close()

    async def generator_task() -> None:
        nonlocal generation_scope

        async for params in recv_ch:
            latest = params
            while True:
                try:
                    latest = recv_ch.receive_nowait()
                except anyio.WouldBlock:
                    break

            generation_scope = anyio.CancelScope()
            with generation_scope:
                metrics = compute_aero_metrics(latest)
                safety = check(latest)

                try:
                    mesh = await anyio.to_thread.run_sync(
                        build_mesh,
                        latest,
                        limiter=_mesh_limiter,
                        abandon_on_cancel=False,
                    )
                except Exception as gen_err:
                    if generation_scope.cancel_called:
                        continue
                    logger.warning("Mesh generation failed: %s", gen_err)
                    try:
                        await _send_frame(_build_error_frame(
                            error="Mesh generation failed",
                            detail=str(gen_err),
                        ))
                    except Exception:
                        return
                    continue

                if generation_scope.cancel_called:
                    continue

                try:
                    await _send_frame(_build_mesh_response(mesh, metrics, safety))
                except Exception:
                    return

    try:
        async with anyio.create_task_group() as tg:
            tg.start_soon(reader_task)
            tg.start_soon(generator_task)
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected")
    except Exception:
        logger.exception("WebSocket error")
