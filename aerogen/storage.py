"""Storage backend -- Protocol + LocalStorage + MemoryStorage implementations.

LocalStorage reads/writes JSON files to a directory (``AEROGEN_DATA_DIR``).
MemoryStorage keeps all records in an in-memory dict (stateless mode).

Two namespaces use storage: saved presets (``<data dir>/presets``) and the
last validated parameters per component kind (``<data dir>/snapshots``).
Use ``create_preset_storage()`` / ``create_snapshot_storage()`` to obtain the
correct implementation for the current ``AEROGEN_MODE``.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Protocol

logger = logging.getLogger("aerogen.storage")


# ---------------------------------------------------------------------------
# AEROGEN_MODE helpers
# ---------------------------------------------------------------------------

AerogenMode = Literal["local", "cloud"]
_VALID_MODES: frozenset[str] = frozenset({"local", "cloud"})

DEFAULT_DATA_DIR = "/data/aerogen"


def get_mode() -> AerogenMode:
    """Return the current AEROGEN_MODE value, defaulting to ``'local'``.

    Unrecognised values fall back to ``'local'`` with a warning so that a
    misconfigured deployment never silently breaks.
    """
    raw = os.environ.get("AEROGEN_MODE", "local").strip().lower()
    if raw not in _VALID_MODES:
        logger.warning(
            "Unknown AEROGEN_MODE=%r -- falling back to 'local'. Valid values are: %s",
            raw,
            ", ".join(sorted(_VALID_MODES)),
        )
        return "local"
    return raw  # type: ignore[return-value]


def get_data_dir() -> Path:
    """Root directory for local storage (``AEROGEN_DATA_DIR``)."""
    return Path(os.environ.get("AEROGEN_DATA_DIR", DEFAULT_DATA_DIR))


def _create_storage(namespace: str) -> "LocalStorage | MemoryStorage":
    mode = get_mode()
    if mode == "cloud":
        logger.info("AEROGEN_MODE=cloud -- using MemoryStorage for %s", namespace)
        return MemoryStorage()
    path = get_data_dir() / namespace
    logger.info("AEROGEN_MODE=%s -- using LocalStorage for %s at %s", mode, namespace, path)
    return LocalStorage(base_path=str(path))


def create_preset_storage() -> "LocalStorage | MemoryStorage":
    """Factory: storage for saved custom presets."""
    return _create_storage("presets")


def create_snapshot_storage() -> "LocalStorage | MemoryStorage":
    """Factory: storage for the last validated parameters per kind."""
    return _create_storage("snapshots")


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class StorageBackend(Protocol):
    """Protocol defining the storage interface."""

    def save_record(self, record_id: str, data: dict) -> None: ...
    def load_record(self, record_id: str) -> dict: ...
    def list_records(self) -> list[dict]: ...
    def delete_record(self, record_id: str) -> None: ...


# ---------------------------------------------------------------------------
# LocalStorage -- file-based
# ---------------------------------------------------------------------------


class LocalStorage:
    """Reads/writes one ``<id>.json`` file per record under *base_path*."""

    def __init__(self, base_path: str = DEFAULT_DATA_DIR) -> None:
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _safe_id(self, record_id: str) -> str:
        """Sanitize record_id to prevent path traversal attacks."""
        safe = Path(record_id).name
        if not safe or safe in (".", "..") or safe != record_id:
            raise ValueError(f"Invalid record id: {record_id!r}")
        return safe

    def _path(self, record_id: str) -> Path:
        return self.base_path / f"{self._safe_id(record_id)}.json"

    def save_record(self, record_id: str, data: dict) -> None:
        """Write *data* as pretty-printed JSON using an atomic write.

        Writes to a sibling temp file first, then uses os.replace() to swap
        it into place, so a crash mid-write never leaves a truncated file.
        """
        target = self._path(record_id)
        data_str = json.dumps(data, indent=2)
        tmp_fd, tmp_path_str = tempfile.mkstemp(
            dir=target.parent, prefix=".tmp_", suffix=".json"
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                f.write(data_str)
            os.replace(tmp_path_str, target)
        except Exception:
            try:
                os.unlink(tmp_path_str)
            except OSError:
                pass
            raise

    def load_record(self, record_id: str) -> dict:
        """Read and parse a saved record.  Raises FileNotFoundError if missing."""
        path = self._path(record_id)
        if not path.exists():
            raise FileNotFoundError(f"Record not found: {record_id}")
        return json.loads(path.read_text(encoding="utf-8"))

    def list_records(self) -> list[dict]:
        """Return all saved records, newest first.

        Each record gets ``id`` (defaulting to the file stem) and
        ``modified_at`` keys.  Corrupt or unreadable files are skipped.
        """
        records: list[dict] = []
        for p in sorted(
            (p for p in self.base_path.glob("*.json") if not p.name.startswith(".tmp_")),
            key=lambda f: f.stat().st_mtime,
            reverse=True,
        ):
            try:
                data = json.loads(p.read_text(encoding="utf-8"))
                stat = os.stat(p)
            except (json.JSONDecodeError, OSError):
                continue
            if not isinstance(data, dict):
                continue
            data.setdefault("id", p.stem)
            data["modified_at"] = datetime.fromtimestamp(
                stat.st_mtime, tz=timezone.utc
            ).isoformat()
            records.append(data)
        return records

    def delete_record(self, record_id: str) -> None:
        """Delete a saved record file.  Raises FileNotFoundError if missing."""
        path = self._path(record_id)
        if not path.exists():
            raise FileNotFoundError(f"Record not found: {record_id}")
        path.unlink()


# ---------------------------------------------------------------------------
# MemoryStorage -- in-memory, for stateless mode
# ---------------------------------------------------------------------------


class MemoryStorage:
    """Stores records in an in-memory dict.

    Data is NOT preserved across process restarts.  Every save/load
    deep-copies so callers cannot mutate internal state via a returned
    reference.
    """

    def __init__(self) -> None:
        self._store: dict[str, dict] = {}
        self._timestamps: dict[str, datetime] = {}

    def save_record(self, record_id: str, data: dict) -> None:
        """Store a deep copy of *data* keyed by *record_id*."""
        if not record_id:
            raise ValueError(f"Invalid record id: {record_id!r}")
        self._store[record_id] = copy.deepcopy(data)
        self._timestamps[record_id] = datetime.now(tz=timezone.utc)

    def load_record(self, record_id: str) -> dict:
        """Return a deep copy of the stored record.

        Raises
        ------
        FileNotFoundError
            If *record_id* has not been saved.
        """
        if record_id not in self._store:
            raise FileNotFoundError(f"Record not found: {record_id}")
        return copy.deepcopy(self._store[record_id])

    def list_records(self) -> list[dict]:
        """Return copies of all stored records, newest first."""
        records = []
        for record_id, data in self._store.items():
            record = copy.deepcopy(data)
            record.setdefault("id", record_id)
            record["modified_at"] = self._timestamps[record_id].isoformat()
            records.append(record)
        records.sort(key=lambda r: r["modified_at"], reverse=True)
        return records

    def delete_record(self, record_id: str) -> None:
        """Remove the stored record.

        Raises
        ------
        FileNotFoundError
            If *record_id* has not been saved.
        """
        if record_id not in self._store:
            raise FileNotFoundError(f"Record not found: {record_id}")
        del self._store[record_id]
        self._timestamps.pop(record_id, None)
