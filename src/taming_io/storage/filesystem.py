"""Filesystem-backed snapshot and log stores."""

from __future__ import annotations

import asyncio
import json
import logging
from json import JSONDecodeError
from pathlib import Path

from pydantic import ValidationError

from taming_core.ports.storage import (
    SNAPSHOT_KEY,
    LogStoreProtocol,
    SnapshotStoreProtocol,
    StorageError,
    StorageErrorCode,
    StorageErrorDetails,
    StorageErrorInfo,
)
from taming_schemas.base import BaseSchema
from taming_schemas.logs import LogEntry
from taming_schemas.primitives import RunId
from taming_schemas.protocol import ProtocolState
from taming_schemas.version import PROTOCOL_STATE_VERSION

_log = logging.getLogger(__name__)


class FileSystemSnapshotStore(SnapshotStoreProtocol):
    """Single-file protocol state snapshot.

    The snapshot lives at ``<state_dir>/taming_protocol_state_v1.json`` and
    is overwritten on every save. Records with another version or that fail
    to parse are discarded on load.
    """

    def __init__(self, state_dir: str | Path) -> None:
        """Initialize the snapshot store."""
        self._state_dir = Path(state_dir)

    @property
    def path(self) -> Path:
        """Snapshot file path."""
        return self._state_dir / f"{SNAPSHOT_KEY}.json"

    async def save_snapshot(self, state: ProtocolState) -> None:
        """Overwrite the stored snapshot.

        Raises:
            StorageError: If the snapshot cannot be written.
        """
        path = self.path
        try:
            await asyncio.to_thread(_write_json_file, path, state)
        except OSError as exc:
            raise StorageError(
                StorageErrorInfo(
                    code=StorageErrorCode.IO_ERROR,
                    message=str(exc),
                    details=StorageErrorDetails(
                        operation="save_snapshot", path=str(path)
                    ),
                )
            ) from exc

    async def load_snapshot(self) -> ProtocolState | None:
        """Load the snapshot if present and version-compatible.

        Returns:
            ProtocolState | None: Stored state, or None when absent, from
                another version, or unparseable.

        Raises:
            StorageError: If the snapshot exists but cannot be read.
        """
        path = self.path
        if not await asyncio.to_thread(path.exists):
            return None
        try:
            payload = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except OSError as exc:
            raise StorageError(
                StorageErrorInfo(
                    code=StorageErrorCode.IO_ERROR,
                    message=str(exc),
                    details=StorageErrorDetails(
                        operation="load_snapshot", path=str(path)
                    ),
                )
            ) from exc
        return _parse_snapshot(payload, path)


class FileSystemLogStore(LogStoreProtocol):
    """Filesystem-backed JSONL log store with one file per run."""

    def __init__(self, logs_dir: str | Path) -> None:
        """Initialize the log store."""
        self._logs_dir = Path(logs_dir)

    async def append_log(self, entry: LogEntry) -> None:
        """Append a single log entry.

        Raises:
            StorageError: If the log entry cannot be written.
        """
        path = self.log_path(entry.run_id)
        try:
            await asyncio.to_thread(_append_jsonl, path, entry)
        except OSError as exc:
            raise StorageError(
                StorageErrorInfo(
                    code=StorageErrorCode.IO_ERROR,
                    message=str(exc),
                    details=StorageErrorDetails(
                        operation="append_log",
                        run_id=entry.run_id,
                        path=str(path),
                    ),
                )
            ) from exc

    def log_path(self, run_id: RunId) -> Path:
        """Return the JSONL file path for a run."""
        return self._logs_dir / f"{run_id}.jsonl"


def _parse_snapshot(payload: str, path: Path) -> ProtocolState | None:
    try:
        raw = json.loads(payload)
    except JSONDecodeError as exc:
        _log.warning("Discarding unparseable snapshot %s: %s", path, exc)
        return None
    version = raw.get("version") if isinstance(raw, dict) else None
    if version != PROTOCOL_STATE_VERSION:
        _log.warning(
            "Discarding snapshot %s with version %r (expected %d)",
            path,
            version,
            PROTOCOL_STATE_VERSION,
        )
        return None
    try:
        return ProtocolState.model_validate_json(payload)
    except ValidationError as exc:
        _log.warning(
            "Discarding snapshot %s that failed validation: %d error(s)",
            path,
            exc.error_count(),
        )
        return None


def _write_json_file(path: Path, payload: BaseSchema) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload.model_dump_json(), encoding="utf-8")


def _append_jsonl(path: Path, payload: BaseSchema) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(payload.model_dump_json() + "\n")
