"""JSON export writer for run bundles."""

from __future__ import annotations

import asyncio
from pathlib import Path

from taming_core.ports.export import (
    ExportError,
    ExportErrorCode,
    ExportErrorDetails,
    ExportErrorInfo,
    ExportWriterProtocol,
)
from taming_schemas.export import ExportBundle


class JsonExportWriter(ExportWriterProtocol):
    """Write export bundles as indented JSON documents."""

    async def write_bundle(self, bundle: ExportBundle, path: Path) -> Path:
        """Write the bundle to the given path.

        Returns:
            Path: Written file path.

        Raises:
            ExportError: If the file cannot be written.
        """
        try:
            await asyncio.to_thread(_write_bundle, path, bundle)
        except OSError as exc:
            raise ExportError(
                ExportErrorInfo(
                    code=ExportErrorCode.IO_ERROR,
                    message=f"Failed to write export: {exc}",
                    details=ExportErrorDetails(output_path=str(path), reason=str(exc)),
                )
            ) from exc
        return path


def _write_bundle(path: Path, bundle: ExportBundle) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        bundle.model_dump_json(indent=2, exclude_none=True), encoding="utf-8"
    )
