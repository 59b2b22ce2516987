"""Export gate and run bundle assembly."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from taming_core.ports.export import (
    ExportError,
    ExportErrorCode,
    ExportErrorDetails,
    ExportErrorInfo,
    ExportWriterProtocol,
)
from taming_schemas.export import ExportBundle
from taming_schemas.primitives import Mode, RunId, Timestamp, ValidationStatus
from taming_schemas.protocol import ProtocolState


def check_export_allowed(state: ProtocolState, *, confirmed: bool = False) -> None:
    """Enforce the export gate for the current working state.

    Args:
        state: Current protocol state.
        confirmed: Whether the user confirmed exporting a warned output.

    Raises:
        ExportError: If the status is failed, if a warned output is not
            confirmed, or if there is no narrative to export.
    """
    status = ValidationStatus(state.status)
    if status == ValidationStatus.FAILED:
        raise ExportError(
            ExportErrorInfo(
                code=ExportErrorCode.REFUSED,
                message="Export refused: the current output failed validation",
                details=ExportErrorDetails(status=str(status)),
            )
        )
    if status == ValidationStatus.WARNING and not confirmed:
        raise ExportError(
            ExportErrorInfo(
                code=ExportErrorCode.CONFIRMATION_REQUIRED,
                message="Export requires confirmation: the output has warnings",
                details=ExportErrorDetails(status=str(status)),
            )
        )
    if not state.output.copywriting.narrative_spine:
        raise ExportError(
            ExportErrorInfo(
                code=ExportErrorCode.NOTHING_TO_EXPORT,
                message="Nothing to export: no narrative has been generated",
                details=ExportErrorDetails(status=str(status)),
            )
        )


def export_run_id(state: ProtocolState) -> RunId | None:
    """Return the replayed run id, else the newest run id, else None."""
    if state.viewing_run_id is not None:
        return state.viewing_run_id
    if state.runs:
        return state.runs[0].id
    return None


def build_export_bundle(state: ProtocolState, timestamp: Timestamp) -> ExportBundle:
    """Assemble the export bundle from the working state.

    Args:
        state: Current protocol state.
        timestamp: Export time.

    Returns:
        ExportBundle: Bundle document.
    """
    confirmed = state.output.judgment.confirmed
    return ExportBundle(
        run_id=export_run_id(state),
        timestamp=timestamp,
        mode=state.input.mode,
        judgment_lock=confirmed.judgment_lock if confirmed is not None else None,
        narrative_spine=state.output.copywriting.narrative_spine,
        visuals=list(state.output.visual.scenes),
        coach=state.output.coach,
    )


def export_filename(mode: Mode | str, epoch_ms: int) -> str:
    """Build the default export filename."""
    return f"taming-protocol-{Mode(mode).value}-{epoch_ms}.json"


async def export_state(
    state: ProtocolState,
    writer: ExportWriterProtocol,
    output_dir: Path,
    *,
    confirmed: bool = False,
    clock: Callable[[], datetime] | None = None,
) -> Path:
    """Gate, assemble and write the export bundle.

    Args:
        state: Current protocol state.
        writer: Writer persisting the bundle.
        output_dir: Directory receiving the export file.
        confirmed: Whether a warned output was confirmed for export.
        clock: Optional provider of the export time (UTC).

    Returns:
        Path: Written file path.

    Raises:
        ExportError: If the export gate rejects the state.
    """
    check_export_allowed(state, confirmed=confirmed)
    now = clock() if clock is not None else datetime.now(tz=UTC)
    timestamp = now.isoformat().replace("+00:00", "Z")
    epoch_ms = int(now.timestamp() * 1000)
    bundle = build_export_bundle(state, timestamp)
    path = output_dir / export_filename(state.input.mode, epoch_ms)
    return await writer.write_bundle(bundle, path)
