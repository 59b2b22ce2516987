"""CLI entry point - thin adapter over taming-core."""

from __future__ import annotations

import asyncio
import logging
import tomllib
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import NamedTuple
from uuid import UUID

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from taming_core import VERSION, PipelineOrchestrator, ProtocolSession
from taming_core.export import export_state
from taming_core.ports.export import ExportError
from taming_core.ports.generation import GenerationError
from taming_core.ports.orchestrator import LogSinkProtocol, OrchestrationError
from taming_core.ports.storage import StorageError
from taming_core.retry import RetryPolicy
from taming_core.state_machine import is_accepted
from taming_io import (
    FileSystemLogStore,
    FileSystemSnapshotStore,
    JsonExportWriter,
    build_log_sink,
)
from taming_llm import PydanticAiGenerationClient
from taming_schemas.config import AppConfig
from taming_schemas.intents import (
    ConfirmJudgment,
    DeleteRun,
    ExitReplay,
    IngestPipelineResult,
    Intent,
    ResetProtocol,
    ReuseInput,
    ReuseJudgment,
    SetIntensity,
    SetJudgmentDraft,
    SetMode,
    SetOutputScale,
    SetTopic,
    SetVisualLanguage,
    ToggleConstraint,
    ViewRun,
)
from taming_schemas.primitives import (
    JsonValue,
    Mode,
    OutputScale,
    PipelineStatus,
    RunId,
    ValidationStatus,
    VisualLanguage,
)
from taming_schemas.protocol import (
    CopyOutput,
    JudgmentContent,
    PipelineResult,
    ProtocolState,
    ValidationFinding,
)
from taming_schemas.responses import ErrorResponse, error_envelope

_log = logging.getLogger(__name__)


class ResumePoint(StrEnum):
    """Phase a resumed run starts from."""

    COPY = "copy"
    VISUAL = "visual"


class TranslateTarget(StrEnum):
    """Working output to translate."""

    JUDGMENT = "judgment"
    COPY = "copy"


CONFIG_OPTION = typer.Option(
    Path("taming.toml"), "--config", "-c", help="Path to taming.toml"
)
MOCK_OPTION = typer.Option(
    False, "--mock", help="Use deterministic fixtures instead of the service"
)
RUN_ID_ARGUMENT = typer.Argument(..., help="Run id or unique prefix")

_STATUS_STYLES = {
    "ok": "green",
    "completed": "green",
    "warning": "yellow",
    "failed": "red",
}

app = typer.Typer(
    help="Structured judgment to copy to visual prompt pipeline",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show library diagnostics"
    ),
) -> None:
    """Taming CLI."""
    _configure_logging(verbose)


@app.command()
def version() -> None:
    """Display version information."""
    rprint(f"[bold]{VERSION.describe()}[/bold]")


@app.command()
def show(config_path: Path = CONFIG_OPTION) -> None:
    """Show the current working state."""

    async def _body() -> None:
        context = await _open_context(config_path)
        _render_state(context.session.state)

    _run_command("show", _body)


@app.command("set")
def set_input(
    config_path: Path = CONFIG_OPTION,
    mode: Mode | None = typer.Option(None, "--mode", help="Operating mode"),
    topic: str | None = typer.Option(None, "--topic", help="Free-text topic"),
    intensity: int | None = typer.Option(
        None, "--intensity", min=1, max=5, help="Intensity from 1 to 5"
    ),
    scale: OutputScale | None = typer.Option(None, "--scale", help="Output scale"),
    visual_language: VisualLanguage | None = typer.Option(
        None, "--visual-language", help="Visual prompt language"
    ),
    toggle: list[str] | None = typer.Option(
        None, "--toggle", help="Toggle a constraint tag (repeatable)"
    ),
) -> None:
    """Update the input configuration."""
    intents: list[Intent] = []
    if mode is not None:
        intents.append(SetMode(mode=mode))
    if topic is not None:
        intents.append(SetTopic(topic=topic))
    if intensity is not None:
        intents.append(SetIntensity(intensity=intensity))
    if scale is not None:
        intents.append(SetOutputScale(output_scale=scale))
    if visual_language is not None:
        intents.append(SetVisualLanguage(visual_language=visual_language))
    for tag in toggle or []:
        intents.append(ToggleConstraint(tag=tag))

    async def _body() -> None:
        context = await _open_context(config_path)
        if not intents:
            rprint("[yellow]Nothing to set.[/yellow]")
            return
        for intent in intents:
            await _dispatch(context.session, intent)
        _render_input(context.session.state)

    _run_command("set", _body)


@app.command()
def judge(config_path: Path = CONFIG_OPTION, mock: bool = MOCK_OPTION) -> None:
    """Generate a judgment draft for the current input."""

    async def _body() -> None:
        context = await _open_context(config_path)
        session = context.session
        if session.state.is_replaying:
            _warn_replay()
            return
        orchestrator = _build_orchestrator(context, mock=mock)
        draft = await orchestrator.generators.judgment(session.state.input)
        await _dispatch(session, SetJudgmentDraft(draft=draft))
        _render_judgment("Judgment draft", draft)
        rprint("Run [bold]taming confirm[/bold] to lock it in.")

    _run_command("judge", _body)


@app.command()
def confirm(config_path: Path = CONFIG_OPTION) -> None:
    """Confirm the current judgment draft."""

    async def _body() -> None:
        context = await _open_context(config_path)
        state = await _dispatch(context.session, ConfirmJudgment())
        confirmed = state.output.judgment.confirmed
        if confirmed is None:
            rprint("[yellow]No judgment draft to confirm.[/yellow]")
            return
        rprint(f"[green]Confirmed:[/green] {escape(confirmed.judgment_lock)}")

    _run_command("confirm", _body)


@app.command()
def run(config_path: Path = CONFIG_OPTION, mock: bool = MOCK_OPTION) -> None:
    """Run all four phases from the current input."""

    async def _body() -> None:
        context = await _open_context(config_path)
        if context.session.state.is_replaying:
            _warn_replay()
            return
        orchestrator = _build_orchestrator(context, mock=mock)
        result = await orchestrator.run_full(context.session.state.input)
        await _ingest(context.session, result)

    _run_command("run", _body)


@app.command()
def resume(
    config_path: Path = CONFIG_OPTION,
    from_phase: ResumePoint = typer.Option(
        ..., "--from", help="Phase to resume from (copy|visual)"
    ),
    mock: bool = MOCK_OPTION,
) -> None:
    """Resume the pipeline from the confirmed judgment or existing copy."""

    async def _body() -> None:
        context = await _open_context(config_path)
        state = context.session.state
        if state.is_replaying:
            _warn_replay()
            return
        orchestrator = _build_orchestrator(context, mock=mock)
        confirmed = state.output.judgment.confirmed
        if from_phase == ResumePoint.COPY:
            result = await orchestrator.run_from_copy(state.input, confirmed)
        else:
            result = await orchestrator.run_from_visual(
                state.input, confirmed, state.output.copywriting
            )
        await _ingest(context.session, result)

    _run_command("resume", _body)


@app.command("regenerate-scene")
def regenerate_scene(
    scene_id: int = typer.Argument(..., help="Scene id (1-4)"),
    config_path: Path = CONFIG_OPTION,
    mock: bool = MOCK_OPTION,
) -> None:
    """Regenerate one scene and refresh the coach log."""

    async def _body() -> None:
        context = await _open_context(config_path)
        state = context.session.state
        if state.is_replaying:
            _warn_replay()
            return
        orchestrator = _build_orchestrator(context, mock=mock)
        result = await orchestrator.regenerate_scene(
            state.input,
            state.output.judgment.confirmed,
            state.output.copywriting,
            state.output.visual,
            scene_id,
        )
        await _ingest(context.session, result)

    _run_command("regenerate-scene", _body)


@app.command()
def translate(
    target: TranslateTarget = typer.Argument(..., help="judgment or copy"),
    config_path: Path = CONFIG_OPTION,
    mock: bool = MOCK_OPTION,
) -> None:
    """Show a Simplified Chinese translation of the working output."""

    async def _body() -> None:
        context = await _open_context(config_path)
        output = context.session.state.output
        generators = _build_orchestrator(context, mock=mock).generators
        if target == TranslateTarget.JUDGMENT:
            judgment = output.judgment.confirmed or output.judgment.draft
            if judgment is None:
                raise ValueError("No judgment to translate")
            _render_judgment(
                "Judgment (zh)", await generators.translate_judgment(judgment)
            )
            return
        if output.copywriting.is_empty:
            raise ValueError("No copy to translate")
        _render_copy("Copy (zh)", await generators.translate_copy(output.copywriting))

    _run_command("translate", _body)


@app.command()
def runs(config_path: Path = CONFIG_OPTION) -> None:
    """List stored runs, newest first."""

    async def _body() -> None:
        context = await _open_context(config_path)
        state = context.session.state
        if not state.runs:
            rprint("No runs yet.")
            return
        table = Table(title="Runs")
        table.add_column("Id", no_wrap=True)
        table.add_column("Created")
        table.add_column("Status")
        table.add_column("Mode")
        table.add_column("Topic")
        table.add_column("Findings", justify="right")
        for item in state.runs:
            marker = " *" if item.id == state.viewing_run_id else ""
            table.add_row(
                f"{item.id}{marker}",
                item.created_at,
                _styled(item.status),
                item.input.mode,
                escape(item.input.topic),
                str(sum(len(finding.reasons) for finding in item.findings)),
            )
        rprint(table)

    _run_command("runs", _body)


@app.command()
def view(run_id: str = RUN_ID_ARGUMENT, config_path: Path = CONFIG_OPTION) -> None:
    """Replay a stored run read-only."""

    async def _body() -> None:
        context = await _open_context(config_path)
        resolved = _resolve_run_id(context.session.state, run_id)
        state = await _dispatch(context.session, ViewRun(run_id=resolved))
        if state.viewing_run_id == resolved:
            _render_state(state)

    _run_command("view", _body)


@app.command("exit-replay")
def exit_replay(config_path: Path = CONFIG_OPTION) -> None:
    """Leave replay mode."""

    async def _body() -> None:
        context = await _open_context(config_path)
        await _dispatch(context.session, ExitReplay())
        rprint("Replay closed.")

    _run_command("exit-replay", _body)


@app.command()
def reuse(
    run_id: str = RUN_ID_ARGUMENT,
    config_path: Path = CONFIG_OPTION,
    with_judgment: bool = typer.Option(
        False, "--judgment", help="Also reuse the run's confirmed judgment"
    ),
) -> None:
    """Start over from a stored run's input."""

    async def _body() -> None:
        context = await _open_context(config_path)
        resolved = _resolve_run_id(context.session.state, run_id)
        intent: Intent = (
            ReuseJudgment(run_id=resolved)
            if with_judgment
            else ReuseInput(run_id=resolved)
        )
        state = await _dispatch(context.session, intent)
        _render_input(state)

    _run_command("reuse", _body)


@app.command()
def delete(run_id: str = RUN_ID_ARGUMENT, config_path: Path = CONFIG_OPTION) -> None:
    """Delete a stored run from history."""

    async def _body() -> None:
        context = await _open_context(config_path)
        resolved = _resolve_run_id(context.session.state, run_id)
        await _dispatch(context.session, DeleteRun(run_id=resolved))
        rprint(f"Deleted run {resolved}.")

    _run_command("delete", _body)


@app.command()
def reset(config_path: Path = CONFIG_OPTION) -> None:
    """Restore defaults while keeping the mode and run history."""

    async def _body() -> None:
        context = await _open_context(config_path)
        await _dispatch(context.session, ResetProtocol())
        if not context.session.state.is_replaying:
            rprint("Protocol reset.")

    _run_command("reset", _body)


@app.command()
def export(
    config_path: Path = CONFIG_OPTION,
    confirm_warning: bool = typer.Option(
        False, "--confirm", help="Export even though the output has warnings"
    ),
    output_dir: Path | None = typer.Option(
        None, "--output-dir", help="Override the export directory"
    ),
) -> None:
    """Export the current output as a run bundle."""

    async def _body() -> None:
        context = await _open_context(config_path)
        target_dir = output_dir or Path(context.config.storage.exports_dir)
        path = await export_state(
            context.session.state,
            JsonExportWriter(),
            target_dir,
            confirmed=confirm_warning,
        )
        rprint(f"[green]Exported[/green] {escape(str(path))}")

    _run_command("export", _body)


class _ConfigError(Exception):
    """Raised for CLI configuration issues."""


class _CliContext(NamedTuple):
    config: AppConfig
    session: ProtocolSession
    log_sink: LogSinkProtocol


def _run_command(command: str, body: Callable[[], Awaitable[None]]) -> None:
    try:
        asyncio.run(body())
    except Exception as exc:
        _log.debug("Command %s failed", command, exc_info=True)
        error = _error_from_exception(exc)
        envelope = error_envelope(
            error, command=command, timestamp=_now_timestamp()
        )
        print(envelope.model_dump_json())
        raise typer.Exit(code=1) from exc


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _now_timestamp() -> str:
    timestamp = datetime.now(UTC).isoformat()
    return timestamp.replace("+00:00", "Z")


async def _open_context(config_path: Path) -> _CliContext:
    config = _resolve_storage_paths(_load_app_config(config_path), config_path)
    storage = config.storage
    session = await ProtocolSession.open(FileSystemSnapshotStore(storage.state_dir))
    log_sink = build_log_sink(config.logging, FileSystemLogStore(storage.logs_dir))
    return _CliContext(config=config, session=session, log_sink=log_sink)


def _build_orchestrator(context: _CliContext, *, mock: bool) -> PipelineOrchestrator:
    config = context.config
    if mock or config.pipeline.offline:
        return PipelineOrchestrator.offline(
            latency_s=config.pipeline.offline_latency_s, log_sink=context.log_sink
        )
    client = PydanticAiGenerationClient.from_config(config)
    return PipelineOrchestrator.online(
        client,
        retry_policy=RetryPolicy.from_config(config.retry),
        log_sink=context.log_sink,
    )


def _load_app_config(config_path: Path) -> AppConfig:
    _load_dotenv(config_path)
    if not config_path.exists():
        _log.debug("Config %s not found, using defaults", config_path)
        return AppConfig()
    try:
        with open(config_path, "rb") as handle:
            payload: dict[str, JsonValue] = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise _ConfigError(f"Failed to read config: {exc}") from exc
    return AppConfig.model_validate(payload, strict=False)


def _load_dotenv(config_path: Path) -> None:
    env_path = config_path.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


def _resolve_storage_paths(config: AppConfig, config_path: Path) -> AppConfig:
    config_dir = config_path.parent.resolve()
    workspace_dir = Path(config.storage.workspace_dir)
    if not workspace_dir.is_absolute():
        workspace_dir = (config_dir / workspace_dir).resolve()
    storage = config.storage.model_copy(
        update={
            "workspace_dir": str(workspace_dir),
            "state_dir": str(
                _resolve_path(Path(config.storage.state_dir), workspace_dir)
            ),
            "logs_dir": str(
                _resolve_path(Path(config.storage.logs_dir), workspace_dir)
            ),
            "exports_dir": str(
                _resolve_path(Path(config.storage.exports_dir), workspace_dir)
            ),
        }
    )
    return config.model_copy(update={"storage": storage})


def _resolve_path(path: Path, base_dir: Path) -> Path:
    base_dir = base_dir.resolve()
    resolved = path if path.is_absolute() else base_dir / path
    resolved = resolved.resolve()
    try:
        resolved.relative_to(base_dir)
    except ValueError as exc:
        raise _ConfigError(f"Path must stay within workspace: {resolved}") from exc
    return resolved


def _resolve_run_id(state: ProtocolState, value: str) -> RunId:
    try:
        return UUID(value)
    except ValueError:
        pass
    matches = [item.id for item in state.runs if str(item.id).startswith(value)]
    if not matches:
        raise ValueError(f"Unknown run id: {value}")
    if len(matches) > 1:
        raise ValueError(f"Ambiguous run id prefix: {value}")
    return matches[0]


async def _dispatch(session: ProtocolSession, intent: Intent) -> ProtocolState:
    if not is_accepted(session.state, intent):
        _warn_replay()
    return await session.dispatch(intent)


async def _ingest(session: ProtocolSession, result: PipelineResult) -> None:
    await _dispatch(session, IngestPipelineResult(result=result))
    _render_result(result)


def _warn_replay() -> None:
    rprint(
        "[yellow]Replay mode is read-only.[/yellow] "
        "Use [bold]taming exit-replay[/bold] or [bold]taming reuse[/bold] first."
    )


def _styled(status: str) -> str:
    style = _STATUS_STYLES.get(str(status), "white")
    return f"[{style}]{status}[/{style}]"


def _render_result(result: PipelineResult) -> None:
    run_record = result.run
    lines = [
        f"Run: {run_record.id}",
        f"Status: {_styled(result.status)}",
        f"Scenes: {len(run_record.output.visual.scenes)}",
    ]
    if result.status == PipelineStatus.WARNING:
        lines.append("Export requires [bold]--confirm[/bold].")
    elif result.status == PipelineStatus.FAILED:
        lines.append("Export is refused for failed runs.")
    rprint(Panel("\n".join(lines), title="Pipeline result"))
    _render_findings(run_record.findings)


def _render_findings(findings: list[ValidationFinding]) -> None:
    for finding in findings:
        for reason in finding.reasons:
            rprint(f"[yellow]{finding.phase}[/yellow]: {escape(reason)}")


def _render_input(state: ProtocolState) -> None:
    model = state.input
    constraints = ", ".join(model.constraints) or "-"
    lines = [
        f"Mode: {model.mode}",
        f"Topic: {escape(model.topic) or '-'}",
        f"Intensity: {model.intensity}",
        f"Scale: {model.output_scale}",
        f"Visual language: {model.visual_language}",
        f"Constraints: {escape(constraints)}",
    ]
    rprint(Panel("\n".join(lines), title="Input"))


def _render_judgment(title: str, judgment: JudgmentContent) -> None:
    lines = [
        f"Observed claim: {escape(judgment.observed_claim)}",
        f"Mechanism: {escape(judgment.operational_mechanism)}",
        f"Failure point: {escape(judgment.failure_point)}",
        f"Lock: [bold]{escape(judgment.judgment_lock)}[/bold]",
    ]
    rprint(Panel("\n".join(lines), title=title))


def _render_copy(title: str, copy_output: CopyOutput) -> None:
    body = escape(copy_output.narrative_spine)
    if copy_output.key_lines:
        lines = [f"- {escape(line)}" for line in copy_output.key_lines]
        body += "\n\n" + "\n".join(lines)
    rprint(Panel(body, title=title))


def _render_state(state: ProtocolState) -> None:
    if state.is_replaying:
        rprint(f"[cyan]Replaying run {state.viewing_run_id} (read-only)[/cyan]")
    status = ValidationStatus(state.status)
    rprint(f"Status: {_styled(status)}")
    _render_input(state)
    judgment = state.output.judgment
    if judgment.confirmed is not None:
        _render_judgment("Confirmed judgment", judgment.confirmed)
    elif judgment.draft is not None:
        _render_judgment("Judgment draft (unconfirmed)", judgment.draft)
    if not state.output.copywriting.is_empty:
        _render_copy("Copy", state.output.copywriting)
    if state.output.visual.scenes:
        table = Table(title="Scenes")
        table.add_column("#", justify="right")
        table.add_column("Prompt")
        table.add_column("Hint")
        for scene in state.output.visual.scenes:
            table.add_row(
                str(scene.id), escape(scene.prompt_text), escape(scene.hint or "")
            )
        rprint(table)
    coach = state.output.coach
    if coach.did_right:
        lines = [
            f"Did right: {escape(coach.did_right)}",
            f"Visual tips: {escape(coach.visual_tips)}",
            f"Copy tips: {escape(coach.copy_tips)}",
            f"Avoided: {escape(coach.avoided)}",
            f"Music: {escape(coach.music_vibe)}",
        ]
        rprint(Panel("\n".join(lines), title="Coach"))
    _render_findings(state.findings)


def _error_from_exception(exc: Exception) -> ErrorResponse:
    if isinstance(
        exc, (GenerationError, OrchestrationError, StorageError, ExportError)
    ):
        return exc.info.to_error_response()
    if isinstance(exc, ValidationError):
        message = "Validation failed"
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = first.get("loc", [])
            label = ".".join(str(part) for part in loc) if loc else ""
            detail = first.get("msg", "")
            if label and detail:
                message = f"Validation failed: {label} - {detail}"
            elif detail:
                message = f"Validation failed: {detail}"
        return ErrorResponse(code="validation_error", message=message, details=None)
    if isinstance(exc, _ConfigError):
        return ErrorResponse(code="config_error", message=str(exc), details=None)
    if isinstance(exc, ValueError):
        return ErrorResponse(code="validation_error", message=str(exc), details=None)
    return ErrorResponse(code="runtime_error", message=str(exc), details=None)


if __name__ == "__main__":
    app()
