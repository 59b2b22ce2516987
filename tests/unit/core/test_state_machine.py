"""Unit tests for the protocol state machine."""

from __future__ import annotations

from uuid import uuid7

import pytest

from taming_core.bundler import bundle_run
from taming_core.export import check_export_allowed
from taming_core.ports.export import ExportError, ExportErrorCode
from taming_core.state_machine import apply, default_state, is_accepted
from taming_core.validation import ValidationCheckResult
from taming_schemas.intents import (
    ConfirmJudgment,
    DeleteRun,
    ExitReplay,
    IngestPipelineResult,
    LoadState,
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
    FindingSeverity,
    Mode,
    OutputScale,
    ValidationPhase,
    ValidationStatus,
    VisualLanguage,
)
from taming_schemas.protocol import (
    CopyOutput,
    InputModel,
    JudgmentContent,
    JudgmentOutput,
    OutputModel,
    PipelineResult,
    ProtocolState,
    Scene,
    VisualOutput,
)

CREATED_AT = "2026-01-26T12:00:00Z"


def _result(
    judgment: JudgmentContent,
    copy_output: CopyOutput,
    *,
    topic: str = "isolation",
    copy_warning: bool = False,
    visual_failure: bool = False,
) -> PipelineResult:
    copy_results = []
    visual_results = []
    if copy_warning:
        copy_results.append(
            ValidationCheckResult(
                check_name="anchor_binding",
                phase=ValidationPhase.COPY,
                severity=FindingSeverity.BLOCKING,
                message="copy drift",
            )
        )
    if visual_failure:
        visual_results.append(
            ValidationCheckResult(
                check_name="scene_count",
                phase=ValidationPhase.VISUAL,
                severity=FindingSeverity.BLOCKING,
                message="three scenes",
            )
        )
    output = OutputModel(
        judgment=JudgmentOutput(draft=judgment, confirmed=judgment),
        copywriting=copy_output,
        visual=VisualOutput(
            scenes=[
                Scene(id=index, prompt_text="an empty chair by the window")
                for index in range(1, 5)
            ]
        ),
    )
    return bundle_run(
        InputModel(topic=topic, intensity=4),
        output,
        copy_results,
        visual_results,
        run_id=uuid7(),
        created_at=CREATED_AT,
    )


@pytest.fixture
def ingested(
    isolation_judgment: JudgmentContent, anchored_copy: CopyOutput
) -> tuple[ProtocolState, PipelineResult]:
    """State after ingesting one clean run.

    Returns:
        tuple[ProtocolState, PipelineResult]: State and the ingested result.
    """
    result = _result(isolation_judgment, anchored_copy)
    state = apply(default_state(), IngestPipelineResult(result=result))
    return state, result


def test_default_state() -> None:
    """Defaults match the protocol's initial configuration."""
    state = default_state()
    assert state.version == 1
    assert state.input.mode == Mode.HUMAN_SILENCE
    assert state.input.intensity == 3
    assert state.status == ValidationStatus.OK
    assert state.runs == []
    assert not state.is_replaying


def test_input_intents_update_input_without_mutating() -> None:
    """Input intents return a new state and leave the old one intact."""
    state = default_state()

    updated = apply(state, SetTopic(topic="isolation"))
    updated = apply(updated, SetMode(mode=Mode.MIND_RIOT))
    updated = apply(updated, SetIntensity(intensity=5))
    updated = apply(updated, SetOutputScale(output_scale=OutputScale.ENHANCED))
    updated = apply(updated, SetVisualLanguage(visual_language=VisualLanguage.ZH_EN))

    assert state.input == InputModel()
    assert updated.input.topic == "isolation"
    assert updated.input.mode == Mode.MIND_RIOT
    assert updated.input.intensity == 5
    assert updated.input.output_scale == OutputScale.ENHANCED
    assert updated.input.is_bilingual


def test_toggle_constraint_adds_then_removes() -> None:
    """Toggling twice restores the original tags."""
    state = apply(default_state(), ToggleConstraint(tag="更克制"))
    state = apply(state, ToggleConstraint(tag="更锋利"))
    assert state.input.constraints == ["更克制", "更锋利"]

    state = apply(state, ToggleConstraint(tag="更克制"))
    assert state.input.constraints == ["更锋利"]


def test_confirm_judgment_requires_draft(isolation_judgment: JudgmentContent) -> None:
    """Confirmation is a no-op without a draft and copies it otherwise."""
    state = default_state()
    assert apply(state, ConfirmJudgment()) == state

    drafted = apply(state, SetJudgmentDraft(draft=isolation_judgment))
    assert drafted.output.judgment.confirmed is None

    confirmed = apply(drafted, ConfirmJudgment())
    assert confirmed.output.judgment.confirmed == isolation_judgment


def test_ingest_records_run_and_status(
    isolation_judgment: JudgmentContent, anchored_copy: CopyOutput
) -> None:
    """Ingest prepends the run and maps the derived status."""
    first = _result(isolation_judgment, anchored_copy)
    second = _result(isolation_judgment, anchored_copy, copy_warning=True)

    state = apply(default_state(), IngestPipelineResult(result=first))
    state = apply(state, IngestPipelineResult(result=second))

    assert [run.id for run in state.runs] == [second.run.id, first.run.id]
    assert state.status == ValidationStatus.WARNING
    assert state.findings == second.run.findings
    assert state.output == second.run.output


def test_view_run_enters_replay(
    ingested: tuple[ProtocolState, PipelineResult],
) -> None:
    """Viewing a run mirrors its input and output."""
    state, result = ingested
    state = apply(state, SetTopic(topic="something else"))

    replay = apply(state, ViewRun(run_id=result.run.id))

    assert replay.is_replaying
    assert replay.viewing_run_id == result.run.id
    assert replay.input == result.run.input
    assert replay.output == result.run.output
    assert replay.status == ValidationStatus.OK


def test_view_run_derives_failed_status(
    isolation_judgment: JudgmentContent, anchored_copy: CopyOutput
) -> None:
    """Failed runs replay with a failed status."""
    result = _result(isolation_judgment, anchored_copy, visual_failure=True)
    state = apply(default_state(), IngestPipelineResult(result=result))
    state = apply(state, ExitReplay())

    replay = apply(state, ViewRun(run_id=result.run.id))

    assert replay.status == ValidationStatus.FAILED
    assert replay.findings == result.run.findings


def test_view_unknown_run_is_noop(
    ingested: tuple[ProtocolState, PipelineResult],
) -> None:
    """Unknown run ids leave the state unchanged."""
    state, _ = ingested
    assert apply(state, ViewRun(run_id=uuid7())) == state


def test_replay_ignores_input_mutations(
    ingested: tuple[ProtocolState, PipelineResult],
    isolation_judgment: JudgmentContent,
) -> None:
    """While replaying, input and output mutations are ignored."""
    state, result = ingested
    replay = apply(state, ViewRun(run_id=result.run.id))

    for intent in (
        SetTopic(topic="changed"),
        SetMode(mode=Mode.MIND_RIOT),
        ToggleConstraint(tag="更荒诞"),
        SetJudgmentDraft(draft=isolation_judgment),
        ConfirmJudgment(),
        IngestPipelineResult(result=result),
        ResetProtocol(),
    ):
        assert not is_accepted(replay, intent)
        assert apply(replay, intent) == replay

    assert replay.input.topic == "isolation"


def test_exit_replay_clears_output(
    ingested: tuple[ProtocolState, PipelineResult],
) -> None:
    """Leaving replay keeps the input and clears the output."""
    state, result = ingested
    replay = apply(state, ViewRun(run_id=result.run.id))

    exited = apply(replay, ExitReplay())

    assert not exited.is_replaying
    assert exited.input == result.run.input
    assert exited.output == OutputModel()
    assert exited.status == ValidationStatus.OK
    assert exited.findings == []
    assert exited.runs == replay.runs


def test_exit_replay_outside_replay_clears_output(
    ingested: tuple[ProtocolState, PipelineResult],
) -> None:
    """Exiting when not replaying still resets the working output."""
    state, result = ingested
    warned = state.model_copy(update={"status": ValidationStatus.WARNING})

    exited = apply(warned, ExitReplay())

    assert exited.viewing_run_id is None
    assert exited.input == state.input
    assert exited.output == OutputModel()
    assert exited.status == ValidationStatus.OK
    assert exited.findings == []
    assert [run.id for run in exited.runs] == [result.run.id]


def test_new_draft_discards_failed_output(
    isolation_judgment: JudgmentContent, anchored_copy: CopyOutput
) -> None:
    """A fresh draft drops the previous run's output and cannot be exported."""
    result = _result(isolation_judgment, anchored_copy, visual_failure=True)
    state = apply(default_state(), IngestPipelineResult(result=result))
    assert state.status == ValidationStatus.FAILED

    drafted = apply(state, SetJudgmentDraft(draft=isolation_judgment))

    assert drafted.output == OutputModel(
        judgment=JudgmentOutput(draft=isolation_judgment)
    )
    assert drafted.status == ValidationStatus.OK
    assert drafted.runs == state.runs
    with pytest.raises(ExportError) as exc_info:
        check_export_allowed(drafted)
    assert exc_info.value.info.code == ExportErrorCode.NOTHING_TO_EXPORT


def test_reuse_input_clears_output(
    ingested: tuple[ProtocolState, PipelineResult],
) -> None:
    """Reusing a run's input starts over with an empty output."""
    state, result = ingested
    replay = apply(state, ViewRun(run_id=result.run.id))

    reused = apply(replay, ReuseInput(run_id=result.run.id))

    assert reused.viewing_run_id is None
    assert reused.input == result.run.input
    assert reused.output == OutputModel()


def test_reuse_judgment_keeps_confirmed_judgment(
    ingested: tuple[ProtocolState, PipelineResult],
    isolation_judgment: JudgmentContent,
) -> None:
    """Reusing a judgment keeps it confirmed and empties later phases."""
    state, result = ingested
    replay = apply(state, ViewRun(run_id=result.run.id))

    reused = apply(replay, ReuseJudgment(run_id=result.run.id))

    assert reused.output.judgment.confirmed == isolation_judgment
    assert reused.output.copywriting == CopyOutput()
    assert reused.output.visual.scenes == []
    assert reused.viewing_run_id is None
    assert reused.status == ValidationStatus.OK


def test_delete_run_removes_history_entry(
    ingested: tuple[ProtocolState, PipelineResult],
) -> None:
    """Deleting is allowed during replay and keeps the other runs."""
    state, result = ingested
    replay = apply(state, ViewRun(run_id=result.run.id))

    deleted = apply(replay, DeleteRun(run_id=result.run.id))

    assert deleted.runs == []
    assert deleted.viewing_run_id == result.run.id


def test_reset_keeps_mode_and_history(
    ingested: tuple[ProtocolState, PipelineResult],
) -> None:
    """Reset restores defaults apart from mode and run history."""
    state, _ = ingested
    state = apply(state, SetMode(mode=Mode.MIND_RIOT))

    reset = apply(state, ResetProtocol())

    assert reset.input == InputModel(mode=Mode.MIND_RIOT)
    assert reset.output == OutputModel()
    assert reset.runs == state.runs


def test_load_state_replaces_everything(
    ingested: tuple[ProtocolState, PipelineResult],
) -> None:
    """Loading replaces the state wholesale, even during replay."""
    state, result = ingested
    replay = apply(state, ViewRun(run_id=result.run.id))

    loaded = apply(replay, LoadState(state=default_state()))

    assert loaded == default_state()
