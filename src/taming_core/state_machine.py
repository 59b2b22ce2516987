"""Protocol state machine: pure transitions over ProtocolState."""

from __future__ import annotations

from taming_schemas.intents import (
    REPLAY_SAFE_INTENTS,
    ConfirmJudgment,
    DeleteRun,
    ExitReplay,
    IngestPipelineResult,
    Intent,
    LoadState,
    ReuseInput,
    ReuseJudgment,
    ResetProtocol,
    SetIntensity,
    SetJudgmentDraft,
    SetMode,
    SetOutputScale,
    SetTopic,
    SetVisualLanguage,
    ToggleConstraint,
    ViewRun,
)
from taming_schemas.primitives import PipelineStatus, RunStatus, ValidationStatus
from taming_schemas.protocol import (
    InputModel,
    JudgmentOutput,
    OutputModel,
    ProtocolState,
    Run,
)

_STATUS_BY_PIPELINE_STATUS = {
    PipelineStatus.COMPLETED: ValidationStatus.OK,
    PipelineStatus.WARNING: ValidationStatus.WARNING,
    PipelineStatus.FAILED: ValidationStatus.FAILED,
}


def default_state() -> ProtocolState:
    """Return the initial protocol state."""
    return ProtocolState()


def is_accepted(state: ProtocolState, intent: Intent) -> bool:
    """Whether the intent is honored in the current state.

    Args:
        state: Current state.
        intent: Intent to check.

    Returns:
        bool: False for non-replay-safe intents while replaying.
    """
    return not state.is_replaying or isinstance(intent, REPLAY_SAFE_INTENTS)


def apply(state: ProtocolState, intent: Intent) -> ProtocolState:
    """Apply one intent and return the next state.

    The input state is never mutated. Rejected intents return the input
    state unchanged.

    Args:
        state: Current state.
        intent: Intent to apply.

    Returns:
        ProtocolState: Next state.
    """
    if not is_accepted(state, intent):
        return state

    match intent:
        case SetMode(mode=mode):
            return _with_input(state, mode=mode)
        case SetTopic(topic=topic):
            return _with_input(state, topic=topic)
        case SetIntensity(intensity=intensity):
            return _with_input(state, intensity=intensity)
        case SetOutputScale(output_scale=output_scale):
            return _with_input(state, output_scale=output_scale)
        case SetVisualLanguage(visual_language=visual_language):
            return _with_input(state, visual_language=visual_language)
        case ToggleConstraint(tag=tag):
            constraints = list(state.input.constraints)
            if tag in constraints:
                constraints.remove(tag)
            else:
                constraints.append(tag)
            return _with_input(state, constraints=constraints)
        case SetJudgmentDraft(draft=draft):
            # Downstream output belonged to the previous judgment.
            return state.model_copy(
                update={
                    "output": OutputModel(judgment=JudgmentOutput(draft=draft)),
                    "status": ValidationStatus.OK,
                    "findings": [],
                }
            )
        case ConfirmJudgment():
            draft = state.output.judgment.draft
            if draft is None:
                return state
            judgment = state.output.judgment.model_copy(update={"confirmed": draft})
            return state.model_copy(
                update={
                    "output": state.output.model_copy(update={"judgment": judgment})
                }
            )
        case IngestPipelineResult(result=result):
            run = result.run
            return state.model_copy(
                update={
                    "output": run.output,
                    "status": _STATUS_BY_PIPELINE_STATUS[PipelineStatus(result.status)],
                    "findings": list(run.findings),
                    "runs": [run, *state.runs],
                }
            )
        case ViewRun(run_id=run_id):
            run = state.find_run(run_id)
            if run is None:
                return state
            return state.model_copy(
                update={
                    "viewing_run_id": run.id,
                    "input": run.input,
                    "output": run.output,
                    "status": replay_status(run),
                    "findings": list(run.findings),
                }
            )
        case ExitReplay():
            return _cleared(state, input_model=state.input, output=OutputModel())
        case ReuseInput(run_id=run_id):
            run = state.find_run(run_id)
            if run is None:
                return state
            return _cleared(state, input_model=run.input, output=OutputModel())
        case ReuseJudgment(run_id=run_id):
            run = state.find_run(run_id)
            if run is None:
                return state
            judgment = JudgmentOutput(
                draft=run.output.judgment.draft,
                confirmed=run.output.judgment.confirmed,
            )
            return _cleared(
                state, input_model=run.input, output=OutputModel(judgment=judgment)
            )
        case DeleteRun(run_id=run_id):
            return state.model_copy(
                update={"runs": [run for run in state.runs if run.id != run_id]}
            )
        case ResetProtocol():
            defaults = default_state()
            return defaults.model_copy(
                update={
                    "input": InputModel(mode=state.input.mode),
                    "runs": list(state.runs),
                }
            )
        case LoadState(state=loaded):
            return loaded
    return state


def replay_status(run: Run) -> ValidationStatus:
    """Derive the aggregate status shown while replaying a run."""
    if run.status == RunStatus.FAILED:
        return ValidationStatus.FAILED
    if run.findings:
        return ValidationStatus.WARNING
    return ValidationStatus.OK


def _with_input(state: ProtocolState, **changes: object) -> ProtocolState:
    return state.model_copy(
        update={"input": state.input.model_copy(update=changes)}
    )


def _cleared(
    state: ProtocolState, *, input_model: InputModel, output: OutputModel
) -> ProtocolState:
    return state.model_copy(
        update={
            "viewing_run_id": None,
            "input": input_model,
            "output": output,
            "status": ValidationStatus.OK,
            "findings": [],
        }
    )
