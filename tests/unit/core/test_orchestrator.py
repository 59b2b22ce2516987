"""Unit tests for pipeline orchestrator behavior."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from taming_core.export import check_export_allowed
from taming_core.orchestrator import PipelineOrchestrator
from taming_core.ports.export import ExportError, ExportErrorCode
from taming_core.ports.generation import (
    GenerationClientProtocol,
    GenerationError,
    GenerationErrorCode,
    GenerationErrorInfo,
)
from taming_core.ports.orchestrator import (
    LogSinkProtocol,
    OrchestrationError,
    OrchestrationErrorCode,
)
from taming_core.retry import RetryPolicy
from taming_core.state_machine import apply, default_state
from taming_schemas.intents import IngestPipelineResult
from taming_schemas.llm import (
    CoachResponse,
    CopyResponse,
    GenerationRequest,
    JudgmentResponse,
    SceneResponse,
    VisualResponse,
)
from taming_schemas.logs import LogEntry
from taming_schemas.primitives import (
    LogLevel,
    Mode,
    PhaseName,
    PipelineStatus,
    RunStatus,
    ValidationPhase,
)
from taming_schemas.protocol import (
    CoachOutput,
    CopyOutput,
    InputModel,
    JudgmentContent,
    Scene,
    VisualOutput,
)

CLOCK = "2026-01-26T12:00:00Z"
SCENE_PROMPT = (
    "A man folding laundry alone in a narrow hallway at dusk, shot on Leica "
    "M6 with 35mm lens, Kodak Portra 400 --style raw --v 6.0"
)


class _StubLogSink(LogSinkProtocol):
    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    async def emit_log(self, entry: LogEntry) -> None:
        self.entries.append(entry)


class _StubGenerators:
    def __init__(
        self,
        judgment: JudgmentContent,
        copy_output: CopyOutput,
        scene_count: int = 4,
        failing_phase: PhaseName | None = None,
    ) -> None:
        self._judgment = judgment
        self._copy = copy_output
        self._scene_count = scene_count
        self._failing_phase = failing_phase
        self.calls: list[str] = []
        self.coach_scenes: list[Scene] = []

    def _record(self, phase: PhaseName) -> None:
        self.calls.append(str(phase))
        if phase == self._failing_phase:
            raise GenerationError(
                GenerationErrorInfo(
                    code=GenerationErrorCode.SERVICE_ERROR,
                    message=f"{phase} exploded",
                )
            )

    async def judgment(self, input_model: InputModel) -> JudgmentContent:
        self._record(PhaseName.JUDGMENT)
        return self._judgment

    async def copywriting(
        self, input_model: InputModel, judgment_lock: str
    ) -> CopyOutput:
        self._record(PhaseName.COPY)
        return self._copy

    async def visual(
        self, input_model: InputModel, judgment_lock: str, narrative_spine: str
    ) -> VisualOutput:
        self._record(PhaseName.VISUAL)
        return VisualOutput(
            scenes=[
                Scene(id=index, prompt_text=SCENE_PROMPT)
                for index in range(1, self._scene_count + 1)
            ]
        )

    async def scene(
        self,
        input_model: InputModel,
        judgment_lock: str,
        narrative_spine: str,
        scene_id: int,
    ) -> Scene:
        self._record(PhaseName.SCENE)
        return Scene(id=scene_id, prompt_text=f"{SCENE_PROMPT} regenerated")

    async def coach(
        self,
        input_model: InputModel,
        judgment_lock: str,
        narrative_spine: str,
        scenes: list[Scene],
    ) -> CoachOutput:
        self._record(PhaseName.COACH)
        self.coach_scenes = list(scenes)
        return CoachOutput(did_right="kept it quiet")

    async def translate_judgment(self, content: JudgmentContent) -> JudgmentContent:
        return content

    async def translate_copy(self, content: CopyOutput) -> CopyOutput:
        return content


def _unanchored_copy() -> CopyOutput:
    return CopyOutput(
        narrative_spine="The kettle clicks off. Nobody pours the water.",
        key_lines=["Nobody pours."],
    )


def _orchestrator(
    generators: _StubGenerators, log_sink: LogSinkProtocol | None = None
) -> PipelineOrchestrator:
    return PipelineOrchestrator(generators, log_sink=log_sink, clock=lambda: CLOCK)


@pytest.mark.asyncio
async def test_full_run_with_unanchored_copy_warns(
    isolation_input: InputModel, isolation_judgment: JudgmentContent
) -> None:
    """Copy drift yields one copy finding and a warning, visual still runs."""
    generators = _StubGenerators(isolation_judgment, _unanchored_copy())

    result = await _orchestrator(generators).run_full(isolation_input)

    assert result.status == PipelineStatus.WARNING
    assert result.run.status == RunStatus.COMPLETED
    assert len(result.run.findings) == 1
    assert result.run.findings[0].phase == ValidationPhase.COPY
    assert len(result.run.findings[0].reasons) == 1
    assert generators.calls == ["judgment", "copy", "visual", "coach"]
    assert len(result.run.output.visual.scenes) == 4


@pytest.mark.asyncio
async def test_three_scenes_fail_run_and_refuse_export(
    isolation_input: InputModel, isolation_judgment: JudgmentContent
) -> None:
    """A short scene sequence fails the run and the export gate refuses it."""
    generators = _StubGenerators(
        isolation_judgment, _unanchored_copy(), scene_count=3
    )

    result = await _orchestrator(generators).run_full(isolation_input)
    state = apply(default_state(), IngestPipelineResult(result=result))

    assert result.status == PipelineStatus.FAILED
    assert result.run.status == RunStatus.FAILED
    assert [finding.phase for finding in result.run.findings] == ["copy", "visual"]
    with pytest.raises(ExportError) as exc_info:
        check_export_allowed(state, confirmed=True)
    assert exc_info.value.info.code == ExportErrorCode.REFUSED


@pytest.mark.asyncio
async def test_full_run_records_judgment_as_draft_and_confirmed(
    isolation_input: InputModel,
    isolation_judgment: JudgmentContent,
    anchored_copy: CopyOutput,
) -> None:
    """A clean run completes and stores the generated judgment."""
    generators = _StubGenerators(isolation_judgment, anchored_copy)

    result = await _orchestrator(generators).run_full(isolation_input)

    assert result.status == PipelineStatus.COMPLETED
    assert result.run.findings == []
    assert result.run.output.judgment.confirmed == isolation_judgment
    assert result.run.output.judgment.draft == isolation_judgment
    assert result.run.created_at == CLOCK


@pytest.mark.asyncio
async def test_lifecycle_logs_follow_phase_order(
    isolation_input: InputModel,
    isolation_judgment: JudgmentContent,
    anchored_copy: CopyOutput,
) -> None:
    """Run and phase lifecycle events are emitted in order."""
    sink = _StubLogSink()
    generators = _StubGenerators(isolation_judgment, anchored_copy)

    result = await _orchestrator(generators, sink).run_full(isolation_input)

    assert [entry.event for entry in sink.entries] == [
        "run_started",
        "judgment_started",
        "judgment_completed",
        "copy_started",
        "copy_completed",
        "visual_started",
        "visual_completed",
        "coach_started",
        "coach_completed",
        "run_completed",
    ]
    assert {entry.run_id for entry in sink.entries} == {result.run.id}
    assert sink.entries[0].data is not None
    assert sink.entries[0].data["entry_point"] == "full"
    assert sink.entries[-1].data == {"status": "completed", "finding_count": 0}


@pytest.mark.asyncio
async def test_run_ids_increase_across_runs(
    isolation_input: InputModel,
    isolation_judgment: JudgmentContent,
    anchored_copy: CopyOutput,
) -> None:
    """Run ids are time-ordered."""
    orchestrator = _orchestrator(_StubGenerators(isolation_judgment, anchored_copy))

    first = await orchestrator.run_full(isolation_input)
    second = await orchestrator.run_full(isolation_input)

    assert first.run.id < second.run.id


@pytest.mark.asyncio
async def test_resume_from_copy_requires_confirmed_judgment(
    isolation_input: InputModel,
    isolation_judgment: JudgmentContent,
    anchored_copy: CopyOutput,
) -> None:
    """Resuming without a judgment raises before any phase runs."""
    sink = _StubLogSink()
    generators = _StubGenerators(isolation_judgment, anchored_copy)

    with pytest.raises(OrchestrationError) as exc_info:
        await _orchestrator(generators, sink).run_from_copy(isolation_input, None)

    assert exc_info.value.info.code == OrchestrationErrorCode.MISSING_DEPENDENCY
    assert generators.calls == []
    assert sink.entries == []


@pytest.mark.asyncio
async def test_resume_from_visual_skips_judgment_and_copy(
    isolation_input: InputModel,
    isolation_judgment: JudgmentContent,
    anchored_copy: CopyOutput,
) -> None:
    """Resume-from-visual runs only Visual and Coach."""
    generators = _StubGenerators(isolation_judgment, anchored_copy)

    result = await _orchestrator(generators).run_from_visual(
        isolation_input, isolation_judgment, anchored_copy
    )

    assert generators.calls == ["visual", "coach"]
    assert result.run.output.copywriting == anchored_copy
    assert result.status == PipelineStatus.COMPLETED


@pytest.mark.asyncio
async def test_regenerate_scene_replaces_only_target_and_recoaches(
    isolation_input: InputModel,
    isolation_judgment: JudgmentContent,
    anchored_copy: CopyOutput,
) -> None:
    """Only the requested scene changes and Coach sees the updated set."""
    generators = _StubGenerators(isolation_judgment, anchored_copy)
    orchestrator = _orchestrator(generators)
    first = await orchestrator.run_full(isolation_input)
    existing = first.run.output.visual
    generators.calls.clear()

    result = await orchestrator.regenerate_scene(
        isolation_input, isolation_judgment, anchored_copy, existing, 2
    )

    scenes = result.run.output.visual.scenes
    assert generators.calls == ["scene", "coach"]
    assert [scene.id for scene in scenes] == [1, 2, 3, 4]
    assert scenes[1].prompt_text.endswith("regenerated")
    assert [scenes[i] for i in (0, 2, 3)] == [existing.scenes[i] for i in (0, 2, 3)]
    assert generators.coach_scenes == scenes


@pytest.mark.asyncio
@pytest.mark.parametrize("scene_id", [0, 5])
async def test_regenerate_scene_rejects_invalid_ids(
    scene_id: int,
    isolation_input: InputModel,
    isolation_judgment: JudgmentContent,
    anchored_copy: CopyOutput,
) -> None:
    """Scene ids outside 1-4 are rejected."""
    generators = _StubGenerators(isolation_judgment, anchored_copy)
    visual = VisualOutput(
        scenes=[Scene(id=index, prompt_text=SCENE_PROMPT) for index in range(1, 5)]
    )

    with pytest.raises(OrchestrationError) as exc_info:
        await _orchestrator(generators).regenerate_scene(
            isolation_input, isolation_judgment, anchored_copy, visual, scene_id
        )

    assert exc_info.value.info.code == OrchestrationErrorCode.INVALID_SCENE
    assert generators.calls == []


@pytest.mark.asyncio
async def test_regenerate_scene_requires_existing_visual(
    isolation_input: InputModel,
    isolation_judgment: JudgmentContent,
    anchored_copy: CopyOutput,
) -> None:
    """Regeneration needs an existing scene set."""
    generators = _StubGenerators(isolation_judgment, anchored_copy)

    with pytest.raises(OrchestrationError) as exc_info:
        await _orchestrator(generators).regenerate_scene(
            isolation_input, isolation_judgment, anchored_copy, VisualOutput(), 1
        )

    assert exc_info.value.info.code == OrchestrationErrorCode.MISSING_DEPENDENCY


@pytest.mark.asyncio
async def test_phase_failure_propagates_after_run_failed_log(
    isolation_input: InputModel,
    isolation_judgment: JudgmentContent,
    anchored_copy: CopyOutput,
) -> None:
    """A failing phase aborts the run and logs the failure."""
    sink = _StubLogSink()
    generators = _StubGenerators(
        isolation_judgment, anchored_copy, failing_phase=PhaseName.VISUAL
    )

    with pytest.raises(GenerationError):
        await _orchestrator(generators, sink).run_full(isolation_input)

    events = [entry.event for entry in sink.entries]
    assert events[-2:] == ["visual_failed", "run_failed"]
    assert "coach_started" not in events
    assert sink.entries[-1].data is not None
    assert sink.entries[-1].data["error_code"] == "service_error"


@pytest.mark.asyncio
async def test_offline_run_awaits_latency_once() -> None:
    """Offline mode sleeps the fixed latency once per invocation."""
    delays: list[float] = []

    async def _sleep(delay: float) -> None:
        delays.append(delay)

    orchestrator = PipelineOrchestrator.offline(sleep=_sleep, clock=lambda: CLOCK)

    result = await orchestrator.run_full(InputModel(topic="isolation"))

    assert delays == [1.0]
    assert result.status == PipelineStatus.COMPLETED
    assert len(result.run.output.visual.scenes) == 4


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        (Mode.HUMAN_SILENCE, PipelineStatus.FAILED),
        (Mode.MIND_RIOT, PipelineStatus.WARNING),
    ],
)
async def test_offline_drift_exercises_validation(
    mode: Mode, expected: PipelineStatus
) -> None:
    """Drift topics produce slogan copy and off-style scenes."""
    orchestrator = PipelineOrchestrator.offline(latency_s=0.0, clock=lambda: CLOCK)

    result = await orchestrator.run_full(InputModel(mode=mode, topic="drift test"))

    assert result.status == expected
    assert result.run.findings[0].phase == ValidationPhase.COPY


class _ScriptedClient(GenerationClientProtocol):
    def __init__(self, responses: list[BaseModel | Exception]) -> None:
        self.responses = responses

    async def generate(self, request: GenerationRequest) -> BaseModel:
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _busy() -> GenerationError:
    return GenerationError(
        GenerationErrorInfo(code=GenerationErrorCode.TRANSIENT, message="overloaded")
    )


@pytest.mark.asyncio
async def test_online_run_logs_scheduled_retries(
    isolation_input: InputModel,
    isolation_judgment: JudgmentContent,
    anchored_copy: CopyOutput,
) -> None:
    """Retries inside a phase are written to the run log before it completes."""
    delays: list[float] = []

    async def _sleep(delay: float) -> None:
        delays.append(delay)

    client = _ScriptedClient(
        [
            _busy(),
            CopyResponse(
                narrative_spine=anchored_copy.narrative_spine,
                resonance_lines=list(anchored_copy.key_lines),
            ),
            VisualResponse(
                scenes=[
                    SceneResponse(id=scene_id, prompt_text=SCENE_PROMPT)
                    for scene_id in (1, 2, 3, 4)
                ]
            ),
            CoachResponse(
                did_right="a",
                visual_tips="b",
                copy_tips="c",
                avoided="d",
                music_vibe="e",
            ),
        ]
    )
    sink = _StubLogSink()
    orchestrator = PipelineOrchestrator.online(
        client,
        retry_policy=RetryPolicy(max_jitter_s=0.0),
        log_sink=sink,
        clock=lambda: CLOCK,
        sleep=_sleep,
    )

    result = await orchestrator.run_from_copy(isolation_input, isolation_judgment)

    assert result.status == PipelineStatus.COMPLETED
    assert delays == [1.0]
    events = [entry.event for entry in sink.entries]
    assert events[:3] == ["run_started", "copy_started", "retry_scheduled"]
    retry = sink.entries[2]
    assert retry.run_id == result.run.id
    assert retry.phase == PhaseName.COPY
    assert retry.level == LogLevel.WARN
    assert retry.data == {
        "phase": "copy",
        "attempt": 1,
        "delay_s": 1.0,
        "error": "overloaded",
    }


@pytest.mark.asyncio
async def test_retries_outside_a_run_are_not_logged(
    isolation_input: InputModel,
) -> None:
    """Judgment drafts retry silently because they belong to no run."""

    async def _sleep(delay: float) -> None:
        return None

    client = _ScriptedClient(
        [
            _busy(),
            JudgmentResponse(
                observed_claim="a",
                operational_mechanism="b",
                failure_point="c",
                judgment_lock="Conclusion: isolation is a slow form of hunger.",
            ),
        ]
    )
    sink = _StubLogSink()
    orchestrator = PipelineOrchestrator.online(
        client, log_sink=sink, clock=lambda: CLOCK, sleep=_sleep
    )

    await orchestrator.generators.judgment(isolation_input)

    assert sink.entries == []
