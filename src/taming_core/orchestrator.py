"""Pipeline orchestrator for the four-phase generation sequence."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextvars import ContextVar
from datetime import UTC, datetime
from uuid import UUID, uuid7

from taming_core.bundler import bundle_run
from taming_core.fixtures import FixturePhaseGenerators
from taming_core.generators import LlmPhaseGenerators
from taming_core.ports.generation import GenerationClientProtocol, GenerationError
from taming_core.ports.orchestrator import (
    LogSinkProtocol,
    OrchestrationError,
    OrchestrationErrorCode,
    OrchestrationErrorDetails,
    OrchestrationErrorInfo,
    build_phase_log,
    build_retry_log,
    build_run_completed_log,
    build_run_failed_log,
    build_run_started_log,
)
from taming_core.ports.phases import PhaseGeneratorsProtocol
from taming_core.ports.random_source import RandomSourceProtocol
from taming_core.retry import RetryPolicy, SleepFunction
from taming_core.validation import ValidationEngine
from taming_schemas.events import PhaseEventSuffix
from taming_schemas.logs import LogEntry
from taming_schemas.primitives import (
    PIPELINE_PHASE_ORDER,
    SCENE_IDS,
    JsonValue,
    LogLevel,
    PhaseName,
    Timestamp,
)
from taming_schemas.protocol import (
    CoachOutput,
    CopyOutput,
    InputModel,
    JudgmentContent,
    JudgmentOutput,
    OutputModel,
    PipelineResult,
    VisualOutput,
)

DEFAULT_OFFLINE_LATENCY_S = 1.0

type RunBody = Callable[[UUID], Awaitable[PipelineResult]]

_active_run_id: ContextVar[UUID | None] = ContextVar("_active_run_id", default=None)


class PipelineOrchestrator:
    """Run pipeline entry points and bundle their results.

    Every entry point validates its dependencies, executes its phases in
    order and ends with bundling. A failure in any phase aborts the
    invocation and propagates after a ``run_failed`` log entry.
    """

    def __init__(
        self,
        generators: PhaseGeneratorsProtocol,
        *,
        validation_engine: ValidationEngine | None = None,
        log_sink: LogSinkProtocol | None = None,
        clock: Callable[[], Timestamp] | None = None,
        id_factory: Callable[[], UUID] = uuid7,
        latency_s: float = 0.0,
        sleep: SleepFunction = asyncio.sleep,
        offline: bool = False,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            generators: Phase generators producing each phase result.
            validation_engine: Engine validating copy and visual output.
            log_sink: Optional sink for structured lifecycle logs.
            clock: Optional timestamp provider.
            id_factory: Factory for time-ordered run ids.
            latency_s: Artificial latency awaited once per invocation.
            sleep: Awaitable sleep used for the artificial latency.
            offline: Whether the generators are fixtures.
        """
        self._generators = generators
        self._validation = validation_engine or ValidationEngine()
        self._log_sink = log_sink
        self._clock = clock or _now_timestamp
        self._id_factory = id_factory
        self._latency_s = latency_s
        self._sleep = sleep
        self._offline = offline

    @classmethod
    def offline(
        cls,
        *,
        latency_s: float = DEFAULT_OFFLINE_LATENCY_S,
        log_sink: LogSinkProtocol | None = None,
        clock: Callable[[], Timestamp] | None = None,
        sleep: SleepFunction = asyncio.sleep,
    ) -> PipelineOrchestrator:
        """Build an orchestrator sourcing every phase from fixtures.

        Returns:
            PipelineOrchestrator: Offline orchestrator with fixed latency.
        """
        return cls(
            FixturePhaseGenerators(),
            log_sink=log_sink,
            clock=clock,
            latency_s=latency_s,
            sleep=sleep,
            offline=True,
        )

    @classmethod
    def online(
        cls,
        client: GenerationClientProtocol,
        *,
        retry_policy: RetryPolicy | None = None,
        random_source: RandomSourceProtocol | None = None,
        log_sink: LogSinkProtocol | None = None,
        clock: Callable[[], Timestamp] | None = None,
        sleep: SleepFunction = asyncio.sleep,
    ) -> PipelineOrchestrator:
        """Build an orchestrator calling the generation service.

        Scheduled retries of any phase request are recorded in the run log.

        Returns:
            PipelineOrchestrator: Orchestrator backed by service generators.
        """
        generators = LlmPhaseGenerators(
            client,
            retry_policy=retry_policy,
            random_source=random_source,
            sleep=sleep,
        )
        orchestrator = cls(generators, log_sink=log_sink, clock=clock, sleep=sleep)
        generators.on_retry = orchestrator.record_retry
        return orchestrator

    @property
    def generators(self) -> PhaseGeneratorsProtocol:
        """Phase generators used by this orchestrator."""
        return self._generators

    async def record_retry(
        self, phase: PhaseName, attempt: int, delay_s: float, error: BaseException
    ) -> None:
        """Log a scheduled retry against the invocation in progress.

        Retries outside a pipeline invocation, such as judgment drafts or
        translations, have no run to attach to and are not logged.
        """
        run_id = _active_run_id.get()
        if run_id is None:
            return
        await self._emit_log(
            build_retry_log(
                self._clock(), run_id, phase, attempt, delay_s, str(error)
            )
        )

    async def run_full(self, input_model: InputModel) -> PipelineResult:
        """Run Judgment, Copy, Visual and Coach from raw input.

        Args:
            input_model: Input configuration.

        Returns:
            PipelineResult: Bundled run and derived status.
        """

        async def _body(run_id: UUID) -> PipelineResult:
            judgment = await self._phase(
                run_id,
                PhaseName.JUDGMENT,
                lambda: self._generators.judgment(input_model),
            )
            return await self._continue_from_copy(run_id, input_model, judgment)

        return await self._execute("full", input_model, PIPELINE_PHASE_ORDER, _body)

    async def run_from_copy(
        self, input_model: InputModel, judgment: JudgmentContent | None
    ) -> PipelineResult:
        """Run Copy, Visual and Coach from a confirmed judgment.

        Raises:
            OrchestrationError: If the judgment lock is missing.
        """
        confirmed = _require_judgment(judgment)

        async def _body(run_id: UUID) -> PipelineResult:
            return await self._continue_from_copy(run_id, input_model, confirmed)

        return await self._execute(
            "from_copy", input_model, PIPELINE_PHASE_ORDER[1:], _body
        )

    async def run_from_visual(
        self,
        input_model: InputModel,
        judgment: JudgmentContent | None,
        copy_output: CopyOutput | None,
    ) -> PipelineResult:
        """Run Visual and Coach from a judgment and existing copy.

        Raises:
            OrchestrationError: If the judgment lock or copy is missing.
        """
        confirmed = _require_judgment(judgment)
        narrative = _require_copy(copy_output)

        async def _body(run_id: UUID) -> PipelineResult:
            return await self._continue_from_visual(
                run_id, input_model, confirmed, narrative
            )

        return await self._execute(
            "from_visual", input_model, PIPELINE_PHASE_ORDER[2:], _body
        )

    async def regenerate_scene(
        self,
        input_model: InputModel,
        judgment: JudgmentContent | None,
        copy_output: CopyOutput | None,
        visual: VisualOutput | None,
        scene_id: int,
    ) -> PipelineResult:
        """Regenerate one scene and re-run Coach against the updated scenes.

        Args:
            input_model: Input configuration.
            judgment: Confirmed judgment.
            copy_output: Existing copy.
            visual: Existing visual output containing the scene.
            scene_id: Scene to replace.

        Returns:
            PipelineResult: Bundled run with only the requested scene replaced.

        Raises:
            OrchestrationError: If dependencies are missing or the scene id is
                invalid or absent.
        """
        confirmed = _require_judgment(judgment)
        narrative = _require_copy(copy_output)
        if visual is None or not visual.scenes:
            raise _missing_dependency([PhaseName.VISUAL])
        if scene_id not in SCENE_IDS or scene_id not in visual.scene_ids():
            raise OrchestrationError(
                OrchestrationErrorInfo(
                    code=OrchestrationErrorCode.INVALID_SCENE,
                    message=f"Scene {scene_id} cannot be regenerated",
                    details=OrchestrationErrorDetails(
                        phase=PhaseName.SCENE,
                        scene_id=scene_id,
                        reason=f"available scenes: {visual.scene_ids()}",
                    ),
                )
            )
        existing = visual

        async def _body(run_id: UUID) -> PipelineResult:
            scene = await self._phase(
                run_id,
                PhaseName.SCENE,
                lambda: self._generators.scene(
                    input_model,
                    confirmed.judgment_lock,
                    narrative.narrative_spine,
                    scene_id,
                ),
                scene_id=scene_id,
            )
            updated = existing.replace_scene(scene)
            coach = await self._run_coach(
                run_id, input_model, confirmed, narrative, updated
            )
            return await self._finalize(
                run_id, input_model, confirmed, narrative, updated, coach
            )

        return await self._execute(
            "regenerate_scene",
            input_model,
            [PhaseName.SCENE, PhaseName.COACH],
            _body,
        )

    async def _execute(
        self,
        entry_point: str,
        input_model: InputModel,
        phases: list[PhaseName],
        body: RunBody,
    ) -> PipelineResult:
        run_id = self._id_factory()
        await self._emit_log(
            build_run_started_log(
                self._clock(), run_id, entry_point, phases, offline=self._offline
            )
        )
        if self._latency_s > 0:
            await self._sleep(self._latency_s)
        token = _active_run_id.set(run_id)
        try:
            return await body(run_id)
        except (GenerationError, OrchestrationError) as exc:
            await self._emit_run_failure(run_id, str(exc), str(exc.info.code))
            raise
        except Exception as exc:
            await self._emit_run_failure(
                run_id, str(exc), str(OrchestrationErrorCode.PHASE_EXECUTION_FAILED)
            )
            raise
        finally:
            _active_run_id.reset(token)

    async def _continue_from_copy(
        self, run_id: UUID, input_model: InputModel, judgment: JudgmentContent
    ) -> PipelineResult:
        copy_output = await self._phase(
            run_id,
            PhaseName.COPY,
            lambda: self._generators.copywriting(input_model, judgment.judgment_lock),
        )
        return await self._continue_from_visual(
            run_id, input_model, judgment, copy_output
        )

    async def _continue_from_visual(
        self,
        run_id: UUID,
        input_model: InputModel,
        judgment: JudgmentContent,
        copy_output: CopyOutput,
    ) -> PipelineResult:
        visual = await self._phase(
            run_id,
            PhaseName.VISUAL,
            lambda: self._generators.visual(
                input_model, judgment.judgment_lock, copy_output.narrative_spine
            ),
        )
        coach = await self._run_coach(
            run_id, input_model, judgment, copy_output, visual
        )
        return await self._finalize(
            run_id, input_model, judgment, copy_output, visual, coach
        )

    async def _run_coach(
        self,
        run_id: UUID,
        input_model: InputModel,
        judgment: JudgmentContent,
        copy_output: CopyOutput,
        visual: VisualOutput,
    ) -> CoachOutput:
        return await self._phase(
            run_id,
            PhaseName.COACH,
            lambda: self._generators.coach(
                input_model,
                judgment.judgment_lock,
                copy_output.narrative_spine,
                list(visual.scenes),
            ),
        )

    async def _finalize(
        self,
        run_id: UUID,
        input_model: InputModel,
        judgment: JudgmentContent,
        copy_output: CopyOutput,
        visual: VisualOutput,
        coach: CoachOutput,
    ) -> PipelineResult:
        copy_results = self._validation.validate_copy(judgment, copy_output)
        visual_results = self._validation.validate_visual(
            judgment,
            visual,
            input_model,
            copy_has_warning=bool(copy_results),
        )
        output = OutputModel(
            judgment=JudgmentOutput(draft=judgment, confirmed=judgment),
            copywriting=copy_output,
            visual=visual,
            coach=coach,
        )
        result = bundle_run(
            input_model,
            output,
            copy_results,
            visual_results,
            run_id=run_id,
            created_at=self._clock(),
        )
        await self._emit_log(
            build_run_completed_log(
                self._clock(),
                run_id,
                result.status,
                len(copy_results) + len(visual_results),
            )
        )
        return result

    async def _phase[T](
        self,
        run_id: UUID,
        phase: PhaseName,
        operation: Callable[[], Awaitable[T]],
        *,
        scene_id: int | None = None,
    ) -> T:
        data: dict[str, JsonValue] | None = (
            {"scene_id": scene_id} if scene_id is not None else None
        )
        await self._emit_log(
            build_phase_log(
                self._clock(),
                run_id,
                phase,
                PhaseEventSuffix.STARTED,
                "Phase started",
                data=data,
            )
        )
        try:
            result = await operation()
        except Exception as exc:
            await self._emit_log(
                build_phase_log(
                    self._clock(),
                    run_id,
                    phase,
                    PhaseEventSuffix.FAILED,
                    str(exc) or "Phase failed",
                    data=data,
                    level=LogLevel.ERROR,
                )
            )
            raise
        await self._emit_log(
            build_phase_log(
                self._clock(),
                run_id,
                phase,
                PhaseEventSuffix.COMPLETED,
                "Phase completed",
                data=data,
            )
        )
        return result

    async def _emit_run_failure(
        self, run_id: UUID, message: str, error_code: str
    ) -> None:
        await self._emit_log(
            build_run_failed_log(
                self._clock(),
                run_id,
                message or "Run failed",
                error_code=error_code,
                why=message or "Phase raised without a message",
                next_action="Retry the run or switch to offline mode",
            )
        )

    async def _emit_log(self, entry: LogEntry) -> None:
        if self._log_sink is None:
            return
        await self._log_sink.emit_log(entry)


def _now_timestamp() -> Timestamp:
    value = datetime.now(tz=UTC).isoformat()
    return value.replace("+00:00", "Z")


def _missing_dependency(phases: list[PhaseName]) -> OrchestrationError:
    names = ", ".join(str(phase) for phase in phases)
    return OrchestrationError(
        OrchestrationErrorInfo(
            code=OrchestrationErrorCode.MISSING_DEPENDENCY,
            message=f"Missing upstream output: {names}",
            details=OrchestrationErrorDetails(missing_phases=phases),
        )
    )


def _require_judgment(judgment: JudgmentContent | None) -> JudgmentContent:
    if judgment is None or not judgment.judgment_lock:
        raise _missing_dependency([PhaseName.JUDGMENT])
    return judgment


def _require_copy(copy_output: CopyOutput | None) -> CopyOutput:
    if copy_output is None or not copy_output.narrative_spine:
        raise _missing_dependency([PhaseName.COPY])
    return copy_output
