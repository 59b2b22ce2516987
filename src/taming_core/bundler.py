"""Assemble phase outputs and validation results into a run record."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from taming_core.validation import ValidationCheckResult, to_finding
from taming_schemas.primitives import PipelineStatus, RunStatus, ValidationPhase
from taming_schemas.protocol import (
    InputModel,
    OutputModel,
    PipelineResult,
    Run,
    ValidationFinding,
)


def derive_status(
    copy_results: Sequence[ValidationCheckResult],
    visual_results: Sequence[ValidationCheckResult],
) -> PipelineStatus:
    """Derive the pipeline status from validation results.

    Any blocking visual result fails the run. Any copy result or advisory
    visual result downgrades it to a warning.

    Args:
        copy_results: Copy check results.
        visual_results: Visual check results.

    Returns:
        PipelineStatus: Derived status.
    """
    if any(result.is_blocking for result in visual_results):
        return PipelineStatus.FAILED
    if copy_results or visual_results:
        return PipelineStatus.WARNING
    return PipelineStatus.COMPLETED


def bundle_run(
    input_model: InputModel,
    output: OutputModel,
    copy_results: Sequence[ValidationCheckResult],
    visual_results: Sequence[ValidationCheckResult],
    *,
    run_id: UUID,
    created_at: str,
) -> PipelineResult:
    """Bundle one pipeline invocation into an immutable run.

    Args:
        input_model: Input the run was generated from.
        output: Full phase output.
        copy_results: Copy check results.
        visual_results: Visual check results.
        run_id: Time-ordered run identifier.
        created_at: ISO-8601 creation timestamp.

    Returns:
        PipelineResult: Run record and derived status.
    """
    findings: list[ValidationFinding] = []
    for phase, results in (
        (ValidationPhase.COPY, copy_results),
        (ValidationPhase.VISUAL, visual_results),
    ):
        finding = to_finding(phase, results)
        if finding is not None:
            findings.append(finding)

    status = derive_status(copy_results, visual_results)
    run = Run(
        id=run_id,
        created_at=created_at,
        status=(
            RunStatus.FAILED if status == PipelineStatus.FAILED else RunStatus.COMPLETED
        ),
        input=input_model,
        output=output,
        findings=findings,
    )
    return PipelineResult(run=run, status=status)
