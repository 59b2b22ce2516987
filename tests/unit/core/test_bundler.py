"""Unit tests for run bundling and status derivation."""

from __future__ import annotations

from uuid import uuid7

from taming_core.bundler import bundle_run, derive_status
from taming_core.validation import ValidationCheckResult
from taming_schemas.primitives import (
    FindingSeverity,
    PipelineStatus,
    RunStatus,
    ValidationPhase,
)
from taming_schemas.protocol import InputModel, OutputModel

CREATED_AT = "2026-01-26T12:00:00Z"


def _result(
    phase: ValidationPhase,
    severity: FindingSeverity = FindingSeverity.BLOCKING,
    message: str = "finding",
) -> ValidationCheckResult:
    return ValidationCheckResult(
        check_name="stub", phase=phase, severity=severity, message=message
    )


def test_derive_status_completed_without_results() -> None:
    """No results means a clean run."""
    assert derive_status([], []) == PipelineStatus.COMPLETED


def test_copy_results_only_warn() -> None:
    """Copy findings never fail a run, even blocking ones."""
    copy_results = [_result(ValidationPhase.COPY)]
    assert derive_status(copy_results, []) == PipelineStatus.WARNING


def test_advisory_visual_result_warns() -> None:
    """Advisory visual findings downgrade to a warning."""
    visual_results = [_result(ValidationPhase.VISUAL, FindingSeverity.ADVISORY)]
    assert derive_status([], visual_results) == PipelineStatus.WARNING


def test_blocking_visual_result_fails() -> None:
    """Blocking visual findings fail the run regardless of copy outcome."""
    visual_results = [_result(ValidationPhase.VISUAL)]
    assert derive_status([], visual_results) == PipelineStatus.FAILED
    assert (
        derive_status([_result(ValidationPhase.COPY)], visual_results)
        == PipelineStatus.FAILED
    )


def test_bundle_run_orders_findings_and_sets_run_status() -> None:
    """Findings are copy then visual; the stored flag is failed only on failure."""
    run_id = uuid7()
    result = bundle_run(
        InputModel(),
        OutputModel(),
        [_result(ValidationPhase.COPY, message="copy issue")],
        [
            _result(ValidationPhase.VISUAL, message="scene issue"),
            _result(ValidationPhase.VISUAL, FindingSeverity.ADVISORY, "hint"),
        ],
        run_id=run_id,
        created_at=CREATED_AT,
    )

    assert result.status == PipelineStatus.FAILED
    assert result.run.id == run_id
    assert result.run.created_at == CREATED_AT
    assert result.run.status == RunStatus.FAILED
    assert [finding.phase for finding in result.run.findings] == ["copy", "visual"]
    assert result.run.findings[1].reasons == ["scene issue", "hint"]


def test_bundle_run_warning_is_stored_as_completed() -> None:
    """A warned run is stored as completed with its findings attached."""
    result = bundle_run(
        InputModel(),
        OutputModel(),
        [_result(ValidationPhase.COPY)],
        [],
        run_id=uuid7(),
        created_at=CREATED_AT,
    )

    assert result.status == PipelineStatus.WARNING
    assert result.run.status == RunStatus.COMPLETED
    assert len(result.run.findings) == 1
