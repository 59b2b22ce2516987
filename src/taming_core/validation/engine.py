"""Validation engine running copy and visual checks."""

from __future__ import annotations

from collections.abc import Sequence

from taming_core.modes import COPY_RULES, CopyRules, get_mode_profile
from taming_core.validation.protocol import (
    CopyCheck,
    ValidationCheckResult,
    VisualCheck,
    VisualCheckContext,
)
from taming_core.validation.registry import (
    DEFAULT_COPY_CHECKS,
    DEFAULT_VISUAL_CHECKS,
    CheckRegistry,
    get_default_registry,
)
from taming_schemas.primitives import ValidationPhase
from taming_schemas.protocol import (
    CopyOutput,
    InputModel,
    JudgmentContent,
    ValidationFinding,
    VisualOutput,
)


class ValidationEngine:
    """Runs the configured checks and folds results into findings.

    The engine is stateless between calls. Both entry points are no-ops
    when the inputs they depend on are empty.
    """

    def __init__(
        self,
        registry: CheckRegistry | None = None,
        copy_checks: Sequence[str] = DEFAULT_COPY_CHECKS,
        visual_checks: Sequence[str] = DEFAULT_VISUAL_CHECKS,
        copy_rules: CopyRules = COPY_RULES,
    ) -> None:
        """Initialize the engine.

        Args:
            registry: Check registry to use. If None, uses the default
                registry with all built-in checks.
            copy_checks: Names of copy checks to run, in order.
            visual_checks: Names of visual checks to run, in order.
            copy_rules: Copy validation constants.
        """
        resolved = registry or get_default_registry()
        self._copy_checks: list[CopyCheck] = [
            resolved.create_copy(name) for name in copy_checks
        ]
        self._visual_checks: list[VisualCheck] = [
            resolved.create_visual(name) for name in visual_checks
        ]
        self._copy_rules = copy_rules

    def validate_copy(
        self,
        judgment: JudgmentContent | None,
        copy_output: CopyOutput | None,
    ) -> list[ValidationCheckResult]:
        """Validate narrative copy against its anchoring judgment.

        Args:
            judgment: Confirmed judgment, if any.
            copy_output: Copy to validate, if any.

        Returns:
            Check results in check order. Empty when either input is empty.
        """
        if judgment is None or copy_output is None:
            return []
        if not judgment.judgment_lock or not copy_output.narrative_spine:
            return []
        results: list[ValidationCheckResult] = []
        for check in self._copy_checks:
            results.extend(check.check_copy(judgment, copy_output, self._copy_rules))
        return results

    def validate_visual(
        self,
        judgment: JudgmentContent | None,
        visual: VisualOutput | None,
        input_model: InputModel,
        *,
        copy_has_warning: bool = False,
    ) -> list[ValidationCheckResult]:
        """Validate the visual scene sequence for the input's mode.

        Args:
            judgment: Confirmed judgment, if any.
            visual: Visual output to validate, if any.
            input_model: Input configuration selecting mode and language.
            copy_has_warning: Whether the copy phase produced findings.

        Returns:
            Check results in check order. Empty when there is no judgment
            lock or no visual output.
        """
        if judgment is None or visual is None or not judgment.judgment_lock:
            return []
        context = VisualCheckContext(
            input_model=input_model,
            rules=get_mode_profile(input_model.mode).visual_rules,
            copy_has_warning=copy_has_warning,
        )
        results: list[ValidationCheckResult] = []
        for check in self._visual_checks:
            results.extend(check.check_visual(visual, context))
        return results


def to_finding(
    phase: ValidationPhase, results: Sequence[ValidationCheckResult]
) -> ValidationFinding | None:
    """Fold the results of one phase into a single finding.

    Args:
        phase: Phase the results belong to.
        results: Check results for that phase.

    Returns:
        ValidationFinding with one reason per result, or None if empty.
    """
    if not results:
        return None
    return ValidationFinding(
        phase=phase, reasons=[result.message for result in results]
    )
