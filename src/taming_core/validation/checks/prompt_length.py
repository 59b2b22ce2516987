"""Prompt body length check."""

from __future__ import annotations

from taming_core.validation.protocol import (
    ValidationCheckResult,
    VisualCheckContext,
    prompt_body,
)
from taming_schemas.primitives import FindingSeverity, ValidationPhase
from taming_schemas.protocol import VisualOutput


class PromptLengthCheck:
    """Require a minimum prompt body length.

    When the mode defines an escalated threshold and the copy phase has
    findings, the stricter threshold applies.
    """

    check_name = "prompt_length"

    def check_visual(
        self,
        visual: VisualOutput,
        context: VisualCheckContext,
    ) -> list[ValidationCheckResult]:
        """Check the prompt body of each scene.

        Returns:
            One blocking result per scene below the effective threshold.
        """
        rules = context.rules
        escalated = (
            context.copy_has_warning and rules.escalated_min_prompt_length is not None
        )
        threshold = (
            rules.escalated_min_prompt_length
            if escalated and rules.escalated_min_prompt_length is not None
            else rules.min_prompt_length
        )
        results: list[ValidationCheckResult] = []
        for scene in visual.scenes:
            length = len(prompt_body(scene.prompt_text, rules))
            if length >= threshold:
                continue
            qualifier = " (strict mode after copy warning)" if escalated else ""
            results.append(
                ValidationCheckResult(
                    check_name=self.check_name,
                    phase=ValidationPhase.VISUAL,
                    severity=FindingSeverity.BLOCKING,
                    message=(
                        f"Scene {scene.id}: prompt too short{qualifier} "
                        f"({length} < {threshold})"
                    ),
                    scene_id=scene.id,
                    metadata={"length": length, "threshold": threshold},
                )
            )
        return results
