"""Forbidden vocabulary check."""

from __future__ import annotations

from taming_core.validation.protocol import (
    ValidationCheckResult,
    VisualCheckContext,
    find_term,
    prompt_body,
)
from taming_schemas.primitives import FindingSeverity, ValidationPhase
from taming_schemas.protocol import VisualOutput


class ForbiddenTermsCheck:
    """Block prompts containing the mode's forbidden vocabulary."""

    check_name = "forbidden_terms"

    def check_visual(
        self,
        visual: VisualOutput,
        context: VisualCheckContext,
    ) -> list[ValidationCheckResult]:
        """Report the first forbidden term found in each scene prompt."""
        terms = context.rules.forbidden_terms
        if not terms:
            return []
        results: list[ValidationCheckResult] = []
        for scene in visual.scenes:
            term = find_term(prompt_body(scene.prompt_text, context.rules), terms)
            if term is None:
                continue
            results.append(
                ValidationCheckResult(
                    check_name=self.check_name,
                    phase=ValidationPhase.VISUAL,
                    severity=FindingSeverity.BLOCKING,
                    message=f'Scene {scene.id}: forbidden term "{term}"',
                    scene_id=scene.id,
                    metadata={"term": term},
                )
            )
        return results
