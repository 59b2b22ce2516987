"""Context-sensitive anomaly vocabulary check."""

from __future__ import annotations

from taming_core.validation.protocol import (
    ValidationCheckResult,
    VisualCheckContext,
    find_term,
    prompt_body,
)
from taming_schemas.primitives import FindingSeverity, ValidationPhase
from taming_schemas.protocol import VisualOutput


class AnomalyContextCheck:
    """Judge anomaly terms by the context they appear in.

    Only the first anomaly term is considered. A danger context makes the
    finding blocking. Without any safe context it is advisory. A safe
    context without danger passes.
    """

    check_name = "anomaly_context"

    def check_visual(
        self,
        visual: VisualOutput,
        context: VisualCheckContext,
    ) -> list[ValidationCheckResult]:
        """Classify each scene prompt containing an anomaly term."""
        rules = context.rules
        if not rules.anomaly_terms:
            return []
        results: list[ValidationCheckResult] = []
        for scene in visual.scenes:
            body = prompt_body(scene.prompt_text, rules)
            term = find_term(body, rules.anomaly_terms)
            if term is None:
                continue
            danger = find_term(body, rules.danger_contexts)
            if danger is not None:
                severity = FindingSeverity.BLOCKING
                message = (
                    f'Scene {scene.id}: anomaly "{term}" in dangerous '
                    f'context "{danger}"'
                )
            elif find_term(body, rules.safe_contexts) is None:
                severity = FindingSeverity.ADVISORY
                message = (
                    f'Scene {scene.id}: anomaly "{term}" without a grounding '
                    "context"
                )
            else:
                continue
            results.append(
                ValidationCheckResult(
                    check_name=self.check_name,
                    phase=ValidationPhase.VISUAL,
                    severity=severity,
                    message=message,
                    scene_id=scene.id,
                    metadata={"term": term, "danger_context": danger},
                )
            )
        return results
