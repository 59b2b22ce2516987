"""Blocked style marker check."""

from __future__ import annotations

from taming_core.validation.protocol import (
    ValidationCheckResult,
    VisualCheckContext,
    prompt_body,
)
from taming_schemas.primitives import FindingSeverity, ValidationPhase
from taming_schemas.protocol import VisualOutput


class StyleMarkerCheck:
    """Block style markers that are never acceptable for the mode."""

    check_name = "style_marker"

    def check_visual(
        self,
        visual: VisualOutput,
        context: VisualCheckContext,
    ) -> list[ValidationCheckResult]:
        """Report every blocked style marker present in each prompt."""
        markers = context.rules.blocked_style_markers
        results: list[ValidationCheckResult] = []
        for scene in visual.scenes:
            body = prompt_body(scene.prompt_text, context.rules)
            results.extend(
                ValidationCheckResult(
                    check_name=self.check_name,
                    phase=ValidationPhase.VISUAL,
                    severity=FindingSeverity.BLOCKING,
                    message=f'Scene {scene.id}: blocked style "{marker}"',
                    scene_id=scene.id,
                    metadata={"marker": marker},
                )
                for marker in markers
                if marker in body
            )
        return results
