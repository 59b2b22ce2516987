"""Bilingual hint presence check."""

from __future__ import annotations

from taming_core.validation.protocol import ValidationCheckResult, VisualCheckContext
from taming_schemas.primitives import FindingSeverity, ValidationPhase
from taming_schemas.protocol import VisualOutput


class BilingualHintCheck:
    """Require a usable hint on every scene when output is bilingual."""

    check_name = "bilingual_hint"

    def check_visual(
        self,
        visual: VisualOutput,
        context: VisualCheckContext,
    ) -> list[ValidationCheckResult]:
        """Check hint presence and minimum length per scene.

        Returns:
            One blocking result per scene with a missing or short hint.
        """
        if not context.input_model.is_bilingual:
            return []
        min_length = context.rules.min_hint_length
        results: list[ValidationCheckResult] = []
        for scene in visual.scenes:
            hint = (scene.hint or "").strip()
            if len(hint) >= min_length:
                continue
            results.append(
                ValidationCheckResult(
                    check_name=self.check_name,
                    phase=ValidationPhase.VISUAL,
                    severity=FindingSeverity.BLOCKING,
                    message=(
                        f"Scene {scene.id}: bilingual hint missing or shorter "
                        f"than {min_length} characters"
                    ),
                    scene_id=scene.id,
                )
            )
        return results
