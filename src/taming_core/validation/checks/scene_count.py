"""Scene cardinality check."""

from __future__ import annotations

from taming_core.validation.protocol import ValidationCheckResult, VisualCheckContext
from taming_schemas.primitives import (
    SCENE_COUNT,
    SCENE_IDS,
    FindingSeverity,
    ValidationPhase,
)
from taming_schemas.protocol import VisualOutput


class SceneCountCheck:
    """Require exactly four scenes carrying the ids 1 to 4 once each."""

    check_name = "scene_count"

    def check_visual(
        self,
        visual: VisualOutput,
        context: VisualCheckContext,
    ) -> list[ValidationCheckResult]:
        """Check scene count and id coverage.

        Returns:
            List with one blocking result if the sequence is malformed.
        """
        ids = visual.scene_ids()
        if len(ids) != SCENE_COUNT:
            message = f"Scene count mismatch: expected {SCENE_COUNT}, got {len(ids)}"
        elif sorted(ids) != list(SCENE_IDS):
            message = f"Scene ids must be 1-{SCENE_COUNT} exactly once, got {ids}"
        else:
            return []
        return [
            ValidationCheckResult(
                check_name=self.check_name,
                phase=ValidationPhase.VISUAL,
                severity=FindingSeverity.BLOCKING,
                message=message,
                metadata={"scene_ids": list(ids)},
            )
        ]
