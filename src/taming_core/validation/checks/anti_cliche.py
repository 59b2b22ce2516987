"""Cliche denylist check for narrative copy."""

from __future__ import annotations

from taming_core.modes import CopyRules
from taming_core.validation.protocol import ValidationCheckResult, find_term
from taming_schemas.primitives import FindingSeverity, ValidationPhase
from taming_schemas.protocol import CopyOutput, JudgmentContent


class AntiClicheCheck:
    """Flag the first denylisted phrase found in the narrative.

    Matching is case-sensitive and only the first hit in denylist order
    is reported.
    """

    check_name = "anti_cliche"

    def check_copy(
        self,
        judgment: JudgmentContent,
        copy_output: CopyOutput,
        rules: CopyRules,
    ) -> list[ValidationCheckResult]:
        """Check the narrative spine against the cliche denylist.

        Returns:
            List with one blocking result for the first denylisted phrase.
        """
        phrase = find_term(copy_output.narrative_spine, rules.cliche_denylist)
        if phrase is None:
            return []
        return [
            ValidationCheckResult(
                check_name=self.check_name,
                phase=ValidationPhase.COPY,
                severity=FindingSeverity.BLOCKING,
                message=f'Cliche detected: "{phrase}"',
                metadata={"phrase": phrase},
            )
        ]
