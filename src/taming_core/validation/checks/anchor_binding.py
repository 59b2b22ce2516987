"""Anchor binding check for narrative copy."""

from __future__ import annotations

from taming_core.modes import CopyRules
from taming_core.validation.protocol import ValidationCheckResult
from taming_schemas.primitives import FindingSeverity, ValidationPhase
from taming_schemas.protocol import CopyOutput, JudgmentContent


def anchor_fragment(judgment_lock: str, rules: CopyRules) -> str:
    """Extract the fragment of the lock that must appear in the copy.

    The leading conclusion label is stripped before slicing so that the
    fragment is drawn from the substantive statement.

    Args:
        judgment_lock: Confirmed judgment lock.
        rules: Copy validation constants.

    Returns:
        str: Anchor fragment, possibly shorter than the configured length.
    """
    stripped = rules.anchor_label_pattern.sub("", judgment_lock, count=1).strip()
    return stripped[: rules.anchor_fragment_length]


class AnchorBindingCheck:
    """Require the narrative to quote the opening of the judgment lock."""

    check_name = "anchor_binding"

    def check_copy(
        self,
        judgment: JudgmentContent,
        copy_output: CopyOutput,
        rules: CopyRules,
    ) -> list[ValidationCheckResult]:
        """Check that the anchor fragment occurs in the narrative spine.

        Returns:
            List with one blocking result if the fragment is absent.
        """
        fragment = anchor_fragment(judgment.judgment_lock, rules)
        if fragment in copy_output.narrative_spine:
            return []
        return [
            ValidationCheckResult(
                check_name=self.check_name,
                phase=ValidationPhase.COPY,
                severity=FindingSeverity.BLOCKING,
                message=(
                    "Anchor binding failed: narrative does not reference the "
                    f'judgment lock fragment "{fragment}"'
                ),
                metadata={"fragment": fragment},
            )
        ]
