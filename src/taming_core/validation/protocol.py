"""Protocol and result types for structural validation checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from taming_core.modes import CopyRules, VisualRules
from taming_schemas.primitives import FindingSeverity, JsonValue, ValidationPhase
from taming_schemas.protocol import (
    CopyOutput,
    InputModel,
    JudgmentContent,
    VisualOutput,
)


class ValidationCheckResult(BaseModel):
    """Result of a single check.

    Attributes:
        check_name: Name of the check that produced the result.
        phase: Validated phase.
        severity: Blocking or advisory.
        message: Human-readable finding.
        scene_id: Scene the finding refers to, if any.
        metadata: Optional structured metadata about the finding.
    """

    model_config = ConfigDict(frozen=True)

    check_name: str = Field(description="Name of the producing check")
    phase: ValidationPhase = Field(description="Validated phase")
    severity: FindingSeverity = Field(description="Blocking or advisory")
    message: str = Field(description="Human-readable finding")
    scene_id: int | None = Field(default=None, description="Scene id if applicable")
    metadata: dict[str, JsonValue] | None = Field(
        default=None, description="Optional structured metadata"
    )

    @property
    def is_blocking(self) -> bool:
        """Whether the finding is blocking."""
        return self.severity == FindingSeverity.BLOCKING


@dataclass(frozen=True, slots=True)
class VisualCheckContext:
    """Inputs shared by every visual check in one validation pass."""

    input_model: InputModel
    rules: VisualRules
    copy_has_warning: bool = False


@runtime_checkable
class CopyCheck(Protocol):
    """Protocol for copy-phase checks."""

    @property
    def check_name(self) -> str:
        """Unique identifier for this check."""
        ...

    def check_copy(
        self,
        judgment: JudgmentContent,
        copy_output: CopyOutput,
        rules: CopyRules,
    ) -> list[ValidationCheckResult]:
        """Run the check against the narrative copy.

        Args:
            judgment: Judgment whose lock anchors the copy.
            copy_output: Copy to check.
            rules: Copy validation constants.

        Returns:
            List of check results (empty if the copy passes).
        """
        ...


@runtime_checkable
class VisualCheck(Protocol):
    """Protocol for visual-phase checks."""

    @property
    def check_name(self) -> str:
        """Unique identifier for this check."""
        ...

    def check_visual(
        self,
        visual: VisualOutput,
        context: VisualCheckContext,
    ) -> list[ValidationCheckResult]:
        """Run the check against the scene sequence.

        Args:
            visual: Visual output to check.
            context: Input configuration, mode rules and escalation flag.

        Returns:
            List of check results (empty if the scenes pass).
        """
        ...


def prompt_body(prompt_text: str, rules: VisualRules) -> str:
    """Lower-case the prompt and drop the trailing parameter suffix.

    Args:
        prompt_text: Raw scene prompt.
        rules: Visual rules providing the parameter delimiter.

    Returns:
        str: Prompt body used for length and term checks.
    """
    return prompt_text.lower().split(rules.parameter_delimiter, 1)[0].strip()


def find_term(text: str, terms: tuple[str, ...]) -> str | None:
    """Return the first term (in list order) contained in the text."""
    for term in terms:
        if term in text:
            return term
    return None
