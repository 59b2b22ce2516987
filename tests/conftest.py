"""Common pytest configuration."""

from __future__ import annotations

import pytest

from taming_schemas.protocol import CopyOutput, InputModel, JudgmentContent


@pytest.fixture
def anyio_backend() -> str:
    """Force asyncio backend for anyio-powered tests.

    Returns:
        str: The backend name.
    """
    return "asyncio"


@pytest.fixture
def isolation_input() -> InputModel:
    """Restrained-mode input on the topic "isolation".

    Returns:
        InputModel: Input configuration.
    """
    return InputModel(topic="isolation", intensity=3)


@pytest.fixture
def isolation_judgment() -> JudgmentContent:
    """Judgment whose lock anchors the isolation topic.

    Returns:
        JudgmentContent: Judgment content.
    """
    return JudgmentContent(
        observed_claim="Isolation is read as rest.",
        operational_mechanism="It works as a shield against demands.",
        failure_point="The shield starves the person it protects.",
        judgment_lock="Conclusion: isolation is a slow form of hunger.",
    )


@pytest.fixture
def anchored_copy() -> CopyOutput:
    """Copy that references the isolation lock fragment.

    Returns:
        CopyOutput: Copy output.
    """
    return CopyOutput(
        narrative_spine=(
            "ANCHOR: isolation is a slow form of hunger. REALITY: the door "
            "stays locked. TENSION: nobody knocks anymore."
        ),
        key_lines=["The door stays locked.", "Nobody knocks."],
    )
