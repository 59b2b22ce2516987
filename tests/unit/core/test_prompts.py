"""Unit tests for prompt builders."""

from __future__ import annotations

from taming_core.modes import (
    HUMAN_SILENCE_PROFILE,
    MIND_RIOT_PROFILE,
    NIJI_SUFFIX,
    get_mode_profile,
)
from taming_core.prompts import (
    VISUAL_NARRATIVE_LIMIT,
    build_copy_prompt,
    build_judgment_prompt,
    build_scene_prompt,
    build_system_instruction,
    build_visual_prompt,
)
from taming_schemas.primitives import Mode, OutputScale, VisualLanguage
from taming_schemas.protocol import InputModel


def test_get_mode_profile_accepts_values() -> None:
    """Profiles resolve from enum members and raw values."""
    assert get_mode_profile(Mode.MIND_RIOT) is MIND_RIOT_PROFILE
    assert get_mode_profile("human_silence") is HUMAN_SILENCE_PROFILE
    assert MIND_RIOT_PROFILE.uses_erosion
    assert not HUMAN_SILENCE_PROFILE.uses_erosion


def test_system_instruction_names_mode() -> None:
    """The system instruction carries the mode label and tone."""
    instruction = build_system_instruction(MIND_RIOT_PROFILE)
    assert "MODE: MIND_RIOT" in instruction
    assert MIND_RIOT_PROFILE.tone in instruction


def test_judgment_prompt_includes_input_settings() -> None:
    """Topic, intensity and scale appear in the judgment prompt."""
    prompt = build_judgment_prompt(
        InputModel(topic="isolation", intensity=5, output_scale=OutputScale.ENHANCED)
    )
    assert 'Analyze the topic: "isolation"' in prompt
    assert "Intensity: 5/5." in prompt
    assert "Output Scale: enhanced." in prompt


def test_copy_prompt_lists_constraints() -> None:
    """Constraint tags are joined into the copy prompt."""
    prompt = build_copy_prompt(
        InputModel(constraints=["更克制", "更锋利"]), "Conclusion: lock"
    )
    assert 'Judgment Lock: "Conclusion: lock"' in prompt
    assert "Input Constraints: 更克制, 更锋利." in prompt


def test_visual_prompt_truncates_narrative() -> None:
    """Long narratives are cut to the context limit."""
    narrative = "x" * (VISUAL_NARRATIVE_LIMIT + 50)
    prompt = build_visual_prompt(
        InputModel(), HUMAN_SILENCE_PROFILE, "lock", narrative
    )
    assert f'"{"x" * VISUAL_NARRATIVE_LIMIT}..."' in prompt
    assert "Leica M6" in prompt
    assert "ENGLISH ONLY" in prompt


def test_visual_prompt_bilingual_and_erosion() -> None:
    """Expressive prompts name the erosion system and bilingual setting."""
    prompt = build_visual_prompt(
        InputModel(mode=Mode.MIND_RIOT, visual_language=VisualLanguage.ZH_EN),
        MIND_RIOT_PROFILE,
        "lock",
        "spine",
        "Neon Acid Psychedelia",
    )
    assert 'ACTIVE EROSION SYSTEM: "Neon Acid Psychedelia"' in prompt
    assert NIJI_SUFFIX in prompt
    assert "BILINGUAL (ZH_EN)" in prompt


def test_scene_prompt_targets_one_scene() -> None:
    """The scene prompt names only the requested position."""
    prompt = build_scene_prompt(
        InputModel(), HUMAN_SILENCE_PROFILE, "lock", "spine", 2
    )
    assert "RE-GENERATE ONLY Scene 2." in prompt
    assert "--style raw" in prompt
