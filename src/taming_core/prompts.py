"""Prompt builders for each generation phase.

Builders are pure: every random or mode-dependent value is passed in.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from taming_core.modes import PHOTOGRAPHY_ASSETS, ModeProfile
from taming_schemas.protocol import InputModel, Scene

SYSTEM_INSTRUCTION_BASE = (
    "You are the content engine for 'The Taming Theory' (驯化论). "
    "You must output strictly in JSON format."
)
VISUAL_NARRATIVE_LIMIT = 200
COACH_NARRATIVE_LIMIT = 150

_SCENE_PROGRESSION = (
    "- Scene 1: The Trace (Introduction of the Subject).\n"
    "- Scene 2: The Action (Distortion begins).\n"
    "- Scene 3: The Crack (System takes over).\n"
    "- Scene 4: The Meltdown (Total collision)."
)


def _excerpt(text: str, limit: int) -> str:
    return f"{text[:limit]}..."


def build_system_instruction(profile: ModeProfile) -> str:
    """Build the mode-specific system instruction."""
    return f"{SYSTEM_INSTRUCTION_BASE} MODE: {profile.label}.\n{profile.tone}"


def build_judgment_prompt(input_model: InputModel) -> str:
    """Build the judgment deconstruction prompt."""
    return (
        f'Analyze the topic: "{input_model.topic}".\n'
        f"Intensity: {input_model.intensity}/5.\n"
        f"Output Scale: {input_model.output_scale}.\n\n"
        "Task: Deconstruct this topic into a structural judgment.\n"
        "1. observed_claim: What does the user think this topic is?\n"
        "2. operational_mechanism: How does it actually function as a "
        "psychological compensation?\n"
        "3. failure_point: Where does this mechanism inevitably fail?\n"
        "4. judgment_lock: A single, sharp, final conclusion anchoring the "
        "entire theory.\n\n"
        "Return JSON only."
    )


def build_copy_prompt(input_model: InputModel, judgment_lock: str) -> str:
    """Build the narrative copy prompt anchored to the judgment lock."""
    constraints = ", ".join(input_model.constraints)
    return (
        f'Context - Judgment Lock: "{judgment_lock}".\n\n'
        "Task: Create the Narrative Spine and Resonance Lines.\n\n"
        "CRITICAL INSTRUCTION: You MUST explicitly include and restate the core "
        "text of the Judgment Lock within the Narrative Spine.\n"
        "Implicit binding is NOT allowed.\n\n"
        "Structure for 'narrative_spine' (Strict 3 Sections):\n"
        "1. ANCHOR: Restate ONE core condition explicitly from the Judgment Lock.\n"
        "2. REALITY: Describe how this condition manifests in reality.\n"
        "3. TENSION: Show the consequence or tension implied by this condition.\n\n"
        "Constraints for 'resonance_lines':\n"
        "- Each line must be conceptually traceable to the Judgment Lock.\n"
        "- No generic slogans.\n"
        "- Avoid metaphor-only expressions.\n\n"
        f"Input Constraints: {constraints}.\n"
        "Return JSON only."
    )


def _language_setting(input_model: InputModel) -> str:
    if input_model.is_bilingual:
        return "BILINGUAL (ZH_EN): put a Chinese structural hint in 'hint'"
    return "ENGLISH ONLY: leave 'hint' null"


def build_visual_prompt(
    input_model: InputModel,
    profile: ModeProfile,
    judgment_lock: str,
    narrative_spine: str,
    erosion_system: str | None = None,
) -> str:
    """Build the four-scene visual prompt.

    Args:
        input_model: Input configuration.
        profile: Mode profile supplying the assembly instruction.
        judgment_lock: Confirmed judgment lock.
        narrative_spine: Narrative context, truncated in the prompt.
        erosion_system: Erosion system for modes that use one.

    Returns:
        str: Task prompt.
    """
    instruction = profile.visual_instruction.format(
        assets=json.dumps(PHOTOGRAPHY_ASSETS, ensure_ascii=False),
        erosion_system=erosion_system or "",
    )
    return (
        f'Context - Judgment Lock: "{judgment_lock}".\n'
        "Context - Narrative: "
        f'"{_excerpt(narrative_spine, VISUAL_NARRATIVE_LIMIT)}".\n\n'
        f"MODE: {profile.label}.\n{instruction}\n\n"
        "Task: Generate exactly 4 scenes (id 1 to 4) representing the "
        "progression of the judgment.\n"
        f"{_SCENE_PROGRESSION}\n\n"
        f"VISUAL LANGUAGE SETTING: {_language_setting(input_model)}.\n\n"
        "Return JSON only."
    )


def build_scene_prompt(
    input_model: InputModel,
    profile: ModeProfile,
    judgment_lock: str,
    narrative_spine: str,
    scene_id: int,
    erosion_system: str | None = None,
) -> str:
    """Build the prompt regenerating exactly one scene."""
    instruction = profile.scene_instruction.format(
        erosion_system=erosion_system or ""
    )
    return (
        f'Context - Judgment Lock: "{judgment_lock}".\n'
        "Context - Narrative: "
        f'"{_excerpt(narrative_spine, VISUAL_NARRATIVE_LIMIT)}".\n\n'
        f"MODE: {profile.label}.\n{instruction}\n\n"
        f"Task: RE-GENERATE ONLY Scene {scene_id}.\n"
        f"VISUAL LANGUAGE SETTING: {_language_setting(input_model)}.\n\n"
        "Return JSON only for this single scene."
    )


def build_coach_prompt(
    profile: ModeProfile,
    judgment_lock: str,
    narrative_spine: str,
    scenes: Sequence[Scene],
) -> str:
    """Build the retrospective coaching prompt (output in Simplified Chinese)."""
    scene_lines = "\n".join(
        f"  {scene.id}. {scene.prompt_text}" for scene in scenes
    )
    return (
        "Analyze the generated content (Judgment, Narrative, Scenes).\n"
        f'Judgment Lock: "{judgment_lock}"\n'
        "Narrative Spine: "
        f'"{_excerpt(narrative_spine, COACH_NARRATIVE_LIMIT)}"\n'
        f"Scenes:\n{scene_lines}\n\n"
        'Task: Provide a "Coach Log" retrospective (复盘日志) in SIMPLIFIED '
        "CHINESE (简体中文).\n"
        "Tone: Professional, Director-level insight, analytical.\n\n"
        "Fields:\n"
        "1. did_right (本次我做对了什么): How the abstract emotion was "
        "objectified and structuralized.\n"
        "2. visual_tips (可直接借鉴的画面技巧): Specific composition, lighting "
        "or camera technique used.\n"
        "3. copy_tips (可直接借鉴的文案技巧): Specific linguistic choice that "
        "achieved the style.\n"
        "4. avoided (这次我刻意没做的一件事): A cliché or cheap emotional trap "
        "that was bypassed.\n"
        "5. music_vibe (听觉通感推荐):\n"
        f"MODE: {profile.label}.\n{profile.coach_music}\n"
        "Output exact format:\n"
        "推荐流派：[Genre 1] / [Genre 2]\n"
        "BGM 搜索关键词：[Keyword 1], [Keyword 2], [Keyword 3]\n"
        "建议听感：[1-2 sentences based on the mood of the judgment]\n\n"
        "Return JSON only."
    )


def build_translation_prompt(payload: dict[str, object]) -> str:
    """Build a prompt translating JSON values into Simplified Chinese."""
    content = json.dumps(payload, ensure_ascii=False)
    return (
        "Task: Translate the following JSON content values into Chinese "
        "(Simplified).\n"
        "Maintain the exact JSON structure. Do not translate keys.\n"
        "If the value is already Chinese, return it as is or refine it.\n\n"
        f"Content:\n{content}"
    )
