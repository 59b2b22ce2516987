"""Mode-keyed configuration consumed by prompt builders and validation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from taming_schemas.primitives import Mode


@dataclass(frozen=True, slots=True)
class CopyRules:
    """Copy validation constants shared by both modes."""

    anchor_label_pattern: re.Pattern[str] = re.compile(
        r"^Conclusion[:：]\s*", re.IGNORECASE
    )
    anchor_fragment_length: int = 6
    cliche_denylist: tuple[str, ...] = (
        "相信自己",
        "明天会更好",
        "Just do it",
        "拥抱未来",
        "初心",
        "正能量",
        "Believe in yourself",
        "Better tomorrow",
    )


@dataclass(frozen=True, slots=True)
class VisualRules:
    """Visual validation constants for one mode.

    Empty term lists disable the corresponding check.
    """

    min_prompt_length: int
    escalated_min_prompt_length: int | None = None
    min_hint_length: int = 5
    parameter_delimiter: str = "--"
    forbidden_terms: tuple[str, ...] = ()
    anomaly_terms: tuple[str, ...] = ()
    safe_contexts: tuple[str, ...] = ()
    danger_contexts: tuple[str, ...] = ()
    blocked_style_markers: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ModeProfile:
    """Everything that differs between the two modes."""

    mode: Mode
    label: str
    tone: str
    visual_instruction: str
    scene_instruction: str
    coach_music: str
    visual_rules: VisualRules
    erosion_catalog: tuple[str, ...] = field(default=())

    @property
    def uses_erosion(self) -> bool:
        """Whether visual prompts inject a randomly selected erosion system."""
        return bool(self.erosion_catalog)


COPY_RULES = CopyRules()

EROSION_SYSTEMS = (
    "Glitch Art / Datamoshing (Digital decay and reality corruption)",
    "Liquid Melting / Dali Surrealism (Melting of state and form)",
    "Fragmentation / Cubism (Shattering of perspectives and geometry)",
    "Negative Film / X-Ray (Internal inversion and skeletal truth)",
    "Thermal Imaging / Predator Vision (Dehumanization and heat maps)",
    "Low-Poly / Wireframe (Reduction to artificial infrastructure)",
    "Junji Ito Spiral Patterns (Inward compulsion and geometric madness)",
    "Satoshi Kon Psychological Anime style "
    "(Hallucinatory 2D, fragmented identity)",
    "Ukiyo-e Woodblock Print "
    "(Traditional Japanese 2D illustration, flattening of reality)",
    "Cybernetic Manga / Line art style (Futuristic precision and artificiality)",
    "Neon Acid Psychedelia (Over-stimulation and sensory burn)",
)

NIJI_SUFFIX = "--niji 6 --stylize 250"
V6_SUFFIX = "--v 6.0 --stylize 750 --weird 250"

PHOTOGRAPHY_ASSETS: dict[str, list[str]] = {
    "CAMERAS": ["Hasselblad 500C", "Leica M6", "Canon AE-1", "Arri Alexa Mini"],
    "LENSES": ["35mm f/1.4", "50mm f/1.2", "85mm f/1.8"],
    "LIGHTING": [
        "Soft Morning Window Light",
        "Fluorescent Overhead",
        "High Contrast/Chiaroscuro",
        "Direct Flash",
        "Golden Hour",
    ],
    "FILM_STOCKS": [
        "Kodak Portra 400",
        "Ilford HP5",
        "Cinestill 800T",
        "Fujifilm Pro 400H",
    ],
}

_SILENCE_ASSEMBLY = (
    "[Subject], [Action & Environment], [Lighting & Color], [Camera & Lens], "
    "[Texture/Film Stock] --style raw --stylize [Value] --v 6.0"
)

HUMAN_SILENCE_PROFILE = ModeProfile(
    mode=Mode.HUMAN_SILENCE,
    label="HUMAN_SILENCE (人间·默剧)",
    tone=(
        "Tone: Introverted, restrained, documentary, sober, detached.\n"
        "Perspective: The Camera Eye. Record reality, do not intervene.\n"
        "Visual Style: Fine Art Photography, Atmospheric Realism, Candid, "
        "Textural.\n"
        "Forbidden: Preaching, theatrical acting, stock photo emotions, "
        "surrealism, clichés."
    ),
    visual_instruction=(
        "ROLE: Director of Photography.\n"
        "ASSETS: {assets}\n"
        f"ASSEMBLY: {_SILENCE_ASSEMBLY}\n"
        "Separated by commas. --stylize 250 or 300."
    ),
    scene_instruction=f"ASSEMBLY: {_SILENCE_ASSEMBLY}",
    coach_music=(
        "Audio Mapping: Ambient, Minimalist Piano, Field Recordings, Cello, "
        "Post-Rock (Slow), Lo-fi (No beats).\n"
        "Artists: Ryuichi Sakamoto, Max Richter, Brian Eno, "
        "Cigarettes After Sex.\n"
        "Search Terms: 独处, 胶片感, 氛围感, 纯音乐, 深夜."
    ),
    visual_rules=VisualRules(
        min_prompt_length=30,
        escalated_min_prompt_length=50,
        forbidden_terms=(
            "surreal",
            "psychedelic",
            "dreamscape",
            "hallucination",
            "impossible geometry",
            "floating object",
            "levitation",
            "melting skin",
            "melting reality",
            "reality collapse",
            "monster",
            "creature",
            "conscious entity",
        ),
        anomaly_terms=(
            "glitch",
            "distortion",
            "artifact",
            "noise",
            "flicker",
            "interference",
            "static",
        ),
        safe_contexts=(
            "screen",
            "monitor",
            "tv",
            "signal",
            "broadcast",
            "camera",
            "lens",
            "film",
            "vhs",
            "infrastructure",
            "machine",
            "lamp",
        ),
        danger_contexts=(
            "reality",
            "mind",
            "memory",
            "world",
            "universe",
            "soul",
            "consciousness",
            "perception",
            "sky",
            "nature",
        ),
        blocked_style_markers=("cyberpunk",),
    ),
)

MIND_RIOT_PROFILE = ModeProfile(
    mode=Mode.MIND_RIOT,
    label="MIND_RIOT (颅内·暴走)",
    tone=(
        "Tone: Extroverted, explosive, ego-driven, surreal, absurdist.\n"
        "Philosophy: Subjective tyranny. Chaos is a collision between Order "
        "and Erosion.\n"
        "Visual Style: Unstable, aggressive, mixed media, visual paradoxes.\n"
        "Forbidden: Pure noise without subjects, bland stability, generic "
        "aesthetic without thought."
    ),
    visual_instruction=(
        'CONCEPT: "The Collision" (Meaningful Chaos). Reality is a subject '
        "under attack.\n"
        'ACTIVE EROSION SYSTEM: "{erosion_system}"\n'
        "PROMPT ASSEMBLY SEQUENCE (The Collision):\n"
        "1. THE ANCHOR SUBJECT: A hyper-clear, tangible object/person from the "
        "Judgment Lock.\n"
        "2. THE ACTION OF DISTORTION: How the System attacks the Subject "
        '(e.g., "melting into", "exploding into").\n'
        '3. THE ART SYSTEM: Use keyword variants of "{erosion_system}".\n'
        '4. THE PHILOSOPHICAL VIBE: Keywords like "Cognitive collapse", '
        '"Existential dread".\n'
        "5. DYNAMIC MODEL ROUTING:\n"
        '   - If the scene uses "Anime", "Manga", "Satoshi Kon", "Ghibli", '
        '"Cel Shaded", "Illustration", "Ukiyo-e", "Line art" or "2D": '
        f'suffix "{NIJI_SUFFIX}"\n'
        "   - Otherwise (Photography, Oil Painting, Glitch, 3D): "
        f'suffix "{V6_SUFFIX}"\n'
        "FINAL ASSEMBLY (Comma Separated): [Anchor Subject], "
        "[Action of Distortion], [Art System], [Vibe], [Suffix Parameters]\n"
        "DO NOT generate random noise. Keep a clear focal point being attacked."
    ),
    scene_instruction=(
        'CONCEPT: "The Collision" (Meaningful Chaos).\n'
        'ACTIVE SYSTEM: "{erosion_system}"\n'
        f"DYNAMIC ROUTING: Anime/2D keywords -> {NIJI_SUFFIX}; "
        f"Realism/3D/Glitch -> {V6_SUFFIX}\n"
        "ASSEMBLY: [Anchor Subject], [Distortion Action], [Erosion Style], "
        "[Vibe], [Suffix]"
    ),
    coach_music=(
        "Audio Mapping: Phonk, Breakcore, Glitch Hop, Industrial Techno, "
        "Distorted Bass, Experimental Noise, Cyberpunk.\n"
        "Artists: Death Grips, Aphex Twin, Crystal Castles, Gesaffelstein.\n"
        "Search Terms: 压迫感, 故障风, 赛博朋克, 精神状态, 燃点."
    ),
    visual_rules=VisualRules(min_prompt_length=10),
    erosion_catalog=EROSION_SYSTEMS,
)

MODE_PROFILES: dict[Mode, ModeProfile] = {
    Mode.HUMAN_SILENCE: HUMAN_SILENCE_PROFILE,
    Mode.MIND_RIOT: MIND_RIOT_PROFILE,
}


def get_mode_profile(mode: Mode | str) -> ModeProfile:
    """Return the profile for a mode.

    Args:
        mode: Mode enum or its string value.

    Returns:
        ModeProfile: Profile for the mode.
    """
    return MODE_PROFILES[Mode(mode)]
