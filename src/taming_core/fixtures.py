"""Deterministic phase generators for offline runs.

Fixture outputs follow the same shapes as service output. A topic
containing ``drift`` produces slogan copy and off-style scenes so that the
validation path can be exercised without the service.
"""

from __future__ import annotations

from taming_schemas.primitives import Mode
from taming_schemas.protocol import (
    CoachOutput,
    CopyOutput,
    InputModel,
    JudgmentContent,
    Scene,
    VisualOutput,
)

DRIFT_MARKER = "drift"
DEFAULT_TOPIC = "未命名主题"
_FALLBACK_TOPIC = "主题"

DRIFT_NARRATIVE = (
    "We should all Believe in yourself and look forward to a Better tomorrow. "
    "Everything will be fine if you just smile. \n\n"
    "(DRIFT SIMULATION: Generic slogan output)"
)
DRIFT_KEY_LINES = ("Keep smiling", "Stay positive", "Love yourself")
DRIFT_HINT = "模拟偏离：风格与模式不符"
DRIFT_STYLES: dict[Mode, str] = {
    Mode.HUMAN_SILENCE: "cyberpunk, neon, glitch art, surreal monster",
    Mode.MIND_RIOT: "documentary photography, calm, natural light",
}

_SILENCE_SCENES: tuple[tuple[str, str], ...] = (
    (
        "Close-up of a hand resting loosely on a wrinkled bedsheet, dust motes "
        "dancing in the air casting lace shadows, soft morning window light "
        "with warm tones, shot on Canon AE-1 with 50mm f/1.4 lens, warm "
        "desaturated film grain, Kodak Portra 400 --style raw --stylize 300 "
        "--v 6.0",
        "[默剧] 场景 1：温柔的静默。利用清晨柔光和床单褶皱的微距细节，"
        "表现“允许一切发生”的松弛感。",
    ),
    (
        "A person slumped over a kitchen table with face hidden in arms, a "
        "half-eaten apple turning brown in a sterile kitchen, flickering "
        "overhead fluorescent light with greenish cast, shot on Leica M6 with "
        "35mm f/1.4 lens, high ISO gritty texture, Ilford HP5 --style raw "
        "--stylize 300 --v 6.0",
        "[默剧] 场景 2：日常的疲惫。通过冷调荧光灯和塌陷的肢体语言，"
        "隐喻被生活机制磨损的状态。",
    ),
    (
        "A person standing stiffly in a doorway with back to the camera and "
        "hands clenched, broken ceramic pieces on the floor, high contrast "
        "chiaroscuro lighting with deep shadows, shot on Arri Alexa Mini "
        "handheld, motion blur with claustrophobic framing --style raw "
        "--stylize 300 --v 6.0",
        "[默剧] 场景 3：无声的对峙。利用高对比光影和背影的紧张感，"
        "表现压抑的愤怒与冲突。",
    ),
    (
        "A person sitting perfectly symmetrical on a park bench wearing formal "
        "wear, an overturned ice cream cone on the ground, direct flash "
        "photography with harsh shadows, shot on Hasselblad 500C with deadpan "
        "framing, cool detached color grade, Cinestill 800T --style raw "
        "--stylize 250 --v 6.0",
        "[默剧] 场景 4：荒诞的结局。使用直闪和呆板构图，"
        "展现一种黑色幽默式的冷静与抽离。",
    ),
)

_RIOT_SCENES: tuple[tuple[str, str], ...] = (
    (
        "A classic marble statue of a weeping woman (Subject), being shattered "
        "by vibrant neon pink light rays (Action), Satoshi Kon Psychological "
        "Anime style (Art System), existential dread, --niji 6 --stylize 250",
        "[暴走] 场景 1：秩序初裂。采用今敏风格动画质感，"
        "表现核心判断对认知的第一次强制入侵。",
    ),
    (
        "A businessman in a sharp grey suit (Subject), melting into a pool of "
        "iridescent black oil (Action), Dali Surrealism style (System), "
        "cognitive collapse, --v 6.0 --stylize 750 --weird 250",
        "[暴走] 场景 2：液态坍塌。利用 V6 模型的高风格化"
        "表现真实形体在极端意志下的溶解。",
    ),
    (
        "An antique grandfather clock (Subject), exploding into thousands of "
        "floating mechanical gears and wireframes (Action), Cybernetic Manga / "
        "Line art style (System), time perception failure, --niji 6 "
        "--stylize 250",
        "[暴走] 场景 3：逻辑解体。使用 Niji 模型处理复杂的线条逻辑，"
        "表现机械秩序的彻底崩溃。",
    ),
    (
        "A pair of human hands holding a crystal ball (Subject), being consumed "
        "by Glitch Art and datamoshing artifacts (Action), digital decay vibe, "
        "the end of reality, --v 6.0 --stylize 750 --weird 250",
        "[暴走] 场景 4：最后的熵增。回归 V6 摄影写实与故障艺术的碰撞，"
        "象征主客体边界的彻底消亡。",
    ),
)

_COACH: dict[Mode, CoachOutput] = {
    Mode.HUMAN_SILENCE: CoachOutput(
        did_right=(
            "成功将“情绪内耗”物化为“停滞的日常切片”，保持了冷静的纪实底色，"
            "完全剥离了自我感动的抒情干扰。"
        ),
        visual_tips=(
            "使用50mm标准镜头的冷眼旁观视角，配合自然光漫射，"
            "强调环境对人物的吞噬感。"
        ),
        copy_tips="大量使用物理/工程名词替代情绪形容词，实现“零度叙事”的疏离感。",
        avoided="坚决拒绝了暖色调的“治愈系”滤镜，维持了现实的粗砺质感。",
        music_vibe=(
            "推荐流派：Ambient / Minimalist Piano\n"
            "BGM 搜索关键词：坂本龙一, 独处, 电影感, 留白\n"
            "建议听感：建议使用带有环境白噪音（如风声、电流声）的极简钢琴曲，"
            "避免有人声的歌曲，保持疏离感。"
        ),
    ),
    Mode.MIND_RIOT: CoachOutput(
        did_right=(
            "成功实施了“模型动态路由”策略，针对不同场景风格切换了 Niji 6 与 "
            "V 6.0，确保了画面表现力与艺术风格的精确匹配。"
        ),
        visual_tips=(
            "在处理 2D/动漫逻辑时切换至 Niji 6 并调低 --stylize 参数，"
            "而在处理写实故障艺术时切换至 V 6.0 并调高 --stylize 以获得最大的"
            "艺术扭曲。"
        ),
        copy_tips="采用破碎的短句与重复的意象叠加，模拟大脑过载时的思维跳跃状态。",
        avoided="避免了用单一模型应付所有风格，防止了“暴走”逻辑退化为平庸的视觉杂讯。",
        music_vibe=(
            "推荐流派：Phonk / Breakcore / Industrial Techno\n"
            "BGM 搜索关键词：Death Grips, 压迫感, 故障风, 赛博朋克\n"
            "建议听感：选择节奏破碎且带有失真工业噪音的电子乐，"
            "通过高频脉冲与视觉上的故障感达成颅内同步。"
        ),
    ),
}


def _is_drift(input_model: InputModel) -> bool:
    return DRIFT_MARKER in input_model.topic


def fixture_judgment(input_model: InputModel) -> JudgmentContent:
    """Build the deterministic judgment for the input's mode and topic."""
    topic = input_model.topic or DEFAULT_TOPIC
    silence = input_model.mode == Mode.HUMAN_SILENCE
    return JudgmentContent(
        observed_claim=(
            f"用户主张 “{topic}” 在当前语境下被误读为单纯的"
            f"{'静止状态' if silence else '混乱宣泄'}。"
        ),
        operational_mechanism=(
            "实际上，它作为一种心理代偿机制在运作：通过"
            f"{'剥离外部噪音' if silence else '过度放大感官'}"
            "来重构个体对现实的掌控感。"
        ),
        failure_point=(
            "张力在于，这种机制最终会"
            f"{'因过度的自我封闭而窒息' if silence else '因无序的扩张而解体'}，"
            "导致原本追求的平衡彻底失效。"
        ),
        judgment_lock=(
            f"结论：{topic}不是{'逃避' if silence else '狂欢'}，"
            f"而是一种{'濒死的清醒' if silence else '理性的崩溃'}。"
        ),
    )


def fixture_copy(input_model: InputModel, judgment_lock: str) -> CopyOutput:
    """Build the deterministic copy anchored to the judgment lock."""
    if _is_drift(input_model):
        return CopyOutput(
            narrative_spine=DRIFT_NARRATIVE, key_lines=list(DRIFT_KEY_LINES)
        )
    if not judgment_lock:
        return CopyOutput()

    fragment = (
        f"{judgment_lock[:15]}..." if len(judgment_lock) > 10 else judgment_lock
    )
    topic = input_model.topic or _FALLBACK_TOPIC
    if input_model.mode == Mode.HUMAN_SILENCE:
        spine = (
            "[人间·默剧 | 观测记录]\n\n"
            f"基于锚点锁定：“{judgment_lock}”\n\n"
            "1. 物理痕迹 (Traces):\n"
            "我们在日常的切片中观测到了它的存在。它不是某种宏大的概念，而是"
            f"“{fragment}”在物体表面留下的划痕。光线是漫射的，没有强烈的阴影，"
            "一切都暴露在一种冷淡的真实中。\n\n"
            "2. 行为复现 (Routine):\n"
            "机制的运作隐藏在重复的动作里。个体通过看似无意义的微小仪式——"
            "反复确认门锁、凝视空白的墙面——来维持这一判断。"
            "这是一种安静的抵抗，没有声音，只有动作的惯性。\n\n"
            "3. 结构性失效 (Failure):\n"
            "然而，静默无法掩盖裂痕。就像那张构图完美的照片中，"
            f"背景里那个不协调的污点。“{topic}”最终在过度的克制中失去了体温，"
            "变成了标本而非生活。"
        )
        key_lines = [
            "[默剧] 它就在那里，像房间里的大象，由于太过明显而被集体无视。",
            "[默剧] 我们维持着摇摇欲坠的平衡，假装裂痕是装饰纹理。",
            "[默剧] 真正的崩溃是无声的，就像雪崩前的最后一片雪花。",
        ]
    else:
        spine = (
            "[颅内·暴走 | 神经重载]\n\n"
            f"基于锚点锁定：“{judgment_lock}”\n\n"
            "1. 感官入侵 (Invasion):\n"
            f"信号过载。“{fragment}”不再是一个观点，它变成了高频的噪音，"
            "直接烧灼视神经。现实的轮廓被溶解了，逻辑让位于纯粹的脉冲。"
            "我们不再是观测者，我们是被吞噬者。\n\n"
            "2. 逻辑扭曲 (Distortion):\n"
            "机制在疯狂空转。为了对抗外部的荒谬，内在的世界开始主动坍塌。"
            f"思维跳跃、断裂、重组，“{topic}”被放大成一种吞没一切的巨物。"
            "这不是思考，这是大脑的应激反应。\n\n"
            "3. 临界过热 (Overheat):\n"
            "张力点被无限拉长，直到崩断。结构无法支撑这种强度的自我指涉。"
            "我们在绝对的混乱中寻找秩序，最终发现混乱本身就是唯一的秩序。"
        )
        key_lines = [
            "[暴走] 逻辑已死，感官万岁。脑内的回声震碎了玻璃。",
            "[暴走] 世界在融化，而我们正站在岩浆中心大笑。",
            "[暴走] 不要试图理解它，去感受那种被撕裂的快感。",
        ]
    return CopyOutput(narrative_spine=spine, key_lines=key_lines)


def fixture_scene(input_model: InputModel, scene_id: int) -> Scene:
    """Build the deterministic scene for one position."""
    if _is_drift(input_model):
        style = DRIFT_STYLES[Mode(input_model.mode)]
        return Scene(
            id=scene_id,
            prompt_text=f"Generic scene with wrong style: {style}",
            hint=DRIFT_HINT,
        )
    table = (
        _SILENCE_SCENES if input_model.mode == Mode.HUMAN_SILENCE else _RIOT_SCENES
    )
    prompt_text, hint = table[scene_id - 1]
    return Scene(
        id=scene_id,
        prompt_text=prompt_text,
        hint=hint if input_model.is_bilingual else None,
    )


def fixture_visual(
    input_model: InputModel, judgment_lock: str, narrative_spine: str
) -> VisualOutput:
    """Build the deterministic four-scene visual output."""
    if not _is_drift(input_model) and (not judgment_lock or not narrative_spine):
        return VisualOutput()
    return VisualOutput(
        scenes=[fixture_scene(input_model, scene_id) for scene_id in range(1, 5)]
    )


def fixture_coach(input_model: InputModel) -> CoachOutput:
    """Return the deterministic coaching log for the input's mode."""
    return _COACH[Mode(input_model.mode)].model_copy()


class FixturePhaseGenerators:
    """Phase generators returning deterministic fixtures."""

    async def judgment(self, input_model: InputModel) -> JudgmentContent:
        """Produce the fixture judgment."""
        return fixture_judgment(input_model)

    async def copywriting(
        self, input_model: InputModel, judgment_lock: str
    ) -> CopyOutput:
        """Produce the fixture copy."""
        return fixture_copy(input_model, judgment_lock)

    async def visual(
        self, input_model: InputModel, judgment_lock: str, narrative_spine: str
    ) -> VisualOutput:
        """Produce the fixture scenes."""
        return fixture_visual(input_model, judgment_lock, narrative_spine)

    async def scene(
        self,
        input_model: InputModel,
        judgment_lock: str,
        narrative_spine: str,
        scene_id: int,
    ) -> Scene:
        """Produce the fixture scene for one position."""
        return fixture_scene(input_model, scene_id)

    async def coach(
        self,
        input_model: InputModel,
        judgment_lock: str,
        narrative_spine: str,
        scenes: list[Scene],
    ) -> CoachOutput:
        """Produce the fixture coaching log."""
        return fixture_coach(input_model)

    async def translate_judgment(self, content: JudgmentContent) -> JudgmentContent:
        """Return the judgment unchanged."""
        return content

    async def translate_copy(self, content: CopyOutput) -> CopyOutput:
        """Return the copy unchanged."""
        return content
