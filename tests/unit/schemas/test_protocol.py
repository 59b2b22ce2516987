"""Unit tests for protocol and intent schemas."""

from __future__ import annotations

from uuid import uuid4, uuid7

import pytest
from pydantic import TypeAdapter, ValidationError

from taming_schemas.intents import (
    REPLAY_SAFE_INTENTS,
    DeleteRun,
    Intent,
    SetMode,
    SetTopic,
)
from taming_schemas.primitives import Mode, RunStatus
from taming_schemas.protocol import (
    InputModel,
    OutputModel,
    ProtocolState,
    Run,
    Scene,
    ValidationFinding,
    VisualOutput,
)


def test_input_defaults() -> None:
    """Inputs default to restrained mode at intensity 3."""
    input_model = InputModel()
    assert input_model.mode == Mode.HUMAN_SILENCE
    assert input_model.intensity == 3
    assert input_model.constraints == []
    assert not input_model.is_bilingual


def test_intensity_range_enforced() -> None:
    """Intensity stays within 1-5."""
    with pytest.raises(ValidationError):
        InputModel(intensity=6)
    with pytest.raises(ValidationError):
        InputModel(intensity=0)


def test_constraints_must_be_unique() -> None:
    """Repeated constraint tags are rejected."""
    with pytest.raises(ValidationError, match="unique"):
        InputModel(constraints=["更克制", "更克制"])


def test_scene_id_range_enforced() -> None:
    """Scene ids are limited to positions 1-4."""
    with pytest.raises(ValidationError):
        Scene(id=5, prompt_text="x")


def test_replace_scene_keeps_other_scenes() -> None:
    """Replacing one scene leaves the others untouched."""
    visual = VisualOutput(
        scenes=[Scene(id=index, prompt_text=f"scene {index}") for index in (1, 2, 3)]
    )

    updated = visual.replace_scene(Scene(id=2, prompt_text="new"))

    assert [scene.prompt_text for scene in updated.scenes] == [
        "scene 1",
        "new",
        "scene 3",
    ]
    assert visual.scenes[1].prompt_text == "scene 2"


def test_finding_requires_reasons() -> None:
    """Findings carry at least one reason."""
    with pytest.raises(ValidationError):
        ValidationFinding(phase="copy", reasons=[])


def test_run_ids_must_be_uuid7() -> None:
    """Run ids are time-ordered UUIDs."""
    common = {
        "created_at": "2026-01-26T12:00:00Z",
        "status": RunStatus.COMPLETED,
        "input": InputModel(),
        "output": OutputModel(),
    }
    with pytest.raises(ValidationError, match="version 7"):
        Run(id=uuid4(), **common)
    assert Run(id=uuid7(), **common).status == "completed"


def test_created_at_must_be_iso8601() -> None:
    """Timestamps follow ISO-8601 with a zone designator."""
    with pytest.raises(ValidationError):
        Run(
            id=uuid7(),
            created_at="yesterday",
            status=RunStatus.COMPLETED,
            input=InputModel(),
            output=OutputModel(),
        )


def test_snapshot_json_round_trip_preserves_state() -> None:
    """Serialized snapshots reload to an equal state."""
    run = Run(
        id=uuid7(),
        created_at="2026-01-26T12:00:00.123+08:00",
        status=RunStatus.FAILED,
        input=InputModel(mode=Mode.MIND_RIOT, topic="isolation"),
        output=OutputModel(),
        findings=[ValidationFinding(phase="visual", reasons=["three scenes"])],
    )
    state = ProtocolState(runs=[run], viewing_run_id=run.id)

    reloaded = ProtocolState.model_validate_json(state.model_dump_json())

    assert reloaded == state
    assert reloaded.is_replaying
    assert reloaded.find_run(run.id) == run


def test_intent_union_discriminates_on_kind() -> None:
    """Intents parse from JSON by their kind tag."""
    adapter = TypeAdapter(Intent)
    run_id = uuid7()

    assert adapter.validate_python(
        {"kind": "set_mode", "mode": "mind_riot"}, strict=False
    ) == SetMode(mode=Mode.MIND_RIOT)
    assert adapter.validate_json('{"kind": "set_topic", "topic": " isolation "}') == (
        SetTopic(topic="isolation")
    )
    assert adapter.validate_python(
        {"kind": "delete_run", "run_id": run_id}
    ) == DeleteRun(run_id=run_id)


def test_replay_safe_intents() -> None:
    """Only history and replay navigation intents are replay safe."""
    assert DeleteRun in REPLAY_SAFE_INTENTS
    assert SetTopic not in REPLAY_SAFE_INTENTS
