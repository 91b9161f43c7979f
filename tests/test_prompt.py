"""Tests for prompt construction from a room snapshot."""

import uuid

from roomai.models.contracts import RoomSnapshot
from roomai.services.prompt import build_prompt_input, render_prompt


def _snapshot(**overrides) -> RoomSnapshot:
    values = {
        "room_id": uuid.uuid4(),
        "room_type": "LIVING_ROOM",
        "style": "ART_DECO",
        "length": 5.0,
        "width": 4.0,
        "height": 2.7,
        "materials": ("marble", "brass"),
        "ambient_color": "emerald",
    }
    return RoomSnapshot(**(values | overrides))


class TestBuildPromptInput:
    def test_copies_room_fields(self):
        prompt_input = build_prompt_input(_snapshot())
        assert prompt_input.room_type == "LIVING_ROOM"
        assert prompt_input.style == "ART_DECO"
        assert prompt_input.dimensions.height == 2.7
        assert prompt_input.materials == ["marble", "brass"]
        assert prompt_input.ambient_color == "emerald"
        assert prompt_input.custom_prompt is None

    def test_blank_values_dropped(self):
        prompt_input = build_prompt_input(
            _snapshot(materials=("oak", " ", ""), ambient_color=""), "   "
        )
        assert prompt_input.materials == ["oak"]
        assert prompt_input.ambient_color is None
        assert prompt_input.custom_prompt is None

    def test_custom_prompt_stripped(self):
        prompt_input = build_prompt_input(_snapshot(), "  gold accents  ")
        assert prompt_input.custom_prompt == "gold accents"


class TestRenderPrompt:
    def test_default_instruction(self):
        prompt = render_prompt(build_prompt_input(_snapshot()))
        assert prompt.startswith(
            "A art deco style living room measuring 5m long by 4m wide with a 2.7m ceiling."
        )
        assert "Materials: marble, brass." in prompt
        assert "Ambient color: emerald." in prompt
        assert prompt.endswith("high detail.")

    def test_custom_prompt_replaces_instruction(self):
        prompt = render_prompt(build_prompt_input(_snapshot(), "Add a bar cart"))
        assert prompt.endswith("Add a bar cart")
        assert "Photorealistic" not in prompt

    def test_optional_sections_omitted(self):
        prompt = render_prompt(build_prompt_input(_snapshot(materials=(), ambient_color=None)))
        assert "Materials:" not in prompt
        assert "Ambient color:" not in prompt

    def test_override_sent_unchanged(self):
        earlier = render_prompt(build_prompt_input(_snapshot(), "Add a bar cart"))
        prompt_input = build_prompt_input(_snapshot(), prompt_override=f"  {earlier}  ")

        assert render_prompt(prompt_input) == earlier
        assert render_prompt(prompt_input).count("measuring") == 1

    def test_blank_override_ignored(self):
        prompt_input = build_prompt_input(_snapshot(), prompt_override="   ")
        assert prompt_input.prompt_override is None
        assert render_prompt(prompt_input).endswith("high detail.")
