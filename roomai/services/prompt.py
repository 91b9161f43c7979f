"""Prompt construction for design generation.

``build_prompt_input`` shapes a room snapshot into the structured
``PromptInput`` handed to a provider; ``render_prompt`` turns that into the
text prompt both backends send. A caller-supplied custom prompt replaces the
default closing instruction but keeps the room description around it. A
prompt override is a complete prompt carried over from an earlier
generation and is sent unchanged.
"""

from __future__ import annotations

from roomai.models.contracts import Dimensions, PromptInput, RoomSnapshot

_DEFAULT_INSTRUCTION = (
    "Photorealistic interior design render, natural lighting, balanced composition, "
    "cohesive furniture and decor, high detail."
)


def _humanize(value: str) -> str:
    """LIVING_ROOM -> living room, ART_DECO -> art deco."""
    return value.replace("_", " ").lower()


def _clean(value: str | None) -> str | None:
    return value.strip() or None if value else None


def build_prompt_input(
    snapshot: RoomSnapshot,
    custom_prompt: str | None = None,
    *,
    prompt_override: str | None = None,
) -> PromptInput:
    return PromptInput(
        room_type=snapshot.room_type,
        style=snapshot.style,
        dimensions=Dimensions(
            length=snapshot.length,
            width=snapshot.width,
            height=snapshot.height,
        ),
        materials=[m for m in snapshot.materials if m and m.strip()],
        ambient_color=snapshot.ambient_color or None,
        custom_prompt=_clean(custom_prompt),
        prompt_override=_clean(prompt_override),
    )


def render_prompt(prompt_input: PromptInput) -> str:
    if prompt_input.prompt_override:
        return prompt_input.prompt_override
    dims = prompt_input.dimensions
    parts = [
        f"A {_humanize(prompt_input.style)} style {_humanize(prompt_input.room_type)}",
        f"measuring {dims.length:g}m long by {dims.width:g}m wide with a {dims.height:g}m ceiling.",
    ]
    if prompt_input.materials:
        parts.append(f"Materials: {', '.join(prompt_input.materials)}.")
    if prompt_input.ambient_color:
        parts.append(f"Ambient color: {prompt_input.ambient_color}.")
    parts.append(prompt_input.custom_prompt or _DEFAULT_INSTRUCTION)
    return " ".join(parts)
