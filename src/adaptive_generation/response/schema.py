"""Field specifications for storyboard payloads.

The lenient validator is driven entirely by these tables: each `FieldSpec`
says whether a field is required, what kind of value it holds, which
alternative keys to accept, and how to build a default.
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
import typing

from pydantic import BaseModel, ConfigDict, Field

type FieldKind = typing.Literal["text", "list", "text_list"]


@dataclasses.dataclass(frozen=True, slots=True)
class FieldSpec:
    """How one payload field is checked and defaulted.

    ``default_factory`` receives the element index (scenes) or ``0``
    (top-level fields) so generated defaults can be numbered.
    """

    name: str
    kind: FieldKind = "text"
    required: bool = False
    default_factory: Callable[[int], typing.Any] | None = None
    aliases: tuple[str, ...] = ()

    def default(self, index: int = 0) -> typing.Any:
        if self.default_factory is None:
            return None
        return self.default_factory(index)


def _const(value: typing.Any) -> Callable[[int], typing.Any]:
    # Fresh copies so callers can mutate their payload freely.
    return lambda _index: _copy(value)


def _copy(value: typing.Any) -> typing.Any:
    if isinstance(value, list):
        return [_copy(v) for v in value]
    if isinstance(value, dict):
        return {k: _copy(v) for k, v in value.items()}
    return value


DEFAULT_SCENARIO = "A compelling story unfolds through visual storytelling."

SCENES_FIELD = "scenes"

TOP_LEVEL_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(name=SCENES_FIELD, kind="list", required=True),
    FieldSpec(
        name="scenario",
        default_factory=_const(DEFAULT_SCENARIO),
        aliases=("narrative", "generatedPitch", "story", "summary"),
    ),
    FieldSpec(name="genre", default_factory=_const("Cinematic")),
    FieldSpec(name="mood", default_factory=_const("Inspirational")),
    FieldSpec(
        name="music",
        default_factory=_const("Orchestral score that enhances the emotional journey."),
    ),
    FieldSpec(
        name="characters",
        kind="list",
        default_factory=_const(
            [{"name": "Protagonist", "description": "Main character of the story"}]
        ),
    ),
    FieldSpec(
        name="settings",
        kind="list",
        default_factory=_const(
            [{"name": "Main Setting", "description": "Primary location for the story"}]
        ),
    ),
)

SCENE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(
        name="imagePrompt",
        default_factory=lambda i: f"Cinematic establishing shot for scene {i + 1}",
        aliases=("image_prompt",),
    ),
    FieldSpec(
        name="videoPrompt",
        default_factory=lambda i: f"Slow camera movement through scene {i + 1}",
        aliases=("video_prompt",),
    ),
    FieldSpec(
        name="description",
        default_factory=lambda i: f"Scene {i + 1} of the story",
    ),
    FieldSpec(
        name="voiceover",
        default_factory=_const(""),
        aliases=("voiceOver", "voice_over"),
    ),
    FieldSpec(
        name="charactersPresent",
        kind="text_list",
        default_factory=_const([]),
        aliases=("characters_present",),
    ),
)


def scene_template(index: int = 0) -> dict[str, typing.Any]:
    """A placeholder scene with every field defaulted."""
    return {spec.name: spec.default(index) for spec in SCENE_FIELDS}


# --- Strict models ---


class SceneModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    image_prompt: str = Field(alias="imagePrompt", min_length=1)
    video_prompt: str = Field(alias="videoPrompt", min_length=1)
    description: str = Field(min_length=1)
    voiceover: str = ""
    characters_present: list[str] = Field(default_factory=list, alias="charactersPresent")


class NamedEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    description: str = ""


class StoryboardModel(BaseModel):
    """Strict storyboard shape: every scene fully specified, at least one."""

    model_config = ConfigDict(extra="allow")

    scenario: str = Field(min_length=1)
    scenes: list[SceneModel] = Field(min_length=1)
    genre: str = ""
    mood: str = ""
    music: str = ""
    characters: list[NamedEntry] = Field(default_factory=list)
    settings: list[NamedEntry] = Field(default_factory=list)
