"""Prompt assembly around materialized content."""

from __future__ import annotations

from adaptive_generation.core.types import (
    GenerationBudget,
    MaterializedContent,
    OutputMode,
    QualityTier,
)

DEFAULT_SCENE_COUNT = 4

_SHAPE = """{
  "scenario": "the full story narrative",
  "genre": "one or two words",
  "mood": "one or two words",
  "music": "a short description of the score",
  "characters": [{"name": "...", "description": "..."}],
  "settings": [{"name": "...", "description": "..."}],
  "scenes": [
    {
      "imagePrompt": "...",
      "videoPrompt": "...",
      "description": "...",
      "voiceover": "...",
      "charactersPresent": ["..."]
    }
  ]
}"""

_TIER_NOTES = {
    QualityTier.FULL: "",
    QualityTier.PARTIAL: (
        "The source below has been condensed. Fill gaps with plausible detail "
        "that stays consistent with it.\n"
    ),
    QualityTier.METADATA_ONLY: (
        "Only the title and a short excerpt of the source are available. "
        "Invent a coherent story inspired by them.\n"
    ),
}


def build_prompt(
    content: MaterializedContent,
    budget: GenerationBudget,
    *,
    target_language: str | None = None,
    scene_count: int = DEFAULT_SCENE_COUNT,
) -> str:
    """Wrap materialized content in storyboard instructions.

    Structured budgets ask for bare JSON (the adapter also sets a JSON mime
    type); free-text budgets ask for JSON-shaped text and tolerate wrapping.
    """
    scene_count = max(1, scene_count)
    language = target_language or "English"
    # Rough word allowance keeps the model away from its size limit.
    words = max(60, budget.max_output_size // 2)
    if budget.output_mode is OutputMode.STRUCTURED:
        format_rules = (
            "Respond with a single JSON object and nothing else. "
            "Do not wrap it in markdown."
        )
    else:
        format_rules = (
            "Respond with a JSON object. Keep every string on one line and "
            "close every bracket."
        )
    return (
        "You are a storyboard writer turning reference material into a short "
        "video concept.\n"
        f"{_TIER_NOTES[content.quality_tier]}"
        f"Write in {language}. Produce exactly {scene_count} scenes and keep "
        f"the whole answer under about {words} words.\n"
        f"{format_rules}\n"
        f"Use this shape:\n{_SHAPE}\n\n"
        f"Reference material:\n{content.text}\n"
    )
