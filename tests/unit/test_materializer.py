"""Unit tests for content materialization and prompt assembly."""

import pytest

from adaptive_generation.core.types import (
    Character,
    ComplexityLevel,
    ContentSignal,
    OutputMode,
    QualityTier,
    SceneBeat,
    StoryStructure,
    VideoAnalysis,
)
from adaptive_generation.pipeline.materializer import (
    ContentMaterializer,
    aggressive_truncation,
    estimate_tokens,
    light_truncation,
    materialize,
    smart_truncation,
)
from adaptive_generation.pipeline.prompts import build_prompt

pytestmark = pytest.mark.unit

OPTIMIZED = "[Content optimized for processing]"
SIMPLIFIED = "[Content simplified due to complexity]"


def _analysis(characters: int = 2, scenes: int = 2) -> VideoAnalysis:
    return VideoAnalysis(
        characters=tuple(
            Character(f"Char{i}", f"description {i}", "support") for i in range(characters)
        ),
        scenes=tuple(
            SceneBeat(f"Scene beat {i}", start_time=i * 5, end_time=i * 5 + 5)
            for i in range(scenes)
        ),
        story_structure=StoryStructure("hook", "build", "peak", "end"),
        mood="Tense",
        content_summary="A chase across rooftops.",
        generated_transcript="They run. They jump.",
    )


class TestTruncationHelpers:
    def test_estimate_tokens_rounds_up(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("abcdef") == 3

    def test_light_truncation_prefers_a_paragraph_break(self):
        text = "a" * 10 + "\n\n" + "b" * 100

        assert light_truncation(text, 10) == "a" * 10 + f"\n\n{OPTIMIZED}"

    def test_light_truncation_hard_cuts_without_a_break(self):
        assert light_truncation("x" * 100, 10) == "x" * 30 + f"\n\n{OPTIMIZED}"

    def test_light_truncation_leaves_short_text_alone(self):
        assert light_truncation("short", 10) == "short"

    def test_smart_truncation_uses_only_late_paragraph_breaks(self):
        early = "a" * 10 + "\n\n" + "b" * 100
        late = "a" * 25 + "\n\n" + "b" * 100

        assert smart_truncation(early, 10) == (early[:30] + f"\n\n{SIMPLIFIED}")
        assert smart_truncation(late, 10) == "a" * 25 + f"\n\n{SIMPLIFIED}"

    def test_smart_truncation_always_marks_the_text(self):
        assert smart_truncation("tiny", 100) == f"tiny\n\n{SIMPLIFIED}"

    def test_aggressive_truncation(self):
        assert aggressive_truncation("tiny", 100) == "tiny"
        assert aggressive_truncation("z" * 50, 10) == "z" * 30 + "\n[Heavily simplified]"


class TestContentMaterializer:
    def test_simple_with_transcript(self, make_assessment, make_budget):
        signal = ContentSignal.from_source(title="Walk", transcript="hello there")

        content = ContentMaterializer().materialize(
            signal, make_assessment(ComplexityLevel.SIMPLE), make_budget()
        )

        assert content.text == "Title: Walk\n\nContent: hello there"
        assert content.quality_tier is QualityTier.FULL
        assert content.simplification_applied is False
        assert content.strategy == "simple_full_content"
        assert content.estimated_size == estimate_tokens(content.text)

    def test_simple_without_anything_uses_placeholders(self, make_assessment, make_budget):
        content = materialize(
            ContentSignal(), make_assessment(ComplexityLevel.SIMPLE), make_budget()
        )

        assert content.text == "Title: Untitled\n\nDescription: No description available"

    def test_simple_with_analysis_keeps_every_section(self, make_assessment, make_budget):
        signal = ContentSignal.from_source(title="Roofs", analysis=_analysis())

        content = materialize(
            signal, make_assessment(ComplexityLevel.SIMPLE), make_budget()
        )

        assert "Generated Transcript: They run. They jump." in content.text
        assert "1. Char0: description 0 (support)" in content.text
        assert "Scene Breakdown:" in content.text
        assert "2. Scene beat 1 (5s-10s)" in content.text
        assert "- Climax: peak" in content.text
        assert content.text.endswith("Content Summary: A chase across rooftops.")

    def test_moderate_caps_characters(self, make_assessment, make_budget):
        signal = ContentSignal.from_source(
            title="Crowd", analysis=_analysis(characters=7, scenes=0)
        )

        content = materialize(
            signal, make_assessment(ComplexityLevel.MODERATE), make_budget()
        )

        assert "Main Characters:" in content.text
        assert "5. Char4" in content.text
        assert "Char5" not in content.text
        assert content.warning is None
        assert content.quality_tier is QualityTier.FULL

    def test_moderate_over_budget_is_lightly_truncated(self, make_assessment, make_budget):
        transcript = "\n\n".join(["word " * 40] * 30)
        signal = ContentSignal.from_source(title="Talk", transcript=transcript)
        budget = make_budget(max_output_size=200, floor=0)

        content = materialize(signal, make_assessment(ComplexityLevel.MODERATE), budget)

        assert content.text.endswith(OPTIMIZED)
        assert len(content.text) <= 200 * 3 + len(OPTIMIZED) + 2
        assert content.simplification_applied is True
        assert content.warning == "Content lightly optimized for processing efficiency."

    def test_complex_transcript_only_is_capped_and_marked(
        self, make_assessment, make_budget
    ):
        signal = ContentSignal.from_source(title="Lecture", transcript="t" * 2000)

        content = materialize(
            signal, make_assessment(ComplexityLevel.COMPLEX), make_budget(max_output_size=500)
        )

        assert content.text == (
            "Title: Lecture\n\nContent: " + "t" * 800 + f"...\n\n{SIMPLIFIED}"
        )
        assert content.quality_tier is QualityTier.PARTIAL
        assert content.simplification_applied is True

    def test_complex_analysis_keeps_three_characters(self, make_assessment, make_budget):
        signal = ContentSignal.from_source(
            title="Heist", analysis=_analysis(characters=5, scenes=6)
        )

        content = materialize(
            signal, make_assessment(ComplexityLevel.COMPLEX), make_budget()
        )

        assert "Characters: Char0 (support), Char1 (support), Char2 (support)" in content.text
        assert "Char3" not in content.text
        assert "Scene beat 3" in content.text
        assert "Scene beat 4" not in content.text

    def test_extreme_keeps_metadata_only(self, make_assessment, make_budget):
        signal = ContentSignal.from_source(
            title="Epic", description="d" * 300, transcript="ignored " * 100
        )

        content = materialize(
            signal, make_assessment(ComplexityLevel.EXTREME), make_budget(max_output_size=400)
        )

        assert content.text == "Title: Epic\nBrief: " + "d" * 100
        assert "ignored" not in content.text
        assert content.quality_tier is QualityTier.METADATA_ONLY

    def test_extreme_with_tiny_budget_is_cut_hard(self, make_assessment, make_budget):
        signal = ContentSignal.from_source(title="Epic", description="d" * 300)

        content = materialize(
            signal,
            make_assessment(ComplexityLevel.EXTREME),
            make_budget(max_output_size=10, floor=0),
        )

        assert content.text.endswith("\n[Heavily simplified]")
        assert len(content.text) == 30 + len("\n[Heavily simplified]")


class TestBuildPrompt:
    def test_prompt_wraps_content_and_language(self, make_assessment, make_budget):
        content = materialize(
            ContentSignal.from_source(title="Walk", transcript="hello"),
            make_assessment(ComplexityLevel.SIMPLE),
            make_budget(),
        )

        prompt = build_prompt(content, make_budget(), target_language="Deutsch", scene_count=6)

        assert "Write in Deutsch." in prompt
        assert "Produce exactly 6 scenes" in prompt
        assert "about 400 words" in prompt
        assert prompt.endswith("Reference material:\nTitle: Walk\n\nContent: hello\n")

    def test_structured_budget_asks_for_bare_json(self, make_assessment, make_budget):
        content = materialize(
            ContentSignal(title="x"),
            make_assessment(ComplexityLevel.EXTREME),
            make_budget(),
        )
        budget = make_budget(
            max_output_size=150, output_mode=OutputMode.STRUCTURED, floor=150
        )

        prompt = build_prompt(content, budget, scene_count=0)

        assert "Write in English." in prompt
        assert "Produce exactly 1 scenes" in prompt
        assert "Respond with a single JSON object and nothing else." in prompt
        assert "Only the title and a short excerpt" in prompt
        assert "about 75 words" in prompt
