"""Content materialization: degrade source detail to fit a budget.

Degrading the input before the call is cheaper and more predictable than
hoping the model truncates its own output gracefully. The strategy is picked
solely by complexity level:

- simple: everything verbatim
- moderate: capped sections, light truncation if still over budget
- complex: half the moderate caps, then smart truncation
- extreme: title and a description excerpt only
"""

from __future__ import annotations

import logging
import math

from adaptive_generation import constants as c
from adaptive_generation.core.types import (
    ComplexityAssessment,
    ComplexityLevel,
    ContentSignal,
    GenerationBudget,
    MaterializedContent,
    QualityTier,
    VideoAnalysis,
)

log = logging.getLogger(__name__)

_PARAGRAPH = "\n\n"


def estimate_tokens(text: str) -> int:
    """Rough token count for mixed-script text."""
    return math.ceil(len(text) / c.CHARS_PER_TOKEN_ESTIMATE)


def _target_chars(max_output_size: int) -> int:
    return max_output_size * c.CHARS_PER_TOKEN_TARGET


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def light_truncation(text: str, max_output_size: int) -> str:
    """Cut at the last paragraph break before the target, else hard-cut."""
    target = _target_chars(max_output_size)
    if len(text) <= target:
        return text
    head = text[:target]
    boundary = head.rfind(_PARAGRAPH)
    if boundary > 0:
        head = head[:boundary]
    return f"{head}{_PARAGRAPH}{c.OPTIMIZED_MARKER}"


def smart_truncation(text: str, max_output_size: int) -> str:
    """Cut at a paragraph break only if one lies in the last 30% of the target.

    The simplification marker is always appended.
    """
    target = _target_chars(max_output_size)
    if len(text) > target:
        text = text[:target]
        boundary = text.rfind(_PARAGRAPH)
        if boundary > target * c.SMART_TRUNCATION_WINDOW:
            text = text[:boundary]
    return f"{text}{_PARAGRAPH}{c.SIMPLIFIED_MARKER}"


def aggressive_truncation(text: str, max_output_size: int) -> str:
    target = _target_chars(max_output_size)
    if len(text) <= target:
        return text
    return f"{text[:target]}\n{c.HEAVILY_SIMPLIFIED_MARKER}"


class ContentMaterializer:
    """Builds the prompt payload for one attempt."""

    def materialize(
        self,
        signal: ContentSignal,
        assessment: ComplexityAssessment,
        budget: GenerationBudget,
    ) -> MaterializedContent:
        match assessment.level:
            case ComplexityLevel.SIMPLE:
                content = self._simple(signal)
            case ComplexityLevel.MODERATE:
                content = self._moderate(signal, budget)
            case ComplexityLevel.COMPLEX:
                content = self._complex(signal, budget)
            case _:
                content = self._extreme(signal, budget)
        log.debug(
            "Materialized %s content: %d chars, ~%d tokens, tier=%s",
            assessment.level.value,
            len(content.text),
            content.estimated_size,
            content.quality_tier.value,
        )
        return content

    def _simple(self, signal: ContentSignal) -> MaterializedContent:
        if signal.analysis is not None:
            text = _full_analysis(signal, signal.analysis)
        elif signal.transcript.strip():
            text = _transcript_content(signal)
        else:
            text = _basic_content(signal)
        return MaterializedContent(
            text=text,
            quality_tier=QualityTier.FULL,
            simplification_applied=False,
            estimated_size=estimate_tokens(text),
            strategy="simple_full_content",
        )

    def _moderate(
        self, signal: ContentSignal, budget: GenerationBudget
    ) -> MaterializedContent:
        if signal.analysis is not None:
            text = _optimized_analysis(signal, signal.analysis)
        elif signal.transcript.strip():
            text = _transcript_content(signal)
        else:
            text = _basic_content(signal)

        warning = None
        if estimate_tokens(text) > budget.max_output_size:
            text = light_truncation(text, budget.max_output_size)
            warning = "Content lightly optimized for processing efficiency."
        return MaterializedContent(
            text=text,
            quality_tier=QualityTier.FULL,
            simplification_applied=warning is not None,
            estimated_size=estimate_tokens(text),
            strategy="moderate_optimized_content",
            warning=warning,
        )

    def _complex(
        self, signal: ContentSignal, budget: GenerationBudget
    ) -> MaterializedContent:
        if signal.analysis is not None:
            text = _simplified_analysis(signal, signal.analysis)
        elif signal.transcript.strip():
            text = _transcript_content(signal, cap=c.COMPLEX_TRANSCRIPT_ONLY_CAP)
        else:
            text = _basic_content(signal)
        text = smart_truncation(text, budget.max_output_size)
        return MaterializedContent(
            text=text,
            quality_tier=QualityTier.PARTIAL,
            simplification_applied=True,
            estimated_size=estimate_tokens(text),
            strategy="complex_simplified_content",
            warning="Content simplified due to complexity for optimal processing.",
        )

    def _extreme(
        self, signal: ContentSignal, budget: GenerationBudget
    ) -> MaterializedContent:
        excerpt = signal.description[: c.EXTREME_DESCRIPTION_EXCERPT]
        text = f"Title: {signal.title or 'Untitled'}\nBrief: {excerpt}"
        text = aggressive_truncation(text, budget.max_output_size)
        return MaterializedContent(
            text=text,
            quality_tier=QualityTier.METADATA_ONLY,
            simplification_applied=True,
            estimated_size=estimate_tokens(text),
            strategy="extreme_minimal_content",
            warning="Content heavily simplified due to extreme complexity.",
        )


def _title(signal: ContentSignal) -> str:
    return f"Title: {signal.title or 'Untitled'}{_PARAGRAPH}"


def _transcript_content(signal: ContentSignal, cap: int | None = None) -> str:
    transcript = signal.transcript if cap is None else _clip(signal.transcript, cap)
    return f"{_title(signal)}Content: {transcript}"


def _basic_content(signal: ContentSignal) -> str:
    return (
        f"{_title(signal)}Description: "
        f"{signal.description or 'No description available'}"
    )


def _full_analysis(signal: ContentSignal, analysis: VideoAnalysis) -> str:
    parts = [_title(signal)]
    if analysis.generated_transcript:
        parts.append(f"Generated Transcript: {analysis.generated_transcript}{_PARAGRAPH}")
    if analysis.characters:
        lines = ["Characters:"]
        for i, char in enumerate(analysis.characters, 1):
            lines.append(f"{i}. {char.name}: {char.description} ({char.role})")
            if char.characteristics:
                lines.append(f"   - Characteristics: {char.characteristics}")
        parts.append("\n".join(lines) + _PARAGRAPH)
    if analysis.scenes:
        lines = ["Scene Breakdown:"]
        for i, scene in enumerate(analysis.scenes, 1):
            lines.append(
                f"{i}. {scene.description} ({scene.start_time:g}s-{scene.end_time:g}s)"
            )
            if scene.setting:
                lines.append(f"   - Setting: {scene.setting}")
            if scene.actions:
                lines.append(f"   - Actions: {', '.join(scene.actions)}")
        parts.append("\n".join(lines) + _PARAGRAPH)
    if analysis.story_structure:
        story = analysis.story_structure
        parts.append(
            "Story Structure:\n"
            f"- Hook: {story.hook}\n"
            f"- Development: {story.development}\n"
            f"- Climax: {story.climax}\n"
            f"- Resolution: {story.resolution}{_PARAGRAPH}"
        )
    if analysis.dialogues:
        lines = ["Key Dialogues:"]
        for i, line in enumerate(analysis.dialogues, 1):
            emotion = f" ({line.emotion})" if line.emotion else ""
            lines.append(f'{i}. {line.speaker}: "{line.text}"{emotion}')
        parts.append("\n".join(lines) + _PARAGRAPH)
    if analysis.visual_elements:
        parts.append(f"Visual Elements: {', '.join(analysis.visual_elements)}\n")
    if analysis.key_moments:
        parts.append(f"Key Moments: {'; '.join(analysis.key_moments)}\n")
    parts.append(f"Mood: {analysis.mood}\n")
    if analysis.themes:
        parts.append(f"Themes: {', '.join(analysis.themes)}\n")
    parts.append(f"\nContent Summary: {analysis.content_summary}")
    return "".join(parts)


def _optimized_analysis(signal: ContentSignal, analysis: VideoAnalysis) -> str:
    parts = [_title(signal)]
    if analysis.generated_transcript:
        transcript = _clip(analysis.generated_transcript, c.MODERATE_TRANSCRIPT_CAP)
        parts.append(f"Generated Transcript: {transcript}{_PARAGRAPH}")
    if analysis.characters:
        lines = ["Main Characters:"]
        for i, char in enumerate(analysis.characters[: c.MODERATE_CHARACTER_CAP], 1):
            lines.append(f"{i}. {char.name}: {char.description} ({char.role})")
        parts.append("\n".join(lines) + _PARAGRAPH)
    if analysis.scenes:
        lines = ["Key Scenes:"]
        for i, scene in enumerate(analysis.scenes[: c.MODERATE_SCENE_CAP], 1):
            description = _clip(scene.description, c.MODERATE_SCENE_DESCRIPTION_CAP)
            lines.append(
                f"{i}. {description} ({scene.start_time:g}s-{scene.end_time:g}s)"
            )
        parts.append("\n".join(lines) + _PARAGRAPH)
    if analysis.story_structure:
        story = analysis.story_structure
        parts.append(f"Story: {story.hook} → {story.climax} → {story.resolution}{_PARAGRAPH}")
    parts.append(f"Mood: {analysis.mood}\nSummary: {analysis.content_summary}")
    return "".join(parts)


def _simplified_analysis(signal: ContentSignal, analysis: VideoAnalysis) -> str:
    parts = [_title(signal)]
    if analysis.generated_transcript:
        transcript = _clip(analysis.generated_transcript, c.COMPLEX_TRANSCRIPT_CAP)
        parts.append(f"Content: {transcript}{_PARAGRAPH}")
    if analysis.characters:
        names = ", ".join(
            f"{char.name} ({char.role})"
            for char in analysis.characters[: c.COMPLEX_CHARACTER_CAP]
        )
        parts.append(f"Characters: {names}{_PARAGRAPH}")
    if analysis.scenes:
        scenes = "; ".join(s.description for s in analysis.scenes[: c.COMPLEX_SCENE_CAP])
        parts.append(f"Scenes: {scenes}{_PARAGRAPH}")
    parts.append(f"Mood: {analysis.mood}\nSummary: {analysis.content_summary}")
    return "".join(parts)


_DEFAULT_MATERIALIZER = ContentMaterializer()


def materialize(
    signal: ContentSignal,
    assessment: ComplexityAssessment,
    budget: GenerationBudget,
) -> MaterializedContent:
    return _DEFAULT_MATERIALIZER.materialize(signal, assessment, budget)
