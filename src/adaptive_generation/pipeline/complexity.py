"""Complexity scoring for source material.

Turns a `ContentSignal` into a `ComplexityAssessment`: a 0-100 score, the
level derived from it, and three risk ratings that are computed from the
signal directly rather than from the score.
"""

from __future__ import annotations

import logging
import math

from adaptive_generation import constants as c
from adaptive_generation.core.types import (
    ComplexityAssessment,
    ComplexityLevel,
    ContentSignal,
    RiskFactors,
    RiskLevel,
)

log = logging.getLogger(__name__)

type StepTable = tuple[tuple[float, int], ...]


def step_score(value: float, steps: StepTable, *, exclusive: bool = False) -> int:
    """Map ``value`` through a step table, returning 100 past the last step."""
    for bound, score in steps:
        if value < bound or (not exclusive and value == bound):
            return score
    return c.MAX_SCORE


def level_for_score(score: int) -> ComplexityLevel:
    if score <= c.LEVEL_THRESHOLDS["simple"]:
        return ComplexityLevel.SIMPLE
    if score <= c.LEVEL_THRESHOLDS["moderate"]:
        return ComplexityLevel.MODERATE
    if score <= c.LEVEL_THRESHOLDS["complex"]:
        return ComplexityLevel.COMPLEX
    return ComplexityLevel.EXTREME


def rate_risk(value: float, thresholds: tuple[float, float]) -> RiskLevel:
    medium, high = thresholds
    if value > high:
        return RiskLevel.HIGH
    if value > medium:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class ComplexityScorer:
    """Stateless scorer; safe to share between tasks."""

    def assess(self, signal: ContentSignal) -> ComplexityAssessment:
        sub_scores = self._sub_scores(signal)
        if signal.has_analysis:
            mode = "full"
            weights = c.FULL_WEIGHTS
        else:
            mode = "basic"
            weights = c.BASIC_WEIGHTS
        weighted = sum(sub_scores[name] * weight for name, weight in weights.items())
        score = min(c.MAX_SCORE, max(0, _round_half_up(weighted)))
        level = level_for_score(score)

        content_length = estimate_content_length(signal)
        structured_size = estimate_structured_size(signal)
        risks = RiskFactors(
            token_overflow=rate_risk(content_length, c.TOKEN_OVERFLOW_THRESHOLDS),
            processing_time=rate_risk(
                signal.duration_seconds, c.PROCESSING_TIME_THRESHOLDS
            ),
            truncation=rate_risk(structured_size, c.TRUNCATION_THRESHOLDS),
        )

        recommended = c.LEVEL_TOKEN_BUDGETS[level.value]
        discount = c.RECOMMENDED_BUDGET_DISCOUNTS.get(risks.token_overflow.value)
        if discount is not None:
            recommended = math.floor(recommended * discount)

        assessment = ComplexityAssessment(
            score=score,
            level=level,
            risk_factors=risks,
            recommended_budget=recommended,
            sub_scores={
                name: sub_scores[name] for name in weights
            },
            mode=mode,
            total_content_length=content_length,
            structured_data_size=structured_size,
        )
        log.debug(
            "Assessed complexity score=%d level=%s mode=%s risks=%s",
            score,
            level.value,
            mode,
            risks,
        )
        return assessment

    def _sub_scores(self, signal: ContentSignal) -> dict[str, int]:
        return {
            "duration": step_score(signal.duration_seconds, c.DURATION_STEPS),
            "characters": step_score(signal.character_count or 0, c.CHARACTER_STEPS),
            "scenes": step_score(signal.scene_count or 0, c.SCENE_STEPS),
            "dialogues": step_score(signal.dialogue_count or 0, c.DIALOGUE_STEPS),
            "transcript": step_score(
                signal.transcript_length, c.TRANSCRIPT_STEPS, exclusive=True
            ),
        }


def estimate_content_length(signal: ContentSignal) -> int:
    """Characters the model has to read, counting each element at a flat rate."""
    return int(
        signal.transcript_length
        + signal.description_length
        + (signal.character_count or 0) * c.CONTENT_CHARS_PER_CHARACTER
        + (signal.scene_count or 0) * c.CONTENT_CHARS_PER_SCENE
        + (signal.dialogue_count or 0) * c.CONTENT_CHARS_PER_DIALOGUE
    )


def estimate_structured_size(signal: ContentSignal) -> int:
    """Characters of nested JSON the model is likely to emit for this signal."""
    return int(
        (signal.character_count or 0) * c.STRUCTURED_CHARS_PER_CHARACTER
        + (signal.scene_count or 0) * c.STRUCTURED_CHARS_PER_SCENE
        + (signal.dialogue_count or 0) * c.STRUCTURED_CHARS_PER_DIALOGUE
        + signal.visual_element_count * c.STRUCTURED_CHARS_PER_VISUAL_ELEMENT
        + signal.key_moment_count * c.STRUCTURED_CHARS_PER_KEY_MOMENT
    )


_DEFAULT_SCORER = ComplexityScorer()


def assess(signal: ContentSignal) -> ComplexityAssessment:
    """Score ``signal`` with a default `ComplexityScorer`."""
    return _DEFAULT_SCORER.assess(signal)
