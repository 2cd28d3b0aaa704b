"""Budget planning: from a complexity assessment to generation parameters.

More complex content gets a *smaller* output budget, because more fields
compete for the same hard ceiling the remote model enforces. Risk discounts
compose multiplicatively in a fixed order (token overflow, processing time,
truncation) and the result never drops below a language-dependent floor.
"""

from __future__ import annotations

import logging
import math

from adaptive_generation import constants as c
from adaptive_generation.core.types import (
    ComplexityAssessment,
    GenerationBudget,
    OutputMode,
    RiskLevel,
)

log = logging.getLogger(__name__)


def is_logographic(language: str | None) -> bool:
    """Whether ``language`` names a script that costs more tokens per word."""
    if not language:
        return False
    return language.strip().lower() in c.LOGOGRAPHIC_LANGUAGES


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class BudgetPlanner:
    """Plans a `GenerationBudget` for one assessment.

    Args:
        logographic_multiplier: Budget multiplier for logographic target
            languages. Also raises the free-text floor.
    """

    def __init__(
        self, logographic_multiplier: float = c.DEFAULT_LOGOGRAPHIC_MULTIPLIER
    ) -> None:
        if logographic_multiplier < 1.0:
            raise ValueError(
                f"logographic_multiplier must be >= 1.0, got {logographic_multiplier}"
            )
        self.logographic_multiplier = logographic_multiplier

    def floor_for(
        self, language: str | None, mode: OutputMode = OutputMode.FREE_TEXT
    ) -> int:
        logographic = is_logographic(language)
        if mode is OutputMode.STRUCTURED:
            return c.STRUCTURED_FLOOR_LOGOGRAPHIC if logographic else c.STRUCTURED_FLOOR
        multiplier = self.logographic_multiplier if logographic else 1.0
        return _round_half_up(c.FREE_TEXT_FLOOR * multiplier)

    def plan(
        self,
        assessment: ComplexityAssessment,
        target_language: str | None = None,
        output_mode: OutputMode = OutputMode.FREE_TEXT,
    ) -> GenerationBudget:
        level = assessment.level.value
        risks = assessment.risk_factors
        logographic = is_logographic(target_language)
        multiplier = self.logographic_multiplier if logographic else 1.0

        notes = [f"{level} content ({assessment.score}/100)"]
        size = c.LEVEL_TOKEN_BUDGETS[level] * multiplier
        if logographic:
            notes.append(f"{target_language} needs {multiplier:g}x tokens")

        for category, rating in (
            ("token_overflow", risks.token_overflow),
            ("processing_time", risks.processing_time),
            ("truncation", risks.truncation),
        ):
            discount = c.RISK_DISCOUNTS[category].get(rating.value)
            if discount is not None:
                size *= discount
                notes.append(f"{rating.value} {category.replace('_', ' ')} risk")

        floor = self.floor_for(target_language, OutputMode.FREE_TEXT)
        max_output_size = max(floor, _round_half_up(size))
        creativity = c.LEVEL_CREATIVITY[level]
        timeout_ms = self._timeout(assessment)

        if output_mode is OutputMode.STRUCTURED:
            factor = (
                c.STRUCTURED_REDUCTION_LOGOGRAPHIC
                if logographic
                else c.STRUCTURED_REDUCTION
            )
            cap = c.STRUCTURED_LEVEL_CAPS[level] * (2 if logographic else 1)
            floor = self.floor_for(target_language, OutputMode.STRUCTURED)
            max_output_size = max(
                floor, min(cap, _round_half_up(max_output_size * factor))
            )
            creativity = max(
                c.MIN_CREATIVITY, round(creativity - c.STRUCTURED_CREATIVITY_DROP, 2)
            )
            notes.append(f"structured output reduced to {max_output_size}")

        budget = GenerationBudget(
            max_output_size=max_output_size,
            creativity=creativity,
            timeout_ms=timeout_ms,
            output_mode=output_mode,
            rationale=", ".join(notes),
            floor=floor,
        )
        log.info(
            "Planned budget size=%d creativity=%.2f timeout=%dms mode=%s",
            budget.max_output_size,
            budget.creativity,
            budget.timeout_ms,
            budget.output_mode.value,
        )
        return budget

    def _timeout(self, assessment: ComplexityAssessment) -> int:
        timeout = c.LEVEL_TIMEOUT_MS[assessment.level.value]
        rating = assessment.risk_factors.processing_time
        if rating is not RiskLevel.LOW:
            timeout *= c.TIMEOUT_RISK_MULTIPLIERS[rating.value]
        return clamp_timeout(timeout)


def clamp_timeout(timeout_ms: float) -> int:
    return int(min(max(timeout_ms, c.MIN_TIMEOUT_MS), c.MAX_TIMEOUT_MS))


def plan(
    assessment: ComplexityAssessment,
    target_language: str | None = None,
    output_mode: OutputMode = OutputMode.FREE_TEXT,
) -> GenerationBudget:
    """Plan with the default logographic multiplier."""
    return BudgetPlanner().plan(assessment, target_language, output_mode)
