"""Budget tightening after an attempt that hit a limit."""

from __future__ import annotations

import logging

from adaptive_generation import constants as c
from adaptive_generation.core.types import (
    GenerationBudget,
    GenerationFeedback,
    OutputMode,
)

from .budget import clamp_timeout

log = logging.getLogger(__name__)


class BudgetFeedbackAdjuster:
    """Derives the next attempt's budget from the last attempt's outcome.

    Args:
        slow_response_ms: Elapsed time above which a response counts as slow.
    """

    def __init__(self, slow_response_ms: int = c.DEFAULT_SLOW_RESPONSE_MS) -> None:
        self.slow_response_ms = slow_response_ms

    def adjust(
        self, budget: GenerationBudget, feedback: GenerationFeedback
    ) -> GenerationBudget:
        size = float(budget.max_output_size)
        creativity = budget.creativity
        timeout_ms = budget.timeout_ms
        adjustments: list[str] = []

        if feedback.hit_size_limit:
            factor = (
                c.SIZE_LIMIT_FACTOR_STRUCTURED
                if budget.output_mode is OutputMode.STRUCTURED
                else c.SIZE_LIMIT_FACTOR_FREE_TEXT
            )
            size *= factor
            creativity = max(
                c.MIN_CREATIVITY, round(creativity - c.SIZE_LIMIT_CREATIVITY_DROP, 2)
            )
            adjustments.append(f"size limit hit: x{factor:g}")
        if feedback.truncated:
            size *= c.TRUNCATION_FACTOR
            adjustments.append(f"truncated output: x{c.TRUNCATION_FACTOR:g}")
        if (
            feedback.elapsed_ms is not None
            and feedback.elapsed_ms > self.slow_response_ms
        ):
            size *= c.SLOW_RESPONSE_FACTOR
            timeout_ms = clamp_timeout(timeout_ms * c.SLOW_RESPONSE_TIMEOUT_FACTOR)
            adjustments.append(f"slow response ({feedback.elapsed_ms:.0f}ms)")

        if not adjustments:
            return budget

        max_output_size = max(budget.floor, 1, round(size))
        log.info(
            "Adjusted budget %d -> %d (%s)",
            budget.max_output_size,
            max_output_size,
            "; ".join(adjustments),
        )
        return budget.with_changes(
            max_output_size=max_output_size,
            creativity=creativity,
            timeout_ms=timeout_ms,
            adjustments=(*budget.adjustments, *adjustments),
        )


def adjust_budget(
    budget: GenerationBudget,
    feedback: GenerationFeedback,
    *,
    slow_response_ms: int = c.DEFAULT_SLOW_RESPONSE_MS,
) -> GenerationBudget:
    return BudgetFeedbackAdjuster(slow_response_ms).adjust(budget, feedback)
