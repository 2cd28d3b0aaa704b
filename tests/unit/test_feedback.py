"""Unit tests for feedback-driven budget adjustment."""

import pytest

from adaptive_generation.core.types import FinishReason, GenerationFeedback, OutputMode
from adaptive_generation.pipeline.feedback import BudgetFeedbackAdjuster, adjust_budget

pytestmark = pytest.mark.unit

SIZE_LIMIT = GenerationFeedback(finish_reason=FinishReason.SIZE_LIMIT)


class TestBudgetFeedbackAdjuster:
    def test_clean_outcome_returns_the_same_budget(self, make_budget):
        budget = make_budget()

        assert BudgetFeedbackAdjuster().adjust(budget, GenerationFeedback()) is budget

    def test_size_limit_shrinks_free_text_budget(self, make_budget):
        adjusted = BudgetFeedbackAdjuster().adjust(make_budget(), SIZE_LIMIT)

        assert adjusted.max_output_size == 560
        assert adjusted.creativity == 0.7
        assert adjusted.adjustments == ("size limit hit: x0.7",)

    def test_size_limit_shrinks_structured_budget_harder(self, make_budget):
        budget = make_budget(
            max_output_size=400,
            creativity=0.6,
            output_mode=OutputMode.STRUCTURED,
            floor=150,
        )

        adjusted = BudgetFeedbackAdjuster().adjust(budget, SIZE_LIMIT)

        assert adjusted.max_output_size == 240
        assert adjusted.creativity == 0.5

    def test_truncation_and_size_limit_compound(self, make_budget):
        feedback = GenerationFeedback(
            finish_reason=FinishReason.SIZE_LIMIT, truncated=True
        )

        adjusted = BudgetFeedbackAdjuster().adjust(make_budget(), feedback)

        # 800 * 0.7 * 0.65
        assert adjusted.max_output_size == 364
        assert len(adjusted.adjustments) == 2

    def test_slow_response_extends_timeout(self, make_budget):
        feedback = GenerationFeedback(elapsed_ms=50_000)

        adjusted = BudgetFeedbackAdjuster().adjust(make_budget(), feedback)

        assert adjusted.max_output_size == 720
        assert adjusted.timeout_ms == 24_000
        assert adjusted.creativity == 0.8

    def test_fast_response_is_not_slow(self, make_budget):
        budget = make_budget()

        assert BudgetFeedbackAdjuster().adjust(
            budget, GenerationFeedback(elapsed_ms=45_000)
        ) is budget

    def test_never_drops_below_the_floor(self, make_budget):
        budget = make_budget(max_output_size=210, floor=200)

        adjusted = BudgetFeedbackAdjuster().adjust(budget, SIZE_LIMIT)

        assert adjusted.max_output_size == 200

    def test_creativity_bottoms_out(self, make_budget):
        adjusted = BudgetFeedbackAdjuster().adjust(make_budget(creativity=0.15), SIZE_LIMIT)

        assert adjusted.creativity == 0.1

    def test_repeated_adjustment_never_grows(self, make_budget):
        adjuster = BudgetFeedbackAdjuster()
        budget = make_budget()
        sizes = [budget.max_output_size]
        for _ in range(6):
            budget = adjuster.adjust(budget, SIZE_LIMIT)
            sizes.append(budget.max_output_size)

        assert sizes == sorted(sizes, reverse=True)
        assert sizes[-1] == budget.floor

    def test_adjustment_is_logged(self, make_budget, caplog_info):
        BudgetFeedbackAdjuster().adjust(make_budget(), SIZE_LIMIT)

        assert "Adjusted budget 800 -> 560" in caplog_info.text


def test_adjust_budget_uses_the_given_slow_threshold(make_budget):
    budget = make_budget()

    adjusted = adjust_budget(
        budget, GenerationFeedback(elapsed_ms=1_500), slow_response_ms=1_000
    )

    assert adjusted.max_output_size == 720
