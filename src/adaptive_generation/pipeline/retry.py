"""Retry loop as an explicit state machine.

`transition` is pure: given the current state and what the latest attempt
produced, it returns the next state and the budget to use next. The executor
only performs the side effects (the generate call) between transitions,
which keeps the attempt ceiling and retry triggers testable on their own.

    PLANNING -> GENERATING -> PARSING -> VALIDATING -> DONE
                    ^                        |
                    +------ RETRYING <-------+ (retry trigger, under ceiling)
                                             +-> FAILED (exhausted, no fallback)
"""

from __future__ import annotations

import dataclasses

from adaptive_generation import constants as c
from adaptive_generation.core.types import (
    FinishReason,
    GenerationBudget,
    GenerationFeedback,
    GenerationResponse,
    ParseOutcome,
    PipelineState,
    ValidatedPayload,
)

from .feedback import BudgetFeedbackAdjuster


@dataclasses.dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Attempt ceiling, backoff between attempts, and what to do once exhausted."""

    max_attempts: int = c.DEFAULT_MAX_ATTEMPTS
    fallback_on_exhaustion: bool = True
    base_delay: float = c.RETRY_BASE_DELAY_S
    backoff_multiplier: float = c.RETRY_BACKOFF_MULTIPLIER
    max_delay: float = c.RETRY_MAX_DELAY_S

    def __post_init__(self) -> None:
        if not 1 <= self.max_attempts <= c.MAX_ATTEMPTS_CEILING:
            raise ValueError(
                f"max_attempts must be within [1, {c.MAX_ATTEMPTS_CEILING}], "
                f"got {self.max_attempts}"
            )
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must be non-negative")
        if self.backoff_multiplier < 1.0:
            raise ValueError(
                f"backoff_multiplier must be >= 1.0, got {self.backoff_multiplier}"
            )

    def delay_for(self, attempt: int, jitter: float = 1.0) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based).

        The exponential delay is scaled into ``[0.5, 1.0]`` of itself by
        ``jitter`` (a sample in ``[0, 1]``) and capped at ``max_delay``.
        """
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        jitter = min(max(jitter, 0.0), 1.0)
        exponential = self.base_delay * self.backoff_multiplier ** (attempt - 1)
        return min(exponential * (0.5 + 0.5 * jitter), self.max_delay)


@dataclasses.dataclass(frozen=True, slots=True)
class RetryContext:
    """What the state machine knows about the current attempt.

    ``attempt`` is the 1-based number of the attempt in flight.
    ``has_acceptable`` tells whether any attempt so far produced a payload
    that parsed without the fallback tier and passed validation.
    """

    attempt: int
    budget: GenerationBudget
    response: GenerationResponse | None = None
    parse: ParseOutcome | None = None
    validation: ValidatedPayload | None = None
    has_acceptable: bool = False


@dataclasses.dataclass(frozen=True, slots=True)
class Transition:
    state: PipelineState
    budget: GenerationBudget
    reason: str = ""


def retry_reasons(ctx: RetryContext) -> tuple[str, ...]:
    """Why the latest attempt should be retried; empty when it should not."""
    reasons = []
    if ctx.response is not None and ctx.response.finish_reason is FinishReason.SIZE_LIMIT:
        reasons.append("size limit reached")
    if ctx.parse is not None:
        if ctx.parse.truncated:
            reasons.append("output truncated")
        if ctx.parse.degraded:
            reasons.append(f"parsed via {ctx.parse.strategy_used.value}")
    if ctx.validation is not None and not ctx.validation.success:
        reasons.append("validation failed")
    return tuple(reasons)


def feedback_for(ctx: RetryContext) -> GenerationFeedback:
    response = ctx.response
    return GenerationFeedback(
        finish_reason=response.finish_reason if response else FinishReason.STOP,
        truncated=bool(ctx.parse and ctx.parse.truncated),
        elapsed_ms=response.elapsed_ms if response else None,
    )


def transition(
    state: PipelineState,
    ctx: RetryContext,
    policy: RetryPolicy,
    adjuster: BudgetFeedbackAdjuster | None = None,
) -> Transition:
    """Next state and budget after ``state`` completed with ``ctx``.

    Raises:
        ValueError: If ``state`` is terminal or the context lacks what the
            state needs.
    """
    match state:
        case PipelineState.PLANNING | PipelineState.RETRYING:
            return Transition(PipelineState.GENERATING, ctx.budget)
        case PipelineState.GENERATING:
            if ctx.response is None:
                raise ValueError("GENERATING needs a response")
            return Transition(PipelineState.PARSING, ctx.budget)
        case PipelineState.PARSING:
            if ctx.parse is None:
                raise ValueError("PARSING needs a parse outcome")
            return Transition(PipelineState.VALIDATING, ctx.budget)
        case PipelineState.VALIDATING:
            if ctx.validation is None:
                raise ValueError("VALIDATING needs a validation result")
            return _after_validation(ctx, policy, adjuster or BudgetFeedbackAdjuster())
        case _:
            raise ValueError(f"No transition out of terminal state {state.value}")


def _after_validation(
    ctx: RetryContext, policy: RetryPolicy, adjuster: BudgetFeedbackAdjuster
) -> Transition:
    reasons = retry_reasons(ctx)
    if not reasons:
        return Transition(PipelineState.DONE, ctx.budget, "accepted")
    if ctx.attempt < policy.max_attempts:
        next_budget = adjuster.adjust(ctx.budget, feedback_for(ctx))
        return Transition(PipelineState.RETRYING, next_budget, "; ".join(reasons))
    if ctx.has_acceptable or policy.fallback_on_exhaustion:
        return Transition(
            PipelineState.DONE, ctx.budget, f"attempts exhausted ({'; '.join(reasons)})"
        )
    return Transition(
        PipelineState.FAILED, ctx.budget, f"attempts exhausted ({'; '.join(reasons)})"
    )
