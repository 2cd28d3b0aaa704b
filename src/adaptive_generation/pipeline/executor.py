"""Async driver for the adaptive generation loop.

`AdaptiveGenerator.run` scores the signal, plans a budget, then loops
materialize -> generate -> parse -> validate, stepping the retry state machine
between stages. The generate call is the only suspension point; everything
else is synchronous and CPU-bound.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import dataclasses
import logging
import random
import time
import typing

from adaptive_generation.config.types import FrozenConfig
from adaptive_generation.core.signals import summarize_signal
from adaptive_generation.core.types import (
    AttemptRecord,
    ComplexityAssessment,
    ContentSignal,
    Failure,
    GenerationBudget,
    GenerationResponse,
    GenerationResult,
    OutputMode,
    ParseOutcome,
    PipelineState,
    Result,
    Success,
    ValidatedPayload,
)
from adaptive_generation.exceptions import (
    AdaptiveGenerationError,
    GenerationError,
    PayloadValidationError,
)
from adaptive_generation.response.extraction import build_fallback
from adaptive_generation.response.parsing import ResponseParser
from adaptive_generation.response.validation import SchemaValidator
from adaptive_generation.telemetry import TelemetryContext, TelemetryContextProtocol

from .budget import BudgetPlanner
from .complexity import ComplexityScorer
from .feedback import BudgetFeedbackAdjuster
from .materializer import ContentMaterializer
from .prompts import DEFAULT_SCENE_COUNT, build_prompt
from .retry import RetryContext, RetryPolicy, transition

log = logging.getLogger(__name__)

type GenerateFn = Callable[[str, GenerationBudget], Awaitable[GenerationResponse | str]]
type OutputModeRequest = OutputMode | typing.Literal["auto", "structured", "free_text"]


async def _wrapped_generate(
    generate_fn: GenerateFn, prompt: str, budget: GenerationBudget
) -> GenerationResponse | str:
    """Call ``generate_fn``, wrapping foreign exceptions in `GenerationError`."""
    try:
        return await generate_fn(prompt, budget)
    except AdaptiveGenerationError:
        raise
    except Exception as e:
        raise GenerationError(f"generate() failed: {e}") from e


def _rank(record: AttemptRecord) -> tuple[bool, bool, float]:
    return (
        record.validation.success,
        record.parse.success,
        record.validation.confidence,
    )


class AdaptiveGenerator:
    """Runs the bounded, budget-aware generation loop for one source at a time.

    Every collaborator can be injected; defaults are built from ``config``.
    When no ``generate`` callable is given, a `GeminiGenerator` is used.
    """

    def __init__(
        self,
        config: FrozenConfig | None = None,
        *,
        generate: GenerateFn | None = None,
        scorer: ComplexityScorer | None = None,
        planner: BudgetPlanner | None = None,
        materializer: ContentMaterializer | None = None,
        parser: ResponseParser | None = None,
        validator: SchemaValidator | None = None,
        adjuster: BudgetFeedbackAdjuster | None = None,
        policy: RetryPolicy | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        self.config = config or FrozenConfig()
        self._generate = generate
        self.scorer = scorer or ComplexityScorer()
        self.planner = planner or BudgetPlanner(self.config.logographic_multiplier)
        self.materializer = materializer or ContentMaterializer()
        self.parser = parser or ResponseParser(self.config.max_response_chars)
        self.validator = validator or SchemaValidator()
        self.adjuster = adjuster or BudgetFeedbackAdjuster(self.config.slow_response_ms)
        self.policy = policy or RetryPolicy(
            max_attempts=self.config.max_attempts,
            fallback_on_exhaustion=self.config.fallback_on_exhaustion,
        )
        self._tele: TelemetryContextProtocol = telemetry or TelemetryContext()

    def _default_generate(self) -> GenerateFn:
        if self._generate is None:
            from adaptive_generation.adapters.gemini import GeminiGenerator

            self._generate = GeminiGenerator(self.config)
        return self._generate

    def resolve_output_mode(
        self, requested: OutputModeRequest | None, assessment: ComplexityAssessment
    ) -> OutputMode:
        value = requested if requested is not None else self.config.output_mode
        if isinstance(value, OutputMode):
            return value
        if value == "auto":
            return (
                OutputMode.STRUCTURED
                if assessment.prefers_structured_output
                else OutputMode.FREE_TEXT
            )
        return OutputMode(value)

    async def run(
        self,
        signal: ContentSignal,
        generate: GenerateFn | None = None,
        *,
        target_language: str | None = None,
        output_mode: OutputModeRequest | None = None,
        scene_count: int = DEFAULT_SCENE_COUNT,
    ) -> GenerationResult:
        """Generate a validated storyboard for ``signal``.

        Raises:
            GenerationError: If the generate collaborator raises. Transport
                failures are not retried here.
            PayloadValidationError: If attempts run out without an
                acceptable payload and fallback is disabled.
        """
        generate_fn = generate or self._default_generate()
        with self._tele("adaptive_generation.run"):
            state = PipelineState.PLANNING
            with self._tele("plan"):
                assessment = self.scorer.assess(signal)
                mode = self.resolve_output_mode(output_mode, assessment)
                budget = self.planner.plan(assessment, target_language, mode)
            log.info(
                "Planning generation for %s: level=%s budget=%d mode=%s",
                summarize_signal(signal),
                assessment.level.value,
                budget.max_output_size,
                mode.value,
            )
            ctx = RetryContext(attempt=1, budget=budget)
            step = transition(state, ctx, self.policy, self.adjuster)
            state = step.state

            attempts: list[AttemptRecord] = []
            while True:
                number = len(attempts) + 1
                self._tele.gauge("budget.max_output_size", ctx.budget.max_output_size)
                content = self.materializer.materialize(signal, assessment, ctx.budget)
                prompt = build_prompt(
                    content,
                    ctx.budget,
                    target_language=target_language,
                    scene_count=scene_count,
                )

                with self._tele("generate", attempt=number):
                    outcome = await self._call_generate(generate_fn, prompt, ctx)
                if isinstance(outcome, Failure):
                    raise outcome.error
                response = outcome.value
                ctx = dataclasses.replace(ctx, response=response)
                state = transition(state, ctx, self.policy).state

                with self._tele("parse", attempt=number):
                    parsed = self.parser.parse(response.text)
                ctx = dataclasses.replace(ctx, parse=parsed)
                state = transition(state, ctx, self.policy).state

                with self._tele("validate", attempt=number):
                    validation = self.validator.validate(parsed.data, parsed.confidence)
                record = AttemptRecord(
                    number=number,
                    budget=ctx.budget,
                    content=content,
                    response=response,
                    parse=parsed,
                    validation=validation,
                )
                attempts.append(record)
                self._tele.count("attempts")

                ctx = dataclasses.replace(
                    ctx,
                    validation=validation,
                    has_acceptable=ctx.has_acceptable
                    or (validation.success and parsed.success),
                )
                step = transition(state, ctx, self.policy, self.adjuster)
                state = step.state
                if state is PipelineState.RETRYING:
                    delay = self.policy.delay_for(number, random.random())  # noqa: S311
                    log.warning(
                        "Attempt %d/%d needs a retry in %.2fs: %s",
                        number,
                        self.policy.max_attempts,
                        delay,
                        step.reason,
                    )
                    await asyncio.sleep(delay)
                    ctx = RetryContext(
                        attempt=number + 1,
                        budget=step.budget,
                        has_acceptable=ctx.has_acceptable,
                    )
                    state = transition(state, ctx, self.policy).state
                    continue
                break

            return self._finish(state, step.reason, assessment, attempts)

    async def _call_generate(
        self, generate_fn: GenerateFn, prompt: str, ctx: RetryContext
    ) -> Result[GenerationResponse, AdaptiveGenerationError]:
        start = time.perf_counter()
        try:
            raw = await _wrapped_generate(generate_fn, prompt, ctx.budget)
        except AdaptiveGenerationError as e:
            return Failure(e)
        elapsed_ms = (time.perf_counter() - start) * 1000
        if isinstance(raw, str):
            return Success(GenerationResponse(text=raw, elapsed_ms=elapsed_ms))
        if not isinstance(raw, GenerationResponse):
            return Failure(
                GenerationError(
                    f"generate() returned {type(raw).__name__}, expected GenerationResponse"
                )
            )
        if raw.elapsed_ms is None:
            raw = GenerationResponse(raw.text, raw.finish_reason, elapsed_ms)
        return Success(raw)

    def _finish(
        self,
        state: PipelineState,
        reason: str,
        assessment: ComplexityAssessment,
        attempts: list[AttemptRecord],
    ) -> GenerationResult:
        if not attempts:
            raise AdaptiveGenerationError(
                f"Generation ended in {state.value} without any attempt"
            )
        # max() keeps the earliest of equally ranked attempts
        best = max(attempts, key=_rank)
        if state is PipelineState.FAILED:
            log.error("Generation failed after %d attempts: %s", len(attempts), reason)
            raise PayloadValidationError(
                f"No acceptable payload after {len(attempts)} attempts: {reason}",
                errors=best.validation.errors,
            )

        payload = best.validation
        if not payload.success:
            # Every attempt lacked a scenes collection; hand back the fallback.
            log.warning("Returning fallback payload after %d attempts", len(attempts))
            payload = self._fallback_payload(best.parse, best.response)
        log.info(
            "Generation finished after %d attempt(s); best=%d strategy=%s confidence=%.2f",
            len(attempts),
            best.number,
            best.parse.strategy_used.value,
            payload.confidence,
        )
        return GenerationResult(
            payload=payload,
            state=state,
            assessment=assessment,
            attempts=tuple(attempts),
            best_attempt=best.number,
        )

    def _fallback_payload(
        self, parsed: ParseOutcome, response: GenerationResponse
    ) -> ValidatedPayload:
        fallback = self.validator.validate(build_fallback(response.text))
        return ValidatedPayload(
            success=fallback.success,
            data=fallback.data,
            warnings=(*fallback.warnings, f"fallback used after {parsed.strategy_used.value}"),
            errors=fallback.errors,
            confidence=fallback.confidence,
        )
