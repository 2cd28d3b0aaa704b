"""Core data types that flow through the adaptive generation pipeline.

This module defines the immutable records produced and consumed by each
stage: content signals, complexity assessments, generation budgets,
materialized prompts, parse outcomes and validated payloads. Each stage
builds a new value rather than patching an existing one, so a retry always
carries a fresh budget object.
"""

from __future__ import annotations

import dataclasses
import enum
import math
from types import MappingProxyType
import typing

# --- Minimal guard helpers (clarity > boilerplate) ---

T = typing.TypeVar("T")


def _freeze_mapping(
    m: dict[str, T] | typing.Mapping[str, T] | None,
) -> typing.Mapping[str, T] | None:
    """Return an immutable mapping view or None."""
    if m is None or isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m))


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


# --- Result Monad ---
# Stage results inside the executor are explicit values rather than
# exceptions, so a failing stage is a predictable part of the data flow.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful stage result."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failed stage result, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]

# --- Enumerations ---


class ComplexityLevel(enum.StrEnum):
    """Discrete tiers summarizing how much budget a source needs."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    EXTREME = "extreme"


class RiskLevel(enum.StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OutputMode(enum.StrEnum):
    STRUCTURED = "structured"
    FREE_TEXT = "free_text"


class QualityTier(enum.StrEnum):
    """How much source detail survived materialization."""

    FULL = "full"
    PARTIAL = "partial"
    METADATA_ONLY = "metadata_only"


class ParseStrategy(enum.StrEnum):
    """Rungs of the repair ladder, strictest first."""

    STRICT = "strict"
    MARKDOWN_STRIP = "markdown_strip"
    INTELLIGENT_REPAIR = "intelligent_repair"
    PARTIAL_EXTRACTION = "partial_extraction"
    FALLBACK = "fallback"


class FinishReason(enum.StrEnum):
    STOP = "stop"
    SIZE_LIMIT = "size_limit"
    ERROR = "error"


class PipelineState(enum.StrEnum):
    PLANNING = "planning"
    GENERATING = "generating"
    PARSING = "parsing"
    VALIDATING = "validating"
    RETRYING = "retrying"
    DONE = "done"
    FAILED = "failed"


# --- Upstream analysis records ---


@dataclasses.dataclass(frozen=True, slots=True)
class Character:
    name: str
    description: str = ""
    role: str = ""
    characteristics: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class SceneBeat:
    description: str
    start_time: float = 0.0
    end_time: float = 0.0
    setting: str = ""
    actions: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True, slots=True)
class Dialogue:
    speaker: str
    text: str
    emotion: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class StoryStructure:
    hook: str = ""
    development: str = ""
    climax: str = ""
    resolution: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class VideoAnalysis:
    """Result of an upstream video analysis pass.

    Every collection is a tuple so the analysis can be shared between
    attempts without defensive copies.
    """

    characters: tuple[Character, ...] = ()
    scenes: tuple[SceneBeat, ...] = ()
    dialogues: tuple[Dialogue, ...] = ()
    visual_elements: tuple[str, ...] = ()
    key_moments: tuple[str, ...] = ()
    story_structure: StoryStructure | None = None
    mood: str = ""
    themes: tuple[str, ...] = ()
    content_summary: str = ""
    generated_transcript: str = ""


# --- Pipeline records ---


@dataclasses.dataclass(frozen=True, slots=True)
class ContentSignal:
    """Immutable snapshot of a source item's characteristics.

    Count fields set to ``None`` mean the item has not been analysed yet; the
    scorer then falls back to its basic mode. Use `ContentSignal.from_source`
    to derive the counts from raw material.
    """

    title: str = ""
    description: str = ""
    transcript: str = ""
    duration_seconds: float = 0.0
    transcript_length: int = 0
    description_length: int = 0
    character_count: int | None = None
    scene_count: int | None = None
    dialogue_count: int | None = None
    visual_element_count: int = 0
    key_moment_count: int = 0
    analysis: VideoAnalysis | None = None

    def __post_init__(self) -> None:
        """Clamp numeric fields to non-negative values.

        Absent or nonsensical measurements are an input-shape problem, not a
        reason to fail: they resolve to zero.
        """
        for name in (
            "duration_seconds",
            "transcript_length",
            "description_length",
            "visual_element_count",
            "key_moment_count",
        ):
            object.__setattr__(self, name, _non_negative(getattr(self, name)))
        for name in ("character_count", "scene_count", "dialogue_count"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, int(_non_negative(value)))

    @classmethod
    def from_source(
        cls,
        *,
        title: str = "",
        description: str = "",
        transcript: str = "",
        duration_seconds: float = 0.0,
        analysis: VideoAnalysis | None = None,
    ) -> ContentSignal:
        """Derive a signal from raw source material.

        Without an analysis the structural counts stay ``None`` and the scorer
        uses basic mode. An analysis that carries its own generated transcript
        is used when no transcript was supplied.
        """
        transcript = transcript or (analysis.generated_transcript if analysis else "")
        counts: dict[str, typing.Any] = {}
        if analysis is not None:
            counts = {
                "character_count": len(analysis.characters),
                "scene_count": len(analysis.scenes),
                "dialogue_count": len(analysis.dialogues),
                "visual_element_count": len(analysis.visual_elements),
                "key_moment_count": len(analysis.key_moments),
            }
        return cls(
            title=title or "",
            description=description or "",
            transcript=transcript or "",
            duration_seconds=duration_seconds,
            transcript_length=len(transcript or ""),
            description_length=len(description or ""),
            analysis=analysis,
            **counts,
        )

    @property
    def has_analysis(self) -> bool:
        """True when every analysis-derived count is available."""
        return (
            self.character_count is not None
            and self.scene_count is not None
            and self.dialogue_count is not None
        )


def _non_negative(value: object) -> float | int:
    if not _is_number(value):
        return 0
    number = typing.cast("float | int", value)
    if not math.isfinite(number) or number < 0:
        return 0
    return number


@dataclasses.dataclass(frozen=True, slots=True)
class RiskFactors:
    token_overflow: RiskLevel = RiskLevel.LOW
    processing_time: RiskLevel = RiskLevel.LOW
    truncation: RiskLevel = RiskLevel.LOW


@dataclasses.dataclass(frozen=True, slots=True)
class ComplexityAssessment:
    """Risk-adjusted summary of a ContentSignal.

    Attributes:
        score: Headline complexity within [0, 100].
        level: Tier derived from ``score`` via fixed thresholds.
        risk_factors: Per-category ratings computed independently of score.
        recommended_budget: Level budget discounted by token-overflow risk.
        sub_scores: Step-function scores that fed the weighted sum.
        mode: ``"full"`` when analysis counts were used, else ``"basic"``.
        total_content_length: Estimated characters across textual fields.
        structured_data_size: Estimated characters of structured output.
    """

    score: int
    level: ComplexityLevel
    risk_factors: RiskFactors
    recommended_budget: int
    sub_scores: typing.Mapping[str, int] = dataclasses.field(default_factory=dict)
    mode: typing.Literal["full", "basic"] = "basic"
    total_content_length: int = 0
    structured_data_size: int = 0

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.score, int) and 0 <= self.score <= 100,
            message=f"must be an int within [0, 100], got {self.score}",
            field_name="score",
        )
        _require(
            condition=self.recommended_budget >= 0,
            message=f"must be >= 0, got {self.recommended_budget}",
            field_name="recommended_budget",
        )
        object.__setattr__(self, "sub_scores", _freeze_mapping(self.sub_scores))

    @property
    def prefers_structured_output(self) -> bool:
        """Whether schema-constrained output is worth the truncation risk."""
        return (
            self.level in (ComplexityLevel.SIMPLE, ComplexityLevel.MODERATE)
            and self.risk_factors.truncation is RiskLevel.LOW
        )


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationBudget:
    """Generation parameters planned for a single attempt.

    ``floor`` records the minimum ``max_output_size`` for the language and
    output mode this budget was planned for; later adjustments never go
    below it.
    """

    max_output_size: int
    creativity: float
    timeout_ms: int
    output_mode: OutputMode
    rationale: str = ""
    floor: int = 0
    adjustments: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.max_output_size, int)
            and self.max_output_size > 0,
            message=f"must be a positive int, got {self.max_output_size}",
            field_name="max_output_size",
        )
        _require(
            condition=self.max_output_size >= self.floor,
            message=f"{self.max_output_size} is below the floor {self.floor}",
            field_name="max_output_size",
        )
        _require(
            condition=_is_number(self.creativity) and 0.0 <= self.creativity <= 1.0,
            message=f"must be numeric within [0.0, 1.0], got {self.creativity}",
            field_name="creativity",
        )
        _require(
            condition=isinstance(self.timeout_ms, int) and self.timeout_ms > 0,
            message=f"must be a positive int, got {self.timeout_ms}",
            field_name="timeout_ms",
        )
        _require(
            condition=isinstance(self.output_mode, OutputMode),
            message="must be an OutputMode",
            field_name="output_mode",
            exc=TypeError,
        )

    def with_changes(self, **changes: typing.Any) -> GenerationBudget:
        """Return a new budget with ``changes`` applied."""
        return dataclasses.replace(self, **changes)


@dataclasses.dataclass(frozen=True, slots=True)
class MaterializedContent:
    """The literal payload sent to the model for one attempt."""

    text: str
    quality_tier: QualityTier
    simplification_applied: bool
    estimated_size: int
    strategy: str = ""
    warning: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ParseOutcome:
    """Result of running raw model text through the repair ladder.

    ``data`` is always populated: failed ladders still carry the fallback
    object built by the final tier.
    """

    success: bool
    data: typing.Mapping[str, typing.Any] | None
    strategy_used: ParseStrategy
    repair_notes: tuple[str, ...] = ()
    confidence: float = 0.0
    truncated: bool = False

    @property
    def degraded(self) -> bool:
        """True when structural parsing failed and a scrape or template was used."""
        return self.strategy_used in (
            ParseStrategy.PARTIAL_EXTRACTION,
            ParseStrategy.FALLBACK,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class ValidatedPayload:
    """Terminal artifact handed to the caller.

    ``data`` is ``None`` only when the mandatory scenes collection could not
    be located; every other defect is recorded in ``warnings``.
    """

    success: bool
    data: dict[str, typing.Any] | None
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    confidence: float = 0.0


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationResponse:
    """What the external ``generate`` collaborator returns."""

    text: str
    finish_reason: FinishReason = FinishReason.STOP
    elapsed_ms: float | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationFeedback:
    """Observed outcome of an attempt, used to tighten the next budget."""

    finish_reason: FinishReason = FinishReason.STOP
    truncated: bool = False
    elapsed_ms: float | None = None

    @property
    def hit_size_limit(self) -> bool:
        return self.finish_reason is FinishReason.SIZE_LIMIT


@dataclasses.dataclass(frozen=True, slots=True)
class AttemptRecord:
    """Everything produced during one generate/parse/validate attempt."""

    number: int
    budget: GenerationBudget
    content: MaterializedContent
    response: GenerationResponse
    parse: ParseOutcome
    validation: ValidatedPayload


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationResult:
    """Final outcome of the adaptive retry loop."""

    payload: ValidatedPayload
    state: PipelineState
    assessment: ComplexityAssessment
    attempts: tuple[AttemptRecord, ...] = ()
    best_attempt: int | None = None

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def final_budget(self) -> GenerationBudget | None:
        return self.attempts[-1].budget if self.attempts else None
