"""Data model shared by every pipeline stage."""

from .signals import extract_keywords, signal_keywords, summarize_signal
from .types import (
    AttemptRecord,
    Character,
    ComplexityAssessment,
    ComplexityLevel,
    ContentSignal,
    Dialogue,
    Failure,
    FinishReason,
    GenerationBudget,
    GenerationFeedback,
    GenerationResponse,
    GenerationResult,
    MaterializedContent,
    OutputMode,
    ParseOutcome,
    ParseStrategy,
    PipelineState,
    QualityTier,
    Result,
    RiskFactors,
    RiskLevel,
    SceneBeat,
    StoryStructure,
    Success,
    ValidatedPayload,
    VideoAnalysis,
)

__all__ = [
    "AttemptRecord",
    "Character",
    "ComplexityAssessment",
    "ComplexityLevel",
    "ContentSignal",
    "Dialogue",
    "Failure",
    "FinishReason",
    "GenerationBudget",
    "GenerationFeedback",
    "GenerationResponse",
    "GenerationResult",
    "MaterializedContent",
    "OutputMode",
    "ParseOutcome",
    "ParseStrategy",
    "PipelineState",
    "QualityTier",
    "Result",
    "RiskFactors",
    "RiskLevel",
    "SceneBeat",
    "StoryStructure",
    "Success",
    "ValidatedPayload",
    "VideoAnalysis",
    "extract_keywords",
    "signal_keywords",
    "summarize_signal",
]
