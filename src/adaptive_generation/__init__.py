"""Adaptive generation: budget-aware structured output from generative models."""

import importlib.metadata
import logging

from adaptive_generation.config import FrozenConfig, ResolvedConfig, resolve_config
from adaptive_generation.core.types import (
    ComplexityAssessment,
    ComplexityLevel,
    ContentSignal,
    FinishReason,
    GenerationBudget,
    GenerationResponse,
    GenerationResult,
    MaterializedContent,
    OutputMode,
    ParseOutcome,
    ParseStrategy,
    PipelineState,
    QualityTier,
    RiskLevel,
    ValidatedPayload,
    VideoAnalysis,
)
from adaptive_generation.exceptions import (
    AdaptiveGenerationError,
    ConfigurationError,
    GenerationError,
    PayloadValidationError,
)
from adaptive_generation.pipeline import (
    AdaptiveGenerator,
    BudgetFeedbackAdjuster,
    BudgetPlanner,
    ComplexityScorer,
    ContentMaterializer,
    assess,
    plan,
)
from adaptive_generation.response import (
    ResponseParser,
    SchemaValidator,
    parse,
    validate,
    validate_strict,
)
from adaptive_generation.telemetry import TelemetryContext, TelemetryReporter

try:
    __version__ = importlib.metadata.version("adaptive-generation")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Library code never configures handlers; the host application does.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Executor
    "AdaptiveGenerator",
    # Stages
    "ComplexityScorer",
    "BudgetPlanner",
    "ContentMaterializer",
    "ResponseParser",
    "SchemaValidator",
    "BudgetFeedbackAdjuster",
    "assess",
    "plan",
    "parse",
    "validate",
    "validate_strict",
    # Data model
    "ComplexityAssessment",
    "ComplexityLevel",
    "ContentSignal",
    "FinishReason",
    "GenerationBudget",
    "GenerationResponse",
    "GenerationResult",
    "MaterializedContent",
    "OutputMode",
    "ParseOutcome",
    "ParseStrategy",
    "PipelineState",
    "QualityTier",
    "RiskLevel",
    "ValidatedPayload",
    "VideoAnalysis",
    # Configuration
    "FrozenConfig",
    "ResolvedConfig",
    "resolve_config",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "AdaptiveGenerationError",
    "ConfigurationError",
    "GenerationError",
    "PayloadValidationError",
]
