"""Planning and execution stages of the adaptive generation loop."""

from .budget import BudgetPlanner, is_logographic, plan
from .complexity import ComplexityScorer, assess
from .executor import AdaptiveGenerator, GenerateFn
from .feedback import BudgetFeedbackAdjuster, adjust_budget
from .materializer import (
    ContentMaterializer,
    aggressive_truncation,
    estimate_tokens,
    light_truncation,
    materialize,
    smart_truncation,
)
from .prompts import build_prompt
from .retry import RetryContext, RetryPolicy, Transition, transition

__all__ = [
    "AdaptiveGenerator",
    "BudgetFeedbackAdjuster",
    "BudgetPlanner",
    "ComplexityScorer",
    "ContentMaterializer",
    "GenerateFn",
    "RetryContext",
    "RetryPolicy",
    "Transition",
    "adjust_budget",
    "aggressive_truncation",
    "assess",
    "build_prompt",
    "estimate_tokens",
    "is_logographic",
    "light_truncation",
    "materialize",
    "plan",
    "smart_truncation",
    "transition",
]
