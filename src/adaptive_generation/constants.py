"""
Project-wide constants for the adaptive generation pipeline

This module centralizes the thresholds, weights and budget tables used by the
scorer, planner, materializer and repair ladder so they can be tuned in one
place.
"""

# Complexity scoring
LEVEL_THRESHOLDS = {
    "simple": 30,
    "moderate": 65,
    "complex": 85,
}
MAX_SCORE = 100

# Weighted sum used when a full video analysis is available
FULL_WEIGHTS = {
    "duration": 0.15,
    "characters": 0.25,
    "scenes": 0.20,
    "dialogues": 0.15,
    "transcript": 0.25,
}
# Reduced scheme when only duration and transcript are known
BASIC_WEIGHTS = {
    "duration": 0.4,
    "transcript": 0.6,
}

# Step tables: (upper bound inclusive, score). Last entry catches the rest.
DURATION_STEPS = ((15, 0), (30, 25), (45, 50), (60, 75))
CHARACTER_STEPS = ((0, 0), (1, 10), (3, 30), (5, 60))
SCENE_STEPS = ((2, 0), (5, 25), (8, 50), (12, 75))
DIALOGUE_STEPS = ((0, 0), (2, 20), (5, 40), (10, 70))
# Transcript bounds are exclusive upper limits
TRANSCRIPT_STEPS = ((100, 0), (300, 20), (600, 50), (1000, 80))

# Content length estimate per structural element (characters)
CONTENT_CHARS_PER_CHARACTER = 100
CONTENT_CHARS_PER_SCENE = 80
CONTENT_CHARS_PER_DIALOGUE = 50

# Structured output size estimate per element (characters of JSON)
STRUCTURED_CHARS_PER_CHARACTER = 200
STRUCTURED_CHARS_PER_SCENE = 150
STRUCTURED_CHARS_PER_DIALOGUE = 100
STRUCTURED_CHARS_PER_VISUAL_ELEMENT = 80
STRUCTURED_CHARS_PER_KEY_MOMENT = 60

# Risk thresholds: (medium above, high above)
TOKEN_OVERFLOW_THRESHOLDS = (2000, 3000)
PROCESSING_TIME_THRESHOLDS = (45, 60)  # seconds
TRUNCATION_THRESHOLDS = (1500, 2000)

# Budget planning
LEVEL_TOKEN_BUDGETS = {
    "simple": 800,
    "moderate": 600,
    "complex": 500,
    "extreme": 400,
}
LEVEL_CREATIVITY = {
    "simple": 0.8,
    "moderate": 0.6,
    "complex": 0.4,
    "extreme": 0.2,
}
LEVEL_TIMEOUT_MS = {
    "simple": 20_000,
    "moderate": 30_000,
    "complex": 45_000,
    "extreme": 60_000,
}
# Applied in this order: token overflow, processing time, truncation
RISK_DISCOUNTS = {
    "token_overflow": {"high": 0.6, "medium": 0.75},
    "processing_time": {"high": 0.8, "medium": 0.9},
    "truncation": {"high": 0.7, "medium": 0.85},
}
# Recommended budget hint attached to an assessment
RECOMMENDED_BUDGET_DISCOUNTS = {"high": 0.7, "medium": 0.85}
TIMEOUT_RISK_MULTIPLIERS = {"high": 1.5, "medium": 1.2}
MIN_TIMEOUT_MS = 15_000
MAX_TIMEOUT_MS = 120_000

DEFAULT_LOGOGRAPHIC_MULTIPLIER = 1.5
FREE_TEXT_FLOOR = 200

# Structured output reduction pass
STRUCTURED_REDUCTION = 0.5
STRUCTURED_REDUCTION_LOGOGRAPHIC = 0.8
STRUCTURED_LEVEL_CAPS = {
    "simple": 400,
    "moderate": 350,
    "complex": 300,
    "extreme": 250,
}
STRUCTURED_FLOOR = 150
STRUCTURED_FLOOR_LOGOGRAPHIC = 250
STRUCTURED_CREATIVITY_DROP = 0.2
MIN_CREATIVITY = 0.1

LOGOGRAPHIC_LANGUAGES = frozenset(
    {
        "zh",
        "zh-tw",
        "zh-cn",
        "zh-hk",
        "zh-hant",
        "zh-hans",
        "chinese",
        "traditional chinese",
        "simplified chinese",
        "繁體中文",
        "简体中文",
        "中文",
        "ja",
        "ja-jp",
        "japanese",
        "日本語",
        "ko",
        "ko-kr",
        "korean",
        "한국어",
    }
)

# Feedback adjustment
SIZE_LIMIT_FACTOR_STRUCTURED = 0.6
SIZE_LIMIT_FACTOR_FREE_TEXT = 0.7
SIZE_LIMIT_CREATIVITY_DROP = 0.1
TRUNCATION_FACTOR = 0.65
SLOW_RESPONSE_FACTOR = 0.9
SLOW_RESPONSE_TIMEOUT_FACTOR = 1.2
DEFAULT_SLOW_RESPONSE_MS = 45_000

# Content materialization
CHARS_PER_TOKEN_TARGET = 3
CHARS_PER_TOKEN_ESTIMATE = 2.5
MODERATE_TRANSCRIPT_CAP = 400
MODERATE_CHARACTER_CAP = 5
MODERATE_SCENE_CAP = 8
MODERATE_SCENE_DESCRIPTION_CAP = 200
COMPLEX_TRANSCRIPT_CAP = 200
COMPLEX_TRANSCRIPT_ONLY_CAP = 800
COMPLEX_CHARACTER_CAP = 3
COMPLEX_SCENE_CAP = 4
EXTREME_DESCRIPTION_EXCERPT = 100
SMART_TRUNCATION_WINDOW = 0.7
OPTIMIZED_MARKER = "[Content optimized for processing]"
SIMPLIFIED_MARKER = "[Content simplified due to complexity]"
HEAVILY_SIMPLIFIED_MARKER = "[Heavily simplified]"

# Response parsing
DEFAULT_MAX_RESPONSE_CHARS = 1_000_000
TRUNCATION_SLACK_CHARS = 3
PARTIAL_SCAN_LIMIT = 200_000
PARTIAL_FIELD_MAX_CHARS = 5_000
MIN_NARRATIVE_LENGTH = 50
FALLBACK_NARRATIVE_MAX_CHARS = 1_000
NARRATIVE_FIELD_ALIASES = ("scenario", "narrative", "generatedPitch", "story", "summary")

STRATEGY_CONFIDENCE = {
    "strict": 1.0,
    "markdown_strip": 0.95,
    "intelligent_repair": 0.8,
    "intelligent_repair_truncated": 0.6,
    "partial_extraction": 0.4,
    "fallback": 0.1,
}

# Retry loop
DEFAULT_MAX_ATTEMPTS = 3
MAX_ATTEMPTS_CEILING = 5
RETRY_BASE_DELAY_S = 1.0
RETRY_BACKOFF_MULTIPLIER = 1.5
RETRY_MAX_DELAY_S = 10.0
