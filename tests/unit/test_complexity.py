"""Unit tests for complexity scoring.

Covers the step tables, the full/basic weighting switch, level thresholds and
the independently computed risk ratings.
"""

import dataclasses
import math

import pytest

from adaptive_generation import constants as c
from adaptive_generation.core.types import (
    Character,
    ComplexityLevel,
    ContentSignal,
    RiskLevel,
    SceneBeat,
    VideoAnalysis,
)
from adaptive_generation.pipeline.complexity import (
    ComplexityScorer,
    assess,
    estimate_content_length,
    estimate_structured_size,
    level_for_score,
    rate_risk,
    step_score,
)

pytestmark = pytest.mark.unit


def _analysed(**overrides) -> ContentSignal:
    values = {
        "duration_seconds": 40,
        "transcript_length": 500,
        "character_count": 4,
        "scene_count": 6,
        "dialogue_count": 3,
    }
    values.update(overrides)
    return ContentSignal(**values)


class TestStepTables:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0, 0), (15, 0), (15.5, 25), (30, 25), (45, 50), (60, 75), (61, 100)],
    )
    def test_duration_bounds_are_inclusive(self, value, expected):
        assert step_score(value, c.DURATION_STEPS) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0, 0), (99, 0), (100, 20), (299, 20), (300, 50), (999, 80), (1000, 100)],
    )
    def test_transcript_bounds_are_exclusive(self, value, expected):
        assert step_score(value, c.TRANSCRIPT_STEPS, exclusive=True) == expected

    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (0, ComplexityLevel.SIMPLE),
            (30, ComplexityLevel.SIMPLE),
            (31, ComplexityLevel.MODERATE),
            (65, ComplexityLevel.MODERATE),
            (66, ComplexityLevel.COMPLEX),
            (85, ComplexityLevel.COMPLEX),
            (86, ComplexityLevel.EXTREME),
            (100, ComplexityLevel.EXTREME),
        ],
    )
    def test_level_thresholds(self, score, level):
        assert level_for_score(score) is level

    def test_risk_thresholds_are_strict(self):
        assert rate_risk(2000, c.TOKEN_OVERFLOW_THRESHOLDS) is RiskLevel.LOW
        assert rate_risk(2001, c.TOKEN_OVERFLOW_THRESHOLDS) is RiskLevel.MEDIUM
        assert rate_risk(3000, c.TOKEN_OVERFLOW_THRESHOLDS) is RiskLevel.MEDIUM
        assert rate_risk(3001, c.TOKEN_OVERFLOW_THRESHOLDS) is RiskLevel.HIGH


class TestComplexityScorer:
    def test_short_item_without_transcript_is_simple(self):
        """A ten second item with no transcript scores as simple in basic mode."""
        assessment = ComplexityScorer().assess(
            ContentSignal(duration_seconds=10, transcript_length=0)
        )

        assert assessment.level is ComplexityLevel.SIMPLE
        assert assessment.score == 0
        assert assessment.mode == "basic"
        assert set(assessment.sub_scores) == {"duration", "transcript"}
        assert assessment.recommended_budget == 800

    def test_full_mode_uses_all_five_weights(self):
        # 50*.15 + 60*.25 + 50*.20 + 40*.15 + 50*.25 = 51
        assessment = ComplexityScorer().assess(_analysed())

        assert assessment.mode == "full"
        assert assessment.score == 51
        assert assessment.level is ComplexityLevel.MODERATE
        assert dict(assessment.sub_scores) == {
            "duration": 50,
            "characters": 60,
            "scenes": 50,
            "dialogues": 40,
            "transcript": 50,
        }

    def test_partial_counts_fall_back_to_basic_mode(self):
        signal = ContentSignal(
            duration_seconds=20, transcript_length=150, character_count=3
        )

        assessment = ComplexityScorer().assess(signal)

        # 25*.4 + 20*.6 = 22
        assert assessment.mode == "basic"
        assert assessment.score == 22

    def test_saturated_signal_is_extreme_with_high_risks(self):
        signal = _analysed(
            duration_seconds=90,
            transcript_length=5000,
            description_length=1000,
            character_count=10,
            scene_count=20,
            dialogue_count=20,
        )

        assessment = assess(signal)

        assert assessment.score == 100
        assert assessment.level is ComplexityLevel.EXTREME
        assert assessment.risk_factors.token_overflow is RiskLevel.HIGH
        assert assessment.risk_factors.processing_time is RiskLevel.HIGH
        assert assessment.risk_factors.truncation is RiskLevel.HIGH
        assert assessment.total_content_length == 9600
        assert assessment.structured_data_size == 7000
        # 400 discounted by 0.7 for high token-overflow risk
        assert assessment.recommended_budget == 280

    def test_risks_do_not_follow_the_score(self):
        """A low-scoring item can still carry a high truncation risk."""
        signal = ContentSignal(
            duration_seconds=5,
            transcript_length=0,
            character_count=0,
            scene_count=0,
            dialogue_count=0,
            visual_element_count=30,
        )

        assessment = assess(signal)

        assert assessment.level is ComplexityLevel.SIMPLE
        assert assessment.risk_factors.truncation is RiskLevel.HIGH
        assert assessment.prefers_structured_output is False

    def test_processing_time_risk_from_duration(self):
        assert assess(ContentSignal(duration_seconds=45)).risk_factors.processing_time is RiskLevel.LOW
        assert assess(ContentSignal(duration_seconds=60)).risk_factors.processing_time is RiskLevel.MEDIUM
        assert assess(ContentSignal(duration_seconds=61)).risk_factors.processing_time is RiskLevel.HIGH

    @pytest.mark.parametrize(
        "signal",
        [
            ContentSignal(),
            ContentSignal(duration_seconds=-10, transcript_length=-5),
            ContentSignal(duration_seconds=math.inf, transcript_length=10**9),
            ContentSignal(duration_seconds=math.nan, character_count=-3),
            ContentSignal(
                duration_seconds=10**6,
                transcript_length=10**7,
                character_count=10**4,
                scene_count=10**4,
                dialogue_count=10**4,
            ),
        ],
    )
    def test_score_always_within_bounds(self, signal):
        assessment = assess(signal)

        assert 0 <= assessment.score <= 100
        assert assessment.level is level_for_score(assessment.score)

    @pytest.mark.parametrize(
        ("base", "field"),
        [
            *[
                (_analysed(), field)
                for field in (
                    "duration_seconds",
                    "transcript_length",
                    "description_length",
                    "character_count",
                    "scene_count",
                    "dialogue_count",
                    "visual_element_count",
                    "key_moment_count",
                )
            ],
            (ContentSignal(duration_seconds=20, transcript_length=200), "duration_seconds"),
            (ContentSignal(duration_seconds=20, transcript_length=200), "transcript_length"),
        ],
    )
    def test_raising_one_field_never_lowers_the_score(self, base, field):
        values = [0, 1, 2, 3, 4, 5, 6, 8, 9, 12, 13, 15, 16, 30, 31, 45, 46, 60, 61,
                  99, 100, 299, 300, 599, 600, 999, 1000, 10_000]

        scores = [
            assess(dataclasses.replace(base, **{field: value})).score for value in values
        ]

        assert scores == sorted(scores)


class TestContentSignal:
    def test_negative_and_non_finite_values_clamp_to_zero(self):
        signal = ContentSignal(
            duration_seconds=-1, transcript_length=-4, character_count=-2
        )

        assert signal.duration_seconds == 0
        assert signal.transcript_length == 0
        assert signal.character_count == 0

        assert ContentSignal(duration_seconds=math.nan).duration_seconds == 0

    def test_from_source_derives_counts_from_analysis(self):
        analysis = VideoAnalysis(
            characters=(Character("Ana"), Character("Ben")),
            scenes=(SceneBeat("Dawn"),),
            visual_elements=("fog", "bridge"),
            generated_transcript="Ana meets Ben on the bridge.",
        )

        signal = ContentSignal.from_source(title="Bridge", analysis=analysis)

        assert signal.has_analysis
        assert signal.character_count == 2
        assert signal.scene_count == 1
        assert signal.dialogue_count == 0
        assert signal.visual_element_count == 2
        assert signal.transcript == "Ana meets Ben on the bridge."
        assert signal.transcript_length == len(signal.transcript)

    def test_from_source_without_analysis_stays_unanalysed(self):
        signal = ContentSignal.from_source(
            title="Clip", description="short", transcript="hello"
        )

        assert not signal.has_analysis
        assert signal.description_length == 5
        assert signal.transcript_length == 5


def test_length_estimates_count_each_element_at_a_flat_rate():
    signal = ContentSignal(
        transcript_length=100,
        description_length=20,
        character_count=1,
        scene_count=2,
        dialogue_count=3,
        visual_element_count=1,
        key_moment_count=2,
    )

    assert estimate_content_length(signal) == 100 + 20 + 100 + 160 + 150
    assert estimate_structured_size(signal) == 200 + 300 + 300 + 80 + 120
