"""
Global test configuration and environment isolation.
"""

import logging
import os
from pathlib import Path

import pytest

from adaptive_generation.core.types import (
    ComplexityAssessment,
    ComplexityLevel,
    GenerationBudget,
    OutputMode,
    RiskFactors,
)


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_adaptive_gen_env(request, monkeypatch):
    """Ensure a clean ADAPTIVE_GEN_* environment for each test.

    Escape hatch: mark a test with @pytest.mark.allow_env_pollution to keep
    the current environment unchanged.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("ADAPTIVE_GEN_"):
            monkeypatch.delenv(key, raising=False)
    # DEBUG also switches telemetry on
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def neutral_home_config(request, monkeypatch, tmp_path):
    """Point the home-config path at an isolated temp file by default.

    Prevents reading a developer's real ~/.config/adaptive_generation.toml.
    Escape hatch: @pytest.mark.allow_real_home_config.
    """
    if request.node.get_closest_marker("allow_real_home_config"):
        return

    fake_home_dir = tmp_path / "home_config_isolated"
    fake_home_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv(
        "ADAPTIVE_GEN_CONFIG_HOME", str(fake_home_dir / "adaptive_generation.toml")
    )


@pytest.fixture
def project_dir(tmp_path):
    """Empty project directory so no real pyproject.toml is picked up."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def home_config_file():
    """Path of the isolated home config file (not yet created)."""
    return Path(os.environ["ADAPTIVE_GEN_CONFIG_HOME"])


@pytest.fixture
def make_assessment():
    """Factory for assessments with explicit level and risks."""

    def _make(
        level: ComplexityLevel = ComplexityLevel.SIMPLE,
        *,
        score: int | None = None,
        risks: RiskFactors | None = None,
    ) -> ComplexityAssessment:
        default_scores = {
            ComplexityLevel.SIMPLE: 10,
            ComplexityLevel.MODERATE: 50,
            ComplexityLevel.COMPLEX: 75,
            ComplexityLevel.EXTREME: 95,
        }
        return ComplexityAssessment(
            score=default_scores[level] if score is None else score,
            level=level,
            risk_factors=risks or RiskFactors(),
            recommended_budget=400,
        )

    return _make


@pytest.fixture
def make_budget():
    """Factory for budgets with sensible defaults."""

    def _make(**overrides) -> GenerationBudget:
        values = {
            "max_output_size": 800,
            "creativity": 0.8,
            "timeout_ms": 20_000,
            "output_mode": OutputMode.FREE_TEXT,
            "floor": 200,
        }
        values.update(overrides)
        return GenerationBudget(**values)

    return _make


@pytest.fixture
def caplog_info(caplog):
    caplog.set_level(logging.INFO, logger="adaptive_generation")
    return caplog
