"""Unit tests for the telemetry context and in-memory reporter."""

import pytest

from adaptive_generation.telemetry import (
    InMemoryReporter,
    TelemetryContext,
    TelemetryReporter,
    telemetry_enabled,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def telemetry_on(monkeypatch):
    monkeypatch.setenv("ADAPTIVE_GEN_TELEMETRY", "1")


class TestNoOpContext:
    def test_disabled_by_default(self):
        assert telemetry_enabled() is False
        assert TelemetryContext(InMemoryReporter()) is TelemetryContext()

    def test_no_op_calls_are_harmless(self):
        tele = TelemetryContext(InMemoryReporter())

        with tele("outer", attempt=1) as ctx:
            ctx.count("attempts")
            ctx.gauge("size", 1.0)
            ctx.metric("anything", "value")

    def test_no_reporters_means_no_op_even_when_enabled(self, telemetry_on):
        assert TelemetryContext() is TelemetryContext()


class TestEnabledContext:
    def test_debug_flag_enables_telemetry(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "1")

        assert telemetry_enabled() is True

    def test_nested_scopes_record_paths(self, telemetry_on):
        reporter = InMemoryReporter()
        tele = TelemetryContext(reporter)

        with tele("run"), tele("generate", attempt=2):
            pass

        assert set(reporter.timings) == {"run", "run.generate"}
        duration, metadata = reporter.timings["run.generate"][0]
        assert duration >= 0
        assert metadata == {"depth": 1, "parent_scope": "run", "attempt": 2}
        assert reporter.timings["run"][0][1]["parent_scope"] is None

    def test_metrics_use_the_current_scope(self, telemetry_on):
        reporter = InMemoryReporter()
        tele = TelemetryContext(reporter)

        with tele("run"):
            tele.count("attempts")
            tele.gauge("budget", 800)

        value, metadata = reporter.metrics["run.attempts"][0]
        assert value == 1
        assert metadata["metric_type"] == "counter"
        assert reporter.metrics["run.budget"][0][0] == 800

    def test_broken_reporter_does_not_break_the_caller(self, telemetry_on, caplog):
        class Broken:
            def record_timing(self, scope, duration, **metadata):
                raise RuntimeError("boom")

            def record_metric(self, scope, value, **metadata):
                raise RuntimeError("boom")

        good = InMemoryReporter()
        tele = TelemetryContext(Broken(), good)

        with tele("run"):
            tele.count("attempts")

        assert "run" in good.timings
        assert "Telemetry reporter 'Broken' failed" in caplog.text

    def test_scope_name_must_be_non_empty(self, telemetry_on):
        tele = TelemetryContext(InMemoryReporter())

        with pytest.raises(ValueError, match="Scope name"), tele(""):
            pass

    def test_exceptions_still_record_timing(self, telemetry_on):
        reporter = InMemoryReporter()
        tele = TelemetryContext(reporter)

        with pytest.raises(KeyError), tele("run"):
            raise KeyError("x")

        assert "run" in reporter.timings


class TestInMemoryReporter:
    def test_is_a_reporter(self):
        assert isinstance(InMemoryReporter(), TelemetryReporter)

    def test_entries_are_bounded(self):
        reporter = InMemoryReporter(max_entries_per_scope=2)
        for i in range(5):
            reporter.record_timing("scope", float(i))

        assert [d for d, _ in reporter.timings["scope"]] == [3.0, 4.0]

    def test_summary(self):
        reporter = InMemoryReporter()
        reporter.record_timing("run", 0.5)
        reporter.record_metric("run.attempts", 2)

        summary = reporter.summary()

        assert summary.startswith("=== Adaptive Generation Telemetry ===")
        assert "run" in summary
        assert "Total: 2.00" in summary
