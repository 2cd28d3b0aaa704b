"""Telemetry context and reporter interfaces.

When telemetry is off the factory hands out a shared no-op context whose
scopes and metrics cost a single call. When it is on, scopes nest through a
context variable so concurrent generation tasks keep separate scope paths.
"""

from collections import deque
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import time
from types import TracebackType
from typing import Any, Protocol, Self, runtime_checkable

log = logging.getLogger(__name__)

_scope_stack_var: ContextVar[tuple[str, ...]] = ContextVar(
    "adaptive_generation_scope_stack",
    default=(),
)

TELEMETRY_ENV_VAR = "ADAPTIVE_GEN_TELEMETRY"


def telemetry_enabled() -> bool:
    """Whether the environment asks for telemetry collection."""
    return os.getenv(TELEMETRY_ENV_VAR) == "1" or os.getenv("DEBUG") == "1"


@runtime_checkable
class TelemetryReporter(Protocol):
    """Duck-typed protocol for telemetry reporters."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Stateless stand-in used whenever telemetry is disabled."""

    def __call__(self, name: str, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        return None

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass

    def gauge(self, name: str, value: float, **metadata: Any) -> None:
        pass


class _EnabledTelemetryContext:
    """Context that forwards scope timings and metrics to reporters."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    def __call__(
        self, name: str, **metadata: Any
    ) -> AbstractContextManager["_EnabledTelemetryContext"]:
        return self._scope(name, **metadata)

    @contextmanager
    def _scope(self, name: str, **metadata: Any) -> Iterator["_EnabledTelemetryContext"]:
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")

        parent = _scope_stack_var.get()
        scope_path = ".".join((*parent, name))
        token = _scope_stack_var.set((*parent, name))
        start = time.perf_counter()
        try:
            yield self
        finally:
            duration = time.perf_counter() - start
            _scope_stack_var.reset(token)
            self._dispatch(
                "record_timing",
                scope_path,
                duration,
                depth=len(parent),
                parent_scope=".".join(parent) or None,
                **metadata,
            )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record a metric under the current scope path."""
        stack = _scope_stack_var.get()
        self._dispatch(
            "record_metric",
            ".".join((*stack, name)),
            value,
            depth=len(stack),
            parent_scope=".".join(stack) or None,
            **metadata,
        )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        self.metric(name, increment, metric_type="counter", **metadata)

    def gauge(self, name: str, value: float, **metadata: Any) -> None:
        self.metric(name, value, metric_type="gauge", **metadata)

    def _dispatch(self, method: str, scope: str, value: Any, **metadata: Any) -> None:
        # A broken reporter must never break generation.
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception as e:
                log.error(
                    "Telemetry reporter '%s' failed: %s",
                    type(reporter).__name__,
                    e,
                    exc_info=True,
                )


_NO_OP_SINGLETON = _NoOpTelemetryContext()

type TelemetryContextProtocol = _EnabledTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(*reporters: TelemetryReporter) -> TelemetryContextProtocol:  # noqa: N802
    """Return a telemetry context.

    Returns the shared no-op instance unless telemetry is enabled and at
    least one reporter is supplied.
    """
    if telemetry_enabled() and reporters:
        return _EnabledTelemetryContext(*reporters)
    return _NO_OP_SINGLETON


class InMemoryReporter:
    """Reporter that keeps the most recent entries per scope in memory.

    Handy in development and tests; call `summary()` for a printable table.
    """

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: dict[str, deque[tuple[float, dict[str, Any]]]] = {}
        self.metrics: dict[str, deque[tuple[Any, dict[str, Any]]]] = {}

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        self.timings.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (duration, metadata)
        )

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        self.metrics.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (value, metadata)
        )

    def summary(self) -> str:
        lines = ["=== Adaptive Generation Telemetry ==="]
        if self.timings:
            lines.append("--- Timings ---")
            for scope, entries in sorted(self.timings.items()):
                durations = [d for d, _ in entries]
                lines.append(
                    f"{scope:<40} | Calls: {len(durations):<4} | "
                    f"Avg: {sum(durations) / len(durations):.4f}s"
                )
        if self.metrics:
            lines.append("--- Metrics ---")
            for scope, entries in sorted(self.metrics.items()):
                numeric = [v for v, _ in entries if isinstance(v, int | float)]
                lines.append(
                    f"{scope:<40} | Count: {len(entries):<4} | Last: {entries[-1][0]}"
                    + (f" | Total: {sum(numeric):,.2f}" if numeric else "")
                )
        return "\n".join(lines)
