"""Telemetry context and reporter interfaces.

Disabled by default: ``TelemetryContext()`` returns a shared no-op object.
Set ``CLIPFLOW_TELEMETRY=1`` or pass reporters explicitly to record stage and
provider timings.
"""

from __future__ import annotations

from collections import deque
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import time
from typing import TYPE_CHECKING, Any, Final, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

logger = logging.getLogger(__name__)

TELEMETRY_ENV_VAR: Final[str] = "CLIPFLOW_TELEMETRY"

DEPTH: Final[str] = "depth"
PARENT_SCOPE: Final[str] = "parent_scope"
METRIC_TYPE: Final[str] = "metric_type"

_scope_stack_var: ContextVar[tuple[str, ...]] = ContextVar(
    "clipflow_scope_stack", default=()
)


@runtime_checkable
class TelemetryReporter(Protocol):
    """Duck-typed protocol for telemetry reporters."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Stateless context that records nothing."""

    def __call__(self, name: str, **metadata: Any) -> _NoOpTelemetryContext:  # noqa: ARG002
        return self

    def __enter__(self) -> _NoOpTelemetryContext:
        return self

    def __exit__(
        self,
        _: type[BaseException] | None,
        __: BaseException | None,
        ___: TracebackType | None,
    ) -> None:
        return None

    @property
    def is_enabled(self) -> bool:
        return False

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass


class _EnabledTelemetryContext:
    """Times nested scopes and hands each result to every reporter."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter) -> None:
        self.reporters = reporters

    @contextmanager
    def __call__(self, name: str, **metadata: Any) -> Iterator[_EnabledTelemetryContext]:
        if not name:
            raise ValueError("Scope name must be a non-empty string")
        parents = _scope_stack_var.get()
        token = _scope_stack_var.set((*parents, name))
        start = time.perf_counter()
        try:
            yield self
        finally:
            elapsed = time.perf_counter() - start
            _scope_stack_var.reset(token)
            self._dispatch(
                "record_timing",
                ".".join((*parents, name)),
                elapsed,
                **{DEPTH: len(parents), PARENT_SCOPE: ".".join(parents) or None},
                **metadata,
            )

    @property
    def is_enabled(self) -> bool:
        return True

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record a metric under the innermost open scope."""
        parents = _scope_stack_var.get()
        self._dispatch(
            "record_metric",
            ".".join((*parents, name)),
            value,
            **{DEPTH: len(parents)},
            **metadata,
        )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        self.metric(name, increment, **{METRIC_TYPE: "counter"}, **metadata)

    def _dispatch(
        self, method: str, scope: str, value: Any, /, **metadata: Any
    ) -> None:
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception:
                logger.exception(
                    "Telemetry reporter %s failed on %s", type(reporter).__name__, scope
                )


_NO_OP_SINGLETON = _NoOpTelemetryContext()

TelemetryContextProtocol: TypeAlias = "_EnabledTelemetryContext | _NoOpTelemetryContext"


def telemetry_enabled() -> bool:
    return os.getenv(TELEMETRY_ENV_VAR) == "1"


def TelemetryContext(*reporters: TelemetryReporter) -> TelemetryContextProtocol:  # noqa: N802
    """Return a telemetry context.

    Explicit reporters always yield an enabled context. Without reporters the
    ``CLIPFLOW_TELEMETRY`` flag decides: enabled contexts fall back to an
    in-memory ``InMemoryReporter``; otherwise the shared no-op is returned.
    """
    if reporters:
        return _EnabledTelemetryContext(*reporters)
    if telemetry_enabled():
        return _EnabledTelemetryContext(InMemoryReporter())
    return _NO_OP_SINGLETON


class InMemoryReporter:
    """Reporter that keeps bounded per-scope histories in memory."""

    def __init__(self, max_entries_per_scope: int = 1000) -> None:
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

    def reset(self) -> None:
        self.timings.clear()
        self.metrics.clear()

    def get_report(self) -> str:
        """Summarise calls and average durations per scope."""
        lines = ["=== Telemetry Report ==="]
        for scope, values in sorted(self.timings.items()):
            durations = [v[0] for v in values]
            avg = sum(durations) / len(durations)
            lines.append(
                f"{scope:<40} | Calls: {len(durations):<4} | Avg: {avg:.4f}s"
            )
        for scope, values in sorted(self.metrics.items()):
            total = sum(v[0] for v in values if isinstance(v[0], int | float))
            lines.append(f"{scope:<40} | Count: {len(values):<4} | Total: {total:,.0f}")
        return "\n".join(lines)
