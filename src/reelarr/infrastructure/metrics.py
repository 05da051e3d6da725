"""Zero-impact in-memory call metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop; no locks, no I/O.

``time.perf_counter_ns()`` is used for timing (monotonic, nanosecond
resolution, near-zero overhead).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class ProviderCallStats:
    """Accumulated statistics for a single provider."""

    calls: int = 0
    successes: int = 0
    failures: int = 0
    timeouts: int = 0
    total_results: int = 0
    total_duration_ns: int = 0
    operations: dict[str, int] = field(default_factory=dict)

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable summary."""
        avg_ms = (
            round(self.total_duration_ns / self.calls / 1_000_000, 1)
            if self.calls
            else 0.0
        )
        return {
            "calls": self.calls,
            "successes": self.successes,
            "failures": self.failures,
            "timeouts": self.timeouts,
            "total_results": self.total_results,
            "avg_duration_ms": avg_ms,
            "operations": dict(sorted(self.operations.items())),
        }


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector."""

    _providers: dict[str, ProviderCallStats] = field(default_factory=dict)
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_provider_call(
        self,
        provider_id: str,
        operation: str,
        duration_ns: int,
        result_count: int,
        *,
        success: bool,
        timed_out: bool = False,
    ) -> None:
        """Record one provider invocation."""
        stats = self._providers.get(provider_id)
        if stats is None:
            stats = ProviderCallStats()
            self._providers[provider_id] = stats

        stats.calls += 1
        stats.total_duration_ns += duration_ns
        stats.operations[operation] = stats.operations.get(operation, 0) + 1

        if success:
            stats.successes += 1
            stats.total_results += result_count
        else:
            stats.failures += 1
            if timed_out:
                stats.timeouts += 1

    def provider_stats(self, provider_id: str) -> ProviderCallStats | None:
        return self._providers.get(provider_id)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable snapshot of all metrics."""
        uptime_ns = time.perf_counter_ns() - self._start_ns
        uptime_s = round(uptime_ns / 1_000_000_000, 1)

        return {
            "uptime_seconds": uptime_s,
            "providers": {
                name: stats.snapshot()
                for name, stats in sorted(self._providers.items())
            },
        }
