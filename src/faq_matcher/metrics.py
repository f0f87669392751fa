"""
Metrics recorders for match timings.

The pipeline reports durations (milliseconds) per named operation:
    generate_query_embedding, rank, match_success, match_below_threshold,
    match_error, embedding_fallback

Recorders are injected into MatchPipeline; NullMetricsRecorder is used when
none is given, so there is no process-wide metrics state.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict


class MetricsRecorder(ABC):
    """Abstract base class for timing recorders"""

    @abstractmethod
    def record(self, operation: str, duration_ms: float) -> None:
        """Record one duration for an operation"""
        pass


class NullMetricsRecorder(MetricsRecorder):
    """Discards everything"""

    def record(self, operation: str, duration_ms: float) -> None:
        return None


class InMemoryMetricsRecorder(MetricsRecorder):
    """
    Aggregates count/total/min/max per operation.

    Example:
        >>> metrics = InMemoryMetricsRecorder()
        >>> pipeline = MatchPipeline(config, metrics=metrics)
        >>> pipeline.match("how do I register?")
        >>> metrics.snapshot()["rank"]["count"]
        1
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._stats: Dict[str, Dict[str, float]] = {}

    def record(self, operation: str, duration_ms: float) -> None:
        with self._lock:
            stats = self._stats.get(operation)
            if stats is None:
                stats = {"count": 0, "total_ms": 0.0, "min_ms": float("inf"), "max_ms": 0.0}
                self._stats[operation] = stats
            stats["count"] += 1
            stats["total_ms"] += duration_ms
            stats["min_ms"] = min(stats["min_ms"], duration_ms)
            stats["max_ms"] = max(stats["max_ms"], duration_ms)

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        """Copy of the aggregates with avg_ms added"""
        with self._lock:
            return {
                operation: {**stats, "avg_ms": stats["total_ms"] / stats["count"]}
                for operation, stats in self._stats.items()
            }

    def count(self, operation: str) -> int:
        with self._lock:
            stats = self._stats.get(operation)
            return int(stats["count"]) if stats else 0

    def reset(self) -> None:
        with self._lock:
            self._stats.clear()
