"""
Unit tests for metrics recorders.
"""

import threading

import pytest

from faq_matcher.metrics import InMemoryMetricsRecorder, NullMetricsRecorder

pytestmark = pytest.mark.unit


class TestInMemoryMetricsRecorder:
    """Test timing aggregation"""

    def test_aggregates(self):
        metrics = InMemoryMetricsRecorder()
        metrics.record("rank", 2.0)
        metrics.record("rank", 6.0)

        stats = metrics.snapshot()["rank"]
        assert stats["count"] == 2
        assert stats["total_ms"] == pytest.approx(8.0)
        assert stats["min_ms"] == pytest.approx(2.0)
        assert stats["max_ms"] == pytest.approx(6.0)
        assert stats["avg_ms"] == pytest.approx(4.0)

    def test_count_unknown_operation(self):
        assert InMemoryMetricsRecorder().count("match_error") == 0

    def test_reset(self):
        metrics = InMemoryMetricsRecorder()
        metrics.record("rank", 1.0)
        metrics.reset()
        assert metrics.snapshot() == {}

    def test_concurrent_records(self):
        metrics = InMemoryMetricsRecorder()

        def worker():
            for _ in range(500):
                metrics.record("rank", 1.0)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert metrics.count("rank") == 2000


class TestNullMetricsRecorder:
    def test_discards(self):
        assert NullMetricsRecorder().record("rank", 1.0) is None
