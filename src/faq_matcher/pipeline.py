"""
Match pipeline: query + corpus snapshot → MatchResult.

Pipeline stages:
1. Build QueryContext (empty query → CLARIFY, no ranking)
2. Take an immutable corpus snapshot (empty corpus → CLARIFY)
3. Embedding variant only: fetch the query embedding with a bounded wait
   (timeout, deadline, cancel event); any failure falls back to BM25 + tags
4. Rank with the selected variant (stable sort by score)
5. Apply the decision policy with that variant's thresholds

match() runs on the calling thread. The provider call is the only blocking
I/O; it runs on a small worker pool so the caller can stop waiting without
the provider's cooperation.
"""

import logging
import math
import random
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .bm25.index_builder import CorpusIndexCache
from .config import MatcherConfig, Variant
from .embeddings.base import BaseEmbeddingProvider
from .exceptions import DimensionMismatch, EmptyCorpus, EmptyQuery, ProviderUnavailable
from .metrics import MetricsRecorder, NullMetricsRecorder
from .models import FaqRecord, MatchResult, QueryContext
from .policy import DecisionPolicy
from .ranking import BaseRanker, RankerFactory
from .store import CorpusStore

logger = logging.getLogger(__name__)

# How often a blocked provider call checks the cancel event
CANCEL_POLL_INTERVAL_S = 0.05
EMBEDDING_WORKERS = 4


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class MatchPipeline:
    """
    Configurable FAQ matcher.

    Example:
        >>> pipeline = MatchPipeline(MatcherConfig(variant=Variant.BM25_TAGS), store=store)
        >>> result = pipeline.match("how much does registration cost")
        >>> result.id, result.decision
        (20, <Decision.ACCEPT: 'accept'>)
    """

    def __init__(
        self,
        config: Optional[MatcherConfig] = None,
        provider: Optional[BaseEmbeddingProvider] = None,
        store: Optional[CorpusStore] = None,
        metrics: Optional[MetricsRecorder] = None,
        rng: Optional[random.Random] = None,
        index_cache: Optional[CorpusIndexCache] = None,
    ):
        """
        Initialize pipeline.

        Args:
            config: Matcher configuration (defaults: BM25 + tags)
            provider: Embedding provider (embedding variant only)
            store: Corpus store used when match() gets no corpus
            metrics: Timing recorder (default: discard)
            rng: Random source for fallback wording (default: seeded from
                config.fallback_seed)
            index_cache: Shared collection statistics cache
        """
        self.config = config or MatcherConfig()
        self.provider = provider
        self.store = store
        self.metrics = metrics or NullMetricsRecorder()
        self.policy = DecisionPolicy(
            max_alternates=self.config.max_alternates,
            rng=rng or random.Random(self.config.fallback_seed),
        )
        self.index_cache = index_cache or CorpusIndexCache(
            question_weight=self.config.question_weight, stem=self.config.use_stemming
        )
        self._rankers: Dict[Variant, BaseRanker] = {
            variant: RankerFactory.create(variant, self.config, self.index_cache) for variant in Variant
        }
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

        logger.info(
            f"MatchPipeline initialized: variant={self.config.variant.value}, "
            f"provider={type(provider).__name__ if provider else None}"
        )

    def match(
        self,
        query: str,
        corpus: Optional[Sequence[Any]] = None,
        *,
        variant: Optional[Variant] = None,
        cancel_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
    ) -> MatchResult:
        """
        Find the best FAQ for a user query.

        Args:
            query: Free-text user question
            corpus: FaqRecords (or store rows as mappings); None reads the
                configured store
            variant: Override the configured ranker variant for this call
            cancel_event: When set, stop waiting for the embedding provider
                and answer from the lexical path
            deadline: Absolute time.monotonic() value; the provider wait
                never extends past it

        Returns:
            MatchResult (never raises for empty input or provider failures)

        Raises:
            CorpusContractError: A corpus record is missing required fields
        """
        start = time.perf_counter()
        timings: Dict[str, float] = {}
        context = QueryContext(query, stem=self.config.use_stemming)

        try:
            snapshot = self._prepare(context, corpus)
        except EmptyQuery:
            logger.debug("Empty query, asking user to enter a question")
            return self._finish(self.policy.empty_query(), "match_error", start, timings)
        except EmptyCorpus:
            logger.warning("No FAQ entries available for matching")
            return self._finish(self.policy.empty_corpus(), "match_error", start, timings)

        requested = variant or self.config.variant
        used = requested
        query_embedding = None
        fallback_used = False

        if requested == Variant.EMBEDDING_HYBRID:
            query_embedding = self._query_embedding(context, snapshot, timings, cancel_event, deadline)
            if query_embedding is None:
                used = Variant.BM25_TAGS
                fallback_used = True

        rank_start = time.perf_counter()
        candidates = self._rankers[used].rank(context, snapshot, query_embedding)

        if used == Variant.EMBEDDING_HYBRID and not candidates:
            logger.warning("No FAQ has a usable embedding, falling back to BM25 + tags")
            used = Variant.BM25_TAGS
            fallback_used = True
            candidates = self._rankers[used].rank(context, snapshot)

        timings["rank_ms"] = _elapsed_ms(rank_start)
        self.metrics.record("rank", timings["rank_ms"])
        if fallback_used:
            self.metrics.record("embedding_fallback", timings.get("embedding_ms", 0.0))

        if candidates:
            best = candidates[0]
            components = {k: round(v, 3) for k, v in best.component_scores.items()}
            logger.debug(f"Top candidate FAQ #{best.faq_id} score={best.score:.3f} components={components}")

        result = self.policy.decide(candidates, self.config.thresholds_for(used))
        result.variant = used.value
        result.fallback_used = fallback_used
        timings["faq_count"] = len(snapshot)

        logger.info(
            f"Match {result.decision.value}: id={result.id}, score={result.score:.3f}, "
            f"variant={used.value}{' (fallback)' if fallback_used else ''}, alternates={len(result.alternates)}"
        )
        operation = "match_success" if result.accepted else "match_below_threshold"
        return self._finish(result, operation, start, timings)

    def _prepare(self, context: QueryContext, corpus: Optional[Sequence[Any]]) -> Sequence[FaqRecord]:
        """
        Validate input and take the corpus snapshot.

        Raises:
            EmptyQuery: Query is blank after trimming
            EmptyCorpus: No records to rank
        """
        if context.is_empty:
            raise EmptyQuery("Query is empty")

        if corpus is None:
            corpus = self.store.list_faqs() if self.store is not None else ()
        snapshot = tuple(
            FaqRecord.from_mapping(row) if isinstance(row, Mapping) else row
            for row in corpus
        )
        if not snapshot:
            raise EmptyCorpus("Corpus is empty")
        return snapshot

    def _query_embedding(
        self,
        context: QueryContext,
        corpus: Sequence[FaqRecord],
        timings: Dict[str, float],
        cancel_event: Optional[threading.Event],
        deadline: Optional[float],
    ) -> Optional[List[float]]:
        """Query vector, or None when the embedding path cannot be used"""
        if self.provider is None:
            logger.warning("Embedding variant selected but no provider configured, falling back to BM25 + tags")
            return None
        if not any(faq.has_embedding for faq in corpus):
            logger.warning("No FAQ embeddings stored, falling back to BM25 + tags")
            return None

        embed_start = time.perf_counter()
        try:
            return self._embed_with_timeout(context.text, cancel_event, deadline)
        except ProviderUnavailable as e:
            logger.warning(f"Embedding provider unavailable, falling back to BM25 + tags: {e}")
            return None
        finally:
            timings["embedding_ms"] = _elapsed_ms(embed_start)
            self.metrics.record("generate_query_embedding", timings["embedding_ms"])

    def _embed_with_timeout(
        self,
        text: str,
        cancel_event: Optional[threading.Event],
        deadline: Optional[float],
    ) -> List[float]:
        """
        Call the provider on the worker pool and wait a bounded time.

        Raises:
            ProviderUnavailable: Timeout, cancellation, provider error or an
                invalid vector
        """
        timeout = self.config.embedding_timeout_s
        if deadline is not None:
            timeout = min(timeout, deadline - time.monotonic())
        if timeout <= 0:
            raise ProviderUnavailable("Deadline passed before the embedding request")
        if cancel_event is not None and cancel_event.is_set():
            raise ProviderUnavailable("Match cancelled before the embedding request")

        future = self._get_executor().submit(self.provider.embed, text)
        wait_until = time.monotonic() + timeout

        while not future.done():
            remaining = wait_until - time.monotonic()
            if remaining <= 0:
                future.cancel()  # No-op once running; the worker result is discarded
                raise ProviderUnavailable(f"Embedding request timed out after {timeout:.2f}s")
            if cancel_event is not None and cancel_event.is_set():
                future.cancel()
                raise ProviderUnavailable("Match cancelled while waiting for embedding")
            poll = min(remaining, CANCEL_POLL_INTERVAL_S) if cancel_event is not None else remaining
            wait([future], timeout=poll, return_when=FIRST_COMPLETED)

        try:
            vector = future.result()
        except ProviderUnavailable:
            raise
        except Exception as e:
            logger.warning(f"Embedding provider raised {type(e).__name__}: {e}")
            raise ProviderUnavailable(f"Embedding provider error: {type(e).__name__}") from e

        expected = self.config.embedding_dimension
        if vector is None or len(vector) != expected:
            mismatch = DimensionMismatch(expected=expected, actual=len(vector) if vector is not None else 0)
            raise ProviderUnavailable(f"Malformed query embedding: {mismatch}") from mismatch
        if not all(math.isfinite(x) for x in vector):
            raise ProviderUnavailable("Query embedding contains non-finite values")
        return list(vector)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=EMBEDDING_WORKERS, thread_name_prefix="faq-embedding"
                )
            return self._executor

    def _finish(self, result: MatchResult, operation: str, start: float, timings: Dict[str, float]) -> MatchResult:
        total_ms = _elapsed_ms(start)
        self.metrics.record(operation, total_ms)
        if self.config.track_performance:
            result.performance = {"total_ms": total_ms, **timings}
        return result

    def close(self):
        """Stop the worker pool (abandoned provider calls are not awaited) and close the provider."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None
        if self.provider is not None:
            self.provider.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
