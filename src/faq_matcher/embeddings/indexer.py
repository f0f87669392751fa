"""
Embedding indexer: generates and refreshes stored FAQ embeddings.

Runs at corpus-build time, never per query. Each FAQ is embedded from a
prepared text in which the question is repeated (weighting it like the BM25
document) and tags are appended:

    "<question> <question> <answer> <tag1 tag2 ...>"

Records are immutable, so every operation returns new FaqRecords; callers
persist them (or use sync_store() with an InMemoryCorpusStore).
"""

import dataclasses
import logging
import math
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..exceptions import DimensionMismatch, ProviderUnavailable
from ..models import FaqRecord
from .base import BaseEmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_VERSION = "all-MiniLM-L6-v2-v2"


def prepare_text_for_embedding(
    question: str,
    answer: str,
    tags: Iterable[str] = (),
    question_weight: int = 2,
    tag_weight: int = 1,
    combine_question_answer: bool = True,
) -> str:
    """
    Build the text that represents a FAQ in embedding space.

    Example:
        >>> prepare_text_for_embedding("What is an abstract?", "A short summary.", ["abstract"])
        'What is an abstract? What is an abstract? A short summary. abstract'
    """
    if not combine_question_answer:
        return question.strip()

    parts = [question.strip()] * question_weight + [answer.strip()]
    tag_list = [t for t in tags if t]
    if tag_list and tag_weight > 0:
        parts.extend([' '.join(tag_list)] * tag_weight)
    return ' '.join(p for p in parts if p)


@dataclass
class BatchEmbeddingReport:
    """Outcome of a batch embedding run"""
    total: int = 0      # Records selected for embedding
    success: int = 0
    failed: int = 0
    skipped: int = 0    # Records left untouched (already embedded / up to date)
    records: List[FaqRecord] = field(default_factory=list, repr=False)  # Full corpus, corpus order
    failed_ids: List[Any] = field(default_factory=list)
    embedded_ids: List[Any] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.total == 0:
            return "No FAQs need embedding generation"
        return f"Embedded {self.success} out of {self.total} FAQs"

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "success": self.success,
            "failed": self.failed,
            "skipped": self.skipped,
            "failed_ids": list(self.failed_ids),
            "message": self.message,
        }


def has_valid_embedding(faq: FaqRecord, dimension: int) -> bool:
    """Embedding present, of the configured dimension, all values finite"""
    return (
        faq.has_embedding
        and len(faq.embedding) == dimension
        and all(math.isfinite(x) for x in faq.embedding)
    )


def embedding_stats(corpus: Sequence[FaqRecord], dimension: Optional[int] = None) -> Dict[str, Any]:
    """
    Embedding coverage of a corpus.

    Returns:
        Dict with total_faqs, embedded_faqs, missing_embeddings,
        coverage_percentage (2 decimals), embedding_versions {version: count}
        and, when dimension is given, invalid_dimension
    """
    total = len(corpus)
    embedded = [faq for faq in corpus if faq.has_embedding]
    versions = Counter(faq.embedding_version for faq in embedded)

    stats = {
        "total_faqs": total,
        "embedded_faqs": len(embedded),
        "missing_embeddings": total - len(embedded),
        "coverage_percentage": round(len(embedded) / total * 100, 2) if total else 0,
        "embedding_versions": dict(versions),
    }
    if dimension is not None:
        stats["invalid_dimension"] = sum(1 for faq in embedded if len(faq.embedding) != dimension)
    return stats


class EmbeddingIndexer:
    """
    Generates FAQ embeddings through a provider.

    Example:
        >>> indexer = EmbeddingIndexer(HttpEmbeddingProvider(url), dimension=384)
        >>> report = indexer.embed_corpus(store.list_faqs())
        >>> report.success, report.failed
        (19, 0)
    """

    def __init__(
        self,
        provider: BaseEmbeddingProvider,
        dimension: int = 384,
        version: str = DEFAULT_EMBEDDING_VERSION,
        question_weight: int = 2,
        include_tags: bool = True,
        tag_weight: int = 1,
        delay_s: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize indexer.

        Args:
            provider: Embedding provider
            dimension: Required embedding dimension
            version: Version label stored with each embedding; bump it when
                the model or text preparation changes
            question_weight: Question repetitions in the prepared text
            include_tags: Append tags to the prepared text
            tag_weight: Tag repetitions in the prepared text
            delay_s: Pause between provider calls in batch runs
            sleep: Sleep function (injected in tests)
        """
        self.provider = provider
        self.dimension = dimension
        self.version = version
        self.question_weight = question_weight
        self.include_tags = include_tags
        self.tag_weight = tag_weight
        self.delay_s = delay_s
        self._sleep = sleep

    def prepare_text(self, faq: FaqRecord) -> str:
        return prepare_text_for_embedding(
            faq.question,
            faq.answer,
            faq.tags if self.include_tags else (),
            question_weight=self.question_weight,
            tag_weight=self.tag_weight,
        )

    def embed_record(self, faq: FaqRecord) -> FaqRecord:
        """
        Embed one FAQ.

        Returns:
            Copy of the record with embedding and embedding_version set

        Raises:
            ProviderUnavailable: Provider failed
            DimensionMismatch: Provider returned a vector of the wrong size
        """
        vector = self.provider.embed(self.prepare_text(faq))
        if len(vector) != self.dimension:
            raise DimensionMismatch(expected=self.dimension, actual=len(vector), faq_id=faq.id)
        if not all(math.isfinite(x) for x in vector):
            raise ProviderUnavailable(f"Embedding for FAQ #{faq.id} contains non-finite values")

        return dataclasses.replace(faq, embedding=tuple(vector), embedding_version=self.version)

    def embed_corpus(self, corpus: Sequence[FaqRecord], force: bool = False) -> BatchEmbeddingReport:
        """
        Embed every FAQ without a valid embedding (all FAQs when force=True).
        """
        return self._run(corpus, lambda faq: force or not has_valid_embedding(faq, self.dimension))

    def regenerate_outdated(self, corpus: Sequence[FaqRecord], version: Optional[str] = None) -> BatchEmbeddingReport:
        """
        Re-embed FAQs whose embedding_version differs from `version`
        (default: the indexer's version).
        """
        current = version or self.version
        return self._run(corpus, lambda faq: faq.embedding_version != current)

    def sync_store(self, store, force: bool = False) -> BatchEmbeddingReport:
        """
        Embed a store's FAQs and write successful records back.

        Args:
            store: InMemoryCorpusStore (anything with list_faqs() and update())
            force: Re-embed FAQs that already have a valid embedding
        """
        report = self.embed_corpus(store.list_faqs(), force=force)
        embedded = set(report.embedded_ids)
        for faq in report.records:
            if faq.id in embedded:
                store.update(faq)
        return report

    def _run(self, corpus: Sequence[FaqRecord], selected: Callable[[FaqRecord], bool]) -> BatchEmbeddingReport:
        report = BatchEmbeddingReport()
        todo = [faq for faq in corpus if selected(faq)]
        report.total = len(todo)
        report.skipped = len(corpus) - len(todo)

        if not todo:
            logger.info("No FAQs need embedding generation")
            report.records = list(corpus)
            return report

        todo_ids = {id(faq) for faq in todo}
        records = []
        for faq in corpus:
            if id(faq) not in todo_ids:
                records.append(faq)
                continue

            if report.success + report.failed > 0 and self.delay_s > 0:
                self._sleep(self.delay_s)

            try:
                records.append(self.embed_record(faq))
                report.success += 1
                report.embedded_ids.append(faq.id)
            except (ProviderUnavailable, DimensionMismatch) as e:
                logger.warning(f"Failed to generate embedding for FAQ #{faq.id}: {e}")
                records.append(faq)
                report.failed += 1
                report.failed_ids.append(faq.id)

            logger.debug(f"Progress {report.success + report.failed}/{report.total} FAQs processed")

        report.records = records
        logger.info(report.message + (f" ({report.failed} failed)" if report.failed else ""))
        return report
