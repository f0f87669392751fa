"""
Corpus index builder - collection statistics for BM25.

Builds the document frequency table (df), corpus size (N) and average
document length used by collection-mode BM25. The index is immutable once
built; CorpusIndexCache rebuilds it whenever the corpus fingerprint changes
and swaps the reference under a lock (single writer, many readers).
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from ..tagging import collection_idf
from ..utils import corpus_fingerprint
from .scorer import build_document_terms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorpusIndex:
    """
    Immutable BM25 statistics for one corpus snapshot.

    Attributes:
        fingerprint: Corpus hash this index was built from
        total_docs: N
        document_frequency: {term: number of FAQs containing term}
        avg_doc_length: Mean document length in tokens
        documents: Token multisets per FAQ, aligned with corpus order
    """
    fingerprint: str
    total_docs: int
    document_frequency: Dict[str, int]
    avg_doc_length: float
    documents: Tuple[Tuple[Any, Dict[str, int]], ...] = field(repr=False)

    def idf(self, term: str) -> float:
        return collection_idf(self.total_docs, self.document_frequency.get(term, 0))

    def term_frequencies(self, faq_id: Any) -> Optional[Dict[str, int]]:
        for doc_id, frequencies in self.documents:
            if doc_id == faq_id:
                return frequencies
        return None


def build_corpus_index(corpus: Sequence[Any], question_weight: int = 2, stem: bool = False) -> CorpusIndex:
    """
    Build collection statistics from FAQ records.

    Args:
        corpus: Records with id/question/answer
        question_weight: Question repetitions in each BM25 document
        stem: Apply stemming to document tokens

    Returns:
        CorpusIndex

    Example:
        >>> index = build_corpus_index(faqs)
        >>> index.total_docs, index.document_frequency["abstract"]
        (19, 2)
    """
    doc_freq: Counter = Counter()
    documents = []
    total_length = 0

    for faq in corpus:
        terms = build_document_terms(faq.question, faq.answer, question_weight, stem=stem)
        frequencies = dict(Counter(terms))
        documents.append((faq.id, frequencies))
        doc_freq.update(frequencies.keys())
        total_length += len(terms)

    total_docs = len(documents)
    avg_len = total_length / total_docs if total_docs else 0.0

    index = CorpusIndex(
        fingerprint=corpus_fingerprint(corpus),
        total_docs=total_docs,
        document_frequency=dict(doc_freq),
        avg_doc_length=avg_len,
        documents=tuple(documents),
    )

    logger.debug(f"Built corpus index: {len(doc_freq)} unique terms from {total_docs} FAQs (avgdl={avg_len:.1f})")

    return index


class CorpusIndexCache:
    """
    Memoized CorpusIndex keyed by corpus fingerprint.

    Readers get whatever index is current; a fingerprint change triggers a
    full rebuild (never an incremental patch) into a new object that replaces
    the old reference atomically.
    """

    def __init__(self, question_weight: int = 2, stem: bool = False):
        self.question_weight = question_weight
        self.stem = stem
        self._index: Optional[CorpusIndex] = None
        self._lock = threading.Lock()
        self.builds = 0

    @property
    def current(self) -> Optional[CorpusIndex]:
        return self._index

    def get(self, corpus: Sequence[Any]) -> CorpusIndex:
        """Return the index for this corpus snapshot, rebuilding if stale"""
        fingerprint = corpus_fingerprint(corpus)
        index = self._index
        if index is not None and index.fingerprint == fingerprint:
            return index

        with self._lock:
            # Another thread may have rebuilt while we waited
            index = self._index
            if index is not None and index.fingerprint == fingerprint:
                return index

            logger.info(f"Corpus changed (fingerprint {fingerprint[:12]}), rebuilding BM25 statistics")
            index = build_corpus_index(corpus, self.question_weight, self.stem)
            self._index = index
            self.builds += 1
            return index

    def invalidate(self) -> None:
        """Drop the memoized index (next get() rebuilds)"""
        with self._lock:
            self._index = None
