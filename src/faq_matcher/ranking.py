"""
Ranker variants for FAQ matching.

Every ranker turns (QueryContext, corpus snapshot) into ScoredCandidates
sorted by score descending. Sorting is stable: candidates with equal scores
keep corpus order, so repeated calls return identical rankings.

Variants:
- LexicalRanker: question/answer text similarity + keyword/tag match
- Bm25TagsRanker: BM25 over question×2 + answer, plus capped tag boost
- EmbeddingHybridRanker: cosine similarity of dense embeddings, plus
  optional tag boost
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .bm25.fusion import is_strong_match, tag_boost
from .bm25.index_builder import CorpusIndexCache
from .bm25.scorer import Bm25Scorer, build_document_terms
from .config import IdfMode, MatcherConfig, Variant
from .exceptions import DimensionMismatch
from .lexical import keyword_match, text_similarity
from .models import FaqRecord, QueryContext, ScoredCandidate

logger = logging.getLogger(__name__)

# Lexical variant: tags contributing more than this get a 20% boost
LEXICAL_TAG_BOOST_TRIGGER = 0.15
LEXICAL_TAG_BOOST_FACTOR = 1.2


def sort_candidates(candidates: List[ScoredCandidate]) -> List[ScoredCandidate]:
    """Sort by score descending; ties keep corpus order"""
    return sorted(candidates, key=lambda c: c.score, reverse=True)


def cosine(u: Sequence[float], v: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns:
        Value in [-1, 1]; 0.0 when either vector has zero norm

    Raises:
        DimensionMismatch: Vectors differ in length
    """
    a = np.asarray(u, dtype=np.float64)
    b = np.asarray(v, dtype=np.float64)
    if a.shape != b.shape:
        raise DimensionMismatch(expected=a.size, actual=b.size)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    # Rounding can push identical vectors slightly past 1
    return max(-1.0, min(1.0, similarity))


def _cosine_candidates(
    query_embedding: Sequence[float],
    corpus: Sequence[FaqRecord],
    dimension: Optional[int] = None,
) -> List[Tuple[FaqRecord, ScoredCandidate]]:
    """Score every record with a usable embedding, in corpus order, paired with its record"""
    expected = dimension or len(query_embedding)
    scored = []
    skipped = 0

    for faq in corpus:
        if not faq.has_embedding:
            continue
        try:
            if len(faq.embedding) != expected:
                raise DimensionMismatch(expected=expected, actual=len(faq.embedding), faq_id=faq.id)
            score = cosine(query_embedding, faq.embedding)
        except DimensionMismatch as e:
            logger.warning(f"Skipping FAQ in embedding ranking: {e}")
            skipped += 1
            continue

        scored.append((faq, ScoredCandidate(
            faq_id=faq.id,
            raw_question=faq.question,
            raw_answer=faq.answer,
            score=score,
            component_scores={"cosine": score},
        )))

    if skipped:
        logger.warning(f"{skipped} FAQ embedding(s) skipped due to dimension mismatch (expected {expected})")

    return scored


def cosine_rank(
    query_embedding: Sequence[float],
    corpus: Sequence[FaqRecord],
    dimension: Optional[int] = None,
) -> List[ScoredCandidate]:
    """
    Rank FAQs by cosine similarity to the query embedding.

    Records without an embedding are skipped silently; records whose
    embedding length differs from `dimension` (default: query length) are
    skipped with a data-integrity warning.

    Args:
        query_embedding: Query vector
        corpus: FAQ records
        dimension: Expected embedding dimension

    Returns:
        Candidates sorted by cosine descending
    """
    return sort_candidates([
        candidate for _, candidate in _cosine_candidates(query_embedding, corpus, dimension)
    ])


class BaseRanker(ABC):
    """
    Abstract base class for ranker variants.

    Implementations must:
    1. Score every usable record of the corpus snapshot
    2. Return candidates sorted by score descending (stable)
    3. Never mutate the records
    """

    variant: Variant

    def __init__(self, config: MatcherConfig):
        self.config = config
        self.thresholds = config.thresholds_for(self.variant)

    @abstractmethod
    def rank(
        self,
        query: QueryContext,
        corpus: Sequence[FaqRecord],
        query_embedding: Optional[Sequence[float]] = None,
    ) -> List[ScoredCandidate]:
        """
        Score the corpus against a query.

        Args:
            query: Per-call query context
            corpus: Immutable corpus snapshot
            query_embedding: Query vector (embedding variant only)

        Returns:
            Candidates sorted by score descending
        """
        pass

    def _tag_boost(self, query: QueryContext, faq: FaqRecord) -> float:
        return tag_boost(
            query.extracted_tags,
            faq.tags,
            exact=self.config.tag_boost_exact,
            substring=self.config.tag_boost_substring,
            cap=self.config.tag_boost_cap,
        )


class LexicalRanker(BaseRanker):
    """
    Jaccard + Levenshtein text similarity combined with keyword/tag matching.

    total = question_sim × 0.5 + answer_sim × 0.2 + tag_signal × 0.3
    Tags contributing more than 0.15 boost the total by 20% (capped at 1.0).
    The raw tag signal feeds the strong-match override.
    """

    variant = Variant.LEXICAL_ONLY

    def rank(self, query, corpus, query_embedding=None):
        config = self.config
        stem = config.use_stemming
        candidates = []

        for faq in corpus:
            question_sim = text_similarity(
                query.text, faq.question, config.jaccard_weight, config.levenshtein_weight, stem=stem
            )
            answer_sim = text_similarity(
                query.text, faq.answer, config.jaccard_weight, config.levenshtein_weight, stem=stem
            )
            tag_signal = keyword_match(query.text, faq.tags, stem=stem)

            weighted_tags = tag_signal * config.tag_similarity_weight
            total = (
                question_sim * config.question_similarity_weight
                + answer_sim * config.answer_similarity_weight
                + weighted_tags
            )
            if weighted_tags > LEXICAL_TAG_BOOST_TRIGGER:
                total = min(total * LEXICAL_TAG_BOOST_FACTOR, 1.0)

            candidates.append(ScoredCandidate(
                faq_id=faq.id,
                raw_question=faq.question,
                raw_answer=faq.answer,
                score=total,
                component_scores={"question": question_sim, "answer": answer_sim, "tags": tag_signal},
                strong_match=is_strong_match(tag_signal, self.thresholds.strong_match),
            ))

        return sort_candidates(candidates)


class Bm25TagsRanker(BaseRanker):
    """
    BM25 over the FAQ document (question twice + answer) plus tag boost.

    In collection IDF mode the corpus statistics come from a CorpusIndexCache
    shared across calls; it rebuilds whenever the corpus fingerprint changes.
    """

    variant = Variant.BM25_TAGS

    def __init__(self, config: MatcherConfig, index_cache: Optional[CorpusIndexCache] = None):
        super().__init__(config)
        self.scorer = Bm25Scorer(k1=config.bm25_k1, b=config.bm25_b, avgdl=config.bm25_avgdl)
        self.index_cache = index_cache or CorpusIndexCache(
            question_weight=config.question_weight, stem=config.use_stemming
        )

    def rank(self, query, corpus, query_embedding=None):
        config = self.config
        query_terms = query.normalized_tokens

        index = None
        if config.idf_mode == IdfMode.COLLECTION and corpus:
            index = self.index_cache.get(corpus)

        candidates = []
        for position, faq in enumerate(corpus):
            if index is not None:
                doc_terms = index.documents[position][1]
                bm25 = self.scorer.score(query_terms, doc_terms, idf=index.idf, avgdl=index.avg_doc_length)
            else:
                doc_terms = build_document_terms(
                    faq.question, faq.answer, config.question_weight, stem=config.use_stemming
                )
                bm25 = self.scorer.score(query_terms, doc_terms)

            boost = self._tag_boost(query, faq)

            candidates.append(ScoredCandidate(
                faq_id=faq.id,
                raw_question=faq.question,
                raw_answer=faq.answer,
                score=bm25 + boost,
                component_scores={"bm25": bm25, "tag_boost": boost},
                strong_match=is_strong_match(bm25, self.thresholds.strong_match),
            ))

        return sort_candidates(candidates)


class EmbeddingHybridRanker(BaseRanker):
    """
    Cosine similarity over stored FAQ embeddings, optionally plus tag boost.

    Records without a usable embedding do not appear in the ranking.
    """

    variant = Variant.EMBEDDING_HYBRID

    def rank(self, query, corpus, query_embedding=None):
        if query_embedding is None:
            raise ValueError("EmbeddingHybridRanker requires a query embedding")

        scored = _cosine_candidates(query_embedding, corpus, self.config.embedding_dimension)
        if self.config.embedding_tag_boost:
            # Boost from each candidate's own record; ids may repeat in a snapshot
            for faq, candidate in scored:
                boost = self._tag_boost(query, faq)
                candidate.component_scores["tag_boost"] = boost
                candidate.score += boost

        return sort_candidates([candidate for _, candidate in scored])


class RankerFactory:
    """Factory for ranker variants"""

    @classmethod
    def create(
        cls,
        variant: Variant,
        config: MatcherConfig,
        index_cache: Optional[CorpusIndexCache] = None,
    ) -> BaseRanker:
        """
        Create a ranker for the given variant.

        Raises:
            ValueError: Unknown variant
        """
        if variant == Variant.LEXICAL_ONLY:
            return LexicalRanker(config)
        if variant == Variant.BM25_TAGS:
            return Bm25TagsRanker(config, index_cache=index_cache)
        if variant == Variant.EMBEDDING_HYBRID:
            return EmbeddingHybridRanker(config)
        raise ValueError(f"Unknown ranker variant: {variant}")
