"""
BM25 scorer for FAQ ranking.

BM25 (Best Match 25) is a probabilistic ranking function used for information retrieval.

Formula:
    score(term, doc) = idf × (tf × (k1 + 1)) / (tf + k1 × (1 - b + b × dl/avgdl))

Where:
    tf = term frequency in document
    k1 = term frequency saturation parameter (default: 1.5)
    b = length normalization parameter (default: 0.75)
    dl = document length (number of tokens)
    avgdl = average document length (default: 50, typical FAQ size)

IDF modes:
    single-document: idf = 1.0 for every term (no collection statistics,
        live scoring of one FAQ at a time)
    collection: idf = ln((N - df + 0.5) / (df + 0.5) + 1), taken from a
        CorpusIndex built once per corpus snapshot

The summed score is divided by the number of query terms, so scores of
short and long queries are comparable.
"""

from collections import Counter
from typing import Callable, Dict, List, Mapping, Optional, Union

from .tokenizer import tokenize

TermCounts = Union[List[str], Mapping[str, int]]


def build_document_terms(question: str, answer: str, question_weight: int = 2, stem: bool = False) -> List[str]:
    """
    Token multiset of a FAQ for BM25: the question is repeated
    `question_weight` times so question terms outweigh answer terms.
    """
    text = ' '.join([question] * question_weight + [answer])
    return tokenize(text, stem=stem)


class Bm25Scorer:
    """
    BM25 scoring of one document against a query.
    """

    def __init__(self, k1: float = 1.5, b: float = 0.75, avgdl: float = 50):
        """
        Initialize BM25 scorer.

        Args:
            k1: Term frequency saturation parameter
                Higher = more weight to repeated terms
                Range: 1.2 - 2.0
                Default: 1.5

            b: Length normalization parameter
                Higher = more penalty for long documents
                Range: 0.0 - 1.0
                Default: 0.75 (standard)

            avgdl: Average document length (in tokens)
                Used when no collection statistics are available
                Default: 50 tokens
        """
        if avgdl <= 0:
            raise ValueError(f"avgdl must be positive, got {avgdl}")
        self.k1 = k1
        self.b = b
        self.avgdl = avgdl

    def term_score(self, tf: int, doc_length: int, idf: float = 1.0, avgdl: Optional[float] = None) -> float:
        """BM25 contribution of a single term"""
        if tf <= 0:
            return 0.0
        avgdl = avgdl or self.avgdl
        numerator = tf * (self.k1 + 1)
        denominator = tf + self.k1 * (1 - self.b + self.b * (doc_length / avgdl))
        return idf * numerator / denominator

    def score(
        self,
        query_terms: List[str],
        doc_terms: TermCounts,
        idf: Optional[Callable[[str], float]] = None,
        avgdl: Optional[float] = None,
    ) -> float:
        """
        Compute normalized BM25 score for a document given query terms.

        Args:
            query_terms: Tokenized query (duplicates count)
            doc_terms: Document tokens (list) or term frequency map {term: count}
            idf: Term → IDF lookup (collection mode). None = single-document
                mode with idf 1.0
            avgdl: Override average document length (collection mode)

        Returns:
            Sum of term scores divided by len(query_terms); 0.0 for an
            empty query or document

        Example:
            >>> scorer = Bm25Scorer()
            >>> scorer.score(["abstract"], ["abstract", "abstract", "summary"])
            2.047...
        """
        if not query_terms or not doc_terms:
            return 0.0

        frequencies = doc_terms if isinstance(doc_terms, Mapping) else Counter(doc_terms)
        doc_length = sum(frequencies.values())
        if doc_length == 0:
            return 0.0

        total = 0.0
        for term in query_terms:
            tf = frequencies.get(term, 0)
            if tf == 0:
                continue
            term_idf = idf(term) if idf is not None else 1.0
            total += self.term_score(tf, doc_length, term_idf, avgdl)

        return total / len(query_terms)

    def component_scores(self, query_terms: List[str], doc_terms: TermCounts) -> Dict[str, float]:
        """Per-term single-document scores (diagnostics)"""
        frequencies = doc_terms if isinstance(doc_terms, Mapping) else Counter(doc_terms)
        doc_length = sum(frequencies.values())
        return {
            term: self.term_score(frequencies.get(term, 0), doc_length)
            for term in dict.fromkeys(query_terms)
        }
