"""
BM25 (Best Match 25) ranking primitives for FAQ matching.

Components:
- tokenizer: Text normalization, stopword filtering, query tag extraction
- stemmer: Optional Snowball stemming
- scorer: BM25 scoring (single-document or collection IDF)
- fusion: Capped tag boost and strong-match override
- index_builder: Collection statistics, rebuilt when the corpus changes

Single-document mode (idf = 1.0) needs no shared state and is the default.
Collection mode reads df/N/avgdl from an immutable CorpusIndex that is
rebuilt in full whenever the corpus fingerprint changes.
"""

from .tokenizer import extract_query_tags, normalize_text, tokenize, unique_tokens
from .stemmer import stem
from .scorer import Bm25Scorer, build_document_terms
from .fusion import hybrid_score, is_strong_match, tag_boost
from .index_builder import CorpusIndex, CorpusIndexCache, build_corpus_index

__all__ = [
    "tokenize",
    "unique_tokens",
    "normalize_text",
    "extract_query_tags",
    "stem",
    "Bm25Scorer",
    "build_document_terms",
    "tag_boost",
    "hybrid_score",
    "is_strong_match",
    "CorpusIndex",
    "CorpusIndexCache",
    "build_corpus_index",
]
