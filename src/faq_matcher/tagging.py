"""
FAQ tag parsing and generation.

Tags are an ordered set of short lowercase strings, persisted as a JSON array.

Tag generation runs at corpus-build time (not per query). Candidates are
unigrams, bigrams and trigrams from the question + answer text, ranked by how
distinctive they are across the corpus:

    tfidf:  weight = tf × idf
    bm25:   weight = idf × (tf × (k1 + 1)) / (tf + k1 × (1 - b + b × dl/avgdl))

    idf = ln((N - df + 0.5) / (df + 0.5) + 1)

Adjustments on top of the base weight:
- n-grams that occur in the question get a 2x boost
- phrases get a bonus per extra word (1.2x for bigrams, 1.44x for trigrams)
- n-grams already used as tags elsewhere in the corpus get an additive boost
- a unigram covered by a kept phrase is down-weighted (0.9x)
"""

import json
import logging
import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .exceptions import InvalidTagsPayload

logger = logging.getLogger(__name__)

# Tag-generation stopwords: broader than the matching stopwords because
# pronouns and politeness words never make useful tags.
TAG_STOPWORDS = frozenset([
    'a', 'an', 'and', 'the', 'is', 'are', 'was', 'were', 'be', 'been', 'being', 'to', 'of',
    'in', 'on', 'for', 'with', 'by', 'at', 'from', 'it', 'that', 'this', 'these', 'those',
    'as', 'or', 'if', 'then', 'but', 'so', 'than', 'such', 'may', 'can', 'could', 'should',
    'would', 'will', 'about', 'into', 'within', 'please', 'thanks', 'thank', 'you', 'we',
    'our', 'your', 'i', 'me', 'my', 'us', 'they', 'them', 'their', 'do', 'does', 'did',
    'what', 'how', 'when', 'where', 'who', 'which', 'why', 'there', 'here', 'have', 'has',
    'had', 'not', 'any', 'all', 'also', 'just', 'get'
])

_TAG_TOKEN = re.compile(r'[^\W_][\w-]+')
_WHITESPACE = re.compile(r'\s+')
_SPLIT_TAGS = re.compile(r'[;,]')


def normalize_tag(tag: Any) -> str:
    """Lowercase, trim and collapse inner whitespace"""
    return _WHITESPACE.sub(' ', str(tag).strip().lower())


def _dedupe(tags: Iterable[Any]) -> List[str]:
    return [t for t in dict.fromkeys(normalize_tag(t) for t in tags) if t]


def parse_tags(raw: Any) -> List[str]:
    """
    Parse a stored tags payload into an ordered, deduplicated list.

    Accepted payloads:
        None / ""                → []
        ["Fee", "Cost"]          → ['fee', 'cost']
        '["Fee", "Cost"]'        → ['fee', 'cost']
        'fee; cost, budget'      → ['fee', 'cost', 'budget']

    Raises:
        InvalidTagsPayload: JSON array text that does not decode to a list of
            strings, or an unsupported payload type
    """
    if raw is None:
        return []

    if isinstance(raw, (list, tuple)):
        if not all(isinstance(t, str) for t in raw):
            raise InvalidTagsPayload(f"Tags must be strings, got {raw!r}")
        return _dedupe(raw)

    if not isinstance(raw, str):
        raise InvalidTagsPayload(f"Unsupported tags payload type: {type(raw).__name__}")

    text = raw.strip()
    if not text:
        return []

    if text.startswith('['):
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidTagsPayload(f"Tags JSON could not be decoded: {e}") from e
        if not isinstance(decoded, list) or not all(isinstance(t, str) for t in decoded):
            raise InvalidTagsPayload(f"Tags JSON must be an array of strings, got {decoded!r}")
        return _dedupe(decoded)

    return _dedupe(_SPLIT_TAGS.split(text))


def serialize_tags(tags: Iterable[str]) -> str:
    """Serialize tags as JSON array text (the persisted format)"""
    return json.dumps(_dedupe(tags))


def tag_tokens(text: str, stopwords: frozenset = TAG_STOPWORDS) -> List[str]:
    """
    Clean words for tag candidates: 3+ chars, not numeric, not a stopword.
    Hyphenated words ("e-poster") are kept as single tokens.
    """
    tokens = []
    for word in _TAG_TOKEN.findall((text or "").lower()):
        word = word.strip('-')
        if len(word) < 3 or word.replace('-', '').isdigit():
            continue
        if word in stopwords:
            continue
        tokens.append(word)
    return tokens


def ngrams(tokens: Sequence[str], max_n: int = 3) -> List[str]:
    """
    Adjacent n-grams (1..max_n) in order of appearance.
    Phrases repeating the same word ("poster poster") are skipped.
    """
    grams = []
    for i in range(len(tokens)):
        for n in range(1, max_n + 1):
            window = tokens[i:i + n]
            if len(window) < n:
                break
            if n > 1 and len(set(window)) < n:
                continue
            grams.append(' '.join(window))
    return grams


def collection_idf(total_docs: int, doc_freq: int) -> float:
    """BM25 collection IDF (always positive thanks to the +1)"""
    return math.log((total_docs - doc_freq + 0.5) / (doc_freq + 0.5) + 1)


@dataclass(frozen=True)
class TagStatistics:
    """Corpus-wide n-gram statistics, built once per corpus snapshot"""
    total_docs: int
    document_frequency: Dict[str, int]
    avg_doc_length: float
    known_tags: frozenset

    def idf(self, gram: str) -> float:
        return collection_idf(self.total_docs, self.document_frequency.get(gram, 0))


class TagGenerator:
    """
    Suggest tags for a FAQ from its question and answer.

    Example:
        >>> generator = TagGenerator.from_corpus(faqs)
        >>> generator.suggest_tags("How much is the registration fee?", "The fee is $50...")
        ['registration fee', 'fee', 'registration', ...]
    """

    def __init__(
        self,
        statistics: Optional[TagStatistics] = None,
        mode: str = "bm25",
        k1: float = 1.5,
        b: float = 0.75,
        max_ngram: int = 3,
        question_boost: float = 2.0,
        phrase_bonus: float = 1.2,
        known_tag_boost: float = 2.0,
        collapse_factor: float = 0.9,
        min_score: float = 0.01,
        extra_stopwords: Iterable[str] = (),
    ):
        """
        Initialize tag generator.

        Args:
            statistics: Corpus n-gram statistics (None = no IDF, every
                candidate gets idf 1.0)
            mode: "bm25" (saturating TF, length-normalized) or "tfidf"
            k1: BM25 term frequency saturation
            b: BM25 length normalization
            max_ngram: Longest phrase to consider (3 = trigrams)
            question_boost: Multiplier for n-grams found in the question
            phrase_bonus: Multiplier per extra word in a phrase
            known_tag_boost: Added to the TF weight of n-grams already
                used as tags in the corpus
            collapse_factor: Multiplier for unigrams contained in a phrase
            min_score: Candidates scoring below this are dropped
            extra_stopwords: Domain words that never make good tags
                (e.g. the organisation's own name)
        """
        if mode not in ("bm25", "tfidf"):
            raise ValueError(f"Unknown tag scoring mode: {mode}. Valid options: bm25, tfidf")
        self.statistics = statistics
        self.mode = mode
        self.k1 = k1
        self.b = b
        self.max_ngram = max_ngram
        self.question_boost = question_boost
        self.phrase_bonus = phrase_bonus
        self.known_tag_boost = known_tag_boost
        self.collapse_factor = collapse_factor
        self.min_score = min_score
        self.stopwords = TAG_STOPWORDS | frozenset(w.lower() for w in extra_stopwords)

    @classmethod
    def from_corpus(cls, corpus: Sequence[Any], **kwargs) -> "TagGenerator":
        """Build statistics from FaqRecords (anything with question/answer/tags)"""
        generator = cls(**kwargs)
        generator.statistics = generator.build_statistics(corpus)
        return generator

    def build_statistics(self, corpus: Sequence[Any]) -> TagStatistics:
        doc_freq: Counter = Counter()
        total_length = 0
        known = set()

        for faq in corpus:
            tokens = tag_tokens(f"{faq.question} {faq.answer}", self.stopwords)
            total_length += len(tokens)
            doc_freq.update(set(ngrams(tokens, self.max_ngram)))
            known.update(normalize_tag(t) for t in (faq.tags or ()))

        total_docs = len(corpus)
        avg_len = total_length / total_docs if total_docs else 0.0
        logger.debug(f"Tag statistics: {total_docs} docs, {len(doc_freq)} n-grams, avgdl={avg_len:.1f}")

        return TagStatistics(
            total_docs=total_docs,
            document_frequency=dict(doc_freq),
            avg_doc_length=avg_len,
            known_tags=frozenset(known),
        )

    def _tf_weight(self, tf: float, doc_length: int) -> float:
        if self.mode == "tfidf":
            return tf
        avgdl = self.statistics.avg_doc_length if self.statistics and self.statistics.avg_doc_length else doc_length
        norm = 1 - self.b + self.b * (doc_length / avgdl) if avgdl else 1.0
        return (tf * (self.k1 + 1)) / (tf + self.k1 * norm)

    def score_candidates(self, question: str, answer: str) -> Dict[str, float]:
        """Score every n-gram candidate (exposed for diagnostics)"""
        q_tokens = tag_tokens(question, self.stopwords)
        tokens = q_tokens + tag_tokens(answer, self.stopwords)
        if not tokens:
            return {}

        counts = Counter(ngrams(tokens, self.max_ngram))
        question_grams = set(ngrams(q_tokens, self.max_ngram))
        known = self.statistics.known_tags if self.statistics else frozenset()

        scores: Dict[str, float] = {}
        for gram, tf in counts.items():
            weight = self._tf_weight(tf, len(tokens))
            if gram in known:
                weight += self.known_tag_boost
            idf = self.statistics.idf(gram) if self.statistics and self.statistics.total_docs else 1.0

            score = weight * idf
            if gram in question_grams:
                score *= self.question_boost
            extra_words = gram.count(' ')
            if extra_words:
                score *= self.phrase_bonus ** extra_words
            scores[gram] = score

        # A kept phrase makes its single words less useful as separate tags
        for gram in list(scores):
            if ' ' in gram:
                for word in gram.split(' '):
                    if word in scores:
                        scores[word] *= self.collapse_factor

        return scores

    def suggest_tags(self, question: str, answer: str, limit: int = 8) -> List[str]:
        """
        Suggest up to `limit` tags, phrases first.

        Args:
            question: FAQ question text
            answer: FAQ answer text
            limit: Maximum number of tags

        Returns:
            Ordered list of lowercase tags
        """
        scores = self.score_candidates(question, answer)
        if not scores or limit <= 0:
            return []

        # Stable sort: ties keep first-occurrence order
        ranked = sorted(
            (g for g, s in scores.items() if s >= self.min_score),
            key=lambda g: scores[g],
            reverse=True,
        )

        pool = []
        seen = set()
        for gram in ranked:
            key = gram.replace('-', ' ')
            if key in seen:
                continue
            seen.add(key)
            pool.append(gram)
            if len(pool) >= limit * 2:
                break

        pool.sort(key=lambda g: (' ' not in g, -scores[g]))
        tags = pool[:limit]

        logger.debug(f"Suggested tags for {question[:50]!r}: {tags}")
        return tags
