"""
Lexical similarity primitives: Jaccard word overlap + Levenshtein ratio.

Used by the lexical-only ranker and as a fallback similarity primitive.
Levenshtein distances come from RapidFuzz (C++ implementation), so the
per-query cost of scoring a whole corpus stays low.
"""

from typing import Iterable, Sequence

from rapidfuzz.distance import Levenshtein

from .bm25.tokenizer import normalize_text, unique_tokens

# Levenshtein is only meaningful (and cheap) for short texts
LEVENSHTEIN_MAX_LENGTH = 100
LEVENSHTEIN_TRUNCATE = 255

# keyword_match weights
TAG_IN_QUERY_WEIGHT = 0.7
EXACT_KEYWORD_WEIGHT = 0.6
PARTIAL_KEYWORD_WEIGHT = 0.4
FUZZY_WEIGHT = 0.5
FUZZY_MIN_LENGTH = 5       # Fuzzy matching only for words longer than 4 chars
FUZZY_MIN_SIMILARITY = 0.8


def levenshtein_ratio(a: str, b: str) -> float:
    """
    1 - edit_distance(a, b) / max(len(a), len(b)).

    Two empty strings are identical (1.0).
    """
    return Levenshtein.normalized_similarity(a, b)


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """Intersection over union of two token sets"""
    set_a, set_b = set(a), set(b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def text_similarity(
    text1: str,
    text2: str,
    jaccard_weight: float = 0.7,
    levenshtein_weight: float = 0.3,
    stem: bool = False,
) -> float:
    """
    Similarity between two texts in [0, 1].

    Methods (in order):
    1. Substring shortcut: one normalized text contains the other → 1.0
    2. Jaccard overlap of keyword sets
    3. Levenshtein ratio, only when both raw texts are shorter than 100 chars

    Args:
        text1: First text
        text2: Second text
        jaccard_weight: Weight of the Jaccard component
        levenshtein_weight: Weight of the Levenshtein component
        stem: Stem keywords before comparing sets

    Returns:
        jaccard × jaccard_weight + levenshtein × levenshtein_weight

    Example:
        >>> text_similarity("what's an abstract", "What is an abstract?")
        0.955
    """
    if jaccard_weight + levenshtein_weight > 1.0 + 1e-9:
        raise ValueError(
            f"Similarity weights must sum to <= 1 (got {jaccard_weight} + {levenshtein_weight})"
        )

    norm1 = normalize_text(text1)
    norm2 = normalize_text(text2)

    if norm1 and norm2 and (norm1 in norm2 or norm2 in norm1):
        return 1.0

    words1 = unique_tokens(norm1, stem=stem)
    words2 = unique_tokens(norm2, stem=stem)
    if not words1 or not words2:
        return 0.0

    jaccard_score = jaccard(words1, words2)

    # Length gate applies to the raw text: punctuation stripping must not
    # pull a long query under the limit
    raw1 = (text1 or "").strip().lower()
    raw2 = (text2 or "").strip().lower()
    levenshtein_score = 0.0
    if len(raw1) < LEVENSHTEIN_MAX_LENGTH and len(raw2) < LEVENSHTEIN_MAX_LENGTH:
        levenshtein_score = levenshtein_ratio(
            raw1[:LEVENSHTEIN_TRUNCATE], raw2[:LEVENSHTEIN_TRUNCATE]
        )

    return jaccard_score * jaccard_weight + levenshtein_score * levenshtein_weight


def keyword_match(query: str, tags: Sequence[str], stem: bool = False) -> float:
    """
    Score how strongly a query hits a FAQ's tags, in [0, 1].

    Per tag:
    - +0.7 if the tag appears verbatim in the normalized query
    - per query keyword: +0.6 exact match, else +0.4 if one contains the other
      (e.g. "wheelchair" contains "wheel")
    - per query keyword: +similarity × 0.5 for fuzzy matches (ratio > 0.8)
      between words longer than 4 chars ("accomodation" ≈ "accommodation")

    Returns:
        Accumulated score capped at 1.0
    """
    if not tags:
        return 0.0

    normalized_query = normalize_text(query)
    keywords = unique_tokens(normalized_query, stem=stem)
    score = 0.0

    for raw_tag in tags:
        tag = normalize_text(raw_tag)
        if not tag:
            continue

        if tag in normalized_query:
            score += TAG_IN_QUERY_WEIGHT

        for keyword in keywords:
            if keyword == tag:
                score += EXACT_KEYWORD_WEIGHT
            elif keyword in tag or tag in keyword:
                score += PARTIAL_KEYWORD_WEIGHT

        if len(tag) >= FUZZY_MIN_LENGTH:
            for keyword in keywords:
                if len(keyword) < FUZZY_MIN_LENGTH:
                    continue
                similarity = levenshtein_ratio(tag, keyword)
                if similarity > FUZZY_MIN_SIMILARITY:
                    score += similarity * FUZZY_WEIGHT

    return min(score, 1.0)
