"""
Tag-boost fusion for combining a base score with tag overlap.

Formula:
    boost = Σ over query tags of:
        +0.10 for the first FAQ tag that matches exactly
        +0.05 for the first FAQ tag that contains / is contained in it
    boost = min(boost, 0.2)

    hybrid = base_score + boost

The base score is BM25 (lexical pipeline) or cosine similarity (embedding
pipeline). The cap keeps tags from overwhelming the base signal.

Strong-match override:
    Fused scores can look weak even when one raw signal is highly confident
    (e.g. the query names a FAQ tag verbatim but shares few other words).
    When the override is enabled and the raw signal is strictly above its
    threshold, the candidate bypasses the accept-threshold rejection.
"""

from typing import Iterable, Optional, Sequence

from ..config import StrongMatchOverride
from ..tagging import normalize_tag

EXACT_TAG_BOOST = 0.10
SUBSTRING_TAG_BOOST = 0.05
TAG_BOOST_CAP = 0.2


def tag_boost(
    query_tags: Iterable[str],
    faq_tags: Sequence[str],
    exact: float = EXACT_TAG_BOOST,
    substring: float = SUBSTRING_TAG_BOOST,
    cap: float = TAG_BOOST_CAP,
) -> float:
    """
    Additive bonus for overlap between query-derived tags and FAQ tags.

    Args:
        query_tags: Unigrams + bigrams from the query
        faq_tags: Stored FAQ tags (compared case-insensitively)
        exact: Bonus per exact match
        substring: Bonus per substring match (either direction)
        cap: Maximum total bonus

    Returns:
        Bonus in [0, cap]

    Example:
        >>> tag_boost(["registration", "fee", "registration fee"], ["registration fee", "cost"])
        0.2
    """
    normalized_faq_tags = [t for t in (normalize_tag(tag) for tag in faq_tags or ()) if t]
    if not normalized_faq_tags:
        return 0.0

    boost = 0.0
    for q_tag in query_tags:
        q_tag = normalize_tag(q_tag)
        if not q_tag:
            continue
        for f_tag in normalized_faq_tags:
            if q_tag == f_tag:
                boost += exact
                break
            if q_tag in f_tag or f_tag in q_tag:
                boost += substring
                break

    return min(boost, cap)


def hybrid_score(
    lexical_score: float,
    query_tags: Iterable[str],
    faq_tags: Sequence[str],
    exact: float = EXACT_TAG_BOOST,
    substring: float = SUBSTRING_TAG_BOOST,
    cap: float = TAG_BOOST_CAP,
) -> float:
    """Base score plus capped tag boost"""
    return lexical_score + tag_boost(query_tags, faq_tags, exact, substring, cap)


def is_strong_match(signal: Optional[float], override: StrongMatchOverride) -> bool:
    """True when the override is enabled and the raw signal clears it"""
    if not override.enabled or signal is None:
        return False
    return signal > override.threshold
