"""
Tokenizer for FAQ text processing.

Tokenization pipeline:
1. Lowercase conversion
2. Replace everything that is not a letter, digit or whitespace with a space
3. Collapse whitespace and split
4. Filter stopwords (articles, conjunctions, auxiliaries, pronouns)
5. Keep tokens longer than 2 chars, plus a few meaningful short words
6. Optionally apply Snowball stemming ("presenting" → "present")

Two views are exposed: tokenize() keeps multiplicities (BM25 needs term
frequencies), unique_tokens() deduplicates in first-seen order (Jaccard,
keyword matching).
"""

import re
from typing import Iterable, List

from .stemmer import stem as stem_word

# Fixed stopword list. Question words (what, how, when...) are kept:
# they distinguish FAQ intents.
STOPWORDS = frozenset([
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
    'is', 'are', 'was', 'were', 'be', 'been', 'being', 'will', 'would', 'could', 'should',
    'can', 'may', 'might', 'must', 'this', 'that', 'these', 'those',
    'i', 'me', 'my', 'we', 'us', 'our'
])

# Short words that still carry meaning in FAQ questions
SHORT_WORD_ALLOWLIST = frozenset(['do', 'you', 'any', 'get', 'has', 'had'])

MIN_TOKEN_LENGTH = 3

# Underscore is a word character for \w but not a letter/digit
_NON_ALNUM = re.compile(r'[^\w\s]|_')
_WHITESPACE = re.compile(r'\s+')


def normalize_text(text: str) -> str:
    """
    Lowercase, replace punctuation with spaces and collapse whitespace.

    Examples:
        >>> normalize_text("What's an Abstract?")
        'what s an abstract'
        >>> normalize_text("  ")
        ''
    """
    if not text:
        return ""
    text = _NON_ALNUM.sub(' ', text.lower())
    return _WHITESPACE.sub(' ', text).strip()


def _keep(token: str) -> bool:
    if token in STOPWORDS:
        return False
    return len(token) >= MIN_TOKEN_LENGTH or token in SHORT_WORD_ALLOWLIST


def tokenize(text: str, stem: bool = False) -> List[str]:
    """
    Tokenize text, keeping duplicates.

    Args:
        text: Input text
        stem: Apply Snowball stemming after filtering

    Returns:
        List of lowercase tokens without stopwords

    Examples:
        >>> tokenize("How do I submit an abstract? Abstract deadline!")
        ['how', 'do', 'submit', 'abstract', 'abstract', 'deadline']

        >>> tokenize("   ")
        []
    """
    normalized = normalize_text(text)
    if not normalized:
        return []

    tokens = [t for t in normalized.split(' ') if _keep(t)]

    if stem:
        tokens = [stem_word(t) for t in tokens]

    return tokens


def unique_tokens(text: str, stem: bool = False) -> List[str]:
    """Deduplicated tokens in first-seen order"""
    return list(dict.fromkeys(tokenize(text, stem=stem)))


def extract_query_tags(keywords: Iterable[str]) -> List[str]:
    """
    Build candidate tags from query keywords: unigrams + adjacent bigrams.

    Example:
        >>> extract_query_tags(['registration', 'fee', 'cost'])
        ['registration', 'fee', 'cost', 'registration fee', 'fee cost']
    """
    words = list(dict.fromkeys(keywords))
    bigrams = [f"{words[i]} {words[i + 1]}" for i in range(len(words) - 1)]
    return list(dict.fromkeys(words + bigrams))
