"""
Snowball Stemmer for English (via NLTK).

Optional normalization step for tokenization: collapses inflections so that
"presenting", "presented" and "presentation" share a stem. Disabled by default
in MatcherConfig because stems make stored tags harder to compare.

Examples:
- "presenting" → "present"
"""

from functools import lru_cache

from nltk.stem.snowball import SnowballStemmer

# Initialize stemmer once (thread-safe, reusable)
_stemmer = SnowballStemmer('english')


@lru_cache(maxsize=8192)
def stem(word: str) -> str:
    """
    Stem a single word using Snowball algorithm.

    Args:
        word: Lowercase word to stem

    Returns:
        Stemmed word

    Examples:
        >>> stem("presenting")
        'present'
        >>> stem("fees")
        'fee'
    """
    return _stemmer.stem(word)
