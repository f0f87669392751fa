"""Utility functions for FAQ matching"""

import hashlib
import json
from typing import Any, Sequence


def corpus_fingerprint(corpus: Sequence[Any]) -> str:
    """
    Calculate SHA256 fingerprint of a corpus snapshot

    Covers id, question, answer and tags of every record (in order), so any
    add/update/delete produces a different fingerprint. Embeddings are not
    part of the fingerprint: they do not affect term statistics.

    Args:
        corpus: FAQ records (anything with id/question/answer/tags)

    Returns:
        Hexadecimal hash string (64 characters)

    Examples:
        >>> corpus_fingerprint([])
        'e3b0c442...'
    """
    digest = hashlib.sha256()
    for faq in corpus:
        payload = json.dumps(
            [str(faq.id), faq.question, faq.answer, list(faq.tags or ())],
            ensure_ascii=False,
        )
        digest.update(payload.encode("utf-8"))
        digest.update(b"\x1e")  # Record separator
    return digest.hexdigest()
