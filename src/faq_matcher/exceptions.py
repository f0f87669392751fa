"""
Error taxonomy for FAQ matching.

Every error except CorpusContractError is recovered inside the pipeline:
callers always receive a well-formed MatchResult for expected conditions.
CorpusContractError signals a broken collaborator (e.g. a record without
a question) and is allowed to propagate.
"""


class FaqMatcherError(Exception):
    """Base class for all FAQ matcher errors"""


class EmptyQuery(FaqMatcherError):
    """User input is blank after trimming"""


class EmptyCorpus(FaqMatcherError):
    """No FAQ records are available for ranking"""


class DimensionMismatch(FaqMatcherError):
    """Embedding length differs from the configured dimension"""

    def __init__(self, expected: int, actual: int, faq_id=None):
        self.expected = expected
        self.actual = actual
        self.faq_id = faq_id
        where = f" for FAQ #{faq_id}" if faq_id is not None else ""
        super().__init__(f"Embedding dimension mismatch{where}: expected {expected}, got {actual}")


class ProviderUnavailable(FaqMatcherError):
    """Embedding provider timed out, failed, or returned a malformed payload"""


class InvalidTagsPayload(FaqMatcherError):
    """Stored tags could not be parsed into a list of strings"""


class CorpusContractError(FaqMatcherError):
    """Corpus record violates the FaqRecord contract (missing/invalid fields)"""
