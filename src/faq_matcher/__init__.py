"""
FAQ matcher: ranks a corpus of question/answer pairs against a user question.

Quick start:
    >>> from faq_matcher import FaqRecord, MatchPipeline, MatcherConfig
    >>> faqs = [FaqRecord(id=1, question="What is an abstract?", answer="A short summary...",
    ...                   tags=("abstract", "summary"))]
    >>> MatchPipeline(MatcherConfig()).match("what's an abstract", faqs).id
    1
"""

from .config import IdfMode, MatcherConfig, StrongMatchOverride, Variant, VariantThresholds
from .exceptions import (
    CorpusContractError,
    DimensionMismatch,
    EmptyCorpus,
    EmptyQuery,
    FaqMatcherError,
    InvalidTagsPayload,
    ProviderUnavailable,
)
from .metrics import InMemoryMetricsRecorder, MetricsRecorder, NullMetricsRecorder
from .models import Alternate, Decision, FaqRecord, MatchResult, QueryContext, ScoredCandidate
from .pipeline import MatchPipeline
from .policy import DecisionPolicy
from .store import CorpusStore, FeedbackSink, InMemoryCorpusStore, InMemoryFeedbackSink
from .tagging import TagGenerator, parse_tags, serialize_tags

__version__ = "0.1.0"

__all__ = [
    "MatchPipeline",
    "MatcherConfig",
    "Variant",
    "VariantThresholds",
    "StrongMatchOverride",
    "IdfMode",
    "FaqRecord",
    "QueryContext",
    "ScoredCandidate",
    "MatchResult",
    "Alternate",
    "Decision",
    "DecisionPolicy",
    "CorpusStore",
    "InMemoryCorpusStore",
    "FeedbackSink",
    "InMemoryFeedbackSink",
    "MetricsRecorder",
    "InMemoryMetricsRecorder",
    "NullMetricsRecorder",
    "TagGenerator",
    "parse_tags",
    "serialize_tags",
    "FaqMatcherError",
    "EmptyQuery",
    "EmptyCorpus",
    "DimensionMismatch",
    "ProviderUnavailable",
    "InvalidTagsPayload",
    "CorpusContractError",
]
