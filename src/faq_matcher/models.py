"""
Core data model for FAQ matching.

Records come from an external store and are treated as read-only snapshots.
Query contexts, candidates and results are created fresh per match() call.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .bm25.tokenizer import extract_query_tags, tokenize, unique_tokens
from .exceptions import CorpusContractError, InvalidTagsPayload
from .tagging import parse_tags

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    """Outcome of the decision policy"""
    ACCEPT = "accept"
    CLARIFY = "clarify"
    ESCALATE = "escalate"  # Triggered by explicit user feedback, never by scores


@dataclass(frozen=True)
class FaqRecord:
    """Single FAQ entry (question/answer pair with optional tags and embedding)"""
    id: Any
    question: str
    answer: str
    tags: Tuple[str, ...] = ()
    embedding: Optional[Tuple[float, ...]] = None
    embedding_version: Optional[str] = None

    def __post_init__(self):
        if self.id is None:
            raise CorpusContractError("FAQ record is missing an id")
        if not isinstance(self.question, str):
            raise CorpusContractError(f"FAQ #{self.id} has no question text")
        if not isinstance(self.answer, str):
            raise CorpusContractError(f"FAQ #{self.id} has no answer text")
        # Frozen: normalize through object.__setattr__
        try:
            object.__setattr__(self, "tags", tuple(parse_tags(self.tags)))
        except InvalidTagsPayload as e:
            logger.warning(f"FAQ #{self.id}: invalid tags payload, treating as no tags ({e})")
            object.__setattr__(self, "tags", ())
        if self.embedding is not None and not isinstance(self.embedding, tuple):
            object.__setattr__(self, "embedding", _parse_embedding(self.embedding, self.id))

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None and len(self.embedding) > 0

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "FaqRecord":
        """
        Build a record from a store row (dict-like).

        Tags may be a list, a JSON array string, or a ';'/',' separated string.
        Unparsable tags are logged and treated as no tags. Missing
        id/question/answer is a contract violation and raises.

        Args:
            row: Mapping with keys id, question, answer and optionally
                tags, embedding, embedding_version

        Returns:
            FaqRecord
        """
        missing = [key for key in ("id", "question", "answer") if key not in row]
        if missing:
            raise CorpusContractError(f"FAQ row missing required fields: {', '.join(missing)}")

        return cls(
            id=row["id"],
            question=row["question"],
            answer=row["answer"],
            tags=row.get("tags"),
            embedding=row.get("embedding"),
            embedding_version=row.get("embedding_version") or None,
        )


def _parse_embedding(raw: Any, faq_id: Any) -> Optional[Tuple[float, ...]]:
    if raw is None:
        return None
    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"FAQ #{faq_id}: embedding is not valid JSON, ignoring it")
            return None
    try:
        return tuple(float(x) for x in raw)
    except (TypeError, ValueError):
        logger.warning(f"FAQ #{faq_id}: embedding is not a numeric vector, ignoring it")
        return None


class QueryContext:
    """
    Per-call view of the user query.

    Token views are derived lazily and cached for the lifetime of one call.
    """

    def __init__(self, raw_text: str, stem: bool = False):
        self.raw_text = raw_text or ""
        self.stem = stem

    @property
    def text(self) -> str:
        return self.raw_text.strip()

    @property
    def is_empty(self) -> bool:
        return not self.text

    @cached_property
    def normalized_tokens(self) -> List[str]:
        """Token multiset (BM25 needs term multiplicities)"""
        return tokenize(self.raw_text, stem=self.stem)

    @cached_property
    def keywords(self) -> List[str]:
        """Deduplicated tokens in first-seen order"""
        return unique_tokens(self.raw_text, stem=self.stem)

    @cached_property
    def extracted_tags(self) -> List[str]:
        """Unigrams + adjacent bigrams, used for tag boosting"""
        return extract_query_tags(self.keywords)

    def __repr__(self) -> str:
        return f"QueryContext({self.raw_text!r})"


@dataclass
class ScoredCandidate:
    """One FAQ scored against a query"""
    faq_id: Any
    raw_question: str
    raw_answer: str
    score: float
    component_scores: Dict[str, float] = field(default_factory=dict)
    strong_match: bool = False  # Raw signal cleared the strong-match override


@dataclass(frozen=True)
class Alternate:
    """Secondary suggestion shown next to (or instead of) the answer"""
    id: Any
    question: str
    score: float

    def to_dict(self) -> dict:
        return {"id": self.id, "question": self.question, "score": self.score}


@dataclass
class MatchResult:
    """Final answer returned to callers"""
    answer: str
    score: float
    id: Any = None
    alternates: List[Alternate] = field(default_factory=list)
    decision: Decision = Decision.CLARIFY
    question: Optional[str] = None  # Matched FAQ question (ACCEPT only)
    variant: Optional[str] = None   # Ranker variant that produced the scores
    fallback_used: bool = False     # Embedding path failed, lexical path used
    performance: Optional[Dict[str, float]] = None

    @property
    def accepted(self) -> bool:
        return self.decision == Decision.ACCEPT

    def to_dict(self) -> dict:
        """Wire shape: {answer, score, id, alternates}"""
        return {
            "answer": self.answer,
            "score": self.score,
            "id": self.id,
            "alternates": [alt.to_dict() for alt in self.alternates],
        }
