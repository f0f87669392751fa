"""
Decision policy: turns ranked candidates into a MatchResult.

Transitions:
    empty query              → CLARIFY "Please enter a question."
    empty corpus             → CLARIFY "no FAQ entries" message
    best >= accept_threshold
      or strong-match fires  → ACCEPT best, alternates from candidates[1:]
    otherwise                → CLARIFY fallback message, id=None,
                               suggestions from candidates[0:] above the
                               clarify floor

ESCALATE is never produced here: it follows explicit negative feedback,
which collaborators record through a FeedbackSink.
"""

import logging
import random
from typing import Any, Iterable, List, Optional, Sequence

from .config import VariantThresholds
from .models import Alternate, Decision, MatchResult, ScoredCandidate

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "Please enter a question."
NO_FAQS_MESSAGE = "Sorry, no FAQ entries are available at the moment."

FALLBACK_MESSAGES = (
    "I'm not quite sure about that specific question. Could you try rephrasing it or asking in a different way?",
    "Hmm, I don't have a clear answer for that. Would you mind asking your question differently?",
    "That's a bit outside my knowledge base. Could you provide more details or try a different question?",
    "I want to make sure I give you the right information. Could you rephrase your question or be more specific?",
)

SUGGESTION_LEADINS = (
    "Here are some topics I can definitely help with:",
    "Maybe one of these related questions might help:",
    "I found some potentially related information:",
)


class DecisionPolicy:
    """
    Threshold-based ACCEPT/CLARIFY decisions.

    The random source is injected so fallback wording can be pinned in tests.
    """

    def __init__(self, max_alternates: int = 3, rng: Optional[random.Random] = None):
        self.max_alternates = max_alternates
        self.rng = rng or random.Random()

    def empty_query(self) -> MatchResult:
        return MatchResult(answer=EMPTY_QUERY_MESSAGE, score=0.0, decision=Decision.CLARIFY)

    def empty_corpus(self) -> MatchResult:
        return MatchResult(answer=NO_FAQS_MESSAGE, score=0.0, decision=Decision.CLARIFY)

    def fallback_message(self, with_suggestions: bool = False) -> str:
        message = self.rng.choice(FALLBACK_MESSAGES)
        if with_suggestions:
            message += "\n\n" + self.rng.choice(SUGGESTION_LEADINS)
        return message

    def decide(self, candidates: Sequence[ScoredCandidate], thresholds: VariantThresholds) -> MatchResult:
        """
        Apply thresholds to candidates sorted by score descending.

        Args:
            candidates: Ranked candidates (may be empty)
            thresholds: Thresholds of the ranker variant that produced them

        Returns:
            MatchResult with decision ACCEPT or CLARIFY
        """
        if not candidates:
            return self.empty_corpus()

        best = candidates[0]

        if best.score >= thresholds.accept_threshold or best.strong_match:
            if best.score < thresholds.accept_threshold:
                logger.info(
                    f"Strong-match override accepted FAQ #{best.faq_id} "
                    f"(score {best.score:.3f} < {thresholds.accept_threshold})"
                )
            alternates = self.select_alternates(
                candidates[1:], thresholds.alternate_threshold, exclude_ids=[best.faq_id]
            )
            return MatchResult(
                answer=best.raw_answer,
                score=best.score,
                id=best.faq_id,
                alternates=alternates,
                decision=Decision.ACCEPT,
                question=best.raw_question,
            )

        alternates = self.select_alternates(candidates, thresholds.clarify_floor)
        logger.debug(
            f"Best score {best.score:.3f} below threshold {thresholds.accept_threshold}, "
            f"{len(alternates)} suggestion(s)"
        )
        return MatchResult(
            answer=self.fallback_message(with_suggestions=bool(alternates)),
            score=best.score,
            id=None,
            alternates=alternates,
            decision=Decision.CLARIFY,
        )

    def select_alternates(
        self,
        candidates: Iterable[ScoredCandidate],
        min_score: float,
        exclude_ids: Iterable[Any] = (),
    ) -> List[Alternate]:
        """
        Candidates with score >= min_score, deduplicated by id, in ranking
        order, at most max_alternates.
        """
        seen = set(exclude_ids)
        alternates: List[Alternate] = []
        for candidate in candidates:
            if len(alternates) >= self.max_alternates:
                break
            if candidate.score < min_score or candidate.faq_id in seen:
                continue
            seen.add(candidate.faq_id)
            alternates.append(Alternate(id=candidate.faq_id, question=candidate.raw_question, score=candidate.score))
        return alternates
