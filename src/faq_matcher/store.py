"""
Collaborator interfaces: corpus store and feedback sink.

The matcher only reads from a CorpusStore, and only ever sees a fully
materialized snapshot. Feedback and escalations are recorded by the caller
through a FeedbackSink; the matcher returns the data they need (id, score).
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import FaqRecord

logger = logging.getLogger(__name__)


class CorpusStore(ABC):
    """Source of FAQ records"""

    @abstractmethod
    def list_faqs(self) -> Sequence[FaqRecord]:
        """
        Return every FAQ record as a materialized sequence.

        Implementations must not return a lazy iterator: ranking needs a
        stable snapshot that later writes cannot change.
        """
        pass


class InMemoryCorpusStore(CorpusStore):
    """
    Thread-safe in-memory store.

    Writes bump `version`; readers get a tuple snapshot, so a write during a
    match never shows up mid-ranking.
    """

    def __init__(self, faqs: Iterable[FaqRecord] = ()):
        self._lock = threading.RLock()
        self._faqs: Dict[Any, FaqRecord] = {}
        self.version = 0
        for faq in faqs:
            self._faqs[faq.id] = faq
        if self._faqs:
            self.version = 1

    def list_faqs(self) -> Sequence[FaqRecord]:
        with self._lock:
            return tuple(self._faqs.values())

    def get(self, faq_id: Any) -> Optional[FaqRecord]:
        with self._lock:
            return self._faqs.get(faq_id)

    def add(self, faq: FaqRecord) -> None:
        with self._lock:
            if faq.id in self._faqs:
                raise KeyError(f"FAQ #{faq.id} already exists")
            self._faqs[faq.id] = faq
            self.version += 1
        logger.debug(f"Added FAQ #{faq.id} (store version {self.version})")

    def update(self, faq: FaqRecord) -> None:
        with self._lock:
            if faq.id not in self._faqs:
                raise KeyError(f"FAQ #{faq.id} not found")
            self._faqs[faq.id] = faq
            self.version += 1
        logger.debug(f"Updated FAQ #{faq.id} (store version {self.version})")

    def delete(self, faq_id: Any) -> bool:
        with self._lock:
            if faq_id not in self._faqs:
                return False
            del self._faqs[faq_id]
            self.version += 1
        logger.debug(f"Deleted FAQ #{faq_id} (store version {self.version})")
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._faqs)


class FeedbackSink(ABC):
    """Receives user feedback on answers; implemented by collaborators"""

    @abstractmethod
    def record_feedback(self, session_id: str, faq_id: Optional[Any], helpful: bool) -> None:
        pass

    @abstractmethod
    def record_escalation(self, session_id: str, query: str, contact: str) -> None:
        pass


class InMemoryFeedbackSink(FeedbackSink):
    """Keeps feedback in lists (tests and offline evaluation)"""

    def __init__(self):
        self.feedback: List[Dict[str, Any]] = []
        self.escalations: List[Dict[str, Any]] = []

    def record_feedback(self, session_id, faq_id, helpful):
        self.feedback.append({"session_id": session_id, "faq_id": faq_id, "helpful": bool(helpful)})

    def record_escalation(self, session_id, query, contact):
        self.escalations.append({"session_id": session_id, "query": query, "contact": contact})
