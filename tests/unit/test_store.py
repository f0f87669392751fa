"""
Unit tests for in-memory corpus store and feedback sink.
"""

import dataclasses

import pytest

from faq_matcher.store import InMemoryCorpusStore, InMemoryFeedbackSink

pytestmark = pytest.mark.unit


class TestInMemoryCorpusStore:
    """Test snapshot semantics and CRUD"""

    def test_snapshot_is_tuple(self, conference_faqs):
        store = InMemoryCorpusStore(conference_faqs)
        snapshot = store.list_faqs()
        assert isinstance(snapshot, tuple)
        assert [faq.id for faq in snapshot] == [1, 20, 21, 30]
        assert len(store) == 4

    def test_snapshot_unaffected_by_writes(self, conference_faqs, abstract_faq):
        store = InMemoryCorpusStore(conference_faqs)
        snapshot = store.list_faqs()
        store.delete(20)
        store.add(dataclasses.replace(abstract_faq, id=99))
        assert [faq.id for faq in snapshot] == [1, 20, 21, 30]
        assert [faq.id for faq in store.list_faqs()] == [1, 21, 30, 99]

    def test_version_increments(self, abstract_faq):
        store = InMemoryCorpusStore()
        assert store.version == 0
        store.add(abstract_faq)
        store.update(dataclasses.replace(abstract_faq, answer="Updated."))
        assert store.version == 2
        assert store.get(1).answer == "Updated."

    def test_add_duplicate(self, abstract_faq):
        store = InMemoryCorpusStore([abstract_faq])
        with pytest.raises(KeyError):
            store.add(abstract_faq)

    def test_update_missing(self, abstract_faq):
        with pytest.raises(KeyError):
            InMemoryCorpusStore().update(abstract_faq)

    def test_delete_missing(self):
        assert InMemoryCorpusStore().delete(1) is False
        assert InMemoryCorpusStore().get(1) is None


class TestInMemoryFeedbackSink:
    """Test feedback recording"""

    def test_feedback_and_escalation(self):
        sink = InMemoryFeedbackSink()
        sink.record_feedback("session-1", 20, helpful=False)
        sink.record_escalation("session-1", "Can I pay by invoice?", "attendee@example.org")

        assert sink.feedback == [{"session_id": "session-1", "faq_id": 20, "helpful": False}]
        assert sink.escalations[0]["contact"] == "attendee@example.org"
