"""
Unit tests for corpus statistics (collection IDF) and the index cache.
"""

import dataclasses
import math
import threading

import pytest

from faq_matcher.bm25.index_builder import CorpusIndexCache, build_corpus_index
from faq_matcher.utils import corpus_fingerprint

pytestmark = pytest.mark.unit


class TestBuildCorpusIndex:
    """Test collection statistics"""

    def test_document_frequency(self, conference_faqs):
        index = build_corpus_index(conference_faqs)
        assert index.total_docs == 4
        assert index.document_frequency["abstract"] == 2
        assert index.document_frequency["registration"] == 1

    def test_average_length(self, conference_faqs):
        """Question twice + answer: 11, 18, 18 and 16 tokens"""
        index = build_corpus_index(conference_faqs)
        assert index.avg_doc_length == pytest.approx(15.75)

    def test_idf(self, conference_faqs):
        index = build_corpus_index(conference_faqs)
        # ln((4 - 2 + 0.5) / (2 + 0.5) + 1) = ln 2
        assert index.idf("abstract") == pytest.approx(math.log(2))
        assert index.idf("registration") > index.idf("abstract")
        assert index.idf("never-seen") > index.idf("registration")

    def test_documents_aligned_with_corpus(self, conference_faqs):
        index = build_corpus_index(conference_faqs)
        assert [doc_id for doc_id, _ in index.documents] == [1, 20, 21, 30]
        assert index.term_frequencies(20)["registration"] == 3
        assert index.term_frequencies(999) is None

    def test_empty_corpus(self):
        index = build_corpus_index([])
        assert index.total_docs == 0
        assert index.avg_doc_length == 0.0


class TestCorpusIndexCache:
    """Test rebuild-on-change memoization"""

    def test_reuses_index_for_same_corpus(self, conference_faqs):
        cache = CorpusIndexCache()
        first = cache.get(conference_faqs)
        second = cache.get(list(conference_faqs))
        assert first is second
        assert cache.builds == 1

    def test_rebuilds_when_corpus_changes(self, conference_faqs):
        cache = CorpusIndexCache()
        first = cache.get(conference_faqs)

        edited = list(conference_faqs)
        edited[0] = dataclasses.replace(edited[0], answer="An abstract is a summary.")
        second = cache.get(edited)

        assert second is not first
        assert cache.builds == 2
        assert cache.current is second

    def test_invalidate(self, conference_faqs):
        cache = CorpusIndexCache()
        cache.get(conference_faqs)
        cache.invalidate()
        assert cache.current is None
        cache.get(conference_faqs)
        assert cache.builds == 2

    def test_concurrent_rebuild_builds_once(self, conference_faqs):
        """Threads racing on a fresh corpus share a single build"""
        cache = CorpusIndexCache()
        workers = 16
        barrier = threading.Barrier(workers)
        results = []
        results_lock = threading.Lock()

        def worker():
            barrier.wait()
            index = cache.get(list(conference_faqs))
            with results_lock:
                results.append(index)

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(results) == workers
        assert cache.builds == 1
        assert len({id(index) for index in results}) == 1
        assert cache.current is results[0]


class TestCorpusFingerprint:
    """Test corpus hashing"""

    def test_stable(self, conference_faqs):
        assert corpus_fingerprint(conference_faqs) == corpus_fingerprint(list(conference_faqs))

    def test_order_sensitive(self, conference_faqs):
        assert corpus_fingerprint(conference_faqs) != corpus_fingerprint(conference_faqs[::-1])

    def test_tags_change_fingerprint(self, conference_faqs):
        edited = [dataclasses.replace(conference_faqs[0], tags=("abstract",))] + conference_faqs[1:]
        assert corpus_fingerprint(edited) != corpus_fingerprint(conference_faqs)

    def test_embedding_does_not_change_fingerprint(self, conference_faqs):
        edited = [dataclasses.replace(conference_faqs[0], embedding=(1.0, 0.0))] + conference_faqs[1:]
        assert corpus_fingerprint(edited) == corpus_fingerprint(conference_faqs)

    def test_empty(self):
        expected = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        assert corpus_fingerprint([]) == expected
