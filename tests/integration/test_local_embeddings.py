"""
Integration tests for the local sentence-transformers provider

These tests use a real model and verify actual inference behavior.
First run will download the ~90MB all-MiniLM-L6-v2 model to ~/.cache/huggingface/
Model is loaded ONCE per module and reused across all tests.
"""

import pytest

from faq_matcher.config import MatcherConfig, Variant
from faq_matcher.embeddings import EmbeddingIndexer, LocalSentenceTransformerProvider
from faq_matcher.pipeline import MatchPipeline

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def local_provider():
    """Single provider instance (model loads once)"""
    provider = LocalSentenceTransformerProvider("all-MiniLM-L6-v2")
    yield provider
    provider.close()


class TestLocalEmbeddingsIntegration:
    """Real local model"""

    def test_model_loading(self, local_provider):
        vector = local_provider.embed("What is an abstract?")
        assert local_provider.model is not None
        assert len(vector) == 384

    def test_embed_corpus_and_match(self, local_provider, conference_faqs):
        report = EmbeddingIndexer(local_provider).embed_corpus(conference_faqs)
        assert report.success == len(conference_faqs)

        config = MatcherConfig(variant=Variant.EMBEDDING_HYBRID, embedding_timeout_s=30.0)
        pipeline = MatchPipeline(config, provider=local_provider)
        result = pipeline.match("How much do I have to pay to attend?", report.records)

        assert not result.fallback_used
        assert result.id == 20
