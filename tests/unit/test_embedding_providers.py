"""
Unit tests for embedding providers

All tests use mocks to avoid loading real models or making API calls.
"""

import sys
from unittest.mock import Mock, patch

import pytest
import requests

from faq_matcher.config import EmbeddingProviderType, MatcherConfig
from faq_matcher.embeddings import (
    EmbeddingProviderFactory,
    HttpEmbeddingProvider,
    LocalSentenceTransformerProvider,
    VertexEmbeddingProvider,
)
from faq_matcher.exceptions import ProviderUnavailable

pytestmark = pytest.mark.unit


def http_response(status_code=200, payload=None, content=b"{}"):
    response = Mock(status_code=status_code, content=content)
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


class TestHttpEmbeddingProvider:
    """Test self-hosted embedding service client"""

    def test_embed(self):
        session = Mock()
        session.post.return_value = http_response(payload={"embedding": [0.1, 0.2, 3]})
        provider = HttpEmbeddingProvider("http://embeddings:8000/", timeout=3.0, session=session)

        assert provider.embed("What is an abstract?") == [0.1, 0.2, 3.0]
        session.post.assert_called_once_with(
            "http://embeddings:8000/embed", json={"text": "What is an abstract?"}, timeout=3.0
        )

    def test_network_error(self):
        session = Mock()
        session.post.side_effect = requests.ConnectionError("refused")
        provider = HttpEmbeddingProvider(session=session)
        with pytest.raises(ProviderUnavailable):
            provider.embed("fee")

    def test_timeout(self):
        session = Mock()
        session.post.side_effect = requests.Timeout("slow")
        with pytest.raises(ProviderUnavailable):
            HttpEmbeddingProvider(session=session).embed("fee")

    def test_http_error(self):
        session = Mock()
        session.post.return_value = http_response(status_code=503)
        with pytest.raises(ProviderUnavailable, match="503"):
            HttpEmbeddingProvider(session=session).embed("fee")

    def test_invalid_json(self):
        session = Mock()
        session.post.return_value = http_response(payload=ValueError("no json"), content=b"<html>")
        with pytest.raises(ProviderUnavailable):
            HttpEmbeddingProvider(session=session).embed("fee")

    @pytest.mark.parametrize("payload", [
        {},
        {"embedding": []},
        {"embedding": "0.1,0.2"},
        ["not", "a", "dict"],
    ])
    def test_missing_embedding(self, payload):
        session = Mock()
        session.post.return_value = http_response(payload=payload)
        with pytest.raises(ProviderUnavailable):
            HttpEmbeddingProvider(session=session).embed("fee")

    def test_non_numeric_values(self):
        session = Mock()
        session.post.return_value = http_response(payload={"embedding": ["a", "b"]})
        with pytest.raises(ProviderUnavailable):
            HttpEmbeddingProvider(session=session).embed("fee")

    def test_check_status_online(self):
        session = Mock()
        session.get.return_value = http_response(payload={"model": "all-MiniLM-L6-v2"})
        status = HttpEmbeddingProvider("http://embeddings:8000", session=session).check_status()

        assert status["status"] == "online"
        assert status["service_info"] == {"model": "all-MiniLM-L6-v2"}
        session.get.assert_called_once_with("http://embeddings:8000/health", timeout=2.0)

    def test_check_status_offline(self):
        session = Mock()
        session.get.side_effect = requests.ConnectionError("refused")
        status = HttpEmbeddingProvider(session=session).check_status()
        assert status["status"] == "offline"

    def test_check_status_error(self):
        session = Mock()
        session.get.return_value = http_response(status_code=500)
        status = HttpEmbeddingProvider(session=session).check_status()
        assert status["status"] == "error"
        assert "500" in status["message"]

    def test_model_info_and_close(self):
        session = Mock()
        provider = HttpEmbeddingProvider("http://embeddings:8000", session=session)
        assert provider.get_model_info()["type"] == "http"
        provider.close()
        session.close.assert_called_once()


class TestVertexEmbeddingProvider:
    """Test Vertex AI provider (mocked genai client)"""

    def test_embed(self):
        client = Mock()
        client.models.embed_content.return_value = Mock(embeddings=[Mock(values=[0.1, 0.2])])
        provider = VertexEmbeddingProvider(project_id="test-project", dimension=768, client=client)

        assert provider.embed("fee") == [0.1, 0.2]
        kwargs = client.models.embed_content.call_args.kwargs
        assert kwargs["model"] == "text-embedding-005"
        assert kwargs["contents"] == "fee"
        assert kwargs["config"].output_dimensionality == 768

    def test_api_error(self):
        client = Mock()
        client.models.embed_content.side_effect = RuntimeError("quota exceeded")
        provider = VertexEmbeddingProvider(project_id="test-project", client=client)
        with pytest.raises(ProviderUnavailable):
            provider.embed("fee")

    def test_empty_response(self):
        client = Mock()
        client.models.embed_content.return_value = Mock(embeddings=[])
        provider = VertexEmbeddingProvider(project_id="test-project", client=client)
        with pytest.raises(ProviderUnavailable):
            provider.embed("fee")

    def test_requires_project(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
        monkeypatch.delenv("GCP_PROJECT_ID", raising=False)
        with pytest.raises(ValueError, match="project"):
            VertexEmbeddingProvider()

    def test_builds_vertex_client(self):
        with patch("faq_matcher.embeddings.vertex.genai.Client") as client_cls:
            provider = VertexEmbeddingProvider(project_id="test-project", location="europe-west1")
        client_cls.assert_called_once_with(vertexai=True, project="test-project", location="europe-west1")
        assert provider.client is client_cls.return_value
        assert provider.get_model_info()["type"] == "vertex_ai"


class TestLocalSentenceTransformerProvider:
    """Test local provider (lazy model loading)"""

    def test_lazy_loading(self):
        provider = LocalSentenceTransformerProvider()
        assert provider.model is None
        assert provider.get_model_info()["loaded"] is False

    def test_embed(self):
        fake_module = Mock()
        fake_module.SentenceTransformer.return_value.encode.return_value = [0.5, 0.25]
        with patch.dict(sys.modules, {"sentence_transformers": fake_module}):
            provider = LocalSentenceTransformerProvider("all-MiniLM-L6-v2")
            assert provider.embed("fee") == [0.5, 0.25]
        fake_module.SentenceTransformer.assert_called_once_with("all-MiniLM-L6-v2")

    def test_load_failure(self):
        fake_module = Mock()
        fake_module.SentenceTransformer.side_effect = OSError("model not found")
        with patch.dict(sys.modules, {"sentence_transformers": fake_module}):
            with pytest.raises(ProviderUnavailable):
                LocalSentenceTransformerProvider("missing-model").embed("fee")

    def test_close_frees_model(self):
        provider = LocalSentenceTransformerProvider()
        provider.model = Mock()
        provider.close()
        assert provider.model is None


class TestEmbeddingProviderFactory:
    """Test provider factory"""

    def test_none(self):
        assert EmbeddingProviderFactory.create(MatcherConfig()) is None

    def test_http(self):
        config = MatcherConfig(
            embedding_provider=EmbeddingProviderType.HTTP,
            embedding_service_url="http://embeddings:8000",
            embedding_timeout_s=2.5,
        )
        provider = EmbeddingProviderFactory.create(config)
        assert isinstance(provider, HttpEmbeddingProvider)
        assert provider.base_url == "http://embeddings:8000"
        assert provider.timeout == 2.5
        provider.close()

    def test_local(self):
        config = MatcherConfig(embedding_provider=EmbeddingProviderType.SENTENCE_TRANSFORMERS)
        provider = EmbeddingProviderFactory.create(config)
        assert isinstance(provider, LocalSentenceTransformerProvider)
        assert provider.model is None

    def test_vertex(self):
        config = MatcherConfig(
            embedding_provider=EmbeddingProviderType.VERTEX_AI,
            embedding_model="text-embedding-005",
            gcp_project_id="test-project",
        )
        with patch("faq_matcher.embeddings.vertex.genai.Client"):
            provider = EmbeddingProviderFactory.create(config)
        assert isinstance(provider, VertexEmbeddingProvider)
        assert provider.dimension == 384
