"""
Embedding providers and FAQ embedding indexing.

Providers:
- http: Self-hosted embedding service (POST /embed)
- vertex: Google Vertex AI via google-genai
- local: sentence-transformers running in-process (optional extra)
"""

from .base import BaseEmbeddingProvider
from .factory import EmbeddingProviderFactory
from .http import HttpEmbeddingProvider
from .indexer import (
    BatchEmbeddingReport,
    EmbeddingIndexer,
    embedding_stats,
    has_valid_embedding,
    prepare_text_for_embedding,
)
from .local import LocalSentenceTransformerProvider
from .vertex import VertexEmbeddingProvider

__all__ = [
    "BaseEmbeddingProvider",
    "EmbeddingProviderFactory",
    "HttpEmbeddingProvider",
    "VertexEmbeddingProvider",
    "LocalSentenceTransformerProvider",
    "EmbeddingIndexer",
    "BatchEmbeddingReport",
    "embedding_stats",
    "has_valid_embedding",
    "prepare_text_for_embedding",
]
