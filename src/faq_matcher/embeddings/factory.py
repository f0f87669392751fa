"""
Factory to create embedding providers from matcher configuration.
"""

import logging
from typing import Optional

from ..config import EmbeddingProviderType, MatcherConfig
from .base import BaseEmbeddingProvider
from .http import HttpEmbeddingProvider
from .local import LocalSentenceTransformerProvider
from .vertex import VertexEmbeddingProvider

logger = logging.getLogger(__name__)


class EmbeddingProviderFactory:
    """Factory to create embedding provider instances based on configuration."""

    @classmethod
    def create(cls, config: MatcherConfig) -> Optional[BaseEmbeddingProvider]:
        """
        Create the provider selected by config.embedding_provider.

        Supported types:
            - http: Self-hosted embedding service (POST /embed)
            - vertex_ai: Google Vertex AI text embeddings
            - sentence_transformers: Local model (requires the `local` extra)
            - none: No provider (embedding variant falls back to BM25)

        Args:
            config: Matcher configuration

        Returns:
            Provider instance, or None when disabled
        """
        provider_type = config.embedding_provider

        try:
            if provider_type == EmbeddingProviderType.NONE:
                logger.info("Embedding provider disabled")
                return None

            if provider_type == EmbeddingProviderType.HTTP:
                logger.info(f"Creating HTTP embedding provider: {config.embedding_service_url}")
                return HttpEmbeddingProvider(
                    base_url=config.embedding_service_url,
                    timeout=config.embedding_timeout_s,
                    model_name=config.embedding_model,
                )

            if provider_type == EmbeddingProviderType.VERTEX_AI:
                logger.info(f"Creating Vertex AI embedding provider: {config.embedding_model}")
                return VertexEmbeddingProvider(
                    model_name=config.embedding_model,
                    project_id=config.gcp_project_id,
                    location=config.gcp_location,
                    dimension=config.embedding_dimension,
                )

            if provider_type == EmbeddingProviderType.SENTENCE_TRANSFORMERS:
                logger.info(f"Creating local sentence-transformers provider: {config.embedding_model}")
                return LocalSentenceTransformerProvider(model_name=config.embedding_model)

        except Exception as e:
            logger.error(f"Failed to create embedding provider ({provider_type.value}): {e}")
            raise

        raise ValueError(
            f"Unknown embedding provider: {provider_type}. "
            f"Valid options: http, vertex_ai, sentence_transformers, none"
        )
