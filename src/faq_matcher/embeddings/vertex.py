"""
Vertex AI embedding provider using the Google Gen AI SDK.

Uses text-embedding models (e.g. text-embedding-005) with an explicit
output dimensionality so vectors match the stored FAQ embeddings.
"""

import logging
import os
from typing import List, Optional

from google import genai
from google.genai.types import EmbedContentConfig

from ..exceptions import ProviderUnavailable
from .base import BaseEmbeddingProvider

logger = logging.getLogger(__name__)


class VertexEmbeddingProvider(BaseEmbeddingProvider):
    """Embeddings from Vertex AI (google-genai client)"""

    def __init__(
        self,
        model_name: str = "text-embedding-005",
        project_id: Optional[str] = None,
        location: str = "us-central1",
        dimension: Optional[int] = None,
        client: Optional[genai.Client] = None,
    ):
        """
        Initialize Vertex AI provider.

        Args:
            model_name: Embedding model name
            project_id: GCP project ID (reads GOOGLE_CLOUD_PROJECT / GCP_PROJECT_ID if not provided)
            location: GCP region
            dimension: Requested output dimensionality (None = model default)
            client: Pre-built genai client (tests, shared clients)
        """
        self.model_name = model_name
        self.location = location
        self.dimension = dimension
        self.project_id = project_id or os.getenv("GOOGLE_CLOUD_PROJECT") or os.getenv("GCP_PROJECT_ID")

        if client is not None:
            self.client = client
        else:
            if not self.project_id:
                raise ValueError(
                    "GCP project ID required. Set GOOGLE_CLOUD_PROJECT env var or pass project_id parameter."
                )
            self.client = genai.Client(vertexai=True, project=self.project_id, location=self.location)

        logger.info(
            f"Vertex embedding provider initialized: {model_name} "
            f"(project={self.project_id}, location={self.location})"
        )

    def embed(self, text: str) -> List[float]:
        config = EmbedContentConfig(output_dimensionality=self.dimension) if self.dimension else None
        try:
            response = self.client.models.embed_content(
                model=self.model_name,
                contents=text,
                config=config,
            )
        except Exception as e:
            logger.warning(f"Vertex AI embedding failed: {e}")
            raise ProviderUnavailable(f"Vertex AI embedding failed: {type(e).__name__}") from e

        embeddings = getattr(response, "embeddings", None)
        if not embeddings or not embeddings[0].values:
            raise ProviderUnavailable("Vertex AI returned no embedding values")
        return [float(x) for x in embeddings[0].values]

    def get_model_info(self) -> dict:
        return {
            "name": self.model_name,
            "type": "vertex_ai",
            "provider": "google-genai",
            "dimension": self.dimension,
            "location": self.location,
        }
